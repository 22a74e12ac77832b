"""Local stand-in for user authentication."""

from __future__ import annotations

import asyncio
import logging
import re
from enum import Enum

from pydantic import ValidationError as PydanticValidationError

from ..database import KeyValueStore
from ..errors import CorruptDataError, Outcome, StorageError, ValidationError
from ..models import SessionRecord
from .base import JsonRepository

logger = logging.getLogger(__name__)

SESSION_KEY = "user"
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")


class SessionState(str, Enum):
    LOADING = "loading"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class SessionRepository(JsonRepository):
    """Holds at most one signed-in user record.

    There is no credential verification: any well-formed email and non-empty
    password succeed after a simulated round trip. The repository starts in
    ``LOADING`` until :meth:`restore` has read the stored record once.
    """

    def __init__(self, store: KeyValueStore, *, login_delay_seconds: float = 1.0):
        super().__init__(store)
        self._login_delay_seconds = login_delay_seconds
        self._current: SessionRecord | None = None
        self._state = SessionState.LOADING

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current(self) -> SessionRecord | None:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._state is SessionState.AUTHENTICATED

    async def restore(self) -> SessionRecord | None:
        """Read the persisted session once at startup."""

        record: SessionRecord | None = None
        try:
            raw = await self._load(SESSION_KEY)
            if raw is not None:
                record = SessionRecord.model_validate(raw)
        except (StorageError, CorruptDataError, PydanticValidationError) as exc:
            logger.warning("Error checking login status: %s", exc)
            record = None
        self._set_current(record)
        return record

    async def login(self, email: str, password: str) -> SessionRecord:
        return await self._sign_in(email, password, action="login")

    async def signup(self, email: str, password: str) -> SessionRecord:
        # Account creation is unconditional until a real backend exists.
        return await self._sign_in(email, password, action="signup")

    async def logout(self) -> Outcome[None]:
        """Forget the signed-in user. Safe to call when nobody is signed in."""

        async with self._store.lock(SESSION_KEY):
            self._set_current(None)
            outcome = await self._delete(SESSION_KEY)
        logger.info("Signed out")
        return outcome

    async def _sign_in(self, email: str, password: str, *, action: str) -> SessionRecord:
        cleaned_email = self._validate_credentials(email, password)
        await asyncio.sleep(self._login_delay_seconds)

        record = SessionRecord.from_email(cleaned_email)
        async with self._store.lock(SESSION_KEY):
            await self._store.set(SESSION_KEY, record.to_storage())
            self._set_current(record)
        logger.info("Completed %s for %s", action, record.display_name)
        return record

    @staticmethod
    def _validate_credentials(email: str, password: str) -> str:
        cleaned_email = (email or "").strip()
        if not cleaned_email or not password:
            raise ValidationError("Email and password are required")
        if not EMAIL_RE.match(cleaned_email):
            raise ValidationError("Email address is not valid")
        return cleaned_email

    def _set_current(self, record: SessionRecord | None) -> None:
        self._current = record
        self._state = (
            SessionState.AUTHENTICATED if record is not None else SessionState.ANONYMOUS
        )
