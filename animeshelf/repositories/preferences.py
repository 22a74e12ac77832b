"""Theme and profile image preferences."""

from __future__ import annotations

import logging

from ..errors import CorruptDataError, Outcome, StorageError, ValidationError
from .base import JsonRepository

logger = logging.getLogger(__name__)

DARK_MODE_KEY = "isDarkMode"
PROFILE_IMAGE_KEY = "profileImage"
DEFAULT_DARK_MODE = True


class PreferenceRepository(JsonRepository):
    """Two independent scalar preferences with default fallbacks."""

    async def get_dark_mode(self) -> bool:
        """Return the dark mode flag, defaulting to dark."""

        try:
            return await self._read_dark_mode()
        except StorageError as exc:
            logger.warning("Failed to load theme preference: %s", exc)
            return DEFAULT_DARK_MODE

    async def set_dark_mode(self, value: bool) -> Outcome[None]:
        async with self._store.lock(DARK_MODE_KEY):
            return await self._write(DARK_MODE_KEY, bool(value))

    async def toggle_dark_mode(self) -> Outcome[bool]:
        """Flip the dark mode flag and return the new value.

        Nothing is written when the current value cannot be read.
        """

        async with self._store.lock(DARK_MODE_KEY):
            try:
                current = await self._read_dark_mode()
            except StorageError as exc:
                logger.warning("Failed to load theme preference before toggling: %s", exc)
                return Outcome.failure(exc)
            new_value = not current
            outcome = await self._write(DARK_MODE_KEY, new_value)
        if not outcome:
            return Outcome(error=outcome.error, detail=outcome.detail)
        return Outcome.success(new_value)

    async def _read_dark_mode(self) -> bool:
        try:
            value = await self._load(DARK_MODE_KEY)
        except CorruptDataError as exc:
            logger.warning("Theme preference is corrupted, using default: %s", exc)
            return DEFAULT_DARK_MODE
        if value is None:
            return DEFAULT_DARK_MODE
        if not isinstance(value, bool):
            logger.warning("Ignoring non-boolean theme preference %r", value)
            return DEFAULT_DARK_MODE
        return value

    async def get_profile_image_ref(self) -> str | None:
        try:
            value = await self._load(PROFILE_IMAGE_KEY)
        except (StorageError, CorruptDataError) as exc:
            logger.warning("Failed to load profile image: %s", exc)
            return None
        if not isinstance(value, str) or not value:
            return None
        return value

    async def set_profile_image_ref(self, ref: str) -> Outcome[None]:
        """Persist the profile image reference (a URI or local path)."""

        cleaned = (ref or "").strip()
        if not cleaned:
            raise ValidationError("Profile image reference is required")
        async with self._store.lock(PROFILE_IMAGE_KEY):
            return await self._write(PROFILE_IMAGE_KEY, cleaned)
