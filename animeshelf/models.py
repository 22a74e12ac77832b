"""Pydantic models describing catalog records and locally persisted state."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

UNKNOWN = "Unknown"

_NUMERIC_FIELDS = ("score", "episodes", "rank")
_TEXT_FIELDS = (
    "title_english",
    "status",
    "type",
    "duration",
    "rating",
    "aired",
    "synopsis",
)


class Genre(BaseModel):
    """Small ``{id, name}`` tag attached to a catalog record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(validation_alias=AliasChoices("id", "mal_id"))
    name: str = UNKNOWN


class ImageSet(BaseModel):
    """Poster artwork URLs for a catalog record."""

    model_config = ConfigDict(frozen=True)

    image_url: str | None = None
    large_image_url: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _unwrap_jpg(cls, data: Any) -> Any:
        # Remote payloads nest the URLs under ``jpg``; snapshots are flat.
        if isinstance(data, dict) and isinstance(data.get("jpg"), dict):
            jpg = data["jpg"]
            return {
                "image_url": jpg.get("image_url"),
                "large_image_url": jpg.get("large_image_url"),
            }
        return data

    @property
    def best(self) -> str | None:
        return self.large_image_url or self.image_url


class CatalogRecord(BaseModel):
    """An anime entry fetched from the remote catalog.

    Accepts both the remote record shape (``mal_id``, ``images.jpg``,
    ``aired.string``) and the flattened snapshot shape produced by
    :meth:`model_dump`, so watchlist snapshots round-trip through the same
    validator. Missing or malformed optional fields become ``None``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(validation_alias=AliasChoices("id", "mal_id"))
    title: str = UNKNOWN
    title_english: str | None = None
    score: float | None = None
    episodes: int | None = None
    rank: int | None = None
    status: str | None = None
    type: str | None = None
    duration: str | None = None
    rating: str | None = None
    aired: str | None = None
    genres: tuple[Genre, ...] = ()
    images: ImageSet = Field(default_factory=ImageSet)
    synopsis: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalise_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)

        aired = payload.get("aired")
        if isinstance(aired, dict):
            payload["aired"] = aired.get("string")

        title = payload.get("title")
        if not isinstance(title, str) or not title.strip():
            payload["title"] = UNKNOWN

        for key in _NUMERIC_FIELDS:
            value = payload.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                payload[key] = None
        for key in _TEXT_FIELDS:
            value = payload.get(key)
            if not isinstance(value, str) or not value.strip():
                payload[key] = None

        genres = payload.get("genres")
        if isinstance(genres, list):
            payload["genres"] = [
                genre
                for genre in genres
                if isinstance(genre, dict)
                and isinstance(genre.get("mal_id", genre.get("id")), int)
            ]
        else:
            payload["genres"] = []

        if not isinstance(payload.get("images"), dict):
            payload.pop("images", None)
        return payload

    def display_title(self) -> str:
        """Return the English title when it differs, otherwise the main title."""

        english = (self.title_english or "").strip()
        if english and english != self.title:
            return english
        return self.title

    def score_label(self) -> str:
        return f"{self.score:.2f}" if self.score is not None else UNKNOWN

    def episodes_label(self) -> str:
        return f"{self.episodes} eps" if self.episodes is not None else UNKNOWN

    def genre_names(self) -> list[str]:
        return [genre.name for genre in self.genres]


class SessionRecord(BaseModel):
    """The locally signed-in user. Persisted as ``{"email", "name"}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    email: str
    display_name: str = Field(alias="name")

    @classmethod
    def from_email(cls, email: str) -> "SessionRecord":
        """Build a record whose display name is the email's local part."""

        local_part = email.split("@", 1)[0]
        return cls(email=email, display_name=local_part)

    def to_storage(self) -> str:
        return self.model_dump_json(by_alias=True)


class ProfileSummary(BaseModel):
    """Aggregated view backing the profile screen."""

    user: SessionRecord | None = None
    profile_image: str | None = None
    dark_mode: bool = True
    watchlist_count: int = 0
