"""
Content Schemas

Pydantic models for the translatable modules (galleries, news). Payloads
carry one translation per language: ``{"translations": {"en": {...}}}``.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.config import settings
from app.utils.slugify import slugify


def _normalize_slug(v):
    """Empty slugs become None; anything else is slugified."""
    if v is None or not str(v).strip():
        return None
    return slugify(v)


def _check_locales(v):
    unknown = sorted(set(v) - set(settings.locales))
    if unknown:
        raise ValueError(f"Unsupported locale(s): {', '.join(unknown)}")
    return v


class TranslationIn(BaseModel):
    """One language version of a gallery"""

    title: str = Field(..., min_length=1, max_length=255, description="Title in this language")
    slug: str | None = Field(None, max_length=255, description="URL slug, made unique per language")
    body: str | None = Field(None, description="Body text")
    status: bool = Field(False, description="Published in this language")

    @field_validator("slug", mode="before")
    @classmethod
    def normalize_slug(cls, v):
        return _normalize_slug(v)


class TranslationUpdate(BaseModel):
    """Partial update of one language version"""

    title: str | None = Field(None, min_length=1, max_length=255)
    slug: str | None = Field(None, max_length=255)
    body: str | None = None
    status: bool | None = None

    @field_validator("slug", mode="before")
    @classmethod
    def normalize_slug(cls, v):
        return _normalize_slug(v)


class NewsTranslationIn(TranslationIn):
    summary: str | None = Field(None, description="Short summary shown in listings")


class NewsTranslationUpdate(TranslationUpdate):
    summary: str | None = None


class GalleryCreate(BaseModel):
    translations: dict[str, TranslationIn] = Field(..., min_length=1)

    @field_validator("translations")
    @classmethod
    def supported_locales(cls, v):
        return _check_locales(v)


class GalleryUpdate(BaseModel):
    translations: dict[str, TranslationUpdate] = Field(default_factory=dict)

    @field_validator("translations")
    @classmethod
    def supported_locales(cls, v):
        return _check_locales(v)


class NewsCreate(BaseModel):
    date: datetime | None = Field(None, description="Publication date, defaults to now")
    translations: dict[str, NewsTranslationIn] = Field(..., min_length=1)

    @field_validator("translations")
    @classmethod
    def supported_locales(cls, v):
        return _check_locales(v)


class NewsUpdate(BaseModel):
    date: datetime | None = None
    translations: dict[str, NewsTranslationUpdate] = Field(default_factory=dict)

    @field_validator("translations")
    @classmethod
    def supported_locales(cls, v):
        return _check_locales(v)


# ── Responses ───────────────────────────────────────────────────────────────


class TranslationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lang: str
    title: str
    slug: str | None = None
    body: str | None = None
    status: bool


class NewsTranslationOut(TranslationOut):
    summary: str | None = None


class GalleryOut(BaseModel):
    """Admin view of a gallery with every translation"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime
    translations: list[TranslationOut] = Field(default_factory=list)


class NewsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: datetime
    created_at: datetime
    updated_at: datetime
    translations: list[NewsTranslationOut] = Field(default_factory=list)


class GalleryPublic(BaseModel):
    """A gallery as served in one language"""

    id: int
    lang: str
    title: str
    slug: str | None = None
    body: str | None = None


class NewsPublic(GalleryPublic):
    date: datetime
    summary: str | None = None
