"""
Content Repositories

Data access for the translatable modules (galleries, news). Each item is
one canonical row plus one translation row per language; every
translation write runs through ``assign_slug`` so slugs stay unique per
language.

Functions on TranslatableRepository:
    find_one    : first translation matching column filters
    slug_exists : lookup used by the slug assigner
    by_id       : item with all translations
    by_slug     : item whose translation in a language has a slug
    by_page     : one page of items plus the total count
    create      : insert item and translations
    update      : partial update of item and translations
    save        : assign slugs and commit
    delete      : hard-delete an item
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002
from sqlalchemy.future import select

from app.exceptions import DuplicateResourceError, ValidationError
from app.models.gallery import Gallery, GalleryTranslation
from app.models.news import News, NewsTranslation
from app.utils.pagination import PageResult, get_total_count, page_offset
from app.utils.slugify import assign_slug

logger = logging.getLogger(__name__)

# Path segments the routers use next to "/{slug}"
RESERVED_SLUGS = frozenset({"admin"})


def is_slug_conflict(error: IntegrityError) -> bool:
    """True when the violated constraint is the per-language slug uniqueness."""
    # postgres names uq_*_translation_slug, sqlite lists the (lang, slug) columns
    return "slug" in str(error.orig)


class TranslatableRepository:
    """Repository for a model with a ``translations`` relationship."""

    model: Any = None
    translation_model: Any = None
    resource_name = "Content"
    item_fields: tuple[str, ...] = ()
    translation_fields: tuple[str, ...] = ("title", "slug", "body", "status")
    # NOT NULL columns: an explicit None leaves the stored value alone
    required_translation_fields: tuple[str, ...] = ("title", "status")

    def __init__(self, db: AsyncSession):
        self.db = db

    def ordering(self) -> tuple:
        return (self.model.id.desc(),)

    # ── Lookups ─────────────────────────────────────────────────────────────

    async def find_one(self, **filters: Any):
        """Return the first translation whose columns equal ``filters``, or None."""
        query = select(self.translation_model)
        for name, value in filters.items():
            query = query.where(getattr(self.translation_model, name) == value)
        result = await self.db.execute(query.limit(1))
        return result.scalars().first()

    async def slug_exists(self, slug: str, lang: str, exclude_id: int | None = None) -> bool:
        if slug in RESERVED_SLUGS:
            return True
        query = select(self.translation_model.id).where(
            self.translation_model.slug == slug,
            self.translation_model.lang == lang,
        )
        if exclude_id is not None:
            query = query.where(self.translation_model.id != exclude_id)
        result = await self.db.execute(query.limit(1))
        return result.first() is not None

    async def by_id(self, item_id: int):
        result = await self.db.execute(select(self.model).where(self.model.id == item_id))
        return result.scalars().first()

    async def by_slug(self, slug: str, lang: str, all: bool = False):
        """Fetch the item whose ``lang`` translation has ``slug``.

        Unless ``all`` is set, the translation must be published.
        """
        conditions = [
            self.translation_model.slug == slug,
            self.translation_model.lang == lang,
        ]
        if not all:
            conditions.append(self.translation_model.status.is_(True))
        result = await self.db.execute(select(self.model).join(self.model.translations).where(*conditions))
        return result.scalars().first()

    async def by_page(self, page: int, per_page: int, lang: str | None = None, all: bool = False) -> PageResult:
        """Return one page of items and the total number of matching items.

        Public listings (``all=False``) only include items with a published
        translation in ``lang``. Pages are 1-based.
        """
        filters = []
        if lang is not None or not all:
            conditions = []
            if lang is not None:
                conditions.append(self.translation_model.lang == lang)
            if not all:
                conditions.append(self.translation_model.status.is_(True))
            filters.append(self.model.translations.any(and_(*conditions)))

        total_items = await get_total_count(self.db, self.model, filters)

        query = select(self.model)
        for f in filters:
            query = query.where(f)
        query = query.order_by(*self.ordering()).offset(page_offset(page, per_page)).limit(per_page)
        result = await self.db.execute(query)

        return PageResult(items=list(result.scalars().all()), total_items=total_items)

    # ── Writes ──────────────────────────────────────────────────────────────

    async def create(self, data: dict[str, Any]):
        """Insert a new item with one translation per language in ``data["translations"]``."""
        item = self.model(**{key: value for key, value in data.items() if key in self.item_fields and value is not None})
        for lang, fields in data.get("translations", {}).items():
            item.translations.append(self._new_translation(lang, fields))

        self.db.add(item)
        await self.save(item)
        logger.info("%s created: id=%d", self.resource_name, item.id)
        return item

    async def update(self, item_id: int, data: dict[str, Any]):
        """Apply a partial update. Returns the item, or None if it does not exist."""
        item = await self.by_id(item_id)
        if item is None:
            return None

        for key, value in data.items():
            if key in self.item_fields and value is not None:
                setattr(item, key, value)

        existing = {translation.lang: translation for translation in item.translations}
        for lang, fields in data.get("translations", {}).items():
            translation = existing.get(lang)
            if translation is None:
                if not fields.get("title"):
                    raise ValidationError(f"A new {lang} translation needs a title", field=f"translations.{lang}.title")
                item.translations.append(self._new_translation(lang, fields))
                continue
            for name, value in self._translation_values(fields).items():
                setattr(translation, name, value)

        await self.save(item)
        logger.info("%s updated: id=%d", self.resource_name, item.id)
        return item

    async def save(self, item):
        """Assign unique slugs to every translation of ``item`` and commit.

        New translations are checked against all rows; existing ones
        exclude their own id so an unchanged slug stays as is.
        """
        for translation in item.translations:
            translation.slug = await assign_slug(
                translation.slug,
                translation.lang,
                self.slug_exists,
                exclude_id=translation.id,
            )

        slugs = ", ".join(translation.slug for translation in item.translations if translation.slug)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if not is_slug_conflict(e):
                raise
            logger.warning("%s slug conflict on commit: %s", self.resource_name, e.orig)
            raise DuplicateResourceError(resource_type=self.resource_name, field="slug", value=slugs) from e

        await self.db.refresh(item)
        return item

    async def delete(self, item_id: int) -> bool:
        """Hard-delete an item and its translations.

        Returns True if a row was deleted, False if it did not exist.
        """
        item = await self.by_id(item_id)
        if item is None:
            return False

        await self.db.delete(item)
        await self.db.commit()
        logger.info("%s deleted: id=%d", self.resource_name, item_id)
        return True

    def _new_translation(self, lang: str, fields: dict[str, Any]):
        return self.translation_model(lang=lang, **self._translation_values(fields))

    def _translation_values(self, fields: dict[str, Any]) -> dict[str, Any]:
        return {
            name: value
            for name, value in fields.items()
            if name in self.translation_fields
            and not (value is None and name in self.required_translation_fields)
        }


class GalleryRepository(TranslatableRepository):
    model = Gallery
    translation_model = GalleryTranslation
    resource_name = "Gallery"


class NewsRepository(TranslatableRepository):
    model = News
    translation_model = NewsTranslation
    resource_name = "News"
    item_fields = ("date",)
    translation_fields = ("title", "slug", "summary", "body", "status")

    def ordering(self) -> tuple:
        return (News.date.desc(), News.id.desc())
