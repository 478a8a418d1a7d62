"""
Translation-table pattern shared by the content modules.

Each translatable module has one canonical row (Gallery, News) plus one
translation row per language. Slugs are unique per (lang, slug); a NULL
slug is allowed any number of times.
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from app.database import utcnow


class TranslationMixin:
    """Columns common to every ``*_translations`` table."""

    id = Column(Integer, primary_key=True, index=True)
    lang = Column(String(10), nullable=False, index=True)
    slug = Column(String, nullable=True)
    title = Column(String, nullable=False)
    body = Column(Text, nullable=True)
    status = Column(Boolean, nullable=False, default=False)  # published in this language
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id}, lang={self.lang!r}, slug={self.slug!r})>"
