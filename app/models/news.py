from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database import Base, utcnow
from app.models.translation import TranslationMixin


class News(Base):
    __tablename__ = "news"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(DateTime, nullable=False, default=utcnow, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    translations = relationship(
        "NewsTranslation",
        back_populates="news",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class NewsTranslation(TranslationMixin, Base):
    __tablename__ = "news_translations"

    news_id = Column(Integer, ForeignKey("news.id", ondelete="CASCADE"), nullable=False, index=True)
    summary = Column(Text, nullable=True)
    news = relationship("News", back_populates="translations")

    __table_args__ = (
        UniqueConstraint("news_id", "lang", name="uq_news_translation_lang"),
        UniqueConstraint("lang", "slug", name="uq_news_translation_slug"),
    )
