from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database import Base, utcnow
from app.models.translation import TranslationMixin


class Gallery(Base):
    __tablename__ = "galleries"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    translations = relationship(
        "GalleryTranslation",
        back_populates="gallery",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class GalleryTranslation(TranslationMixin, Base):
    __tablename__ = "gallery_translations"

    gallery_id = Column(Integer, ForeignKey("galleries.id", ondelete="CASCADE"), nullable=False, index=True)
    gallery = relationship("Gallery", back_populates="translations")

    __table_args__ = (
        UniqueConstraint("gallery_id", "lang", name="uq_gallery_translation_lang"),
        UniqueConstraint("lang", "slug", name="uq_gallery_translation_slug"),
    )
