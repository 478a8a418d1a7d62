"""Gallery routes: public index and show by slug, admin CRUD."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import require_groups
from app.config import settings
from app.database import get_db
from app.exceptions import ContentNotFoundError
from app.i18n import get_locale
from app.models.gallery import Gallery
from app.repositories.content_repository import GalleryRepository
from app.schemas.content import GalleryCreate, GalleryOut, GalleryPublic, GalleryUpdate
from app.utils.pagination import Page, PaginationParams

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/galleries", tags=["Galleries"])


def get_repository(db: AsyncSession = Depends(get_db)) -> GalleryRepository:
    return GalleryRepository(db)


def to_public(gallery: Gallery, lang: str) -> GalleryPublic:
    translation = next(t for t in gallery.translations if t.lang == lang)
    return GalleryPublic(
        id=gallery.id,
        lang=lang,
        title=translation.title,
        slug=translation.slug,
        body=translation.body,
    )


@router.get("", response_model=Page[GalleryPublic])
async def list_galleries(
    pagination: PaginationParams = Depends(),
    lang: str = Depends(get_locale),
    repository: GalleryRepository = Depends(get_repository),
):
    """Published galleries in the request language."""
    per_page = settings.galleries_per_page
    result = await repository.by_page(pagination.page, per_page, lang=lang)
    items = [to_public(gallery, lang) for gallery in result.items]
    return Page[GalleryPublic].build(items, result.total_items, pagination.page, per_page)


@router.get("/admin", response_model=Page[GalleryOut], dependencies=[Depends(require_groups())])
async def list_all_galleries(
    pagination: PaginationParams = Depends(),
    repository: GalleryRepository = Depends(get_repository),
):
    """Every gallery, published or not, with all translations."""
    per_page = settings.galleries_per_page
    result = await repository.by_page(pagination.page, per_page, all=True)
    items = [GalleryOut.model_validate(gallery) for gallery in result.items]
    return Page[GalleryOut].build(items, result.total_items, pagination.page, per_page)


@router.get("/{slug}", response_model=GalleryPublic)
async def show_gallery(
    slug: str,
    lang: str = Depends(get_locale),
    repository: GalleryRepository = Depends(get_repository),
):
    gallery = await repository.by_slug(slug, lang)
    if gallery is None:
        raise ContentNotFoundError(resource_type="Gallery")
    return to_public(gallery, lang)


@router.post(
    "",
    response_model=GalleryOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_groups())],
)
async def create_gallery(payload: GalleryCreate, repository: GalleryRepository = Depends(get_repository)):
    return await repository.create(payload.model_dump())


@router.put("/{gallery_id}", response_model=GalleryOut, dependencies=[Depends(require_groups())])
async def update_gallery(
    gallery_id: int,
    payload: GalleryUpdate,
    repository: GalleryRepository = Depends(get_repository),
):
    gallery = await repository.update(gallery_id, payload.model_dump(exclude_unset=True))
    if gallery is None:
        raise ContentNotFoundError(resource_type="Gallery", content_id=gallery_id)
    return gallery


@router.delete("/{gallery_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_groups())])
async def delete_gallery(gallery_id: int, repository: GalleryRepository = Depends(get_repository)):
    if not await repository.delete(gallery_id):
        raise ContentNotFoundError(resource_type="Gallery", content_id=gallery_id)
