"""News routes, newest first."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import require_groups
from app.config import settings
from app.database import get_db
from app.exceptions import ContentNotFoundError
from app.i18n import get_locale
from app.models.news import News
from app.repositories.content_repository import NewsRepository
from app.schemas.content import NewsCreate, NewsOut, NewsPublic, NewsUpdate
from app.utils.pagination import Page, PaginationParams

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/news", tags=["News"])


def get_repository(db: AsyncSession = Depends(get_db)) -> NewsRepository:
    return NewsRepository(db)


def to_public(news: News, lang: str) -> NewsPublic:
    translation = next(t for t in news.translations if t.lang == lang)
    return NewsPublic(
        id=news.id,
        lang=lang,
        date=news.date,
        title=translation.title,
        slug=translation.slug,
        summary=translation.summary,
        body=translation.body,
    )


@router.get("", response_model=Page[NewsPublic])
async def list_news(
    pagination: PaginationParams = Depends(),
    lang: str = Depends(get_locale),
    repository: NewsRepository = Depends(get_repository),
):
    per_page = settings.news_per_page
    result = await repository.by_page(pagination.page, per_page, lang=lang)
    items = [to_public(news, lang) for news in result.items]
    return Page[NewsPublic].build(items, result.total_items, pagination.page, per_page)


@router.get("/admin", response_model=Page[NewsOut], dependencies=[Depends(require_groups())])
async def list_all_news(
    pagination: PaginationParams = Depends(),
    repository: NewsRepository = Depends(get_repository),
):
    per_page = settings.news_per_page
    result = await repository.by_page(pagination.page, per_page, all=True)
    items = [NewsOut.model_validate(news) for news in result.items]
    return Page[NewsOut].build(items, result.total_items, pagination.page, per_page)


@router.get("/{slug}", response_model=NewsPublic)
async def show_news(
    slug: str,
    lang: str = Depends(get_locale),
    repository: NewsRepository = Depends(get_repository),
):
    news = await repository.by_slug(slug, lang)
    if news is None:
        raise ContentNotFoundError(resource_type="News")
    return to_public(news, lang)


@router.post(
    "",
    response_model=NewsOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_groups())],
)
async def create_news(payload: NewsCreate, repository: NewsRepository = Depends(get_repository)):
    return await repository.create(payload.model_dump())


@router.put("/{news_id}", response_model=NewsOut, dependencies=[Depends(require_groups())])
async def update_news(
    news_id: int,
    payload: NewsUpdate,
    repository: NewsRepository = Depends(get_repository),
):
    news = await repository.update(news_id, payload.model_dump(exclude_unset=True))
    if news is None:
        raise ContentNotFoundError(resource_type="News", content_id=news_id)
    return news


@router.delete("/{news_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_groups())])
async def delete_news(news_id: int, repository: NewsRepository = Depends(get_repository)):
    if not await repository.delete(news_id):
        raise ContentNotFoundError(resource_type="News", content_id=news_id)
