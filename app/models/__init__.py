from .gallery import Gallery, GalleryTranslation
from .news import News, NewsTranslation
from .user import Group, Throttle, User, user_groups

__all__ = [
    "Gallery",
    "GalleryTranslation",
    "News",
    "NewsTranslation",
    "Group",
    "Throttle",
    "User",
    "user_groups",
]
