from .content import (
    GalleryCreate,
    GalleryOut,
    GalleryPublic,
    GalleryUpdate,
    NewsCreate,
    NewsOut,
    NewsPublic,
    NewsUpdate,
)
from .user import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RemindRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserCreate,
    UserListItem,
    UserResponse,
    UserUpdate,
)

# Define the public API of this module
__all__ = [
    "GalleryCreate",
    "GalleryOut",
    "GalleryPublic",
    "GalleryUpdate",
    "NewsCreate",
    "NewsOut",
    "NewsPublic",
    "NewsUpdate",
    "LoginRequest",
    "MessageResponse",
    "RegisterRequest",
    "RemindRequest",
    "ResetPasswordRequest",
    "TokenResponse",
    "UserCreate",
    "UserListItem",
    "UserResponse",
    "UserUpdate",
]
