"""
Authentication routes

Login (JSON or OAuth2 form), logout, registration with email activation
and the password reset flow. Failures come back from the user service as
typed results; ``unwrap()`` turns them into error responses.
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm

from app.auth import get_current_user
from app.config import settings
from app.exceptions import ValidationError
from app.models.user import User
from app.schemas.user import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RemindRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserResponse,
)
from app.services.user_service import UserService, get_user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

INVALID_RESET_LINK = "This password reset link is invalid or has expired."


async def _login(service: UserService, email: str, password: str, remember: bool) -> TokenResponse:
    session = (await service.authenticate({"email": email, "password": password}, remember)).unwrap()
    return TokenResponse(
        access_token=session.access_token,
        token_type=session.token_type,
        expires_in=session.expires_in,
    )


@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest, service: UserService = Depends(get_user_service)):
    return await _login(service, credentials.email, credentials.password, credentials.remember)


@router.post("/token", response_model=TokenResponse)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: UserService = Depends(get_user_service),
):
    """OAuth2 password flow; ``username`` carries the email."""
    return await _login(service, form_data.username, form_data.password, remember=False)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    await service.logout(current_user)
    return MessageResponse(message="You have been logged out.")


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, service: UserService = Depends(get_user_service)):
    """
    Register a new account.

    Unless ``registration_no_confirmation`` is set, the account stays
    inactive until the link from the welcome email is followed.
    """
    data = payload.model_dump(exclude={"password_confirmation"})
    result = await service.register(data, no_confirmation=settings.registration_no_confirmation)
    return result.unwrap()


@router.get("/activate/{user_id}/{code}", response_model=MessageResponse)
async def activate(user_id: int, code: str, service: UserService = Depends(get_user_service)):
    (await service.activate(user_id, code)).unwrap()
    return MessageResponse(message="Your account has been activated, you can now log in.")


@router.post("/password/remind", response_model=MessageResponse)
async def remind_password(payload: RemindRequest, service: UserService = Depends(get_user_service)):
    """Email a reset link. The answer is the same whether the account exists or not."""
    result = await service.send_reset_password_link(payload.email)
    if not result.ok:
        logger.info("Password reminder requested for unknown login")
    return MessageResponse(message="If this account exists, an email with a password reset link has been sent.")


@router.get("/password/reset/{user_id}/{code}", response_model=MessageResponse)
async def check_reset_link(user_id: int, code: str, service: UserService = Depends(get_user_service)):
    user = (await service.by_id(user_id)).unwrap()
    if not service.check_reset_password_code(user, code):
        raise ValidationError(INVALID_RESET_LINK, field="code")
    return MessageResponse(message="The password reset link is valid.")


@router.post("/password/reset/{user_id}/{code}", response_model=MessageResponse)
async def reset_password(
    user_id: int,
    code: str,
    payload: ResetPasswordRequest,
    service: UserService = Depends(get_user_service),
):
    user = (await service.by_id(user_id)).unwrap()
    if not await service.attempt_reset_password(user, code, payload.password):
        raise ValidationError(INVALID_RESET_LINK, field="code")
    return MessageResponse(message="Your password has been changed.")
