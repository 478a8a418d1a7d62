"""
User Schemas

Pydantic models for the user admin, registration, login and password reset.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserCreate(BaseModel):
    email: EmailStr = Field(..., description="Login of the user")
    password: str = Field(..., min_length=6, max_length=128, description="Password must be between 6 and 128 characters.")
    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)
    activated: bool = False
    groups: dict[int, bool] = Field(default_factory=dict, description="Group id mapped to membership")


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    password: str | None = Field(None, max_length=128, description="Leave empty to keep the current password")
    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)
    activated: bool | None = None
    groups: dict[int, bool] | None = None


class GroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str | None = None
    last_name: str | None = None
    activated: bool
    last_login: datetime | None = None
    created_at: datetime
    groups: list[GroupResponse] = Field(default_factory=list)


class UserListItem(UserResponse):
    status: str


class LoginRequest(BaseModel):
    email: str = Field("", description="Login of the user")
    password: str = Field("", description="Password")
    remember: bool = False


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    password_confirmation: str
    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, v, info):
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Passwords do not match")
        return v


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class RemindRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=6, max_length=128)
    password_confirmation: str

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, v, info):
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Passwords do not match")
        return v


class MessageResponse(BaseModel):
    message: str
