import uuid

from pydantic import BaseModel, ConfigDict, EmailStr

from musicstore.models.user import UserRole


class RegisterRequest(BaseModel):
    username: str
    email: EmailStr
    password: str
    role: UserRole
    display_name: str | None = None


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    email: str
    role: UserRole
    is_active: bool
    display_name: str | None = None
