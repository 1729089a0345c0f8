from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, field_validator

from services.auth import WeakPasswordError, check_password_strength


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        try:
            check_password_strength(value)
        except WeakPasswordError as exc:
            raise ValueError(str(exc)) from exc
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class UserResponse(BaseModel):
    id: str
    email: str
    status: str


class AuthResponse(BaseModel):
    user: UserResponse
