"""Registration, login and profile contracts.

These are the only definitions of the auth payload rules; the HTTP boundary
validates against them and clients can import them to pre-validate input.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .account import Account, AddressStr, NameStr, PhoneStr, Role

PASSWORD_MIN_LENGTH = 6


class RegisterRequest(BaseModel):
    """Payload accepted when a buyer or receiver signs up."""

    name: NameStr
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    role: Role
    address: AddressStr
    phone: PhoneStr
    age: int | None = Field(default=None, ge=0, le=120)
    available_for_receiving: bool = True
    credit_balance: int = Field(default=0, ge=0)


class LoginRequest(BaseModel):
    """Email/password credentials."""

    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)


class ProfileUpdateRequest(BaseModel):
    """Self-service profile changes; omitted fields are left untouched and a null `age` clears it."""

    model_config = ConfigDict(extra="forbid")

    name: NameStr | None = None
    address: AddressStr | None = None
    phone: PhoneStr | None = None
    age: int | None = Field(default=None, ge=0, le=120)
    available_for_receiving: bool | None = None

    @field_validator("name", "address", "phone", "available_for_receiving", mode="before")
    @classmethod
    def _not_null(cls, value: object) -> object:
        if value is None:
            raise ValueError("may be omitted but not null")
        return value


class Token(BaseModel):
    """Bearer token handed back after registration or login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    expires_at: datetime


class AuthResponse(BaseModel):
    account: Account
    token: Token
