"""Account-related DTOs shared across services."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, StringConstraints


class Role(str, Enum):
    buyer = "buyer"
    receiver = "receiver"
    both = "both"


RECEIVER_ROLES: frozenset[Role] = frozenset({Role.receiver, Role.both})

ADDRESS_MIN_LENGTH = 10
ADDRESS_MAX_LENGTH = 200
PHONE_PATTERN = r"^[0-9]{10,11}$"

NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
AddressStr = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, min_length=ADDRESS_MIN_LENGTH, max_length=ADDRESS_MAX_LENGTH
    ),
]
PhoneStr = Annotated[str, StringConstraints(strip_whitespace=True, pattern=PHONE_PATTERN)]


class Account(BaseModel):
    """Outward representation of an account; the password hash is never part of it."""

    account_id: str
    name: str
    email: EmailStr
    role: Role
    address: str
    phone: str
    age: int | None = None
    available_for_receiving: bool = True
    active: bool = True
    credit_balance: int = Field(default=0, ge=0)
    created_at: datetime
    updated_at: datetime
    last_login_at: datetime | None = None
