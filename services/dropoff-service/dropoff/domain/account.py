from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

from dropoff_schemas import Role


@dataclass(slots=True)
class Account:
    """Aggregate root for a marketplace member (buyer, receiver or both).

    ``password_hash`` is only populated when the directory is explicitly asked
    for it (login); every other read leaves it ``None``.
    """

    account_id: str
    name: str
    email: str
    role: Role
    address: str
    phone: str
    created_at: datetime
    updated_at: datetime
    age: int | None = None
    available_for_receiving: bool = True
    active: bool = True
    credit_balance: int = 0
    last_login_at: datetime | None = None
    password_hash: str | None = field(default=None, repr=False)

    def without_secrets(self) -> "Account":
        return replace(self, password_hash=None)
