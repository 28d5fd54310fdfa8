"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass, fields

from dropoff_schemas import ProfileUpdateRequest, RegisterRequest, Role


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(slots=True)
class RegisterAccountInput:
    """Validated inputs required to register an account."""

    name: str
    email: str
    password: str
    role: Role
    address: str
    phone: str
    age: int | None = None
    available_for_receiving: bool = True
    credit_balance: int = 0

    @classmethod
    def from_request(cls, payload: RegisterRequest) -> "RegisterAccountInput":
        return cls(
            name=payload.name,
            email=payload.email,
            password=payload.password,
            role=payload.role,
            address=payload.address,
            phone=payload.phone,
            age=payload.age,
            available_for_receiving=payload.available_for_receiving,
            credit_balance=payload.credit_balance,
        )


@dataclass(slots=True)
class NewAccountRecord:
    """Row handed to the directory for insertion; carries the hash, never the password."""

    name: str
    email: str
    password_hash: str
    role: Role
    address: str
    phone: str
    age: int | None
    available_for_receiving: bool
    credit_balance: int


@dataclass(slots=True)
class ProfileUpdateInput:
    """Self-editable profile fields; only names listed in ``provided`` change.

    An explicit ``None`` for ``age`` clears it.
    """

    name: str | None = None
    address: str | None = None
    phone: str | None = None
    age: int | None = None
    available_for_receiving: bool | None = None
    provided: frozenset[str] = frozenset()

    @classmethod
    def from_request(cls, payload: ProfileUpdateRequest) -> "ProfileUpdateInput":
        values = payload.model_dump(exclude_unset=True)
        return cls(**values, provided=frozenset(values))

    def changes(self) -> dict[str, object]:
        """Return the provided fields, explicit nulls included."""
        return {
            item.name: getattr(self, item.name)
            for item in fields(self)
            if item.name in self.provided
        }
