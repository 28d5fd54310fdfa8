"""Postgres-backed account directory."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Collection

from psycopg import errors as pg_errors
from psycopg import sql
from psycopg.errors import Error as PsycopgError
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import ConnectionPool

from dropoff_schemas import Role

from .domain.account import Account
from .domain.contracts import NewAccountRecord, ProfileUpdateInput
from .errors import ConflictError, InternalError

logger = logging.getLogger(__name__)

_PUBLIC_COLUMNS = (
    "account_id",
    "name",
    "email",
    "role",
    "address",
    "phone",
    "age",
    "available_for_receiving",
    "active",
    "credit_balance",
    "created_at",
    "updated_at",
    "last_login_at",
)
_SELECT_PUBLIC = ", ".join(_PUBLIC_COLUMNS)
_SELECT_WITH_PASSWORD = f"{_SELECT_PUBLIC}, password_hash"


class AccountRepository:
    """Account persistence; the password hash is only read when explicitly requested."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def find_active_receivers(self, roles: Collection[Role]) -> list[Account]:
        """Active, available accounts whose role is in ``roles``, oldest first."""
        query = f"""
            SELECT {_SELECT_PUBLIC}
            FROM accounts
            WHERE role = ANY(%s) AND available_for_receiving AND active
            ORDER BY created_at, account_id
        """
        rows = self._fetch_all(query, ([role.value for role in roles],))
        return [self._map_record(row) for row in rows]

    def find_by_email(self, email: str, *, include_password: bool = False) -> Account | None:
        columns = _SELECT_WITH_PASSWORD if include_password else _SELECT_PUBLIC
        row = self._fetch_one(
            f"SELECT {columns} FROM accounts WHERE lower(email) = lower(%s)",
            (email,),
        )
        return self._map_record(row) if row else None

    def find_by_id(self, account_id: str) -> Account | None:
        try:
            uuid.UUID(account_id)
        except ValueError:
            return None
        row = self._fetch_one(
            f"SELECT {_SELECT_PUBLIC} FROM accounts WHERE account_id = %s",
            (account_id,),
        )
        return self._map_record(row) if row else None

    def insert(self, record: NewAccountRecord) -> Account:
        """Persist a new account, translating the unique-email violation into ``ConflictError``."""
        now = datetime.now(timezone.utc)
        query = f"""
            INSERT INTO accounts (
                account_id, name, email, password_hash, role, address, phone, age,
                available_for_receiving, active, credit_balance, created_at, updated_at
            )
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, TRUE, %s, %s, %s)
            RETURNING {_SELECT_PUBLIC}
        """
        params = (
            str(uuid.uuid4()),
            record.name,
            record.email,
            record.password_hash,
            record.role.value,
            record.address,
            record.phone,
            record.age,
            record.available_for_receiving,
            record.credit_balance,
            now,
            now,
        )
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(query, params)
                    row = cur.fetchone()
                conn.commit()
        except pg_errors.UniqueViolation as exc:
            raise ConflictError("email already registered") from exc
        except PsycopgError as exc:
            raise InternalError("account directory unavailable") from exc
        return self._map_record(row)

    def update_profile(self, account_id: str, changes: ProfileUpdateInput) -> Account | None:
        values = changes.changes()
        if not values:
            return self.find_by_id(account_id)
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(column), sql.Placeholder())
            for column in values
        )
        query = sql.SQL(
            "UPDATE accounts SET {assignments}, updated_at = %s WHERE account_id = %s RETURNING {columns}"
        ).format(
            assignments=assignments,
            columns=sql.SQL(_SELECT_PUBLIC),
        )
        params = (*values.values(), datetime.now(timezone.utc), account_id)
        row = self._execute_returning(query, params)
        return self._map_record(row) if row else None

    def record_login(self, account_id: str) -> None:
        self._execute(
            "UPDATE accounts SET last_login_at = %s WHERE account_id = %s",
            (datetime.now(timezone.utc), account_id),
        )

    def write_audit_event(
        self,
        *,
        account_id: str | None,
        event_type: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Record an audit trail entry capturing identity workflow activity."""
        self._execute(
            """
            INSERT INTO identity_audit_log (account_id, event_type, metadata)
            VALUES (%s, %s, %s)
            """,
            (account_id, event_type, Json(metadata or {})),
        )

    def _fetch_one(self, query: str, params: tuple) -> dict[str, Any] | None:
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(query, params)
                    return cur.fetchone()
        except PsycopgError as exc:
            raise InternalError("account directory unavailable") from exc

    def _fetch_all(self, query: str, params: tuple) -> list[dict[str, Any]]:
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(query, params)
                    return cur.fetchall()
        except PsycopgError as exc:
            raise InternalError("account directory unavailable") from exc

    def _execute_returning(self, query: sql.Composable, params: tuple) -> dict[str, Any] | None:
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(query, params)
                    row = cur.fetchone()
                conn.commit()
        except PsycopgError as exc:
            raise InternalError("account directory unavailable") from exc
        return row

    def _execute(self, query: str, params: tuple) -> None:
        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, params)
                conn.commit()
        except PsycopgError as exc:
            raise InternalError("account directory unavailable") from exc

    def _map_record(self, row: dict[str, Any]) -> Account:
        """Convert a database row into the domain ``Account`` dataclass."""
        return Account(
            account_id=str(row["account_id"]),
            name=row["name"],
            email=row["email"],
            role=Role(row["role"]),
            address=row["address"],
            phone=row["phone"],
            age=row["age"],
            available_for_receiving=row["available_for_receiving"],
            active=row["active"],
            credit_balance=int(row["credit_balance"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            last_login_at=row["last_login_at"],
            password_hash=row.get("password_hash"),
        )
