"""Domain -> response model conversion. The password hash is dropped here."""

from __future__ import annotations

import dropoff_schemas as schemas

from ..domain.account import Account
from ..domain.matching import ReceiverMatch
from ..security.tokens import IssuedToken


def account_out(account: Account) -> schemas.Account:
    return schemas.Account(
        account_id=account.account_id,
        name=account.name,
        email=account.email,
        role=account.role,
        address=account.address,
        phone=account.phone,
        age=account.age,
        available_for_receiving=account.available_for_receiving,
        active=account.active,
        credit_balance=account.credit_balance,
        created_at=account.created_at,
        updated_at=account.updated_at,
        last_login_at=account.last_login_at,
    )


def token_out(token: IssuedToken) -> schemas.Token:
    return schemas.Token(
        access_token=token.access_token,
        expires_in=token.expires_in,
        expires_at=token.expires_at,
    )


def match_out(match: ReceiverMatch) -> schemas.ReceiverMatch:
    return schemas.ReceiverMatch(
        account=account_out(match.account),
        distance_km=match.distance_km,
        rank=match.rank,
    )
