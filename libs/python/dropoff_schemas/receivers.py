"""Receiver search contracts."""

from __future__ import annotations

from pydantic import BaseModel, Field

from .account import Account, AddressStr

MIN_RADIUS_KM = 0.1
MAX_RADIUS_KM = 10.0


class SearchRequest(BaseModel):
    """Delivery address to match against, with an optional search radius."""

    address: AddressStr
    radius_km: float | None = Field(default=None, ge=MIN_RADIUS_KM, le=MAX_RADIUS_KM)


class ReceiverMatch(BaseModel):
    account: Account
    distance_km: float
    rank: int


class SearchParams(BaseModel):
    address: str
    radius_km: float


class SearchResponse(BaseModel):
    receivers: list[ReceiverMatch]
    count: int
    search: SearchParams


class ReceiverResponse(BaseModel):
    """Direct lookup result; distance is always reported as 0."""

    receiver: Account
    distance_km: float = 0.0
