"""Receiver search: pseudo-distance filtering and ranking."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from dropoff_schemas import RECEIVER_ROLES

from ..errors import InvalidInputError
from .account import Account
from .directory import AccountDirectory
from .similarity import DistanceStrategy, TextSimilarityDistance

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReceiverMatch:
    """A candidate receiver with its estimated distance and 1-based rank."""

    account: Account
    distance_km: float
    rank: int


class ProximityMatcher:
    """Finds available receivers near a delivery address. Read-only."""

    def __init__(
        self,
        directory: AccountDirectory,
        distance: DistanceStrategy | None = None,
        default_radius_km: float = 1.0,
    ) -> None:
        self._directory = directory
        self._distance = distance or TextSimilarityDistance()
        self._default_radius_km = default_radius_km

    @property
    def default_radius_km(self) -> float:
        return self._default_radius_km

    def search(self, query_address: str, radius_km: float | None = None) -> list[ReceiverMatch]:
        """Return receivers within ``radius_km`` of ``query_address``, nearest first.

        Candidates at equal distance keep the order the directory returned them
        in. An empty list is a normal outcome.
        """
        address = (query_address or "").strip()
        if not address:
            raise InvalidInputError("address is required")
        radius = self._default_radius_km if radius_km is None else radius_km
        if radius < 0:
            raise InvalidInputError("radius_km must not be negative")

        candidates = self._directory.find_active_receivers(RECEIVER_ROLES)
        scored = [
            (candidate, self._distance.distance_km(address, candidate.address))
            for candidate in candidates
        ]
        within = [(candidate, km) for candidate, km in scored if km <= radius]
        within.sort(key=lambda item: item[1])

        logger.debug(
            "receiver search radius=%.2f candidates=%d matches=%d",
            radius,
            len(candidates),
            len(within),
        )
        return [
            ReceiverMatch(account=candidate, distance_km=km, rank=index)
            for index, (candidate, km) in enumerate(within, start=1)
        ]

    def get_by_id(self, account_id: str) -> ReceiverMatch | None:
        """Look up one account directly; distance is reported as 0 because it is not computed."""
        account = self._directory.find_by_id(account_id)
        if account is None or not account.active:
            return None
        return ReceiverMatch(account=account, distance_km=0.0, rank=0)
