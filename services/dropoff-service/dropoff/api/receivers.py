"""HTTP routes for finding receivers near a delivery address."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dropoff_schemas import ReceiverResponse, SearchParams, SearchRequest, SearchResponse

from ..domain.account import Account
from ..domain.matching import ProximityMatcher
from ..errors import NotFoundError
from ..metrics import RECEIVER_SEARCHES
from .dependencies import current_account, get_matcher
from .serializers import account_out, match_out

router = APIRouter(prefix="/v1/receivers", tags=["receivers"])


@router.post("/search", response_model=SearchResponse)
def search_receivers(
    payload: SearchRequest,
    _caller: Account = Depends(current_account),
    matcher: ProximityMatcher = Depends(get_matcher),
) -> SearchResponse:
    """Rank available receivers by estimated distance to ``payload.address``."""
    radius = payload.radius_km if payload.radius_km is not None else matcher.default_radius_km
    matches = matcher.search(payload.address, radius)
    RECEIVER_SEARCHES.labels(result="matched" if matches else "empty").inc()
    return SearchResponse(
        receivers=[match_out(match) for match in matches],
        count=len(matches),
        search=SearchParams(address=payload.address, radius_km=radius),
    )


@router.get("/{account_id}", response_model=ReceiverResponse)
def get_receiver(
    account_id: str,
    _caller: Account = Depends(current_account),
    matcher: ProximityMatcher = Depends(get_matcher),
) -> ReceiverResponse:
    match = matcher.get_by_id(account_id)
    if match is None:
        raise NotFoundError("receiver not found")
    return ReceiverResponse(receiver=account_out(match.account), distance_km=match.distance_km)
