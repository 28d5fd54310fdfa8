from __future__ import annotations

import pytest

from dropoff.domain.matching import ProximityMatcher
from dropoff.errors import InvalidInputError
from dropoff_schemas import Role

QUERY = "Rua das Flores, 123, Centro"
# shares no character with QUERY, even after lower-casing
DISJOINT = "vxyz-9876-kjhgbmpiqw"


@pytest.fixture
def matcher(directory):
    return ProximityMatcher(directory)


def test_identical_address_is_zero_km_and_kept_at_zero_radius(directory, matcher):
    receiver = directory.add(QUERY)

    results = matcher.search(QUERY, radius_km=0.0)

    assert [r.account.account_id for r in results] == [receiver.account_id]
    assert results[0].distance_km == 0.0
    assert results[0].rank == 1


def test_disjoint_address_is_two_km_and_excluded_at_default_radius(directory, matcher):
    directory.add(DISJOINT)

    assert matcher.search(QUERY) == []
    wide = matcher.search(QUERY, radius_km=2.0)
    assert len(wide) == 1
    assert wide[0].distance_km == pytest.approx(2.0)


def test_search_is_case_insensitive(directory, matcher):
    directory.add(QUERY.upper())

    results = matcher.search(QUERY.lower())

    assert results[0].distance_km == 0.0


def test_only_active_available_receivers_are_returned(directory, matcher):
    receiver = directory.add(QUERY, role=Role.receiver)
    both = directory.add(QUERY, role=Role.both)
    directory.add(QUERY, role=Role.buyer)
    directory.add(QUERY, available=False)
    directory.add(QUERY, active=False)

    results = matcher.search(QUERY, radius_km=2.0)

    assert {r.account.account_id for r in results} == {receiver.account_id, both.account_id}
    assert all(r.account.active and r.account.available_for_receiving for r in results)


def test_results_are_within_radius_and_sorted(directory, matcher):
    directory.add("Rua das Flores, 999, Centro")
    directory.add(QUERY)
    directory.add("Rua das Palmeiras, 45, Bairro Alto")
    directory.add("Avenida Brasil, 1000, Zona Norte")
    directory.add(DISJOINT)

    results = matcher.search(QUERY, radius_km=1.0)

    distances = [r.distance_km for r in results]
    assert distances == sorted(distances)
    assert all(km <= 1.0 for km in distances)
    assert [r.rank for r in results] == list(range(1, len(results) + 1))
    assert results[0].account.address == QUERY


def test_ties_keep_directory_order(directory, matcher):
    first = directory.add("Rua das Flores, 200, Centro")
    second = directory.add("Rua das Flores, 200, Centro")

    results = matcher.search(QUERY, radius_km=2.0)

    assert [r.account.account_id for r in results] == [first.account_id, second.account_id]


def test_empty_result_is_not_an_error(matcher):
    assert matcher.search(QUERY) == []


@pytest.mark.parametrize("address", ["", "   ", None])
def test_blank_address_is_rejected(matcher, address):
    with pytest.raises(InvalidInputError):
        matcher.search(address)


def test_negative_radius_is_rejected(matcher):
    with pytest.raises(InvalidInputError):
        matcher.search(QUERY, radius_km=-0.5)


def test_default_radius_applies_when_none_given(directory):
    directory.add("Rua das Flores, 123, Bairro")
    strict = ProximityMatcher(directory, default_radius_km=0.0)
    loose = ProximityMatcher(directory, default_radius_km=2.0)

    assert strict.search(QUERY) == []
    assert len(loose.search(QUERY)) == 1


def test_distance_strategy_can_be_substituted(directory):
    near = directory.add("Somewhere near the depot")
    far = directory.add("Somewhere far from the depot")

    class FixedDistance:
        def distance_km(self, origin: str, destination: str) -> float:
            return 0.3 if "near" in destination else 5.0

    results = ProximityMatcher(directory, distance=FixedDistance()).search("depot", radius_km=1.0)

    assert [r.account.account_id for r in results] == [near.account_id]
    assert far.account_id not in {r.account.account_id for r in results}


def test_get_by_id_reports_zero_distance(directory, matcher):
    receiver = directory.add(DISJOINT)

    match = matcher.get_by_id(receiver.account_id)

    assert match is not None
    assert match.account.account_id == receiver.account_id
    assert match.distance_km == 0.0


def test_get_by_id_hides_inactive_and_missing(directory, matcher):
    inactive = directory.add(QUERY, active=False)

    assert matcher.get_by_id(inactive.account_id) is None
    assert matcher.get_by_id("does-not-exist") is None
