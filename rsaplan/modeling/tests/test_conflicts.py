"""Unit tests for rsaplan.modeling.conflicts module."""

from typing import Any

import pytest

from rsaplan.domain.request import CandidatePath
from rsaplan.errors import ConfigError
from rsaplan.modeling.conflicts import (
    find_conflicting_pairs,
    pairs_in_scope,
    zone_gated_pairs,
)


def test_conflicting_pairs_share_a_link(
    multi_request_candidates: dict[Any, tuple[CandidatePath, ...]],
) -> None:
    """Test that only requests with a common link conflict."""
    # Act
    pairs = find_conflicting_pairs(multi_request_candidates)

    # Assert
    assert pairs == {frozenset({"a", "b"})}


def test_requests_without_paths_never_conflict(
    multi_request_candidates: dict[Any, tuple[CandidatePath, ...]],
) -> None:
    """Test that an empty candidate set adds no pair."""
    candidates = dict(multi_request_candidates, d=())

    assert frozenset({"a", "d"}) not in find_conflicting_pairs(candidates)


def test_all_scope_lists_every_pair_in_order(
    multi_request_candidates: dict[Any, tuple[CandidatePath, ...]],
) -> None:
    """Test the blanket pairwise scope."""
    pairs = pairs_in_scope(["a", "b", "c"], multi_request_candidates, "all")

    assert pairs == (("a", "b"), ("a", "c"), ("b", "c"))


def test_conflicting_scope_filters_pairs(
    multi_request_candidates: dict[Any, tuple[CandidatePath, ...]],
) -> None:
    """Test the conflict-restricted scope."""
    pairs = pairs_in_scope(["a", "b", "c"], multi_request_candidates, "conflicting")

    assert pairs == (("a", "b"),)


def test_single_request_has_no_pairs(
    multi_request_candidates: dict[Any, tuple[CandidatePath, ...]],
) -> None:
    """Test that one request yields no non-overlap pair."""
    assert pairs_in_scope(["a"], multi_request_candidates, "all") == ()


def test_unknown_scope_raises() -> None:
    """Test that the scope must be known."""
    with pytest.raises(ConfigError):
        pairs_in_scope([], {}, "nearby")


def test_zone_gated_pairs_cover_the_rest() -> None:
    """Test that link-disjoint pairs are gated on a shared zone."""
    gated = zone_gated_pairs(["a", "b", "c"], [("a", "b")], "conflicting")

    assert gated == (("a", "c"), ("b", "c"))


def test_all_scope_gates_nothing() -> None:
    """Test that the blanket scope leaves no pair to gate."""
    assert zone_gated_pairs(["a", "b", "c"], [("a", "b")], "all") == ()
