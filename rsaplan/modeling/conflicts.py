"""
Request conflict relation.

Two requests conflict when some candidate path of one shares a link with
some candidate path of the other, or when both are placed in the same
zone. Only conflicting requests can ever compete for the same slots, so
the pairwise non-overlap constraints may be restricted to them. The link
part is known before solving; the zone part depends on the placement and
is enforced through zone-gated pairs.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from itertools import combinations

from rsaplan.domain.request import CandidatePath, RequestId
from rsaplan.errors import ConfigError

OVERLAP_ALL = "all"
OVERLAP_CONFLICTING = "conflicting"


def find_conflicting_pairs(
    candidates: Mapping[RequestId, Sequence[CandidatePath]],
) -> set[frozenset]:
    """
    Find every pair of requests whose candidate paths share a link.

    :param candidates: Candidate paths per request id
    :type candidates: Mapping[RequestId, Sequence[CandidatePath]]
    :return: Unordered request id pairs
    :rtype: set[frozenset]

    Example:
        >>> pairs = find_conflicting_pairs(candidates)
        >>> frozenset({"r1", "r2"}) in pairs
        True
    """
    users: dict[tuple, set[RequestId]] = defaultdict(set)
    for request_id, paths in candidates.items():
        for path in paths:
            for link in path.links:
                users[link.key].add(request_id)

    pairs: set[frozenset] = set()
    for request_ids in users.values():
        for first, second in combinations(request_ids, 2):
            pairs.add(frozenset((first, second)))
    return pairs


def pairs_in_scope(
    request_ids: Iterable[RequestId],
    candidates: Mapping[RequestId, Sequence[CandidatePath]],
    overlap_scope: str,
) -> tuple[tuple[RequestId, RequestId], ...]:
    """
    List the request pairs that need a non-overlap disjunction.

    Pairs are ordered by the position of their members in ``request_ids``
    and each pair is reported once, first member earlier.

    :param request_ids: Request ids in input order
    :type request_ids: Iterable[RequestId]
    :param candidates: Candidate paths per request id
    :type candidates: Mapping[RequestId, Sequence[CandidatePath]]
    :param overlap_scope: ``"all"`` for every pair, ``"conflicting"`` for
        pairs whose candidate paths share a link (same-zone pairs are
        covered by :func:`zone_gated_pairs`)
    :type overlap_scope: str
    :return: Ordered request id pairs
    :rtype: tuple[tuple[RequestId, RequestId], ...]
    :raises ConfigError: If the scope is unknown
    """
    ordered = tuple(request_ids)
    if overlap_scope == OVERLAP_ALL:
        return tuple(combinations(ordered, 2))
    if overlap_scope == OVERLAP_CONFLICTING:
        conflicting = find_conflicting_pairs(candidates)
        return tuple(
            (first, second)
            for first, second in combinations(ordered, 2)
            if frozenset((first, second)) in conflicting
        )
    raise ConfigError(f"Unknown overlap scope '{overlap_scope}'")


def zone_gated_pairs(
    request_ids: Iterable[RequestId],
    pairs: Sequence[tuple[RequestId, RequestId]],
    overlap_scope: str,
) -> tuple[tuple[RequestId, RequestId], ...]:
    """
    List the request pairs separated only when placed in the same zone.

    Under the ``"conflicting"`` scope, link-disjoint requests still compete
    for slots once they land in one zone. Under ``"all"`` every pair is
    already separated unconditionally, so there is nothing left to gate.

    :param request_ids: Request ids in input order
    :type request_ids: Iterable[RequestId]
    :param pairs: Pairs already separated unconditionally
    :type pairs: Sequence[tuple[RequestId, RequestId]]
    :param overlap_scope: ``"all"`` or ``"conflicting"``
    :type overlap_scope: str
    :return: Ordered request id pairs not in ``pairs``
    :rtype: tuple[tuple[RequestId, RequestId], ...]
    """
    if overlap_scope == OVERLAP_ALL:
        return ()
    covered = set(pairs)
    return tuple(
        pair for pair in combinations(tuple(request_ids), 2) if pair not in covered
    )
