"""
Traffic request domain model.

This module defines:
- TrafficRequest: Point-to-point demand loaded once from static input
- CandidatePath: One ranked loopless route owned by a request
- RejectReason: Why a request ended up not accepted
"""

from __future__ import annotations

import math
from collections.abc import Hashable
from dataclasses import dataclass
from enum import Enum

from rsaplan.domain.network import Link, Node
from rsaplan.errors import InputValidationError

RequestId = Hashable

DISTANCE_TOLERANCE = 1e-6


# =============================================================================
# TrafficRequest
# =============================================================================


@dataclass(frozen=True)
class TrafficRequest:
    """
    Point-to-point traffic demand.

    Attributes:
        request_id: Identifier, unique within a planning instance
        source: Source node
        destination: Destination node
        demand: Requested volume in Gb/s

    Example:
        >>> request = TrafficRequest(request_id=1, source=0, destination=2, demand=100.0)
        >>> request.endpoints
        (0, 2)
    """

    request_id: RequestId
    source: Node
    destination: Node
    demand: float

    def __post_init__(self) -> None:
        """Validate request after creation."""
        if self.source == self.destination:
            raise InputValidationError(
                f"Request {self.request_id!r} has identical source and destination"
            )
        if not self.demand > 0:
            raise InputValidationError(
                f"Request {self.request_id!r} must have a positive demand"
            )

    @property
    def endpoints(self) -> tuple[Node, Node]:
        """(source, destination) pair."""
        return (self.source, self.destination)


# =============================================================================
# CandidatePath
# =============================================================================


@dataclass(frozen=True)
class CandidatePath:
    """
    Loopless route owned by exactly one request.

    Attributes:
        request_id: Owning request
        index: Rank among the request's candidates (0 = shortest)
        nodes: Node sequence from source to destination
        links: Links between consecutive nodes

    Invariants:
        - len(links) == len(nodes) - 1
        - No node repeats
    """

    request_id: RequestId
    index: int
    nodes: tuple[Node, ...]
    links: tuple[Link, ...]

    def __post_init__(self) -> None:
        """Validate path after creation."""
        if len(self.nodes) < 2:
            raise InputValidationError(
                f"Path {self.index} of request {self.request_id!r} needs at least 2 nodes"
            )
        if len(self.links) != len(self.nodes) - 1:
            raise InputValidationError(
                f"Path {self.index} of request {self.request_id!r} has "
                f"{len(self.links)} links for {len(self.nodes)} nodes"
            )
        if len(set(self.nodes)) != len(self.nodes):
            raise InputValidationError(
                f"Path {self.index} of request {self.request_id!r} revisits a node"
            )

    @property
    def distance(self) -> float:
        """Sum of the constituent link distances."""
        return math.fsum(link.distance for link in self.links)

    @property
    def hops(self) -> int:
        """Number of links."""
        return len(self.links)

    @property
    def label(self) -> str:
        """Human-readable node sequence, e.g. ``0-1-2``."""
        return "-".join(str(node) for node in self.nodes)

    def uses_link(self, link: Link) -> bool:
        """True if the path traverses the given link."""
        return link in self.links

    def shares_link_with(self, other: CandidatePath) -> bool:
        """True if both paths traverse at least one common link."""
        return not set(self.links).isdisjoint(other.links)


# =============================================================================
# RejectReason
# =============================================================================


class RejectReason(Enum):
    """
    Reason code for a request that was not accepted.

    NO_FEASIBLE_PATH: the request has no candidate path, or no candidate
        path is within reach of any modulation format.
    SPECTRUM_EXHAUSTED: feasible (path, modulation) combinations existed but
        no spectrum block could be granted alongside the accepted requests.
    """

    NO_FEASIBLE_PATH = "no_feasible_path"
    SPECTRUM_EXHAUSTED = "spectrum_exhausted"
