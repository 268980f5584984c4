"""
Assignment objects produced by a solver and checked by the validator.

This module defines:
- Side: Zone-relative placement of a spectrum block
- SpectrumBlock: Contiguous slot range with inclusive bounds
- RequestAssignment: Outcome for one request
- Assignment: The full solution of a planning run

All objects are frozen; the validator treats them as read-only.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from rsaplan.domain.network import Modulation
from rsaplan.domain.request import CandidatePath, RejectReason, RequestId


class Side(Enum):
    """
    Zone-relative placement.

    With ``side_halves`` enabled, LEFT blocks lie in the lower half of their
    zone and RIGHT blocks in the upper half; otherwise the side is a label.
    """

    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class SpectrumBlock:
    """
    Contiguous range of slot indices.

    Both ``start`` and ``end`` are inclusive; ``stop`` is the exclusive
    upper bound used when reasoning about half-open ranges.

    Example:
        >>> block = SpectrumBlock(start=0, end=7)
        >>> block.length, block.stop
        (8, 8)
    """

    start: int
    end: int

    @property
    def length(self) -> int:
        """Number of slots in the block."""
        return self.end - self.start + 1

    @property
    def stop(self) -> int:
        """One past the last slot of the block."""
        return self.end + 1

    def gap_to(self, other: SpectrumBlock) -> int:
        """
        Free slots between this block and another one.

        Negative when the blocks overlap.
        """
        return max(self.start, other.start) - min(self.end, other.end) - 1

    def is_separated_from(self, other: SpectrumBlock, guard_band: int) -> bool:
        """True if one block ends at least ``guard_band`` free slots before the other."""
        return self.gap_to(other) >= guard_band

    def __str__(self) -> str:
        return f"[{self.start}, {self.end}]"


@dataclass(frozen=True)
class RequestAssignment:
    """
    Outcome for one request.

    Accepted requests carry a path, modulation, block, side and zone name;
    rejected requests carry a reject reason and nothing else.
    """

    request_id: RequestId
    accepted: bool
    path: CandidatePath | None = None
    modulation: Modulation | None = None
    block: SpectrumBlock | None = None
    side: Side | None = None
    zone: str | None = None
    reject_reason: RejectReason | None = None

    @classmethod
    def rejected(
        cls, request_id: RequestId, reason: RejectReason
    ) -> RequestAssignment:
        """Build a rejected outcome."""
        return cls(request_id=request_id, accepted=False, reject_reason=reason)


@dataclass(frozen=True)
class Assignment:
    """
    Full solution of a planning run.

    Attributes:
        requests: Outcome per request id
        s_max: Highest block end index across accepted requests (None when
            nothing is accepted)
        objective: Reported number of accepted requests
        proven_optimal: True when the solver proved optimality
        status: Solver status label
    """

    requests: Mapping[RequestId, RequestAssignment]
    s_max: int | None = None
    objective: int = 0
    proven_optimal: bool = False
    status: str = ""
    metadata: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Freeze the mappings."""
        object.__setattr__(self, "requests", MappingProxyType(dict(self.requests)))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def accepted(self) -> tuple[RequestAssignment, ...]:
        """Accepted outcomes in request order."""
        return tuple(outcome for outcome in self.requests.values() if outcome.accepted)

    @property
    def rejected(self) -> tuple[RequestAssignment, ...]:
        """Rejected outcomes in request order."""
        return tuple(
            outcome for outcome in self.requests.values() if not outcome.accepted
        )

    @property
    def accepted_count(self) -> int:
        """Number of accepted requests."""
        return len(self.accepted)
