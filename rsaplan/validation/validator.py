"""
Independent solution validator.

Re-derives every structural rule of an RSA assignment from the planning
instance and the candidate paths alone, without consulting any solver
state. The validator is pure: the same inputs always give the same
report, and the assignment is never modified.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from itertools import combinations

from rsaplan.domain.assignment import Assignment, RequestAssignment, Side
from rsaplan.domain.config import PlanningConfig
from rsaplan.domain.instance import PlanningInstance
from rsaplan.domain.network import Modulation, node_sort_key
from rsaplan.domain.request import DISTANCE_TOLERANCE, CandidatePath, RequestId
from rsaplan.errors import InputValidationError, ValidatorMismatch
from rsaplan.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Violation:
    """
    One broken rule.

    Attributes:
        rule: Short rule identifier, e.g. ``guard_band``
        request_ids: Offending request(s); empty for global rules
        message: Human-readable description
    """

    rule: str
    request_ids: tuple[RequestId, ...]
    message: str

    def __str__(self) -> str:
        return f"[{self.rule}] {self.message}"


def _violation_key(violation: Violation) -> tuple:
    return (
        tuple(node_sort_key(request_id) for request_id in violation.request_ids),
        violation.rule,
        violation.message,
    )


@dataclass(frozen=True)
class ValidationReport:
    """
    Verdict of a validation run.

    Violations are sorted by offending request ids, then rule, so two runs
    over the same input compare equal.
    """

    violations: tuple[Violation, ...] = ()

    @property
    def passed(self) -> bool:
        """True if no rule is violated."""
        return not self.violations

    @property
    def rules_violated(self) -> tuple[str, ...]:
        """Distinct violated rule identifiers, sorted."""
        return tuple(sorted({violation.rule for violation in self.violations}))

    def for_request(self, request_id: RequestId) -> tuple[Violation, ...]:
        """Violations naming the given request."""
        return tuple(v for v in self.violations if request_id in v.request_ids)

    def raise_if_failed(self) -> None:
        """
        Raise if any rule is violated.

        :raises ValidatorMismatch: Carrying this report
        """
        if not self.passed:
            raise ValidatorMismatch(self)

    def __str__(self) -> str:
        if self.passed:
            return "validation passed"
        return "\n".join(str(violation) for violation in self.violations)


class _Collector:
    def __init__(self) -> None:
        self.violations: list[Violation] = []

    def add(self, rule: str, request_ids: Iterable[RequestId], message: str) -> None:
        self.violations.append(Violation(rule, tuple(request_ids), message))


def _check_path(
    instance: PlanningInstance,
    candidates: Sequence[CandidatePath],
    outcome: RequestAssignment,
    found: _Collector,
) -> tuple[float | None, bool]:
    """Check the chosen path; return its re-derived distance and candidacy."""
    request_id = outcome.request_id
    path = outcome.path
    if path is None:
        found.add(
            "one_path", [request_id], f"request {request_id!r}: accepted without a path"
        )
        return None, False
    is_candidate = path.request_id == request_id and path in candidates
    if not is_candidate:
        found.add(
            "candidate_path",
            [request_id],
            f"request {request_id!r}: path {path.label} is not one of its candidates",
        )

    try:
        links = instance.topology.links_along(path.nodes)
    except InputValidationError as e:
        found.add("path_distance", [request_id], f"request {request_id!r}: {e}")
        return None, is_candidate
    distance = math.fsum(link.distance for link in links)
    if not math.isclose(
        distance, path.distance, rel_tol=0.0, abs_tol=DISTANCE_TOLERANCE
    ):
        found.add(
            "path_distance",
            [request_id],
            f"request {request_id!r}: path {path.label} reports distance "
            f"{path.distance:g} but its links sum to {distance:g}",
        )
    return distance, is_candidate


def _resolve_modulation(
    instance: PlanningInstance, outcome: RequestAssignment, found: _Collector
) -> Modulation | None:
    """Return the instance's copy of the chosen modulation, if it matches."""
    request_id = outcome.request_id
    chosen = outcome.modulation
    if chosen is None:
        found.add(
            "one_modulation",
            [request_id],
            f"request {request_id!r}: no modulation chosen",
        )
        return None
    try:
        modulation = instance.get_modulation(chosen.name)
    except KeyError:
        found.add(
            "unknown_modulation",
            [request_id],
            f"request {request_id!r}: modulation {chosen.name!r} is unknown",
        )
        return None
    if chosen != modulation:
        found.add(
            "unknown_modulation",
            [request_id],
            f"request {request_id!r}: modulation {chosen.name!r} carries reach "
            f"{chosen.reach:g} and efficiency {chosen.efficiency:g}, the input "
            f"defines {modulation.reach:g} and {modulation.efficiency:g}",
        )
    return modulation


def _check_accepted(
    instance: PlanningInstance,
    config: PlanningConfig,
    candidates: Sequence[CandidatePath],
    outcome: RequestAssignment,
    found: _Collector,
) -> None:
    request_id = outcome.request_id
    distance, is_candidate = _check_path(instance, candidates, outcome, found)

    modulation = _resolve_modulation(instance, outcome, found)
    if (
        modulation is not None
        and distance is not None
        and distance > modulation.reach + DISTANCE_TOLERANCE
    ):
        found.add(
            "reach",
            [request_id],
            f"request {request_id!r}: path distance {distance:g} exceeds the "
            f"reach {modulation.reach:g} of {modulation.name}",
        )

    block = outcome.block
    if block is None:
        found.add("block", [request_id], f"request {request_id!r}: no spectrum block")
        return
    if (
        block.start < 0
        or block.end < block.start
        or block.end >= config.spectrum_ceiling
    ):
        found.add(
            "block_range",
            [request_id],
            f"request {request_id!r}: block {block} is outside "
            f"[0, {config.spectrum_ceiling - 1}]",
        )
    if is_candidate and modulation is not None:
        required = instance.required_slots(outcome.path, modulation)
        if block.length != required:
            found.add(
                "block_length",
                [request_id],
                f"request {request_id!r}: block {block} has {block.length} slot(s), "
                f"{outcome.path.label} with {modulation.name} requires {required}",
            )

    if outcome.side is None:
        found.add("side", [request_id], f"request {request_id!r}: no side chosen")

    zone = instance.get_zone(outcome.zone) if outcome.zone is not None else None
    if zone is None:
        found.add(
            "zone",
            [request_id],
            f"request {request_id!r}: missing or unknown zone {outcome.zone!r}",
        )
        return
    if not zone.contains(block.start, block.end):
        found.add(
            "zone_bounds",
            [request_id],
            f"request {request_id!r}: block {block} is outside zone '{zone.name}' "
            f"[{zone.offset}, {zone.stop - 1}]",
        )
        return
    if not config.side_halves:
        return
    if outcome.side is Side.LEFT and block.end >= zone.midpoint:
        found.add(
            "side_half",
            [request_id],
            f"request {request_id!r}: left block {block} crosses the middle of "
            f"zone '{zone.name}' at slot {zone.midpoint}",
        )
    elif outcome.side is Side.RIGHT and block.start < zone.midpoint:
        found.add(
            "side_half",
            [request_id],
            f"request {request_id!r}: right block {block} starts below the middle "
            f"of zone '{zone.name}' at slot {zone.midpoint}",
        )


def _check_rejected(outcome: RequestAssignment, found: _Collector) -> None:
    request_id = outcome.request_id
    leftovers = [
        name
        for name in ("path", "modulation", "block", "side", "zone")
        if getattr(outcome, name) is not None
    ]
    if leftovers:
        found.add(
            "rejected_clean",
            [request_id],
            f"request {request_id!r}: rejected but carries {', '.join(leftovers)}",
        )
    if outcome.reject_reason is None:
        found.add(
            "reject_reason",
            [request_id],
            f"request {request_id!r}: rejected without a reason",
        )


def _in_conflict(first: RequestAssignment, second: RequestAssignment) -> bool:
    """True if two placements share a link or a zone."""
    if first.zone is not None and first.zone == second.zone:
        return True
    return (
        first.path is not None
        and second.path is not None
        and first.path.shares_link_with(second.path)
    )


def _check_pairs(
    accepted: Sequence[RequestAssignment],
    config: PlanningConfig,
    found: _Collector,
) -> None:
    placed = [outcome for outcome in accepted if outcome.block is not None]
    for first, second in combinations(placed, 2):
        if config.overlap_scope == "conflicting" and not _in_conflict(first, second):
            continue
        if not first.block.is_separated_from(second.block, config.guard_band):
            found.add(
                "guard_band",
                [first.request_id, second.request_id],
                f"requests {first.request_id!r} and {second.request_id!r}: blocks "
                f"{first.block} and {second.block} overlap within guard band "
                f"{config.guard_band}",
            )


def _check_s_max(
    assignment: Assignment,
    accepted: Sequence[RequestAssignment],
    config: PlanningConfig,
    found: _Collector,
) -> None:
    ends = [outcome.block.end for outcome in accepted if outcome.block is not None]
    s_max = assignment.s_max
    if not accepted:
        if s_max is not None:
            found.add("s_max", [], f"S_max is {s_max} but no request is accepted")
        return
    if s_max is None:
        found.add("s_max", [], "S_max is missing")
        return
    if s_max > config.spectrum_ceiling - 1:
        found.add(
            "s_max",
            [],
            f"S_max {s_max} exceeds the last slot index {config.spectrum_ceiling - 1}",
        )
    if ends and s_max < max(ends):
        found.add("s_max", [], f"S_max {s_max} is below block end {max(ends)}")
    elif ends and s_max != max(ends):
        found.add(
            "s_max", [], f"S_max {s_max} differs from the highest block end {max(ends)}"
        )


def validate_assignment(
    instance: PlanningInstance,
    candidates: Mapping[RequestId, Sequence[CandidatePath]],
    assignment: Assignment,
    config: PlanningConfig | None = None,
) -> ValidationReport:
    """
    Check an assignment against every structural rule.

    :param instance: The planning instance the assignment was produced for
    :type instance: PlanningInstance
    :param candidates: Candidate paths per request id, as given to the
        model builder
    :type candidates: Mapping[RequestId, Sequence[CandidatePath]]
    :param assignment: Assignment under test, read-only
    :type assignment: Assignment
    :param config: Planning configuration; defaults to the instance's
    :type config: PlanningConfig | None
    :return: Report listing every violation, sorted
    :rtype: ValidationReport

    Example:
        >>> report = validate_assignment(instance, candidates, assignment)
        >>> report.passed
        True
    """
    config = config or instance.config
    found = _Collector()

    for request_id in assignment.requests:
        if not instance.has_request(request_id):
            found.add(
                "unknown_request", [request_id], f"request {request_id!r} is unknown"
            )

    accepted: list[RequestAssignment] = []
    for request_id in instance.request_ids:
        outcome = assignment.requests.get(request_id)
        if outcome is None:
            found.add(
                "missing_request",
                [request_id],
                f"request {request_id!r} has no outcome",
            )
            continue
        if outcome.accepted:
            accepted.append(outcome)
            _check_accepted(
                instance, config, tuple(candidates.get(request_id, ())), outcome, found
            )
        else:
            _check_rejected(outcome, found)

    _check_pairs(accepted, config, found)
    _check_s_max(assignment, accepted, config, found)

    if assignment.objective != len(accepted):
        found.add(
            "objective",
            [],
            f"objective {assignment.objective} differs from the {len(accepted)} "
            f"accepted request(s)",
        )

    report = ValidationReport(tuple(sorted(found.violations, key=_violation_key)))
    if report.passed:
        logger.info("Validation passed: %d request(s) accepted", len(accepted))
    else:
        logger.error(
            "Validation failed with %d violation(s): %s",
            len(report.violations),
            ", ".join(report.rules_violated),
        )
    return report
