"""
RSA model builder.

Assembles the mixed-integer program that jointly selects, per request, an
acceptance flag, one candidate path, one modulation format within reach,
a contiguous slot block, a zone and a side, so that accepted blocks keep
the guard band from each other and stay below the spectrum ceiling.

Notation used in constraint names:

- ``r`` request position in input order
- ``p`` candidate path index of the request
- ``m`` modulation position in the instance
- ``z`` zone position in layout order
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pulp import (
    LpBinary,
    LpContinuous,
    LpInteger,
    LpMaximize,
    LpProblem,
    LpVariable,
    lpSum,
)

from rsaplan.domain.config import PlanningConfig
from rsaplan.domain.network import Modulation, Topology
from rsaplan.domain.request import CandidatePath, RequestId
from rsaplan.errors import ConfigError
from rsaplan.modeling.conflicts import pairs_in_scope, zone_gated_pairs
from rsaplan.utils.logging_config import get_logger

if TYPE_CHECKING:
    from rsaplan.domain.instance import PlanningInstance

logger = get_logger(__name__)


@dataclass(frozen=True)
class FeasibleOption:
    """
    A (path, modulation) combination within reach.

    Attributes:
        path: Candidate path
        modulation: Modulation whose reach covers the path distance
        required_slots: Block length the combination occupies
    """

    path: CandidatePath
    modulation: Modulation
    required_slots: int


def derive_big_m(topology: Topology, config: PlanningConfig) -> float:
    """
    Size the disjunction constant.

    The constant must exceed every path distance (no simple path is longer
    than the sum of all links) and every reachable slot expression
    (``start + length + guard`` is bounded by ``ceiling + guard``).

    :param topology: Physical topology
    :type topology: Topology
    :param config: Planning configuration
    :type config: PlanningConfig
    :return: The configured constant, or the derived lower bound
    :rtype: float
    :raises ConfigError: If a configured constant is below the bound
    """
    bound = topology.total_distance + config.spectrum_ceiling + config.guard_band + 1
    if config.big_m is None:
        return bound
    if config.big_m < bound:
        raise ConfigError(
            f"big_m {config.big_m:g} is too small for this instance; "
            f"it must be at least {bound:g}"
        )
    return float(config.big_m)


@dataclass(frozen=True)
class RsaModel:
    """
    Built constraint system and the variable maps needed to decode it.

    The problem is not modified after :func:`build_rsa_model` returns; solver
    adapters only read it and ask pulp to solve it.
    """

    problem: LpProblem
    instance: PlanningInstance
    candidates: Mapping[RequestId, tuple[CandidatePath, ...]]
    feasible_options: Mapping[RequestId, tuple[FeasibleOption, ...]]
    pairs: tuple[tuple[RequestId, RequestId], ...]
    zone_pairs: tuple[tuple[RequestId, RequestId], ...]
    big_m: float
    accept: Mapping[RequestId, LpVariable]
    use_path: Mapping[tuple[RequestId, int], LpVariable]
    use_mod: Mapping[tuple[RequestId, int, str], LpVariable]
    distance: Mapping[tuple[RequestId, int], LpVariable]
    start: Mapping[RequestId, LpVariable]
    length: Mapping[RequestId, LpVariable]
    in_zone: Mapping[tuple[RequestId, str], LpVariable]
    left: Mapping[RequestId, LpVariable]
    right: Mapping[RequestId, LpVariable]
    order: Mapping[tuple[RequestId, RequestId], LpVariable]
    s_max: LpVariable
    unacceptable: frozenset = field(default_factory=frozenset)

    @property
    def config(self) -> PlanningConfig:
        return self.instance.config

    def statistics(self) -> dict[str, Any]:
        """
        Summarize the model size.

        :return: Variable, constraint and pair counts
        :rtype: dict[str, Any]
        """
        return {
            "requests": len(self.accept),
            "unacceptable_requests": len(self.unacceptable),
            "candidate_paths": len(self.use_path),
            "feasible_options": len(self.use_mod),
            "pairs": len(self.pairs),
            "zone_pairs": len(self.zone_pairs),
            "variables": self.problem.numVariables(),
            "constraints": self.problem.numConstraints(),
            "big_m": self.big_m,
        }


def _feasible_options(
    instance: PlanningInstance, paths: Sequence[CandidatePath]
) -> tuple[FeasibleOption, ...]:
    options = []
    for path in paths:
        for modulation in instance.feasible_modulations(path):
            options.append(
                FeasibleOption(
                    path=path,
                    modulation=modulation,
                    required_slots=instance.required_slots(path, modulation),
                )
            )
    return tuple(options)


def build_rsa_model(
    instance: PlanningInstance,
    candidates: Mapping[RequestId, Sequence[CandidatePath]],
    config: PlanningConfig | None = None,
) -> RsaModel:
    """
    Build the RSA mixed-integer program.

    The objective maximizes the number of accepted requests; ``s_max`` is
    subtracted with a weight below ``1 / ceiling`` so the most compact
    spectrum is chosen among maximum-acceptance solutions.

    Requests without candidate paths and paths without a modulation in
    reach have their selection flag fixed to 0 instead of failing the
    build, which keeps "reject everything" feasible.

    :param instance: Validated planning instance
    :type instance: PlanningInstance
    :param candidates: Candidate paths per request id
    :type candidates: Mapping[RequestId, Sequence[CandidatePath]]
    :param config: Planning configuration; defaults to the instance's
    :type config: PlanningConfig | None
    :return: Built model
    :rtype: RsaModel
    :raises ConfigError: If a configured big-M is too small
    """
    config = config or instance.config
    big_m = derive_big_m(instance.topology, config)
    ceiling = config.spectrum_ceiling
    guard = config.guard_band
    request_ids = instance.request_ids
    position = {request_id: r for r, request_id in enumerate(request_ids)}
    mod_position = {mod.name: m for m, mod in enumerate(instance.modulations)}
    zone_position = {zone.name: z for z, zone in enumerate(instance.zones)}

    paths_by_request = {
        request_id: tuple(candidates.get(request_id, ())) for request_id in request_ids
    }
    options_by_request = {
        request_id: _feasible_options(instance, paths)
        for request_id, paths in paths_by_request.items()
    }
    pairs = pairs_in_scope(request_ids, paths_by_request, config.overlap_scope)
    zone_pairs = zone_gated_pairs(request_ids, pairs, config.overlap_scope)

    problem = LpProblem("rsa", LpMaximize)

    # Variables
    accept = {
        request_id: LpVariable(f"accept_{position[request_id]}", cat=LpBinary)
        for request_id in request_ids
    }
    use_path = {
        (request_id, path.index): LpVariable(
            f"use_path_{position[request_id]}_{path.index}", cat=LpBinary
        )
        for request_id, paths in paths_by_request.items()
        for path in paths
    }
    use_mod = {
        (request_id, option.path.index, option.modulation.name): LpVariable(
            f"use_mod_{position[request_id]}_{option.path.index}_"
            f"{mod_position[option.modulation.name]}",
            cat=LpBinary,
        )
        for request_id, options in options_by_request.items()
        for option in options
    }
    distance = {
        (request_id, path.index): LpVariable(
            f"distance_{position[request_id]}_{path.index}",
            lowBound=0,
            cat=LpContinuous,
        )
        for request_id, paths in paths_by_request.items()
        for path in paths
    }
    start = {
        request_id: LpVariable(
            f"start_{position[request_id]}",
            lowBound=0,
            upBound=ceiling - 1,
            cat=LpInteger,
        )
        for request_id in request_ids
    }
    length = {
        request_id: LpVariable(
            f"length_{position[request_id]}",
            lowBound=0,
            upBound=ceiling,
            cat=LpInteger,
        )
        for request_id in request_ids
    }
    in_zone = {
        (request_id, zone.name): LpVariable(
            f"in_zone_{position[request_id]}_{zone_position[zone.name]}",
            cat=LpBinary,
        )
        for request_id in request_ids
        for zone in instance.zones
    }
    left = {
        request_id: LpVariable(f"left_{position[request_id]}", cat=LpBinary)
        for request_id in request_ids
    }
    right = {
        request_id: LpVariable(f"right_{position[request_id]}", cat=LpBinary)
        for request_id in request_ids
    }
    order = {
        (first, second): LpVariable(
            f"order_{position[first]}_{position[second]}", cat=LpBinary
        )
        for first, second in pairs + zone_pairs
    }
    s_max = LpVariable("s_max", lowBound=0, upBound=ceiling - 1, cat=LpInteger)

    # Objective
    problem += (
        lpSum(accept.values()) - s_max * (1.0 / (ceiling + 1)),
        "accepted_requests",
    )

    # Constraints
    unacceptable = set()
    for request_id in request_ids:
        r = position[request_id]
        paths = paths_by_request[request_id]
        options = options_by_request[request_id]

        if not options:
            unacceptable.add(request_id)
            problem += (accept[request_id] == 0, f"unacceptable_{r}")

        problem += (
            lpSum(use_path[request_id, path.index] for path in paths)
            == accept[request_id],
            f"one_path_{r}",
        )

        for path in paths:
            p = path.index
            path_options = [o for o in options if o.path.index == p]
            problem += (
                distance[request_id, p] == path.distance,
                f"path_distance_{r}_{p}",
            )
            if not path_options:
                problem += (use_path[request_id, p] == 0, f"no_modulation_{r}_{p}")
                continue
            problem += (
                lpSum(
                    use_mod[request_id, p, o.modulation.name] for o in path_options
                )
                == use_path[request_id, p],
                f"one_modulation_{r}_{p}",
            )
            for option in path_options:
                m = mod_position[option.modulation.name]
                problem += (
                    distance[request_id, p]
                    <= option.modulation.reach
                    + big_m * (1 - use_mod[request_id, p, option.modulation.name]),
                    f"reach_{r}_{p}_{m}",
                )

        problem += (
            length[request_id]
            == lpSum(
                option.required_slots
                * use_mod[request_id, option.path.index, option.modulation.name]
                for option in options
            ),
            f"block_length_{r}",
        )

        problem += (start[request_id] + length[request_id] <= ceiling, f"ceiling_{r}")
        problem += (
            s_max
            >= start[request_id] + length[request_id] - 1
            - big_m * (1 - accept[request_id]),
            f"s_max_{r}",
        )

        problem += (
            lpSum(in_zone[request_id, zone.name] for zone in instance.zones)
            == accept[request_id],
            f"one_zone_{r}",
        )
        problem += (
            left[request_id] + right[request_id] == accept[request_id],
            f"one_side_{r}",
        )
        for zone in instance.zones:
            z = zone_position[zone.name]
            off_zone = 1 - in_zone[request_id, zone.name]
            problem += (
                start[request_id] >= zone.offset - big_m * off_zone,
                f"zone_low_{r}_{z}",
            )
            problem += (
                start[request_id] + length[request_id]
                <= zone.stop + big_m * off_zone,
                f"zone_high_{r}_{z}",
            )
            if not config.side_halves:
                continue
            problem += (
                start[request_id] + length[request_id]
                <= zone.midpoint + big_m * off_zone + big_m * (1 - left[request_id]),
                f"left_half_{r}_{z}",
            )
            problem += (
                start[request_id]
                >= zone.midpoint - big_m * off_zone - big_m * (1 - right[request_id]),
                f"right_half_{r}_{z}",
            )

    # Pairwise non-overlap, binding only when both requests are accepted
    for first, second in pairs:
        i, j = position[first], position[second]
        both_off = 2 - accept[first] - accept[second]
        problem += (
            start[second]
            >= start[first] + length[first] + guard
            - big_m * (1 - order[first, second])
            - big_m * both_off,
            f"first_before_{i}_{j}",
        )
        problem += (
            start[first]
            >= start[second] + length[second] + guard
            - big_m * order[first, second]
            - big_m * both_off,
            f"second_before_{i}_{j}",
        )

    # Same-zone non-overlap, binding only when both requests share zone z
    for first, second in zone_pairs:
        i, j = position[first], position[second]
        for zone in instance.zones:
            z = zone_position[zone.name]
            apart = 2 - in_zone[first, zone.name] - in_zone[second, zone.name]
            problem += (
                start[second]
                >= start[first] + length[first] + guard
                - big_m * (1 - order[first, second])
                - big_m * apart,
                f"zone_first_before_{i}_{j}_{z}",
            )
            problem += (
                start[first]
                >= start[second] + length[second] + guard
                - big_m * order[first, second]
                - big_m * apart,
                f"zone_second_before_{i}_{j}_{z}",
            )

    model = RsaModel(
        problem=problem,
        instance=instance,
        candidates=MappingProxyType(paths_by_request),
        feasible_options=MappingProxyType(options_by_request),
        pairs=pairs,
        zone_pairs=zone_pairs,
        big_m=big_m,
        accept=MappingProxyType(accept),
        use_path=MappingProxyType(use_path),
        use_mod=MappingProxyType(use_mod),
        distance=MappingProxyType(distance),
        start=MappingProxyType(start),
        length=MappingProxyType(length),
        in_zone=MappingProxyType(in_zone),
        left=MappingProxyType(left),
        right=MappingProxyType(right),
        order=MappingProxyType(order),
        s_max=s_max,
        unacceptable=frozenset(unacceptable),
    )
    stats = model.statistics()
    logger.info(
        "Built RSA model: %d request(s), %d option(s), %d pair(s), "
        "%d variable(s), %d constraint(s)",
        stats["requests"],
        stats["feasible_options"],
        stats["pairs"],
        stats["variables"],
        stats["constraints"],
    )
    for request_id in sorted(unacceptable, key=position.__getitem__):
        logger.debug("Request %r has no feasible path/modulation", request_id)
    return model
