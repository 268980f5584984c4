"""
PlanningInstance - all static input of one planning run.

The instance is built once by the loader (or directly in code), validated
for referential consistency, and then shared read-only by the path
generator, model builder and validator.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType

from rsaplan.domain.config import PlanningConfig
from rsaplan.domain.network import Modulation, Node, Topology, Zone, layout_zones
from rsaplan.domain.request import CandidatePath, RequestId, TrafficRequest
from rsaplan.errors import InputValidationError
from rsaplan.modeling.slots import compute_required_slots

SlotKey = tuple[RequestId, tuple[Node, ...], str]


class PlanningInstance:
    """
    Validated static input of a planning run.

    :param topology: Physical topology
    :type topology: Topology
    :param requests: Traffic requests (ids must be unique)
    :type requests: Iterable[TrafficRequest]
    :param modulations: Modulation formats (names must be unique)
    :type modulations: Iterable[Modulation]
    :param config: Planning configuration
    :type config: PlanningConfig
    :param zones: Spectrum zones in layout order; one zone spanning the
        whole spectrum when omitted
    :type zones: Sequence[Zone] | None
    :param supplied_paths: Optional explicit candidate node sequences per
        request; requests absent from the mapping get generated paths
    :type supplied_paths: Mapping[RequestId, Sequence[Sequence[Node]]] | None
    :param slot_overrides: Optional explicit required-slot counts keyed by
        (request id, path node tuple, modulation name)
    :type slot_overrides: Mapping[SlotKey, int] | None
    :raises InputValidationError: If any reference is inconsistent
    """

    def __init__(
        self,
        topology: Topology,
        requests: Iterable[TrafficRequest],
        modulations: Iterable[Modulation],
        config: PlanningConfig,
        zones: Sequence[Zone] | None = None,
        supplied_paths: Mapping[RequestId, Sequence[Sequence[Node]]] | None = None,
        slot_overrides: Mapping[SlotKey, int] | None = None,
    ) -> None:
        self.topology = topology
        self.config = config
        self.requests: tuple[TrafficRequest, ...] = tuple(requests)
        self.modulations: tuple[Modulation, ...] = tuple(modulations)
        self._declared_zones: tuple[Zone, ...] = tuple(zones or ())
        self.zones: tuple[Zone, ...] = layout_zones(
            list(self._declared_zones), config.spectrum_ceiling
        )

        self._requests_by_id: dict[RequestId, TrafficRequest] = {}
        for request in self.requests:
            if request.request_id in self._requests_by_id:
                raise InputValidationError(
                    f"Duplicate request id {request.request_id!r}"
                )
            topology.require_node(request.source)
            topology.require_node(request.destination)
            self._requests_by_id[request.request_id] = request

        self._modulations_by_name: dict[str, Modulation] = {}
        for modulation in self.modulations:
            if modulation.name in self._modulations_by_name:
                raise InputValidationError(
                    f"Duplicate modulation name '{modulation.name}'"
                )
            self._modulations_by_name[modulation.name] = modulation
        if not self.modulations:
            raise InputValidationError("At least one modulation format is required")

        paths: dict[RequestId, tuple[tuple[Node, ...], ...]] = {}
        for request_id, node_lists in (supplied_paths or {}).items():
            if request_id not in self._requests_by_id:
                raise InputValidationError(
                    f"Candidate paths given for unknown request {request_id!r}"
                )
            paths[request_id] = tuple(tuple(nodes) for nodes in node_lists)
        self.supplied_paths: Mapping[RequestId, tuple[tuple[Node, ...], ...]] = (
            MappingProxyType(paths)
        )

        overrides: dict[SlotKey, int] = {}
        for (request_id, nodes, modulation_name), slots in (
            slot_overrides or {}
        ).items():
            if request_id not in self._requests_by_id:
                raise InputValidationError(
                    f"Slot override references unknown request {request_id!r}"
                )
            if modulation_name not in self._modulations_by_name:
                raise InputValidationError(
                    f"Slot override references unknown modulation '{modulation_name}'"
                )
            if int(slots) < 1:
                raise InputValidationError(
                    f"Slot override for request {request_id!r} must be >= 1"
                )
            overrides[(request_id, tuple(nodes), modulation_name)] = int(slots)
        self.slot_overrides: Mapping[SlotKey, int] = MappingProxyType(overrides)

    def with_config(self, config: PlanningConfig) -> PlanningInstance:
        """
        Return a copy of this instance planned under another configuration.

        Zones are laid out again, so a default zone follows the new ceiling.

        :param config: Replacement configuration
        :type config: PlanningConfig
        :return: New planning instance
        :rtype: PlanningInstance
        """
        return PlanningInstance(
            topology=self.topology,
            requests=self.requests,
            modulations=self.modulations,
            config=config,
            zones=self._declared_zones,
            supplied_paths=self.supplied_paths,
            slot_overrides=self.slot_overrides,
        )

    @property
    def request_ids(self) -> tuple[RequestId, ...]:
        """Request ids in input order."""
        return tuple(request.request_id for request in self.requests)

    def get_request(self, request_id: RequestId) -> TrafficRequest:
        """
        Look up a request by id.

        :raises KeyError: If the id is unknown
        """
        return self._requests_by_id[request_id]

    def has_request(self, request_id: RequestId) -> bool:
        """True if the id belongs to a request of this instance."""
        return request_id in self._requests_by_id

    def get_modulation(self, name: str) -> Modulation:
        """
        Look up a modulation format by name.

        :raises KeyError: If the name is unknown
        """
        return self._modulations_by_name[name]

    def get_zone(self, name: str) -> Zone | None:
        """Return the zone with the given name, or None."""
        for zone in self.zones:
            if zone.name == name:
                return zone
        return None

    def required_slots(self, path: CandidatePath, modulation: Modulation) -> int:
        """
        Slots needed to carry a request over a path with a modulation.

        Explicit overrides win over the demand-based derivation.

        :param path: Candidate path of the request
        :type path: CandidatePath
        :param modulation: Modulation format
        :type modulation: Modulation
        :return: Required slot count (>= 1)
        :rtype: int
        """
        key = (path.request_id, path.nodes, modulation.name)
        if key in self.slot_overrides:
            return self.slot_overrides[key]
        request = self._requests_by_id[path.request_id]
        return compute_required_slots(
            request.demand, self.config.slot_capacity, modulation.efficiency
        )

    def feasible_modulations(self, path: CandidatePath) -> tuple[Modulation, ...]:
        """Modulation formats whose reach covers the path distance."""
        return tuple(
            modulation for modulation in self.modulations
            if modulation.supports(path.distance)
        )

    def __repr__(self) -> str:
        return (
            f"PlanningInstance({self.topology!r}, requests={len(self.requests)}, "
            f"modulations={len(self.modulations)}, zones={len(self.zones)})"
        )
