"""
Physical network domain objects.

This module defines:
- Link: Undirected fiber link with a positive distance
- Modulation: Modulation format with a transmission reach
- Zone: Contiguous spectrum region with its own slot capacity
- Topology: Immutable networkx-backed view of nodes and links
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import networkx as nx

from rsaplan.errors import InputValidationError, NodeNotFoundError

Node = Hashable


def node_sort_key(node: Node) -> tuple[int, Any]:
    """
    Total ordering over mixed int/str node identifiers.

    Numbers sort before strings and numerically among themselves, so that
    node 10 follows node 2.
    """
    if isinstance(node, (int, float)) and not isinstance(node, bool):
        return (0, node)
    return (1, str(node))


# =============================================================================
# Link
# =============================================================================


@dataclass(frozen=True, eq=False)
class Link:
    """
    Undirected link between two nodes.

    Two links are equal when they join the same pair of nodes, regardless
    of the order in which the endpoints were given.

    Attributes:
        endpoint_a: First endpoint (as declared)
        endpoint_b: Second endpoint (as declared)
        distance: Positive link length
    """

    endpoint_a: Node
    endpoint_b: Node
    distance: float

    def __post_init__(self) -> None:
        """Validate link after creation."""
        if self.endpoint_a == self.endpoint_b:
            raise InputValidationError(
                f"Link {self.endpoint_a}-{self.endpoint_b} is a self-loop"
            )
        if not self.distance > 0:
            raise InputValidationError(
                f"Link {self.endpoint_a}-{self.endpoint_b} must have a positive "
                f"distance, got {self.distance}"
            )

    @property
    def key(self) -> tuple[Node, Node]:
        """Canonical (sorted) endpoint pair."""
        a, b = sorted((self.endpoint_a, self.endpoint_b), key=node_sort_key)
        return (a, b)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Link):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        a, b = self.key
        return f"({a},{b})"


# =============================================================================
# Modulation
# =============================================================================


@dataclass(frozen=True)
class Modulation:
    """
    Modulation format.

    Attributes:
        name: Format identifier (e.g. "QPSK")
        reach: Maximum transmission distance
        efficiency: Spectral efficiency relative to the slot capacity
    """

    name: str
    reach: float
    efficiency: float = 1.0

    def __post_init__(self) -> None:
        """Validate modulation after creation."""
        if not self.name:
            raise InputValidationError("Modulation name cannot be empty")
        if not self.reach > 0:
            raise InputValidationError(
                f"Modulation '{self.name}' must have a positive reach"
            )
        if not self.efficiency > 0:
            raise InputValidationError(
                f"Modulation '{self.name}' must have a positive efficiency"
            )

    def supports(self, distance: float) -> bool:
        """True if a path of the given distance is within reach."""
        return distance <= self.reach


# =============================================================================
# Zone
# =============================================================================


@dataclass(frozen=True)
class Zone:
    """
    Contiguous spectrum region.

    Zones are laid out back to back from slot 0 in declaration order; the
    ``offset`` is filled in by :func:`layout_zones`.

    Attributes:
        name: Zone identifier
        capacity: Number of slots in the zone
        offset: First slot index of the zone
    """

    name: str
    capacity: int
    offset: int = 0

    def __post_init__(self) -> None:
        """Validate zone after creation."""
        if self.capacity < 1:
            raise InputValidationError(f"Zone '{self.name}' must have capacity >= 1")
        if self.offset < 0:
            raise InputValidationError(f"Zone '{self.name}' has a negative offset")

    @property
    def stop(self) -> int:
        """One past the last slot index of the zone."""
        return self.offset + self.capacity

    @property
    def midpoint(self) -> int:
        """First slot index of the right half of the zone."""
        return self.offset + self.capacity // 2

    def contains(self, start: int, end: int) -> bool:
        """True if the inclusive slot range lies inside the zone."""
        return self.offset <= start and end < self.stop


def layout_zones(zones: Sequence[Zone], spectrum_ceiling: int) -> tuple[Zone, ...]:
    """
    Assign contiguous offsets to zones.

    :param zones: Zones in declaration order (offsets are ignored)
    :type zones: Sequence[Zone]
    :param spectrum_ceiling: Total number of slots
    :type spectrum_ceiling: int
    :return: Zones with offsets, or a single zone spanning the spectrum
        when none were declared
    :rtype: tuple[Zone, ...]
    :raises InputValidationError: If names repeat or the zones do not fit
    """
    if not zones:
        return (Zone(name="default", capacity=spectrum_ceiling, offset=0),)

    names = [zone.name for zone in zones]
    if len(set(names)) != len(names):
        raise InputValidationError("Zone names must be unique")

    total = sum(zone.capacity for zone in zones)
    if total > spectrum_ceiling:
        raise InputValidationError(
            f"Zone capacities sum to {total} slots, exceeding the spectrum "
            f"ceiling of {spectrum_ceiling}"
        )

    laid_out = []
    offset = 0
    for zone in zones:
        laid_out.append(Zone(name=zone.name, capacity=zone.capacity, offset=offset))
        offset += zone.capacity
    return tuple(laid_out)


# =============================================================================
# Topology
# =============================================================================


class Topology:
    """
    Immutable physical topology.

    Wraps an undirected ``nx.Graph`` whose edges carry a ``length``
    attribute and the owning :class:`Link` object.

    :param nodes: Node identifiers
    :type nodes: Iterable[Node]
    :param links: Undirected links between declared nodes
    :type links: Iterable[Link]
    :raises InputValidationError: If a link references an unknown node or
        the same node pair is declared twice
    """

    def __init__(self, nodes: Iterable[Node], links: Iterable[Link]) -> None:
        graph = nx.Graph()
        graph.add_nodes_from(nodes)

        for link in links:
            for endpoint in (link.endpoint_a, link.endpoint_b):
                if endpoint not in graph:
                    raise InputValidationError(
                        f"Link {link} references unknown node {endpoint!r}"
                    )
            if graph.has_edge(link.endpoint_a, link.endpoint_b):
                raise InputValidationError(f"Duplicate link {link}")
            graph.add_edge(
                link.endpoint_a, link.endpoint_b, length=link.distance, link=link
            )

        self._graph = nx.freeze(graph)

    @property
    def graph(self) -> nx.Graph:
        """Frozen networkx graph (edge attributes: length, link)."""
        return self._graph

    @property
    def nodes(self) -> tuple[Node, ...]:
        """Nodes in deterministic order."""
        return tuple(sorted(self._graph.nodes, key=node_sort_key))

    @property
    def links(self) -> tuple[Link, ...]:
        """Links in deterministic order."""
        links = (data["link"] for _, _, data in self._graph.edges(data=True))
        return tuple(sorted(links, key=lambda link: tuple(map(node_sort_key, link.key))))

    @property
    def total_distance(self) -> float:
        """Sum of all link distances, an upper bound on any simple path."""
        return float(sum(link.distance for link in self.links))

    def has_node(self, node: Node) -> bool:
        """True if the node is part of the topology."""
        return node in self._graph

    def require_node(self, node: Node) -> None:
        """
        Ensure a node exists.

        :raises NodeNotFoundError: If the node is absent
        """
        if node not in self._graph:
            raise NodeNotFoundError(f"Node {node!r} is not part of the topology")

    def get_link(self, node_a: Node, node_b: Node) -> Link:
        """
        Return the link joining two nodes.

        :raises InputValidationError: If the nodes are not adjacent
        """
        if not self._graph.has_edge(node_a, node_b):
            raise InputValidationError(f"No link between {node_a!r} and {node_b!r}")
        return self._graph[node_a][node_b]["link"]

    def links_along(self, nodes: Sequence[Node]) -> tuple[Link, ...]:
        """
        Resolve a node sequence into the links it traverses.

        :param nodes: Node sequence with at least two nodes
        :type nodes: Sequence[Node]
        :return: Links between consecutive nodes
        :rtype: tuple[Link, ...]
        """
        return tuple(
            self.get_link(nodes[i], nodes[i + 1]) for i in range(len(nodes) - 1)
        )

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def __repr__(self) -> str:
        return (
            f"Topology(nodes={self._graph.number_of_nodes()}, "
            f"links={self._graph.number_of_edges()})"
        )
