"""Unit tests for rsaplan.routing.k_shortest_path module."""

from typing import Any

import pytest

from rsaplan.domain.config import PlanningConfig
from rsaplan.domain.network import Link, Topology
from rsaplan.domain.request import TrafficRequest
from rsaplan.errors import (
    ConfigError,
    InputValidationError,
    NodeNotFoundError,
    NoPathError,
)
from rsaplan.routing.k_shortest_path import (
    KShortestPath,
    build_supplied_paths,
    find_k_shortest_paths,
    generate_candidate_paths,
)


@pytest.fixture
def square_topology() -> Topology:
    """Create a 4-node ring where both routes between 0 and 2 tie.

    :return: Ring 0-1-2-3-0 with unit distances plus an isolated node 9.
    :rtype: Topology
    """
    links = [Link(0, 1, 1.0), Link(1, 2, 1.0), Link(2, 3, 1.0), Link(3, 0, 1.0)]
    return Topology([0, 1, 2, 3, 9], links)


@pytest.fixture
def k_shortest_path(reference_topology: Topology) -> KShortestPath:
    """Create KShortestPath instance with K=2 for testing."""
    return KShortestPath(reference_topology, 2)


class TestKShortestPath:
    """Tests for KShortestPath routing algorithm."""

    def test_algorithm_name_property(self, k_shortest_path: KShortestPath) -> None:
        """Test algorithm name property returns correct identifier."""
        assert k_shortest_path.algorithm_name == "k_shortest_path"
        assert k_shortest_path.routing_weight == "length"

    def test_reference_paths(self, k_shortest_path: KShortestPath) -> None:
        """Test the two reference candidate paths between 0 and 2."""
        # Act
        paths = k_shortest_path.get_paths(0, 2)

        # Assert
        assert paths == [[0, 1, 2], [0, 3, 2]]

    @pytest.mark.parametrize("k_value,expected_count", [(1, 1), (3, 3), (10, 4)])
    def test_get_paths_returns_at_most_k(
        self, reference_topology: Topology, k_value: int, expected_count: int
    ) -> None:
        """Test that all simple paths are returned when fewer than K exist."""
        # Arrange
        generator = KShortestPath(reference_topology, k_value)

        # Act
        paths = generator.get_paths(0, 2)

        # Assert
        assert len(paths) == expected_count

    def test_paths_are_loopless_and_sorted(self, reference_topology: Topology) -> None:
        """Test that paths are simple and non-decreasing by distance."""
        # Arrange
        generator = KShortestPath(reference_topology, 10)

        # Act
        candidates = generator.generate(TrafficRequest("r", 0, 2, 10.0))

        # Assert
        distances = [path.distance for path in candidates]
        assert distances == sorted(distances)
        assert all(len(set(path.nodes)) == len(path.nodes) for path in candidates)
        assert len({path.nodes for path in candidates}) == len(candidates)
        assert [path.index for path in candidates] == list(range(len(candidates)))

    def test_ties_are_broken_by_node_sequence(self, square_topology: Topology) -> None:
        """Test deterministic ordering of equal-distance paths."""
        # Act
        first = KShortestPath(square_topology, 1).get_paths(0, 2)
        both = KShortestPath(square_topology, 2).get_paths(0, 2)

        # Assert
        assert first == [[0, 1, 2]]
        assert both == [[0, 1, 2], [0, 3, 2]]

    def test_unknown_node_raises(self, k_shortest_path: KShortestPath) -> None:
        """Test that absent endpoints raise NodeNotFoundError."""
        with pytest.raises(NodeNotFoundError):
            k_shortest_path.get_paths(0, 42)

    def test_disconnected_nodes_raise(self, square_topology: Topology) -> None:
        """Test that unconnected endpoints raise NoPathError."""
        with pytest.raises(NoPathError):
            KShortestPath(square_topology, 2).get_paths(0, 9)

    def test_invalid_k_raises(self, reference_topology: Topology) -> None:
        """Test that K must be positive."""
        with pytest.raises(ConfigError):
            KShortestPath(reference_topology, 0)

    def test_get_metrics(self, k_shortest_path: KShortestPath) -> None:
        """Test metrics after one generation."""
        # Act
        k_shortest_path.generate(TrafficRequest("r", 0, 2, 10.0))
        metrics = k_shortest_path.get_metrics()

        # Assert
        assert metrics["paths_computed"] == 2
        assert metrics["average_hop_count"] == 2.0
        assert metrics["k_value"] == 2


class TestSuppliedPaths:
    """Tests for validation of externally supplied paths."""

    def test_valid_paths_keep_order(self, reference_topology: Topology) -> None:
        """Test that supplied paths become ranked candidates."""
        request = TrafficRequest("r", 0, 2, 10.0)

        candidates = build_supplied_paths(
            reference_topology, request, [[0, 3, 2], [0, 1, 2]]
        )

        assert [path.nodes for path in candidates] == [(0, 3, 2), (0, 1, 2)]
        assert candidates[0].distance == 850.0

    @pytest.mark.parametrize(
        "node_paths,message",
        [
            ([], "empty"),
            ([[0, 1]], "does not join"),
            ([[0, 2]], "No link"),
            ([[0, 1, 2], [0, 1, 2]], "duplicated"),
            ([[0, 1, 0, 3, 2]], "revisits"),
        ],
    )
    def test_invalid_paths_are_rejected(
        self, reference_topology: Topology, node_paths: list[Any], message: str
    ) -> None:
        """Test every supplied path defect."""
        request = TrafficRequest("r", 0, 2, 10.0)

        with pytest.raises(InputValidationError, match=message):
            build_supplied_paths(reference_topology, request, node_paths)


class TestGenerateCandidatePaths:
    """Tests for per-request candidate generation."""

    def test_unroutable_request_gets_empty_set(self, square_topology: Topology) -> None:
        """Test that NoPathError does not abort generation."""
        requests = [TrafficRequest("ok", 0, 2, 10.0), TrafficRequest("cut", 1, 9, 10.0)]

        candidates = generate_candidate_paths(
            square_topology, requests, PlanningConfig(spectrum_ceiling=10, k_paths=2)
        )

        assert len(candidates["ok"]) == 2
        assert candidates["cut"] == ()

    def test_threaded_generation_matches_sequential(
        self, reference_topology: Topology
    ) -> None:
        """Test that a worker pool gives the same candidates in the same order."""
        requests = [
            TrafficRequest(i, source, destination, 10.0)
            for i, (source, destination) in enumerate(
                [(0, 2), (1, 3), (4, 0), (2, 4), (3, 1)]
            )
        ]

        sequential = generate_candidate_paths(
            reference_topology, requests, PlanningConfig(spectrum_ceiling=10)
        )
        threaded = generate_candidate_paths(
            reference_topology,
            requests,
            PlanningConfig(spectrum_ceiling=10, path_workers=4),
        )

        assert list(threaded) == list(sequential)
        assert threaded == sequential

    def test_supplied_paths_take_precedence(self, reference_topology: Topology) -> None:
        """Test that supplied paths replace generated ones."""
        requests = [TrafficRequest("r", 0, 2, 10.0)]

        candidates = generate_candidate_paths(
            reference_topology,
            requests,
            PlanningConfig(spectrum_ceiling=10),
            supplied_paths={"r": [(0, 3, 2)]},
        )

        assert [path.nodes for path in candidates["r"]] == [(0, 3, 2)]


def test_find_k_shortest_paths(reference_topology: Topology) -> None:
    """Test the functional form on the reference pair."""
    paths = find_k_shortest_paths(reference_topology, 0, 2, 2, request_id="r")

    assert [(path.nodes, path.distance) for path in paths] == [
        ((0, 1, 2), 500.0),
        ((0, 3, 2), 850.0),
    ]
    assert {path.request_id for path in paths} == {"r"}
