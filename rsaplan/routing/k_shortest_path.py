"""
K-Shortest Path candidate generation.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from threading import Lock
from typing import Any

import networkx as nx

from rsaplan.domain.config import PlanningConfig
from rsaplan.domain.network import Node, Topology, node_sort_key
from rsaplan.domain.request import CandidatePath, RequestId, TrafficRequest
from rsaplan.errors import ConfigError, InputValidationError, NoPathError
from rsaplan.utils.logging_config import get_logger

logger = get_logger(__name__)

# Distances closer than this are treated as ties when cutting at K
TIE_TOLERANCE = 1e-9


def _rank_key(distance: float, nodes: Sequence[Node]) -> tuple[float, tuple]:
    return (round(distance, 9), tuple(map(node_sort_key, nodes)))


class KShortestPath:
    """
    K-Shortest loopless path generator.

    Enumerates simple paths in ascending distance order with networkx's
    Yen-style ``shortest_simple_paths`` over the ``length`` edge attribute.
    Every path tied with the K-th one is collected before ranking, so the
    cut at K depends only on distances and node sequences and is identical
    across runs.

    :param topology: Physical topology
    :type topology: Topology
    :param k_paths_count: Maximum number of paths per request
    :type k_paths_count: int
    """

    def __init__(self, topology: Topology, k_paths_count: int) -> None:
        if k_paths_count < 1:
            raise ConfigError(f"k must be positive, got {k_paths_count}")
        self.topology = topology
        self.k_paths_count = k_paths_count
        self.routing_weight = "length"
        self._path_count = 0
        self._total_hops = 0
        self._metrics_lock = Lock()

    @property
    def algorithm_name(self) -> str:
        """
        Get the name of the routing algorithm.

        :return: The algorithm name 'k_shortest_path'.
        :rtype: str
        """
        return "k_shortest_path"

    def get_paths(self, source: Node, destination: Node) -> list[list[Node]]:
        """
        Get up to K shortest simple paths between two nodes.

        :param source: Source node identifier.
        :type source: Node
        :param destination: Destination node identifier.
        :type destination: Node
        :return: Node sequences ranked by (distance, node sequence).
        :rtype: list[list[Node]]
        :raises NodeNotFoundError: If an endpoint is not in the topology.
        :raises NoPathError: If the endpoints are not connected.
        """
        self.topology.require_node(source)
        self.topology.require_node(destination)
        graph = self.topology.graph

        collected: list[tuple[tuple[float, tuple], list[Node]]] = []
        kth_distance: float | None = None
        try:
            for path in nx.shortest_simple_paths(
                graph, source, destination, weight=self.routing_weight
            ):
                distance = nx.path_weight(graph, path, weight=self.routing_weight)
                if kth_distance is not None and distance > kth_distance + TIE_TOLERANCE:
                    break
                collected.append((_rank_key(distance, path), list(path)))
                if len(collected) == self.k_paths_count:
                    kth_distance = distance
        except nx.NetworkXNoPath as e:
            raise NoPathError(
                f"No path between {source!r} and {destination!r}"
            ) from e

        collected.sort(key=lambda item: item[0])
        return [path for _, path in collected[: self.k_paths_count]]

    def generate(self, request: TrafficRequest) -> tuple[CandidatePath, ...]:
        """
        Generate the ranked candidate paths of one request.

        :param request: Traffic request
        :type request: TrafficRequest
        :return: Candidate paths owned by the request
        :rtype: tuple[CandidatePath, ...]
        :raises NodeNotFoundError: If an endpoint is not in the topology.
        :raises NoPathError: If the endpoints are not connected.
        """
        node_paths = self.get_paths(request.source, request.destination)
        candidates = tuple(
            CandidatePath(
                request_id=request.request_id,
                index=index,
                nodes=tuple(nodes),
                links=self.topology.links_along(nodes),
            )
            for index, nodes in enumerate(node_paths)
        )

        with self._metrics_lock:
            self._path_count += len(candidates)
            self._total_hops += sum(path.hops for path in candidates)
        logger.debug(
            "Request %r: %d candidate path(s) %s",
            request.request_id,
            len(candidates),
            [f"{path.label} ({path.distance:g})" for path in candidates],
        )
        return candidates

    def get_metrics(self) -> dict[str, Any]:
        """
        Get path generation metrics.

        :return: Algorithm name, paths computed, average hop count and K.
        :rtype: dict[str, Any]
        """
        avg_hops = self._total_hops / self._path_count if self._path_count > 0 else 0

        return {
            "algorithm": self.algorithm_name,
            "paths_computed": self._path_count,
            "average_hop_count": avg_hops,
            "k_value": self.k_paths_count,
            "weight_metric": self.routing_weight,
        }


def find_k_shortest_paths(
    topology: Topology,
    source: Node,
    destination: Node,
    k: int,
    request_id: RequestId = None,
) -> tuple[CandidatePath, ...]:
    """
    Find up to K shortest loopless paths between two nodes.

    :param topology: Physical topology
    :type topology: Topology
    :param source: Source node
    :type source: Node
    :param destination: Destination node
    :type destination: Node
    :param k: Maximum number of paths
    :type k: int
    :param request_id: Owner recorded on the returned paths
    :type request_id: RequestId
    :return: Candidate paths ranked by distance, then node sequence
    :rtype: tuple[CandidatePath, ...]
    :raises ConfigError: If k is below 1
    :raises NodeNotFoundError: If an endpoint is not in the topology
    :raises NoPathError: If the endpoints are not connected
    """
    generator = KShortestPath(topology, k)
    return tuple(
        CandidatePath(
            request_id=request_id,
            index=index,
            nodes=tuple(nodes),
            links=topology.links_along(nodes),
        )
        for index, nodes in enumerate(generator.get_paths(source, destination))
    )


def build_supplied_paths(
    topology: Topology,
    request: TrafficRequest,
    node_paths: Sequence[Sequence[Node]],
) -> tuple[CandidatePath, ...]:
    """
    Turn externally supplied node sequences into candidate paths.

    :param topology: Physical topology
    :type topology: Topology
    :param request: Owning request
    :type request: TrafficRequest
    :param node_paths: Node sequences in rank order
    :type node_paths: Sequence[Sequence[Node]]
    :return: Candidate paths in the given order
    :rtype: tuple[CandidatePath, ...]
    :raises InputValidationError: If the list is empty, a path repeats,
        does not join the request endpoints, or uses a missing link
    """
    if not node_paths:
        raise InputValidationError(
            f"Request {request.request_id!r} was given an empty candidate path list"
        )

    candidates: list[CandidatePath] = []
    seen: set[tuple[Node, ...]] = set()
    for index, raw_nodes in enumerate(node_paths):
        nodes = tuple(raw_nodes)
        if len(nodes) < 2 or (nodes[0], nodes[-1]) != request.endpoints:
            raise InputValidationError(
                f"Path {list(nodes)} of request {request.request_id!r} does not "
                f"join {request.source!r} and {request.destination!r}"
            )
        if nodes in seen:
            raise InputValidationError(
                f"Path {list(nodes)} of request {request.request_id!r} is duplicated"
            )
        seen.add(nodes)
        candidates.append(
            CandidatePath(
                request_id=request.request_id,
                index=index,
                nodes=nodes,
                links=topology.links_along(nodes),
            )
        )
    return tuple(candidates)


def generate_candidate_paths(
    topology: Topology,
    requests: Sequence[TrafficRequest],
    config: PlanningConfig,
    supplied_paths: Mapping[RequestId, Sequence[Sequence[Node]]] | None = None,
) -> dict[RequestId, tuple[CandidatePath, ...]]:
    """
    Produce the candidate path set of every request.

    Requests with supplied paths are validated; the others get up to
    ``config.k_paths`` generated paths. Generation may run on a thread pool
    of ``config.path_workers`` workers; each worker only produces the
    candidates of its own request and the results are joined before
    returning.

    :param topology: Physical topology
    :type topology: Topology
    :param requests: Traffic requests
    :type requests: Sequence[TrafficRequest]
    :param config: Planning configuration
    :type config: PlanningConfig
    :param supplied_paths: Optional explicit node sequences per request
    :type supplied_paths: Mapping[RequestId, Sequence[Sequence[Node]]] | None
    :return: Candidate paths per request id, in request order; unroutable
        requests map to an empty tuple
    :rtype: dict[RequestId, tuple[CandidatePath, ...]]
    """
    supplied_paths = supplied_paths or {}
    generator = KShortestPath(topology, config.k_paths)

    def _candidates_for(request: TrafficRequest) -> tuple[CandidatePath, ...]:
        if request.request_id in supplied_paths:
            return build_supplied_paths(
                topology, request, supplied_paths[request.request_id]
            )
        try:
            return generator.generate(request)
        except NoPathError as e:
            logger.warning("Request %r is unroutable: %s", request.request_id, e)
            return ()

    if config.path_workers > 1 and len(requests) > 1:
        with ThreadPoolExecutor(max_workers=config.path_workers) as executor:
            results = list(executor.map(_candidates_for, requests))
    else:
        results = [_candidates_for(request) for request in requests]

    candidates = {
        request.request_id: result for request, result in zip(requests, results)
    }
    logger.info(
        "Generated candidate paths for %d request(s), %d unroutable",
        len(candidates),
        sum(1 for paths in candidates.values() if not paths),
    )
    return candidates
