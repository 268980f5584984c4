"""Shared fixtures for rsaplan tests.

The reference scenario is the 5-node topology

    (0,1):200  (0,3):500  (1,2):300  (1,4):400  (3,4):250  (2,3):350

with one request 0 -> 2, K = 2 (p1 = 0-1-2 at 500, p2 = 0-3-2 at 850),
modulations m1 (reach 400) and m2 (reach 600), required slots
(p1,m1)=10, (p1,m2)=8, (p2,m2)=12, guard band 1 and ceiling 100.
"""

from typing import Any

import pytest

from rsaplan.domain.config import PlanningConfig
from rsaplan.domain.instance import PlanningInstance
from rsaplan.domain.network import Link, Modulation, Topology
from rsaplan.domain.request import CandidatePath, TrafficRequest
from rsaplan.routing.k_shortest_path import generate_candidate_paths

REFERENCE_LINKS = [
    (0, 1, 200.0),
    (0, 3, 500.0),
    (1, 2, 300.0),
    (1, 4, 400.0),
    (3, 4, 250.0),
    (2, 3, 350.0),
]

P1 = (0, 1, 2)
P2 = (0, 3, 2)


@pytest.fixture
def reference_topology() -> Topology:
    """Create the reference 5-node topology.

    :return: Topology with nodes 0..4 and six links.
    :rtype: Topology
    """
    return Topology(range(5), [Link(a, b, d) for a, b, d in REFERENCE_LINKS])


@pytest.fixture
def reference_config() -> PlanningConfig:
    """Create the reference planning configuration.

    :return: Config with K=2, guard band 1 and a 100-slot ceiling.
    :rtype: PlanningConfig
    """
    return PlanningConfig(spectrum_ceiling=100, guard_band=1, k_paths=2)


@pytest.fixture
def reference_modulations() -> list[Modulation]:
    """Create the two reference modulation formats."""
    return [Modulation("m1", reach=400.0), Modulation("m2", reach=600.0)]


@pytest.fixture
def reference_slot_overrides() -> dict[tuple, int]:
    """Required slot counts of the reference scenario."""
    return {
        (0, P1, "m1"): 10,
        (0, P1, "m2"): 8,
        (0, P2, "m2"): 12,
    }


@pytest.fixture
def reference_instance(
    reference_topology: Topology,
    reference_config: PlanningConfig,
    reference_modulations: list[Modulation],
    reference_slot_overrides: dict[tuple, int],
) -> PlanningInstance:
    """Create the single-request reference planning instance.

    :return: Instance with request 0 from node 0 to node 2.
    :rtype: PlanningInstance
    """
    return PlanningInstance(
        topology=reference_topology,
        requests=[TrafficRequest(0, 0, 2, 100.0)],
        modulations=reference_modulations,
        config=reference_config,
        slot_overrides=reference_slot_overrides,
    )


@pytest.fixture
def reference_candidates(
    reference_instance: PlanningInstance,
) -> dict[Any, tuple[CandidatePath, ...]]:
    """Generated candidate paths of the reference instance."""
    return generate_candidate_paths(
        reference_instance.topology,
        reference_instance.requests,
        reference_instance.config,
    )


@pytest.fixture
def multi_request_instance(
    reference_topology: Topology,
    reference_config: PlanningConfig,
    reference_modulations: list[Modulation],
) -> PlanningInstance:
    """Create a three-request instance on the reference topology.

    Requests a (0->2) and b (1->2) share link (1,2); request c (3->4)
    uses a disjoint single-hop route. Slot counts follow the demand-based
    derivation (100 Gb/s over 12.5 Gb/s slots = 8 slots).
    """
    return PlanningInstance(
        topology=reference_topology,
        requests=[
            TrafficRequest("a", 0, 2, 100.0),
            TrafficRequest("b", 1, 2, 100.0),
            TrafficRequest("c", 3, 4, 100.0),
        ],
        modulations=reference_modulations,
        config=reference_config,
        supplied_paths={"a": [P1], "b": [(1, 2)], "c": [(3, 4)]},
    )


@pytest.fixture
def multi_request_candidates(
    multi_request_instance: PlanningInstance,
) -> dict[Any, tuple[CandidatePath, ...]]:
    """Candidate paths of the three-request instance."""
    return generate_candidate_paths(
        multi_request_instance.topology,
        multi_request_instance.requests,
        multi_request_instance.config,
        multi_request_instance.supplied_paths,
    )
