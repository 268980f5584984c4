"""
rsaplan Domain Model Package.

This package contains the typed domain objects of the planner:
- PlanningConfig: Immutable planning configuration
- Link, Modulation, Zone, Topology: Physical network
- TrafficRequest, CandidatePath, RejectReason: Demands and their routes
- SpectrumBlock, Side, RequestAssignment, Assignment: Solutions
- PlanningInstance: All static input of one run
"""

from rsaplan.domain.assignment import (
    Assignment,
    RequestAssignment,
    Side,
    SpectrumBlock,
)
from rsaplan.domain.config import PlanningConfig
from rsaplan.domain.instance import PlanningInstance
from rsaplan.domain.network import Link, Modulation, Topology, Zone
from rsaplan.domain.request import CandidatePath, RejectReason, TrafficRequest

__all__ = [
    "Assignment",
    "CandidatePath",
    "Link",
    "Modulation",
    "PlanningConfig",
    "PlanningInstance",
    "RejectReason",
    "RequestAssignment",
    "Side",
    "SpectrumBlock",
    "Topology",
    "TrafficRequest",
    "Zone",
]
