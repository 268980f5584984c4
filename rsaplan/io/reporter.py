"""
Planning reporter for formatting and writing planning results.

This module turns a validated assignment into a flat report and renders it
as log text, JSON or a CSV table, separating presentation from solving.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from rsaplan.domain.assignment import Assignment
from rsaplan.domain.instance import PlanningInstance
from rsaplan.solvers.base import SolverResult
from rsaplan.utils.logging_config import get_logger

logger = get_logger(__name__)

REPORT_FORMATS = ("text", "json", "csv")

# Column order of the per-request table
COLUMNS = [
    "request_id",
    "source",
    "destination",
    "demand",
    "accepted",
    "path",
    "links",
    "distance",
    "modulation",
    "block_start",
    "block_end",
    "slots",
    "side",
    "zone",
    "reject_reason",
]


def spectrum_occupancy(
    instance: PlanningInstance, assignment: Assignment
) -> dict[str, np.ndarray]:
    """
    Build the slot occupancy matrix of every link.

    :param instance: Planning instance
    :type instance: PlanningInstance
    :param assignment: Validated assignment
    :type assignment: Assignment
    :return: Boolean occupancy array of length ``spectrum_ceiling`` per link
    :rtype: dict[str, np.ndarray]
    """
    ceiling = instance.config.spectrum_ceiling
    occupancy = {
        str(link): np.zeros(ceiling, dtype=bool) for link in instance.topology.links
    }
    for outcome in assignment.accepted:
        if outcome.path is None or outcome.block is None:
            continue
        for link in outcome.path.links:
            occupancy[str(link)][outcome.block.start : outcome.block.stop] = True
    return occupancy


def _join_sequence(value: Any) -> str | None:
    if isinstance(value, list):
        return "-".join(map(str, value))
    return None


@dataclass(frozen=True)
class PlanningReport:
    """
    Flat, serializable summary of a planning run.

    Attributes:
        run_name: Label of the run
        status: Solver status label
        proven_optimal: True when the solver proved optimality
        objective: Number of accepted requests
        total_requests: Number of requests in the instance
        s_max: Highest used slot index (None when nothing is accepted)
        runtime_s: Solve time in seconds
        rows: One record per request, keyed by :data:`COLUMNS`
        link_utilization: Fraction of occupied slots per link
    """

    run_name: str
    status: str
    proven_optimal: bool
    objective: int
    total_requests: int
    s_max: int | None
    runtime_s: float
    rows: tuple[dict[str, Any], ...]
    link_utilization: dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_result(
        cls,
        instance: PlanningInstance,
        result: SolverResult,
        run_name: str = "rsa",
    ) -> PlanningReport:
        """
        Build a report from a solver result carrying an assignment.

        :raises ValueError: If the result has no assignment
        """
        assignment = result.assignment
        if assignment is None:
            raise ValueError("Cannot report a result without an assignment")

        rows = []
        for request in instance.requests:
            outcome = assignment.requests[request.request_id]
            row: dict[str, Any] = dict.fromkeys(COLUMNS)
            row.update(
                request_id=request.request_id,
                source=request.source,
                destination=request.destination,
                demand=request.demand,
                accepted=outcome.accepted,
            )
            if outcome.accepted:
                row.update(
                    path=list(outcome.path.nodes) if outcome.path else None,
                    links=[str(link) for link in outcome.path.links]
                    if outcome.path
                    else None,
                    distance=outcome.path.distance if outcome.path else None,
                    modulation=outcome.modulation.name if outcome.modulation else None,
                    block_start=outcome.block.start if outcome.block else None,
                    block_end=outcome.block.end if outcome.block else None,
                    slots=outcome.block.length if outcome.block else None,
                    side=outcome.side.value if outcome.side else None,
                    zone=outcome.zone,
                )
            else:
                row["reject_reason"] = (
                    outcome.reject_reason.value if outcome.reject_reason else None
                )
            rows.append(row)

        utilization = {
            link: float(np.mean(slots))
            for link, slots in spectrum_occupancy(instance, assignment).items()
        }
        return cls(
            run_name=run_name,
            status=result.status.value,
            proven_optimal=result.proven_optimal,
            objective=assignment.objective,
            total_requests=len(instance.requests),
            s_max=assignment.s_max,
            runtime_s=result.runtime_s,
            rows=tuple(rows),
            link_utilization=utilization,
        )

    @property
    def accepted_count(self) -> int:
        return sum(1 for row in self.rows if row["accepted"])

    def to_dict(self) -> dict[str, Any]:
        """Return the report as a JSON-serializable dictionary."""
        return {
            "run_name": self.run_name,
            "status": self.status,
            "proven_optimal": self.proven_optimal,
            "objective": self.objective,
            "accepted": self.accepted_count,
            "total_requests": self.total_requests,
            "s_max": self.s_max,
            "runtime_s": round(self.runtime_s, 6),
            "requests": [dict(row) for row in self.rows],
            "link_utilization": dict(self.link_utilization),
        }

    def to_dataframe(self) -> pd.DataFrame:
        """Return the per-request table as a DataFrame."""
        frame = pd.DataFrame(list(self.rows), columns=COLUMNS)
        for column in ("path", "links"):
            frame[column] = frame[column].map(_join_sequence)
        return frame


class PlanningReporter:
    """Handle reporting and output of planning results.

    :param logger: Logger instance to use (creates one if not provided)
    :type logger: logging.Logger | None
    :param verbose: Log one line per request as well as the summary
    :type verbose: bool
    """

    def __init__(self, logger: logging.Logger | None = None, verbose: bool = True):
        self.logger = logger or get_logger(__name__)
        self.verbose = verbose

    def render_text(self, report: PlanningReport) -> str:
        """Render a human-readable summary."""
        lines = [
            "=" * 60,
            f"RSA PLAN: {report.run_name}",
            "=" * 60,
            f"Status: {report.status} "
            f"({'proven optimal' if report.proven_optimal else 'not proven optimal'})",
            f"Accepted: {report.accepted_count}/{report.total_requests}",
            f"S_max: {report.s_max if report.s_max is not None else '-'}",
            f"Solve time: {report.runtime_s:.3f}s",
        ]
        if self.verbose:
            lines.append("-" * 60)
            for row in report.rows:
                if row["accepted"]:
                    lines.append(
                        f"request {row['request_id']}: {row['source']} -> "
                        f"{row['destination']} via {'-'.join(map(str, row['path'] or []))} "
                        f"[{row['modulation']}] slots [{row['block_start']}, "
                        f"{row['block_end']}] {row['side']} in zone {row['zone']}"
                    )
                else:
                    lines.append(
                        f"request {row['request_id']}: {row['source']} -> "
                        f"{row['destination']} rejected ({row['reject_reason']})"
                    )
        lines.append("=" * 60)
        return "\n".join(lines)

    def log_report(self, report: PlanningReport) -> None:
        """Log the text rendering line by line."""
        for line in self.render_text(report).splitlines():
            self.logger.info(line)

    def write(self, report: PlanningReport, output_path: str | Path, fmt: str) -> Path:
        """
        Write a report to a file.

        :param report: Report to write
        :type report: PlanningReport
        :param output_path: Destination file
        :type output_path: str | Path
        :param fmt: One of ``text``, ``json`` or ``csv``
        :type fmt: str
        :return: Path written
        :rtype: Path
        :raises ValueError: If the format is unknown
        """
        if fmt not in REPORT_FORMATS:
            raise ValueError(f"Unknown report format '{fmt}'")

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        if fmt == "json":
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(report.to_dict(), f, indent=2, default=str)
        elif fmt == "csv":
            report.to_dataframe().to_csv(output_path, index=False)
        else:
            output_path.write_text(self.render_text(report) + "\n", encoding="utf-8")

        self.logger.info("Wrote %s report to %s", fmt, output_path)
        return output_path
