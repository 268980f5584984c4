"""Unit tests for rsaplan.io.reporter module."""

import json
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import pytest

from rsaplan.domain.assignment import (
    Assignment,
    RequestAssignment,
    Side,
    SpectrumBlock,
)
from rsaplan.domain.instance import PlanningInstance
from rsaplan.domain.request import CandidatePath, RejectReason
from rsaplan.io.reporter import (
    COLUMNS,
    PlanningReport,
    PlanningReporter,
    spectrum_occupancy,
)
from rsaplan.solvers.base import SolverResult, SolveStatus


@pytest.fixture
def reference_result(
    reference_instance: PlanningInstance,
    reference_candidates: dict[Any, tuple[CandidatePath, ...]],
) -> SolverResult:
    """Optimal result of the reference scenario."""
    outcome = RequestAssignment(
        request_id=0,
        accepted=True,
        path=reference_candidates[0][0],
        modulation=reference_instance.get_modulation("m2"),
        block=SpectrumBlock(0, 7),
        side=Side.LEFT,
        zone="default",
    )
    assignment = Assignment(
        requests={0: outcome}, s_max=7, objective=1, proven_optimal=True
    )
    return SolverResult(
        status=SolveStatus.OPTIMAL,
        assignment=assignment,
        objective=1 - 7 / 101,
        proven_optimal=True,
        runtime_s=0.25,
        solver_name="PULP_CBC_CMD",
    )


@pytest.fixture
def reference_report(
    reference_instance: PlanningInstance, reference_result: SolverResult
) -> PlanningReport:
    """Report of the reference scenario."""
    return PlanningReport.from_result(reference_instance, reference_result, "ref")


class TestSpectrumOccupancy:
    """Tests for per-link slot occupancy."""

    def test_only_traversed_links_are_occupied(
        self, reference_instance: PlanningInstance, reference_result: SolverResult
    ) -> None:
        """Test that the block marks slots 0..7 on links (0,1) and (1,2)."""
        occupancy = spectrum_occupancy(reference_instance, reference_result.assignment)

        expected = np.zeros(100, dtype=bool)
        expected[:8] = True
        np.testing.assert_array_equal(occupancy["(0,1)"], expected)
        np.testing.assert_array_equal(occupancy["(1,2)"], expected)
        assert not occupancy["(0,3)"].any()
        assert len(occupancy) == 6


class TestPlanningReport:
    """Tests for the flat report."""

    def test_from_result(self, reference_report: PlanningReport) -> None:
        """Test summary fields and the accepted row."""
        assert reference_report.status == "optimal"
        assert reference_report.accepted_count == 1
        assert reference_report.s_max == 7
        row = reference_report.rows[0]
        assert row["path"] == [0, 1, 2]
        assert row["links"] == ["(0,1)", "(1,2)"]
        assert row["distance"] == 500.0
        assert row["slots"] == 8
        assert row["side"] == "left"
        assert row["reject_reason"] is None
        assert reference_report.link_utilization["(0,1)"] == pytest.approx(0.08)

    def test_rejected_row(self, reference_instance: PlanningInstance) -> None:
        """Test that rejected requests only carry their reason."""
        assignment = Assignment(
            requests={0: RequestAssignment.rejected(0, RejectReason.NO_FEASIBLE_PATH)}
        )
        result = SolverResult(SolveStatus.OPTIMAL, assignment, 0.0, True, 0.1)

        report = PlanningReport.from_result(reference_instance, result)

        row = report.rows[0]
        assert row["accepted"] is False
        assert row["reject_reason"] == "no_feasible_path"
        assert row["path"] is None
        assert report.s_max is None
        assert set(report.link_utilization.values()) == {0.0}

    def test_result_without_assignment_raises(
        self, reference_instance: PlanningInstance
    ) -> None:
        """Test that only results with an assignment can be reported."""
        result = SolverResult(SolveStatus.ERROR, None, None, False, 0.0)

        with pytest.raises(ValueError):
            PlanningReport.from_result(reference_instance, result)

    def test_to_dict_is_json_serializable(
        self, reference_report: PlanningReport
    ) -> None:
        """Test the JSON-ready dictionary."""
        data = json.loads(json.dumps(reference_report.to_dict()))

        assert data["accepted"] == 1
        assert data["total_requests"] == 1
        assert data["requests"][0]["modulation"] == "m2"

    def test_to_dataframe(self, reference_report: PlanningReport) -> None:
        """Test the per-request table layout."""
        frame = reference_report.to_dataframe()

        assert list(frame.columns) == COLUMNS
        assert frame.loc[0, "path"] == "0-1-2"
        assert frame.loc[0, "links"] == "(0,1)-(1,2)"


class TestPlanningReporter:
    """Tests for rendering and writing reports."""

    def test_render_text(self, reference_report: PlanningReport) -> None:
        """Test the human-readable summary."""
        text = PlanningReporter().render_text(reference_report)

        assert "RSA PLAN: ref" in text
        assert "Accepted: 1/1" in text
        assert "S_max: 7" in text
        assert "request 0: 0 -> 2 via 0-1-2 [m2] slots [0, 7] left" in text

    def test_quiet_rendering_skips_rows(self, reference_report: PlanningReport) -> None:
        """Test that non-verbose output only has the summary."""
        text = PlanningReporter(verbose=False).render_text(reference_report)

        assert "via" not in text

    @pytest.mark.parametrize("fmt", ["json", "csv", "text"])
    def test_write(
        self, tmp_path: Path, reference_report: PlanningReport, fmt: str
    ) -> None:
        """Test that each format lands in the requested file."""
        # Arrange
        output = tmp_path / "out" / f"plan.{fmt}"

        # Act
        written = PlanningReporter().write(reference_report, output, fmt)

        # Assert
        assert written == output
        assert output.exists()
        if fmt == "json":
            assert json.loads(output.read_text())["s_max"] == 7
        elif fmt == "csv":
            frame = pd.read_csv(output)
            assert frame.loc[0, "modulation"] == "m2"
            assert frame.loc[0, "block_end"] == 7
        else:
            assert "S_max: 7" in output.read_text()

    def test_write_unknown_format_raises(
        self, tmp_path: Path, reference_report: PlanningReport
    ) -> None:
        """Test that the output format is checked."""
        with pytest.raises(ValueError, match="Unknown report format"):
            PlanningReporter().write(reference_report, tmp_path / "plan.xml", "xml")
