"""Unit tests for rsaplan.errors module."""

import pytest

from rsaplan.errors import (
    ConfigError,
    InfeasibleModelError,
    InputValidationError,
    NodeNotFoundError,
    NoPathError,
    RsaPlanError,
    SolverTimeout,
    ValidatorMismatch,
)
from rsaplan.validation.validator import ValidationReport, Violation


@pytest.mark.parametrize(
    "error_class",
    [
        ConfigError,
        InputValidationError,
        NodeNotFoundError,
        NoPathError,
        InfeasibleModelError,
        SolverTimeout,
    ],
)
def test_errors_share_base_class(error_class: type[Exception]) -> None:
    """Test that every planner error can be caught as RsaPlanError."""
    with pytest.raises(RsaPlanError):
        raise error_class("boom")


def test_node_not_found_is_an_input_error() -> None:
    """Test that unknown endpoints abort like other input defects."""
    assert issubclass(NodeNotFoundError, InputValidationError)


def test_validator_mismatch_lists_violations() -> None:
    """Test the message built from an attached report."""
    report = ValidationReport(
        (
            Violation("guard_band", ("a", "b"), "blocks overlap"),
            Violation("s_max", (), "S_max is missing"),
        )
    )

    error = ValidatorMismatch(report)

    assert error.report is report
    assert str(error).splitlines() == [
        "2 violation(s):",
        "  - [guard_band] blocks overlap",
        "  - [s_max] S_max is missing",
    ]
