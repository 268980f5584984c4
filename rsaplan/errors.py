"""Exception hierarchy for the rsaplan planning pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rsaplan.validation.validator import ValidationReport


class RsaPlanError(Exception):
    """Base exception for planner errors.

    All planner exceptions inherit from this class, allowing for broad
    exception handling at the command-line boundary.
    """


class ConfigError(RsaPlanError):
    """Raised when a planning setting is missing or out of range."""


class InputValidationError(RsaPlanError):
    """Raised when topology, traffic or path references are inconsistent.

    This covers links or paths naming unknown nodes, duplicate identifiers,
    supplied candidate paths that are not walks over the topology, and
    explicitly empty candidate path lists. It aborts before model building.
    """


class NodeNotFoundError(InputValidationError):
    """Raised when a request endpoint is not part of the topology."""


class NoPathError(RsaPlanError):
    """Raised when two existing nodes are not connected by any simple path.

    The pipeline does not abort on this error; the affected request is
    recorded with an empty candidate set and can never be accepted.
    """


class InfeasibleModelError(RsaPlanError):
    """Raised when the solver proves the constraint system infeasible.

    Rejecting every request is always feasible, so this indicates a big-M
    sizing or constraint construction defect and is fatal.
    """


class SolverTimeout(RsaPlanError):
    """Raised when the solver budget expires before any incumbent is found."""


class ValidatorMismatch(RsaPlanError):
    """Raised when a solver assignment fails independent validation.

    The full validation report is attached so callers can surface every
    violated rule.
    """

    def __init__(self, report: ValidationReport) -> None:
        self.report = report
        lines = [f"{len(report.violations)} violation(s):"]
        lines.extend(f"  - {violation}" for violation in report.violations)
        super().__init__("\n".join(lines))
