"""
Abstract base class for RSA solver adapters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from rsaplan.domain.assignment import Assignment

if TYPE_CHECKING:
    from rsaplan.modeling.model_builder import RsaModel


class SolveStatus(Enum):
    """
    Outcome of a solver call.

    OPTIMAL and FEASIBLE carry an assignment; FEASIBLE means the budget ran
    out with an incumbent that is not proven optimal.
    """

    OPTIMAL = "optimal"
    FEASIBLE = "feasible"
    TIMEOUT_NO_SOLUTION = "timeout_no_solution"
    INFEASIBLE = "infeasible"
    ERROR = "error"

    @property
    def has_solution(self) -> bool:
        """True if the status carries an assignment."""
        return self in (SolveStatus.OPTIMAL, SolveStatus.FEASIBLE)


@dataclass(frozen=True)
class SolverResult:
    """
    Result of solving a built model.

    Attributes:
        status: Solve outcome
        assignment: Decoded assignment (None without a solution)
        objective: Raw objective value reported by the solver
        proven_optimal: True when the solver proved optimality
        runtime_s: Wall-clock solve time in seconds
        solver_name: Identifier of the engine that produced the result
    """

    status: SolveStatus
    assignment: Assignment | None
    objective: float | None
    proven_optimal: bool
    runtime_s: float
    solver_name: str = ""


class AbstractSolverAdapter(ABC):
    """
    Base class for solver adapters.

    An adapter accepts a built constraint system and a time budget and
    returns an assignment, an objective value and an optimality-proof flag.
    Any integer-program engine can implement this interface without
    touching the path generator, model builder or validator.
    """

    @property
    @abstractmethod
    def solver_name(self) -> str:
        """
        Return the name of the solving engine.

        :return: Engine identifier
        :rtype: str
        """

    @abstractmethod
    def solve(self, model: RsaModel, time_limit_s: float | None = None) -> SolverResult:
        """
        Solve a built model.

        :param model: Built RSA model, read-only
        :type model: RsaModel
        :param time_limit_s: Wall-clock budget in seconds (None = unbounded)
        :type time_limit_s: float | None
        :return: Solve result with a decoded assignment when one was found
        :rtype: SolverResult
        :raises InfeasibleModelError: If the solver proves the model infeasible
        :raises SolverTimeout: If the budget runs out without an incumbent
        """
