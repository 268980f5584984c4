"""
Solver adapter backed by pulp.

Hands the built program to any solver pulp can drive (CBC by default),
maps pulp's solution status onto :class:`SolveStatus` and decodes the
variable values into an :class:`Assignment`.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import pulp
from pulp import LpStatus, LpVariable

from rsaplan.domain.assignment import (
    Assignment,
    RequestAssignment,
    Side,
    SpectrumBlock,
)
from rsaplan.domain.request import RejectReason, RequestId
from rsaplan.errors import ConfigError, InfeasibleModelError, SolverTimeout
from rsaplan.solvers.base import AbstractSolverAdapter, SolverResult, SolveStatus
from rsaplan.utils.logging_config import get_logger

if TYPE_CHECKING:
    from rsaplan.domain.config import PlanningConfig
    from rsaplan.modeling.model_builder import RsaModel

logger = get_logger(__name__)

# pulp sol_status codes
_SOLUTION_STATUS = {
    pulp.LpSolutionOptimal: SolveStatus.OPTIMAL,
    pulp.LpSolutionIntegerFeasible: SolveStatus.FEASIBLE,
    pulp.LpSolutionNoSolutionFound: SolveStatus.TIMEOUT_NO_SOLUTION,
    pulp.LpSolutionInfeasible: SolveStatus.INFEASIBLE,
    pulp.LpSolutionUnbounded: SolveStatus.ERROR,
}


def _is_set(variable: LpVariable | None) -> bool:
    return variable is not None and (variable.varValue or 0.0) > 0.5


def _int_value(variable: LpVariable) -> int:
    return int(round(variable.varValue or 0.0))


class PulpSolverAdapter(AbstractSolverAdapter):
    """
    Solve RSA models with a pulp-supported engine.

    :param solver_name: pulp solver identifier, e.g. ``PULP_CBC_CMD``
    :type solver_name: str
    :param msg: Echo the solver log
    :type msg: bool
    """

    def __init__(self, solver_name: str = "PULP_CBC_CMD", msg: bool = False) -> None:
        self._solver_name = solver_name
        self.msg = msg

    @classmethod
    def from_config(cls, config: PlanningConfig) -> PulpSolverAdapter:
        """Create an adapter from the solver settings of a configuration."""
        return cls(solver_name=config.solver_name, msg=config.solver_msg)

    @property
    def solver_name(self) -> str:
        return self._solver_name

    def _make_solver(self, time_limit_s: float | None) -> pulp.LpSolver:
        options: dict = {"msg": self.msg}
        if time_limit_s is not None:
            options["timeLimit"] = time_limit_s
        try:
            solver = pulp.getSolver(self._solver_name, **options)
        except pulp.PulpSolverError as e:
            raise ConfigError(f"Unknown solver '{self._solver_name}'") from e
        if not solver.available():
            raise ConfigError(f"Solver '{self._solver_name}' is not available")
        return solver

    def solve(self, model: RsaModel, time_limit_s: float | None = None) -> SolverResult:
        """
        Solve a built model.

        A budget given here wins over ``model.config.time_limit_s``.

        :param model: Built RSA model
        :type model: RsaModel
        :param time_limit_s: Wall-clock budget in seconds
        :type time_limit_s: float | None
        :return: Solve result; FEASIBLE marks an unproven incumbent
        :rtype: SolverResult
        :raises ConfigError: If the solver is unknown or not installed
        :raises InfeasibleModelError: If the model is proven infeasible
        :raises SolverTimeout: If the budget runs out without an incumbent
        """
        if time_limit_s is None:
            time_limit_s = model.config.time_limit_s
        solver = self._make_solver(time_limit_s)

        logger.info(
            "Solving with %s (time limit: %s)",
            self._solver_name,
            f"{time_limit_s:g}s" if time_limit_s is not None else "none",
        )
        started = time.perf_counter()
        try:
            model.problem.solve(solver)
        except pulp.PulpSolverError as e:
            runtime = time.perf_counter() - started
            logger.error("Solver %s failed: %s", self._solver_name, e)
            return SolverResult(
                status=SolveStatus.ERROR,
                assignment=None,
                objective=None,
                proven_optimal=False,
                runtime_s=runtime,
                solver_name=self._solver_name,
            )
        runtime = time.perf_counter() - started

        status = _SOLUTION_STATUS.get(model.problem.sol_status, SolveStatus.ERROR)
        logger.info(
            "Solver finished in %.3fs: %s (%s)",
            runtime,
            status.value,
            LpStatus.get(model.problem.status, "Unknown"),
        )

        if status is SolveStatus.INFEASIBLE:
            raise InfeasibleModelError(
                "Solver reported the RSA model infeasible; rejecting every "
                "request should always be feasible"
            )
        if status is SolveStatus.TIMEOUT_NO_SOLUTION:
            raise SolverTimeout(
                f"No feasible assignment found within {time_limit_s}s"
                if time_limit_s is not None
                else "Solver stopped without a feasible assignment"
            )
        if not status.has_solution:
            return SolverResult(
                status=status,
                assignment=None,
                objective=None,
                proven_optimal=False,
                runtime_s=runtime,
                solver_name=self._solver_name,
            )

        proven_optimal = status is SolveStatus.OPTIMAL
        if not proven_optimal:
            logger.warning("Time budget exhausted; incumbent is not proven optimal")
        assignment = decode_assignment(model, proven_optimal, status.value)
        return SolverResult(
            status=status,
            assignment=assignment,
            objective=model.problem.objective.value(),
            proven_optimal=proven_optimal,
            runtime_s=runtime,
            solver_name=self._solver_name,
        )


def _decode_request(model: RsaModel, request_id: RequestId) -> RequestAssignment:
    if not _is_set(model.accept[request_id]):
        reason = (
            RejectReason.NO_FEASIBLE_PATH
            if request_id in model.unacceptable
            else RejectReason.SPECTRUM_EXHAUSTED
        )
        return RequestAssignment.rejected(request_id, reason)

    path = next(
        (
            candidate
            for candidate in model.candidates[request_id]
            if _is_set(model.use_path[request_id, candidate.index])
        ),
        None,
    )
    modulation = None
    if path is not None:
        modulation = next(
            (
                option.modulation
                for option in model.feasible_options[request_id]
                if option.path.index == path.index
                and _is_set(
                    model.use_mod[request_id, path.index, option.modulation.name]
                )
            ),
            None,
        )

    start = _int_value(model.start[request_id])
    length = _int_value(model.length[request_id])
    block = SpectrumBlock(start=start, end=start + length - 1) if length > 0 else None

    side = None
    if _is_set(model.left[request_id]):
        side = Side.LEFT
    elif _is_set(model.right[request_id]):
        side = Side.RIGHT

    zone = next(
        (
            zone.name
            for zone in model.instance.zones
            if _is_set(model.in_zone[request_id, zone.name])
        ),
        None,
    )
    return RequestAssignment(
        request_id=request_id,
        accepted=True,
        path=path,
        modulation=modulation,
        block=block,
        side=side,
        zone=zone,
    )


def decode_assignment(
    model: RsaModel, proven_optimal: bool = False, status: str = ""
) -> Assignment:
    """
    Read an assignment out of a solved model.

    Per-request decoding is literal: inconsistent variable values are
    carried into the assignment as-is so that the validator reports them.
    S_max is the highest decoded block end rather than the solver value.

    :param model: Solved RSA model
    :type model: RsaModel
    :param proven_optimal: Whether the solver proved optimality
    :type proven_optimal: bool
    :param status: Solver status label
    :type status: str
    :return: Decoded assignment
    :rtype: Assignment
    """
    outcomes = {
        request_id: _decode_request(model, request_id)
        for request_id in model.instance.request_ids
    }
    accepted = sum(1 for request_id in outcomes if _is_set(model.accept[request_id]))
    # s_max is only bounded from below in the model; an incumbent may overshoot
    ends = [
        outcome.block.end
        for request_id, outcome in outcomes.items()
        if _is_set(model.accept[request_id]) and outcome.block is not None
    ]
    s_max = max(ends) if ends else None
    return Assignment(
        requests=outcomes,
        s_max=s_max,
        objective=accepted,
        proven_optimal=proven_optimal,
        status=status,
        metadata={"statistics": model.statistics()},
    )
