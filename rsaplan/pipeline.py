"""
Planning pipeline orchestration.

Runs the batch flow

    path generation -> model building -> solving -> validation -> reporting

once over a static planning instance and tracks its progress through a
small state machine. A failed validation is terminal: the pipeline stops
before reporting and raises :class:`ValidatorMismatch` with every
violation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from rsaplan.domain.instance import PlanningInstance
from rsaplan.domain.request import CandidatePath, RequestId
from rsaplan.errors import RsaPlanError, ValidatorMismatch
from rsaplan.io.reporter import PlanningReport, PlanningReporter
from rsaplan.modeling.model_builder import RsaModel, build_rsa_model
from rsaplan.routing.k_shortest_path import generate_candidate_paths
from rsaplan.solvers.base import AbstractSolverAdapter, SolverResult
from rsaplan.solvers.pulp_adapter import PulpSolverAdapter
from rsaplan.utils.logging_config import LoggerAdapter, get_logger
from rsaplan.validation.validator import ValidationReport, validate_assignment

logger = get_logger(__name__)


class PipelineStage(Enum):
    """Progress of a planning run."""

    UNSOLVED = "unsolved"
    MODEL_BUILT = "model_built"
    SOLVED = "solved"
    VALIDATED = "validated"
    VALIDATION_FAILED = "validation_failed"
    REPORTED = "reported"

    @property
    def is_terminal(self) -> bool:
        """True for stages with no successor."""
        return not _TRANSITIONS[self]


_TRANSITIONS: dict[PipelineStage, frozenset[PipelineStage]] = {
    PipelineStage.UNSOLVED: frozenset({PipelineStage.MODEL_BUILT}),
    PipelineStage.MODEL_BUILT: frozenset({PipelineStage.SOLVED}),
    PipelineStage.SOLVED: frozenset(
        {PipelineStage.VALIDATED, PipelineStage.VALIDATION_FAILED}
    ),
    PipelineStage.VALIDATED: frozenset({PipelineStage.REPORTED}),
    PipelineStage.VALIDATION_FAILED: frozenset(),
    PipelineStage.REPORTED: frozenset(),
}


@dataclass(frozen=True)
class PlanningOutcome:
    """Everything a finished run produced."""

    candidates: Mapping[RequestId, tuple[CandidatePath, ...]]
    model: RsaModel
    result: SolverResult
    validation: ValidationReport
    report: PlanningReport


class PlanningPipeline:
    """
    Single-pass planning run over one instance.

    Each step may only be called once and in order; calling a step out of
    order raises :class:`RsaPlanError`.

    :param instance: Validated planning instance
    :type instance: PlanningInstance
    :param solver: Solver adapter (pulp with the configured solver if None)
    :type solver: AbstractSolverAdapter | None
    :param run_name: Label used in log messages and reports
    :type run_name: str
    :param reporter: Reporter used for the final report
    :type reporter: PlanningReporter | None
    """

    def __init__(
        self,
        instance: PlanningInstance,
        solver: AbstractSolverAdapter | None = None,
        run_name: str = "rsa",
        reporter: PlanningReporter | None = None,
    ) -> None:
        self.instance = instance
        self.config = instance.config
        self.solver = solver or PulpSolverAdapter.from_config(instance.config)
        self.run_name = run_name
        self.reporter = reporter or PlanningReporter()
        self.log = LoggerAdapter(logger, {"run": run_name})

        self._stage = PipelineStage.UNSOLVED
        self.candidates: dict[RequestId, tuple[CandidatePath, ...]] | None = None
        self.model: RsaModel | None = None
        self.result: SolverResult | None = None
        self.validation: ValidationReport | None = None
        self.report: PlanningReport | None = None

    @property
    def stage(self) -> PipelineStage:
        return self._stage

    def _advance(self, stage: PipelineStage) -> None:
        if stage not in _TRANSITIONS[self._stage]:
            raise RsaPlanError(
                f"Cannot move planning run from {self._stage.value} to {stage.value}"
            )
        self.log.info("Stage %s -> %s", self._stage.value, stage.value)
        self._stage = stage

    def build_model(self) -> RsaModel:
        """
        Generate candidate paths and build the model.

        :return: Built model
        :rtype: RsaModel
        """
        if self._stage is not PipelineStage.UNSOLVED:
            raise RsaPlanError("The model has already been built")
        self.candidates = generate_candidate_paths(
            self.instance.topology,
            self.instance.requests,
            self.config,
            self.instance.supplied_paths,
        )
        self.model = build_rsa_model(self.instance, self.candidates, self.config)
        self._advance(PipelineStage.MODEL_BUILT)
        return self.model

    def solve(self, time_limit_s: float | None = None) -> SolverResult:
        """
        Hand the model to the solver adapter.

        :param time_limit_s: Budget overriding the configured one
        :type time_limit_s: float | None
        :return: Result carrying an assignment
        :rtype: SolverResult
        :raises InfeasibleModelError: If the model is proven infeasible
        :raises SolverTimeout: If no incumbent was found within the budget
        :raises RsaPlanError: If the solver failed without a result
        """
        if self.model is None or self._stage is not PipelineStage.MODEL_BUILT:
            raise RsaPlanError("Build the model before solving")
        result = self.solver.solve(self.model, time_limit_s)
        if result.assignment is None:
            raise RsaPlanError(
                f"Solver {result.solver_name or self.solver.solver_name} "
                f"returned no assignment (status: {result.status.value})"
            )
        self.result = result
        self._advance(PipelineStage.SOLVED)
        return result

    def validate(self) -> ValidationReport:
        """
        Check the solver's assignment independently.

        :return: Passing validation report
        :rtype: ValidationReport
        :raises ValidatorMismatch: If any rule is violated
        """
        if self.result is None or self._stage is not PipelineStage.SOLVED:
            raise RsaPlanError("Solve the model before validating")
        report = validate_assignment(
            self.instance, self.candidates or {}, self.result.assignment, self.config
        )
        self.validation = report
        if not report.passed:
            self._advance(PipelineStage.VALIDATION_FAILED)
            for violation in report.violations:
                self.log.error("%s", violation)
            raise ValidatorMismatch(report)
        self._advance(PipelineStage.VALIDATED)
        return report

    def build_report(self) -> PlanningReport:
        """
        Build and log the final report.

        :return: Planning report
        :rtype: PlanningReport
        """
        if self.result is None or self._stage is not PipelineStage.VALIDATED:
            raise RsaPlanError("Only validated runs can be reported")
        self.report = PlanningReport.from_result(
            self.instance, self.result, run_name=self.run_name
        )
        self.reporter.log_report(self.report)
        self._advance(PipelineStage.REPORTED)
        return self.report

    def run(self, time_limit_s: float | None = None) -> PlanningOutcome:
        """
        Run every stage in order.

        :param time_limit_s: Budget overriding the configured one
        :type time_limit_s: float | None
        :return: Everything the run produced
        :rtype: PlanningOutcome
        """
        model = self.build_model()
        result = self.solve(time_limit_s)
        validation = self.validate()
        report = self.build_report()
        return PlanningOutcome(
            candidates=self.candidates or {},
            model=model,
            result=result,
            validation=validation,
            report=report,
        )


def run_planning_pipeline(
    instance: PlanningInstance,
    solver: AbstractSolverAdapter | None = None,
    run_name: str = "rsa",
    time_limit_s: float | None = None,
) -> PlanningOutcome:
    """
    Plan one instance end to end.

    :param instance: Validated planning instance
    :type instance: PlanningInstance
    :param solver: Solver adapter (pulp with the configured solver if None)
    :type solver: AbstractSolverAdapter | None
    :param run_name: Label used in log messages and reports
    :type run_name: str
    :param time_limit_s: Budget overriding the configured one
    :type time_limit_s: float | None
    :return: Everything the run produced
    :rtype: PlanningOutcome
    :raises SolverTimeout: If no incumbent was found within the budget
    :raises ValidatorMismatch: If the assignment fails validation
    """
    return PlanningPipeline(instance, solver=solver, run_name=run_name).run(
        time_limit_s
    )
