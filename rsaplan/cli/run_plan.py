"""CLI entry point for planning RSA instances.

This module provides the ``rsa-plan`` command. It loads one or more input
files, runs the planning pipeline, writes the report and maps every
failure class onto a distinct exit code with actionable user feedback.
"""

import dataclasses
import json
import sys
import traceback
from argparse import ArgumentParser
from pathlib import Path

from rsaplan.cli.constants import (
    DEFAULT_MAX_TRACEBACK_LINES,
    INPUT_ERROR_EXIT_CODE,
    INTERRUPT_EXIT_CODE,
    LOG_LEVEL_CHOICES,
    OUTPUT_FORMAT_CHOICES,
    SOLVER_BUDGET_EXIT_CODE,
    SUCCESS_EXIT_CODE,
    VALIDATION_FAILED_EXIT_CODE,
)
from rsaplan.domain.config import OVERLAP_SCOPES
from rsaplan.errors import (
    ConfigError,
    InfeasibleModelError,
    InputValidationError,
    RsaPlanError,
    SolverTimeout,
    ValidatorMismatch,
)
from rsaplan.io.loader import load_instance
from rsaplan.io.reporter import PlanningReporter
from rsaplan.pipeline import PlanningPipeline
from rsaplan.utils.logging_config import configure_planning_logging


def build_argument_parser() -> ArgumentParser:
    """
    Build the rsa-plan argument parser.

    :return: Configured argument parser
    :rtype: ArgumentParser
    """
    parser = ArgumentParser(
        prog="rsa-plan",
        description="Plan routing and spectrum assignment for an elastic optical network",
    )
    parser.add_argument(
        "inputs",
        nargs="+",
        metavar="INPUT",
        help="JSON or YAML input file(s); later files extend earlier ones",
    )
    parser.add_argument("--output", "-o", help="Write the report to this file")
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMAT_CHOICES,
        default="text",
        help="Report format (default: text)",
    )
    parser.add_argument(
        "--time-limit",
        type=float,
        default=None,
        help="Solver budget in seconds, overriding the input settings",
    )
    parser.add_argument(
        "--overlap-scope",
        choices=OVERLAP_SCOPES,
        default=None,
        help="Apply non-overlap to all request pairs or only conflicting ones",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVEL_CHOICES,
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also log to this file ('auto' for a time-stamped name)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the rsa-plan command.

    :param argv: Command line arguments (defaults to sys.argv[1:])
    :type argv: list[str] | None
    :return: Exit code (0 planned, 1 bad input, 2 solver budget exhausted,
        3 validation failure)
    :rtype: int
    :raises SystemExit: On argument parsing errors (handled by argparse)
    """
    arguments = build_argument_parser().parse_args(argv)
    run_name = Path(arguments.inputs[0]).stem
    configure_planning_logging(
        run_name, log_level=arguments.log_level, log_file=arguments.log_file
    )

    try:
        instance = load_instance(arguments.inputs)
        overrides = {}
        if arguments.time_limit is not None:
            overrides["time_limit_s"] = arguments.time_limit
        if arguments.overlap_scope is not None:
            overrides["overlap_scope"] = arguments.overlap_scope
        if overrides:
            instance = instance.with_config(
                dataclasses.replace(instance.config, **overrides)
            )

        reporter = PlanningReporter()
        outcome = PlanningPipeline(instance, run_name=run_name, reporter=reporter).run()

        if arguments.output:
            reporter.write(outcome.report, arguments.output, arguments.output_format)
        elif arguments.output_format == "json":
            print(json.dumps(outcome.report.to_dict(), indent=2, default=str))
        elif arguments.output_format == "csv":
            print(outcome.report.to_dataframe().to_csv(index=False), end="")

    except KeyboardInterrupt:
        print("\n🛑 Planning interrupted by user")
        return INTERRUPT_EXIT_CODE
    except (ConfigError, InputValidationError) as e:
        print(f"❌ Invalid input: {e}")
        print("💡 Check the input files and their settings section")
        return INPUT_ERROR_EXIT_CODE
    except SolverTimeout as e:
        print(f"❌ Solver budget exhausted: {e}")
        print("💡 Increase --time-limit or reduce the instance size")
        return SOLVER_BUDGET_EXIT_CODE
    except ValidatorMismatch as e:
        print(f"❌ The solver's plan failed independent validation: {e}")
        return VALIDATION_FAILED_EXIT_CODE
    except InfeasibleModelError as e:
        print(f"❌ Model construction fault: {e}")
        _display_detailed_error_info(e)
        return VALIDATION_FAILED_EXIT_CODE
    except OSError as e:
        print(f"❌ File system error: {e}")
        print("💡 Check file permissions and the output path")
        return INPUT_ERROR_EXIT_CODE
    except RsaPlanError as e:
        print(f"❌ Planning error: {e}")
        _display_detailed_error_info(e)
        return SOLVER_BUDGET_EXIT_CODE

    return SUCCESS_EXIT_CODE


def _display_detailed_error_info(exception: Exception) -> None:
    """
    Display detailed error information for debugging purposes.

    :param exception: The exception to analyze and display
    :type exception: Exception
    """
    if exception.__cause__:
        print(f"  ↳ Caused by: {exception.__cause__}")

    print(f"  Exception type: {type(exception).__name__}")

    print("  Last few calls:")
    traceback_lines = traceback.format_tb(exception.__traceback__)
    for line in traceback_lines[-DEFAULT_MAX_TRACEBACK_LINES:]:
        print(f"    {line.strip()}")


def run_plan_main() -> None:
    """
    Execute the planning main function and exit with its code.

    :raises SystemExit: Always exits with code from main() function
    """
    sys.exit(main())


if __name__ == "__main__":
    run_plan_main()
