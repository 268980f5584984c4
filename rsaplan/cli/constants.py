"""CLI-specific constants for the rsa-plan command.

Provides the exit codes of the planning command and shared display
settings used by the CLI entry point.
"""

# Exit codes
SUCCESS_EXIT_CODE: int = 0
"""Exit code indicating a solved and validated plan."""

INPUT_ERROR_EXIT_CODE: int = 1
"""Exit code indicating malformed input, settings or inconsistent references."""

SOLVER_BUDGET_EXIT_CODE: int = 2
"""Exit code indicating the solver budget ran out without a validated plan."""

VALIDATION_FAILED_EXIT_CODE: int = 3
"""Exit code indicating a correctness fault in the solver's plan."""

INTERRUPT_EXIT_CODE: int = 1
"""Exit code indicating program interruption by user (Ctrl+C)."""

# Debugging and display settings
DEFAULT_MAX_TRACEBACK_LINES: int = 3
"""Default number of traceback lines to display in error messages."""

# Argument choices
OUTPUT_FORMAT_CHOICES: list[str] = ["text", "json", "csv"]
LOG_LEVEL_CHOICES: list[str] = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
