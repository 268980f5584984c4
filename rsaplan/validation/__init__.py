"""
rsaplan Validation Module.

Independent oracle that checks an assignment against every structural
rule without consulting solver state.
"""

from .validator import ValidationReport, Violation, validate_assignment

__all__ = [
    'ValidationReport',
    'Violation',
    'validate_assignment',
]
