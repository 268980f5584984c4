"""
rsaplan Solver Adapters.

Solver adapters accept a built RSA model and a time budget and return a
decoded assignment with an optimality-proof flag.
"""

from .base import AbstractSolverAdapter, SolverResult, SolveStatus
from .pulp_adapter import PulpSolverAdapter, decode_assignment

__all__ = [
    'AbstractSolverAdapter',
    'PulpSolverAdapter',
    'SolveStatus',
    'SolverResult',
    'decode_assignment',
]
