"""
rsaplan Input/Output Module.

- loader: JSON/YAML input files to a validated PlanningInstance
- reporter: text, JSON and CSV rendering of planning results
"""

from .loader import build_instance, load_instance, load_raw, merge_raw
from .reporter import PlanningReport, PlanningReporter, spectrum_occupancy

__all__ = [
    'PlanningReport',
    'PlanningReporter',
    'build_instance',
    'load_instance',
    'load_raw',
    'merge_raw',
    'spectrum_occupancy',
]
