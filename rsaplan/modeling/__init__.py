"""
rsaplan Modeling Module.

Builds the mixed-integer RSA program:

- Required slot derivation per (request, path, modulation)
- Request conflict relation used to scope pairwise non-overlap
- Model builder assembling variables, constraints and objective with pulp
"""

from .slots import compute_required_slots  # isort: skip
from .conflicts import (  # isort: skip
    find_conflicting_pairs,
    pairs_in_scope,
    zone_gated_pairs,
)
from .model_builder import (
    FeasibleOption,
    RsaModel,
    build_rsa_model,
    derive_big_m,
)

__all__ = [
    'FeasibleOption',
    'RsaModel',
    'build_rsa_model',
    'compute_required_slots',
    'derive_big_m',
    'find_conflicting_pairs',
    'pairs_in_scope',
    'zone_gated_pairs',
]
