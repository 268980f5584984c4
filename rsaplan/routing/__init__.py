"""
rsaplan Routing Module.

Candidate path generation for traffic requests:

- K-Shortest loopless paths ranked by distance with deterministic ties
- Validation of externally supplied candidate paths
"""

from .k_shortest_path import (
    KShortestPath,
    build_supplied_paths,
    find_k_shortest_paths,
    generate_candidate_paths,
)

__all__ = [
    'KShortestPath',
    'build_supplied_paths',
    'find_k_shortest_paths',
    'generate_candidate_paths',
]
