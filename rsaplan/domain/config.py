"""
PlanningConfig - Immutable planning configuration.

This module defines the PlanningConfig frozen dataclass carrying every
global tunable of a planning run (guard band, spectrum ceiling, K, big-M,
solver budget). It is passed explicitly into the path generator, model
builder, solver adapter and validator.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from rsaplan.errors import ConfigError

# =============================================================================
# Defaults
# =============================================================================
DEFAULT_K_PATHS = 3
DEFAULT_GUARD_BAND = 1  # slots
DEFAULT_SLOT_CAPACITY = 12.5  # Gb/s per slot at unit spectral efficiency
DEFAULT_SOLVER_NAME = "PULP_CBC_CMD"

OVERLAP_SCOPES = ("all", "conflicting")
NULLABLE_SETTINGS = frozenset({"big_m", "time_limit_s"})


def _to_int(value: Any) -> int:
    """Convert a setting to int, refusing fractional numbers."""
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{value!r} is not a whole number")
    return int(value)


@dataclass(frozen=True)
class PlanningConfig:
    """
    Immutable planning configuration.

    Attributes:
        Spectrum:
            spectrum_ceiling: Total number of frequency slots; valid slot
                indices are 0 .. spectrum_ceiling - 1
            guard_band: Minimum number of free slots between two blocks
            slot_capacity: Gb/s carried by one slot at efficiency 1.0

        Routing:
            k_paths: Number of candidate paths generated per request
            path_workers: Threads used for per-request path generation

        Model:
            big_m: Disjunction constant; derived from the topology when None
            overlap_scope: "all" applies pairwise non-overlap to every pair
                of requests, "conflicting" only to pairs whose candidate
                paths share a link or that are placed in the same zone
            side_halves: Keep LEFT blocks in the lower half of their zone
                and RIGHT blocks in the upper half

        Solver:
            solver_name: pulp solver identifier
            time_limit_s: Wall-clock budget in seconds (None = unbounded)
            solver_msg: Echo the solver log

    Example:
        >>> config = PlanningConfig(spectrum_ceiling=100, k_paths=2)
        >>> config.guard_band
        1
    """

    spectrum_ceiling: int
    guard_band: int = DEFAULT_GUARD_BAND
    slot_capacity: float = DEFAULT_SLOT_CAPACITY
    k_paths: int = DEFAULT_K_PATHS
    path_workers: int = 1
    big_m: float | None = None
    overlap_scope: str = "all"
    side_halves: bool = False
    solver_name: str = DEFAULT_SOLVER_NAME
    time_limit_s: float | None = None
    solver_msg: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        if isinstance(self.spectrum_ceiling, bool) or self.spectrum_ceiling < 1:
            raise ConfigError("spectrum_ceiling must be >= 1")
        if self.guard_band < 0:
            raise ConfigError("guard_band must be >= 0")
        if self.slot_capacity <= 0:
            raise ConfigError("slot_capacity must be > 0")
        if self.k_paths < 1:
            raise ConfigError("k_paths must be >= 1")
        if self.path_workers < 1:
            raise ConfigError("path_workers must be >= 1")
        if self.big_m is not None and self.big_m <= 0:
            raise ConfigError("big_m must be > 0 when given")
        if self.overlap_scope not in OVERLAP_SCOPES:
            raise ConfigError(
                f"overlap_scope must be one of {OVERLAP_SCOPES}, "
                f"got '{self.overlap_scope}'"
            )
        if self.time_limit_s is not None and self.time_limit_s <= 0:
            raise ConfigError("time_limit_s must be > 0 when given")

    @property
    def max_slot_index(self) -> int:
        """Largest usable slot index."""
        return self.spectrum_ceiling - 1

    @classmethod
    def from_dict(cls, settings: dict[str, Any]) -> PlanningConfig:
        """
        Create a PlanningConfig from the ``settings`` section of an input file.

        :param settings: Raw settings mapping
        :type settings: dict[str, Any]
        :return: New PlanningConfig instance
        :rtype: PlanningConfig
        :raises ConfigError: If a key is unknown, required keys are missing,
            or a value has the wrong type
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(settings) - known)
        if unknown:
            raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}")
        if settings.get("spectrum_ceiling") is None:
            raise ConfigError("Missing required setting 'spectrum_ceiling'")

        converters = {
            "spectrum_ceiling": _to_int,
            "guard_band": _to_int,
            "slot_capacity": float,
            "k_paths": _to_int,
            "path_workers": _to_int,
            "big_m": float,
            "overlap_scope": str,
            "side_halves": bool,
            "solver_name": str,
            "time_limit_s": float,
            "solver_msg": bool,
        }
        kwargs: dict[str, Any] = {}
        for key, value in settings.items():
            if value is None:
                if key not in NULLABLE_SETTINGS:
                    raise ConfigError(f"Setting '{key}' must not be null")
                kwargs[key] = None
                continue
            try:
                kwargs[key] = converters[key](value)
            except (TypeError, ValueError) as e:
                raise ConfigError(
                    f"Setting '{key}' has invalid value {value!r}"
                ) from e
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as a plain dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
