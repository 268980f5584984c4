"""
Required slot derivation.

A request of ``demand`` Gb/s carried with a modulation of spectral
efficiency ``efficiency`` over slots of ``slot_capacity`` Gb/s needs

    ceil(demand / (slot_capacity * efficiency))

slots. Quotients within a relative tolerance of an integer are treated as
that integer so that exact multiples are not rounded up by floating-point
noise.
"""

import math

RELATIVE_TOLERANCE = 1e-9


def compute_required_slots(
    demand: float, slot_capacity: float, efficiency: float = 1.0
) -> int:
    """
    Compute the number of contiguous slots a demand occupies.

    :param demand: Requested volume in Gb/s
    :type demand: float
    :param slot_capacity: Gb/s carried by one slot at efficiency 1.0
    :type slot_capacity: float
    :param efficiency: Spectral efficiency multiplier of the modulation
    :type efficiency: float
    :return: Required slot count, at least 1
    :rtype: int
    :raises ValueError: If any argument is not positive

    Example:
        >>> compute_required_slots(100.0, 12.5, 2.0)
        4
        >>> compute_required_slots(101.0, 12.5, 2.0)
        5
    """
    if demand <= 0:
        raise ValueError(f"demand must be > 0, got {demand}")
    if slot_capacity <= 0:
        raise ValueError(f"slot_capacity must be > 0, got {slot_capacity}")
    if efficiency <= 0:
        raise ValueError(f"efficiency must be > 0, got {efficiency}")

    quotient = demand / (slot_capacity * efficiency)
    nearest = round(quotient)
    if math.isclose(quotient, nearest, rel_tol=RELATIVE_TOLERANCE):
        return max(1, int(nearest))
    return max(1, math.ceil(quotient))
