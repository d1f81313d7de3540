"""
Fresnel zone geometry.

The n-th Fresnel zone radius at a point d1 meters from one end of a path and
d2 meters from the other is sqrt(n * wavelength * d1 * d2 / (d1 + d2)).
"""

import math
import numbers

SPEED_OF_LIGHT = 299_792_458.0  # m/s


def wavelength(frequency_hz: float) -> float:
    """Free-space wavelength in meters."""
    if not frequency_hz > 0:
        raise ValueError(f"frequency must be positive, got {frequency_hz}")
    return SPEED_OF_LIGHT / frequency_hz


def radius_n(n: int, frequency_hz: float, d1: float, d2: float) -> float:
    """
    Radius of the n-th Fresnel zone.

    Args:
        n: Zone number (1 for the first zone)
        frequency_hz: Carrier frequency in Hz
        d1: Distance from the first endpoint (meters)
        d2: Distance to the second endpoint (meters)

    Returns:
        Radius in meters. Zero at either endpoint, and zero when both
        distances are zero.

    Raises:
        ValueError: If n < 1, frequency_hz is not positive, or a distance is
                    not >= 0 (NaN included)
    """
    if isinstance(n, bool) or not isinstance(n, numbers.Integral) or n < 1:
        raise ValueError(f"zone number must be an integer >= 1, got {n!r}")
    if not (d1 >= 0 and d2 >= 0):
        raise ValueError(f"distances must be >= 0, got d1={d1}, d2={d2}")

    lam = wavelength(frequency_hz)
    total = d1 + d2
    if total == 0:
        return 0.0
    return math.sqrt(n * lam * d1 * d2 / total)


def radius_1(frequency_hz: float, d1: float, d2: float) -> float:
    """First Fresnel zone radius; the clearance envelope used everywhere else."""
    return radius_n(1, frequency_hz, d1, d2)
