"""
Path profile sampling.

Walks a link from endpoint A to endpoint B at evenly spaced fractions and
records, at each step, the distance from A, the first Fresnel zone radius,
the terrain elevation and the elevation of the straight line of sight between
the two antennas. No Earth-curvature correction is applied to the line.
"""

import threading
from dataclasses import dataclass
from typing import List, Optional, Sequence

import pandas as pd

from linkplan import fresnel, geodesy
from linkplan.config import DEFAULT_SAMPLES
from linkplan.elevation import ElevationProvider
from linkplan.geodesy import GeoPoint


class SamplingCancelled(Exception):
    """Raised when a sampling run is cancelled between samples."""


@dataclass(frozen=True)
class PathSample:
    distance_m: float  # from endpoint A
    fresnel_radius_m: float  # first zone
    terrain_m: float
    los_m: float  # line-of-sight elevation
    has_data: bool = True  # False if terrain_m is the 0m fallback


def sample_path(a: GeoPoint, b: GeoPoint, frequency_hz: float,
                provider: ElevationProvider, height_a_m: float, height_b_m: float,
                samples: int = DEFAULT_SAMPLES,
                cancel: Optional[threading.Event] = None) -> List[PathSample]:
    """
    Sample a link between two points.

    Args:
        a, b: Link endpoints
        frequency_hz: Carrier frequency in Hz
        provider: Terrain elevation source
        height_a_m, height_b_m: Total antenna elevation at each end
                                (ground elevation + antenna height, meters)
        samples: Number of intervals; samples + 1 points are produced
        cancel: Optional event; if set, sampling stops before the next point

    Returns:
        List of PathSample ordered by distance from A

    Raises:
        ValueError: If samples < 1 or frequency_hz <= 0
        SamplingCancelled: If cancel was set
    """
    if samples < 1:
        raise ValueError(f"sample count must be at least 1, got {samples}")

    total_m = geodesy.distance(a, b)
    result = []
    for i in range(samples + 1):
        if cancel is not None and cancel.is_set():
            raise SamplingCancelled(f"cancelled after {i} of {samples + 1} samples")

        t = i / samples
        d1 = total_m * t
        d2 = total_m - d1
        point = geodesy.interpolate(a, b, t)
        terrain = provider.lookup(point.lat, point.lon)

        result.append(PathSample(
            distance_m=d1,
            fresnel_radius_m=fresnel.radius_1(frequency_hz, d1, max(0.0, d2)),
            terrain_m=terrain.elevation,
            los_m=height_a_m + (height_b_m - height_a_m) * t,
            has_data=terrain.has_data,
        ))

    return result


def profile_at(samples: Sequence[PathSample], distance_m: float, target_pct=None):
    """
    Profile values at an arbitrary distance along the path.

    Radius, terrain and line of sight are linearly interpolated between the
    two surrounding samples. The distance is clamped to the sampled range.

    Returns:
        Dictionary with distance_m, fresnel_radius_m, terrain_m, los_m,
        clearance_m and clearance_pct, plus required_m if target_pct is given
    """
    if not samples:
        raise ValueError("no samples")

    x = max(samples[0].distance_m, min(samples[-1].distance_m, distance_m))

    if len(samples) == 1:
        i0 = i1 = 0
    else:
        # First sample at or beyond x, but never the very first one
        i1 = next((i for i, s in enumerate(samples) if s.distance_m >= x), len(samples) - 1)
        i1 = max(1, i1)
        i0 = i1 - 1
    s0, s1 = samples[i0], samples[i1]
    span = s1.distance_m - s0.distance_m
    frac = (x - s0.distance_m) / span if span > 0 else 0.0

    def lerp(v0, v1):
        return v0 * (1 - frac) + v1 * frac

    radius = lerp(s0.fresnel_radius_m, s1.fresnel_radius_m)
    terrain = lerp(s0.terrain_m, s1.terrain_m)
    los = lerp(s0.los_m, s1.los_m)
    clearance_m = los - terrain

    values = {
        'distance_m': x,
        'fresnel_radius_m': radius,
        'terrain_m': terrain,
        'los_m': los,
        'clearance_m': clearance_m,
        'clearance_pct': clearance_m / radius * 100.0 if radius > 0 else 0.0,
    }
    if target_pct is not None:
        values['required_m'] = los - target_pct / 100.0 * radius
    return values


def samples_to_dataframe(samples: Sequence[PathSample], target_pct=None) -> pd.DataFrame:
    """
    Tabulate samples, e.g. for CSV export.

    Adds required_m and clearance_pct columns when target_pct is given.
    """
    df = pd.DataFrame({
        'distance_m': [s.distance_m for s in samples],
        'fresnel_radius_m': [s.fresnel_radius_m for s in samples],
        'terrain_m': [s.terrain_m for s in samples],
        'los_m': [s.los_m for s in samples],
        'has_data': [s.has_data for s in samples],
    })

    if target_pct is not None:
        df['required_m'] = df['los_m'] - target_pct / 100.0 * df['fresnel_radius_m']
        clearance_m = df['los_m'] - df['terrain_m']
        radius = df['fresnel_radius_m']
        df['clearance_pct'] = (clearance_m / radius.where(radius > 0) * 100.0).fillna(0.0)

    return df
