"""
Fresnel clearance analysis of a sampled path.

Clearance at a sample is how far the line of sight sits above the terrain,
expressed as a percentage of the first Fresnel zone radius there. A sample
whose clearance falls below the target is a violation; consecutive violating
samples are merged into intervals along the path.

At the two antennas the zone radius is zero and a percentage means nothing.
Those samples report 0%, only count as violations if the terrain rises above
the line of sight itself, and are left out of the minimum.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from linkplan.config import DEFAULT_CLEARANCE_PCT
from linkplan.profile import PathSample


@dataclass(frozen=True)
class ViolationInterval:
    start_m: float
    end_m: float


@dataclass(frozen=True)
class ClearanceResult:
    min_clearance_pct: float  # worst case over all samples
    violations: Tuple[ViolationInterval, ...]
    total_distance_m: float
    target_pct: float
    clearance_pct: Tuple[float, ...]  # one per sample

    @property
    def passes(self) -> bool:
        return not self.violations


def clearance_pct(sample: PathSample) -> float:
    """Clearance as a percentage of the Fresnel radius; 0 where the radius is 0."""
    if sample.fresnel_radius_m <= 0:
        return 0.0
    return (sample.los_m - sample.terrain_m) / sample.fresnel_radius_m * 100.0


def required_elevation(sample: PathSample, target_pct: float) -> float:
    """Highest terrain elevation that still leaves target_pct of the zone clear."""
    return sample.los_m - target_pct / 100.0 * sample.fresnel_radius_m


def is_violation(sample: PathSample, target_pct: float) -> bool:
    """
    True if terrain intrudes into the required part of the zone.

    Where the radius is positive this is exactly clearance_pct < target_pct.
    """
    return sample.terrain_m > required_elevation(sample, target_pct)


def analyze_clearance(samples: Sequence[PathSample],
                      target_pct: float = DEFAULT_CLEARANCE_PCT,
                      total_distance_m: Optional[float] = None) -> ClearanceResult:
    """
    Find where a sampled path falls short of the clearance target.

    Args:
        samples: Output of sample_path, ordered by distance
        target_pct: Required clearance, percent of the first Fresnel radius
        total_distance_m: Path length; defaults to the last sample's distance.
                          A violation running to the end of the path ends here.

    Returns:
        ClearanceResult

    Raises:
        ValueError: If samples is empty or target_pct is not in (0, 100]
    """
    if not samples:
        raise ValueError("no samples to analyze")
    if not 0 < target_pct <= 100:
        raise ValueError(f"clearance target must be in (0, 100], got {target_pct}")

    if total_distance_m is None:
        total_distance_m = samples[-1].distance_m

    pcts = tuple(clearance_pct(s) for s in samples)

    violations = []
    run_start = None
    for i, sample in enumerate(samples):
        bad = is_violation(sample, target_pct)
        if bad and run_start is None:
            run_start = samples[i].distance_m
        elif not bad and run_start is not None:
            # Interval ends at the first sample past the run
            _add_interval(violations, run_start, samples[i].distance_m)
            run_start = None

    if run_start is not None:
        _add_interval(violations, run_start, total_distance_m)

    inside = [pct for s, pct in zip(samples, pcts) if s.fresnel_radius_m > 0]

    return ClearanceResult(
        min_clearance_pct=min(inside) if inside else 0.0,
        violations=tuple(violations),
        total_distance_m=total_distance_m,
        target_pct=target_pct,
        clearance_pct=pcts,
    )


def _add_interval(violations, start_m, end_m):
    # Zero-length paths produce empty runs
    if end_m > start_m:
        violations.append(ViolationInterval(start_m, end_m))
