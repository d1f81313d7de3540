"""
End-to-end clearance check for one point-to-point link.
"""

from linkplan import geodesy
from linkplan.clearance import analyze_clearance
from linkplan.config import DEFAULT_CLEARANCE_PCT, DEFAULT_SAMPLES
from linkplan.profile import sample_path


def analyze_link(a, b, frequency_hz, provider, antenna_a_m, antenna_b_m,
                 target_pct=DEFAULT_CLEARANCE_PCT, samples=DEFAULT_SAMPLES,
                 cancel=None):
    """
    Check Fresnel clearance of a link against terrain.

    Args:
        a, b: Link endpoints (GeoPoint)
        frequency_hz: Carrier frequency in Hz
        provider: ElevationProvider for terrain
        antenna_a_m, antenna_b_m: Antenna heights above ground at each end
        target_pct: Required clearance, percent of the first Fresnel radius
        samples: Number of sampling intervals along the path
        cancel: Optional threading.Event to stop sampling early

    Returns:
        Dictionary with:
            - 'distance_m': Path length
            - 'bearing_ab', 'bearing_ba': Antenna azimuths (degrees)
            - 'ground_a_m', 'ground_b_m': Ground elevation at each end
            - 'height_a_m', 'height_b_m': Total antenna elevation at each end
            - 'max_fresnel_radius_m': Largest first-zone radius on the path
            - 'min_clearance_pct': Worst clearance found
            - 'violations': List of (start_m, end_m) tuples
            - 'passes': True if there are no violations
            - 'data_gaps': Number of samples with no terrain data
            - 'samples', 'result': The PathSample list and ClearanceResult
    """
    ground_a = provider.get_elevation(a.lat, a.lon)
    ground_b = provider.get_elevation(b.lat, b.lon)
    height_a = ground_a + antenna_a_m
    height_b = ground_b + antenna_b_m

    path = sample_path(a, b, frequency_hz, provider, height_a, height_b,
                       samples=samples, cancel=cancel)
    result = analyze_clearance(path, target_pct,
                               total_distance_m=geodesy.distance(a, b))

    return {
        'distance_m': result.total_distance_m,
        'bearing_ab': geodesy.bearing(a, b),
        'bearing_ba': geodesy.bearing(b, a),
        'ground_a_m': ground_a,
        'ground_b_m': ground_b,
        'height_a_m': height_a,
        'height_b_m': height_b,
        'max_fresnel_radius_m': max(s.fresnel_radius_m for s in path),
        'min_clearance_pct': result.min_clearance_pct,
        'violations': [(v.start_m, v.end_m) for v in result.violations],
        'passes': result.passes,
        'data_gaps': sum(1 for s in path if not s.has_data),
        'samples': path,
        'result': result,
    }
