#!/usr/bin/env python3

"""
Fresnel Zone Clearance Check for Point-to-Point Radio Links

Given two antenna locations, their heights above ground and the link
frequency, samples the path between them against SRTM terrain and reports
where the first Fresnel zone is obstructed.

Usage:
    ./link_clearance.py --lat1 50.45 --lon1 30.52 --lat2 50.50 --lon2 30.60 \
        --freq-ghz 5.8 --height1 15 --height2 12 --dem-dir ~/srtm
"""

import argparse
import math
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from linkplan import config
from linkplan.geodesy import GeoPoint
from linkplan.hgt import infer_bundle, scan_summary, scan_tiles, tiles_for_path
from linkplan.link import analyze_link
from linkplan.profile import samples_to_dataframe

EXIT_OK = 0
EXIT_BAD_INPUT = 1
EXIT_OBSTRUCTED = 2


def print_tile_scan(dem_dir, a, b, margin):
    names = tiles_for_path(a, b, margin=margin)
    statuses = scan_tiles(dem_dir, names)
    print(f"\nTerrain tiles in {dem_dir}:")
    for status in statuses:
        state = 'present' if status.exists else f'MISSING (bundle {infer_bundle(status.name)})'
        print(f"  {status.name}: {state}")
    print(f"  {scan_summary(statuses)}")


def print_report(args, link):
    print("\n" + "=" * 70)
    print("LINK CLEARANCE REPORT")
    print("=" * 70)
    print(f"  A: {args.lat1:.5f}°, {args.lon1:.5f}°  "
          f"ground {link['ground_a_m']:.1f}m + antenna {args.height1:.1f}m")
    print(f"  B: {args.lat2:.5f}°, {args.lon2:.5f}°  "
          f"ground {link['ground_b_m']:.1f}m + antenna {args.height2:.1f}m")
    print(f"  Distance: {link['distance_m'] / 1000:.3f}km")
    print(f"  Azimuth A->B: {link['bearing_ab']:.1f}°, B->A: {link['bearing_ba']:.1f}°")
    print(f"  Frequency: {args.freq_ghz:.3f}GHz")
    print(f"  Max first Fresnel radius: {link['max_fresnel_radius_m']:.2f}m")
    print(f"  Clearance target: {args.clearance:.1f}%")
    print(f"  Minimum clearance: {link['min_clearance_pct']:.1f}%")

    if link['violations']:
        print(f"  Obstructed spans ({len(link['violations'])}):")
        for start_m, end_m in link['violations']:
            print(f"    {start_m / 1000:.3f}km - {end_m / 1000:.3f}km")
    else:
        print("  No obstructions")

    if link['data_gaps']:
        print(f"  Warning: {link['data_gaps']} of {len(link['samples'])} samples "
              f"had no terrain data and were treated as sea level")
    print(f"  Result: {'PASS' if link['passes'] else 'FAIL'}")
    print("=" * 70)


def main():
    parser = argparse.ArgumentParser(
        description='Check first Fresnel zone clearance of a radio link against terrain',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 5.8 GHz link over flat ground
  %(prog)s --lat1 50.45 --lon1 30.52 --lat2 50.50 --lon2 30.60 --freq-ghz 5.8

  # Against SRTM tiles, exporting the profile
  %(prog)s --lat1 50.45 --lon1 30.52 --lat2 50.50 --lon2 30.60 --dem-dir ~/srtm --csv profile.csv

  # List the tiles the link needs, with one tile of padding
  %(prog)s --lat1 50.45 --lon1 30.52 --lat2 50.50 --lon2 30.60 --dem-dir ~/srtm --scan-tiles --margin 1
        """
    )

    parser.add_argument('--lat1', type=float, required=True, help='Latitude of endpoint A (decimal degrees)')
    parser.add_argument('--lon1', type=float, required=True, help='Longitude of endpoint A (decimal degrees)')
    parser.add_argument('--lat2', type=float, required=True, help='Latitude of endpoint B (decimal degrees)')
    parser.add_argument('--lon2', type=float, required=True, help='Longitude of endpoint B (decimal degrees)')
    parser.add_argument(
        '--freq-ghz',
        type=float,
        default=config.DEFAULT_FREQ_GHZ,
        help=f'Link frequency (GHz, default: {config.DEFAULT_FREQ_GHZ})'
    )
    parser.add_argument(
        '--height1',
        type=float,
        default=config.DEFAULT_ANTENNA_HEIGHT_M,
        help=f'Antenna height above ground at A (meters, default: {config.DEFAULT_ANTENNA_HEIGHT_M})'
    )
    parser.add_argument(
        '--height2',
        type=float,
        default=config.DEFAULT_ANTENNA_HEIGHT_M,
        help=f'Antenna height above ground at B (meters, default: {config.DEFAULT_ANTENNA_HEIGHT_M})'
    )
    parser.add_argument(
        '--clearance',
        type=float,
        default=config.DEFAULT_CLEARANCE_PCT,
        help=f'Required clearance, percent of first Fresnel radius (default: {config.DEFAULT_CLEARANCE_PCT})'
    )
    parser.add_argument(
        '--samples',
        type=int,
        default=config.DEFAULT_SAMPLES,
        help=f'Number of sampling intervals along the path (default: {config.DEFAULT_SAMPLES})'
    )
    parser.add_argument(
        '--dem-dir',
        type=str,
        default=config.dem_dir(),
        help='Directory of .hgt tiles (default: $HGT_DIR; flat terrain if unset)'
    )
    parser.add_argument('--csv', type=str, help='Write the sampled profile to this CSV file')
    parser.add_argument(
        '--scan-tiles',
        action='store_true',
        default=False,
        help='List the terrain tiles the link needs and whether they are present'
    )
    parser.add_argument(
        '--margin',
        type=int,
        default=0,
        help=f'Extra tiles around the link when scanning (0-{config.MAX_TILE_MARGIN}, default: 0)'
    )

    args = parser.parse_args()

    # Validate inputs
    for name in ('lat1', 'lat2'):
        if not (-90 <= getattr(args, name) <= 90):
            print("Error: Latitude must be between -90 and 90")
            return EXIT_BAD_INPUT
    for name in ('lon1', 'lon2'):
        if not (-180 <= getattr(args, name) <= 180):
            print("Error: Longitude must be between -180 and 180")
            return EXIT_BAD_INPUT
    if not (math.isfinite(args.freq_ghz) and args.freq_ghz > 0):
        print("Error: Frequency must be positive")
        return EXIT_BAD_INPUT
    if not (math.isfinite(args.height1) and math.isfinite(args.height2)
            and args.height1 >= 0 and args.height2 >= 0):
        print("Error: Antenna heights must not be negative")
        return EXIT_BAD_INPUT
    if not (0 < args.clearance <= 100):
        print("Error: Clearance must be greater than 0 and at most 100")
        return EXIT_BAD_INPUT
    if args.samples < 1:
        print("Error: Samples must be at least 1")
        return EXIT_BAD_INPUT
    if not (0 <= args.margin <= config.MAX_TILE_MARGIN):
        print(f"Error: Margin must be between 0 and {config.MAX_TILE_MARGIN}")
        return EXIT_BAD_INPUT

    a = GeoPoint(args.lat1, args.lon1)
    b = GeoPoint(args.lat2, args.lon2)

    if args.dem_dir:
        print(f"Using terrain tiles from {args.dem_dir}")
    else:
        print("No terrain directory given; assuming flat terrain at sea level")

    if args.scan_tiles:
        if not args.dem_dir:
            print("Error: --scan-tiles needs --dem-dir or $HGT_DIR")
            return EXIT_BAD_INPUT
        print_tile_scan(args.dem_dir, a, b, args.margin)

    provider = config.make_provider(args.dem_dir)

    try:
        link = analyze_link(a, b, args.freq_ghz * 1e9, provider,
                            args.height1, args.height2,
                            target_pct=args.clearance, samples=args.samples)
    except ValueError as e:
        sys.exit(str(e))

    print_report(args, link)

    if args.csv:
        df = samples_to_dataframe(link['samples'], target_pct=args.clearance)
        df.to_csv(args.csv, index=False)
        print(f"Profile written to: {args.csv}")

    return EXIT_OK if link['passes'] else EXIT_OBSTRUCTED


if __name__ == "__main__":
    sys.exit(main())
