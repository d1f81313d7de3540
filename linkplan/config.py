"""
Default settings for link clearance planning.

Values here are plain numbers assembled by the CLI and the web service. The
terrain tile directory can be set with the HGT_DIR environment variable.
"""

import os

# Path sampling
DEFAULT_SAMPLES = 64
DEFAULT_CLEARANCE_PCT = 60.0  # percent of first Fresnel zone radius

# Radio
DEFAULT_FREQ_GHZ = 5.5
DEFAULT_ANTENNA_HEIGHT_M = 10.0

# Tiles of padding allowed around a path bounding box when scanning coverage
MAX_TILE_MARGIN = 3

# Web service
PORT = 6566
HOST = '0.0.0.0'


def dem_dir():
    """Directory holding .hgt tiles, or None to model flat terrain."""
    path = os.environ.get('HGT_DIR')
    if not path:
        return None
    return os.path.expanduser(path)


def make_provider(dem_directory=None):
    """
    Pick the terrain source.

    Args:
        dem_directory: Directory of .hgt tiles. If None, flat terrain is used.

    Returns:
        An ElevationProvider
    """
    # Imported here so that config stays importable from the leaf modules
    from linkplan.elevation import FlatProvider
    from linkplan.hgt import HgtElevationProvider

    if dem_directory is None:
        return FlatProvider()
    return HgtElevationProvider(dem_directory)
