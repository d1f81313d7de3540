"""
SRTM .hgt tile reader.

An .hgt file is a square grid of big-endian signed 16-bit elevations covering
one 1x1 degree cell, named after its southwest corner (N50E030.hgt,
S11W124.hgt, ...). Row 0 is the northern edge and column 0 the western edge.
The grid side is 1201 (SRTM3, 3 arc-second) or 3601 (SRTM1, 1 arc-second) and
is inferred from the file length. -32768 marks a void.

Tiles are loaded lazily, once each, and kept for the life of the provider.
A missing or malformed file is remembered as an empty tile and every lookup
inside it returns 0.

Usage:
    from linkplan.hgt import HgtElevationProvider

    dem = HgtElevationProvider('~/srtm')
    elevation = dem.get_elevation(50.45, 30.52)
"""

import math
import os
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

import numpy as np

from linkplan.config import MAX_TILE_MARGIN
from linkplan.elevation import ElevationProvider, ElevationResult, NO_DATA

NO_DATA_VALUE = -32768

# File length in bytes -> grid side
TILE_SIZES = {
    1201 * 1201 * 2: 1201,
    3601 * 3601 * 2: 3601,
}

TILE_NAME_RE = re.compile(r'^([NS])(\d{2})([EW])(\d{3})$', re.IGNORECASE)


def normalize_lon(lon: float) -> float:
    """Wrap a longitude into [-180, 180)."""
    return ((lon + 180.0) % 360.0) - 180.0


def clamp_lat(lat: float) -> float:
    return max(-90.0, min(90.0, lat))


def tile_name(lat: int, lon: int) -> str:
    """Name of the tile whose southwest corner is at integer (lat, lon)."""
    lat_str = f"{'N' if lat >= 0 else 'S'}{abs(lat):02d}"
    lon_str = f"{'E' if lon >= 0 else 'W'}{abs(lon):03d}"
    return lat_str + lon_str


def tile_name_for(lat: float, lon: float) -> str:
    """Name of the tile containing a coordinate."""
    lat = clamp_lat(lat)
    lon = normalize_lon(lon)
    return tile_name(math.floor(lat), math.floor(lon))


def parse_tile_name(name: str):
    """
    Parse a tile name like 'N50E030' into its southwest corner.

    Returns:
        Tuple of (lat, lon) integers

    Raises:
        ValueError: If the name is not a valid tile name
    """
    m = TILE_NAME_RE.match(name or '')
    if m is None:
        raise ValueError(f"invalid tile name: {name!r}")
    ns, alat, ew, alon = m.groups()
    lat = int(alat) * (1 if ns.upper() == 'N' else -1)
    lon = int(alon) * (1 if ew.upper() == 'E' else -1)
    return lat, lon


class HgtTile:
    """Immutable elevation grid for one tile. An empty tile has size 0."""

    def __init__(self, data: Optional[np.ndarray] = None):
        if data is None:
            data = np.empty((0, 0), dtype=np.int16)
        data.setflags(write=False)
        self.data = data

    @property
    def size(self) -> int:
        return self.data.shape[0]

    @property
    def empty(self) -> bool:
        return self.size == 0

    def sample(self, dy: float, dx: float) -> Optional[float]:
        """
        Bilinear elevation at a fractional position inside the tile.

        Args:
            dy: Latitude offset from the tile's southern edge (0..1)
            dx: Longitude offset from the tile's western edge (0..1)

        Returns:
            Elevation in meters, or None if the tile is empty or any of the
            four surrounding posts is a void.
        """
        size = self.size
        if size == 0:
            return None

        # Rows run north to south, so dy is flipped
        row_f = (1.0 - dy) * (size - 1)
        col_f = dx * (size - 1)

        r0 = _clamp(math.floor(row_f), 0, size - 1)
        c0 = _clamp(math.floor(col_f), 0, size - 1)
        r1 = _clamp(r0 + 1, 0, size - 1)
        c1 = _clamp(c0 + 1, 0, size - 1)

        fr = row_f - r0
        fc = col_f - c0

        z00 = int(self.data[r0, c0])
        z01 = int(self.data[r0, c1])
        z10 = int(self.data[r1, c0])
        z11 = int(self.data[r1, c1])

        if NO_DATA_VALUE in (z00, z01, z10, z11):
            return None

        z0 = z00 * (1 - fc) + z01 * fc
        z1 = z10 * (1 - fc) + z11 * fc
        return z0 * (1 - fr) + z1 * fr


EMPTY_TILE = HgtTile()


def _clamp(v, lo, hi):
    return lo if v < lo else hi if v > hi else v


def load_tile(path) -> HgtTile:
    """
    Read an .hgt file.

    Returns:
        The decoded tile, or EMPTY_TILE if the file is missing, unreadable,
        or not one of the two valid sizes.
    """
    try:
        with open(path, 'rb') as f:
            raw = f.read()
    except OSError:
        return EMPTY_TILE

    size = TILE_SIZES.get(len(raw))
    if size is None:
        return EMPTY_TILE

    # .hgt is big-endian; convert to native int16 so lookups stay cheap
    data = np.frombuffer(raw, dtype='>i2').reshape(size, size).astype(np.int16)
    return HgtTile(data)


class TileCache:
    """
    Tile name -> tile, loaded on first use.

    Each name is loaded at most once even when several threads ask for it at
    the same time. Loads of different names use different locks and proceed in
    parallel. Tiles already cached are returned without locking.
    """

    def __init__(self, loader: Callable[[str], HgtTile]):
        self._loader = loader
        self._tiles: Dict[str, HgtTile] = {}
        self._key_locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self.loads = 0

    def get(self, name: str) -> HgtTile:
        tile = self._tiles.get(name)
        if tile is not None:
            return tile

        with self._registry_lock:
            key_lock = self._key_locks.setdefault(name, threading.Lock())

        with key_lock:
            # Another thread may have finished the load while we waited
            tile = self._tiles.get(name)
            if tile is None:
                tile = self._loader(name)
                with self._registry_lock:
                    self._tiles[name] = tile
                    self._key_locks.pop(name, None)
                    self.loads += 1
        return tile

    def __contains__(self, name):
        return name in self._tiles

    def __len__(self):
        return len(self._tiles)


class HgtElevationProvider(ElevationProvider):
    """Elevation from a directory of .hgt tiles, bilinearly interpolated."""

    def __init__(self, root_dir):
        """
        Args:
            root_dir: Directory containing tiles named like N50E030.hgt
        """
        self.root_dir = Path(os.path.expanduser(str(root_dir)))
        self.cache = TileCache(self._load)
        print(f"DEM tile directory: {self.root_dir}")

    def tile_path(self, name: str) -> Path:
        return self.root_dir / f"{name}.hgt"

    def _load(self, name):
        path = self.tile_path(name)
        tile = load_tile(path)
        if tile.empty:
            print(f"  Tile {name} missing or unreadable at {path}; using 0m")
        else:
            print(f"  Loaded tile {name} ({tile.size}x{tile.size})")
        return tile

    def lookup(self, lat, lon):
        if not (math.isfinite(lat) and math.isfinite(lon)):
            return NO_DATA
        lat = clamp_lat(lat)
        lon = normalize_lon(lon)
        lat_floor = math.floor(lat)
        lon_floor = math.floor(lon)

        tile = self.cache.get(tile_name(lat_floor, lon_floor))
        value = tile.sample(lat - lat_floor, lon - lon_floor)
        if value is None:
            return NO_DATA
        return ElevationResult(float(value), True)


#
# Coverage scan: which tiles does a link need, and which are on disk?
#

@dataclass(frozen=True)
class TileStatus:
    name: str  # e.g. N50E030
    exists: bool
    path: Optional[str]  # None if missing


def _wrap_lon_index(lon: int) -> int:
    return ((lon + 180) % 360) - 180


def tiles_for_bounds(min_lat, min_lon, max_lat, max_lon, margin=0,
                     wrap_dateline=None) -> List[str]:
    """
    Tile names covering a bounding box.

    Args:
        min_lat, min_lon: Southwest corner
        max_lat, max_lon: Northeast corner
        margin: Extra ring of tiles around the box (clamped to 0..3)
        wrap_dateline: If True, the box is taken to run east from max_lon
                       across 180 degrees to min_lon. If None, this is
                       assumed whenever the box is wider than 180 degrees.

    Returns:
        List of tile names, south to north then west to east
    """
    margin = max(0, min(MAX_TILE_MARGIN, int(margin)))
    min_lon = normalize_lon(min_lon)
    max_lon = normalize_lon(max_lon)
    if wrap_dateline is None:
        wrap_dateline = (max_lon - min_lon) > 180

    lat_start = max(-90, math.floor(clamp_lat(min_lat)) - margin)
    lat_end = min(89, math.floor(clamp_lat(max_lat)) + margin)

    if wrap_dateline:
        lon_range = (list(range(math.floor(max_lon) - margin, 180)) +
                     list(range(-180, math.floor(min_lon) + margin + 1)))
    else:
        lon_range = range(math.floor(min_lon) - margin, math.floor(max_lon) + margin + 1)

    lons = []
    for lon in lon_range:
        lon = _wrap_lon_index(lon)
        if lon not in lons:
            lons.append(lon)

    return [tile_name(lat, lon)
            for lat in range(lat_start, lat_end + 1)
            for lon in lons]


def tiles_for_path(a, b, margin=0, wrap_dateline=None) -> List[str]:
    """Tile names covering the bounding box of a link between GeoPoints a and b."""
    lon_a = normalize_lon(a.lon)
    lon_b = normalize_lon(b.lon)
    return tiles_for_bounds(min(a.lat, b.lat), min(lon_a, lon_b),
                            max(a.lat, b.lat), max(lon_a, lon_b),
                            margin=margin, wrap_dateline=wrap_dateline)


def scan_tiles(root_dir, names) -> List[TileStatus]:
    """Check which of the named tiles exist under root_dir."""
    root = Path(os.path.expanduser(str(root_dir)))
    statuses = []
    for name in names:
        path = root / f"{name}.hgt"
        if path.is_file():
            statuses.append(TileStatus(name, True, str(path)))
        else:
            statuses.append(TileStatus(name, False, None))
    return statuses


def scan_summary(statuses) -> str:
    if not statuses:
        return ""
    present = sum(1 for s in statuses if s.exists)
    return f"Tiles: {len(statuses)}, present: {present}, missing: {len(statuses) - present}"


def infer_bundle(name: str) -> Optional[str]:
    """
    Guess the regional bundle (e.g. 'M36') that a tile is distributed in.

    Longitudes are grouped in 6 degree bands numbered band start + 6, taken on
    the unsigned longitude the tile name spells. Latitudes are grouped in
    4 degree bands lettered from 'A'; southern tiles all land in band 'A'.
    This matches the northern mid-latitude bundles only.

    Returns:
        Bundle code, or None if the tile name can't be parsed
    """
    try:
        lat, lon = parse_tile_name(name)
    except ValueError:
        return None

    number = (abs(lon) // 6) * 6 + 6
    band = max(0, lat // 4)
    return f"{chr(ord('A') + band)}{number}"
