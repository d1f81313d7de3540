"""
Terrain elevation sources.

Every provider answers get_elevation(lat, lon) with meters above sea level and
never raises: a coordinate without usable data comes back as 0. Callers that
want to know whether a value was real can use lookup(), which returns the same
number together with a has_data flag.

Usage:
    from linkplan.elevation import FlatProvider

    provider = FlatProvider()
    elevation = provider.get_elevation(47.6, -122.3)
"""

import threading
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class ElevationResult:
    """Best-effort elevation plus whether real terrain data backed it."""
    elevation: float
    has_data: bool


NO_DATA = ElevationResult(0.0, False)


class ElevationProvider:
    """Base class for elevation sources."""

    def lookup(self, lat: float, lon: float) -> ElevationResult:
        """Elevation with its has_data flag; subclasses must override this."""
        raise NotImplementedError

    def get_elevation(self, lat: float, lon: float) -> float:
        """Elevation in meters; 0 where no data is available."""
        return self.lookup(lat, lon).elevation


class FlatProvider(ElevationProvider):
    """Flat earth at sea level."""

    def lookup(self, lat, lon):
        return ElevationResult(0.0, True)


class CompositeProvider(ElevationProvider):
    """
    Chains several providers, e.g. a 1 arc-second tile directory with a
    3 arc-second one behind it.

    The first provider that has real data for a coordinate wins.
    """

    def __init__(self, providers: Sequence[ElevationProvider]):
        if not providers:
            raise ValueError("CompositeProvider needs at least one provider")
        self.providers = list(providers)

        self._stats_lock = threading.Lock()
        self.stats = {
            'primary_queries': 0,  # Answered by the first provider
            'fallback_queries': 0,  # Had to fall back to a later provider
            'missing_queries': 0,  # No provider had data
            'total_queries': 0
        }

    def lookup(self, lat, lon):
        result = NO_DATA
        answered_by = None
        for idx, provider in enumerate(self.providers):
            candidate = provider.lookup(lat, lon)
            if candidate.has_data:
                result = candidate
                answered_by = idx
                break

        with self._stats_lock:
            self.stats['total_queries'] += 1
            if answered_by is None:
                self.stats['missing_queries'] += 1
            elif answered_by == 0:
                self.stats['primary_queries'] += 1
            else:
                self.stats['fallback_queries'] += 1

        return result
