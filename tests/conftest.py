"""Shared fixtures: synthetic SRTM tiles written to a temporary directory"""

import numpy as np
import pytest

SRTM3_SIZE = 1201


@pytest.fixture
def hgt_dir(tmp_path):
    """Empty directory for .hgt tiles"""
    d = tmp_path / 'hgt'
    d.mkdir()
    return d


@pytest.fixture
def write_hgt(hgt_dir):
    """Factory writing an elevation grid as a big-endian .hgt file"""
    def _write(name, data):
        path = hgt_dir / f'{name}.hgt'
        path.write_bytes(np.asarray(data).astype('>i2').tobytes())
        return path
    return _write


@pytest.fixture
def flat_grid():
    """Factory for a constant SRTM3 grid"""
    def _grid(value=0, size=SRTM3_SIZE):
        return np.full((size, size), value, dtype=np.int16)
    return _grid
