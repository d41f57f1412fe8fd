"""Unit tests for the Volume container."""

from __future__ import annotations

import numpy as np
import pytest

from dicomvol.core.errors import InvalidGeometry, ResizeFailure
from dicomvol.core.volume import Volume


def test_default_volume_is_empty():
    vol = Volume()
    assert vol.shape == (0, 0, 0, 1)
    assert vol.spacing == (1.0, 1.0, 1.0)


def test_3d_data_gets_channel_axis():
    vol = Volume(data=np.zeros((4, 3, 2), dtype=np.float32))
    assert vol.shape == (4, 3, 2, 1)
    assert (vol.nx, vol.ny, vol.nz, vol.nc) == (4, 3, 2, 1)


def test_resize_allocates_zeros():
    vol = Volume()
    vol.resize(5, 6, 7, 1)
    assert vol.shape == (5, 6, 7, 1)
    assert vol.data.dtype == np.float32
    assert not vol.data.any()


def test_resize_rejects_non_positive_dims_and_keeps_buffer():
    vol = Volume(data=np.ones((2, 2, 2, 1), dtype=np.float32))
    with pytest.raises(ResizeFailure):
        vol.resize(0, 2, 2)
    assert vol.shape == (2, 2, 2, 1)
    assert vol.data.all()


def test_resize_memory_error_is_resize_failure(monkeypatch):
    def boom(*args, **kwargs):
        raise MemoryError("out of memory")

    vol = Volume(data=np.ones((1, 1, 1, 1), dtype=np.float32))
    monkeypatch.setattr("dicomvol.core.volume.np.zeros", boom)
    with pytest.raises(ResizeFailure, match="out of memory"):
        vol.resize(10, 10, 10)


@pytest.mark.parametrize("spacing", [(0.0, 1.0, 1.0), (1.0, -1.0, 1.0), (1.0, 1.0, 0.0)])
def test_non_positive_spacing_rejected(spacing):
    with pytest.raises(InvalidGeometry):
        Volume(data=np.zeros((1, 1, 1, 1), dtype=np.float32), spacing=spacing)


def test_plane_is_view(synthetic_volume):
    plane = synthetic_volume.plane(2)
    assert plane.shape == (24, 16, 1)
    plane[0, 0, 0] = -5.0
    assert synthetic_volume.data[0, 0, 2, 0] == -5.0


def test_scaled_normalizes_peak():
    data = np.array([0.0, 2.0, -4.0], dtype=np.float32).reshape(3, 1, 1, 1)
    vol = Volume(data=data, spacing=(1.0, 2.0, 3.0))
    scaled = vol.scaled()
    np.testing.assert_allclose(scaled.data.ravel(), [0.0, 0.5, -1.0])
    assert scaled.spacing == (1.0, 2.0, 3.0)
    # Original untouched
    assert vol.data[2, 0, 0, 0] == -4.0


def test_scaled_all_zero_is_noop():
    vol = Volume(data=np.zeros((2, 2, 2, 1), dtype=np.float32))
    assert not vol.scaled().data.any()
