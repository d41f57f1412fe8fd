"""Unit tests for series validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from dicomvol.core.errors import (
    DimensionMismatch,
    EmptyInput,
    InvalidSlice,
    SeriesMismatch,
)
from dicomvol.core.types import SliceRecord
from dicomvol.io.series import validate_series


def _record(name: str, series: str = "1.2.3", instance: int = 1, **kwargs) -> SliceRecord:
    values = dict(nx=32, ny=16, nz=1, nc=1, ux=0.5, uy=0.5, uz=2.0)
    values.update(kwargs)
    return SliceRecord(path=Path(name), series_uid=series, instance_number=instance, **values)


def test_empty_input():
    with pytest.raises(EmptyInput):
        validate_series([])


def test_valid_series_geometry():
    records = [_record("a.dcm", instance=2), _record("b.dcm", instance=1)]
    geometry = validate_series(records)
    assert geometry.records == records
    assert (geometry.nx, geometry.ny, geometry.nc) == (32, 16, 1)
    assert geometry.nz == 2
    assert geometry.spacing == (0.5, 0.5, 2.0)


def test_frame_counts_are_summed():
    geometry = validate_series([_record("a.dcm", nz=3), _record("b.dcm", nz=1)])
    assert geometry.nz == 4


def test_spacing_taken_from_first_record_only():
    records = [_record("a.dcm", uz=2.0), _record("b.dcm", uz=5.0, ux=0.9)]
    geometry = validate_series(records)
    assert geometry.spacing == (0.5, 0.5, 2.0)


def test_series_mismatch_names_both_files():
    records = [_record("a.dcm"), _record("b.dcm"), _record("odd.dcm", series="9.9.9")]
    with pytest.raises(SeriesMismatch) as excinfo:
        validate_series(records)
    assert excinfo.value.path == Path("odd.dcm")
    assert excinfo.value.reference == Path("a.dcm")
    assert "odd.dcm" in str(excinfo.value)
    assert "a.dcm" in str(excinfo.value)


def test_dimension_mismatch_names_files_and_dims():
    records = [_record("a.dcm"), _record("big.dcm", nx=64, ny=64)]
    with pytest.raises(DimensionMismatch) as excinfo:
        validate_series(records)
    err = excinfo.value
    assert err.path == Path("big.dcm")
    assert err.dims == (64, 64, 1)
    assert err.reference_dims == (32, 16, 1)
    assert "64x" in str(err)


def test_series_checked_before_dimensions():
    records = [_record("a.dcm"), _record("b.dcm", series="other", nx=8)]
    with pytest.raises(SeriesMismatch):
        validate_series(records)


def test_invalid_record_raises_its_error():
    error = InvalidSlice(Path("bad.dcm"), "missing InstanceNumber")
    records = [_record("a.dcm"), SliceRecord(path=Path("bad.dcm"), error=error)]
    with pytest.raises(InvalidSlice, match="missing InstanceNumber"):
        validate_series(records)
