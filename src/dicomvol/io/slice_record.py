"""Probe a DICOM file header into a SliceRecord without decoding pixels."""

from __future__ import annotations

import logging
from pathlib import Path

import pydicom
from pydicom.errors import InvalidDicomError
from pydicom.multival import MultiValue

from dicomvol.core.errors import (
    DicomIOError,
    InvalidGeometry,
    InvalidSlice,
    UnsupportedChannels,
)
from dicomvol.core.types import SliceRecord

logger = logging.getLogger(__name__)

_MONOCHROME = ("MONOCHROME1", "MONOCHROME2")


def probe_slice(path: Path | str) -> SliceRecord:
    """Read the header of *path* and return its SliceRecord.

    Never raises: any problem is stored on the record's ``error`` field and
    the record is reported as invalid.
    """
    path = Path(path)
    try:
        return _probe(path)
    except DicomIOError as e:
        logger.warning(str(e))
        return SliceRecord(path=path, error=e)
    except Exception as e:
        error = InvalidSlice(path, f"unexpected error ({e})")
        logger.warning(str(error))
        return SliceRecord(path=path, error=error)


def _probe(path: Path) -> SliceRecord:
    try:
        ds = pydicom.dcmread(str(path), stop_before_pixels=True)
    except (InvalidDicomError, OSError) as e:
        raise InvalidSlice(path, f"failed to read DICOM file ({e})") from e

    series_uid = _require(ds, path, "SeriesInstanceUID", str)
    instance = _require(ds, path, "InstanceNumber", int)

    nc = int(getattr(ds, "SamplesPerPixel", 1))
    photometric = str(getattr(ds, "PhotometricInterpretation", "MONOCHROME2")).upper()
    if nc != 1 or photometric not in _MONOCHROME:
        raise UnsupportedChannels(nc, path)

    nx = _require(ds, path, "Columns", int)
    ny = _require(ds, path, "Rows", int)
    nz = int(getattr(ds, "NumberOfFrames", None) or 1)
    if nx < 1 or ny < 1 or nz < 1:
        raise InvalidGeometry(f"Invalid dimensions for file {path} ({nx}, {ny}, {nz})")

    ux, ratio = _pixel_spacing(ds, path)
    if ux <= 0.0:
        raise InvalidGeometry(f"File {path} has invalid pixel spacing: {ux}")
    uy = ux * ratio
    if uy <= 0.0:
        raise InvalidGeometry(f"File {path} has invalid pixel aspect ratio: {ratio}")

    uz = _require(ds, path, "SliceThickness", float)
    if uz <= 0.0:
        raise InvalidGeometry(f"File {path} has invalid slice thickness: {uz}")

    record = SliceRecord(
        path=path,
        series_uid=series_uid,
        instance_number=instance,
        nx=nx,
        ny=ny,
        nz=nz,
        nc=nc,
        ux=ux,
        uy=uy,
        uz=uz,
    )
    logger.debug(
        f"Probed {path.name}: instance {instance}, {nx}x{ny}x{nz}, "
        f"spacing ({ux:g}, {uy:g}, {uz:g})"
    )
    return record


def _require(ds: pydicom.Dataset, path: Path, keyword: str, cast):
    """Fetch a required tag and convert it, raising InvalidSlice on failure."""
    value = getattr(ds, keyword, None)
    if value is None or value == "":
        raise InvalidSlice(path, f"missing {keyword}")
    try:
        return cast(value)
    except (TypeError, ValueError) as e:
        raise InvalidSlice(path, f"unparseable {keyword} '{value}'") from e


def _pixel_spacing(ds: pydicom.Dataset, path: Path) -> tuple[float, float]:
    """Return the x-spacing and the height/width pixel aspect ratio.

    PixelSpacing is [row spacing, column spacing]; the x-spacing is the
    column spacing. The ratio comes from PixelSpacing when it holds both
    values, otherwise from PixelAspectRatio, otherwise 1.
    """
    spacing = getattr(ds, "PixelSpacing", None)
    if spacing is None or spacing == "":
        raise InvalidSlice(path, "missing PixelSpacing")
    items = list(spacing) if isinstance(spacing, (list, tuple, MultiValue)) else [spacing]
    try:
        values = [float(v) for v in items]
    except (TypeError, ValueError) as e:
        raise InvalidSlice(path, f"unparseable PixelSpacing '{spacing}'") from e

    if len(values) >= 2:
        row_spacing, ux = values[0], values[1]
        ratio = row_spacing / ux if ux > 0.0 else 0.0
        return ux, ratio

    ux = values[0]
    aspect = getattr(ds, "PixelAspectRatio", None)
    if aspect and len(aspect) == 2:
        try:
            vertical, horizontal = float(aspect[0]), float(aspect[1])
        except (TypeError, ValueError) as e:
            raise InvalidSlice(path, f"unparseable PixelAspectRatio '{aspect}'") from e
        ratio = vertical / horizontal if horizontal > 0.0 else 0.0
        return ux, ratio
    return ux, 1.0
