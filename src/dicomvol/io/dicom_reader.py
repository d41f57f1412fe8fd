"""DICOM reader: scan a directory, validate the series, assemble a volume."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from pathlib import Path

import numpy as np
import pydicom

from dicomvol.core.errors import (
    EmptyInput,
    InputNotFound,
    NotADirectory,
    PayloadDecodeFailure,
    catch_exceptions,
)
from dicomvol.core.types import DEFAULT_CONFIG, DicomIOConfig, SliceRecord
from dicomvol.core.volume import Volume
from dicomvol.io.series import validate_series
from dicomvol.io.slice_record import probe_slice

logger = logging.getLogger(__name__)


@catch_exceptions
def read_dcm(
    path: Path | str,
    volume: Volume | None = None,
    normalize: bool = False,
) -> Volume:
    """Read a single (possibly multi-frame) DICOM file into a volume.

    If *volume* is given it is resized and filled in place; otherwise a new
    Volume is returned.
    """
    path = Path(path)
    if not path.exists():
        raise InputNotFound(path)

    volume = assemble_volume([probe_slice(path)], volume)
    return volume.scaled() if normalize else volume


@catch_exceptions
def read_dcm_dir(
    path: Path | str,
    volume: Volume | None = None,
    config: DicomIOConfig | None = None,
    normalize: bool = False,
) -> Volume:
    """Read a directory of single-slice DICOM files into one volume.

    Slices are stacked in ascending Instance Number order, regardless of how
    the files are named or enumerated.
    """
    path = Path(path)
    records = scan_dicom_dir(path, config)
    if not records:
        raise EmptyInput(path)

    volume = assemble_volume(records, volume)
    logger.info(f"Read {len(records)} DICOM file(s) from {path}: volume {volume.shape}")
    return volume.scaled() if normalize else volume


@catch_exceptions
def scan_dicom_dir(
    path: Path | str,
    config: DicomIOConfig | None = None,
) -> list[SliceRecord]:
    """Probe every file in *path* whose extension matches the configured one.

    Other entries are skipped. The returned records may include invalid ones.
    """
    config = config or DEFAULT_CONFIG
    path = Path(path)
    if not path.exists():
        raise InputNotFound(path)
    if not path.is_dir():
        raise NotADirectory(path)

    candidates = [p for p in sorted(path.iterdir()) if p.is_file() and config.matches(p)]
    logger.debug(f"Found {len(candidates)} candidate .{config.extension} file(s) in {path}")
    return [probe_slice(p) for p in candidates]


def sort_slices(records: Sequence[SliceRecord]) -> list[SliceRecord]:
    """Sort by Instance Number, falling back to file name for duplicates."""
    counts = Counter(r.instance_number for r in records if r.valid)
    duplicates = sorted(n for n, c in counts.items() if c > 1)
    if duplicates:
        logger.warning(
            f"Duplicate instance numbers {duplicates}; ordering those slices by file name"
        )
    return sorted(records, key=lambda r: (r.instance_number, r.path.name))


def assemble_volume(
    records: Sequence[SliceRecord],
    volume: Volume | None = None,
) -> Volume:
    """Validate *records* and stack their pixel data along z.

    The destination is only updated once every slice has been decoded, so
    a failure never leaves a partially filled volume behind.
    """
    geometry = validate_series(records)

    scratch = Volume()
    scratch.resize(geometry.nx, geometry.ny, geometry.nz, geometry.nc)
    scratch.set_spacing(*geometry.spacing)

    off_z = 0
    for record in sort_slices(geometry.records):
        frames = decode_frames(record)
        scratch.data[:, :, off_z:off_z + record.nz, 0] = frames
        off_z += record.nz

    if volume is None:
        return scratch
    volume.data = scratch.data
    volume.spacing = scratch.spacing
    return volume


def decode_frames(record: SliceRecord) -> np.ndarray:
    """Decode the pixel data of *record* as float32 [X, Y, Z].

    Samples are read as 32-bit integers and cast directly, with no rescale
    or windowing. Unsigned data (PixelRepresentation 0) goes through uint32;
    signed data goes through int32 so negative samples keep their sign
    instead of wrapping to large positive values.
    """
    try:
        ds = pydicom.dcmread(str(record.path))
        raw = ds.pixel_array
    except Exception as e:
        raise PayloadDecodeFailure(record.path, str(e)) from e

    if not np.issubdtype(raw.dtype, np.integer):
        raise PayloadDecodeFailure(record.path, f"non-integer samples ({raw.dtype})")

    if raw.ndim == 2:
        raw = raw[np.newaxis, ...]
    expected = (record.nz, record.ny, record.nx)
    if raw.shape != expected:
        raise PayloadDecodeFailure(
            record.path, f"decoded shape {raw.shape} does not match header {expected}"
        )

    signed = np.issubdtype(raw.dtype, np.signedinteger)
    samples = raw.astype(np.int32 if signed else np.uint32)
    logger.debug(f"Decoded {record.nz} frame(s) from {record.path.name}")
    # [Z, Y, X] -> [X, Y, Z]
    return samples.astype(np.float32).transpose(2, 1, 0)
