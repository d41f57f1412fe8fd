"""Shared test fixtures: synthetic DICOM data."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest
from pydicom.dataset import FileDataset, FileMetaDataset
from pydicom.uid import ExplicitVRLittleEndian, generate_uid

from dicomvol.core.volume import Volume

ROWS = 16
COLS = 24


def synthetic_pixels(instance_number: int, rows: int = ROWS, cols: int = COLS, frames: int = 1) -> np.ndarray:
    """Pixel pattern unique per instance, frame and position, uint16 [F, Y, X]."""
    yy, xx = np.mgrid[0:rows, 0:cols]
    base = instance_number * 1000 + yy * cols + xx
    return np.stack([base + f * 500 for f in range(frames)]).astype(np.uint16)


@pytest.fixture
def pixel_pattern() -> Callable[..., np.ndarray]:
    return synthetic_pixels


@pytest.fixture
def synthetic_volume() -> Volume:
    """A 24x16x6 volume in [0, 1] with anisotropic spacing."""
    nx, ny, nz = 24, 16, 6
    xx, yy, zz = np.mgrid[0:nx, 0:ny, 0:nz]
    data = (xx + yy * nx + zz * nx * ny) / float(nx * ny * nz - 1)
    return Volume(data=data.astype(np.float32), spacing=(0.5, 0.75, 2.0))


@pytest.fixture
def dicom_factory() -> Callable[..., Path]:
    return _write_synthetic_dicom


@pytest.fixture
def dicom_directory(tmp_path) -> Path:
    """Ten slices of one series whose file names do not follow instance order."""
    series_uid = generate_uid()
    directory = tmp_path / "series"
    directory.mkdir()

    # File names are deliberately out of step with instance numbers
    order = [7, 3, 10, 1, 5, 9, 2, 8, 4, 6]
    for i, instance in enumerate(order):
        _write_synthetic_dicom(
            directory / f"img_{i:02d}.dcm",
            series_uid=series_uid,
            instance_number=instance,
        )
    return directory


def _write_synthetic_dicom(
    path: Path,
    series_uid: str,
    instance_number: int,
    rows: int = ROWS,
    cols: int = COLS,
    frames: int = 1,
    pixel_spacing: list[float] | None = None,
    pixel_aspect_ratio: list[int] | None = None,
    slice_thickness: float = 2.0,
    samples_per_pixel: int = 1,
    omit: tuple[str, ...] = (),
    truncate_pixels: bool = False,
) -> Path:
    """Write a single synthetic DICOM file."""
    file_meta = FileMetaDataset()
    file_meta.MediaStorageSOPClassUID = "1.2.840.10008.5.1.4.1.1.2"
    file_meta.MediaStorageSOPInstanceUID = generate_uid()
    file_meta.TransferSyntaxUID = ExplicitVRLittleEndian

    ds = FileDataset(
        str(path),
        {},
        file_meta=file_meta,
        preamble=b"\x00" * 128,
        is_implicit_VR=False,
        is_little_endian=True,
    )

    ds.SOPClassUID = "1.2.840.10008.5.1.4.1.1.2"
    ds.SOPInstanceUID = file_meta.MediaStorageSOPInstanceUID
    ds.SeriesInstanceUID = series_uid
    ds.StudyInstanceUID = generate_uid()
    ds.Modality = "CT"
    ds.InstanceNumber = instance_number
    ds.PixelSpacing = pixel_spacing if pixel_spacing is not None else [1.0, 1.0]
    if pixel_aspect_ratio is not None:
        ds.PixelAspectRatio = pixel_aspect_ratio
    ds.SliceThickness = slice_thickness
    ds.Rows = rows
    ds.Columns = cols
    if frames > 1:
        ds.NumberOfFrames = frames
    ds.BitsAllocated = 16
    ds.BitsStored = 16
    ds.HighBit = 15
    ds.PixelRepresentation = 0
    ds.SamplesPerPixel = samples_per_pixel

    if samples_per_pixel == 3:
        ds.PhotometricInterpretation = "RGB"
        ds.PlanarConfiguration = 0
        pixel_data = np.zeros((frames, rows, cols, 3), dtype=np.uint16)
    else:
        ds.PhotometricInterpretation = "MONOCHROME2"
        pixel_data = synthetic_pixels(instance_number, rows, cols, frames)

    raw = pixel_data.tobytes()
    if truncate_pixels:
        raw = raw[: len(raw) // 2]
    ds.PixelData = raw

    for keyword in omit:
        delattr(ds, keyword)

    ds.save_as(str(path))
    return path
