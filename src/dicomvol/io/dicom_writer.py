"""DICOM writer: serialize a volume to one file or to a directory of slices."""

from __future__ import annotations

import logging
import math
import os
import tempfile
from dataclasses import replace
from fractions import Fraction
from pathlib import Path

import numpy as np
from pydicom.dataset import FileDataset, FileMetaDataset
from pydicom.uid import CTImageStorage, ExplicitVRLittleEndian
from pydicom.valuerep import DSfloat

from dicomvol.core.errors import (
    InputNotFound,
    InvalidGeometry,
    NotADirectory,
    PartialWriteFailure,
    PersistFailure,
    TagWriteFailure,
    UnsupportedChannels,
    catch_exceptions,
)
from dicomvol.core.types import DEFAULT_CONFIG, DicomIOConfig, DicomMeta
from dicomvol.core.volume import Volume
from dicomvol.io.metadata import generate_instance_uid, resolve_metadata

logger = logging.getLogger(__name__)


@catch_exceptions
def write_dcm(
    path: Path | str,
    volume: Volume,
    meta: DicomMeta | None = None,
    config: DicomIOConfig | None = None,
) -> Path:
    """Write *volume* to a single DICOM file, one frame per z-slice.

    Voxel values are expected in [0, 1] and are stored as 8-bit samples.
    """
    path = Path(path)
    _check_channels(volume)
    write_slice(path, volume, resolve_metadata(meta, config))
    logger.info(f"Wrote {path}")
    return path


@catch_exceptions
def write_dcm_dir(
    path: Path | str,
    volume: Volume,
    meta: DicomMeta | None = None,
    config: DicomIOConfig | None = None,
) -> list[Path]:
    """Write *volume* to an existing directory, one single-frame file per z-slice.

    Files are named ``<index>.<ext>`` with enough zero padding that lexical
    and numeric order agree. Every file shares the study and series UIDs and
    gets a fresh SOP Instance UID and Instance Number ``index + 1``.

    Without ``config.staging``, a failure leaves the slices written so far
    on disk. With staging, nothing is moved into *path* unless every slice
    was written.
    """
    config = config or DEFAULT_CONFIG
    path = Path(path)
    _check_channels(volume)
    if volume.nz < 1:
        raise InvalidGeometry(f"Cannot write a volume with {volume.nz} slices")
    if not path.exists():
        raise InputNotFound(path)
    if not path.is_dir():
        raise NotADirectory(path)

    meta_new = resolve_metadata(meta, config)
    names = slice_filenames(volume.nz, config.extension)

    if not config.staging:
        written = _write_slices(path, volume, meta_new, names, config)
    else:
        with tempfile.TemporaryDirectory(prefix=".dicomvol-staging-", dir=path) as staging:
            try:
                staged = _write_slices(Path(staging), volume, meta_new, names, config)
            except PartialWriteFailure as e:
                raise PartialWriteFailure(
                    path / e.path.name, [], f"staged slices discarded ({e.__cause__})"
                ) from e.__cause__
            written = []
            for src in staged:
                dst = path / src.name
                try:
                    os.replace(src, dst)
                except OSError as e:
                    stranded = _unpublish(written, Path(staging))
                    raise PartialWriteFailure(
                        dst, stranded, f"could not move staged slice into place ({e})"
                    ) from e
                written.append(dst)

    logger.info(f"Wrote {len(written)} DICOM file(s) to {path}")
    return written


def slice_filenames(num_slices: int, extension: str = "dcm") -> list[str]:
    """Return zero-padded file names ``000.dcm``..``N-1.dcm`` for *num_slices*."""
    width = max(1, math.ceil(math.log10(num_slices)))
    ext = extension.lstrip(".")
    return [f"{i:0{width}d}.{ext}" for i in range(num_slices)]


def _unpublish(published: list[Path], staging: Path) -> list[Path]:
    """Move *published* files back into *staging*; return any left in place."""
    stranded = []
    for dst in reversed(published):
        try:
            os.replace(dst, staging / dst.name)
        except OSError as e:
            logger.warning(f"Could not withdraw {dst} from the target: {e}")
            stranded.append(dst)
    return stranded


def _write_slices(
    directory: Path,
    volume: Volume,
    meta: DicomMeta,
    names: list[str],
    config: DicomIOConfig,
) -> list[Path]:
    written: list[Path] = []
    for z, name in enumerate(names):
        out = directory / name
        plane = Volume(data=volume.data[:, :, z:z + 1, :].copy(), spacing=volume.spacing)
        slice_meta = replace(
            meta,
            instance_uid=generate_instance_uid(config),
            instance_num=z + 1,
        )
        try:
            write_slice(out, plane, slice_meta)
        except (TagWriteFailure, PersistFailure) as e:
            raise PartialWriteFailure(out, written, str(e)) from e
        written.append(out)
        logger.debug(f"Wrote slice {z + 1}/{len(names)}: {out.name}")
    return written


def write_slice(path: Path, volume: Volume, meta: DicomMeta) -> None:
    """Populate the required tags for *volume* and save it to *path*.

    *meta* must already be resolved. Raises TagWriteFailure naming the tag
    that could not be set, or PersistFailure naming the path.
    """
    _check_channels(volume)
    ux, uy, uz = volume.spacing
    if meta.instance_num is None:
        raise TagWriteFailure("InstanceNumber", "no value")

    file_meta = FileMetaDataset()
    file_meta.MediaStorageSOPClassUID = CTImageStorage
    file_meta.MediaStorageSOPInstanceUID = meta.instance_uid
    file_meta.TransferSyntaxUID = ExplicitVRLittleEndian

    ds = FileDataset(
        str(path),
        {},
        file_meta=file_meta,
        preamble=b"\x00" * 128,
        is_implicit_VR=False,
        is_little_endian=True,
    )

    aspect = _aspect_ratio(ux, uy)
    tags = [
        ("ImageType", ["DERIVED", "SECONDARY"]),
        ("SOPClassUID", CTImageStorage),
        ("Modality", "CT"),
        ("PhotometricInterpretation", "MONOCHROME2"),
        ("PatientName", meta.patient_name),
        ("PatientID", meta.patient_id),
        ("StudyInstanceUID", meta.study_uid),
        ("SeriesInstanceUID", meta.series_uid),
        ("SeriesDescription", meta.series_descrip),
        ("SOPInstanceUID", meta.instance_uid),
        ("Rows", volume.ny),
        ("Columns", volume.nx),
        ("NumberOfFrames", volume.nz),
        ("InstanceNumber", int(meta.instance_num)),
        ("SliceLocation", _ds(uz * (float(meta.instance_num) - 1.0))),
        ("PixelSpacing", [_ds(uy), _ds(ux)]),
        ("PixelAspectRatio", [aspect.numerator, aspect.denominator]),
        ("SliceThickness", _ds(uz)),
        ("SamplesPerPixel", 1),
        ("BitsAllocated", 8),
        ("BitsStored", 8),
        ("HighBit", 7),
        ("PixelRepresentation", 0),
    ]
    for keyword, value in tags:
        _put(ds, keyword, value)

    _put(ds, "PixelData", quantize(volume).tobytes())

    try:
        ds.save_as(str(path), enforce_file_format=True)
    except Exception as e:
        raise PersistFailure(path, str(e)) from e


def quantize(volume: Volume) -> np.ndarray:
    """Render channel 0 as uint8 [Z, Y, X] samples, ``round(v * 255)``.

    Values outside [0, 1] are clipped rather than wrapped.
    """
    # [X, Y, Z] -> [Z, Y, X]
    frames = volume.data[..., 0].transpose(2, 1, 0)
    return np.clip(np.rint(frames * 255.0), 0, 255).astype(np.uint8)


def _put(ds: FileDataset, keyword: str, value) -> None:
    if value is None:
        raise TagWriteFailure(keyword, "no value")
    try:
        setattr(ds, keyword, value)
    except Exception as e:
        raise TagWriteFailure(keyword, str(e)) from e


def _ds(value: float) -> DSfloat:
    """Format a float as a Decimal String that fits the 16-character limit."""
    return DSfloat(value, auto_format=True)


def _aspect_ratio(ux: float, uy: float) -> Fraction:
    """Integer vertical:horizontal pair approximating uy:ux."""
    ratio = Fraction(uy / ux).limit_denominator(1000)
    if ratio.numerator == 0:
        return Fraction(1, 1000)
    return ratio


def _check_channels(volume: Volume) -> None:
    if volume.nc != 1:
        raise UnsupportedChannels(volume.nc)
