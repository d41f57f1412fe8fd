"""dicomvol: convert between voxel volumes and DICOM files or slice directories."""

from dicomvol.core.errors import (
    DicomIOError,
    DimensionMismatch,
    EmptyInput,
    InputNotFound,
    InvalidGeometry,
    InvalidSlice,
    NotADirectory,
    PartialWriteFailure,
    PayloadDecodeFailure,
    PersistFailure,
    ResizeFailure,
    SeriesMismatch,
    TagWriteFailure,
    UnsupportedChannels,
)
from dicomvol.core.types import DicomIOConfig, DicomMeta, SliceRecord
from dicomvol.core.volume import Volume
from dicomvol.io.dicom_reader import read_dcm, read_dcm_dir, scan_dicom_dir
from dicomvol.io.dicom_writer import write_dcm, write_dcm_dir
from dicomvol.io.metadata import resolve_metadata

__version__ = "0.1.0"

__all__ = [
    "DicomIOConfig",
    "DicomIOError",
    "DicomMeta",
    "DimensionMismatch",
    "EmptyInput",
    "InputNotFound",
    "InvalidGeometry",
    "InvalidSlice",
    "NotADirectory",
    "PartialWriteFailure",
    "PayloadDecodeFailure",
    "PersistFailure",
    "ResizeFailure",
    "SeriesMismatch",
    "SliceRecord",
    "TagWriteFailure",
    "UnsupportedChannels",
    "Volume",
    "read_dcm",
    "read_dcm_dir",
    "resolve_metadata",
    "scan_dicom_dir",
    "write_dcm",
    "write_dcm_dir",
]
