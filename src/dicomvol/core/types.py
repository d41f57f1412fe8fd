"""Core data types for the dicomvol read and write paths."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

from pydicom.uid import PYDICOM_ROOT_UID

from dicomvol.core.errors import DicomIOError


@dataclass(frozen=True)
class SliceRecord:
    """Validated geometry and series identity of one DICOM file.

    Pixel data is not held here; it is decoded from ``path`` at assembly time.
    """

    path: Path
    series_uid: str = ""
    instance_number: int = -1
    nx: int = 0
    ny: int = 0
    nz: int = 0  # frame count
    nc: int = 0
    ux: float = 0.0
    uy: float = 0.0
    uz: float = 0.0
    error: DicomIOError | None = None

    @property
    def valid(self) -> bool:
        return self.error is None

    @property
    def dims(self) -> tuple[int, int, int]:
        """Return (nx, ny, nc)."""
        return (self.nx, self.ny, self.nc)

    @property
    def spacing(self) -> tuple[float, float, float]:
        return (self.ux, self.uy, self.uz)


@dataclass
class SeriesGeometry:
    """Common geometry of a validated set of slices."""

    records: list[SliceRecord]
    nx: int
    ny: int
    nc: int
    nz: int  # sum of frame counts
    spacing: tuple[float, float, float]


@dataclass
class DicomMeta:
    """Descriptive metadata written to each DICOM file.

    Fields left as None are filled from defaults by ``resolve_metadata``.
    """

    patient_name: str | None = None
    patient_id: str | None = None
    study_uid: str | None = None
    series_uid: str | None = None
    series_descrip: str | None = None
    instance_uid: str | None = None
    instance_num: int | None = None

    @property
    def complete(self) -> bool:
        return all(getattr(self, f.name) is not None for f in fields(self))


@dataclass
class DicomIOConfig:
    """Configuration for DICOM reading and writing (from API callers or CLI flags)."""

    extension: str = "dcm"
    study_uid_root: str = PYDICOM_ROOT_UID
    series_uid_root: str = PYDICOM_ROOT_UID
    instance_uid_root: str = PYDICOM_ROOT_UID
    default_patient_name: str = "DefaultDicomvolPatient"
    default_patient_id: str = "DefaultDicomvolPatientID"
    default_series_descrip: str = "Series generated by dicomvol"
    default_instance_num: int = 1
    staging: bool = False  # write directories atomically via a staging dir

    def matches(self, path: Path) -> bool:
        """Whether *path* has a recognized single-slice extension."""
        return path.suffix.lower().lstrip(".") == self.extension.lower().lstrip(".")


DEFAULT_CONFIG = DicomIOConfig()
