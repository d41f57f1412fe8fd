"""Error taxonomy for DICOM volume I/O."""

from __future__ import annotations

import functools
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class DicomIOError(Exception):
    """Base class for every failure raised by dicomvol."""


class InputNotFound(DicomIOError, FileNotFoundError):
    def __init__(self, path: Path | str):
        self.path = Path(path)
        super().__init__(f"Path not found: {self.path}")


class NotADirectory(DicomIOError, NotADirectoryError):
    def __init__(self, path: Path | str):
        self.path = Path(path)
        super().__init__(f"Not a directory: {self.path}")


class EmptyInput(DicomIOError):
    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path is not None else None
        where = f" in {self.path}" if self.path is not None else ""
        super().__init__(f"No DICOM files found{where}")


class SeriesMismatch(DicomIOError):
    def __init__(self, path: Path | str, reference: Path | str):
        self.path = Path(path)
        self.reference = Path(reference)
        super().__init__(
            f"File {self.path} is from a different series than file {self.reference}"
        )


class DimensionMismatch(DicomIOError):
    def __init__(
        self,
        path: Path | str,
        dims: tuple[int, int, int],
        reference: Path | str,
        reference_dims: tuple[int, int, int],
    ):
        self.path = Path(path)
        self.dims = dims
        self.reference = Path(reference)
        self.reference_dims = reference_dims
        super().__init__(
            f"Slice {self.path} ({dims[0]}x, {dims[1]}y, {dims[2]}c) does not match "
            f"the dimensions of slice {self.reference} "
            f"({reference_dims[0]}x, {reference_dims[1]}y, {reference_dims[2]}c)"
        )


class InvalidGeometry(DicomIOError):
    """Non-positive dimension or voxel spacing."""


class InvalidSlice(DicomIOError):
    """A candidate file is unreadable or lacks a required tag."""

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Invalid DICOM slice {self.path}: {reason}")


class UnsupportedChannels(DicomIOError):
    def __init__(self, nc: int, path: Path | str | None = None):
        self.nc = nc
        self.path = Path(path) if path is not None else None
        where = f"{self.path} has" if self.path is not None else "Image has"
        super().__init__(
            f"{where} {nc} channels. Only single-channel (monochrome) images are supported"
        )


class PayloadDecodeFailure(DicomIOError):
    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Could not decode pixel data from {self.path}: {reason}")


class ResizeFailure(DicomIOError):
    def __init__(self, dims: tuple[int, ...], reason: str):
        self.dims = dims
        super().__init__(f"Failed to allocate volume of shape {dims}: {reason}")


class TagWriteFailure(DicomIOError):
    def __init__(self, tag: str, reason: str):
        self.tag = tag
        super().__init__(f"Failed to set {tag}: {reason}")


class PersistFailure(DicomIOError):
    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        super().__init__(f"Failed to write file {self.path}: {reason}")


class PartialWriteFailure(DicomIOError):
    def __init__(self, path: Path | str, written: list[Path], reason: str):
        self.path = Path(path)
        self.written = list(written)
        super().__init__(
            f"Failed to write slice {self.path} after {len(self.written)} "
            f"file(s) were written: {reason}"
        )


def catch_exceptions(func):
    """Log failures of a public I/O call and keep them inside DicomIOError.

    DicomIOError is logged and re-raised unchanged; any other exception is
    logged and re-raised as a DicomIOError chained to the original.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DicomIOError as e:
            logger.error(f"{func.__name__}: {e}")
            raise
        except Exception as e:
            logger.error(f"{func.__name__}: unexpected exception: {e!r}")
            raise DicomIOError(f"{func.__name__}: unexpected exception: {e}") from e

    return wrapper
