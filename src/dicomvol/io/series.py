"""Series validation: one series, one in-plane geometry."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from dicomvol.core.errors import DimensionMismatch, EmptyInput, SeriesMismatch
from dicomvol.core.types import SeriesGeometry, SliceRecord

logger = logging.getLogger(__name__)


def validate_series(records: Sequence[SliceRecord]) -> SeriesGeometry:
    """Check that *records* form one consistent series.

    The first record is the reference: every other record must share its
    Series Instance UID and its (nx, ny, nc). Spacing is taken from the
    reference and is not compared across records.
    """
    records = list(records)
    if not records:
        raise EmptyInput()

    for record in records:
        if not record.valid:
            raise record.error

    first = records[0]
    for record in records[1:]:
        if record.series_uid != first.series_uid:
            raise SeriesMismatch(record.path, first.path)

    nz = 0
    for record in records:
        if record.dims != first.dims:
            raise DimensionMismatch(record.path, record.dims, first.path, first.dims)
        nz += record.nz

    logger.debug(
        f"Validated {len(records)} slice file(s) of series {first.series_uid}: "
        f"{first.nx}x{first.ny}x{nz}"
    )
    return SeriesGeometry(
        records=records,
        nx=first.nx,
        ny=first.ny,
        nc=first.nc,
        nz=nz,
        spacing=first.spacing,
    )
