"""Resolve the descriptive metadata written to DICOM files."""

from __future__ import annotations

import logging
from dataclasses import fields, replace

from pydicom.uid import generate_uid

from dicomvol.core.errors import catch_exceptions
from dicomvol.core.types import DEFAULT_CONFIG, DicomIOConfig, DicomMeta

logger = logging.getLogger(__name__)


def generate_instance_uid(config: DicomIOConfig | None = None) -> str:
    config = config or DEFAULT_CONFIG
    return generate_uid(prefix=config.instance_uid_root)


def default_metadata(config: DicomIOConfig | None = None) -> DicomMeta:
    """Build default metadata with freshly generated UIDs."""
    config = config or DEFAULT_CONFIG
    return DicomMeta(
        patient_name=config.default_patient_name,
        patient_id=config.default_patient_id,
        study_uid=generate_uid(prefix=config.study_uid_root),
        series_uid=generate_uid(prefix=config.series_uid_root),
        series_descrip=config.default_series_descrip,
        instance_uid=generate_instance_uid(config),
        instance_num=config.default_instance_num,
    )


@catch_exceptions
def resolve_metadata(
    meta: DicomMeta | None = None,
    config: DicomIOConfig | None = None,
) -> DicomMeta:
    """Return the effective metadata for a write call.

    ``None`` yields the defaults, a complete DicomMeta is copied verbatim,
    and fields left as None are filled from the defaults. UIDs are only
    generated for UID fields that are missing.
    """
    if meta is None:
        return default_metadata(config)
    if meta.complete:
        return replace(meta)

    config = config or DEFAULT_CONFIG
    fallback = {
        "patient_name": lambda: config.default_patient_name,
        "patient_id": lambda: config.default_patient_id,
        "study_uid": lambda: generate_uid(prefix=config.study_uid_root),
        "series_uid": lambda: generate_uid(prefix=config.series_uid_root),
        "series_descrip": lambda: config.default_series_descrip,
        "instance_uid": lambda: generate_instance_uid(config),
        "instance_num": lambda: config.default_instance_num,
    }
    filled = {}
    for f in fields(meta):
        if getattr(meta, f.name) is None:
            filled[f.name] = fallback[f.name]()
    logger.debug(f"Filled metadata defaults for: {', '.join(filled)}")
    return replace(meta, **filled)
