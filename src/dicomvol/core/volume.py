"""Volume container for voxel data exchanged with DICOM files."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from dicomvol.core.errors import InvalidGeometry, ResizeFailure


def _empty_data() -> np.ndarray:
    return np.zeros((0, 0, 0, 1), dtype=np.float32)


@dataclass
class Volume:
    """Dense 4D voxel buffer addressed as ``data[x, y, z, c]``."""

    data: np.ndarray = field(default_factory=_empty_data)  # float32 [X, Y, Z, C]
    spacing: tuple[float, float, float] = (1.0, 1.0, 1.0)  # (ux, uy, uz) in mm

    def __post_init__(self):
        if self.data.ndim == 3:
            self.data = self.data[..., np.newaxis]
        if self.data.ndim != 4:
            raise InvalidGeometry(
                f"Volume data must be 3D or 4D, got {self.data.ndim}D"
            )
        self.set_spacing(*self.spacing)

    @property
    def nx(self) -> int:
        return self.data.shape[0]

    @property
    def ny(self) -> int:
        return self.data.shape[1]

    @property
    def nz(self) -> int:
        return self.data.shape[2]

    @property
    def nc(self) -> int:
        return self.data.shape[3]

    @property
    def shape(self) -> tuple[int, ...]:
        return self.data.shape

    def set_spacing(self, ux: float, uy: float, uz: float) -> None:
        spacing = (float(ux), float(uy), float(uz))
        if any(not u > 0.0 for u in spacing):
            raise InvalidGeometry(f"Voxel spacing must be positive, got {spacing}")
        self.spacing = spacing

    def resize(self, nx: int, ny: int, nz: int, nc: int = 1) -> None:
        """Reallocate the buffer as zeros of shape (nx, ny, nz, nc).

        The previous buffer is kept if allocation fails.
        """
        dims = (int(nx), int(ny), int(nz), int(nc))
        if any(d < 1 for d in dims):
            raise ResizeFailure(dims, "dimensions must be >= 1")
        try:
            data = np.zeros(dims, dtype=np.float32)
        except (MemoryError, ValueError) as e:
            raise ResizeFailure(dims, str(e)) from e
        self.data = data

    def plane(self, z: int) -> np.ndarray:
        """Return a view of the (nx, ny, nc) plane at index *z*."""
        return self.data[:, :, z, :]

    def scaled(self) -> Volume:
        """Return a copy normalized so that the largest absolute value is 1."""
        peak = float(np.max(np.abs(self.data))) if self.data.size else 0.0
        data = self.data / peak if peak > 0.0 else self.data.copy()
        return Volume(data=data.astype(np.float32), spacing=self.spacing)
