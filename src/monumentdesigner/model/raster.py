"""
Raster Buffers
==============
Pixel storage backing an art decoration.

Each buffer holds two RGBA images of identical size:
    original: the imported line art, frozen at load time (read-only array).
    current:  the recolored result shown on the host, owned by one decoration.

Dark, non-transparent pixels of `original` are "line" pixels. Fills never
touch them, so `current` always equals `original` on the line mask.
"""
from __future__ import annotations

from typing import Optional, TYPE_CHECKING

import numpy as np

from monumentdesigner.config import LINE_RGB_THRESHOLD, LINE_ALPHA_THRESHOLD

if TYPE_CHECKING:
    import numpy.typing as npt


def classify_line_pixels(
    image: npt.NDArray[np.uint8],
    rgb_threshold: int = LINE_RGB_THRESHOLD,
    alpha_threshold: int = LINE_ALPHA_THRESHOLD,
) -> npt.NDArray[np.bool_]:
    """
    Classify the ink pixels of an RGBA image.

    Args:
        image: (H, W, 4) uint8 array.
        rgb_threshold: R, G and B must each be strictly below this value.
        alpha_threshold: Alpha must be strictly above this value.

    Returns:
        (H, W) boolean mask, True where the pixel is a line pixel.
    """
    rgb_dark = np.all(image[..., :3] < rgb_threshold, axis=-1)
    return rgb_dark & (image[..., 3] > alpha_threshold)


def _as_rgba(array: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    arr = np.asarray(array)
    if arr.ndim != 3 or arr.shape[2] != 4:
        raise ValueError(f"Expected an (H, W, 4) RGBA array, got shape {arr.shape}.")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ValueError("Raster must have at least one pixel.")
    return np.array(arr, dtype=np.uint8, copy=True)


class RasterBuffer:
    """An art decoration's pixels: frozen original plus recolorable current."""

    def __init__(
        self,
        original: npt.ArrayLike,
        current: Optional[npt.ArrayLike] = None,
        *,
        _shared_original: Optional[npt.NDArray[np.uint8]] = None,
        _shared_mask: Optional[npt.NDArray[np.bool_]] = None,
    ) -> None:
        if _shared_original is not None:
            self._original = _shared_original
        else:
            self._original = _as_rgba(original)
            self._original.setflags(write=False)

        if current is None:
            self.current: npt.NDArray[np.uint8] = self._original.copy()
        else:
            cur = _as_rgba(current)
            if cur.shape != self._original.shape:
                raise ValueError(
                    f"Current image shape {cur.shape} does not match original {self._original.shape}."
                )
            self.current = cur

        self._line_mask = _shared_mask
        if self._line_mask is None:
            self._line_mask = classify_line_pixels(self._original)
            self._line_mask.setflags(write=False)

        # Line pixels of a restored image must match the original
        self.current[self._line_mask] = self._original[self._line_mask]

    @property
    def width(self) -> int:
        return int(self._original.shape[1])

    @property
    def height(self) -> int:
        return int(self._original.shape[0])

    @property
    def original(self) -> npt.NDArray[np.uint8]:
        """Read-only reference image."""
        return self._original

    @property
    def line_mask(self) -> npt.NDArray[np.bool_]:
        return self._line_mask

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height

    @staticmethod
    def blank(width: int, height: int, color: tuple[int, int, int, int]) -> RasterBuffer:
        """A uniformly colored buffer, e.g. the stand-in for an image that failed to load."""
        return RasterBuffer(np.full((height, width, 4), color, dtype=np.uint8))

    def is_line_pixel(self, x: int, y: int) -> bool:
        return bool(self._line_mask[y, x])

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def clone(self) -> RasterBuffer:
        """A new buffer sharing the read-only original with its own copy of `current`."""
        return RasterBuffer(
            None,
            self.current.copy(),
            _shared_original=self._original,
            _shared_mask=self._line_mask,
        )

    def snapshot(self) -> npt.NDArray[np.uint8]:
        return self.current.copy()

    def restore(self, snapshot: npt.ArrayLike) -> None:
        """Replace `current` with a previously taken snapshot."""
        cur = _as_rgba(snapshot)
        if cur.shape != self._original.shape:
            raise ValueError(f"Snapshot shape {cur.shape} does not match raster {self._original.shape}.")
        cur[self._line_mask] = self._original[self._line_mask]
        self.current = cur

    def lines_intact(self) -> bool:
        """True when every line pixel of `current` is byte-identical to `original`."""
        return bool(np.array_equal(self.current[self._line_mask], self._original[self._line_mask]))

    def __repr__(self) -> str:
        return f"RasterBuffer({self.width}x{self.height}, lines={int(self._line_mask.sum())})"
