"""
Region Fill Engine
==================
Recolors contiguous regions of an art raster without touching its line pixels.

Two modes are supported:
    global: every border pixel seeds a 4-connected traversal over non-line
            pixels. Reachable pixels are the background, everything else that
            is not ink is enclosed by ink. Both sets (or one of them) are
            recolored in a single pass.
    seeded: a 4-connected traversal from one clicked pixel that stops at the
            buffer edge, at line pixels and at pixels already holding the
            target color.

Traversals are computed as connected-component labelling with a 4-neighbour
structuring element (scipy.ndimage.label), which visits exactly the pixels a
breadth-first search from the same seeds would.

The engine writes `RasterBuffer.current` in place and returns a FillResult
telling the caller whether a redisplay is needed. `original` is only read.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, StrEnum
from typing import Optional, Sequence, Union, TYPE_CHECKING
import logging

import numpy as np
from scipy import ndimage

from monumentdesigner.model.raster import RasterBuffer

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

FOUR_CONNECTED = ndimage.generate_binary_structure(2, 1)


class FillMode(StrEnum):
    GLOBAL = "global"
    SEEDED = "seeded"


class FillTarget(StrEnum):
    """Which non-line pixels a global fill recolors."""
    ALL = "all"
    EXTERIOR = "exterior"  # reachable from the border
    INTERIOR = "interior"  # enclosed by ink


class FillResult(Enum):
    APPLIED = "applied"
    NO_OP = "no_op"

    @property
    def needs_redisplay(self) -> bool:
        return self is FillResult.APPLIED


@dataclass(frozen=True)
class SolidFill:
    color: tuple[int, int, int, int]

    def __post_init__(self) -> None:
        if len(self.color) != 4 or any(not 0 <= int(c) <= 255 for c in self.color):
            raise ValueError(f"Fill color must be 4 channels in 0..255, got {self.color}.")

    @staticmethod
    def from_hex(value: str, alpha: int = 255) -> SolidFill:
        """Parse '#RRGGBB'."""
        text = value.lstrip("#")
        if len(text) != 6:
            raise ValueError(f"Expected a '#RRGGBB' color, got '{value}'.")
        r, g, b = (int(text[i:i + 2], 16) for i in (0, 2, 4))
        return SolidFill((r, g, b, alpha))

    def sample(self, ys: npt.NDArray[np.intp], xs: npt.NDArray[np.intp]) -> npt.NDArray[np.uint8]:
        return np.broadcast_to(np.array(self.color, dtype=np.uint8), (len(ys), 4))


@dataclass(frozen=True)
class PatternFill:
    """A tiled RGBA pattern sampled with wrap-around at `(pixel + offset) mod size`."""
    pattern: npt.NDArray[np.uint8] = field(repr=False)
    offset: tuple[int, int] = (0, 0)

    def __post_init__(self) -> None:
        arr = np.asarray(self.pattern)
        if arr.ndim != 3 or arr.shape[2] != 4 or arr.shape[0] == 0 or arr.shape[1] == 0:
            raise ValueError(f"Pattern must be a non-empty (H, W, 4) array, got shape {arr.shape}.")

    def sample(self, ys: npt.NDArray[np.intp], xs: npt.NDArray[np.intp]) -> npt.NDArray[np.uint8]:
        pattern = np.asarray(self.pattern, dtype=np.uint8)
        ph, pw = pattern.shape[:2]
        off_x = max(0, int(self.offset[0]))
        off_y = max(0, int(self.offset[1]))
        return pattern[(ys + off_y) % ph, (xs + off_x) % pw]


FillSpec = Union[SolidFill, PatternFill]


def _write(buffer: RasterBuffer, region: npt.NDArray[np.bool_], fill: FillSpec) -> FillResult:
    """Recolor `region` (never containing line pixels) and report whether anything changed."""
    ys, xs = np.nonzero(region)
    if len(ys) == 0:
        return FillResult.NO_OP

    new_values = fill.sample(ys, xs)
    if np.array_equal(buffer.current[ys, xs], new_values):
        return FillResult.NO_OP

    buffer.current[ys, xs] = new_values
    return FillResult.APPLIED


def border_reachable(passable: npt.NDArray[np.bool_]) -> npt.NDArray[np.bool_]:
    """Pixels of `passable` 4-connected to any border pixel of the image."""
    labels, count = ndimage.label(passable, structure=FOUR_CONNECTED)
    if count == 0:
        return np.zeros_like(passable)

    edge_labels = np.unique(np.concatenate((labels[0, :], labels[-1, :], labels[:, 0], labels[:, -1])))
    edge_labels = edge_labels[edge_labels != 0]
    return np.isin(labels, edge_labels)


def global_fill(buffer: RasterBuffer, fill: FillSpec, target: FillTarget = FillTarget.ALL) -> FillResult:
    """
    Recolor the background and/or the ink-enclosed regions of the whole raster.

    Args:
        buffer: Raster to recolor in place.
        fill: Solid color or tiled pattern.
        target: ALL recolors every non-line pixel, EXTERIOR only the background
                reachable from the border, INTERIOR only regions enclosed by ink.

    Returns:
        APPLIED when `current` changed, NO_OP otherwise.
    """
    fillable = ~buffer.line_mask
    if target == FillTarget.ALL:
        region = fillable
    else:
        exterior = border_reachable(fillable)
        region = exterior if target == FillTarget.EXTERIOR else fillable & ~exterior

    result = _write(buffer, region, fill)
    logger.debug(f"Global fill ({target}) on {buffer!r}: {result.value}")
    return result


def seeded_fill(buffer: RasterBuffer, fill: FillSpec, x: int, y: int) -> FillResult:
    """
    Recolor the region around one clicked pixel.

    Returns:
        NO_OP when the seed is outside the raster, is a line pixel, or (for a
        solid fill) already has the target color; APPLIED otherwise.
    """
    if not buffer.contains(x, y):
        logger.debug(f"Seed ({x}, {y}) outside {buffer!r}, nothing to fill.")
        return FillResult.NO_OP
    if buffer.is_line_pixel(x, y):
        logger.debug(f"Seed ({x}, {y}) is a line pixel, nothing to fill.")
        return FillResult.NO_OP

    passable = ~buffer.line_mask
    if isinstance(fill, SolidFill):
        already = np.all(buffer.current == np.array(fill.color, dtype=np.uint8), axis=-1)
        passable = passable & ~already

    if not passable[y, x]:
        return FillResult.NO_OP

    labels, _ = ndimage.label(passable, structure=FOUR_CONNECTED)
    region = labels == labels[y, x]
    result = _write(buffer, region, fill)
    logger.debug(f"Seeded fill at ({x}, {y}) on {buffer!r}: {result.value}")
    return result


def apply_fill(
    buffer: RasterBuffer,
    fill: FillSpec,
    mode: FillMode,
    seed: Optional[Sequence[int]] = None,
    target: FillTarget = FillTarget.ALL,
) -> FillResult:
    """Dispatch to `global_fill` or `seeded_fill`."""
    if mode == FillMode.GLOBAL:
        return global_fill(buffer, fill, target)
    if seed is None:
        raise ValueError("Seeded fill requires a seed pixel.")
    x, y = seed
    return seeded_fill(buffer, fill, int(x), int(y))


def uv_to_pixel(buffer: RasterBuffer, u: float, v: float) -> tuple[int, int]:
    """Map texture coordinates (origin bottom-left) to a pixel (origin top-left)."""
    x = int(np.floor(u * buffer.width))
    y = int(np.floor((1.0 - v) * buffer.height))
    return min(max(x, 0), buffer.width - 1), min(max(y, 0), buffer.height - 1)


def compose_display(
    buffer: RasterBuffer,
    line_color: Optional[Sequence[int]] = None,
    line_alpha: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """
    Image to put on screen: `current` with the line pixels optionally recolored
    and their alpha scaled. Returns a new array; the buffer is left untouched.
    """
    out = buffer.current.copy()
    mask = buffer.line_mask
    if line_color is not None:
        out[mask, :3] = np.asarray(line_color[:3], dtype=np.uint8)
    alpha = buffer.original[mask, 3].astype(np.float64) * float(np.clip(line_alpha, 0.0, 1.0))
    out[mask, 3] = np.round(alpha).astype(np.uint8)
    return out
