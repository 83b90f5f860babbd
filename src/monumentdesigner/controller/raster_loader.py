"""
Raster Loading
==============
Decodes pattern/art images into `RasterBuffer`s.

Resolution is capped at load time (`MAX_RASTER_SIZE` per side) so that the
synchronous region fills stay interactive on any image the user picks.
"""
from __future__ import annotations

import logging
import os

import numpy as np
from PIL import Image, UnidentifiedImageError

from monumentdesigner.config import MAX_RASTER_SIZE
from monumentdesigner.errors import ResourceLoadError
from monumentdesigner.model.raster import RasterBuffer

logger = logging.getLogger(__name__)


def load_raster(path: str, max_size: int = MAX_RASTER_SIZE) -> RasterBuffer:
    """
    Read an image file as RGBA, downscaled to fit `max_size` x `max_size`.

    Raises:
        ResourceLoadError: If the file is missing or is not a readable image.
    """
    if not os.path.isfile(path):
        raise ResourceLoadError(path, "file does not exist")

    try:
        with Image.open(path) as img:
            img = img.convert("RGBA")
            if max(img.size) > max_size:
                original_size = img.size
                img.thumbnail((max_size, max_size), Image.Resampling.LANCZOS)
                logger.info(f"Downscaled '{path}' from {original_size} to {img.size}.")
            pixels = np.asarray(img, dtype=np.uint8).copy()
    except (OSError, UnidentifiedImageError) as e:
        raise ResourceLoadError(path, str(e)) from e

    buffer = RasterBuffer(pixels)
    logger.debug(f"Loaded {buffer!r} from '{path}'.")
    return buffer
