"""
Configuration & Constants
=========================
This module serves as the central registry for resource paths and the numeric
constants shared by the decoration core.

Why is this file needed?
------------------------
1. Abstraction: It prevents hardcoded paths and magic numbers scattered
   throughout the attachment, fill and layout code.
2. Deployment: It handles the logic required by PyInstaller (sys._MEIPASS) to
   find assets (fonts, patterns) when the app is frozen into an .exe.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    FONTS_PATH (str): Absolute path to the bundled font descriptors.
"""
import logging
import os
import sys
from importlib.metadata import version, PackageNotFoundError
from pathlib import Path

logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("monumentdesigner")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to resource, works for dev and for PyInstaller.
    """
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller temp folder
        base_path: str = getattr(sys, '_MEIPASS')
        return os.path.join(base_path, relative_path)

    # Development mode: config.py is in src/monumentdesigner/
    current_file_path: Path = Path(__file__)
    project_root: Path = current_file_path.parent.parent.parent
    return os.path.join(str(project_root), relative_path)


# --- Paths ---
ASSETS_PATH: str = get_resource_path("assets")
FONTS_PATH: str = os.path.join(ASSETS_PATH, "fonts")
DEFAULT_FONT_ID: str = "helvetiker_regular"

# --- Raster / fill ---
# A pixel of the original image is "ink" when it is dark and not transparent.
LINE_RGB_THRESHOLD: int = 100
LINE_ALPHA_THRESHOLD: int = 10
MAX_RASTER_SIZE: int = 2048  # px per side, enforced when a raster is loaded
# Stand-in shown when an art image cannot be loaded
PLACEHOLDER_RASTER_SIZE: int = 256
PLACEHOLDER_RASTER_COLOR: tuple[int, int, int, int] = (255, 255, 255, 255)

# --- Surface attachment ---
# Standoff above the front plane, per finish tier (meters)
RAISED_FINISH_BIAS: float = 0.021
POLISHED_FINISH_BIAS: float = 0.010
FLUSH_FINISH_BIAS: float = 0.002

DEFAULT_TEXT_ANCHOR_Y: float = 0.3
WRITE_BACK_EPSILON: float = 1e-6
ROUND_TRIP_TOLERANCE: float = 1e-5
DEGENERATE_SCALE_EPS: float = 1e-9
FRAME_INTERVAL_MS: int = 16

# --- Text layout ---
FONT_SIZE_UNIT: float = 0.0254  # text size is given in inches
SPACING_UNIT: float = 0.001  # one kerning step, as a fraction of font size
DEFAULT_LINE_SPACING: float = 1.2
CURVATURE_LIMIT: float = 45.0
MIN_ARC_ANGLE_FACTOR: float = 0.2  # x pi
MAX_ARC_ANGLE_FACTOR: float = 1.2  # x pi
DEFAULT_CHAR_WIDTH: float = 0.7  # em
CARET_CHAR: str = "|"
CARET_WIDTH: float = 0.05  # em

if not os.path.exists(ASSETS_PATH):
    logger.debug(f"Assets path not found at {ASSETS_PATH}")
