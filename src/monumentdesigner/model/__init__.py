from monumentdesigner.model.geometry_primitives import Vector, Quaternion, Pose, WorldPose
from monumentdesigner.model.host import HostTransform, HostSurface
from monumentdesigner.model.raster import RasterBuffer, classify_line_pixels
from monumentdesigner.model.decoration import (
    Alignment,
    ArtPayload,
    Decoration,
    DecorationType,
    FinishVariant,
    TextDirection,
    TextPayload,
)

__all__ = [
    "Alignment",
    "ArtPayload",
    "Decoration",
    "DecorationType",
    "FinishVariant",
    "HostSurface",
    "HostTransform",
    "Pose",
    "Quaternion",
    "RasterBuffer",
    "TextDirection",
    "TextPayload",
    "Vector",
    "WorldPose",
    "classify_line_pixels",
]
