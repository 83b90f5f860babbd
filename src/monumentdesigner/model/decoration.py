"""
Decoration Data Model
=====================
Art patterns and inscriptions placed on a host surface.

Why is this file needed?
------------------------
1. Source of truth: The local pose (relative to the owning host) is what the
   design-state store keeps. World poses are always derived and never stored.
2. Persistence: `to_dict` / `from_dict` produce the exact representation
   exchanged at the design-state boundary:
       {id, hostId, position[3], rotation[3], scale[3], payload{...}}

Classes:
    ArtPayload: Raster art specific attributes.
    TextPayload: Inscription specific attributes.
    Decoration: The placed item.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any, Dict, Optional, Union
import logging
import math
import uuid

from monumentdesigner.config import DEFAULT_FONT_ID, DEFAULT_LINE_SPACING, FONT_SIZE_UNIT, SPACING_UNIT
from monumentdesigner.model.geometry_primitives import Vector, Pose
from monumentdesigner.model.raster import RasterBuffer

logger = logging.getLogger(__name__)


class DecorationType(StrEnum):
    ART = "art"
    TEXT = "text"


class FinishVariant(StrEnum):
    """Surface treatment of an inscription; each implies a standoff from the host."""
    ENGRAVED = "engraved"
    POLISH = "polish"
    FROST = "frost"
    VCUT = "vcut"


class Alignment(StrEnum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class TextDirection(StrEnum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass
class ArtPayload:
    image_path: Optional[str] = None
    # Recolor applied to line pixels at display time only
    line_color: Optional[tuple[int, int, int]] = None
    line_alpha: float = 1.0
    raster: Optional[RasterBuffer] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": DecorationType.ART.value,
            "imagePath": self.image_path,
            "lineColor": list(self.line_color) if self.line_color is not None else None,
            "lineAlpha": self.line_alpha,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> ArtPayload:
        line_color = data.get("lineColor")
        return ArtPayload(
            image_path=data.get("imagePath"),
            line_color=tuple(int(c) for c in line_color) if line_color is not None else None,
            line_alpha=float(data.get("lineAlpha", 1.0)),
        )


@dataclass
class TextPayload:
    content: str = ""
    font_id: str = DEFAULT_FONT_ID
    size: float = 16.0
    alignment: Alignment = Alignment.LEFT
    line_spacing: float = DEFAULT_LINE_SPACING
    char_spacing: float = 0.0  # kerning steps
    curvature: float = 0.0
    finish: FinishVariant = FinishVariant.ENGRAVED
    direction: TextDirection = TextDirection.HORIZONTAL
    thickness: float = 0.02

    @property
    def font_size(self) -> float:
        """Glyph height in scene units (meters)."""
        return self.size * FONT_SIZE_UNIT

    @property
    def spacing(self) -> float:
        """Extra advance added after every character, in scene units."""
        return self.font_size * self.char_spacing * SPACING_UNIT

    def display_lines(self) -> list[str]:
        if self.direction == TextDirection.VERTICAL:
            return [ch for ch in self.content if ch != "\n"]
        return self.content.split("\n")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": DecorationType.TEXT.value,
            "content": self.content,
            "font": self.font_id,
            "size": self.size,
            "alignment": self.alignment.value,
            "lineSpacing": self.line_spacing,
            "kerning": self.char_spacing,
            "curveAmount": self.curvature,
            "engraveType": self.finish.value,
            "textDirection": self.direction.value,
            "thickness": self.thickness,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> TextPayload:
        return TextPayload(
            content=str(data.get("content", "")),
            font_id=str(data.get("font", DEFAULT_FONT_ID)),
            size=float(data.get("size", 16.0)),
            alignment=Alignment(data.get("alignment", Alignment.LEFT)),
            line_spacing=float(data.get("lineSpacing", DEFAULT_LINE_SPACING)),
            char_spacing=float(data.get("kerning", 0.0)),
            curvature=float(data.get("curveAmount", 0.0)),
            finish=FinishVariant(data.get("engraveType", FinishVariant.ENGRAVED)),
            direction=TextDirection(data.get("textDirection", TextDirection.HORIZONTAL)),
            thickness=float(data.get("thickness", 0.02)),
        )


Payload = Union[ArtPayload, TextPayload]


@dataclass
class Decoration:
    """
    A placed art pattern or inscription.
    Position, rotation and scale are local to the owning host when `host_id` is set,
    and world coordinates otherwise.
    """
    id: str
    payload: Payload
    host_id: Optional[str] = None
    position: Vector = field(default_factory=Vector.zero)
    rotation: Vector = field(default_factory=Vector.zero)
    scale: Vector = field(default_factory=Vector.one)

    @property
    def type(self) -> DecorationType:
        return DecorationType.TEXT if isinstance(self.payload, TextPayload) else DecorationType.ART

    @property
    def local_pose(self) -> Pose:
        return Pose(position=self.position, rotation=self.rotation)

    @property
    def is_attached(self) -> bool:
        return self.host_id is not None

    def has_default_position(self) -> bool:
        return self.position.x == 0.0 and self.position.y == 0.0 and self.position.z == 0.0

    def flip(self, axis: str) -> None:
        """Mirror along a local axis by negating that scale component."""
        sx, sy, sz = self.scale.x, self.scale.y, self.scale.z
        if axis == "x":
            sx = -sx
        elif axis == "y":
            sy = -sy
        elif axis == "z":
            sz = -sz
        else:
            raise ValueError(f"Unknown axis '{axis}'.")
        self.scale = Vector(sx, sy, sz)

    def rotate_quarter_turn(self) -> None:
        self.rotation = Vector(self.rotation.x, self.rotation.y, self.rotation.z + math.pi / 2)

    def copy(self, new_id: Optional[str] = None) -> Decoration:
        """Deep enough copy: payload is duplicated and the raster gets its own `current`."""
        payload = replace(self.payload)
        if isinstance(payload, ArtPayload) and payload.raster is not None:
            payload.raster = payload.raster.clone()
        return replace(self, id=new_id or self.id, payload=payload)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "hostId": self.host_id,
            "position": self.position.to_list(),
            "rotation": self.rotation.to_list(),
            "scale": self.scale.to_list(),
            "payload": self.payload.to_dict(),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Decoration:
        payload_data = data.get("payload", {})
        kind = DecorationType(payload_data.get("type", DecorationType.TEXT))
        payload: Payload
        if kind == DecorationType.ART:
            payload = ArtPayload.from_dict(payload_data)
        else:
            payload = TextPayload.from_dict(payload_data)

        return Decoration(
            id=str(data["id"]),
            payload=payload,
            host_id=data.get("hostId"),
            position=Vector.from_iterable(data.get("position", (0.0, 0.0, 0.0))),
            rotation=Vector.from_iterable(data.get("rotation", (0.0, 0.0, 0.0))),
            scale=Vector.from_iterable(data.get("scale", (1.0, 1.0, 1.0))),
        )

    @staticmethod
    def new_id(kind: DecorationType) -> str:
        return f"{kind.value}-{uuid.uuid4().hex[:12]}"
