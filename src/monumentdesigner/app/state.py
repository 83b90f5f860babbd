"""
Design State Store
==================
Holds the decorations of the open design and announces every change through
Qt signals.

Why is this file needed?
------------------------
1. Source of truth: Local poses, scales and payloads live here. The attachment
   controller and the renderers only read them.
2. Command/event seam: Pose changes come in as `request_pose_update` commands
   and go out as `pose_updated` events, so the controller never calls back
   into UI code and the history stack can listen to one signal.
"""
from __future__ import annotations

from dataclasses import fields
from typing import Any, Dict, List, Optional, TYPE_CHECKING
import logging

from PySide6.QtCore import QObject, Signal

from monumentdesigner.errors import DecorationNotFoundError
from monumentdesigner.model.decoration import Decoration, DecorationType, TextPayload, ArtPayload
from monumentdesigner.model.geometry_primitives import Vector

if TYPE_CHECKING:
    import numpy as np
    import numpy.typing as npt

logger = logging.getLogger(__name__)

DUPLICATE_OFFSET = Vector(0.5, 0.1, 0.0)


class DesignStore(QObject):
    """Central state store for placed decorations."""
    decoration_added = Signal(str)
    decoration_removed = Signal(str)
    # (decoration id, replace_history)
    pose_updated = Signal(str, bool)
    # (decoration id, replace_history)
    scale_updated = Signal(str, bool)
    properties_changed = Signal(str)
    raster_updated = Signal(str)
    selection_changed = Signal(object)
    notice = Signal(str)

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._decorations: Dict[str, Decoration] = {}
        self._raster_snapshots: Dict[str, npt.NDArray[np.uint8]] = {}
        self._selected: Optional[str] = None

    # ------------------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------------------

    def decorations(self) -> List[Decoration]:
        return list(self._decorations.values())

    def get(self, decoration_id: str) -> Decoration:
        try:
            return self._decorations[decoration_id]
        except KeyError:
            raise DecorationNotFoundError(decoration_id) from None

    def find(self, decoration_id: str) -> Optional[Decoration]:
        return self._decorations.get(decoration_id)

    def __contains__(self, decoration_id: object) -> bool:
        return decoration_id in self._decorations

    def raster_snapshot(self, decoration_id: str) -> Optional[npt.NDArray[np.uint8]]:
        return self._raster_snapshots.get(decoration_id)

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected

    # ------------------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------------------

    def add_decoration(self, decoration: Decoration) -> str:
        if decoration.id in self._decorations:
            raise ValueError(f"Decoration with id '{decoration.id}' already exists.")
        self._decorations[decoration.id] = decoration
        logger.debug(f"Added {decoration.type} decoration '{decoration.id}'.")
        self.decoration_added.emit(decoration.id)
        return decoration.id

    def remove_decoration(self, decoration_id: str) -> None:
        self.get(decoration_id)
        del self._decorations[decoration_id]
        self._raster_snapshots.pop(decoration_id, None)
        if self._selected == decoration_id:
            self.select(None)
        self.decoration_removed.emit(decoration_id)

    def duplicate_decoration(self, decoration_id: str) -> str:
        source = self.get(decoration_id)
        clone = source.copy(new_id=Decoration.new_id(source.type))
        clone.position = source.position + DUPLICATE_OFFSET
        snapshot = self._raster_snapshots.get(decoration_id)
        if snapshot is not None:
            self._raster_snapshots[clone.id] = snapshot.copy()
        return self.add_decoration(clone)

    def select(self, decoration_id: Optional[str]) -> None:
        if decoration_id == self._selected:
            return
        self._selected = decoration_id
        self.selection_changed.emit(decoration_id)

    # ------------------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------------------

    def set_decoration_local_pose(
        self,
        decoration_id: str,
        position: Vector,
        rotation: Vector,
        replace_history: bool = False,
    ) -> None:
        decoration = self.get(decoration_id)
        decoration.position = position
        decoration.rotation = rotation
        self.pose_updated.emit(decoration_id, replace_history)

    def request_pose_update(
        self,
        decoration_id: str,
        position: Vector,
        rotation: Vector,
        replace_history: bool = False,
    ) -> None:
        """Command entry point used by the attachment controller."""
        if decoration_id not in self._decorations:
            logger.debug(f"Pose update for removed decoration '{decoration_id}' dropped.")
            return
        self.set_decoration_local_pose(decoration_id, position, rotation, replace_history)

    def set_decoration_scale(self, decoration_id: str, scale: Vector, replace_history: bool = False) -> None:
        self.get(decoration_id).scale = scale
        self.scale_updated.emit(decoration_id, replace_history)

    def flip_decoration(self, decoration_id: str, axis: str) -> None:
        self.get(decoration_id).flip(axis)
        self.scale_updated.emit(decoration_id, False)

    def rotate_quarter_turn(self, decoration_id: str) -> None:
        self.get(decoration_id).rotate_quarter_turn()
        self.pose_updated.emit(decoration_id, False)

    def update_payload(self, decoration_id: str, **changes: Any) -> None:
        """
        Update payload attributes (e.g. `finish`, `curvature`, `line_color`).

        Raises:
            ValueError: If a key is not an attribute of the decoration's payload.
        """
        decoration = self.get(decoration_id)
        payload = decoration.payload
        allowed = {f.name for f in fields(payload)} - {"raster"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Unknown {decoration.type} properties: {sorted(unknown)}")
        for key, value in changes.items():
            setattr(payload, key, value)
        self.properties_changed.emit(decoration_id)

    def set_decoration_raster(self, decoration_id: str, snapshot: npt.NDArray[np.uint8]) -> None:
        decoration = self.get(decoration_id)
        if decoration.type != DecorationType.ART:
            raise ValueError(f"Decoration '{decoration_id}' is not an art decoration.")
        self._raster_snapshots[decoration_id] = snapshot.copy()
        self.raster_updated.emit(decoration_id)

    def post_notice(self, message: str) -> None:
        logger.warning(message)
        self.notice.emit(message)

    # ------------------------------------------------------------------------------
    # Persisted representation
    # ------------------------------------------------------------------------------

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [d.to_dict() for d in self._decorations.values()]

    def load_dicts(self, items: List[Dict[str, Any]]) -> None:
        """Replace the whole design with persisted decorations."""
        for decoration_id in list(self._decorations):
            self.remove_decoration(decoration_id)
        for item in items:
            self.add_decoration(Decoration.from_dict(item))


def new_text(content: str, host_id: Optional[str] = None, **payload: Any) -> Decoration:
    """A text decoration at the default (zero) local position."""
    return Decoration(
        id=Decoration.new_id(DecorationType.TEXT),
        payload=TextPayload(content=content, **payload),
        host_id=host_id,
    )


def new_art(image_path: Optional[str] = None, host_id: Optional[str] = None,
            scale: Optional[Vector] = None) -> Decoration:
    return Decoration(
        id=Decoration.new_id(DecorationType.ART),
        payload=ArtPayload(image_path=image_path),
        host_id=host_id,
        scale=scale or Vector(0.2, 0.2, 1.0),
    )
