"""
Host Asset Provider
===================
Narrow read-only view of the loaded host assets (monuments, tablets, bases).

Readiness is an explicit one-shot event: `when_ready` callbacks run exactly
once, as soon as the host's first valid surface is published, instead of the
consumers polling every frame for a render node.
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional
import logging

from PySide6.QtCore import QObject, Signal

from monumentdesigner.model.geometry_primitives import Vector
from monumentdesigner.model.host import HostSurface, HostTransform

logger = logging.getLogger(__name__)


class HostAssetProvider(QObject):
    host_ready = Signal(str)
    transform_changed = Signal(str)
    host_removed = Signal(str)

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._surfaces: Dict[str, HostSurface] = {}
        self._waiting: Dict[str, List[Callable[[], None]]] = {}

    # ------------------------------------------------------------------------------
    # Accessors used by the core
    # ------------------------------------------------------------------------------

    def get_world_transform(self, host_id: str) -> Optional[HostTransform]:
        surface = self._surfaces.get(host_id)
        return surface.transform if surface is not None else None

    def get_bounding_size(self, host_id: str) -> Optional[Vector]:
        surface = self._surfaces.get(host_id)
        return surface.bounding_size if surface is not None else None

    def get_surface(self, host_id: str) -> Optional[HostSurface]:
        return self._surfaces.get(host_id)

    def is_ready(self, host_id: str) -> bool:
        return host_id in self._surfaces

    def when_ready(self, host_id: str, callback: Callable[[], None]) -> None:
        """Run `callback` once the host is ready; immediately if it already is."""
        if self.is_ready(host_id):
            callback()
            return
        self._waiting.setdefault(host_id, []).append(callback)

    # ------------------------------------------------------------------------------
    # Publishing side (asset loader, host editing)
    # ------------------------------------------------------------------------------

    def publish_surface(self, surface: HostSurface) -> None:
        """Publish a loaded host or replace its transform and size."""
        first = surface.host_id not in self._surfaces
        self._surfaces[surface.host_id] = surface
        if first:
            logger.info(f"Host '{surface.host_id}' is ready.")
            self.host_ready.emit(surface.host_id)
            for callback in self._waiting.pop(surface.host_id, []):
                callback()
        else:
            self.transform_changed.emit(surface.host_id)

    def set_world_transform(self, host_id: str, transform: HostTransform) -> None:
        surface = self._surfaces.get(host_id)
        if surface is None:
            logger.debug(f"Ignoring transform for unknown host '{host_id}'.")
            return
        self._surfaces[host_id] = HostSurface(host_id, transform, surface.bounding_size)
        self.transform_changed.emit(host_id)

    def remove_host(self, host_id: str) -> None:
        self._waiting.pop(host_id, None)
        if self._surfaces.pop(host_id, None) is not None:
            self.host_removed.emit(host_id)
