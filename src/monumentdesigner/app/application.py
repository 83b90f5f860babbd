"""
Design Session
==============
Composition root of the decoration core.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Instantiates the per-session collaborators (store, host provider, font
   resolver) so no state is global.
2. Wires the attachment controller to them and to a QTimer frame clock.
3. Owns the background raster loaders and ties their lifetime to the session.
"""
from __future__ import annotations

from typing import List, Optional
import logging

from PySide6.QtCore import QObject, QTimer, Signal

from monumentdesigner.config import APP_VERSION, FONTS_PATH, FRAME_INTERVAL_MS, MAX_RASTER_SIZE
from monumentdesigner.logging_config import setup_logging
from monumentdesigner.app.host_provider import HostAssetProvider
from monumentdesigner.app.state import DesignStore
from monumentdesigner.controller.attachment import SurfaceAttachmentController
from monumentdesigner.controller.fonts import FontResolver
from monumentdesigner.controller.workers import RasterLoadWorker
from monumentdesigner.model.decoration import ArtPayload

logger = logging.getLogger(__name__)


class FrameClock(QObject):
    """Cooperative per-frame tick driving deferred work."""
    frame = Signal()

    def __init__(self, interval_ms: int = FRAME_INTERVAL_MS, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.tick)

    def start(self) -> None:
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()

    def is_active(self) -> bool:
        return self._timer.isActive()

    def tick(self) -> None:
        self.frame.emit()


class DesignSession(QObject):
    def __init__(
        self,
        fonts_path: str = FONTS_PATH,
        frame_interval_ms: int = FRAME_INTERVAL_MS,
        log_level: Optional[int] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        if log_level is not None:
            setup_logging(level=log_level)

        self.store = DesignStore(self)
        self.hosts = HostAssetProvider(self)
        self.fonts = FontResolver(fonts_path=fonts_path, notify=self.store.post_notice)
        self.controller = SurfaceAttachmentController(self.store, self.hosts, self.fonts, self)
        self.clock = FrameClock(frame_interval_ms, self)
        self.clock.frame.connect(self.controller.on_frame)
        self._workers: List[RasterLoadWorker] = []

    def start(self) -> None:
        self.clock.start()
        logger.info(f"Design session started (monumentdesigner {APP_VERSION}).")

    def load_art(self, decoration_id: str, path: Optional[str] = None,
                 max_size: int = MAX_RASTER_SIZE) -> RasterLoadWorker:
        """
        Decode the art image of a decoration in the background.

        Args:
            decoration_id: Art decoration held by the store.
            path: Image to load; defaults to the decoration's `image_path`.
            max_size: Resolution cap per side.
        """
        decoration = self.store.get(decoration_id)
        if not isinstance(decoration.payload, ArtPayload):
            raise ValueError(f"Decoration '{decoration_id}' is not an art decoration.")
        path = path or decoration.payload.image_path
        if not path:
            raise ValueError(f"Decoration '{decoration_id}' has no image path.")

        worker = RasterLoadWorker(decoration_id, path, max_size)
        worker.loaded.connect(self.controller.on_raster_loaded)
        worker.failed.connect(self.controller.on_raster_failed)
        worker.finished.connect(lambda: self._forget(worker))
        self._workers.append(worker)
        worker.start()
        return worker

    def _forget(self, worker: RasterLoadWorker) -> None:
        if worker in self._workers:
            self._workers.remove(worker)

    def close(self) -> None:
        """Stop the clock and drop results of loaders still running."""
        self.clock.stop()
        self.controller.close()
        for worker in list(self._workers):
            worker.stop()
            worker.wait()
        self._workers.clear()
        logger.info("Design session closed.")
