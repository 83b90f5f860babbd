"""
Background Workers (Threading)
==============================
QThread subclasses for resource loading that must not block the frame clock.

Why is this file needed?
------------------------
1. Responsiveness: Decoding a large pattern image on the main thread would
   stall rendering and drag interaction.
2. Signals: Results travel back to the main thread through Qt Signals, where
   the attachment controller merges them (or discards them when the
   decoration is gone by then).

Classes:
    RasterLoadWorker: Decodes one art image for one decoration.
"""
import logging
from PySide6.QtCore import QThread, Signal

from monumentdesigner.config import MAX_RASTER_SIZE
from monumentdesigner.controller.raster_loader import load_raster
from monumentdesigner.errors import ResourceLoadError

logger = logging.getLogger(__name__)


class RasterLoadWorker(QThread):
    # (decoration id, RasterBuffer)
    loaded = Signal(str, object)
    # (decoration id, message)
    failed = Signal(str, str)

    def __init__(self, decoration_id: str, path: str, max_size: int = MAX_RASTER_SIZE):
        super().__init__()
        self.decoration_id = decoration_id
        self.path = path
        self.max_size = max_size
        self.is_running = True

    def run(self):
        try:
            logger.info(f"Loading raster '{self.path}' in background thread...")
            buffer = load_raster(self.path, self.max_size)
        except ResourceLoadError as e:
            logger.error(f"Error in RasterLoadWorker: {e}")
            self.failed.emit(self.decoration_id, str(e))
            return

        if self.is_running:
            self.loaded.emit(self.decoration_id, buffer)
        else:
            logger.debug(f"Raster '{self.path}' loaded after the worker was stopped; dropped.")

    def stop(self) -> None:
        self.is_running = False
