"""Shared fixtures."""
from __future__ import annotations

import numpy as np
import pytest
from PySide6.QtCore import QCoreApplication

from monumentdesigner.app.host_provider import HostAssetProvider
from monumentdesigner.app.state import DesignStore
from monumentdesigner.controller.attachment import SurfaceAttachmentController
from monumentdesigner.controller.fonts import FontResolver
from monumentdesigner.model import HostSurface, HostTransform, RasterBuffer, Vector

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


@pytest.fixture
def store(qapp):
    return DesignStore()


@pytest.fixture
def hosts(qapp):
    return HostAssetProvider()


@pytest.fixture
def fonts(tmp_path):
    return FontResolver(fonts_path=str(tmp_path))


@pytest.fixture
def controller(store, hosts, fonts):
    ctrl = SurfaceAttachmentController(store, hosts, fonts)
    yield ctrl
    ctrl.close()


@pytest.fixture
def tablet():
    """A 1 x 2 x 0.2 m tablet at the origin."""
    return HostSurface("tablet", HostTransform(), Vector(1.0, 2.0, 0.2))


def make_ring(size: int = 5) -> np.ndarray:
    """White image with a one-pixel black ring around the center pixel."""
    img = np.zeros((size, size, 4), dtype=np.uint8)
    img[:] = WHITE
    c = size // 2
    for dy in (-1, 0, 1):
        for dx in (-1, 0, 1):
            if dx or dy:
                img[c + dy, c + dx] = BLACK
    return img


@pytest.fixture
def ring_buffer():
    return RasterBuffer(make_ring())
