import numpy as np
import pytest
from PIL import Image

from monumentdesigner.controller.raster_loader import load_raster
from monumentdesigner.controller.workers import RasterLoadWorker
from monumentdesigner.errors import ResourceLoadError


def _save_png(path, width, height):
    img = np.full((height, width, 3), 255, dtype=np.uint8)
    img[0, :] = 0
    Image.fromarray(img).save(path)
    return str(path)


def test_load_converts_to_rgba(tmp_path):
    path = _save_png(tmp_path / "art.png", 6, 3)
    buffer = load_raster(path)
    assert buffer.current.shape == (3, 6, 4)
    assert buffer.aspect_ratio == pytest.approx(2.0)
    assert buffer.line_mask[0].all()
    assert not buffer.line_mask[1].any()


def test_large_images_are_downscaled(tmp_path):
    path = _save_png(tmp_path / "big.png", 40, 20)
    buffer = load_raster(path, max_size=10)
    assert (buffer.width, buffer.height) == (10, 5)


def test_missing_file(tmp_path):
    with pytest.raises(ResourceLoadError):
        load_raster(str(tmp_path / "missing.png"))


def test_not_an_image(tmp_path):
    path = tmp_path / "notes.png"
    path.write_text("hello", encoding="utf-8")
    with pytest.raises(ResourceLoadError) as exc:
        load_raster(str(path))
    assert exc.value.resource == str(path)


def test_worker_reports_result(qapp, tmp_path):
    path = _save_png(tmp_path / "art.png", 4, 4)
    worker = RasterLoadWorker("art-1", path)
    loaded, failed = [], []
    worker.loaded.connect(lambda *args: loaded.append(args))
    worker.failed.connect(lambda *args: failed.append(args))

    worker.run()

    assert failed == []
    assert loaded[0][0] == "art-1"
    assert loaded[0][1].width == 4


def test_worker_reports_failure(qapp, tmp_path):
    worker = RasterLoadWorker("art-1", str(tmp_path / "missing.png"))
    failed = []
    worker.failed.connect(lambda *args: failed.append(args))
    worker.run()
    assert failed and failed[0][0] == "art-1"


def test_stopped_worker_drops_result(qapp, tmp_path):
    worker = RasterLoadWorker("art-1", _save_png(tmp_path / "art.png", 2, 2))
    loaded = []
    worker.loaded.connect(lambda *args: loaded.append(args))
    worker.stop()
    worker.run()
    assert loaded == []
