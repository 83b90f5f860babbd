import numpy as np
import pytest

from monumentdesigner.app.state import DUPLICATE_OFFSET, new_art, new_text
from monumentdesigner.errors import DecorationNotFoundError
from monumentdesigner.model import Decoration, FinishVariant, RasterBuffer, Vector


def _record(signal):
    calls = []
    signal.connect(lambda *args: calls.append(args))
    return calls


def test_add_get_remove(store):
    added = _record(store.decoration_added)
    removed = _record(store.decoration_removed)
    decoration = new_text("HELLO", host_id="tablet")

    store.add_decoration(decoration)
    assert store.get(decoration.id) is decoration
    assert added == [(decoration.id,)]

    store.remove_decoration(decoration.id)
    assert removed == [(decoration.id,)]
    assert store.find(decoration.id) is None
    with pytest.raises(DecorationNotFoundError):
        store.get(decoration.id)


def test_duplicate_ids_are_rejected(store):
    decoration = new_text("A")
    store.add_decoration(decoration)
    with pytest.raises(ValueError):
        store.add_decoration(decoration)


def test_pose_update_emits_replace_history_flag(store):
    updates = _record(store.pose_updated)
    decoration = new_text("A")
    store.add_decoration(decoration)

    store.request_pose_update(decoration.id, Vector(1.0, 2.0, 3.0), Vector.zero(), replace_history=True)

    assert decoration.position == Vector(1.0, 2.0, 3.0)
    assert updates == [(decoration.id, True)]


def test_pose_update_for_removed_decoration_is_dropped(store):
    updates = _record(store.pose_updated)
    store.request_pose_update("gone", Vector.zero(), Vector.zero())
    assert updates == []


def test_duplicate_offsets_and_owns_its_raster(store):
    art = new_art("pattern.png", host_id="tablet")
    art.payload.raster = RasterBuffer(np.full((2, 2, 4), 255, dtype=np.uint8))
    art.position = Vector(0.1, 0.2, -0.05)
    store.add_decoration(art)
    store.set_decoration_raster(art.id, art.payload.raster.snapshot())

    copy_id = store.duplicate_decoration(art.id)
    copy = store.get(copy_id)

    assert copy_id != art.id
    assert copy.position.is_close(art.position + DUPLICATE_OFFSET)
    assert copy.payload.raster.current is not art.payload.raster.current
    assert copy.payload.raster.original is art.payload.raster.original
    assert store.raster_snapshot(copy_id) is not store.raster_snapshot(art.id)


def test_update_payload(store):
    changed = _record(store.properties_changed)
    text = new_text("A")
    store.add_decoration(text)

    store.update_payload(text.id, finish=FinishVariant.VCUT, curvature=12.0)

    assert text.payload.finish is FinishVariant.VCUT
    assert text.payload.curvature == 12.0
    assert changed == [(text.id,)]
    with pytest.raises(ValueError):
        store.update_payload(text.id, colour="red")


def test_raster_only_for_art(store):
    text = new_text("A")
    store.add_decoration(text)
    with pytest.raises(ValueError):
        store.set_decoration_raster(text.id, np.zeros((1, 1, 4), dtype=np.uint8))


def test_flip_and_quarter_turn(store):
    art = new_art()
    store.add_decoration(art)

    store.flip_decoration(art.id, "x")
    assert art.scale.x == pytest.approx(-0.2)
    store.rotate_quarter_turn(art.id)
    assert art.rotation.z == pytest.approx(np.pi / 2)
    with pytest.raises(ValueError):
        store.flip_decoration(art.id, "w")


def test_notice_is_emitted(store):
    notices = _record(store.notice)
    store.post_notice("Font missing")
    assert notices == [("Font missing",)]


def test_selection_of_removed_decoration_is_cleared(store):
    text = new_text("A")
    store.add_decoration(text)
    store.select(text.id)
    store.remove_decoration(text.id)
    assert store.selected_id is None


def test_persisted_representation_round_trips(store):
    text = new_text("IN MEMORIAM", host_id="tablet", size=12.0, curvature=-8.0)
    text.position = Vector(0.1, 0.3, -0.079)
    text.rotation = Vector(0.0, 0.0, 0.25)
    text.scale = Vector(-1.0, 1.0, 1.0)
    store.add_decoration(text)
    data = store.to_dicts()

    assert data[0]["hostId"] == "tablet"
    assert data[0]["position"] == [0.1, 0.3, -0.079]
    assert data[0]["scale"] == [-1.0, 1.0, 1.0]
    assert data[0]["payload"]["curveAmount"] == -8.0

    store.load_dicts(data)
    restored = store.decorations()[0]
    assert restored.to_dict() == data[0]
    assert Decoration.from_dict(data[0]).payload == text.payload
