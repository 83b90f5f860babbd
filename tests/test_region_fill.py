import numpy as np
import pytest

from monumentdesigner.controller.region_fill import (
    FillMode,
    FillResult,
    FillTarget,
    PatternFill,
    SolidFill,
    apply_fill,
    border_reachable,
    compose_display,
    global_fill,
    seeded_fill,
    uv_to_pixel,
)
from monumentdesigner.model import RasterBuffer

RED = SolidFill((255, 0, 0, 255))
BLUE = SolidFill((0, 0, 255, 255))


def _is(buffer, x, y, color):
    return tuple(int(c) for c in buffer.current[y, x]) == tuple(color)


def test_global_fill_colors_interior_and_exterior_but_not_ring(ring_buffer):
    result = global_fill(ring_buffer, RED)

    assert result is FillResult.APPLIED
    assert _is(ring_buffer, 2, 2, RED.color)
    assert _is(ring_buffer, 0, 0, RED.color)
    assert _is(ring_buffer, 4, 4, RED.color)
    ring = ring_buffer.line_mask
    assert ring.sum() == 8
    assert not np.any(np.all(ring_buffer.current[ring] == RED.color, axis=-1))
    assert ring_buffer.lines_intact()


def test_global_fill_exterior_only(ring_buffer):
    global_fill(ring_buffer, RED, FillTarget.EXTERIOR)
    assert _is(ring_buffer, 0, 2, RED.color)
    assert _is(ring_buffer, 2, 2, (255, 255, 255, 255))


def test_global_fill_interior_only(ring_buffer):
    global_fill(ring_buffer, RED, FillTarget.INTERIOR)
    assert _is(ring_buffer, 2, 2, RED.color)
    assert _is(ring_buffer, 0, 2, (255, 255, 255, 255))


def test_global_fill_is_idempotent(ring_buffer):
    assert global_fill(ring_buffer, RED) is FillResult.APPLIED
    once = ring_buffer.snapshot()

    assert global_fill(ring_buffer, RED) is FillResult.NO_OP
    np.testing.assert_array_equal(ring_buffer.current, once)


def test_seed_on_line_pixel_is_a_no_op(ring_buffer):
    before = ring_buffer.snapshot()
    assert seeded_fill(ring_buffer, RED, 1, 1) is FillResult.NO_OP
    np.testing.assert_array_equal(ring_buffer.current, before)


def test_seed_outside_raster_is_a_no_op(ring_buffer):
    assert seeded_fill(ring_buffer, RED, 5, 0) is FillResult.NO_OP
    assert seeded_fill(ring_buffer, RED, -1, 0) is FillResult.NO_OP


def test_seeded_fill_stays_inside_the_ring(ring_buffer):
    assert seeded_fill(ring_buffer, RED, 2, 2) is FillResult.APPLIED
    assert _is(ring_buffer, 2, 2, RED.color)
    assert _is(ring_buffer, 0, 0, (255, 255, 255, 255))
    assert ring_buffer.lines_intact()


def test_seeded_fill_on_target_color_is_a_no_op(ring_buffer):
    seeded_fill(ring_buffer, RED, 0, 0)
    assert seeded_fill(ring_buffer, RED, 0, 0) is FillResult.NO_OP


def test_seeded_fill_stops_at_other_fill_colors(ring_buffer):
    seeded_fill(ring_buffer, BLUE, 0, 0)
    seeded_fill(ring_buffer, RED, 2, 2)
    assert _is(ring_buffer, 0, 0, BLUE.color)
    assert _is(ring_buffer, 2, 2, RED.color)


def test_pattern_fill_tiles_with_offset():
    img = np.full((2, 4, 4), 255, dtype=np.uint8)
    buffer = RasterBuffer(img)
    pattern = np.zeros((1, 2, 4), dtype=np.uint8)
    pattern[0, 0] = (200, 0, 0, 255)
    pattern[0, 1] = (0, 200, 0, 255)

    global_fill(buffer, PatternFill(pattern, offset=(1, 0)))

    assert _is(buffer, 0, 0, (0, 200, 0, 255))
    assert _is(buffer, 1, 0, (200, 0, 0, 255))
    assert _is(buffer, 2, 1, (0, 200, 0, 255))


def test_pattern_offset_is_clamped_to_zero():
    img = np.full((1, 2, 4), 255, dtype=np.uint8)
    buffer = RasterBuffer(img)
    pattern = np.array([[[10, 10, 10, 255], [20, 20, 20, 255]]], dtype=np.uint8)
    global_fill(buffer, PatternFill(pattern, offset=(-3, -3)))
    assert _is(buffer, 0, 0, (10, 10, 10, 255))


def test_fill_never_touches_line_pixels_even_when_current_was_tampered(ring_buffer):
    snapshot = ring_buffer.snapshot()
    snapshot[1, 1] = (9, 9, 9, 255)
    ring_buffer.restore(snapshot)
    assert ring_buffer.lines_intact()
    global_fill(ring_buffer, PatternFill(np.full((3, 3, 4), 77, dtype=np.uint8)))
    assert ring_buffer.lines_intact()


def test_apply_fill_dispatch(ring_buffer):
    assert apply_fill(ring_buffer, RED, FillMode.SEEDED, seed=(2, 2)) is FillResult.APPLIED
    assert apply_fill(ring_buffer, RED, FillMode.GLOBAL) is FillResult.APPLIED
    with pytest.raises(ValueError):
        apply_fill(ring_buffer, RED, FillMode.SEEDED)


def test_border_reachable_excludes_enclosed_pixels(ring_buffer):
    reachable = border_reachable(~ring_buffer.line_mask)
    assert reachable[0, 0]
    assert not reachable[2, 2]
    assert not reachable[1, 1]


def test_solid_fill_validation():
    with pytest.raises(ValueError):
        SolidFill((256, 0, 0, 255))
    assert SolidFill.from_hex("#ff8000").color == (255, 128, 0, 255)


def test_uv_to_pixel_flips_v(ring_buffer):
    assert uv_to_pixel(ring_buffer, 0.0, 1.0) == (0, 0)
    assert uv_to_pixel(ring_buffer, 1.0, 0.0) == (4, 4)
    assert uv_to_pixel(ring_buffer, 0.5, 0.5) == (2, 2)


def test_compose_display_recolors_lines_without_mutating_current(ring_buffer):
    before = ring_buffer.snapshot()
    shown = compose_display(ring_buffer, line_color=(0, 128, 255), line_alpha=0.5)

    assert tuple(shown[1, 1]) == (0, 128, 255, 128)
    assert tuple(shown[2, 2]) == (255, 255, 255, 255)
    np.testing.assert_array_equal(ring_buffer.current, before)


def test_clone_shares_original_but_not_current(ring_buffer):
    other = ring_buffer.clone()
    assert other.original is ring_buffer.original
    global_fill(other, RED)
    assert _is(ring_buffer, 0, 0, (255, 255, 255, 255))
    assert not ring_buffer.original.flags.writeable
