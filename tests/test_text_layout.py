import pytest

from monumentdesigner.controller.text_layout import (
    MAX_ARC_ANGLE,
    MIN_ARC_ANGLE,
    TextLayoutParams,
    arc_angle_for,
    arc_radius,
    curved_layout,
    layout_text,
    linear_layout,
)
from monumentdesigner.model import Alignment, TextDirection, TextPayload

UNIT = {"H": 1.0, "E": 1.0, "L": 1.0, "O": 1.0, "A": 1.0, "B": 1.0}


def test_hello_centered_is_symmetric_around_zero():
    params = TextLayoutParams(lines=["HELLO"], font_size=2.0, alignment=Alignment.CENTER, widths=UNIT)
    run = layout_text(params)
    assert run.xs() == pytest.approx([-4.0, -2.0, 0.0, 2.0, 4.0])
    assert not run.is_curved


@pytest.mark.parametrize("alignment", list(Alignment))
def test_zero_curvature_uses_linear_rules(alignment):
    params = TextLayoutParams(lines=["HELLO", "AB"], alignment=alignment, widths=UNIT, spacing=0.1)
    assert layout_text(params).xs() == pytest.approx(linear_layout(params).xs())


def test_left_and_right_alignment_share_one_column():
    lines = ["HELLO", "AB"]
    left = linear_layout(TextLayoutParams(lines=lines, alignment=Alignment.LEFT, widths=UNIT))
    right = linear_layout(TextLayoutParams(lines=lines, alignment=Alignment.RIGHT, widths=UNIT))

    # Block is 5 wide, centered on 0
    assert left.line(0)[0].x - 0.5 == pytest.approx(-2.5)
    assert left.line(1)[0].x - 0.5 == pytest.approx(-2.5)
    assert right.line(0)[-1].x + 0.5 == pytest.approx(2.5)
    assert right.line(1)[-1].x + 0.5 == pytest.approx(2.5)


def test_lines_step_down_by_line_spacing():
    params = TextLayoutParams(lines=["A", "B"], font_size=1.0, line_spacing=1.5, widths=UNIT)
    run = linear_layout(params)
    assert run.line(0)[0].y - run.line(1)[0].y == pytest.approx(1.5)


def test_arc_angle_grows_with_curvature_magnitude():
    values = [0.0, 1.0, 5.0, 12.5, 30.0, 45.0]
    angles = [arc_angle_for(v) for v in values]
    assert angles == sorted(angles)
    assert angles[1:] == sorted(set(angles[1:]))
    assert arc_angle_for(-12.5) == arc_angle_for(12.5)
    assert arc_angle_for(45.0) == pytest.approx(MAX_ARC_ANGLE)
    assert arc_angle_for(1000.0) == pytest.approx(MAX_ARC_ANGLE)
    assert MIN_ARC_ANGLE < arc_angle_for(1.0)


def test_radius_is_clamped_for_wide_arcs():
    assert arc_radius(10.0, 0.0) is None
    assert arc_radius(10.0, 1.0) == pytest.approx(10.0)
    assert arc_radius(10.0, 3.5) == pytest.approx(5.0)


def test_single_character_curves_to_the_center():
    params = TextLayoutParams(lines=["H"], curvature=20.0, widths=UNIT)
    placement = curved_layout(params).placements[0]
    assert placement.x == pytest.approx(0.0, abs=1e-12)
    assert placement.rotation_z == pytest.approx(0.0, abs=1e-12)
    assert placement.y == pytest.approx(-0.5)


def test_curved_run_is_symmetric_and_bows_with_sign():
    up = curved_layout(TextLayoutParams(lines=["HELLO"], curvature=30.0, widths=UNIT))
    down = curved_layout(TextLayoutParams(lines=["HELLO"], curvature=-30.0, widths=UNIT))

    xs = up.xs()
    assert xs[0] == pytest.approx(-xs[-1])
    assert xs[2] == pytest.approx(0.0, abs=1e-12)
    assert up.placements[0].y < up.placements[2].y
    assert down.placements[0].y > down.placements[2].y
    assert up.placements[0].rotation_z == pytest.approx(-down.placements[0].rotation_z)
    assert up.radius is not None


def test_separators_take_space_but_are_invisible():
    widths = dict(UNIT, **{"​": 0.0})
    run = layout_text(TextLayoutParams(lines=["A B​A"], widths=widths))
    visible = [p.char for p in run.visible()]
    assert visible == ["A", "B", "A"]
    space = run.placements[1]
    assert space.advance > 0.0 and not space.visible


def test_caret_is_narrow_and_visible():
    run = layout_text(TextLayoutParams(lines=["A|"], widths=UNIT))
    caret = run.placements[1]
    assert caret.visible
    assert caret.advance == pytest.approx(0.05)


def test_unknown_characters_use_default_width():
    run = layout_text(TextLayoutParams(lines=["Q"]))
    assert run.placements[0].advance == pytest.approx(0.7)


def test_params_from_payload_apply_units():
    payload = TextPayload(content="AB\nA", size=10.0, char_spacing=50.0, curvature=5.0)
    params = TextLayoutParams.from_payload(payload)
    assert params.lines == ["AB", "A"]
    assert params.font_size == pytest.approx(0.254)
    assert params.spacing == pytest.approx(0.254 * 50.0 * 0.001)
    assert params.curvature == 5.0


def test_vertical_direction_stacks_characters():
    payload = TextPayload(content="AB\nC", direction=TextDirection.VERTICAL)
    assert payload.display_lines() == ["A", "B", "C"]


def test_empty_text_lays_out_nothing():
    assert layout_text(TextLayoutParams(lines=[""], curvature=10.0)).placements == []
    assert layout_text(TextLayoutParams(lines=[])).bounds() is None



def test_per_line_widths_override_shared_widths():
    params = TextLayoutParams(
        lines=["AB", "AB"],
        widths=UNIT,
        line_widths=[UNIT, {"A": 2.0, "B": 2.0}],
    )
    run = linear_layout(params)
    first = [p.x for p in run.placements if p.line == 0]
    second = [p.x for p in run.placements if p.line == 1]
    assert first == pytest.approx([-1.5, -0.5])
    assert second == pytest.approx([-1.0, 1.0])
