"""
Curved Text Layout
==================
Computes the placement of every character of an inscription, either along
straight lines or along a circular arc.

Placements are center-anchored: `x` is the horizontal center of the glyph's
advance box, so the extruded glyph mesh is centered on it.

Linear layout (curvature == 0):
    Characters advance by `width + spacing`. Each line is then shifted so its
    center lands on an alignment-dependent target:
        left:   -max_width/2 + width/2
        center:  0
        right:   max_width/2 - width/2

Arc layout (curvature != 0):
    |curvature| is normalised to an intensity in 0..1 and mapped linearly onto
    an arc angle between MIN_ARC_ANGLE and MAX_ARC_ANGLE. With the total arc
    length L of a line,
        radius = max(L / arc_angle, L * 0.5)
    and each glyph sits at
        (sin(a) * r, (cos(a) - 1) * r * direction + base_y, 0), rot_z = -a * direction
    where a advances by (width + spacing) / r and each glyph is placed at the middle
    of its own advance. The run starts at -(L / r) / 2, so it is centered on
    a = 0. While the radius clamp is inactive L / r equals the arc angle and the
    start is -arc_angle / 2.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence
import logging
import math

from monumentdesigner.config import (
    CARET_CHAR,
    CURVATURE_LIMIT,
    MAX_ARC_ANGLE_FACTOR,
    MIN_ARC_ANGLE_FACTOR,
)
from monumentdesigner.controller.fonts import char_advance
from monumentdesigner.model.decoration import Alignment, TextPayload

logger = logging.getLogger(__name__)

MIN_ARC_ANGLE: float = math.pi * MIN_ARC_ANGLE_FACTOR
MAX_ARC_ANGLE: float = math.pi * MAX_ARC_ANGLE_FACTOR
BASE_Y_FACTOR: float = -0.5  # baseline drop, in font sizes


@dataclass(frozen=True)
class GlyphPlacement:
    char: str
    line: int
    index: int  # position within its line
    x: float
    y: float
    z: float = 0.0
    rotation_z: float = 0.0
    advance: float = 0.0
    visible: bool = True


@dataclass
class GlyphRun:
    """All placements of one text block plus the arc it was laid on."""
    placements: list[GlyphPlacement] = field(default_factory=list)
    font_size: float = 0.0
    arc_angle: float = 0.0
    radius: Optional[float] = None

    @property
    def is_curved(self) -> bool:
        return self.radius is not None

    def xs(self) -> list[float]:
        return [p.x for p in self.placements]

    def ys(self) -> list[float]:
        return [p.y for p in self.placements]

    def visible(self) -> list[GlyphPlacement]:
        return [p for p in self.placements if p.visible]

    def line(self, index: int) -> list[GlyphPlacement]:
        return [p for p in self.placements if p.line == index]

    def bounds(self) -> Optional[tuple[float, float, float, float]]:
        """(min_x, min_y, max_x, max_y) of the advance boxes, ignoring glyph rotation."""
        if not self.placements:
            return None
        min_x = min(p.x - p.advance / 2 for p in self.placements)
        max_x = max(p.x + p.advance / 2 for p in self.placements)
        min_y = min(p.y for p in self.placements)
        max_y = max(p.y for p in self.placements) + self.font_size
        return min_x, min_y, max_x, max_y


@dataclass(frozen=True)
class TextLayoutParams:
    """
    Inputs of a layout pass.

    `widths` maps characters to advance widths in em; missing characters use
    the built-in width table. `line_widths`, when given, holds one such map per
    line and takes precedence, for lines measured in a fallback font. `spacing` and `font_size` are in scene units.
    """
    lines: Sequence[str]
    font_size: float = 1.0
    spacing: float = 0.0
    line_spacing: float = 1.2
    alignment: Alignment = Alignment.LEFT
    curvature: float = 0.0
    widths: Optional[Mapping[str, float]] = None
    line_widths: Optional[Sequence[Mapping[str, float]]] = None

    @staticmethod
    def from_payload(
        payload: TextPayload,
        widths: Optional[Mapping[str, float]] = None,
        line_widths: Optional[Sequence[Mapping[str, float]]] = None,
    ) -> TextLayoutParams:
        return TextLayoutParams(
            lines=payload.display_lines(),
            font_size=payload.font_size,
            spacing=payload.spacing,
            line_spacing=payload.line_spacing,
            alignment=payload.alignment,
            curvature=payload.curvature,
            widths=widths,
            line_widths=line_widths,
        )


def is_visible_char(char: str, advance: float) -> bool:
    """Separators consume space but produce no glyph."""
    if char == CARET_CHAR:
        return True
    return advance > 0.0 and not char.isspace()


def curvature_intensity(curvature: float, limit: float = CURVATURE_LIMIT) -> float:
    """|curvature| normalised to 0..1 over the input range."""
    if not math.isfinite(curvature) or limit <= 0.0:
        return 0.0
    return min(abs(curvature) / limit, 1.0)


def arc_angle_for(curvature: float, limit: float = CURVATURE_LIMIT) -> float:
    """
    Arc angle (radians) spanned by a curved line.

    Zero for flat text; otherwise grows linearly from MIN_ARC_ANGLE to
    MAX_ARC_ANGLE with the curvature magnitude.
    """
    intensity = curvature_intensity(curvature, limit)
    if intensity <= 0.0:
        return 0.0
    return MIN_ARC_ANGLE + (MAX_ARC_ANGLE - MIN_ARC_ANGLE) * intensity


def arc_radius(total_length: float, arc_angle: float) -> Optional[float]:
    """Radius of the arc; the 0.5 clamp keeps it from collapsing on wide arcs."""
    if arc_angle <= 0.0 or total_length <= 0.0:
        return None
    return max(total_length / arc_angle, total_length * 0.5)


def _advances(line_index: int, line: str, params: TextLayoutParams) -> list[float]:
    widths = params.widths
    if params.line_widths is not None and line_index < len(params.line_widths):
        widths = params.line_widths[line_index]
    return [char_advance(ch, widths) * params.font_size for ch in line]


def line_width(advances: Sequence[float], spacing: float) -> float:
    """Rendered width: the advances plus the spacing between neighbours."""
    if not advances:
        return 0.0
    return sum(advances) + spacing * (len(advances) - 1)


def alignment_target(alignment: Alignment, width: float, max_width: float) -> float:
    if alignment == Alignment.LEFT:
        return -max_width / 2 + width / 2
    if alignment == Alignment.RIGHT:
        return max_width / 2 - width / 2
    if alignment == Alignment.CENTER:
        return 0.0
    raise ValueError(f"Unknown alignment '{alignment}'.")


def line_offsets(params: TextLayoutParams) -> list[float]:
    """Horizontal shift applied to each line in linear layout."""
    widths = [
        line_width(_advances(i, line, params), params.spacing)
        for i, line in enumerate(params.lines)
    ]
    max_width = max(widths, default=0.0)
    # Unshifted lines start at x = 0, so their center is width / 2
    return [alignment_target(params.alignment, w, max_width) - w / 2 for w in widths]


def _line_y(line_index: int, params: TextLayoutParams) -> float:
    gap = params.font_size * params.line_spacing
    return -line_index * gap + BASE_Y_FACTOR * params.font_size


def linear_layout(params: TextLayoutParams) -> GlyphRun:
    run = GlyphRun(font_size=params.font_size)
    offsets = line_offsets(params)
    for line_index, line in enumerate(params.lines):
        advances = _advances(line_index, line, params)
        cursor = 0.0
        y = _line_y(line_index, params)
        for index, (char, advance) in enumerate(zip(line, advances)):
            run.placements.append(GlyphPlacement(
                char=char,
                line=line_index,
                index=index,
                x=offsets[line_index] + cursor + advance / 2,
                y=y,
                advance=advance,
                visible=is_visible_char(char, advance),
            ))
            cursor += advance + params.spacing
    return run


def curved_layout(params: TextLayoutParams) -> GlyphRun:
    """
    Lay every line on its own arc. Alignment does not apply: arcs are centered.
    """
    arc_angle = arc_angle_for(params.curvature)
    direction = 1.0 if params.curvature >= 0 else -1.0
    run = GlyphRun(font_size=params.font_size, arc_angle=arc_angle)

    for line_index, line in enumerate(params.lines):
        advances = _advances(line_index, line, params)
        total = line_width(advances, params.spacing)
        radius = arc_radius(total, arc_angle)
        base_y = _line_y(line_index, params)

        if radius is None:
            # Nothing to bend: empty or zero-width line
            for index, (char, advance) in enumerate(zip(line, advances)):
                run.placements.append(GlyphPlacement(
                    char=char, line=line_index, index=index, x=0.0, y=base_y,
                    advance=advance, visible=is_visible_char(char, advance),
                ))
            continue

        run.radius = radius if run.radius is None else max(run.radius, radius)
        # Equals -arc_angle / 2 unless the radius clamp shortened the run
        angle = -(total / radius) / 2
        for index, (char, advance) in enumerate(zip(line, advances)):
            center = angle + (advance / 2) / radius
            run.placements.append(GlyphPlacement(
                char=char,
                line=line_index,
                index=index,
                x=math.sin(center) * radius,
                y=(math.cos(center) - 1) * radius * direction + base_y,
                rotation_z=-center * direction,
                advance=advance,
                visible=is_visible_char(char, advance),
            ))
            angle += (advance + params.spacing) / radius

    return run


def layout_text(params: TextLayoutParams) -> GlyphRun:
    """Linear layout for flat text, arc layout otherwise."""
    if arc_angle_for(params.curvature) == 0.0:
        return linear_layout(params)
    return curved_layout(params)

