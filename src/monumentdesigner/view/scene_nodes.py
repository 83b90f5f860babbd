"""
Scene Nodes (PyVista)
=====================
Render-side objects the attachment controller writes world poses into, plus
the mesh builders that turn glyph runs and art rasters into pyvista data.

The controller only depends on the `RenderNode` protocol; `PoseNode` keeps the
pose in memory (headless sessions, tests) and `ActorNode` drives a pv.Actor
through its user matrix.
"""
from __future__ import annotations

from typing import Optional, Protocol, Sequence, TYPE_CHECKING
import logging

import numpy as np
import pyvista as pv
from scipy.spatial.transform import Rotation

from monumentdesigner.controller.region_fill import compose_display
from monumentdesigner.model.geometry_primitives import Quaternion, Vector, WorldPose

if TYPE_CHECKING:
    from monumentdesigner.controller.text_layout import GlyphRun
    from monumentdesigner.model.raster import RasterBuffer

logger = logging.getLogger(__name__)


class RenderNode(Protocol):
    def world_pose(self) -> Optional[WorldPose]: ...
    def set_world_pose(self, pose: WorldPose) -> None: ...


class PoseNode:
    """Render node that only remembers its pose."""

    def __init__(self, pose: Optional[WorldPose] = None) -> None:
        self._pose = pose
        self.updates = 0

    def world_pose(self) -> Optional[WorldPose]:
        return self._pose

    def set_world_pose(self, pose: WorldPose) -> None:
        self._pose = pose
        self.updates += 1


class ActorNode:
    """Render node backed by a pyvista actor."""

    def __init__(self, actor: pv.Actor, scale: Optional[Vector] = None) -> None:
        self.actor = actor
        self.scale = scale or Vector.one()
        self._pose: Optional[WorldPose] = None

    def world_pose(self) -> Optional[WorldPose]:
        if self._pose is None:
            return None
        matrix = np.asarray(self.actor.user_matrix, dtype=np.float64)
        rot = matrix[:3, :3] / self.scale.to_array()[np.newaxis, :]
        return WorldPose(
            position=Vector.from_iterable(matrix[:3, 3]),
            orientation=Quaternion.from_rotation(Rotation.from_matrix(rot)),
        )

    def set_world_pose(self, pose: WorldPose) -> None:
        self._pose = pose
        self.actor.user_matrix = pose.to_matrix(self.scale)

    def set_scale(self, scale: Vector) -> None:
        self.scale = scale
        if self._pose is not None:
            self.actor.user_matrix = self._pose.to_matrix(scale)


def build_glyph_mesh(char: str, font_size: float, depth: float) -> pv.PolyData:
    """Extruded glyph scaled to `font_size`, centered horizontally on the origin."""
    glyph = pv.Text3D(char, depth=depth / font_size if font_size > 0 else depth)
    if glyph.n_points == 0:
        return glyph
    x_min, x_max = glyph.bounds[0], glyph.bounds[1]
    glyph.translate((-(x_min + x_max) / 2, 0.0, 0.0), inplace=True)
    glyph.scale(font_size, inplace=True)
    return glyph


def build_glyph_run_mesh(run: GlyphRun, depth: float = 0.02) -> pv.DataSet:
    """
    Merge one mesh per visible glyph, each rotated and moved to its placement.

    Returns:
        The merged dataset; an empty PolyData when nothing is visible.
    """
    meshes: list[pv.DataSet] = []
    for placement in run.visible():
        glyph = build_glyph_mesh(placement.char, run.font_size, depth)
        if glyph.n_points == 0:
            continue
        if placement.rotation_z:
            glyph.rotate_z(np.degrees(placement.rotation_z), point=(0.0, 0.0, 0.0), inplace=True)
        glyph.translate((placement.x, placement.y, placement.z), inplace=True)
        meshes.append(glyph)

    if not meshes:
        return pv.PolyData()
    logger.debug(f"Built glyph run mesh from {len(meshes)} glyphs.")
    return pv.merge(meshes)


def build_art_texture(
    buffer: RasterBuffer,
    line_color: Optional[Sequence[int]] = None,
    line_alpha: float = 1.0,
) -> pv.Texture:
    # Raster rows run top-down, texture rows bottom-up
    image = np.ascontiguousarray(np.flipud(compose_display(buffer, line_color, line_alpha)))
    return pv.Texture(image)


def build_art_plane(buffer: RasterBuffer) -> pv.PolyData:
    """Unit-height plane with the raster's aspect ratio, facing +Z."""
    return pv.Plane(
        center=(0.0, 0.0, 0.0),
        direction=(0.0, 0.0, 1.0),
        i_size=buffer.aspect_ratio,
        j_size=1.0,
        i_resolution=1,
        j_resolution=1,
    )
