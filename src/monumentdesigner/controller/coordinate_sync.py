"""
Coordinate Synchronisation
==========================
Converts a decoration's pose between the local frame of its host surface and
the world frame.

    world_pos  = host_pos + R_host * (host_scale (*) local_pos)
    world_quat = host_quat * flip180(Y) * quat(euler_xyz(local_rot))

The fixed half turn about the host's up axis compensates for host assets that
are authored facing away from world-forward. It is a convention shared with
the host assets and must not be changed on its own.

All functions are pure. An unusable host transform (degenerate scale, NaN)
yields None rather than a corrupt pose; callers defer and retry.
"""
from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
from scipy.spatial.transform import Rotation

from monumentdesigner.config import (
    FLUSH_FINISH_BIAS,
    POLISHED_FINISH_BIAS,
    RAISED_FINISH_BIAS,
    ROUND_TRIP_TOLERANCE,
)
from monumentdesigner.model.decoration import FinishVariant
from monumentdesigner.model.geometry_primitives import Pose, Quaternion, Vector, WorldPose
from monumentdesigner.model.host import HostTransform

logger = logging.getLogger(__name__)

EULER_ORDER = "XYZ"  # intrinsic, matches the persisted rotation triplets
FLIP_Y: Rotation = Rotation.from_rotvec([0.0, np.pi, 0.0])

FINISH_BIAS: dict[FinishVariant, float] = {
    FinishVariant.VCUT: RAISED_FINISH_BIAS,
    FinishVariant.FROST: RAISED_FINISH_BIAS,
    FinishVariant.POLISH: POLISHED_FINISH_BIAS,
    FinishVariant.ENGRAVED: FLUSH_FINISH_BIAS,
}


def euler_to_quaternion(rotation: Vector) -> Quaternion:
    return Quaternion.from_rotation(Rotation.from_euler(EULER_ORDER, rotation.to_array()))


def quaternion_to_euler(orientation: Quaternion) -> Vector:
    return Vector.from_iterable(orientation.to_rotation().as_euler(EULER_ORDER))


def to_world(local: Pose, host: Optional[HostTransform]) -> Optional[WorldPose]:
    """
    Project a local pose into the world frame.

    Args:
        local: Position and XYZ Euler rotation relative to the host.
        host: World transform of the owning host, or None for a decoration
              that floats in world space (identity mapping).

    Returns:
        The world pose, or None when the host transform is degenerate or the
        result would not be finite.
    """
    if not local.is_finite():
        return None

    local_rot = Rotation.from_euler(EULER_ORDER, local.rotation.to_array())
    if host is None:
        return WorldPose(position=local.position, orientation=Quaternion.from_rotation(local_rot))

    if host.is_degenerate():
        logger.debug("Host transform is degenerate, world pose not computed.")
        return None

    host_rot = host.rotation.to_rotation()
    scaled = local.position.multiply(host.scale).to_array()
    world_pos = host_rot.apply(scaled) + host.position.to_array()
    world_rot = host_rot * FLIP_Y * local_rot

    pose = WorldPose(
        position=Vector.from_iterable(world_pos),
        orientation=Quaternion.from_rotation(world_rot),
    )
    return pose if pose.is_finite() else None


def to_local(world: WorldPose, host: Optional[HostTransform]) -> Optional[Pose]:
    """
    Exact inverse of `to_world`.

    Returns:
        The local pose, or None when the host transform is degenerate or the
        result would not be finite.
    """
    if not world.is_finite():
        return None

    world_rot = world.orientation.to_rotation()
    if host is None:
        return Pose(position=world.position, rotation=Vector.from_iterable(world_rot.as_euler(EULER_ORDER)))

    if host.is_degenerate():
        logger.debug("Host transform is degenerate, local pose not computed.")
        return None

    host_rot = host.rotation.to_rotation()
    offset = (world.position - host.position).to_array()
    unrotated = Vector.from_iterable(host_rot.inv().apply(offset))
    local_pos = unrotated.divide(host.scale)
    local_rot = FLIP_Y.inv() * host_rot.inv() * world_rot

    pose = Pose(
        position=local_pos,
        rotation=Vector.from_iterable(local_rot.as_euler(EULER_ORDER)),
    )
    return pose if pose.is_finite() else None


def round_trip_error(local: Pose, world: WorldPose, host: Optional[HostTransform]) -> Optional[float]:
    """
    Largest deviation between `world` and the re-projection of `local`.

    Position error is in scene units, orientation error in radians.
    None when the re-projection is impossible.
    """
    projected = to_world(local, host)
    if projected is None:
        return None
    position_error = (projected.position - world.position).magnitude
    angle_error = projected.orientation.angle_to(world.orientation)
    return max(position_error, angle_error)


def is_consistent(local: Pose, world: WorldPose, host: Optional[HostTransform],
                  tol: float = ROUND_TRIP_TOLERANCE) -> bool:
    error = round_trip_error(local, world, host)
    return error is not None and error <= tol


def default_surface_offset(host_thickness: float, finish: FinishVariant = FinishVariant.ENGRAVED) -> Optional[float]:
    """
    Local Z a new decoration should sit at: the front plane (-thickness/2) plus a
    small standoff that grows with the relief of the finish.

    Returns:
        The offset, or None when the thickness is not yet known (<= 0 or NaN).
    """
    if not math.isfinite(host_thickness) or host_thickness <= 0.0:
        return None
    return -host_thickness / 2 + FINISH_BIAS.get(finish, FLUSH_FINISH_BIAS)
