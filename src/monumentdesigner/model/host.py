"""
Host Surface
============
The 3-D object (monument, tablet, base) a decoration rides on. The core never
owns a host: it only reads its world transform and bounding size through
`HostAssetProvider`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from monumentdesigner.config import DEGENERATE_SCALE_EPS
from monumentdesigner.model.geometry_primitives import Vector, Quaternion

if TYPE_CHECKING:
    import pyvista as pv


@dataclass(frozen=True)
class HostTransform:
    """World transform of a host: translation, rotation and non-uniform scale."""
    position: Vector = field(default_factory=Vector.zero)
    rotation: Quaternion = field(default_factory=Quaternion.identity)
    scale: Vector = field(default_factory=Vector.one)

    def is_degenerate(self, eps: float = DEGENERATE_SCALE_EPS) -> bool:
        """True when any scale component is ~0 or any component is not finite."""
        if not (self.position.is_finite() and self.rotation.is_finite() and self.scale.is_finite()):
            return True
        return min(abs(self.scale.x), abs(self.scale.y), abs(self.scale.z)) <= eps


@dataclass(frozen=True)
class HostSurface:
    """Snapshot of a loaded host: its transform plus local-space extents."""
    host_id: str
    transform: HostTransform
    bounding_size: Vector

    @property
    def thickness(self) -> float:
        return self.bounding_size.z

    @property
    def front_plane_z(self) -> float:
        """Local Z of the front reference plane."""
        return -self.thickness / 2

    def has_valid_size(self) -> bool:
        return self.bounding_size.is_finite() and self.thickness > 0.0

    @staticmethod
    def from_mesh(host_id: str, mesh: pv.DataSet, transform: Optional[HostTransform] = None) -> HostSurface:
        """
        Derive the local bounding size from a pyvista dataset in host-local coordinates.

        Args:
            host_id: Identifier of the host.
            mesh: Dataset whose points are expressed in the host's local frame.
            transform: World transform of the host; identity when omitted.
        """
        x_min, x_max, y_min, y_max, z_min, z_max = mesh.bounds
        size = Vector(x_max - x_min, y_max - y_min, z_max - z_min)
        return HostSurface(
            host_id=host_id,
            transform=transform or HostTransform(),
            bounding_size=size,
        )
