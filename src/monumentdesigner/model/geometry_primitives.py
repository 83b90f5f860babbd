"""
Geometric Primitives for decoration poses.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, TYPE_CHECKING
import math

import numpy as np
from scipy.spatial.transform import Rotation

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class Vector:
    """
    A vector in 3D space. Used for positions, Euler angles and scale factors.
    """
    x: float
    y: float
    z: float = 0.0

    def __add__(self, other: Vector) -> Vector:
        return Vector(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector) -> Vector:
        return Vector(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vector:
        return Vector(self.x * scalar, self.y * scalar, self.z * scalar)

    def __neg__(self) -> Vector:
        return Vector(-self.x, -self.y, -self.z)

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def multiply(self, other: Vector) -> Vector:
        """Component-wise product."""
        return Vector(self.x * other.x, self.y * other.y, self.z * other.z)

    def divide(self, other: Vector) -> Vector:
        """Component-wise quotient."""
        if other.x == 0.0 or other.y == 0.0 or other.z == 0.0:
            raise ZeroDivisionError(f"Cannot divide {self} by {other} component-wise.")
        return Vector(self.x / other.x, self.y / other.y, self.z / other.z)

    def with_z(self, z: float) -> Vector:
        return Vector(self.x, self.y, z)

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)

    def is_close(self, other: Vector, tol: float = 1e-9) -> bool:
        return (self - other).magnitude <= tol

    def to_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.x, self.y, self.z])

    def to_list(self) -> list[float]:
        return [self.x, self.y, self.z]

    @staticmethod
    def from_iterable(values: Iterable[float]) -> Vector:
        x, y, z = (float(v) for v in values)
        return Vector(x, y, z)

    @staticmethod
    def zero() -> Vector:
        return Vector(0.0, 0.0, 0.0)

    @staticmethod
    def one() -> Vector:
        return Vector(1.0, 1.0, 1.0)


@dataclass(frozen=True)
class Quaternion:
    """Unit quaternion, scalar-last (x, y, z, w) like scipy and three.js."""
    x: float
    y: float
    z: float
    w: float

    def to_rotation(self) -> Rotation:
        return Rotation.from_quat([self.x, self.y, self.z, self.w])

    def to_list(self) -> list[float]:
        return [self.x, self.y, self.z, self.w]

    def is_finite(self) -> bool:
        return all(math.isfinite(c) for c in (self.x, self.y, self.z, self.w))

    def angle_to(self, other: Quaternion) -> float:
        """Returns the angle in radians of the rotation taking this orientation to the other."""
        return float((self.to_rotation().inv() * other.to_rotation()).magnitude())

    @staticmethod
    def from_rotation(rotation: Rotation) -> Quaternion:
        x, y, z, w = rotation.as_quat()
        return Quaternion(float(x), float(y), float(z), float(w))

    @staticmethod
    def from_sequence(values: Sequence[float]) -> Quaternion:
        x, y, z, w = (float(v) for v in values)
        return Quaternion(x, y, z, w)

    @staticmethod
    def identity() -> Quaternion:
        return Quaternion(0.0, 0.0, 0.0, 1.0)


@dataclass(frozen=True)
class Pose:
    """Position plus XYZ Euler rotation (radians). Local poses are stored like this."""
    position: Vector
    rotation: Vector

    def is_finite(self) -> bool:
        return self.position.is_finite() and self.rotation.is_finite()


@dataclass(frozen=True)
class WorldPose:
    """Position plus orientation quaternion in the scene frame."""
    position: Vector
    orientation: Quaternion

    def is_finite(self) -> bool:
        return self.position.is_finite() and self.orientation.is_finite()

    def to_matrix(self, scale: Vector | None = None) -> npt.NDArray[np.float64]:
        """4x4 homogeneous matrix T * R * S."""
        matrix = np.eye(4)
        rot = self.orientation.to_rotation().as_matrix()
        if scale is not None:
            rot = rot * scale.to_array()[np.newaxis, :]
        matrix[:3, :3] = rot
        matrix[:3, 3] = self.position.to_array()
        return matrix
