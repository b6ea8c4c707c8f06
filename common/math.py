"""
Vector / quaternion primitives and attitude helpers shared by the controller stack.
Quaternions are stored scalar-first: q = [w, x, y, z].
"""

from __future__ import annotations

import math
from typing import Iterator, Sequence

import numpy as np

GRAVITY = 9.81  # m/s^2


def wrap_angle(angle: float) -> float:
    """Wrap an angle to [-pi, pi)."""
    return (angle + math.pi) % (2.0 * math.pi) - math.pi


class Vector3D:
    """Thin numpy-backed 3-vector."""

    def __init__(self, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        self.v = np.array([x, y, z], dtype=float)

    @classmethod
    def from_array(cls, arr: Sequence[float]) -> Vector3D:
        x, y, z = (float(a) for a in arr)
        return cls(x, y, z)

    def __add__(self, other: Vector3D) -> Vector3D:
        return Vector3D.from_array(self.v + other.v)

    def __sub__(self, other: Vector3D) -> Vector3D:
        return Vector3D.from_array(self.v - other.v)

    def __mul__(self, scalar: float) -> Vector3D:
        return Vector3D.from_array(self.v * scalar)

    __rmul__ = __mul__

    def __neg__(self) -> Vector3D:
        return Vector3D.from_array(-self.v)

    def __iter__(self) -> Iterator[float]:
        return iter(self.v.tolist())

    def __getitem__(self, idx: int) -> float:
        return float(self.v[idx])

    def __repr__(self) -> str:
        x, y, z = self.v
        return f"Vector3D({x:.6g}, {y:.6g}, {z:.6g})"

    @property
    def x(self) -> float:
        return float(self.v[0])

    @property
    def y(self) -> float:
        return float(self.v[1])

    @property
    def z(self) -> float:
        return float(self.v[2])

    def dot(self, other: Vector3D) -> float:
        return float(np.dot(self.v, other.v))

    def cross(self, other: Vector3D) -> Vector3D:
        return Vector3D.from_array(np.cross(self.v, other.v))

    def norm(self) -> float:
        return float(np.linalg.norm(self.v))

    def normalized(self) -> Vector3D:
        n = self.norm()
        if n == 0.0:
            raise ZeroDivisionError("cannot normalize a zero vector")
        return Vector3D.from_array(self.v / n)


class Quaternion:
    """Hamilton quaternion, scalar-first."""

    def __init__(self, w: float = 1.0, x: float = 0.0, y: float = 0.0, z: float = 0.0):
        self.q = np.array([w, x, y, z], dtype=float)

    @classmethod
    def from_array(cls, arr: Sequence[float]) -> Quaternion:
        w, x, y, z = (float(a) for a in arr)
        return cls(w, x, y, z)

    @classmethod
    def from_euler(cls, roll: float, pitch: float, yaw: float) -> Quaternion:
        """Rz(yaw) * Ry(pitch) * Rx(roll), i.e. intrinsic Z-Y-X."""
        cr, sr = math.cos(roll / 2.0), math.sin(roll / 2.0)
        cp, sp = math.cos(pitch / 2.0), math.sin(pitch / 2.0)
        cy, sy = math.cos(yaw / 2.0), math.sin(yaw / 2.0)
        return cls(
            cr * cp * cy + sr * sp * sy,
            sr * cp * cy - cr * sp * sy,
            cr * sp * cy + sr * cp * sy,
            cr * cp * sy - sr * sp * cy,
        )

    @classmethod
    def from_axis_angle(cls, axis: Sequence[float], angle: float) -> Quaternion:
        axis = np.asarray(axis, dtype=float)
        n = np.linalg.norm(axis)
        if n == 0.0:
            return cls()
        axis = axis / n
        s = math.sin(angle / 2.0)
        return cls(math.cos(angle / 2.0), *(axis * s))

    @classmethod
    def from_yaw(cls, yaw: float) -> Quaternion:
        return cls(math.cos(yaw / 2.0), 0.0, 0.0, math.sin(yaw / 2.0))

    @classmethod
    def from_rotation_matrix(cls, R) -> Quaternion:
        """Convert an orthonormal 3x3 matrix, branching on the largest diagonal term."""
        R = np.asarray(R, dtype=float)
        t = R[0, 0] + R[1, 1] + R[2, 2]
        if t > 0.0:
            s = math.sqrt(t + 1.0) * 2.0  # s = 4w
            w = 0.25 * s
            x = (R[2, 1] - R[1, 2]) / s
            y = (R[0, 2] - R[2, 0]) / s
            z = (R[1, 0] - R[0, 1]) / s
        elif R[0, 0] > R[1, 1] and R[0, 0] > R[2, 2]:
            s = math.sqrt(1.0 + R[0, 0] - R[1, 1] - R[2, 2]) * 2.0  # s = 4x
            w = (R[2, 1] - R[1, 2]) / s
            x = 0.25 * s
            y = (R[0, 1] + R[1, 0]) / s
            z = (R[0, 2] + R[2, 0]) / s
        elif R[1, 1] > R[2, 2]:
            s = math.sqrt(1.0 + R[1, 1] - R[0, 0] - R[2, 2]) * 2.0  # s = 4y
            w = (R[0, 2] - R[2, 0]) / s
            x = (R[0, 1] + R[1, 0]) / s
            y = 0.25 * s
            z = (R[1, 2] + R[2, 1]) / s
        else:
            s = math.sqrt(1.0 + R[2, 2] - R[0, 0] - R[1, 1]) * 2.0  # s = 4z
            w = (R[1, 0] - R[0, 1]) / s
            x = (R[0, 2] + R[2, 0]) / s
            y = (R[1, 2] + R[2, 1]) / s
            z = 0.25 * s
        return cls(w, x, y, z).normalize()

    def __mul__(self, other):
        if isinstance(other, Quaternion):
            w1, x1, y1, z1 = self.q
            w2, x2, y2, z2 = other.q
            return Quaternion(
                w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
                w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
                w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
                w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
            )
        return Quaternion.from_array(self.q * float(other))

    def __repr__(self) -> str:
        w, x, y, z = self.q
        return f"Quaternion(w={w:.6g}, x={x:.6g}, y={y:.6g}, z={z:.6g})"

    @property
    def w(self) -> float:
        return float(self.q[0])

    @property
    def x(self) -> float:
        return float(self.q[1])

    @property
    def y(self) -> float:
        return float(self.q[2])

    @property
    def z(self) -> float:
        return float(self.q[3])

    def norm(self) -> float:
        return float(np.linalg.norm(self.q))

    def normalize(self) -> Quaternion:
        """Normalize in place and return self."""
        n = self.norm()
        if n > 0.0:
            self.q = self.q / n
        return self

    def conjugate(self) -> Quaternion:
        w, x, y, z = self.q
        return Quaternion(w, -x, -y, -z)

    def inverse(self) -> Quaternion:
        n2 = float(np.dot(self.q, self.q))
        if n2 == 0.0:
            raise ZeroDivisionError("cannot invert a zero quaternion")
        return Quaternion.from_array(self.conjugate().q / n2)

    def as_rotation_matrix(self) -> np.ndarray:
        w, x, y, z = self.q / self.norm()
        return np.array([
            [1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)],
            [2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
            [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)],
        ])

    def rotate(self, v: Vector3D) -> Vector3D:
        """Rotate a vector from body into the reference frame."""
        return Vector3D.from_array(self.as_rotation_matrix() @ v.v)


def yaw_from_quaternion(q: Quaternion) -> float:
    """Heading of q in radians, in (-pi, pi]."""
    w, x, y, z = q.q
    return math.atan2(2.0 * (x * y + w * z), w * w + x * x - y * y - z * z)


def apply_command_frame_correction(
    imu_q: Quaternion, odom_q: Quaternion, desired_q: Quaternion
) -> Quaternion:
    """
    Re-express a desired attitude (odometry frame) in the raw IMU frame the
    flight controller's attitude setpoint interface expects: imu * odom^-1 * desired.
    """
    return (imu_q * odom_q.inverse() * desired_q).normalize()


__all__ = [
    "GRAVITY",
    "wrap_angle",
    "Vector3D",
    "Quaternion",
    "yaw_from_quaternion",
    "apply_command_frame_correction",
]
