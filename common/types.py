"""
Shared data structures exchanged between the planner, estimator, controller and telemetry.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Optional, Tuple

from common.math import Quaternion, Vector3D


@dataclass(frozen=True)
class DesiredState:
    """Planner setpoint for one tick (reference frame, z up)."""

    position: Vector3D
    velocity: Vector3D
    acceleration: Vector3D
    yaw: float = 0.0


@dataclass(frozen=True)
class OdomState:
    """Estimated vehicle state used by the controller."""

    position: Vector3D
    velocity: Vector3D
    orientation: Quaternion


@dataclass(frozen=True)
class ImuState:
    """
    Raw IMU attitude. linear_acceleration is the measured specific force
    (m/s^2, includes gravity); when present its z component feeds the thrust model.
    """

    orientation: Quaternion
    linear_acceleration: Optional[Vector3D] = None


@dataclass(frozen=True)
class ControlOutput:
    """Normalized collective thrust and attitude setpoint in the command frame."""

    thrust: float
    orientation: Quaternion


@dataclass(frozen=True)
class DebugRecord:
    """Telemetry snapshot of one control tick. Never fed back into control."""

    des_v: Tuple[float, float, float]
    des_a: Tuple[float, float, float]
    des_q: Tuple[float, float, float, float]  # w, x, y, z
    des_thr: float
    thr2acc: float
    thrust_model_updated: bool = False
    fallback: bool = False

    def to_dict(self) -> Dict[str, float]:
        """Flatten into scalar fields for a telemetry sink."""
        d = asdict(self)
        out: Dict[str, float] = {}
        for axis, value in zip("xyz", d.pop("des_v")):
            out[f"des_v_{axis}"] = value
        for axis, value in zip("xyz", d.pop("des_a")):
            out[f"des_a_{axis}"] = value
        for axis, value in zip("wxyz", d.pop("des_q")):
            out[f"des_q_{axis}"] = value
        out.update(d)
        return out
