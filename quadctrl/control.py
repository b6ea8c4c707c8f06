"""
Control module: position/velocity tracking laws producing collective thrust
and an attitude setpoint for the flight controller.
"""

from __future__ import annotations

import math
from typing import Dict, Tuple, Type

import numpy as np

from common.interface import ControlLaw
from common.logger import get_logger
from common.math import (
    Quaternion,
    Vector3D,
    apply_command_frame_correction,
    yaw_from_quaternion,
)
from common.types import ControlOutput, DebugRecord, DesiredState, ImuState, OdomState
from quadctrl.params import ControllerParams, Gains
from quadctrl.thrust import ThrustEstimator

logger = get_logger("control")

MIN_ACCEL_NORM = 1e-3  # m/s^2
MIN_HEADING_CROSS_NORM = 1e-3


class DegenerateGeometryError(ValueError):
    """Desired attitude is undefined for the requested acceleration / heading."""


def desired_acceleration(des: DesiredState, odom: OdomState, gains: Gains, gravity: float) -> Vector3D:
    """Feed-forward acceleration plus PD tracking terms, with gravity compensation."""
    kp = np.asarray(gains.kp, dtype=float)
    kv = np.asarray(gains.kv, dtype=float)
    acc = (
        des.acceleration.v
        + kv * (des.velocity.v - odom.velocity.v)
        + kp * (des.position.v - odom.position.v)
    )
    acc = acc + np.array([0.0, 0.0, gravity])
    return Vector3D.from_array(acc)


def _finish_tick(
    estimator: ThrustEstimator,
    des: DesiredState,
    des_acc: Vector3D,
    thrust: float,
    q_cmd: Quaternion,
) -> Tuple[ControlOutput, DebugRecord]:
    debug = DebugRecord(
        des_v=tuple(des.velocity),
        des_a=tuple(des_acc),
        des_q=tuple(float(c) for c in q_cmd.q),
        des_thr=thrust,
        thr2acc=estimator.thr2acc,
    )
    # Used for thrust-accel mapping estimation
    estimator.record_sample(thrust)
    return ControlOutput(thrust=thrust, orientation=q_cmd), debug


class LinearControl(ControlLaw):
    """
    Small-angle law: thrust from the vertical component of the desired
    acceleration, roll/pitch from a first-order inversion about the current heading.
    """

    def __init__(self, params: ControllerParams, estimator: ThrustEstimator):
        self.params = params
        self.estimator = estimator

    def calculate_control(
        self, des: DesiredState, odom: OdomState, imu: ImuState
    ) -> Tuple[ControlOutput, DebugRecord]:
        g = self.params.gravity
        des_acc = desired_acceleration(des, odom, self.params.gains, g)

        thrust = self.estimator.convert_acceleration_to_thrust(des_acc.z)

        yaw_odom = yaw_from_quaternion(odom.orientation)
        s, c = math.sin(yaw_odom), math.cos(yaw_odom)
        roll = (des_acc.x * s - des_acc.y * c) / g
        pitch = (des_acc.x * c + des_acc.y * s) / g
        q_des = Quaternion.from_euler(roll, pitch, des.yaw)

        q_cmd = apply_command_frame_correction(imu.orientation, odom.orientation, q_des)
        return _finish_tick(self.estimator, des, des_acc, thrust, q_cmd)


class GeometricControl(ControlLaw):
    """
    SO(3) law: thrust is the desired acceleration projected on the current
    body z axis; the desired body frame aligns z with the desired acceleration
    and x with the desired heading.
    """

    def __init__(self, params: ControllerParams, estimator: ThrustEstimator):
        self.params = params
        self.estimator = estimator

    def calculate_control(
        self, des: DesiredState, odom: OdomState, imu: ImuState
    ) -> Tuple[ControlOutput, DebugRecord]:
        des_acc = desired_acceleration(des, odom, self.params.gains, self.params.gravity)

        b3 = Vector3D.from_array(odom.orientation.as_rotation_matrix()[:, 2])
        thrust = des_acc.dot(b3) / self.estimator.thr2acc

        acc_norm = des_acc.norm()
        if acc_norm < MIN_ACCEL_NORM:
            raise DegenerateGeometryError(
                f"desired acceleration norm {acc_norm:.3g} below {MIN_ACCEL_NORM}"
            )
        b3c = des_acc.normalized()

        a_yaw = Vector3D(math.cos(des.yaw), math.sin(des.yaw), 0.0)
        b2c_raw = b3c.cross(a_yaw)
        if b2c_raw.norm() < MIN_HEADING_CROSS_NORM:
            raise DegenerateGeometryError(
                f"desired thrust axis {b3c} is parallel to heading yaw={des.yaw:.3f}"
            )
        b2c = b2c_raw.normalized()
        b1c = b2c.cross(b3c)

        R_des = np.column_stack([b1c.v, b2c.v, b3c.v])
        q_des = Quaternion.from_rotation_matrix(R_des)
        logger.debug(f"q_des: {q_des} q_cur: {odom.orientation}")

        q_cmd = apply_command_frame_correction(imu.orientation, odom.orientation, q_des)
        return _finish_tick(self.estimator, des, des_acc, thrust, q_cmd)


CONTROLLERS: Dict[str, Type[ControlLaw]] = {
    "linear": LinearControl,
    "geometric": GeometricControl,
}


def make_controller(params: ControllerParams, estimator: ThrustEstimator) -> ControlLaw:
    """Instantiate the law named by params.controller."""
    try:
        cls = CONTROLLERS[params.controller]
    except KeyError:
        raise ValueError(f"Unsupported controller '{params.controller}'") from None
    return cls(params, estimator)


__all__ = [
    "MIN_ACCEL_NORM",
    "MIN_HEADING_CROSS_NORM",
    "DegenerateGeometryError",
    "desired_acceleration",
    "LinearControl",
    "GeometricControl",
    "CONTROLLERS",
    "make_controller",
]
