"""
Per-tick control pipeline: thrust-model estimate -> control law -> command + telemetry.
The caller owns scheduling and calls step() once per control period.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Tuple

from common.interface import Clock
from common.logger import get_logger
from common.math import Quaternion, apply_command_frame_correction
from common.realtime import monotonic_time
from common.types import ControlOutput, DebugRecord, DesiredState, ImuState, OdomState
from quadctrl.control import DegenerateGeometryError, desired_acceleration, make_controller
from quadctrl.params import ControllerParams
from quadctrl.thrust import ThrustEstimator

logger = get_logger("controls")


class Controls:
    """Controls-style pipeline: estimate_thrust_model() -> state_control() -> step()."""

    def __init__(self, params: ControllerParams, clock: Clock = monotonic_time):
        self.params = params.validate()
        self.estimator = ThrustEstimator(
            params.gravity,
            params.thr_map.hover_percentage,
            rho=params.thr_map.rho,
            clock=clock,
        )
        self.controller = make_controller(params, self.estimator)
        self.debug: Optional[DebugRecord] = None
        self._last_output: Optional[ControlOutput] = None
        logger.info(
            f"Controller initialized ({type(self.controller).__name__}, "
            f"thr2acc={self.estimator.thr2acc:.3f})"
        )

    # -- Pipeline stages -----------------------------------------------------

    def estimate_thrust_model(self, imu: ImuState) -> bool:
        """Feed the measured vertical acceleration to the thrust estimator."""
        if imu.linear_acceleration is None:
            return False
        return self.estimator.update(imu.linear_acceleration.z)

    def state_control(
        self, des: DesiredState, odom: OdomState, imu: ImuState
    ) -> Tuple[ControlOutput, DebugRecord]:
        """Run the configured law, falling back to a hover command on degenerate geometry."""
        try:
            return self.controller.calculate_control(des, odom, imu)
        except DegenerateGeometryError as exc:
            logger.warning(f"Degenerate control geometry, holding attitude: {exc}")
            return self._fallback(des, odom, imu)

    def step(self, des: DesiredState, odom: OdomState, imu: ImuState) -> ControlOutput:
        updated = self.estimate_thrust_model(imu)
        output, debug = self.state_control(des, odom, imu)
        self.debug = replace(debug, thrust_model_updated=updated)
        self._last_output = output
        logger.debug(f"tick {self.debug.to_dict()}")
        return output

    def reset_thrust_model(self) -> None:
        self.estimator.reset(self.params.gravity, self.params.thr_map.hover_percentage)
        logger.info(f"Thrust model reset (thr2acc={self.estimator.thr2acc:.3f})")

    # -- Helpers -------------------------------------------------------------

    def _fallback(
        self, des: DesiredState, odom: OdomState, imu: ImuState
    ) -> Tuple[ControlOutput, DebugRecord]:
        thrust = self.estimator.convert_acceleration_to_thrust(self.params.gravity)
        if self._last_output is not None:
            q_cmd = self._last_output.orientation
        else:
            q_cmd = apply_command_frame_correction(
                imu.orientation, odom.orientation, Quaternion.from_yaw(des.yaw)
            )
        des_acc = desired_acceleration(des, odom, self.params.gains, self.params.gravity)
        debug = DebugRecord(
            des_v=tuple(des.velocity),
            des_a=tuple(des_acc),
            des_q=tuple(float(c) for c in q_cmd.q),
            des_thr=thrust,
            thr2acc=self.estimator.thr2acc,
            fallback=True,
        )
        self.estimator.record_sample(thrust)
        return ControlOutput(thrust=thrust, orientation=q_cmd), debug


__all__ = ["Controls"]
