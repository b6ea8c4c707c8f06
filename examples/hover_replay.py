"""
Closed-loop hover on a vertical point mass with a 40 ms actuation delay.
The vehicle is heavier than the configured hover throttle suggests; watch thr2acc converge.

    CONTROLLER=geometric python examples/hover_replay.py
"""
import os
from collections import deque

from common.math import Quaternion, Vector3D
from common.realtime import ManualClock
from common.types import DesiredState, ImuState, OdomState
from quadctrl.controls import Controls
from quadctrl.params import load_params

if __name__ == '__main__':
    dt = 0.01
    true_thr2acc = float(os.getenv('TRUE_THR2ACC', '26.0'))
    params = load_params({
        'gra': 9.81,
        'controller': os.getenv('CONTROLLER', 'linear'),
        'thr_map': {'hover_percentage': 0.3},
    })
    clock = ManualClock()
    controls = Controls(params, clock=clock)

    z, vz = 0.0, 0.0
    pending = deque([0.0] * 4)  # commands still in flight
    des = DesiredState(Vector3D(0, 0, 1.0), Vector3D(), Vector3D(), 0.0)
    for i in range(500):
        clock.set(i * dt)
        applied = pending.popleft()
        acc = true_thr2acc * applied
        vz += (acc - params.gravity) * dt
        z += vz * dt
        odom = OdomState(Vector3D(0, 0, z), Vector3D(0, 0, vz), Quaternion())
        imu = ImuState(Quaternion(), linear_acceleration=Vector3D(0, 0, acc))
        out = controls.step(des, odom, imu)
        pending.append(out.thrust)
        if i % 50 == 0:
            print(f"t={i * dt:5.2f}s z={z:6.3f} thrust={out.thrust:5.3f} "
                  f"thr2acc={controls.estimator.thr2acc:6.2f}")
