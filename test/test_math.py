import math
import unittest

import numpy as np
from common.math import (
    Quaternion,
    Vector3D,
    apply_command_frame_correction,
    wrap_angle,
    yaw_from_quaternion,
)
from scipy.spatial.transform import Rotation as SciRot


def _to_scipy(q: Quaternion) -> SciRot:
    w, x, y, z = q.q
    return SciRot.from_quat([x, y, z, w])


class TestMath(unittest.TestCase):
    def test_quaternion_from_euler_matches_scipy(self):
        for angles in [
            (0.1, 0.2, 0.3),
            (1.0, 0.0, 0.0),
            (0.0, 1.57, 0.0)
        ]:
            with self.subTest(angles=angles):
                roll, pitch, yaw = angles
                q = Quaternion.from_euler(roll, pitch, yaw)
                mat = q.as_rotation_matrix()
                r = SciRot.from_euler('xyz', angles, degrees=False)
                np.testing.assert_allclose(mat, r.as_matrix(), atol=1e-6)

    def test_quaternion_rotate_vector_matches_scipy(self):
        axis = np.array([0, 0, 1])
        angle = np.pi / 4
        q = Quaternion.from_axis_angle(axis, angle)
        v = Vector3D(1, 0, 0)
        v_rot = q.rotate(v)
        expected = SciRot.from_rotvec(axis * angle).apply(v.v)
        np.testing.assert_allclose(v_rot.v, expected, atol=1e-6)

    def test_hamilton_product_matches_scipy(self):
        a = Quaternion.from_euler(0.3, -0.2, 1.1)
        b = Quaternion.from_euler(-0.5, 0.4, -2.0)
        expected = (_to_scipy(a) * _to_scipy(b)).as_matrix()
        np.testing.assert_allclose((a * b).as_rotation_matrix(), expected, atol=1e-9)

    def test_from_rotation_matrix_round_trip(self):
        rng = np.random.default_rng(7)
        # include 180 deg rotations about each axis to hit every branch
        mats = [SciRot.from_rotvec(np.pi * np.eye(3)[i]).as_matrix() for i in range(3)]
        for angles in rng.uniform(-math.pi, math.pi, size=(20, 3)):
            mats.append(SciRot.from_euler('xyz', angles).as_matrix())
        for R in mats:
            with self.subTest(R=R.tolist()):
                q = Quaternion.from_rotation_matrix(R)
                self.assertAlmostEqual(q.norm(), 1.0, places=9)
                np.testing.assert_allclose(q.as_rotation_matrix(), R, atol=1e-9)

    def test_inverse_composes_to_identity(self):
        q = Quaternion.from_euler(0.4, 0.1, -0.7)
        ident = q * q.inverse()
        np.testing.assert_allclose(ident.q, [1.0, 0.0, 0.0, 0.0], atol=1e-12)

    def test_yaw_round_trip(self):
        for yaw in np.linspace(-math.pi + 1e-6, math.pi, 37):
            with self.subTest(yaw=yaw):
                q = Quaternion.from_axis_angle([0, 0, 1], yaw)
                self.assertAlmostEqual(yaw_from_quaternion(q), yaw, places=9)

    def test_yaw_ignores_roll_and_pitch(self):
        q = Quaternion.from_euler(0.2, -0.3, 1.2)
        self.assertAlmostEqual(yaw_from_quaternion(q), 1.2, places=9)
        expected = _to_scipy(q).as_euler('ZYX')[0]
        self.assertAlmostEqual(yaw_from_quaternion(q), expected, places=9)

    def test_command_frame_correction_identity_when_frames_agree(self):
        att = Quaternion.from_euler(0.05, -0.02, 0.8)
        desired = Quaternion.from_euler(0.1, 0.2, -0.4)
        out = apply_command_frame_correction(att, att, desired)
        np.testing.assert_allclose(out.as_rotation_matrix(), desired.as_rotation_matrix(), atol=1e-12)

    def test_command_frame_correction_applies_yaw_offset(self):
        # IMU heading reads 0.3 rad ahead of odometry
        odom = Quaternion.from_yaw(0.5)
        imu = Quaternion.from_yaw(0.8)
        desired = Quaternion.from_yaw(1.0)
        out = apply_command_frame_correction(imu, odom, desired)
        self.assertAlmostEqual(yaw_from_quaternion(out), 1.3, places=9)
        self.assertAlmostEqual(out.norm(), 1.0, places=12)

    def test_wrap_angle(self):
        self.assertAlmostEqual(wrap_angle(3 * math.pi / 2), -math.pi / 2)
        self.assertAlmostEqual(wrap_angle(-3 * math.pi / 2), math.pi / 2)
        self.assertAlmostEqual(wrap_angle(0.25), 0.25)

    def test_vector_ops(self):
        a = Vector3D(1, 0, 0)
        b = Vector3D(0, 1, 0)
        np.testing.assert_allclose(a.cross(b).v, [0, 0, 1])
        self.assertEqual(a.dot(b), 0.0)
        np.testing.assert_allclose((a * 2 - b).v, [2, -1, 0])
        np.testing.assert_allclose(Vector3D(0, 3, 4).normalized().v, [0, 0.6, 0.8])
        with self.assertRaises(ZeroDivisionError):
            Vector3D().normalized()

if __name__ == '__main__':
    unittest.main()
