import math

import numpy as np
import pytest

from flatctl.geometric import NonlinearGeometricControl

IDENTITY = np.array([1.0, 0.0, 0.0, 0.0])
ZERO = np.zeros(3)


def yaw_quat(angle):
    return np.array([math.cos(angle / 2), 0.0, 0.0, math.sin(angle / 2)])


def roll_quat(angle):
    return np.array([math.cos(angle / 2), math.sin(angle / 2), 0.0, 0.0])


def test_aligned_attitudes_give_zero_rate():
    ctrl = NonlinearGeometricControl(0.1)
    ctrl.update(IDENTITY, IDENTITY, np.array([0.0, 0.0, 9.8]), ZERO)
    np.testing.assert_allclose(ctrl.desired_rate, ZERO, atol=1e-12)


def test_thrust_is_acc_projection_on_body_z_at_identity():
    ctrl = NonlinearGeometricControl(0.1)
    acc = np.array([1.0, 2.0, 9.8])
    ctrl.update(IDENTITY, IDENTITY, acc, ZERO)
    np.testing.assert_allclose(ctrl.desired_thrust, [0.0, 0.0, acc[2]])


def test_thrust_unchanged_by_yaw():
    ctrl = NonlinearGeometricControl(0.1)
    acc = np.array([0.5, -0.3, 9.8])
    ctrl.update(yaw_quat(0.7), IDENTITY, acc, ZERO)
    assert ctrl.desired_thrust[2] == pytest.approx(acc[2])
    assert ctrl.desired_thrust[0] == 0.0
    assert ctrl.desired_thrust[1] == 0.0


def test_yaw_error_drives_only_yaw_rate():
    ctrl = NonlinearGeometricControl(1.0)
    ctrl.update(yaw_quat(math.pi / 2), IDENTITY, np.array([0.0, 0.0, 9.8]), ZERO)
    np.testing.assert_allclose(ctrl.desired_rate, [0.0, 0.0, -2.0], atol=1e-12)


def test_swapping_current_and_reference_negates_rate():
    a = NonlinearGeometricControl(0.2)
    b = NonlinearGeometricControl(0.2)
    q1 = roll_quat(0.3)
    q2 = yaw_quat(-0.4)
    a.update(q1, q2, ZERO, ZERO)
    b.update(q2, q1, ZERO, ZERO)
    np.testing.assert_allclose(a.desired_rate, -b.desired_rate, atol=1e-12)


def test_rate_scales_inversely_with_tau():
    fast = NonlinearGeometricControl(0.1)
    slow = NonlinearGeometricControl(0.4)
    q = roll_quat(0.25)
    fast.update(q, IDENTITY, ZERO, ZERO)
    slow.update(q, IDENTITY, ZERO, ZERO)
    np.testing.assert_allclose(fast.desired_rate, 4.0 * slow.desired_rate, atol=1e-12)


def test_jerk_input_is_ignored():
    a = NonlinearGeometricControl(0.1)
    b = NonlinearGeometricControl(0.1)
    q = roll_quat(0.2)
    acc = np.array([0.0, 0.0, 9.8])
    a.update(q, IDENTITY, acc, ZERO)
    b.update(q, IDENTITY, acc, np.array([5.0, -3.0, 1.0]))
    np.testing.assert_allclose(a.desired_rate, b.desired_rate)
    np.testing.assert_allclose(a.desired_thrust, b.desired_thrust)


def test_bad_quaternion_shape_raises():
    ctrl = NonlinearGeometricControl(0.1)
    with pytest.raises(ValueError):
        ctrl.update([1.0, 0.0, 0.0], IDENTITY, ZERO, ZERO)