import math

import numpy as np
import pytest

from flatctl.jerk import JerkTrackingControl

IDENTITY = np.array([1.0, 0.0, 0.0, 0.0])
ZERO = np.zeros(3)
HOVER = np.array([0.0, 0.0, 9.8])


def yaw_quat(angle):
    return np.array([math.cos(angle / 2), 0.0, 0.0, math.sin(angle / 2)])


def test_jerk_parallel_to_acceleration_gives_zero_rate():
    ctrl = JerkTrackingControl()
    # First update sees a jump from zero acceleration, purely along the acc axis.
    ctrl.update(IDENTITY, IDENTITY, HOVER, ZERO)
    np.testing.assert_allclose(ctrl.desired_rate, ZERO, atol=1e-9)


def test_lateral_jerk_x_maps_to_pitch_rate():
    ctrl = JerkTrackingControl()
    ctrl.update(IDENTITY, IDENTITY, HOVER, ZERO)
    jerk = np.array([1.0, 0.0, 0.0])
    ctrl.update(IDENTITY, IDENTITY, HOVER, jerk)
    np.testing.assert_allclose(ctrl.desired_rate, [0.0, -1.0 / 9.8, 0.0], atol=1e-12)


def test_lateral_jerk_y_maps_to_roll_rate():
    ctrl = JerkTrackingControl()
    ctrl.update(IDENTITY, IDENTITY, HOVER, ZERO)
    jerk = np.array([0.0, 1.0, 0.0])
    ctrl.update(IDENTITY, IDENTITY, HOVER, jerk)
    np.testing.assert_allclose(ctrl.desired_rate, [1.0 / 9.8, 0.0, 0.0], atol=1e-12)


def test_yaw_rate_is_always_zero():
    ctrl = JerkTrackingControl()
    ctrl.update(yaw_quat(0.5), yaw_quat(-0.2), np.array([0.3, 0.1, 9.5]), np.array([2.0, -1.0, 0.5]))
    assert ctrl.desired_rate[2] == 0.0


def test_feedback_jerk_matches_equivalent_feedforward():
    a1 = np.array([0.0, 0.0, 9.8])
    a2 = np.array([0.05, -0.02, 9.81])

    with_feedback = JerkTrackingControl()
    with_feedback.update(IDENTITY, IDENTITY, a1, ZERO)
    with_feedback.update(IDENTITY, IDENTITY, a2, ZERO)

    with_feedforward = JerkTrackingControl()
    with_feedforward.update(IDENTITY, IDENTITY, a2, ZERO)
    with_feedforward.update(IDENTITY, IDENTITY, a2, (a2 - a1) / 0.01)

    np.testing.assert_allclose(
        with_feedback.desired_rate, with_feedforward.desired_rate, rtol=1e-9, atol=1e-9
    )


def test_thrust_is_acc_projection_on_body_z():
    ctrl = JerkTrackingControl()
    acc = np.array([0.4, -0.2, 9.7])
    ctrl.update(yaw_quat(1.1), IDENTITY, acc, ZERO)
    assert ctrl.desired_thrust[2] == pytest.approx(acc[2])
    assert ctrl.desired_thrust[0] == 0.0
    assert ctrl.desired_thrust[1] == 0.0


def test_repeated_constant_acceleration_without_jerk_is_still():
    ctrl = JerkTrackingControl()
    acc = np.array([0.3, 0.2, 9.8])
    ctrl.update(IDENTITY, IDENTITY, acc, ZERO)
    ctrl.update(IDENTITY, IDENTITY, acc, ZERO)
    np.testing.assert_allclose(ctrl.desired_rate, ZERO, atol=1e-12)


def test_bad_quaternion_shape_raises():
    ctrl = JerkTrackingControl()
    with pytest.raises(ValueError):
        ctrl.update([1.0, 0.0], IDENTITY, HOVER, ZERO)