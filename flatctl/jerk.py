"""Jerk-based trajectory tracking attitude controller."""

import numpy as np

from flatctl.control import Control
from flatctl.geometry import quat2rot_matrix, quat_multiplication

_CONJUGATE = np.array([1.0, -1.0, -1.0, -1.0])

# Control loop timestep used to differentiate the reference acceleration.
_DT = 0.01


class JerkTrackingControl(Control):
    """Turns the reference jerk into body rates.

    The feedback jerk is the change in reference acceleration since the last
    update divided by the 0.01 s loop period. It is added to the feedforward
    jerk and projected on the plane normal to the acceleration. The result is
    then rotated into the body frame by the attitude error quaternion. The yaw
    rate is always zero. Thrust is the reference acceleration projected on
    the current body z-axis.
    """

    def __init__(self):
        super().__init__()
        self._last_ref_acc = np.zeros(3)

    def update(self, curr_att, ref_att, ref_acc, ref_jerk):
        """Compute body rates and thrust and remember ``ref_acc``."""
        curr = np.asarray(curr_att, dtype=float)
        acc = np.asarray(ref_acc, dtype=float)
        jerk = np.asarray(ref_jerk, dtype=float)

        jerk_fb = (acc - self._last_ref_acc) / _DT
        jerk_des = jerk + jerk_fb

        zb = quat2rot_matrix(curr)[:, 2]

        norm = np.linalg.norm(acc)
        with np.errstate(divide="ignore", invalid="ignore"):
            jerk_vector = jerk_des / norm - acc * np.dot(acc, jerk_des) / norm**3
        jerk_quat = np.concatenate(([0.0], jerk_vector))

        q_inv = _CONJUGATE * curr
        qd = quat_multiplication(q_inv, ref_att)
        qd_star = _CONJUGATE * qd

        ratecmd_pre = quat_multiplication(quat_multiplication(qd_star, jerk_quat), qd)

        self.desired_rate = np.array([ratecmd_pre[2], -ratecmd_pre[1], 0.0])
        self.desired_thrust = np.array([0.0, 0.0, float(np.dot(acc, zb))])

        self._last_ref_acc = acc.copy()