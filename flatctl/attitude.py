"""Nonlinear quaternion-error attitude controller."""

import math

import numpy as np

from flatctl.control import Control
from flatctl.geometry import quat2rot_matrix, quat_multiplication

_CONJUGATE = np.array([1.0, -1.0, -1.0, -1.0])


class NonlinearAttitudeControl(Control):
    """Maps the quaternion attitude error to body rates.

    The rates are ``(2 / tau) * sign(qe_w) * qe_v`` with
    ``qe = q_current^-1 * q_reference``; the sign term picks the shorter
    rotation. Thrust is the reference acceleration projected on the current
    body z-axis.
    """

    def __init__(self, attctrl_tau):
        super().__init__()
        self.attctrl_tau = float(attctrl_tau)

    def update(self, curr_att, ref_att, ref_acc, ref_jerk):
        """Compute body rates and thrust; ``ref_jerk`` is not used."""
        curr = np.asarray(curr_att, dtype=float)
        q_inv = _CONJUGATE * curr
        qe = quat_multiplication(q_inv, ref_att)

        gain = (2.0 / self.attctrl_tau) * math.copysign(1.0, qe[0])
        self.desired_rate = gain * qe[1:]

        zb = quat2rot_matrix(curr)[:, 2]
        thrust = float(np.dot(np.asarray(ref_acc, dtype=float), zb))
        self.desired_thrust = np.array([0.0, 0.0, thrust])