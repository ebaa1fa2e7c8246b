"""Geometric tracking attitude controller on SO(3)."""

import numpy as np

from flatctl.control import Control
from flatctl.geometry import matrix_hat_inv, quat2rot_matrix


class NonlinearGeometricControl(Control):
    """Maps the SO(3) attitude error to body rates.

    The error is ``e = vee(Rd^T R - R^T Rd) / 2``. The commanded rates are
    ``(2 / tau) * e``. Thrust is the reference acceleration projected on the
    current body z-axis.
    """

    def __init__(self, attctrl_tau):
        super().__init__()
        self.attctrl_tau = float(attctrl_tau)

    def update(self, curr_att, ref_att, ref_acc, ref_jerk):
        """Compute body rates and thrust; ``ref_jerk`` is not used."""
        rotmat = quat2rot_matrix(curr_att)
        rotmat_d = quat2rot_matrix(ref_att)

        error_att = 0.5 * matrix_hat_inv(rotmat_d.T @ rotmat - rotmat.T @ rotmat_d)
        self.desired_rate = (2.0 / self.attctrl_tau) * error_att

        zb = rotmat[:, 2]
        thrust = float(np.dot(np.asarray(ref_acc, dtype=float), zb))
        self.desired_thrust = np.array([0.0, 0.0, thrust])