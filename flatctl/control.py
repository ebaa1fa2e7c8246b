"""Common interface of the attitude controllers."""

from abc import ABC, abstractmethod

import numpy as np


class Control(ABC):
    """Attitude controller producing body rates and a thrust vector.

    After each :meth:`update`, ``desired_rate`` holds the commanded body
    rates [rad/s] and ``desired_thrust`` the thrust vector in the body frame.
    """

    def __init__(self):
        self.desired_rate = np.zeros(3)
        self.desired_thrust = np.zeros(3)

    @abstractmethod
    def update(self, curr_att, ref_att, ref_acc, ref_jerk):
        """Compute new commands from the current and reference states.

        Quaternions are ``[w, x, y, z]``; acceleration and jerk are 3-vectors.
        """