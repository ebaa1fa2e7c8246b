"""Position feedback law and acceleration-to-attitude conversion."""

import math

import numpy as np

from flatctl.geometry import rot2quaternion

# Period of the command loop; the integral is accumulated with this step.
CONTROL_PERIOD = 0.01
# Integral action stays off this long after start to avoid takeoff windup.
INTEGRAL_DELAY = 3.0


def _vec3(value, name):
    arr = np.asarray(value, dtype=float)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have shape (3,), got {arr.shape}")
    return arr


def acc2quaternion(vector_acc, yaw):
    """Attitude ``[w, x, y, z]`` whose body z-axis points along ``vector_acc``.

    The body x-axis is chosen in the vertical plane that contains the heading
    ``yaw`` [rad].
    """
    acc = _vec3(vector_acc, "vector_acc")
    proj_xb = np.array([math.cos(yaw), math.sin(yaw), 0.0])
    with np.errstate(divide="ignore", invalid="ignore"):
        zb = acc / np.linalg.norm(acc)
        yb = np.cross(zb, proj_xb)
        yb = yb / np.linalg.norm(yb)
        xb = np.cross(yb, zb)
        xb = xb / np.linalg.norm(xb)
    return rot2quaternion(np.column_stack((xb, yb, zb)))


def velocity_yaw(velocity):
    """Heading [rad] of the horizontal part of ``velocity``."""
    vel = _vec3(velocity, "velocity")
    return math.atan2(vel[1], vel[0])


class PositionController:
    """PID position feedback with a delayed, clamped integral and saturation.

    Gains are given as positive magnitudes per axis; the feedback acceleration
    is ``-(kpos * e_pos + kvel * e_vel + kint * integral)``, scaled down to
    ``max_fb_acc`` when its norm exceeds it.
    """

    def __init__(
        self,
        kpos=(8.0, 8.0, 10.0),
        kvel=(1.5, 1.5, 3.3),
        kint=(0.0, 0.0, 0.0),
        max_fb_acc=9.0,
        max_int=2.0,
        enable_integral=False,
    ):
        self.set_gains(kpos, kvel, kint)
        self.max_fb_acc = float(max_fb_acc)
        self.max_int = float(max_int)
        self.enable_integral = bool(enable_integral)
        self._integral = np.zeros(3)

    @property
    def integral(self):
        """Accumulated position error integral."""
        return self._integral.copy()

    def set_gains(self, kpos, kvel, kint):
        """Replace the proportional, derivative and integral gains."""
        self.kpos = _vec3(kpos, "kpos")
        self.kvel = _vec3(kvel, "kvel")
        self.kint = _vec3(kint, "kint")

    def reset_integral(self):
        """Zero the integral state."""
        self._integral = np.zeros(3)

    def compute(self, pos_error, vel_error, elapsed):
        """Feedback acceleration for the given errors.

        ``elapsed`` is the time [s] since the controller started; before
        :data:`INTEGRAL_DELAY` the integral is held at zero.
        """
        e_pos = _vec3(pos_error, "pos_error")
        e_vel = _vec3(vel_error, "vel_error")

        if self.enable_integral:
            if elapsed > INTEGRAL_DELAY:
                self._integral = np.clip(
                    self._integral + e_pos * CONTROL_PERIOD, -self.max_int, self.max_int
                )
            else:
                self.reset_integral()

        a_fb = -(self.kpos * e_pos + self.kvel * e_vel + self.kint * self._integral)

        norm = np.linalg.norm(a_fb)
        if norm > self.max_fb_acc:
            a_fb = (self.max_fb_acc / norm) * a_fb
        return a_fb