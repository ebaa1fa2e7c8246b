"""Builders for the messages the controller publishes, and the pose history."""

from collections import deque

from flatctl.messages import (
    AttitudeTarget,
    CompanionStatus,
    MavState,
    Pose,
    PoseStamped,
)

_FRAME = "map"


def _components(value, size, name):
    items = tuple(float(v) for v in value)
    if len(items) != size:
        raise ValueError(f"{name} must have {size} components, got {len(items)}")
    return items


def pose_stamped(position, orientation, stamp):
    """Stamped pose in the map frame.

    ``position`` is ``(x, y, z)`` and ``orientation`` is ``(w, x, y, z)``.
    """
    pose = Pose(
        position=_components(position, 3, "position"),
        orientation=_components(orientation, 4, "orientation"),
    )
    return PoseStamped(pose=pose, stamp=float(stamp), frame_id=_FRAME)


def reference_pose_msg(position, attitude, stamp):
    """Reference pose message for the target position and desired attitude."""
    return pose_stamped(position, attitude, stamp)


def rate_command_msg(cmd, attitude, stamp):
    """Body-rate command from ``cmd = (roll_rate, pitch_rate, yaw_rate, thrust)``.

    The orientation is carried for reference only; the type mask tells the
    flight controller to follow the rates.
    """
    p, q, r, thrust = _components(cmd, 4, "cmd")
    return AttitudeTarget(
        body_rate=(p, q, r),
        orientation=_components(attitude, 4, "attitude"),
        thrust=thrust,
        stamp=float(stamp),
        type_mask=128,
        frame_id=_FRAME,
    )


def system_status_msg(state, stamp):
    """Companion process heartbeat for the avoidance component."""
    return CompanionStatus(state=MavState(state), stamp=float(stamp), component=196)


class PoseHistory:
    """Sliding window of recent poses, newest first.

    A window of ``n`` keeps at most ``n`` poses; a negative window keeps
    every pose.
    """

    def __init__(self, window=200):
        window = int(window)
        self.window = window
        self._poses = deque(maxlen=window if window >= 0 else None)

    def append(self, pose):
        """Record ``pose`` as the newest entry, dropping the oldest if full."""
        if not isinstance(pose, PoseStamped):
            raise TypeError(f"expected PoseStamped, got {type(pose).__name__}")
        self._poses.appendleft(pose)

    def poses(self):
        """The recorded poses, newest first."""
        return list(self._poses)

    def __len__(self):
        return len(self._poses)

    def __iter__(self):
        return iter(self._poses)