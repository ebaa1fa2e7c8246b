"""Message and state types exchanged by the controller manager."""

import enum
from dataclasses import dataclass, field, replace


def _floats(value, size, name):
    items = tuple(float(v) for v in value)
    if len(items) != size:
        raise ValueError(f"{name} must have {size} components, got {len(items)}")
    return items


class FlightState(enum.Enum):
    """Phases of a flight as driven by the command loop."""

    WAITING_FOR_HOME_POSE = enum.auto()
    MISSION_EXECUTION = enum.auto()
    LANDING = enum.auto()
    LANDED = enum.auto()


class MavState(enum.IntEnum):
    """Companion process states reported to the flight controller."""

    UNINIT = 0
    BOOT = 1
    CALIBRATING = 2
    STANDBY = 3
    ACTIVE = 4
    CRITICAL = 5
    EMERGENCY = 6
    POWEROFF = 7
    FLIGHT_TERMINATION = 8


class ControllerType(enum.IntEnum):
    """Attitude controller selection."""

    ERROR_QUATERNION = 1
    ERROR_GEOMETRIC = 2
    JERK_TRACKING = 3


@dataclass(frozen=True)
class Pose:
    """Position ``(x, y, z)`` and orientation quaternion ``(w, x, y, z)``."""

    position: tuple = (0.0, 0.0, 0.0)
    orientation: tuple = (1.0, 0.0, 0.0, 0.0)

    def __post_init__(self):
        object.__setattr__(self, "position", _floats(self.position, 3, "position"))
        object.__setattr__(
            self, "orientation", _floats(self.orientation, 4, "orientation")
        )

    def with_altitude_offset(self, dz):
        """Return a copy of this pose raised by ``dz`` along z."""
        x, y, z = self.position
        return replace(self, position=(x, y, z + float(dz)))


@dataclass(frozen=True)
class PoseStamped:
    """A pose with a timestamp [s] and a reference frame."""

    pose: Pose = field(default_factory=Pose)
    stamp: float = 0.0
    frame_id: str = "map"


@dataclass(frozen=True)
class FlatTarget:
    """Flat-output setpoint: position, velocity and acceleration.

    ``type_mask`` tells which parts are meaningful; a mask of 4 means the
    acceleration is to be taken as zero.
    """

    position: tuple = (0.0, 0.0, 0.0)
    velocity: tuple = (0.0, 0.0, 0.0)
    acceleration: tuple = (0.0, 0.0, 0.0)
    type_mask: int = 0

    def __post_init__(self):
        object.__setattr__(self, "position", _floats(self.position, 3, "position"))
        object.__setattr__(self, "velocity", _floats(self.velocity, 3, "velocity"))
        object.__setattr__(
            self, "acceleration", _floats(self.acceleration, 3, "acceleration")
        )
        object.__setattr__(self, "type_mask", int(self.type_mask))


@dataclass(frozen=True)
class TrajectoryPoint:
    """One point of a multi-DOF trajectory."""

    position: tuple = (0.0, 0.0, 0.0)
    orientation: tuple = (1.0, 0.0, 0.0, 0.0)
    velocity: tuple = (0.0, 0.0, 0.0)
    acceleration: tuple = (0.0, 0.0, 0.0)

    def __post_init__(self):
        object.__setattr__(self, "position", _floats(self.position, 3, "position"))
        object.__setattr__(
            self, "orientation", _floats(self.orientation, 4, "orientation")
        )
        object.__setattr__(self, "velocity", _floats(self.velocity, 3, "velocity"))
        object.__setattr__(
            self, "acceleration", _floats(self.acceleration, 3, "acceleration")
        )


@dataclass(frozen=True)
class AttitudeTarget:
    """Body-rate and normalized-thrust command.

    The default ``type_mask`` of 128 tells the flight controller to ignore
    the orientation and follow the rates.
    """

    body_rate: tuple
    orientation: tuple
    thrust: float
    stamp: float = 0.0
    type_mask: int = 128
    frame_id: str = "map"

    def __post_init__(self):
        object.__setattr__(self, "body_rate", _floats(self.body_rate, 3, "body_rate"))
        object.__setattr__(
            self, "orientation", _floats(self.orientation, 4, "orientation")
        )
        object.__setattr__(self, "thrust", float(self.thrust))
        object.__setattr__(self, "type_mask", int(self.type_mask))


@dataclass(frozen=True)
class CompanionStatus:
    """Companion process heartbeat; component 196 is the avoidance component."""

    state: MavState = MavState.ACTIVE
    stamp: float = 0.0
    component: int = 196

    def __post_init__(self):
        object.__setattr__(self, "state", MavState(self.state))
        object.__setattr__(self, "component", int(self.component))


@dataclass(frozen=True)
class VehicleState:
    """Flight mode and arming status reported by the flight controller."""

    mode: str = ""
    armed: bool = False


@dataclass(frozen=True)
class GainConfig:
    """Tunable position-control parameters."""

    max_acc: float = 9.0
    kp_x: float = 8.0
    kp_y: float = 8.0
    kp_z: float = 10.0
    kv_x: float = 1.5
    kv_y: float = 1.5
    kv_z: float = 3.3
    kint_x: float = 0.0
    kint_y: float = 0.0
    kint_z: float = 0.0
    max_integral: float = 2.0
    enable_integral: bool = False