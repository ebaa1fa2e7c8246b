"""Controller manager: reference handling, flight phases and command output."""

import logging
import math
import time
from dataclasses import dataclass, fields, replace

import numpy as np

from flatctl.attitude import NonlinearAttitudeControl
from flatctl.geometric import NonlinearGeometricControl
from flatctl.geometry import quat2rot_matrix
from flatctl.jerk import JerkTrackingControl
from flatctl.messages import (
    ControllerType,
    FlatTarget,
    FlightState,
    GainConfig,
    MavState,
    Pose,
    PoseStamped,
    VehicleState,
)
from flatctl.outputs import (
    PoseHistory,
    pose_stamped,
    rate_command_msg,
    reference_pose_msg,
    system_status_msg,
)
from flatctl.positioncontrol import (
    PositionController,
    acc2quaternion,
    velocity_yaw,
)

log = logging.getLogger(__name__)

TOPIC_ATTITUDE = "mavros/setpoint_raw/attitude"
TOPIC_REFERENCE_POSE = "reference/pose"
TOPIC_SETPOINT_POSITION = "mavros/setpoint_position/local"
TOPIC_PATH = "mavros_controllers/path"
TOPIC_STATUS = "mavros/companion_process/status"

# Minimum spacing between mode or arming requests [s].
REQUEST_INTERVAL = 0.5
# Height above the home pose that landing heads for [m].
LANDING_ALTITUDE_OFFSET = 1.0

GRAVITY = np.array([0.0, 0.0, -9.8])


def _vec3(value, name):
    arr = np.asarray(value, dtype=float)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have shape (3,), got {arr.shape}")
    return arr


def _vec4(value, name):
    arr = np.asarray(value, dtype=float)
    if arr.shape != (4,):
        raise ValueError(f"{name} must have shape (4,), got {arr.shape}")
    return arr


def _yaw_from_quaternion(q):
    """Third angle of the roll-pitch-yaw (X, Y, Z) decomposition of ``q``.

    The first angle is kept within ``[-pi/2, pi/2]`` folded the same way as the
    usual linear-algebra libraries do, so the yaw matches their result.
    """
    w, x, y, z = q
    m = np.array(
        [
            [1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)],
            [2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
            [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)],
        ]
    )
    r0 = math.atan2(m[1, 2], m[2, 2])
    if r0 > 0:
        r0 -= math.pi
    s1, c1 = math.sin(r0), math.cos(r0)
    r2 = math.atan2(s1 * m[2, 0] - c1 * m[1, 0], c1 * m[1, 1] - s1 * m[2, 1])
    return -r2


def create_controller(controller_type, attctrl_tau):
    """Attitude controller for ``controller_type`` (1, 2 or 3).

    An unknown type falls back to the geometric controller.
    """
    try:
        kind = ControllerType(int(controller_type))
    except ValueError:
        log.warning(
            "Invalid controller_type: %s. Using default Geometric Controller",
            controller_type,
        )
        kind = ControllerType.ERROR_GEOMETRIC
    if kind is ControllerType.ERROR_QUATERNION:
        log.info("Initialized Nonlinear Attitude Controller (Quaternion Error)")
        return NonlinearAttitudeControl(attctrl_tau)
    if kind is ControllerType.JERK_TRACKING:
        log.info("Initialized Jerk Tracking Controller")
        return JerkTrackingControl()
    log.info("Initialized Nonlinear Geometric Controller (SE(3) Error)")
    return NonlinearGeometricControl(attctrl_tau)


@dataclass(frozen=True)
class ControllerParams:
    """Start-up parameters of the controller manager."""

    controller_type: int = 2
    ctrl_mode: int = ControllerType.ERROR_QUATERNION
    auto_takeoff: bool = True
    velocity_yaw: bool = False
    max_acc: float = 9.0
    yaw_heading: float = 0.0
    drag_dx: float = 0.0
    drag_dy: float = 0.0
    drag_dz: float = 0.0
    attctrl_tau: float = 0.1
    norm_thrust_const: float = 0.05
    norm_thrust_offset: float = 0.1
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
    posehistory_window: int = 200
    init_pos: tuple = (0.0, 0.0, 2.0)

    def gain_config(self):
        """The tunable gains as a :class:`GainConfig`."""
        return GainConfig(
            max_acc=self.max_acc,
            kp_x=self.kp_x,
            kp_y=self.kp_y,
            kp_z=self.kp_z,
            kv_x=self.kv_x,
            kv_y=self.kv_y,
            kv_z=self.kv_z,
            kint_x=self.kint_x,
            kint_y=self.kint_y,
            kint_z=self.kint_z,
            max_integral=self.max_integral,
            enable_integral=self.enable_integral,
        )


class ControllerManager:
    """Runs the position and attitude control of a multirotor.

    ``clock`` returns the current time in seconds. ``sink(topic, message)``
    receives every published message. Reference and state updates come in
    through the ``*_callback`` methods; :meth:`cmdloop` and :meth:`statusloop`
    are meant to be called periodically (every 0.01 s and 0.5 s).
    """

    def __init__(self, params=None, clock=time.monotonic, sink=None):
        self.params = params if params is not None else ControllerParams()
        self._clock = clock
        self._sink = sink if sink is not None else (lambda topic, message: None)
        p = self.params

        self.node_state = FlightState.WAITING_FOR_HOME_POSE
        self.running = True
        self.auto_takeoff = bool(p.auto_takeoff)
        self.velocity_yaw = bool(p.velocity_yaw)
        self.feedthrough = False
        self.companion_state = MavState.ACTIVE
        self.vehicle_state = VehicleState()

        self.controller = create_controller(p.controller_type, p.attctrl_tau)
        if isinstance(self.controller, NonlinearAttitudeControl):
            self.ctrl_mode = int(ControllerType.ERROR_QUATERNION)
        elif isinstance(self.controller, NonlinearGeometricControl):
            self.ctrl_mode = int(ControllerType.ERROR_GEOMETRIC)
        else:
            self.ctrl_mode = int(p.ctrl_mode)

        self.gains = p.gain_config()
        self.position_controller = PositionController(
            kpos=(p.kp_x, p.kp_y, p.kp_z),
            kvel=(p.kv_x, p.kv_y, p.kv_z),
            kint=(p.kint_x, p.kint_y, p.kint_z),
            max_fb_acc=p.max_acc,
            max_int=p.max_integral,
            enable_integral=p.enable_integral,
        )
        self.drag = np.array([p.drag_dx, p.drag_dy, p.drag_dz], dtype=float)
        self.norm_thrust_const = float(p.norm_thrust_const)
        self.norm_thrust_offset = float(p.norm_thrust_offset)

        self.target_pos = _vec3(p.init_pos, "init_pos")
        self.target_vel = np.zeros(3)
        self.target_acc = np.zeros(3)
        self.target_pos_prev = np.zeros(3)
        self.target_vel_prev = np.zeros(3)

        self.mav_pos = np.zeros(3)
        self.mav_vel = np.zeros(3)
        self.mav_rate = np.zeros(3)
        self.mav_att = np.array([1.0, 0.0, 0.0, 0.0])
        self.mav_yaw = float(p.yaw_heading)
        self.q_des = np.array([1.0, 0.0, 0.0, 0.0])
        self.cmd_body_rate = np.zeros(4)

        self.received_home_pose = False
        self.home_pose = Pose()
        self.history = PoseHistory(p.posehistory_window)

        self._reference_now = 0.0
        self._reference_last = 0.0
        self.reference_dt = 0.0
        self._last_request = 0.0
        self.start_time = self._clock()

    # -- reference inputs -------------------------------------------------

    def _advance_reference(self):
        self._reference_last = self._reference_now
        self.target_pos_prev = self.target_pos.copy()
        self.target_vel_prev = self.target_vel.copy()
        self._reference_now = self._clock()
        self.reference_dt = self._reference_now - self._reference_last

    def target_callback(self, position, velocity):
        """Position and velocity setpoint; acceleration is differentiated."""
        pos = _vec3(position, "position")
        vel = _vec3(velocity, "velocity")
        self._advance_reference()
        self.target_pos = pos
        self.target_vel = vel
        if self.reference_dt > 0:
            self.target_acc = (vel - self.target_vel_prev) / self.reference_dt
        else:
            self.target_acc = np.zeros(3)

    def flat_target_callback(self, msg):
        """Flat setpoint; a ``type_mask`` of 4 commands zero acceleration."""
        if not isinstance(msg, FlatTarget):
            raise TypeError(f"expected FlatTarget, got {type(msg).__name__}")
        self._advance_reference()
        self.target_pos = np.array(msg.position)
        self.target_vel = np.array(msg.velocity)
        if msg.type_mask == 4:
            self.target_acc = np.zeros(3)
        else:
            self.target_acc = np.array(msg.acceleration)

    def yaw_target_callback(self, yaw):
        """Heading setpoint [rad]; ignored when yaw follows the velocity."""
        if not self.velocity_yaw:
            self.mav_yaw = float(yaw)

    def trajectory_callback(self, points):
        """Multi-DOF trajectory; only its first point is used."""
        points = list(points)
        if not points:
            raise ValueError("trajectory has no points")
        pt = points[0]
        self._advance_reference()
        self.target_pos = np.array(pt.position, dtype=float)
        self.target_vel = np.array(pt.velocity, dtype=float)
        self.target_acc = np.array(pt.acceleration, dtype=float)
        if not self.velocity_yaw:
            self.mav_yaw = _yaw_from_quaternion(pt.orientation)

    # -- vehicle state inputs ----------------------------------------------

    def pose_callback(self, pose):
        """Vehicle pose; the first one received becomes the home pose."""
        if isinstance(pose, PoseStamped):
            pose = pose.pose
        if not isinstance(pose, Pose):
            raise TypeError(f"expected Pose, got {type(pose).__name__}")
        if not self.received_home_pose:
            self.received_home_pose = True
            self.home_pose = pose
            log.info("Home pose initialized to: %s", pose)
        self.mav_pos = np.array(pose.position)
        self.mav_att = np.array(pose.orientation)

    def twist_callback(self, linear, angular):
        """Vehicle linear velocity and angular rate."""
        self.mav_vel = _vec3(linear, "linear")
        self.mav_rate = _vec3(angular, "angular")

    def state_callback(self, state):
        """Flight mode and arming status from the flight controller."""
        if not isinstance(state, VehicleState):
            raise TypeError(f"expected VehicleState, got {type(state).__name__}")
        self.vehicle_state = state

    # -- services ------------------------------------------------------------

    def land(self):
        """Start the landing sequence."""
        self.node_state = FlightState.LANDING
        return True

    def trigger(self, mode):
        """Set the control mode; returns ``(success, message)``."""
        self.ctrl_mode = int(mode)
        return bool(self.ctrl_mode), "controller triggered"

    # -- loops ---------------------------------------------------------------

    def cmdloop(self):
        """One step of the command loop for the current flight phase."""
        if not self.running:
            return
        state = self.node_state
        if state is FlightState.WAITING_FOR_HOME_POSE:
            if self.received_home_pose:
                log.info("Got pose! Drone Ready to be armed.")
                self.node_state = FlightState.MISSION_EXECUTION
            else:
                log.info("Waiting for home pose...")
        elif state is FlightState.MISSION_EXECUTION:
            if self.feedthrough:
                desired_acc = self.target_acc.copy()
            else:
                desired_acc = self.control_position(
                    self.target_pos, self.target_vel, self.target_acc
                )
            self.compute_body_rate_cmd(desired_acc)
            now = self._clock()
            self._sink(
                TOPIC_REFERENCE_POSE, reference_pose_msg(self.target_pos, self.q_des, now)
            )
            self._sink(
                TOPIC_ATTITUDE, rate_command_msg(self.cmd_body_rate, self.q_des, now)
            )
            self.history.append(pose_stamped(self.mav_pos, self.mav_att, self._clock()))
            self._sink(TOPIC_PATH, tuple(self.history.poses()))
        elif state is FlightState.LANDING:
            self.position_controller.reset_integral()
            landing = PoseStamped(
                pose=self.home_pose.with_altitude_offset(LANDING_ALTITUDE_OFFSET),
                stamp=self._clock(),
                frame_id="",
            )
            self._sink(TOPIC_SETPOINT_POSITION, landing)
            self.node_state = FlightState.LANDED
        else:
            log.info("Landed. Please set to position control and disarm.")
            self.running = False

    def statusloop(self, set_mode, arm):
        """Request OFFBOARD mode and arming if enabled, then publish status.

        ``set_mode(mode)`` and ``arm(value)`` perform the requests and return
        whether they succeeded.
        """
        if self.auto_takeoff:
            if (
                self.vehicle_state.mode != "OFFBOARD"
                and self._clock() - self._last_request > REQUEST_INTERVAL
            ):
                if set_mode("OFFBOARD"):
                    log.info("Offboard enabled")
                self._last_request = self._clock()
            elif (
                not self.vehicle_state.armed
                and self._clock() - self._last_request > REQUEST_INTERVAL
            ):
                if arm(True):
                    log.info("Vehicle armed")
                self._last_request = self._clock()
        self._sink(TOPIC_STATUS, system_status_msg(self.companion_state, self._clock()))

    def reconfigure(self, config):
        """Apply the first parameter of ``config`` that differs from the current.

        Parameters are examined in :class:`GainConfig` field order; only one
        changes per call. Returns the name of the changed field, or ``None``.
        """
        if not isinstance(config, GainConfig):
            raise TypeError(f"expected GainConfig, got {type(config).__name__}")
        changed = None
        for f in fields(GainConfig):
            new = getattr(config, f.name)
            if getattr(self.gains, f.name) != new:
                self.gains = replace(self.gains, **{f.name: new})
                changed = f.name
                log.info("Reconfigure request : %s = %s", f.name, new)
                break

        g = self.gains
        pc = self.position_controller
        pc.max_fb_acc = float(g.max_acc)
        pc.max_int = float(g.max_integral)
        if changed == "enable_integral":
            pc.enable_integral = bool(g.enable_integral)
            log.info(
                "Integral control %s", "enabled" if g.enable_integral else "disabled"
            )
            pc.reset_integral()
        pc.set_gains(
            (g.kp_x, g.kp_y, g.kp_z),
            (g.kv_x, g.kv_y, g.kv_z),
            (g.kint_x, g.kint_y, g.kint_z),
        )
        return changed

    # -- queries and overrides ---------------------------------------------

    def errors(self):
        """Position and velocity errors ``(mav - target)``."""
        return self.mav_pos - self.target_pos, self.mav_vel - self.target_vel

    def states(self):
        """Position, attitude, velocity and angular rate of the vehicle."""
        return (
            self.mav_pos.copy(),
            self.mav_att.copy(),
            self.mav_vel.copy(),
            self.mav_rate.copy(),
        )

    def set_feedthrough(self, enabled):
        """Pass the target acceleration straight through, skipping feedback."""
        self.feedthrough = bool(enabled)

    def set_body_rate_command(self, command):
        """Override the stored body-rate command ``(p, q, r, thrust)``."""
        self.cmd_body_rate = _vec4(command, "command")

    def set_desired_acceleration(self, acceleration):
        """Override the target acceleration."""
        self.target_acc = _vec3(acceleration, "acceleration")

    # -- control laws --------------------------------------------------------

    def control_position(self, target_pos, target_vel, target_acc):
        """Desired acceleration from feedback, feedforward, drag and gravity."""
        target_pos = _vec3(target_pos, "target_pos")
        target_vel = _vec3(target_vel, "target_vel")
        a_ref = _vec3(target_acc, "target_acc")

        if self.velocity_yaw:
            self.mav_yaw = velocity_yaw(self.mav_vel)

        q_ref = acc2quaternion(a_ref - GRAVITY, self.mav_yaw)
        r_ref = quat2rot_matrix(q_ref)

        pos_error = self.mav_pos - target_pos
        vel_error = self.mav_vel - target_vel
        a_fb = self.position_controller.compute(
            pos_error, vel_error, self._clock() - self.start_time
        )

        a_rd = r_ref @ np.diag(self.drag) @ r_ref.T @ target_vel
        return a_fb + a_ref - a_rd - GRAVITY

    def compute_body_rate_cmd(self, a_des):
        """Body rates and normalized thrust ``(p, q, r, thrust)`` for ``a_des``."""
        a_des = _vec3(a_des, "a_des")
        self.q_des = acc2quaternion(a_des, self.mav_yaw)
        self.controller.update(self.mav_att, self.q_des, a_des, np.zeros(3))

        cmd = np.zeros(4)
        cmd[:3] = self.controller.desired_rate
        thrust = self.controller.desired_thrust[2]
        normalized = self.norm_thrust_const * thrust + self.norm_thrust_offset
        cmd[3] = max(0.0, min(1.0, normalized))
        self.cmd_body_rate = cmd
        return cmd.copy()