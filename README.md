# flatctl

Position and attitude control for multirotor vehicles. A PID position loop
turns a flat-output reference (position, velocity, acceleration, yaw) into a
desired acceleration, and one of three attitude controllers turns that into
body-rate and normalised-thrust commands.

## Installation

```
pip install .
```

Running the tests:

```
pip install ".[test]"
pytest
```

## Attitude controllers

All attitude controllers derive from `flatctl.control.Control`. Call
`update(curr_att, ref_att, ref_acc, ref_jerk)` with quaternions in
`[w, x, y, z]` order and 3-vectors, then read `desired_rate` (body rates,
rad/s) and `desired_thrust` (only the z component is set: the reference
acceleration projected on the current body z-axis).

| Class | Module | Method |
|-------|--------|--------|
| `NonlinearAttitudeControl(attctrl_tau)` | `flatctl.attitude` | quaternion error feedback, rates `(2/tau) * sign(qe_w) * qe_v` |
| `NonlinearGeometricControl(attctrl_tau)` | `flatctl.geometric` | attitude error on SO(3), rates `(2/tau) * e` |
| `JerkTrackingControl()` | `flatctl.jerk` | jerk feed-forward plus the change in reference acceleration over 0.01 s; yaw rate always zero |

Only `JerkTrackingControl` uses `ref_jerk`.

```python
import numpy as np
from flatctl.geometric import NonlinearGeometricControl
from flatctl.positioncontrol import acc2quaternion

ctrl = NonlinearGeometricControl(attctrl_tau=0.1)
a_des = np.array([0.0, 0.0, 9.8])
q_des = acc2quaternion(a_des, 0.0)
ctrl.update(np.array([1.0, 0.0, 0.0, 0.0]), q_des, a_des, np.zeros(3))
print(ctrl.desired_rate, ctrl.desired_thrust)
```

## Position control

`flatctl.positioncontrol.PositionController` is the PID feedback law. Gains
are positive per-axis magnitudes (`kpos`, `kvel`, `kint`); the feedback
acceleration is `-(kpos * e_pos + kvel * e_vel + kint * integral)`, scaled
down to `max_fb_acc` when its norm exceeds it. With `enable_integral` set,
`compute(pos_error, vel_error, elapsed)` holds the integral at zero until
`elapsed` passes 3 s, then accumulates the position error in 0.01 s steps,
clamped to `±max_int`. `reset_integral()` and `set_gains(kpos, kvel, kint)`
adjust it at run time.

`acc2quaternion(vector_acc, yaw)` gives the attitude whose body z-axis points
along a thrust vector at the given heading; `velocity_yaw(velocity)` gives
the heading of a velocity vector.

## Quaternion and rotation helpers

`flatctl.geometry` provides `matrix_hat`, `matrix_hat_inv`,
`quat_multiplication`, `quat2rot_matrix` and `rot2quaternion`. Note that
`matrix_hat_inv(matrix_hat(v))` returns `-v`; the attitude error terms rely on
this convention.

## Controller manager

`flatctl.manager.ControllerManager(params, clock, sink)` ties it together.
`params` is a `ControllerParams`, `clock` returns the time in seconds
(default `time.monotonic`) and `sink(topic, message)` receives every outgoing
message. `create_controller(controller_type, attctrl_tau)` picks the attitude
controller: 1 quaternion error, 2 geometric, 3 jerk tracking; any other value
falls back to geometric.

Inputs arrive through `target_callback`, `flat_target_callback`,
`yaw_target_callback`, `trajectory_callback`, `pose_callback`,
`twist_callback` and `state_callback`. The first pose received becomes the
home pose.

Call `cmdloop()` every 0.01 s. It steps through the `FlightState` phases:

- `WAITING_FOR_HOME_POSE`: moves on once a pose has been received.
- `MISSION_EXECUTION`: computes the command and publishes a reference pose
  (`reference/pose`), an `AttitudeTarget` (`mavros/setpoint_raw/attitude`)
  and the pose history (`mavros_controllers/path`).
- `LANDING` (after `land()`): resets the integral and publishes a setpoint
  1 m above the home pose (`mavros/setpoint_position/local`).
- `LANDED`: stops; further `cmdloop()` calls do nothing.

Call `statusloop(set_mode, arm)` every 0.5 s. With `auto_takeoff` it requests
OFFBOARD mode, then arming, at most once per 0.5 s, through the two callables
you pass; it always publishes a `CompanionStatus`
(`mavros/companion_process/status`).

`reconfigure(GainConfig(...))` applies the first gain that differs from the
current ones and returns its name (or `None`). `errors()`, `states()`,
`set_feedthrough()`, `set_body_rate_command()`, `set_desired_acceleration()`,
`control_position()` and `compute_body_rate_cmd()` give direct access to the
loop; `trigger(mode)` stores a control mode and returns `(success, message)`.

```python
from flatctl.manager import ControllerManager, ControllerParams
from flatctl.messages import Pose

published = []
mgr = ControllerManager(ControllerParams(), sink=lambda topic, msg: published.append((topic, msg)))
mgr.pose_callback(Pose(position=(0.0, 0.0, 0.0)))
mgr.cmdloop()  # home pose known: switch to mission execution
mgr.cmdloop()  # publish reference pose, attitude target and path
```

The message types (`Pose`, `PoseStamped`, `FlatTarget`, `TrajectoryPoint`,
`AttitudeTarget`, `CompanionStatus`, `VehicleState`, `GainConfig`) and the
enums `FlightState`, `MavState` and `ControllerType` live in
`flatctl.messages`. The builders `pose_stamped`, `reference_pose_msg`,
`rate_command_msg`, `system_status_msg` and the sliding `PoseHistory` (newest
first) live in `flatctl.outputs`.

## What this package does not do

It has no middleware transport, node or command-line program: it does not
subscribe to or publish on a message bus, run timers, or talk to a flight
controller. Topic names are plain strings handed to your `sink`; you call the
callbacks and loops yourself and supply the mode and arming requests as
callables. There is no runtime parameter server either: configuration comes
from `ControllerParams` and `reconfigure`.