import dataclasses

import numpy as np
import pytest

from flatctl.messages import (
    AttitudeTarget,
    CompanionStatus,
    ControllerType,
    FlatTarget,
    GainConfig,
    MavState,
    Pose,
    PoseStamped,
    TrajectoryPoint,
    VehicleState,
)


def test_with_altitude_offset_raises_only_z():
    pose = Pose(position=(1.0, 2.0, 3.0), orientation=(0.5, 0.5, 0.5, 0.5))
    raised = pose.with_altitude_offset(1.0)
    assert raised.position[0] == 1.0
    assert raised.position[1] == 2.0
    assert raised.position[2] == pytest.approx(pose.position[2] + 1.0)
    assert raised.orientation == pose.orientation


def test_with_altitude_offset_leaves_original_unchanged():
    pose = Pose(position=(0.0, 0.0, 5.0))
    pose.with_altitude_offset(2.5)
    assert pose.position == (0.0, 0.0, 5.0)


def test_pose_is_frozen():
    pose = Pose(position=(1.0, 2.0, 3.0))
    with pytest.raises(dataclasses.FrozenInstanceError):
        pose.position = (4.0, 4.0, 4.0)
    assert pose.position == (1.0, 2.0, 3.0)


def test_pose_accepts_numpy_arrays():
    pose = Pose(position=np.array([1, 2, 3]), orientation=np.array([1, 0, 0, 0]))
    assert pose.position == (1.0, 2.0, 3.0)
    assert all(isinstance(v, float) for v in pose.position)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"position": (1.0, 2.0)},
        {"orientation": (1.0, 0.0, 0.0)},
    ],
)
def test_pose_rejects_wrong_sizes(kwargs):
    with pytest.raises(ValueError):
        Pose(**kwargs)


def test_pose_stamped_defaults_to_map_frame():
    stamped = PoseStamped(Pose(position=(1.0, 1.0, 1.0)), stamp=3.0)
    assert stamped.frame_id == "map"
    assert stamped.stamp == 3.0
    assert stamped.pose.position == (1.0, 1.0, 1.0)


def test_flat_target_coerces_fields():
    target = FlatTarget(
        position=[1, 2, 3], velocity=[0, 0, 1], acceleration=[0, 0, 0], type_mask=4.0
    )
    assert target.type_mask == 4
    assert target.position == (1.0, 2.0, 3.0)
    assert target.velocity == (0.0, 0.0, 1.0)


def test_flat_target_rejects_bad_acceleration():
    with pytest.raises(ValueError):
        FlatTarget(acceleration=(1.0, 2.0, 3.0, 4.0))


def test_trajectory_point_round_trip():
    point = TrajectoryPoint(
        position=(1.0, 2.0, 3.0),
        orientation=(0.0, 0.0, 0.0, 1.0),
        velocity=(0.5, 0.0, 0.0),
        acceleration=(0.0, 0.1, 0.0),
    )
    assert dataclasses.replace(point) == point
    assert point.orientation == (0.0, 0.0, 0.0, 1.0)


def test_attitude_target_defaults_to_rate_mode():
    target = AttitudeTarget(body_rate=(0.1, 0.2, 0.3), orientation=(1, 0, 0, 0), thrust=0.5)
    assert target.type_mask == 128
    assert target.frame_id == "map"
    assert target.body_rate == (0.1, 0.2, 0.3)
    assert target.thrust == 0.5


def test_companion_status_coerces_state():
    status = CompanionStatus(state=int(MavState.ACTIVE), stamp=1.0)
    assert status.state is MavState.ACTIVE
    assert status.component == 196


def test_companion_status_rejects_unknown_state():
    with pytest.raises(ValueError):
        CompanionStatus(state=42)


def test_controller_type_lookup():
    assert ControllerType(3) is ControllerType.JERK_TRACKING
    with pytest.raises(ValueError):
        ControllerType(7)


def test_vehicle_state_equality():
    assert VehicleState("OFFBOARD", True) == VehicleState(mode="OFFBOARD", armed=True)
    assert VehicleState() == VehicleState(mode="", armed=False)


def test_gain_config_replace_keeps_other_fields():
    config = GainConfig()
    tuned = dataclasses.replace(config, kp_x=4.0)
    assert tuned.kp_x == 4.0
    assert tuned.kp_y == config.kp_y
    assert tuned.max_acc == 9.0
    assert tuned.max_integral == 2.0
    assert tuned.enable_integral is False