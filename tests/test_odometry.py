import math

import pytest

from diffdrive_odom.errors import ConfigError, NotInitializedError, OdometryError
from diffdrive_odom.kinematics import DifferentialDriveKinematics
from diffdrive_odom.odometry import OdometryEstimator, OdometryParams, wrap_pi
from diffdrive_odom.types import Pose2D


def make_est(pose=Pose2D(0.0, 0.0, 0.0), left=0.0, right=0.0, heading=0.0, **params):
    est = OdometryEstimator(DifferentialDriveKinematics(0.141), OdometryParams(**params))
    est.initialize(pose, left, right, heading)
    return est


def test_straight_tick():
    est = make_est()
    pose = est.update(0.0, 1.0, 1.0)
    assert pose.x == pytest.approx(1.0)
    assert pose.y == pytest.approx(0.0)
    assert pose.yaw == pytest.approx(0.0)


def test_unequal_deltas_move_by_average_along_heading():
    est = make_est()
    pose = est.update(math.radians(30), 0.5, 1.5)
    assert pose.x == pytest.approx(math.cos(math.radians(30)))
    assert pose.y == pytest.approx(0.5)
    assert math.degrees(pose.yaw) == pytest.approx(30.0)


@pytest.mark.parametrize("start", [Pose2D(0.0, 0.0, 0.0), Pose2D(-3.2, 7.5, 2.0), Pose2D(1.0, -1.0, -math.pi / 2)])
def test_zero_delta_keeps_position_and_overwrites_heading(start):
    est = make_est(pose=start, left=4.0, right=-2.0)
    pose = est.update(1.25, 4.0, -2.0)
    assert (pose.x, pose.y) == (start.x, start.y)
    assert pose.yaw == pytest.approx(1.25)


def test_equal_deltas_at_constant_heading():
    theta = math.radians(-135)
    est = make_est(heading=theta)
    for i in range(1, 6):
        est.update(theta, 0.2 * i, 0.2 * i)
    pose = est.current_pose()
    assert pose.x == pytest.approx(1.0 * math.cos(theta))
    assert pose.y == pytest.approx(1.0 * math.sin(theta))


def test_heading_is_not_taken_from_wheel_difference():
    est = make_est()
    est.update(0.0, 0.0, 0.5)
    assert est.current_pose().yaw == 0.0
    assert est.last_step.dyaw_wheels == pytest.approx(0.5 / 0.141)
    assert est.last_step.d_avg == pytest.approx(0.25)


def test_heading_is_normalized():
    est = make_est()
    pose = est.update(3 * math.pi + 0.1, 0.0, 0.0)
    assert -math.pi < pose.yaw <= math.pi
    assert pose.yaw == pytest.approx(-math.pi + 0.1)


def test_wrap_pi_range():
    assert wrap_pi(math.pi) == pytest.approx(math.pi)
    assert wrap_pi(-math.pi) == pytest.approx(math.pi)
    assert wrap_pi(2 * math.pi) == pytest.approx(0.0)
    assert wrap_pi(-0.5) == pytest.approx(-0.5)


def test_reset_then_same_readings_keeps_requested_pose():
    est = make_est()
    est.update(0.3, 1.0, 1.2)
    est.update(0.6, 2.0, 2.1)
    target = Pose2D(5.0, -2.0, 0.4)
    est.reset(target, 0.4, 2.0, 2.1)
    assert est.current_pose() == target
    pose = est.update(0.4, 2.0, 2.1)
    assert (pose.x, pose.y) == (5.0, -2.0)
    assert pose.yaw == pytest.approx(0.4)


def test_reset_rebaselines_distances():
    est = make_est()
    est.update(0.0, 3.0, 3.0)
    est.reset(Pose2D(0.0, 0.0, 0.0), 0.0, 0.0, 0.0)
    pose = est.update(0.0, 0.5, 0.5)
    assert pose.x == pytest.approx(0.5)


def test_nan_heading_rejected_and_pose_kept():
    est = make_est()
    before = est.update(0.0, 1.0, 1.0)
    after = est.update(math.nan, 2.0, 2.0)
    assert after == before
    assert "non-finite" in est.last_anomaly
    assert est.last_step.ok is False

    # baseline was kept, so the next good tick carries the whole delta
    pose = est.update(0.0, 2.0, 2.0)
    assert pose.x == pytest.approx(2.0)
    assert est.last_anomaly is None


def test_infinite_distance_rejected(caplog):
    est = make_est()
    with caplog.at_level("WARNING"):
        pose = est.update(0.0, math.inf, 0.0)
    assert pose == Pose2D(0.0, 0.0, 0.0)
    assert "rejected" in caplog.text


def test_step_gate_skips_jump_and_follows_encoders():
    est = make_est(max_step_m=0.5)
    pose = est.update(0.0, 2.0, 2.0)
    assert pose == Pose2D(0.0, 0.0, 0.0)
    assert "out of range" in est.last_anomaly

    pose = est.update(0.0, 2.1, 2.1)
    assert pose.x == pytest.approx(0.1)


def test_update_before_initialize_fails_fast():
    est = OdometryEstimator()
    assert not est.initialized
    with pytest.raises(NotInitializedError):
        est.update(0.0, 0.0, 0.0)
    with pytest.raises(NotInitializedError):
        est.current_pose()
    with pytest.raises(NotInitializedError):
        est.reset(Pose2D(0.0, 0.0, 0.0), 0.0, 0.0, 0.0)


def test_initialize_only_once():
    est = make_est()
    with pytest.raises(OdometryError):
        est.initialize(Pose2D(1.0, 1.0, 0.0), 0.0, 0.0, 0.0)


def test_initialize_rejects_non_finite_baseline():
    est = OdometryEstimator()
    with pytest.raises(OdometryError):
        est.initialize(Pose2D(0.0, 0.0, 0.0), math.nan, 0.0, 0.0)


def test_step_records_heading_change():
    est = make_est(heading=math.radians(170))
    est.update(math.radians(-170), 0.1, 0.1)
    assert math.degrees(est.last_step.dyaw_heading) == pytest.approx(20.0)
    assert est.last_step.ok is True


def test_rejected_step_has_no_deltas():
    est = make_est()
    est.update(math.nan, 1.0, 1.0)
    s = est.last_step
    assert all(math.isnan(v) for v in (s.d_left, s.d_right, s.d_avg, s.dyaw_wheels, s.dyaw_heading))


@pytest.mark.parametrize("gate", [0.0, -1.0, math.nan, math.inf])
def test_step_gate_must_be_positive(gate):
    with pytest.raises(ConfigError):
        OdometryParams(max_step_m=gate)
