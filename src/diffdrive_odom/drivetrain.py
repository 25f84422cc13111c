from __future__ import annotations

import logging
import math
from typing import Optional, Protocol

from .kinematics import DifferentialDriveKinematics, DriveParams
from .odometry import OdometryEstimator, OdometryParams
from .telemetry import TelemetryPublisher, TelemetrySink, TelemetrySnapshot
from .types import Pose2D, SensorSample

log = logging.getLogger(__name__)


class SensorProvider(Protocol):
    def read(self) -> SensorSample: ...

    def reset_encoders(self) -> None: ...

    def reset_heading(self, heading_rad: float = 0.0) -> None: ...


class Drivetrain:
    """
    One periodic unit: read sensors -> update odometry -> publish telemetry.

    The estimator is seeded from the provider's first reading at construction,
    so the first tick sees a zero wheel delta.
    """

    def __init__(
        self,
        sensors: SensorProvider,
        sink: TelemetrySink,
        params: Optional[DriveParams] = None,
        odom_params: Optional[OdometryParams] = None,
        initial_pose: Optional[Pose2D] = None,
    ):
        self.params = params or DriveParams()
        self.sensors = sensors
        self.kinematics = DifferentialDriveKinematics.from_params(self.params)
        self.odometry = OdometryEstimator(self.kinematics, odom_params)
        self.publisher = TelemetryPublisher(sink, self.kinematics)

        self.sensors.reset_encoders()
        s = self.sensors.read()
        if initial_pose is None:
            initial_pose = Pose2D(0.0, 0.0, s.heading_rad)
        self.odometry.initialize(initial_pose, s.left_distance_m, s.right_distance_m, s.heading_rad)
        self.last_sample: SensorSample = s

    def tick(self) -> TelemetrySnapshot:
        s = self.sensors.read()
        self.last_sample = s
        pose = self.odometry.update(s.heading_rad, s.left_distance_m, s.right_distance_m)
        return self.publisher.publish(pose, s.wheels, accel=s.accel, anomaly=self.odometry.last_anomaly)

    def reset_odometry(self, pose: Pose2D) -> None:
        self.sensors.reset_encoders()
        self.sensors.reset_heading(pose.yaw)
        s = self.sensors.read()
        if all(math.isfinite(v) for v in (s.heading_rad, s.left_distance_m, s.right_distance_m)):
            self.last_sample = s
            self.odometry.reset(pose, s.heading_rad, s.left_distance_m, s.right_distance_m)
            return

        # The sensors were just zeroed, so baseline on what they should read now.
        reason = (
            f"non-finite sample on reset heading={s.heading_rad} "
            f"left={s.left_distance_m} right={s.right_distance_m}"
        )
        log.warning("odometry reset read rejected: %s", reason)
        self.last_sample = SensorSample(heading_rad=pose.yaw, left_distance_m=0.0, right_distance_m=0.0)
        self.odometry.reset(pose, pose.yaw, 0.0, 0.0)
        self.odometry.last_anomaly = reason
        self.publisher.publish(self.odometry.current_pose(), self.last_sample.wheels, anomaly=reason)

    @property
    def left_encoder_count(self) -> int:
        return self.last_sample.left_count

    @property
    def right_encoder_count(self) -> int:
        return self.last_sample.right_count

    def zero_heading(self) -> None:
        self.sensors.reset_heading(0.0)

    @property
    def pose(self) -> Pose2D:
        return self.odometry.current_pose()

    @property
    def heading_deg(self) -> float:
        return math.degrees(self.pose.yaw)

    @property
    def average_distance_m(self) -> float:
        s = self.last_sample
        return (s.left_distance_m + s.right_distance_m) / 2.0
