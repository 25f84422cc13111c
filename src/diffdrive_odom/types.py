from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Pose2D:
    x: float
    y: float
    yaw: float


@dataclass(frozen=True)
class WheelSpeeds:
    left: float
    right: float


@dataclass(frozen=True)
class ChassisSpeeds:
    linear: float   # m/s along the heading
    angular: float  # rad/s, CCW positive


@dataclass(frozen=True)
class WheelState:
    left_distance_m: float
    right_distance_m: float
    left_speed_mps: float = 0.0
    right_speed_mps: float = 0.0
    left_count: int = 0
    right_count: int = 0


@dataclass(frozen=True)
class Accel3:
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class SensorSample:
    """One tick's worth of readings from the sensor provider."""

    heading_rad: float
    left_distance_m: float
    right_distance_m: float
    left_speed_mps: float = 0.0
    right_speed_mps: float = 0.0
    left_count: int = 0
    right_count: int = 0
    accel: Accel3 = Accel3(0.0, 0.0, 1.0)

    @property
    def wheels(self) -> WheelState:
        return WheelState(
            left_distance_m=self.left_distance_m,
            right_distance_m=self.right_distance_m,
            left_speed_mps=self.left_speed_mps,
            right_speed_mps=self.right_speed_mps,
            left_count=self.left_count,
            right_count=self.right_count,
        )


@dataclass(frozen=True)
class OdometryStep:
    d_left: float
    d_right: float
    d_avg: float
    dyaw_wheels: float   # rotation implied by the wheel difference (diagnostic only)
    dyaw_heading: float  # rotation reported by the heading sensor
    ok: bool
