from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from .errors import ConfigError
from .types import ChassisSpeeds, WheelSpeeds


@dataclass(frozen=True)
class DriveParams:
    # Romi chassis defaults
    track_width_m: float = 0.141     # wheel contact point to contact point
    wheel_diameter_m: float = 0.07
    counts_per_rev: float = 1440.0   # encoder pulses per wheel revolution

    def __post_init__(self) -> None:
        _check_track_width(self.track_width_m)
        if not (math.isfinite(self.wheel_diameter_m) and self.wheel_diameter_m > 0):
            raise ConfigError(f"wheel_diameter_m must be > 0, got {self.wheel_diameter_m}")
        if not (math.isfinite(self.counts_per_rev) and self.counts_per_rev > 0):
            raise ConfigError(f"counts_per_rev must be > 0, got {self.counts_per_rev}")

    @property
    def distance_per_pulse_m(self) -> float:
        return (math.pi * self.wheel_diameter_m) / self.counts_per_rev


def _check_track_width(track_width: float) -> None:
    if not (math.isfinite(track_width) and track_width > 0):
        raise ConfigError(f"track width must be a positive finite number, got {track_width}")


def wheel_speeds_to_chassis_velocity(left: float, right: float, track_width: float) -> Tuple[float, float]:
    """
    Returns (linear_mps, angular_rps) for the given wheel linear speeds.
    """
    linear = (left + right) / 2.0
    angular = (right - left) / track_width
    return linear, angular


def chassis_velocity_to_wheel_speeds(linear: float, angular: float, track_width: float) -> Tuple[float, float]:
    """
    Returns (left_mps, right_mps) that realize the given chassis velocity.
    """
    half = angular * track_width / 2.0
    return linear - half, linear + half


class DifferentialDriveKinematics:
    def __init__(self, track_width_m: float):
        _check_track_width(track_width_m)
        self.track_width_m = float(track_width_m)

    @classmethod
    def from_params(cls, params: DriveParams) -> "DifferentialDriveKinematics":
        return cls(params.track_width_m)

    def to_chassis_speeds(self, wheels: WheelSpeeds) -> ChassisSpeeds:
        v, w = wheel_speeds_to_chassis_velocity(wheels.left, wheels.right, self.track_width_m)
        return ChassisSpeeds(linear=v, angular=w)

    def to_wheel_speeds(self, chassis: ChassisSpeeds) -> WheelSpeeds:
        left, right = chassis_velocity_to_wheel_speeds(chassis.linear, chassis.angular, self.track_width_m)
        return WheelSpeeds(left=left, right=right)
