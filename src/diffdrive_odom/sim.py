from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .drivetrain import Drivetrain
from .kinematics import DifferentialDriveKinematics, DriveParams
from .telemetry import TelemetrySnapshot
from .types import Accel3, ChassisSpeeds, SensorSample, WheelSpeeds

GRAVITY_MPS2 = 9.80665
_T_EPS = 1e-9


@dataclass(frozen=True)
class SimParams:
    heading_noise_deg: float = 0.0  # std-dev of white noise added to each gyro read
    seed: int = 0


@dataclass(frozen=True)
class DriveSegment:
    duration_s: float
    linear_mps: float
    angular_rps: float


class SimulatedRomi:
    """
    Deterministic stand-in for the Romi's encoders, gyro and accelerometer.

    Wheel travel is quantized to whole encoder counts, then scaled back to
    meters with the distance-per-pulse, just like the real encoders.
    """

    def __init__(self, params: Optional[DriveParams] = None, sim: Optional[SimParams] = None):
        self.params = params or DriveParams()
        self.sim = sim or SimParams()
        self.kinematics = DifferentialDriveKinematics.from_params(self.params)
        self.dpp = self.params.distance_per_pulse_m
        self._rng = np.random.default_rng(self.sim.seed)

        self._left_m = 0.0
        self._right_m = 0.0
        self._heading_deg = 0.0
        self._speeds = WheelSpeeds(0.0, 0.0)

    def command(self, linear_mps: float, angular_rps: float) -> None:
        self._speeds = self.kinematics.to_wheel_speeds(ChassisSpeeds(linear_mps, angular_rps))

    def step(self, dt: float) -> None:
        self._left_m += self._speeds.left * dt
        self._right_m += self._speeds.right * dt
        w = self.kinematics.to_chassis_speeds(self._speeds).angular
        self._heading_deg += math.degrees(w * dt)

    def counts(self) -> tuple[int, int]:
        return int(np.round(self._left_m / self.dpp)), int(np.round(self._right_m / self.dpp))

    def read(self) -> SensorSample:
        left_count, right_count = self.counts()
        heading_deg = self._heading_deg
        if self.sim.heading_noise_deg > 0:
            heading_deg += float(self._rng.normal(0.0, self.sim.heading_noise_deg))

        chassis = self.kinematics.to_chassis_speeds(self._speeds)
        return SensorSample(
            heading_rad=math.radians(heading_deg),
            left_distance_m=left_count * self.dpp,
            right_distance_m=right_count * self.dpp,
            left_speed_mps=self._speeds.left,
            right_speed_mps=self._speeds.right,
            left_count=left_count,
            right_count=right_count,
            # lateral accel from turning, in g; the board sits flat
            accel=Accel3(0.0, chassis.linear * chassis.angular / GRAVITY_MPS2, 1.0),
        )

    def reset_encoders(self) -> None:
        self._left_m = 0.0
        self._right_m = 0.0

    def reset_heading(self, heading_rad: float = 0.0) -> None:
        self._heading_deg = math.degrees(heading_rad)


class SimulatedSession:
    """Advances the simulated robot by one period, then ticks the drivetrain."""

    def __init__(self, robot: SimulatedRomi, drivetrain: Drivetrain, segments: Sequence[DriveSegment], period_s: float):
        self.robot = robot
        self.drivetrain = drivetrain
        self.segments = list(segments)
        self.period_s = period_s
        self.ticks = 0

    @property
    def t(self) -> float:
        return self.ticks * self.period_s

    def command_at(self, t: float) -> DriveSegment:
        end = 0.0
        for seg in self.segments:
            end += seg.duration_s
            if t < end - _T_EPS:
                return seg
        return DriveSegment(0.0, 0.0, 0.0)

    @property
    def total_ticks(self) -> int:
        return int(math.ceil(sum(s.duration_s for s in self.segments) / self.period_s - _T_EPS))

    def tick(self) -> TelemetrySnapshot:
        seg = self.command_at(self.t)
        self.robot.command(seg.linear_mps, seg.angular_rps)
        self.robot.step(self.period_s)
        self.ticks += 1
        return self.drivetrain.tick()
