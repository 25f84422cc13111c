from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional, Protocol

import pandas as pd

from .kinematics import DifferentialDriveKinematics
from .types import Accel3, Pose2D, WheelSpeeds, WheelState

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TelemetrySnapshot:
    # Field names are the stable keys downstream observers bind to.
    heading_deg: float
    left_distance_m: float
    right_distance_m: float
    avg_distance_m: float
    left_speed_mps: float
    right_speed_mps: float
    x_m: float
    y_m: float
    heading_rad: float
    linear_mps: float
    angular_rps: float
    left_count: int
    right_count: int
    accel_x_g: float
    accel_y_g: float
    accel_z_g: float
    anomaly: str = ""

    def as_row(self) -> dict:
        return asdict(self)


class TelemetrySink(Protocol):
    def write(self, row: dict) -> None: ...


def build_snapshot(
    pose: Pose2D,
    wheels: WheelState,
    kinematics: DifferentialDriveKinematics,
    accel: Optional[Accel3] = None,
    anomaly: Optional[str] = None,
) -> TelemetrySnapshot:
    chassis = kinematics.to_chassis_speeds(WheelSpeeds(wheels.left_speed_mps, wheels.right_speed_mps))
    a = accel or Accel3(math.nan, math.nan, math.nan)
    return TelemetrySnapshot(
        heading_deg=math.degrees(pose.yaw),
        left_distance_m=wheels.left_distance_m,
        right_distance_m=wheels.right_distance_m,
        avg_distance_m=(wheels.left_distance_m + wheels.right_distance_m) / 2.0,
        left_speed_mps=wheels.left_speed_mps,
        right_speed_mps=wheels.right_speed_mps,
        x_m=pose.x,
        y_m=pose.y,
        heading_rad=pose.yaw,
        linear_mps=chassis.linear,
        angular_rps=chassis.angular,
        left_count=wheels.left_count,
        right_count=wheels.right_count,
        accel_x_g=a.x,
        accel_y_g=a.y,
        accel_z_g=a.z,
        anomaly=anomaly or "",
    )


class TelemetryPublisher:
    """
    Projects pose + wheel state into a TelemetrySnapshot and hands it to a sink.

    Holds no counters: the same inputs always emit the same row.
    """

    def __init__(self, sink: TelemetrySink, kinematics: DifferentialDriveKinematics):
        self.sink = sink
        self.kinematics = kinematics

    def publish(
        self,
        pose: Pose2D,
        wheels: WheelState,
        accel: Optional[Accel3] = None,
        anomaly: Optional[str] = None,
    ) -> TelemetrySnapshot:
        snap = build_snapshot(pose, wheels, self.kinematics, accel=accel, anomaly=anomaly)
        self.sink.write(snap.as_row())
        return snap


class MemorySink:
    def __init__(self) -> None:
        self.rows: list[dict] = []

    def write(self, row: dict) -> None:
        self.rows.append(dict(row))

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=list(TelemetrySnapshot.__dataclass_fields__))


class CsvSink(MemorySink):
    """Buffers rows and writes them as one CSV on close()."""

    def __init__(self, path: Path):
        super().__init__()
        self.path = Path(path)

    def close(self) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.to_frame().to_csv(self.path, index=False)
        log.info("wrote %d telemetry rows to %s", len(self.rows), self.path)
        return self.path

    def __enter__(self) -> "CsvSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class LoggingSink:
    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.DEBUG):
        self.logger = logger or log
        self.level = level

    def write(self, row: dict) -> None:
        if row.get("anomaly"):
            self.logger.warning("telemetry anomaly: %s", row["anomaly"])
        self.logger.log(
            self.level,
            "x=%.3f y=%.3f heading=%.1fdeg avg=%.3fm v=%.3f w=%.3f",
            row["x_m"], row["y_m"], row["heading_deg"], row["avg_distance_m"],
            row["linear_mps"], row["angular_rps"],
        )
