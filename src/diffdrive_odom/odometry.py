from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .errors import ConfigError, NotInitializedError, OdometryError
from .kinematics import DifferentialDriveKinematics, DriveParams
from .types import OdometryStep, Pose2D, WheelSpeeds

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class OdometryParams:
    # Reject a tick whose per-wheel delta exceeds this (meters). None disables the gate.
    max_step_m: Optional[float] = None

    def __post_init__(self) -> None:
        gate = self.max_step_m
        if gate is not None and not (math.isfinite(gate) and gate > 0):
            raise ConfigError(f"max_step_m must be > 0 or null, got {gate}")


@dataclass
class OdometryState:
    pose: Pose2D
    prev_left_m: float
    prev_right_m: float
    prev_heading: float


def wrap_pi(a: float) -> float:
    """Normalize an angle to (-pi, pi]."""
    a = math.remainder(float(a), 2 * math.pi)
    if a <= -math.pi:
        a += 2 * math.pi
    return a


def advance(pose: Pose2D, distance: float, heading: float) -> Pose2D:
    """
    Straight-line displacement along the sensor heading. Valid while the
    per-tick rotation is small.
    """
    x = pose.x + distance * float(np.cos(heading))
    y = pose.y + distance * float(np.sin(heading))
    return Pose2D(x, y, wrap_pi(heading))


def _all_finite(*values: float) -> bool:
    return bool(np.all(np.isfinite(values)))


class OdometryEstimator:
    """
    Pose estimator for a differential drive.

    Translation comes from the average of the left/right wheel distance
    deltas; orientation is taken straight from the heading sensor, never
    integrated from the wheel difference (wheel slip would corrupt it).

    Ordering: initialize() once, then update() every tick. reset() may be
    called at any point after initialize() to re-baseline.
    """

    def __init__(
        self,
        kinematics: Optional[DifferentialDriveKinematics] = None,
        params: Optional[OdometryParams] = None,
    ):
        self.kinematics = kinematics or DifferentialDriveKinematics.from_params(DriveParams())
        self.params = params or OdometryParams()
        self.state: Optional[OdometryState] = None
        self.last_step: Optional[OdometryStep] = None
        self.last_anomaly: Optional[str] = None

    @property
    def initialized(self) -> bool:
        return self.state is not None

    def initialize(self, initial_pose: Pose2D, initial_left: float, initial_right: float, initial_heading: float) -> None:
        if self.state is not None:
            raise OdometryError("initialize() called twice; use reset() to re-baseline")
        self.state = self._baseline(initial_pose, initial_left, initial_right, initial_heading)
        log.info("odometry initialized at %s", self.state.pose)

    def reset(self, new_pose: Pose2D, new_heading: float, new_left: float, new_right: float) -> None:
        # The requested pose wins for position and heading alike.
        if self.state is None:
            raise NotInitializedError("reset() before initialize()")
        self.state = self._baseline(new_pose, new_left, new_right, new_heading)
        self.last_step = None
        self.last_anomaly = None
        log.info("odometry reset to %s", self.state.pose)

    def current_pose(self) -> Pose2D:
        if self.state is None:
            raise NotInitializedError("current_pose() before initialize()")
        return self.state.pose

    def update(self, heading: float, left: float, right: float) -> Pose2D:
        st = self.state
        if st is None:
            raise NotInitializedError("update() before initialize()")

        if not _all_finite(heading, left, right):
            return self._reject(st, f"non-finite sample heading={heading} left={left} right={right}")

        d_left = left - st.prev_left_m
        d_right = right - st.prev_right_m

        gate = self.params.max_step_m
        if gate is not None and max(abs(d_left), abs(d_right)) > gate:
            # Skip the jump but follow the encoders so the next tick starts clean.
            st.prev_left_m = left
            st.prev_right_m = right
            return self._reject(
                st,
                f"wheel delta out of range d_left={d_left:.4f} d_right={d_right:.4f} (max {gate})"
            )

        d_avg, dyaw_wheels = self._decompose(d_left, d_right)
        dyaw_heading = wrap_pi(heading - st.prev_heading)

        st.pose = advance(st.pose, d_avg, heading)
        st.prev_left_m = left
        st.prev_right_m = right
        st.prev_heading = heading

        self.last_step = OdometryStep(d_left, d_right, d_avg, dyaw_wheels, dyaw_heading, ok=True)
        self.last_anomaly = None
        return st.pose

    def _decompose(self, d_left: float, d_right: float) -> Tuple[float, float]:
        # Same math as wheel speeds -> chassis velocity, applied to one tick's distances.
        c = self.kinematics.to_chassis_speeds(WheelSpeeds(d_left, d_right))
        return c.linear, c.angular

    def _reject(self, st: OdometryState, reason: str) -> Pose2D:
        log.warning("odometry sample rejected: %s", reason)
        self.last_anomaly = reason
        self.last_step = OdometryStep(
            d_left=math.nan, d_right=math.nan, d_avg=math.nan,
            dyaw_wheels=math.nan, dyaw_heading=math.nan, ok=False,
        )
        return st.pose

    @staticmethod
    def _baseline(pose: Pose2D, left: float, right: float, heading: float) -> OdometryState:
        if not _all_finite(pose.x, pose.y, pose.yaw, left, right, heading):
            raise OdometryError(
                f"cannot baseline from non-finite values pose={pose} left={left} right={right} heading={heading}"
            )
        return OdometryState(
            pose=Pose2D(float(pose.x), float(pose.y), wrap_pi(pose.yaw)),
            prev_left_m=float(left),
            prev_right_m=float(right),
            prev_heading=float(heading),
        )
