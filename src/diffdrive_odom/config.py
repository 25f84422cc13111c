from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigError
from .kinematics import DriveParams
from .odometry import OdometryParams
from .scheduler import DEFAULT_PERIOD_S
from .sim import DriveSegment, SimParams


@dataclass(frozen=True)
class RunConfig:
    period_s: float = DEFAULT_PERIOD_S
    ticks: Optional[int] = None  # None: run until the drive segments are exhausted
    output_csv: str = "outputs/odometry_log.csv"
    realtime: bool = False
    segments: tuple[DriveSegment, ...] = ()


@dataclass(frozen=True)
class AppConfig:
    drive: DriveParams = field(default_factory=DriveParams)
    odometry: OdometryParams = field(default_factory=OdometryParams)
    sim: SimParams = field(default_factory=SimParams)
    run: RunConfig = field(default_factory=RunConfig)


def _build(cls, section: str, raw: Optional[dict]):
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a mapping, got {type(raw).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"unknown key(s) in [{section}]: {', '.join(unknown)}")
    try:
        return cls(**raw)
    except TypeError as e:
        raise ConfigError(f"bad [{section}] section: {e}") from e


def parse_config(cfg: Optional[dict]) -> AppConfig:
    cfg = dict(cfg or {})
    unknown = sorted(set(cfg) - {"drive", "odometry", "sim", "run"})
    if unknown:
        raise ConfigError(f"unknown top-level key(s): {', '.join(unknown)}")

    run_raw = dict(cfg.get("run") or {})
    segments = tuple(_build(DriveSegment, "run.segments", s) for s in run_raw.pop("segments", []) or [])
    run = _build(RunConfig, "run", run_raw)
    if run.period_s <= 0:
        raise ConfigError(f"run.period_s must be > 0, got {run.period_s}")

    return AppConfig(
        drive=_build(DriveParams, "drive", cfg.get("drive")),
        odometry=_build(OdometryParams, "odometry", cfg.get("odometry")),
        sim=_build(SimParams, "sim", cfg.get("sim")),
        run=replace(run, segments=segments),
    )


def load_config(path: Path = Path("configs/local.yaml")) -> AppConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing config: {path}")
    return parse_config(yaml.safe_load(path.read_text(encoding="utf-8")))
