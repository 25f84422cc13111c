from __future__ import annotations

import logging
import sys
from pathlib import Path

from diffdrive_odom.config import load_config
from diffdrive_odom.drivetrain import Drivetrain
from diffdrive_odom.scheduler import run_periodic
from diffdrive_odom.sim import SimulatedRomi, SimulatedSession
from diffdrive_odom.telemetry import CsvSink


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    cfg_path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("configs/local.yaml")
    cfg = load_config(cfg_path)
    if not cfg.run.segments:
        raise SystemExit("Need at least one drive segment under run.segments.")

    robot = SimulatedRomi(cfg.drive, cfg.sim)
    sink = CsvSink(Path(cfg.run.output_csv))
    drivetrain = Drivetrain(robot, sink, cfg.drive, cfg.odometry)
    session = SimulatedSession(robot, drivetrain, cfg.run.segments, cfg.run.period_s)

    ticks = cfg.run.ticks if cfg.run.ticks is not None else session.total_ticks
    if cfg.run.realtime:
        run_periodic(session, cfg.run.period_s, ticks)
    else:
        for _ in range(ticks):
            session.tick()

    out_path = sink.close()
    print(f"Saved: {out_path}")

    df = sink.to_frame()
    anomalies = df[df["anomaly"] != ""]
    print(f"Ticks: {len(df)}  anomalies: {len(anomalies)}")
    p = drivetrain.pose
    print(f"Final pose: x={p.x:.3f} m  y={p.y:.3f} m  heading={drivetrain.heading_deg:.1f} deg")
    if len(anomalies) > 0:
        print(anomalies[["x_m", "y_m", "heading_deg", "anomaly"]].head(10).to_string(index=False))


if __name__ == "__main__":
    main()
