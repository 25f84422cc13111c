from __future__ import annotations

import sys
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd


def main() -> None:
    log_path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("outputs/odometry_log.csv")
    if not log_path.exists():
        raise SystemExit(f"Missing log: {log_path}. Run: python scripts/run_odometry.py")

    # keep_default_na=False so empty anomaly cells stay as ""
    df = pd.read_csv(log_path, keep_default_na=False)

    x = df["x_m"].astype(float).to_numpy()
    y = df["y_m"].astype(float).to_numpy()
    steps = df.index.to_numpy()
    bad_idx = df.index[df["anomaly"].astype(str) != ""].to_list()

    out_dir = log_path.parent
    out_dir.mkdir(exist_ok=True)

    # Plot 1: trajectory, rejected ticks marked
    plt.figure()
    plt.plot(x, y)
    if bad_idx:
        plt.scatter(x[bad_idx], y[bad_idx], marker="x", color="red", label="rejected tick")
        plt.legend()
    plt.axis("equal")
    plt.xlabel("x [m]")
    plt.ylabel("y [m]")
    plt.title("Odometry trajectory")
    out_path = out_dir / "odometry_trajectory.png"
    plt.savefig(out_path, dpi=150, bbox_inches="tight")
    print(f"Saved: {out_path}")
    plt.show()

    # Plot 2: heading and wheel distances over time
    fig, (ax1, ax2) = plt.subplots(2, 1, sharex=True)
    ax1.plot(steps, df["heading_deg"].astype(float))
    ax1.set_ylabel("heading [deg]")
    ax2.plot(steps, df["left_distance_m"].astype(float), label="left")
    ax2.plot(steps, df["right_distance_m"].astype(float), label="right")
    ax2.plot(steps, df["avg_distance_m"].astype(float), linestyle="--", label="average")
    ax2.set_ylabel("distance [m]")
    ax2.set_xlabel("tick")
    ax2.legend()
    fig.suptitle("Drivetrain telemetry")
    out_path2 = out_dir / "odometry_telemetry.png"
    fig.savefig(out_path2, dpi=150, bbox_inches="tight")
    print(f"Saved: {out_path2}")
    plt.show()


if __name__ == "__main__":
    main()
