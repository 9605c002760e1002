"""
Speed Fusion Example - Replay a Recorded Drive

Loads a drive log recorded on a device (linear acceleration, rotation vector
and speed fixes in one CSV), replays it through the fusion engine and saves
the fused speed next to the log.

Log format: see speed_estimation.drive_log.
"""

import argparse
import logging
import sys
import os
from pathlib import Path

import numpy as np

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from speed_estimation import SpeedFusionEngine, SpeedEstimationConfig, load_config
from speed_estimation.drive_log import load_drive_log, save_estimates
from speed_estimation.visualization import plot_speed

# ============================================================================
# CONFIGURATION - Data Paths
# ============================================================================
DEFAULT_LOG_PATH = Path(__file__).parent.parent / 'results' / 'synthetic_drive' / 'drive_log.csv'
# ============================================================================


def replay(log_path, config_path=None, limit_kmh=None, show=False):
    """Replay a drive log and return the fusion records."""
    log_path = Path(log_path)

    config = load_config(config_path) if config_path else SpeedEstimationConfig()
    engine = SpeedFusionEngine(config)
    if limit_kmh is not None:
        engine.set_speed_limit(limit_kmh)

    print(f"Loading drive log {log_path.name}...")
    events = load_drive_log(log_path)
    print(f"  ✓ Loaded {len(events)} samples")

    records = list(engine.run(events))
    print(f"  {engine.summary()}")

    if not records:
        print("  No estimates produced (no usable samples)")
        return records

    out_path = log_path.with_name(log_path.stem + '_estimates.csv')
    df = save_estimates(records, out_path)
    print(f"  Saved: {out_path}")
    print(f"  Max speed: {df['speed_kmh'].max():.1f} km/h, "
          f"alerts: {int(df['alert'].sum())}, "
          f"time stopped: {df['is_stopped'].mean() * 100:.0f}% of samples")

    t0 = records[0].timestamp_ns
    time = np.array([(r.timestamp_ns - t0) / 1e9 for r in records])
    fixes = [(t, r.speed_ms) for t, r in zip(time, records) if r.source == 'fix']

    plot_speed(time,
               np.array([r.speed_ms for r in records]),
               uncertainty=np.array([r.uncertainty_ms for r in records]),
               fixes=tuple(np.array(c) for c in zip(*fixes)) if fixes else None,
               stopped=np.array([r.is_stopped for r in records]),
               speed_limit=engine.limit_monitor.limit_kmh,
               title=f"Fused speed - {log_path.stem}",
               save_path=log_path.with_name(log_path.stem + '_speed.png'),
               show=show)

    return records


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Replay a recorded drive through the speed fusion engine")
    parser.add_argument('log', nargs='?', default=DEFAULT_LOG_PATH, help="drive log CSV")
    parser.add_argument('--config', help="JSON configuration file")
    parser.add_argument('--limit', type=float, help="speed limit [km/h]")
    parser.add_argument('--show', action='store_true', help="display the plot")
    parser.add_argument('-v', '--verbose', action='store_true', help="debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(levelname)s %(name)s: %(message)s')

    replay(args.log, config_path=args.config, limit_kmh=args.limit, show=args.show)
