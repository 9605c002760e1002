"""
Speed Fusion Example - Synthetic Drive

This example demonstrates the complete speed estimation pipeline on a
simulated drive: accelerate, cruise, brake to a stop and stand still, with a
biased accelerometer, noisy 1 Hz speed fixes and a fix dropout.

Pipeline: forward acceleration -> Kalman predict, speed fixes -> Kalman
update, stationary detection -> zero-velocity update.
"""

import logging
import sys
import os
from pathlib import Path

import numpy as np

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from speed_estimation import SpeedFusionEngine, SpeedEstimationConfig
from speed_estimation.drive_log import save_drive_log, save_estimates
from speed_estimation.metrics import compute_all_metrics, print_metrics
from speed_estimation.simulation import generate_drive
from speed_estimation.sources import merge_streams
from speed_estimation.visualization import plot_speed, plot_bias

# ============================================================================
# CONFIGURATION
# ============================================================================
PROFILE = [
    (8.0, 1.2),     # accelerate to ~35 km/h
    (12.0, 0.0),    # cruise
    (6.0, -1.6),    # brake to a stop
    (6.0, 0.0),     # stand still
]
RATE_HZ = 50.0
ACCEL_BIAS = 0.15           # m/s²
FIX_DROPOUT = [(10.0, 16.0)]
SPEED_LIMIT_KMH = 30.0
SEED = 7

RESULTS_PATH = Path(__file__).parent.parent / 'results' / 'synthetic_drive'
SHOW_PLOTS = False
# ============================================================================


def run_synthetic_drive():
    """Run the fusion engine on a synthetic drive."""

    print("\n" + "="*60)
    print("Speed Fusion Example - Synthetic Drive")
    print("="*60 + "\n")

    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

    data = generate_drive(profile=PROFILE, rate_hz=RATE_HZ, accel_bias=ACCEL_BIAS,
                          fix_dropout=FIX_DROPOUT, seed=SEED)
    print(f"Generated {len(data['accel_samples'])} inertial samples, "
          f"{len(data['fixes'])} speed fixes")

    config = SpeedEstimationConfig.from_dict({'alert': {'limit_kmh': SPEED_LIMIT_KMH}})
    engine = SpeedFusionEngine(config)

    events = list(merge_streams(data['orientation_samples'], data['accel_samples'], data['fixes']))

    print("Running fusion...")
    records = list(engine.run(events))
    print(f"  {engine.summary()}")
    print(f"  Alerts raised: {engine.limit_monitor.alert_count}\n")

    # Align estimates with ground truth on the inertial time base
    accel_records = [r for r in records if r.source == 'accel']
    fix_records = [r for r in records if r.source == 'fix']
    t0 = data['accel_samples'][0].timestamp_ns

    time = np.array([(r.timestamp_ns - t0) / 1e9 for r in accel_records])
    speed = np.array([r.speed_ms for r in accel_records])
    sigma = np.array([r.uncertainty_ms for r in accel_records])
    bias = np.array([r.bias for r in accel_records])
    stopped = np.array([r.is_stopped for r in accel_records])
    truth = np.interp(time, data['time'], data['true_speed'])

    metrics = compute_all_metrics(
        estimates=speed,
        ground_truth=truth,
        innovations=[r.innovation for r in fix_records],
        innovation_variances=[r.innovation_variance for r in fix_records],
    )
    print_metrics(metrics, filter_name="Speed KF")

    # Save results
    RESULTS_PATH.mkdir(parents=True, exist_ok=True)
    save_drive_log(events, RESULTS_PATH / 'drive_log.csv')
    save_estimates(records, RESULTS_PATH / 'estimates.csv')
    print(f"\n  Saved: {RESULTS_PATH / 'drive_log.csv'}")
    print(f"  Saved: {RESULTS_PATH / 'estimates.csv'}")

    fix_time = np.array([(f.timestamp_ns - t0) / 1e9 for f in data['fixes']])
    fix_speed = np.array([f.speed_ms for f in data['fixes']])

    plot_speed(time, speed, uncertainty=sigma,
               ground_truth=(data['time'], data['true_speed']),
               fixes=(fix_time, fix_speed), stopped=stopped,
               speed_limit=SPEED_LIMIT_KMH,
               save_path=RESULTS_PATH / 'speed.png', show=SHOW_PLOTS)
    plot_bias(time, bias, true_bias=ACCEL_BIAS,
              save_path=RESULTS_PATH / 'bias.png', show=SHOW_PLOTS)
    print(f"  Saved: {RESULTS_PATH / 'speed.png'}")
    print(f"  Saved: {RESULTS_PATH / 'bias.png'}")

    print("\n" + "="*60)
    print("Example complete!")
    print("="*60 + "\n")

    return engine, records, metrics


if __name__ == "__main__":
    run_synthetic_drive()
