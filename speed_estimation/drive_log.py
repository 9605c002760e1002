"""
Recorded drive logs.

Loads sensor logs recorded on a device into typed samples and saves filter
outputs for offline analysis.

Log format (CSV, one row per sample):
    timestamp_ns, kind, v0 .. v8, speed_ms, bearing_deg, accuracy_m

- kind = 'accel':    v0..v2 = device-frame linear acceleration [m/s²]
- kind = 'rotation': v0..v4 = rotation vector, or v0..v8 when the log
                     carries a full rotation matrix
- kind = 'fix':      speed_ms, bearing_deg (may be empty), accuracy_m
"""

import logging
from dataclasses import asdict
from pathlib import Path

import numpy as np
import pandas as pd

from .types import AccelerationSample, OrientationSample, VelocityFix

logger = logging.getLogger(__name__)


REQUIRED_COLUMNS = ['timestamp_ns', 'kind']
VALUE_COLUMNS = [f'v{i}' for i in range(9)]
KINDS = ('accel', 'rotation', 'fix')


def _row_values(row, columns):
    values = [row[c] for c in columns]
    # Trailing empty cells (shorter rotation vectors)
    while values and pd.isna(values[-1]):
        values.pop()
    return tuple(float(v) for v in values)


def load_drive_log(path):
    """
    Load a recorded drive log.

    Parameters
    ----------
    path : str or Path
        CSV file in the drive log format

    Returns
    -------
    list
        AccelerationSample, OrientationSample and VelocityFix objects sorted
        by timestamp (stable for equal timestamps).

    Raises
    ------
    ValueError
        If required columns are missing.
    """
    path = Path(path)
    df = pd.read_csv(path, skipinitialspace=True, float_precision='round_trip')

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{path.name}: missing column(s) {missing}")

    df = df.copy()
    df['kind'] = df['kind'].astype(str).str.strip().str.lower()

    unknown = df.loc[~df['kind'].isin(KINDS), 'kind']
    if len(unknown):
        logger.warning("%s: skipping %d row(s) of unknown kind %s",
                       path.name, len(unknown), sorted(set(unknown)))
        df = df[df['kind'].isin(KINDS)].copy()

    value_cols = [c for c in VALUE_COLUMNS if c in df.columns]
    for col in ('speed_ms', 'bearing_deg', 'accuracy_m'):
        if col not in df.columns:
            df[col] = np.nan

    df = df.sort_values('timestamp_ns', kind='stable')

    samples = []
    for _, row in df.iterrows():
        t = int(row['timestamp_ns'])
        kind = row['kind']

        if kind == 'accel':
            values = _row_values(row, value_cols[:3])
            if len(values) < 3:
                logger.debug("Incomplete accel row at %d ns skipped", t)
                continue
            samples.append(AccelerationSample(*values, timestamp_ns=t))
        elif kind == 'rotation':
            samples.append(OrientationSample(values=_row_values(row, value_cols), timestamp_ns=t))
        else:
            bearing = row['bearing_deg']
            samples.append(VelocityFix(
                speed_ms=float(row['speed_ms']),
                accuracy_m=float(row['accuracy_m']),
                timestamp_ns=t,
                bearing_deg=None if pd.isna(bearing) else float(bearing),
            ))

    logger.info("Loaded %d samples from %s", len(samples), path.name)
    return samples


def save_drive_log(samples, path):
    """
    Write samples in the drive log format.

    Parameters
    ----------
    samples : iterable
        AccelerationSample, OrientationSample and VelocityFix objects
    path : str or Path
        Output CSV file

    Returns
    -------
    pd.DataFrame
        The written table
    """
    rows = []
    for s in samples:
        if isinstance(s, AccelerationSample):
            row = dict(timestamp_ns=s.timestamp_ns, kind='accel', v0=s.x, v1=s.y, v2=s.z)
        elif isinstance(s, OrientationSample):
            row = dict(timestamp_ns=s.timestamp_ns, kind='rotation')
            row.update({f'v{i}': float(v) for i, v in enumerate(s.values)})
        elif isinstance(s, VelocityFix):
            row = dict(timestamp_ns=s.timestamp_ns, kind='fix', speed_ms=s.speed_ms,
                       bearing_deg=s.bearing_deg, accuracy_m=s.accuracy_m)
        else:
            raise TypeError(f"Unsupported sample type: {type(s).__name__}")
        rows.append(row)

    columns = REQUIRED_COLUMNS + VALUE_COLUMNS + ['speed_ms', 'bearing_deg', 'accuracy_m']
    df = pd.DataFrame(rows, columns=columns)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return df


def records_to_frame(records):
    """
    Convert fusion records to a DataFrame.

    Parameters
    ----------
    records : iterable of EstimateRecord

    Returns
    -------
    pd.DataFrame
        One row per record, plus a ``time_s`` column.
    """
    df = pd.DataFrame([asdict(r) for r in records])
    if not df.empty:
        df.insert(1, 'time_s', df['timestamp_ns'] / 1e9)
    return df


def save_estimates(records, path):
    """Write fusion records to a CSV file and return the DataFrame."""
    df = records_to_frame(records)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return df
