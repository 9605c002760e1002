import math
import threading

import numpy as np
import pytest

from speed_estimation import SpeedFusionEngine, SpeedEstimationConfig
from speed_estimation.metrics import rmse
from speed_estimation.simulation import generate_drive
from speed_estimation.sources import merge_streams
from speed_estimation.status import StatusBoard
from speed_estimation.types import NS_PER_S, OrientationSample, VelocityFix

from conftest import accel_stream


def test_dead_reckoning_then_fix_correction():
    engine = SpeedFusionEngine()
    samples = accel_stream([1.0] * 251)

    records = list(engine.run(samples))

    # First sample only seeds the clock: 250 steps of 20 ms
    assert len(records) == 250
    assert all(r.source == 'accel' for r in records)
    assert not any(r.is_stopped for r in records)
    assert engine.filter.speed_ms == pytest.approx(5.0, abs=0.05)

    before = engine.filter.speed_ms
    p00 = engine.filter.covariance[0, 0]
    k0 = p00 / (p00 + 0.25)

    # accuracy 1.5 m -> r = (1.5 / 3)^2 = 0.25 for the first fix
    fix = VelocityFix(speed_ms=4.5, accuracy_m=1.5, timestamp_ns=samples[-1].timestamp_ns + 20_000_000)
    record = engine.handle_fix(fix)

    assert record.source == 'fix'
    assert record.speed_ms == pytest.approx(before + k0 * (4.5 - before))
    assert record.innovation == pytest.approx(4.5 - before)
    assert record.innovation_variance == pytest.approx(p00 + 0.25)
    assert record.speed_kmh == pytest.approx(record.speed_ms * 3.6)


def test_standstill_triggers_zero_velocity_updates():
    engine = SpeedFusionEngine()
    samples = accel_stream([0.5] * 11 + [0.0] * 200)

    records = list(engine.run(samples))

    assert records[-1].is_stopped
    assert records[-1].speed_ms < 0.05
    assert engine.zupt_count > 0
    assert engine.status.is_stopped


@pytest.mark.parametrize('speed, accuracy', [
    (-1.0, 3.0),
    (float('nan'), 3.0),
    (5.0, 0.0),
    (5.0, float('nan')),
])
def test_invalid_fixes_are_rejected(speed, accuracy):
    engine = SpeedFusionEngine()
    assert engine.handle_fix(VelocityFix(speed, accuracy, timestamp_ns=NS_PER_S)) is None
    assert engine.fixes_rejected == 1
    assert engine.filter.update_count == 0


def test_out_of_order_fixes_are_rejected():
    engine = SpeedFusionEngine()
    assert engine.handle_fix(VelocityFix(5.0, 3.0, timestamp_ns=2 * NS_PER_S)) is not None
    assert engine.handle_fix(VelocityFix(5.0, 3.0, timestamp_ns=2 * NS_PER_S)) is None
    assert engine.handle_fix(VelocityFix(5.0, 3.0, timestamp_ns=NS_PER_S)) is None
    assert engine.fixes_rejected == 2

    record = engine.handle_fix(VelocityFix(5.0, 3.0, timestamp_ns=4 * NS_PER_S))
    # P00 = 0.5 after the first fix, r = 1.0 * 2 s since the last accepted fix
    assert record.innovation_variance == pytest.approx(2.5)
    assert engine.filter.update_count == 2


def test_fix_updates_preprocessor_context():
    engine = SpeedFusionEngine()
    engine.handle_fix(VelocityFix(10.0, 3.0, timestamp_ns=NS_PER_S, bearing_deg=90.0))

    assert engine.preprocessor.current_bearing == pytest.approx(math.pi / 2)
    assert engine.preprocessor.uses_gps_bearing


def test_over_limit_fix_raises_alert_and_status():
    board = StatusBoard()
    engine = SpeedFusionEngine(status_board=board)

    record = engine.handle_fix(VelocityFix(10.0, 0.3, timestamp_ns=NS_PER_S, provider='gps'))

    assert record.speed_kmh > 26.0
    assert record.alert
    status = board.snapshot()
    assert status.over_limit
    assert status.speed_kmh == pytest.approx(record.speed_kmh)
    assert status.gps_speed_kmh == pytest.approx(0.9 * 10.0 * 3.6)
    assert status.accuracy_m == 0.3
    assert status.provider == 'gps'
    assert status.last_fix_ns == NS_PER_S


def test_speed_limit_can_be_changed():
    config = SpeedEstimationConfig.from_dict({'alert': {'limit_kmh': 60.0}})
    engine = SpeedFusionEngine(config)
    assert not engine.handle_fix(VelocityFix(10.0, 0.3, timestamp_ns=NS_PER_S)).alert

    engine.set_speed_limit(20.0)
    assert engine.handle_fix(VelocityFix(10.0, 0.3, timestamp_ns=2 * NS_PER_S)).alert


def test_dispatch():
    engine = SpeedFusionEngine()
    assert engine.handle(OrientationSample(values=(0.0, 0.0, 0.0, 1.0), timestamp_ns=NS_PER_S)) is None
    assert engine.handle(VelocityFix(1.0, 3.0, timestamp_ns=NS_PER_S)).source == 'fix'

    with pytest.raises(TypeError):
        engine.handle(object())


def test_reset():
    engine = SpeedFusionEngine()
    list(engine.run(accel_stream([1.0] * 50)))
    engine.handle_fix(VelocityFix(-1.0, 3.0, timestamp_ns=NS_PER_S))

    engine.reset()

    assert engine.filter.state == (0.0, 0.0)
    assert engine.fixes_rejected == 0
    assert engine.status.speed_kmh == 0.0
    assert not engine.preprocessor.is_initialized


def test_concurrent_producers():
    engine = SpeedFusionEngine()
    samples = accel_stream([1.0] * 201)
    fixes = [VelocityFix(5.0, 3.0, timestamp_ns=(k + 1) * NS_PER_S) for k in range(10)]

    threads = [
        threading.Thread(target=lambda: [engine.handle_acceleration(s) for s in samples]),
        threading.Thread(target=lambda: [engine.handle_fix(f) for f in fixes]),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert engine.filter.prediction_count == 200
    assert engine.filter.update_count == 10
    assert engine.fixes_rejected == 0


def test_simulated_drive():
    data = generate_drive(seed=3)
    engine = SpeedFusionEngine()

    events = merge_streams(data['orientation_samples'], data['accel_samples'], data['fixes'])
    records = [r for r in engine.run(events) if r.source == 'accel']

    t0 = data['accel_samples'][0].timestamp_ns
    time = np.array([(r.timestamp_ns - t0) / NS_PER_S for r in records])
    speed = np.array([r.speed_ms for r in records])

    assert rmse(speed, np.interp(time, data['time'], data['true_speed'])) < 1.0
    assert records[-1].is_stopped
    assert records[-1].speed_ms < 0.3
    assert engine.zupt_count > 0
    assert 'ZUPTs' in engine.summary()


@pytest.mark.parametrize('heading_deg', [0.0, 90.0, -135.0])
def test_simulated_drive_with_heading(heading_deg):
    data = generate_drive(heading_deg=heading_deg, seed=3)
    # Project on the heading as soon as the vehicle moves
    config = SpeedEstimationConfig.from_dict({'preprocessor': {'min_speed_for_bearing': 0.0}})
    engine = SpeedFusionEngine(config)

    rotation = data['orientation_samples'][0].values
    orientation = [OrientationSample(values=rotation, timestamp_ns=s.timestamp_ns)
                   for s in data['accel_samples'][::5]]
    events = merge_streams(orientation, data['accel_samples'], data['fixes'])
    records = [r for r in engine.run(events) if r.source == 'accel']

    t0 = data['accel_samples'][0].timestamp_ns
    time = np.array([(r.timestamp_ns - t0) / NS_PER_S for r in records])
    speed = np.array([r.speed_ms for r in records])

    assert engine.preprocessor.current_bearing == pytest.approx(math.radians(heading_deg))
    assert rmse(speed, np.interp(time, data['time'], data['true_speed'])) < 1.0
    assert records[-1].is_stopped
    assert records[-1].speed_ms < 0.3
