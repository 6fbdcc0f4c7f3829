"""
Tests for the accelerometer walking detector.

Synthetic streams sample every 100 ms; walking has a 1.5 m/s^2 peak every
500 ms (120 steps/min) over a 0.3 m/s^2 floor.
"""

import pytest

from autoctx.engine.config import EngineConfig
from autoctx.engine.types import AccelSample, WalkingState
from autoctx.engine.walking import WalkingSignatureDetector

STEP_MS = 100


def feed(det, start_ms, end_ms, peak_every_ms=500, peak_mag=1.5, base_mag=0.3):
    """Feed samples in [start_ms, end_ms]; returns [(t, state), ...]."""
    out = []
    t = start_ms
    while t <= end_ms:
        is_peak = peak_every_ms is not None and (t - start_ms) % peak_every_ms == 0
        mag = peak_mag if is_peak else base_mag
        out.append((t, det.on_sample(AccelSample(magnitude=mag, timestamp_ms=t))))
        t += STEP_MS
    return out


def feed_quiet(det, start_ms, end_ms):
    return feed(det, start_ms, end_ms, peak_every_ms=None)


def first_time(states, pred):
    return next(t for t, s in states if pred(s))


def test_initial_state_is_inactive_and_stale():
    det = WalkingSignatureDetector()
    assert det.state == WalkingState()
    assert not det.active
    assert det.is_stale(0)


def test_raw_walking_needs_three_regular_peaks():
    det = WalkingSignatureDetector()
    states = feed(det, 0, 5000)
    # peaks at 0, 500, 1000: two equal intervals over the 1 s covered so far
    assert first_time(states, lambda s: s.last_raw_true) == 1000
    assert all(s.last_raw_true for t, s in states if t >= 1000)


def test_walking_becomes_active_at_ten_seconds():
    det = WalkingSignatureDetector()
    states = feed(det, 0, 20_000)
    t_active = first_time(states, lambda s: s.active)
    assert t_active == 10_000
    assert all(s.active for t, s in states if t >= t_active)


def test_walking_ends_thirty_seconds_after_last_peak():
    det = WalkingSignatureDetector()
    feed(det, 0, 20_000)
    assert det.active
    t_last_peak = 20_000
    states = feed_quiet(det, 20_100, 70_000)
    t_exit = first_time(states, lambda s: not s.active)
    assert t_exit - t_last_peak == 30_000
    assert all(s.active for t, s in states if t < t_exit)


def test_short_pause_keeps_walking_active():
    det = WalkingSignatureDetector()
    feed(det, 0, 20_000)
    paused = feed_quiet(det, 20_100, 35_000)
    resumed = feed(det, 35_100, 60_000)
    assert any(not s.last_raw_true for _, s in paused)
    assert all(s.active for _, s in paused + resumed)


def test_irregular_peaks_are_not_walking():
    det = WalkingSignatureDetector()
    t = 0
    # alternate 300 ms and 900 ms intervals: CV = 0.5
    gaps = [300, 900]
    peaks = set()
    i = 0
    while t <= 20_000:
        peaks.add(t)
        t += gaps[i % 2]
        i += 1
    for ts in range(0, 20_001, STEP_MS):
        det.on_sample(AccelSample(1.5 if ts in peaks else 0.3, ts))
        assert not det.state.last_raw_true
    assert not det.active


def test_violent_shaking_is_not_walking():
    det = WalkingSignatureDetector()
    states = feed(det, 0, 20_000, peak_mag=12.0, base_mag=6.0)
    assert not any(s.last_raw_true for _, s in states)


def test_refractory_period_limits_peaks():
    det = WalkingSignatureDetector()
    # every sample above threshold: only one peak per 300 ms counts
    states = feed(det, 0, 20_000, peak_every_ms=STEP_MS, peak_mag=1.0)
    # 1 peak per 300 ms = 200 steps/min, above the band
    assert not any(s.last_raw_true for _, s in states)


def test_timeout_forces_inactive_and_resets_counters():
    det = WalkingSignatureDetector()
    feed(det, 0, 20_000)
    assert det.active
    assert not det.check_timeout(24_999)
    assert det.active
    assert det.check_timeout(25_000)
    s = det.state
    assert not s.active
    assert not s.last_raw_true
    assert s.consecutive_true_ms == 0
    assert s.consecutive_false_ms == 0


def test_gap_in_samples_applies_timeout():
    det = WalkingSignatureDetector()
    feed(det, 0, 20_000)
    s = det.on_sample(AccelSample(0.3, 26_000))
    assert not s.active
    assert s.consecutive_true_ms == 0
    assert s.consecutive_false_ms == 0
    assert s.last_sample_timestamp_ms == 26_000


def test_walking_after_timeout_needs_full_enter_hold():
    det = WalkingSignatureDetector()
    feed(det, 0, 20_000)
    det.check_timeout(30_000)
    states = feed(det, 30_000, 50_000)
    assert first_time(states, lambda s: s.active) == 40_000


def test_reset_then_single_peak_is_inactive():
    det = WalkingSignatureDetector()
    feed(det, 0, 20_000)
    det.reset()
    assert det.state == WalkingState()
    s = det.on_sample(AccelSample(2.0, 20_100))
    assert not s.active
    assert not s.last_raw_true


def test_out_of_order_and_non_finite_samples_are_dropped():
    det = WalkingSignatureDetector()
    feed(det, 0, 5000)
    before = det.state
    assert det.on_sample(AccelSample(1.5, 4000)) is before
    assert det.on_sample(AccelSample(float("nan"), 5100)) is before
    assert det.on_sample(AccelSample(1.5, float("inf"))) is before


def test_custom_hold_times():
    cfg = EngineConfig.default().with_overrides(acc_hold_enter_ms=2_000.0)
    det = WalkingSignatureDetector(cfg)
    states = feed(det, 0, 10_000)
    assert first_time(states, lambda s: s.active) == pytest.approx(2_000)


def test_staleness_follows_receive_time():
    det = WalkingSignatureDetector()
    # sensor stamps on its own epoch clock, arrivals on the session clock
    epoch = 1_760_000_000_000.0
    for i in range(10):
        det.on_sample(AccelSample(0.3, epoch + i * 100), received_ms=i * 100)
    assert not det.is_stale(5_899)
    assert det.is_stale(5_900)
    assert det.check_timeout(5_900)
    assert det.state.last_sample_timestamp_ms == epoch + 900


def test_gap_between_sample_timestamps_resets_holds():
    det = WalkingSignatureDetector()
    feed(det, 0, 20_000)
    # delivered promptly, but the sensor itself skipped 6 s
    s = det.on_sample(AccelSample(1.5, 26_000), received_ms=20_100)
    assert not s.active
    assert s.consecutive_false_ms == 0
