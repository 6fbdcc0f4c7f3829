"""
Walking detection from an accelerometer magnitude stream.

Each accepted sample goes into a rolling window that is re-evaluated at
once:
- step peaks: magnitude above threshold, outside the refractory period
- cadence (steps/min), regularity (CV of inter-peak intervals) and RMS
  energy must all fall inside their walking bands for a "raw" walking vote
- asymmetric hold-enter / hold-exit hysteresis turns the raw vote into the
  sticky `active` flag
- a fail-safe timeout forces `active` off when the stream goes silent

Holds are measured from the stimulus: an enter hold starts at the first peak
of the window that voted "walking", an exit hold at the last counted peak.
"""

from __future__ import annotations

import math
import statistics
from collections import deque
from typing import Optional

from autoctx.engine.config import EngineConfig
from autoctx.engine.types import AccelSample, WalkingState
from autoctx.utils.log import get_logger

logger = get_logger(__name__)


class WalkingSignatureDetector:
    """
    Hysteresis-stabilized "is walking" detector owned by one recording session.

    Hold durations are driven by sample timestamps. Staleness is judged on
    the clock samples were received on, which defaults to the sample
    timestamps when the caller does not pass one.
    """
    def __init__(self, cfg: EngineConfig | None = None) -> None:
        self.cfg = cfg or EngineConfig.default()
        self._window: deque[AccelSample] = deque()
        self._peaks: deque[float] = deque()
        self._last_peak_ms: Optional[float] = None
        self._run_start_ms: Optional[float] = None
        self._last_received_ms: Optional[float] = None
        self._state = WalkingState()

    @property
    def state(self) -> WalkingState:
        """Currently published snapshot."""
        return self._state

    @property
    def active(self) -> bool:
        return self._state.active

    def reset(self) -> None:
        self._clear_window()
        self._last_received_ms = None
        self._state = WalkingState()

    def is_stale(self, now_ms: float) -> bool:
        """True if no sample was ever received or the last one timed out."""
        last = self._last_received_ms
        return last is None or now_ms - last >= self.cfg.acc_timeout_ms

    def check_timeout(self, now_ms: float) -> bool:
        """
        Apply the fail-safe: silence is never read as "still walking".

        Parameters
        ----------
        now_ms
            Current time on the receive clock.

        Returns
        -------
        bool
            True if the stream is timed out (state was forced inactive).
        """
        if not self.is_stale(now_ms):
            return False
        self._time_out()
        return True

    def on_sample(self, sample: AccelSample, received_ms: float | None = None) -> WalkingState:
        """
        Fold one accelerometer sample into the window and the hysteresis.

        Parameters
        ----------
        sample
            Gravity-removed magnitude sample.
        received_ms
            Arrival time on the session clock; defaults to the sample timestamp.

        Returns
        -------
        WalkingState
            The newly published snapshot.
        """
        t = sample.timestamp_ms
        if not (math.isfinite(t) and math.isfinite(sample.magnitude)):
            logger.debug("Dropping non-finite accelerometer sample")
            return self._state
        last_t = self._state.last_sample_timestamp_ms
        if last_t is not None and t < last_t:
            logger.debug("Dropping out-of-order accelerometer sample (%.0f < %.0f)", t, last_t)
            return self._state
        now = received_ms if received_ms is not None and math.isfinite(received_ms) else t

        # dt is the time covered by this sample's raw vote; nothing carries over a timeout
        if last_t is None:
            dt = 0.0
        elif self.is_stale(now) or t - last_t >= self.cfg.acc_timeout_ms:
            self._time_out()
            dt = 0.0
        else:
            dt = t - last_t

        self._last_received_ms = now
        self._push(sample)
        raw = self._evaluate_window(t)
        self._state = self._apply_hysteresis(self._state, raw, dt, t)
        return self._state

    def _time_out(self) -> None:
        s = self._state
        if s.active:
            logger.info("Accelerometer silent for %.0f ms, walking -> inactive", self.cfg.acc_timeout_ms)
        self._clear_window()
        if s.active or s.last_raw_true or s.consecutive_true_ms or s.consecutive_false_ms:
            self._state = WalkingState(last_sample_timestamp_ms=s.last_sample_timestamp_ms)

    def _clear_window(self) -> None:
        self._window.clear()
        self._peaks.clear()
        self._last_peak_ms = None
        self._run_start_ms = None

    def _push(self, sample: AccelSample) -> None:
        t = sample.timestamp_ms
        if self._run_start_ms is None:
            self._run_start_ms = t
        self._window.append(sample)
        if sample.magnitude > self.cfg.acc_peak_thr and (
            self._last_peak_ms is None or t - self._last_peak_ms >= self.cfg.acc_refrac_ms
        ):
            self._peaks.append(t)
            self._last_peak_ms = t

        horizon = t - self.cfg.acc_win_sec * 1000.0
        while self._window and self._window[0].timestamp_ms < horizon:
            self._window.popleft()
        while self._peaks and self._peaks[0] < horizon:
            self._peaks.popleft()

    def _evaluate_window(self, t: float) -> bool:
        cfg = self.cfg
        peaks = list(self._peaks)
        intervals = [b - a for a, b in zip(peaks, peaks[1:])]
        if len(intervals) < 2:
            return False

        # a window that has not filled yet only covers the time since the run began
        covered_s = min(t - self._run_start_ms, cfg.acc_win_sec * 1000.0) / 1000.0
        if covered_s <= 0:
            return False
        cadence = len(peaks) * 60.0 / covered_s
        if not cfg.cadence_min <= cadence <= cfg.cadence_max:
            return False

        mean = statistics.fmean(intervals)
        if mean <= 0:
            return False
        cv = statistics.pstdev(intervals) / mean
        if cv > cfg.cv_max:
            return False

        rms = math.sqrt(statistics.fmean(s.magnitude ** 2 for s in self._window))
        return cfg.rms_min <= rms <= cfg.rms_max

    def _apply_hysteresis(
        self, prev: WalkingState, raw: bool, dt: float, t: float
    ) -> WalkingState:
        if raw:
            if prev.last_raw_true:
                true_ms = prev.consecutive_true_ms + dt
            else:
                true_ms = t - self._peaks[0]
            false_ms = 0.0
        else:
            if not prev.last_raw_true:
                false_ms = prev.consecutive_false_ms + dt
            elif self._last_peak_ms is not None:
                false_ms = t - self._last_peak_ms
            else:
                false_ms = 0.0
            true_ms = 0.0

        active = prev.active
        if not active and raw and true_ms >= self.cfg.acc_hold_enter_ms:
            active = True
            logger.info("Walking detected (raw walking held %.1f s)", true_ms / 1000.0)
        elif active and not raw and false_ms >= self.cfg.acc_hold_exit_ms:
            active = False
            logger.info("Walking ended (raw idle held %.1f s)", false_ms / 1000.0)

        return WalkingState(
            active=active,
            last_raw_true=raw,
            consecutive_true_ms=true_ms,
            consecutive_false_ms=false_ms,
            last_sample_timestamp_ms=t,
        )
