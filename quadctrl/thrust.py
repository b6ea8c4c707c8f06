"""Online thrust model: normalized collective thrust -> vertical acceleration."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Tuple

from common.interface import Clock
from common.math import GRAVITY
from common.realtime import monotonic_time

SAMPLE_CAPACITY = 100
# Commanded thrust shows up in measured acceleration roughly 35-45 ms later.
MIN_SAMPLE_AGE = 0.035
MAX_SAMPLE_AGE = 0.045
INITIAL_COVARIANCE = 1e6


@dataclass(frozen=True)
class ThrustSample:
    timestamp: float
    thrust: float


class ThrustEstimator:
    """
    Scalar recursive least squares with a forgetting factor, fitting

        measured_acceleration = thr2acc * thrust

    against thrust commands issued 35-45 ms earlier. Samples are kept in a
    bounded FIFO ordered by time; each successful update consumes one sample.
    Not thread-safe: callers must serialize record_sample/update.
    """

    def __init__(
        self,
        gravity: float = GRAVITY,
        hover_percentage: float = 0.3,
        rho: float = 0.998,
        clock: Clock = monotonic_time,
    ):
        self._rho = float(rho)
        self._clock = clock
        self._samples: Deque[ThrustSample] = deque()
        self._thr2acc = 0.0
        self._covariance = 0.0
        self.reset(gravity, hover_percentage)

    @property
    def thr2acc(self) -> float:
        return self._thr2acc

    @property
    def covariance(self) -> float:
        return self._covariance

    @property
    def rho(self) -> float:
        return self._rho

    @property
    def samples(self) -> Tuple[ThrustSample, ...]:
        return tuple(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def reset(self, gravity: float, hover_percentage: float) -> None:
        """Re-seed the ratio from the hover throttle. hover_percentage must be > 0."""
        self._thr2acc = gravity / hover_percentage
        self._covariance = INITIAL_COVARIANCE

    def record_sample(self, thrust: float, timestamp: Optional[float] = None) -> None:
        """Remember a thrust command so its effect can be matched later."""
        if timestamp is None:
            timestamp = self._clock()
        self._samples.append(ThrustSample(float(timestamp), float(thrust)))
        while len(self._samples) > SAMPLE_CAPACITY:
            self._samples.popleft()

    def update(self, measured_acceleration: float, now: Optional[float] = None) -> bool:
        """
        Correct thr2acc with the oldest sample aged 35-45 ms.

        Samples older than 45 ms are dropped. Returns False without consuming
        anything if the oldest remaining sample is younger than 35 ms (or none is left).
        """
        if now is None:
            now = self._clock()

        while self._samples:
            sample = self._samples[0]
            age = now - sample.timestamp
            if age > MAX_SAMPLE_AGE:
                self._samples.popleft()
                continue
            if age < MIN_SAMPLE_AGE:
                return False

            thr = sample.thrust
            self._samples.popleft()

            gain = 1.0 / (self._rho + thr * self._covariance * thr)
            k = gain * self._covariance * thr
            self._thr2acc = self._thr2acc + k * (measured_acceleration - thr * self._thr2acc)
            self._covariance = (1.0 - k * thr) * self._covariance / self._rho
            return True
        return False

    def convert_acceleration_to_thrust(self, acc_z: float) -> float:
        """Normalized thrust that produces acc_z along the thrust axis."""
        return acc_z / self._thr2acc


__all__ = [
    "SAMPLE_CAPACITY",
    "MIN_SAMPLE_AGE",
    "MAX_SAMPLE_AGE",
    "INITIAL_COVARIANCE",
    "ThrustSample",
    "ThrustEstimator",
]
