# stability.py
"""
Decides when a pile of coins has come to rest.
"""
import logging

import numpy as np
from numba import jit

from config import EngineConfig


@jit(nopython=True)
def _max_speed_numba(velocities):
    """Largest speed in an (N, 2) velocity array; 0.0 when N == 0."""
    best = 0.0
    for i in range(velocities.shape[0]):
        speed = np.sqrt(velocities[i, 0] ** 2 + velocities[i, 1] ** 2)
        if speed > best:
            best = speed
    return best


class StabilityDetector:
    """
    Counts consecutive quiet frames after a warm-up period.

    A frame is quiet when every particle moves slower than speed_threshold.
    The pile is stable once required_stable_frames quiet frames have been
    seen in a row; one fast particle sets the count back to zero.
    """
    def __init__(self, config: EngineConfig):
        self.warmup_frames = config.warmup_frames
        self.speed_threshold = config.speed_threshold
        self.required_stable_frames = config.required_stable_frames
        self.stable_streak = 0

    def reset(self) -> None:
        self.stable_streak = 0

    def is_stable(self, velocities: np.ndarray, frame_count: int) -> bool:
        if frame_count <= self.warmup_frames:
            return False

        max_speed = _max_speed_numba(np.ascontiguousarray(velocities, dtype=np.float64))
        if max_speed < self.speed_threshold:
            self.stable_streak += 1
        else:
            if self.stable_streak:
                logging.debug(
                    f"Stable streak broken at frame {frame_count} "
                    f"(max speed {max_speed:.2f} after {self.stable_streak} quiet frames)."
                )
            self.stable_streak = 0

        return self.stable_streak >= self.required_stable_frames
