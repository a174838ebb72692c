# scheduler.py
"""
A single-threaded, cooperative frame clock.

Everything that happens to an Engine happens inside FrameClock.advance():
deferred timers (staggered coin inserts) and per-frame callbacks (the
integrator step). The host drives the clock with the real elapsed time of
each display frame; tests drive it with a fixed timestep, which makes the
whole simulation steppable without a display.
"""
import heapq
import itertools
import logging
from typing import Callable, List, Tuple

# --- Data Contracts ---
#
# class FrameClock:
#   - call_later(delay: float, callback) -> Handle
#       Runs callback once, during the first advance() whose clock time
#       reaches now + delay. Timers fire in due-time order; ties fire in
#       scheduling order.
#   - request_frame(callback) -> Handle
#       Runs callback once, during the next advance().
#   - cancel(handle) -> None
#       The callback will never run. Cancelling twice is harmless.
#   - advance(dt: float) -> None
#       Moves the clock forward by dt, fires due timers, then runs the frame
#       callbacks requested before this call. Callbacks requested while
#       running wait for the next advance().


class Handle:
    """A cancellable reference to a scheduled callback."""

    __slots__ = ("callback", "due", "cancelled")

    def __init__(self, callback: Callable[[], None], due: float):
        self.callback = callback
        self.due = due
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FrameClock:
    def __init__(self):
        self.now = 0.0
        self.frame_number = 0
        self._sequence = itertools.count()
        self._timers: List[Tuple[float, int, Handle]] = []
        self._frames: List[Handle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> Handle:
        if delay < 0:
            raise ValueError(f"Timer delay must not be negative, got {delay}.")
        handle = Handle(callback, self.now + delay)
        heapq.heappush(self._timers, (handle.due, next(self._sequence), handle))
        return handle

    def request_frame(self, callback: Callable[[], None]) -> Handle:
        handle = Handle(callback, self.now)
        self._frames.append(handle)
        return handle

    @staticmethod
    def cancel(handle: Handle) -> None:
        handle.cancel()

    @property
    def pending_timers(self) -> int:
        return sum(1 for _, _, handle in self._timers if not handle.cancelled)

    @property
    def pending_frames(self) -> int:
        return sum(1 for handle in self._frames if not handle.cancelled)

    def advance(self, dt: float) -> None:
        if dt < 0:
            raise ValueError(f"Cannot advance the clock backwards (dt={dt}).")
        self.now += dt
        self.frame_number += 1

        while self._timers and self._timers[0][0] <= self.now:
            _, _, handle = heapq.heappop(self._timers)
            if not handle.cancelled:
                handle.cancelled = True
                handle.callback()

        frames, self._frames = self._frames, []
        for handle in frames:
            if not handle.cancelled:
                handle.cancelled = True
                handle.callback()

        if self.frame_number % 600 == 0:
            logging.debug(
                f"FrameClock t={self.now:.2f}s | pending timers: {self.pending_timers}, "
                f"pending frames: {self.pending_frames}"
            )
