# reconciler.py
"""
Keeps the number of coins in the vessel equal to the target count.

This is the only place coins are added or removed. A fresh pile is seeded in
one go; later increases pour in one coin at a time; decreases take coins off
the top of the pile (newest first) immediately.
"""
import logging
from typing import Callable, List

from config import EngineConfig
from particle import ParticleArena, ParticleFactory
from scheduler import FrameClock, Handle

# --- Data Contracts ---
#
# class Reconciler:
#   - reconcile(target_count: int) -> None:
#     - Inputs: any integer; clamped to [0, config.max_particles].
#     - Side Effects:
#       - Bulk seed: arena empty, nothing pending, last target 0 -> creates
#         every particle now.
#       - Increase: schedules one insert per missing particle on the clock,
#         config.stagger_interval apart, the first with no delay.
#       - Decrease: cancels the newest pending inserts first, then removes
#         the newest live particles.
#       - Calls on_change() after any add or removal.
#     - Invariants: len(arena) + pending never exceeds the latest target
#       once reconcile() returns.
#   - cancel_pending() -> None: drops every scheduled insert.


class Reconciler:
    def __init__(self, config: EngineConfig, arena: ParticleArena, factory: ParticleFactory,
                 clock: FrameClock, on_change: Callable[[], None]):
        self.config = config
        self.arena = arena
        self.factory = factory
        self.clock = clock
        self.on_change = on_change
        self.applied_target = 0
        self._pending: List[Handle] = []
        self._active = True

    @property
    def pending(self) -> int:
        return len(self._pending)

    def clamp(self, target_count: int) -> int:
        clamped = min(max(int(target_count), 0), self.config.max_particles)
        if clamped != target_count:
            logging.debug(f"Target count {target_count} saturated to {clamped}.")
        return clamped

    def reconcile(self, target_count: int) -> None:
        """
        Moves the pile towards a new target count.

        Pending inserts count as already present. An empty pile with nothing
        scheduled is seeded in one batch; otherwise missing coins are
        scheduled one stagger interval apart, and a decrease first cancels
        the newest pending inserts and then removes live coins newest first.

        Args:
            target_count (int): The desired count. Saturated to
                [0, config.max_particles] before use.
        """
        target = self.clamp(target_count)
        live = len(self.arena)
        effective = live + len(self._pending)

        if target == effective:
            pass
        elif self.applied_target == 0 and effective == 0:
            self._bulk_seed(target)
        elif target > effective:
            self._schedule_inserts(target - effective)
        else:
            self._remove(effective - target)

        self.applied_target = target

    def _bulk_seed(self, count: int) -> None:
        for i in range(count):
            self.factory.create_particle(spawn_index=i)
        logging.info(f"Bulk-seeded {count} particles.")
        self.on_change()

    def _schedule_inserts(self, count: int) -> None:
        first = len(self._pending)
        for i in range(count):
            delay = (first + i) * self.config.stagger_interval
            handle = self.clock.call_later(delay, self._insert_one)
            self._pending.append(handle)
        logging.info(
            f"Scheduled {count} staggered insert(s), {self.config.stagger_interval:.2f}s apart."
        )

    def _insert_one(self) -> None:
        if not self._active:
            return
        # The clock fires timers earliest-due first, so that is the one firing now.
        self._pending.remove(min(self._pending, key=lambda h: h.due))
        self.factory.create_particle()
        self.on_change()

    def _remove(self, count: int) -> None:
        cancelled = 0
        while count and self._pending:
            self._pending.pop().cancel()
            cancelled += 1
            count -= 1

        removed = []
        for _ in range(count):
            removed.append(self.arena.pop_newest().particle_id)

        logging.info(
            f"Removed particles {removed} (newest first); cancelled {cancelled} pending insert(s)."
        )
        if removed:
            self.on_change()

    def cancel_pending(self) -> None:
        for handle in self._pending:
            handle.cancel()
        self._pending = []
        self._active = False
