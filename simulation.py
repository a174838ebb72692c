# simulation.py
"""
The coin pile engine and its integrator loop.

An Engine owns one physics world, the vessel boundary, the live coins and
everything scheduled on their behalf. The host creates one per visible
widget with create_engine(), feeds it target counts with set_target(), and
calls destroy() exactly once when the widget goes away.

The integrator loop is an explicit two-state machine. While STEPPING it
requests one clock frame at a time; each frame advances the physics by one
fixed timestep, publishes a render snapshot and asks the stability detector
whether to go on. It drops back to IDLE when the pile is at rest or when the
frame ceiling is hit, and stays there until the pile changes again.
"""
import logging
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np

from boundary import BoundaryBuilder
from config import EngineConfig
from particle import Particle, ParticleArena, ParticleFactory
from physics import PhysicsWorld
from projector import RenderState, project
from reconciler import Reconciler
from scheduler import FrameClock, Handle
from stability import StabilityDetector

Snapshot = Tuple[RenderState, ...]

# --- Data Contracts ---
#
# create_engine(config, clock, on_render=None, seed=None) -> Engine
#   - Inputs:
#     - config: a validated EngineConfig.
#     - clock: the FrameClock the host advances every display frame.
#     - on_render: called with each published snapshot.
#     - seed: seeds the engine's RNG (spawn positions, spin, variants).
#   - Side Effects: builds the vessel boundary. The loop starts IDLE.
#
# Engine.set_target(count: int) -> None
#   - Reconciles the pile towards count. Raises RuntimeError once destroyed.
#
# Engine.destroy() -> None
#   - Cancels pending inserts and the pending frame, releases every body.
#     Afterwards no clock callback can touch the engine.
#
# IntegratorLoop
#   - Invariants:
#     - At most one frame request is pending.
#     - Exactly one snapshot is published per tick.
#     - A run never exceeds config.frame_ceiling ticks without a wake().


class LoopState(Enum):
    IDLE = "idle"
    STEPPING = "stepping"


class StopReason(Enum):
    STABLE = "stable"
    CEILING = "ceiling"


class IntegratorLoop:
    def __init__(self, config: EngineConfig, clock: FrameClock, world: PhysicsWorld,
                 arena: ParticleArena, detector: StabilityDetector,
                 publish: Callable[[], None]):
        self.config = config
        self.clock = clock
        self.world = world
        self.arena = arena
        self.detector = detector
        self.publish = publish

        self.state = LoopState.IDLE
        self.frame_count = 0
        self.total_frames = 0
        self.last_stop_reason: Optional[StopReason] = None
        self._frame: Optional[Handle] = None
        self._stopped = False

    def wake(self) -> None:
        """Starts a new settling run, or restarts the counters of the current one."""
        if self._stopped:
            return
        self.frame_count = 0
        self.detector.reset()
        if self.state is LoopState.IDLE:
            self.state = LoopState.STEPPING
            logging.debug(f"Integrator loop stepping ({len(self.arena)} particles).")
            self._frame = self.clock.request_frame(self._tick)

    def stop(self) -> None:
        """Stops the loop for good. No further ticks will run."""
        if self._frame is not None:
            self._frame.cancel()
            self._frame = None
        self.state = LoopState.IDLE
        self._stopped = True

    def _tick(self) -> None:
        self._frame = None
        if self._stopped:
            return

        self.world.step()
        self.frame_count += 1
        self.total_frames += 1
        self.publish()
        # The host may have destroyed the engine from its render callback.
        if self._stopped:
            return

        velocities = self.world.velocities(self.arena.handles())
        if self.frame_count % self.config.log_throttle_frames == 0:
            speeds = np.linalg.norm(velocities, axis=1) if len(velocities) else np.zeros(1)
            logging.debug(
                f"Frame {self.frame_count} | {len(self.arena)} particles | "
                f"max speed {speeds.max():.2f} | stable streak {self.detector.stable_streak}"
            )

        if self.detector.is_stable(velocities, self.frame_count):
            self._suspend(StopReason.STABLE)
        elif self.frame_count >= self.config.frame_ceiling:
            logging.warning(
                f"Pile did not settle within {self.config.frame_ceiling} frames; "
                "suspending the integrator loop anyway."
            )
            self._suspend(StopReason.CEILING)
        else:
            self._frame = self.clock.request_frame(self._tick)

    def _suspend(self, reason: StopReason) -> None:
        self.state = LoopState.IDLE
        self.last_stop_reason = reason
        logging.info(
            f"Integrator loop idle after {self.frame_count} frames ({reason.value}, "
            f"{len(self.arena)} particles)."
        )


class Engine:
    """
    One self-contained coin pile simulation.
    """
    def __init__(self, config: EngineConfig, clock: FrameClock,
                 on_render: Optional[Callable[[Snapshot], None]] = None,
                 seed: Optional[int] = None):
        """
        Builds the world and the vessel boundary. The pile starts empty and idle.

        Args:
            config (EngineConfig): Validated engine parameters.
            clock (FrameClock): Clock the host advances once per display frame.
                Staggered inserts and integrator ticks are scheduled on it.
            on_render (Optional[Callable[[Snapshot], None]]): Receives every
                published snapshot. It may call destroy().
            seed (Optional[int]): Seeds spawn jitter, spin and variant choice.
        """
        self.config = config
        self.clock = clock
        self.on_render = on_render
        self.rng = np.random.default_rng(seed)
        self.last_snapshot: Snapshot = ()
        self.destroyed = False

        self.world = PhysicsWorld(config)
        self.boundary = BoundaryBuilder(config)
        self.boundary.build(self.world)

        self.arena = ParticleArena(self.world)
        self.factory = ParticleFactory(config, self.world, self.arena, self.boundary, self.rng)
        self.detector = StabilityDetector(config)
        self.loop = IntegratorLoop(
            config, clock, self.world, self.arena, self.detector, self._publish
        )
        self.reconciler = Reconciler(config, self.arena, self.factory, clock, self.loop.wake)

        logging.info(
            f"Engine created: vessel radius {config.container_radius}px, "
            f"up to {config.max_particles} particles, seed={seed}."
        )

    @property
    def state(self) -> LoopState:
        return self.loop.state

    @property
    def live_count(self) -> int:
        return len(self.arena)

    @property
    def pending_inserts(self) -> int:
        return self.reconciler.pending

    @property
    def particles(self) -> List[Particle]:
        """Live particles, oldest first."""
        return list(self.arena)

    def set_target(self, count: int) -> None:
        if self.destroyed:
            msg = "set_target() called on a destroyed engine."
            logging.critical(msg)
            raise RuntimeError(msg)
        self.reconciler.reconcile(count)

    def snapshot(self) -> Snapshot:
        """Projects the current physics state without publishing it."""
        handles = self.arena.handles()
        return project(
            self.particles,
            self.world.positions(handles),
            self.world.angles(handles),
            self.config.rotation_clamp_degrees,
        )

    def speeds(self) -> np.ndarray:
        velocities = self.world.velocities(self.arena.handles())
        return np.linalg.norm(velocities, axis=1)

    def _publish(self) -> None:
        self.last_snapshot = self.snapshot()
        if self.on_render is not None:
            self.on_render(self.last_snapshot)

    def destroy(self) -> None:
        if self.destroyed:
            logging.warning("destroy() called twice on the same engine; ignoring.")
            return
        self.reconciler.cancel_pending()
        self.loop.stop()
        count = len(self.arena)
        self.arena.release_all()
        self.boundary.release(self.world)
        self.destroyed = True
        logging.info(f"Engine destroyed ({count} particles released).")


def create_engine(config: EngineConfig, clock: FrameClock,
                  on_render: Optional[Callable[[Snapshot], None]] = None,
                  seed: Optional[int] = None) -> Engine:
    return Engine(config, clock, on_render=on_render, seed=seed)
