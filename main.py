# main.py
"""
Main entry point for the coin pile viewer.

This script plays the host's part around one Engine:
1. Loads configuration from `config.json` and initializes logging.
2. Opens the viewer and the frame clock that drives the engine.
3. Turns key presses into a target count and hands it to the engine.
4. Rebuilds the engine on reset, and destroys it on shutdown.
"""
import logging
import cProfile
import pstats
import io
from typing import Any, Dict, Optional

from config import EngineConfig
from constants import CONFIG_PATH, FPS
from scheduler import FrameClock
from simulation import Engine, Snapshot, create_engine
from utils import setup_logging, load_config, load_engine_config

COUNT_STEP_LARGE = 5


class PileHost:
    """
    Owns the true count and the engine that visualizes it.

    The engine only exists while the count is non-zero, like a widget that
    is only mounted once there is something to show.
    """
    def __init__(self, config: EngineConfig, clock: FrameClock, count: int = 0,
                 seed: Optional[int] = None):
        self.config = config
        self.clock = clock
        self.seed = seed
        self.count = max(count, 0)
        self.engine: Optional[Engine] = None
        self.snapshot: Snapshot = ()
        self._sync()

    def _on_render(self, snapshot: Snapshot) -> None:
        self.snapshot = snapshot

    def _sync(self) -> None:
        if self.count == 0:
            if self.engine is not None:
                logging.info("Count reached zero; unmounting the pile.")
            self.teardown()
            self.snapshot = ()
            return
        if self.engine is None:
            self.engine = create_engine(self.config, self.clock, self._on_render, self.seed)
        self.engine.set_target(self.count)

    def handle_command(self, command: str) -> None:
        deltas = {
            "add": 1,
            "add_many": COUNT_STEP_LARGE,
            "remove": -1,
            "remove_many": -COUNT_STEP_LARGE,
        }
        if command == "reset":
            logging.info(f"Resetting the pile at count {self.count}.")
            self.teardown()
            self.snapshot = ()
        elif command in deltas:
            self.count = max(self.count + deltas[command], 0)
            logging.info(f"Count changed to {self.count}.")
        else:
            logging.warning(f"Ignoring unknown command '{command}'.")
            return
        self._sync()

    def teardown(self) -> None:
        if self.engine is not None:
            self.engine.destroy()
            self.engine = None


def run(config: Dict[str, Any]) -> None:
    from visualization import Visualizer

    engine_config = load_engine_config(config)
    run_params = config.get('run_control', {})

    visualizer = Visualizer(engine_config)
    clock = FrameClock()
    host = PileHost(
        engine_config, clock,
        count=run_params.get('initial_count', 0),
        seed=run_params.get('seed'),
    )

    running = True
    while running:
        dt = visualizer.clock.tick(FPS) / 1000.0
        clock.advance(dt)
        running = visualizer.draw(host.snapshot, host.count, host.handle_command)

    host.teardown()
    visualizer.close()
    logging.info(f"Viewer loop finished after {clock.frame_number} frames.")


def main():
    """
    The main function to run the viewer.
    """
    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(CONFIG_PATH)
    except Exception as e:
        print(f"FATAL: Could not load {CONFIG_PATH}. Error: {e}")
        return

    setup_logging(config)
    logging.info("--- Coin Pile Viewer Starting ---")

    profile = config.get('run_control', {}).get('profile', False)
    profiler = cProfile.Profile() if profile else None

    if profiler is not None:
        profiler.enable()
    run(config)
    if profiler is not None:
        profiler.disable()
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Coin Pile Viewer Shutting Down ---")


if __name__ == "__main__":
    main()
