import pytest

from config import EngineConfig
from scheduler import FrameClock
from simulation import LoopState, create_engine


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def clock():
    return FrameClock()


@pytest.fixture
def make_engine(config, clock):
    """Builds seeded engines on the shared clock and destroys leftovers afterwards."""
    engines = []

    def _make(cfg=None, seed=1234, on_render=None):
        engine = create_engine(cfg or config, clock, on_render=on_render, seed=seed)
        engines.append(engine)
        return engine

    yield _make

    for engine in engines:
        if not engine.destroyed:
            engine.destroy()


def run_until_idle(engine, clock, max_frames=2000):
    """Advances the clock one timestep at a time until the engine has nothing left to do."""
    frames = 0
    while engine.state is LoopState.STEPPING or engine.pending_inserts:
        clock.advance(engine.config.timestep)
        frames += 1
        assert frames < max_frames, "engine never went idle"
    return frames
