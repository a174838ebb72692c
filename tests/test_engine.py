import numpy as np
import pytest

from conftest import run_until_idle
from simulation import LoopState, StopReason


def test_fresh_engine_is_idle_with_boundary_only(make_engine, config):
    engine = make_engine()
    assert engine.state is LoopState.IDLE
    assert engine.live_count == 0
    assert engine.world.dynamic_count == 0
    assert engine.world.static_count == config.arc_segments + 2
    assert engine.snapshot() == ()


@pytest.mark.parametrize("target", [-3, 0, 1, 7, 40, 41, 100])
def test_live_count_saturates_at_max(make_engine, clock, config, target):
    engine = make_engine()
    engine.set_target(target)
    assert engine.live_count == min(max(target, 0), config.max_particles)
    assert engine.pending_inserts == 0


def test_incremental_adds_saturate(make_engine, clock, config):
    engine = make_engine()
    engine.set_target(38)
    run_until_idle(engine, clock)

    engine.set_target(1000)
    assert engine.pending_inserts == 2
    run_until_idle(engine, clock)
    assert engine.live_count == config.max_particles


def test_pour_in_bulk_seeds_above_vessel_and_settles(make_engine, clock, config):
    engine = make_engine()
    engine.set_target(5)

    # Created synchronously, nothing staggered.
    assert engine.live_count == 5
    assert engine.pending_inserts == 0
    assert engine.state is LoopState.STEPPING

    r = config.container_radius
    for state in engine.snapshot():
        x, y = state.position
        assert y < 0
        assert abs(x - r) <= config.spawn_spread / 2

    frames = run_until_idle(engine, clock)
    assert frames <= config.frame_ceiling
    assert engine.state is LoopState.IDLE

    # Every coin ended up inside the vessel.
    for state in engine.last_snapshot:
        x, y = state.position
        assert y > 0
        if y > r:
            assert np.hypot(x - r, y - r) <= config.inner_radius + 1.0


def test_heavily_damped_pile_comes_to_rest(make_engine, clock, config):
    from dataclasses import replace

    engine = make_engine(cfg=replace(config, damping=0.01))
    engine.set_target(3)
    run_until_idle(engine, clock)

    assert engine.loop.last_stop_reason is StopReason.STABLE
    assert np.all(engine.speeds() < config.speed_threshold)


def test_unsettling_pile_stops_at_frame_ceiling(make_engine, clock, config):
    from dataclasses import replace

    engine = make_engine(cfg=replace(config, speed_threshold=1e-9, stiction_speed=0.0))
    engine.set_target(10)
    frames = run_until_idle(engine, clock)

    assert frames == config.frame_ceiling
    assert engine.loop.frame_count == config.frame_ceiling
    assert engine.loop.last_stop_reason is StopReason.CEILING
    assert engine.state is LoopState.IDLE
    assert clock.pending_frames == 0


def test_destroy_from_render_callback_stops_the_loop(make_engine, clock):
    rendered = []

    def on_render(snapshot):
        rendered.append(snapshot)
        engine.destroy()

    engine = make_engine(on_render=on_render)
    engine.set_target(3)
    clock.advance(engine.config.timestep)

    assert len(rendered) == 1
    assert engine.destroyed
    assert engine.state is LoopState.IDLE
    assert clock.pending_frames == 0

    for _ in range(5):
        clock.advance(engine.config.timestep)
    assert len(rendered) == 1


def test_single_increment_schedules_one_insert(make_engine, clock):
    engine = make_engine()
    engine.set_target(5)
    run_until_idle(engine, clock)
    assert engine.state is LoopState.IDLE

    engine.set_target(6)
    assert engine.pending_inserts == 1
    assert engine.live_count == 5

    clock.advance(engine.config.timestep)
    assert engine.live_count == 6
    assert engine.pending_inserts == 0
    assert engine.state is LoopState.STEPPING

    run_until_idle(engine, clock)
    assert engine.live_count == 6


def test_increase_staggers_inserts(make_engine, clock, config):
    engine = make_engine()
    engine.set_target(2)
    run_until_idle(engine, clock)

    engine.set_target(5)
    assert engine.pending_inserts == 3

    # The first insert is due immediately, the rest one interval apart.
    clock.advance(config.timestep)
    counts = [engine.live_count]
    for _ in range(2):
        clock.advance(config.stagger_interval)
        counts.append(engine.live_count)
    assert counts == [3, 4, 5]


def test_decrement_removes_newest_first(make_engine, clock):
    engine = make_engine()
    engine.set_target(5)
    run_until_idle(engine, clock)
    engine.set_target(6)
    run_until_idle(engine, clock)
    assert [p.creation_order for p in engine.particles] == [1, 2, 3, 4, 5, 6]

    engine.set_target(4)

    # Removed immediately, without a physics step.
    assert engine.live_count == 4
    assert engine.world.dynamic_count == 4
    assert [p.creation_order for p in engine.particles] == [1, 2, 3, 4]
    assert engine.state is LoopState.STEPPING


def test_lifo_removal_for_larger_piles(make_engine, clock):
    engine = make_engine()
    engine.set_target(12)
    before = [p.particle_id for p in engine.particles]

    engine.set_target(9)
    after = [p.particle_id for p in engine.particles]
    assert after == before[:9]
    assert set(before) - set(after) == set(sorted(before)[-3:])


def test_unchanged_target_is_a_noop(make_engine, clock):
    engine = make_engine()
    engine.set_target(5)
    run_until_idle(engine, clock)
    ids = [p.particle_id for p in engine.particles]

    engine.set_target(5)
    assert [p.particle_id for p in engine.particles] == ids
    assert engine.pending_inserts == 0
    assert engine.state is LoopState.IDLE
    assert clock.pending_frames == 0
    assert clock.pending_timers == 0


def test_decrease_cancels_superseded_pending_inserts(make_engine, clock):
    engine = make_engine()
    engine.set_target(2)
    run_until_idle(engine, clock)

    engine.set_target(6)
    assert engine.pending_inserts == 4
    clock.advance(engine.config.timestep)
    assert engine.live_count == 3

    engine.set_target(4)
    assert engine.pending_inserts == 1
    assert engine.live_count == 3
    run_until_idle(engine, clock)
    assert engine.live_count == 4

    engine.set_target(6)
    engine.set_target(1)
    assert engine.pending_inserts == 0
    assert engine.live_count == 1


def test_pile_rebuilds_with_bulk_seed_after_reaching_zero(make_engine, clock):
    engine = make_engine()
    engine.set_target(3)
    run_until_idle(engine, clock)

    engine.set_target(0)
    assert engine.live_count == 0
    run_until_idle(engine, clock)

    engine.set_target(4)
    assert engine.live_count == 4
    assert engine.pending_inserts == 0


@pytest.mark.parametrize("target", [0, 1, 12, 40])
def test_loop_goes_idle_within_frame_ceiling(make_engine, clock, config, target):
    engine = make_engine(seed=7)
    engine.set_target(target)
    frames = run_until_idle(engine, clock)
    assert frames <= config.frame_ceiling
    assert engine.loop.frame_count <= config.frame_ceiling
    assert engine.state is LoopState.IDLE


def test_published_rotation_stays_within_clamp(make_engine, clock, config):
    snapshots = []
    engine = make_engine(on_render=snapshots.append)
    engine.set_target(20)
    run_until_idle(engine, clock)
    engine.set_target(25)
    run_until_idle(engine, clock)

    assert snapshots
    limit = config.rotation_clamp_degrees
    for snapshot in snapshots:
        for state in snapshot:
            assert -limit <= state.rotation_degrees <= limit


def test_one_publication_per_tick(make_engine, clock):
    snapshots = []
    engine = make_engine(on_render=snapshots.append)
    engine.set_target(4)
    frames = run_until_idle(engine, clock)

    assert len(snapshots) == frames == engine.loop.total_frames
    assert engine.last_snapshot is snapshots[-1]
    assert all(len(s) == 4 for s in snapshots)


def test_idle_keeps_last_snapshot(make_engine, clock):
    engine = make_engine()
    engine.set_target(3)
    run_until_idle(engine, clock)
    last = engine.last_snapshot

    for _ in range(10):
        clock.advance(engine.config.timestep)
    assert engine.last_snapshot is last


def test_teardown_right_after_bulk_seed(make_engine, clock):
    engine = make_engine()
    engine.set_target(3)
    engine.destroy()

    assert engine.live_count == 0
    assert engine.world.dynamic_count == 0
    assert engine.world.static_count == 0
    assert clock.pending_frames == 0
    assert clock.pending_timers == 0


def test_teardown_cancels_staggered_inserts(make_engine, clock):
    engine = make_engine()
    engine.set_target(2)
    run_until_idle(engine, clock)
    engine.set_target(6)
    late = engine.reconciler._pending[-1]

    engine.destroy()
    assert clock.pending_timers == 0

    for _ in range(60):
        clock.advance(engine.config.timestep)
    assert engine.live_count == 0

    # Even a callback that slips through must not touch the engine.
    late.callback()
    engine.loop._tick()
    assert engine.live_count == 0
    assert engine.world.dynamic_count == 0


def test_destroyed_engine_rejects_new_targets(make_engine):
    engine = make_engine()
    engine.destroy()
    with pytest.raises(RuntimeError):
        engine.set_target(3)
    # A second destroy is harmless.
    engine.destroy()


def test_engines_on_one_clock_are_independent(make_engine, clock):
    a = make_engine(seed=1)
    b = make_engine(seed=2)
    a.set_target(3)
    b.set_target(8)
    run_until_idle(a, clock)
    run_until_idle(b, clock)

    assert a.live_count == 3
    assert b.live_count == 8
    a.destroy()
    b.set_target(9)
    run_until_idle(b, clock)
    assert b.live_count == 9
