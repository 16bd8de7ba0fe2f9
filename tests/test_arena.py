import math

import numpy as np
import pytest

from arena import Arena, StepResult
from constants import TOP_PALETTE
from helpers import place


def test_center_includes_margin(arena):
    assert arena.center.tolist() == [350.0, 350.0]
    assert len(arena) == 0
    assert arena.flash_intensity == 0.0


def test_spawn_inside_arena(arena):
    top = arena.spawn((400.0, 300.0))
    assert top is not None
    assert arena.tops == (top,)
    assert top.position.tolist() == [400.0, 300.0]
    assert top.arena_radius == arena.radius
    assert top.selected


def test_spawn_outside_arena_is_ignored(arena):
    assert arena.spawn((10.0, 10.0)) is None
    assert arena.spawn((arena.center[0] + 300.5, arena.center[1])) is None
    assert len(arena) == 0


def test_spawn_on_the_rim_is_allowed(arena):
    assert arena.spawn((arena.center[0] + 300.0, arena.center[1])) is not None


def test_spawn_deselects_previous_tops(arena):
    first = arena.spawn((350.0, 350.0))
    second = arena.spawn((450.0, 350.0))
    assert not first.selected
    assert second.selected
    assert arena.selected_top is second


def test_palette_alternates(arena):
    tops = [arena.spawn((300.0 + 30 * i, 350.0)) for i in range(4)]
    assert [t.color for t in tops] == [TOP_PALETTE[0], TOP_PALETTE[1], TOP_PALETTE[0], TOP_PALETTE[1]]


def test_toggle_select_hits_a_top(arena):
    top = arena.spawn((400.0, 350.0))
    assert arena.toggle_select((405.0, 352.0)) is top
    assert not top.selected
    assert arena.selected_top is None


def test_toggle_select_miss_returns_none(arena):
    arena.spawn((400.0, 350.0))
    assert arena.toggle_select((200.0, 350.0)) is None
    assert arena.toggle_select((5.0, 5.0)) is None


def test_toggle_select_twice_round_trips(arena):
    top = arena.spawn((400.0, 350.0))
    original = top.selected
    point = (402.0, 351.0)
    first = arena.toggle_select(point)
    second = arena.toggle_select(point)
    assert first is top and second is top
    assert top.selected == original


def test_tops_view_is_a_copy(arena):
    arena.spawn((400.0, 350.0))
    view = arena.tops
    assert isinstance(view, tuple)
    arena.spawn((300.0, 350.0))
    assert len(view) == 1
    assert len(arena) == 2


def test_resting_top_is_pruned_on_next_step(arena):
    top = place(arena, 0.0, 0.0, vx=0.05, spin=0.005)
    result = arena.step()
    assert result == StepResult(removed=1, collided=False)
    assert top not in arena.tops
    assert len(arena) == 0
    assert arena.frame == 1


def test_exiting_top_is_pruned_on_the_crossing_step(arena):
    leaver = place(arena, 100.0, 0.0, vx=2.0, spin=0.3)
    leaver.position[:] = arena.center + (arena.radius + 11.5, 0.0)
    keeper = place(arena, 0.0, 0.0, spin=0.3)
    result = arena.step()
    assert result.removed == 1
    assert arena.tops == (keeper,)


def test_centered_top_without_velocity_stays_put(arena):
    top = place(arena, 0.0, 0.0, spin=0.4)
    arena.step()
    assert top.distance_from_center() <= 1e-9
    assert len(arena) == 1


def test_head_on_pair_is_pushed_apart(arena):
    a = place(arena, -11.5, 0.0, vx=1.0, spin=0.2)
    b = place(arena, 11.5, 0.0, vx=-1.0, spin=-0.2)
    before = math.hypot(*(b.position - a.position))

    result = arena.step()

    assert result.collided
    assert arena.flash_intensity == 1.0
    assert a.velocity[0] < 0.0
    assert b.velocity[0] > 0.0
    after = math.hypot(*(b.position - a.position))
    assert after > before


def test_flash_intensity_decays_without_collisions(arena):
    place(arena, 0.0, 0.0, spin=0.4)
    arena.flash_intensity = 1.0
    arena.step()
    assert arena.flash_intensity == pytest.approx(0.88)
    for _ in range(10):
        arena.step()
    assert arena.flash_intensity == 0.0


def test_flash_counts_tops_removed_this_step(arena):
    top = place(arena, 0.0, 0.0, vx=0.05, spin=0.005)
    top.collision_flash = 1.0
    result = arena.step()
    assert result.removed == 1
    assert result.collided
    assert arena.flash_intensity == 1.0


def test_removal_invariant_over_long_run():
    rng = np.random.default_rng(2024)
    arena = Arena({'arena_radius': 300, 'arena_margin': 50}, rng=rng)
    for _ in range(50):
        angle = rng.random() * 2 * math.pi
        distance = math.sqrt(rng.random()) * arena.radius
        arena.spawn(arena.center + distance * np.array([math.cos(angle), math.sin(angle)]))
    assert len(arena) == 50

    previous = len(arena)
    limit = arena.radius + 12
    for _ in range(500):
        arena.step()
        assert len(arena) <= previous
        previous = len(arena)
        for top in arena:
            assert top.distance_from_center() <= limit
            assert not top.should_remove
            assert 0.0 <= top.collision_flash <= 1.0


@pytest.mark.parametrize("params", [
    {'arena_radius': 0},
    {'arena_radius': 10, 'top_radius': 12},
    {'top_radius': -1},
    {'top_mass': 0},
    {'friction': 1.5},
    {'velocity_decay': 0},
    {'arena_margin': -5},
])
def test_invalid_parameters_are_rejected(params):
    with pytest.raises(ValueError):
        Arena(params)


def test_seed_gives_reproducible_spawns():
    a = Arena({'seed': 42}).spawn((350.0, 350.0))
    b = Arena({'seed': 42}).spawn((350.0, 350.0))
    assert a.velocity.tolist() == b.velocity.tolist()
    assert a.angular_velocity == b.angular_velocity


def test_parameters_flow_into_tops():
    arena = Arena({'top_radius': 8, 'gravity_strength': 0.002, 'restitution': 0.5}, rng=np.random.default_rng(1))
    top = arena.spawn(arena.center)
    assert top.radius == 8
    assert top.gravity_strength == 0.002
    assert top.restitution == 0.5
