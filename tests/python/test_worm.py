from __future__ import annotations

import math
from dataclasses import FrozenInstanceError

import pytest
from pytest import approx

from wormsim.render.canvas import RecordingCanvas
from wormsim.sim.core.rng import DeterministicRng
from wormsim.sim.core.worm import DEFAULT_COLOR, DRAG, Worm
from wormsim.sim.types.color import Hsl
from wormsim.sim.utils.vector import Vec2


def _assert_chain_invariant(worm: Worm) -> None:
    assert len(worm.joints) == len(worm.segments) + 1
    for i, segment in enumerate(worm.segments):
        assert segment.head is worm.joints[i]
        assert segment.tail is worm.joints[i + 1]


def test_create_builds_linked_chain(rng):
    worm = Worm(rng, length=12, thickness=10.0, spacing=3.0)
    assert len(worm.joints) == 13
    _assert_chain_invariant(worm)
    assert worm.head is worm.joints[0]
    assert worm.tail is worm.joints[-1]
    assert worm.head == Vec2(0.0, 0.0)
    assert 0.2 <= worm.jitter <= 1.5
    assert 0.08 <= worm.max_force <= 0.15
    assert worm.meander.magnitude() == approx(math.sqrt(2.0))


def test_create_spirals_outward(rng):
    worm = Worm(rng, length=6, spacing=2.0)
    for prev, node in zip(worm.joints, worm.joints[1:]):
        gap = math.hypot(node.x - prev.x, node.y - prev.y)
        # radius 20..40 plus the (spacing, spacing) seed offset
        assert 20.0 - 2.0 * math.sqrt(2.0) <= gap <= 40.0 + 2.0 * math.sqrt(2.0)


def test_chain_invariant_survives_updates_and_spacing_changes(rng):
    worm = Worm(rng, length=8, spacing=2.0)
    for tick in range(50):
        worm.wander()
        worm.update()
        if tick % 10 == 0:
            worm.set_spacing(1.0 + tick * 0.1)
    _assert_chain_invariant(worm)
    assert all(segment.spacing == worm.spacing for segment in worm.segments)


def test_set_spacing_overwrites_every_segment(rng):
    worm = Worm(rng, length=5, spacing=2.0)
    worm.set_spacing(7.5)
    assert worm.spacing == 7.5
    assert [segment.spacing for segment in worm.segments] == [7.5] * 5


def test_same_seed_same_worm():
    a = Worm(DeterministicRng(99), length=7, spacing=3.0)
    b = Worm(DeterministicRng(99), length=7, spacing=3.0)
    assert a.joints == b.joints
    assert a.meander == b.meander
    assert (a.jitter, a.max_force) == (b.jitter, b.max_force)


def test_wander_adds_meander_to_force(rng):
    worm = Worm(rng, length=3)
    worm.wander(2.0)
    assert worm.force == Vec2.scaled(worm.meander, 2.0)
    assert worm.meander.magnitude() == approx(math.sqrt(2.0))


def test_seek_at_head_is_noop(rng):
    worm = Worm(rng, length=3)
    worm.seek(worm.head.clone())
    assert worm.force == Vec2()


def test_seek_steers_toward_target(rng):
    worm = Worm(rng, length=3)
    worm.velocity.set(1.0, 0.0)
    target = Vec2.added(worm.head, Vec2(0.0, 50.0))
    worm.seek(target, 0.5)
    assert worm.force.x == approx(-0.5)
    assert worm.force.y == approx(25.0)


def test_flee_only_inside_radius(rng):
    worm = Worm(rng, length=3)
    worm.flee(Vec2.added(worm.head, Vec2(10.0, 0.0)))
    assert worm.force == Vec2()
    worm.flee(Vec2.added(worm.head, Vec2(30.0, 40.0)))
    assert worm.force == Vec2()
    worm.flee(worm.head.clone())
    assert worm.force == Vec2()

    worm.flee(Vec2.added(worm.head, Vec2(6.0, 0.0)))
    assert worm.force.x == approx(-6.0)
    assert worm.force.y == approx(0.0)


def test_update_caps_force_regardless_of_accumulation(rng):
    worm = Worm(rng, length=0)
    start = worm.head.clone()
    far = Vec2(10_000.0, -5_000.0)
    for _ in range(25):
        worm.seek(far)
        worm.wander()
    worm.update()
    moved = math.hypot(worm.head.x - start.x, worm.head.y - start.y)
    assert moved <= worm.max_force + 1e-9
    assert worm.force == Vec2()


def test_velocity_change_is_bounded_every_tick(rng):
    worm = Worm(rng, length=6, spacing=2.0)
    target = Vec2(500.0, 500.0)
    for _ in range(100):
        before = worm.velocity.clone()
        worm.wander(3.0)
        worm.seek(target, 4.0)
        worm.update()
        delta = Vec2.subtracted(worm.velocity, Vec2.scaled(before, DRAG))
        assert delta.magnitude() <= worm.max_force * DRAG + 1e-9


def test_bounds_cover_joints_with_half_thickness(rng):
    worm = Worm(rng, length=4, thickness=10.0)
    bounds = worm.get_bounds()
    assert bounds.x1 == approx(min(j.x for j in worm.joints) - 5.0)
    assert bounds.y1 == approx(min(j.y for j in worm.joints) - 5.0)
    assert bounds.x2 == approx(max(j.x for j in worm.joints) + 5.0)
    assert bounds.y2 == approx(max(j.y for j in worm.joints) + 5.0)


def test_seeded_wandering_is_deterministic_and_bounded():
    def run():
        worm = Worm(DeterministicRng(2024), length=5, thickness=10.0, spacing=2.0)
        for _ in range(60):
            worm.wander()
            worm.update()
        return worm

    a = run()
    b = run()
    assert a.head == b.head
    assert a.joints == b.joints
    assert a.get_bounds().contains(a.head.x, a.head.y)
    _assert_chain_invariant(a)


def test_draw_with_shadow_strokes_twice(rng):
    worm = Worm(rng, length=6, thickness=10.0, color=Hsl(120.0, 50.0, 40.0))
    canvas = RecordingCanvas()
    worm.draw(canvas, shadow=True)
    strokes = canvas.strokes()
    assert len(strokes) == 2
    assert strokes[0][:4] == ["rgba(0,0,0,0.1)", 18.0, "round", "round"]
    assert strokes[1][:4] == ["hsl(120,50%,40%)", 10.0, "round", "round"]
    assert canvas.commands[1] == ["move", worm.head.x, worm.head.y]
    assert len(canvas.beziers()) == 2 * (len(worm.joints) - 3)


def test_draw_without_shadow_strokes_once(rng):
    worm = Worm(rng, length=2)
    canvas = RecordingCanvas()
    worm.draw(canvas, shadow=False)
    assert len(canvas.strokes()) == 1
    assert canvas.beziers() == []


def test_default_color_is_immutable():
    first = Worm(DeterministicRng(1), length=2)
    second = Worm(DeterministicRng(2), length=2)
    assert first.color == DEFAULT_COLOR
    with pytest.raises(FrozenInstanceError):
        first.color.h = 120.0
    first.color = first.color.jittered(120.0, 0.0, 0.0)
    assert second.color == DEFAULT_COLOR
