from __future__ import annotations

import random
from datetime import date

import pytest

from secure_viewer.identity import ViewerIdentity
from secure_viewer.watermark import WatermarkRenderer, random_placement

IDENTITY = ViewerIdentity(id="s1", display_name="john_doe", student_number="MM-2024-001")


def _renderer(clock, identity=IDENTITY, seed=3, **kwargs) -> WatermarkRenderer:
    return WatermarkRenderer(
        identity,
        after=clock.after,
        after_cancel=clock.cancel,
        rng=random.Random(seed),
        today=lambda: date(2024, 3, 9),
        **kwargs,
    )


@pytest.mark.parametrize("seed", range(200))
def test_random_placement_within_bounds(seed):
    placement = random_placement(random.Random(seed))
    assert 10 <= placement.top_percent <= 90
    assert 10 <= placement.left_percent <= 90
    assert 0.2 <= placement.opacity <= 0.5


def test_first_placement_is_immediate(clock):
    moves = []
    renderer = _renderer(clock, on_move=moves.append)
    assert renderer.placement is None
    renderer.start()
    assert renderer.placement is not None
    assert moves == [renderer.placement]
    assert clock.scheduled[0][0] == 45_000


def test_interval_ticks_keep_placements_in_bounds(clock):
    renderer = _renderer(clock, interval_ms=45_000)
    renderer.start()
    seen = []
    for _ in range(50):
        clock.advance(45_000)
        placement = renderer.placement
        seen.append(placement)
        assert 10 <= placement.top_percent <= 90
        assert 10 <= placement.left_percent <= 90
        assert 0.2 <= placement.opacity <= 0.5
    assert len(set(seen)) > 1
    assert clock.pending == 1


def test_seeded_renderers_are_reproducible(clock):
    first = _renderer(clock, seed=11)
    second = _renderer(clock, seed=11)
    first.start()
    second.start()
    assert first.placement == second.placement


def test_lines_include_identity_and_date(clock):
    renderer = _renderer(clock)
    assert renderer.lines() == ("MM-2024-001", "john_doe", "2024-03-09", "s1")


def test_lines_fall_back_to_admin_label(clock):
    renderer = _renderer(clock, identity=ViewerIdentity(id="a1", display_name="root"))
    assert renderer.lines()[0] == "ADMIN"


def test_stop_cancels_interval(clock):
    renderer = _renderer(clock)
    renderer.start()
    placement = renderer.placement
    renderer.stop()
    assert clock.pending == 0
    clock.advance(90_000)
    assert renderer.placement == placement
    assert renderer.running is False


def test_stop_from_move_callback_does_not_reschedule(clock):
    holder = {}

    def on_move(_placement):
        if holder.get("stop"):
            holder["renderer"].stop()

    renderer = _renderer(clock, on_move=on_move)
    holder["renderer"] = renderer
    renderer.start()
    holder["stop"] = True
    clock.advance(45_000)
    assert clock.pending == 0
