import pytest

from arena import StepResult
from helpers import FailingSink, place
from telemetry import (
    LoggingSink, NullSink, RateLimiter, TelemetryExporter, TelemetryMessage,
    create_sink, normalize_point, top_args
)

QUIET = StepResult(removed=0, collided=False)
HIT = StepResult(removed=0, collided=True)


def test_rate_limiter_first_call_passes(clock):
    limiter = RateLimiter(0.05, clock)
    assert limiter.ready()
    assert not limiter.ready()


def test_rate_limiter_window_is_strict(clock):
    limiter = RateLimiter(0.5, clock)
    assert limiter.ready()
    clock.advance(0.5)
    assert not limiter.ready()
    clock.advance(0.01)
    assert limiter.ready()


def test_normalization(arena):
    assert normalize_point((arena.center[0] + 150, arena.center[1] - 300), arena) == [0.5, -1.0]


def test_top_args(arena):
    top = place(arena, 180.0, 240.0, vx=3.0, vy=4.0, spin=0.25)
    top.collision_flash = 0.5
    args = top_args(top, arena)
    assert args[0] == pytest.approx(0.6)
    assert args[1] == pytest.approx(0.8)
    assert args[2] == pytest.approx(1.0)
    assert args[3] == pytest.approx(0.5)
    assert args[4] == pytest.approx(0.25)
    assert args[5] == pytest.approx(0.5)


def test_speed_is_capped_at_one(arena):
    top = place(arena, 0.0, 0.0, vx=30.0)
    assert top_args(top, arena)[3] == 1.0


def test_state_batch_and_summary(arena, sink, clock):
    place(arena, 0.0, 0.0, spin=0.3)
    place(arena, 100.0, 0.0, spin=0.3)
    arena.flash_intensity = 0.4
    exporter = TelemetryExporter(sink, {}, clock=clock)

    delivered = exporter.export_step(arena, QUIET)

    assert delivered == 3
    assert sink.addresses() == ['/stfs/top/0', '/stfs/top/1', '/stfs/summary']
    assert sink.messages[-1] == TelemetryMessage('/stfs/summary', [2, 0.4])
    assert len(sink.messages[0].args) == 6


def test_state_batch_is_throttled_to_100ms(arena, sink, clock):
    place(arena, 0.0, 0.0, spin=0.3)
    exporter = TelemetryExporter(sink, {}, clock=clock)

    exporter.export_step(arena, QUIET)
    clock.advance(0.05)
    assert exporter.export_step(arena, QUIET) == 0
    clock.advance(0.051)
    assert exporter.export_step(arena, QUIET) == 2


def test_no_state_batch_for_empty_arena(arena, sink, clock):
    exporter = TelemetryExporter(sink, {}, clock=clock)
    assert exporter.export_step(arena, QUIET) == 0
    assert sink.messages == []


def test_collision_event_only_on_collision(arena, sink, clock):
    exporter = TelemetryExporter(sink, {}, clock=clock)
    arena.flash_intensity = 1.0

    exporter.export_step(arena, QUIET)
    assert sink.messages == []

    exporter.export_step(arena, HIT)
    assert sink.messages == [TelemetryMessage('/stfs/collision', [1.0])]


def test_collision_throttle_is_independent_of_state(arena, sink, clock):
    place(arena, 0.0, 0.0, spin=0.3)
    exporter = TelemetryExporter(sink, {}, clock=clock)

    exporter.export_step(arena, HIT)
    assert sink.addresses() == ['/stfs/collision', '/stfs/top/0', '/stfs/summary']

    clock.advance(0.06)
    sink.messages.clear()
    exporter.export_step(arena, HIT)
    # collision window (50ms) elapsed, state window (100ms) has not
    assert sink.addresses() == ['/stfs/collision']


def test_spawn_event(arena, sink, clock):
    exporter = TelemetryExporter(sink, {'prefix': '/arena/'}, clock=clock)
    top = arena.spawn((arena.center[0] - 150, arena.center[1] + 30))
    assert exporter.export_spawn(arena, top) == 1
    message = sink.messages[0]
    assert message.address == '/arena/spawn'
    assert message.args == pytest.approx([-0.5, 0.1])


def test_custom_intervals(arena, sink, clock):
    exporter = TelemetryExporter(sink, {'collision_interval_ms': 1000}, clock=clock)
    exporter.export_step(arena, HIT)
    clock.advance(0.5)
    exporter.export_step(arena, HIT)
    assert len(sink.messages) == 1


def test_failing_sink_does_not_raise(arena, clock, caplog):
    place(arena, 0.0, 0.0, spin=0.3)
    sink = FailingSink()
    exporter = TelemetryExporter(sink, {}, clock=clock)

    with caplog.at_level("WARNING"):
        delivered = exporter.export_step(arena, HIT)

    assert delivered == 0
    assert sink.attempts == 3
    assert exporter.failures == 3
    assert "connection refused" in caplog.text


def test_failing_sink_leaves_arena_untouched(arena, clock):
    top = place(arena, 50.0, 0.0, vx=1.0, spin=0.3)
    exporter = TelemetryExporter(FailingSink(), {}, clock=clock)
    before = (top.position.tolist(), top.velocity.tolist(), arena.flash_intensity)
    exporter.export_step(arena, HIT)
    assert (top.position.tolist(), top.velocity.tolist(), arena.flash_intensity) == before
    # The next frame still runs
    arena.step()
    assert arena.frame == 1


def test_close_closes_sink(sink, clock):
    exporter = TelemetryExporter(sink, {}, clock=clock)
    exporter.close()
    assert sink.closed


def test_logging_sink_logs_at_debug(caplog):
    with caplog.at_level("DEBUG"):
        LoggingSink().send(TelemetryMessage('/stfs/summary', [1, 0.0]))
    assert "/stfs/summary" in caplog.text


def test_create_sink():
    assert isinstance(create_sink('log'), LoggingSink)
    assert isinstance(create_sink('null'), NullSink)
    with pytest.raises(ValueError):
        create_sink('carrier-pigeon')
