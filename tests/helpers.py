import numpy as np

from telemetry import TelemetrySink
from top import Top


class RecordingSink(TelemetrySink):
    """Keeps every message it receives."""

    def __init__(self):
        self.messages = []
        self.closed = False

    def send(self, message):
        self.messages.append(message)

    def close(self):
        self.closed = True

    def addresses(self):
        return [m.address for m in self.messages]


class FailingSink(TelemetrySink):
    def __init__(self):
        self.attempts = 0

    def send(self, message):
        self.attempts += 1
        raise OSError("connection refused")


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_top(arena, x, y, vx=0.0, vy=0.0, spin=0.0, rng=None):
    """Builds a free-standing top relative to the arena center with a fixed state."""
    rng = rng if rng is not None else np.random.default_rng(0)
    top = Top(arena.center + np.array([x, y]), arena.radius, arena.center, rng)
    top.velocity[:] = (vx, vy)
    top.angular_velocity = spin
    top.angle = 0.0
    return top


def place(arena, x, y, vx=0.0, vy=0.0, spin=0.0):
    """Spawns a top relative to the arena center and overrides its random motion."""
    top = arena.spawn(arena.center + np.array([x, y]))
    assert top is not None
    top.velocity[:] = (vx, vy)
    top.angular_velocity = spin
    return top
