# telemetry.py
"""
Exports the arena state as a stream of normalized event messages.

The exporter samples the arena after each step and hands messages to a
sink. Two independent rate limiters keep the output bounded no matter how
fast the frame loop runs: collision events at most every 50 ms and the
per-top state batch at most every 100 ms. Delivery is fire-and-forget; a
failing sink is logged and never interrupts the simulation.
"""
import logging
import math
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence

from constants import (
    DEFAULT_TELEMETRY_PREFIX, COLLISION_INTERVAL_MS, STATE_INTERVAL_MS,
    TELEMETRY_SPEED_SCALE
)
from arena import Arena, StepResult
from top import Top

# --- Data Contracts ---
#
# class TelemetryExporter:
#   - __init__(self, sink: TelemetrySink, params: Dict[str, Any], clock=time.monotonic):
#     - Inputs:
#       - sink: Receives every TelemetryMessage.
#       - params: The "telemetry" section of config.json.
#         - "prefix": str
#         - "collision_interval_ms": float
#         - "state_interval_ms": float
#       - clock: Returns monotonic seconds. Injectable for tests.
#
#   - export_step(self, arena: Arena, result: StepResult) -> int:
#     - Outputs: Number of messages delivered.
#     - Side Effects: Sends {prefix}/collision when the step had a collision
#       and the collision window has elapsed; sends {prefix}/top/{i} for each
#       live top plus {prefix}/summary when the state window has elapsed.
#
#   - export_spawn(self, arena: Arena, top: Top) -> int:
#     - Side Effects: Sends {prefix}/spawn, unthrottled.


class TelemetryMessage(NamedTuple):
    address: str
    args: List[Any]


class TelemetrySink(ABC):
    """Destination for telemetry messages. Transports implement send()."""

    @abstractmethod
    def send(self, message: TelemetryMessage) -> None:
        ...

    def close(self) -> None:
        pass


class LoggingSink(TelemetrySink):
    """Writes every message to the log at DEBUG level."""

    def send(self, message: TelemetryMessage) -> None:
        logging.debug(f"[telemetry] {message.address} {message.args}")


class NullSink(TelemetrySink):
    def send(self, message: TelemetryMessage) -> None:
        pass


SINKS: Dict[str, Callable[[], TelemetrySink]] = {
    'log': LoggingSink,
    'null': NullSink,
}


def create_sink(name: str) -> TelemetrySink:
    """Builds a sink from its configuration name."""
    try:
        return SINKS[name]()
    except KeyError:
        msg = f"Configuration error: unknown telemetry sink '{name}'. Choose one of {sorted(SINKS)}."
        logging.critical(msg)
        raise ValueError(msg) from None


class RateLimiter:
    """
    Admits at most one event per interval on a single channel.

    The first call always passes; afterwards an event passes only once
    strictly more than `interval` seconds have elapsed since the last one
    that passed.
    """
    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic):
        self.interval = interval
        self.clock = clock
        self.last_sent: Optional[float] = None

    def ready(self) -> bool:
        """Returns True, and starts a new window, if the channel may send now."""
        now = self.clock()
        if self.last_sent is None or now - self.last_sent > self.interval:
            self.last_sent = now
            return True
        return False


def normalize_point(point: Sequence[float], arena: Arena) -> List[float]:
    """Position relative to the arena center in units of the arena radius."""
    return [
        float((point[0] - arena.center[0]) / arena.radius),
        float((point[1] - arena.center[1]) / arena.radius),
    ]


def top_args(top: Top, arena: Arena) -> List[float]:
    """Argument list of a {prefix}/top/{index} message."""
    normalized_x, normalized_y = normalize_point(top.position, arena)
    return [
        normalized_x,
        normalized_y,
        math.hypot(normalized_x, normalized_y),
        min(top.speed / TELEMETRY_SPEED_SCALE, 1.0),
        float(top.angular_velocity),
        float(top.collision_flash),
    ]


class TelemetryExporter:
    """
    Turns post-step arena state into rate-limited messages for a sink.
    """
    def __init__(
        self,
        sink: TelemetrySink,
        params: Optional[Dict[str, Any]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        params = params if params is not None else {}
        self.sink = sink
        self.prefix = params.get('prefix', DEFAULT_TELEMETRY_PREFIX).rstrip('/')
        collision_ms = float(params.get('collision_interval_ms', COLLISION_INTERVAL_MS))
        state_ms = float(params.get('state_interval_ms', STATE_INTERVAL_MS))
        self.collision_limiter = RateLimiter(collision_ms / 1000.0, clock)
        self.state_limiter = RateLimiter(state_ms / 1000.0, clock)
        self.sent = 0
        self.failures = 0

        logging.info(
            f"Telemetry exporter ready ({type(sink).__name__}, prefix '{self.prefix}', "
            f"collision {collision_ms:.0f}ms, state {state_ms:.0f}ms)."
        )

    def _send(self, address: str, args: List[Any]) -> bool:
        message = TelemetryMessage(f"{self.prefix}{address}", args)
        try:
            self.sink.send(message)
        except Exception as e:
            # A broken consumer must never stall the frame loop.
            self.failures += 1
            logging.warning(f"Telemetry send to {message.address} failed: {e}")
            return False
        self.sent += 1
        return True

    def export_step(self, arena: Arena, result: StepResult) -> int:
        """
        Emits the messages due after one arena step.

        Returns:
            int: The number of messages delivered.
        """
        delivered = 0

        if result.collided and self.collision_limiter.ready():
            delivered += self._send('/collision', [float(arena.flash_intensity)])

        tops = arena.tops
        if tops and self.state_limiter.ready():
            for index, top in enumerate(tops):
                delivered += self._send(f'/top/{index}', top_args(top, arena))
            delivered += self._send('/summary', [len(tops), float(arena.flash_intensity)])

        return delivered

    def export_spawn(self, arena: Arena, top: Top) -> int:
        """Emits the spawn event for a freshly spawned top."""
        return int(self._send('/spawn', normalize_point(top.position, arena)))

    def close(self) -> None:
        logging.info(f"Telemetry closed: {self.sent} message(s) sent, {self.failures} failure(s).")
        self.sink.close()
