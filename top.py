# top.py
"""
Defines the state of a single spinning top.

This module defines the Top class, which holds the kinematic and visual
state of one spinning disk in the arena (position, velocity, rotation and
its per-entity physical constants), plus the two geometric queries the
rest of the simulation relies on.
"""
import math
import numpy as np
from typing import Any, Dict, NamedTuple, Optional, Sequence, Tuple

from constants import (
    DEFAULT_TOP_RADIUS, DEFAULT_TOP_MASS, DEFAULT_GRAVITY_STRENGTH,
    DEFAULT_FRICTION, DEFAULT_VELOCITY_DECAY, DEFAULT_RESTITUTION,
    SPAWN_VELOCITY_RANGE, SPAWN_SPIN_RANGE, TOP_PALETTE
)

# --- Data Contracts ---
#
# class Top:
#   - __init__(self, position, arena_radius, arena_center, rng, color=None, **physics):
#     - Inputs:
#       - position: (x, y) spawn point in canvas coordinates.
#       - arena_radius: float, radius of the owning arena.
#       - arena_center: (x, y) center of the owning arena.
#       - rng: numpy Generator used for the random initial velocity,
#         angle and spin.
#       - color: Optional palette entry. Defaults to the first palette entry.
#       - physics: Optional overrides for radius, mass, gravity_strength,
#         friction, velocity_decay and restitution.
#     - Invariants:
#       - radius, mass and the physical constants never change.
#       - should_remove is monotonic (False -> True only).
#       - collision_flash stays within [0, 1].
#
#   - check_collision(self, other: Top) -> bool:
#     - True iff the center distance is strictly less than the sum of radii.
#
#   - direction_vector(self) -> Tuple[float, float]:
#     - Unit vector of the velocity, (0.0, 0.0) when the speed is exactly 0.


class TopSnapshot(NamedTuple):
    """Read-only view of a top handed to the renderer and the info panel."""
    x: float
    y: float
    vx: float
    vy: float
    angle: float
    angular_velocity: float
    radius: float
    selected: bool
    collision_flash: float
    color: Dict[str, Tuple[int, int, int]]
    direction: Tuple[float, float]
    speed: float
    distance_from_center: float


class Top:
    """
    A single spinning disk. Pure state plus a couple of geometric queries;
    the per-frame update lives in simulation.py and collision response in
    collision.py.
    """
    def __init__(
        self,
        position: Sequence[float],
        arena_radius: float,
        arena_center: Sequence[float],
        rng: np.random.Generator,
        color: Optional[Dict[str, Tuple[int, int, int]]] = None,
        radius: float = DEFAULT_TOP_RADIUS,
        mass: float = DEFAULT_TOP_MASS,
        gravity_strength: float = DEFAULT_GRAVITY_STRENGTH,
        friction: float = DEFAULT_FRICTION,
        velocity_decay: float = DEFAULT_VELOCITY_DECAY,
        restitution: float = DEFAULT_RESTITUTION,
    ):
        """
        Initializes a top at the given point with a random initial motion.

        Args:
            position (Sequence[float]): Spawn point (x, y).
            arena_radius (float): Radius of the arena the top lives in.
            arena_center (Sequence[float]): Center of that arena.
            rng (np.random.Generator): Random source for the initial state.
            color (Optional[dict]): Palette entry used by the renderer.
        """
        self.position = np.array(position, dtype=np.float64)
        self.velocity = np.array([
            (rng.random() - 0.5) * 2 * SPAWN_VELOCITY_RANGE,
            (rng.random() - 0.5) * 2 * SPAWN_VELOCITY_RANGE,
        ], dtype=np.float64)
        self.angle = rng.random() * math.pi * 2
        self.angular_velocity = (rng.random() - 0.5) * 2 * SPAWN_SPIN_RANGE

        self._radius = float(radius)
        self._mass = float(mass)
        self._gravity_strength = float(gravity_strength)
        self._friction = float(friction)
        self._velocity_decay = float(velocity_decay)
        self._restitution = float(restitution)
        self._arena_radius = float(arena_radius)
        self._arena_center = np.array(arena_center, dtype=np.float64)

        self.color = color if color is not None else TOP_PALETTE[0]
        self.selected = False
        self.collision_flash = 0.0
        self._should_remove = False

    # --- Immutable physical properties ---

    @property
    def radius(self) -> float:
        return self._radius

    @property
    def mass(self) -> float:
        return self._mass

    @property
    def gravity_strength(self) -> float:
        return self._gravity_strength

    @property
    def friction(self) -> float:
        return self._friction

    @property
    def velocity_decay(self) -> float:
        return self._velocity_decay

    @property
    def restitution(self) -> float:
        return self._restitution

    @property
    def arena_radius(self) -> float:
        return self._arena_radius

    @property
    def arena_center(self) -> np.ndarray:
        # Copy so callers cannot move the arena through the top.
        return self._arena_center.copy()

    # --- Lifecycle ---

    @property
    def should_remove(self) -> bool:
        return self._should_remove

    def mark_for_removal(self) -> None:
        """Flags the top for pruning at the end of the current step."""
        self._should_remove = True

    # --- Queries ---

    @property
    def speed(self) -> float:
        return math.hypot(self.velocity[0], self.velocity[1])

    def distance_from_center(self) -> float:
        return math.hypot(
            self.position[0] - self._arena_center[0],
            self.position[1] - self._arena_center[1]
        )

    def check_collision(self, other: "Top") -> bool:
        """Returns True if the two disks overlap. Touching does not count."""
        dx = other.position[0] - self.position[0]
        dy = other.position[1] - self.position[1]
        distance = math.sqrt(dx * dx + dy * dy)
        return distance < self._radius + other.radius

    def direction_vector(self) -> Tuple[float, float]:
        """
        Returns the unit vector of the current velocity.

        A top at rest has no direction; (0.0, 0.0) is returned and consumers
        pick their own default.
        """
        speed = self.speed
        if speed == 0:
            return (0.0, 0.0)
        return (float(self.velocity[0] / speed), float(self.velocity[1] / speed))

    def contains_point(self, point: Sequence[float]) -> bool:
        """True if the point lies on or inside the disk."""
        return math.hypot(point[0] - self.position[0], point[1] - self.position[1]) <= self._radius

    def snapshot(self) -> TopSnapshot:
        return TopSnapshot(
            x=float(self.position[0]),
            y=float(self.position[1]),
            vx=float(self.velocity[0]),
            vy=float(self.velocity[1]),
            angle=self.angle,
            angular_velocity=self.angular_velocity,
            radius=self._radius,
            selected=self.selected,
            collision_flash=self.collision_flash,
            color=self.color,
            direction=self.direction_vector(),
            speed=self.speed,
            distance_from_center=self.distance_from_center(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Flat dictionary of the current state, used for debug logging."""
        return {
            "position": (round(float(self.position[0]), 3), round(float(self.position[1]), 3)),
            "velocity": (round(float(self.velocity[0]), 4), round(float(self.velocity[1]), 4)),
            "angle": round(self.angle, 4),
            "angular_velocity": round(self.angular_velocity, 4),
            "collision_flash": round(self.collision_flash, 3),
            "selected": self.selected,
            "should_remove": self._should_remove,
        }

    def __repr__(self) -> str:
        return (
            f"Top(pos=({self.position[0]:.2f}, {self.position[1]:.2f}), "
            f"vel=({self.velocity[0]:.3f}, {self.velocity[1]:.3f}), "
            f"spin={self.angular_velocity:.3f})"
        )
