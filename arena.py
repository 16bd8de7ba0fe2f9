# arena.py
"""
Owns the population of tops and advances it frame by frame.

This module defines the Arena class, the aggregate the rest of the
application talks to: the input layer spawns and selects tops through it,
the frame loop calls step(), and the renderer and the telemetry exporter
read its state.
"""
import logging
import math
import numpy as np
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Sequence, Tuple

from constants import (
    DEFAULT_ARENA_RADIUS, DEFAULT_ARENA_MARGIN, DEFAULT_TOP_RADIUS,
    DEFAULT_TOP_MASS, DEFAULT_GRAVITY_STRENGTH, DEFAULT_FRICTION,
    DEFAULT_VELOCITY_DECAY, DEFAULT_RESTITUTION, ARENA_FLASH_DECAY_PER_FRAME,
    TOP_PALETTE
)
from simulation import update_top
from top import Top

# --- Data Contracts ---
#
# class Arena:
#   - __init__(self, params: Dict[str, Any], rng: Optional[np.random.Generator] = None):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "arena_radius": float
#         - "arena_margin": float
#         - "top_radius", "top_mass": float
#         - "gravity_strength", "friction", "velocity_decay", "restitution": float
#         - "seed": Optional[int], ignored when rng is given
#       - rng: Optional random source shared by spawns and collisions.
#     - Side Effects: Validates the parameters, raising ValueError if invalid.
#
#   - spawn(self, point) -> Optional[Top]:
#     - Outputs: The new, selected top, or None if the point is outside.
#     - Side Effects: Deselects every other top.
#
#   - toggle_select(self, point) -> Optional[Top]:
#     - Outputs: The first top containing the point (its `selected` flag
#       flipped), or None.
#
#   - step(self) -> StepResult:
#     - Side Effects: Updates every top in index order, recomputes
#       flash_intensity, then prunes tops flagged for removal.
#     - Invariants: After step() no live top has should_remove set.


class StepResult(NamedTuple):
    """Outcome of one Arena.step()."""
    removed: int
    collided: bool


class Arena:
    """
    A circular arena and the ordered collection of tops spinning in it.
    """
    def __init__(self, params: Dict[str, Any], rng: Optional[np.random.Generator] = None):
        """
        Initializes an empty arena.

        Args:
            params (Dict[str, Any]): Simulation parameters from config.
            rng (Optional[np.random.Generator]): Random source. When omitted,
                one is created from params["seed"] (unseeded if absent).
        """
        self.radius = float(params.get('arena_radius', DEFAULT_ARENA_RADIUS))
        self.margin = float(params.get('arena_margin', DEFAULT_ARENA_MARGIN))
        self.center = np.array([self.radius + self.margin, self.radius + self.margin], dtype=np.float64)

        self.top_params = {
            'radius': float(params.get('top_radius', DEFAULT_TOP_RADIUS)),
            'mass': float(params.get('top_mass', DEFAULT_TOP_MASS)),
            'gravity_strength': float(params.get('gravity_strength', DEFAULT_GRAVITY_STRENGTH)),
            'friction': float(params.get('friction', DEFAULT_FRICTION)),
            'velocity_decay': float(params.get('velocity_decay', DEFAULT_VELOCITY_DECAY)),
            'restitution': float(params.get('restitution', DEFAULT_RESTITUTION)),
        }
        self._validate()

        self.rng = rng if rng is not None else np.random.default_rng(params.get('seed'))
        self.flash_intensity = 0.0
        self.frame = 0
        self._tops: List[Top] = []
        self._spawn_count = 0

        logging.info(
            f"Arena initialized: radius {self.radius:.1f}px, "
            f"center ({self.center[0]:.1f}, {self.center[1]:.1f})."
        )
        logging.debug(f"Top parameters: {self.top_params}")

    def _validate(self) -> None:
        problems = []
        if self.radius <= 0:
            problems.append(f"arena_radius must be positive, got {self.radius}")
        if self.margin < 0:
            problems.append(f"arena_margin must not be negative, got {self.margin}")
        if self.top_params['radius'] <= 0:
            problems.append(f"top_radius must be positive, got {self.top_params['radius']}")
        elif self.top_params['radius'] >= self.radius:
            problems.append(
                f"top_radius ({self.top_params['radius']}) must be smaller than "
                f"arena_radius ({self.radius})"
            )
        if self.top_params['mass'] <= 0:
            problems.append(f"top_mass must be positive, got {self.top_params['mass']}")
        for key in ('friction', 'velocity_decay'):
            value = self.top_params[key]
            if not 0 < value <= 1:
                problems.append(f"{key} must be in (0, 1], got {value}")

        if problems:
            msg = "Configuration error: " + "; ".join(problems) + "."
            logging.critical(msg)
            raise ValueError(msg)

    # --- Read access for renderers and telemetry ---

    @property
    def tops(self) -> Tuple[Top, ...]:
        return tuple(self._tops)

    def __len__(self) -> int:
        return len(self._tops)

    def __iter__(self) -> Iterator[Top]:
        return iter(tuple(self._tops))

    @property
    def selected_top(self) -> Optional[Top]:
        for top in self._tops:
            if top.selected:
                return top
        return None

    def contains_point(self, point: Sequence[float]) -> bool:
        """True if the point lies on or inside the arena circle."""
        return math.hypot(point[0] - self.center[0], point[1] - self.center[1]) <= self.radius

    # --- Input operations ---

    def spawn(self, point: Sequence[float]) -> Optional[Top]:
        """
        Adds a new top at the given point and makes it the selected one.

        Returns:
            Optional[Top]: The new top, or None if the point is outside the arena.
        """
        if not self.contains_point(point):
            logging.debug(f"Ignoring spawn outside the arena at {tuple(point)}.")
            return None

        for top in self._tops:
            top.selected = False

        color = TOP_PALETTE[self._spawn_count % len(TOP_PALETTE)]
        top = Top(point, self.radius, self.center, self.rng, color=color, **self.top_params)
        top.selected = True
        self._tops.append(top)
        self._spawn_count += 1

        logging.info(f"Spawned top #{self._spawn_count} at ({point[0]:.1f}, {point[1]:.1f}). Live tops: {len(self._tops)}.")
        logging.debug(f"New top state: {top.to_dict()}")
        return top

    def toggle_select(self, point: Sequence[float]) -> Optional[Top]:
        """
        Flips the selection of the top under the point.

        Returns:
            Optional[Top]: The top that was hit, or None if there is none.
        """
        if not self.contains_point(point):
            return None
        for top in self._tops:
            if top.contains_point(point):
                top.selected = not top.selected
                logging.debug(f"Top {'selected' if top.selected else 'deselected'}: {top!r}")
                return top
        return None

    # --- Frame update ---

    def step(self) -> StepResult:
        """
        Executes one frame of the simulation.
        """
        tops = self._tops

        # 1. Integrate every top in spawn order. The collision pass inside
        #    update_top reads and writes later tops of the same list.
        for index, top in enumerate(tops):
            update_top(top, tops, index, self.rng)

        # 2. Arena flash, including tops that are about to be pruned
        collided = any(top.collision_flash > 0 for top in tops)
        if collided:
            self.flash_intensity = 1.0
        else:
            self.flash_intensity = max(0.0, self.flash_intensity - ARENA_FLASH_DECAY_PER_FRAME)

        # 3. Prune
        survivors = [top for top in tops if not top.should_remove]
        removed = len(tops) - len(survivors)
        self._tops = survivors
        self.frame += 1

        if removed:
            logging.debug(f"Frame {self.frame}: removed {removed} top(s), {len(survivors)} remaining.")
        return StepResult(removed=removed, collided=collided)
