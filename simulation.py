# simulation.py
"""
Handles the per-frame update of a single top.

This module advances one top by one frame: spiral forcing toward the arena
center, decay, the two removal checks, soft containment at the arena wall,
and the collision pass against every later top in the arena.
"""
import logging
import math
import numpy as np
from typing import List
from numba import jit

from constants import (
    SPIRAL_STRENGTH, SMOOTH_FACTOR, FLASH_DECAY_PER_FRAME,
    REST_SPEED_THRESHOLD, REST_SPIN_THRESHOLD, SOFT_ZONE_RADII,
    BOUNDARY_PUSH_BACK, REFLECTION_DAMPING, REFLECTION_BLEND
)
from collision import resolve_collision
from top import Top

# --- Data Contracts ---
#
# update_top(top: Top, tops: List[Top], index: int, rng: np.random.Generator) -> None:
#   - Inputs:
#     - top: The top to advance. Must be tops[index].
#     - tops: The arena's live tops, in spawn order.
#     - index: Position of `top` within `tops`.
#     - rng: Random source forwarded to the collision resolver.
#   - Outputs: None
#   - Side Effects: Mutates `top`, and any later-indexed top it collides with.
#     Sets top.should_remove when the top has come to rest or left the arena.
#   - Invariants: Collisions are only resolved against tops[index + 1:], so
#     every pair is handled once per frame, by its lower-indexed member.
#
# The update is a single pass that mutates in place. A later top that was
# hit by an earlier one runs its own update with the already changed
# velocity, so the outcome depends on spawn order. This is intended.


@jit(nopython=True)
def _spiral_velocity_numba(px, py, cx, cy, vx, vy, angular_velocity, gravity_strength):
    """
    Numba-jitted spiral forcing. Returns the new (vx, vy).

    The tangential push follows the spin sign, the radial pull grows with
    the distance from the center; together they curl the top inward.
    """
    dx = cx - px
    dy = cy - py
    distance = math.sqrt(dx * dx + dy * dy)
    if distance > 0:
        to_center_x = dx / distance
        to_center_y = dy / distance
        # Perpendicular to the radial direction
        tangential_x = -to_center_y
        tangential_y = to_center_x

        spin_direction = np.sign(angular_velocity)
        tangential_force = abs(angular_velocity) * SPIRAL_STRENGTH
        vx += tangential_x * tangential_force * spin_direction * SMOOTH_FACTOR
        vy += tangential_y * tangential_force * spin_direction * SMOOTH_FACTOR

        gravity_force = gravity_strength * distance
        vx += to_center_x * gravity_force * SMOOTH_FACTOR
        vy += to_center_y * gravity_force * SMOOTH_FACTOR
    return vx, vy


@jit(nopython=True)
def _soft_boundary_numba(px, py, vx, vy, cx, cy, arena_radius, radius):
    """
    Numba-jitted soft containment at the arena wall.
    Returns the new (px, py, vx, vy).

    A top whose edge crosses the wall is nudged back, and if it is still
    heading outward its velocity is blended part of the way toward the
    damped reflection. The bounce therefore plays out over several frames.
    """
    distance = math.sqrt((px - cx) ** 2 + (py - cy) ** 2)
    penetration = distance + radius - arena_radius
    if penetration <= 0:
        return px, py, vx, vy

    soft_zone = radius * SOFT_ZONE_RADII
    softness = min(penetration / soft_zone, 1.0)

    angle = math.atan2(py - cy, px - cx)
    normal_x = math.cos(angle)
    normal_y = math.sin(angle)

    push_back = softness * BOUNDARY_PUSH_BACK
    px -= normal_x * push_back
    py -= normal_y * push_back

    toward_wall = vx * normal_x + vy * normal_y
    if toward_wall > 0:
        reflected_vx = vx - 2 * toward_wall * normal_x * REFLECTION_DAMPING
        reflected_vy = vy - 2 * toward_wall * normal_y * REFLECTION_DAMPING
        vx = vx * (1 - REFLECTION_BLEND) + reflected_vx * REFLECTION_BLEND
        vy = vy * (1 - REFLECTION_BLEND) + reflected_vy * REFLECTION_BLEND

    # Hard limit: the whole disk stays inside the wall
    limit = arena_radius - radius
    if math.sqrt((px - cx) ** 2 + (py - cy) ** 2) > limit:
        px = cx + normal_x * limit
        py = cy + normal_y * limit
    return px, py, vx, vy


def update_top(top: Top, tops: List[Top], index: int, rng: np.random.Generator) -> None:
    """
    Advances one top by a single frame.
    """
    if top.should_remove:
        return

    center = top.arena_center

    # 1. Spiral forcing
    vx, vy = _spiral_velocity_numba(
        top.position[0], top.position[1], center[0], center[1],
        top.velocity[0], top.velocity[1],
        top.angular_velocity, top.gravity_strength
    )
    top.velocity[0] = vx
    top.velocity[1] = vy

    # 2. Friction and decay
    top.velocity *= top.friction
    top.velocity *= top.velocity_decay
    top.angular_velocity *= top.velocity_decay
    top.collision_flash = max(0.0, top.collision_flash - FLASH_DECAY_PER_FRAME)

    # 3. A top that has run out of both motion and spin is retired
    if top.speed < REST_SPEED_THRESHOLD and abs(top.angular_velocity) < REST_SPIN_THRESHOLD:
        top.mark_for_removal()
        logging.debug(f"Top {index} came to rest at {top.position.round(2).tolist()}.")
        return

    # 4. Move
    top.position += top.velocity

    # 5. Fully outside the arena
    if top.distance_from_center() > top.arena_radius + top.radius:
        top.mark_for_removal()
        logging.debug(f"Top {index} left the arena at {top.position.round(2).tolist()}.")
        return

    # 6. Soft containment
    px, py, vx, vy = _soft_boundary_numba(
        top.position[0], top.position[1], top.velocity[0], top.velocity[1],
        center[0], center[1], top.arena_radius, top.radius
    )
    top.position[0] = px
    top.position[1] = py
    top.velocity[0] = vx
    top.velocity[1] = vy

    # 7. Collisions against later tops only
    for other_index in range(index + 1, len(tops)):
        other = tops[other_index]
        if other is not top and top.check_collision(other):
            resolve_collision(top, other, rng)

    # 8. Spin. Left unbounded; consumers reduce modulo 2*pi if they need to.
    top.angle += top.angular_velocity
