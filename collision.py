# collision.py
"""
Pairwise collision response between two tops.

The response is an impulse model that deliberately exaggerates the
textbook elastic collision: besides the restitution impulse, the spin of
both tops, their current speeds and their distance from the arena center
all add to how hard they push each other apart.
"""
import math
import numpy as np
from numba import jit

from constants import (
    SEPARATION_TOLERANCE, RESTITUTION_BOOST, SPIN_FORCE_SCALE,
    MOTION_FORCE_SCALE, PROXIMITY_FORCE_SCALE, SPIN_TRANSFER_RATE,
    SPIN_TRANSFER_SHARE, IMPACT_SPIN_RATE
)
from top import Top

# --- Data Contracts ---
#
# resolve_collision(a: Top, b: Top, rng: np.random.Generator) -> None:
#   - Inputs:
#     - a, b: Two tops for which a.check_collision(b) is True.
#     - rng: Random source for the impact spin perturbation.
#   - Outputs: None
#   - Side Effects: Moves both tops apart along the collision normal by half
#     the overlap each. Unless the pair is already separating, changes both
#     velocities and angular velocities and sets collision_flash = 1.0.
#   - Invariants: Coincident centers leave both tops untouched.


@jit(nopython=True)
def _enhanced_impulse_numba(
    relative_speed, restitution, total_mass,
    spin_a, radius_a, spin_b, radius_b,
    speed_a, speed_b,
    center_distance_a, center_distance_b, gravity_strength
):
    """
    Numba-jitted magnitude of the push applied along the collision normal.

    Sum of four terms: a boosted restitution impulse, spin feeding into
    linear repulsion, the tops' own speeds, and a bonus for collisions near
    the arena center. Never negative.
    """
    closing_speed = abs(relative_speed)

    base_impulse = (2.0 * closing_speed * restitution * RESTITUTION_BOOST) / total_mass
    spin_force = (spin_a * radius_a * 0.5 + spin_b * radius_b * 0.5) * SPIN_FORCE_SCALE
    motion_force = (speed_a + speed_b) * MOTION_FORCE_SCALE
    avg_center_distance = (center_distance_a + center_distance_b) / 2.0
    proximity_force = gravity_strength * avg_center_distance * PROXIMITY_FORCE_SCALE

    impulse = base_impulse + spin_force + motion_force + proximity_force
    if impulse < 0.0:
        return 0.0
    return impulse


def resolve_collision(a: Top, b: Top, rng: np.random.Generator) -> None:
    """
    Resolves an overlap between two tops in place.
    """
    delta = b.position - a.position
    distance = math.hypot(delta[0], delta[1])
    if distance == 0:
        # No normal is defined for coincident centers.
        return

    normal = delta / distance

    # 1. Positional correction, half the overlap each
    overlap = (a.radius + b.radius) - distance
    if overlap > 0:
        separation = normal * overlap * 0.5
        a.position -= separation
        b.position += separation

    # 2. Skip the impulse for pairs that are already moving apart
    relative_speed = float(np.dot(b.velocity - a.velocity, normal))
    if relative_speed > SEPARATION_TOLERANCE:
        return

    total_mass = a.mass + b.mass
    impulse = _enhanced_impulse_numba(
        relative_speed, a.restitution, total_mass,
        a.angular_velocity, a.radius, b.angular_velocity, b.radius,
        a.speed, b.speed,
        a.distance_from_center(), b.distance_from_center(), a.gravity_strength
    )

    # 3. Momentum exchange, always pushing the pair apart
    impulse_vector = normal * impulse
    a.velocity -= impulse_vector * (b.mass / total_mass)
    b.velocity += impulse_vector * (a.mass / total_mass)

    # 4. Spin exchange toward equal spin, plus a random kick
    closing_speed = abs(relative_speed)
    spin_transfer = closing_speed * SPIN_TRANSFER_RATE * SPIN_TRANSFER_SHARE
    spin_direction = float(np.sign(a.angular_velocity - b.angular_velocity))
    a.angular_velocity -= spin_direction * spin_transfer
    b.angular_velocity += spin_direction * spin_transfer

    impact_spin = closing_speed * IMPACT_SPIN_RATE
    a.angular_velocity += (rng.random() - 0.5) * impact_spin
    b.angular_velocity += (rng.random() - 0.5) * impact_spin

    a.collision_flash = 1.0
    b.collision_flash = 1.0
