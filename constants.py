# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They are fundamental to the application's framework, such as rendering
properties, default arena geometry, or the tuning constants of the top
physics that are not part of the experimental configuration.
"""

# --- Arena Geometry ---
DEFAULT_ARENA_RADIUS = 300
# Empty border between the arena circle and the canvas edge. The arena
# center sits at (radius + margin, radius + margin) in canvas coordinates.
DEFAULT_ARENA_MARGIN = 50

# --- Top Defaults ---
DEFAULT_TOP_RADIUS = 12
DEFAULT_TOP_MASS = 1.0
DEFAULT_GRAVITY_STRENGTH = 0.001
DEFAULT_FRICTION = 0.98
DEFAULT_VELOCITY_DECAY = 0.995
DEFAULT_RESTITUTION = 0.8
# Half-widths of the uniform ranges used at spawn time.
SPAWN_VELOCITY_RANGE = 1.0
SPAWN_SPIN_RANGE = 0.5

# --- Integrator Tuning ---
SPIRAL_STRENGTH = 0.2
SMOOTH_FACTOR = 0.8
FLASH_DECAY_PER_FRAME = 0.15
REST_SPEED_THRESHOLD = 0.1
REST_SPIN_THRESHOLD = 0.01
# Soft zone is this many top radii wide.
SOFT_ZONE_RADII = 2.0
BOUNDARY_PUSH_BACK = 0.3
REFLECTION_DAMPING = 0.85
REFLECTION_BLEND = 0.3

# --- Collision Tuning ---
SEPARATION_TOLERANCE = 0.1
RESTITUTION_BOOST = 2.0
SPIN_FORCE_SCALE = 1.5
MOTION_FORCE_SCALE = 1.2
PROXIMITY_FORCE_SCALE = 200.0
SPIN_TRANSFER_RATE = 0.3
SPIN_TRANSFER_SHARE = 0.8
IMPACT_SPIN_RATE = 0.5

# --- Arena Flash ---
ARENA_FLASH_DECAY_PER_FRAME = 0.12

# --- Telemetry ---
DEFAULT_TELEMETRY_PREFIX = "/stfs"
COLLISION_INTERVAL_MS = 50   # 20 Hz
STATE_INTERVAL_MS = 100      # 10 Hz
# Speed that maps to 1.0 in the normalized telemetry speed.
TELEMETRY_SPEED_SCALE = 10.0

# Visualization settings
FPS = 60
UI_PANEL_WIDTH = 300
BACKGROUND_COLOR = (26, 26, 26)  # Dark Gray
FLASH_COLOR = (255, 255, 255)
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
CENTER_DOT_RADIUS = 4

# --- Velocity Arrow ---
ARROW_BASE_LENGTH = 25
ARROW_MAX_LENGTH = 40
ARROW_SPEED_SCALE = 8
ARROW_HEAD_LENGTH = 8
# Below this speed the arrow points along +x instead of the velocity.
ARROW_MIN_SPEED = 0.01

# Number of spokes drawn on each top to make the spin visible.
TOP_SPOKES = 6

# Black and white palette. Successive spawns alternate between the two
# entries so neighbouring tops stay distinguishable.
TOP_PALETTE = [
    {"primary": (0, 0, 0), "secondary": (0, 0, 0), "accent": (255, 255, 255)},
    {"primary": (255, 255, 255), "secondary": (255, 255, 255), "accent": (0, 0, 0)},
]
