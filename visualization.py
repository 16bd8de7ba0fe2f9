# visualization.py
"""
Handles the visualization of the spinning top arena using Pygame.
"""
import logging
import math
import pygame
from typing import List, Optional, Sequence, Tuple

from constants import (
    UI_PANEL_WIDTH, BACKGROUND_COLOR, FLASH_COLOR, WHITE, BLACK,
    CENTER_DOT_RADIUS, ARROW_BASE_LENGTH, ARROW_MAX_LENGTH, ARROW_SPEED_SCALE,
    ARROW_HEAD_LENGTH, ARROW_MIN_SPEED, TOP_SPOKES
)
from arena import Arena
from top import Top, TopSnapshot

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from telemetry import TelemetryExporter


# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, arena: Arena, vis_params: Optional[dict] = None):
#     - Inputs:
#       - arena: The arena to draw. Its radius and margin size the canvas.
#       - vis_params: The "visualization" section of config.json.
#     - Side Effects: Initializes Pygame and creates a display surface.
#
#   - draw(self, arena: Arena, exporter: Optional[TelemetryExporter]) -> bool:
#     - Outputs:
#       - bool: False if the user has quit, True otherwise.
#     - Side Effects: Renders the arena, tops and info panel. Left clicks
#       inside the arena select a top or spawn a new one.
#
# handle_click(arena, point, exporter=None) -> Optional[Top]:
#   - Toggles the selection of the top under the point, otherwise spawns a
#     new top there and reports the spawn to the exporter.
#
# velocity_arrow(snapshot) -> (tip, left_barb, right_barb):
#   - Pure geometry of the direction arrow, drawn from the top's center.

Point = Tuple[float, float]


def handle_click(arena: Arena, point: Sequence[float], exporter: Optional["TelemetryExporter"] = None) -> Optional[Top]:
    """
    Applies a click to the arena. Returns the top that was selected or
    spawned, or None if the click was outside the arena.
    """
    top = arena.toggle_select(point)
    if top is not None:
        return top
    top = arena.spawn(point)
    if top is not None and exporter is not None:
        exporter.export_spawn(arena, top)
    return top


def velocity_arrow(snapshot: TopSnapshot) -> Tuple[Point, Point, Point]:
    """
    Computes the arrow showing a top's direction of travel.

    The arrow is at least ARROW_BASE_LENGTH long and grows with speed up to
    ARROW_MAX_LENGTH. A top that is (almost) at rest points along +x.
    """
    if snapshot.speed < ARROW_MIN_SPEED:
        dx, dy = 1.0, 0.0
    else:
        dx, dy = snapshot.direction

    length = max(ARROW_BASE_LENGTH, min(snapshot.speed * ARROW_SPEED_SCALE, ARROW_MAX_LENGTH))
    tip = (snapshot.x + dx * length, snapshot.y + dy * length)

    heading = math.atan2(dy, dx)
    left = (
        tip[0] - ARROW_HEAD_LENGTH * math.cos(heading - math.pi / 6),
        tip[1] - ARROW_HEAD_LENGTH * math.sin(heading - math.pi / 6),
    )
    right = (
        tip[0] - ARROW_HEAD_LENGTH * math.cos(heading + math.pi / 6),
        tip[1] - ARROW_HEAD_LENGTH * math.sin(heading + math.pi / 6),
    )
    return tip, left, right


def contrast_color(color: dict) -> Tuple[int, int, int]:
    """White for a black top, black for a white one."""
    return WHITE if color['primary'] == BLACK else BLACK


def info_lines(snapshot: TopSnapshot, arena_radius: float) -> List[Tuple[str, str]]:
    """Key/value rows of the selected-top info panel."""
    # The angle accumulates without bound; wrap it for display only.
    angle_deg = math.degrees(snapshot.angle % (2 * math.pi))
    return [
        ("Position", f"({snapshot.x:.2f}, {snapshot.y:.2f})"),
        ("Velocity", f"({snapshot.vx:.3f}, {snapshot.vy:.3f})"),
        ("Speed", f"{snapshot.speed:.3f} px/frame"),
        ("Direction", f"({snapshot.direction[0]:.3f}, {snapshot.direction[1]:.3f})"),
        ("Distance", f"{snapshot.distance_from_center / arena_radius:.2f} x radius"),
        ("Rotation", f"{angle_deg:.1f} deg"),
        ("Spin", f"{snapshot.angular_velocity:.3f} rad/frame"),
    ]


class Visualizer:
    """
    Renders the arena and its tops and turns mouse clicks into spawn and
    select actions.
    """
    def __init__(self, arena: Arena, vis_params: Optional[dict] = None):
        """
        Initializes Pygame and the display window.
        """
        pygame.init()
        pygame.font.init()

        vis_params = vis_params if vis_params is not None else {}
        self.show_arrows = vis_params.get('show_velocity_arrows', True)

        # The canvas is the arena circle plus its margin on every side
        self.canvas_size = int(2 * (arena.radius + arena.margin))
        width, height = self.canvas_size + UI_PANEL_WIDTH, self.canvas_size
        self.screen = pygame.display.set_mode((width, height))
        self.canvas = pygame.Surface((self.canvas_size, self.canvas_size))

        self.ui_panel_surface = pygame.Surface((UI_PANEL_WIDTH, height), pygame.SRCALPHA)
        self.ui_panel_surface.fill((40, 40, 40, 255))

        pygame.display.set_caption("Spinning Top Battle Arena")
        self.clock = pygame.time.Clock()

        try:
            self.font_title = pygame.font.SysFont("Segoe UI", 16, bold=True)
            self.font_main = pygame.font.SysFont("Segoe UI", 14)
        except pygame.error:
            logging.warning("Segoe UI font not found, falling back to default sans-serif.")
            self.font_title = pygame.font.SysFont(None, 20, bold=True)
            self.font_main = pygame.font.SysFont(None, 18)

        self.text_color_title = (255, 255, 255)
        self.text_color_key = (200, 200, 200)
        self.text_color_value = (255, 255, 255)

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    def _draw_arena(self, arena: Arena):
        flashing = arena.flash_intensity > 0
        self.canvas.fill(FLASH_COLOR if flashing else BACKGROUND_COLOR)

        line_color = BLACK if flashing else WHITE
        center = (int(arena.center[0]), int(arena.center[1]))
        pygame.draw.circle(self.canvas, line_color, center, int(arena.radius), 1)
        pygame.draw.circle(self.canvas, line_color, center, CENTER_DOT_RADIUS)

    def _draw_arrow(self, snapshot: TopSnapshot):
        tip, left, right = velocity_arrow(snapshot)
        color = WHITE if snapshot.selected else contrast_color(snapshot.color)
        start = (snapshot.x, snapshot.y)
        pygame.draw.line(self.canvas, color, start, tip)
        pygame.draw.line(self.canvas, color, tip, left)
        pygame.draw.line(self.canvas, color, tip, right)

    def _draw_top(self, snapshot: TopSnapshot):
        center = (snapshot.x, snapshot.y)
        radius = snapshot.radius
        primary = snapshot.color['primary']
        accent = snapshot.color['accent']

        pygame.draw.circle(self.canvas, primary, center, radius)
        pygame.draw.circle(self.canvas, accent, center, radius, 1)
        pygame.draw.circle(self.canvas, accent, center, radius * 0.6)
        pygame.draw.circle(self.canvas, WHITE, center, radius, 1)

        # Spokes turn at three times the body rotation so the spin reads clearly
        for i in range(TOP_SPOKES):
            spoke = snapshot.angle + (snapshot.angle * 2 + i * math.pi * 2 / TOP_SPOKES) % (math.pi * 2)
            color = WHITE if i % 2 == 0 else contrast_color(snapshot.color)
            inner = (center[0] + math.cos(spoke) * radius * 0.3, center[1] + math.sin(spoke) * radius * 0.3)
            outer = (center[0] + math.cos(spoke) * radius * 0.9, center[1] + math.sin(spoke) * radius * 0.9)
            pygame.draw.line(self.canvas, color, inner, outer)

        pygame.draw.circle(self.canvas, WHITE, center, 3)

        if snapshot.selected:
            pygame.draw.circle(self.canvas, WHITE, center, radius + 4, 1)

    def _draw_info_panel(self, arena: Arena):
        panel_x = self.canvas_size + 20
        y = 20
        line_height = self.font_main.get_linesize()

        title = self.font_title.render("Spinning Top Battle Arena", True, self.text_color_title)
        self.screen.blit(title, (panel_x, y))
        y += line_height * 2

        count = self.font_main.render(f"Total Tops: {len(arena)}", True, self.text_color_value)
        self.screen.blit(count, (panel_x, y))
        y += line_height * 2

        selected = arena.selected_top
        if selected is None:
            hint = self.font_main.render("Click inside the circle to spawn.", True, self.text_color_key)
            self.screen.blit(hint, (panel_x, y))
            return

        header = self.font_title.render("Selected Top", True, self.text_color_title)
        self.screen.blit(header, (panel_x, y))
        y += line_height + 4
        for key, value in info_lines(selected.snapshot(), arena.radius):
            self.screen.blit(self.font_main.render(f"{key}:", True, self.text_color_key), (panel_x, y))
            self.screen.blit(self.font_main.render(value, True, self.text_color_value), (panel_x + 90, y))
            y += line_height

    def draw(self, arena: Arena, exporter: Optional["TelemetryExporter"] = None) -> bool:
        """
        Draws the arena and UI, and handles events.

        Returns:
            bool: False if the simulation should exit, True otherwise.
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False

            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    logging.info("ESC key pressed. Shutting down visualizer.")
                    return False

            if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                if event.pos[0] < self.canvas_size:
                    handle_click(arena, event.pos, exporter)

        self._draw_arena(arena)

        snapshots = [top.snapshot() for top in arena]
        # Arrows first so the disks sit on top of them
        if self.show_arrows:
            for snapshot in snapshots:
                self._draw_arrow(snapshot)
        for snapshot in snapshots:
            self._draw_top(snapshot)

        self.screen.blit(self.canvas, (0, 0))
        self.screen.blit(self.ui_panel_surface, (self.canvas_size, 0))
        self._draw_info_panel(arena)

        pygame.display.flip()
        return True

    def tick(self, fps: int) -> None:
        self.clock.tick(fps)

    def close(self):
        """Shuts down Pygame."""
        pygame.font.quit()
        pygame.quit()
