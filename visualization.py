# visualization.py
"""
Draws published coin pile snapshots with Pygame.

The visualizer is the presentation side of the engine's output contract: it
never reads physics state, only the RenderState tuples handed to it.
"""
import logging
import math
from typing import Callable, Dict, Optional, Sequence, Tuple

import pygame

from config import EngineConfig
from constants import (
    BACKGROUND_COLOR, COIN_COLOR, COIN_EDGE_COLOR, COUNT_FONT_SIZE,
    COUNT_TEXT_COLOR, DISPLAY_SCALE, FRONT_COIN_ASPECT_STEP, GLOW_COLOR,
    GLOW_FADE, GLOW_HOLD, GLOW_RAYS, GLOW_SCALE, GLOW_SPIN_PERIOD,
    HELP_FONT_SIZE, HELP_TEXT_COLOR, SIDE_COIN_ASPECT, VESSEL_BORDER_WIDTH,
    VESSEL_BOTTOM_COLOR, VESSEL_RIM_COLOR, VESSEL_TOP_COLOR, WINDOW_HEIGHT,
    WINDOW_WIDTH
)
from projector import RenderState
from variants import VARIANT_TABLE, Variant

# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, config: EngineConfig):
#     - Side Effects: Initializes Pygame and creates a display surface.
#   - draw(self, snapshot, count, on_command) -> bool:
#     - Inputs:
#       - snapshot: the last published RenderState tuples, in draw order.
#       - count: the true accumulated count (may exceed the pile's capacity).
#       - on_command: called with "add", "add_many", "remove",
#         "remove_many" or "reset" for each matching key press.
#     - Outputs: False if the user has quit, True otherwise.
#     - Side Effects: a rise in count since the previous call (re)starts the
#       golden glow behind the vessel.

KEY_COMMANDS = {
    pygame.K_UP: "add",
    pygame.K_SPACE: "add",
    pygame.K_PAGEUP: "add_many",
    pygame.K_DOWN: "remove",
    pygame.K_PAGEDOWN: "remove_many",
    pygame.K_r: "reset",
}


def shade_color(color: Tuple[int, int, int], brightness: float, contrast: float) -> Tuple[int, int, int]:
    """Applies a CSS-style brightness() then contrast() filter to an RGB colour."""
    shaded = []
    for channel in color:
        value = channel * brightness
        value = (value - 127.5) * contrast + 127.5
        shaded.append(int(min(max(round(value), 0), 255)))
    return tuple(shaded)


def coin_aspect(variant: Variant) -> float:
    """Width/height ratio used to draw a variant."""
    if variant.face == "side":
        return SIDE_COIN_ASPECT
    index = int(variant.variant_id.split("-")[1])
    return 1.0 - index * FRONT_COIN_ASPECT_STEP


def coin_shades(brightness: float, contrast: float) -> Tuple[Tuple[int, int, int], Tuple[int, int, int]]:
    """Fill and edge colours of a coin drawn at the given depth shading."""
    return (
        shade_color(COIN_COLOR, brightness, contrast),
        shade_color(COIN_EDGE_COLOR, brightness, contrast),
    )


def glow_alpha(elapsed: Optional[float]) -> int:
    """
    Opacity (0-255) of the rise glow `elapsed` seconds after the count went up.

    The glow fades in over GLOW_FADE, stays lit until GLOW_HOLD, then fades
    out over another GLOW_FADE. None means no rise has happened yet.
    """
    if elapsed is None or elapsed < 0:
        return 0
    if elapsed < GLOW_FADE:
        level = elapsed / GLOW_FADE
    elif elapsed < GLOW_HOLD:
        level = 1.0
    else:
        level = 1.0 - (elapsed - GLOW_HOLD) / GLOW_FADE
    return int(round(min(max(level, 0.0), 1.0) * 255))


def glow_angle(elapsed: float) -> float:
    """Clockwise spin of the glow in degrees, one full turn per GLOW_SPIN_PERIOD."""
    return (elapsed % GLOW_SPIN_PERIOD) / GLOW_SPIN_PERIOD * 360.0


class Visualizer:
    """
    Renders the vessel, the coin pile and a count overlay.
    """
    def __init__(self, config: EngineConfig):
        pygame.init()
        pygame.font.init()

        self.config = config
        self.screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT))
        pygame.display.set_caption("Coin Pile")
        self.clock = pygame.time.Clock()

        self.scale = DISPLAY_SCALE
        self.vessel_px = int(2 * config.container_radius * self.scale)
        self.vessel_origin = (
            (WINDOW_WIDTH - self.vessel_px) // 2,
            (WINDOW_HEIGHT - self.vessel_px) // 2,
        )
        self.coin_px = int(config.particle_diameter * self.scale)

        self.vessel_surface = pygame.Surface((self.vessel_px, self.vessel_px), pygame.SRCALPHA)
        self.background = self._pre_render_vessel_background()
        self.mask = self._pre_render_mask()
        self.glow = self._pre_render_glow()
        # Coin sprites keyed by (variant_id, fill, edge); depth shades repeat.
        self._coin_cache: Dict[Tuple, pygame.Surface] = {}

        self._last_count: Optional[int] = None
        self._rise_started: Optional[float] = None

        self.font_count = pygame.font.SysFont(None, COUNT_FONT_SIZE, bold=True)
        self.font_help = pygame.font.SysFont(None, HELP_FONT_SIZE)

        logging.info(
            f"Visualizer initialized ({WINDOW_WIDTH}x{WINDOW_HEIGHT}, "
            f"vessel {self.vessel_px}px, coin {self.coin_px}px)."
        )

    def _pre_render_vessel_background(self) -> pygame.Surface:
        """Vertical gradient filling the vessel square."""
        surface = pygame.Surface((self.vessel_px, self.vessel_px))
        for y in range(self.vessel_px):
            t = y / max(self.vessel_px - 1, 1)
            color = tuple(
                int(top + (bottom - top) * t)
                for top, bottom in zip(VESSEL_TOP_COLOR, VESSEL_BOTTOM_COLOR)
            )
            pygame.draw.line(surface, color, (0, y), (self.vessel_px, y))
        return surface

    def _pre_render_mask(self) -> pygame.Surface:
        """Opaque background everywhere except the vessel's inner circle."""
        mask = pygame.Surface((self.vessel_px, self.vessel_px), pygame.SRCALPHA)
        mask.fill((*BACKGROUND_COLOR, 255))
        half = self.vessel_px // 2
        pygame.draw.circle(mask, (0, 0, 0, 0), (half, half), half)
        return mask

    def _pre_render_glow(self) -> pygame.Surface:
        """Golden halo with soft rays, drawn once and rotated while shown."""
        size = int(self.vessel_px * GLOW_SCALE)
        surface = pygame.Surface((size, size), pygame.SRCALPHA)
        half = size // 2
        rings = 24
        for i in range(rings):
            radius = int(half * (1.0 - i / rings))
            alpha = int(90 * (i + 1) / rings)
            pygame.draw.circle(surface, (*GLOW_COLOR, alpha), (half, half), radius)

        rays = pygame.Surface((size, size), pygame.SRCALPHA)
        spread = math.pi / (GLOW_RAYS * 2)
        for i in range(GLOW_RAYS):
            angle = 2 * math.pi * i / GLOW_RAYS
            points = [
                (half, half),
                (half + half * math.cos(angle - spread), half + half * math.sin(angle - spread)),
                (half + half * math.cos(angle + spread), half + half * math.sin(angle + spread)),
            ]
            pygame.draw.polygon(rays, (*GLOW_COLOR, 60), points)
        surface.blit(rays, (0, 0))
        return surface

    def _pre_render_coin(self, variant: Variant, brightness: float, contrast: float) -> pygame.Surface:
        fill, edge = coin_shades(brightness, contrast)
        key = (variant.variant_id, fill, edge)
        surface = self._coin_cache.get(key)
        if surface is None:
            surface = pygame.Surface((self.coin_px, self.coin_px), pygame.SRCALPHA)
            width = max(int(self.coin_px * coin_aspect(variant)), 2)
            rect = pygame.Rect((self.coin_px - width) // 2, 0, width, self.coin_px)
            pygame.draw.ellipse(surface, fill, rect)
            pygame.draw.ellipse(surface, edge, rect, 2)
            self._coin_cache[key] = surface
        return surface

    def _track_rise(self, count: int, now: float) -> None:
        if self._last_count is not None and count > self._last_count:
            self._rise_started = now
        self._last_count = count

    def _draw_glow(self, center: Tuple[int, int], now: float) -> None:
        elapsed = None if self._rise_started is None else now - self._rise_started
        alpha = glow_alpha(elapsed)
        if alpha == 0:
            return
        rotated = pygame.transform.rotate(self.glow, -glow_angle(elapsed))
        rotated.set_alpha(alpha)
        self.screen.blit(rotated, rotated.get_rect(center=center))

    def _draw_coins(self, snapshot: Sequence[RenderState], variants: Dict[str, Variant]) -> None:
        for state in snapshot:
            coin = self._pre_render_coin(variants[state.variant_id], state.brightness, state.contrast)
            # Pygame rotates counter-clockwise; screen-space rotation is clockwise.
            rotated = pygame.transform.rotate(coin, -state.rotation_degrees)
            center = (int(state.position[0] * self.scale), int(state.position[1] * self.scale))
            self.vessel_surface.blit(rotated, rotated.get_rect(center=center))

    def _draw_overlay(self, count: int) -> None:
        text = self.font_count.render(str(count), True, COUNT_TEXT_COLOR)
        x = WINDOW_WIDTH // 2
        y = self.vessel_origin[1] + self.vessel_px // 5
        self.screen.blit(text, text.get_rect(center=(x, y)))

        help_text = self.font_help.render(
            "Up/Space +1   Down -1   PgUp/PgDn 5   R reset   Esc quit", True, HELP_TEXT_COLOR
        )
        self.screen.blit(help_text, help_text.get_rect(midbottom=(x, WINDOW_HEIGHT - 8)))

    def draw(self, snapshot: Sequence[RenderState], count: int,
             on_command: Callable[[str], None]) -> bool:
        """
        Draws one frame and handles events.

        Returns:
            bool: False if the viewer should exit, True otherwise.
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False
            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    logging.info("ESC key pressed. Shutting down visualizer.")
                    return False
                command = KEY_COMMANDS.get(event.key)
                if command is not None:
                    on_command(command)

        now = pygame.time.get_ticks() / 1000.0
        self._track_rise(count, now)
        center = (
            self.vessel_origin[0] + self.vessel_px // 2,
            self.vessel_origin[1] + self.vessel_px // 2,
        )

        self.screen.fill(BACKGROUND_COLOR)
        self._draw_glow(center, now)

        self.vessel_surface.blit(self.background, (0, 0))
        self._draw_coins(snapshot, {v.variant_id: v for v in VARIANT_TABLE})
        self.vessel_surface.blit(self.mask, (0, 0))
        self.screen.blit(self.vessel_surface, self.vessel_origin)

        rim_width = VESSEL_BORDER_WIDTH * self.scale
        pygame.draw.circle(
            self.screen, VESSEL_RIM_COLOR, center, self.vessel_px // 2 + rim_width, rim_width
        )

        self._draw_overlay(count)
        pygame.display.flip()
        return True

    def close(self):
        """Shuts down Pygame."""
        pygame.font.quit()
        pygame.quit()
