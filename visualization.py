# visualization.py
"""
Handles drawing of the particle image using Pygame.

ParticleRenderer paints a ParticleSystem onto the component's own surface.
Visualizer is the host window: it owns the display, turns native Pygame
events into component events, and composites the component (or its
placeholder) every frame.
"""
import logging
import pygame
import numpy as np
from typing import Tuple, Optional

from constants import (
    BACKGROUND_COLOR, FAILED_TEXT, LOADING_TEXT, PLACEHOLDER_TEXT_COLOR
)
from particle import ParticleSystem
from scheduler import (
    EventSource, PointerEvent, ResizeEvent, POINTER_LEAVE, POINTER_MOVE, RESIZE
)

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from particle_image import ParticleImage


# --- Data Contracts ---
#
# class ParticleRenderer:
#   - draw(self, surface: pygame.Surface, particles: ParticleSystem) -> int:
#     - Inputs:
#       - surface: A per-pixel alpha surface.
#       - particles: The population to paint, using render_colors.
#     - Outputs: Number of particles with at least one visible pixel.
#     - Side Effects: Clears the surface to transparent, then paints a
#       filled square of side max(1, round(size)) at floor(position).
#
# class Visualizer:
#   - __init__(self, width: int, height: int, caption: str):
#     - Side Effects: Initializes Pygame and creates a resizable window.
#   - pump_events(self, events: EventSource) -> bool:
#     - Outputs: False if the user has quit, True otherwise.
#     - Side Effects: Dispatches pointermove / pointerleave / resize.
#   - draw(self, component: "ParticleImage") -> None


class ParticleRenderer:
    """
    Paints particles as small filled squares, vectorized through surfarray.
    """
    def draw(self, surface: pygame.Surface, particles: ParticleSystem) -> int:
        surface.fill((0, 0, 0, 0))
        if particles.particle_count == 0:
            return 0

        width, height = surface.get_size()
        side = max(1, int(round(particles.size)))
        corners = np.floor(particles.positions).astype(np.int64)
        colors = particles.render_colors
        visible = np.zeros(particles.particle_count, dtype=bool)

        # Writes go straight into the surface memory; the surface stays
        # locked until both views are released.
        rgb = pygame.surfarray.pixels3d(surface)
        alpha = pygame.surfarray.pixels_alpha(surface)
        try:
            for ox in range(side):
                xs = corners[:, 0] + ox
                x_inside = (xs >= 0) & (xs < width)
                for oy in range(side):
                    ys = corners[:, 1] + oy
                    inside = x_inside & (ys >= 0) & (ys < height)
                    rgb[xs[inside], ys[inside]] = colors[inside]
                    alpha[xs[inside], ys[inside]] = 255
                    visible |= inside
        finally:
            del rgb
            del alpha

        return int(np.count_nonzero(visible))


class Visualizer:
    """
    The host window that shows one particle image.
    """
    def __init__(self, width: int, height: int, caption: str = "Particle Image"):
        """
        Initializes Pygame and the display window.
        """
        pygame.init()
        pygame.font.init()

        self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)
        pygame.display.set_caption(caption)
        self.clock = pygame.time.Clock()

        # Use a clean sans-serif font. Pygame will fall back if 'Segoe UI' is not found.
        try:
            self.font_placeholder = pygame.font.SysFont("Segoe UI", 12)
        except pygame.error:
            logging.warning("Segoe UI font not found, falling back to default sans-serif.")
            self.font_placeholder = pygame.font.SysFont(None, 16)

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    @property
    def size(self) -> Tuple[int, int]:
        return self.screen.get_size()

    def pump_events(self, events: EventSource) -> bool:
        """
        Translates pending Pygame events into component events.

        Returns:
            bool: False if the application should exit, True otherwise.
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False

            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                logging.info("ESC key pressed. Shutting down visualizer.")
                return False

            if event.type == pygame.MOUSEMOTION:
                events.dispatch(POINTER_MOVE, PointerEvent(*event.pos))
            elif event.type == pygame.WINDOWLEAVE:
                events.dispatch(POINTER_LEAVE)
            elif event.type == pygame.VIDEORESIZE:
                # Use the actual surface size; never call set_mode() here
                surf = pygame.display.get_surface()
                if surf is not None:
                    self.screen = surf
                width, height = self.screen.get_size()
                logging.info(f"Window resized to {width}x{height}.")
                events.dispatch(RESIZE, ResizeEvent(width, height))

        return True

    def _draw_placeholder(self, text: str, origin: Tuple[int, int], size: Tuple[int, int]):
        """Centers a status line over the component's area."""
        text_surf = self.font_placeholder.render(text, True, PLACEHOLDER_TEXT_COLOR)
        area = pygame.Rect(origin, size)
        self.screen.blit(text_surf, text_surf.get_rect(center=area.center))

    def draw(self, component: "ParticleImage") -> None:
        """
        Composites the component over the background and flips the display.
        """
        self.screen.fill(BACKGROUND_COLOR)

        surface: Optional[pygame.Surface] = component.surface
        if component.is_loading or component.failed:
            # Centered in the container, not the window.
            width, height = component.container_size()
            text = LOADING_TEXT if component.is_loading else FAILED_TEXT
            self._draw_placeholder(text, component.origin, (max(0, int(width)), max(0, int(height))))
        elif surface is not None:
            self.screen.blit(surface, component.origin)

        pygame.display.flip()

    def close(self):
        """Shuts down Pygame."""
        pygame.font.quit()
        pygame.quit()
