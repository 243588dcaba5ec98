# particle_image.py
"""
The interactive particle image component.

ParticleImage ties the pieces together for one image on one surface:
loading and sampling the image, the frame loop that steps and draws the
particles, and the pointer and resize listeners that feed it. A host mounts
it on a FrameScheduler and an EventSource and must call destroy() when the
component goes away.
"""
import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

import pygame

from constants import (
    DEFAULT_ALPHA_THRESHOLD, DEFAULT_DENSITY, DEFAULT_INTERACTION_RADIUS,
    DEFAULT_PARTICLE_SIZE, FPS
)
from cursor import CursorState
from particle import ParticleSystem
from sampler import ImageLoadError, ImageSource, describe_source, load_image
from scheduler import (
    EventSource, FrameLoop, FrameScheduler, POINTER_LEAVE, POINTER_MOVE, RESIZE
)
from simulation import Simulation
from utils import require_number
from visualization import ParticleRenderer

ContainerSize = Callable[[], Tuple[float, float]]

# --- Data Contracts ---
#
# class ParticleImage:
#   - __init__(self, source, alt, container_size, params=None, origin=(0, 0),
#              fps=FPS, clock=time.perf_counter):
#     - Inputs:
#       - source: Path, bytes or binary file-like holding the image.
#       - alt: Accessible description of the image.
#       - container_size: Callable returning the container's (w, h).
#       - params: Dictionary of particle_image parameters from config.json.
#       - origin: Container offset inside the window, used to turn window
#         pointer coordinates into surface coordinates.
#     - Raises: ValueError on invalid configuration.
#
#   - mount(self, scheduler, events) -> None:
#     - Side Effects: Binds pointer/resize listeners and schedules the image
#       load for the next tick.
#
#   - destroy(self) -> None:
#     - Side Effects: Stops the frame loop, cancels a pending load, removes
#       every listener and drops surface, image and particles. Idempotent.
#     - Invariants: After destroy no frame body runs and no listener fires.


class LoadState(Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"
    DESTROYED = "destroyed"


class ParticleImage:
    """
    Renders an image as a field of particles that scatter from the pointer.
    """
    def __init__(
        self,
        source: ImageSource,
        alt: str,
        container_size: ContainerSize,
        params: Optional[Dict[str, Any]] = None,
        origin: Tuple[int, int] = (0, 0),
        fps: float = FPS,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.params = dict(params or {})
        self.source = source
        self.alt = alt
        self.container_size = container_size
        self.origin = (int(origin[0]), int(origin[1]))
        self.clock = clock

        # Validate everything up front so bad config fails before mount.
        density = self.params.get('density', DEFAULT_DENSITY)
        if isinstance(density, bool) or not isinstance(density, int) or density < 1:
            msg = f"Configuration error: 'density' must be a positive integer, got {density!r}."
            logging.critical(msg)
            raise ValueError(msg)
        require_number(self.params, 'alpha_threshold', DEFAULT_ALPHA_THRESHOLD, low=0, high=255)
        require_number(self.params, 'particle_size', DEFAULT_PARTICLE_SIZE, low=0, low_inclusive=False)
        radius = require_number(
            self.params, 'interaction_radius', DEFAULT_INTERACTION_RADIUS, low=0, low_inclusive=False
        )
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}.")

        self.cursor = CursorState(radius)
        self.simulation = Simulation(self.cursor, self.params)
        self.renderer = ParticleRenderer()
        self.frame_budget_ms = 1000.0 / fps

        self.state = LoadState.LOADING
        self.image = None
        self.surface: Optional[pygame.Surface] = None
        self.particles: Optional[ParticleSystem] = None

        self.rendered_frames = 0
        self.slow_frames = 0
        self.last_frame_ms = 0.0
        self.resamples = 0

        self._scheduler: Optional[FrameScheduler] = None
        self._events: Optional[EventSource] = None
        self._loop: Optional[FrameLoop] = None
        self._load_handle: Optional[int] = None
        self._bindings = (
            (POINTER_MOVE, self._on_pointer_move),
            (POINTER_LEAVE, self._on_pointer_leave),
            (RESIZE, self._on_resize),
        )

    # --- Observable state ---

    @property
    def description(self) -> str:
        return self.alt

    @property
    def is_loading(self) -> bool:
        return self.state is LoadState.LOADING

    @property
    def ready(self) -> bool:
        return self.state is LoadState.READY

    @property
    def failed(self) -> bool:
        return self.state is LoadState.FAILED

    @property
    def frames(self) -> int:
        """Frame callbacks executed so far, idle frames included."""
        return self._loop.frames if self._loop is not None else 0

    @property
    def particle_count(self) -> int:
        return len(self.particles) if self.particles is not None else 0

    # --- Lifecycle ---

    def mount(self, scheduler: FrameScheduler, events: EventSource) -> None:
        if self.state is LoadState.DESTROYED:
            raise RuntimeError("A destroyed ParticleImage cannot be mounted again.")
        if self._scheduler is not None:
            raise RuntimeError("ParticleImage is already mounted.")

        self._scheduler = scheduler
        self._events = events
        for event_type, handler in self._bindings:
            events.add_listener(event_type, handler)

        self._load_handle = scheduler.request_frame(self._load)
        logging.info(f"ParticleImage '{self.alt}' mounted; loading {describe_source(self.source)}.")

    def _load(self) -> None:
        self._load_handle = None
        try:
            self.image = load_image(self.source)
        except ImageLoadError as e:
            self.state = LoadState.FAILED
            logging.error(f"ParticleImage '{self.alt}' failed to load: {e}")
            return

        self._init_particles()
        self.state = LoadState.READY
        self._loop = FrameLoop(
            self._scheduler, self._animate,
            name=f"ParticleImage '{self.alt}'", on_error=self._on_frame_error
        )
        self._loop.start()
        logging.info(f"ParticleImage '{self.alt}' ready with {self.particle_count} particles.")

    def _init_particles(self) -> None:
        """Sizes the surface to the container and replaces the whole population."""
        width, height = self.container_size()
        width, height = max(0, int(width)), max(0, int(height))
        self.resamples += 1

        if width == 0 or height == 0:
            self.surface = None
            self.particles = ParticleSystem.empty(self.params)
            logging.info(f"Container is {width}x{height}; rendering suspended.")
            return

        if self.surface is None or self.surface.get_size() != (width, height):
            self.surface = pygame.Surface((width, height), pygame.SRCALPHA)
        self.particles = ParticleSystem.from_image(self.image, width, height, self.params)

    def _animate(self) -> None:
        if self.surface is None or self.particles is None:
            return

        start = self.clock()
        self.simulation.step(self.particles)
        self.renderer.draw(self.surface, self.particles)
        self.last_frame_ms = (self.clock() - start) * 1000.0
        self.rendered_frames += 1

        if self.last_frame_ms > self.frame_budget_ms:
            self.slow_frames += 1
            if self.slow_frames == 1:
                logging.warning(
                    f"Frame took {self.last_frame_ms:.1f}ms, over the "
                    f"{self.frame_budget_ms:.1f}ms budget with {self.particle_count} particles."
                )

    def _on_frame_error(self, error: Exception) -> None:
        # The loop has already stopped and logged the traceback.
        self.state = LoadState.FAILED

    def destroy(self) -> None:
        if self.state is LoadState.DESTROYED:
            return

        if self._loop is not None:
            self._loop.stop()
        if self._scheduler is not None:
            self._scheduler.cancel_frame(self._load_handle)
        self._load_handle = None

        if self._events is not None:
            for event_type, handler in self._bindings:
                self._events.remove_listener(event_type, handler)

        self._scheduler = None
        self._events = None
        self.surface = None
        self.image = None
        self.particles = None
        self.state = LoadState.DESTROYED
        logging.info(f"ParticleImage '{self.alt}' destroyed.")

    # --- Input handlers (the only writers of self.cursor) ---

    def _on_pointer_move(self, event) -> None:
        self.cursor.move_to(event.x - self.origin[0], event.y - self.origin[1])

    def _on_pointer_leave(self, event=None) -> None:
        self.cursor.reset()

    def _on_resize(self, event=None) -> None:
        if self.state is not LoadState.READY:
            logging.debug(f"Ignoring resize while {self.state.value}.")
            return
        self._init_particles()
