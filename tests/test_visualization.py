from types import SimpleNamespace

import numpy as np
import pygame
import pytest

from constants import BACKGROUND_COLOR
from particle import ParticleSystem
from scheduler import EventSource, PointerEvent, POINTER_LEAVE, POINTER_MOVE, RESIZE
from visualization import ParticleRenderer, Visualizer


def make_particles(positions, colors, size=1.5):
    particles = ParticleSystem(
        np.zeros((len(positions), 2)),
        np.array(colors, dtype=np.uint8),
        10, 10,
        {"particle_size": size, "seed": 0},
    )
    particles.positions[:] = positions
    particles.render_colors[:] = colors
    return particles


@pytest.fixture
def surface():
    return pygame.Surface((10, 10), pygame.SRCALPHA)


def test_renderer_draws_squares_at_floored_positions(surface):
    particles = make_particles([(2.7, 3.2)], [(1, 2, 3)])

    drawn = ParticleRenderer().draw(surface, particles)

    assert drawn == 1
    for pixel in [(2, 3), (3, 3), (2, 4), (3, 4)]:
        assert tuple(surface.get_at(pixel)) == (1, 2, 3, 255)
    assert surface.get_at((4, 3)).a == 0
    assert surface.get_at((2, 5)).a == 0


def test_renderer_clips_offscreen_particles(surface):
    particles = make_particles([(-5.0, -5.0), (9.5, 9.5), (-0.5, 4.0)], [(9, 9, 9)] * 3)

    drawn = ParticleRenderer().draw(surface, particles)

    # The second is partially visible; the third overlaps column 0.
    assert drawn == 2
    assert tuple(surface.get_at((9, 9))) == (9, 9, 9, 255)
    assert tuple(surface.get_at((0, 4))) == (9, 9, 9, 255)


def test_renderer_clears_previous_frame(surface):
    renderer = ParticleRenderer()
    particles = make_particles([(1.0, 1.0)], [(50, 60, 70)], size=1)
    renderer.draw(surface, particles)

    particles.positions[:] = (6.0, 6.0)
    renderer.draw(surface, particles)

    assert surface.get_at((1, 1)).a == 0
    assert tuple(surface.get_at((6, 6))) == (50, 60, 70, 255)
    assert surface.get_at((7, 7)).a == 0


def test_renderer_handles_empty_population(surface):
    surface.fill((255, 0, 0, 255))

    assert ParticleRenderer().draw(surface, ParticleSystem.empty()) == 0
    assert pygame.surfarray.array_alpha(surface).sum() == 0


@pytest.fixture
def visualizer():
    vis = Visualizer(64, 48, caption="test")
    pygame.event.clear()
    yield vis
    vis.close()


@pytest.fixture
def recorded():
    events = EventSource()
    log = []
    for event_type in (POINTER_MOVE, POINTER_LEAVE, RESIZE):
        events.add_listener(event_type, lambda event, kind=event_type: log.append((kind, event)))
    return events, log


def test_pump_translates_pointer_events(visualizer, recorded):
    events, log = recorded
    pygame.event.post(pygame.event.Event(pygame.MOUSEMOTION, pos=(5, 6), rel=(0, 0), buttons=(0, 0, 0)))
    pygame.event.post(pygame.event.Event(pygame.WINDOWLEAVE))

    assert visualizer.pump_events(events)
    assert (POINTER_MOVE, PointerEvent(5, 6)) in log
    assert any(kind == POINTER_LEAVE for kind, _ in log)


def test_pump_reports_window_size_on_resize(visualizer, recorded):
    events, log = recorded
    pygame.event.post(pygame.event.Event(pygame.VIDEORESIZE, size=(64, 48), w=64, h=48))

    assert visualizer.pump_events(events)
    resizes = [event for kind, event in log if kind == RESIZE]
    assert resizes and tuple(resizes[-1]) == visualizer.size


def test_pump_stops_on_quit(visualizer, recorded):
    events, _ = recorded
    pygame.event.post(pygame.event.Event(pygame.QUIT))

    assert not visualizer.pump_events(events)


def test_draw_composites_ready_component(visualizer):
    layer = pygame.Surface((8, 8), pygame.SRCALPHA)
    layer.fill((255, 0, 0, 255))
    component = SimpleNamespace(
        is_loading=False, failed=False, surface=layer, origin=(4, 4), container_size=lambda: (8, 8)
    )

    visualizer.draw(component)

    assert tuple(visualizer.screen.get_at((5, 5)))[:3] == (255, 0, 0)
    assert tuple(visualizer.screen.get_at((0, 0)))[:3] == BACKGROUND_COLOR


def test_draw_shows_placeholder_while_loading(visualizer):
    component = SimpleNamespace(
        is_loading=True, failed=False, surface=None, origin=(0, 0), container_size=lambda: (64, 48)
    )

    visualizer.draw(component)

    assert tuple(visualizer.screen.get_at((0, 0)))[:3] == BACKGROUND_COLOR


def text_bounds(screen):
    """Bounding box (left, top, right, bottom) of everything off the background."""
    pixels = pygame.surfarray.array3d(screen)
    columns, rows = np.nonzero(np.any(pixels != BACKGROUND_COLOR, axis=2))
    return columns.min(), rows.min(), columns.max(), rows.max()


@pytest.mark.parametrize("loading, failed", [(True, False), (False, True)])
def test_placeholder_is_centered_in_the_container(loading, failed):
    vis = Visualizer(400, 100, caption="test")
    try:
        # The container is the right half of the window, below a 20px strip.
        component = SimpleNamespace(
            is_loading=loading, failed=failed, surface=None,
            origin=(200, 20), container_size=lambda: (200, 80),
        )

        vis.draw(component)

        left, top, right, bottom = text_bounds(vis.screen)
        assert left >= 200 and top >= 20
        assert abs((left + right) / 2 - 300) <= 6
        assert abs((top + bottom) / 2 - 60) <= 6
    finally:
        vis.close()
