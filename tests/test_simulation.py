import numpy as np
import pytest

from constants import FAR_SENTINEL
from cursor import CursorState
from simulation import Simulation


@pytest.fixture
def cursor():
    return CursorState(radius=80.0)


@pytest.fixture
def simulation(cursor):
    return Simulation(cursor, {})


def test_cursor_starts_far_away(cursor):
    assert (cursor.x, cursor.y) == FAR_SENTINEL
    assert cursor.is_far

    cursor.move_to(3, 4)
    assert not cursor.is_far

    cursor.reset()
    assert cursor.is_far


def test_particle_converges_home_when_cursor_is_far(simulation, single_particle):
    particles = single_particle(home=(50.0, 50.0), position=(300.0, -120.0))

    for _ in range(600):
        simulation.step(particles)

    assert np.allclose(particles.positions[0], (50.0, 50.0), atol=1e-3)

    for _ in range(200):
        simulation.step(particles)
        assert np.allclose(particles.positions[0], (50.0, 50.0), atol=1e-3)
    assert np.linalg.norm(particles.velocities[0]) < 1e-3


def test_particle_at_home_stays_put(simulation, single_particle):
    particles = single_particle(home=(20.0, 30.0))

    simulation.step(particles)

    assert particles.positions[0].tolist() == [20.0, 30.0]
    assert particles.velocities[0].tolist() == [0.0, 0.0]


def test_repulsion_pushes_away_from_cursor(simulation, cursor, single_particle):
    particles = single_particle(home=(10.0, 0.0))
    cursor.move_to(0.0, 0.0)

    simulation.step(particles)

    # force (80 - 10) / 80, strength 30, then friction 0.85.
    expected_vx = 0.875 * 30 * 0.85
    assert particles.velocities[0, 0] == pytest.approx(expected_vx)
    assert particles.velocities[0, 1] == pytest.approx(0.0)
    assert particles.positions[0, 0] == pytest.approx(10.0 + expected_vx)


def test_repulsion_replaces_homing_inside_radius(simulation, cursor, single_particle):
    # Home is far from the particle, but the pointer is close: only
    # repulsion applies this frame.
    particles = single_particle(home=(500.0, 0.0), position=(0.0, 40.0))
    cursor.move_to(0.0, 0.0)

    simulation.step(particles)

    assert particles.velocities[0, 0] == pytest.approx(0.0)
    assert particles.velocities[0, 1] > 0


def test_no_repulsion_at_or_beyond_radius(simulation, cursor, single_particle):
    particles = single_particle(home=(90.0, 0.0), position=(80.0, 0.0))
    cursor.move_to(0.0, 0.0)

    simulation.step(particles)

    # Homing only: -(80 - 90) * 0.075, then friction.
    assert particles.velocities[0, 0] == pytest.approx(10 * 0.075 * 0.85)


def test_particle_exactly_at_cursor_gets_no_impulse(simulation, cursor, single_particle):
    particles = single_particle(home=(25.0, 25.0))
    cursor.move_to(25.0, 25.0)

    simulation.step(particles)

    assert np.all(np.isfinite(particles.positions))
    assert particles.velocities[0].tolist() == [0.0, 0.0]


@pytest.mark.parametrize("radius, strength", [(80.0, 30.0), (40.0, 12.0)])
def test_repulsion_falls_off_linearly_with_distance(radius, strength, single_particle):
    cursor = CursorState(radius=radius)
    simulation = Simulation(cursor, {"repulsion_strength": strength})
    cursor.move_to(0.0, 0.0)
    distances = [1e-10, 1e-9, 1e-6, 1.0, radius / 8, radius / 2, radius - 1e-3]

    impulses = []
    for distance in distances:
        particles = single_particle(home=(distance, 0.0))
        simulation.step(particles)
        impulses.append(particles.velocities[0, 0] / simulation.friction)

    for distance, impulse in zip(distances, impulses):
        assert impulse == pytest.approx(strength * (radius - distance) / radius, rel=1e-9)
    # Strongest right next to the pointer, even at sub-nanometre distances.
    assert all(a > b for a, b in zip(impulses, impulses[1:]))


def test_fast_particles_use_energized_color(simulation, cursor, single_particle):
    particles = single_particle(home=(10.0, 0.0), color=(10, 20, 30))
    cursor.move_to(0.0, 0.0)

    simulation.step(particles)

    assert particles.render_colors[0].tolist() == [110, 220, 255]
    assert particles.colors[0].tolist() == [10, 20, 30]


def test_energized_color_saturates(simulation, cursor, single_particle):
    particles = single_particle(home=(10.0, 0.0), color=(200, 100, 0))
    cursor.move_to(0.0, 0.0)

    simulation.step(particles)

    assert particles.render_colors[0].tolist() == [255, 255, 255]


def test_settled_particles_use_sampled_color(simulation, cursor, single_particle):
    particles = single_particle(home=(10.0, 0.0), color=(10, 20, 30))
    cursor.move_to(0.0, 0.0)
    simulation.step(particles)

    cursor.reset()
    for _ in range(300):
        simulation.step(particles)

    assert particles.render_colors[0].tolist() == [10, 20, 30]


def test_step_is_deterministic(cursor, single_particle):
    first = single_particle(home=(40.0, 40.0), position=(10.0, 70.0))
    second = single_particle(home=(40.0, 40.0), position=(10.0, 70.0))
    simulation = Simulation(cursor, {})
    cursor.move_to(30.0, 50.0)

    for _ in range(25):
        simulation.step(first)
        simulation.step(second)

    assert np.array_equal(first.positions, second.positions)
    assert np.array_equal(first.velocities, second.velocities)


def test_empty_population_steps_safely(simulation):
    from particle import ParticleSystem

    particles = ParticleSystem.empty()
    simulation.step(particles)

    assert simulation.steps == 1


@pytest.mark.parametrize("params", [
    {"friction": 1.0},
    {"friction": 0.0},
    {"ease": 0.0},
    {"repulsion_strength": -1.0},
    {"energy_threshold": "fast"},
])
def test_invalid_parameters_are_rejected(cursor, params):
    with pytest.raises(ValueError):
        Simulation(cursor, params)


def test_cursor_radius_must_be_positive():
    with pytest.raises(ValueError):
        CursorState(radius=0)
