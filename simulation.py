# simulation.py
"""
Handles the per-frame physics of the particle image.

This module defines the Simulation class, which advances every particle of
a ParticleSystem by one frame. Particles near the pointer receive a
repulsion impulse; all others are pulled back toward their home by a damped
spring. Friction is applied to everyone, then positions are integrated.

The step is one frame. There is no fixed-timestep accumulator, so the
perceived speed of the motion depends on the frame rate.
"""
import logging
import numpy as np
from typing import Dict, Any, Optional
from numba import jit

from constants import (
    DEFAULT_EASE, DEFAULT_ENERGY_THRESHOLD, DEFAULT_FRICTION,
    DEFAULT_REPULSION_STRENGTH, ENERGY_BOOST, HOMING_DAMPING
)
from cursor import CursorState
from particle import ParticleSystem
from utils import require_number

# --- Data Contracts ---
#
# class Simulation:
#   - __init__(self, cursor: CursorState, params: Dict[str, Any]):
#     - Inputs:
#       - cursor: The CursorState shared with the input handlers (read only
#         from here).
#       - params: Dictionary of particle_image parameters from config.json.
#         - "repulsion_strength": float
#         - "ease": float
#         - "friction": float, in (0, 1)
#         - "energy_threshold": float
#     - Outputs: None
#
#   - step(self, particles: ParticleSystem) -> None:
#     - Side Effects: Modifies positions, velocities and render_colors of
#       the ParticleSystem in place.
#     - Invariants: Particle count, homes and sampled colors never change.
#       The step is deterministic given cursor and prior state.

@jit(nopython=True)
def repulsion_magnitude(distance, radius, strength):
    """
    Size of the repulsion impulse at a given pointer distance.

    Maximal at distance 0, falls linearly to 0 at the radius and stays 0
    beyond it.
    """
    if distance >= radius:
        return 0.0
    return strength * (radius - distance) / radius


@jit(nopython=True)
def _step_numba(
    positions, velocities, homes, colors, render_colors,
    cursor_x, cursor_y, radius, repulsion_strength, spring, friction,
    energy_threshold_sq, boost_r, boost_g
):
    """
    Numba-jitted function that advances every particle one frame and
    derives its color for this frame.
    """
    particle_count = positions.shape[0]
    for i in range(particle_count):
        dx = cursor_x - positions[i, 0]
        dy = cursor_y - positions[i, 1]
        distance = np.sqrt(dx * dx + dy * dy)

        if distance < radius:
            # At distance 0 the direction is undefined and no impulse is applied.
            if distance > 0.0:
                impulse = repulsion_magnitude(distance, radius, repulsion_strength)
                velocities[i, 0] -= dx / distance * impulse
                velocities[i, 1] -= dy / distance * impulse
        else:
            velocities[i, 0] -= (positions[i, 0] - homes[i, 0]) * spring
            velocities[i, 1] -= (positions[i, 1] - homes[i, 1]) * spring

        velocities[i, 0] *= friction
        velocities[i, 1] *= friction

        positions[i, 0] += velocities[i, 0]
        positions[i, 1] += velocities[i, 1]

        speed_sq = velocities[i, 0] ** 2 + velocities[i, 1] ** 2
        if speed_sq > energy_threshold_sq:
            render_colors[i, 0] = min(255, np.int64(colors[i, 0]) + boost_r)
            render_colors[i, 1] = min(255, np.int64(colors[i, 1]) + boost_g)
            render_colors[i, 2] = 255
        else:
            render_colors[i, 0] = colors[i, 0]
            render_colors[i, 1] = colors[i, 1]
            render_colors[i, 2] = colors[i, 2]


class Simulation:
    """
    Applies pointer repulsion, homing, friction and integration each frame.
    """
    def __init__(self, cursor: CursorState, params: Optional[Dict[str, Any]] = None):
        """
        Initializes the integrator.

        Args:
            cursor (CursorState): The shared pointer cell.
            params (Dict[str, Any]): Particle image parameters from config.
        """
        params = params or {}
        self.cursor = cursor
        self.repulsion_strength = require_number(params, 'repulsion_strength', DEFAULT_REPULSION_STRENGTH, low=0)
        self.ease = require_number(params, 'ease', DEFAULT_EASE, low=0, low_inclusive=False)
        self.friction = require_number(
            params, 'friction', DEFAULT_FRICTION,
            low=0, high=1, low_inclusive=False, high_inclusive=False
        )
        self.energy_threshold = require_number(params, 'energy_threshold', DEFAULT_ENERGY_THRESHOLD, low=0)

        self.spring = self.ease * HOMING_DAMPING
        # Compare squared speeds in the hot loop to avoid a sqrt per particle.
        self.energy_threshold_sq = self.energy_threshold ** 2
        self.steps = 0

        logging.info(
            f"Simulation initialized: radius {self.cursor.radius:.1f}px, "
            f"repulsion {self.repulsion_strength:.1f}, spring {self.spring:.3f}, "
            f"friction {self.friction:.2f}."
        )

    def step(self, particles: ParticleSystem) -> None:
        """
        Executes one frame of the simulation.
        """
        _step_numba(
            particles.positions, particles.velocities,
            particles.homes, particles.colors, particles.render_colors,
            self.cursor.x, self.cursor.y, self.cursor.radius,
            self.repulsion_strength, self.spring, self.friction,
            self.energy_threshold_sq, ENERGY_BOOST[0], ENERGY_BOOST[1]
        )
        self.steps += 1
