# particle.py
"""
Manages the state of all particles sampled from an image.

This module defines the ParticleSystem class, which stores particle data
(position, velocity, home, color) in NumPy arrays. A ParticleSystem is
never resized or re-homed: a new surface size means a new ParticleSystem.
"""
import logging
import numpy as np
from typing import Dict, Any, Optional

from PIL import Image

from constants import DEFAULT_ALPHA_THRESHOLD, DEFAULT_DENSITY, DEFAULT_PARTICLE_SIZE
from sampler import sample_image
from utils import require_number

# --- Data Contracts ---
#
# class ParticleSystem:
#   - __init__(self, homes, colors, width, height, params=None):
#     - Inputs:
#       - homes: float array of shape (N, 2), sampled home positions.
#       - colors: uint8 array of shape (N, 3), sampled RGB colors.
#       - width, height: int, surface dimensions used for the scatter.
#       - params: Dictionary of particle_image parameters from config.json.
#         - "seed": int or None
#         - "particle_size": float
#     - Side Effects: Initializes internal NumPy arrays for particle state.
#     - Invariants:
#       - self.positions is a float64 array of shape (N, 2), initially
#         uniform over [0, width) x [0, height).
#       - self.velocities is a float64 array of shape (N, 2), initially 0.
#       - self.homes (float64, (N, 2)) and self.colors (uint8, (N, 3))
#         are read-only.
#       - self.render_colors (uint8, (N, 3)) is rewritten every step.

class ParticleSystem:
    """
    A container for all particles, managing their state via NumPy arrays.
    """
    def __init__(
        self,
        homes: np.ndarray,
        colors: np.ndarray,
        width: int,
        height: int,
        params: Optional[Dict[str, Any]] = None,
    ):
        """
        Initializes the particle system.

        Args:
            homes (np.ndarray): Home positions, shape (N, 2).
            colors (np.ndarray): Sampled colors, shape (N, 3).
            width (int): The width of the surface.
            height (int): The height of the surface.
            params (Dict[str, Any]): Particle image parameters from config.
        """
        params = params or {}
        homes = np.ascontiguousarray(homes, dtype=np.float64).reshape(-1, 2).copy()
        colors = np.ascontiguousarray(colors, dtype=np.uint8).reshape(-1, 3).copy()
        if homes.shape[0] != colors.shape[0]:
            raise ValueError(
                f"homes and colors disagree on particle count: "
                f"{homes.shape[0]} != {colors.shape[0]}."
            )

        self.width = int(width)
        self.height = int(height)
        self.particle_count = homes.shape[0]
        self.size = require_number(params, 'particle_size', DEFAULT_PARTICLE_SIZE, low=0, low_inclusive=False)
        self.seed = params.get('seed')

        # The scatter is the only random draw; homes and colors are not random.
        self.rng = np.random.default_rng(self.seed)

        self.homes = homes
        self.homes.flags.writeable = False
        self.colors = colors
        self.colors.flags.writeable = False

        self.positions = self.rng.uniform(
            low=[0, 0],
            high=[max(self.width, 0), max(self.height, 0)],
            size=(self.particle_count, 2)
        )
        self.velocities = np.zeros((self.particle_count, 2), dtype=np.float64)
        self.render_colors = self.colors.copy()

        logging.info(
            f"ParticleSystem initialized with {self.particle_count} particles "
            f"on a {self.width}x{self.height} surface."
        )
        logging.debug(
            f"Particle data arrays created. "
            f"Positions shape: {self.positions.shape}, "
            f"Velocities shape: {self.velocities.shape}, "
            f"Homes shape: {self.homes.shape}"
        )

    @classmethod
    def from_image(
        cls,
        image: Image.Image,
        width: int,
        height: int,
        params: Optional[Dict[str, Any]] = None,
    ) -> "ParticleSystem":
        """Samples an image for a surface and builds the population from it."""
        params = params or {}
        homes, colors = sample_image(
            image,
            width,
            height,
            density=params.get('density', DEFAULT_DENSITY),
            alpha_threshold=params.get('alpha_threshold', DEFAULT_ALPHA_THRESHOLD),
        )
        return cls(homes, colors, width, height, params)

    @classmethod
    def empty(cls, params: Optional[Dict[str, Any]] = None) -> "ParticleSystem":
        """An empty population for a zero-area surface."""
        return cls(np.zeros((0, 2)), np.zeros((0, 3), dtype=np.uint8), 0, 0, params)

    def __len__(self) -> int:
        return self.particle_count

    def speeds(self) -> np.ndarray:
        """Per-particle speed, shape (N,)."""
        return np.linalg.norm(self.velocities, axis=1)
