import io
import os

# Must be set before pygame creates any window.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import numpy as np
import pytest
from PIL import Image

from particle import ParticleSystem


class Container:
    """Stands in for the host container; the tests resize it at will."""

    def __init__(self, width, height):
        self.width = width
        self.height = height

    def resize(self, width, height):
        self.width = width
        self.height = height

    def __call__(self):
        return self.width, self.height


@pytest.fixture
def solid_image():
    def make(width, height, color=(10, 20, 30), alpha=255):
        return Image.new("RGBA", (width, height), tuple(color) + (alpha,))
    return make


@pytest.fixture
def png_bytes():
    def encode(image):
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
    return encode


@pytest.fixture
def container():
    return Container(100, 100)


@pytest.fixture
def single_particle():
    """One particle with a known home; position and velocity set by the test."""
    def make(home=(50.0, 50.0), position=None, color=(10, 20, 30)):
        particles = ParticleSystem(
            np.array([home], dtype=np.float64),
            np.array([color], dtype=np.uint8),
            100, 100,
            {"seed": 0},
        )
        particles.positions[:] = position if position is not None else home
        return particles
    return make
