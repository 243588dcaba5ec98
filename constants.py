# constants.py
"""
Application-level constants.

These values are static and do not change between runs. They are the
fallback values for every tunable in config.json, plus rendering properties
of the host window that are not part of the experimental configuration.
"""

# Visualization settings
DEFAULT_WINDOW_WIDTH = 480
DEFAULT_WINDOW_HEIGHT = 640
FPS = 60
BACKGROUND_COLOR = (24, 24, 27) # Zinc 900
PLACEHOLDER_TEXT_COLOR = (107, 114, 128) # Gray 500
LOADING_TEXT = "Loading particles..."
FAILED_TEXT = "Image unavailable"

# --- Sampling ---
# Skip pixels for performance (higher = fewer particles).
DEFAULT_DENSITY = 6
# Pixels with alpha at or below this value are background and never sampled.
DEFAULT_ALPHA_THRESHOLD = 128
# Side length of a rendered particle in pixels.
DEFAULT_PARTICLE_SIZE = 1.5

# --- Physics ---
DEFAULT_INTERACTION_RADIUS = 80.0
DEFAULT_REPULSION_STRENGTH = 30.0
# The homing spring coefficient is EASE * HOMING_DAMPING.
DEFAULT_EASE = 0.15
HOMING_DAMPING = 0.5
DEFAULT_FRICTION = 0.85
# Speed above which a particle is drawn in its energized color.
DEFAULT_ENERGY_THRESHOLD = 0.5
# Additive boost applied to (r, g) of energized particles; blue is pinned to 255.
ENERGY_BOOST = (100, 200)

# Pointer coordinate used when no pointer is over the surface.
FAR_SENTINEL = (-9999.0, -9999.0)
