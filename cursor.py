# cursor.py
"""
Pointer state shared between the input handlers and the integrator.

One CursorState belongs to one component instance. The input handlers of
that component are its only writer; the Simulation only reads it. Both run
on the same thread, so no synchronization is needed.
"""
import logging

from constants import DEFAULT_INTERACTION_RADIUS, FAR_SENTINEL


class CursorState:
    """Current pointer position in surface coordinates plus the interaction radius."""

    def __init__(self, radius: float = DEFAULT_INTERACTION_RADIUS):
        if radius <= 0:
            msg = f"Configuration error: interaction radius must be positive, got {radius}."
            logging.critical(msg)
            raise ValueError(msg)
        self.radius = float(radius)
        self.x, self.y = FAR_SENTINEL

    def move_to(self, x: float, y: float) -> None:
        self.x = float(x)
        self.y = float(y)

    def reset(self) -> None:
        """Parks the pointer far away so no particle is in range."""
        self.x, self.y = FAR_SENTINEL

    @property
    def is_far(self) -> bool:
        return (self.x, self.y) == FAR_SENTINEL

    def __repr__(self) -> str:
        return f"CursorState(x={self.x}, y={self.y}, radius={self.radius})"
