# sampler.py
"""
Turns a raster image into particle descriptors.

The image is cover-fitted onto an offscreen RGBA buffer the size of the
target surface, then walked on a fixed stride. Every sampled pixel that is
opaque enough becomes one particle with a home position and a color.
"""
import io
import logging
import os
from typing import Any, BinaryIO, Tuple, Union

import numpy as np
from PIL import Image

from constants import DEFAULT_ALPHA_THRESHOLD, DEFAULT_DENSITY

ImageSource = Union[str, os.PathLike, bytes, BinaryIO]

# --- Data Contracts ---
#
# load_image(source: ImageSource) -> Image.Image:
#   - Inputs: a filesystem path, raw encoded bytes, or a binary file-like.
#   - Outputs: a fully decoded Pillow image in RGBA mode.
#   - Raises: ImageLoadError if the source cannot be read or decoded.
#
# cover_fit(image_size, surface_size) -> (draw_w, draw_h, offset_x, offset_y):
#   - Invariants: draw_w >= surface_w and draw_h >= surface_h (up to
#     rounding), aspect ratio preserved, scaled image centered.
#
# sample_image(image, width, height, density, alpha_threshold)
#     -> (homes, colors):
#   - Outputs:
#     - homes: float64 array of shape (N, 2), each row in
#       [0, width) x [0, height), row-major order (y outer, x inner).
#     - colors: uint8 array of shape (N, 3).
#   - Invariants: deterministic in (image, width, height, density,
#     alpha_threshold). Zero-area surfaces or images give N == 0.

class ImageLoadError(Exception):
    """Raised when an image source cannot be fetched or decoded."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"Could not load image {source}: {reason}")
        self.source = source
        self.reason = reason


def describe_source(source: Any) -> str:
    """Short human readable description of an image source for logs."""
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    if isinstance(source, (str, os.PathLike)):
        return os.fspath(source)
    return getattr(source, 'name', None) or repr(source)


def load_image(source: ImageSource) -> Image.Image:
    """
    Loads and decodes an image, returning an RGBA copy.

    Raises:
        ImageLoadError: If the source is missing, unreadable or not an image.
    """
    description = describe_source(source)
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    try:
        with Image.open(source) as img:
            img.load()
            rgba = img.convert('RGBA')
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageLoadError(description, str(e)) from e

    logging.info(f"Image loaded from {description} ({rgba.width}x{rgba.height}).")
    return rgba


def cover_fit(image_size: Tuple[int, int], surface_size: Tuple[int, int]) -> Tuple[int, int, int, int]:
    """
    Computes the scaled size and offset that make an image cover a surface.

    Both sizes must have a positive area; callers short-circuit otherwise.
    """
    img_w, img_h = image_size
    width, height = surface_size
    scale = max(width / img_w, height / img_h)

    draw_w = img_w * scale
    draw_h = img_h * scale
    offset_x = width / 2 - draw_w / 2
    offset_y = height / 2 - draw_h / 2

    return (
        max(1, int(round(draw_w))),
        max(1, int(round(draw_h))),
        int(round(offset_x)),
        int(round(offset_y)),
    )


def _empty_population() -> Tuple[np.ndarray, np.ndarray]:
    return np.zeros((0, 2), dtype=np.float64), np.zeros((0, 3), dtype=np.uint8)


def render_offscreen(image: Image.Image, width: int, height: int) -> np.ndarray:
    """Draws the cover-fitted image into a transparent buffer and reads it back."""
    draw_w, draw_h, offset_x, offset_y = cover_fit(image.size, (width, height))
    rgba = image if image.mode == 'RGBA' else image.convert('RGBA')
    scaled = rgba.resize((draw_w, draw_h), Image.BILINEAR)

    canvas = Image.new('RGBA', (width, height), (0, 0, 0, 0))
    canvas.paste(scaled, (offset_x, offset_y))
    logging.debug(
        f"Cover fit {image.width}x{image.height} -> {draw_w}x{draw_h} "
        f"at offset ({offset_x}, {offset_y}) on {width}x{height} surface."
    )
    return np.asarray(canvas, dtype=np.uint8)


def sample_image(
    image: Image.Image,
    width: int,
    height: int,
    density: int = DEFAULT_DENSITY,
    alpha_threshold: int = DEFAULT_ALPHA_THRESHOLD,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Reduces an image to the particle descriptors for a surface.

    Args:
        image (Image.Image): The decoded source bitmap.
        width (int): Surface width in pixels.
        height (int): Surface height in pixels.
        density (int): Sampling stride in both axes.
        alpha_threshold (int): Pixels must have alpha strictly above this.

    Returns:
        Tuple[np.ndarray, np.ndarray]: homes (N, 2) and colors (N, 3).
    """
    if isinstance(density, bool) or not isinstance(density, (int, np.integer)) or density < 1:
        raise ValueError(f"density must be a positive integer, got {density!r}.")
    if not 0 <= alpha_threshold <= 255:
        raise ValueError(f"alpha_threshold must lie in [0, 255], got {alpha_threshold!r}.")

    width, height = int(width), int(height)
    if width <= 0 or height <= 0 or image.width <= 0 or image.height <= 0:
        logging.debug(
            f"Skipping sampling for degenerate sizes: surface {width}x{height}, "
            f"image {image.width}x{image.height}."
        )
        return _empty_population()

    pixels = render_offscreen(image, width, height)

    sampled = pixels[::density, ::density]
    living = sampled[..., 3] > alpha_threshold
    rows, cols = np.nonzero(living)

    homes = np.column_stack((cols * density, rows * density)).astype(np.float64)
    colors = sampled[rows, cols, :3].astype(np.uint8)

    logging.debug(
        f"Sampled {homes.shape[0]} living pixels from "
        f"{sampled.shape[1]}x{sampled.shape[0]} grid (stride {density})."
    )
    return homes, colors
