"""
Box Coloring and Color Space Conversion

Each emitted box gets its own flat color so neighbouring boxes stay
distinguishable in exported proxy meshes. glTF expects vertex colors in
linear space, so the sRGB palette is converted before export.
"""

import colorsys
import numpy as np
from numba import njit

# Golden-ratio hue stepping keeps consecutive boxes far apart on the wheel.
GOLDEN_RATIO_CONJUGATE = 0.618033988749895


@njit(cache=True)
def _srgb_to_linear_component(c: float) -> float:
    """Convert a single sRGB component [0, 1] to linear."""
    if c <= 0.04045:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


@njit(cache=True)
def srgb_to_linear(colors: np.ndarray) -> np.ndarray:
    """
    Convert sRGB colors to Linear color space.

    Args:
        colors: Array of shape (N, 4) with uint8 sRGB values

    Returns:
        Array of same shape with float32 Linear values [0, 1]; alpha is
        only normalized
    """
    n = colors.shape[0]
    result = np.empty((n, 4), dtype=np.float32)
    for i in range(n):
        for c in range(3):
            result[i, c] = _srgb_to_linear_component(colors[i, c] / 255.0)
        result[i, 3] = colors[i, 3] / 255.0
    return result


def box_palette(
    count: int,
    saturation: float = 0.55,
    value: float = 0.9,
    seed_hue: float = 0.0
) -> np.ndarray:
    """
    Generate one deterministic color per box.

    Args:
        count: Number of colors
        saturation: HSV saturation of every color
        value: HSV value of every color
        seed_hue: Hue of the first color in [0, 1)

    Returns:
        uint8 array of shape (count, 4), fully opaque
    """
    palette = np.empty((count, 4), dtype=np.uint8)
    for i in range(count):
        hue = (seed_hue + i * GOLDEN_RATIO_CONJUGATE) % 1.0
        r, g, b = colorsys.hsv_to_rgb(hue, saturation, value)
        palette[i] = (round(r * 255), round(g * 255), round(b * 255), 255)
    return palette
