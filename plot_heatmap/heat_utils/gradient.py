"""
Colour gradients for the heat map.

A value is placed in [min, max] as a ratio between 0 and 1, and the ratio picks
a colour between color1 (at min) and color2 (at max). Two modes are supported:

- hue: interpolate hue, saturation and brightness (HSV) between the two colours
- color: interpolate red, green, blue and alpha directly

Values outside [min, max] are clamped to the nearest end. When min == max every
value maps to color1.
"""

from dataclasses import dataclass

import numpy as np
from matplotlib import colors as mcolors

HUE = "hue"
COLOR = "color"
GRADIENT_MODES = (HUE, COLOR)


def parse_color(color) -> tuple[float, float, float, float]:
    """
    Parse a colour given as a name ('blue'), hex string ('#ff0000', '#ff000080')
    or tuple of floats in [0, 1]. Returns an (r, g, b, a) tuple of floats.
    """
    if isinstance(color, str) and color and color[0] != "#" and _is_hex(color):
        # allow 'ff0000' without the leading hash
        color = "#" + color
    try:
        return mcolors.to_rgba(color)
    except ValueError as e:
        raise ValueError(f"Invalid colour '{color}'") from e


def _is_hex(text: str) -> bool:
    return len(text) in (6, 8) and all(c in "0123456789abcdefABCDEF" for c in text)


@dataclass(frozen=True)
class Gradient:
    color1: tuple = (0.0, 0.0, 1.0, 1.0)
    color2: tuple = (1.0, 0.0, 0.0, 1.0)
    mode: str = HUE

    def __post_init__(self):
        if self.mode not in GRADIENT_MODES:
            raise ValueError(
                f"Unknown gradient '{self.mode}', must be one of {GRADIENT_MODES}"
            )
        object.__setattr__(self, "color1", parse_color(self.color1))
        object.__setattr__(self, "color2", parse_color(self.color2))

    def colors_for(self, values, vmin: int, vmax: int) -> np.ndarray:
        """
        Colours for an array of values.

        Args:

            values: Array of values, any shape
            vmin: Value mapped to color1
            vmax: Value mapped to color2

        Returns:

            uint8 array of shape values.shape + (4,) holding RGBA
        """
        values = np.asarray(values, dtype=np.float64)
        if vmax == vmin:
            ratio = np.zeros_like(values)
        else:
            ratio = np.clip((values - vmin) / (vmax - vmin), 0.0, 1.0)
        ratio = ratio[..., np.newaxis]
        c1 = np.array(self.color1)
        c2 = np.array(self.color2)
        if self.mode == HUE:
            hsv1 = mcolors.rgb_to_hsv(c1[:3])
            hsv2 = mcolors.rgb_to_hsv(c2[:3])
            rgb = mcolors.hsv_to_rgb(hsv1 + (hsv2 - hsv1) * ratio)
            alpha = c1[3] + (c2[3] - c1[3]) * ratio
            rgba = np.concatenate([rgb, alpha], axis=-1)
        else:
            rgba = c1 + (c2 - c1) * ratio
        return np.round(rgba * 255).astype(np.uint8)

    def color_of(self, value: int, vmin: int, vmax: int) -> tuple[int, int, int, int]:
        return tuple(int(c) for c in self.colors_for(value, vmin, vmax))


def color_of(value: int, vmin: int, vmax: int, gradient: Gradient | None = None):
    """Colour of a single value, using the default blue to red hue gradient if none given"""
    return (gradient or Gradient()).color_of(value, vmin, vmax)
