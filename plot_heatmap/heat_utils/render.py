"""
Turn a finished frequency grid into a coloured image.

Grid cell (x, y) becomes pixel (x, y) of an RGBA image of the same size as the
grid. The value range used for colouring is either given explicitly or taken
from the grid's own histogram.
"""

from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageOps

from .frequency_grid import FrequencyGrid
from .gradient import Gradient


@dataclass(frozen=True)
class ValueRange:
    min: int
    max: int

    def __post_init__(self):
        if self.min > self.max:
            raise ValueError(f"Value range min {self.min} is larger than max {self.max}")

    def __iter__(self):
        return iter((self.min, self.max))

    def __str__(self):
        return f"{self.min}..{self.max}"

    @classmethod
    def parse(cls, text: str) -> "ValueRange":
        """
        Parse 'min..max' or 'min,max'.
        """
        text = str(text).strip()
        parts = text.split("..", 1) if ".." in text else text.split(",", 1)
        if len(parts) != 2:
            raise ValueError(f"Expected a value range as 'min..max' or 'min,max', got '{text}'")
        try:
            return cls(int(parts[0]), int(parts[1]))
        except ValueError as e:
            raise ValueError(f"Invalid value range '{text}': {e}") from e


@dataclass(frozen=True)
class RenderOptions:
    skip_zeros: bool = False
    vertical_flip: bool = False
    value_range: ValueRange | None = None
    report_histogram: bool = False


def resolve_range(grid: FrequencyGrid, options: RenderOptions) -> ValueRange:
    if options.value_range is not None:
        return options.value_range
    return ValueRange(
        *grid.histogram_range(
            report=options.report_histogram, skip_zeros=options.skip_zeros
        )
    )


def render(
    grid: FrequencyGrid,
    options: RenderOptions | None = None,
    gradient: Gradient | None = None,
) -> Image.Image:
    """
    Colour every cell of the grid. The grid is not modified.

    Args:

        grid: The frequency grid to draw
        options: Value range, zero skipping and flipping options
        gradient: Colour gradient, defaults to a blue to red hue gradient

    Returns:

        RGBA PIL image with the same width and height as the grid
    """
    options = options or RenderOptions()
    gradient = gradient or Gradient()
    value_range = resolve_range(grid, options)
    print(f"Using the value range: {value_range}")
    # images are indexed [row, col] so transpose the [x, y] cells
    values = grid.cells.T
    pixels = gradient.colors_for(values, value_range.min, value_range.max)
    if options.skip_zeros:
        pixels[values == 0] = 0
    image = Image.fromarray(np.ascontiguousarray(pixels))
    if options.vertical_flip:
        image = vertical_flip(image)
    return image


def vertical_flip(image: Image.Image) -> Image.Image:
    """Reverse the row order, for data whose y axis points up"""
    return ImageOps.flip(image)


def save_image(image: Image.Image, path: str):
    image.save(path, format="PNG")
    print(f"Saved heat map to {path}")
