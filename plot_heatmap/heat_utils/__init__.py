from .frequency_grid import (
    DegenerateRegion,
    FrequencyGrid,
    HeatMapError,
    IncompatibleDimensions,
    InvalidDimension,
)
from .gradient import Gradient, color_of
from .render import RenderOptions, ValueRange, render, vertical_flip
from .spatial_helpers import Region, fit_aspect_ratio, map_to_grid
