"""
Functions for moving between real world coordinates and grid cells.

The main functions in this module are:
- `map_to_grid`: Converts a real world point to the (x, y) cell it falls in.
- `map_to_grid_array`: The same for whole arrays of points.
- `fit_aspect_ratio`: Shrinks the image size so that it has the same aspect ratio as the draw region.
- `get_bbox`: Bounding box of a set of shape MBRs.
"""

from dataclasses import dataclass

import numpy as np

from .frequency_grid import DegenerateRegion


@dataclass(frozen=True)
class Region:
    """Axis aligned rectangle in real world coordinates"""

    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    def is_degenerate(self) -> bool:
        return self.width == 0 or self.height == 0

    def buffer(self, dx: float, dy: float) -> "Region":
        return Region(self.x1 - dx, self.y1 - dy, self.x2 + dx, self.y2 + dy)

    def union(self, other: "Region | None") -> "Region":
        if other is None:
            return self
        return Region(
            min(self.x1, other.x1),
            min(self.y1, other.y1),
            max(self.x2, other.x2),
            max(self.y2, other.y2),
        )

    @classmethod
    def parse(cls, text: str) -> "Region":
        """
        Parse 'x1,y1,x2,y2'. Corners may be given in any order.
        """
        parts = [p for p in str(text).replace(" ", "").split(",") if p]
        if len(parts) != 4:
            raise ValueError(f"Expected a region as 'x1,y1,x2,y2', got '{text}'")
        x1, y1, x2, y2 = (float(p) for p in parts)
        return cls(min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2))


def java_round(values):
    """Round half up, so 2.5 -> 3 and -2.5 -> -2"""
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5).astype(np.int64)


def check_region(region: Region):
    if region.is_degenerate():
        raise DegenerateRegion(
            f"Draw region {region} has zero width or height, cannot map points onto it"
        )


def map_to_grid(point, region: Region, image_width: int, image_height: int):
    """
    Get the grid cell for a real world point.

    Args:

        point: (x, y) tuple in real world coordinates
        region: Region being drawn
        image_width: Width of the grid in cells
        image_height: Height of the grid in cells

    Returns:

        (x, y) cell coordinates, which may be outside the grid
    """
    check_region(region)
    x, y = point
    return (
        int(java_round((x - region.x1) * image_width / region.width)),
        int(java_round((y - region.y1) * image_height / region.height)),
    )


def map_to_grid_array(xs, ys, region: Region, image_width: int, image_height: int):
    check_region(region)
    xs = np.asarray(xs, dtype=np.float64)
    ys = np.asarray(ys, dtype=np.float64)
    return (
        java_round((xs - region.x1) * image_width / region.width),
        java_round((ys - region.y1) * image_height / region.height),
    )


def fit_aspect_ratio(
    region_width: float,
    region_height: float,
    max_image_width: int,
    max_image_height: int,
    even: bool = False,
) -> tuple[int, int]:
    """
    Shrink one side of the image so it has the same aspect ratio as the region.
    The other side keeps its maximum size.

    Args:

        region_width: Width of the draw region (real world units)
        region_height: Height of the draw region
        max_image_width: Largest allowed image width
        max_image_height: Largest allowed image height
        even: Round the recomputed side down to an even number (some video encoders need this)

    Returns:

        (width, height) of the image
    """
    if region_width == 0 or region_height == 0:
        raise DegenerateRegion(
            f"Cannot fit an image to a {region_width}x{region_height} region"
        )
    width, height = int(max_image_width), int(max_image_height)
    if region_width / region_height > width / height:
        height = _fitted_side(region_height * width / region_width, even)
    else:
        width = _fitted_side(region_width * height / region_height, even)
    return width, height


def _fitted_side(value: float, even: bool) -> int:
    side = max(1, int(java_round(value)))
    if even:
        side = max(2, side - side % 2)
    return side


def get_bbox(mbrs: np.ndarray) -> Region | None:
    """
    Get the bounding box of a (n, 4) array of x1, y1, x2, y2 rows.
    Returns None if there are no rows.
    """
    mbrs = np.asarray(mbrs, dtype=np.float64).reshape(-1, 4)
    if len(mbrs) == 0:
        return None
    return Region(
        float(mbrs[:, 0].min()),
        float(mbrs[:, 1].min()),
        float(mbrs[:, 2].max()),
        float(mbrs[:, 3].max()),
    )


def intersects(mbrs: np.ndarray, region: Region) -> np.ndarray:
    """Boolean mask of the rows of mbrs that overlap region (touching counts)"""
    mbrs = np.asarray(mbrs, dtype=np.float64).reshape(-1, 4)
    return (
        (mbrs[:, 0] <= region.x2)
        & (mbrs[:, 2] >= region.x1)
        & (mbrs[:, 1] <= region.y2)
        & (mbrs[:, 3] >= region.y1)
    )


def centers(mbrs: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    mbrs = np.asarray(mbrs, dtype=np.float64).reshape(-1, 4)
    return (mbrs[:, 0] + mbrs[:, 2]) / 2, (mbrs[:, 1] + mbrs[:, 3]) / 2
