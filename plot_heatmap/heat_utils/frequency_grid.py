"""
The frequency grid is the accumulator behind every heat map.

1. A grid of (width x height) integer counters is created, all zero
2. Every shape is 'splatted' onto the grid by adding 1 to each cell inside
    a disc (or box) around the shape's mapped position
3. Partial grids built from different parts of the input are summed with
    `merge` to give the final grid
4. The final grid is turned into an image by the renderer (see render.py)

Cells are indexed as grid.cells[x, y], so the array has shape (width, height).
The serialized form is big-endian 4-byte integers: width, height, then every
cell with x as the outer loop and y as the inner loop.
"""

import numpy as np

from .kernels import kernel_for

WIRE_DTYPE = np.dtype(">i4")
HEADER_BYTES = 2 * WIRE_DTYPE.itemsize


class HeatMapError(Exception):
    """Base class for errors raised while building a heat map"""


class InvalidDimension(HeatMapError, ValueError):
    """Grid width or height is not a positive integer"""


class IncompatibleDimensions(HeatMapError, ValueError):
    """Two grids of different sizes were combined"""


class DegenerateRegion(HeatMapError, ValueError):
    """The draw region has no width or no height, so nothing can be mapped onto it"""


class FrequencyGrid:
    """
    Fixed size 2D array of non-negative counters.

    Args:

        width: Number of columns (x), must be > 0
        height: Number of rows (y), must be > 0
    """

    def __init__(self, width: int, height: int):
        if int(width) <= 0 or int(height) <= 0:
            raise InvalidDimension(
                f"Grid dimensions must be positive, got {width}x{height}"
            )
        self._width = int(width)
        self._height = int(height)
        self.cells = np.zeros((self._width, self._height), dtype=np.int32)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def shape(self) -> tuple[int, int]:
        return self._width, self._height

    def __repr__(self):
        return f"FrequencyGrid({self._width}x{self._height})"

    def __eq__(self, other):
        if not isinstance(other, FrequencyGrid):
            return NotImplemented
        return self.shape == other.shape and np.array_equal(self.cells, other.cells)

    def __getitem__(self, xy):
        return self.cells[xy]

    def splat(self, center_x: int, center_y: int, radius: int, kernel=None):
        """
        Add 1 to every cell inside the kernel centred on (center_x, center_y).
        Parts of the kernel outside the grid are dropped.

        Args:

            center_x: Column of the kernel centre
            center_y: Row of the kernel centre
            radius: Radius of the disc, used to look up the cached kernel
            kernel: Optional kernel to use instead of the cached disc

        Returns:

            None
        """
        mask = (kernel if kernel is not None else kernel_for(radius)).mask
        size_x, size_y = mask.shape
        # top left corner of the kernel in grid coordinates
        left = int(center_x) - size_x // 2
        top = int(center_y) - size_y // 2
        x1, x2 = max(0, left), min(self._width, left + size_x)
        y1, y2 = max(0, top), min(self._height, top + size_y)
        if x1 >= x2 or y1 >= y2:
            return
        self.cells[x1:x2, y1:y2] += mask[x1 - left : x2 - left, y1 - top : y2 - top]

    def splat_many(self, xs, ys, radius: int, kernel=None):
        """
        Same as calling splat for every (x, y) pair, but done one kernel
        offset at a time so the work stays in numpy.
        """
        xs = np.asarray(xs, dtype=np.int64).ravel()
        ys = np.asarray(ys, dtype=np.int64).ravel()
        if xs.shape != ys.shape:
            raise ValueError("xs and ys must have the same length")
        if xs.size == 0:
            return
        mask = (kernel if kernel is not None else kernel_for(radius)).mask
        size_x, size_y = mask.shape
        lefts = xs - size_x // 2
        tops = ys - size_y // 2
        for dx, dy in np.argwhere(mask):
            cx = lefts + dx
            cy = tops + dy
            inside = (cx >= 0) & (cx < self._width) & (cy >= 0) & (cy < self._height)
            np.add.at(self.cells, (cx[inside], cy[inside]), 1)

    def increment_rect(self, x1: int, y1: int, x2: int, y2: int):
        """
        Add 1 to every cell with x1 <= x < x2 and y1 <= y < y2.
        The rectangle is clamped to the grid first, an empty rectangle does nothing.
        """
        x1, x2 = max(0, int(x1)), min(self._width, int(x2))
        y1, y2 = max(0, int(y1)), min(self._height, int(y2))
        if x1 >= x2 or y1 >= y2:
            return
        self.cells[x1:x2, y1:y2] += 1

    def merge(self, other: "FrequencyGrid") -> "FrequencyGrid":
        """
        Add every cell of other into this grid. Returns self so merges can be chained.

        Raises:

            IncompatibleDimensions: if the grids are not the same size
        """
        if other.shape != self.shape:
            raise IncompatibleDimensions(
                f"Incompatible frequency grid sizes {self!r}, {other!r}"
            )
        self.cells += other.cells
        return self

    def clone(self) -> "FrequencyGrid":
        copy = FrequencyGrid(self._width, self._height)
        copy.cells[:] = self.cells
        return copy

    def histogram(self, skip_zeros=False) -> list[tuple[int, int]]:
        """
        Frequency of frequencies: (value, number of cells with that value),
        sorted by ascending value.
        """
        values, counts = np.unique(self.cells, return_counts=True)
        return [(int(v), int(c)) for v, c in zip(values, counts) if v or not skip_zeros]

    def histogram_range(self, report=False, skip_zeros=False) -> tuple[int, int]:
        """
        Get the true (min, max) over all cells.

        Args:

            report: Print the histogram as 'value,count' lines, ascending by value
            skip_zeros: Leave empty cells out of the range (they won't be drawn)

        Returns:

            (min, max) of the cell values, (0, 0) for an all zero grid
        """
        hist = self.histogram(skip_zeros=skip_zeros)
        if report:
            for value, count in hist:
                print(f"{value},{count}")
        if not hist:
            return 0, 0
        return hist[0][0], hist[-1][0]

    def to_bytes(self) -> bytes:
        header = np.array([self._width, self._height], dtype=WIRE_DTYPE)
        # C order over a (width, height) array walks x in the outer loop
        return header.tobytes() + self.cells.astype(WIRE_DTYPE).tobytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> "FrequencyGrid":
        """
        Inverse of to_bytes.

        Raises:

            ValueError: if the payload is truncated or has trailing bytes
        """
        if len(data) < HEADER_BYTES:
            raise ValueError("Frequency grid payload is too short for its header")
        width, height = (int(v) for v in np.frombuffer(data, WIRE_DTYPE, count=2))
        expected = HEADER_BYTES + width * height * WIRE_DTYPE.itemsize
        if len(data) != expected:
            raise ValueError(
                f"Frequency grid payload for {width}x{height} should be {expected} bytes, got {len(data)}"
            )
        grid = cls(width, height)
        body = np.frombuffer(data, WIRE_DTYPE, offset=HEADER_BYTES)
        grid.cells[:] = body.reshape(width, height)
        return grid

    def save(self, path: str):
        with open(path, "wb") as f:
            f.write(self.to_bytes())

    @classmethod
    def load(cls, path: str) -> "FrequencyGrid":
        with open(path, "rb") as f:
            return cls.from_bytes(f.read())
