"""
Splat kernels: boolean masks of the cells a single shape adds to.

A kernel of radius r covers a (2r x 2r) box whose top left cell sits at
(center - r). For the disc kernel, cell (i, j) is inside when its centre
(i + 0.5, j + 0.5) lies within r of the box centre (r, r). The box kernel
has every cell set, which is the same footprint as increment_rect over
[center - r, center + r).

Kernels are built once per (radius, shape) and cached for the life of the process.
"""

from dataclasses import dataclass

import numpy as np

DISC = "disc"
BOX = "box"
SPLAT_SHAPES = (DISC, BOX)

_cache: dict[tuple[int, str], "SplatKernel"] = {}


@dataclass(frozen=True, eq=False)
class SplatKernel:
    radius: int
    mask: np.ndarray  # (2r, 2r) bool, read only
    shape: str = DISC

    def cell_count(self) -> int:
        return int(self.mask.sum())


def disc_mask(radius: int) -> np.ndarray:
    i, j = np.mgrid[0 : 2 * radius, 0 : 2 * radius]
    return (i + 0.5 - radius) ** 2 + (j + 0.5 - radius) ** 2 <= radius**2


def box_mask(radius: int) -> np.ndarray:
    return np.ones((2 * radius, 2 * radius), dtype=bool)


def build_kernel(radius: int, shape: str = DISC) -> SplatKernel:
    radius = int(radius)
    if radius <= 0:
        raise ValueError(f"Splat radius must be positive, got {radius}")
    if shape == DISC:
        mask = disc_mask(radius)
    elif shape == BOX:
        mask = box_mask(radius)
    else:
        raise ValueError(f"Unknown splat shape '{shape}', must be one of {SPLAT_SHAPES}")
    mask.flags.writeable = False
    return SplatKernel(radius, mask, shape)


def kernel_for(radius: int, shape: str = DISC) -> SplatKernel:
    """
    Get the cached kernel for this radius, building it on first use.
    Two workers racing to build the same kernel get identical masks.
    """
    key = (int(radius), shape)
    kernel = _cache.get(key)
    if kernel is None:
        kernel = build_kernel(radius, shape)
        _cache[key] = kernel
    return kernel


def clear_cache():
    _cache.clear()


def cached_radii() -> list[tuple[int, str]]:
    return sorted(_cache)
