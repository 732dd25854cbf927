"""
Running the heat map: deciding between a local pass and a distributed one,
aggregating partitions into frequency grids, merging them and drawing the result.

Workflow:
1. Cut the input into partitions (shape_io.plan_partitions)
2. Find the draw region: the 'rect' option, or the bounding box of every shape
3. Fit the image size to the region's aspect ratio
4. Choose the execution mode from the number of partitions
    - local: one grid, partitions read one after another
    - distributed: one grid per partition built in a process pool, then merged
5. Render the merged grid and save it as a png

Both modes give exactly the same grid, because splats only ever add and
merging is a plain element-wise sum.
"""

import time
from dataclasses import dataclass
from enum import Enum
from functools import partial
from multiprocessing import Pool, cpu_count

import numpy as np
from tqdm import tqdm

from .frequency_grid import FrequencyGrid
from .gradient import Gradient
from .kernels import DISC, kernel_for
from .render import RenderOptions, ValueRange, render, save_image
from .shape_io import POINT, Partition, plan_partitions, read_mbrs
from .spatial_helpers import (
    Region,
    centers,
    check_region,
    fit_aspect_ratio,
    get_bbox,
    intersects,
    map_to_grid_array,
)


class COLORS:
    """Colors for the terminal"""

    OKGREEN = "\033[92m"
    WARNING = "\033[93m"
    FAIL = "\033[91m"
    ENDC = "\033[0m"


class ExecutionMode(Enum):
    LOCAL = "local"
    DISTRIBUTED = "distributed"


def choose_mode(n_partitions: int, local: bool | None = None, threshold: int = 3) -> ExecutionMode:
    """
    Pick how to run the aggregation.

    Args:

        n_partitions: Estimated number of input partitions
        local: Explicit override, True for local and False for distributed. None to decide automatically
        threshold: Largest partition count that still runs locally

    Returns:

        ExecutionMode.LOCAL or ExecutionMode.DISTRIBUTED
    """
    if local is not None:
        return ExecutionMode.LOCAL if local else ExecutionMode.DISTRIBUTED
    if n_partitions <= threshold:
        return ExecutionMode.LOCAL
    return ExecutionMode.DISTRIBUTED


@dataclass(frozen=True)
class HeatMapJob:
    """Everything a worker needs to turn shapes into a partial grid"""

    region: Region
    width: int
    height: int
    radius: int = 5
    splat: str = DISC
    shape_type: str = POINT
    rect: Region | None = None

    def kernel(self):
        return kernel_for(self.radius, self.splat)

    def filter_region(self) -> Region | None:
        """The rect option grown by the splat radius, converted to real world units"""
        if self.rect is None:
            return None
        dx = self.radius * self.region.width / self.width
        dy = self.radius * self.region.height / self.height
        return self.rect.buffer(dx, dy)


def aggregate(mbrs: np.ndarray, job: HeatMapJob) -> FrequencyGrid:
    """
    Splat every shape onto a new grid.

    Args:

        mbrs: (n, 4) array of shape MBRs, each shape is drawn at its MBR centre
        job: Grid size, region and splat settings

    Returns:

        FrequencyGrid of job.width x job.height
    """
    grid = FrequencyGrid(job.width, job.height)
    splat_shapes(grid, mbrs, job)
    return grid


def splat_shapes(grid: FrequencyGrid, mbrs: np.ndarray, job: HeatMapJob):
    mbrs = np.asarray(mbrs, dtype=np.float64).reshape(-1, 4)
    if job.rect is not None:
        mbrs = mbrs[intersects(mbrs, job.filter_region())]
    if len(mbrs) == 0:
        return
    xs, ys = centers(mbrs)
    cell_x, cell_y = map_to_grid_array(xs, ys, job.region, job.width, job.height)
    grid.splat_many(cell_x, cell_y, job.radius, job.kernel())


def aggregate_partition(partition: Partition, job: HeatMapJob) -> FrequencyGrid:
    return aggregate(read_mbrs(partition, job.shape_type), job)


def partition_bounds(partition: Partition, shape_type: str = POINT) -> Region | None:
    xs, ys = centers(read_mbrs(partition, shape_type))
    return get_bbox(np.column_stack([xs, ys, xs, ys]))


def merge_all(grids, width: int, height: int) -> FrequencyGrid:
    """
    Sum any number of grids, starting from an all zero grid.
    Holds only the running total, so grids can be a generator.
    """
    total = FrequencyGrid(width, height)
    for grid in grids:
        total.merge(grid)
    return total


def tree_merge(grids: list[FrequencyGrid]) -> FrequencyGrid:
    """Merge grids pairwise, level by level. Gives the same result as merge_all"""
    if len(grids) == 0:
        raise ValueError("Need at least one grid to merge")
    level = [g.clone() for g in grids]
    while len(level) > 1:
        merged = [level[i].merge(level[i + 1]) for i in range(0, len(level) - 1, 2)]
        if len(level) % 2 == 1:
            merged.append(level[-1])
        level = merged
    return level[0]


def combine_bounds(bounds) -> Region | None:
    region = None
    for b in bounds:
        if b is not None:
            region = b.union(region)
    return region


def run_local(partitions: list[Partition], job: HeatMapJob) -> FrequencyGrid:
    """Aggregate every partition into a single grid, one after another"""
    grid = FrequencyGrid(job.width, job.height)
    for partition in partitions:
        splat_shapes(grid, read_mbrs(partition, job.shape_type), job)
    return grid


def run_distributed(partitions: list[Partition], job: HeatMapJob, pool) -> FrequencyGrid:
    """
    Build one grid per partition in the pool and fold them into the total as
    they arrive. Any failed partition raises here and no grid is returned.
    """
    return merge_all(
        tqdm(
            pool.imap_unordered(partial(aggregate_partition, job=job), partitions),
            total=len(partitions),
            desc="Aggregating partitions",
        ),
        job.width,
        job.height,
    )


def find_region(partitions, shape_type: str, pool=None) -> Region | None:
    """Bounding box of all shape centres, the 'file MBR' of the input"""
    func = partial(partition_bounds, shape_type=shape_type)
    if pool is None:
        return combine_bounds(map(func, partitions))
    return combine_bounds(pool.imap_unordered(func, partitions))


def image_size(region: Region | None, settings: dict) -> tuple[int, int]:
    width, height = int(settings["width"]), int(settings["height"])
    if region is None or not settings.get("keep_ratio", True):
        return width, height
    return fit_aspect_ratio(
        region.width, region.height, width, height, even=settings.get("even_height", False)
    )


def render_settings(settings: dict) -> tuple[RenderOptions, Gradient]:
    value_range = settings.get("valuerange")
    if value_range is not None and not isinstance(value_range, ValueRange):
        value_range = ValueRange.parse(value_range)
    options = RenderOptions(
        skip_zeros=bool(settings.get("skipzeros", False)),
        vertical_flip=bool(settings.get("vflip", False)),
        value_range=value_range,
        report_histogram=bool(settings.get("histogram", False)),
    )
    gradient = Gradient(
        settings.get("color1", "blue"),
        settings.get("color2", "red"),
        settings.get("gradient", "hue"),
    )
    return options, gradient


def build_grid(input_path: str, settings: dict) -> tuple[FrequencyGrid, HeatMapJob | None]:
    """
    Run steps 1 - 4 of the workflow and return the merged grid.
    For input with no shapes (and no rect) the grid is all zero and the job is None.
    """
    shape_type = settings.get("shape", POINT)
    partitions = plan_partitions(input_path, int(settings.get("partition_rows", 100000)))
    mode = choose_mode(
        len(partitions), settings.get("local"), int(settings.get("local_threshold", 3))
    )
    print(f"{len(partitions)} partitions, running in {mode.value} mode")
    rect = settings.get("rect")
    if rect is not None and not isinstance(rect, Region):
        rect = Region.parse(rect)

    pool = None
    if mode is ExecutionMode.DISTRIBUTED:
        pool = Pool(settings.get("workers") or cpu_count())
    try:
        region = rect if rect is not None else find_region(partitions, shape_type, pool)
        print(f"Draw region: {region}")
        if region is None:
            print(COLORS.WARNING + "No shapes found, drawing an empty heat map" + COLORS.ENDC)
            width, height = int(settings["width"]), int(settings["height"])
            return FrequencyGrid(width, height), None
        check_region(region)
        width, height = image_size(region, settings)
        print(f"Creating an image of size {width}x{height}")
        job = HeatMapJob(
            region=region,
            width=width,
            height=height,
            radius=int(settings.get("radius", 5)),
            splat=settings.get("splat", DISC),
            shape_type=shape_type,
            rect=rect,
        )
        # bad radius or splat shape fails here rather than in every worker
        job.kernel()
        if pool is None:
            grid = run_local(partitions, job)
        else:
            grid = run_distributed(partitions, job, pool)
    finally:
        if pool is not None:
            pool.terminate()
            pool.join()
    return grid, job


def plot_heatmap(input_path: str, output_path: str | None, settings: dict):
    """
    Create a heat map image from the shapes in input_path and save it to output_path.

    Args:

        input_path: csv file or folder of csv files
        output_path: png file to write, or None to only return the image
        settings: Options as in config.DEFAULTS

    Returns:

        The PIL image
    """
    start = time.time()
    # check render options before doing any work
    options, gradient = render_settings(settings)
    grid, _ = build_grid(input_path, settings)
    image = render(grid, options, gradient)
    if output_path is not None:
        save_image(image, output_path)
    print(
        COLORS.OKGREEN
        + f"Plot heat map finished in {int((time.time() - start) * 1000)} millis"
        + COLORS.ENDC
    )
    return image
