"""
Reading shapes from csv files and cutting the input into partitions.

Supported shape types and the columns they need:
- point: x, y
- rectangle: x1, y1, x2, y2
- polygon: geometry (WKT string, e.g. 'POLYGON ((0 0, 1 0, 1 1, 0 0))')

Every shape is reduced to its MBR as an (x1, y1, x2, y2) row; the heat map only
uses the centre of that MBR.
"""

import os
from typing import NamedTuple

import numpy as np
import pandas as pd
import shapely
from pandas.errors import EmptyDataError
from shapely.errors import GEOSException

POINT = "point"
RECTANGLE = "rectangle"
POLYGON = "polygon"
SHAPE_TYPES = (POINT, RECTANGLE, POLYGON)


class Partition(NamedTuple):
    """A block of consecutive records in one csv file"""

    path: str
    first_row: int
    n_rows: int


def get_input_files(path: str) -> list[str]:
    """
    Get the csv files to read. Path can be a single file or a folder, which is
    searched recursively for .csv files.
    """
    if os.path.isfile(path):
        return [path]
    if not os.path.isdir(path):
        raise FileNotFoundError(f"Input {path} does not exist")
    files = []
    for root, _, names in os.walk(path):
        for name in names:
            if name.endswith(".csv") and not name.startswith("."):
                files.append(os.path.join(root, name))
    return sorted(files)


def count_records(path: str) -> int:
    """
    Number of data rows in a csv file, counted the way read_partition reads them:
    blank lines are not rows and a quoted field may span several lines.
    """
    try:
        return len(pd.read_csv(path, usecols=[0]))
    except EmptyDataError:
        return 0


def plan_partitions(path: str, partition_rows: int = 100000) -> list[Partition]:
    """
    Split the input into partitions of at most partition_rows records each.
    Empty files give no partitions.
    """
    if partition_rows <= 0:
        raise ValueError(f"partition_rows must be positive, got {partition_rows}")
    partitions = []
    for file in get_input_files(path):
        total = count_records(file)
        for first in range(0, total, partition_rows):
            partitions.append(Partition(file, first, min(partition_rows, total - first)))
    return partitions


def read_partition(partition: Partition) -> pd.DataFrame:
    """
    Read the data rows [first_row, first_row + n_rows) of the partition's file.
    Rows are counted by the csv parser, not by physical lines.
    """
    start, stop = partition.first_row, partition.first_row + partition.n_rows
    parts = []
    seen = 0
    with pd.read_csv(partition.path, chunksize=max(1, partition.n_rows)) as reader:
        for chunk in reader:
            if seen + len(chunk) > start:
                parts.append(chunk.iloc[max(0, start - seen) : stop - seen])
            seen += len(chunk)
            if seen >= stop:
                break
    if not parts:
        return pd.read_csv(partition.path, nrows=0)
    return pd.concat(parts, ignore_index=True)


def _require_columns(df: pd.DataFrame, columns, shape_type):
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"Shape type '{shape_type}' needs columns {missing}")


def _polygon_mbrs(geometries) -> np.ndarray:
    mbrs = []
    for text in geometries:
        if not isinstance(text, str):
            continue
        try:
            geom = shapely.from_wkt(text)
        except GEOSException:
            continue
        if geom is None or geom.is_empty:
            continue
        mbrs.append(geom.bounds)
    return np.array(mbrs, dtype=np.float64).reshape(-1, 4)


def shape_mbrs(df: pd.DataFrame, shape_type: str = POINT) -> np.ndarray:
    """
    Get the MBR of every shape in the dataframe as a (n, 4) array.
    Rows that can't be decoded are skipped.

    Args:

        df: Dataframe with the columns for the shape type
        shape_type: One of point, rectangle, polygon

    Returns:

        (n, 4) float array of x1, y1, x2, y2
    """
    if shape_type == POINT:
        _require_columns(df, ["x", "y"], shape_type)
        xy = df[["x", "y"]].apply(pd.to_numeric, errors="coerce").dropna().to_numpy(
            dtype=np.float64
        )
        return np.column_stack([xy, xy]).reshape(-1, 4)
    if shape_type == RECTANGLE:
        _require_columns(df, ["x1", "y1", "x2", "y2"], shape_type)
        rects = (
            df[["x1", "y1", "x2", "y2"]]
            .apply(pd.to_numeric, errors="coerce")
            .dropna()
            .to_numpy(dtype=np.float64)
        )
        # corners may be given in either order
        return np.column_stack(
            [
                np.minimum(rects[:, 0], rects[:, 2]),
                np.minimum(rects[:, 1], rects[:, 3]),
                np.maximum(rects[:, 0], rects[:, 2]),
                np.maximum(rects[:, 1], rects[:, 3]),
            ]
        ).reshape(-1, 4)
    if shape_type == POLYGON:
        _require_columns(df, ["geometry"], shape_type)
        return _polygon_mbrs(df["geometry"])
    raise ValueError(f"Unknown shape type '{shape_type}', must be one of {SHAPE_TYPES}")


def read_mbrs(partition: Partition, shape_type: str = POINT) -> np.ndarray:
    return shape_mbrs(read_partition(partition), shape_type)
