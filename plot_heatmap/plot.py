"""
Command line interface for drawing heat maps.

Settings come from config.yml in the working directory (see heat_utils/config.py),
and any option given on the command line overrides the config file.

Usage:
1. **Draw a heat map in one go:**

    python -m plot_heatmap.plot plot points.csv heatmap.png --radius 3 --skipzeros

The input is either a csv file or a folder of csv files. Small inputs are drawn in
this process, larger ones are split across a pool of workers (force either with
--local / --distributed).

2. **Step by step, e.g. when partitions are aggregated on different machines:**

    python -m plot_heatmap.plot aggregate part1.csv part1.grid --rect 0,0,100,100
    python -m plot_heatmap.plot aggregate part2.csv part2.grid --rect 0,0,100,100
    python -m plot_heatmap.plot merge part1.grid part2.grid --output total.grid
    python -m plot_heatmap.plot render total.grid heatmap.png --valuerange 0..20

aggregate needs --rect (or rect in the config). Every aggregate call must use the
same rect, width, height and keep-ratio settings or the grids can't be merged.
"""

from typing import List, Optional

import typer

from .heat_utils.config import load_config
from .heat_utils.execution import COLORS, build_grid, merge_all, plot_heatmap, render_settings
from .heat_utils.frequency_grid import FrequencyGrid, HeatMapError
from .heat_utils.render import render as render_grid
from .heat_utils.render import save_image

app = typer.Typer(
    name="PlotHeatMap",
    help="Draw density heat maps of spatial shapes",
    no_args_is_help=True,
)


def get_settings(config: Optional[str], **overrides) -> dict:
    settings = load_config(config)
    settings.update({k: v for k, v in overrides.items() if v is not None})
    return settings


def fail(error: Exception):
    typer.echo(COLORS.FAIL + f"Error: {error}" + COLORS.ENDC, err=True)
    raise typer.Exit(code=1)


@app.command(help="Draw a heat map of the shapes in INPUT and save it as a png.")
def plot(
    input: str = typer.Argument(..., help="csv file or folder of csv files"),
    output: str = typer.Argument(..., help="png file to write"),
    shape: Optional[str] = typer.Option(None, help="point, rectangle or polygon"),
    width: Optional[int] = typer.Option(None, help="Maximum width of the image (1000)"),
    height: Optional[int] = typer.Option(None, help="Maximum height of the image (1000)"),
    radius: Optional[int] = typer.Option(None, help="Radius used when smoothing the heat map (5)"),
    valuerange: Optional[str] = typer.Option(None, help="Range of values as min..max or min,max"),
    color1: Optional[str] = typer.Option(None, help="Color to use for minimum values"),
    color2: Optional[str] = typer.Option(None, help="Color to use for maximum values"),
    gradient: Optional[str] = typer.Option(None, help="hue or color, how to go from color1 to color2"),
    skipzeros: Optional[bool] = typer.Option(None, "--skipzeros/--no-skipzeros", help="Leave empty cells transparent"),
    vflip: Optional[bool] = typer.Option(None, "--vflip/--no-vflip", help="Flip the image so +ve y points up"),
    local: Optional[bool] = typer.Option(None, "--local/--distributed", help="Force the execution mode"),
    keep_ratio: Optional[bool] = typer.Option(None, "--keep-ratio/--no-keep-ratio", help="Match the image to the data's aspect ratio"),
    even_height: Optional[bool] = typer.Option(None, "--even-height/--no-even-height", help="Round the fitted side down to an even number"),
    rect: Optional[str] = typer.Option(None, help="Only draw this region, as x1,y1,x2,y2"),
    splat: Optional[str] = typer.Option(None, help="disc or box"),
    histogram: Optional[bool] = typer.Option(None, "--histogram/--no-histogram", help="Print the histogram of cell values"),
    workers: Optional[int] = typer.Option(None, help="Number of worker processes in distributed mode"),
    config: Optional[str] = typer.Option(None, help="Path to a config file (default ./config.yml)"),
):
    try:
        settings = get_settings(
            config,
            shape=shape,
            width=width,
            height=height,
            radius=radius,
            valuerange=valuerange,
            color1=color1,
            color2=color2,
            gradient=gradient,
            skipzeros=skipzeros,
            vflip=vflip,
            local=local,
            keep_ratio=keep_ratio,
            even_height=even_height,
            rect=rect,
            splat=splat,
            histogram=histogram,
            workers=workers,
        )
        plot_heatmap(input, output, settings)
    except (HeatMapError, ValueError, FileNotFoundError) as e:
        fail(e)


@app.command(help="Aggregate the shapes in INPUT into a single frequency grid file.")
def aggregate(
    input: str = typer.Argument(..., help="csv file or folder of csv files"),
    grid_out: str = typer.Argument(..., help="Frequency grid file to write"),
    shape: Optional[str] = typer.Option(None, help="point, rectangle or polygon"),
    width: Optional[int] = typer.Option(None, help="Maximum width of the image (1000)"),
    height: Optional[int] = typer.Option(None, help="Maximum height of the image (1000)"),
    radius: Optional[int] = typer.Option(None, help="Radius used when smoothing the heat map (5)"),
    keep_ratio: Optional[bool] = typer.Option(None, "--keep-ratio/--no-keep-ratio"),
    even_height: Optional[bool] = typer.Option(None, "--even-height/--no-even-height"),
    rect: Optional[str] = typer.Option(None, help="Draw region as x1,y1,x2,y2, required (here or in the config) so grids can be merged"),
    splat: Optional[str] = typer.Option(None, help="disc or box"),
    config: Optional[str] = typer.Option(None, help="Path to a config file (default ./config.yml)"),
):
    try:
        settings = get_settings(
            config,
            shape=shape,
            width=width,
            height=height,
            radius=radius,
            keep_ratio=keep_ratio,
            even_height=even_height,
            rect=rect,
            splat=splat,
        )
        # grids from separate runs only line up on a shared region
        if settings.get("rect") is None:
            raise ValueError("aggregate needs a draw region, pass --rect x1,y1,x2,y2")
        settings["local"] = True
        grid, _ = build_grid(input, settings)
    except (HeatMapError, ValueError, FileNotFoundError) as e:
        fail(e)
    grid.save(grid_out)
    typer.echo(f"Saved {grid!r} to {grid_out}")


@app.command(help="Merge frequency grid files into one.")
def merge(
    grids: List[str] = typer.Argument(..., help="Frequency grid files"),
    output: str = typer.Option(..., "--output", "-o", help="Frequency grid file to write"),
):
    try:
        loaded = [FrequencyGrid.load(path) for path in grids]
        total = merge_all(loaded, loaded[0].width, loaded[0].height)
    except (HeatMapError, ValueError, FileNotFoundError) as e:
        fail(e)
    total.save(output)
    typer.echo(f"Merged {len(grids)} grids into {output}")


@app.command(help="Render a frequency grid file as a png.")
def render(
    grid: str = typer.Argument(..., help="Frequency grid file"),
    output: str = typer.Argument(..., help="png file to write"),
    valuerange: Optional[str] = typer.Option(None, help="Range of values as min..max or min,max"),
    color1: Optional[str] = typer.Option(None, help="Color to use for minimum values"),
    color2: Optional[str] = typer.Option(None, help="Color to use for maximum values"),
    gradient: Optional[str] = typer.Option(None, help="hue or color"),
    skipzeros: Optional[bool] = typer.Option(None, "--skipzeros/--no-skipzeros"),
    vflip: Optional[bool] = typer.Option(None, "--vflip/--no-vflip"),
    histogram: Optional[bool] = typer.Option(None, "--histogram/--no-histogram"),
    config: Optional[str] = typer.Option(None, help="Path to a config file (default ./config.yml)"),
):
    try:
        settings = get_settings(
            config,
            valuerange=valuerange,
            color1=color1,
            color2=color2,
            gradient=gradient,
            skipzeros=skipzeros,
            vflip=vflip,
            histogram=histogram,
        )
        options, colors = render_settings(settings)
        image = render_grid(FrequencyGrid.load(grid), options, colors)
    except (HeatMapError, ValueError, FileNotFoundError) as e:
        fail(e)
    save_image(image, output)


if __name__ == "__main__":
    app()
