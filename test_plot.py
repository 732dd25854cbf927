import os

import numpy as np
import pandas as pd
import pytest
from PIL import Image
from typer.testing import CliRunner

from plot_heatmap.heat_utils import shape_io
from plot_heatmap.heat_utils.frequency_grid import FrequencyGrid
from plot_heatmap.plot import app

"""
Tests for the command line interface in plot.py
"""

runner = CliRunner()


def write_points(path, xs, ys):
    pd.DataFrame({"x": np.asarray(xs), "y": np.asarray(ys)}).to_csv(path, index=False)


class TestPlotCommand:
    @pytest.fixture(autouse=True)
    def fixture(self, tmp_path):
        self.tmp_path = tmp_path
        self.input = str(tmp_path / "points.csv")
        rng = np.random.default_rng(5)
        write_points(
            self.input, rng.integers(0, 40, 100) * 0.5, rng.integers(0, 40, 100) * 0.5
        )
        # keep a config.yml in the working directory from leaking into the tests
        self.config = str(tmp_path / "config.yml")
        with open(self.config, "w") as f:
            f.write("partition_rows: 30\n")
        yield

    def run(self, *args):
        return runner.invoke(app, [*args, "--config", self.config])

    def test_plot(self):
        output = str(self.tmp_path / "heatmap.png")
        result = self.run("plot", self.input, output, "--width", "32", "--height", "32", "--skipzeros")
        assert result.exit_code == 0, result.output
        with Image.open(output) as image:
            assert image.size == (32, 32)
        assert "running in distributed mode" in result.output

    def test_plot_local_override(self):
        output = str(self.tmp_path / "heatmap.png")
        result = self.run("plot", self.input, output, "--local", "--width", "16", "--height", "16")
        assert result.exit_code == 0, result.output
        assert "running in local mode" in result.output

    def test_plot_histogram(self):
        output = str(self.tmp_path / "heatmap.png")
        result = self.run("plot", self.input, output, "--width", "10", "--height", "10", "--histogram")
        assert result.exit_code == 0, result.output
        assert "0," in result.output

    def test_bad_value_range(self):
        output = str(self.tmp_path / "heatmap.png")
        result = self.run("plot", self.input, output, "--valuerange", "nope")
        assert result.exit_code == 1
        assert not os.path.exists(output)

    def test_missing_input(self):
        output = str(self.tmp_path / "heatmap.png")
        result = self.run("plot", str(self.tmp_path / "missing.csv"), output)
        assert result.exit_code == 1
        assert not os.path.exists(output)

    def test_step_by_step_matches_plot(self):
        # split the points over two files and aggregate them separately
        df = shape_io.read_partition(shape_io.plan_partitions(self.input, 1000)[0])
        first, second = str(self.tmp_path / "first.csv"), str(self.tmp_path / "second.csv")
        df.iloc[:60].to_csv(first, index=False)
        df.iloc[60:].to_csv(second, index=False)
        options = ["--rect", "0,0,20,20", "--width", "24", "--height", "24", "--radius", "2"]
        grids = []
        for i, part in enumerate([first, second]):
            grid_file = str(self.tmp_path / f"part{i}.grid")
            result = self.run("aggregate", part, grid_file, *options)
            assert result.exit_code == 0, result.output
            grids.append(grid_file)
        total = str(self.tmp_path / "total.grid")
        result = runner.invoke(app, ["merge", *grids, "--output", total])
        assert result.exit_code == 0, result.output

        whole = str(self.tmp_path / "whole.grid")
        result = self.run("aggregate", self.input, whole, *options)
        assert result.exit_code == 0, result.output
        assert FrequencyGrid.load(total) == FrequencyGrid.load(whole)

        step_png = str(self.tmp_path / "step.png")
        result = self.run("render", total, step_png, "--valuerange", "0..10")
        assert result.exit_code == 0, result.output
        plot_png = str(self.tmp_path / "plot.png")
        result = self.run("plot", self.input, plot_png, "--valuerange", "0..10", *options)
        assert result.exit_code == 0, result.output
        with Image.open(step_png) as a, Image.open(plot_png) as b:
            assert np.array_equal(np.asarray(a), np.asarray(b))

    def test_merge_incompatible(self):
        small, large = str(self.tmp_path / "small.grid"), str(self.tmp_path / "large.grid")
        FrequencyGrid(3, 3).save(small)
        FrequencyGrid(4, 3).save(large)
        result = runner.invoke(app, ["merge", small, large, "--output", str(self.tmp_path / "out.grid")])
        assert result.exit_code == 1
        assert not os.path.exists(self.tmp_path / "out.grid")

    def test_aggregate_needs_rect(self):
        grid_file = str(self.tmp_path / "points.grid")
        result = self.run("aggregate", self.input, grid_file, "--no-keep-ratio")
        assert result.exit_code == 1
        assert not os.path.exists(grid_file)

    def test_aggregate_rect_from_config(self):
        with open(self.config, "a") as f:
            f.write('rect: "0,0,20,20"\n')
        grid_file = str(self.tmp_path / "points.grid")
        result = self.run("aggregate", self.input, grid_file, "--width", "10", "--height", "10")
        assert result.exit_code == 0, result.output
        assert FrequencyGrid.load(grid_file).shape == (10, 10)

    def test_working_dir_config_ignored_with_config_option(self, monkeypatch):
        workdir = self.tmp_path / "workdir"
        workdir.mkdir()
        (workdir / "config.yml").write_text("- not\n- a mapping\n")
        monkeypatch.chdir(workdir)
        grid_file = str(self.tmp_path / "small.grid")
        grid = FrequencyGrid(6, 6)
        grid.splat(3, 3, 1)
        grid.save(grid_file)

        png = str(self.tmp_path / "small.png")
        result = self.run("render", grid_file, png)
        assert result.exit_code == 0, result.output
        assert os.path.exists(png)

        # without --config the broken working dir config is reported, not raised
        other = str(self.tmp_path / "other.png")
        result = runner.invoke(app, ["render", grid_file, other])
        assert result.exit_code == 1
        assert not os.path.exists(other)
