"""
This package draws density heat maps from large collections of spatial shapes.
The module heat_utils contains the core functionality for the project,
while plot.py is the command line entry point.

## heat_utils.frequency_grid

The grid of counters every shape is splatted onto, and its binary format.

## heat_utils.kernels

Cached disc (and box) masks used for splatting.

## heat_utils.spatial_helpers

Mapping real world coordinates onto grid cells, and fitting the image to the data's aspect ratio.

## heat_utils.render / heat_utils.gradient

Colouring a grid into an image.

## heat_utils.execution

Running the whole thing locally or across a pool of worker processes.

## plot

The command line interface: plot, aggregate, merge and render.
"""
