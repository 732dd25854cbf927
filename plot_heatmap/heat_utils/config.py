"""
Load and parse the config file for other modules

usage:

    from plot_heatmap.heat_utils.config import load_config
    cfg = load_config()  # or load_config("path/to/config.yml")

The default config file is 'config.yml' in the working directory at the time
load_config is called. Every key is optional; anything missing takes the value
in DEFAULTS.
"""

import os
import yaml

DEFAULTS = {
    "width": 1000,
    "height": 1000,
    "radius": 5,
    "shape": "point",
    "color1": "blue",
    "color2": "red",
    "gradient": "hue",
    "skipzeros": False,
    "vflip": False,
    "keep_ratio": True,
    "even_height": False,
    "splat": "disc",
    "local": None,  # None lets the partition count decide
    "local_threshold": 3,
    "partition_rows": 100000,
    "workers": None,  # None uses every cpu
    "valuerange": None,
    "rect": None,
    "histogram": False,
}


def default_config_path() -> str:
    return os.path.join(os.getcwd(), "config.yml")


def load_config(path: str | None = None) -> dict:
    """
    Read the yaml config at path (or config.yml in the working directory) on top of DEFAULTS.
    A missing file just gives the defaults.
    """
    path = path or default_config_path()
    cfg = dict(DEFAULTS)
    if not os.path.exists(path):
        return cfg
    with open(path, "r") as ymlfile:
        try:
            loaded = yaml.load(ymlfile, Loader=yaml.FullLoader)
        except yaml.YAMLError as e:
            raise ValueError(f"Config file {path} is not valid yaml: {e}") from e
    if loaded is None:
        return cfg
    if not isinstance(loaded, dict):
        raise ValueError(f"Config file {path} must contain a mapping of options")
    # allow 'keep-ratio' style keys to match the command line
    cfg.update({str(k).replace("-", "_"): v for k, v in loaded.items()})
    return cfg
