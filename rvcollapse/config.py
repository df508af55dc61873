# File: rvcollapse/config.py
# Location: rvcollapse/rvcollapse/config.py

"""
Configuration management module.

This module handles loading configuration from a JSON file.
All default values reside in config.json, which is included in
the installed package directory.

If no config_file is provided, this module attempts to load the default
config.json from the package installation directory.
"""

import json
import logging
import os
from dataclasses import fields
from typing import Any, Dict, Optional

from rvcollapse.association.base import CollapseConfig

logger = logging.getLogger("rvcollapse")


def load_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a JSON file.

    If no config_file is provided, the function attempts to load the
    'config.json' from the installed package directory. If it fails
    to find or parse the file, it raises an error.

    Parameters
    ----------
    config_file : str, optional
        Path to a configuration file in JSON format. If None, defaults to
        the package-installed 'config.json'.

    Returns
    -------
    dict
        Configuration dictionary loaded from the JSON file.

    Raises
    ------
    FileNotFoundError
        If the specified configuration file does not exist.
    ValueError
        If there is an error parsing the JSON configuration file.
    """
    if not config_file:
        config_file = os.path.join(os.path.dirname(__file__), "config.json")

    if not os.path.exists(config_file):
        raise FileNotFoundError(f"Configuration file '{config_file}' not found.")

    with open(config_file, "r", encoding="utf-8") as f:
        try:
            config = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Error parsing JSON configuration: {e}")

    logger.debug(f"Configuration loaded from {config_file}: {config}")
    return config


def config_from_dict(cfg: Dict[str, Any]) -> CollapseConfig:
    """
    Build a CollapseConfig from a configuration dictionary.

    Keys that are not CollapseConfig fields are ignored so that a shared
    configuration file can carry settings for other components.

    Parameters
    ----------
    cfg : dict
        Configuration dictionary, e.g. the result of ``load_config()``.

    Returns
    -------
    CollapseConfig
        Validated configuration.

    Raises
    ------
    ValueError
        If the collapsing method or frequency estimator is unknown.
    """
    known = {f.name for f in fields(CollapseConfig)}
    kwargs = {k: v for k, v in cfg.items() if k in known}
    ignored = sorted(set(cfg) - known)
    if ignored:
        logger.debug(f"Ignoring configuration keys not used by the collapsing core: {ignored}")

    config = CollapseConfig(**kwargs)
    config.validate()
    return config
