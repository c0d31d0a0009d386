# SPDX-FileCopyrightText: 2026 Jeff Epler
#
# SPDX-License-Identifier: MIT

import logging
import pathlib
from typing import Any, TypeGuard

import click
import platformdirs
import tomllib

from .heatmap import HeatmapOptions

logger = logging.getLogger(__name__)

default_conffile = platformdirs.user_config_path("sixheat") / "settings.toml"

# config file key -> (HeatmapOptions field, smallest allowed value)
INT_KEYS = {
    "cell-size": ("cell_size", 1),
    "margin-size": ("margin_size", 0),
    "max-cols": ("max_cols", 1),
    "min-run": ("min_run", 2),
}
BOOL_KEYS = {
    "compress": "compress",
    "fold-background": "fold_background",
}


class ConfigError(click.ClickException):
    exit_code = 2

    def __init__(self, message: str, path: pathlib.Path | None = None) -> None:
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)


def is_int(val: Any) -> TypeGuard[int]:
    return isinstance(val, int) and not isinstance(val, bool)


def is_color_list(val: Any) -> TypeGuard[list[list[int]]]:
    """Determines whether val is a list of [r, g, b] percentage triplets"""
    if not isinstance(val, list):
        return False
    return all(
        isinstance(c, list) and len(c) == 3 and all(is_int(x) and 0 <= x <= 100 for x in c)
        for c in val
    )


def load_config(path: pathlib.Path | None, profile: str | None) -> dict[str, Any]:
    """
    Read the settings table, with the named profile's keys merged over the
    global ones.

    When no path is given the per-user settings file is used if it exists.
    """
    explicit = path is not None
    if path is None:
        path = default_conffile

    if not path.exists():
        if explicit:
            raise ConfigError("The configuration file does not exist.", path)
        if profile:
            raise ConfigError(
                f"The profile {profile!r} does not exist because there is no configuration file.",
                path,
            )
        return {}

    logger.debug("reading configuration from %s", path)
    try:
        with open(path, "rb") as f:
            config_data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML: {e}", path) from e

    settings = {k: v for k, v in config_data.items() if not isinstance(v, dict)}
    if profile:
        profile_data = config_data.get(profile, None)
        if not isinstance(profile_data, dict):
            raise ConfigError(f"The profile {profile!r} does not exist.", path)
        settings.update(profile_data)
    return settings


def options_from_settings(settings: dict[str, Any], **overrides: Any) -> HeatmapOptions:
    """
    Build HeatmapOptions from config file settings.

    Keyword arguments (HeatmapOptions field names) take precedence over the
    settings; a value of None means "not given".
    """
    kwargs: dict[str, Any] = {}
    for key, value in settings.items():
        if key in INT_KEYS:
            name, minimum = INT_KEYS[key]
            if not is_int(value) or value < minimum:
                raise ConfigError(f"The {key} value must be an integer of at least {minimum}.")
            kwargs[name] = value
        elif key in BOOL_KEYS:
            if not isinstance(value, bool):
                raise ConfigError(f"The {key} value must be true or false.")
            kwargs[BOOL_KEYS[key]] = value
        elif key == "palette":
            if not value or not is_color_list(value):
                raise ConfigError(
                    "The palette value must be a non-empty list of [r, g, b] "
                    "lists with each component from 0 to 100."
                )
            kwargs["palette"] = tuple(tuple(c) for c in value)
        else:
            raise ConfigError(f"Unknown setting {key!r}.")

    kwargs.update((k, v) for k, v in overrides.items() if v is not None)
    return HeatmapOptions(**kwargs)
