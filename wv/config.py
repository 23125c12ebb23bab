"""User configuration and data root discovery.

Configuration lives in a TOML file under the platform config directory:

    data_dir = "/home/me/werkverzeichnis"
    editor = "nvim"
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import click

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from .exceptions import ConfigurationError
from .store.loader import COMPOSERS_DIR

logger = logging.getLogger(__name__)

APP_NAME = "wv"
CONFIG_FILE = "config.toml"
DATA_DIR_ENV = "WV_DATA_DIR"
DEFAULT_EDITOR = "vi"


@dataclass
class Config:
    data_dir: Path | None = None
    editor: str | None = None


def config_path() -> Path:
    return Path(click.get_app_dir(APP_NAME)) / CONFIG_FILE


def parse_config(data: dict) -> Config:
    """Build a Config from parsed TOML; unknown keys are ignored."""
    data_dir = data.get("data_dir")
    editor = data.get("editor")
    if data_dir is not None and not isinstance(data_dir, str):
        raise ConfigurationError("data_dir must be a string")
    if editor is not None and not isinstance(editor, str):
        raise ConfigurationError("editor must be a string")
    return Config(
        data_dir=Path(data_dir).expanduser() if data_dir else None,
        editor=editor or None,
    )


def load_config(path: Path | None = None) -> Config:
    """Load configuration, falling back to defaults.

    A missing file is silent; an unreadable or malformed one logs a warning.
    """
    path = Path(path) if path is not None else config_path()
    if not path.exists():
        return Config()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        logger.warning(f"Failed to read config {path}: {e}")
        return Config()
    except tomllib.TOMLDecodeError as e:
        logger.warning(f"Failed to parse config {path}: {e}")
        return Config()

    try:
        return parse_config(data)
    except ConfigurationError as e:
        logger.warning(f"Invalid config {path}: {e}")
        return Config()


def resolve_data_dir(cli_arg: Path | None, config: Config, cwd: Path | None = None) -> Path:
    """Pick the data root.

    Precedence: command-line flag, $WV_DATA_DIR, config file, then the
    working directory or its parent when either holds a composers/ folder.
    """
    if cli_arg is not None:
        return Path(cli_arg)

    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir)

    if config.data_dir is not None:
        return config.data_dir

    cwd = Path(cwd) if cwd is not None else Path.cwd()
    if (cwd / COMPOSERS_DIR).is_dir():
        return cwd
    if (cwd.parent / COMPOSERS_DIR).is_dir():
        return cwd.parent
    return cwd


def resolve_editor(config: Config) -> str:
    if config.editor:
        return config.editor
    return os.environ.get("EDITOR") or DEFAULT_EDITOR
