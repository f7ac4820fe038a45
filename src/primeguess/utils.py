"""
Utility functions for configuration, logging, and input file handling.
"""

import logging
import os
from pathlib import Path
import tomllib
from typing import Optional


class TargetReadError(OSError):
    """The input file holding the target number could not be read."""


def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """Set up logging configuration.

    Runs once per process; later calls are no-ops because basicConfig leaves
    an already configured root logger alone. Nothing is logged before
    basicConfig runs, so a config parse problem is reported afterwards.
    """
    config, error = _load_config()
    if log_file is None:
        log_file = config.get('log_file', 'primeguess.log')
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )
    if error:
        logging.warning(error)


def get_config_file():
    """Get the application configuration file path."""
    return Path(os.getenv('PRIMEGUESS_CONFIG', 'primeguess.toml'))


def _load_config():
    """Read the [tool.primeguess] table. Returns (config, error message or None)."""
    config_file = get_config_file()
    try:
        with open(config_file, "rb") as f:
            config = tomllib.load(f)
        return dict(config.get("tool", {}).get("primeguess", {})), None
    except FileNotFoundError:
        return {}, None
    except tomllib.TOMLDecodeError as e:
        return {}, f"Could not parse {config_file} ({e}), using defaults"


def get_config():
    """Get application configuration from the [tool.primeguess] table."""
    config, error = _load_config()
    if error:
        logging.warning(error)
    return config


def get_cache_file(cli_value: Optional[str] = None) -> Optional[Path]:
    """Get the prime cache file path following the configuration hierarchy."""
    # 1. Command line
    if cli_value:
        return Path(cli_value)

    # 2. Environment
    if cache_file := os.getenv('PRIMEGUESS_CACHE_FILE'):
        return Path(cache_file)

    # 3. Config file
    if cache_file := get_config().get('cache_file'):
        return Path(cache_file)

    return None


def read_target(path) -> int:
    """
    Read a file and interpret its raw bytes as a big-endian unsigned integer.

    Args:
        path: Path to the input file

    Returns:
        The target number (0 for an empty file)
    """
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        logging.error(f"Error reading input file {path}: {e}")
        raise TargetReadError(f"Could not read input file {path}: {e}") from e
    return int.from_bytes(data, "big")
