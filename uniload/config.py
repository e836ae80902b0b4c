"""
Configuration management for uniload.

Loads <UNILOAD_HOME>/config.yaml (default ~/.config/uniload/config.yaml).

Example config.yaml:
    package_dir: ~/.local/share/uniload/packages
    release: "1.4.2"
    log_level: INFO
    log_format: pretty
    log_file: null
    env_file: ~/.config/uniload/.env

Environment overrides (read at call time, not at load time):
    UNILOAD_PACKAGE_DIR  overrides package_dir
    UNILOAD_RELEASE      overrides release (see uniload.release)
"""

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from uniload.errors import ConfigError


HOME_ENV_VAR = "UNILOAD_HOME"
PACKAGE_DIR_ENV_VAR = "UNILOAD_PACKAGE_DIR"

DEFAULT_PACKAGE_DIR = "~/.local/share/uniload/packages"
DEFAULT_RELEASE = "none"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def get_uniload_home() -> Path:
    """Config home directory: $UNILOAD_HOME or ~/.config/uniload."""
    home = os.environ.get(HOME_ENV_VAR)
    if home:
        return Path(home).expanduser()
    return Path("~/.config/uniload").expanduser()


@dataclass
class UniloadConfig:
    """Complete uniload configuration."""
    package_dir: str = DEFAULT_PACKAGE_DIR
    release: str = DEFAULT_RELEASE
    log_level: str = "INFO"
    log_format: str = "pretty"
    log_file: Optional[str] = None
    env_file: Optional[str] = None

    def __post_init__(self):
        if self.log_format not in ("pretty", "structured"):
            raise ConfigError(
                f"log_format must be 'pretty' or 'structured', got '{self.log_format}'"
            )
        self.log_level = str(self.log_level).upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got '{self.log_level}'")
        self.release = str(self.release)

    def get_log_file_path(self) -> Optional[Path]:
        if not self.log_file:
            return None
        return Path(self.log_file).expanduser()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UniloadConfig":
        """Build from a config mapping; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**{k: v for k, v in data.items() if v is not None})


def get_uniload_dir(config: UniloadConfig) -> Path:
    """
    The fixed local package directory loads read from.

    $UNILOAD_PACKAGE_DIR wins over config.package_dir.
    """
    override = os.environ.get(PACKAGE_DIR_ENV_VAR)
    return Path(override or config.package_dir).expanduser()


def load_config(config_path: Optional[Path] = None) -> UniloadConfig:
    """
    Load uniload configuration from YAML file.

    Args:
        config_path: Path to config file. Defaults to <home>/config.yaml

    Returns:
        UniloadConfig instance

    Raises:
        FileNotFoundError: If the config file does not exist
        ConfigError: If the config is invalid
    """
    if config_path is None:
        config_path = get_uniload_home() / "config.yaml"

    if not config_path.exists():
        raise FileNotFoundError(f"uniload config.yaml not found at {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {config_path}")

    config = UniloadConfig.from_dict(data)

    if config.env_file:
        load_dotenv(Path(config.env_file).expanduser(), override=False)

    return config
