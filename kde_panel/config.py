"""
Configuration module for the kde panel.
Resolves settings from an optional YAML file and command line options.
"""

import os
import logging
from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.expanduser("~/.config/kde-panel/config.yaml")
DEFAULT_REFRESH_INTERVAL = 8.0
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def default_shell() -> str:
    return os.environ.get("SHELL") or "/bin/bash"


@dataclass
class PanelConfig:
    """
    Resolved panel settings.

    Attributes:
        binary: Name or path of the kde executable
        workspace: Directory every kde command runs in
        refresh_interval: Seconds between automatic tree refreshes (0 disables)
        shell: Shell used for chained and terminal commands
        terminal: Terminal emulator command prefix for long-running commands,
            e.g. "gnome-terminal --". When unset the panel suspends itself and
            runs them in the foreground.
        log_file: Optional file that receives the panel log
        log_level: Logging level name
    """
    binary: str = "kde"
    workspace: str = field(default_factory=os.getcwd)
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    shell: str = field(default_factory=default_shell)
    terminal: Optional[str] = None
    log_file: Optional[str] = None
    log_level: str = "INFO"

    def __post_init__(self):
        self.workspace = os.path.abspath(os.path.expanduser(self.workspace))
        self.refresh_interval = float(self.refresh_interval)
        if self.refresh_interval < 0:
            raise ValueError("refresh_interval must not be negative")
        if self.log_file:
            self.log_file = os.path.expanduser(self.log_file)


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """
    Load settings from a YAML file.

    A missing default file yields no settings; a missing explicit file or a
    file that is not a mapping raises ValueError.
    """
    if not path:
        path = DEFAULT_CONFIG_PATH
        if not os.path.exists(path):
            return {}

    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ValueError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    # Accept kebab-case keys as written in YAML files
    data = {str(key).replace("-", "_"): value for key, value in data.items()}
    known = {f.name for f in fields(PanelConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning(f"Ignoring unknown config keys in {path}: {', '.join(unknown)}")

    logger.debug(f"Loaded config file {path}")
    return {key: value for key, value in data.items() if key in known}


def load_config(path: Optional[str] = None, **overrides) -> PanelConfig:
    """
    Build a PanelConfig from the config file and explicit overrides.
    Overrides that are None leave the file (or default) value untouched.
    """
    settings = load_config_file(path)
    settings.update({key: value for key, value in overrides.items() if value is not None})
    return PanelConfig(**settings)
