"""Configuration file support for gitstore.

This module handles loading and parsing the .gitstore.yaml configuration file.

The config file has one section per concern. Example:

    # History loading
    history:
      batch_size: 200

    # Git invocation
    git:
      executable: /usr/local/bin/git
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any
import logging
import yaml

from .history import HISTORY_BATCH_SIZE

log = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = ".gitstore.yaml"


@dataclass
class HistoryConfig:
    """Configuration for history loading.

    Attributes:
        batch_size: Number of commits fetched per history batch.
    """

    batch_size: int = HISTORY_BATCH_SIZE

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryConfig":
        batch_size = data.get("batch_size", cls.batch_size)
        if not isinstance(batch_size, int) or isinstance(batch_size, bool) or batch_size <= 0:
            raise ValueError(
                f"history.batch_size must be a positive integer, got {batch_size!r}"
            )
        return cls(batch_size=batch_size)


@dataclass
class GitConfig:
    """Configuration for running git.

    Attributes:
        executable: Path to the git binary. If not set, GitPython's lookup
            (GIT_PYTHON_GIT_EXECUTABLE or `git` on PATH) is used.
    """

    executable: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "GitConfig":
        return cls(executable=data.get("executable"))


@dataclass
class GitstoreConfig:
    """Configuration settings for gitstore.

    All settings are optional and have sensible defaults.

    Attributes:
        history: Configuration for history loading.
        git: Configuration for running git.
        _raw: Raw dictionary data for accessing arbitrary sections.
    """

    history: HistoryConfig = field(default_factory=HistoryConfig)
    git: GitConfig = field(default_factory=GitConfig)
    _raw: Dict[str, Any] = field(default_factory=dict)

    def get_section(self, name: str) -> Dict[str, Any]:
        """Get a configuration section by name.

        Returns:
            Dictionary with the section's configuration, or empty dict if not found.
        """
        return self._raw.get(name, {})

    @classmethod
    def from_dict(cls, data: dict) -> "GitstoreConfig":
        """Create a GitstoreConfig from a dictionary.

        Unknown keys are stored in _raw for forward compatibility.
        """
        history_data = data.get("history") or {}
        git_data = data.get("git") or {}

        return cls(
            history=HistoryConfig.from_dict(history_data),
            git=GitConfig.from_dict(git_data),
            _raw=data,
        )


def load_config(config_path: Optional[str] = None) -> GitstoreConfig:
    """Load configuration from a YAML file.

    If config_path is explicitly provided and the file doesn't exist, raises an error.
    If config_path is None and the default .gitstore.yaml doesn't exist, returns default config.

    Args:
        config_path: Path to the config file, or None to use the default path.

    Returns:
        GitstoreConfig instance with loaded or default values.

    Raises:
        FileNotFoundError: If config_path is explicitly provided but file doesn't exist.
        yaml.YAMLError: If the config file contains invalid YAML.
        ValueError: If the config file contains invalid values.
    """
    explicit_path = config_path is not None
    path = Path(config_path) if config_path else Path(DEFAULT_CONFIG_PATH)

    if not path.exists():
        if explicit_path:
            raise FileNotFoundError(f"Config file not found: {path}")
        return GitstoreConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    # empty file or only comments
    if data is None:
        return GitstoreConfig()

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a YAML mapping (dictionary)")

    log.debug(f"Loaded config from {path}")
    return GitstoreConfig.from_dict(data)
