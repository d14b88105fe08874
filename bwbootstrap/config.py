"""Configuration management for bwbootstrap."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from .utils import log

DEFAULT_INSTALL_DIR = "~/.bwbootstrap/client"


@dataclass
class BootstrapConfig:
    """Configuration for bwbootstrap."""

    install_dir: Path = field(
        default_factory=lambda: Path(os.path.expanduser(DEFAULT_INSTALL_DIR)),
    )
    timeout: float = 30
    max_attempts: int = 3
    backoff: float = 1.0
    chunk_size: int = 8192
    use_lock: bool = True
    lock_timeout: float = 120
    npm_cache_dir: Path = field(default_factory=lambda: Path("/.npm"))
    npm_cache_owner: str = "99:100"

    def validate(self) -> None:
        """Validate the configuration."""
        for name in ("timeout", "max_attempts", "chunk_size", "lock_timeout"):
            if getattr(self, name) <= 0:
                log(f"Configuration value '{name}' should be positive", "warning", "⚠️")
        if self.backoff < 0:
            log("Configuration value 'backoff' should not be negative", "warning", "⚠️")

    @classmethod
    def from_dict(cls, data: dict) -> BootstrapConfig:
        """Build a configuration from parsed YAML."""
        known = {f.name for f in fields(cls)}
        for key in sorted(set(data) - known):
            log(f"Ignoring unknown configuration key '{key}'", "warning", "⚠️")
        values = {k: v for k, v in data.items() if k in known}

        # Expand paths
        for key in ("install_dir", "npm_cache_dir"):
            if isinstance(values.get(key), str):
                values[key] = Path(os.path.expanduser(values[key]))

        config = cls(**values)
        config.validate()
        return config

    @classmethod
    def load_from_file(cls, config_path: str | Path | None = None) -> BootstrapConfig:
        """Load configuration from YAML file."""
        if not config_path:
            return cls()

        try:
            with open(config_path) as file:
                config_data = yaml.safe_load(file) or {}
            if not isinstance(config_data, dict):
                log(f"Configuration file {config_path} is not a mapping", "error", "❌")
                return cls()
            return cls.from_dict(config_data)

        except FileNotFoundError:
            log(f"Configuration file not found: {config_path}", "warning", "⚠️")
            return cls()
        except yaml.YAMLError:
            log(f"Invalid YAML in configuration file: {config_path}", "error", "❌", print_exception=True)
            return cls()
        except Exception as e:  # noqa: BLE001
            log(f"Error loading configuration: {e}", "error", "❌", print_exception=True)
            return cls()
