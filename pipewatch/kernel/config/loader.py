"""Configuration loader for pipewatch.

Supports two config sources:

1. **kind: Config YAML** loaded via explicit path or the
   ``PIPEWATCH_CONFIG_PATH`` env var.
2. **pyproject.toml [tool.pipewatch]** as auto-discovery fallback.

When neither is found the defaults are used, so the CLI works against a
local service with no config file at all.
"""

from __future__ import annotations

import os
import re
import tomllib
from pathlib import Path
from typing import Any

import yaml

from pipewatch.kernel.config.models import DashboardConfig, LoggingConfig, PipewatchConfig
from pipewatch.kernel.exceptions import ConfigurationError, ValidationError
from pipewatch.kernel.logging import get_logger

logger = get_logger(__name__)

_DASHBOARD_KEYS = frozenset(
    {"api_base_url", "refresh_interval_ms", "auth_token", "extra_api_headers"}
)
_LOGGING_KEYS = frozenset({"level", "format", "output_file", "use_color", "include_timestamp"})


class ConfigLoader:
    """Loads and processes pipewatch configuration files."""

    ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

    def load(self, path: str | Path | None = None) -> PipewatchConfig:
        """Load configuration from YAML or TOML, then apply env overrides.

        Parameters
        ----------
        path : str | Path | None
            Path to config file. If None, searches using discovery order.

        Returns
        -------
        PipewatchConfig
            Parsed configuration with environment variables substituted

        Raises
        ------
        FileNotFoundError
            If an explicit path does not exist
        ConfigurationError
            If the file content is malformed or contains unknown keys
        """
        config_path = self._find_config_file(path)
        if config_path is None:
            logger.debug("No configuration file found, using defaults")
            data: dict[str, Any] = {}
        else:
            logger.info("Loading configuration from {path}", path=config_path)
            if config_path.suffix in (".yaml", ".yml"):
                data = self._load_yaml(config_path)
            else:
                data = self._load_toml(config_path)
        return self.parse(self._substitute_env_vars(data))

    def _find_config_file(self, path: str | Path | None) -> Path | None:
        """Find configuration file.

        Discovery order:
        1. Explicit path argument
        2. ``PIPEWATCH_CONFIG_PATH`` env var
        3. ``pyproject.toml`` with ``[tool.pipewatch]`` in CWD or a parent
        """
        if path:
            config_path = Path(path)
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return config_path

        if env_path := os.getenv("PIPEWATCH_CONFIG_PATH"):
            config_path = Path(env_path)
            if config_path.exists():
                return config_path
            logger.warning("PIPEWATCH_CONFIG_PATH set but file not found: {}", config_path)

        current = Path.cwd()
        while True:
            pyproject = current / "pyproject.toml"
            if pyproject.exists():
                with pyproject.open("rb") as f:
                    data = tomllib.load(f)
                if "pipewatch" in data.get("tool", {}):
                    return pyproject
            if current == current.parent:
                return None
            current = current.parent

    def _load_yaml(self, config_path: Path) -> dict[str, Any]:
        """Load a ``kind: Config`` YAML manifest and return its ``spec``."""
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ConfigurationError(
                "config", f"expected a mapping, got {type(data).__name__} in {config_path.name}"
            )
        kind = data.get("kind")
        if kind != "Config":
            raise ConfigurationError(
                "config",
                f"YAML config must use 'kind: Config', got 'kind: {kind}' in {config_path.name}",
            )
        spec = data.get("spec") or {}
        if not isinstance(spec, dict):
            raise ConfigurationError("config", "'spec' must be a mapping")
        return spec

    def _load_toml(self, config_path: Path) -> dict[str, Any]:
        """Load ``[tool.pipewatch]`` from a TOML file, or the whole file if flat."""
        with config_path.open("rb") as f:
            data = tomllib.load(f)
        if "tool" in data:
            section = data["tool"].get("pipewatch")
            if section is None:
                logger.warning("No [tool.pipewatch] section in {}, using defaults", config_path)
                return {}
            return section
        return data

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively replace ``${VAR}`` placeholders with environment values.

        Unknown variables keep their placeholder.
        """
        if isinstance(data, str):

            def replacer(match: re.Match[str]) -> str:
                value = os.environ.get(match.group(1))
                if value is None:
                    logger.debug("Environment variable {} not found", match.group(1))
                    return match.group(0)
                return value

            return self.ENV_VAR_PATTERN.sub(replacer, data)

        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}

        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]

        return data

    def parse(self, data: dict[str, Any]) -> PipewatchConfig:
        """Parse raw configuration data into PipewatchConfig.

        Parameters
        ----------
        data : dict[str, Any]
            Dashboard keys at top level plus an optional ``logging`` mapping
        """
        dashboard_data = {k: v for k, v in data.items() if k != "logging"}
        unknown = sorted(set(dashboard_data) - _DASHBOARD_KEYS)
        if unknown:
            raise ConfigurationError("dashboard", f"unknown keys: {', '.join(unknown)}")

        logging_data = data.get("logging") or {}
        unknown = sorted(set(logging_data) - _LOGGING_KEYS)
        if unknown:
            raise ConfigurationError("logging", f"unknown keys: {', '.join(unknown)}")

        if env_url := os.getenv("PIPEWATCH_API_BASE_URL"):
            dashboard_data["api_base_url"] = env_url
        if env_interval := os.getenv("PIPEWATCH_REFRESH_INTERVAL_MS"):
            try:
                dashboard_data["refresh_interval_ms"] = int(env_interval)
            except ValueError as e:
                raise ConfigurationError(
                    "dashboard", f"invalid PIPEWATCH_REFRESH_INTERVAL_MS: {env_interval!r}"
                ) from e
        if env_token := os.getenv("PIPEWATCH_AUTH_TOKEN"):
            dashboard_data["auth_token"] = env_token

        headers = dashboard_data.get("extra_api_headers") or {}
        if not isinstance(headers, dict):
            raise ConfigurationError("dashboard", "extra_api_headers must be a mapping")
        dashboard_data["extra_api_headers"] = {str(k): str(v) for k, v in headers.items()}

        logging_data = dict(logging_data)
        if env_level := os.getenv("PIPEWATCH_LOG_LEVEL"):
            logging_data["level"] = env_level.upper()
        if env_format := os.getenv("PIPEWATCH_LOG_FORMAT"):
            logging_data["format"] = env_format.lower()

        try:
            dashboard = DashboardConfig(**dashboard_data)
        except ValidationError as e:
            raise ConfigurationError("dashboard", str(e)) from e

        return PipewatchConfig(dashboard=dashboard, logging=LoggingConfig(**logging_data))


def load_config(path: str | Path | None = None) -> PipewatchConfig:
    """Load pipewatch configuration using the default discovery order."""
    return ConfigLoader().load(path)


__all__ = ["ConfigLoader", "load_config"]
