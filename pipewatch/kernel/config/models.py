"""Configuration data models for pipewatch."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pipewatch.kernel.exceptions import ValidationError

DEFAULT_API_BASE_URL = "http://localhost:9009/"
DEFAULT_REFRESH_INTERVAL_MS = 5000


@dataclass(frozen=True, slots=True)
class DashboardConfig:
    """Connection and polling settings accepted by the sync engine.

    This is a closed set: the loader rejects any other key.

    Attributes
    ----------
    api_base_url : str
        Base URL of the job-running service. A trailing ``/`` is added
        when missing so endpoint paths resolve relative to it.
    refresh_interval_ms : int, default=5000
        Snapshot poll interval in milliseconds
    auth_token : str | None
        Optional bearer credential sent as ``Authorization: Bearer <token>``
    extra_api_headers : dict[str, str]
        Static headers attached to every request (e.g. a CSRF token)

    Examples
    --------
    TOML configuration:

    ```toml
    [tool.pipewatch]
    api_base_url = "https://ci.example.com/prunner/"
    refresh_interval_ms = 2000
    auth_token = "${PRUNNER_TOKEN}"

    [tool.pipewatch.extra_api_headers]
    X-CSRF-Token = "abc"
    ```
    """

    api_base_url: str = DEFAULT_API_BASE_URL
    refresh_interval_ms: int = DEFAULT_REFRESH_INTERVAL_MS
    auth_token: str | None = None
    extra_api_headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate and normalise fields.

        Raises
        ------
        ValidationError
            If the base URL is empty or the interval is not positive
        """
        if not self.api_base_url:
            raise ValidationError("api_base_url", "cannot be empty")
        if not self.api_base_url.endswith("/"):
            # frozen dataclass: bypass __setattr__ for normalisation
            object.__setattr__(self, "api_base_url", self.api_base_url + "/")
        if isinstance(self.refresh_interval_ms, bool) or not isinstance(
            self.refresh_interval_ms, int
        ):
            raise ValidationError(
                "refresh_interval_ms", "must be an integer", self.refresh_interval_ms
            )
        if self.refresh_interval_ms <= 0:
            raise ValidationError("refresh_interval_ms", "must be positive", self.refresh_interval_ms)
        if not self.auth_token:
            object.__setattr__(self, "auth_token", None)

    @property
    def refresh_interval_seconds(self) -> float:
        return self.refresh_interval_ms / 1000


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging configuration for pipewatch.

    Environment variable overrides:

    ```bash
    export PIPEWATCH_LOG_LEVEL=DEBUG
    export PIPEWATCH_LOG_FORMAT=rich
    ```
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: Literal["console", "json", "structured", "rich"] = "structured"
    output_file: str | None = None
    use_color: bool = True
    include_timestamp: bool = True


@dataclass(slots=True)
class PipewatchConfig:
    """Complete pipewatch configuration."""

    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
