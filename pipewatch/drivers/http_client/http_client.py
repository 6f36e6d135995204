"""HTTP driver for the job-running service using httpx.AsyncClient.

This driver implements the :class:`~pipewatch.kernel.ports.remote_state.RemoteState`
protocol. Every request carries the configured base URL, an optional
bearer token and the extra static headers. Any failure surfaces as
:class:`~pipewatch.kernel.exceptions.RemoteError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import pydantic

from pipewatch.kernel.domain.models import ScheduleResult, Snapshot, TaskLogs
from pipewatch.kernel.exceptions import RemoteError
from pipewatch.kernel.logging import get_logger

if TYPE_CHECKING:
    from types import TracebackType

    from pipewatch.kernel.config.models import DashboardConfig

logger = get_logger(__name__)

_MAX_MESSAGE_LENGTH = 200


class HttpClientDriver:
    """RemoteState driver using httpx.AsyncClient.

    Parameters
    ----------
    base_url : str
        Base URL of the service; endpoint paths are resolved relative to it.
    bearer_token : str | None
        Adds ``Authorization: Bearer <token>`` to every request.
    headers : dict[str, str] | None
        Extra static headers included in every request.
    timeout : float
        Request timeout in seconds (default: 30.0).

    Examples
    --------
    Basic usage::

        async with HttpClientDriver("https://ci.example.com/prunner/") as remote:
            snapshot = await remote.afetch_snapshot()
            result = await remote.aschedule("build")

    From a config object::

        remote = HttpClientDriver.from_config(config.dashboard)
    """

    def __init__(
        self,
        base_url: str,
        bearer_token: str | None = None,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._default_headers = dict(headers) if headers else {}
        self._client: httpx.AsyncClient | None = None
        # Hook for testing: inject a custom transport
        self._transport: httpx.AsyncBaseTransport | None = None

        if bearer_token:
            self._default_headers["Authorization"] = f"Bearer {bearer_token}"

    @classmethod
    def from_config(cls, config: DashboardConfig, timeout: float = 30.0) -> HttpClientDriver:
        return cls(
            base_url=config.api_base_url,
            bearer_token=config.auth_token,
            headers=config.extra_api_headers,
            timeout=timeout,
        )

    def _get_client(self) -> httpx.AsyncClient:
        """Lazily create the httpx client on first use."""
        if self._client is None:
            kwargs: dict[str, Any] = {
                "base_url": self._base_url,
                "timeout": self._timeout,
                "headers": self._default_headers,
            }
            if self._transport is not None:
                kwargs["transport"] = self._transport
            self._client = httpx.AsyncClient(**kwargs)
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request and map every failure to RemoteError."""
        client = self._get_client()
        logger.debug("{method} {path} params={params}", method=method, path=path, params=params)
        try:
            response = await client.request(method, path, params=params, json=json_body)
        except httpx.HTTPError as e:
            raise RemoteError(None, f"{method} {path} failed: {e}") from e

        if not response.is_success:
            raise RemoteError(response.status_code, _error_message(response))
        return response

    def _decode(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            raise RemoteError(
                response.status_code, f"Invalid JSON in response: {_truncate(response.text)}"
            ) from e

    async def afetch_snapshot(self) -> Snapshot:
        """GET ``pipelines/jobs``."""
        response = await self._request("GET", "pipelines/jobs")
        try:
            return Snapshot.model_validate(self._decode(response))
        except pydantic.ValidationError as e:
            raise RemoteError(response.status_code, f"Malformed pipelines/jobs document: {e}") from e

    async def aschedule(self, pipeline_name: str) -> ScheduleResult:
        """POST ``pipelines/schedule`` with ``{"pipeline": name}``."""
        response = await self._request(
            "POST", "pipelines/schedule", json_body={"pipeline": pipeline_name}
        )
        try:
            return ScheduleResult.model_validate(self._decode(response))
        except pydantic.ValidationError as e:
            raise RemoteError(response.status_code, f"Malformed schedule response: {e}") from e

    async def acancel(self, job_id: str) -> None:
        """POST ``job/cancel?id=<job_id>``; the response body is ignored."""
        await self._request("POST", "job/cancel", params={"id": job_id})

    async def afetch_logs(self, job_id: str, task_name: str) -> TaskLogs:
        """GET ``job/logs?id=<job_id>&task=<task_name>``."""
        response = await self._request(
            "GET", "job/logs", params={"id": job_id, "task": task_name}
        )
        try:
            return TaskLogs.model_validate(self._decode(response))
        except pydantic.ValidationError as e:
            raise RemoteError(response.status_code, f"Malformed logs response: {e}") from e

    async def aclose(self) -> None:
        """Close the underlying httpx client and release connection pool resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpClientDriver:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def _truncate(text: str) -> str:
    text = text.strip()
    if len(text) > _MAX_MESSAGE_LENGTH:
        return text[:_MAX_MESSAGE_LENGTH] + "..."
    return text


def _error_message(response: httpx.Response) -> str:
    """Best-effort error text from a non-2xx response."""
    detail = ""
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = str(body.get("error") or body.get("message") or "")
    if not detail:
        detail = _truncate(response.text)
    prefix = f"HTTP {response.status_code}"
    return f"{prefix}: {detail}" if detail else prefix
