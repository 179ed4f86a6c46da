"""
HTTP client for the Sentry REST API.
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from shared.config import ExporterSettings, DEFAULT_SENTRY_API_TIMEOUT
from shared.errors import DecodeError, UpstreamStatusError, UpstreamTransportError
from shared.logging import get_logger
from shared.metrics import ServiceMetrics

T = TypeVar("T")

# Longest response body kept on an UpstreamStatusError
MAX_ERROR_BODY_CHARS = 1024


@dataclass(frozen=True)
class SentryClientConfig:
    """Connection settings shared read-only by every request."""
    api_key: str = field(repr=False)
    api_endpoint: str
    organization_slug: str
    timeout: float = DEFAULT_SENTRY_API_TIMEOUT

    @classmethod
    def from_settings(cls, settings: ExporterSettings) -> "SentryClientConfig":
        return cls(
            api_key=settings.sentry_api_key.get_secret_value(),
            api_endpoint=settings.sentry_api_endpoint,
            organization_slug=settings.sentry_organization_slug,
            timeout=settings.sentry_api_timeout,
        )


@dataclass(frozen=True)
class RequestParams:
    """Description of a single API request."""
    method: str
    sub_path: str
    queries: Mapping[str, str] = field(default_factory=dict)
    array_queries: Mapping[str, Sequence[str]] = field(default_factory=dict)
    operation: str = "request"

    def query_items(self) -> List[Tuple[str, str]]:
        """Flatten scalar and repeated parameters into ordered pairs.

        Keys are sorted; values of a repeated parameter keep their order.
        """
        merged: Dict[str, List[str]] = {}
        for key, value in self.queries.items():
            merged.setdefault(key, []).append(value)
        for key, values in self.array_queries.items():
            merged.setdefault(key, []).extend(values)

        return [(key, value) for key in sorted(merged) for value in merged[key]]

    def encode_query(self) -> str:
        """Encode the parameters as a URL query string."""
        return str(httpx.QueryParams(self.query_items()))


def join_url_path(base_path: str, sub_path: str) -> str:
    """Join two URL paths, ending with exactly one trailing slash.

    The Sentry API rejects requests whose path lacks the trailing slash.
    """
    segments = [s for s in f"{base_path}/{sub_path}".split("/") if s]
    if not segments:
        return "/"
    return "/" + "/".join(segments) + "/"


class SentryClient:
    """Client for the Sentry REST API."""

    def __init__(
        self,
        config: SentryClientConfig,
        metrics: Optional[ServiceMetrics] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.metrics = metrics
        self.logger = get_logger("sentry_exporter.sentry_client")
        self._transport = transport
        self._base_url = httpx.URL(config.api_endpoint)

    @property
    def organization_slug(self) -> str:
        return self.config.organization_slug

    def build_url(self, params: RequestParams) -> httpx.URL:
        """Compose the absolute request URL, query string included."""
        return self._base_url.copy_with(
            path=join_url_path(self._base_url.path, params.sub_path),
            params=httpx.QueryParams(params.query_items()),
        )

    def build_request(self, client: httpx.AsyncClient, params: RequestParams) -> httpx.Request:
        return client.build_request(
            params.method,
            self.build_url(params),
            headers={"Authorization": f"Bearer {self.config.api_key}"},
        )

    async def request(self, params: RequestParams, out_type: Type[T], timeout: Optional[float] = None) -> T:
        """Send a request and decode its JSON body into ``out_type``.

        The timeout covers this request only and is enforced around the
        transport as well, so a transport that ignores cancellation cannot
        hold the caller past the deadline.
        """
        timeout = timeout if timeout is not None else self.config.timeout
        start_time = time.monotonic()
        status = "error"

        try:
            response = await asyncio.wait_for(self._send(params, timeout), timeout=timeout)
            status = str(response.status_code)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            status = "timeout"
            raise UpstreamTransportError(
                f"{params.operation}: request timed out after {timeout}s",
                details={"operation": params.operation, "timeout": timeout}
            ) from e
        except httpx.HTTPError as e:
            status = "transport_error"
            raise UpstreamTransportError(
                f"{params.operation}: {e.__class__.__name__}: {e}",
                details={"operation": params.operation}
            ) from e
        finally:
            duration = time.monotonic() - start_time
            if self.metrics:
                self.metrics.record_upstream_request(params.operation, status, duration)
            self.logger.debug(
                "Sentry API request finished",
                operation=params.operation,
                path=params.sub_path,
                status=status,
                duration_ms=round(duration * 1000, 2)
            )

        if response.status_code < 200 or response.status_code >= 300:
            raise UpstreamStatusError(
                response.status_code,
                body=response.text[:MAX_ERROR_BODY_CHARS],
                details={"operation": params.operation}
            )

        return self._decode(response, out_type, params.operation)

    async def _send(self, params: RequestParams, timeout: float) -> httpx.Response:
        async with httpx.AsyncClient(transport=self._transport, timeout=timeout) as client:
            return await client.send(self.build_request(client, params))

    def _decode(self, response: httpx.Response, out_type: Type[T], operation: str) -> T:
        try:
            payload: Any = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(
                f"{operation}: response is not valid JSON",
                details={"operation": operation, "error": str(e)}
            ) from e

        try:
            return TypeAdapter(out_type).validate_python(payload)
        except ValidationError as e:
            raise DecodeError(
                f"{operation}: unexpected response shape",
                details={"operation": operation, "error": str(e)}
            ) from e
