"""HTTP client collaborator used to send synthesized requests."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Iterable, Optional

import httpx

from .config import Settings
from .errors import TransportFailure
from .logging import redact_headers
from .models import HttpRequest

logger = logging.getLogger(__name__)

DEFAULT_RETRY_STATUSES = frozenset({429, 503})


class HttpxClient:
    """Sends requests with httpx, retrying throttled or unavailable upstreams."""

    def __init__(
        self,
        timeout_seconds: float = 30,
        max_attempts: int = 3,
        backoff_seconds: float = 0.5,
        backoff_multiplier: float = 2.0,
        retry_statuses: Iterable[int] = DEFAULT_RETRY_STATUSES,
        verify_ssl: bool = True,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self.backoff_multiplier = backoff_multiplier
        self.retry_statuses = frozenset(retry_statuses)
        self._client = client or httpx.Client(timeout=timeout_seconds, verify=verify_ssl)
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpxClient":
        return cls(
            timeout_seconds=settings.engine_http_timeout_seconds,
            max_attempts=settings.engine_http_max_attempts,
            backoff_seconds=settings.engine_http_backoff_seconds,
            backoff_multiplier=settings.engine_http_backoff_multiplier,
            retry_statuses=settings.retry_statuses(),
            verify_ssl=settings.engine_http_verify_ssl,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpxClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def send(self, request: HttpRequest) -> Any:
        content = json.dumps(request.body) if request.has_body else None
        attempt = 0
        while True:
            attempt += 1
            try:
                response = self._client.request(
                    request.method,
                    request.url,
                    headers=request.headers,
                    content=content,
                )
                if response.status_code in self.retry_statuses and attempt < self.max_attempts:
                    self._backoff(request, attempt, f"status {response.status_code}")
                    continue
                response.raise_for_status()
                return _decode(response)
            except httpx.HTTPStatusError as exc:
                logger.error(
                    "%s %s failed with status %s and body: %s",
                    request.method,
                    request.display_url or request.url,
                    exc.response.status_code,
                    exc.response.text,
                )
                raise TransportFailure(
                    f"{exc.response.status_code} {exc.response.text}",
                    status_code=exc.response.status_code,
                    body=exc.response.text,
                ) from exc
            except httpx.TransportError as exc:
                if attempt < self.max_attempts:
                    self._backoff(request, attempt, str(exc) or type(exc).__name__)
                    continue
                raise TransportFailure(f"Request failed: {exc}") from exc

    def _backoff(self, request: HttpRequest, attempt: int, reason: str) -> None:
        delay = self.backoff_seconds * self.backoff_multiplier ** (attempt - 1)
        logger.warning(
            "HTTP call failed (attempt %s/%s): %s. Retrying in %ss. request=%s %s headers=%s",
            attempt,
            self.max_attempts,
            reason,
            delay,
            request.method,
            request.display_url or request.url,
            redact_headers(request.headers, request.secret_headers),
        )
        self._sleep(delay)


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
