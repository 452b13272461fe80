"""
Base HTTP client for the POS backend.

Connection attempts that never reached the server are retried with
exponential backoff; everything else is handed back to the caller, which
maps it onto domain errors.
"""

from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.config import get_logger, get_settings

logger = get_logger(__name__)

# Failures where the request provably never reached the backend
RETRYABLE_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


def error_message(response: httpx.Response, default: str) -> str:
    """Best-effort ``error``/``message`` text from a JSON error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or default
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return default


class BaseRemoteClient:
    """
    Shared plumbing for backend clients.

    Provides:
    - base URL, bearer token and timeout from settings
    - connection-level retries with exponential backoff
    - an injectable httpx transport for tests
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        api_token: str | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings().remote
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.timeout
        self.api_token = api_token if api_token is not None else settings.api_token
        self.max_retries = max_retries if max_retries is not None else settings.max_retries
        self.retry_delay = settings.retry_delay
        self.retry_multiplier = settings.retry_multiplier
        self._transport = transport

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        if extra:
            headers.update(extra)
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "remote_retry",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Send a request, retrying only connection failures.

        Raises:
            httpx.TimeoutException, httpx.RequestError: transport failures
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(
                multiplier=self.retry_delay,
                min=self.retry_delay,
                max=self.retry_delay * (self.retry_multiplier**3),
            ),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=self._log_retry,
            reraise=True,
        )

        async with self._client() as client:
            async for attempt in retrying:
                with attempt:
                    return await client.request(
                        method,
                        path,
                        json=json,
                        params=params,
                        headers=self._headers(headers),
                    )

        raise RuntimeError("unreachable")  # pragma: no cover
