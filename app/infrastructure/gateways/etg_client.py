"""
Low-level HTTP client for the ETG (worldota) B2B v3 API.

- Basic auth built from process-wide credentials
- JSON body + parse
- per-call timeout
- retry with exponential backoff for transient failures (5xx, 429, timeout, network)
- rate-limit metadata on every response and every error
"""

import asyncio
import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx

from app.config import Settings
from app.domain.errors import (
    InvalidResponseError,
    PermanentServerError,
    RateLimitedError,
    SupplierError,
    SupplierNetworkError,
    SupplierTimeoutError,
    TransientServerError,
)
from app.domain.value_objects.rate_limit import RateLimitSnapshot

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.worldota.net"
MAX_BACKOFF_SECONDS = 10.0


@dataclass(frozen=True)
class EtgCredentials:
    """Immutable key pair; construction fails when either half is missing."""

    key_id: str
    api_key: str

    def __post_init__(self) -> None:
        if not self.key_id or not self.api_key:
            raise ValueError("Missing ETG credentials (ETG_API_KEY_ID, ETG_API_KEY)")

    @classmethod
    def from_settings(cls, settings: Settings) -> "EtgCredentials":
        return cls(key_id=settings.etg_api_key_id or "", api_key=settings.etg_api_key or "")

    @property
    def authorization_header(self) -> str:
        token = base64.b64encode(f"{self.key_id}:{self.api_key}".encode()).decode()
        return f"Basic {token}"


@dataclass
class SupplierResponse:
    data: Any
    rate_limit: RateLimitSnapshot
    status_code: int


class EtgClient:
    def __init__(
        self,
        credentials: EtgCredentials,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 60.0,
        max_retries: int = 3,
        retry_base_ms: int = 500,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Args:
            credentials: ETG key id / api key pair
            base_url: Base URL of the ETG API
            timeout_seconds: Default per-call timeout (overridable per call)
            max_retries: Retries after the first attempt (overridable per call)
            retry_base_ms: Base for the exponential backoff
            sleep: Awaitable used between attempts
        """
        self._credentials = credentials
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._max_retries = max_retries
        self._retry_base_ms = retry_base_ms
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings, credentials: EtgCredentials | None = None) -> "EtgClient":
        return cls(
            credentials=credentials or EtgCredentials.from_settings(settings),
            base_url=settings.etg_api_base,
            timeout_seconds=settings.etg_default_timeout_seconds,
            max_retries=settings.etg_max_retries,
            retry_base_ms=settings.etg_retry_base_ms,
        )

    def backoff_seconds(self, attempt: int, error: SupplierError | None = None) -> float:
        delay = (self._retry_base_ms / 1000) * (2 ** (attempt - 1))
        if isinstance(error, RateLimitedError) and error.rate_limit.reset_seconds > 0:
            delay = max(delay, float(error.rate_limit.reset_seconds))
        return min(delay, MAX_BACKOFF_SECONDS)

    async def call(
        self,
        path: str,
        method: str = "POST",
        body: Any = None,
        timeout: float | None = None,
        retries: int | None = None,
    ) -> SupplierResponse:
        """
        Call an ETG endpoint and return the decoded JSON body.

        Raises:
            SupplierError: the last observed error once retries are exhausted,
                or immediately for non-retryable kinds.
        """
        timeout_seconds = timeout if timeout is not None else self._timeout
        max_retries = retries if retries is not None else self._max_retries
        url = f"{self._base_url}{path}"
        headers = {
            "Authorization": self._credentials.authorization_header,
            "Accept": "application/json",
        }

        attempt = 0
        while True:
            attempt += 1
            try:
                response = await self._attempt(method, url, body, headers, timeout_seconds)
            except SupplierError as exc:
                if not exc.retryable or attempt > max_retries:
                    logger.error(
                        "ETG call failed",
                        extra={
                            "path": path,
                            "attempt": attempt,
                            "error_code": exc.code,
                            "http_status": exc.http_status,
                            "rate_limit_remaining": exc.rate_limit.remaining,
                        },
                    )
                    raise
                delay = self.backoff_seconds(attempt, exc)
                logger.warning(
                    "ETG call failed, retrying",
                    extra={
                        "path": path,
                        "attempt": attempt,
                        "max_retries": max_retries,
                        "retry_delay": delay,
                        "error_code": exc.code,
                        "http_status": exc.http_status,
                    },
                )
                await self._sleep(delay)
                continue

            logger.debug(
                "ETG call succeeded",
                extra={
                    "path": path,
                    "attempt": attempt,
                    "http_status": response.status_code,
                    "rate_limit_remaining": response.rate_limit.remaining,
                    "rate_limit_reset": response.rate_limit.reset_seconds,
                },
            )
            return response

    async def _attempt(
        self,
        method: str,
        url: str,
        body: Any,
        headers: dict[str, str],
        timeout_seconds: float,
    ) -> SupplierResponse:
        request_kwargs: dict[str, Any] = {"headers": headers}
        if body is not None and method.upper() != "GET":
            request_kwargs["json"] = body

        try:
            async with httpx.AsyncClient(timeout=timeout_seconds) as client:
                response = await client.request(method.upper(), url, **request_kwargs)
        except httpx.TimeoutException as exc:
            raise SupplierTimeoutError(timeout_seconds, payload=str(exc)) from exc
        except httpx.HTTPError as exc:
            raise SupplierNetworkError(f"Network error when calling ETG: {exc}") from exc

        rate_limit = RateLimitSnapshot.from_headers(response.headers)
        text = response.text
        data: Any = None
        decode_failed = False
        if text:
            try:
                data = json.loads(text)
            except json.JSONDecodeError:
                decode_failed = True

        status_code = response.status_code
        if not response.is_success:
            payload = data if data is not None else {"status": status_code, "body": text}
            if status_code == 429:
                raise RateLimitedError(http_status=status_code, payload=payload, rate_limit=rate_limit)
            if status_code >= 500:
                raise TransientServerError(status_code, payload=payload, rate_limit=rate_limit)
            raise PermanentServerError(status_code, payload=payload, rate_limit=rate_limit)

        if decode_failed:
            raise InvalidResponseError(
                "ETG returned a body that is not valid JSON",
                raw=text,
                http_status=status_code,
                rate_limit=rate_limit,
            )

        return SupplierResponse(data=data, rate_limit=rate_limit, status_code=status_code)
