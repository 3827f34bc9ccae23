"""Async HTTP client shared by the holiday calendar and OneBot adapters.

Retries come from ``httpx-retries``, throttling from ``aiolimiter`` and the
optional on-disk response cache from ``hishel``. Every adapter request runs
inside ``asyncio.run`` and opens a fresh client, so nothing here is shared
between heartbeats except the SQLite cache file.
"""

from __future__ import annotations

import json
from contextlib import AsyncExitStack
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage, FilterPolicy
from hishel import Response as HishelCacheResponse
from hishel._policies import BaseFilter
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from mutewarden.config.storage import get_holiday_cache_path

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import QueryParamTypes, URLTypes

    from mutewarden.config.http_resilience import (
        CacheConfig,
        ResilienceConfig,
        RetryPolicy,
        ShouldCacheHook,
    )

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


class ResilientClient:
    """``httpx.AsyncClient`` wired from a ``ResilienceConfig``.

    Tests swap ``_client`` for a client over ``httpx.MockTransport``.
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit is not None
            else None
        )
        self._client = _open_client(config)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: URLTypes,
        *,
        json: object = None,
        params: QueryParamTypes | None = None,
    ) -> httpx.Response:
        async with AsyncExitStack() as stack:
            if self._limiter is not None:
                await stack.enter_async_context(self._limiter)
            return await self._client.request(method, url, json=json, params=params)

    async def request_json(
        self,
        method: str,
        url: URLTypes,
        *,
        json: object = None,
        params: QueryParamTypes | None = None,
    ) -> Any:  # noqa: ANN401
        """Send a request and decode its JSON body.

        Raises ``httpx.HTTPStatusError`` on 4xx/5xx and ``ValueError`` when the
        body is not JSON.
        """

        response = await self.request(method, url, json=json, params=params)
        response.raise_for_status()
        return response.json()


def _open_client(config: ResilienceConfig) -> httpx.AsyncClient:
    async def log_response(response: httpx.Response) -> None:
        log.debug(
            "%s: %s %s -> %s",
            config.name,
            response.request.method,
            response.request.url,
            response.status_code,
        )

    options: dict[str, Any] = {
        "timeout": config.timeout_seconds,
        "transport": RetryTransport(retry=build_retry(config.retry)),
        "headers": dict(config.default_headers or {}),
        "event_hooks": {"response": [log_response]},
    }
    if config.base_url is not None:
        options["base_url"] = config.base_url

    cache = config.cache
    if cache is None:
        return httpx.AsyncClient(**options)
    return AsyncCacheClient(
        **options,
        storage=_cache_storage(cache),
        policy=_cache_policy(cache.should_cache),
    )


def _cache_storage(config: CacheConfig) -> AsyncSqliteStorage:
    if config.backend == "memory":
        database_path = ":memory:"
    elif config.backend == "sqlite":
        database_path = config.sqlite_path or str(get_holiday_cache_path())
    else:
        raise ValueError(f"Unsupported cache backend: {config.backend}")
    return AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=config.default_ttl_seconds,
        refresh_ttl_on_access=config.refresh_ttl_on_access,
    )


def _cache_policy(predicate: ShouldCacheHook | None) -> FilterPolicy | None:
    if predicate is None:
        return None
    return FilterPolicy(response_filters=[_JsonPayloadFilter(predicate)])


class _JsonPayloadFilter(BaseFilter[HishelCacheResponse]):
    """Stores a response only when its decoded JSON body satisfies ``predicate``."""

    def __init__(self, predicate: ShouldCacheHook) -> None:
        self._predicate = predicate

    def needs_body(self) -> bool:
        return True

    def apply(self, item: HishelCacheResponse, body: bytes | None) -> bool:  # noqa: ARG002
        if not body:
            return False
        try:
            payload = json.loads(body)
        except ValueError:
            return False
        return bool(self._predicate(payload))
