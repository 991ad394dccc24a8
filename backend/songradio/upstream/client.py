from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol, Sequence

import httpx

from ..core.config import DEFAULT_USER_AGENT

logger = logging.getLogger("songradio.upstream")

EndpointTemplate = Callable[[str], Optional[str]]


class UpstreamError(Exception):
    pass


class UpstreamUnavailable(UpstreamError):
    def __init__(self, last_error: Optional[str] = None) -> None:
        self.last_error = last_error or "Unknown error"
        super().__init__(f"All endpoints failed. Last error: {self.last_error}")


class RetryPolicy(Protocol):
    attempts: int

    def timeout_for(self, base_timeout: float, attempt: int) -> float: ...

    async def pause(self, attempt: int) -> None: ...


@dataclass(frozen=True, slots=True)
class FlatRetryPolicy:
    attempts: int = 2
    delay: float = 0.3

    def timeout_for(self, base_timeout: float, attempt: int) -> float:
        return base_timeout * attempt

    async def pause(self, attempt: int) -> None:
        if attempt < self.attempts and self.delay > 0:
            await asyncio.sleep(self.delay)


SINGLE_ATTEMPT = FlatRetryPolicy(attempts=1, delay=0.0)


def browser_headers(user_agent: str = DEFAULT_USER_AGENT) -> Dict[str, str]:
    return {
        "User-Agent": user_agent,
        "Accept": "application/json, text/plain, */*",
        "Accept-Language": "en-US,en;q=0.9,hi;q=0.8",
        "Referer": "https://www.jiosaavn.com/",
        "Origin": "https://www.jiosaavn.com",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }


@dataclass(slots=True)
class UpstreamResponse:
    url: str
    base_url: str
    status_code: int
    payload: Any


@dataclass(slots=True)
class UpstreamClient:
    base_urls: Sequence[str]
    timeout: float = 3.0
    user_agent: str = DEFAULT_USER_AGENT
    retry_policy: RetryPolicy = field(default_factory=FlatRetryPolicy)
    transport: httpx.AsyncBaseTransport | None = None
    _client: httpx.AsyncClient | None = field(init=False, repr=False, default=None)

    def __post_init__(self) -> None:
        self._client = httpx.AsyncClient(
            headers=browser_headers(self.user_agent),
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def request(
        self,
        templates: Sequence[EndpointTemplate],
        base_urls: Sequence[str] | None = None,
        *,
        timeout: float | None = None,
        accept: Callable[[Any], bool] | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> UpstreamResponse:
        """Walk every base URL x template until one answers with a usable body.

        Network errors, timeouts and 5xx are retried per ``retry_policy`` with a
        growing timeout. Empty, undecodable or rejected bodies move straight on to
        the next endpoint. 4xx with a body is returned as is.
        """
        client = self._client
        if client is None:
            raise UpstreamError("upstream client not initialized")

        policy = retry_policy or self.retry_policy
        base_timeout = timeout if timeout is not None else self.timeout
        last_error: Optional[str] = None

        for base_url in base_urls if base_urls is not None else self.base_urls:
            for template in templates:
                url = template(base_url)
                if not url:
                    continue
                for attempt in range(1, policy.attempts + 1):
                    try:
                        response = await client.get(url, timeout=policy.timeout_for(base_timeout, attempt))
                    except httpx.RequestError as exc:
                        last_error = str(exc) or type(exc).__name__
                        logger.debug("Attempt %s failed for %s: %s", attempt, url[:100], last_error)
                        await policy.pause(attempt)
                        continue

                    if response.status_code >= 500:
                        last_error = f"upstream status {response.status_code}"
                        logger.debug("Attempt %s for %s -> %s", attempt, url[:100], response.status_code)
                        await policy.pause(attempt)
                        continue

                    payload = self._decode(response)
                    if not payload:
                        last_error = f"empty response body (status {response.status_code})"
                        logger.debug("Empty body from %s", url[:100])
                        break

                    if accept is not None and not accept(payload):
                        last_error = "malformed response body"
                        logger.warning("Unrecognized payload shape from %s", url[:100])
                        break

                    logger.debug("Success from %s (status %s)", base_url, response.status_code)
                    return UpstreamResponse(
                        url=url,
                        base_url=base_url,
                        status_code=response.status_code,
                        payload=payload,
                    )

        raise UpstreamUnavailable(last_error)
