from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional, Protocol

import httpx

logger = logging.getLogger(__name__)

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


@dataclass(frozen=True)
class ProbeResult:
    success: bool
    http_status: int
    body: str


ProbeCallback = Callable[[ProbeResult], None]


class ProbeHandle(Protocol):
    def cancel(self) -> bool: ...


class ProbeClient(Protocol):
    def start_probe(self, url: str, on_complete: ProbeCallback) -> ProbeHandle: ...


def _is_server_error(status_code: int) -> bool:
    return 500 <= status_code < 600


class HttpxProbeClient:
    """Issues the domain probe on the running event loop.

    Each probe uses its own ``httpx.AsyncClient`` so cookies set by the probe
    endpoint are never shared with, or kept beyond, that single request. 5xx
    responses are retried up to ``max_retries`` times; the completion callback
    is invoked on the loop that started the probe.
    """

    def __init__(
        self,
        *,
        max_retries: int = 5,
        timeout: float = 10.0,
        retry_backoff_seconds: float = 0.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self._max_retries = max(max_retries, 0)
        self._timeout = timeout
        self._retry_backoff_seconds = max(retry_backoff_seconds, 0.0)
        self._transport = transport
        self._loop = loop

    def start_probe(self, url: str, on_complete: ProbeCallback) -> asyncio.Task:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self.fetch(url))
        task.add_done_callback(partial(self._deliver, on_complete))
        return task

    async def fetch(self, url: str) -> ProbeResult:
        async with httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            for attempt in range(self._max_retries + 1):
                try:
                    response = await client.get(url, headers=_NO_CACHE_HEADERS)
                except httpx.HTTPError as exc:
                    logger.info(
                        "domain probe transport error",
                        extra={"url": url, "attempt": attempt + 1, "error": str(exc)},
                    )
                    return ProbeResult(success=False, http_status=0, body="")

                if _is_server_error(response.status_code) and attempt < self._max_retries:
                    logger.debug(
                        "domain probe server error, retrying",
                        extra={"status": response.status_code, "attempt": attempt + 1},
                    )
                    client.cookies.clear()
                    await asyncio.sleep(self._retry_delay_seconds(attempt + 1))
                    continue

                return ProbeResult(
                    success=True,
                    http_status=response.status_code,
                    body=response.text,
                )
        # Unreachable: the final attempt always returns above.
        return ProbeResult(success=False, http_status=0, body="")

    def _retry_delay_seconds(self, attempt: int) -> float:
        if not self._retry_backoff_seconds:
            return 0.0
        return min(self._retry_backoff_seconds * (2 ** (max(attempt, 1) - 1)), 60.0)

    @staticmethod
    def _deliver(on_complete: ProbeCallback, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("domain probe crashed", extra={"error": repr(exc)})
            on_complete(ProbeResult(success=False, http_status=0, body=""))
            return
        on_complete(task.result())
