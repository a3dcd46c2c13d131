"""
HTTP client for a ReportPortal-style reporting service.

This module implements the reporting client over the service's REST API:
- Launch start/finish under /api/v1/{project}/launch
- Item start/finish under /api/v1/{project}/item
- Logs and attachments under /api/v2/{project}/log

Requests run on a private asyncio loop in a daemon thread, so callers on
test engine threads never block on the network.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
from concurrent.futures import Future, wait
from typing import Any, Coroutine

import aiohttp

from .base import BaseReportingClient
from .models import (
    FinishRequest,
    ItemHandle,
    LogRequest,
    ReportingError,
    StartItemRequest,
    StartLaunchRequest,
)

logger = logging.getLogger(__name__)

# Headers
AUTHORIZATION = "Authorization"
CONTENT_TYPE = "Content-Type"

# Content types
JSON_CONTENT_TYPE = "application/json"

# Multipart field carrying the JSON part of an attachment log
JSON_REQUEST_PART = "json_request_part"


class HTTPReportingClient(BaseReportingClient):
    """
    Reporting client over HTTP.

    Every call returns immediately. A request waits on the handles it
    depends on (launch, parent item, pending children) inside the client's
    event loop, so the remote tree is built in a valid order even when
    the engine reports scenarios from several threads.
    """

    def __init__(
        self,
        endpoint: str,
        project: str,
        api_key: str | None = None,
        timeout_ms: int = 30000,
    ):
        """
        Initialize the HTTP client.

        Args:
            endpoint: Service base URL (e.g., "https://reports.example.com")
            project: Project name the launch belongs to
            api_key: Optional API key sent as a bearer token
            timeout_ms: Per-request timeout in milliseconds
        """
        self.endpoint = endpoint.rstrip("/")
        self.project = project
        self._api_key = api_key
        self._timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._session: aiohttp.ClientSession | None = None
        self._launch: ItemHandle | None = None
        self._pending: set[Future[Any]] = set()
        self._pending_lock = threading.Lock()
        self._connect_lock = threading.Lock()

    @property
    def is_connected(self) -> bool:
        return self._loop is not None and self._session is not None

    def _url(self, version: str, *parts: str) -> str:
        return "/".join([self.endpoint, "api", version, self.project, *parts])

    def _build_headers(self) -> dict[str, str]:
        """Build default request headers."""
        headers = {"Accept": JSON_CONTENT_TYPE}
        if self._api_key:
            headers[AUTHORIZATION] = f"Bearer {self._api_key}"
            logger.debug("Applied bearer auth header")
        return headers

    # ─────────────────────────────────────────────────────────────────────
    # Loop management
    # ─────────────────────────────────────────────────────────────────────

    def connect(self) -> None:
        """Start the client loop thread and open the HTTP session."""
        with self._connect_lock:
            if self._loop is not None:
                return
            loop = asyncio.new_event_loop()
            thread = threading.Thread(
                target=loop.run_forever,
                name="chorus-http",
                daemon=True,
            )
            thread.start()
            asyncio.run_coroutine_threadsafe(self._open_session(), loop).result()
            self._loop = loop
            self._thread = thread

    async def _open_session(self) -> None:
        self._session = aiohttp.ClientSession(
            headers=self._build_headers(),
            timeout=self._timeout,
        )

    async def _close_session(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    def close(self) -> None:
        """Flush outstanding requests, close the session and stop the loop."""
        with self._connect_lock:
            if self._loop is None:
                return
            self._wait_pending()
            asyncio.run_coroutine_threadsafe(self._close_session(), self._loop).result()
            self._loop.call_soon_threadsafe(self._loop.stop)
            if self._thread is not None:
                self._thread.join()
            self._loop.close()
            self._loop = None
            self._thread = None

    def _submit(self, coro: Coroutine[Any, Any, Any]) -> Future[Any]:
        """Schedule a coroutine on the client loop and track it until done."""
        if self._loop is None:
            self.connect()
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)
        return future

    def _discard(self, future: Future[Any]) -> None:
        with self._pending_lock:
            self._pending.discard(future)

    def _wait_pending(self) -> None:
        """Block until every tracked request has completed."""
        while True:
            with self._pending_lock:
                pending = [f for f in self._pending if not f.done()]
            if not pending:
                return
            wait(pending)

    def _require_launch(self) -> ItemHandle:
        if self._launch is None:
            raise ReportingError("Launch not started. Call start_launch() first.")
        return self._launch

    @staticmethod
    async def _resolve(handle: ItemHandle) -> str:
        return await asyncio.wrap_future(handle.future)

    # ─────────────────────────────────────────────────────────────────────
    # Client API
    # ─────────────────────────────────────────────────────────────────────

    def start_launch(self, rq: StartLaunchRequest) -> ItemHandle:
        handle = ItemHandle(self._submit(self._start_launch(rq)))
        self._launch = handle
        return handle

    def finish_launch(self, handle: ItemHandle, rq: FinishRequest) -> None:
        self._wait_pending()
        wait([self._submit(self._finish_launch(handle, rq))])

    def start_item(self, parent: ItemHandle | None, rq: StartItemRequest) -> ItemHandle:
        launch = self._require_launch()
        future = self._submit(self._start_item(launch, parent, rq))
        return ItemHandle(future, parent=parent)

    def finish_item(self, handle: ItemHandle, rq: FinishRequest) -> None:
        launch = self._require_launch()
        future = self._submit(self._finish_item(launch, handle, rq))
        if handle.parent is not None:
            handle.parent.add_dependent(future)

    def emit_log(self, rq: LogRequest) -> None:
        launch = self._require_launch()
        future = self._submit(self._emit_log(launch, rq))
        if rq.item is not None:
            rq.item.add_dependent(future)

    # ─────────────────────────────────────────────────────────────────────
    # Requests
    # ─────────────────────────────────────────────────────────────────────

    async def _start_launch(self, rq: StartLaunchRequest) -> str:
        data = await self._request("POST", self._url("v1", "launch"), json=rq.to_dict())
        launch_id = data["id"]
        logger.info(f"Launch started: {launch_id}")
        return launch_id

    async def _finish_launch(self, handle: ItemHandle, rq: FinishRequest) -> None:
        launch_id = await self._resolve(handle)
        await self._request(
            "PUT",
            self._url("v1", "launch", launch_id, "finish"),
            json=rq.to_dict(),
        )
        logger.info(f"Launch finished: {launch_id}")

    async def _start_item(
        self,
        launch: ItemHandle,
        parent: ItemHandle | None,
        rq: StartItemRequest,
    ) -> str:
        payload = rq.to_dict()
        payload["launchUuid"] = await self._resolve(launch)
        if parent is None:
            url = self._url("v1", "item")
        else:
            url = self._url("v1", "item", await self._resolve(parent))
        data = await self._request("POST", url, json=payload)
        logger.debug(f"Item started: {rq.type} {rq.name!r} -> {data['id']}")
        return data["id"]

    async def _finish_item(
        self,
        launch: ItemHandle,
        handle: ItemHandle,
        rq: FinishRequest,
    ) -> None:
        dependents = handle.dependents()
        if dependents:
            # Child failures are already logged; the parent still finishes.
            await asyncio.gather(
                *(asyncio.wrap_future(f) for f in dependents),
                return_exceptions=True,
            )
        item_id = await self._resolve(handle)
        payload = rq.to_dict()
        payload["launchUuid"] = await self._resolve(launch)
        await self._request("PUT", self._url("v1", "item", item_id), json=payload)
        logger.debug(f"Item finished: {item_id} ({rq.status})")

    async def _emit_log(self, launch: ItemHandle, rq: LogRequest) -> None:
        payload = rq.to_dict()
        payload["launchUuid"] = await self._resolve(launch)
        if rq.item is not None:
            payload["itemUuid"] = await self._resolve(rq.item)

        url = self._url("v2", "log")
        if rq.attachment is None:
            await self._request("POST", url, json=payload)
            return

        payload["file"] = {"name": rq.attachment.name}
        form = aiohttp.FormData()
        form.add_field(
            JSON_REQUEST_PART,
            json.dumps([payload]),
            content_type=JSON_CONTENT_TYPE,
        )
        form.add_field(
            "file",
            rq.attachment.data,
            filename=rq.attachment.name,
            content_type=rq.attachment.content_type,
        )
        await self._request("POST", url, data=form)

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        """
        Send one HTTP request and decode the JSON body.

        Raises:
            ReportingError: On HTTP error status, timeout or connection failure
        """
        if self._session is None:
            raise ReportingError("Client not connected. Call connect() first.")

        try:
            async with self._session.request(method, url, **kwargs) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    error = ReportingError(
                        f"HTTP {resp.status}: {resp.reason}",
                        status=resp.status,
                        data={"url": url, "body": text[:500]},
                    )
                    logger.error(f"{method} {url} failed: {error.message}")
                    raise error
                try:
                    data = await resp.json(content_type=None)
                except json.JSONDecodeError:
                    return {}
                return data if isinstance(data, dict) else {}

        except asyncio.TimeoutError as e:
            logger.error(f"{method} {url} timed out")
            raise ReportingError(
                "Request timed out",
                data={"url": url},
            ) from e
        except aiohttp.ClientError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise ReportingError(
                f"HTTP error: {e}",
                data={"url": url},
            ) from e

    def __repr__(self) -> str:
        status = "connected" if self.is_connected else "disconnected"
        return f"HTTPReportingClient(endpoint={self.endpoint!r}, project={self.project!r}, status={status})"
