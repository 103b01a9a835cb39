"""Non-blocking HTTP transport (aiohttp backend).

This client is not part of the public API and should only be used internally.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import ssl
import threading
from typing import Optional, Tuple

import aiohttp

from etcdkv._internal.types import RequestDescriptor, ResponseOutputs
from etcdkv.types import EtcdError, Response, ResultCallback

logger = logging.getLogger(__name__)


class AsyncHttpTransport:
    """aiohttp transport running on a background event loop.

    Requests are submitted with run_coroutine_threadsafe and never block
    the caller. The result continuation is attached to the returned
    future, so it runs exactly once on success, failure or cancellation,
    always on the loop thread and never inside submit(). A closed
    transport refuses new requests.

    Features:
    - One loop thread and one ClientSession per transport, created lazily
    - The client SSL context is bound to the session connector once
    - No total timeout, so long-poll watches can wait indefinitely
    """

    def __init__(self, ssl_context: Optional[ssl.SSLContext]) -> None:
        self._ssl_context = ssl_context
        self._lock = threading.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._closed = False
        # Only touched from the loop thread
        self._session: Optional[aiohttp.ClientSession] = None

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._closed:
                raise EtcdError("Client is closed")
            if self._loop is None:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(target=loop.run_forever, name="etcdkv-io", daemon=True)
                thread.start()
                self._loop = loop
                self._thread = thread
            return self._loop

    def submit(
        self, descriptor: RequestDescriptor, callback: ResultCallback
    ) -> concurrent.futures.Future[Tuple[Response, str]]:
        """Start a request and return its in-flight handle immediately.

        Raises:
            EtcdError: If the transport has been closed
        """
        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(self._perform(descriptor), loop)
        # Delivery hops through the loop even when the future is already done
        future.add_done_callback(
            lambda f: loop.call_soon_threadsafe(_complete, f, callback, descriptor)
        )
        return future

    async def _session_for_loop(self) -> aiohttp.ClientSession:
        if self._session is None:
            connector = aiohttp.TCPConnector(
                ssl=self._ssl_context if self._ssl_context is not None else True
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=None),
            )
        return self._session

    async def _perform(self, descriptor: RequestDescriptor) -> Tuple[Response, str]:
        session = await self._session_for_loop()
        async with session.request(
            descriptor.method,
            descriptor.url,
            params=descriptor.qs or None,
            data=descriptor.form,
        ) as response:
            body = await response.text()
            return ResponseOutputs.from_aiohttp(response), body

    async def _shutdown(self) -> None:
        current = asyncio.current_task()
        pending = [task for task in asyncio.all_tasks() if task is not current]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        if self._session is not None:
            await self._session.close()
            self._session = None

    def close(self) -> None:
        """Cancel in-flight requests, close the session and stop the loop."""
        with self._lock:
            loop, thread = self._loop, self._thread
            self._closed = True
            self._loop = None
            self._thread = None
        if loop is None or thread is None:
            return

        asyncio.run_coroutine_threadsafe(self._shutdown(), loop).result()
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout=5)
        loop.close()


def _complete(
    future: concurrent.futures.Future[Tuple[Response, str]],
    callback: ResultCallback,
    descriptor: RequestDescriptor,
) -> None:
    """Deliver a finished future to the result continuation."""
    error: Optional[BaseException]
    if future.cancelled():
        error = concurrent.futures.CancelledError()
    else:
        error = future.exception()

    try:
        if error is not None:
            logger.debug(f"{descriptor.method} {descriptor.url} failed: {error!r}")
            callback(error, None, None)
        else:
            response, body = future.result()
            callback(None, response, body)
    except Exception:
        logger.exception(f"Result callback for {descriptor.method} {descriptor.url} raised")
