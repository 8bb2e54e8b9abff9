"""Base class for typed JSON REST API clients.

This module provides :class:`RestClient`, which every concrete API client
subclasses.  One call goes through the same pipeline regardless of verb:

1. **Resolve** -- the call path is resolved against the base URL using
   RFC 3986 rules (``users/42`` appends to the base directory,
   ``/health`` replaces the base path, a full URL replaces everything).
2. **Encode** -- a non-``None`` body is serialised to JSON and sent with
   ``Content-Type: application/json``.
3. **Pre-send hook** -- an optional callable receives the built
   :class:`httpx.Request` once, before the deadline starts, and may edit
   its headers.
4. **Send** -- the request goes out on the client's shared
   :class:`httpx.AsyncClient` in streaming mode, so the call returns as
   soon as the status line and headers arrive.  A configured timeout
   bounds this step.
5. **Decode** -- when a ``response_type`` is given, the body is read and
   validated into that type; otherwise the raw response is returned.

Only the asynchronous path is implemented natively.  Pooled connections
belong to the event loop that opened them, so the client keeps one
:class:`httpx.AsyncClient` per event loop and drops the pools of loops that
have finished.  The blocking methods run the same coroutine to completion
on a private event loop owned by the client.  Blocking calls made from
several threads take turns on that loop, and they must not be made from
inside a running event loop.

See Also:
    :mod:`restbase.client.response` for reading raw responses.
"""

from __future__ import annotations

import asyncio
import threading
from datetime import timedelta
from typing import Any, Callable, Coroutine, Optional, TypeVar, Union, overload

import httpx
from pydantic import ValidationError

from restbase.client.response import read_async
from restbase.codec import encode
from restbase.constants import CONTENT_TYPE, CONTENT_TYPE_HEADER
from restbase.exceptions import ClientClosedError, ConfigError, RequestTimeoutError
from restbase.models import ClientConfig, HTTPMethod
from restbase.output import get_output

T = TypeVar("T")

PreRequestHook = Callable[[httpx.Request], None]
"""Callable that may mutate an outgoing request right before it is sent."""


class RestClient:
    """Base class for REST API clients speaking JSON.

    Subclasses pass their base URL (and optionally a timeout) to
    ``super().__init__`` and build endpoint methods on top of
    :meth:`send_async` / :meth:`send` or the verb shortcuts.

    Args:
        base_url: Absolute ``http``/``https`` URL all call paths are
            resolved against.  Keep the trailing slash when relative paths
            should nest under the base path.
        timeout: Per-call deadline in seconds (or a
            :class:`~datetime.timedelta`).  ``None`` imposes no deadline of
            its own and leaves timing to the transport.
        transport: Optional httpx transport for the underlying client,
            e.g. :class:`httpx.MockTransport` in tests.  It is shared by the
            clients of every event loop, so it must not hold loop-bound
            connections; override :meth:`_create_http_client` instead to
            tune network transports.

    Raises:
        ConfigError: If *base_url* is empty or not an absolute http(s)
            URL, or *timeout* is not positive.

    Example::

        class PetStore(RestClient):
            def __init__(self) -> None:
                super().__init__("https://petstore.example.com/v2/", timeout=10)

            def pet(self, pet_id: int) -> Pet:
                return self.get(f"pet/{pet_id}", response_type=Pet)
    """

    def __init__(
        self,
        base_url: str,
        timeout: Union[float, timedelta, None] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        try:
            self._config = ClientConfig(base_url=base_url, timeout=timeout)
        except ValidationError as exc:
            raise ConfigError(f"Invalid client configuration: {exc}") from exc
        self._base_url = httpx.URL(self._config.base_url)
        self._transport = transport
        self._pools: dict[asyncio.AbstractEventLoop, httpx.AsyncClient] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._closing_tasks: set[asyncio.Task[None]] = set()
        # _lock guards the pool table and the private loop reference;
        # _run_lock lets one blocking call at a time drive the private loop.
        self._lock = threading.Lock()
        self._run_lock = threading.RLock()
        self._closed = False

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> RestClient:
        """Build a client from an already validated :class:`ClientConfig`."""
        return cls(config.base_url, config.timeout, **kwargs)

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #

    @property
    def base_url(self) -> httpx.URL:
        """The URL every call path is resolved against."""
        return self._base_url

    @property
    def timeout(self) -> Optional[float]:
        """The per-call deadline in seconds, or ``None``."""
        return self._config.timeout

    @property
    def config(self) -> ClientConfig:
        """The validated :class:`ClientConfig` this client was built from."""
        return self._config

    @property
    def http_client(self) -> httpx.AsyncClient:
        """The :class:`httpx.AsyncClient` for the current event loop.

        One client is created lazily per event loop and reused by every call
        made on that loop.  Outside a running loop this is the client bound
        to the private loop used by the blocking methods.

        Raises:
            ClientClosedError: If the client has been closed.
        """
        loop = _running_loop() or self._private_loop()
        with self._lock:
            if self._closed:
                raise ClientClosedError("Client is closed")
            for finished in [owner for owner in self._pools if owner.is_closed()]:
                del self._pools[finished]
            pool = self._pools.get(loop)
            if pool is None:
                pool = self._pools[loop] = self._create_http_client()
            return pool

    def _private_loop(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._closed:
                raise ClientClosedError("Client is closed")
            if self._loop is None:
                self._loop = asyncio.new_event_loop()
            return self._loop

    def _create_http_client(self) -> httpx.AsyncClient:
        """Create the underlying transport client.

        Override to tune connection limits, proxies, TLS or default headers.
        The returned client must not set ``base_url``; URLs are resolved
        before sending.
        """
        kwargs: dict[str, Any] = {}
        if self._config.timeout is not None:
            # httpx limits apply per operation; the per-call deadline must fire first.
            kwargs["timeout"] = httpx.Timeout(self._config.timeout)
        return httpx.AsyncClient(transport=self._transport, follow_redirects=True, **kwargs)

    # ------------------------------------------------------------------ #
    # Request building
    # ------------------------------------------------------------------ #

    def resolve(self, path: str) -> httpx.URL:
        """Resolve *path* against :attr:`base_url` (RFC 3986)."""
        return self._base_url.join(path)

    def build_request(
        self,
        path: str,
        method: Union[HTTPMethod, str],
        content: Any = None,
    ) -> httpx.Request:
        """Build the outgoing request for one call.

        The shared client's default headers, cookies and timeouts are
        applied; the body, if any, is JSON.

        Raises:
            EncodeError: If *content* cannot be serialised to JSON.
            ClientClosedError: If the client has been closed.
        """
        client = self.http_client
        method_name = method.value if isinstance(method, HTTPMethod) else method.upper()
        url = self.resolve(path)
        if content is None:
            return client.build_request(method_name, url)
        return client.build_request(
            method_name,
            url,
            content=encode(content),
            headers={CONTENT_TYPE_HEADER: CONTENT_TYPE},
        )

    # ------------------------------------------------------------------ #
    # Core send
    # ------------------------------------------------------------------ #

    @overload
    async def send_async(
        self,
        path: str,
        method: Union[HTTPMethod, str],
        content: Any = ...,
        pre_request: Optional[PreRequestHook] = ...,
        response_type: None = ...,
    ) -> httpx.Response: ...

    @overload
    async def send_async(
        self,
        path: str,
        method: Union[HTTPMethod, str],
        content: Any = ...,
        pre_request: Optional[PreRequestHook] = ...,
        *,
        response_type: type[T],
    ) -> T: ...

    async def send_async(
        self,
        path: str,
        method: Union[HTTPMethod, str],
        content: Any = None,
        pre_request: Optional[PreRequestHook] = None,
        response_type: Optional[type[Any]] = None,
    ) -> Any:
        """Send a request and return the raw response or a decoded body.

        Args:
            path: Path relative to :attr:`base_url`, or an absolute URL.
            method: An :class:`HTTPMethod` or any custom method name.
            content: Request body; serialised to JSON unless ``None``.
            pre_request: Called once with the built request before it is
                sent.
            response_type: When given, the body is read, decoded into this
                type and the connection released.

        Returns:
            The :class:`httpx.Response` with an unread streaming body when
            *response_type* is ``None`` (the caller must read or close
            it), otherwise the decoded value.

        Raises:
            RequestTimeoutError: If the configured timeout elapsed before
                the response headers arrived.
            EncodeError: If *content* is not JSON-serialisable.
            DecodeError: If the body does not decode into *response_type*.
            httpx.TransportError: Network failures, unchanged.
        """
        request = self.build_request(path, method, content)
        if pre_request is not None:
            pre_request(request)

        response = await self._transmit(request)
        if response_type is None:
            return response
        return await read_async(response, response_type)

    @overload
    def send(
        self,
        path: str,
        method: Union[HTTPMethod, str],
        content: Any = ...,
        pre_request: Optional[PreRequestHook] = ...,
        response_type: None = ...,
    ) -> httpx.Response: ...

    @overload
    def send(
        self,
        path: str,
        method: Union[HTTPMethod, str],
        content: Any = ...,
        pre_request: Optional[PreRequestHook] = ...,
        *,
        response_type: type[T],
    ) -> T: ...

    def send(
        self,
        path: str,
        method: Union[HTTPMethod, str],
        content: Any = None,
        pre_request: Optional[PreRequestHook] = None,
        response_type: Optional[type[Any]] = None,
    ) -> Any:
        """Blocking version of :meth:`send_async`.

        Blocks the calling thread until the call completes.  Blocking calls
        from other threads wait their turn on the client's private event
        loop.  Raw responses come back with their body already read, so they
        can be used with :func:`~restbase.client.response.read`.  Errors
        propagate with the same types as in :meth:`send_async`.

        Raises:
            RuntimeError: If called from inside a running event loop.
        """
        return self._blocking(self._send_buffered(path, method, content, pre_request, response_type))

    async def _send_buffered(
        self,
        path: str,
        method: Union[HTTPMethod, str],
        content: Any,
        pre_request: Optional[PreRequestHook],
        response_type: Optional[type[Any]],
    ) -> Any:
        result = await self.send_async(path, method, content, pre_request, response_type)
        if response_type is None:
            try:
                await result.aread()
            except BaseException:
                await result.aclose()
                raise
        return result

    async def _transmit(self, request: httpx.Request) -> httpx.Response:
        """Send *request* in headers-only mode, bounded by the configured timeout."""
        output = get_output()
        output.debug(f"{request.method} {request.url}")

        client = self.http_client
        timeout = self._config.timeout
        if timeout is None:
            response = await client.send(request, stream=True)
        else:
            try:
                response = await asyncio.wait_for(client.send(request, stream=True), timeout)
            except TimeoutError as exc:
                output.debug(f"{request.method} {request.url} timed out after {timeout}s")
                raise RequestTimeoutError(
                    f"{request.method} {request.url} did not respond within {timeout}s",
                    timeout,
                ) from exc

        output.debug(f"HTTP {response.status_code} {response.reason_phrase}")
        return response

    def _blocking(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run *coro* to completion on the client's private event loop."""
        if _running_loop() is not None:
            coro.close()
            raise RuntimeError(
                "Blocking RestClient methods cannot run inside an event loop; "
                "use the *_async variants instead"
            )
        try:
            loop = self._private_loop()
        except ClientClosedError:
            coro.close()
            raise
        with self._run_lock:
            if loop.is_closed():
                coro.close()
                raise ClientClosedError("Client is closed")
            try:
                return loop.run_until_complete(coro)
            finally:
                # close() was called from inside this call and left the loop running.
                if self._closed and not loop.is_closed():
                    _shutdown_loop(loop)

    # ------------------------------------------------------------------ #
    # Verbs
    # ------------------------------------------------------------------ #

    def get(
        self,
        path: str,
        pre_request: Optional[PreRequestHook] = None,
        *,
        response_type: Optional[type[Any]] = None,
    ) -> Any:
        """Send a GET request. See :meth:`send`."""
        return self.send(path, HTTPMethod.GET, None, pre_request, response_type)

    async def get_async(
        self,
        path: str,
        pre_request: Optional[PreRequestHook] = None,
        *,
        response_type: Optional[type[Any]] = None,
    ) -> Any:
        """Send a GET request. See :meth:`send_async`."""
        return await self.send_async(path, HTTPMethod.GET, None, pre_request, response_type)

    def post(
        self,
        path: str,
        content: Any = None,
        pre_request: Optional[PreRequestHook] = None,
        *,
        response_type: Optional[type[Any]] = None,
    ) -> Any:
        """Send a POST request with an optional JSON body. See :meth:`send`."""
        return self.send(path, HTTPMethod.POST, content, pre_request, response_type)

    async def post_async(
        self,
        path: str,
        content: Any = None,
        pre_request: Optional[PreRequestHook] = None,
        *,
        response_type: Optional[type[Any]] = None,
    ) -> Any:
        """Send a POST request with an optional JSON body. See :meth:`send_async`."""
        return await self.send_async(path, HTTPMethod.POST, content, pre_request, response_type)

    def put(
        self,
        path: str,
        content: Any = None,
        pre_request: Optional[PreRequestHook] = None,
        *,
        response_type: Optional[type[Any]] = None,
    ) -> Any:
        """Send a PUT request with an optional JSON body. See :meth:`send`."""
        return self.send(path, HTTPMethod.PUT, content, pre_request, response_type)

    async def put_async(
        self,
        path: str,
        content: Any = None,
        pre_request: Optional[PreRequestHook] = None,
        *,
        response_type: Optional[type[Any]] = None,
    ) -> Any:
        """Send a PUT request with an optional JSON body. See :meth:`send_async`."""
        return await self.send_async(path, HTTPMethod.PUT, content, pre_request, response_type)

    def patch(
        self,
        path: str,
        content: Any = None,
        pre_request: Optional[PreRequestHook] = None,
        *,
        response_type: Optional[type[Any]] = None,
    ) -> Any:
        """Send a PATCH request with an optional JSON body. See :meth:`send`."""
        return self.send(path, HTTPMethod.PATCH, content, pre_request, response_type)

    async def patch_async(
        self,
        path: str,
        content: Any = None,
        pre_request: Optional[PreRequestHook] = None,
        *,
        response_type: Optional[type[Any]] = None,
    ) -> Any:
        """Send a PATCH request with an optional JSON body. See :meth:`send_async`."""
        return await self.send_async(path, HTTPMethod.PATCH, content, pre_request, response_type)

    def delete(
        self,
        path: str,
        content: Any = None,
        pre_request: Optional[PreRequestHook] = None,
        *,
        response_type: Optional[type[Any]] = None,
    ) -> Any:
        """Send a DELETE request, with a JSON body if one is given. See :meth:`send`."""
        return self.send(path, HTTPMethod.DELETE, content, pre_request, response_type)

    async def delete_async(
        self,
        path: str,
        content: Any = None,
        pre_request: Optional[PreRequestHook] = None,
        *,
        response_type: Optional[type[Any]] = None,
    ) -> Any:
        """Send a DELETE request, with a JSON body if one is given. See :meth:`send_async`."""
        return await self.send_async(path, HTTPMethod.DELETE, content, pre_request, response_type)

    # ------------------------------------------------------------------ #
    # Teardown
    # ------------------------------------------------------------------ #

    async def aclose(self) -> None:
        """Close the transport of the running loop, then release everything else.

        Further calls raise :class:`ClientClosedError`.  See :meth:`close`.
        """
        if self._closed:
            return
        with self._lock:
            pool = self._pools.pop(asyncio.get_running_loop(), None)
        try:
            if pool is not None:
                await pool.aclose()
        finally:
            self.close()

    def close(self) -> None:
        """Close every pooled transport and shut down the private event loop.

        Works from synchronous code, from inside a coroutine, and after the
        event loops that drove the client have finished.  Each pool is closed
        on the loop that owns it; pools whose loop has already closed are
        dropped.  The client counts as closed even if closing a pool fails.
        """
        if self._closed:
            return
        current = _running_loop()
        with self._run_lock:
            with self._lock:
                self._closed = True
                pools, self._pools = self._pools, {}
                loop, self._loop = self._loop, None
            try:
                for owner, pool in pools.items():
                    self._close_pool(owner, pool, current, loop)
            finally:
                if loop is not None and not loop.is_running():
                    _shutdown_loop(loop)

    def _close_pool(
        self,
        owner: asyncio.AbstractEventLoop,
        pool: httpx.AsyncClient,
        current: Optional[asyncio.AbstractEventLoop],
        private: Optional[asyncio.AbstractEventLoop],
    ) -> None:
        if owner.is_closed():
            return
        if owner is current:
            task = owner.create_task(pool.aclose())
            self._closing_tasks.add(task)
            task.add_done_callback(self._closing_tasks.discard)
        elif owner.is_running():
            asyncio.run_coroutine_threadsafe(pool.aclose(), owner)
        elif owner is private and current is None:
            owner.run_until_complete(pool.aclose())

    def __enter__(self) -> RestClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    async def __aenter__(self) -> RestClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def _shutdown_loop(loop: asyncio.AbstractEventLoop) -> None:
    try:
        # Another loop running in this thread cannot host shutdown_asyncgens.
        if _running_loop() is None:
            loop.run_until_complete(loop.shutdown_asyncgens())
    finally:
        loop.close()
