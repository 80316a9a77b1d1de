# chroma_sdk/transport.py
# SPDX-License-Identifier: Apache-2.0
"""
Authenticated request dispatch.

`APIClient` turns (method, path, optional JSON body) into one HTTP call and
returns the decoded JSON body, or raises a `ChromaError`:

    2xx                    -> decoded JSON (None for an empty body)
    non-2xx                -> TransportFailure("<status> <reason>: <body>")
    per-request timeout    -> RequestTimeout (retryable)
    network failure        -> ConnectionFailure (retryable)

Paths
-----
    {endpoint}/api/v1{path}                                            get_v1()
    {endpoint}/api/v2{path}                                            get_v2()
    {endpoint}/api/v2/tenants/{tenant}/databases/{database}{path}      *_database()

Connection handling
-------------------
HTTP client handles live in a `ClientPool`. A handle is popped for the
duration of one request and pushed back afterwards; the pool lock is held only
around the pop/push, never across the network await. Nothing is retried.
"""

from __future__ import annotations

import collections
import json
import logging
import re
import threading
import time
from typing import Any, Callable, Deque, Dict, Mapping, Optional
from urllib.parse import quote

import httpx

from chroma_sdk.auth import AuthMethod, NoAuth, auth_headers
from chroma_sdk.config import DEFAULT_POOL_SIZE, DEFAULT_TIMEOUT_S
from chroma_sdk.errors import (
    BadConfig,
    ChromaError,
    ConnectionFailure,
    DeserializationError,
    RequestTimeout,
    SerializationError,
    failure_for_status,
)
from chroma_sdk.metrics import MetricsSink, NoopMetrics

LOG = logging.getLogger(__name__)

_ROUTE_ELISIONS = (
    (re.compile(r"/tenants/[^/]+"), "/tenants/{tenant}"),
    (re.compile(r"/databases/[^/]+"), "/databases/{database}"),
    (re.compile(r"/collections/[^/]+"), "/collections/{collection}"),
)


def route_template(path: str) -> str:
    """Replace tenant, database and collection segments with placeholders."""
    for pattern, placeholder in _ROUTE_ELISIONS:
        path = pattern.sub(placeholder, path)
    return path


def _retry_after_ms(response: httpx.Response) -> Optional[int]:
    raw = response.headers.get("Retry-After")
    if not raw:
        return None
    try:
        return max(0, int(float(raw) * 1000))
    except ValueError:
        # HTTP-date form is not interpreted
        return None


class ClientPool:
    """
    Bounded pool of reusable `httpx.AsyncClient` handles.

    `acquire` pops from the front, building a fresh handle when the pool is
    momentarily empty. `release` pushes the handle back to the front; once
    `capacity` idle handles are held, extra handles are closed instead.
    """

    def __init__(
        self,
        factory: Callable[[], httpx.AsyncClient],
        capacity: int = DEFAULT_POOL_SIZE,
    ) -> None:
        if capacity <= 0:
            raise BadConfig("pool capacity must be positive", details={"capacity": capacity})
        self._factory = factory
        self._capacity = capacity
        self._idle: Deque[httpx.AsyncClient] = collections.deque()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._idle)

    def acquire(self) -> httpx.AsyncClient:
        with self._lock:
            if self._closed:
                raise ChromaError("client is closed", code="CLIENT_CLOSED")
            if self._idle:
                return self._idle.popleft()
        LOG.debug("client pool empty; creating a new HTTP handle")
        return self._factory()

    async def release(self, client: httpx.AsyncClient) -> None:
        with self._lock:
            if not self._closed and len(self._idle) < self._capacity:
                self._idle.appendleft(client)
                return
        await client.aclose()

    async def aclose(self) -> None:
        with self._lock:
            self._closed = True
            idle = list(self._idle)
            self._idle.clear()
        for client in idle:
            await client.aclose()


class APIClient:
    """
    Dispatches authenticated requests against one Chroma server.

    Instances are shared by a `ChromaClient` and every `Collection` it hands
    out. Configuration is immutable; `bind_tenant` returns a sibling that
    shares the same pool.
    """

    _component = "chroma_http"

    def __init__(
        self,
        endpoint: str,
        *,
        auth: Optional[AuthMethod] = None,
        tenant: Optional[str] = None,
        database: Optional[str] = None,
        timeout_s: Optional[float] = DEFAULT_TIMEOUT_S,
        pool_size: int = DEFAULT_POOL_SIZE,
        metrics: Optional[MetricsSink] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[Mapping[str, str]] = None,
        pool: Optional[ClientPool] = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.api_endpoint = f"{self.endpoint}/api/v2"
        self.api_endpoint_v1 = f"{self.endpoint}/api/v1"
        self.auth = auth or NoAuth()
        self.tenant = tenant
        self.database = database
        self.timeout_s = timeout_s
        self._metrics: MetricsSink = metrics or NoopMetrics()
        self._transport = transport
        self._extra_headers = dict(headers or {})
        # Auth is resolved once; every request reuses the same header set.
        self._headers = {**self._extra_headers, **auth_headers(self.auth)}
        self._timeout = httpx.Timeout(timeout_s)
        self._pool = pool if pool is not None else ClientPool(self._new_handle, capacity=pool_size)

    def _new_handle(self) -> httpx.AsyncClient:
        self._count("handles_created")
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

    @property
    def pool(self) -> ClientPool:
        return self._pool

    def bind_tenant(self, tenant: str) -> "APIClient":
        """Return a client scoped to `tenant`, sharing this client's pool."""
        return APIClient(
            self.endpoint,
            auth=self.auth,
            tenant=tenant,
            database=self.database,
            timeout_s=self.timeout_s,
            metrics=self._metrics,
            transport=self._transport,
            headers=self._extra_headers,
            pool=self._pool,
        )

    async def aclose(self) -> None:
        await self._pool.aclose()

    # ------------------------------------------------------------------ #
    # URL building
    # ------------------------------------------------------------------ #

    def database_url(self, path: str) -> str:
        if not path.startswith("/"):
            raise ValueError(f"path must start with '/': {path!r}")
        if not self.tenant or not self.database:
            raise BadConfig("tenant and database must be resolved before database-scoped calls")
        tenant = quote(self.tenant, safe="")
        database = quote(self.database, safe="")
        return f"{self.api_endpoint}/tenants/{tenant}/databases/{database}{path}"

    def v1_url(self, path: str) -> str:
        if not path.startswith("/"):
            raise ValueError(f"path must start with '/': {path!r}")
        return f"{self.api_endpoint_v1}{path}"

    def v2_url(self, path: str) -> str:
        if not path.startswith("/"):
            raise ValueError(f"path must start with '/': {path!r}")
        return f"{self.api_endpoint}{path}"

    # ------------------------------------------------------------------ #
    # Verbs
    # ------------------------------------------------------------------ #

    async def get_database(self, path: str) -> Any:
        return await self.send("GET", self.database_url(path))

    async def post_database(self, path: str, json_body: Optional[Any] = None) -> Any:
        return await self.send("POST", self.database_url(path), json_body)

    async def put_database(self, path: str, json_body: Optional[Any] = None) -> Any:
        return await self.send("PUT", self.database_url(path), json_body)

    async def delete_database(self, path: str) -> Any:
        """DELETE a database-scoped path. This does not delete the database."""
        return await self.send("DELETE", self.database_url(path))

    async def get_v1(self, path: str) -> Any:
        return await self.send("GET", self.v1_url(path))

    async def get_v2(self, path: str) -> Any:
        return await self.send("GET", self.v2_url(path))

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #

    def _record(self, op: str, t0: float, ok: bool, *, code: str = "OK", **extra: Any) -> None:
        try:
            ms = (time.monotonic() - t0) * 1000.0
            self._metrics.observe(
                component=self._component,
                op=op,
                ms=ms,
                ok=ok,
                code=code,
                extra=extra or None,
            )
        except Exception:
            # Never let metrics recording break the operation
            pass

    def _count(self, name: str, value: int = 1) -> None:
        try:
            self._metrics.counter(component=self._component, name=name, value=value)
        except Exception:
            pass

    @staticmethod
    def _encode(json_body: Any) -> bytes:
        try:
            return json.dumps(json_body, allow_nan=False, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"request body is not JSON-serializable: {exc}") from exc

    @staticmethod
    def _decode(response: httpx.Response, op: str) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            LOG.debug("undecodable response for %s: %r", op, response.text[:200])
            raise DeserializationError(
                f"response for {op} is not valid JSON",
                details={"op": op, "status": response.status_code},
            ) from exc

    async def send(self, method: str, url: str, json_body: Optional[Any] = None) -> Any:
        """
        Execute one request and return the decoded JSON body.

        A JSON body, when given, is sent with `Content-Type: application/json`.
        """
        op = f"{method} {route_template(httpx.URL(url).path)}"
        headers: Dict[str, str] = dict(self._headers)
        content: Optional[bytes] = None
        if json_body is not None:
            content = self._encode(json_body)
            headers["Content-Type"] = "application/json"

        client = self._pool.acquire()
        t0 = time.monotonic()
        try:
            response = await client.request(method, url, content=content, headers=headers)
        except httpx.TimeoutException as exc:
            self._record(op, t0, False, code=RequestTimeout.default_code)
            raise RequestTimeout(
                f"{op} timed out after {self.timeout_s}s",
                details={"op": op, "timeout_s": self.timeout_s},
            ) from exc
        except httpx.TransportError as exc:
            self._record(op, t0, False, code=ConnectionFailure.default_code)
            raise ConnectionFailure(
                f"{op} failed: {exc}",
                details={"op": op, "error": type(exc).__name__},
            ) from exc
        finally:
            await self._pool.release(client)

        LOG.debug("%s -> %d (%.1fms)", op, response.status_code, (time.monotonic() - t0) * 1000.0)

        if response.is_success:
            self._record(op, t0, True)
            return self._decode(response, op)

        failure = failure_for_status(
            response.status_code,
            response.text,
            retry_after_ms=_retry_after_ms(response),
            details={"op": op},
        )
        self._record(op, t0, False, code=failure.code, status=response.status_code)
        raise failure


__all__ = ["APIClient", "ClientPool", "route_template"]
