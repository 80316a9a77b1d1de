# chroma_sdk/config.py
# SPDX-License-Identifier: Apache-2.0
"""
Client configuration.

`ClientOptions` is resolved once, when `ChromaClient.create` runs. The endpoint
follows a fixed precedence chain:

    1. ClientOptions.url
    2. $CHROMA_HOST
    3. $CHROMA_URL
    4. http://localhost:8000

Nothing here is re-read per request.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional

import httpx

from chroma_sdk.auth import AuthMethod, NoAuth
from chroma_sdk.errors import BadConfig
from chroma_sdk.metrics import MetricsSink, NoopMetrics

DEFAULT_ENDPOINT = "http://localhost:8000"
DEFAULT_DATABASE = "default_database"
DEFAULT_TENANT = "default_tenant"
DEFAULT_TIMEOUT_S = 30.0
DEFAULT_POOL_SIZE = 128

ENDPOINT_ENV_VARS = ("CHROMA_HOST", "CHROMA_URL")


@dataclass(frozen=True)
class ClientOptions:
    """
    Options for constructing a `ChromaClient`.

    Attributes:
        url: Server URL; falls back to the environment, then DEFAULT_ENDPOINT
        auth: Authentication method applied to every request
        database: Database that collection-scoped paths are rooted in
        timeout_s: Per-request timeout in seconds (None disables it)
        pool_size: Maximum number of idle HTTP client handles kept for reuse
        metrics: Sink receiving one observation per HTTP call
        transport: Optional httpx transport used by every pooled handle
        headers: Extra static headers sent with every request
    """
    url: Optional[str] = None
    auth: AuthMethod = field(default_factory=NoAuth)
    database: str = DEFAULT_DATABASE
    timeout_s: Optional[float] = DEFAULT_TIMEOUT_S
    pool_size: int = DEFAULT_POOL_SIZE
    metrics: MetricsSink = field(default_factory=NoopMetrics)
    transport: Optional[httpx.AsyncBaseTransport] = None
    headers: Mapping[str, str] = field(default_factory=dict)

    def with_overrides(self, **overrides: Any) -> "ClientOptions":
        if not overrides:
            return self
        try:
            return replace(self, **overrides)
        except TypeError as exc:
            raise BadConfig(str(exc)) from exc

    def validate(self) -> None:
        if not isinstance(self.database, str) or not self.database.strip():
            raise BadConfig("database must be a non-empty string")
        if not isinstance(self.pool_size, int) or self.pool_size <= 0:
            raise BadConfig("pool_size must be a positive integer", details={"pool_size": self.pool_size})
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise BadConfig("timeout_s must be positive when set", details={"timeout_s": self.timeout_s})


def resolve_endpoint(url: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> str:
    """Apply the endpoint precedence chain and strip any trailing slash."""
    env = os.environ if env is None else env
    endpoint = url
    if not endpoint:
        for name in ENDPOINT_ENV_VARS:
            endpoint = env.get(name)
            if endpoint:
                break
    endpoint = (endpoint or DEFAULT_ENDPOINT).strip()
    if not endpoint.startswith(("http://", "https://")):
        raise BadConfig(f"endpoint must be an http(s) URL, got {endpoint!r}")
    return endpoint.rstrip("/")


__all__ = [
    "ClientOptions",
    "resolve_endpoint",
    "DEFAULT_ENDPOINT",
    "DEFAULT_DATABASE",
    "DEFAULT_TENANT",
    "DEFAULT_TIMEOUT_S",
    "DEFAULT_POOL_SIZE",
    "ENDPOINT_ENV_VARS",
]
