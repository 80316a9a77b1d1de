# chroma_sdk/metrics.py
# SPDX-License-Identifier: Apache-2.0
"""
Metrics interface for request instrumentation.

Sinks receive low-cardinality observations only: the HTTP method and a route
template, never raw collection ids, tenant names or payloads.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class MetricsSink(Protocol):
    """Protocol for metrics collection implementations."""

    def observe(
        self,
        *,
        component: str,
        op: str,
        ms: float,
        ok: bool,
        code: str = "OK",
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Record operation timing and status."""
        ...

    def counter(
        self,
        *,
        component: str,
        name: str,
        value: int = 1,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Increment a counter metric."""
        ...


class NoopMetrics:
    """No-operation metrics sink for when metrics are disabled."""
    def observe(self, **_: Any) -> None: ...
    def counter(self, **_: Any) -> None: ...


@dataclass
class Observation:
    component: str
    op: str
    ms: float
    ok: bool
    code: str
    extra: Dict[str, Any] = field(default_factory=dict)


class InMemoryMetrics:
    """Recording sink, handy for tests and ad-hoc diagnostics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.observations: List[Observation] = []
        self.counters: Dict[str, int] = {}

    def observe(
        self,
        *,
        component: str,
        op: str,
        ms: float,
        ok: bool,
        code: str = "OK",
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        with self._lock:
            self.observations.append(
                Observation(component=component, op=op, ms=ms, ok=ok, code=code, extra=dict(extra or {}))
            )

    def counter(
        self,
        *,
        component: str,
        name: str,
        value: int = 1,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> None:
        key = f"{component}.{name}"
        with self._lock:
            self.counters[key] = self.counters.get(key, 0) + int(value)


__all__ = ["MetricsSink", "NoopMetrics", "InMemoryMetrics", "Observation"]
