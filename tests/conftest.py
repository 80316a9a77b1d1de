# SPDX-License-Identifier: Apache-2.0
"""
Shared fixtures.

`FakeChromaServer` is an in-process stand-in for a Chroma server, mounted on
`httpx.MockTransport`. It keeps collections and their entries in memory,
records every request it receives, and lets individual tests install
`fail(...)` overrides to answer a route with an arbitrary response or raise a
transport exception.
"""

from __future__ import annotations

import itertools
import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio

from chroma_sdk import ChromaClient, ClientOptions, InMemoryMetrics

TEST_ENDPOINT = "http://chroma.test"
DATABASE_PREFIX = re.compile(r"^/api/v2/tenants/(?P<tenant>[^/]+)/databases/(?P<database>[^/]+)(?P<rest>/.*)$")


@dataclass
class RecordedRequest:
    method: str
    path: str
    headers: Dict[str, str]
    body: Optional[bytes]

    @property
    def json(self) -> Any:
        return json.loads(self.body) if self.body else None


@dataclass
class FakeCollection:
    id: str
    name: str
    metadata: Optional[Dict[str, Any]] = None
    entries: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "metadata": self.metadata,
            "configuration_json": {"hnsw": {"space": "l2"}},
            "tenant": "default_tenant",
            "database": "default_database",
        }


Handler = Callable[[httpx.Request], httpx.Response]


def _json(status: int, payload: Any) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(payload).encode("utf-8"), headers={"Content-Type": "application/json"})


def _error(status: int, message: str) -> httpx.Response:
    return _json(status, {"error": "ChromaError", "message": message})


def _matches(where: Optional[Dict[str, Any]], metadata: Optional[Dict[str, Any]]) -> bool:
    if not where:
        return True
    metadata = metadata or {}
    return all(metadata.get(k) == v for k, v in where.items())


class FakeChromaServer:
    """Minimal in-memory Chroma HTTP server."""

    def __init__(self, tenant: str = "*") -> None:
        self.tenant = tenant
        self.version = "0.6.3"
        self.heartbeat = 1_700_000_000_000_000_000
        self.requests: List[RecordedRequest] = []
        self.collections: Dict[str, FakeCollection] = {}
        self._overrides: List[Tuple[str, "re.Pattern[str]", Handler]] = []
        self._ids = itertools.count(1)

    # -- test hooks ------------------------------------------------------ #

    def fail(self, method: str, path_pattern: str, handler: Handler) -> None:
        """Answer `method` requests whose path matches `path_pattern` with `handler`."""
        self._overrides.append((method.upper(), re.compile(path_pattern), handler))

    def requests_to(self, suffix: str, method: Optional[str] = None) -> List[RecordedRequest]:
        return [
            r for r in self.requests
            if r.path.endswith(suffix) and (method is None or r.method == method)
        ]

    def seed(self, name: str, metadata: Optional[Dict[str, Any]] = None) -> FakeCollection:
        collection = FakeCollection(id=f"c0ffee00-0000-0000-0000-{next(self._ids):012d}", name=name, metadata=metadata)
        self.collections[name] = collection
        return collection

    def by_id(self, collection_id: str) -> Optional[FakeCollection]:
        for collection in self.collections.values():
            if collection.id == collection_id:
                return collection
        return None

    # -- dispatch -------------------------------------------------------- #

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = request.content or None
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.url.path,
                headers={k.lower(): v for k, v in request.headers.items()},
                body=body,
            )
        )
        for method, pattern, handler in self._overrides:
            if request.method == method and pattern.search(request.url.path):
                return handler(request)

        path = request.url.path
        payload = json.loads(body) if body else None

        if path == "/api/v1/version" and request.method == "GET":
            return _json(200, self.version)
        if path == "/api/v1/heartbeat" and request.method == "GET":
            return _json(200, {"nanosecond heartbeat": self.heartbeat})
        if path == "/api/v2/auth/identity" and request.method == "GET":
            return _json(200, {"user_id": "", "tenant": self.tenant, "databases": ["default_database"]})

        m = DATABASE_PREFIX.match(path)
        if m is None:
            return _error(404, f"no route for {request.method} {path}")
        return self._database_route(request.method, m.group("rest"), payload)

    def _database_route(self, method: str, rest: str, payload: Any) -> httpx.Response:
        if rest == "/collections":
            if method == "GET":
                return _json(200, [c.to_json() for c in self.collections.values()])
            if method == "POST":
                return self._create(payload)

        parts = rest.strip("/").split("/")
        if len(parts) == 2 and parts[0] == "collections":
            key = parts[1]
            if method == "GET":
                collection = self.collections.get(key)
                if collection is None:
                    return _error(404, f"Collection [{key}] does not exist")
                return _json(200, collection.to_json())
            if method == "DELETE":
                if self.collections.pop(key, None) is None:
                    return _error(404, f"Collection [{key}] does not exist")
                return _json(200, None)
            if method == "PUT":
                return self._modify(key, payload)

        if len(parts) == 3 and parts[0] == "collections":
            collection = self.by_id(parts[1])
            if collection is None:
                return _error(404, f"Collection [{parts[1]}] does not exist")
            action = parts[2]
            if action == "count" and method == "GET":
                return _json(200, len(collection.entries))
            if method == "POST" and action in ("add", "upsert", "update"):
                return self._write(collection, action, payload)
            if method == "POST" and action == "get":
                return self._get(collection, payload)
            if method == "POST" and action == "query":
                return self._query(collection, payload)
            if method == "POST" and action == "delete":
                return self._delete(collection, payload)

        return _error(404, f"no route for {method} {rest}")

    # -- handlers -------------------------------------------------------- #

    def _create(self, payload: Dict[str, Any]) -> httpx.Response:
        name = payload["name"]
        existing = self.collections.get(name)
        if existing is not None:
            if payload.get("get_or_create"):
                return _json(200, existing.to_json())
            return _error(409, f"Collection {name} already exists")
        return _json(200, self.seed(name, payload.get("metadata")).to_json())

    def _modify(self, collection_id: str, payload: Dict[str, Any]) -> httpx.Response:
        collection = self.by_id(collection_id)
        if collection is None:
            return _error(404, f"Collection [{collection_id}] does not exist")
        new_name = payload.get("new_name")
        if new_name is not None and new_name != collection.name:
            if new_name in self.collections:
                return _error(409, f"Collection {new_name} already exists")
            del self.collections[collection.name]
            collection.name = new_name
            self.collections[new_name] = collection
        if "new_metadata" in payload:
            collection.metadata = payload["new_metadata"]
        return _json(200, {})

    def _write(self, collection: FakeCollection, action: str, payload: Dict[str, Any]) -> httpx.Response:
        ids = payload["ids"]
        for i, entry_id in enumerate(ids):
            exists = entry_id in collection.entries
            if action == "add" and exists:
                continue
            if action == "update" and not exists:
                continue
            entry = collection.entries.setdefault(entry_id, {}) if action != "upsert" else {}
            for field_name, key in (("embeddings", "embedding"), ("documents", "document"), ("metadatas", "metadata")):
                values = payload.get(field_name)
                if values is not None:
                    entry[key] = values[i]
            if action == "upsert" and exists:
                previous = collection.entries[entry_id]
                previous.update(entry)
                entry = previous
            collection.entries[entry_id] = entry
        if action == "update":
            return _json(200, True)
        return _json(201, True)

    def _select(self, collection: FakeCollection, payload: Dict[str, Any]) -> List[str]:
        ids = payload.get("ids")
        candidates = [i for i in collection.entries if ids is None or i in ids]
        return [i for i in candidates if _matches(payload.get("where"), collection.entries[i].get("metadata"))]

    def _get(self, collection: FakeCollection, payload: Dict[str, Any]) -> httpx.Response:
        selected = self._select(collection, payload)
        offset = payload.get("offset") or 0
        limit = payload.get("limit")
        selected = selected[offset:] if limit is None else selected[offset:offset + limit]
        include = payload.get("include", ["metadatas", "documents"])
        result: Dict[str, Any] = {"ids": selected, "include": include}
        for field_name, key in (("embeddings", "embedding"), ("documents", "document"), ("metadatas", "metadata")):
            result[field_name] = [collection.entries[i].get(key) for i in selected] if field_name in include else None
        result["uris"] = None
        return _json(200, result)

    def _query(self, collection: FakeCollection, payload: Dict[str, Any]) -> httpx.Response:
        n_results = payload.get("n_results", 10)
        include = payload.get("include", ["metadatas", "documents", "distances"])
        candidates = self._select(collection, {"where": payload.get("where")})
        result: Dict[str, Any] = {"ids": [], "distances": [], "documents": [], "metadatas": [], "embeddings": [], "include": include}
        for vector in payload["query_embeddings"]:
            scored = sorted(
                (
                    sum((a - b) ** 2 for a, b in zip(vector, collection.entries[i].get("embedding") or [])),
                    i,
                )
                for i in candidates
            )[:n_results]
            result["ids"].append([i for _, i in scored])
            result["distances"].append([d for d, _ in scored])
            result["documents"].append([collection.entries[i].get("document") for _, i in scored])
            result["metadatas"].append([collection.entries[i].get("metadata") for _, i in scored])
            result["embeddings"].append([collection.entries[i].get("embedding") for _, i in scored])
        for field_name in ("distances", "documents", "metadatas", "embeddings"):
            if field_name not in include:
                result[field_name] = None
        result["uris"] = None
        return _json(200, result)

    def _delete(self, collection: FakeCollection, payload: Dict[str, Any]) -> httpx.Response:
        deleted = self._select(collection, payload or {})
        for entry_id in deleted:
            del collection.entries[entry_id]
        return _json(200, deleted)


@pytest.fixture
def server() -> FakeChromaServer:
    return FakeChromaServer()


@pytest.fixture
def transport(server: FakeChromaServer) -> httpx.MockTransport:
    return httpx.MockTransport(server.handle)


@pytest.fixture
def metrics() -> InMemoryMetrics:
    return InMemoryMetrics()


@pytest.fixture
def options(transport: httpx.MockTransport, metrics: InMemoryMetrics) -> ClientOptions:
    return ClientOptions(url=TEST_ENDPOINT, transport=transport, metrics=metrics)


@pytest_asyncio.fixture
async def client(options: ClientOptions):
    c = await ChromaClient.create(options)
    try:
        yield c
    finally:
        await c.aclose()


@pytest_asyncio.fixture
async def collection(client: ChromaClient):
    return await client.create_collection("notes")
