# SPDX-License-Identifier: Apache-2.0
"""Collection operations end to end against the fake server."""

import httpx
import pytest

from chroma_sdk import (
    CollectionEntries,
    Conflict,
    ConflictingQuerySource,
    DeserializationError,
    DuplicateId,
    GetOptions,
    InvalidArgument,
    MissingContent,
    MissingQuerySource,
    MockEmbeddingProvider,
    QueryOptions,
)

pytestmark = pytest.mark.asyncio


def entries_path(collection, action):
    return f"/collections/{collection.id}/{action}"


async def test_add_sends_only_present_fields(collection, server):
    ack = await collection.add(CollectionEntries(ids=["a", "b"], embeddings=[[1.0, 0.0], [0.0, 1.0]]))

    assert ack is True
    request = server.requests_to(entries_path(collection, "add"))[0]
    assert request.method == "POST"
    assert request.json == {"ids": ["a", "b"], "embeddings": [[1.0, 0.0], [0.0, 1.0]]}
    assert await collection.count() == 2


async def test_add_embeds_documents(collection, server):
    provider = MockEmbeddingProvider(dimensions=768)
    await collection.add(CollectionEntries(ids=["x", "y"], documents=["d1", "d2"]), embedding_function=provider)

    body = server.requests_to(entries_path(collection, "add"))[0].json
    assert body["embeddings"] == [[0.0] * 768, [0.0] * 768]
    assert body["documents"] == ["d1", "d2"]
    assert "metadatas" not in body


async def test_validation_failure_sends_nothing(collection, server):
    before = len(server.requests)
    with pytest.raises(DuplicateId):
        await collection.upsert(CollectionEntries(ids=["x", "x"], embeddings=[[1.0], [2.0]]))
    with pytest.raises(MissingContent):
        await collection.add(CollectionEntries(ids=["x"]))
    assert len(server.requests) == before


async def test_upsert_overwrites_and_get_returns_entries(collection):
    await collection.add(
        CollectionEntries(ids=["a"], embeddings=[[1.0, 1.0]], documents=["old"], metadatas=[{"v": 1}])
    )
    await collection.upsert(
        CollectionEntries(ids=["a", "b"], embeddings=[[2.0, 2.0], [3.0, 3.0]], documents=["new", "other"])
    )

    result = await collection.get(GetOptions(ids=["a"], include=["documents", "embeddings"]))
    assert result.ids == ["a"]
    assert result.documents == ["new"]
    assert result.embeddings == [[2.0, 2.0]]
    assert result.metadatas is None
    assert await collection.count() == 2


async def test_update_returns_acknowledgment(collection, server):
    await collection.add(CollectionEntries(ids=["a"], embeddings=[[1.0]], metadatas=[{"v": 1}]))

    assert await collection.update(CollectionEntries(ids=["a"], metadatas=[{"v": 2}])) is True
    assert server.requests_to(entries_path(collection, "update"))[0].json == {"ids": ["a"], "metadatas": [{"v": 2}]}

    result = await collection.get(GetOptions(ids=["a"], include=["metadatas"]))
    assert result.metadatas == [{"v": 2}]


async def test_update_with_empty_object_response(collection, server):
    server.fail("POST", r"/update$", lambda request: httpx.Response(200, json={}))
    assert await collection.update(CollectionEntries(ids=["a"], metadatas=[{"v": 2}])) is True


async def test_get_body_omits_nulls(collection, server):
    await collection.get(GetOptions(where={"kind": "note"}, limit=5))
    assert server.requests_to(entries_path(collection, "get"))[0].json == {"where": {"kind": "note"}, "limit": 5}


async def test_get_filters_and_pages(collection):
    await collection.add(
        CollectionEntries(
            ids=["a", "b", "c"],
            embeddings=[[1.0], [2.0], [3.0]],
            metadatas=[{"kind": "note"}, {"kind": "todo"}, {"kind": "note"}],
        )
    )
    notes = await collection.get(GetOptions(where={"kind": "note"}))
    assert notes.ids == ["a", "c"]

    page = await collection.get(GetOptions(limit=1, offset=1))
    assert page.ids == ["b"]


async def test_get_rejects_bad_arguments(collection, server):
    before = len(server.requests)
    with pytest.raises(InvalidArgument):
        await collection.get(GetOptions(limit=-1))
    with pytest.raises(InvalidArgument):
        await collection.get(GetOptions(include=["distances"]))
    assert len(server.requests) == before


async def test_peek_uses_limit(collection, server):
    await collection.add(CollectionEntries(ids=[str(i) for i in range(12)], embeddings=[[float(i)] for i in range(12)]))

    peeked = await collection.peek()
    assert len(peeked.ids) == 10
    assert server.requests_to(entries_path(collection, "get"))[-1].json == {"limit": 10}


async def test_query_with_embeddings(collection, server):
    await collection.add(
        CollectionEntries(ids=["near", "far"], embeddings=[[0.0, 0.0], [10.0, 10.0]], documents=["n", "f"])
    )

    result = await collection.query(QueryOptions(query_embeddings=[[0.1, 0.1]], n_results=1))

    assert result.ids == [["near"]]
    assert result.documents == [["n"]]
    assert server.requests_to(entries_path(collection, "query"))[0].json == {
        "query_embeddings": [[0.1, 0.1]],
        "n_results": 1,
    }


async def test_query_with_texts(collection, server):
    provider = MockEmbeddingProvider(dimensions=2)
    await collection.add(CollectionEntries(ids=["a"], embeddings=[[0.0, 0.0]]))

    result = await collection.query(
        QueryOptions(query_texts=["hello", "world"], n_results=1, include=["distances"]),
        embedding_function=provider,
    )
    assert result.ids == [["a"], ["a"]]
    assert result.distances == [[0.0], [0.0]]
    assert result.documents is None

    body = server.requests_to(entries_path(collection, "query"))[0].json
    assert body["query_embeddings"] == [[0.0, 0.0], [0.0, 0.0]]
    assert "query_texts" not in body


async def test_query_conflict_makes_no_network_call(collection, server):
    before = len(server.requests)
    with pytest.raises(ConflictingQuerySource):
        await collection.query(
            QueryOptions(query_embeddings=[[1.0]], query_texts=["a"]),
            embedding_function=MockEmbeddingProvider(),
        )
    assert len(server.requests) == before


async def test_query_requires_positive_n_results(collection):
    with pytest.raises(InvalidArgument):
        await collection.query(QueryOptions(query_embeddings=[[1.0]], n_results=0))


async def test_query_source_errors_come_before_argument_errors(collection, server):
    before = len(server.requests)
    with pytest.raises(ConflictingQuerySource):
        await collection.query(
            QueryOptions(query_embeddings=[[1.0]], query_texts=["a"], n_results=0, include=["bogus"]),
            embedding_function=MockEmbeddingProvider(),
        )
    with pytest.raises(MissingQuerySource):
        await collection.query(QueryOptions(n_results=0))
    assert len(server.requests) == before


async def test_delete_by_ids_and_filter(collection, server):
    await collection.add(
        CollectionEntries(
            ids=["a", "b", "c"],
            embeddings=[[1.0], [2.0], [3.0]],
            metadatas=[{"keep": False}, {"keep": True}, {"keep": False}],
        )
    )

    assert await collection.delete(ids=["a"]) == ["a"]
    assert server.requests_to(entries_path(collection, "delete"))[-1].json == {"ids": ["a"]}

    assert await collection.delete(where={"keep": False}) == ["c"]
    assert await collection.count() == 1


async def test_delete_everything(collection, server):
    await collection.add(CollectionEntries(ids=["a", "b"], embeddings=[[1.0], [2.0]]))
    deleted = await collection.delete()
    assert sorted(deleted) == ["a", "b"]
    assert server.requests_to(entries_path(collection, "delete"))[-1].json == {}


async def test_delete_with_null_response(collection, server):
    server.fail("POST", r"/delete$", lambda request: httpx.Response(200, json=None))
    assert await collection.delete(ids=["a"]) == []


async def test_modify_updates_local_handle(client, collection, server):
    await collection.modify(name="renamed", metadata={"v": 2})

    request = server.requests[-1]
    assert request.method == "PUT"
    assert request.path.endswith(f"/collections/{collection.id}")
    assert request.json == {"new_name": "renamed", "new_metadata": {"v": 2}}
    assert collection.name == "renamed"
    assert collection.metadata == {"v": 2}

    fetched = await client.get_collection("renamed")
    assert fetched.id == collection.id


async def test_modify_name_only_omits_metadata(collection, server):
    await collection.modify(name="other")
    assert server.requests[-1].json == {"new_name": "other"}


async def test_modify_onto_existing_name_conflicts(client, collection):
    await client.create_collection("taken")

    with pytest.raises(Conflict) as exc_info:
        await collection.modify(name="taken", metadata={"v": 3})

    assert "409" in str(exc_info.value)
    assert "already exists" in str(exc_info.value)
    assert collection.name == "notes"
    assert collection.metadata is None
    assert (await client.get_collection("notes")).id == collection.id


async def test_modify_requires_a_change(collection):
    with pytest.raises(InvalidArgument):
        await collection.modify()


async def test_count_rejects_malformed_response(collection, server):
    server.fail("GET", r"/count$", lambda request: httpx.Response(200, json="many"))
    with pytest.raises(DeserializationError):
        await collection.count()
