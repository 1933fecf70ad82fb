"""
NoteSync Backend: GraphQL Record Store Unit Tests
=================================================

What:  Tests for GraphQLRecordStore request shapes, response handling,
       and retry logic.
How:   httpx.MockTransport answers requests in-process; tenacity's
       wait_none() removes backoff delays.

What we test:
    ✅ listNotes / createNote / deleteNote request bodies and auth header
    ✅ Image keys: present → ImageKey, null/empty → no image
    ✅ Retries on 5xx and transport errors; no retry on 4xx or GraphQL errors
    ✅ RecordStoreError after retries are exhausted
"""

import json

import httpx
import pytest
from tenacity import wait_none

from notesync.exceptions import RecordStoreError
from notesync.schemas.note import Draft, ImageKey, Note
from notesync.services.graphql_record_store import GraphQLRecordStore, item_to_note

GRAPHQL_URL = "https://api.example.com/graphql"


class FakeGraphQLServer:
    """Collects requests and replays queued responses (or exceptions)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    def body(self, index: int = 0) -> dict:
        return json.loads(self.requests[index].content)


def data_response(data: dict) -> httpx.Response:
    return httpx.Response(200, json={"data": data})


def make_store(server: FakeGraphQLServer, max_attempts: int = 3) -> GraphQLRecordStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(server))
    return GraphQLRecordStore(
        url=GRAPHQL_URL,
        api_key="da2-test",
        client=client,
        max_attempts=max_attempts,
        wait=wait_none(),
    )


class TestItemConversion:

    def test_item_with_image(self):
        note = item_to_note({"id": "1", "name": "a", "description": "b", "image": "cat.png"})
        assert note == Note(id="1", name="a", description="b", image=ImageKey(key="cat.png"))

    @pytest.mark.parametrize("image", [None, ""])
    def test_item_without_image(self, image):
        note = item_to_note({"id": "1", "name": "a", "description": "b", "image": image})
        assert note.image is None


class TestOperations:

    @pytest.mark.asyncio
    async def test_list_notes(self):
        server = FakeGraphQLServer(data_response({
            "listNotes": {"items": [
                {"id": "1", "name": "Cat", "description": "A cat", "image": "cat.png"},
                None,
                {"id": "2", "name": "Plain", "description": "None", "image": None},
            ]}
        }))
        store = make_store(server)

        notes = await store.list()

        assert [note.id for note in notes] == ["1", "2"]
        assert notes[0].image == ImageKey(key="cat.png")
        assert notes[1].image is None
        assert "listNotes" in server.body()["query"]
        assert server.requests[0].headers["x-api-key"] == "da2-test"
        assert str(server.requests[0].url) == GRAPHQL_URL

    @pytest.mark.asyncio
    async def test_create_sends_fields_and_returns_id(self):
        server = FakeGraphQLServer(data_response({
            "createNote": {"id": "new-1", "name": "A", "description": "B", "image": None}
        }))
        store = make_store(server)

        note_id = await store.create(Draft(name="A", description="B"))

        assert note_id == "new-1"
        assert server.body()["variables"] == {"input": {"name": "A", "description": "B"}}

    @pytest.mark.asyncio
    async def test_create_with_image_sends_key(self):
        server = FakeGraphQLServer(data_response({"createNote": {"id": "new-1"}}))
        store = make_store(server)

        await store.create(Draft(name="A", description="B", image=ImageKey(key="x.jpg")))

        assert server.body()["variables"]["input"]["image"] == "x.jpg"

    @pytest.mark.asyncio
    async def test_create_without_returned_id_fails(self):
        server = FakeGraphQLServer(data_response({"createNote": None}))
        store = make_store(server)

        with pytest.raises(RecordStoreError, match="identifier"):
            await store.create(Draft(name="A", description="B"))

    @pytest.mark.asyncio
    async def test_delete_sends_id(self):
        server = FakeGraphQLServer(data_response({"deleteNote": {"id": "42"}}))
        store = make_store(server)

        await store.delete("42")

        assert server.body()["variables"] == {"input": {"id": "42"}}
        assert "deleteNote" in server.body()["query"]

    @pytest.mark.asyncio
    async def test_api_key_header_omitted_when_empty(self):
        server = FakeGraphQLServer(data_response({"listNotes": {"items": []}}))
        client = httpx.AsyncClient(transport=httpx.MockTransport(server))
        store = GraphQLRecordStore(url=GRAPHQL_URL, api_key="", client=client, wait=wait_none())

        await store.list()

        assert "x-api-key" not in server.requests[0].headers


class TestErrorHandling:
    """Tests for retry behavior and error mapping."""

    @pytest.mark.asyncio
    async def test_retries_server_errors_then_succeeds(self):
        server = FakeGraphQLServer(
            httpx.Response(503),
            httpx.Response(502),
            data_response({"listNotes": {"items": []}}),
        )
        store = make_store(server)

        assert await store.list() == []
        assert len(server.requests) == 3

    @pytest.mark.asyncio
    async def test_retries_transport_errors(self):
        server = FakeGraphQLServer(
            httpx.ConnectError("connection refused"),
            data_response({"listNotes": {"items": []}}),
        )
        store = make_store(server)

        assert await store.list() == []
        assert len(server.requests) == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_record_store_error(self):
        server = FakeGraphQLServer(httpx.Response(500))
        store = make_store(server, max_attempts=2)

        with pytest.raises(RecordStoreError) as exc_info:
            await store.list()

        assert len(server.requests) == 2
        assert exc_info.value.operation == "list"
        assert exc_info.value.context["status_code"] == 500

    @pytest.mark.asyncio
    async def test_unreachable_after_retries(self):
        server = FakeGraphQLServer(httpx.ConnectError("connection refused"))
        store = make_store(server, max_attempts=2)

        with pytest.raises(RecordStoreError, match="unreachable"):
            await store.list()

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self):
        server = FakeGraphQLServer(httpx.Response(401))
        store = make_store(server)

        with pytest.raises(RecordStoreError):
            await store.delete("42")

        assert len(server.requests) == 1

    @pytest.mark.asyncio
    async def test_graphql_errors_not_retried(self):
        server = FakeGraphQLServer(httpx.Response(200, json={
            "data": None,
            "errors": [{"message": "Not Authorized to access deleteNote"}],
        }))
        store = make_store(server)

        with pytest.raises(RecordStoreError, match="Not Authorized"):
            await store.delete("42")

        assert len(server.requests) == 1

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        server = FakeGraphQLServer(httpx.Response(200, content=b"<html>"))
        store = make_store(server)

        with pytest.raises(RecordStoreError, match="invalid response"):
            await store.list()

    @pytest.mark.asyncio
    async def test_missing_data(self):
        server = FakeGraphQLServer(httpx.Response(200, json={}))
        store = make_store(server)

        with pytest.raises(RecordStoreError, match="no data"):
            await store.list()


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_health_check(self):
        server = FakeGraphQLServer(data_response({"__typename": "Query"}))
        assert await make_store(server).health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_failure(self):
        server = FakeGraphQLServer(httpx.Response(401))
        assert await make_store(server).health_check() is False

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        server = FakeGraphQLServer(data_response({}))
        client = httpx.AsyncClient(transport=httpx.MockTransport(server))
        store = GraphQLRecordStore(url=GRAPHQL_URL, client=client)

        await store.aclose()

        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self):
        store = GraphQLRecordStore(url=GRAPHQL_URL, api_key="k")

        await store.aclose()

        assert store._client.is_closed
