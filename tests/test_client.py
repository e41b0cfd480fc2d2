"""Tests for the sync and async notes backend clients."""

from __future__ import annotations

import json

import httpx
import pytest

from overnote.async_client import AsyncNotesClient
from overnote.client import ContextNotes, Note, NotesClient
from overnote.exceptions import BackendUnavailable, NotesBackendError

BASE = "http://notes.test/api"


# ─── Fixtures ────────────────────────────────────────────────────────


class RecordingBackend:
    """httpx handler that records requests and replays canned responses."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: dict[str, httpx.Response] = {}

    def add_response(self, method: str, path: str, json_data=None, status_code: int = 200):
        self.responses[f"{method.upper()} {path}"] = httpx.Response(status_code, json=json_data)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.method} {request.url.path}"
        if key in self.responses:
            return self.responses[key]
        return httpx.Response(200, json={"ok": True})

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def backend():
    return RecordingBackend()


@pytest.fixture
def client(backend):
    with NotesClient(BASE, transport=httpx.MockTransport(backend)) as c:
        yield c


@pytest.fixture
async def aclient(backend):
    async with AsyncNotesClient(BASE, transport=httpx.MockTransport(backend)) as c:
        yield c


# ─── Models ───────────────────────────────────────────────────────────


class TestModels:
    def test_note_defaults(self):
        note = Note.from_dict({"id": 7})
        assert note.id == "7"
        assert note.content == ""

    def test_context_notes_accepts_bare_strings(self):
        c = ContextNotes.from_dict({"context": "a | Google", "notes": ["x", {"id": "1", "content": "y"}]})
        assert [n.content for n in c.notes] == ["x", "y"]


# ─── Sync Client ──────────────────────────────────────────────────────


class TestNotesClient:
    def test_get_notes(self, client, backend):
        backend.add_response("GET", "/api/notes", [{"id": "1", "content": "<p>hi</p>"}])
        notes = client.get_notes("Cats | Google")
        assert notes == [Note(id="1", content="<p>hi</p>")]
        assert backend.requests[0].url.params["context"] == "Cats | Google"

    def test_not_found_is_empty(self, client, backend):
        backend.add_response("GET", "/api/notes", {"detail": "Context not found"}, status_code=404)
        assert client.get_notes("nothing here") == []

    def test_blank_context_skips_request(self, client, backend):
        assert client.get_notes("  ") == []
        assert backend.requests == []

    def test_empty_body(self, client, backend):
        backend.responses["GET /api/notes"] = httpx.Response(200)
        assert client.get_notes("x") == []

    def test_save_notes(self, client, backend):
        client.save_notes("b | Notepad", ["one", "two"])
        req = backend.requests[0]
        assert req.method == "PUT"
        assert req.url.path == "/api/notes/update"
        assert backend.body() == {"context": "b | Notepad", "notes": ["one", "two"]}

    def test_create_notes(self, client, backend):
        client.create_notes("b | Notepad", ["one"])
        assert backend.requests[0].method == "POST"
        assert backend.requests[0].url.path == "/api/notes/save"

    def test_delete_context(self, client, backend):
        client.delete_context("b | Notepad")
        req = backend.requests[0]
        assert req.method == "DELETE"
        assert req.url.path == "/api/context"
        assert backend.body() == {"context": "b | Notepad"}

    def test_all_notes(self, client, backend):
        backend.add_response(
            "GET", "/api/all-notes",
            [{"context": "a | Google", "notes": [{"id": "1", "content": "x"}]}, {"context": "Mail"}],
        )
        contexts = client.all_notes()
        assert [c.context for c in contexts] == ["a | Google", "Mail"]
        assert contexts[1].notes == []

    def test_server_error(self, client, backend):
        backend.add_response("PUT", "/api/notes/update", {"detail": "db down"}, status_code=503)
        with pytest.raises(BackendUnavailable) as exc:
            client.save_notes("x", ["y"])
        assert exc.value.status_code == 503
        assert exc.value.detail == "db down"

    def test_client_error(self, client, backend):
        backend.add_response("PUT", "/api/notes/update", {"detail": "bad"}, status_code=422)
        with pytest.raises(NotesBackendError) as exc:
            client.save_notes("x", ["y"])
        assert not isinstance(exc.value, BackendUnavailable)

    def test_invalid_json(self, client, backend):
        backend.responses["GET /api/all-notes"] = httpx.Response(200, content=b"<html>")
        with pytest.raises(NotesBackendError, match="Invalid JSON"):
            client.all_notes()

    def test_connection_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        with NotesClient(BASE, transport=httpx.MockTransport(refuse)) as c:
            with pytest.raises(BackendUnavailable) as exc:
                c.all_notes()
        assert exc.value.status_code == 0

    def test_default_base_url(self, monkeypatch):
        from overnote import config

        monkeypatch.setenv("OVERNOTE_BACKEND_URL", "http://example.test:9000/api/")
        config.reload()
        with NotesClient() as c:
            assert c.base_url == "http://example.test:9000/api"


# ─── Async Client ─────────────────────────────────────────────────────


class TestAsyncNotesClient:
    @pytest.mark.asyncio
    async def test_get_notes(self, aclient, backend):
        backend.add_response("GET", "/api/notes", [{"id": "1", "content": "x"}])
        assert (await aclient.get_notes("a | Google"))[0].content == "x"

    @pytest.mark.asyncio
    async def test_not_found_is_empty(self, aclient, backend):
        backend.add_response("GET", "/api/notes", {"detail": "missing"}, status_code=404)
        assert await aclient.get_notes("a | Google") == []

    @pytest.mark.asyncio
    async def test_save_and_delete(self, aclient, backend):
        await aclient.save_notes("a | Google", ["x"])
        await aclient.create_notes("a | Google", ["x"])
        await aclient.delete_context("a | Google")
        assert [(r.method, r.url.path) for r in backend.requests] == [
            ("PUT", "/api/notes/update"),
            ("POST", "/api/notes/save"),
            ("DELETE", "/api/context"),
        ]

    @pytest.mark.asyncio
    async def test_all_notes(self, aclient, backend):
        backend.add_response("GET", "/api/all-notes", [{"context": "Mail", "notes": ["hi"]}])
        contexts = await aclient.all_notes()
        assert contexts[0].notes[0].content == "hi"

    @pytest.mark.asyncio
    async def test_server_error(self, aclient, backend):
        backend.add_response("GET", "/api/all-notes", {"detail": "boom"}, status_code=500)
        with pytest.raises(BackendUnavailable):
            await aclient.all_notes()
