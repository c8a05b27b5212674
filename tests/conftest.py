import pytest

from sessions import InMemorySessionStore


@pytest.fixture
def main_module(monkeypatch):
    import main

    monkeypatch.setattr(main, "SPOTIFY_CLIENT_ID", "test-client-id")
    monkeypatch.setattr(main, "SPOTIFY_CLIENT_SECRET", "test-client-secret")
    monkeypatch.setattr(main, "SPOTIFY_REDIRECT_URI", "http://localhost:8888/callback")
    monkeypatch.setattr(main, "LASTFM_API_KEY", "test-lastfm-key")
    monkeypatch.setattr(main, "SIMILAR_LOOKUP_WORKERS", 1)
    return main


@pytest.fixture
def store(main_module):
    fresh = InMemorySessionStore()
    previous = main_module.app.state.session_store
    main_module.app.state.session_store = fresh
    yield fresh
    main_module.app.state.session_store = previous


@pytest.fixture
def client(main_module, store):
    from fastapi.testclient import TestClient

    with TestClient(main_module.app) as c:
        yield c


@pytest.fixture
def session_id(client, store):
    """Open a session the way a browser would: hit the home page once."""
    resp = client.get("/")
    sid = resp.cookies.get("toptrack.sid")
    assert sid in store
    return sid
