import pytest
import requests

import lastfm_api
from lastfm_api import get_similar_tracks
from tests.fakes import CallRecorder, FakeResponse


def _similar(*pairs):
    return {
        "similartracks": {
            "track": [{"name": n, "artist": {"name": a}, "match": 1.0} for n, a in pairs],
            "@attr": {"artist": "seed"},
        }
    }


def test_formats_one_string_per_entry_in_upstream_order(monkeypatch):
    payload = _similar(("Karma Police", "Radiohead"), ("Teardrop", "Massive Attack"), ("Sour Times", "Portishead"))
    monkeypatch.setattr(lastfm_api.requests, "get", CallRecorder(FakeResponse(payload=payload)))

    assert get_similar_tracks("Paranoid Android", "Radiohead", api_key="k") == [
        "Karma Police by Radiohead",
        "Teardrop by Massive Attack",
        "Sour Times by Portishead",
    ]


def test_sends_track_artist_and_key_as_query_params(monkeypatch):
    fake = CallRecorder(FakeResponse(payload=_similar()))
    monkeypatch.setattr(lastfm_api.requests, "get", fake)

    get_similar_tracks("Hey Jude", "The Beatles & Co", api_key="k123")

    (args, kwargs), = fake.calls
    assert args[0] == "http://ws.audioscrobbler.com/2.0/"
    assert kwargs["params"] == {
        "method": "track.getsimilar",
        "artist": "The Beatles & Co",
        "track": "Hey Jude",
        "api_key": "k123",
        "format": "json",
    }


def test_query_string_is_url_encoded():
    prepared = requests.Request(
        "GET", lastfm_api.LASTFM_API_URL, params={"artist": "AC/DC & Friends", "track": "T.N.T."}
    ).prepare()
    assert "artist=AC%2FDC+%26+Friends" in prepared.url


def test_api_key_falls_back_to_environment(monkeypatch):
    monkeypatch.setenv("LASTFM_API_KEY", "env-key")
    fake = CallRecorder(FakeResponse(payload=_similar()))
    monkeypatch.setattr(lastfm_api.requests, "get", fake)

    get_similar_tracks("t", "a")
    assert fake.calls[0][1]["params"]["api_key"] == "env-key"


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"similartracks": {}},
        {"similartracks": {"track": []}},
        {"similartracks": None},
        {"similartracks": "nope"},
        {"error": 6, "message": "Track not found"},
        ["not", "a", "dict"],
    ],
)
def test_returns_empty_list_without_similar_tracks_field(monkeypatch, payload):
    monkeypatch.setattr(lastfm_api.requests, "get", CallRecorder(FakeResponse(payload=payload)))
    assert get_similar_tracks("t", "a", api_key="k") == []


def test_non_json_body_returns_empty_list(monkeypatch):
    monkeypatch.setattr(lastfm_api.requests, "get", CallRecorder(FakeResponse.not_json(status_code=502)))
    assert get_similar_tracks("t", "a", api_key="k") == []


def test_single_match_object_is_treated_as_one_entry(monkeypatch):
    payload = {"similartracks": {"track": {"name": "Only", "artist": {"name": "One"}}}}
    monkeypatch.setattr(lastfm_api.requests, "get", CallRecorder(FakeResponse(payload=payload)))
    assert get_similar_tracks("t", "a", api_key="k") == ["Only by One"]


def test_network_failure_propagates(monkeypatch):
    monkeypatch.setattr(lastfm_api.requests, "get", CallRecorder(requests.Timeout("slow")))
    with pytest.raises(requests.Timeout):
        get_similar_tracks("t", "a", api_key="k")
