# lastfm_api.py
# Last.fm similar-track lookups

import logging
import os
from typing import Any, Dict, List, Optional

import requests

log = logging.getLogger("toptrack-recs")

LASTFM_API_URL = "http://ws.audioscrobbler.com/2.0/"


def _format_similar(entry: Dict[str, Any]) -> str:
    artist = entry.get("artist") or {}
    artist_name = artist.get("name") if isinstance(artist, dict) else artist
    return f"{entry.get('name')} by {artist_name}"


def get_similar_tracks(track_name: str, artist_name: str, api_key: Optional[str] = None,
                       timeout: float = 15) -> List[str]:
    """
    Similar tracks for (track, artist) as "<name> by <artist>" strings, in the
    order Last.fm ranks them. An empty list means either nothing similar was
    found or the response was not shaped like a match list.
    """
    params = {
        "method": "track.getsimilar",
        "artist": artist_name,
        "track": track_name,
        "api_key": api_key if api_key is not None else os.getenv("LASTFM_API_KEY", ""),
        "format": "json",
    }

    r = requests.get(LASTFM_API_URL, params=params, timeout=timeout)
    try:
        data = r.json()
    except ValueError:
        log.warning(f"Last.fm returned a non-JSON body for '{artist_name} - {track_name}' (Status: {r.status_code})")
        return []

    if not isinstance(data, dict):
        return []
    if "error" in data:
        log.warning(f"Last.fm error {data.get('error')} for '{artist_name} - {track_name}': {data.get('message')}")
        return []

    # { similartracks: { track: [ ... ] } }
    similar = data.get("similartracks")
    tracks = similar.get("track") if isinstance(similar, dict) else None
    if not tracks:
        return []
    if isinstance(tracks, dict):
        tracks = [tracks]
    return [_format_similar(t) for t in tracks if isinstance(t, dict)]
