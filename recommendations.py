# recommendations.py
# Top tracks -> Last.fm similar tracks, logged server-side

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional

from lastfm_api import get_similar_tracks
from spotify_api import Track, get_top_tracks

log = logging.getLogger("toptrack-recs")

TOP_TRACK_LIMIT = 5
TOP_TRACK_RANGE = "short_term"


@dataclass
class Recommendation:
    track: Track
    similar: List[str] = field(default_factory=list)


def _lookup(track: Track, lastfm_api_key: Optional[str]) -> Recommendation:
    similar = get_similar_tracks(track.name, track.first_artist, api_key=lastfm_api_key)
    return Recommendation(track=track, similar=similar)


def _log_recommendation(rec: Recommendation) -> None:
    log.info(f'Similar tracks to "{rec.track.name}" by {rec.track.first_artist}:')
    log.info(rec.similar)


def collect_recommendations(access_token: str, lastfm_api_key: Optional[str] = None,
                            max_workers: int = 1) -> List[Recommendation]:
    """
    Fetch the user's top tracks and the similar tracks for each of them.

    Lookups run one after another unless max_workers > 1, in which case at most
    max_workers run at once. Results always follow top-track order.
    Exceptions from either API propagate.
    """
    top_tracks = get_top_tracks(access_token, limit=TOP_TRACK_LIMIT, time_range=TOP_TRACK_RANGE)
    log.info([t.display() for t in top_tracks])
    if not top_tracks:
        log.warning("No top tracks returned for this user.")
        return []

    tracks = []
    for t in top_tracks:
        if t.first_artist is None:
            log.warning(f"Skipping '{t.name}': no artist listed.")
            continue
        tracks.append(t)

    results: List[Recommendation] = []
    if max_workers <= 1 or len(tracks) <= 1:
        for t in tracks:
            rec = _lookup(t, lastfm_api_key)
            _log_recommendation(rec)
            results.append(rec)
        return results

    with ThreadPoolExecutor(max_workers=min(max_workers, len(tracks))) as pool:
        # map() yields in submission order
        results = list(pool.map(lambda t: _lookup(t, lastfm_api_key), tracks))
    for rec in results:
        _log_recommendation(rec)
    return results
