# spotify_api.py
# Spotify authorization-code flow and Web API helpers

import base64
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlencode

import requests
from pydantic import BaseModel, ValidationError

log = logging.getLogger("toptrack-recs")

SPOTIFY_AUTH_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_API_ROOT = "https://api.spotify.com/"
DEFAULT_SCOPES = ("user-top-read",)
DEFAULT_TIMEOUT = 15


class SpotifyAuthError(Exception):
    """Token exchange failed: bad/expired/reused code, bad credentials or transport error."""


# -------------------- Pydantic Models --------------------
class Artist(BaseModel):
    name: str

class Track(BaseModel):
    name: str
    artists: List[Artist] = []

    @property
    def first_artist(self) -> Optional[str]:
        return self.artists[0].name if self.artists else None

    def display(self) -> str:
        return f"{self.name} by {', '.join(a.name for a in self.artists)}"

class TokenInfo(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None


# -------------------- Result type --------------------
@dataclass
class ApiResult:
    """
    Outcome of a Web API call. A failed call carries ``data == {}`` so callers
    that only want the degraded form can read ``.data`` and move on; callers
    that care can check ``.ok``.
    """
    ok: bool
    status: Optional[int] = None
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def no_data(self) -> bool:
        return self.ok and not self.data


# -------------------- Authorization --------------------
def build_authorize_url(client_id: str, redirect_uri: str, scopes: Sequence[str] = DEFAULT_SCOPES,
                        state: Optional[str] = None) -> str:
    auth_params = {
        "client_id": client_id, "response_type": "code",
        "redirect_uri": redirect_uri, "scope": " ".join(scopes),
    }
    if state:
        auth_params["state"] = state
    return f"{SPOTIFY_AUTH_URL}?{urlencode(auth_params)}"


def exchange_code(code: str, client_id: str, client_secret: str, redirect_uri: str,
                  timeout: float = DEFAULT_TIMEOUT) -> TokenInfo:
    if not code:
        raise SpotifyAuthError("missing authorization code")
    if not client_id or not client_secret:
        raise SpotifyAuthError("Spotify client credentials not configured")

    auth_string = f"{client_id}:{client_secret}"
    auth_base64 = base64.b64encode(auth_string.encode("utf-8")).decode("utf-8")
    headers = {"Authorization": f"Basic {auth_base64}", "Content-Type": "application/x-www-form-urlencoded"}
    payload = {"grant_type": "authorization_code", "code": code, "redirect_uri": redirect_uri}
    log.info(f"Exchanging Spotify code for tokens (code: {code[:10]}...)")

    response = None
    try:
        response = requests.post(SPOTIFY_TOKEN_URL, headers=headers, data=payload, timeout=timeout)
        response.raise_for_status()
        token_payload = response.json()
        if not isinstance(token_payload, dict):
            raise ValueError(f"token response was not a JSON object: {response.text[:200]}")
        return TokenInfo(**token_payload)
    except requests.RequestException as e:
        status_code = response.status_code if response is not None else "N/A"
        response_text = response.text if response is not None else str(e)
        log.error(f"Error exchanging Spotify code for tokens: {e} (Status: {status_code}) Response: {response_text}")
        raise SpotifyAuthError(f"{status_code} {response_text}")
    except ValueError as e:
        # ValidationError is a ValueError; so is a non-JSON body
        detail = "token response did not contain access_token" if isinstance(e, ValidationError) else str(e)
        log.error(f"Unusable Spotify token response: {detail}")
        raise SpotifyAuthError(detail)


# -------------------- Web API --------------------
def request_web_api(endpoint: str, method: str, token: str, body: Optional[Dict[str, Any]] = None,
                    timeout: float = DEFAULT_TIMEOUT) -> ApiResult:
    headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
    url = SPOTIFY_API_ROOT + endpoint.lstrip("/")
    # Transport errors propagate to the caller
    response = requests.request(
        method, url, headers=headers,
        data=json.dumps(body) if body is not None else None,
        timeout=timeout,
    )
    if not 200 <= response.status_code < 300:
        log.error(f"Error fetching: {response.status_code} {response.reason}")
        log.error(response.text)
        return ApiResult(ok=False, status=response.status_code, error=response.text)
    if not response.content:
        return ApiResult(ok=True, status=response.status_code)
    return ApiResult(ok=True, status=response.status_code, data=response.json())


def fetch_web_api(endpoint: str, method: str, token: str, body: Optional[Dict[str, Any]] = None,
                  timeout: float = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    return request_web_api(endpoint, method, token, body, timeout=timeout).data


def get_top_tracks(token: str, limit: int = 5, time_range: str = "short_term",
                   timeout: float = DEFAULT_TIMEOUT) -> List[Track]:
    query = urlencode({"time_range": time_range, "limit": limit})
    data = fetch_web_api(f"v1/me/top/tracks?{query}", "GET", token, timeout=timeout)
    return [Track(**item) for item in data.get("items") or []]
