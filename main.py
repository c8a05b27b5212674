# main.py
# FastAPI front door for toptrack-recs: Spotify login, top tracks, Last.fm similar tracks
import os
import logging
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from recommendations import collect_recommendations
from sessions import InMemorySessionStore, SessionRecord, SessionStore, SessionStoreError, new_session_id
from spotify_api import DEFAULT_SCOPES, SpotifyAuthError, build_authorize_url, exchange_code

load_dotenv()

# -------------------- Config / Logging --------------------
APP_NAME = "toptrack-recs"
log = logging.getLogger(APP_NAME)
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

PORT = int(os.getenv("PORT", "8888"))
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "toptrack.sid").strip()
SIMILAR_LOOKUP_WORKERS = int(os.getenv("SIMILAR_LOOKUP_WORKERS", "1"))

# --- Spotify Config ---
SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID", "").strip()
SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET", "").strip()
# Must match the Redirect URI registered in the Spotify app settings
SPOTIFY_REDIRECT_URI = os.getenv("SPOTIFY_REDIRECT_URI", f"http://localhost:{PORT}/callback").strip()
SPOTIFY_SCOPES = DEFAULT_SCOPES

# --- Last.fm Config ---
LASTFM_API_KEY = os.getenv("LASTFM_API_KEY", "").strip()

log.info("--- Spotify / Last.fm Config ---")
log.info(f"SPOTIFY_CLIENT_ID loaded: {bool(SPOTIFY_CLIENT_ID)}")
log.info(f"SPOTIFY_CLIENT_SECRET loaded: {bool(SPOTIFY_CLIENT_SECRET)}")
log.info(f"SPOTIFY_REDIRECT_URI: {SPOTIFY_REDIRECT_URI}")
log.info(f"LASTFM_API_KEY loaded: {bool(LASTFM_API_KEY)}")
log.info("--- End Config ---")

HOME_HTML = """
    <h1>Spotify Recommendations</h1>
    <a href="/login">Log in with Spotify</a><br />
    <a href="/logout">Logout</a>
"""
RECOMMENDATIONS_DONE = "Recommendations have been fetched and logged in the server console."

# -------------------- FastAPI App + Sessions --------------------
app = FastAPI(title="toptrack-recs", version="1.0")
app.state.session_store = InMemorySessionStore()


@app.on_event("startup")
async def startup_event():
    log.info(f"Server is running on http://localhost:{PORT}")


@app.middleware("http")
async def session_cookie(request: Request, call_next):
    store: SessionStore = request.app.state.session_store
    session_id = request.cookies.get(SESSION_COOKIE_NAME)
    created = False
    if not session_id or store.get(session_id) is None:
        session_id = new_session_id()
        store.set(session_id, SessionRecord())
        created = True
    request.state.session_id = session_id

    response = await call_next(request)
    if created and not getattr(request.state, "session_destroyed", False):
        response.set_cookie(SESSION_COOKIE_NAME, session_id, httponly=True, secure=False, samesite="lax")
    return response


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store

def get_session_id(request: Request) -> str:
    return request.state.session_id


# -------------------- API Endpoints --------------------
@app.get("/health")
def health():
    return {"ok": True, "ts": datetime.utcnow().isoformat() + "Z"}

@app.get("/")
def home():
    return HTMLResponse(HOME_HTML)

@app.get("/login")
def login():
    if not SPOTIFY_CLIENT_ID:
        log.error("Spotify login attempt failed: SPOTIFY_CLIENT_ID not configured.")
        return PlainTextResponse("Spotify integration not configured on server.")
    auth_url = build_authorize_url(SPOTIFY_CLIENT_ID, SPOTIFY_REDIRECT_URI, SPOTIFY_SCOPES)
    log.info(f"Redirecting user to Spotify for authorization: {auth_url}")
    return RedirectResponse(auth_url, status_code=302)

@app.get("/callback")
def callback(code: Optional[str] = None, error: Optional[str] = None,
             store: SessionStore = Depends(get_session_store),
             session_id: str = Depends(get_session_id)):
    if error:
        log.error(f"Callback Error: {error}")
        return PlainTextResponse(f"Callback Error: {error}")

    try:
        token_info = exchange_code(code or "", SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET, SPOTIFY_REDIRECT_URI)
    except SpotifyAuthError as e:
        log.error(f"Error getting Tokens: {e}")
        return PlainTextResponse(f"Error getting Tokens: {e}")

    record = store.get(session_id) or SessionRecord()
    record.access_token = token_info.access_token
    record.refresh_token = token_info.refresh_token
    store.set(session_id, record)

    log.info(f"Successfully retrieved access token. Expires in {token_info.expires_in} s.")
    return RedirectResponse("/recommendations", status_code=302)

@app.get("/recommendations")
def recommendations(store: SessionStore = Depends(get_session_store),
                    session_id: str = Depends(get_session_id)):
    record = store.get(session_id)
    if record is None or not record.authenticated:
        return RedirectResponse("/login", status_code=302)

    try:
        collect_recommendations(record.access_token, LASTFM_API_KEY, max_workers=SIMILAR_LOOKUP_WORKERS)
    except Exception as e:
        log.exception("Error fetching recommendations")
        return PlainTextResponse(f"Error fetching recommendations: {e}")
    return PlainTextResponse(RECOMMENDATIONS_DONE)

@app.get("/logout")
def logout(request: Request, store: SessionStore = Depends(get_session_store),
           session_id: str = Depends(get_session_id)):
    try:
        store.delete(session_id)
    except SessionStoreError as e:
        log.error(f"Error destroying session: {e}")
    request.state.session_destroyed = True
    response = RedirectResponse("/", status_code=302)
    response.delete_cookie(SESSION_COOKIE_NAME)
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=PORT)
