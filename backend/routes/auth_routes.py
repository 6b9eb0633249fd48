"""
Sign-in through Supabase Auth (Google OAuth, PKCE flow) and the demo login.

The access token ends up in an httponly session cookie; the editor page
reads it server-side and hands it to its script for bearer requests.
"""
import logging
from datetime import timedelta
from typing import Dict, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse
from supabase_auth import SyncSupportedStorage

from config import (
    SUPABASE_URL, SITE_URL, SESSION_COOKIE, PKCE_COOKIE, OAUTH_PROVIDER,
    ACCESS_TOKEN_EXPIRE_MINUTES, DEMO_USER_ID, DEMO_USER_EMAIL, DEMO_USER_CREDITS,
    demo_mode_enabled
)
from exceptions import NotFoundError, StorageError
from shared_dependencies import create_access_token, create_auth_client

logger = logging.getLogger(__name__)

router = APIRouter()

CALLBACK_PATH = "/auth/callback"
PKCE_COOKIE_MAX_AGE = 600


class VerifierStorage(SyncSupportedStorage):
    """
    Auth client storage for a single sign-in.

    In the PKCE flow the client stores the code verifier before handing back
    the authorize URL; the verifier has to reach the callback request, so it
    is read from here and moved into a cookie.
    """

    def __init__(self):
        self.items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)

    @property
    def code_verifier(self) -> Optional[str]:
        for key, value in self.items.items():
            if key.endswith("-code-verifier"):
                return value
        return None


def start_oauth_sign_in(redirect_to: str):
    """Ask Supabase Auth for the provider URL; returns (url, code verifier)"""
    storage = VerifierStorage()
    oauth = create_auth_client(storage).auth.sign_in_with_oauth({
        "provider": OAUTH_PROVIDER,
        "options": {"redirect_to": redirect_to},
    })
    if not storage.code_verifier:
        raise StorageError("Supabase auth did not issue a PKCE code verifier")
    return oauth.url, storage.code_verifier


def set_session_cookie(response, access_token: str, max_age: int) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        access_token,
        max_age=max_age,
        httponly=True,
        samesite="lax",
        secure=SITE_URL.startswith("https://")
    )


@router.get("/auth/login")
async def login():
    """Start the Google sign-in and come back to the site origin"""
    if not SUPABASE_URL:
        if demo_mode_enabled():
            return RedirectResponse("/?demo=1", status_code=303)
        raise StorageError("Supabase auth is not configured")

    try:
        authorize_url, verifier = start_oauth_sign_in(f"{SITE_URL}{CALLBACK_PATH}")
    except StorageError:
        raise
    except Exception as oauth_error:
        logger.error(f"Could not start OAuth sign-in: {oauth_error}")
        raise StorageError("Supabase auth is unavailable")

    response = RedirectResponse(authorize_url, status_code=303)
    response.set_cookie(
        PKCE_COOKIE,
        verifier,
        max_age=PKCE_COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=SITE_URL.startswith("https://")
    )
    return response


@router.get(CALLBACK_PATH)
async def auth_callback(request: Request, code: str = None):
    verifier = request.cookies.get(PKCE_COOKIE)
    if not code or not verifier:
        logger.warning("OAuth callback without code or verifier")
        return RedirectResponse("/?auth_error=1", status_code=303)

    try:
        auth_client = create_auth_client()
        auth_response = auth_client.auth.exchange_code_for_session({
            "auth_code": code,
            "code_verifier": verifier,
            "redirect_to": f"{SITE_URL}{CALLBACK_PATH}",
        })
    except Exception as exchange_error:
        logger.error(f"OAuth code exchange failed: {exchange_error}")
        return RedirectResponse("/?auth_error=1", status_code=303)

    session = auth_response.session
    if session is None or not session.access_token:
        logger.error("OAuth code exchange returned no session")
        return RedirectResponse("/?auth_error=1", status_code=303)

    user = auth_response.user
    logger.info(f"User {user.id if user else 'unknown'} signed in")

    response = RedirectResponse("/", status_code=303)
    set_session_cookie(response, session.access_token, session.expires_in or ACCESS_TOKEN_EXPIRE_MINUTES * 60)
    response.delete_cookie(PKCE_COOKIE)
    return response


@router.post("/auth/logout")
async def logout():
    response = RedirectResponse("/", status_code=303)
    response.delete_cookie(SESSION_COOKIE)
    return response


@router.post("/api/auth/demo-login")
async def demo_login():
    """Demo login, only available with DEMO_MODE on"""
    if not demo_mode_enabled():
        raise NotFoundError("Demo login")

    expires = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": DEMO_USER_ID, "email": DEMO_USER_EMAIL},
        expires_delta=expires
    )
    logger.info("Demo mode enabled: returning static demo user")

    response = JSONResponse(content={
        "success": True,
        "message": "Demo login successful",
        "token": access_token,
        "user": {
            "id": DEMO_USER_ID,
            "email": DEMO_USER_EMAIL,
            "credits": DEMO_USER_CREDITS
        }
    })
    set_session_cookie(response, access_token, int(expires.total_seconds()))
    return response
