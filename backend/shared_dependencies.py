"""
Shared dependencies for the AI Video Pro backend: Supabase client, access
tokens and the current-user dependencies used by the routers.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel
from supabase import create_client, Client, ClientOptions

from config import (
    SUPABASE_URL, SUPABASE_ANON_KEY, SUPABASE_SERVICE_KEY, SUPABASE_JWT_SECRET,
    JWT_AUDIENCE, JWT_ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, SESSION_COOKIE,
    DEMO_USER_ID, DEMO_USER_EMAIL, DEMO_USER_CREDITS, demo_mode_enabled
)
from exceptions import AuthenticationError, StorageError

logger = logging.getLogger(__name__)

# Initialize Supabase client
try:
    if SUPABASE_URL and SUPABASE_SERVICE_KEY:
        supabase: Optional[Client] = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
    else:
        logger.warning("SUPABASE_URL or SUPABASE_SERVICE_KEY not set. Supabase client not initialized.")
        supabase = None
except Exception as e:
    logger.warning(f"Failed to initialize Supabase client: {e}")
    supabase = None


def get_supabase() -> Optional[Client]:
    """Return the shared service-role client (None when not configured)"""
    return supabase


def create_auth_client(storage=None) -> Client:
    """
    Short-lived client for the OAuth sign-in and code exchange.

    Both steps keep state on the client (the PKCE verifier, then the
    session), so this must never be the shared service-role client.
    """
    options = ClientOptions(
        flow_type="pkce",
        auto_refresh_token=False,
        persist_session=False
    )
    if storage is not None:
        options.storage = storage
    return create_client(SUPABASE_URL, SUPABASE_ANON_KEY or SUPABASE_SERVICE_KEY, options=options)


class User(BaseModel):
    id: str
    email: str
    credits: int = 0
    is_demo: bool = False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "aud": JWT_AUDIENCE})
    return jwt.encode(to_encode, SUPABASE_JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(
            token,
            SUPABASE_JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=JWT_AUDIENCE
        )
    except JWTError as token_error:
        logger.debug(f"Token rejected: {token_error}")
        return None


def get_user_credits(user_id: str) -> int:
    """Read users.credits; a missing row counts as zero credits"""
    if user_id == DEMO_USER_ID and demo_mode_enabled():
        return DEMO_USER_CREDITS

    client = get_supabase()
    if client is None:
        return 0

    response = client.table("users").select("credits").eq("id", user_id).execute()
    if not response.data:
        return 0
    return response.data[0].get("credits") or 0


def user_from_token(token: Optional[str]) -> Optional[User]:
    """Resolve a verified access token to a User, or None"""
    if not token:
        return None

    payload = verify_token(token)
    if not payload:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    email = payload.get("email", "")

    if demo_mode_enabled() and user_id == DEMO_USER_ID:
        return User(id=user_id, email=email or DEMO_USER_EMAIL, credits=DEMO_USER_CREDITS, is_demo=True)

    return User(id=user_id, email=email, credits=get_user_credits(user_id))


security = HTTPBearer(auto_error=False)


async def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> User:
    """Get current user from the bearer token; 401 when it is missing or invalid"""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    try:
        user = user_from_token(credentials.credentials)
    except Exception as db_error:
        logger.error(f"Database error while resolving user: {db_error}")
        raise StorageError("error fetching user data")

    if user is None:
        raise AuthenticationError()
    return user


async def get_optional_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> Optional[User]:
    """Same as get_current_user but returns None instead of raising"""
    if credentials is None:
        return None
    try:
        return user_from_token(credentials.credentials)
    except Exception as db_error:
        logger.warning(f"Could not resolve user from token: {db_error}")
        return None


def get_session_user(request: Request) -> Optional[User]:
    """User behind the browser session cookie, for server-rendered pages"""
    token = request.cookies.get(SESSION_COOKIE)
    try:
        return user_from_token(token)
    except Exception as db_error:
        logger.warning(f"Could not resolve session user: {db_error}")
        return None
