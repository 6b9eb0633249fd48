"""Server-rendered pages: the editor and the pricing page."""
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from config import (
    CREDIT_PACKAGES, EDIT_CREDIT_COST, EDIT_ETA, EDIT_PROMPT_EXAMPLES,
    POLL_INTERVAL_SECONDS, POLL_TIMEOUT_SECONDS, SESSION_COOKIE, demo_mode_enabled
)
from shared_dependencies import User, get_session_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def build_editor_context(user: Optional[User], access_token: Optional[str] = None,
                         auth_error: bool = False) -> dict:
    """Everything the editor template and its script need"""
    credits = user.credits if user else 0
    return {
        "user": user,
        "credits": credits,
        "edit_cost": EDIT_CREDIT_COST,
        "eta": EDIT_ETA,
        "prompt_placeholder": "Examples:\n" + "\n".join(f"- {example}" for example in EDIT_PROMPT_EXAMPLES),
        "demo_mode": demo_mode_enabled(),
        "auth_error": auth_error,
        "page_config": {
            "signedIn": user is not None,
            "accessToken": access_token if user else None,
            "credits": credits,
            "editCost": EDIT_CREDIT_COST,
            "pollIntervalMs": int(POLL_INTERVAL_SECONDS * 1000),
            "pollTimeoutMs": int(POLL_TIMEOUT_SECONDS * 1000),
            "loginUrl": "/auth/login",
            "editUrl": "/api/edit",
            "uploadUrl": "/api/uploads",
            "statusUrl": "/api/jobs/{job_id}/status",
        },
    }


@router.get("/", response_class=HTMLResponse)
async def editor_page(request: Request, auth_error: Optional[str] = None):
    user = get_session_user(request)
    token = request.cookies.get(SESSION_COOKIE) if user else None
    context = build_editor_context(user, token, auth_error=bool(auth_error))
    return templates.TemplateResponse(request, "editor.html", context)


@router.get("/pricing", response_class=HTMLResponse)
async def pricing_page(request: Request):
    user = get_session_user(request)
    packages = [dict(package, id=package_id) for package_id, package in CREDIT_PACKAGES.items()]
    return templates.TemplateResponse(request, "pricing.html", {
        "user": user,
        "credits": user.credits if user else 0,
        "demo_mode": demo_mode_enabled(),
        "packages": packages,
    })
