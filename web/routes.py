"""
web/routes.py -- Jinja2 template routes for the boilerplate web UI.

These routes serve server-rendered HTML. They share app.state with the API
routes (same Session Store service and record store) but return HTML instead
of JSON.

Routes:
  GET  /                                  -- landing page (sign-in / sign-up modal)
  POST /signup                            -- handle sign-up form, redirect to ?next
  POST /signin                            -- handle sign-in form, redirect to ?next
  POST /signout                           -- revoke session, clear cookie, redirect /
  GET  /dashboard                         -- protected dashboard
  POST /dashboard/preferences             -- settings form
  POST /dashboard/tasks                   -- add a task
  POST /dashboard/tasks/{task_id}/toggle  -- flip completion
  POST /dashboard/tasks/{task_id}/delete  -- remove a task
  GET  /auth-test                         -- diagnostic page: form or identity card
  GET  /signup                            -- demo page: standalone sign-up / sign-in

Gate policy: every protected page redirects signed-out visitors to the public
landing route "/" (302). No page renders a fallback view in place.

Form policy: sign-up checks a non-empty name and the minimum password length
before calling the Session Store; sign-in performs no length check. Session
Store errors are shown verbatim in the form's error banner and the visitor
stays on the same form.
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from auth.dependencies import get_request_token, try_get_current_identity
from auth.errors import AuthError, BoilerplateError
from auth.models import Identity
from auth.service import SessionService
from auth.tokens import clear_auth_cookie, set_auth_cookie
from core.config import get_settings
from records import handlers
from records.store import RecordStore

logger = logging.getLogger("boilerplate.web")

_settings = get_settings()

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
# Lets layout.html decide between "Sign in" and "Dashboard" without every
# handler passing the identity explicitly.
templates.env.globals["try_get_current_identity"] = try_get_current_identity
templates.env.globals["deployment_id"] = _settings.deployment_id
router = APIRouter()

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# Whitelist mapping for ?error= query params on /dashboard.
# The raw query param is NEVER passed to templates -- only the message from
# this dict is.
_ERROR_MESSAGES: dict[str, str] = {
    "task_invalid": "Task text is required.",
    "task_not_found": "Task not found.",
    "preferences_invalid": "Those settings could not be saved.",
}

# Which template re-renders a failed auth form. Keyed by the hidden
# form_page field; unknown values fall back to the landing page.
_FORM_PAGES: dict[str, str] = {
    "landing": "landing.html",
    "auth-test": "auth_test.html",
    "signup": "signup.html",
}

_GENERIC_FAILURE = "Something went wrong. Please try again."


def _safe_next(next_url: Optional[str], default: str = "/dashboard") -> str:
    """Validate a post-auth redirect target. Only accept relative paths.

    Rejects absolute URLs and protocol-relative URLs ("//host") so a crafted
    link cannot bounce the visitor off-site after signing in.
    """
    if next_url and next_url.startswith("/") and not next_url.startswith("//"):
        return next_url
    return default


def _require_auth(request: Request) -> Optional[RedirectResponse]:
    """Return a redirect to the landing page if not signed in, None if OK.

    Call at the top of protected route handlers:
        if redirect := _require_auth(request):
            return redirect
    """
    if try_get_current_identity(request) is None:
        return RedirectResponse("/", status_code=302)
    return None


def _service(request: Request) -> SessionService:
    return request.app.state.session_service


def _records(request: Request) -> RecordStore:
    return request.app.state.records


def _render_auth_form(
    request: Request,
    form_page: str,
    mode: str,
    error: str,
    name: str = "",
    email: str = "",
    next_url: str = "/dashboard",
) -> HTMLResponse:
    """Re-render the page the form lives on with the error banner and the modal open.

    The password is never echoed back into the form.
    """
    return templates.TemplateResponse(
        request,
        _FORM_PAGES.get(form_page, "landing.html"),
        {
            "identity": None,
            "auth_mode": mode,
            "form_error": error,
            "form_name": name,
            "form_email": email,
            "next": next_url,
            "form_page": form_page,
            "min_password_length": _settings.password_min_length,
        },
    )


def _signed_in_redirect(token: str, next_url: str) -> RedirectResponse:
    resp = RedirectResponse(next_url, status_code=302)
    set_auth_cookie(resp, token)
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# GET / -- landing page
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def landing(request: Request, auth: Optional[str] = None) -> HTMLResponse:
    """Render the landing page. ?auth=signin|signup opens the modal."""
    identity = try_get_current_identity(request)
    mode = auth if auth in ("signin", "signup") and identity is None else None
    return templates.TemplateResponse(
        request,
        "landing.html",
        {
            "identity": identity,
            "auth_mode": mode,
            "next": "/dashboard",
            "form_page": "landing",
            "min_password_length": _settings.password_min_length,
        },
    )


# ---------------------------------------------------------------------------
# Auth forms
# ---------------------------------------------------------------------------


@router.post("/signup", response_class=HTMLResponse)
def signup_post(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    password: str = Form(""),
    next: str = Form("/dashboard"),
    form_page: str = Form("landing"),
):
    """Handle the sign-up form. Validation failures never reach the Session Store."""
    next_url = _safe_next(next)
    if not name.strip():
        return _render_auth_form(request, form_page, "signup", "Name is required", name, email, next_url)
    if not email.strip():
        return _render_auth_form(request, form_page, "signup", "Email is required", name, email, next_url)
    if len(password) < _settings.password_min_length:
        msg = f"Password must be at least {_settings.password_min_length} characters long"
        return _render_auth_form(request, form_page, "signup", msg, name, email, next_url)

    try:
        _identity, token = _service(request).sign_up(name, email, password)
    except AuthError as exc:
        return _render_auth_form(request, form_page, "signup", exc.message, name, email, next_url)
    except Exception:
        logger.exception("Sign-up failed unexpectedly")
        return _render_auth_form(request, form_page, "signup", _GENERIC_FAILURE, name, email, next_url)
    return _signed_in_redirect(token, next_url)


@router.post("/signin", response_class=HTMLResponse)
def signin_post(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    next: str = Form("/dashboard"),
    form_page: str = Form("landing"),
):
    """Handle the sign-in form. Errors are shown exactly as the Session Store words them."""
    next_url = _safe_next(next)
    try:
        _identity, token = _service(request).sign_in(email, password)
    except AuthError as exc:
        return _render_auth_form(request, form_page, "signin", exc.message, email=email, next_url=next_url)
    except Exception:
        logger.exception("Sign-in failed unexpectedly")
        return _render_auth_form(request, form_page, "signin", _GENERIC_FAILURE, email=email, next_url=next_url)
    return _signed_in_redirect(token, next_url)


@router.post("/signout")
def signout(request: Request) -> RedirectResponse:
    """Revoke the session, clear the cookie, and return to the landing page."""
    _service(request).sign_out(get_request_token(request))
    resp = RedirectResponse("/", status_code=302)
    clear_auth_cookie(resp)
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Dashboard (protected)
# ---------------------------------------------------------------------------


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(request: Request):
    if redirect := _require_auth(request):
        return redirect
    identity: Identity = try_get_current_identity(request)
    records = _records(request)
    me = handlers.get_current_user_preferences(records, identity)
    tasks = handlers.get_user_tasks(records, identity)
    error_msg = _ERROR_MESSAGES.get(request.query_params.get("error", ""), None)
    resp = templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "identity": identity,
            "preferences": me["preferences"] if me else None,
            "tasks": tasks,
            "error_msg": error_msg,
            "themes": ["light", "dark", "system"],
        },
    )
    # Profile data must not be replayed from the browser cache after sign-out.
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/dashboard/preferences")
def dashboard_preferences(
    request: Request,
    theme: str = Form("system"),
    notifications: Optional[str] = Form(None),
    language: str = Form("en"),
) -> RedirectResponse:
    if redirect := _require_auth(request):
        return redirect
    identity = try_get_current_identity(request)
    try:
        handlers.update_user_preferences(
            _records(request),
            identity,
            theme=theme,
            notifications=notifications is not None,
            language=language.strip(),
        )
    except BoilerplateError as exc:
        logger.info("Preferences update rejected: %s", exc.message)
        return RedirectResponse("/dashboard?error=preferences_invalid", status_code=302)
    return RedirectResponse("/dashboard", status_code=302)


@router.post("/dashboard/tasks")
def dashboard_add_task(request: Request, text: str = Form("")) -> RedirectResponse:
    if redirect := _require_auth(request):
        return redirect
    try:
        handlers.create_task(_records(request), try_get_current_identity(request), text)
    except BoilerplateError:
        return RedirectResponse("/dashboard?error=task_invalid", status_code=302)
    return RedirectResponse("/dashboard", status_code=302)


@router.post("/dashboard/tasks/{task_id}/toggle")
def dashboard_toggle_task(request: Request, task_id: int) -> RedirectResponse:
    if redirect := _require_auth(request):
        return redirect
    try:
        handlers.toggle_task(_records(request), try_get_current_identity(request), task_id)
    except BoilerplateError:
        return RedirectResponse("/dashboard?error=task_not_found", status_code=302)
    return RedirectResponse("/dashboard", status_code=302)


@router.post("/dashboard/tasks/{task_id}/delete")
def dashboard_delete_task(request: Request, task_id: int) -> RedirectResponse:
    if redirect := _require_auth(request):
        return redirect
    try:
        handlers.delete_task(_records(request), try_get_current_identity(request), task_id)
    except BoilerplateError:
        return RedirectResponse("/dashboard?error=task_not_found", status_code=302)
    return RedirectResponse("/dashboard", status_code=302)


# ---------------------------------------------------------------------------
# Diagnostic / demo pages
# ---------------------------------------------------------------------------


@router.get("/auth-test", response_class=HTMLResponse)
def auth_test(request: Request, mode: str = "signin") -> HTMLResponse:
    """Signed out: one form toggling between sign-in and sign-up.
    Signed in: the identity card with preferences and a sign-out button.
    """
    identity = try_get_current_identity(request)
    me = handlers.get_current_user_preferences(_records(request), identity)
    return templates.TemplateResponse(
        request,
        "auth_test.html",
        {
            "identity": identity,
            "preferences": me["preferences"] if me else None,
            "auth_mode": "signup" if mode == "signup" else "signin",
            "next": "/auth-test",
            "form_page": "auth-test",
            "min_password_length": _settings.password_min_length,
        },
    )


@router.get("/signup", response_class=HTMLResponse)
def signup_page(request: Request, mode: str = "signup") -> HTMLResponse:
    """Standalone sign-up demo. Starts on sign-up; ?mode=signin switches forms."""
    identity = try_get_current_identity(request)
    return templates.TemplateResponse(
        request,
        "signup.html",
        {
            "identity": identity,
            "auth_mode": "signin" if mode == "signin" else "signup",
            "next": "/signup",
            "form_page": "signup",
            "min_password_length": _settings.password_min_length,
        },
    )
