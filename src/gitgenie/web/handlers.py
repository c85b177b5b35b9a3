"""Browser routes: repository page, GitHub sign-in and user actions."""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from gitgenie.client.app import ClientApp, ClientRegistry
from gitgenie.services.rate_limiter import public_rate_limit
from gitgenie.web.views import build_page

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

CLIENT_ID_KEY = "client_id"
# Set on redirects back to the page so the next render is not taken for a reload
IN_APP_REDIRECT_KEY = "in_app_redirect"

router = APIRouter(tags=["web"])


async def get_client_app(request: Request) -> ClientApp:
    """Return this browser session's client app, creating it on first use."""
    registry: ClientRegistry = request.app.state.client_registry
    known_id = request.session.get(CLIENT_ID_KEY)
    request.state.client_reused = registry.get(known_id) is not None
    client_id, client_app = await registry.get_or_create(known_id, request.session)
    request.session[CLIENT_ID_KEY] = client_id
    return client_app


def _back_home(request: Request) -> RedirectResponse:
    request.session[IN_APP_REDIRECT_KEY] = True
    return RedirectResponse("/", status_code=303)


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    q: str = "",
    nav: str | None = None,
    client_app: ClientApp = Depends(get_client_app),
) -> HTMLResponse:
    """
    Render the sign-in card, loading skeletons, the error panel or the repository grid.

    A render of an existing client app that is neither a redirect after an
    action nor a filter submission (``nav``) is a browser reload, which
    refreshes the session and fetches the list again.
    """
    in_app = request.session.pop(IN_APP_REDIRECT_KEY, False) or nav is not None
    if request.state.client_reused and not in_app:
        await client_app.reload(request.session)
    page = build_page(client_app, q)
    return templates.TemplateResponse(
        request,
        "index.html",
        {"page": page, "notifications": client_app.notifier.drain()},
    )


@router.get("/auth/login")
@public_rate_limit
async def login(request: Request, client_app: ClientApp = Depends(get_client_app)):
    """Redirect to GitHub through Supabase Auth."""
    url = await client_app.auth.sign_in()
    if url is None:
        return _back_home(request)
    return RedirectResponse(url, status_code=303)


@router.get("/auth/callback")
async def auth_callback(
    request: Request,
    code: str | None = None,
    error_description: str | None = None,
    client_app: ClientApp = Depends(get_client_app),
) -> RedirectResponse:
    """Complete the OAuth flow started by ``/auth/login``."""
    if code:
        await client_app.auth.complete_sign_in(code)
    else:
        logger.warning(f"OAuth callback without code: {error_description}")
        client_app.notifier.notify(
            "Authentication Failed",
            error_description or "Failed to sign in with GitHub. Please try again.",
            "destructive",
        )
    return _back_home(request)


@router.post("/auth/logout")
async def logout(request: Request, client_app: ClientApp = Depends(get_client_app)):
    await client_app.auth.sign_out()
    return _back_home(request)


@router.post("/repositories/retry")
@public_rate_limit
async def retry_repositories(request: Request, client_app: ClientApp = Depends(get_client_app)):
    """Refresh the session and fetch the repository list again."""
    await client_app.repositories.retry()
    return _back_home(request)


@router.post("/repositories/search")
@public_rate_limit
async def search_repositories(
    request: Request,
    query: str = Form(""),
    client_app: ClientApp = Depends(get_client_app),
):
    """Search all of GitHub; an empty query goes back to the user's own repositories."""
    await client_app.repositories.fetch(query.strip() or None)
    return _back_home(request)


@router.post("/repositories/{repository_id}/select")
async def select_repository(
    request: Request,
    repository_id: int,
    client_app: ClientApp = Depends(get_client_app),
):
    """Forward the selected repository to the app's selection handler."""
    await client_app.select_repository(repository_id)
    return _back_home(request)
