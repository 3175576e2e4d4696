"""
FloodWatch - Web Application

FastAPI application serving the FloodWatch pages (home, auth, live map,
report, dashboard) plus a small JSON API. Each browser gets its own client
context, found through the signed session cookie; the cookie also carries
the Supabase tokens so a fresh process can resume the sign-in.

Run with: uvicorn floodwatch.api.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import Depends, FastAPI, Form, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from pydantic import BaseModel
from starlette.middleware.sessions import SessionMiddleware

from floodwatch import __version__
from floodwatch.api import pages
from floodwatch.core.config import settings
from floodwatch.core.exceptions import ConfigurationError, GatewayReadError
from floodwatch.core.logging import setup_logging
from floodwatch.gateway.data_gateway import RemoteDataGateway
from floodwatch.session.context import ClientContext, ContextRegistry
from floodwatch.views.auth import AuthMode, AuthView, sign_out
from floodwatch.views.base import Route, ViewController
from floodwatch.views.dashboard import DashboardView
from floodwatch.views.home import HomeView
from floodwatch.views.live_map import LiveMapView
from floodwatch.views.report import ReportView

logger = logging.getLogger(__name__)

# Open client contexts, keyed by the id stored in the session cookie
registry = ContextRegistry(
    max_contexts=settings.session_max_contexts,
    idle_timeout=settings.session_idle_seconds,
)

# Session cookie keys
CONTEXT_KEY = "context_id"
TOKENS_KEY = "supabase_tokens"


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"FloodWatch {__version__} starting ({settings.app_env})")
    yield
    await registry.close_all()


app = FastAPI(
    title="FloodWatch Karachi",
    description="Community flood reporting: crowdsourced road conditions, live map and eco impact",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret_key,
    session_cookie=settings.session_cookie_name,
    max_age=settings.session_max_age_seconds,
    same_site="lax",
    https_only=settings.is_production,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["*"],
)


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    """API health check response."""
    status: str
    version: str
    timestamp: str
    supabase_configured: bool
    open_sessions: int


class ReportResponse(BaseModel):
    """Road report response."""
    id: Optional[str]
    location: str
    latitude: float
    longitude: float
    description: str
    rain_level: str
    image_url: Optional[str]
    created_at: Optional[str]


class ReportListResponse(BaseModel):
    """List of road reports."""
    count: int
    reports: List[ReportResponse]


# ============================================================================
# Context plumbing
# ============================================================================

def _stored_tokens(request: Request) -> Optional[Tuple[str, str]]:
    tokens = request.session.get(TOKENS_KEY)
    if not isinstance(tokens, list) or len(tokens) != 2:
        return None
    return tokens[0], tokens[1]


async def get_context(request: Request) -> ClientContext:
    """
    Client context for the requesting browser.

    A browser this process has not seen (first visit, restart, another
    instance) gets a new context that adopts the Supabase tokens stored in
    its signed session cookie.
    """
    context = await registry.get_or_create(
        request.session.get(CONTEXT_KEY),
        tokens=_stored_tokens(request),
    )
    request.session[CONTEXT_KEY] = context.id
    return context


async def get_public_gateway() -> RemoteDataGateway:
    """Shared anonymous gateway for the JSON API."""
    return await registry.public_gateway()


async def _finish(request: Request, context: ClientContext, response: Response) -> Response:
    tokens = await context.provider.session_tokens()
    if tokens is None:
        request.session.pop(TOKENS_KEY, None)
    else:
        request.session[TOKENS_KEY] = list(tokens)
    return response


async def _redirect(request: Request, context: ClientContext, route: Route) -> Response:
    return await _finish(request, context, RedirectResponse(route.value, status_code=303))


async def _page(request: Request, context: ClientContext, view: ViewController, body: str) -> Response:
    if view.redirect_to is not None:
        return await _redirect(request, context, view.redirect_to)
    html = pages.render_page(view, body, context.notifier.drain())
    return await _finish(request, context, HTMLResponse(html))


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error: {exc}")
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# ============================================================================
# System Routes
# ============================================================================

@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Check API health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.utcnow().isoformat(),
        supabase_configured=settings.supabase_configured,
        open_sessions=len(registry),
    )


# ============================================================================
# Pages
# ============================================================================

@app.get("/", response_class=HTMLResponse, tags=["Pages"])
async def home(request: Request, context: ClientContext = Depends(get_context)):
    """Landing page."""
    async with HomeView(context) as view:
        await view.activate()
        return await _page(request, context, view, pages.render_home(view))


@app.get("/auth", response_class=HTMLResponse, tags=["Pages"])
async def auth_page(
    request: Request,
    mode: AuthMode = Query(AuthMode.LOGIN),
    context: ClientContext = Depends(get_context),
):
    """Sign in / sign up form."""
    async with AuthView(context, mode=mode) as view:
        await view.activate()
        return await _page(request, context, view, pages.render_auth(view))


@app.post("/auth", response_class=HTMLResponse, tags=["Pages"])
async def auth_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    mode: AuthMode = Form(AuthMode.LOGIN),
    context: ClientContext = Depends(get_context),
):
    """Sign in or sign up; a successful sign in redirects home."""
    async with AuthView(context, mode=mode) as view:
        await view.activate()
        await view.submit({"email": email, "password": password}, mode=mode)
        return await _page(request, context, view, pages.render_auth(view))


@app.post("/logout", tags=["Pages"])
async def logout(request: Request, context: ClientContext = Depends(get_context)):
    """Sign out, drop this browser's context and go home with a fresh one."""
    route = await sign_out(context)
    toasts = context.notifier.drain()
    await registry.discard(context.id)

    request.session.clear()
    fresh = await get_context(request)
    fresh.notifier.extend(toasts)
    return await _redirect(request, fresh, route)


@app.get("/dashboard", response_class=HTMLResponse, tags=["Pages"])
async def dashboard(request: Request, context: ClientContext = Depends(get_context)):
    """Personal eco impact dashboard."""
    async with DashboardView(context) as view:
        await view.activate()
        return await _page(request, context, view, pages.render_dashboard(view))


@app.post("/dashboard/reconcile", tags=["Pages"])
async def dashboard_reconcile(request: Request, context: ClientContext = Depends(get_context)):
    """Recompute the profile total from the eco ledger."""
    async with DashboardView(context) as view:
        await view.activate()
        if view.redirect_to is None:
            await view.reconcile()
        return await _redirect(request, context, view.redirect_to or Route.DASHBOARD)


@app.get("/map", response_class=HTMLResponse, tags=["Pages"])
async def live_map(request: Request, context: ClientContext = Depends(get_context)):
    """Live map of road reports with the flood risk banner."""
    async with LiveMapView(context) as view:
        await view.activate()
        map_html = view.render_map()._repr_html_()
        return await _page(request, context, view, pages.render_map(view, map_html))


@app.get("/report", response_class=HTMLResponse, tags=["Pages"])
async def report_page(request: Request, context: ClientContext = Depends(get_context)):
    """Road condition report form."""
    async with ReportView(context) as view:
        await view.activate()
        return await _page(request, context, view, pages.render_report(view))


@app.post("/report", response_class=HTMLResponse, tags=["Pages"])
async def report_submit(
    request: Request,
    location: str = Form(""),
    latitude: str = Form(""),
    longitude: str = Form(""),
    description: str = Form(""),
    rain_level: str = Form(""),
    image_url: str = Form(""),
    context: ClientContext = Depends(get_context),
):
    """Validate and submit a road report."""
    async with ReportView(context) as view:
        await view.activate()
        await view.submit({
            "location": location,
            "latitude": latitude,
            "longitude": longitude,
            "description": description,
            "rain_level": rain_level,
            "image_url": image_url,
        })
        return await _page(request, context, view, pages.render_report(view))


@app.post("/report/locate", response_class=HTMLResponse, tags=["Pages"])
async def report_locate(
    request: Request,
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    error: Optional[str] = Form(None),
    context: ClientContext = Depends(get_context),
):
    """Receive the browser's geolocation result for the report form."""
    async with ReportView(context) as view:
        await view.activate()
        if error or latitude is None or longitude is None:
            view.geolocation_failed(error)
        else:
            view.apply_geolocation(latitude, longitude)
        return await _page(request, context, view, pages.render_report(view))


# ============================================================================
# JSON API
# ============================================================================

@app.get("/api/v1/reports", response_model=ReportListResponse, tags=["Reports"])
async def list_reports(
    owner_id: Optional[str] = Query(None, description="Only reports by this user"),
    limit: int = Query(default=100, ge=1, le=500),
    gateway: RemoteDataGateway = Depends(get_public_gateway),
):
    """List road reports, newest first."""
    try:
        reports = await gateway.fetch_reports(owner_id=owner_id)
    except GatewayReadError as e:
        raise HTTPException(status_code=502, detail=e.message)

    reports = reports[:limit]
    return ReportListResponse(
        count=len(reports),
        reports=[
            ReportResponse(
                id=str(r.id) if r.id is not None else None,
                location=r.location,
                latitude=r.latitude,
                longitude=r.longitude,
                description=r.description,
                rain_level=r.rain_level.value,
                image_url=r.image_url,
                created_at=r.created_at.isoformat() if r.created_at else None,
            )
            for r in reports
        ],
    )


# ============================================================================
# Main
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
