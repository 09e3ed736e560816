"""
views.py
--------
HTML dashboard: submission form, feedback table, analytics cards and CSV download.

- GET  /        → loads list + stats once and renders the page
- POST /        → submits the form, 303 back to / on success, inline error otherwise
- GET  /export  → CSV download rendered on the dashboard side

A Dashboard is built per request, so /export always fetches the list before
rendering it; the loaded-list shortcut applies to long-lived Dashboard objects.
"""

import logging
from pathlib import Path

import httpx
from fastapi import APIRouter, Form, Request
from fastapi.responses import RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from feedback_dashboard.dashboard.client import (
    DEFAULT_RATING,
    INVALID_RATING_MESSAGE,
    RATING_CHOICES,
    ApiError,
    Dashboard,
    FeedbackApiClient,
    FeedbackForm,
    export_filename,
)

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
STATIC_DIR = BASE_DIR / "static"
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

router = APIRouter(tags=["Dashboard"])


def get_dashboard(request: Request) -> Dashboard:
    return Dashboard(FeedbackApiClient(request.app.state.api_http))


def render_page(request: Request, dashboard: Dashboard, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "index.html",
        {"dashboard": dashboard, "ratings": RATING_CHOICES},
        status_code=status_code,
    )


@router.get("/")
async def index(request: Request):
    dashboard = get_dashboard(request)
    await dashboard.load()
    return render_page(request, dashboard)


@router.post("/")
async def submit(
    request: Request,
    name: str = Form(""),
    email: str = Form(""),
    message: str = Form(""),
    rating: str = Form(str(DEFAULT_RATING)),
):
    dashboard = get_dashboard(request)
    try:
        form = FeedbackForm(name=name, email=email, message=message, rating=int(rating))
    except ValueError:
        dashboard.form = FeedbackForm(name=name, email=email, message=message)
        dashboard.error = INVALID_RATING_MESSAGE
        await dashboard.load()
        return render_page(request, dashboard, status_code=400)

    if await dashboard.submit(form):
        return RedirectResponse("/", status_code=303)

    # Page needs the table and cards; nothing was written
    await dashboard.load()
    return render_page(request, dashboard, status_code=400)


@router.get("/export")
async def export(request: Request):
    dashboard = get_dashboard(request)
    try:
        content = await dashboard.export_csv()
    except (ApiError, httpx.HTTPError):
        logger.exception("Export failed")
        dashboard.error = "Failed to export CSV"
        await dashboard.load()
        return render_page(request, dashboard, status_code=502)

    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )
