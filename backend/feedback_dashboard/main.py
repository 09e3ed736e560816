import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from feedback_dashboard.api import router as api_router
from feedback_dashboard.config import Settings, configure_logging, get_settings
from feedback_dashboard.dashboard.views import STATIC_DIR, router as dashboard_router
from feedback_dashboard.database.connection import FeedbackStore
from feedback_dashboard.errors import register_error_handlers

logger = logging.getLogger(__name__)


def make_api_http_client(app: FastAPI, settings: Settings) -> httpx.AsyncClient:
    """HTTP client of the dashboard: API_BASE_URL if set, otherwise this app in-process."""
    if settings.api_base_url:
        return httpx.AsyncClient(base_url=settings.api_base_url, timeout=10.0)
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://feedback.local")


def create_app(store: FeedbackStore | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the application around an explicit storage handle."""
    settings = settings or get_settings()
    store = store or FeedbackStore.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Provisioning failure propagates and aborts startup
        await store.provision()
        app.state.api_http = make_api_http_client(app, settings)

        yield

        await app.state.api_http.aclose()
        await store.dispose()

    app = FastAPI(
        title="Feedback Dashboard",
        description="Collects feedback through a form and reports aggregate statistics.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    # --- API and dashboard ---
    app.include_router(api_router)
    app.include_router(dashboard_router)
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    return app


settings = get_settings()
configure_logging(settings.log_level)
app = create_app(settings=settings)
