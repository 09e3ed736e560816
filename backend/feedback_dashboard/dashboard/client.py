"""
client.py
---------
Dashboard side of the application: an HTTP client for the JSON API and the
controller holding what the page shows (list, stats cards, form, inline error).

The controller only talks to the API over HTTP, never to the store.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx

from feedback_dashboard.csv_export import render_csv

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Name and message are required"
SUBMIT_FAILED_MESSAGE = "Failed to submit"
INVALID_RATING_MESSAGE = "Rating must be a whole number"
DEFAULT_RATING = 5
RATING_CHOICES = (5, 4, 3, 2, 1)


def empty_stats() -> dict[str, Any]:
    return {"total": 0, "avgRating": 0, "positive": 0, "negative": 0}


def export_filename(now: datetime | None = None) -> str:
    """feedbacks_2024-05-01-12-30-00.csv"""
    now = now or datetime.now(timezone.utc)
    return f"feedbacks_{now.strftime('%Y-%m-%d-%H-%M-%S')}.csv"


class ApiError(Exception):
    """Non-2xx answer from the API, `message` is the server's `error` field."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class FeedbackApiClient:
    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        response = await self.http.request(method, path, **kwargs)
        if response.is_error:
            try:
                message = response.json().get("error")
            except ValueError:
                message = None
            raise ApiError(message or f"Request failed ({response.status_code})", response.status_code)
        return response

    async def list_feedback(self) -> list[dict[str, Any]]:
        response = await self._request("GET", "/api/feedback")
        return response.json()

    async def get_stats(self) -> dict[str, Any]:
        response = await self._request("GET", "/api/stats")
        return response.json()

    async def create_feedback(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self._request("POST", "/api/feedback", json=payload)
        return response.json()

    async def export_csv(self) -> str:
        """Server-side export, same bytes as Dashboard.export_csv() on the same rows."""
        response = await self._request("GET", "/api/feedback/export")
        return response.text


@dataclass
class FeedbackForm:
    name: str = ""
    email: str = ""
    message: str = ""
    rating: int = DEFAULT_RATING

    def missing_required(self) -> bool:
        return not self.name.strip() or not self.message.strip()

    def payload(self) -> dict[str, Any]:
        return {"name": self.name, "email": self.email, "message": self.message, "rating": int(self.rating)}


class Dashboard:
    """
    Page state. Status goes idle -> submitting -> idle; the list and the
    stats are refreshed only after the API confirmed a write.
    """

    def __init__(self, api: FeedbackApiClient):
        self.api = api
        self.feedbacks: list[dict[str, Any]] = []
        self.stats: dict[str, Any] = empty_stats()
        self.form = FeedbackForm()
        self.error = ""
        self.status = "idle"
        self.loading = False

    async def load(self) -> None:
        await self.fetch_all()
        await self.fetch_stats()

    async def fetch_all(self) -> None:
        self.loading = True
        try:
            self.feedbacks = await self.api.list_feedback()
        except (ApiError, httpx.HTTPError) as e:
            logger.error("Fetching feedbacks failed: %s", e)
        finally:
            self.loading = False

    async def fetch_stats(self) -> None:
        try:
            self.stats = await self.api.get_stats()
        except (ApiError, httpx.HTTPError) as e:
            logger.error("Fetching stats failed: %s", e)

    async def submit(self, form: FeedbackForm) -> bool:
        """Validate, post, then refresh. Returns True when the API stored the feedback."""
        self.error = ""
        self.form = form
        if form.missing_required():
            self.error = REQUIRED_FIELDS_MESSAGE
            return False

        self.status = "submitting"
        try:
            await self.api.create_feedback(form.payload())
        except ApiError as e:
            self.error = e.message or SUBMIT_FAILED_MESSAGE
            return False
        except httpx.HTTPError:
            logger.exception("Submitting feedback failed")
            self.error = SUBMIT_FAILED_MESSAGE
            return False
        finally:
            self.status = "idle"

        await self.fetch_all()
        await self.fetch_stats()
        self.form = FeedbackForm()
        return True

    async def export_csv(self) -> str:
        """CSV of the loaded list; fetches the list first when nothing is loaded."""
        if self.feedbacks:
            return render_csv(self.feedbacks)
        rows = await self.api.list_feedback()
        return render_csv(rows)
