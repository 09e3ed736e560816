"""
routes.py
----------
JSON API of the feedback service:
- GET  /api/health
- POST /api/feedback
- GET  /api/feedback
- GET  /api/stats
- GET  /api/feedback/export
"""

import logging
import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from feedback_dashboard.csv_export import render_csv
from feedback_dashboard.database.connection import FeedbackStore
from feedback_dashboard.errors import FeedbackError, InternalError, ValidationError
from feedback_dashboard.models.feedback import FeedbackCreate, FeedbackStats, as_record

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Feedback"])


def get_store(request: Request) -> FeedbackStore:
    """Storage handle attached to the application in create_app()."""
    return request.app.state.store


# --- HEALTH ---
@router.get("/health")
async def health():
    """Liveness only, answers before provisioning as well."""
    return {"status": "ok", "timestamp": int(time.time() * 1000)}


# --- FEEDBACK ---
@router.post("/feedback", status_code=201)
async def create_feedback(data: FeedbackCreate, store: FeedbackStore = Depends(get_store)):
    """Store one feedback and return the persisted row."""
    if not data.is_complete():
        raise ValidationError()

    try:
        feedback = await store.create(data)
    except FeedbackError:
        raise
    except Exception:
        logger.exception("Saving feedback failed")
        raise InternalError()

    logger.info("Feedback %s stored", feedback.id)
    return as_record(feedback)


@router.get("/feedback")
async def list_feedback(store: FeedbackStore = Depends(get_store)):
    """All feedbacks, newest first."""
    try:
        feedbacks = await store.list_all()
    except FeedbackError:
        raise
    except Exception:
        logger.exception("Listing feedbacks failed")
        raise InternalError()
    return [as_record(f) for f in feedbacks]


@router.get("/stats", response_model=FeedbackStats)
async def feedback_stats(store: FeedbackStore = Depends(get_store)):
    try:
        return await store.stats()
    except FeedbackError:
        raise
    except Exception:
        logger.exception("Computing stats failed")
        raise InternalError()


@router.get("/feedback/export")
async def export_feedback(store: FeedbackStore = Depends(get_store)):
    """All feedbacks as a CSV attachment."""
    try:
        feedbacks = await store.list_all()
    except FeedbackError:
        raise
    except Exception:
        logger.exception("CSV export failed")
        raise InternalError("Export failed")

    return Response(
        content=render_csv(as_record(f) for f in feedbacks),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="feedbacks.csv"'},
    )
