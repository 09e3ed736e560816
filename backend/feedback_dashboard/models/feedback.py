"""
feedback.py
-----------
Feedback table and the request / response shapes of the API.

The table keeps the original column names (`feedbacks.createdAt`), the Python
side uses `created_at`. `as_record()` turns a row into the wire mapping shared
by the JSON responses and the CSV export.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel
from sqlalchemy import Column, DateTime, Integer, String, Text, func
from sqlmodel import Field, SQLModel

RECORD_FIELDS = ("id", "name", "email", "rating", "message", "createdAt")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Feedback(SQLModel, table=True):
    __tablename__ = "feedbacks"

    id: Optional[int] = Field(default=None, sa_column=Column(Integer, primary_key=True, autoincrement=True))
    name: str = Field(sa_column=Column(String(255), nullable=False))
    email: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    message: str = Field(sa_column=Column(Text, nullable=False))
    rating: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column("createdAt", DateTime, nullable=False, server_default=func.now()),
    )


class FeedbackCreate(BaseModel):
    """Request body. Presence of name/message is checked by the route, not here."""

    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None
    rating: Optional[int] = None

    def is_complete(self) -> bool:
        return bool(self.name) and bool(self.message)


class FeedbackStats(BaseModel):
    total: int = 0
    avgRating: float = 0
    positive: int = 0
    negative: int = 0


def as_record(feedback: Feedback) -> dict[str, Any]:
    """Row -> JSON/CSV mapping with `createdAt` as an ISO-8601 string."""
    created_at = feedback.created_at
    return {
        "id": feedback.id,
        "name": feedback.name,
        "email": feedback.email,
        "message": feedback.message,
        "rating": feedback.rating,
        "createdAt": created_at.isoformat() if created_at is not None else None,
    }
