"""
errors.py
---------
Error taxonomy of the API and the handlers that render it as `{"error": ...}`.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class FeedbackError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(FeedbackError):
    """Client input fault, always HTTP 400."""

    status_code = 400
    default_message = "Name and message are required"


class ServiceUnavailable(FeedbackError):
    """Storage has not been provisioned yet."""

    status_code = 503
    default_message = "Database not initialized"


class InternalError(FeedbackError):
    """Any other failure. The detail stays in the server log."""

    status_code = 500
    default_message = "Server error"


async def feedback_error_handler(request: Request, exc: FeedbackError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """
    Turn FastAPI's 422 into a 400 ValidationError on /api routes.

    Other routes (the HTML dashboard) keep the default 422 shape.
    """
    if request.url.path.startswith("/api/"):
        logger.info("Rejected request body on %s: %s", request.url.path, exc.errors())
        return await feedback_error_handler(request, ValidationError("Invalid request body"))
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FeedbackError, feedback_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
