"""
Domain exception to HTTP mapping.

Dependencies: fastapi, kb_engine.core.exceptions
System role: Uniform error responses for all routers, including request
validation failures
"""

import logging

from fastapi import HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from kb_engine.core.exceptions import (
    EmbeddingDimensionError,
    EmbeddingError,
    InsufficientCreditsError,
    InvalidJobTransitionError,
    KnowledgeBaseAccessError,
    KnowledgeEngineException,
    NotFoundError,
    ObjectStorageError,
    PlanLimitExceededError,
    QueueError,
    SynthesisError,
    ValidationError,
    VectorStoreError,
)

logger = logging.getLogger(__name__)

# Checked in order; first match wins
_STATUS_CODES: list[tuple[type[KnowledgeEngineException], int]] = [
    (ValidationError, 400),
    (InsufficientCreditsError, 402),
    (KnowledgeBaseAccessError, 403),
    (NotFoundError, 404),
    (InvalidJobTransitionError, 409),
    (PlanLimitExceededError, 413),
    (EmbeddingDimensionError, 500),
    (EmbeddingError, 503),
    (VectorStoreError, 503),
    (ObjectStorageError, 503),
    (QueueError, 503),
    (SynthesisError, 503),
]


def status_code_for(exc: KnowledgeEngineException) -> int:
    for exc_type, status_code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 500


def to_http_exception(exc: KnowledgeEngineException) -> HTTPException:
    """
    Convert a domain exception into an HTTPException.

    The response detail is {"error", "message", "details"}.
    """
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{__name__}:to_http_exception - {type(exc).__name__}: {exc}")
    return HTTPException(
        status_code=status_code,
        detail={
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Report malformed requests as 400 with the same detail shape as domain errors.

    Missing form fields, unparseable UUIDs and unknown enum values all land
    here instead of FastAPI's default 422.
    """
    errors = jsonable_encoder(exc.errors())
    fields = [".".join(str(part) for part in error["loc"] if part != "body") for error in errors]
    logger.info(f"{__name__}:request_validation_handler - {request.method} {request.url.path} fields={fields}")
    return JSONResponse(
        status_code=400,
        content={
            "detail": {
                "error": "ValidationError",
                "message": f"Invalid request: {', '.join(fields) or 'body'}",
                "details": {"errors": errors},
            }
        },
    )
