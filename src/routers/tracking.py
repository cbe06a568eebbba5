"""Tracking endpoints.

POST /track accepts one consent/permission decision from the browser
client, validates it and stores it. GET /data returns every stored
decision, most recent first.
"""

from collections.abc import Mapping
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.core.tracking_validation import (
    TrackingEventValidator,
    TrackingValidationError,
    TrackingValidationResult,
)
from src.database import get_db
from src.logging_config import get_logger
from src.middleware.rate_limit import get_client_ip, limiter, track_rate_limit
from src.schemas.tracking import (
    FailureResponse,
    TrackAcceptedResponse,
    TrackingDataResponse,
    TrackingEventResponse,
)
from src.services.error_log import ErrorLog, get_error_log, redact_headers
from src.services.tracking_store import (
    PersistenceError,
    RetryPolicy,
    TrackingEventStore,
)

logger = get_logger(__name__)

router = APIRouter(tags=["Tracking"])

_validator = TrackingEventValidator()

TRACK_FAILED = "Failed to record decision"
DATA_FAILED = "Failed to read tracking data"

# Fields echoed to the log when a submission arrives
_LOGGED_FIELDS = (
    "session_id",
    "experiment_run_id",
    "user_id",
    "user_step",
    "device_type",
    "consent_decision",
    "permission_decision",
    "decision_timestamp",
    "survey_clicked",
)


async def get_tracking_store(db: AsyncSession = Depends(get_db)) -> TrackingEventStore:
    """FastAPI dependency building a store around the request's session."""
    return TrackingEventStore(db, RetryPolicy.from_settings())


def _public_detail(exc: Exception) -> str:
    return str(exc) if settings.is_development else "An error occurred"


async def _read_payload(request: Request) -> tuple[Any, TrackingValidationResult | None]:
    """Decode the JSON body; a malformed body becomes a validation failure."""
    try:
        return await request.json(), None
    except ValueError:
        return None, TrackingValidationResult.rejected(["Malformed JSON body"])


@router.post(
    "/track",
    response_model=TrackAcceptedResponse,
    responses={
        400: {"model": FailureResponse, "description": "Validation failed"},
        429: {"model": FailureResponse, "description": "Rate limit exceeded"},
        500: {"model": FailureResponse, "description": "Storage failed"},
    },
)
@limiter.limit(track_rate_limit)
async def track_decision(
    request: Request,
    store: TrackingEventStore = Depends(get_tracking_store),
    error_log: ErrorLog = Depends(get_error_log),
) -> JSONResponse:
    """Validate and store one tracking event."""
    client_ip = get_client_ip(request)
    payload, result = await _read_payload(request)

    if isinstance(payload, Mapping):
        logger.info(
            "Received tracking request",
            client_ip=client_ip,
            **{field: payload.get(field) for field in _LOGGED_FIELDS},
        )

    if result is None:
        result = _validator.validate(payload)

    if result.event is None:
        logger.warning(
            "Tracking request rejected",
            client_ip=client_ip,
            errors=result.errors,
        )
        await error_log.arecord(
            TrackingValidationError(result.errors),
            payload,
            endpoint="/track",
            ip=client_ip,
            headers=redact_headers(request.headers),
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=FailureResponse(error=TRACK_FAILED, message=result.message).model_dump(),
        )

    try:
        event_id = await store.insert(result.event)
    except PersistenceError as e:
        logger.error(
            "Error storing tracking data",
            session_id=result.event.session_id,
            error=str(e),
        )
        await error_log.arecord(
            e,
            payload,
            endpoint="/track",
            ip=client_ip,
            headers=redact_headers(request.headers),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=FailureResponse(
                error=TRACK_FAILED, message=_public_detail(e)
            ).model_dump(),
        )

    logger.info(
        "Tracking data recorded successfully",
        event_id=event_id,
        session_id=result.event.session_id,
        decision_time_taken_sec=result.event.decision_time_taken_sec,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=TrackAcceptedResponse(
            message="Decision recorded successfully", id=event_id
        ).model_dump(),
    )


@router.get(
    "/data",
    response_model=TrackingDataResponse,
    responses={500: {"model": FailureResponse, "description": "Storage failed"}},
)
async def list_tracking_data(
    store: TrackingEventStore = Depends(get_tracking_store),
    error_log: ErrorLog = Depends(get_error_log),
) -> JSONResponse:
    """Return all stored tracking events, most recent first."""
    try:
        rows = await store.list()
    except PersistenceError as e:
        logger.error("Error reading tracking data", error=str(e))
        await error_log.arecord(e, endpoint="/data")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=FailureResponse(error=DATA_FAILED).model_dump(exclude_none=True),
        )

    response = TrackingDataResponse(
        data=[TrackingEventResponse.model_validate(row) for row in rows]
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=response.model_dump(mode="json"),
    )
