"""Health check endpoints."""

from datetime import UTC, datetime
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter

from campreserv.services.dynamodb import get_dynamodb_service
from campreserv.utils.logging import get_logger
from campreserv_api.models.common import HealthResponse

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/ping", summary="Liveness probe")
async def ping() -> dict[str, Any]:
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "campreserv-api",
    }


@router.get(
    "/health",
    summary="Readiness probe",
    description="Checks that the campgrounds table is reachable.",
    response_model=HealthResponse,
)
async def health() -> HealthResponse:
    checks: dict[str, str] = {}
    try:
        get_dynamodb_service().get_item("campgrounds", {"campground_id": "__health__"})
        checks["dynamodb"] = "ok"
    except (BotoCoreError, ClientError) as e:
        logger.warning("Health check: DynamoDB unreachable: %s", e)
        checks["dynamodb"] = "unavailable"

    status = "ok" if all(value == "ok" for value in checks.values()) else "degraded"
    return HealthResponse(status=status, timestamp=datetime.now(UTC).isoformat(), checks=checks)
