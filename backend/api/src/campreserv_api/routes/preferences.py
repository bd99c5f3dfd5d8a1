"""Per-user preference endpoints, scoped by the X-User-Id header."""

from typing import Any

from fastapi import APIRouter, Depends

from campreserv.services.preferences import PreferencesService
from campreserv_api.dependencies import get_preferences_service, get_user_id
from campreserv_api.models.common import PreferencesResponse, SuccessMessage
from campreserv_api.models.requests import PreferenceValueRequest

router = APIRouter(prefix="/preferences", tags=["preferences"])


@router.get("", summary="Get all preferences", response_model=PreferencesResponse)
async def get_preferences(
    user_id: str = Depends(get_user_id),
    service: PreferencesService = Depends(get_preferences_service),
) -> PreferencesResponse:
    return PreferencesResponse(user_id=user_id, preferences=service.get_all(user_id))


@router.put(
    "/{key}",
    summary="Set a preference",
    description="Keys are the campreserv:* names the UI uses; unknown keys return 400.",
    responses={400: {"description": "Unknown preference key"}},
)
async def set_preference(
    key: str,
    body: PreferenceValueRequest,
    user_id: str = Depends(get_user_id),
    service: PreferencesService = Depends(get_preferences_service),
) -> dict[str, Any]:
    return {"key": key, "value": service.set(user_id, key, body.value)}


@router.delete(
    "/{key}",
    summary="Delete a preference",
    response_model=SuccessMessage,
    responses={400: {"description": "Unknown preference key"}},
)
async def delete_preference(
    key: str,
    user_id: str = Depends(get_user_id),
    service: PreferencesService = Depends(get_preferences_service),
) -> SuccessMessage:
    service.delete(user_id, key)
    return SuccessMessage(message=f"Preference {key} deleted")
