"""In-app help endpoints: search, topics and per-user help state."""

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from starlette.status import HTTP_404_NOT_FOUND

from campreserv.models import HelpSearchResult, HelpTopic
from campreserv.services.help import HelpService, get_topic
from campreserv_api.dependencies import get_help_service, get_user_id
from campreserv_api.models.requests import HelpFeedbackRequest

router = APIRouter(prefix="/help", tags=["help"])


class PinsResponse(BaseModel):
    pins: list[str]


class RecentResponse(BaseModel):
    recent: list[str]


class FeedbackResponse(BaseModel):
    feedback: dict[str, bool]


def _require_topic(topic_id: str) -> HelpTopic:
    topic = get_topic(topic_id)
    if topic is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=f"Help topic {topic_id} not found")
    return topic


@router.get(
    "/search",
    summary="Search help",
    description="""
Static topic search, filtered by role. When fewer than three topics match a
query of three or more characters, the AI support service is asked for an
answer (if configured).
""",
    response_model=HelpSearchResult,
)
async def search_help(
    q: str = Query(default=""),
    role: str | None = Query(default=None),
    context: str | None = Query(default=None),
    service: HelpService = Depends(get_help_service),
) -> HelpSearchResult:
    return service.search(q, role=role, context=context)


@router.get(
    "/topics/{topic_id}",
    summary="Get help topic",
    response_model=HelpTopic,
    responses={404: {"description": "Topic not found"}},
)
async def get_help_topic(topic_id: str) -> HelpTopic:
    return _require_topic(topic_id)


@router.post(
    "/topics/{topic_id}/pin",
    summary="Toggle pin",
    response_model=PinsResponse,
)
async def toggle_pin(
    topic_id: str,
    user_id: str = Depends(get_user_id),
    service: HelpService = Depends(get_help_service),
) -> PinsResponse:
    _require_topic(topic_id)
    return PinsResponse(pins=service.toggle_pin(user_id, topic_id))


@router.post(
    "/topics/{topic_id}/viewed",
    summary="Record a viewed topic",
    response_model=RecentResponse,
)
async def record_viewed(
    topic_id: str,
    user_id: str = Depends(get_user_id),
    service: HelpService = Depends(get_help_service),
) -> RecentResponse:
    _require_topic(topic_id)
    return RecentResponse(recent=service.record_recent(user_id, topic_id))


@router.post(
    "/topics/{topic_id}/feedback",
    summary="Rate a topic",
    response_model=FeedbackResponse,
)
async def set_feedback(
    topic_id: str,
    body: HelpFeedbackRequest,
    user_id: str = Depends(get_user_id),
    service: HelpService = Depends(get_help_service),
) -> FeedbackResponse:
    _require_topic(topic_id)
    return FeedbackResponse(feedback=service.set_feedback(user_id, topic_id, body.helpful))
