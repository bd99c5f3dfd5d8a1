"""Help topic catalogue, search with AI fallback, and per-user help state."""

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from campreserv.models import HelpSearchResult, HelpState, HelpTopic
from campreserv.utils.logging import get_logger

from .preferences import HELP_FEEDBACK, HELP_PINS, HELP_RECENT, HELP_ROLE

if TYPE_CHECKING:
    from .preferences import PreferencesService

logger = get_logger(__name__)

MAX_PINNED = 12
MAX_RECENT = 12
SEARCH_LIMIT = 50
AI_MIN_QUERY_LENGTH = 3
AI_MIN_STATIC_RESULTS = 3
AI_FALLBACK_ANSWER = (
    "I couldn't find a specific answer for that. Try browsing the topics below "
    "or submit a support ticket for personalized help."
)

TITLE_WEIGHT = 3
TAG_WEIGHT = 2
TEXT_WEIGHT = 1

TOPICS_PATH = Path(__file__).resolve().parent.parent / "data" / "help_topics.json"


@lru_cache
def _catalogue() -> dict[str, Any]:
    data = json.loads(TOPICS_PATH.read_text("utf-8"))
    topics = [HelpTopic.model_validate(topic, strict=False) for topic in data["topics"]]
    return {"topics": topics, "popular": data.get("popular", [])}


def all_topics() -> list[HelpTopic]:
    return list(_catalogue()["topics"])


def get_topic(topic_id: str) -> HelpTopic | None:
    return next((t for t in _catalogue()["topics"] if t.id == topic_id), None)


def _score(topic: HelpTopic, tokens: list[str]) -> int:
    title = topic.title.lower()
    tags = " ".join(topic.tags).lower()
    text = " ".join([topic.summary, topic.category, *topic.steps]).lower()
    score = 0
    for token in tokens:
        if token in title:
            score += TITLE_WEIGHT
        if token in tags:
            score += TAG_WEIGHT
        if token in text:
            score += TEXT_WEIGHT
    return score


def search_topics(query: str, limit: int = SEARCH_LIMIT) -> list[HelpTopic]:
    """Rank topics by weighted token matches; zero-score topics are dropped."""
    tokens = query.lower().split()
    if not tokens:
        return []
    scored = [(_score(topic, tokens), topic) for topic in _catalogue()["topics"]]
    ranked = sorted((pair for pair in scored if pair[0] > 0), key=lambda p: (-p[0], p[1].title))
    return [topic for _, topic in ranked[:limit]]


def filter_by_role(topics: list[HelpTopic], role: str | None) -> list[HelpTopic]:
    if not role:
        return topics
    return [t for t in topics if not t.roles or role in t.roles]


def context_topics(path: str) -> list[HelpTopic]:
    """Topics tagged with any segment of a UI path like /reservations/new."""
    segments = {segment.lower() for segment in path.split("/") if segment}
    if not segments:
        return []
    return [t for t in _catalogue()["topics"] if segments & {tag.lower() for tag in t.tags}]


def popular_topics(limit: int | None = None) -> list[HelpTopic]:
    topics = [topic for topic_id in _catalogue()["popular"] if (topic := get_topic(topic_id))]
    return topics[:limit] if limit else topics


class HelpService:
    """Help search and help panel state."""

    def __init__(
        self,
        preferences: "PreferencesService",
        ai_base_url: str | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.preferences = preferences
        self.ai_base_url = ai_base_url if ai_base_url is not None else os.environ.get(
            "AI_SUPPORT_BASE_URL"
        )
        self.timeout = float(os.environ.get("AI_SUPPORT_TIMEOUT_SECONDS", "5"))
        self._http_client = http_client

    def search(
        self, query: str, role: str | None = None, context: str | None = None
    ) -> HelpSearchResult:
        """Static results first; ask the AI endpoint when they are too few."""
        query = query.strip()
        topics = filter_by_role(search_topics(query), role)
        ai_answer = None
        if (
            self.ai_base_url
            and len(query) >= AI_MIN_QUERY_LENGTH
            and len(topics) < AI_MIN_STATIC_RESULTS
        ):
            ai_answer = self._ask_ai(query, context or "/")
        return HelpSearchResult(
            query=query, topics=topics, ai_used=ai_answer is not None, ai_answer=ai_answer
        )

    def _ask_ai(self, query: str, context: str) -> str | None:
        url = f"{self.ai_base_url.rstrip('/')}/ai/support/help-search"
        client = self._http_client or httpx.Client(timeout=self.timeout)
        try:
            response = client.post(url, json={"query": query, "context": context})
        except httpx.HTTPError as e:
            logger.warning("AI help search failed for %r: %s", query, e)
            return AI_FALLBACK_ANSWER
        finally:
            if self._http_client is None:
                client.close()

        if not response.is_success:
            logger.info("AI help search returned %d", response.status_code)
            return AI_FALLBACK_ANSWER
        try:
            body = response.json()
        except ValueError:
            logger.warning("AI help search returned a non-JSON body for %r", query)
            return AI_FALLBACK_ANSWER
        answer = body.get("answer") if isinstance(body, dict) else None
        if not isinstance(body, dict) or not isinstance(answer, str | None):
            logger.warning("AI help search returned a malformed answer for %r", query)
            return AI_FALLBACK_ANSWER
        return answer or None

    # Per-user state

    def get_state(self, user_id: str) -> HelpState:
        return HelpState(
            pins=self.preferences.get(user_id, HELP_PINS, []),
            recent=self.preferences.get(user_id, HELP_RECENT, []),
            feedback=self.preferences.get(user_id, HELP_FEEDBACK, {}),
            role=self.preferences.get(user_id, HELP_ROLE),
        )

    def toggle_pin(self, user_id: str, topic_id: str) -> list[str]:
        pins = self.preferences.get(user_id, HELP_PINS, [])
        if topic_id in pins:
            pins = [p for p in pins if p != topic_id]
        else:
            pins = [topic_id, *pins][:MAX_PINNED]
        return self.preferences.set(user_id, HELP_PINS, pins)

    def record_recent(self, user_id: str, topic_id: str) -> list[str]:
        recent = self.preferences.get(user_id, HELP_RECENT, [])
        recent = [topic_id, *(r for r in recent if r != topic_id)][:MAX_RECENT]
        return self.preferences.set(user_id, HELP_RECENT, recent)

    def set_feedback(self, user_id: str, topic_id: str, helpful: bool) -> dict[str, bool]:
        feedback = dict(self.preferences.get(user_id, HELP_FEEDBACK, {}))
        feedback[topic_id] = helpful
        return self.preferences.set(user_id, HELP_FEEDBACK, feedback)

    def set_role(self, user_id: str, role: str | None) -> None:
        if role:
            self.preferences.set(user_id, HELP_ROLE, role)
        else:
            self.preferences.delete(user_id, HELP_ROLE)
