"""Help topic models."""

from pydantic import BaseModel, ConfigDict, Field


class HelpLink(BaseModel):
    model_config = ConfigDict(strict=True)

    label: str
    href: str


class HelpTopic(BaseModel):
    """A help article shown in the in-app help panel."""

    model_config = ConfigDict(strict=True)

    id: str = Field(..., examples=["booking-new"])
    title: str
    summary: str
    category: str
    roles: list[str] = Field(default_factory=list, description="Empty = visible to all roles")
    tags: list[str] = Field(default_factory=list)
    steps: list[str] = Field(default_factory=list)
    tips: list[str] = Field(default_factory=list)
    links: list[HelpLink] = Field(default_factory=list)


class HelpSearchResult(BaseModel):
    """Help search outcome with optional AI answer."""

    model_config = ConfigDict(strict=True)

    query: str
    topics: list[HelpTopic]
    ai_used: bool = False
    ai_answer: str | None = None


class HelpState(BaseModel):
    """Per-user help panel state."""

    model_config = ConfigDict(strict=True)

    pins: list[str] = Field(default_factory=list)
    recent: list[str] = Field(default_factory=list)
    feedback: dict[str, bool] = Field(default_factory=dict)
    role: str | None = None
