"""Request and result contracts for the seven creator operations."""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel, Strict, StringConstraints
from pydantic.alias_generators import to_camel


NonEmptyText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

# Model output must carry real, finite JSON numbers; "7" is not a score.
Number = Annotated[float, Strict(), Field(allow_inf_nan=False)]
Score = Annotated[Number, Field(ge=0, le=10)]
NonNegative = Annotated[Number, Field(ge=0)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Requests

class HookAnalyzeRequest(CamelModel):
    hook: NonEmptyText


class ContentIdeasRequest(CamelModel):
    topic: NonEmptyText


class ScriptRequest(CamelModel):
    hook: NonEmptyText
    platform: NonEmptyText = "Video"
    duration: NonEmptyText = "60s"


class RepurposeRequest(CamelModel):
    content: NonEmptyText
    platforms: List[NonEmptyText] = Field(min_length=1)


class MonetizationRequest(CamelModel):
    subscribers: int = Field(ge=0)
    monthly_views: int = Field(ge=0)
    engagement_rate: float = Field(ge=0)


class SponsorshipRequest(CamelModel):
    channel_name: NonEmptyText
    subscribers: int = Field(ge=0)
    niche: NonEmptyText


class ThumbnailRequest(CamelModel):
    description: NonEmptyText


# Results

class HookBreakdown(CamelModel):
    curiosity: Score
    clarity: Score
    emotional_trigger: Score
    specificity: Score
    scroll_stopping_power: Score


class HookAnalysisResult(CamelModel):
    score: Annotated[Number, Field(ge=1, le=10)]
    type: str
    breakdown: HookBreakdown
    main_weakness: str
    improved_hooks: List[str] = Field(min_length=5, max_length=5)
    virality_confidence: Literal["Low", "Medium", "High"]


class ContentIdea(CamelModel):
    title: str
    description: str
    format: str
    difficulty: Literal["Easy", "Medium", "Hard"]


class ContentIdeasResult(RootModel):
    root: Annotated[List[ContentIdea], Field(min_length=1)]


class ScriptSegment(CamelModel):
    time: str
    text: str


class ScriptResult(RootModel):
    root: Annotated[List[ScriptSegment], Field(min_length=1)]


class RepurposedContent(CamelModel):
    platform: str
    content: str


class RepurposeResult(RootModel):
    root: Annotated[List[RepurposedContent], Field(min_length=1)]


class MonetizationResult(CamelModel):
    subscribers: NonNegative
    monthly_views: NonNegative
    engagement_rate: NonNegative
    ad_revenue: NonNegative
    sponsorship_potential: NonNegative
    affiliate_revenue: NonNegative
    total_monthly: NonNegative
    annual_projection: NonNegative


class PitchSection(CamelModel):
    title: str
    content: str


class SponsorshipResult(CamelModel):
    title: Optional[str] = None
    sections: List[PitchSection] = Field(min_length=1)


class ThumbnailResult(CamelModel):
    ctr_score: Score
    color_score: Score
    text_score: Score
    face_score: Score
    overall_score: Score
    strengths: List[str] = Field(min_length=1)
    improvements: List[str] = Field(min_length=1)
