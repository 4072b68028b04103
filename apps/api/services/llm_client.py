"""LLM invocation adapters for creator generation."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI, OpenAIError

from config import openai_api_key_configured, settings
from services.errors import ProviderError

logger = logging.getLogger(__name__)

JSON_OBJECT_FORMAT = {"type": "json_object"}


@dataclass(frozen=True)
class ChatRequest:
    """One structured chat call: system + user messages and an output format hint."""

    messages: List[Dict[str, Any]]
    response_format: Dict[str, Any] = field(default_factory=lambda: dict(JSON_OBJECT_FORMAT))
    kind: Optional[str] = None
    variables: Dict[str, Any] = field(default_factory=dict)


class BaseChatClient(ABC):
    provider_name: str

    @abstractmethod
    async def complete(self, request: ChatRequest) -> Any:
        """Return the raw completion for a chat request, or raise ProviderError."""
        raise NotImplementedError


class OpenAIChatClient(BaseChatClient):
    """Adapter over the OpenAI chat completions API."""

    provider_name = "openai"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.model = model
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url or None, timeout=timeout)

    async def complete(self, request: ChatRequest) -> Any:
        try:
            return await self._client.chat.completions.create(
                model=self.model,
                messages=request.messages,
                response_format=request.response_format,
            )
        except OpenAIError as exc:
            logger.error("OpenAI completion failed for %s: %s", request.kind or "request", exc)
            raise ProviderError(f"LLM provider call failed: {exc}") from exc


class UnconfiguredChatClient(BaseChatClient):
    """Placeholder used when no provider is configured; every call fails."""

    provider_name = "unconfigured"

    async def complete(self, request: ChatRequest) -> Any:
        raise ProviderError("OpenAI API key is not configured")


def _sample_for(kind: Optional[str], variables: Dict[str, Any]) -> Any:
    if kind == "hook_analysis":
        hook = variables.get("hook", "")
        base_score = 7
        return {
            "score": base_score,
            "type": "Curiosity",
            "breakdown": {
                "curiosity": base_score,
                "clarity": base_score - 1,
                "emotionalTrigger": base_score - 2,
                "specificity": base_score - 1,
                "scrollStoppingPower": base_score,
            },
            "mainWeakness": "Could be more specific and benefit-driven.",
            "improvedHooks": [
                f"{hook}, but reveal a surprising stat in 5 seconds",
                f"What happened when we tried {hook}?",
                f"{hook}? Here's the unexpected result",
                f"Nobody tells you this about {hook}",
                f"{hook} (do this before it's too late)",
            ],
            "viralityConfidence": "Medium",
        }
    if kind == "content_idea":
        topic = variables.get("topic", "")
        return [
            {
                "title": f"{topic}: the 5-minute fix",
                "description": "Quick, actionable win that hooks busy viewers",
                "format": "Tutorial",
                "difficulty": "Easy",
            },
            {
                "title": f"I tried {topic} for 7 days, results surprised me",
                "description": "Story arc with tension and payoff",
                "format": "Story",
                "difficulty": "Medium",
            },
        ]
    if kind == "script":
        return [
            {"time": "0:00-0:05", "text": variables.get("hook", "")},
            {"time": "0:05-0:20", "text": "Main point with vivid example"},
            {"time": "0:20-0:40", "text": "Story beat + tension"},
            {"time": "0:40-0:55", "text": "Takeaway + CTA"},
        ]
    if kind == "repurpose":
        content = variables.get("content", "")
        return [
            {"platform": platform, "content": f"{platform}: {content} (adapted)"}
            for platform in variables.get("platforms", [])
        ]
    if kind == "monetization":
        subscribers = variables.get("subscribers", 0)
        monthly_views = variables.get("monthlyViews", 0)
        ad_revenue = (monthly_views / 1000) * 4
        sponsorship_potential = subscribers * 0.02
        affiliate_revenue = monthly_views * 0.001
        total_monthly = round(ad_revenue + sponsorship_potential + affiliate_revenue)
        return {
            "subscribers": subscribers,
            "monthlyViews": monthly_views,
            "engagementRate": variables.get("engagementRate", 0),
            "adRevenue": ad_revenue,
            "sponsorshipPotential": sponsorship_potential,
            "affiliateRevenue": affiliate_revenue,
            "totalMonthly": total_monthly,
            "annualProjection": total_monthly * 12,
        }
    if kind == "sponsorship":
        channel_name = variables.get("channelName", "")
        niche = variables.get("niche", "")
        return {
            "title": f"{channel_name} Sponsorship Pitch",
            "sections": [
                {"title": "About Us", "content": f"{channel_name} creates leading {niche} content."},
                {"title": "Audience", "content": "Highly engaged viewers across major platforms."},
                {"title": "Opportunities", "content": "Integrations, shoutouts, dedicated videos."},
            ],
        }
    if kind == "thumbnail":
        return {
            "ctrScore": 8,
            "colorScore": 9,
            "textScore": 7,
            "faceScore": 8,
            "overallScore": 8,
            "strengths": [
                "High contrast colors that stand out",
                "Readable text at small sizes",
                "Strong facial expression",
            ],
            "improvements": [
                "Tighter crop on subject",
                "Add subtle border for feeds",
                "Test bolder headline color",
            ],
        }
    raise ProviderError(f"No offline sample available for {kind!r}")


class OfflineChatClient(BaseChatClient):
    """Deterministic completions for local development without an API key."""

    provider_name = "offline"

    async def complete(self, request: ChatRequest) -> Any:
        logger.warning("Using offline LLM sample for %s.", request.kind)
        content = json.dumps(_sample_for(request.kind, request.variables))
        return {
            "id": "offline",
            "model": "offline-sample",
            "choices": [
                {
                    "index": 0,
                    "finish_reason": "stop",
                    "message": {"role": "assistant", "content": content},
                }
            ],
        }


def build_chat_client() -> BaseChatClient:
    """Select the chat client for the current settings."""
    if openai_api_key_configured():
        return OpenAIChatClient(
            api_key=settings.OPENAI_API_KEY.strip(),
            model=settings.OPENAI_MODEL,
            base_url=settings.OPENAI_BASE_URL or None,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )
    if settings.LLM_OFFLINE_FALLBACK:
        return OfflineChatClient()
    return UnconfiguredChatClient()


_chat_client: Optional[BaseChatClient] = None


def get_llm_client() -> BaseChatClient:
    """FastAPI dependency returning the process-wide chat client."""
    global _chat_client
    if _chat_client is None:
        _chat_client = build_chat_client()
    return _chat_client
