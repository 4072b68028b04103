import copy
import json
from typing import Any, Dict, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from database import Base, get_db
from main import app
from services.errors import ProviderError
from services.llm_client import BaseChatClient, ChatRequest, get_llm_client
from services.session_token import create_session_token
from services.users import UserUpsert, upsert_user


VALID_RESULTS: Dict[str, Any] = {
    "hook_analysis": {
        "score": 7,
        "type": "Curiosity",
        "breakdown": {
            "curiosity": 8,
            "clarity": 7,
            "emotionalTrigger": 6,
            "specificity": 6,
            "scrollStoppingPower": 7,
        },
        "mainWeakness": "Needs clearer benefit",
        "improvedHooks": ["A", "B", "C", "D", "E"],
        "viralityConfidence": "Medium",
    },
    "content_idea": [
        {"title": "Meal prep in 5", "description": "Fast wins", "format": "Tutorial", "difficulty": "Easy"},
        {"title": "30 day challenge", "description": "Story arc", "format": "Story", "difficulty": "Hard"},
    ],
    "script": [
        {"time": "0:00-0:05", "text": "Stop scrolling"},
        {"time": "0:05-0:30", "text": "Here is the proof"},
    ],
    "repurpose": [
        {"platform": "TikTok", "content": "Short cut"},
        {"platform": "LinkedIn", "content": "Long post"},
    ],
    "monetization": {
        "subscribers": 100000,
        "monthlyViews": 1000000,
        "engagementRate": 5,
        "adRevenue": 4000,
        "sponsorshipPotential": 2000,
        "affiliateRevenue": 1000,
        "totalMonthly": 7000,
        "annualProjection": 84000,
    },
    "sponsorship": {
        "title": "Tech Corner Sponsorship Pitch",
        "sections": [
            {"title": "About Us", "content": "Tech Corner reviews gadgets."},
            {"title": "Audience", "content": "Engaged viewers."},
        ],
    },
    "thumbnail": {
        "ctrScore": 8,
        "colorScore": 9,
        "textScore": 7,
        "faceScore": 8,
        "overallScore": 8,
        "strengths": ["High contrast"],
        "improvements": ["Tighter crop"],
    },
}

VALID_REQUESTS: Dict[str, Dict[str, Any]] = {
    "hook_analysis": {"hook": "Test hook"},
    "content_idea": {"topic": "fitness"},
    "script": {"hook": "Stop scrolling", "platform": "TikTok", "duration": "30s"},
    "repurpose": {"content": "My long video", "platforms": ["TikTok", "LinkedIn"]},
    "monetization": {"subscribers": 100000, "monthlyViews": 1000000, "engagementRate": 5},
    "sponsorship": {"channelName": "Tech Corner", "subscribers": 50000, "niche": "tech"},
    "thumbnail": {"description": "Shocked face, red arrow, bold yellow text"},
}


def make_completion(content: Any) -> Dict[str, Any]:
    """Build a chat completion payload shaped like the provider's response."""
    return {
        "id": "test",
        "model": "mock",
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }
        ],
    }


class FakeChatClient(BaseChatClient):
    """Records requests and replies with canned content per operation kind."""

    provider_name = "fake"

    def __init__(self, responses: Dict[str, Any] = None, error: Exception = None) -> None:
        self.responses = dict(responses if responses is not None else VALID_RESULTS)
        self.error = error
        self.requests: List[ChatRequest] = []

    async def complete(self, request: ChatRequest) -> Any:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        content = self.responses[request.kind]
        if not isinstance(content, str):
            content = json.dumps(content)
        return make_completion(content)


@pytest.fixture
def valid_results() -> Dict[str, Any]:
    return copy.deepcopy(VALID_RESULTS)


@pytest.fixture
def valid_requests() -> Dict[str, Dict[str, Any]]:
    return copy.deepcopy(VALID_REQUESTS)


@pytest.fixture
def make_llm():
    return FakeChatClient


@pytest.fixture
def fake_llm() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def failing_llm() -> FakeChatClient:
    return FakeChatClient(error=ProviderError("upstream timeout"))


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "creator.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def user_id(db_session) -> int:
    return await upsert_user(db_session, UserUpsert(open_id="creator-user", name="Creator"))


def auth_header(open_id: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_session_token(open_id)['token']}"}


@pytest.fixture
def auth_headers():
    return auth_header


@pytest_asyncio.fixture
async def integration_client(session_maker, fake_llm):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_llm_client, None)
