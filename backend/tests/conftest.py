"""
Test configuration and fixtures.
External services (OpenAI, vector index, Firebase) are replaced by
in-memory fakes; no network access is needed.
"""
import hashlib
import math
import os
import re

# Set test environment before any imports
os.environ["REDIS_URL"] = "redis://localhost:6379/0"
os.environ["ENVIRONMENT"] = "test"
os.environ["VECTOR_BACKEND"] = "pinecone"

import pytest
from typing import AsyncGenerator, Dict, List, Optional
from unittest.mock import patch, MagicMock

from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from chatgenius.ai.base import LLMProvider
from chatgenius.auth.dependencies import AuthenticatedUser
from chatgenius.context import PipelineContext
from chatgenius.errors import EmbeddingProviderError
from chatgenius.pipeline.embedding import EmbeddingService
from chatgenius.schemas.message import Message, UserProfile
from chatgenius.schemas.record import IndexTarget
from chatgenius.stores.base import MessageStore, ProfileStore
from chatgenius.vector_store.base import VectorIndex, VectorMatch


DIMENSION = 1536


def bag_of_words_vector(text: str, dimension: int = DIMENSION) -> List[float]:
    """Deterministic unit vector: each word hashes into one bucket."""
    vector = [0.0] * dimension
    for word in re.findall(r"\w+", text.lower()):
        bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % dimension
        vector[bucket] += 1.0
    norm = math.sqrt(sum(v * v for v in vector))
    if norm == 0:
        vector[0] = 1.0
        return vector
    return [v / norm for v in vector]


class FakeLLMProvider(LLMProvider):
    """Embedding and chat provider double."""

    def __init__(self, dimension: int = DIMENSION):
        self.dimension = dimension
        self.embed_calls: List[str] = []
        self.complete_calls: List[Dict[str, Optional[str]]] = []
        self.fail_texts: List[str] = []
        self.transient_failures = 0
        self.completion = "fake completion"

    async def embed(self, text: str) -> List[float]:
        self.embed_calls.append(text)
        if self.transient_failures > 0:
            self.transient_failures -= 1
            raise EmbeddingProviderError("rate limited", transient=True)
        if any(marker in text for marker in self.fail_texts):
            raise EmbeddingProviderError("provider rejected input", transient=False)
        return bag_of_words_vector(text, self.dimension)

    async def complete(self, system_prompt, user_prompt, model=None, temperature=0.7, max_tokens=500) -> str:
        self.complete_calls.append({"system": system_prompt, "user": user_prompt, "model": model})
        return self.completion

    def is_configured(self) -> bool:
        return True


class FakeVectorIndex(VectorIndex):
    """
    In-memory index. ``bypass_filter`` makes query ignore the filter,
    like a misconfigured index would.
    """

    def __init__(self, name: str):
        super().__init__(name)
        self.records: Dict[str, tuple] = {}
        self.upsert_calls: List[str] = []
        self.bypass_filter = False
        self.fail_upserts = False
        self.deleted_all = False

    async def upsert(self, record_id, vector, metadata):
        self.upsert_calls.append(record_id)
        if self.fail_upserts:
            raise ConnectionError("index unavailable")
        self.records[record_id] = (list(vector), dict(metadata))

    async def query(self, vector, filter, top_k):
        matches = []
        for record_id, (stored, metadata) in self.records.items():
            if not self.bypass_filter and any(metadata.get(k) != v for k, v in filter.items()):
                continue
            score = sum(a * b for a, b in zip(vector, stored))
            matches.append(VectorMatch(id=record_id, score=score, metadata=metadata))
        matches.sort(key=lambda match: match.score, reverse=True)
        return matches[:top_k]

    async def delete_all(self):
        self.deleted_all = True
        self.records.clear()

    async def delete_many(self, filter):
        for record_id in [
            rid for rid, (_, metadata) in self.records.items()
            if all(metadata.get(k) == v for k, v in filter.items())
        ]:
            del self.records[record_id]


class FakeStore(MessageStore, ProfileStore):
    """
    In-memory store of record.

    ``workspaces`` maps workspace -> channel -> {"messages": [...], "threads": {tid: [...]}}.
    """

    def __init__(self):
        self.workspaces: Dict[str, Dict[str, dict]] = {}
        self.profiles: Dict[str, UserProfile] = {}
        self.memberships: Dict[str, List[str]] = {}
        self.personas: Dict[str, str] = {}
        self.failing_profiles: set = set()
        self.failing_workspaces: set = set()

    def add_message(self, workspace_id: str, channel_id: str, message: Message, thread_id: Optional[str] = None):
        channel = self.workspaces.setdefault(workspace_id, {}).setdefault(
            channel_id, {"messages": [], "threads": {}}
        )
        if thread_id:
            channel["threads"].setdefault(thread_id, []).append(message)
        else:
            channel["messages"].append(message)

    def add_user(self, profile: UserProfile, workspace_ids: Optional[List[str]] = None):
        self.profiles[profile.user_id] = profile
        self.memberships[profile.user_id] = list(workspace_ids or [])

    async def list_workspace_ids(self):
        return list(self.workspaces.keys())

    async def list_channel_ids(self, workspace_id):
        if workspace_id in self.failing_workspaces:
            raise ConnectionError(f"cannot read workspace {workspace_id}")
        return list(self.workspaces.get(workspace_id, {}).keys())

    async def list_messages(self, workspace_id, channel_id):
        return list(self.workspaces[workspace_id][channel_id]["messages"])

    async def list_thread_ids(self, workspace_id, channel_id):
        return list(self.workspaces[workspace_id][channel_id]["threads"].keys())

    async def list_thread_messages(self, workspace_id, channel_id, thread_id):
        return list(self.workspaces[workspace_id][channel_id]["threads"][thread_id])

    async def list_user_ids(self):
        return list(self.profiles.keys())

    async def list_user_workspace_ids(self, user_id):
        return list(self.memberships.get(user_id, []))

    async def get_profile(self, user_id):
        if user_id in self.failing_profiles:
            raise ConnectionError("profile store unavailable")
        return self.profiles.get(user_id)

    async def get_persona(self, user_id):
        return self.personas.get(user_id)

    async def save_persona(self, user_id, summary):
        self.personas[user_id] = summary


class FakeClock:
    """Records requested sleeps instead of sleeping."""

    def __init__(self):
        self.sleeps: List[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)

    @property
    def elapsed(self) -> float:
        return sum(self.sleeps)


def make_message(message_id: str, content: str = "hello world", user_id: str = "u1", **kwargs) -> Message:
    data = {"id": message_id, "content": content, "userId": user_id, "type": "text", "timestamp": 1000}
    data.update(kwargs)
    return Message.model_validate(data)


@pytest.fixture
def provider() -> FakeLLMProvider:
    return FakeLLMProvider()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FakeStore:
    store = FakeStore()
    store.add_user(UserProfile(user_id="u1", display_name="Ada", email="ada@example.com", bio="Compiler nerd"), ["W1"])
    return store


@pytest.fixture
def indexes() -> Dict[IndexTarget, FakeVectorIndex]:
    return {
        IndexTarget.WORKSPACE: FakeVectorIndex("workspace-test"),
        IndexTarget.AGENT: FakeVectorIndex("agent-test"),
    }


@pytest.fixture
def ctx(provider, clock, store, indexes) -> PipelineContext:
    """Pipeline context wired to fakes."""
    return PipelineContext(
        llm=provider,
        embedder=EmbeddingService(provider, sleep=clock.sleep),
        indexes=indexes,
        message_store=store,
        profile_store=store,
        chat_model="test-chat-model",
        assistant_chat_model="test-assistant-model",
    )


def get_test_app(ctx: PipelineContext, user: AuthenticatedUser) -> FastAPI:
    """Create a test FastAPI app with overridden dependencies."""
    from chatgenius.main import app
    from chatgenius.context import get_pipeline_context
    from chatgenius.auth.dependencies import get_current_user

    async def override_get_current_user():
        return user

    app.dependency_overrides[get_pipeline_context] = lambda: ctx
    app.dependency_overrides[get_current_user] = override_get_current_user

    return app


@pytest.fixture
def test_user() -> AuthenticatedUser:
    return AuthenticatedUser(uid="u1", email="ada@example.com")


@pytest.fixture
def admin_user() -> AuthenticatedUser:
    return AuthenticatedUser(uid="admin-1", email="admin@example.com", is_admin=True)


@pytest.fixture
async def client(ctx: PipelineContext, test_user: AuthenticatedUser) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = get_test_app(ctx, test_user)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()


@pytest.fixture
async def admin_client(ctx: PipelineContext, admin_user: AuthenticatedUser) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client authenticated as an admin."""
    app = get_test_app(ctx, admin_user)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def mock_ingest_task():
    """Mock Celery ingestion task to avoid actual task execution."""
    with patch("chatgenius.tasks.ingest_message.ingest_message_task.delay") as mock:
        mock.return_value = MagicMock(id="mock-task-id")
        yield mock


@pytest.fixture
def mock_migrate_task():
    """Mock Celery migration task to avoid actual task execution."""
    with patch("chatgenius.tasks.migrate.migrate_task.delay") as mock:
        mock.return_value = MagicMock(id="mock-migration-id")
        yield mock
