from __future__ import annotations

import os
import tempfile

# config читает окружение при импорте, поэтому задаём его до импорта main
os.environ.setdefault("CHAT_BACKEND", "agents")
os.environ.setdefault("AGENTS_PROVIDER", "openai")
os.environ.setdefault("BING_SEARCH_CONNECTION_ID", "")
os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("DEFAULT_MODEL", "gpt-4o-mini")
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="chat-relay-"))
os.environ.setdefault("API_TOKEN", "")

import pytest

from fakes import FakeAgentService
from services.chat_relay import ChatRelay
from storage.file_storage import FileStorage
from storage.thread_manager import ThreadManager


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def storage(tmp_path) -> FileStorage:
    return FileStorage(data_dir=str(tmp_path), filename="threads.json")


@pytest.fixture
def agent_service() -> FakeAgentService:
    return FakeAgentService()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def relay(storage, agent_service, clock) -> ChatRelay:
    return ChatRelay(
        backend="agents",
        thread_manager=ThreadManager(storage=storage, agent_service=agent_service),
        agent_service=agent_service,
        model="gpt-4o-mini",
        poll_interval=0.5,
        timeout=120.0,
        sleep=clock.sleep,
        clock=clock,
    )
