import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from extraction.task_extractor import TaskExtractor
from llm.llm_client import LLMClient
from storage.task_store import InMemoryTaskStore


class FakeProvider:
    def __init__(self, response_text: str):
        self._response_text = response_text
        self.prompts = []

    def generate(self, *, system: str, user: str) -> str:
        self.prompts.append(user)
        return self._response_text


class ScriptedProvider:
    """Replays a script: exceptions are raised, strings are returned."""

    def __init__(self, *outcomes):
        self._outcomes = list(outcomes)
        self.calls = 0

    def generate(self, *, system: str, user: str) -> str:
        self.calls += 1
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def fake_provider_factory():
    def _make(response_text: str):
        return FakeProvider(response_text)
    return _make


@pytest.fixture
def scripted_provider_factory():
    def _make(*outcomes):
        return ScriptedProvider(*outcomes)
    return _make


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def extractor_factory(recording_sleep):
    def _make(provider):
        return TaskExtractor(llm_client=LLMClient(provider=provider), sleep=recording_sleep)
    return _make


@pytest.fixture
def task_store():
    return InMemoryTaskStore()


@pytest.fixture
def client_factory(task_store, extractor_factory):
    def _make(provider):
        app = create_app(task_store=task_store, task_extractor=extractor_factory(provider))
        return TestClient(app)
    return _make
