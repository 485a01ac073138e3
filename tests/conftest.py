"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import json
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import Settings  # noqa: E402
from src.core.identity import StaticIdentity  # noqa: E402
from src.generation.transport import TextGenerationRequest  # noqa: E402
from src.persistence.records import ChildProfile  # noqa: E402
from src.persistence.store import InMemoryRecordStore  # noqa: E402

OWNER_ID = "parent-001"
FIXED_SEED = 42


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (full session flow)")
    config.addinivalue_line("markers", "smoke: CLI smoke tests (run the CLI in a subprocess)")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


class ScriptedTextGenerator:
    """
    Text generator returning scripted replies in order.

    Each script entry is a reply string, an exception instance to raise, or
    an awaitable factory (for replies that should block until released).
    The last entry repeats once the script runs out.
    """

    name = "scripted"

    def __init__(self, *script):
        self.script = list(script)
        self.requests: list[TextGenerationRequest] = []

    async def complete(self, request: TextGenerationRequest) -> str:
        self.requests.append(request)
        entry = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(entry, BaseException):
            raise entry
        if callable(entry):
            return await entry()
        return entry


class RoutingTextGenerator:
    """Text generator that replies by system-instruction kind (questions / feedback / analytics)."""

    name = "routing"

    def __init__(self, questions=None, feedback=None, analytics=None):
        self.replies = {"questions": questions, "feedback": feedback, "analytics": analytics}
        self.requests: list[TextGenerationRequest] = []

    async def complete(self, request: TextGenerationRequest) -> str:
        from src.core.errors import GenerationTransportError
        from src.generation.prompts import ANALYTICS_SYSTEM_PROMPT, FEEDBACK_SYSTEM_PROMPT

        self.requests.append(request)
        if request.system_instruction == FEEDBACK_SYSTEM_PROMPT:
            reply = self.replies["feedback"]
        elif request.system_instruction == ANALYTICS_SYSTEM_PROMPT:
            reply = self.replies["analytics"]
        else:
            reply = self.replies["questions"]

        if reply is None:
            raise GenerationTransportError("scripted outage")
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return await reply()
        return reply


def make_question_item(index: int = 0, correct: int = 1, **overrides) -> dict:
    item = {
        "question": f"What letter comes after {chr(65 + index)}?",
        "options": ["A", "B", "C", "D"],
        "correct": correct,
        "explanation": f"Great! {chr(66 + index)} comes next!",
        "topic": "alphabet sequence",
    }
    item.update(overrides)
    return item


def questions_reply(count: int = 5, fenced: bool = False) -> str:
    text = json.dumps([make_question_item(i) for i in range(count)])
    return f"```json\n{text}\n```" if fenced else text


@pytest.fixture
def settings():
    """Offline settings with a short feedback timeout."""
    return Settings(
        _env_file=None,
        ai_provider="none",
        gemini_api_key=None,
        openai_api_key=None,
        azure_openai_api_key=None,
        azure_openai_endpoint=None,
        feedback_timeout_seconds=0.05,
        database_url="sqlite:///:memory:",
    )


@pytest.fixture
def identity():
    return StaticIdentity(OWNER_ID)


@pytest.fixture
def memory_store():
    return InMemoryRecordStore()


@pytest.fixture
def child():
    return ChildProfile(id="child-001", owner_id=OWNER_ID, name="Mia", age=5)


@pytest.fixture
def fixed_seed():
    return FIXED_SEED

