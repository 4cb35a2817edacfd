from __future__ import annotations

import json
import logging
import random
import sys
from pathlib import Path
from typing import Any

import pytest
import requests

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from innovative_sphere.completion import CompletionClient
from innovative_sphere.composer import PromptComposer, RecencyHistory
from innovative_sphere.store import Store


def make_response(status_code: int, payload: Any = None, text: str | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    body = text if text is not None else json.dumps(payload if payload is not None else {})
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    response.url = "https://mistral.test/v1/chat/completions"
    return response


def completion_payload(content: str) -> dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}], "usage": {"total_tokens": 42}}


class FakeSession:
    """Replays scripted responses (or raises scripted exceptions) for each POST."""

    def __init__(self, outcomes: list[Any]):
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append({"url": url, **kwargs})
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_client(sleeps):
    def _make(outcomes: list[Any], **kwargs: Any) -> tuple[CompletionClient, FakeSession]:
        session = FakeSession(outcomes)
        client = CompletionClient(
            "test-key",
            "https://mistral.test/v1",
            "mistral-test",
            session=session,
            sleep=sleeps.append,
            rng=random.Random(7),
            **kwargs,
        )
        return client, session

    return _make


@pytest.fixture
def composer() -> PromptComposer:
    return PromptComposer(history=RecencyHistory(), rng=random.Random(1234))


@pytest.fixture
def idea_json() -> str:
    return json.dumps(
        {
            "title": "X",
            "description": "Y",
            "technologies": ["React"],
            "features": [],
            "objectives": [],
            "challenges": [],
            "estimatedDuration": "3 months",
        }
    )


@pytest.fixture
def seeded_store(tmp_path) -> Store:
    store = Store(tmp_path / "catalog.db")
    store.init_db()
    store.seed_defaults()
    return store
