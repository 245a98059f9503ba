"""Shared fixtures: a fake Anthropic client that answers each agent by system prompt."""

from __future__ import annotations

import json
import threading
from types import SimpleNamespace

import pytest

from content_pipeline.agents.brand import BRAND_ANALYZER_SYSTEM
from content_pipeline.agents.editor import EDITOR_SYSTEM
from content_pipeline.agents.planner import CONTENT_PLANNER_SYSTEM
from content_pipeline.agents.schema import SCHEMA_GENERATOR_SYSTEM
from content_pipeline.agents.writer import WRITER_SYSTEM
from content_pipeline.llm_client import TextModelClient
from content_pipeline.pipeline import ContentPipeline

from payloads import BRAND_REPLY, EDITED_REPLY, PLAN_REPLY, SCHEMA_REPLY, WRITTEN_REPLY


def fenced(payload: dict) -> str:
    return f"Here is the analysis:\n```json\n{json.dumps(payload, indent=2)}\n```\nLet me know if you need changes."


class FakeMessages:
    """Stands in for ``anthropic.Anthropic().messages``.

    ``replies`` maps a system prompt to reply text, an exception to raise, or a
    callable taking the request kwargs and returning either.
    """

    def __init__(self, replies: dict):
        self.replies = replies
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies[kwargs["system"]]
        if callable(reply) and not isinstance(reply, BaseException):
            reply = reply(kwargs)
        if isinstance(reply, BaseException):
            raise reply
        return SimpleNamespace(
            content=[SimpleNamespace(type="text", text=reply)],
            stop_reason="end_turn",
        )


class FakeAnthropic:
    def __init__(self, replies: dict):
        self.messages = FakeMessages(replies)


@pytest.fixture
def replies() -> dict:
    return {
        BRAND_ANALYZER_SYSTEM: fenced(BRAND_REPLY),
        CONTENT_PLANNER_SYSTEM: "Sure! " + json.dumps(PLAN_REPLY) + " Hope this helps.",
        WRITER_SYSTEM: json.dumps(WRITTEN_REPLY),
        EDITOR_SYSTEM: "```\n" + json.dumps(EDITED_REPLY) + "\n```",
        SCHEMA_GENERATOR_SYSTEM: json.dumps(SCHEMA_REPLY),
    }


@pytest.fixture
def fake_anthropic(replies) -> FakeAnthropic:
    return FakeAnthropic(replies)


@pytest.fixture
def client(fake_anthropic) -> TextModelClient:
    return TextModelClient(api_key="test-key", model="claude-test", timeout=5, client=fake_anthropic)


@pytest.fixture
def pipeline(client) -> ContentPipeline:
    return ContentPipeline(client=client)


@pytest.fixture
def pipeline_input() -> dict:
    return {
        "topic": "Brewing pour-over coffee",
        "targetKeyword": "pour over coffee",
        "secondaryKeywords": ["coffee grind size"],
        "brandName": "Acme Roasters",
        "siteContext": "Acme ships beans within 48 hours of roasting.",
    }


@pytest.fixture
def release():
    """Event that un-blocks fake calls parked by a test; always set on teardown."""
    event = threading.Event()
    yield event
    event.set()


@pytest.fixture
def blocking(release):
    """Reply callable that never answers before the test ends."""

    def _block(kwargs):
        release.wait(5)
        return "{}"

    return _block
