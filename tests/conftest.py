# arw/tests/conftest.py
from __future__ import annotations
from typing import Iterable, List, Optional

import pytest

from agents.models import AgentSpec, GenerationResult
from tools.templates import compose_prompt


def pytest_addoption(parser):
    parser.addoption(
        "--run-llm",
        action="store_true",
        default=False,
        help="Run tests marked with 'uses_llm'",
    )


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--run-llm"):
        skip_llm = pytest.mark.skip(reason="need --run-llm option to run")
        for item in items:
            if "uses_llm" in item.keywords:
                item.add_marker(skip_llm)


class StubProvider:
    """Text provider that records prompts; raises on the call indices in `fail_on`."""

    def __init__(self, replies: Optional[List[Optional[str]]] = None, fail_on: Iterable[int] = ()):
        self.replies = list(replies or [])
        self.fail_on = set(fail_on)
        self.prompts: List[str] = []
        self.calls: List[dict] = []

    async def complete(self, model, prompt, temperature, max_tokens):
        idx = len(self.prompts)
        self.prompts.append(prompt)
        self.calls.append({"model": model, "temperature": temperature, "max_tokens": max_tokens})
        if idx in self.fail_on:
            raise RuntimeError("quota exceeded")
        if idx < len(self.replies):
            return self.replies[idx]
        return f"reply {idx}"


class ScriptedClient:
    """Step client handing back fixed results in call order."""

    def __init__(self, results: List[GenerationResult]):
        self.results = list(results)
        self.contexts: List[str] = []
        self.prompts: List[str] = []
        self.validated = 0

    def validate(self) -> None:
        self.validated += 1

    async def generate_for(self, agent: AgentSpec, context: str) -> GenerationResult:
        self.contexts.append(context)
        self.prompts.append(compose_prompt(agent.system_prompt, agent.user_prompt, context))
        return self.results[len(self.prompts) - 1]


@pytest.fixture
def stub_provider():
    return StubProvider


@pytest.fixture
def scripted_client():
    return ScriptedClient


def make_agent(i: int, name: Optional[str] = None, **kw) -> AgentSpec:
    return AgentSpec(
        id=str(i),
        name=name or f"Agent {i}",
        system_prompt=kw.pop("system_prompt", f"S{i}"),
        user_prompt=kw.pop("user_prompt", f"U{i}"),
        **kw,
    )


@pytest.fixture
def agent_factory():
    return make_agent


@pytest.fixture
def two_agents():
    return [
        make_agent(1, "A", system_prompt="S1", user_prompt="U1"),
        make_agent(2, "B", system_prompt="S2", user_prompt="U2"),
    ]
