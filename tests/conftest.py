"""Shared test fixtures and fakes for pytest."""

import json
from typing import Any, Dict, List, Optional

import pytest
from langchain_core.messages import AIMessage
from langchain_core.runnables import Runnable

from briefsmith.core.schemas import ProjectBrief, TaskPriority, TaskType, TechnicalTask


class FakeLLM(Runnable):
    """Stands in for a chat model; answers probes and analysis calls from canned text."""

    def __init__(self, reply: Any = "[]", fail_probe: bool = False, fail_call: bool = False):
        self.reply = reply
        self.fail_probe = fail_probe
        self.fail_call = fail_call
        self.calls: List[Any] = []

    def invoke(self, input: Any, config: Any = None, **kwargs: Any) -> AIMessage:
        raise NotImplementedError("FakeLLM is async only")

    async def ainvoke(self, input: Any, config: Any = None, **kwargs: Any) -> AIMessage:
        self.calls.append(input)
        if isinstance(input, str):
            if self.fail_probe:
                raise ConnectionError("model not found")
            return AIMessage(content="ready")
        if self.fail_call:
            raise TimeoutError("quota exceeded")
        return AIMessage(content=self.reply)


class FakeLLMFactory:
    """Records which model names were requested and hands out FakeLLMs."""

    def __init__(self, models: Optional[Dict[str, FakeLLM]] = None, default: Optional[FakeLLM] = None):
        self.models = models or {}
        self.default = default
        self.requested: List[str] = []

    def __call__(self, model_name: str, temperature: float = 0.0) -> FakeLLM:
        self.requested.append(model_name)
        if model_name in self.models:
            return self.models[model_name]
        if self.default is not None:
            return self.default
        return FakeLLM(fail_probe=True)


def task_array(*titles: str, type_: str = "backend") -> str:
    return json.dumps([
        {
            "title": title,
            "description": f"Work for {title}",
            "type": type_,
            "priority": "high",
            "acceptance_criteria": ["Done"],
        }
        for title in titles
    ])


@pytest.fixture
def todo_brief() -> ProjectBrief:
    return ProjectBrief(description="Build a todo app with user authentication")


@pytest.fixture
def plain_brief() -> ProjectBrief:
    return ProjectBrief(description="Something entirely vague", timeline="2 weeks")


@pytest.fixture
def make_task():
    def _make(title: str, description: str = "", type_: TaskType = TaskType.BACKEND,
              criteria: Optional[List[str]] = None, id: str = "t1",
              priority: TaskPriority = TaskPriority.MEDIUM, hours: Optional[float] = None) -> TechnicalTask:
        return TechnicalTask(
            id=id,
            title=title,
            description=description,
            type=type_,
            priority=priority,
            acceptance_criteria=criteria or [],
            estimated_hours=hours,
        )

    return _make
