import pytest
from langchain_core.exceptions import OutputParserException
from langchain_core.messages import AIMessage

from briefsmith.agents.reasoning import (
    DEFAULT_CRITERIA,
    ReasoningServiceAdapter,
    TaskArrayOutputParser,
    content_text,
    extract_array,
    parse_tasks,
)
from briefsmith.core.errors import MalformedResponse, ServiceUnavailable
from briefsmith.core.schemas import ProjectBrief, TaskPriority, TaskType
from tests.conftest import FakeLLM, FakeLLMFactory, task_array

BRIEF = ProjectBrief(description="Team chat", requirements=["SSO"], constraints=["Python only"])


@pytest.mark.asyncio
async def test_negotiates_first_working_candidate() -> None:
    good = FakeLLM(reply=task_array("Build API", "Build UI"))
    factory = FakeLLMFactory(models={"b": good})
    adapter = ReasoningServiceAdapter(llm_factory=factory, candidates=["a", "b", "c"])

    tasks = await adapter.analyze(BRIEF)

    assert [t.title for t in tasks] == ["Build API", "Build UI"]
    assert adapter.model_name == "b"
    assert factory.requested == ["a", "b"]


@pytest.mark.asyncio
async def test_negotiated_model_is_reused() -> None:
    factory = FakeLLMFactory(default=FakeLLM(reply=task_array("One")))
    adapter = ReasoningServiceAdapter(llm_factory=factory, candidates=["a", "b"])

    await adapter.analyze(BRIEF)
    await adapter.decompose(BRIEF)

    assert factory.requested == ["a"]


@pytest.mark.asyncio
async def test_all_candidates_failing_raises_service_unavailable() -> None:
    adapter = ReasoningServiceAdapter(llm_factory=FakeLLMFactory(), candidates=["a", "b"])
    with pytest.raises(ServiceUnavailable):
        await adapter.analyze(BRIEF)
    assert adapter.model_name is None


@pytest.mark.asyncio
async def test_failed_analysis_call_raises_service_unavailable() -> None:
    factory = FakeLLMFactory(default=FakeLLM(fail_call=True))
    adapter = ReasoningServiceAdapter(llm_factory=factory, candidates=["a"])
    with pytest.raises(ServiceUnavailable):
        await adapter.analyze(BRIEF)


@pytest.mark.asyncio
async def test_prose_without_array_raises_malformed() -> None:
    factory = FakeLLMFactory(default=FakeLLM(reply="I cannot help with that."))
    adapter = ReasoningServiceAdapter(llm_factory=factory, candidates=["a"])
    with pytest.raises(MalformedResponse):
        await adapter.analyze(BRIEF)


@pytest.mark.asyncio
async def test_prompt_carries_the_brief() -> None:
    llm = FakeLLM(reply=task_array("One"))
    adapter = ReasoningServiceAdapter(llm_factory=FakeLLMFactory(default=llm), candidates=["a"])
    await adapter.analyze(BRIEF)

    messages = llm.calls[-1].to_messages()
    rendered = "\n".join(m.content for m in messages)
    assert "Team chat" in rendered
    assert "SSO" in rendered
    assert "Python only" in rendered
    assert "Not specified" in rendered


def test_extract_array_tolerates_prose() -> None:
    text = 'Sure! Here are [some] thoughts.\n```json\n[{"title": "A"}]\n```\nDone.'
    assert extract_array(text) == [{"title": "A"}]
    assert extract_array("no brackets here") is None


def test_content_text_handles_part_lists() -> None:
    assert content_text([{"type": "text", "text": "[1"}, "]"]) == "[1]"
    assert content_text("plain") == "plain"


def test_missing_fields_get_defaults() -> None:
    tasks = parse_tasks('[{"type": "FRONTEND", "priority": "urgent"}, {"title": "Real", "priority": "low"}]')

    first, second = tasks
    assert first.id == "ai_task_1"
    assert first.title == "AI Generated Task 1"
    assert first.description == "AI generated task description"
    assert first.type == TaskType.FRONTEND
    assert first.priority == TaskPriority.MEDIUM
    assert first.acceptance_criteria == DEFAULT_CRITERIA

    assert second.title == "Real"
    assert second.type == TaskType.BACKEND
    assert second.priority == TaskPriority.LOW


def test_estimated_hours_are_kept_when_numeric() -> None:
    tasks = parse_tasks('[{"title": "A", "estimatedHours": 6}, {"title": "B", "estimated_hours": "lots"}]')
    assert tasks[0].estimated_hours == 6
    assert tasks[1].estimated_hours is None


def test_array_without_objects_is_malformed() -> None:
    with pytest.raises(MalformedResponse):
        parse_tasks("[1, 2, 3]")


def test_extract_array_skips_arrays_without_objects() -> None:
    text = 'Steps [1, 2] first, then the tasks: [{"title": "A"}]'
    assert extract_array(text) == [{"title": "A"}]
    assert parse_tasks(text)[0].title == "A"


def test_parser_reads_gemini_part_lists() -> None:
    message = AIMessage(content=[{"type": "text", "text": 'Here:\n```json\n[{"title": "A"}, 3]\n```'}])
    assert TaskArrayOutputParser().invoke(message) == [{"title": "A"}]


def test_parser_raises_output_parser_exception() -> None:
    with pytest.raises(OutputParserException):
        TaskArrayOutputParser().parse("Nothing to see")
