import pytest

from briefsmith.agents.fallback import BASELINE, FallbackTaskDecomposer
from briefsmith.core.schemas import ProjectBrief, TaskType


@pytest.mark.asyncio
async def test_todo_with_auth_scenario(todo_brief) -> None:
    tasks = await FallbackTaskDecomposer().decompose(todo_brief)

    assert any(t.type == TaskType.BACKEND and "Authentication" in t.title for t in tasks)
    assert any(len(t.acceptance_criteria) >= 4 for t in tasks)


@pytest.mark.asyncio
async def test_unmatched_brief_gets_baseline(plain_brief) -> None:
    tasks = await FallbackTaskDecomposer().decompose(plain_brief)

    assert len(tasks) == len(BASELINE) == 8
    assert tasks[0].title == "Design Database Schema and Backend Architecture"
    assert tasks[-1].title == "Setup CI/CD Pipeline and Production Deployment"
    assert {t.type for t in tasks} == {TaskType.BACKEND, TaskType.FRONTEND}


@pytest.mark.asyncio
@pytest.mark.parametrize("description", ["x", "Build a shop", "A team portal", "???", "Make something nice"])
async def test_never_empty(description) -> None:
    tasks = await FallbackTaskDecomposer().decompose(ProjectBrief(description=description))
    assert tasks


def test_is_deterministic(todo_brief) -> None:
    decomposer = FallbackTaskDecomposer()
    assert decomposer.build_tasks(todo_brief) == decomposer.build_tasks(todo_brief)


def test_ids_are_unique_and_ordered(todo_brief) -> None:
    tasks = FallbackTaskDecomposer().build_tasks(todo_brief)
    ids = [t.id for t in tasks]
    assert len(ids) == len(set(ids))
    assert ids[0].startswith("fallback_01_")


def test_infrastructure_task_added_when_no_api_task() -> None:
    tasks = FallbackTaskDecomposer().build_tasks(ProjectBrief(description="Share documents with my team"))
    titles = [t.title for t in tasks]
    assert titles[-1] == "Setup Production-Ready API Infrastructure"


def test_no_infrastructure_when_api_task_present(todo_brief) -> None:
    titles = [t.title for t in FallbackTaskDecomposer().build_tasks(todo_brief)]
    assert "Setup Production-Ready API Infrastructure" not in titles


def test_priority_and_hours_fixed_per_family() -> None:
    short = FallbackTaskDecomposer().build_tasks(ProjectBrief(description="login"))
    long = FallbackTaskDecomposer().build_tasks(
        ProjectBrief(description="login " + "with many more words " * 20)
    )
    assert [(t.priority, t.estimated_hours) for t in short] == [(t.priority, t.estimated_hours) for t in long]


def test_source_label() -> None:
    assert FallbackTaskDecomposer().source == "fallback"
