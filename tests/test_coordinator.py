from typing import List

import pytest

from briefsmith.agents.backend import BackendAgent
from briefsmith.agents.coordinator import FALLBACK_NOTICE, BriefCoordinator, assess_complexity
from briefsmith.agents.decomposer import TaskDecomposer, create_decomposer
from briefsmith.agents.fallback import FallbackTaskDecomposer
from briefsmith.agents.reasoning import ReasoningServiceAdapter
from briefsmith.core.config import Settings
from briefsmith.core.errors import MalformedResponse, ServiceUnavailable
from briefsmith.core.schemas import ProjectBrief, TaskPriority, TaskType, TechnicalTask
from briefsmith.graph.flow import route_entry, route_next_task


class StubDecomposer(TaskDecomposer):
    source = "reasoning"

    def __init__(self, tasks=None, error=None):
        self.tasks = tasks or []
        self.error = error
        self.calls = 0

    async def decompose(self, brief: ProjectBrief) -> List[TechnicalTask]:
        self.calls += 1
        if self.error:
            raise self.error
        return self.tasks


class BrokenBackendAgent(BackendAgent):
    """Fails synthesis for one task id."""

    def __init__(self, broken_id: str):
        super().__init__()
        self.broken_id = broken_id

    def synthesize(self, task):
        if task.id == self.broken_id:
            raise RuntimeError("template exploded")
        return super().synthesize(task)


def _settings(**overrides) -> Settings:
    return Settings(GOOGLE_API_KEY="", **overrides)


# ---------------------------------------------------------------------
# DECOMPOSITION
# ---------------------------------------------------------------------
@pytest.mark.asyncio
@pytest.mark.parametrize("error", [ServiceUnavailable("all candidates failed"), MalformedResponse("no array")])
async def test_reasoning_failure_switches_to_fallback(todo_brief, error) -> None:
    primary = StubDecomposer(error=error)
    coordinator = BriefCoordinator(primary=primary, settings=_settings())

    result = await coordinator.decompose(todo_brief)

    assert primary.calls == 1
    assert result.source == "fallback"
    assert result.analysis == FALLBACK_NOTICE
    assert result.tasks == FallbackTaskDecomposer().build_tasks(todo_brief)


@pytest.mark.asyncio
async def test_unexpected_errors_are_not_swallowed(todo_brief) -> None:
    coordinator = BriefCoordinator(primary=StubDecomposer(error=KeyError("bug")), settings=_settings())
    with pytest.raises(KeyError):
        await coordinator.decompose(todo_brief)


@pytest.mark.asyncio
async def test_reasoning_result_gets_analysis(plain_brief, make_task) -> None:
    tasks = [
        make_task("Build API", "endpoints", id="a", priority=TaskPriority.HIGH, hours=8),
        make_task("Build UI", "screens", type_=TaskType.FRONTEND, id="b", hours=4),
    ]
    coordinator = BriefCoordinator(primary=StubDecomposer(tasks), settings=_settings())

    result = await coordinator.decompose(plain_brief)

    assert result.source == "reasoning"
    assert result.tasks == tasks
    assert result.analysis.startswith("Project Analysis")
    assert "Project Complexity: Simple" in result.analysis
    assert "Architecture Pattern: Client-Server" in result.analysis
    assert "Tight timeline" in result.analysis
    assert "Add testing tasks" in result.analysis


@pytest.mark.asyncio
async def test_plan_sections(plain_brief) -> None:
    coordinator = BriefCoordinator(primary=FallbackTaskDecomposer(), settings=_settings())
    plain = ProjectBrief(description=plain_brief.description, requirements=["Dark mode"])

    plan = (await coordinator.decompose(plain)).plan

    assert plan.startswith("Execution Plan")
    assert "Project Overview:\nSomething entirely vague" in plan
    assert "Key Requirements:\n- Dark mode" in plan
    assert "Phase 1 - Backend Development (6 tasks):" in plan
    assert "Phase 2 - Frontend Development (2 tasks):" in plan
    assert "Total Estimated Time: 156 hours" in plan
    assert plan.endswith("Total Tasks: 8")


def test_complexity_bands(make_task) -> None:
    high = [make_task(f"T{i}", id=str(i), priority=TaskPriority.HIGH) for i in range(8)]
    assert assess_complexity(high[:2]) == "Simple"
    assert assess_complexity(high[:5]) == "Moderate"
    assert assess_complexity(high) == "High"


# ---------------------------------------------------------------------
# EXECUTION
# ---------------------------------------------------------------------
@pytest.mark.asyncio
async def test_failure_is_isolated_to_one_task(make_task) -> None:
    tasks = [
        make_task("Task CRUD", "tasks", id="t1"),
        make_task("Reminder emails", "notify", id="t2"),
        make_task("Task board", "kanban", type_=TaskType.FRONTEND, id="t3"),
    ]
    coordinator = BriefCoordinator(
        primary=StubDecomposer(tasks),
        backend_agent=BrokenBackendAgent("t2"),
        settings=_settings(),
    )

    result = await coordinator.execute(ProjectBrief(description="Task app"))

    assert [r.task_id for r in result.results] == ["t1", "t2", "t3"]
    assert [r.success for r in result.results] == [True, False, True]
    assert "template exploded" in result.results[1].error
    assert "Failed: 1" in result.summary
    assert "- Task 2:" in result.summary
    assert "Success Rate: 67%" in result.insights
    assert "Areas for Improvement:\n- Reminder emails:" in result.insights


@pytest.mark.asyncio
async def test_invalid_task_becomes_failed_response(make_task) -> None:
    tasks = [make_task("No description", "", id="bad"), make_task("Task API", "crud", id="ok")]
    coordinator = BriefCoordinator(primary=StubDecomposer(tasks), settings=_settings())

    result = await coordinator.execute(ProjectBrief(description="Task app"))

    bad, ok = result.results
    assert not bad.success
    assert "description" in bad.error
    assert ok.success


@pytest.mark.asyncio
async def test_execute_task_validates_blank_title(make_task) -> None:
    coordinator = BriefCoordinator(primary=StubDecomposer(), settings=_settings())
    response = await coordinator.execute_task(make_task("   ", "something", id="x"))
    assert response.task_id == "x"
    assert not response.success
    assert "title" in response.error


@pytest.mark.asyncio
async def test_execute_merges_unique_files(todo_brief) -> None:
    coordinator = BriefCoordinator(primary=FallbackTaskDecomposer(), settings=_settings())

    result = await coordinator.execute(todo_brief)

    assert all(r.success for r in result.results)
    paths = [f.path for f in result.files]
    assert paths
    assert len(paths) == len(set(paths))
    assert "app/middleware/auth.py" in paths
    assert "frontend/components/task_board.py" in paths
    assert "Success Rate: 100%" in result.insights


@pytest.mark.asyncio
async def test_execute_with_no_tasks_summarizes_immediately() -> None:
    coordinator = BriefCoordinator(primary=StubDecomposer([]), settings=_settings())
    result = await coordinator.execute(ProjectBrief(description="Nothing"))
    assert result.results == []
    assert result.files == []
    assert "Total tasks: 0" in result.summary


@pytest.mark.asyncio
async def test_large_batches_run_past_the_configured_step_limit(make_task) -> None:
    tasks = [make_task(f"Layout pass {i}", "grid", type_=TaskType.FRONTEND, id=f"t{i}") for i in range(120)]
    coordinator = BriefCoordinator(primary=StubDecomposer(tasks), settings=_settings(GRAPH_RECURSION_LIMIT=10))

    result = await coordinator.execute(ProjectBrief(description="Big app"))

    assert len(result.results) == 120
    assert all(r.success for r in result.results)
    assert "Total tasks: 120" in result.summary


@pytest.mark.asyncio
async def test_graph_decomposes_when_given_only_a_brief(todo_brief) -> None:
    coordinator = BriefCoordinator(primary=FallbackTaskDecomposer(), settings=_settings())

    final = await coordinator.graph.ainvoke({"brief": todo_brief})

    assert final["source"] == "fallback"
    assert len(final["results"]) == len(final["tasks"])
    assert final["summary"].startswith("Project Execution Summary")


def test_router() -> None:
    assert route_next_task({"tasks": [1, 2], "cursor": 1}) == "dispatch"
    assert route_next_task({"tasks": [1, 2], "cursor": 2}) == "summarize"
    assert route_next_task({}) == "summarize"


def test_entry_router() -> None:
    assert route_entry({"brief": None}) == "decompose"
    assert route_entry({"tasks": [1], "cursor": 0}) == "dispatch"
    assert route_entry({"tasks": [], "cursor": 0}) == "summarize"


# ---------------------------------------------------------------------
# DECOMPOSER SELECTION
# ---------------------------------------------------------------------
def test_no_api_key_selects_fallback() -> None:
    decomposer = create_decomposer(_settings())
    assert isinstance(decomposer, FallbackTaskDecomposer)


def test_api_key_selects_reasoning_adapter() -> None:
    decomposer = create_decomposer(Settings(GOOGLE_API_KEY="test-key", MODEL_CANDIDATES=["m1"]))
    assert isinstance(decomposer, ReasoningServiceAdapter)
    assert decomposer.candidates == ["m1"]
    assert decomposer.model_name is None
