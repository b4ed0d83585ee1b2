from typing import List, Optional

from briefsmith.agents.backend import BackendAgent
from briefsmith.agents.decomposer import TaskDecomposer, create_decomposer
from briefsmith.agents.fallback import FallbackTaskDecomposer
from briefsmith.agents.frontend import FrontendAgent
from briefsmith.core.config import settings as default_settings, Settings
from briefsmith.core.errors import MalformedResponse, ServiceUnavailable, SynthesisError, ValidationError
from briefsmith.core.logger import logger
from briefsmith.core.schemas import (
    AgentResponse, DecompositionResult, ExecutionResult, ProjectBrief,
    TaskPriority, TaskType, TechnicalTask,
)
from briefsmith.graph.flow import build_graph
from briefsmith.synthesis.assembler import ArtifactAssembler

FALLBACK_NOTICE = "Used fallback analysis due to AI service error."


# ---------------------------------------------------------------------
# ANALYSIS HEURISTICS
# ---------------------------------------------------------------------
def _titles_contain(tasks: List[TechnicalTask], needle: str) -> bool:
    return any(needle in t.title.lower() for t in tasks)


def assess_complexity(tasks: List[TechnicalTask]) -> str:
    high = sum(1 for t in tasks if t.priority == TaskPriority.HIGH)
    if len(tasks) <= 3:
        return "Simple"
    if len(tasks) <= 6:
        return "Moderate"
    if high > len(tasks) * 0.6:
        return "High"
    return "Complex"


def identify_architecture(tasks: List[TechnicalTask]) -> str:
    has_auth = _titles_contain(tasks, "auth")
    has_backend = any(t.type == TaskType.BACKEND for t in tasks)
    has_frontend = any(t.type == TaskType.FRONTEND for t in tasks)
    if has_auth and has_backend and has_frontend:
        return "Full-Stack MVC"
    if has_backend and has_frontend:
        return "Client-Server"
    if has_backend:
        return "API-First"
    return "Component-Based"


def identify_stack(tasks: List[TechnicalTask]) -> str:
    stack = []
    if any(t.type == TaskType.FRONTEND for t in tasks):
        stack.append("Reflex")
    if any(t.type == TaskType.BACKEND for t in tasks):
        stack.append("FastAPI+asyncpg")
    if _titles_contain(tasks, "database"):
        stack.append("PostgreSQL")
    if _titles_contain(tasks, "auth"):
        stack.append("JWT Auth")
    return ", ".join(stack) or "To be determined"


def identify_risks(brief: ProjectBrief, tasks: List[TechnicalTask]) -> str:
    risks = []
    if len(tasks) > 8:
        risks.append("Scope complexity")
    if sum(1 for t in tasks if t.priority == TaskPriority.HIGH) > 4:
        risks.append("High priority overload")
    if brief.timeline and "week" in brief.timeline.lower():
        risks.append("Tight timeline")
    if not _titles_contain(tasks, "test"):
        risks.append("No testing strategy")
    return ", ".join(risks) or "Low risk project"


def recommend(tasks: List[TechnicalTask]) -> str:
    recommendations = []
    if not _titles_contain(tasks, "test"):
        recommendations.append("Add testing tasks")
    if not _titles_contain(tasks, "deploy"):
        recommendations.append("Consider deployment strategy")
    if len(tasks) > 6:
        recommendations.append("Consider MVP approach for initial release")
    recommendations += ["Implement CI/CD pipeline", "Add error monitoring and logging"]
    return ", ".join(recommendations)


# ---------------------------------------------------------------------
# THE COORDINATOR
# ---------------------------------------------------------------------
class BriefCoordinator:
    """
    Top-level orchestrator.
    decompose(): primary decomposer, replaced wholesale by the fallback on failure.
    execute(): runs the LangGraph flow, one task at a time, isolating failures.
    """

    def __init__(self, primary: Optional[TaskDecomposer] = None,
                 fallback: Optional[FallbackTaskDecomposer] = None,
                 backend_agent: Optional[BackendAgent] = None,
                 frontend_agent: Optional[FrontendAgent] = None,
                 assembler: Optional[ArtifactAssembler] = None,
                 settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.fallback = fallback or FallbackTaskDecomposer()
        self.primary = primary or create_decomposer(self.settings)
        self.assembler = assembler or ArtifactAssembler()
        self.backend_agent = backend_agent or BackendAgent(self.settings, assembler=self.assembler)
        self.frontend_agent = frontend_agent or FrontendAgent(self.settings, assembler=self.assembler)
        self.graph = build_graph(self)

    # -----------------------------------------------------------------
    # DECOMPOSITION
    # -----------------------------------------------------------------
    async def decompose(self, brief: ProjectBrief) -> DecompositionResult:
        logger.info("--- COORDINATOR: Decomposing project brief ---")
        decomposer = self.primary
        try:
            tasks = await decomposer.decompose(brief)
        except (ServiceUnavailable, MalformedResponse) as e:
            category = "service_unavailable" if isinstance(e, ServiceUnavailable) else "malformed_response"
            logger.warning(f"⚠️ Reasoning path failed ({category}): {e}. Switching to fallback.")
            decomposer = self.fallback
            tasks = await decomposer.decompose(brief)

        if decomposer.source == "fallback":
            analysis = FALLBACK_NOTICE
        else:
            analysis = self.build_analysis(brief, tasks)

        logger.info(f"Decomposition produced {len(tasks)} tasks via {decomposer.source}")
        return DecompositionResult(
            tasks=tasks,
            plan=self.build_plan(brief, tasks),
            analysis=analysis,
            source=decomposer.source,
        )

    # -----------------------------------------------------------------
    # EXECUTION
    # -----------------------------------------------------------------
    async def execute(self, brief: ProjectBrief) -> ExecutionResult:
        decomposition = await self.decompose(brief)
        tasks = decomposition.tasks

        # One graph step per task, plus the entry and summarize steps
        limit = max(self.settings.GRAPH_RECURSION_LIMIT, len(tasks) + 3)
        final = await self.graph.ainvoke(
            {
                "brief": brief,
                "tasks": tasks,
                "plan": decomposition.plan,
                "analysis": decomposition.analysis,
                "source": decomposition.source,
                "cursor": 0,
                "results": [],
            },
            config={"recursion_limit": limit},
        )
        return ExecutionResult(
            results=final["results"],
            summary=final["summary"],
            insights=final["insights"],
            files=final["files"],
        )

    def validate(self, task: TechnicalTask) -> None:
        missing = []
        if not getattr(task, "title", None) or not task.title.strip():
            missing.append("title")
        if not getattr(task, "description", None) or not task.description.strip():
            missing.append("description")
        if getattr(task, "type", None) not in (TaskType.BACKEND, TaskType.FRONTEND):
            missing.append("type")
        if missing:
            raise ValidationError(missing, task_id=getattr(task, "id", None))

    async def execute_task(self, task: TechnicalTask) -> AgentResponse:
        try:
            self.validate(task)
            match task.type:
                case TaskType.BACKEND:
                    response = await self.backend_agent.execute(task)
                case TaskType.FRONTEND:
                    response = await self.frontend_agent.execute(task)
        except (SynthesisError, ValidationError) as e:
            logger.error(f"🛑 Task failed: {getattr(task, 'title', '?')} - {e}")
            return AgentResponse(task_id=getattr(task, "id", "") or "", success=False, error=str(e))

        logger.info(f"✅ Task completed: {task.title}")
        return response

    # -----------------------------------------------------------------
    # REPORTS
    # -----------------------------------------------------------------
    def build_plan(self, brief: ProjectBrief, tasks: List[TechnicalTask]) -> str:
        backend = [t for t in tasks if t.type == TaskType.BACKEND]
        frontend = [t for t in tasks if t.type == TaskType.FRONTEND]

        lines = ["Execution Plan", "=" * 40, "", "Project Overview:", brief.description, ""]
        if brief.requirements:
            lines.append("Key Requirements:")
            lines += [f"- {req}" for req in brief.requirements]
            lines.append("")

        for label, group in (("Phase 1 - Backend Development", backend),
                             ("Phase 2 - Frontend Development", frontend)):
            lines.append(f"{label} ({len(group)} tasks):")
            for i, task in enumerate(group, start=1):
                lines.append(f"  {i}. {task.title} [{task.priority.value} priority]")
                if task.estimated_hours:
                    lines.append(f"     Estimated: {task.estimated_hours:g} hours")
            lines.append("")

        total = sum(t.estimated_hours or 0 for t in tasks)
        if total > 0:
            lines.append(f"Total Estimated Time: {total:g} hours")
        lines.append(f"Total Tasks: {len(tasks)}")
        return "\n".join(lines)

    def build_analysis(self, brief: ProjectBrief, tasks: List[TechnicalTask]) -> str:
        return "\n".join([
            "Project Analysis",
            "=" * 40,
            f"Project Complexity: {assess_complexity(tasks)}",
            f"Architecture Pattern: {identify_architecture(tasks)}",
            f"Technology Stack: {identify_stack(tasks)}",
            f"Risk Factors: {identify_risks(brief, tasks)}",
            f"Recommendations: {recommend(tasks)}",
        ])

    def build_summary(self, tasks: List[TechnicalTask], results: List[AgentResponse]) -> str:
        successful = sum(1 for r in results if r.success)
        failed = len(results) - successful
        file_count = sum(len(r.files or []) for r in results)

        lines = [
            "Project Execution Summary",
            "=" * 40,
            f"Total tasks: {len(results)}",
            f"Successful: {successful}",
            f"Failed: {failed}",
            f"Files generated: {file_count}",
        ]
        if failed:
            lines += ["", "Failed tasks:"]
            lines += [f"- Task {i}: {r.error}" for i, r in enumerate(results, start=1) if not r.success]
        return "\n".join(lines)

    def build_insights(self, tasks: List[TechnicalTask], results: List[AgentResponse]) -> str:
        titles = {t.id: t.title for t in tasks}
        successful = sum(1 for r in results if r.success)
        rate = round(successful / len(results) * 100) if results else 0

        lines = [
            "Execution Insights",
            "=" * 40,
            f"Success Rate: {rate}%",
            f"Files Generated: {sum(len(r.files or []) for r in results)}",
            f"Task Completion: {successful}/{len(results)}",
            "",
        ]
        failures = [r for r in results if not r.success]
        if failures:
            lines.append("Areas for Improvement:")
            lines += [f"- {titles.get(r.task_id, r.task_id)}: {r.error}" for r in failures]
            lines.append("")

        lines.append("Recommendations:")
        if not failures:
            lines += [
                "- All tasks completed successfully.",
                "- Add automated tests for the generated code.",
                "- Review generated code before production deployment.",
            ]
        else:
            lines += [
                "- Review failed tasks and retry with more specific requirements.",
                "- Break complex tasks into smaller ones.",
            ]
        return "\n".join(lines)
