from typing import TypedDict, List

from briefsmith.core.schemas import AgentResponse, GeneratedFile, ProjectBrief, TechnicalTask


class CoordinatorState(TypedDict, total=False):
    """
    Shared state of the brief execution graph.
    """
    # Input
    brief: ProjectBrief

    # Decomposition
    tasks: List[TechnicalTask]
    plan: str
    analysis: str
    source: str                      # reasoning | fallback

    # Execution
    cursor: int                      # index of the next task to dispatch
    results: List[AgentResponse]     # one per dispatched task, in order

    # Reporting
    files: List[GeneratedFile]       # merged, path-unique
    summary: str
    insights: str
