from langgraph.graph import StateGraph, END
from briefsmith.core.logger import logger
from briefsmith.graph.state import CoordinatorState


def route_next_task(state: CoordinatorState):
    """
    Router Logic:
    1. Tasks left? -> DISPATCH (one task per visit)
    2. All done?   -> SUMMARIZE
    """
    if state.get("cursor", 0) < len(state.get("tasks", [])):
        return "dispatch"
    logger.info("✅ All tasks dispatched. Summarizing.")
    return "summarize"


def route_entry(state: CoordinatorState):
    """Skips decomposition when the caller already supplied the task list."""
    if "tasks" in state:
        return route_next_task(state)
    return "decompose"


def build_graph(coordinator):
    """Compiles the decompose -> dispatch* -> summarize graph around one coordinator."""

    async def decompose_node(state: CoordinatorState):
        result = await coordinator.decompose(state["brief"])
        return {
            "tasks": result.tasks,
            "plan": result.plan,
            "analysis": result.analysis,
            "source": result.source,
            "cursor": 0,
            "results": [],
        }

    async def dispatch_node(state: CoordinatorState):
        cursor = state["cursor"]
        task = state["tasks"][cursor]
        logger.info(f"Processing task {cursor + 1}/{len(state['tasks'])}: {task.title}")
        response = await coordinator.execute_task(task)
        return {"results": state["results"] + [response], "cursor": cursor + 1}

    def summarize_node(state: CoordinatorState):
        tasks, results = state["tasks"], state["results"]
        return {
            "files": coordinator.assembler.merge(r.files or [] for r in results),
            "summary": coordinator.build_summary(tasks, results),
            "insights": coordinator.build_insights(tasks, results),
        }

    workflow = StateGraph(CoordinatorState)

    # Add Nodes
    workflow.add_node("decompose", decompose_node)
    workflow.add_node("dispatch", dispatch_node)
    workflow.add_node("summarize", summarize_node)

    # Define Edges
    workflow.set_conditional_entry_point(
        route_entry,
        {
            "decompose": "decompose",
            "dispatch": "dispatch",
            "summarize": "summarize",
        }
    )
    workflow.add_edge("summarize", END)

    # Tasks run strictly one after another through the dispatch self-loop
    for node in ("decompose", "dispatch"):
        workflow.add_conditional_edges(
            node,
            route_next_task,
            {
                "dispatch": "dispatch",
                "summarize": "summarize",
            }
        )

    return workflow.compile()
