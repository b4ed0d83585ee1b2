from abc import ABC, abstractmethod
from typing import List

from briefsmith.core.config import Settings
from briefsmith.core.logger import logger
from briefsmith.core.schemas import ProjectBrief, TechnicalTask


class TaskDecomposer(ABC):
    """Turns a brief into an ordered task list."""

    # "reasoning" or "fallback"
    source: str = ""

    @abstractmethod
    async def decompose(self, brief: ProjectBrief) -> List[TechnicalTask]:
        ...


def create_decomposer(settings: Settings) -> TaskDecomposer:
    """
    Picks the primary decomposer once, at construction time.
    With an API key the reasoning adapter leads; without one the
    rule-based decomposer is primary and no network call is ever made.
    """
    # Both implementations subclass TaskDecomposer, so they are imported lazily
    if settings.GOOGLE_API_KEY:
        from briefsmith.agents.reasoning import ReasoningServiceAdapter
        logger.info("Reasoning service configured, using Gemini decomposer")
        return ReasoningServiceAdapter(candidates=settings.MODEL_CANDIDATES,
                                       temperature=settings.MODEL_TEMPERATURE,
                                       probe_prompt=settings.PROBE_PROMPT)

    from briefsmith.agents.fallback import FallbackTaskDecomposer
    logger.info("No GOOGLE_API_KEY set, using rule-based decomposer")
    return FallbackTaskDecomposer()
