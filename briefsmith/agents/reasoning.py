import json
from typing import Any, Callable, List, Optional, Union

from langchain_core.exceptions import OutputParserException
from langchain_core.output_parsers import BaseOutputParser
from langchain_core.outputs import ChatGeneration, Generation
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.utils.json import parse_json_markdown

from briefsmith.agents.decomposer import TaskDecomposer
from briefsmith.core.config import settings
from briefsmith.core.errors import MalformedResponse, ServiceUnavailable
from briefsmith.core.llm import get_llm
from briefsmith.core.logger import logger
from briefsmith.core.schemas import ProjectBrief, TaskPriority, TaskType, TechnicalTask

# ---------------------------------------------------------------------
# 1. DEFINE THE PROMPT
# ---------------------------------------------------------------------
analysis_prompt = ChatPromptTemplate.from_messages([
    ("system", """You are an expert software architect.
    Analyze the project brief and break it down into specific technical tasks.

    **Instructions:**
    1. Create 4-8 technical tasks that cover the full project scope.
    2. Each task must be either 'frontend' or 'backend' type.
    3. Assign priority: 'high', 'medium', or 'low'.
    4. Include specific acceptance criteria for each task.
    5. Order tasks so that dependencies come first.

    **Output Format:**
    Return ONLY a JSON array, no prose:
    [
      {{
        "title": "Task Title",
        "description": "Detailed task description",
        "type": "frontend or backend",
        "priority": "high/medium/low",
        "acceptance_criteria": ["Specific deliverable 1", "Specific deliverable 2"]
      }}
    ]
    """),
    ("user", """
    Description: {description}
    Requirements: {requirements}
    Constraints: {constraints}
    Timeline: {timeline}

    Generate the JSON array now:
    """)
])

DEFAULT_CRITERIA = ["Task completion criteria to be defined"]


# ---------------------------------------------------------------------
# 2. RESPONSE PARSING
# ---------------------------------------------------------------------
def content_text(content: Union[str, List, Any]) -> str:
    """Flattens a chat message content (Gemini may return a list of parts)."""
    if isinstance(content, list):
        return "".join(
            item.get("text", "") if isinstance(item, dict) else str(item) for item in content
        )
    if not isinstance(content, str):
        return str(content)
    return content


def _is_task_array(value: Any) -> bool:
    return isinstance(value, list) and any(isinstance(item, dict) for item in value)


def extract_array(text: str) -> Optional[list]:
    """
    First JSON array in the text that holds at least one object.
    A fenced or bare JSON reply is read directly; otherwise every '[' is
    tried in turn so surrounding prose is skipped.
    """
    try:
        value = parse_json_markdown(text)
    except ValueError:
        value = None
    if _is_task_array(value):
        return value

    decoder = json.JSONDecoder()
    start = text.find("[")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            value = None
        if _is_task_array(value):
            return value
        start = text.find("[", start + 1)
    return None


class TaskArrayOutputParser(BaseOutputParser[List[dict]]):
    """Pulls the task objects out of a reasoning reply, tolerating prose around them."""

    def parse_result(self, result: List[Generation], *, partial: bool = False) -> List[dict]:
        generation = result[0]
        if isinstance(generation, ChatGeneration):
            return self.parse(content_text(generation.message.content))
        return self.parse(generation.text)

    def parse(self, text: str) -> List[dict]:
        array = extract_array(text)
        if array is None:
            raise OutputParserException("No JSON task array found in reasoning response", llm_output=text)
        return [item for item in array if isinstance(item, dict)]

    @property
    def _type(self) -> str:
        return "task_array"


parser = TaskArrayOutputParser()


def _hours(raw: Any) -> Optional[float]:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    return float(raw) if raw > 0 else None


def task_from_item(item: dict, index: int) -> TechnicalTask:
    """Builds a task, filling any missing or unusable field with a safe default."""
    title = item.get("title")
    description = item.get("description")
    criteria = item.get("acceptance_criteria")
    if isinstance(criteria, list):
        criteria = [str(c) for c in criteria if str(c).strip()]
    else:
        criteria = []

    task_type = TaskType.FRONTEND if str(item.get("type", "")).lower() == "frontend" else TaskType.BACKEND
    try:
        priority = TaskPriority(str(item.get("priority", "")).lower())
    except ValueError:
        priority = TaskPriority.MEDIUM

    return TechnicalTask(
        id=f"ai_task_{index + 1}",
        title=title.strip() if isinstance(title, str) and title.strip() else f"AI Generated Task {index + 1}",
        description=description if isinstance(description, str) and description.strip()
        else "AI generated task description",
        type=task_type,
        priority=priority,
        acceptance_criteria=criteria or list(DEFAULT_CRITERIA),
        estimated_hours=_hours(item.get("estimated_hours", item.get("estimatedHours"))),
    )


def parse_tasks(raw: Union[str, List, Any]) -> List[TechnicalTask]:
    text = content_text(raw)
    try:
        items = parser.parse(text)
    except OutputParserException as e:
        raise MalformedResponse(str(e), raw=text) from e
    return [task_from_item(item, i) for i, item in enumerate(items)]


# ---------------------------------------------------------------------
# 3. THE ADAPTER
# ---------------------------------------------------------------------
class ReasoningServiceAdapter(TaskDecomposer):
    """
    Gemini-backed decomposer. The first candidate model that answers the
    probe is kept on this instance and reused for every later call.
    """

    source = "reasoning"

    def __init__(self, llm_factory: Callable[..., Any] = get_llm,
                 candidates: Optional[List[str]] = None,
                 temperature: Optional[float] = None,
                 probe_prompt: Optional[str] = None):
        self.llm_factory = llm_factory
        self.candidates = list(candidates if candidates is not None else settings.MODEL_CANDIDATES)
        self.temperature = settings.MODEL_TEMPERATURE if temperature is None else temperature
        self.probe_prompt = probe_prompt or settings.PROBE_PROMPT
        self.model_name: Optional[str] = None
        self._llm = None

    async def _negotiate(self):
        if self._llm is not None:
            return self._llm

        for name in self.candidates:
            try:
                llm = self.llm_factory(name, temperature=self.temperature)
                await llm.ainvoke(self.probe_prompt)
            except Exception as e:
                logger.warning(f"⚠️ Model probe failed for {name}: {e}")
                continue
            logger.info(f"✅ Using reasoning model {name}")
            self.model_name = name
            self._llm = llm
            return llm

        raise ServiceUnavailable(f"No reasoning model answered (tried {', '.join(self.candidates) or 'none'})")

    async def analyze(self, brief: ProjectBrief) -> List[TechnicalTask]:
        logger.info("--- REASONING AGENT: Analyzing project brief ---")
        llm = await self._negotiate()

        chain = analysis_prompt | llm | parser
        try:
            items = await chain.ainvoke({
                "description": brief.description,
                "requirements": ", ".join(brief.requirements) or "None specified",
                "constraints": ", ".join(brief.constraints) or "None specified",
                "timeline": brief.timeline or "Not specified",
            })
        except OutputParserException as e:
            raise MalformedResponse(str(e), raw=e.llm_output or "") from e
        except Exception as e:
            raise ServiceUnavailable(f"Reasoning call to {self.model_name} failed: {e}") from e

        tasks = [task_from_item(item, i) for i, item in enumerate(items)]
        logger.info(f"Reasoning service produced {len(tasks)} tasks")
        return tasks

    async def decompose(self, brief: ProjectBrief) -> List[TechnicalTask]:
        return await self.analyze(brief)
