from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List


class TaskType(str, Enum):
    FRONTEND = "frontend"
    BACKEND = "backend"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FileType(str, Enum):
    API = "api"
    SCHEMA = "schema"
    CONFIG = "config"
    COMPONENT = "component"
    OTHER = "other"


# ---------------------------------------------------------------------
# INPUT
# ---------------------------------------------------------------------
class ProjectBrief(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str = Field(..., description="Free-text project description")
    requirements: List[str] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)
    timeline: Optional[str] = None


# ---------------------------------------------------------------------
# DECOMPOSITION
# ---------------------------------------------------------------------
class TechnicalTask(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    type: TaskType = TaskType.BACKEND
    priority: TaskPriority = TaskPriority.MEDIUM
    acceptance_criteria: List[str] = Field(default_factory=list)
    estimated_hours: Optional[float] = None
    dependencies: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------
# SYNTHESIS
# ---------------------------------------------------------------------
class GeneratedFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    content: str
    type: FileType = FileType.OTHER


class AgentResponse(BaseModel):
    task_id: str
    success: bool
    output: str = ""
    files: Optional[List[GeneratedFile]] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------
# COORDINATOR RESULTS
# ---------------------------------------------------------------------
class DecompositionResult(BaseModel):
    tasks: List[TechnicalTask]
    plan: str
    analysis: str
    source: str = Field(description="Which decomposer produced the tasks: reasoning or fallback")


class ExecutionResult(BaseModel):
    results: List[AgentResponse]
    summary: str
    insights: str
    files: List[GeneratedFile] = Field(default_factory=list)
