from typing import List, Optional

from briefsmith.core.config import settings as default_settings, Settings
from briefsmith.core.errors import SynthesisError
from briefsmith.core.logger import logger
from briefsmith.core.schemas import AgentResponse, FileType, GeneratedFile, TechnicalTask
from briefsmith.synthesis.assembler import ArtifactAssembler, rebase_imports
from briefsmith.synthesis.business_logic import BusinessLogicSynthesizer
from briefsmith.synthesis.keywords import SubstringClassifier, TextClassifier, slugify
from briefsmith.synthesis.optimization import OptimizationSynthesizer
from briefsmith.synthesis.scheduling import SchedulingSynthesizer
from briefsmith.synthesis.schema import SchemaInferenceEngine
from briefsmith.synthesis.templates import backend as tpl


class BackendAgent:
    """Runs every backend synthesizer over one task and normalizes the result."""

    def __init__(self, settings: Optional[Settings] = None, classifier: Optional[TextClassifier] = None,
                 assembler: Optional[ArtifactAssembler] = None):
        self.settings = settings or default_settings
        self.root = self.settings.BACKEND_ROOT
        classifier = classifier or SubstringClassifier()
        self.classifier = classifier
        self.assembler = assembler or ArtifactAssembler()
        self.schema = SchemaInferenceEngine(classifier)
        self.business = BusinessLogicSynthesizer(classifier, root=self.root)
        self.scheduling = SchedulingSynthesizer(classifier, root=self.root)
        self.optimization = OptimizationSynthesizer(root=self.root)

    async def execute(self, task: TechnicalTask) -> AgentResponse:
        logger.info(f"--- BACKEND AGENT: {task.title} ---")
        try:
            files = self.synthesize(task)
        except SynthesisError:
            raise
        except Exception as e:
            raise SynthesisError(f"Backend synthesis failed for '{task.title}': {e}", task_id=task.id) from e

        logger.info(f"Backend agent produced {len(files)} files for {task.id}")
        return AgentResponse(task_id=task.id, success=True, output=self.describe(task, files), files=files)

    def synthesize(self, task: TechnicalTask) -> List[GeneratedFile]:
        slug = slugify(task.title)
        tables = self.schema.infer_schema(task)

        files = [
            GeneratedFile(path=f"{self.root}/migrations/{slug}.sql",
                          content=self.schema.emit_sql(tables, self.settings.SQL_DIALECT),
                          type=FileType.SCHEMA),
            GeneratedFile(path=f"{self.root}/models/{slug}_models.py",
                          content=self.schema.emit_models(tables), type=FileType.SCHEMA),
            GeneratedFile(path="config/settings.py", content=tpl.SETTINGS, type=FileType.CONFIG),
            GeneratedFile(path="validation.py", content=tpl.VALIDATION, type=FileType.OTHER),
        ]
        if self.classifier.matches(task.title, ("auth",)):
            files.append(GeneratedFile(path=f"{self.root}/middleware/auth.py",
                                       content=rebase_imports(tpl.AUTH_MIDDLEWARE, self.root),
                                       type=FileType.OTHER))

        files += self.scheduling.synthesize(task)
        files += self.business.synthesize(task)
        files += self.optimization.synthesize()
        return [self.assembler.normalize(f, self.root) for f in files]

    def describe(self, task: TechnicalTask, files: List[GeneratedFile]) -> str:
        lines = [f"Backend implementation for: {task.title}", "", "Generated files:"]
        lines += [f"- {f.path} ({f.type.value})" for f in files]
        if task.acceptance_criteria:
            lines += ["", "Acceptance criteria:"]
            lines += [f"- {c}" for c in task.acceptance_criteria]
        return "\n".join(lines)
