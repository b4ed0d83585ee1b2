from typing import Optional

from briefsmith.core.config import settings as default_settings, Settings
from briefsmith.core.errors import SynthesisError
from briefsmith.core.logger import logger
from briefsmith.core.schemas import AgentResponse, TechnicalTask
from briefsmith.synthesis.assembler import ArtifactAssembler
from briefsmith.synthesis.frontend import FrontendSynthesizer
from briefsmith.synthesis.keywords import TextClassifier


class FrontendAgent:
    def __init__(self, settings: Optional[Settings] = None, classifier: Optional[TextClassifier] = None,
                 assembler: Optional[ArtifactAssembler] = None):
        self.settings = settings or default_settings
        self.root = self.settings.FRONTEND_ROOT
        self.assembler = assembler or ArtifactAssembler()
        self.components = FrontendSynthesizer(classifier, root=self.root)

    async def execute(self, task: TechnicalTask) -> AgentResponse:
        logger.info(f"--- FRONTEND AGENT: {task.title} ---")
        try:
            files = [self.assembler.normalize(f, self.root) for f in self.components.synthesize(task)]
        except Exception as e:
            raise SynthesisError(f"Frontend synthesis failed for '{task.title}': {e}", task_id=task.id) from e

        if not files:
            logger.info(f"No component family matched '{task.title}'")
            output = f"Frontend task '{task.title}' needs no generated components"
        else:
            output = "\n".join([f"Frontend components for: {task.title}"] + [f"- {f.path}" for f in files])
        return AgentResponse(task_id=task.id, success=True, output=output, files=files)
