"""
Workflow service synthesis.

Five keyword families (task lifecycle, sharing, notifications, comments,
attachments) each map to one service module. Families that call into
another family pull it in, so every emitted import resolves.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from briefsmith.core.logger import logger
from briefsmith.core.schemas import FileType, GeneratedFile, TechnicalTask
from briefsmith.synthesis.assembler import rebase_imports
from briefsmith.synthesis.keywords import SubstringClassifier, TextClassifier, combined_text
from briefsmith.synthesis.templates import business
from briefsmith.synthesis.templates.queue import QUEUE_HELPERS


class ServiceFamily(str, Enum):
    TASK = "task"
    SHARING = "sharing"
    NOTIFICATION = "notification"
    COMMENT = "comment"
    FILE = "file"


FAMILY_KEYWORDS: List[Tuple[ServiceFamily, Tuple[str, ...]]] = [
    (ServiceFamily.TASK, ("task", "todo", "item")),
    (ServiceFamily.SHARING, ("share", "collab", "team")),
    (ServiceFamily.NOTIFICATION, ("notif", "alert", "reminder")),
    (ServiceFamily.COMMENT, ("comment", "discuss", "feedback")),
    (ServiceFamily.FILE, ("file", "attachment", "upload")),
]

# Which other families a family's service imports
FAMILY_REQUIRES: Dict[ServiceFamily, Tuple[ServiceFamily, ...]] = {
    ServiceFamily.TASK: (ServiceFamily.NOTIFICATION,),
    ServiceFamily.SHARING: (ServiceFamily.NOTIFICATION,),
    ServiceFamily.NOTIFICATION: (),
    ServiceFamily.COMMENT: (ServiceFamily.SHARING, ServiceFamily.NOTIFICATION),
    ServiceFamily.FILE: (ServiceFamily.SHARING,),
}

FAMILY_ARTIFACTS: Dict[ServiceFamily, Tuple[str, str]] = {
    ServiceFamily.TASK: ("services/task_service.py", business.TASK_SERVICE),
    ServiceFamily.SHARING: ("services/sharing_service.py", business.SHARING_SERVICE),
    ServiceFamily.NOTIFICATION: ("services/notification_service.py", business.NOTIFICATION_SERVICE),
    ServiceFamily.COMMENT: ("services/comment_service.py", business.COMMENT_SERVICE),
    ServiceFamily.FILE: ("services/file_service.py", business.FILE_SERVICE),
}

# Families whose service puts work on the job queue
QUEUE_USERS = {ServiceFamily.NOTIFICATION, ServiceFamily.FILE}


class BusinessLogicSynthesizer:
    def __init__(self, classifier: Optional[TextClassifier] = None, root: str = "app"):
        self.classifier = classifier or SubstringClassifier()
        self.root = root

    def detect_families(self, task: TechnicalTask) -> List[ServiceFamily]:
        """Families triggered directly by the task text, in fixed order."""
        text = combined_text(task)
        return [family for family, keywords in FAMILY_KEYWORDS
                if self.classifier.matches(text, keywords)]

    def resolve_families(self, detected: List[ServiceFamily]) -> List[ServiceFamily]:
        """Adds every family a detected one depends on, keeping the fixed order."""
        needed = set(detected)
        stack = list(detected)
        while stack:
            for dep in FAMILY_REQUIRES[stack.pop()]:
                if dep not in needed:
                    needed.add(dep)
                    stack.append(dep)
        return [family for family, _ in FAMILY_KEYWORDS if family in needed]

    def synthesize(self, task: TechnicalTask) -> List[GeneratedFile]:
        detected = self.detect_families(task)
        if not detected:
            return []

        families = self.resolve_families(detected)
        if families != detected:
            logger.debug(f"Service families {[f.value for f in detected]} expanded to {[f.value for f in families]}")

        files = [self._file(*FAMILY_ARTIFACTS[family]) for family in families]
        files.append(self._file("services/audit_log_service.py", business.AUDIT_LOG_SERVICE))
        files.append(self._file("services/errors.py", business.SERVICE_ERRORS))
        if QUEUE_USERS.intersection(families):
            files.append(self._file("jobs/queue.py", QUEUE_HELPERS))
        return files

    def _file(self, relative: str, content: str) -> GeneratedFile:
        return GeneratedFile(path=f"{self.root}/{relative}", content=rebase_imports(content, self.root),
                             type=FileType.OTHER)
