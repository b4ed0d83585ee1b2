"""
Recurring-job synthesis.

A task that mentions scheduling words gets a cron scheduler, the matched job
modules, the queue producer/consumer pair and the shared job types.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from briefsmith.core.schemas import FileType, GeneratedFile, TechnicalTask
from briefsmith.synthesis.assembler import rebase_imports
from briefsmith.synthesis.keywords import SubstringClassifier, TextClassifier, combined_text
from briefsmith.synthesis.templates import scheduling as tpl
from briefsmith.synthesis.templates.queue import QUEUE_HELPERS


class JobFamily(str, Enum):
    NOTIFICATION = "notification"
    CLEANUP = "cleanup"
    REPORT = "report"
    BACKUP = "backup"


class ScheduledJob(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    cron: str
    description: str
    handler: str  # "module:function"
    family: JobFamily

    @property
    def module(self) -> str:
        return self.handler.split(":")[0]

    @property
    def function(self) -> str:
        return self.handler.split(":")[1]


TRIGGER_KEYWORDS = (
    "schedule", "cron", "daily", "weekly", "monthly",
    "reminder", "notification", "alert", "email",
    "cleanup", "archive", "delete old",
    "report", "summary", "analytics",
    "backup", "export", "sync",
    "recurring", "periodic", "automated",
)

FAMILY_KEYWORDS: List[Tuple[JobFamily, Tuple[str, ...]]] = [
    (JobFamily.NOTIFICATION, ("email", "notification", "reminder")),
    (JobFamily.CLEANUP, ("cleanup", "delete", "archive")),
    (JobFamily.REPORT, ("report", "analytics", "summary")),
    (JobFamily.BACKUP, ("backup", "export")),
]

FAMILY_MODULES: Dict[JobFamily, Tuple[str, str]] = {
    JobFamily.NOTIFICATION: ("notification_jobs", tpl.NOTIFICATION_JOBS),
    JobFamily.CLEANUP: ("cleanup_jobs", tpl.CLEANUP_JOBS),
    JobFamily.REPORT: ("report_jobs", tpl.REPORT_JOBS),
    JobFamily.BACKUP: ("backup_jobs", tpl.BACKUP_JOBS),
}

JOB_CATALOGUE: List[ScheduledJob] = [
    ScheduledJob(name="daily-reminders", cron="0 9 * * *", description="Send daily task reminders",
                 handler="notification_jobs:send_daily_reminders", family=JobFamily.NOTIFICATION),
    ScheduledJob(name="overdue-alerts", cron="0 */4 * * *", description="Send overdue task alerts",
                 handler="notification_jobs:send_overdue_alerts", family=JobFamily.NOTIFICATION),
    ScheduledJob(name="cleanup-completed-tasks", cron="0 0 * * 0", description="Clean up old completed tasks",
                 handler="cleanup_jobs:cleanup_completed_tasks", family=JobFamily.CLEANUP),
    ScheduledJob(name="cleanup-expired-sessions", cron="0 */6 * * *", description="Clean up expired user sessions",
                 handler="cleanup_jobs:cleanup_expired_sessions", family=JobFamily.CLEANUP),
    ScheduledJob(name="weekly-reports", cron="0 8 * * 1", description="Generate weekly productivity reports",
                 handler="report_jobs:generate_weekly_reports", family=JobFamily.REPORT),
    ScheduledJob(name="monthly-analytics", cron="0 9 1 * *", description="Generate monthly analytics",
                 handler="report_jobs:generate_monthly_analytics", family=JobFamily.REPORT),
    ScheduledJob(name="daily-backup", cron="0 2 * * *", description="Perform daily database backup",
                 handler="backup_jobs:perform_daily_backup", family=JobFamily.BACKUP),
]


class SchedulingSynthesizer:
    def __init__(self, classifier: Optional[TextClassifier] = None, root: str = "app"):
        self.classifier = classifier or SubstringClassifier()
        self.root = root

    def needs_scheduling(self, task: TechnicalTask) -> bool:
        return self.classifier.matches(combined_text(task), TRIGGER_KEYWORDS)

    def families_for(self, task: TechnicalTask) -> List[JobFamily]:
        text = combined_text(task)
        return [family for family, keywords in FAMILY_KEYWORDS
                if self.classifier.matches(text, keywords)]

    def jobs_for(self, task: TechnicalTask) -> List[ScheduledJob]:
        if not self.needs_scheduling(task):
            return []
        families = set(self.families_for(task))
        return [job for job in JOB_CATALOGUE if job.family in families]

    def synthesize(self, task: TechnicalTask) -> List[GeneratedFile]:
        if not self.needs_scheduling(task):
            return []

        families = self.families_for(task)
        jobs = [job for job in JOB_CATALOGUE if job.family in families]

        files = [self._file("scheduler.py", self.render_scheduler(jobs))]
        for family in families:
            module, content = FAMILY_MODULES[family]
            files.append(self._file(f"{module}.py", content))
        files.append(self._file("queue.py", QUEUE_HELPERS))
        files.append(self._file("queue_processor.py", tpl.QUEUE_PROCESSOR))
        files.append(self._file("types.py", tpl.JOB_TYPES))
        return files

    def render_scheduler(self, jobs: List[ScheduledJob]) -> str:
        """Scheduler module whose job table holds exactly the given jobs."""
        modules = sorted({job.module for job in jobs})
        lines = [tpl.SCHEDULER_HEADER.rstrip("\n")]
        if modules:
            lines.append(f"from {self.root}.jobs import {', '.join(modules)}")
        lines += [
            "",
            "logger = logging.getLogger(__name__)",
            "",
            "",
            "@dataclass(frozen=True)",
            "class JobSpec:",
            "    cron: str",
            "    handler: Callable[[], Awaitable[object]]",
            "    description: str",
            "",
            "",
            "JOBS: dict[str, JobSpec] = {",
        ]
        for job in jobs:
            lines.append(
                f'    "{job.name}": JobSpec("{job.cron}", {job.module}.{job.function}, "{job.description}"),'
            )
        lines.append("}")
        return "\n".join(lines) + tpl.SCHEDULER_BODY

    def _file(self, name: str, content: str) -> GeneratedFile:
        return GeneratedFile(path=f"{self.root}/jobs/{name}", content=rebase_imports(content, self.root),
                             type=FileType.OTHER)
