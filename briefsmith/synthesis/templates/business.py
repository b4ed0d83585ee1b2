# ---------------------------------------------------------------------
# SHARED SERVICE SUPPORT (emitted whenever any service family is)
# ---------------------------------------------------------------------
SERVICE_ERRORS = r'''"""Errors raised by the domain services."""


class ServiceError(Exception):
    """Base class for domain rule violations."""


class NotFoundError(ServiceError):
    pass


class PermissionDeniedError(ServiceError):
    pass


class RuleViolationError(ServiceError):
    """Input or state breaks a business rule."""
'''

AUDIT_LOG_SERVICE = r'''"""Append-only audit trail shared by every service."""

import json
import logging
from typing import Any, Optional

from app.config.database import db

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = None


class AuditLogService:
    async def log(self, user_id: Optional[str], action: str, entity_type: str,
                  entity_id: str, changes: Optional[dict[str, Any]] = None,
                  ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> None:
        await db.execute(
            """
            INSERT INTO audit_logs (user_id, action, entity_type, entity_id, changes, ip_address, user_agent)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            """,
            user_id, action, entity_type, entity_id,
            json.dumps(changes or {}, default=str), ip_address, user_agent,
        )
        logger.debug("audit %s %s:%s by %s", action, entity_type, entity_id, user_id or "system")

    async def history(self, entity_type: str, entity_id: str, limit: int = 50) -> list[dict[str, Any]]:
        rows = await db.fetch(
            """
            SELECT * FROM audit_logs
            WHERE entity_type = $1 AND entity_id = $2
            ORDER BY created_at DESC
            LIMIT $3
            """,
            entity_type, entity_id, limit,
        )
        return [dict(r) for r in rows]


audit_log_service = AuditLogService()
'''

# ---------------------------------------------------------------------
# TASK LIFECYCLE
# ---------------------------------------------------------------------
TASK_SERVICE = r'''"""Task lifecycle: create, assign, complete, escalate and delete."""

import json
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel

from app.config.database import db
from app.services.audit_log_service import SYSTEM_ACTOR, audit_log_service
from app.services.errors import NotFoundError, PermissionDeniedError, RuleViolationError
from app.services.notification_service import notification_service


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    READY = "ready"
    BLOCKED = "blocked"
    COMPLETED = "completed"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class CreateTaskData(BaseModel):
    title: str
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    parent_task_id: Optional[str] = None
    dependencies: list[str] = []


MAX_TITLE_LENGTH = 255


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_open(status: TaskStatus) -> bool:
    match status:
        case TaskStatus.COMPLETED:
            return False
        case TaskStatus.PENDING | TaskStatus.IN_PROGRESS | TaskStatus.READY | TaskStatus.BLOCKED:
            return True


def overdue_escalation(priority: TaskPriority) -> Optional[TaskPriority]:
    """Priority an overdue task is raised to, or None when it stays put."""
    match priority:
        case TaskPriority.HIGH:
            return TaskPriority.CRITICAL
        case TaskPriority.LOW | TaskPriority.MEDIUM | TaskPriority.CRITICAL:
            return None


def notifies_stakeholders(priority: TaskPriority) -> bool:
    match priority:
        case TaskPriority.CRITICAL:
            return True
        case TaskPriority.LOW | TaskPriority.MEDIUM | TaskPriority.HIGH:
            return False


class TaskService:
    async def create_task(self, user_id: str, data: CreateTaskData) -> dict[str, Any]:
        self._validate(data)

        row = await db.fetchrow(
            """
            INSERT INTO tasks (title, description, status, priority, user_id, assigned_to,
                               parent_task_id, dependencies, due_date)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING *
            """,
            data.title.strip(), data.description, TaskStatus.PENDING.value, data.priority.value,
            user_id, data.assigned_to, data.parent_task_id,
            json.dumps(data.dependencies), data.due_date,
        )
        task = dict(row)

        await audit_log_service.log(user_id, "task_created", "task", task["id"],
                                    data.model_dump(mode="json"))

        if data.assigned_to and data.assigned_to != user_id:
            await notification_service.notify_task_assigned(data.assigned_to, task)
        return task

    async def assign_task(self, task_id: str, assigned_to: str, assigned_by: str) -> dict[str, Any]:
        task = await self._get(task_id)

        if assigned_by not in (task["user_id"], task["assigned_to"]):
            raise PermissionDeniedError("You do not have permission to assign this task")
        if assigned_to == task["user_id"] == assigned_by:
            raise RuleViolationError("Cannot assign task to yourself as the creator")

        target = await db.fetchrow("SELECT id, is_active FROM users WHERE id = $1", assigned_to)
        if target is None or not target["is_active"]:
            raise NotFoundError("Target user not found or inactive")

        previous = task["assigned_to"]
        updated = dict(await db.fetchrow(
            "UPDATE tasks SET assigned_to = $2, updated_at = $3 WHERE id = $1 RETURNING *",
            task_id, assigned_to, _now(),
        ))

        await audit_log_service.log(assigned_by, "task_assigned", "task", task_id,
                                    {"previous_assignee": previous, "new_assignee": assigned_to})
        await notification_service.notify_task_assigned(assigned_to, updated)
        if previous and previous != assigned_to:
            await notification_service.notify_task_unassigned(previous, updated)
        return updated

    async def complete_task(self, task_id: str, user_id: str) -> dict[str, Any]:
        task = await self._get(task_id)

        if user_id not in (task["user_id"], task["assigned_to"]):
            raise PermissionDeniedError("You do not have permission to complete this task")

        subtasks = await db.fetch(
            "SELECT id, status FROM tasks WHERE parent_task_id = $1 AND deleted_at IS NULL",
            task_id,
        )
        incomplete = [s for s in subtasks if is_open(TaskStatus(s["status"]))]
        if incomplete:
            raise RuleViolationError(f"Complete all {len(incomplete)} subtask(s) first")

        now = _now()
        updated = dict(await db.fetchrow(
            """
            UPDATE tasks SET status = $2, completed_at = $3, updated_at = $3
            WHERE id = $1 RETURNING *
            """,
            task_id, TaskStatus.COMPLETED.value, now,
        ))

        await audit_log_service.log(user_id, "task_completed", "task", task_id,
                                    {"status": TaskStatus.COMPLETED.value})
        if task["user_id"] != user_id:
            await notification_service.notify_task_completed(task["user_id"], updated)

        await self._update_user_statistics(user_id)
        await self._unblock_dependents(task_id)
        return updated

    async def update_priority(self, task_id: str, priority: TaskPriority, user_id: str) -> dict[str, Any]:
        task = await self._get(task_id)

        if user_id not in (task["user_id"], task["assigned_to"]):
            raise PermissionDeniedError("You do not have permission to update this task")

        previous = task["priority"]
        updated = dict(await db.fetchrow(
            "UPDATE tasks SET priority = $2, updated_at = $3 WHERE id = $1 RETURNING *",
            task_id, priority.value, _now(),
        ))

        await audit_log_service.log(user_id, "task_priority_updated", "task", task_id,
                                    {"previous_priority": previous, "new_priority": priority.value})
        if notifies_stakeholders(priority):
            await notification_service.notify_task_escalated(updated, "Priority escalated to critical")
        return updated

    async def check_escalation(self, task_id: str) -> bool:
        """Raises an overdue high-priority task to critical. Returns True if it did."""
        row = await db.fetchrow("SELECT * FROM tasks WHERE id = $1 AND deleted_at IS NULL", task_id)
        if row is None:
            return False
        task = dict(row)

        now = _now()
        overdue = task["due_date"] is not None and task["due_date"] < now
        target = overdue_escalation(TaskPriority(task["priority"]))
        if not (overdue and target and is_open(TaskStatus(task["status"]))):
            return False

        async with db.transaction() as conn:
            await conn.execute(
                "UPDATE tasks SET priority = $2, updated_at = $3 WHERE id = $1",
                task_id, target.value, now,
            )
            await conn.execute(
                "INSERT INTO comments (task_id, user_id, content) VALUES ($1, $2, $3)",
                task_id, task["user_id"],
                "Auto-escalated to critical priority due to overdue status",
            )

        await notification_service.notify_task_escalated(task, "Task is overdue and has been escalated")
        await audit_log_service.log(SYSTEM_ACTOR, "task_auto_escalated", "task", task_id,
                                    {"priority": target.value, "reason": "overdue"})
        return True

    async def delete_task(self, task_id: str, user_id: str) -> None:
        task = await self._get(task_id)

        if task["user_id"] != user_id:
            raise PermissionDeniedError("Only the task creator can delete this task")

        dependents = await self._dependents(task_id)
        if dependents:
            raise RuleViolationError(f"Cannot delete task with {len(dependents)} dependent task(s)")

        now = _now()
        await db.execute("UPDATE tasks SET deleted_at = $2, updated_at = $2 WHERE id = $1", task_id, now)
        await audit_log_service.log(user_id, "task_deleted", "task", task_id, {"deleted_at": now})

        if task["assigned_to"]:
            await notification_service.notify_task_deleted(task["assigned_to"], task)

    async def get_tasks_due_tomorrow(self) -> list[dict[str, Any]]:
        start = _now().replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=1)
        end = start + timedelta(days=1)
        rows = await db.fetch(
            """
            SELECT * FROM tasks
            WHERE due_date >= $1 AND due_date < $2 AND status <> $3 AND deleted_at IS NULL
            """,
            start, end, TaskStatus.COMPLETED.value,
        )
        return [dict(r) for r in rows]

    async def get_overdue_tasks(self) -> list[dict[str, Any]]:
        rows = await db.fetch(
            """
            SELECT * FROM tasks
            WHERE due_date < $1 AND status <> $2 AND deleted_at IS NULL
            ORDER BY due_date
            """,
            _now(), TaskStatus.COMPLETED.value,
        )
        return [dict(r) for r in rows]

    # -----------------------------------------------------------------
    async def _get(self, task_id: str) -> dict[str, Any]:
        row = await db.fetchrow("SELECT * FROM tasks WHERE id = $1 AND deleted_at IS NULL", task_id)
        if row is None:
            raise NotFoundError("Task not found")
        return dict(row)

    async def _dependents(self, task_id: str) -> list[dict[str, Any]]:
        rows = await db.fetch(
            "SELECT * FROM tasks WHERE dependencies ? $1 AND deleted_at IS NULL",
            str(task_id),
        )
        return [dict(r) for r in rows]

    def _validate(self, data: CreateTaskData) -> None:
        if not data.title or not data.title.strip():
            raise RuleViolationError("Task title is required")
        if len(data.title) > MAX_TITLE_LENGTH:
            raise RuleViolationError("Task title must be less than 255 characters")
        if data.due_date is not None and data.due_date.replace(tzinfo=None) < _now():
            raise RuleViolationError("Due date cannot be in the past")

    async def _update_user_statistics(self, user_id: str) -> None:
        count = await db.fetchval(
            "SELECT COUNT(*) FROM tasks WHERE assigned_to = $1 AND status = $2 AND deleted_at IS NULL",
            user_id, TaskStatus.COMPLETED.value,
        )
        await db.execute("UPDATE users SET total_completed_tasks = $2 WHERE id = $1", user_id, count)

    async def _unblock_dependents(self, task_id: str) -> None:
        for dependent in await self._dependents(task_id):
            if not await self._dependencies_completed(dependent):
                continue
            await db.execute(
                "UPDATE tasks SET status = $2, updated_at = $3 WHERE id = $1",
                dependent["id"], TaskStatus.READY.value, _now(),
            )
            if dependent["assigned_to"]:
                await notification_service.notify_task_unblocked(dependent["assigned_to"], dependent)

    async def _dependencies_completed(self, task: dict[str, Any]) -> bool:
        deps = task["dependencies"] or []
        if isinstance(deps, str):
            deps = json.loads(deps)
        if not deps:
            return True
        rows = await db.fetch("SELECT status FROM tasks WHERE id = ANY($1::uuid[])", deps)
        return all(not is_open(TaskStatus(r["status"])) for r in rows)


task_service = TaskService()
'''

# ---------------------------------------------------------------------
# SHARING / PERMISSIONS
# ---------------------------------------------------------------------
SHARING_SERVICE = r'''"""Task sharing with a view < comment < edit permission ladder."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Optional

from app.config.database import db
from app.services.audit_log_service import audit_log_service
from app.services.errors import NotFoundError, PermissionDeniedError
from app.services.notification_service import notification_service


class SharePermission(StrEnum):
    VIEW = "view"
    COMMENT = "comment"
    EDIT = "edit"


class CollaboratorRole(StrEnum):
    OWNER = "owner"
    ASSIGNEE = "assignee"
    SHARED = "shared"


def permission_level(permission: SharePermission) -> int:
    match permission:
        case SharePermission.VIEW:
            return 1
        case SharePermission.COMMENT:
            return 2
        case SharePermission.EDIT:
            return 3


def grants(held: SharePermission, required: SharePermission) -> bool:
    return permission_level(held) >= permission_level(required)


@dataclass
class TaskCollaborator:
    user_id: str
    name: str
    email: str
    role: CollaboratorRole
    permission: SharePermission


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SharingService:
    async def share_task(self, task_id: str, shared_by: str, user_ids: list[str],
                         permission: SharePermission = SharePermission.VIEW) -> None:
        task = await self._get_task(task_id)

        if shared_by not in (task["user_id"], task["assigned_to"]):
            raise PermissionDeniedError("You do not have permission to share this task")

        found = await db.fetch("SELECT id FROM users WHERE id = ANY($1::uuid[])", user_ids)
        if len(found) != len(set(user_ids)):
            raise NotFoundError("One or more users not found")

        for user_id in user_ids:
            existing = await self._find_share(task_id, user_id)
            if existing is not None:
                if existing["permission"] != permission.value:
                    await db.execute(
                        "UPDATE task_shares SET permission = $2, updated_at = $3 WHERE id = $1",
                        existing["id"], permission.value, _now(),
                    )
                continue

            await db.execute(
                """
                INSERT INTO task_shares (task_id, user_id, permission, shared_by)
                VALUES ($1, $2, $3, $4)
                """,
                task_id, user_id, permission.value, shared_by,
            )
            await notification_service.notify_task_shared(user_id, task, shared_by, permission.value)
            await audit_log_service.log(shared_by, "task_shared", "task", task_id,
                                        {"shared_with": user_id, "permission": permission.value})

    async def revoke_share(self, task_id: str, user_id: str, revoked_by: str) -> None:
        task = await self._get_task(task_id)

        if task["user_id"] != revoked_by:
            raise PermissionDeniedError("Only the task owner can revoke sharing")

        share = await self._find_share(task_id, user_id)
        if share is None:
            raise NotFoundError("Share not found")

        await db.execute("DELETE FROM task_shares WHERE id = $1", share["id"])
        await notification_service.notify_share_revoked(user_id, task)
        await audit_log_service.log(revoked_by, "share_revoked", "task", task_id,
                                    {"revoked_from": user_id})

    async def can_access_task(self, task_id: str, user_id: str) -> bool:
        task = await db.fetchrow(
            "SELECT user_id, assigned_to FROM tasks WHERE id = $1 AND deleted_at IS NULL", task_id
        )
        if task is None:
            return False
        if user_id in (task["user_id"], task["assigned_to"]):
            return True
        return await self._find_share(task_id, user_id) is not None

    async def has_permission(self, task_id: str, user_id: str, required: SharePermission) -> bool:
        task = await db.fetchrow(
            "SELECT user_id, assigned_to FROM tasks WHERE id = $1 AND deleted_at IS NULL", task_id
        )
        if task is None:
            return False

        # Owner and assignee implicitly hold edit
        if user_id in (task["user_id"], task["assigned_to"]):
            return grants(SharePermission.EDIT, required)

        share = await self._find_share(task_id, user_id)
        if share is None:
            return False
        return grants(SharePermission(share["permission"]), required)

    async def get_task_collaborators(self, task_id: str) -> list[TaskCollaborator]:
        task = await self._get_task(task_id)
        collaborators: list[TaskCollaborator] = []

        owner = await self._get_user(task["user_id"])
        if owner:
            collaborators.append(TaskCollaborator(owner["id"], owner["name"], owner["email"],
                                                  CollaboratorRole.OWNER, SharePermission.EDIT))

        if task["assigned_to"] and task["assigned_to"] != task["user_id"]:
            assignee = await self._get_user(task["assigned_to"])
            if assignee:
                collaborators.append(TaskCollaborator(assignee["id"], assignee["name"], assignee["email"],
                                                      CollaboratorRole.ASSIGNEE, SharePermission.EDIT))

        rows = await db.fetch(
            """
            SELECT u.id, u.name, u.email, s.permission
            FROM task_shares s JOIN users u ON u.id = s.user_id
            WHERE s.task_id = $1
            ORDER BY s.created_at
            """,
            task_id,
        )
        for row in rows:
            collaborators.append(TaskCollaborator(row["id"], row["name"], row["email"],
                                                  CollaboratorRole.SHARED,
                                                  SharePermission(row["permission"])))
        return collaborators

    async def _get_task(self, task_id: str) -> dict[str, Any]:
        row = await db.fetchrow("SELECT * FROM tasks WHERE id = $1 AND deleted_at IS NULL", task_id)
        if row is None:
            raise NotFoundError("Task not found")
        return dict(row)

    async def _get_user(self, user_id: str) -> Optional[dict[str, Any]]:
        row = await db.fetchrow("SELECT id, name, email FROM users WHERE id = $1", user_id)
        return dict(row) if row else None

    async def _find_share(self, task_id: str, user_id: str) -> Optional[dict[str, Any]]:
        row = await db.fetchrow(
            "SELECT * FROM task_shares WHERE task_id = $1 AND user_id = $2", task_id, user_id
        )
        return dict(row) if row else None


sharing_service = SharingService()
'''

# ---------------------------------------------------------------------
# NOTIFICATIONS
# ---------------------------------------------------------------------
NOTIFICATION_SERVICE = r'''"""Notification dispatch: persist a record, then enqueue delivery."""

import html
from enum import StrEnum
from typing import Any, Optional

from app.config.database import db
from app.jobs.queue import QueueHelpers
from app.services.errors import NotFoundError


class NotificationType(StrEnum):
    TASK_ASSIGNED = "task_assigned"
    TASK_UNASSIGNED = "task_unassigned"
    TASK_COMPLETED = "task_completed"
    TASK_ESCALATED = "task_escalated"
    TASK_SHARED = "task_shared"
    SHARE_REVOKED = "share_revoked"
    TASK_DELETED = "task_deleted"
    TASK_UNBLOCKED = "task_unblocked"
    COMMENT_ADDED = "comment_added"


def notification_title(kind: NotificationType) -> str:
    match kind:
        case NotificationType.TASK_ASSIGNED:
            return "New Task Assigned"
        case NotificationType.TASK_UNASSIGNED:
            return "Task Unassigned"
        case NotificationType.TASK_COMPLETED:
            return "Task Completed"
        case NotificationType.TASK_ESCALATED:
            return "Task Escalated"
        case NotificationType.TASK_SHARED:
            return "Task Shared With You"
        case NotificationType.SHARE_REVOKED:
            return "Task Share Revoked"
        case NotificationType.TASK_DELETED:
            return "Task Deleted"
        case NotificationType.TASK_UNBLOCKED:
            return "Task Ready"
        case NotificationType.COMMENT_ADDED:
            return "New Comment"


class NotificationService:
    async def notify_task_assigned(self, user_id: str, task: dict[str, Any]) -> None:
        await self.create_notification(user_id, NotificationType.TASK_ASSIGNED,
                                       f'You have been assigned to: "{task["title"]}"', task["id"])
        email = await db.fetchval("SELECT email FROM users WHERE id = $1", user_id)
        if email:
            await QueueHelpers.add_email_job(email, "New Task Assigned to You",
                                             self._task_assigned_email(task))

    async def notify_task_unassigned(self, user_id: str, task: dict[str, Any]) -> None:
        await self.create_notification(user_id, NotificationType.TASK_UNASSIGNED,
                                       f'You have been unassigned from: "{task["title"]}"', task["id"])

    async def notify_task_completed(self, user_id: str, task: dict[str, Any]) -> None:
        await self.create_notification(user_id, NotificationType.TASK_COMPLETED,
                                       f'Your task "{task["title"]}" has been completed', task["id"])

    async def notify_task_escalated(self, task: dict[str, Any], reason: str) -> None:
        if task.get("assigned_to"):
            await self.create_notification(task["assigned_to"], NotificationType.TASK_ESCALATED,
                                           f'Task "{task["title"]}" has been escalated: {reason}', task["id"])
        if task.get("user_id") and task["user_id"] != task.get("assigned_to"):
            await self.create_notification(task["user_id"], NotificationType.TASK_ESCALATED,
                                           f'Your task "{task["title"]}" has been escalated: {reason}',
                                           task["id"])

    async def notify_task_shared(self, user_id: str, task: dict[str, Any], shared_by: str,
                                 permission: str) -> None:
        sharer = await db.fetchval("SELECT name FROM users WHERE id = $1", shared_by)
        await self.create_notification(
            user_id, NotificationType.TASK_SHARED,
            f'{sharer or "Someone"} shared a task with you: "{task["title"]}" ({permission} access)',
            task["id"],
        )

    async def notify_share_revoked(self, user_id: str, task: dict[str, Any]) -> None:
        await self.create_notification(user_id, NotificationType.SHARE_REVOKED,
                                       f'Your access to task "{task["title"]}" has been revoked', task["id"])

    async def notify_task_deleted(self, user_id: str, task: dict[str, Any]) -> None:
        await self.create_notification(user_id, NotificationType.TASK_DELETED,
                                       f'Task "{task["title"]}" has been deleted', task["id"])

    async def notify_task_unblocked(self, user_id: str, task: dict[str, Any]) -> None:
        await self.create_notification(user_id, NotificationType.TASK_UNBLOCKED,
                                       f'Task "{task["title"]}" is now ready to work on', task["id"])

    async def notify_new_comment(self, user_id: str, task: dict[str, Any], commenter_id: str) -> None:
        name = await db.fetchval("SELECT name FROM users WHERE id = $1", commenter_id)
        await self.create_notification(user_id, NotificationType.COMMENT_ADDED,
                                       f'{name or "Someone"} commented on "{task["title"]}"', task["id"])

    async def create_notification(self, user_id: str, kind: NotificationType, message: str,
                                  reference_id: Optional[str] = None) -> None:
        """The single creation path: store the record, then queue real-time delivery."""
        await db.execute(
            """
            INSERT INTO notifications (user_id, title, message, type, reference_id, is_read)
            VALUES ($1, $2, $3, $4, $5, false)
            """,
            user_id, notification_title(kind), message, kind.value, reference_id,
        )
        await QueueHelpers.add_notification_job(user_id, kind.value, message,
                                                str(reference_id) if reference_id else None)

    async def mark_as_read(self, notification_id: str, user_id: str) -> None:
        owner = await db.fetchval("SELECT user_id FROM notifications WHERE id = $1", notification_id)
        if owner is None or str(owner) != str(user_id):
            raise NotFoundError("Notification not found or access denied")
        await db.execute("UPDATE notifications SET is_read = true WHERE id = $1", notification_id)

    async def mark_all_as_read(self, user_id: str) -> None:
        await db.execute(
            "UPDATE notifications SET is_read = true WHERE user_id = $1 AND is_read = false", user_id
        )

    async def get_unread(self, user_id: str) -> list[dict[str, Any]]:
        rows = await db.fetch(
            """
            SELECT * FROM notifications
            WHERE user_id = $1 AND is_read = false
            ORDER BY created_at DESC
            """,
            user_id,
        )
        return [dict(r) for r in rows]

    def _task_assigned_email(self, task: dict[str, Any]) -> str:
        due = task.get("due_date")
        return (
            "<!DOCTYPE html><html><body style=\"font-family: Arial, sans-serif;\">"
            "<h2>New Task Assigned</h2><p>You have been assigned a new task:</p>"
            f"<h3>{html.escape(task['title'])}</h3>"
            f"<p>{html.escape(task.get('description') or 'No description provided')}</p>"
            f"<p><strong>Priority:</strong> {task.get('priority', 'medium')}</p>"
            f"<p><strong>Due Date:</strong> {due.date().isoformat() if due else 'Not set'}</p>"
            "<p>Please review and take necessary action.</p></body></html>"
        )


notification_service = NotificationService()
'''

# ---------------------------------------------------------------------
# THREADED COMMENTS
# ---------------------------------------------------------------------
COMMENT_SERVICE = r'''"""Threaded task comments."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from app.config.database import db
from app.services.audit_log_service import audit_log_service
from app.services.errors import NotFoundError, PermissionDeniedError, RuleViolationError
from app.services.notification_service import notification_service
from app.services.sharing_service import SharePermission, sharing_service

MAX_COMMENT_LENGTH = 5000
DELETED_PLACEHOLDER = "[Comment deleted]"


@dataclass
class ThreadedComment:
    id: str
    task_id: str
    user_id: str
    content: str
    created_at: datetime
    parent_comment_id: Optional[str] = None
    is_edited: bool = False
    replies: list["ThreadedComment"] = field(default_factory=list)


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def build_thread(rows: list[dict[str, Any]]) -> list[ThreadedComment]:
    """Nests replies under their parents; every level is sorted oldest first."""
    by_id: dict[Any, ThreadedComment] = {}
    for row in rows:
        by_id[row["id"]] = ThreadedComment(
            id=row["id"], task_id=row["task_id"], user_id=row["user_id"], content=row["content"],
            created_at=row["created_at"], parent_comment_id=row.get("parent_comment_id"),
            is_edited=row.get("is_edited", False),
        )

    roots: list[ThreadedComment] = []
    for comment in by_id.values():
        parent = by_id.get(comment.parent_comment_id) if comment.parent_comment_id else None
        if parent is not None:
            parent.replies.append(comment)
        elif comment.parent_comment_id is None:
            roots.append(comment)

    def sort_level(level: list[ThreadedComment]) -> None:
        level.sort(key=lambda c: c.created_at)
        for c in level:
            sort_level(c.replies)

    sort_level(roots)
    return roots


class CommentService:
    async def add_comment(self, task_id: str, user_id: str, content: str,
                          parent_comment_id: Optional[str] = None) -> dict[str, Any]:
        task = await db.fetchrow("SELECT * FROM tasks WHERE id = $1 AND deleted_at IS NULL", task_id)
        if task is None:
            raise NotFoundError("Task not found")
        task = dict(task)

        if not await sharing_service.has_permission(task_id, user_id, SharePermission.COMMENT):
            raise PermissionDeniedError("You do not have permission to comment on this task")

        self._validate(content)

        parent = None
        if parent_comment_id:
            parent = await db.fetchrow("SELECT * FROM comments WHERE id = $1", parent_comment_id)
            if parent is None or str(parent["task_id"]) != str(task_id):
                raise NotFoundError("Parent comment not found")

        comment = dict(await db.fetchrow(
            """
            INSERT INTO comments (task_id, user_id, content, parent_comment_id)
            VALUES ($1, $2, $3, $4)
            RETURNING *
            """,
            task_id, user_id, content.strip(), parent_comment_id,
        ))
        await db.execute("UPDATE tasks SET last_activity_at = $2 WHERE id = $1", task_id, _now())
        await audit_log_service.log(user_id, "comment_added", "task", task_id,
                                    {"comment_id": comment["id"]})

        await self._notify_participants(task, user_id)
        if parent is not None and parent["user_id"] != user_id:
            await notification_service.notify_new_comment(parent["user_id"], task, user_id)
        return comment

    async def edit_comment(self, comment_id: str, user_id: str, new_content: str) -> dict[str, Any]:
        comment = await self._get(comment_id)

        if str(comment["user_id"]) != str(user_id):
            raise PermissionDeniedError("You can only edit your own comments")

        self._validate(new_content)
        updated = dict(await db.fetchrow(
            """
            UPDATE comments SET content = $2, is_edited = true, updated_at = $3
            WHERE id = $1 RETURNING *
            """,
            comment_id, new_content.strip(), _now(),
        ))
        await audit_log_service.log(user_id, "comment_edited", "comment", comment_id,
                                    {"previous_content": comment["content"], "new_content": new_content})
        return updated

    async def delete_comment(self, comment_id: str, user_id: str) -> None:
        comment = await self._get(comment_id)
        task = await db.fetchrow("SELECT user_id FROM tasks WHERE id = $1", comment["task_id"])
        if task is None:
            raise NotFoundError("Task not found")

        if user_id not in (str(comment["user_id"]), str(task["user_id"])):
            raise PermissionDeniedError("You do not have permission to delete this comment")

        replies = await db.fetchval(
            "SELECT COUNT(*) FROM comments WHERE parent_comment_id = $1", comment_id
        )
        now = _now()
        if replies:
            # Keep the node so the thread below it stays attached
            await db.execute(
                "UPDATE comments SET content = $2, deleted_at = $3 WHERE id = $1",
                comment_id, DELETED_PLACEHOLDER, now,
            )
        else:
            await db.execute("DELETE FROM comments WHERE id = $1", comment_id)

        await audit_log_service.log(user_id, "comment_deleted", "comment", comment_id,
                                    {"deleted_at": now, "soft": bool(replies)})

    async def get_task_comments(self, task_id: str, user_id: str) -> list[ThreadedComment]:
        if not await sharing_service.can_access_task(task_id, user_id):
            raise PermissionDeniedError("You do not have access to this task")
        rows = await db.fetch("SELECT * FROM comments WHERE task_id = $1", task_id)
        return build_thread([dict(r) for r in rows])

    async def _get(self, comment_id: str) -> dict[str, Any]:
        row = await db.fetchrow("SELECT * FROM comments WHERE id = $1", comment_id)
        if row is None:
            raise NotFoundError("Comment not found")
        return dict(row)

    def _validate(self, content: str) -> None:
        if not content or not content.strip():
            raise RuleViolationError("Comment content is required")
        if len(content) > MAX_COMMENT_LENGTH:
            raise RuleViolationError("Comment is too long (max 5000 characters)")

    async def _notify_participants(self, task: dict[str, Any], commenter_id: str) -> None:
        for collaborator in await sharing_service.get_task_collaborators(task["id"]):
            if str(collaborator.user_id) != str(commenter_id):
                await notification_service.notify_new_comment(collaborator.user_id, task, commenter_id)


comment_service = CommentService()
'''

# ---------------------------------------------------------------------
# FILE ATTACHMENTS
# ---------------------------------------------------------------------
FILE_SERVICE = r'''"""Task attachments: validation, storage and post-processing."""

import logging
import os
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.config.database import db
from app.jobs.queue import QueueHelpers
from app.services.audit_log_service import audit_log_service
from app.services.errors import NotFoundError, PermissionDeniedError, RuleViolationError
from app.services.sharing_service import SharePermission, sharing_service

logger = logging.getLogger(__name__)

UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", "uploads"))
MAX_FILE_SIZE = 50 * 1024 * 1024
MAX_NAME_LENGTH = 255
ALLOWED_MIME_TYPES = frozenset({
    "image/jpeg", "image/png", "image/gif", "image/webp",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain", "text/csv",
    "application/zip", "application/x-rar-compressed",
})


@dataclass
class FileUpload:
    original_name: str
    mime_type: str
    size: int
    data: bytes


def validate_upload(upload: FileUpload) -> None:
    if upload.size > MAX_FILE_SIZE:
        raise RuleViolationError(f"File too large. Maximum size is {MAX_FILE_SIZE // (1024 * 1024)}MB")
    if upload.mime_type not in ALLOWED_MIME_TYPES:
        raise RuleViolationError(f"File type not allowed: {upload.mime_type}")
    if not upload.original_name or len(upload.original_name) > MAX_NAME_LENGTH:
        raise RuleViolationError("Invalid file name")


class FileService:
    def __init__(self, upload_dir: Path = UPLOAD_DIR):
        self.upload_dir = upload_dir
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    async def upload_file(self, task_id: str, user_id: str, upload: FileUpload) -> dict[str, Any]:
        task = await db.fetchrow("SELECT id FROM tasks WHERE id = $1 AND deleted_at IS NULL", task_id)
        if task is None:
            raise NotFoundError("Task not found")

        if not await sharing_service.has_permission(task_id, user_id, SharePermission.EDIT):
            raise PermissionDeniedError("You do not have permission to upload files to this task")

        validate_upload(upload)

        stored_name = f"{secrets.token_hex(16)}{Path(upload.original_name).suffix}"
        (self.upload_dir / stored_name).write_bytes(upload.data)

        attachment = dict(await db.fetchrow(
            """
            INSERT INTO attachments (task_id, user_id, file_name, file_path, file_size, mime_type)
            VALUES ($1, $2, $3, $4, $5, $6)
            RETURNING *
            """,
            task_id, user_id, upload.original_name, stored_name, upload.size, upload.mime_type,
        ))

        await QueueHelpers.add_file_processing_job(str(attachment["id"]), stored_name, user_id)
        await audit_log_service.log(user_id, "file_uploaded", "task", task_id,
                                    {"file_name": upload.original_name, "file_size": upload.size})
        return attachment

    async def get_file(self, attachment_id: str, user_id: str) -> tuple[Path, str]:
        attachment = await self._get(attachment_id)

        if not await sharing_service.can_access_task(attachment["task_id"], user_id):
            raise PermissionDeniedError("You do not have access to this file")

        full_path = self.upload_dir / attachment["file_path"]
        if not full_path.exists():
            raise NotFoundError("File not found on disk")
        return full_path, attachment["file_name"]

    async def delete_file(self, attachment_id: str, user_id: str) -> None:
        attachment = await self._get(attachment_id)
        task = await db.fetchrow("SELECT user_id FROM tasks WHERE id = $1", attachment["task_id"])
        if task is None:
            raise NotFoundError("Task not found")

        if user_id not in (str(attachment["user_id"]), str(task["user_id"])):
            raise PermissionDeniedError("You do not have permission to delete this file")

        full_path = self.upload_dir / attachment["file_path"]
        try:
            full_path.unlink()
        except FileNotFoundError:
            logger.warning("Attachment %s already missing on disk: %s", attachment_id, full_path)

        await db.execute("DELETE FROM attachments WHERE id = $1", attachment_id)
        await audit_log_service.log(user_id, "file_deleted", "task", attachment["task_id"],
                                    {"file_name": attachment["file_name"], "attachment_id": attachment_id})

    async def get_task_attachments(self, task_id: str, user_id: str) -> list[dict[str, Any]]:
        if not await sharing_service.can_access_task(task_id, user_id):
            raise PermissionDeniedError("You do not have access to this task")
        rows = await db.fetch(
            "SELECT * FROM attachments WHERE task_id = $1 ORDER BY created_at", task_id
        )
        return [dict(r) for r in rows]

    async def process_file_upload(self, file_id: str, file_path: str, user_id: str) -> None:
        """Post-upload step run by the queue worker."""
        logger.info("Processing file %s (%s) for %s", file_id, file_path, user_id)
        await db.execute(
            "UPDATE attachments SET processed = true, processed_at = $2 WHERE id = $1",
            file_id, datetime.now(timezone.utc).replace(tzinfo=None),
        )

    async def _get(self, attachment_id: str) -> dict[str, Any]:
        row = await db.fetchrow("SELECT * FROM attachments WHERE id = $1", attachment_id)
        if row is None:
            raise NotFoundError("Attachment not found")
        return dict(row)


file_service = FileService()


async def process_file_upload(file_id: str, file_path: str, user_id: str) -> None:
    await file_service.process_file_upload(file_id, file_path, user_id)
'''
