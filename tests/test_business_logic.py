import pytest

from briefsmith.core.schemas import FileType
from briefsmith.synthesis.business_logic import BusinessLogicSynthesizer, ServiceFamily


def _paths(files) -> list[str]:
    return [f.path for f in files]


def test_no_keyword_family_yields_no_files(make_task) -> None:
    files = BusinessLogicSynthesizer().synthesize(make_task("Setup Docker and CI/CD"))
    assert files == []


def test_task_family_pulls_in_notifications(make_task) -> None:
    files = BusinessLogicSynthesizer().synthesize(make_task("Task lifecycle"))
    paths = _paths(files)

    assert paths[:2] == ["app/services/task_service.py", "app/services/notification_service.py"]
    assert "app/services/audit_log_service.py" in paths
    assert "app/services/errors.py" in paths
    # notifications enqueue delivery jobs
    assert "app/jobs/queue.py" in paths
    assert all(f.type == FileType.OTHER for f in files)


def test_comment_family_closure(make_task) -> None:
    synth = BusinessLogicSynthesizer()
    task = make_task("Discussion threads")
    assert synth.detect_families(task) == [ServiceFamily.COMMENT]
    assert synth.resolve_families(synth.detect_families(task)) == [
        ServiceFamily.SHARING, ServiceFamily.NOTIFICATION, ServiceFamily.COMMENT,
    ]


def test_every_service_import_resolves(make_task) -> None:
    files = BusinessLogicSynthesizer().synthesize(
        make_task("Shared todo items", "comments, file uploads and reminders")
    )
    modules = {f.path[:-3].replace("/", ".") for f in files}

    for file in files:
        for line in file.content.splitlines():
            line = line.strip()
            if line.startswith("from app.services.") or line.startswith("from app.jobs."):
                module = line.split()[1]
                assert module in modules, f"{file.path} imports missing {module}"


def test_business_rules_present(make_task) -> None:
    files = {f.path: f.content for f in BusinessLogicSynthesizer().synthesize(
        make_task("Task sharing with comments and attachments")
    )}
    tasks = files["app/services/task_service.py"]
    sharing = files["app/services/sharing_service.py"]
    comments = files["app/services/comment_service.py"]
    uploads = files["app/services/file_service.py"]

    assert "class TaskStatus(StrEnum):" in tasks
    assert "class TaskPriority(StrEnum):" in tasks
    assert "match " in tasks
    assert "class SharePermission(StrEnum):" in sharing
    assert "def revoke_share" in sharing
    assert "def build_thread" in comments
    assert "[Comment deleted]" in comments
    assert "def validate_upload" in uploads


@pytest.mark.parametrize("text,family", [
    ("Build a todo list", ServiceFamily.TASK),
    ("Collaborate with the team", ServiceFamily.SHARING),
    ("Send alerts", ServiceFamily.NOTIFICATION),
    ("Collect feedback", ServiceFamily.COMMENT),
    ("Upload avatars", ServiceFamily.FILE),
])
def test_detection(make_task, text, family) -> None:
    assert family in BusinessLogicSynthesizer().detect_families(make_task(text))


def test_custom_root_rebases_imports(make_task) -> None:
    files = BusinessLogicSynthesizer(root="backend").synthesize(make_task("Task lifecycle"))
    assert all(f.path.startswith("backend/") for f in files)
    service = next(f for f in files if f.path.endswith("task_service.py"))
    assert "from backend.config.database import db" in service.content
    assert "from app." not in service.content


def test_custom_classifier_is_used(make_task) -> None:
    class Never:
        def matches(self, text, keywords) -> bool:
            return False

    assert BusinessLogicSynthesizer(classifier=Never()).synthesize(make_task("Task lifecycle")) == []
