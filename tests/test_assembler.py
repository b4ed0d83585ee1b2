import pytest

from briefsmith.core.schemas import FileType, GeneratedFile
from briefsmith.synthesis.assembler import ArtifactAssembler, rebase_imports


@pytest.mark.parametrize("path,expected", [
    ("src/controllers/task_controller.py", FileType.API),
    ("routes/tasks.py", FileType.API),
    ("app/models/user.py", FileType.SCHEMA),
    ("migrations/001_init.sql", FileType.SCHEMA),
    ("config/settings.py", FileType.CONFIG),
    ("pyproject.toml", FileType.CONFIG),
    ("frontend/components/task_card.py", FileType.COMPONENT),
    ("app/utils/helpers.py", FileType.OTHER),
])
def test_infer_type(path, expected) -> None:
    assert ArtifactAssembler().infer_type(path) == expected


@pytest.mark.parametrize("path,type_,expected", [
    ("task_controller.py", FileType.API, "app/controllers/task_controller.py"),
    ("src/routes/tasks.py", FileType.API, "app/routes/tasks.py"),
    ("user.py", FileType.SCHEMA, "app/models/user.py"),
    ("settings.py", FileType.CONFIG, "app/config/settings.py"),
    ("widget.py", FileType.COMPONENT, "app/components/widget.py"),
    ("helpers.py", FileType.OTHER, "app/utils/helpers.py"),
])
def test_normalize_rewrites_foreign_paths(path, type_, expected) -> None:
    file = GeneratedFile(path=path, content="x", type=type_)
    assert ArtifactAssembler().normalize(file, "app").path == expected


def test_normalize_keeps_rooted_paths() -> None:
    file = GeneratedFile(path="app/services/task_service.py", content="x")
    assert ArtifactAssembler().normalize(file, "app") is file


def test_normalize_cleans_rooted_paths() -> None:
    file = GeneratedFile(path="app/./jobs//queue.py", content="x")
    assert ArtifactAssembler().normalize(file, "app").path == "app/jobs/queue.py"


def test_merge_deduplicates_identical_files() -> None:
    a = GeneratedFile(path="app/jobs/queue.py", content="same")
    b = GeneratedFile(path="app/jobs/queue.py", content="same")
    assert ArtifactAssembler().merge([[a], [b]]) == [a]


def test_merge_renames_conflicting_files() -> None:
    first = GeneratedFile(path="app/utils/validation.py", content="one")
    second = GeneratedFile(path="app/utils/validation.py", content="two")
    third = GeneratedFile(path="app/utils/validation.py", content="three")

    merged = ArtifactAssembler().merge([[first], [second], [third]])
    assert [f.path for f in merged] == [
        "app/utils/validation.py",
        "app/utils/validation_2.py",
        "app/utils/validation_3.py",
    ]
    assert [f.content for f in merged] == ["one", "two", "three"]


def test_merge_output_paths_are_unique() -> None:
    lists = [
        [GeneratedFile(path=f"app/x/{n % 3}.py", content=str(n)) for n in range(6)],
        [GeneratedFile(path="app/x/0.py", content="0")],
    ]
    paths = [f.path for f in ArtifactAssembler().merge(lists)]
    assert len(paths) == len(set(paths))


def test_rebase_imports() -> None:
    source = "from app.config.database import db\nimport app.jobs.queue\n    from app.services import x\napp.thing = 1\n"
    rebased = rebase_imports(source, "backend")
    assert "from backend.config.database import db" in rebased
    assert "import backend.jobs.queue" in rebased
    assert "    from backend.services import x" in rebased
    assert "app.thing = 1" in rebased
    assert rebase_imports(source, "app") == source
