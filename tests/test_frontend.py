import ast

import pytest

from briefsmith.agents.frontend import FrontendAgent
from briefsmith.core.schemas import FileType, TaskType
from briefsmith.synthesis.frontend import FrontendSynthesizer


def _names(files) -> list[str]:
    return [f.path.rsplit("/", 1)[1] for f in files]


def test_auth_title_yields_forms(make_task) -> None:
    files = FrontendSynthesizer().synthesize(make_task("Build Modern Authentication UI Components"))
    assert _names(files) == ["auth_forms.py", "api_client.py"]
    forms = files[0].content
    assert "def login_form()" in forms
    assert "def register_form()" in forms
    assert all(f.type == FileType.COMPONENT for f in files)


def test_task_title_yields_board_and_auth_dependency(make_task) -> None:
    files = FrontendSynthesizer().synthesize(make_task("Create Interactive Task Management Dashboard"))
    assert _names(files) == ["auth_forms.py", "task_card.py", "task_board.py", "api_client.py"]
    assert all(f.path.startswith("frontend/components/") for f in files)


def test_share_title(make_task) -> None:
    files = FrontendSynthesizer().synthesize(make_task("Sharing dialog"))
    assert "share_dialog.py" in _names(files)


def test_description_is_ignored(make_task) -> None:
    task = make_task("Build Collaborative User Interface", "login, tasks and sharing everywhere")
    assert FrontendSynthesizer().synthesize(task) == []


def test_components_parse(make_task) -> None:
    for file in FrontendSynthesizer().synthesize(make_task("Shared task list with login")):
        ast.parse(file.content)


@pytest.mark.asyncio
async def test_agent_succeeds_without_components(make_task) -> None:
    task = make_task("Responsive layout", "grid", type_=TaskType.FRONTEND)
    response = await FrontendAgent().execute(task)
    assert response.success
    assert response.files == []


@pytest.mark.asyncio
async def test_agent_returns_components(make_task) -> None:
    task = make_task("Todo board", "kanban", type_=TaskType.FRONTEND, id="fe")
    response = await FrontendAgent().execute(task)
    assert response.success
    assert response.task_id == "fe"
    assert "frontend/components/task_board.py" in [f.path for f in response.files]
