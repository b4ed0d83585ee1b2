API_CLIENT = r'''"""HTTP client shared by the component states."""

import os

import httpx

API_URL = os.getenv("API_URL", "http://localhost:8000")


def client(token: str = "") -> httpx.AsyncClient:
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=API_URL, headers=headers, timeout=15)
'''

AUTH_FORMS = r'''import reflex as rx

from frontend.components.api_client import client


class AuthState(rx.State):
    email: str = ""
    password: str = ""
    name: str = ""
    token: str = rx.LocalStorage("")
    error: str = ""
    is_loading: bool = False

    def set_email(self, value: str):
        self.email = value

    def set_password(self, value: str):
        self.password = value

    def set_name(self, value: str):
        self.name = value

    async def login(self):
        if not self.email or not self.password:
            self.error = "Email and password are required"
            return
        self.is_loading = True
        self.error = ""
        yield
        async with client() as http:
            response = await http.post("/auth/login", json={"email": self.email, "password": self.password})
        self.is_loading = False
        if response.status_code != 200:
            self.error = response.json().get("detail", "Login failed")
            return
        self.token = response.json()["access_token"]
        yield rx.redirect("/tasks")

    async def register(self):
        if len(self.password) < 8:
            self.error = "Password must be at least 8 characters"
            return
        self.is_loading = True
        self.error = ""
        yield
        async with client() as http:
            response = await http.post(
                "/auth/register", json={"email": self.email, "password": self.password, "name": self.name}
            )
        self.is_loading = False
        if response.status_code not in (200, 201):
            self.error = response.json().get("detail", "Registration failed")
            return
        yield rx.redirect("/login")

    def logout(self):
        self.token = ""
        return rx.redirect("/login")


def _field(label: str, **props) -> rx.Component:
    return rx.vstack(
        rx.text(label, font_weight="bold", size="2"),
        rx.input(width="100%", variant="soft", radius="full", **props),
        width="100%", spacing="2",
    )


def _error() -> rx.Component:
    return rx.cond(AuthState.error != "", rx.callout(AuthState.error, icon="triangle_alert", color_scheme="red"))


def login_form() -> rx.Component:
    return rx.card(
        rx.vstack(
            rx.heading("Sign in", size="6"),
            _error(),
            _field("Email", placeholder="you@example.com", value=AuthState.email, on_change=AuthState.set_email),
            _field("Password", type="password", value=AuthState.password, on_change=AuthState.set_password),
            rx.button("Sign in", on_click=AuthState.login, loading=AuthState.is_loading, width="100%"),
            rx.link("Create an account", href="/register"),
            spacing="4", padding="2em",
        ),
        width=["100%", "420px"],
    )


def register_form() -> rx.Component:
    return rx.card(
        rx.vstack(
            rx.heading("Create account", size="6"),
            _error(),
            _field("Name", value=AuthState.name, on_change=AuthState.set_name),
            _field("Email", value=AuthState.email, on_change=AuthState.set_email),
            _field("Password", type="password", value=AuthState.password, on_change=AuthState.set_password),
            rx.button("Register", on_click=AuthState.register, loading=AuthState.is_loading, width="100%"),
            rx.link("Already registered? Sign in", href="/login"),
            spacing="4", padding="2em",
        ),
        width=["100%", "420px"],
    )
'''

TASK_CARD = r'''import reflex as rx

PRIORITY_COLORS = {"low": "green", "medium": "amber", "high": "orange", "critical": "red"}


def priority_badge(priority) -> rx.Component:
    return rx.badge(
        priority,
        color_scheme=rx.match(priority, ("low", "green"), ("medium", "amber"), ("high", "orange"), "red"),
    )


def task_card(task: dict, on_complete, on_delete) -> rx.Component:
    return rx.card(
        rx.vstack(
            rx.hstack(
                rx.text(task["title"], font_weight="bold"),
                rx.spacer(),
                priority_badge(task["priority"]),
                width="100%",
            ),
            rx.text(task["description"], color="gray", size="2"),
            rx.hstack(
                rx.badge(task["status"], variant="outline"),
                rx.spacer(),
                rx.icon_button(rx.icon("check"), on_click=on_complete(task["id"]),
                               disabled=task["status"] == "completed", variant="soft"),
                rx.icon_button(rx.icon("trash-2"), on_click=on_delete(task["id"]),
                               color_scheme="red", variant="soft"),
                width="100%",
            ),
            spacing="2", align_items="start",
        ),
        width="100%",
    )
'''

TASK_BOARD = r'''import reflex as rx

from frontend.components.api_client import client
from frontend.components.auth_forms import AuthState
from frontend.components.task_card import task_card

COLUMNS = [("pending", "To do"), ("in_progress", "In progress"), ("completed", "Done")]


class TaskBoardState(rx.State):
    tasks: list[dict] = []
    new_title: str = ""
    new_priority: str = "medium"
    error: str = ""

    def set_new_title(self, value: str):
        self.new_title = value

    def set_new_priority(self, value: str):
        self.new_priority = value

    async def _token(self) -> str:
        auth = await self.get_state(AuthState)
        return auth.token

    async def load(self):
        async with client(await self._token()) as http:
            response = await http.get("/tasks")
        if response.status_code == 200:
            self.tasks = response.json()
        else:
            self.error = f"Could not load tasks ({response.status_code})"

    async def create(self):
        if not self.new_title.strip():
            return
        async with client(await self._token()) as http:
            response = await http.post("/tasks", json={"title": self.new_title, "priority": self.new_priority})
        if response.status_code in (200, 201):
            self.tasks.append(response.json())
            self.new_title = ""
        else:
            self.error = response.json().get("detail", "Could not create task")

    async def complete(self, task_id: str):
        async with client(await self._token()) as http:
            response = await http.post(f"/tasks/{task_id}/complete")
        if response.status_code == 200:
            updated = response.json()
            self.tasks = [updated if t["id"] == task_id else t for t in self.tasks]
        else:
            self.error = response.json().get("detail", "Could not complete task")

    async def delete(self, task_id: str):
        async with client(await self._token()) as http:
            response = await http.delete(f"/tasks/{task_id}")
        if response.status_code in (200, 204):
            self.tasks = [t for t in self.tasks if t["id"] != task_id]
        else:
            self.error = response.json().get("detail", "Could not delete task")


def _column(status: str, label: str) -> rx.Component:
    return rx.vstack(
        rx.heading(label, size="4"),
        rx.foreach(
            TaskBoardState.tasks,
            lambda task: rx.cond(
                task["status"] == status,
                task_card(task, TaskBoardState.complete, TaskBoardState.delete),
            ),
        ),
        width="100%", spacing="3", align_items="start",
    )


def task_board() -> rx.Component:
    return rx.vstack(
        rx.hstack(
            rx.input(placeholder="New task", value=TaskBoardState.new_title,
                     on_change=TaskBoardState.set_new_title, width="100%"),
            rx.select(["low", "medium", "high", "critical"], value=TaskBoardState.new_priority,
                      on_change=TaskBoardState.set_new_priority),
            rx.button(rx.icon("plus"), on_click=TaskBoardState.create),
            width="100%",
        ),
        rx.cond(TaskBoardState.error != "", rx.text(TaskBoardState.error, color="red")),
        rx.grid(*[_column(status, label) for status, label in COLUMNS], columns="3", spacing="4", width="100%"),
        on_mount=TaskBoardState.load,
        width="100%", spacing="4",
    )
'''

SHARE_DIALOG = r'''import reflex as rx

from frontend.components.api_client import client
from frontend.components.auth_forms import AuthState


class ShareState(rx.State):
    task_id: str = ""
    email: str = ""
    permission: str = "view"
    message: str = ""

    def set_email(self, value: str):
        self.email = value

    def set_permission(self, value: str):
        self.permission = value

    def open_for(self, task_id: str):
        self.task_id = task_id
        self.message = ""

    async def share(self):
        auth = await self.get_state(AuthState)
        async with client(auth.token) as http:
            response = await http.post(
                f"/tasks/{self.task_id}/shares", json={"email": self.email, "permission": self.permission}
            )
        if response.status_code in (200, 201):
            self.message = f"Shared with {self.email}"
            self.email = ""
        else:
            self.message = response.json().get("detail", "Sharing failed")


def share_dialog(task_id) -> rx.Component:
    return rx.dialog.root(
        rx.dialog.trigger(rx.icon_button(rx.icon("share-2"), variant="soft",
                                         on_click=ShareState.open_for(task_id))),
        rx.dialog.content(
            rx.dialog.title("Share task"),
            rx.vstack(
                rx.input(placeholder="Collaborator email", value=ShareState.email,
                         on_change=ShareState.set_email, width="100%"),
                rx.radio(["view", "comment", "edit"], value=ShareState.permission,
                         on_change=ShareState.set_permission, direction="row"),
                rx.cond(ShareState.message != "", rx.text(ShareState.message, size="2")),
                rx.hstack(
                    rx.dialog.close(rx.button("Close", variant="soft", color_scheme="gray")),
                    rx.button("Share", on_click=ShareState.share),
                    justify="end", width="100%",
                ),
                spacing="3",
            ),
        ),
    )
'''
