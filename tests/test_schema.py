import re
from datetime import datetime, timezone

import pytest

from briefsmith.synthesis.schema import (
    DEFAULT_ENTITY_NAME,
    Dialect,
    SchemaInferenceEngine,
    extract_entity_name,
    model_class_name,
    order_tables,
    tasks_table,
    users_table,
)

GENERATED_AT = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _names(tables) -> list[str]:
    return [t.name for t in tables]


def test_auth_task_has_users_with_unique_email_index(make_task) -> None:
    tables = SchemaInferenceEngine().infer_schema(make_task("Implement auth flow"))
    users = next(t for t in tables if t.name == "users")

    email = next(c for c in users.columns if c.name == "email")
    assert email.unique
    assert any(idx.unique and idx.columns == ["email"] for idx in users.indexes)


def test_task_and_auth_include_tasks_and_shares(make_task) -> None:
    tables = SchemaInferenceEngine().infer_schema(make_task("Task board with auth"))
    names = _names(tables)
    assert "tasks" in names
    assert "task_shares" in names


def test_shares_need_users_from_keywords(make_task) -> None:
    tables = SchemaInferenceEngine().infer_schema(make_task("Todo list"))
    names = _names(tables)
    # users is pulled in only to satisfy tasks.user_id
    assert "tasks" in names
    assert "users" in names
    assert "task_shares" not in names


def test_every_table_has_one_uuid_primary_key(make_task) -> None:
    task = make_task("Team task tracker", "comments, file upload, reminders, tags, audit history, login")
    for table in SchemaInferenceEngine().infer_schema(task):
        keys = [c for c in table.columns if c.is_primary_key]
        assert len(keys) == 1
        assert keys[0].type.value == "uuid"


def test_inference_is_idempotent(make_task) -> None:
    engine = SchemaInferenceEngine()
    task = make_task("Collaborative task app", "users comment and upload files", criteria=["Email reminders"])
    first = [t.model_dump() for t in engine.infer_schema(task)]
    second = [t.model_dump() for t in engine.infer_schema(task)]
    assert first == second


def test_referenced_tables_precede_referencing_ones(make_task) -> None:
    tables = SchemaInferenceEngine().infer_schema(make_task("Comments on tasks"))
    position = {name: i for i, name in enumerate(_names(tables))}
    for table in tables:
        for ref in table.referenced_tables():
            assert position[ref] < position[table.name]


@pytest.mark.parametrize("title", [
    "Implement auth flow",
    "Build task manager with login",
    "Add comments and attachments",
    "Team workspace with categories",
    "Audit history tracking",
])
def test_sql_has_one_create_per_table_and_no_dangling_references(make_task, title) -> None:
    engine = SchemaInferenceEngine()
    tables = engine.infer_schema(make_task(title))
    sql = engine.emit_sql(tables, generated_at=GENERATED_AT)

    created = re.findall(r"CREATE TABLE IF NOT EXISTS (\w+)", sql)
    assert sorted(created) == sorted(_names(tables))

    for ref in re.findall(r"REFERENCES (\w+)\(", sql):
        assert ref in created


def test_sql_layout(make_task) -> None:
    engine = SchemaInferenceEngine()
    sql = engine.emit_sql(engine.infer_schema(make_task("Login page")), generated_at=GENERATED_AT)

    assert sql.startswith("-- Database Schema Migration")
    assert "-- Generated: 2025-01-01T00:00:00+00:00" in sql
    assert 'CREATE EXTENSION IF NOT EXISTS "uuid-ossp";' in sql
    assert sql.index("BEGIN;") < sql.index("CREATE TABLE") < sql.index("CREATE UNIQUE INDEX") < sql.index("COMMIT;")
    assert sql.rindex("CREATE TABLE") < sql.index("CREATE INDEX IF NOT EXISTS")
    assert "CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email ON users(email);" in sql


def test_mysql_dialect_types(make_task) -> None:
    engine = SchemaInferenceEngine()
    sql = engine.emit_sql([users_table()], Dialect.MYSQL, generated_at=GENERATED_AT)

    assert "uuid-ossp" not in sql
    assert "id CHAR(36) PRIMARY KEY DEFAULT (UUID())" in sql
    assert "TINYINT(1)" in sql
    assert "-- Dialect: MYSQL" in sql
    assert "CREATE UNIQUE INDEX idx_users_email ON users(email);" in sql
    assert "INDEX IF NOT EXISTS" not in sql


def test_unknown_dialect_rejected() -> None:
    with pytest.raises(ValueError):
        SchemaInferenceEngine().emit_sql([users_table()], "oracle")


def test_generic_table_when_nothing_matches(make_task) -> None:
    tables = SchemaInferenceEngine().infer_schema(make_task("Setup Docker and CI/CD"))
    assert _names(tables) == ["dockers"]
    assert tables[0].primary_key.name == "id"


@pytest.mark.parametrize("title,expected", [
    ("Create Invoice Generator", "invoices"),
    ("Build payments", "payments"),
    ("Implement", DEFAULT_ENTITY_NAME),
    ("Add 2fa", "t_2fas"),
    ("Configure !!! ---", DEFAULT_ENTITY_NAME),
    ("Setup Docker-Compose", "dockercomposes"),
])
def test_extract_entity_name(title, expected) -> None:
    assert extract_entity_name(title) == expected


def test_order_tables_is_stable_and_ignores_self_references() -> None:
    ordered = order_tables([tasks_table(), users_table()])
    assert _names(ordered) == ["users", "tasks"]


def test_models_render_declarative_classes(make_task) -> None:
    engine = SchemaInferenceEngine()
    source = engine.emit_models(engine.infer_schema(make_task("Task category tags")))

    assert "class Base(DeclarativeBase):" in source
    assert "class Task(Base):" in source
    assert "class Category(Base):" in source
    assert "class TaskCategory(Base):" in source
    assert '__tablename__ = "task_categories"' in source
    assert "ForeignKey(" in source
    compile(source, "models.py", "exec")


@pytest.mark.parametrize("table,expected", [
    ("users", "User"),
    ("categories", "Category"),
    ("task_shares", "TaskShare"),
    ("audit_logs", "AuditLog"),
])
def test_model_class_name(table, expected) -> None:
    assert model_class_name(table) == expected
