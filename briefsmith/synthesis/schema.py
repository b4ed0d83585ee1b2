"""
Relational schema inference.

Maps the text of one TechnicalTask to a batch of table descriptors built
from fixed templates, then renders that batch as a SQL migration or as
SQLAlchemy model source.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from briefsmith.core.logger import logger
from briefsmith.core.schemas import TechnicalTask
from briefsmith.synthesis.keywords import SubstringClassifier, TextClassifier, combined_text


class ColumnType(str, Enum):
    UUID = "uuid"
    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    BIGINT = "bigint"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    DATE = "date"
    JSON = "json"
    DECIMAL = "decimal"


class OnDelete(str, Enum):
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    RESTRICT = "RESTRICT"


class Dialect(str, Enum):
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"


class DatabaseColumn(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: ColumnType
    nullable: bool = False
    unique: bool = False
    default: Optional[str] = None
    is_primary_key: bool = False


class DatabaseIndex(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    columns: List[str]
    unique: bool = False


class DatabaseForeignKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: str
    referenced_table: str
    referenced_column: str = "id"
    on_delete: OnDelete = OnDelete.CASCADE


class DatabaseTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    columns: List[DatabaseColumn]
    indexes: List[DatabaseIndex] = Field(default_factory=list)
    foreign_keys: List[DatabaseForeignKey] = Field(default_factory=list)

    @property
    def primary_key(self) -> DatabaseColumn:
        return next(col for col in self.columns if col.is_primary_key)

    def referenced_tables(self) -> List[str]:
        """Tables this one points at, self-references excluded."""
        seen: List[str] = []
        for fk in self.foreign_keys:
            if fk.referenced_table != self.name and fk.referenced_table not in seen:
                seen.append(fk.referenced_table)
        return seen


# ---------------------------------------------------------------------
# TEMPLATE HELPERS
# ---------------------------------------------------------------------
NOW = "CURRENT_TIMESTAMP"


def _id() -> DatabaseColumn:
    return DatabaseColumn(name="id", type=ColumnType.UUID, unique=True, is_primary_key=True)


def _col(name: str, type_: ColumnType, nullable: bool = False, unique: bool = False,
         default: Optional[str] = None) -> DatabaseColumn:
    return DatabaseColumn(name=name, type=type_, nullable=nullable, unique=unique, default=default)


def _stamp(name: str) -> DatabaseColumn:
    return _col(name, ColumnType.TIMESTAMP, default=NOW)


def _idx(table: str, suffix: str, columns: List[str], unique: bool = False) -> DatabaseIndex:
    return DatabaseIndex(name=f"idx_{table}_{suffix}", columns=columns, unique=unique)


def _fk(column: str, table: str, on_delete: OnDelete = OnDelete.CASCADE) -> DatabaseForeignKey:
    return DatabaseForeignKey(column=column, referenced_table=table, on_delete=on_delete)


# ---------------------------------------------------------------------
# TABLE TEMPLATES
# ---------------------------------------------------------------------
def users_table() -> DatabaseTable:
    return DatabaseTable(
        name="users",
        columns=[
            _id(),
            _col("email", ColumnType.STRING, unique=True),
            _col("password_hash", ColumnType.STRING),
            _col("name", ColumnType.STRING),
            _col("avatar_url", ColumnType.STRING, nullable=True),
            _col("role", ColumnType.STRING, default="'user'"),
            _col("is_active", ColumnType.BOOLEAN, default="true"),
            _col("email_verified", ColumnType.BOOLEAN, default="false"),
            _col("total_completed_tasks", ColumnType.INTEGER, default="0"),
            _col("last_login_at", ColumnType.TIMESTAMP, nullable=True),
            _stamp("created_at"),
            _stamp("updated_at"),
        ],
        indexes=[
            _idx("users", "email", ["email"], unique=True),
            _idx("users", "role", ["role"]),
            _idx("users", "created_at", ["created_at"]),
        ],
    )


def tasks_table() -> DatabaseTable:
    return DatabaseTable(
        name="tasks",
        columns=[
            _id(),
            _col("title", ColumnType.STRING),
            _col("description", ColumnType.TEXT, nullable=True),
            _col("status", ColumnType.STRING, default="'pending'"),
            _col("priority", ColumnType.STRING, default="'medium'"),
            _col("user_id", ColumnType.UUID),
            _col("assigned_to", ColumnType.UUID, nullable=True),
            _col("parent_task_id", ColumnType.UUID, nullable=True),
            _col("dependencies", ColumnType.JSON, nullable=True),
            _col("due_date", ColumnType.TIMESTAMP, nullable=True),
            _col("completed_at", ColumnType.TIMESTAMP, nullable=True),
            _col("last_activity_at", ColumnType.TIMESTAMP, nullable=True),
            _col("deleted_at", ColumnType.TIMESTAMP, nullable=True),
            _stamp("created_at"),
            _stamp("updated_at"),
        ],
        indexes=[
            _idx("tasks", "user_id", ["user_id"]),
            _idx("tasks", "assigned_to", ["assigned_to"]),
            _idx("tasks", "status", ["status"]),
            _idx("tasks", "priority", ["priority"]),
            _idx("tasks", "due_date", ["due_date"]),
            _idx("tasks", "parent_task_id", ["parent_task_id"]),
        ],
        foreign_keys=[
            _fk("user_id", "users"),
            _fk("assigned_to", "users", OnDelete.SET_NULL),
            _fk("parent_task_id", "tasks"),
        ],
    )


def task_shares_table() -> DatabaseTable:
    return DatabaseTable(
        name="task_shares",
        columns=[
            _id(),
            _col("task_id", ColumnType.UUID),
            _col("user_id", ColumnType.UUID),
            _col("permission", ColumnType.STRING, default="'view'"),
            _col("shared_by", ColumnType.UUID),
            _stamp("created_at"),
            _stamp("updated_at"),
        ],
        indexes=[
            _idx("task_shares", "task_id", ["task_id"]),
            _idx("task_shares", "user_id", ["user_id"]),
            _idx("task_shares", "unique", ["task_id", "user_id"], unique=True),
        ],
        foreign_keys=[
            _fk("task_id", "tasks"),
            _fk("user_id", "users"),
            _fk("shared_by", "users"),
        ],
    )


def comments_table() -> DatabaseTable:
    return DatabaseTable(
        name="comments",
        columns=[
            _id(),
            _col("task_id", ColumnType.UUID),
            _col("user_id", ColumnType.UUID),
            _col("content", ColumnType.TEXT),
            _col("parent_comment_id", ColumnType.UUID, nullable=True),
            _col("is_edited", ColumnType.BOOLEAN, default="false"),
            _col("deleted_at", ColumnType.TIMESTAMP, nullable=True),
            _stamp("created_at"),
            _stamp("updated_at"),
        ],
        indexes=[
            _idx("comments", "task_id", ["task_id"]),
            _idx("comments", "user_id", ["user_id"]),
            _idx("comments", "created_at", ["created_at"]),
        ],
        foreign_keys=[
            _fk("task_id", "tasks"),
            _fk("user_id", "users"),
            _fk("parent_comment_id", "comments"),
        ],
    )


def attachments_table() -> DatabaseTable:
    return DatabaseTable(
        name="attachments",
        columns=[
            _id(),
            _col("task_id", ColumnType.UUID),
            _col("user_id", ColumnType.UUID),
            _col("file_name", ColumnType.STRING),
            _col("file_path", ColumnType.STRING),
            _col("file_size", ColumnType.BIGINT),
            _col("mime_type", ColumnType.STRING),
            _col("processed", ColumnType.BOOLEAN, default="false"),
            _col("processed_at", ColumnType.TIMESTAMP, nullable=True),
            _stamp("created_at"),
        ],
        indexes=[
            _idx("attachments", "task_id", ["task_id"]),
            _idx("attachments", "user_id", ["user_id"]),
        ],
        foreign_keys=[
            _fk("task_id", "tasks"),
            _fk("user_id", "users"),
        ],
    )


def notifications_table() -> DatabaseTable:
    return DatabaseTable(
        name="notifications",
        columns=[
            _id(),
            _col("user_id", ColumnType.UUID),
            _col("title", ColumnType.STRING),
            _col("message", ColumnType.TEXT),
            _col("type", ColumnType.STRING),
            _col("reference_id", ColumnType.UUID, nullable=True),
            _col("is_read", ColumnType.BOOLEAN, default="false"),
            _stamp("created_at"),
        ],
        indexes=[
            _idx("notifications", "user_id", ["user_id"]),
            _idx("notifications", "is_read", ["is_read"]),
            _idx("notifications", "created_at", ["created_at"]),
        ],
        foreign_keys=[_fk("user_id", "users")],
    )


def teams_table() -> DatabaseTable:
    return DatabaseTable(
        name="teams",
        columns=[
            _id(),
            _col("name", ColumnType.STRING),
            _col("description", ColumnType.TEXT, nullable=True),
            _col("owner_id", ColumnType.UUID),
            _stamp("created_at"),
            _stamp("updated_at"),
        ],
        indexes=[_idx("teams", "owner_id", ["owner_id"])],
        foreign_keys=[_fk("owner_id", "users")],
    )


def team_members_table() -> DatabaseTable:
    return DatabaseTable(
        name="team_members",
        columns=[
            _id(),
            _col("team_id", ColumnType.UUID),
            _col("user_id", ColumnType.UUID),
            _col("role", ColumnType.STRING, default="'member'"),
            _stamp("joined_at"),
        ],
        indexes=[
            _idx("team_members", "team_id", ["team_id"]),
            _idx("team_members", "user_id", ["user_id"]),
            _idx("team_members", "unique", ["team_id", "user_id"], unique=True),
        ],
        foreign_keys=[
            _fk("team_id", "teams"),
            _fk("user_id", "users"),
        ],
    )


def categories_table() -> DatabaseTable:
    return DatabaseTable(
        name="categories",
        columns=[
            _id(),
            _col("name", ColumnType.STRING),
            _col("color", ColumnType.STRING, nullable=True),
            _col("user_id", ColumnType.UUID),
            _stamp("created_at"),
        ],
        indexes=[
            _idx("categories", "user_id", ["user_id"]),
            _idx("categories", "name_user", ["name", "user_id"], unique=True),
        ],
        foreign_keys=[_fk("user_id", "users")],
    )


def task_categories_table() -> DatabaseTable:
    return DatabaseTable(
        name="task_categories",
        columns=[
            _id(),
            _col("task_id", ColumnType.UUID),
            _col("category_id", ColumnType.UUID),
            _stamp("created_at"),
        ],
        indexes=[
            _idx("task_categories", "task_id", ["task_id"]),
            _idx("task_categories", "category_id", ["category_id"]),
            _idx("task_categories", "unique", ["task_id", "category_id"], unique=True),
        ],
        foreign_keys=[
            _fk("task_id", "tasks"),
            _fk("category_id", "categories"),
        ],
    )


def audit_logs_table() -> DatabaseTable:
    return DatabaseTable(
        name="audit_logs",
        columns=[
            _id(),
            _col("user_id", ColumnType.UUID, nullable=True),
            _col("action", ColumnType.STRING),
            _col("entity_type", ColumnType.STRING),
            _col("entity_id", ColumnType.UUID),
            _col("changes", ColumnType.JSON, nullable=True),
            _col("ip_address", ColumnType.STRING, nullable=True),
            _col("user_agent", ColumnType.STRING, nullable=True),
            _stamp("created_at"),
        ],
        indexes=[
            _idx("audit_logs", "user_id", ["user_id"]),
            _idx("audit_logs", "entity", ["entity_type", "entity_id"]),
            _idx("audit_logs", "created_at", ["created_at"]),
        ],
        foreign_keys=[_fk("user_id", "users", OnDelete.SET_NULL)],
    )


def generic_entity_table(name: str) -> DatabaseTable:
    return DatabaseTable(
        name=name,
        columns=[
            _id(),
            _col("name", ColumnType.STRING),
            _col("description", ColumnType.TEXT, nullable=True),
            _col("status", ColumnType.STRING, default="'active'"),
            _col("user_id", ColumnType.UUID, nullable=True),
            _stamp("created_at"),
            _stamp("updated_at"),
        ],
        indexes=[
            _idx(name, "user_id", ["user_id"]),
            _idx(name, "status", ["status"]),
        ],
    )


TEMPLATES: Dict[str, Callable[[], DatabaseTable]] = {
    "users": users_table,
    "tasks": tasks_table,
    "task_shares": task_shares_table,
    "comments": comments_table,
    "attachments": attachments_table,
    "notifications": notifications_table,
    "teams": teams_table,
    "team_members": team_members_table,
    "categories": categories_table,
    "task_categories": task_categories_table,
    "audit_logs": audit_logs_table,
}

# Evaluated in order; each family contributes its tables independently
TABLE_FAMILIES: List[Tuple[Tuple[str, ...], Tuple[str, ...]]] = [
    (("auth", "login", "register", "user", "account", "profile"), ("users",)),
    (("task", "todo", "item", "project", "work"), ("tasks",)),
    (("comment", "note", "feedback", "discussion"), ("comments",)),
    (("file", "attachment", "upload", "document", "media"), ("attachments",)),
    (("notification", "alert", "reminder", "email"), ("notifications",)),
    (("team", "group", "organization", "workspace"), ("teams", "team_members")),
    (("category", "tag", "label", "organize"), ("categories", "task_categories")),
    (("analytics", "log", "audit", "track", "history"), ("audit_logs",)),
]

TITLE_VERBS = {"create", "implement", "build", "develop", "add", "setup", "configure"}
DEFAULT_ENTITY_NAME = "entities"


def extract_entity_name(title: str) -> str:
    """
    Derives a table name from a task title: drop the leading verbs, keep the
    first remaining word and pluralize it with a trailing 's'.
    Falls back to 'entities' when nothing usable is left.
    """
    words = []
    for word in title.lower().split():
        if word in TITLE_VERBS:
            continue
        cleaned = "".join(c for c in word if c.isalnum() or c == "_")
        if cleaned and cleaned.isascii():
            words.append(cleaned)

    if not words:
        return DEFAULT_ENTITY_NAME

    name = words[0]
    if name[0].isdigit():
        name = f"t_{name}"
    if not name.endswith("s"):
        name += "s"
    return name


def order_tables(tables: List[DatabaseTable]) -> List[DatabaseTable]:
    """
    Stable dependency sort: a table is placed only after every table it
    references within the batch. Self-references are ignored; a cycle keeps
    the remaining tables in their original order.
    """
    names = {t.name for t in tables}
    pending = list(tables)
    placed: List[DatabaseTable] = []
    placed_names: set = set()

    while pending:
        for i, table in enumerate(pending):
            deps = [d for d in table.referenced_tables() if d in names]
            if all(d in placed_names for d in deps):
                placed.append(table)
                placed_names.add(table.name)
                pending.pop(i)
                break
        else:
            placed.extend(pending)
            break
    return placed


# ---------------------------------------------------------------------
# SQL RENDERING
# ---------------------------------------------------------------------
SQL_TYPES: Dict[Dialect, Dict[ColumnType, str]] = {
    Dialect.POSTGRESQL: {
        ColumnType.UUID: "UUID",
        ColumnType.STRING: "VARCHAR(255)",
        ColumnType.TEXT: "TEXT",
        ColumnType.INTEGER: "INTEGER",
        ColumnType.BIGINT: "BIGINT",
        ColumnType.BOOLEAN: "BOOLEAN",
        ColumnType.TIMESTAMP: "TIMESTAMP",
        ColumnType.DATE: "DATE",
        ColumnType.JSON: "JSONB",
        ColumnType.DECIMAL: "DECIMAL(10, 2)",
    },
    Dialect.MYSQL: {
        ColumnType.UUID: "CHAR(36)",
        ColumnType.STRING: "VARCHAR(255)",
        ColumnType.TEXT: "TEXT",
        ColumnType.INTEGER: "INT",
        ColumnType.BIGINT: "BIGINT",
        ColumnType.BOOLEAN: "TINYINT(1)",
        ColumnType.TIMESTAMP: "TIMESTAMP",
        ColumnType.DATE: "DATE",
        ColumnType.JSON: "JSON",
        ColumnType.DECIMAL: "DECIMAL(10, 2)",
    },
}

UUID_DEFAULTS = {
    Dialect.POSTGRESQL: "uuid_generate_v4()",
    Dialect.MYSQL: "(UUID())",
}


def _column_sql(col: DatabaseColumn, dialect: Dialect) -> str:
    parts = [f"  {col.name} {SQL_TYPES[dialect][col.type]}"]
    if col.is_primary_key:
        parts.append("PRIMARY KEY")
        if col.type == ColumnType.UUID:
            parts.append(f"DEFAULT {UUID_DEFAULTS[dialect]}")
    else:
        if not col.nullable:
            parts.append("NOT NULL")
        if col.unique:
            parts.append("UNIQUE")
        if col.default:
            parts.append(f"DEFAULT {col.default}")
    return " ".join(parts)


def _table_sql(table: DatabaseTable, dialect: Dialect) -> str:
    defs = [_column_sql(col, dialect) for col in table.columns]
    for fk in table.foreign_keys:
        defs.append(
            f"  CONSTRAINT fk_{table.name}_{fk.column} FOREIGN KEY ({fk.column}) "
            f"REFERENCES {fk.referenced_table}({fk.referenced_column}) ON DELETE {fk.on_delete.value}"
        )
    title = table.name[:1].upper() + table.name[1:]
    return (
        f"-- {title} table\n"
        f"CREATE TABLE IF NOT EXISTS {table.name} (\n"
        + ",\n".join(defs)
        + "\n);\n"
    )


def _index_sql(table: DatabaseTable, index: DatabaseIndex, dialect: Dialect) -> str:
    unique = "UNIQUE " if index.unique else ""
    # MySQL has no IF NOT EXISTS for indexes
    guard = "" if dialect == Dialect.MYSQL else "IF NOT EXISTS "
    return f"CREATE {unique}INDEX {guard}{index.name} ON {table.name}({', '.join(index.columns)});"


# ---------------------------------------------------------------------
# ORM RENDERING
# ---------------------------------------------------------------------
ORM_TYPES: Dict[ColumnType, Tuple[str, str]] = {
    ColumnType.UUID: ("Uuid", "uuid.UUID"),
    ColumnType.STRING: ("String(255)", "str"),
    ColumnType.TEXT: ("Text", "str"),
    ColumnType.INTEGER: ("Integer", "int"),
    ColumnType.BIGINT: ("BigInteger", "int"),
    ColumnType.BOOLEAN: ("Boolean", "bool"),
    ColumnType.TIMESTAMP: ("DateTime", "datetime"),
    ColumnType.DATE: ("Date", "date"),
    ColumnType.JSON: ("JSON", "Any"),
    ColumnType.DECIMAL: ("Numeric(10, 2)", "Decimal"),
}


def model_class_name(table_name: str) -> str:
    parts = table_name.split("_")
    last = parts[-1]
    if last.endswith("ies") and len(last) > 3:
        last = last[:-3] + "y"
    elif last.endswith("s") and not last.endswith("ss") and len(last) > 1:
        last = last[:-1]
    parts[-1] = last
    return "".join(p[:1].upper() + p[1:] for p in parts if p)


def _orm_column(table: DatabaseTable, col: DatabaseColumn) -> str:
    sa_type, py_type = ORM_TYPES[col.type]
    hint = f"Optional[{py_type}]" if col.nullable else py_type
    args = [sa_type]

    fk = next((f for f in table.foreign_keys if f.column == col.name), None)
    if fk is not None:
        args.append(
            f'ForeignKey("{fk.referenced_table}.{fk.referenced_column}", ondelete="{fk.on_delete.value}")'
        )
    if col.is_primary_key:
        args.extend(["primary_key=True", "default=uuid.uuid4"])
    else:
        args.append(f"nullable={col.nullable}")
        if col.unique:
            args.append("unique=True")
        if col.default == NOW:
            args.append("server_default=func.now()")
        elif col.default:
            args.append(f"server_default=text({col.default!r})")
    return f"    {col.name}: Mapped[{hint}] = mapped_column({', '.join(args)})"


class SchemaInferenceEngine:
    """Keyword-driven relational schema inference for a single task."""

    def __init__(self, classifier: Optional[TextClassifier] = None):
        self.classifier = classifier or SubstringClassifier()

    def infer_schema(self, task: TechnicalTask) -> List[DatabaseTable]:
        text = combined_text(task)
        detected: List[str] = []

        for keywords, table_names in TABLE_FAMILIES:
            if not self.classifier.matches(text, keywords):
                continue
            for name in table_names:
                if name not in detected:
                    detected.append(name)
            # Sharing rows only make sense once users were asked for
            if table_names == ("tasks",) and "users" in detected:
                detected.append("task_shares")

        if not detected:
            name = extract_entity_name(task.title)
            logger.debug(f"No table family matched '{task.title}', using generic table '{name}'")
            return [generic_entity_table(name)]

        tables = [TEMPLATES[name]() for name in detected]
        tables = self._close_references(tables)
        return order_tables(tables)

    def _close_references(self, tables: List[DatabaseTable]) -> List[DatabaseTable]:
        """Pull in every template a foreign key points at until nothing dangles."""
        present = {t.name for t in tables}
        i = 0
        while i < len(tables):
            for ref in tables[i].referenced_tables():
                if ref not in present:
                    logger.debug(f"Adding '{ref}' referenced by '{tables[i].name}'")
                    tables.append(TEMPLATES[ref]())
                    present.add(ref)
            i += 1
        return tables

    def emit_sql(self, tables: List[DatabaseTable], dialect: str = Dialect.POSTGRESQL,
                 generated_at: Optional[datetime] = None) -> str:
        dialect = Dialect(dialect)
        generated_at = generated_at or datetime.now(timezone.utc)
        ordered = order_tables(tables)

        lines = [
            "-- Database Schema Migration",
            f"-- Generated: {generated_at.isoformat()}",
            f"-- Dialect: {dialect.value.upper()}",
            "",
        ]
        if dialect == Dialect.POSTGRESQL:
            lines += ["-- Enable UUID extension", 'CREATE EXTENSION IF NOT EXISTS "uuid-ossp";', ""]

        lines += ["BEGIN;", ""]
        for table in ordered:
            lines.append(_table_sql(table, dialect))

        # Indexes go after every table so none precedes its table
        lines.append("-- Indexes for performance optimization")
        for table in ordered:
            for index in table.indexes:
                lines.append(_index_sql(table, index, dialect))

        lines += ["", "COMMIT;", ""]
        return "\n".join(lines)

    def emit_models(self, tables: List[DatabaseTable]) -> str:
        """Renders SQLAlchemy 2.0 declarative models for the batch."""
        out = [
            "import uuid",
            "from datetime import date, datetime",
            "from decimal import Decimal",
            "from typing import Any, Optional",
            "",
            "from sqlalchemy import (",
            "    JSON, BigInteger, Boolean, Date, DateTime, ForeignKey, Index, Integer,",
            "    Numeric, String, Text, Uuid, func, text,",
            ")",
            "from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column",
            "",
            "",
            "class Base(DeclarativeBase):",
            "    pass",
        ]
        for table in order_tables(tables):
            out += ["", "", f"class {model_class_name(table.name)}(Base):",
                    f'    __tablename__ = "{table.name}"']
            if table.indexes:
                out.append("    __table_args__ = (")
                for index in table.indexes:
                    cols = ", ".join(f'"{c}"' for c in index.columns)
                    unique = ", unique=True" if index.unique else ""
                    out.append(f'        Index("{index.name}", {cols}{unique}),')
                out.append("    )")
            out.append("")
            out += [_orm_column(table, col) for col in table.columns]
        out.append("")
        return "\n".join(out)
