from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Optional

from werkzeug.security import generate_password_hash

from ..core.enums import Role
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

# username, full name, role, department; every demo password is "<username>123".
DEMO_USERS = (
    ("owner", "System Owner", Role.SUPER_ADMIN, "Executive"),
    ("director", "Thandi Director", Role.DIRECTOR, "Executive"),
    ("hrmanager", "Sipho HR Manager", Role.HR_MANAGER, "Human Resources"),
    ("opsmanager", "Lerato Operations Manager", Role.DEPARTMENT_MANAGER, "Operations"),
    ("supervisor", "Bongani Supervisor", Role.SUPERVISOR, "Operations"),
    ("senior", "Naledi Senior", Role.SENIOR_EMPLOYEE, "Operations"),
    ("employee", "Kagiso Employee", Role.EMPLOYEE, "Operations"),
    ("intern", "Ayanda Intern", Role.INTERN, "Operations"),
)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql usable regardless of the configured DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal splitter for schema/seed files; ';' inside quotes is kept.
    buf: list[str] = []
    quote: Optional[str] = None
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif ch in ("'", '"'):
            if quote is None:
                quote = ch
            elif quote == ch:
                quote = None
        elif ch == ";" and quote is None:
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(conn_factory: DatabaseConnection, path: Path) -> None:
    sql = _strip_create_db_and_use(Path(path).read_text(encoding="utf-8"))
    conn = conn_factory.connect()
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_database_exists(conn_factory: DatabaseConnection) -> None:
    conn = conn_factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{conn_factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(conn_factory: DatabaseConnection, *, schema_path: str | Path) -> None:
    ensure_database_exists(conn_factory)
    _run_script(conn_factory, Path(schema_path))
    logger.info("schema applied to %s", conn_factory.config.describe())


def apply_seed_sql(conn_factory: DatabaseConnection, *, seed_path: str | Path) -> None:
    _run_script(conn_factory, Path(seed_path))
    logger.info("seed data applied to %s", conn_factory.config.describe())


def ensure_demo_users(conn_factory: DatabaseConnection) -> None:
    """Upsert one active demo account per role."""
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=True)

        def dept_id(name: str) -> int:
            cur.execute("SELECT dept_id FROM departments WHERE dept_name=%s", (name,))
            row = cur.fetchone()
            if not row:
                raise RuntimeError(f"Missing departments row for dept_name={name}")
            return int(row["dept_id"])

        for username, full_name, role, dept_name in DEMO_USERS:
            password_hash = generate_password_hash(f"{username}123")
            cur.execute("SELECT user_id FROM users WHERE username=%s", (username,))
            if cur.fetchone():
                cur.execute(
                    """
                    UPDATE users
                    SET full_name=%s, password_hash=%s, role=%s, dept_id=%s, is_active=1
                    WHERE username=%s
                    """,
                    (full_name, password_hash, role.value, dept_id(dept_name), username),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users (full_name, username, password_hash, role, dept_id)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (full_name, username, password_hash, role.value, dept_id(dept_name)),
                )

        conn.commit()
    finally:
        conn.close()
    logger.info("demo users ready (%d roles)", len(DEMO_USERS))


def list_tables(conn_factory: DatabaseConnection) -> list[str]:
    conn = conn_factory.connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
