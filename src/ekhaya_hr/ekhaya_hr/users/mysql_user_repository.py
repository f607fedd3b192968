from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_USER_COLUMNS = "user_id, full_name, username, password_hash, role, dept_id, is_active"


def _row_to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        full_name=row["full_name"],
        username=row["username"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        dept_id=row.get("dept_id"),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def get_by_username(self, username: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE username=%s", (username,))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def find_approver(self, *, role: Role, dept_id: Optional[int]) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Same-department holders sort first.
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users
                WHERE role=%s AND is_active=1
                ORDER BY (dept_id <=> %s) DESC, user_id ASC
                LIMIT 1
                """,
                (role.value, dept_id),
            )
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def create_user(
        self,
        *,
        full_name: str,
        username: str,
        password_hash: str,
        role: Role,
        dept_id: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(full_name, username, password_hash, role, dept_id, is_active)
                VALUES(%s,%s,%s,%s,%s,1)
                """,
                (full_name, username, password_hash, role.value, dept_id),
            )
            return int(cur.lastrowid)

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def list_directory(self, *, dept_id: Optional[int] = None) -> Sequence[dict]:
        where = "WHERE u.dept_id=%s" if dept_id is not None else ""
        params = (int(dept_id),) if dept_id is not None else ()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT u.user_id, u.full_name, u.username, u.role, u.is_active,
                       u.dept_id, d.dept_name
                FROM users u
                LEFT JOIN departments d ON d.dept_id = u.dept_id
                {where}
                ORDER BY u.user_id DESC
                """,
                params,
            )
            rows = fetchall(cur)
            out: list[dict] = []
            for r in rows:
                out.append(
                    {
                        "user_id": int(r["user_id"]),
                        "full_name": r["full_name"],
                        "username": r["username"],
                        "role": r["role"],
                        "dept_id": r.get("dept_id"),
                        "dept_name": r.get("dept_name") or "-",
                        "is_active": bool(r.get("is_active", True)),
                    }
                )
            return out
