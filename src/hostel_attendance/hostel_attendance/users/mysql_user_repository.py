from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository


def _to_user(row: Dict[str, Any]) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        batch=row.get("batch") or "",
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, name, email, password_hash, role, batch, is_active
                FROM users
                WHERE user_id=%s
                """,
                (int(user_id),),
            )
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, name, email, password_hash, role, batch, is_active
                FROM users
                WHERE email=%s
                """,
                (email.strip().lower(),),
            )
            row = fetchone(cur)
            return _to_user(row) if row else None

    def list_ids_by_role(self, role: Role, *, batch: Optional[str] = None) -> Sequence[int]:
        clauses = ["role=%s", "is_active=1"]
        params: list[object] = [role.value]
        if batch:
            clauses.append("batch=%s")
            params.append(batch)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT user_id FROM users WHERE {where} ORDER BY user_id", tuple(params))
            return [int(r["user_id"]) for r in fetchall(cur)]
