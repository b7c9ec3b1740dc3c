from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator

from werkzeug.security import generate_password_hash

from .connection import DBConfig, DatabaseConnection

logger = logging.getLogger("hostel_attendance.database")

# Quoted literals and comments are matched whole so a ';' inside them never splits.
_SQL_TOKEN = re.compile(
    r"""
    (?P<quoted>'(?:\\.|''|[^'\\])*'|"(?:\\.|""|[^"\\])*"|`[^`]*`)
    | (?P<comment>--[^\n]*|\#[^\n]*|/\*.*?\*/)
    | (?P<end>;)
    """,
    re.VERBOSE | re.DOTALL,
)
_CREATE_DB_OR_USE = re.compile(r"^(CREATE\s+DATABASE|USE)\b", re.IGNORECASE)


def _connect(db_config: dict, *, with_database: bool = True):
    return DatabaseConnection(DBConfig.from_dict(db_config)).connect(with_database=with_database)


def split_sql(sql: str) -> Iterator[str]:
    """Yield the statements of a .sql file, comments dropped.

    CREATE DATABASE / USE lines are skipped so the target database always
    comes from settings, whatever name the file was written against.
    """
    parts: list[str] = []
    pos = 0
    for match in _SQL_TOKEN.finditer(sql):
        parts.append(sql[pos : match.start()])
        pos = match.end()
        if match.lastgroup == "quoted":
            parts.append(match.group())
        elif match.lastgroup == "end":
            stmt = "".join(parts).strip()
            parts = []
            if stmt and not _CREATE_DB_OR_USE.match(stmt):
                yield stmt
    parts.append(sql[pos:])
    tail = "".join(parts).strip()
    if tail and not _CREATE_DB_OR_USE.match(tail):
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    target = DBConfig.from_dict(db_config)
    conn = _connect(db_config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def _apply_sql_file(db_config: dict, path: str | Path) -> int:
    conn = _connect(db_config)
    count = 0
    try:
        cur = conn.cursor()
        for stmt in split_sql(Path(path).read_text(encoding="utf-8")):
            cur.execute(stmt)
            count += 1
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    return count


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    count = _apply_sql_file(db_config, schema_path)
    logger.info("schema applied from %s (%d statements)", schema_path, count)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    count = _apply_sql_file(db_config, seed_path)
    logger.info("seed applied from %s (%d statements)", seed_path, count)


DEMO_USERS = (
    # (name, email, password, role, batch)
    ("Admin Demo", "admin@hostel.local", "admin123", "admin", ""),
    ("Warden Demo", "warden@hostel.local", "warden123", "warden", ""),
    ("Student One", "student1@hostel.local", "student123", "student", "2026"),
    ("Student Two", "student2@hostel.local", "student123", "student", "2026"),
)


def ensure_demo_users(db_config: dict) -> None:
    conn = _connect(db_config)
    try:
        cur = conn.cursor(dictionary=True)

        for name, email, password, role, batch in DEMO_USERS:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT user_id FROM users WHERE email=%s", (email,))
            existing = cur.fetchone()
            if existing:
                cur.execute(
                    """
                    UPDATE users
                    SET name=%s, password_hash=%s, role=%s, batch=%s, is_active=1
                    WHERE email=%s
                    """,
                    (name, password_hash, role, batch, email),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users (name, email, password_hash, role, batch)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (name, email, password_hash, role, batch),
                )

        conn.commit()
    finally:
        conn.close()
    logger.info("demo users ready (%d accounts)", len(DEMO_USERS))


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
