from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator

from werkzeug.security import generate_password_hash

from ..core.enums import Role
from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

# (email, username, phone, full_name, password, roles, class_id)
DEMO_USERS = (
    ("admin@school.edu.vn", "admin", None, "Quản trị hệ thống", "admin123", (Role.ADMIN,), None),
    ("gvcn6a@school.edu.vn", "gvcn6a", "0912345678", "Nguyễn Văn An", "teacher123", (Role.TEACHER, Role.CLASS_TEACHER), "6a"),
    ("bep@school.edu.vn", "nhabep", None, "Tổ Nhà bếp", "kitchen123", (Role.KITCHEN,), None),
)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql usable whatever DB name is configured.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    return re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split a script on ';' outside quoted strings."""
    buf: list[str] = []
    quote: str | None = None
    escaped = False

    for ch in sql:
        buf.append(ch)
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(conn_factory: DatabaseConnection, path: Path) -> int:
    sql = _strip_create_db_and_use(path.read_text(encoding="utf-8"))
    conn = conn_factory.connect()
    count = 0
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    return count


def ensure_database_exists(db_config: dict) -> None:
    factory = DatabaseConnection(DBConfig.from_dict(db_config))
    conn = factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    factory = DatabaseConnection(DBConfig.from_dict(db_config))
    count = _run_script(factory, Path(schema_path))
    logger.info("schema applied (%d statements) from %s", count, schema_path)


def apply_seed_sql(db_config: dict, *, seed_path: str | Path) -> None:
    factory = DatabaseConnection(DBConfig.from_dict(db_config))
    count = _run_script(factory, Path(seed_path))
    logger.info("seed applied (%d statements) from %s", count, seed_path)


def ensure_demo_users(db_config: dict) -> None:
    """Create or refresh the demo accounts with real password hashes."""
    factory = DatabaseConnection(DBConfig.from_dict(db_config))
    conn = factory.connect()
    try:
        cur = conn.cursor(dictionary=True)
        for email, username, phone, full_name, password, roles, class_id in DEMO_USERS:
            password_hash = generate_password_hash(password)
            cur.execute("SELECT id FROM users WHERE email=%s", (email,))
            existing = cur.fetchone()
            if existing:
                user_id = int(existing["id"])
                cur.execute(
                    """
                    UPDATE users
                    SET username=%s, phone=%s, full_name=%s, password_hash=%s, class_id=%s, is_active=1
                    WHERE id=%s
                    """,
                    (username, phone, full_name, password_hash, class_id, user_id),
                )
            else:
                cur.execute(
                    """
                    INSERT INTO users (email, username, phone, full_name, password_hash, class_id)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    """,
                    (email, username, phone, full_name, password_hash, class_id),
                )
                user_id = int(cur.lastrowid)

            cur.execute("DELETE FROM user_roles WHERE user_id=%s", (user_id,))
            cur.executemany(
                "INSERT INTO user_roles (user_id, role) VALUES (%s, %s)",
                [(user_id, role.value) for role in roles],
            )
        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: dict) -> list[str]:
    factory = DatabaseConnection(DBConfig.from_dict(db_config))
    conn = factory.connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
