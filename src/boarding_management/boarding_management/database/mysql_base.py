from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

import mysql.connector

from ..core.exceptions import BackendError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield (conn, cursor); commit on success, roll back and re-raise on error.

    Everything executed inside one ``with`` block is a single transaction.
    Driver errors surface as BackendError.
    """
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        logger.exception("database connect failed")
        raise BackendError("Không kết nối được cơ sở dữ liệu") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        logger.exception("database operation failed")
        raise BackendError("Lỗi truy vấn cơ sở dữ liệu") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def placeholders(values: Sequence[Any]) -> str:
    """'%s,%s,%s' for an IN (...) clause."""
    return ",".join(["%s"] * len(values))


def to_date(value: Any) -> Optional[date]:
    """Normalize DATE values (driver returns date, some fixtures use str)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def load_json(value: Any) -> Any:
    """MySQL JSON columns come back as str with the pure-python connector."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value
