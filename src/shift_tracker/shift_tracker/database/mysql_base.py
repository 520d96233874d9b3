from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import mysql.connector

from ..core.exceptions import StorageFailureError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Turn connector errors into StorageFailureError; domain errors pass through."""
    try:
        yield
    except mysql.connector.Error as e:
        logger.exception("Storage failure during %s", action)
        raise StorageFailureError(f"Storage failure during {action}") from e


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def placeholders(count: int) -> str:
    return ",".join(["%s"] * count)
