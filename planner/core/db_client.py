"""SQLite-backed key/value store for persisted planner state."""

import asyncio
import logging
import re
import threading
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

from planner.core.config import settings


logger = logging.getLogger(__name__)

KV_TABLE_SCHEMA = """CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated TEXT NOT NULL
)"""


def _validate_key(key: str) -> None:
    """Validate that a storage key is a short slug."""
    if not re.match(r"^[a-zA-Z0-9][a-zA-Z0-9_.:-]{0,127}$", key):
        msg = f"Invalid storage key: {key!r}. Use letters, digits, '-', '_', '.' or ':'."
        raise ValueError(msg)


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_running_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA journal_mode = WAL")

        _db_connections[cache_key] = conn

        logger.info(
            "Created new SQLite connection",
            extra={"db_path": str(path), "thread_id": thread_id, "loop_id": loop_id},
        )
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key not in _db_connections:
        return

    try:
        async with _db_lock:
            conn = _db_connections.pop(cache_key, None)
            if conn is not None:
                await conn.close()
                logger.info("Closed SQLite connection", extra={"db_path": str(path)})
    except Exception as e:
        logger.warning("Error closing SQLite connection", extra={"error": str(e), "db_path": str(path)})


async def init_db(*, db_path: str | None = None) -> None:
    """Create the key/value table if it does not exist."""
    conn = await get_connection(db_path=db_path)
    await conn.execute(KV_TABLE_SCHEMA)
    await conn.commit()
    logger.info("Key/value store initialized", extra={"db_path": str(get_db_path(db_path))})


async def get_value(*, key: str, db_path: str | None = None) -> str | None:
    """Return the raw stored string for key, or None when the key is absent."""
    try:
        _validate_key(key)
        conn = await get_connection(db_path=db_path)
        cursor = await conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
        row = await cursor.fetchone()
        logger.debug("Read key", extra={"key": key, "found": row is not None})
        return row[0] if row else None
    except ValueError:
        raise
    except Exception as e:
        logger.error("get_value_failed", extra={"key": key, "error": str(e)})
        msg = f"Failed to read {key}: {e}"
        raise RuntimeError(msg) from e


async def set_value(*, key: str, value: str, db_path: str | None = None) -> None:
    """Insert or replace the stored string for key."""
    try:
        _validate_key(key)
        conn = await get_connection(db_path=db_path)
        now = datetime.now(UTC).isoformat()
        await conn.execute(
            "INSERT INTO kv_store (key, value, updated) VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated = excluded.updated",
            (key, value, now),
        )
        await conn.commit()
        logger.info("Wrote key", extra={"key": key, "size": len(value)})
    except ValueError:
        raise
    except Exception as e:
        logger.error("set_value_failed", extra={"key": key, "error": str(e)})
        msg = f"Failed to write {key}: {e}"
        raise RuntimeError(msg) from e


async def remove_value(*, key: str, db_path: str | None = None) -> None:
    """Delete key if present; removing a missing key is a no-op."""
    try:
        _validate_key(key)
        conn = await get_connection(db_path=db_path)
        await conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        await conn.commit()
        logger.info("Removed key", extra={"key": key})
    except ValueError:
        raise
    except Exception as e:
        logger.error("remove_value_failed", extra={"key": key, "error": str(e)})
        msg = f"Failed to remove {key}: {e}"
        raise RuntimeError(msg) from e
