# manages the local sqlite file that persists the login session
import asyncio
import os.path
from contextlib import asynccontextmanager
from sqlite3 import Row

import aiosqlite

from utils.logger import get_logger

_logger = get_logger(__name__)

DB_PATH = "data/storefront.sqlite"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key   TEXT PRIMARY KEY,
    value TEXT
);
"""

_initialized = False
_init_lock = asyncio.Lock()


def configure(path: str) -> None:
    """Point the module at another database file; it is created on first use."""
    global DB_PATH, _initialized
    DB_PATH = path
    _initialized = False


async def _init_db(conn: aiosqlite.Connection) -> None:
    _logger.info(f"Initializing local store at {DB_PATH}...")
    await conn.executescript(_SCHEMA)
    await conn.commit()


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection.

    Ensures the parent directory and the key-value table exist on first use.
    """
    global _initialized
    directory = os.path.dirname(DB_PATH)
    if directory:
        os.makedirs(directory, exist_ok=True)

    conn = await aiosqlite.connect(DB_PATH)
    conn.row_factory = Row

    if not _initialized:
        async with _init_lock:
            if not _initialized:
                await _init_db(conn)
                _initialized = True
    try:
        yield conn
    finally:
        await conn.close()
