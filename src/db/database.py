"""
Marketplace store. Every caller opens its own short-lived connection through
``connect()``; the schema and the vendor category rows
are created the first time any connection finds an empty file.
"""
import asyncio
import os.path
from contextlib import asynccontextmanager
from sqlite3 import Row

import aiosqlite

from utils.config import get_settings
from utils.logger import get_logger

_logger = get_logger(__name__)

_SQL_DIR = os.path.dirname(os.path.abspath(__file__))

DB_PATH = get_settings().db_path
# applied in order against an empty store
SETUP_SCRIPTS = ("schema.sql", "seed.sql")
# present once the schema script has run
MARKER_TABLE = "profiles"

_initialized = False
_init_lock = asyncio.Lock()


async def _apply_setup_scripts(conn: aiosqlite.Connection) -> None:
    for name in SETUP_SCRIPTS:
        path = os.path.join(_SQL_DIR, name)
        if not os.path.exists(path) or os.path.getsize(path) == 0:
            _logger.warning(f"Setup script {name} is missing or empty, skipping")
            continue
        _logger.info(f"Applying {name} to marketplace store...")
        with open(path, "r", encoding="utf-8") as f:
            await conn.executescript(f.read())
    await conn.commit()


async def _has_schema(conn: aiosqlite.Connection) -> bool:
    async with conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?;",
        (MARKER_TABLE,),
    ) as cur:
        return await cur.fetchone() is not None


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Open the marketplace store with foreign keys enforced.

    The first connection of the process checks for the schema and builds it
    (plus the vendor category seed rows) when the file is new.
    """
    global _initialized
    folder = os.path.dirname(DB_PATH)
    if folder:
        os.makedirs(folder, exist_ok=True)
    conn = await aiosqlite.connect(DB_PATH)
    try:
        conn.row_factory = Row
        await conn.execute("PRAGMA foreign_keys = ON;")
        if not _initialized:
            async with _init_lock:
                if not _initialized:
                    if not await _has_schema(conn):
                        _logger.info(f"Creating marketplace store at {DB_PATH}...")
                        await _apply_setup_scripts(conn)
                    _initialized = True
        yield conn
    finally:
        await conn.close()
