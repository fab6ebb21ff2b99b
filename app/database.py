import asyncio
from weakref import WeakKeyDictionary

import aiosqlite
import structlog

from app.config import settings

logger = structlog.get_logger()

_db: aiosqlite.Connection | None = None
_write_locks: WeakKeyDictionary[aiosqlite.Connection, asyncio.Lock] = WeakKeyDictionary()

DDL_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS customers (
        id TEXT PRIMARY KEY,
        customer_id TEXT NOT NULL UNIQUE,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        display_name TEXT,
        email TEXT NOT NULL,
        user_type TEXT NOT NULL DEFAULT 'individual',
        phone_number TEXT,
        secondary_email TEXT,
        secondary_phone_number TEXT,
        date_of_birth TEXT,
        gender TEXT,
        tags TEXT,
        is_deleted INTEGER NOT NULL DEFAULT 0,
        created_by TEXT,
        updated_by TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    "DROP INDEX IF EXISTS idx_customers_email",
    """
    CREATE UNIQUE INDEX IF NOT EXISTS idx_customers_active_email
    ON customers (email) WHERE is_deleted = 0
    """,
    """
    CREATE TABLE IF NOT EXISTS customer_profiles (
        customer_ref TEXT PRIMARY KEY REFERENCES customers (id),
        segment TEXT,
        account_status TEXT NOT NULL DEFAULT 'active',
        notes TEXT,
        email_opt_in INTEGER NOT NULL DEFAULT 1,
        company_legal_name TEXT,
        tax_id TEXT,
        credit_limit REAL,
        payment_terms TEXT,
        updated_by TEXT,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS customer_addresses (
        id TEXT PRIMARY KEY,
        customer_ref TEXT NOT NULL REFERENCES customers (id),
        address_type TEXT NOT NULL DEFAULT 'both',
        is_default INTEGER NOT NULL DEFAULT 0,
        recipient_name TEXT NOT NULL,
        address_line1 TEXT NOT NULL,
        address_line2 TEXT,
        city TEXT NOT NULL,
        state_province TEXT NOT NULL,
        postal_code TEXT NOT NULL,
        country TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
]


async def init_database(db_path: str | None = None) -> aiosqlite.Connection:
    global _db
    path = db_path or settings.db_path
    _db = await aiosqlite.connect(path)
    _db.row_factory = aiosqlite.Row
    await _db.execute("PRAGMA journal_mode=WAL")
    await _db.execute("PRAGMA foreign_keys=ON")

    for ddl in DDL_STATEMENTS:
        await _db.execute(ddl)
    await _db.commit()

    logger.info("database_initialized", path=path)
    return _db


async def close_database() -> None:
    global _db
    if _db is not None:
        await _db.close()
        _db = None
        logger.info("database_closed")


def get_db() -> aiosqlite.Connection:
    if _db is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _db


def write_lock(db: aiosqlite.Connection) -> asyncio.Lock:
    """Lock shared by every writer on ``db``; a connection carries one SQLite transaction."""
    lock = _write_locks.get(db)
    if lock is None:
        lock = _write_locks[db] = asyncio.Lock()
    return lock


async def check_health() -> None:
    db = get_db()
    cursor = await db.execute("SELECT 1")
    await cursor.close()
