import asyncio
import sqlite3
from collections import defaultdict

import aiosqlite

from .logger import logger

MIN_SQLITE_VERSION = "3.24"


def lock_retry(max_retries=5, delay=1):
    def decorator(func):
        async def wrapper(*args, **kwargs):
            for i in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except sqlite3.OperationalError as e:
                    if i == max_retries - 1 or "database is locked" not in str(e):
                        raise e

                    await asyncio.sleep(delay)

        return wrapper

    return decorator


async def get_sqlite_version():
    async with aiosqlite.connect(":memory:") as db:
        async with db.execute("SELECT SQLITE_VERSION()") as cur:
            rs = await cur.fetchone()
            return rs[0] if rs else "3.0.0"


def parse_version(ver: str) -> tuple[int, ...]:
    return tuple(int(x) for x in ver.split(".")[:2] if x.isdigit())


async def check_version():
    # upserts in store.py need ON CONFLICT DO UPDATE
    ver = await get_sqlite_version()
    if parse_version(ver) < parse_version(MIN_SQLITE_VERSION):
        msg = f"SQLite version '{ver}' is too old, please upgrade to {MIN_SQLITE_VERSION}+"
        raise SystemError(msg)


async def migrate(db: aiosqlite.Connection):
    async with db.execute("PRAGMA user_version") as cur:
        rs = await cur.fetchone()
        uv = rs[0] if rs else 0

    async def v1():
        qs = """
        CREATE TABLE IF NOT EXISTS sessions (
            name TEXT PRIMARY KEY NOT NULL,
            settings TEXT DEFAULT '{}' NOT NULL,
            cursor TEXT DEFAULT '' NOT NULL,
            updated_at TEXT DEFAULT NULL
        );"""
        await db.execute(qs)

    migrations = {
        1: v1,
    }

    for i in range(uv + 1, len(migrations) + 1):
        logger.info(f"Running migration to v{i}")
        await migrations[i]()
        await db.execute(f"PRAGMA user_version = {i}")
        await db.commit()


class DB:
    _init_once: defaultdict[str, bool] = defaultdict(bool)

    def __init__(self, db_path):
        self.db_path = db_path
        self.conn = None

    async def __aenter__(self):
        if not self._init_once[self.db_path]:
            await check_version()

        db = await aiosqlite.connect(self.db_path)
        db.row_factory = aiosqlite.Row

        if not self._init_once[self.db_path]:
            await migrate(db)
            self._init_once[self.db_path] = True

        self.conn = db
        return db

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.conn:
            await self.conn.commit()
            await self.conn.close()


@lock_retry()
async def execute(db_path: str, qs: str, params: dict | None = None):
    async with DB(db_path) as db:
        await db.execute(qs, params)


@lock_retry()
async def fetchone(db_path: str, qs: str, params: dict | None = None):
    async with DB(db_path) as db:
        async with db.execute(qs, params) as cur:
            row = await cur.fetchone()
            return row


@lock_retry()
async def fetchall(db_path: str, qs: str, params: dict | None = None):
    async with DB(db_path) as db:
        async with db.execute(qs, params) as cur:
            rows = await cur.fetchall()
            return rows
