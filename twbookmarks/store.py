from .config import Settings
from .db import execute, fetchall, fetchone
from .utils import utc


class SessionStore:
    """Named profiles of session settings and the last resumable cursor, kept in SQLite."""

    def __init__(self, db_file: str = "bookmarks.db"):
        self.db_file = db_file

    async def save(self, name: str, settings: Settings):
        qs = """
        INSERT INTO sessions (name, settings, updated_at) VALUES (:name, :settings, :ts)
        ON CONFLICT(name) DO UPDATE SET settings = excluded.settings, updated_at = excluded.updated_at
        """
        params = {"name": name, "settings": settings.dumps(), "ts": utc.now().isoformat()}
        await execute(self.db_file, qs, params)

    async def load(self, name: str) -> Settings | None:
        qs = "SELECT settings FROM sessions WHERE name = :name"
        rs = await fetchone(self.db_file, qs, {"name": name})
        return Settings.loads(rs["settings"]) if rs else None

    async def save_cursor(self, name: str, cursor: str):
        qs = """
        INSERT INTO sessions (name, cursor, updated_at) VALUES (:name, :cursor, :ts)
        ON CONFLICT(name) DO UPDATE SET cursor = excluded.cursor, updated_at = excluded.updated_at
        """
        params = {"name": name, "cursor": cursor, "ts": utc.now().isoformat()}
        await execute(self.db_file, qs, params)

    async def load_cursor(self, name: str) -> str:
        qs = "SELECT cursor FROM sessions WHERE name = :name"
        rs = await fetchone(self.db_file, qs, {"name": name})
        return rs["cursor"] if rs else ""

    async def delete(self, name: str):
        await execute(self.db_file, "DELETE FROM sessions WHERE name = :name", {"name": name})

    async def names(self) -> list[str]:
        rs = await fetchall(self.db_file, "SELECT name FROM sessions ORDER BY name")
        return [x["name"] for x in rs]

    async def info(self) -> list[dict]:
        rs = await fetchall(self.db_file, "SELECT name, settings, cursor, updated_at FROM sessions")
        items = []
        for x in rs:
            settings = Settings.loads(x["settings"])
            items.append(
                {
                    "name": x["name"],
                    "list_op": settings.list_operation_id,
                    "delete_op": settings.delete_operation_id,
                    "has_cookie": bool(settings.cookie),
                    "cursor": x["cursor"][:24],
                    "updated_at": x["updated_at"],
                }
            )
        return items
