import asyncio
from dataclasses import dataclass, replace

from .logger import logger


def parse_csrf_token(cookie: str) -> str | None:
    for part in cookie.split(";"):
        key, sep, val = part.partition("=")
        if sep and key.strip() == "ct0":
            return val.strip()
    return None


@dataclass(frozen=True)
class Credentials:
    cookie: str = ""
    csrf_token: str = ""
    bearer_token: str = ""
    list_operation_id: str = ""
    delete_operation_id: str = ""

    def auth_headers(self) -> dict[str, str]:
        return {
            "cookie": self.cookie,
            "authorization": f"Bearer {self.bearer_token}",
            "x-csrf-token": self.csrf_token,
        }


class CredentialStore:
    """Engine-owned credentials. All writes and snapshot reads share one lock."""

    def __init__(
        self,
        cookie: str = "",
        bearer_token: str = "",
        list_operation_id: str = "",
        delete_operation_id: str = "",
    ):
        self._lock = asyncio.Lock()
        self._creds = Credentials(
            cookie=cookie,
            csrf_token=parse_csrf_token(cookie) or "",
            bearer_token=bearer_token,
            list_operation_id=list_operation_id,
            delete_operation_id=delete_operation_id,
        )

    @property
    def current(self) -> Credentials:
        return self._creds

    async def snapshot(self) -> Credentials:
        async with self._lock:
            return self._creds

    async def set_credentials(self, bearer_token: str, cookie: str) -> bool:
        async with self._lock:
            csrf_token = parse_csrf_token(cookie)
            self._creds = replace(
                self._creds,
                bearer_token=bearer_token,
                cookie=cookie,
                csrf_token=csrf_token or "",
            )

        if csrf_token is None:
            logger.warning("No ct0 value in session cookie, requests will miss x-csrf-token")
        return csrf_token is not None

    async def set_discovery(
        self, bearer_token: str, list_operation_id: str, delete_operation_id: str = ""
    ):
        async with self._lock:
            self._creds = replace(
                self._creds,
                bearer_token=bearer_token,
                list_operation_id=list_operation_id,
                delete_operation_id=delete_operation_id,
            )

    async def reset_discovery(self):
        await self.set_discovery("", "", "")
