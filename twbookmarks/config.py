import json
import os
from dataclasses import dataclass, replace

from .constants import DEFAULT_COUNT, DEFAULT_DELAY, DEFAULT_TIMEOUT, FETCH_INTERVAL
from .models import JSONTrait
from .utils import format_duration, parse_duration

ENV_STRINGS = {
    "TWB_ACCESS_TOKEN": "access_token",
    "TWB_COOKIE": "cookie",
    "TWB_PROXY": "proxy",
    "TWB_USER_AGENT": "user_agent",
}
ENV_DURATIONS = {"TWB_DELAY": "delay", "TWB_TIMEOUT": "timeout", "TWB_INTERVAL": "interval"}


@dataclass
class Settings(JSONTrait):
    access_token: str = ""
    cookie: str = ""
    list_operation_id: str = ""
    delete_operation_id: str = ""
    delay: float = DEFAULT_DELAY
    timeout: float = DEFAULT_TIMEOUT
    interval: float = FETCH_INTERVAL
    count: int = DEFAULT_COUNT
    proxy: str | None = None
    user_agent: str | None = None

    def to_record(self) -> dict:
        # keys follow the exchanged record format
        return {
            "access_token": self.access_token,
            "cookie": self.cookie,
            "sections": {"index": self.list_operation_id, "remove": self.delete_operation_id},
            "delay": format_duration(self.delay),
            "timeout": format_duration(self.timeout),
            "interval": format_duration(self.interval),
            "count": self.count,
            "proxy": self.proxy,
            "user_agent": self.user_agent,
        }

    @staticmethod
    def from_record(obj: dict) -> "Settings":
        sections = obj.get("sections") or {}
        res = Settings(
            access_token=obj.get("access_token") or "",
            cookie=obj.get("cookie") or "",
            list_operation_id=sections.get("index") or "",
            delete_operation_id=sections.get("remove") or "",
            proxy=obj.get("proxy"),
            user_agent=obj.get("user_agent"),
        )

        for key in ["delay", "timeout", "interval"]:
            if obj.get(key) not in (None, ""):
                setattr(res, key, parse_duration(obj[key]))

        if obj.get("count"):
            res.count = int(obj["count"])

        return res

    def dumps(self) -> str:
        return json.dumps(self.to_record(), indent=2)

    @staticmethod
    def loads(text: str) -> "Settings":
        return Settings.from_record(json.loads(text))

    @staticmethod
    def load_file(path: str) -> "Settings":
        with open(path) as fp:
            return Settings.loads(fp.read())

    def with_env(self) -> "Settings":
        res = replace(self)
        for key, attr in ENV_STRINGS.items():
            if val := os.getenv(key):
                setattr(res, attr, val)

        for key, attr in ENV_DURATIONS.items():
            if val := os.getenv(key):
                setattr(res, attr, parse_duration(val))

        if val := os.getenv("TWB_COUNT"):
            res.count = int(val)

        return res

    @staticmethod
    def from_env() -> "Settings":
        return Settings().with_env()
