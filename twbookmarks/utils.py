import json
import os
import re
from datetime import datetime, timezone
from typing import Any, TypeVar

T = TypeVar("T")


class utc:
    @staticmethod
    def now() -> datetime:
        return datetime.now(timezone.utc)


def encode_params(obj: dict):
    res = {}
    for k, v in obj.items():
        if isinstance(v, dict):
            v = {a: b for a, b in v.items() if b is not None}
            v = json.dumps(v, separators=(",", ":"))

        res[k] = str(v)

    return res


def decode_params(obj: dict) -> dict[str, Any]:
    res = {}
    for k, v in obj.items():
        try:
            res[k] = json.loads(v)
        except json.JSONDecodeError:
            res[k] = v
    return res


def get_or(obj: dict, key: str, default_value: T = None) -> Any | T:
    for part in key.split("."):
        if not isinstance(obj, dict) or part not in obj:
            return default_value
        obj = obj[part]
    return obj


def first_of(obj: dict, paths: list[str], default_value: T = None) -> Any | T:
    for path in paths:
        val = get_or(obj, path)
        if val is not None:
            return val
    return default_value


# https://stackoverflow.com/a/43184871
def get_by_path(obj: dict, key: str, default=None):
    stack = [iter(obj.items())]
    while stack:
        for k, v in stack[-1]:
            if k == key:
                return v
            elif isinstance(v, dict):
                stack.append(iter(v.items()))
                break
            elif isinstance(v, list):
                stack.append(iter(enumerate(v)))
                break
        else:
            stack.pop()
    return default


def get_env_bool(key: str, default_val: bool = False) -> bool:
    val = os.getenv(key)
    if val is None:
        return default_val
    return val.lower() in ("1", "true", "yes")


_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|us|µs|ns|h|m|s)")
_DURATION_UNITS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "µs": 1e-6,
    "ns": 1e-9,
}


def parse_duration(val: str | int | float) -> float:
    """Parse seconds from a number or a Go-style duration string ("1m30s", "500ms")."""
    if isinstance(val, (int, float)):
        return float(val)

    val = val.strip()
    try:
        return float(val)
    except ValueError:
        pass

    parts = _DURATION_RE.findall(val)
    if not parts or "".join(a + b for a, b in parts) != val:
        raise ValueError(f"Invalid duration: {val!r}")

    return sum(float(num) * _DURATION_UNITS[unit] for num, unit in parts)


def format_duration(seconds: float) -> str:
    if 0 < seconds < 1:
        return f"{round(seconds * 1000)}ms"
    if seconds == int(seconds):
        return f"{int(seconds)}s"
    return f"{seconds}s"


def print_table(rows: list[dict], hr_after=False):
    if not rows:
        return

    keys = list(rows[0].keys())
    rows = [{k: k for k in keys}, *[{k: str(x.get(k, "")) for k in keys} for x in rows]]
    colw = [max(len(x[k]) for x in rows) + 1 for k in keys]

    lines = []
    for row in rows:
        line = [f"{row[k]:<{colw[i]}}" for i, k in enumerate(keys)]
        lines.append(" ".join(line))

    max_len = max(len(x) for x in lines)
    print("\n".join(lines))
    if hr_after:
        print("-" * max_len)
