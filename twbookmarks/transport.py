import json
import os
from typing import Any

import httpx
from fake_useragent import UserAgent
from httpx import AsyncClient, AsyncHTTPTransport, Response, Timeout

from .errors import DecodeError, RequestTimeout, TransportError, UpstreamStatusError
from .logger import logger
from .utils import utc

TMP_TS = utc.now().isoformat().split(".")[0].replace("T", "_").replace(":", "-")[0:16]
REDACTED_HEADERS = {"cookie", "authorization", "x-csrf-token"}


def make_client(
    timeout: float, proxy: str | None = None, user_agent: str | None = None
) -> AsyncClient:
    proxies = [proxy, os.getenv("TWB_PROXY")]
    proxies = [x for x in proxies if x is not None]
    proxy = proxies[0] if proxies else None

    transport = AsyncHTTPTransport(retries=2)
    client = AsyncClient(
        proxy=proxy,
        follow_redirects=True,
        timeout=Timeout(timeout),
        transport=transport,
    )

    client.headers["user-agent"] = user_agent or UserAgent().chrome
    client.headers["x-twitter-active-user"] = "yes"
    client.headers["x-twitter-client-language"] = "en"
    return client


def dump_response(response: Response):
    count = getattr(dump_response, "__count", -1) + 1
    setattr(dump_response, "__count", count)

    output_file = f"/tmp/twbookmarks-{TMP_TS}/{count:05d}_{response.status_code}.txt"
    os.makedirs(os.path.dirname(output_file), exist_ok=True)

    message = []
    message.append(f"{response.status_code} {response.request.method} {response.request.url}")
    message.append("\n")
    for k, v in response.request.headers.items():
        message.append(str((k, "<redacted>" if k.lower() in REDACTED_HEADERS else v)))
    message.append("\n")

    try:
        message.append(json.dumps(response.json(), indent=2))
    except (json.JSONDecodeError, UnicodeDecodeError):
        message.append(response.text)

    with open(output_file, "w") as f:
        f.write("\n".join(message))


def raise_for_status(rep: Response, label: str):
    try:
        rep.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.warning(f"{label} - {rep.status_code} - {rep.text[:500]}")
        raise UpstreamStatusError(label, rep.status_code, rep.text) from e


async def send(
    client: AsyncClient, method: str, url: str, label: str, debug=False, **kwargs: Any
) -> Response:
    try:
        rep = await client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        raise RequestTimeout(f"{label} - timeout: {e}") from e
    except httpx.RequestError as e:
        raise TransportError(f"{label} - {type(e).__name__}: {e}") from e

    logger.trace(f"{rep.status_code:3d} - {method} {rep.request.url}")
    if debug:
        dump_response(rep)

    raise_for_status(rep, label)
    return rep


def read_json(rep: Response, label: str) -> dict:
    try:
        obj = rep.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"{label} - invalid JSON body: {e}") from e

    if not isinstance(obj, dict):
        raise DecodeError(f"{label} - expected JSON object, got {type(obj).__name__}")
    return obj
