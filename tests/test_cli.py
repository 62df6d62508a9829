import json
import re

import pytest
from pytest_httpx import HTTPXMock

from twbookmarks import cli
from twbookmarks.constants import GQL_URL
from twbookmarks.engine import BookmarkEngine
from twbookmarks.models import BookmarkEntry

from .utils import Upstream, full_page, tweet_entry

DELETE_URL = f"{GQL_URL}/DEL_OP/DeleteBookmark"
LIST_RE = re.compile(r"https://twitter\.com/i/api/graphql/LIST_OP/Bookmarks\?.*")


def make_entry(twid: str) -> BookmarkEntry:
    return BookmarkEntry.parse(tweet_entry(twid)["content"]["itemContent"])


async def test_print_and_remove(httpx_mock: HTTPXMock, engine_mock: BookmarkEngine, capsys):
    httpx_mock.add_response(url=DELETE_URL, json={"data": {"tweet_bookmark_delete": "Done"}})

    on_item = cli.print_and_remove(engine_mock)
    assert await on_item(make_entry("11")) is True

    out = json.loads(capsys.readouterr().out)
    assert out["tweet"]["id_str"] == "11"

    body = json.loads(httpx_mock.get_requests()[0].content)
    assert body["variables"] == {"tweet_id": "11"}


async def test_print_and_remove_stops_on_failure(
    httpx_mock: HTTPXMock, engine_mock: BookmarkEngine
):
    httpx_mock.add_response(url=DELETE_URL, status_code=403)

    on_item = cli.print_and_remove(engine_mock)
    assert await on_item(make_entry("12")) is False


async def test_resume_with_remove_drains_window(
    httpx_mock: HTTPXMock, engine_mock: BookmarkEngine
):
    # the window is refetched at the same cursor until it comes back short
    upstream = Upstream(full_page(20, 0, bottom="next"), full_page(3, 0))
    httpx_mock.add_callback(upstream, url=LIST_RE, is_reusable=True)
    httpx_mock.add_response(
        url=DELETE_URL, json={"data": {"tweet_bookmark_delete": "Done"}}, is_reusable=True
    )

    engine_mock.on_item = cli.print_and_remove(engine_mock)
    res = await engine_mock.run_chain(resume=True)
    assert res is not None and (res.reason, res.items) == ("exhausted", 23)
    assert upstream.cursors() == ["", ""]


def test_resume_requires_remove(monkeypatch):
    monkeypatch.setattr("sys.argv", ["twbookmarks", "--cookie", "ct0=x", "run", "--resume"])
    with pytest.raises(SystemExit) as e:
        cli.run()
    assert e.value.code == 2
