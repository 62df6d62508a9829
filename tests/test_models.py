import json

import httpx
import pytest

from twbookmarks.errors import DecodeError
from twbookmarks.models import (
    BookmarkEntry,
    Features,
    QueryVariables,
    decode_query,
    encode_query,
    parse_delete_ack,
    parse_page,
)

from .utils import api_error, cursor_entry, page, tweet_entry


def test_query_round_trip():
    kv = QueryVariables(count=50, cursor="HBaAgLydw9DyLwAA")
    ft = Features(vibe_api_enabled=False, graphql_timeline_v2_bookmark_timeline=True)

    url = httpx.URL("https://twitter.com/i/api/graphql/X/Bookmarks", params=encode_query(kv, ft))
    assert "%7B" in str(url)
    assert url.params["variables"].startswith('{"count":50,')

    assert decode_query(dict(url.params)) == (kv, ft)


def test_query_encoding_is_compact():
    params = encode_query(QueryVariables(), Features())
    assert set(params.keys()) == {"variables", "features"}
    assert ", " not in params["variables"]

    variables = json.loads(params["variables"])
    assert variables["cursor"] == ""
    assert variables["includePromotedContent"] is True


def test_query_from_dict_drops_unknown():
    kv = QueryVariables.from_dict({"count": 5, "cursor": "x", "somethingNew": True})
    assert kv == QueryVariables(count=5, cursor="x")

    ft = Features.from_dict({"vibe_api_enabled": False, "unknown_flag": True})
    assert ft.vibe_api_enabled is False


def test_parse_page():
    obj = page(
        cursor_entry("top-1", "Top"),
        tweet_entry("1"),
        tweet_entry(None),
        tweet_entry("2", nested=True),
        {"entryId": "messageprompt-1", "content": {"entryType": "TimelineTimelineModule"}},
        cursor_entry("bottom-1"),
        cursor_entry("bottom-2"),
    )

    res = parse_page(obj)
    assert [x.id for x in res.items] == ["1", None, "2"]
    assert res.empty_count == 1
    assert res.bottom_cursor == "bottom-2"
    assert res.top_cursor == "top-1"
    assert res.errors == []


def test_parse_page_v2_and_typename():
    entry = tweet_entry("7")
    entry["content"] = {"__typename": "TimelineTimelineItem", **entry["content"]}
    del entry["content"]["entryType"]
    obj = {"data": {"bookmark_timeline_v2": {"timeline": {"instructions": [{"entries": [entry]}]}}}}

    res = parse_page(obj)
    assert [x.id for x in res.items] == ["7"]
    assert res.bottom_cursor == ""


def test_parse_page_errors():
    res = parse_page(api_error("Rate limit exceeded", 88))
    assert res.errors == [{"message": "Rate limit exceeded", "code": 88}]
    assert res.items == []

    assert parse_page({}).items == []


def test_bookmark_entry():
    content = tweet_entry("5", nested=True)["content"]["itemContent"]
    entry = BookmarkEntry.parse(content)
    assert entry.id == "5"
    assert entry.rest_id == "5"
    assert entry.username == "user42"
    assert entry.is_empty is False
    assert json.loads(entry.json())["tweet"]["full_text"] == "tweet 5"

    entry = BookmarkEntry.parse({"tweet_results": {"result": {"__typename": "TweetTombstone"}}})
    assert entry.is_empty is True
    assert entry.user == {}


def test_parse_delete_ack():
    assert parse_delete_ack({"data": {"tweet_bookmark_delete": "Done"}}) == "Done"
    assert parse_delete_ack({"data": {}}) is None


@pytest.mark.parametrize(
    "instructions",
    [
        ["x"],
        "x",
        [{"entries": ["x"]}],
        [{"entries": [{"content": "x"}]}],
    ],
)
def test_parse_page_malformed(instructions):
    obj = {"data": {"bookmark_timeline": {"timeline": {"instructions": instructions}}}}
    with pytest.raises(DecodeError):
        parse_page(obj)


def test_parse_page_odd_tweet_result():
    entry = tweet_entry("1")
    entry["content"]["itemContent"]["tweet_results"]["result"] = "gone"

    res = parse_page(page(entry))
    assert len(res.items) == 1 and res.items[0].is_empty
    assert parse_page({"data": "nothing"}).items == []
