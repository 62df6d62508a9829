import json

import httpx

DEFAULT_USER = {"rest_id": "42", "legacy": {"screen_name": "user42", "name": "User 42"}}


def tweet_entry(twid: str | None, nested=False, user: dict | None = None):
    result = {
        "__typename": "Tweet",
        "rest_id": twid or "0",
        "legacy": {"id_str": twid, "full_text": f"tweet {twid}"} if twid else {},
        "core": {"user_results": {"result": user or DEFAULT_USER}},
    }
    if nested:
        result = {"__typename": "TweetWithVisibilityResults", "tweet": result}

    return {
        "entryId": f"tweet-{twid}",
        "content": {
            "entryType": "TimelineTimelineItem",
            "itemContent": {"itemType": "TimelineTweet", "tweet_results": {"result": result}},
        },
    }


def cursor_entry(value: str, cursor_type="Bottom"):
    return {
        "entryId": f"cursor-{cursor_type.lower()}-{value}",
        "content": {
            "entryType": "TimelineTimelineCursor",
            "value": value,
            "cursorType": cursor_type,
        },
    }


def page(*entries: dict):
    instructions = [{"type": "TimelineAddEntries", "entries": list(entries)}]
    return {"data": {"bookmark_timeline": {"timeline": {"instructions": instructions}}}}


def full_page(real: int, empty: int, bottom: str | None = None):
    entries = [tweet_entry(f"{i}") for i in range(1, real + 1)]
    entries += [tweet_entry(None) for _ in range(empty)]
    if bottom is not None:
        entries.append(cursor_entry(bottom))
    return page(*entries)


def api_error(message="Internal error", code=131):
    return {"errors": [{"message": message, "code": code}]}


class Upstream:
    """httpx_mock callback replaying bodies in order; the last one repeats."""

    def __init__(self, *bodies):
        self.bodies = list(bodies)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        body = self.bodies.pop(0) if len(self.bodies) > 1 else self.bodies[0]
        if isinstance(body, Exception):
            raise body
        return httpx.Response(200, json=body)

    def cursors(self) -> list[str]:
        return [json.loads(x.url.params["variables"])["cursor"] for x in self.requests]
