import json
from dataclasses import asdict, dataclass, field, fields
from typing import Literal

from .constants import DEFAULT_COUNT
from .errors import DecodeError
from .utils import decode_params, encode_params, first_of, get_by_path, get_or


@dataclass
class JSONTrait:
    def dict(self):
        return asdict(self)

    def json(self):
        return json.dumps(self.dict(), default=str)


# MARK: Query parameters


@dataclass
class QueryVariables(JSONTrait):
    count: int = DEFAULT_COUNT
    cursor: str = ""
    includePromotedContent: bool = True
    withSuperFollowsUserFields: bool = True
    withDownvotePerspective: bool = False
    withReactionsMetadata: bool = False
    withReactionsPerspective: bool = False
    withSuperFollowsTweetFields: bool = True

    @staticmethod
    def from_dict(obj: dict) -> "QueryVariables":
        names = {x.name for x in fields(QueryVariables)}
        return QueryVariables(**{k: v for k, v in obj.items() if k in names})


@dataclass
class Features(JSONTrait):
    # search values here (view source) https://twitter.com/i/bookmarks
    dont_mention_me_view_api_enabled: bool = True
    interactive_text_enabled: bool = True
    responsive_web_uc_gql_enabled: bool = True
    vibe_api_enabled: bool = True
    responsive_web_edit_tweet_api_enabled: bool = False
    standardized_nudges_misinfo: bool = True
    tweet_with_visibility_results_prefer_gql_limited_actions_policy_enabled: bool = False
    responsive_web_enhance_cards_enabled: bool = False
    graphql_timeline_v2_bookmark_timeline: bool = False
    responsive_web_twitter_blue_verified_badge_is_enabled: bool = True
    verified_phone_label_enabled: bool = False
    responsive_web_graphql_timeline_navigation_enabled: bool = True
    unified_cards_ad_metadata_container_dynamic_card_content_query_enabled: bool = True
    tweetypie_unmention_optimization_enabled: bool = True
    graphql_is_translatable_rweb_tweet_is_translatable_enabled: bool = True
    responsive_web_text_conversations_enabled: bool = False

    @staticmethod
    def from_dict(obj: dict) -> "Features":
        names = {x.name for x in fields(Features)}
        return Features(**{k: v for k, v in obj.items() if k in names})


def encode_query(kv: QueryVariables, ft: Features) -> dict[str, str]:
    return encode_params({"variables": kv.dict(), "features": ft.dict()})


def decode_query(params: dict[str, str]) -> tuple[QueryVariables, Features]:
    obj = decode_params(params)
    return QueryVariables.from_dict(obj["variables"]), Features.from_dict(obj["features"])


# MARK: Fetched page


@dataclass
class BookmarkEntry(JSONTrait):
    """One bookmarked tweet with its author, both as returned by the API."""

    tweet: dict
    user: dict
    rest_id: str | None = None

    @property
    def id(self) -> str | None:
        return self.tweet.get("id_str") or None

    @property
    def is_empty(self) -> bool:
        return self.id is None

    @property
    def username(self) -> str | None:
        return get_or(self.user, "legacy.screen_name")

    @staticmethod
    def parse(item_content: dict) -> "BookmarkEntry":
        res = get_or(item_content, "tweet_results.result", {})
        if not isinstance(res, dict):
            res = {}

        tweet = res.get("legacy") or {}
        user = get_or(res, "core.user_results.result", {}) or {}
        if not tweet.get("id_str"):
            # TweetWithVisibilityResults wraps the tweet one level deeper
            tweet = get_or(res, "tweet.legacy", {}) or {}
            user = get_or(res, "tweet.core.user_results.result", {}) or {}

        rest_id = first_of(res, ["rest_id", "tweet.rest_id"])
        return BookmarkEntry(tweet=tweet, user=user, rest_id=rest_id)


@dataclass
class Page:
    items: list[BookmarkEntry] = field(default_factory=list)
    bottom_cursor: str = ""
    top_cursor: str = ""
    errors: list[dict] = field(default_factory=list)

    @property
    def empty_count(self) -> int:
        return sum(1 for x in self.items if x.is_empty)


def _instructions(obj: dict) -> list[dict]:
    paths = [
        "data.bookmark_timeline.timeline.instructions",
        "data.bookmark_timeline_v2.timeline.instructions",
    ]
    res = first_of(obj, paths)
    if res is None and isinstance(obj.get("data"), dict):
        res = get_by_path(obj["data"], "instructions")
    return res or []


def _entry_type(content: dict) -> str | None:
    return content.get("entryType") or content.get("__typename")


def _dicts(items, what: str) -> list[dict]:
    if not isinstance(items, list) or not all(isinstance(x, dict) for x in items):
        raise DecodeError(f"bookmarks - malformed {what}")
    return items


def parse_page(obj: dict) -> Page:
    page = Page(errors=list(obj.get("errors") or []))
    if page.errors:
        return page

    for instruction in _dicts(_instructions(obj), "instructions"):
        for entry in _dicts(instruction.get("entries") or [], "entries"):
            content = entry.get("content") or {}
            if not isinstance(content, dict):
                raise DecodeError("bookmarks - malformed entry content")

            kind = _entry_type(content)

            if kind == "TimelineTimelineItem":
                page.items.append(BookmarkEntry.parse(content.get("itemContent") or {}))
            elif kind == "TimelineTimelineCursor":
                if content.get("cursorType") == "Bottom":
                    page.bottom_cursor = content.get("value") or ""
                elif content.get("cursorType") == "Top":
                    page.top_cursor = content.get("value") or ""

    return page


# MARK: Results


ChainReason = Literal["exhausted", "stopped", "error", "retries_exhausted"]


@dataclass
class ChainResult(JSONTrait):
    reason: ChainReason
    pages: int = 0
    items: int = 0
    empty: int = 0
    attempts: int = 0
    cursor: str = ""
    error: str | None = None


def parse_delete_ack(obj: dict) -> str | None:
    return get_or(obj, "data.tweet_bookmark_delete")
