import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from httpx import AsyncClient, Response

from .bootstrap import Discovery, DiscoveryRules, SessionBootstrapper
from .config import Settings
from .constants import (
    CONVERSATION_PARAMS,
    CONVERSATION_URL,
    DEFAULT_COUNT,
    DEFAULT_DELAY,
    DEFAULT_TIMEOUT,
    FETCH_INTERVAL,
    GQL_URL,
    MAX_API_RETRIES,
    OP_Bookmarks,
    OP_DeleteBookmark,
)
from .credentials import Credentials, CredentialStore
from .errors import ApiError, BookmarksError, DecodeError, IoError, NotBootstrapped
from .logger import logger, set_log_level
from .models import (
    BookmarkEntry,
    ChainResult,
    Features,
    QueryVariables,
    encode_query,
    parse_delete_ack,
    parse_page,
)
from .throttle import Throttle
from .transport import make_client, read_json, send

OnItem = Callable[[BookmarkEntry], bool | Awaitable[bool]]


@dataclass
class RunState:
    running: bool = False
    retry_count: int = 0

    def acquire(self) -> bool:
        # no await between check and set, so this is atomic for the event loop
        if self.running:
            return False

        self.running = True
        self.retry_count = 0
        return True

    def release(self):
        self.running = False


class BookmarkEngine:
    """Pulls the bookmarks timeline page by page and hands every tweet to `on_item`.

    Only one chain runs at a time per engine. `on_item` returns False to stop
    the current chain.
    """

    def __init__(
        self,
        cookie: str = "",
        access_token: str = "",
        on_item: OnItem | None = None,
        *,
        delay: float = DEFAULT_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
        count: int = DEFAULT_COUNT,
        interval: float = FETCH_INTERVAL,
        list_operation_id: str = "",
        delete_operation_id: str = "",
        proxy: str | None = None,
        user_agent: str | None = None,
        rules: DiscoveryRules | None = None,
        client: AsyncClient | None = None,
        debug=False,
    ):
        self.creds = CredentialStore(cookie, access_token, list_operation_id, delete_operation_id)
        self.throttle = Throttle(delay)
        self.state = RunState()
        self.variables = QueryVariables(count=count)
        self.features = Features()
        self.on_item = on_item
        self.timeout = timeout
        self.interval = interval
        self.proxy = proxy
        self.user_agent = user_agent
        self.debug = debug
        if self.debug:
            set_log_level("DEBUG")

        self.client = client or make_client(timeout, proxy=proxy, user_agent=user_agent)
        self.bootstrapper = SessionBootstrapper(self.client, rules, debug=debug)

    @staticmethod
    def from_settings(settings: Settings, on_item: OnItem | None = None, **kwargs: Any):
        return BookmarkEngine(
            settings.cookie,
            settings.access_token,
            on_item,
            delay=settings.delay,
            timeout=settings.timeout,
            count=settings.count,
            interval=settings.interval,
            list_operation_id=settings.list_operation_id,
            delete_operation_id=settings.delete_operation_id,
            proxy=settings.proxy,
            user_agent=settings.user_agent,
            **kwargs,
        )

    def settings(self) -> Settings:
        creds = self.creds.current
        return Settings(
            access_token=creds.bearer_token,
            cookie=creds.cookie,
            list_operation_id=creds.list_operation_id,
            delete_operation_id=creds.delete_operation_id,
            delay=self.throttle.min_interval,
            timeout=self.timeout,
            interval=self.interval,
            count=self.variables.count,
            proxy=self.proxy,
            user_agent=self.user_agent,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        await self.client.aclose()

    # session

    async def set_credentials(self, access_token: str, cookie: str) -> bool:
        return await self.creds.set_credentials(access_token, cookie)

    async def bootstrap(self) -> Discovery:
        creds = await self.creds.snapshot()
        res = await self.bootstrapper.bootstrap(creds.cookie)
        await self.creds.set_discovery(
            res.bearer_token, res.list_operation_id, res.delete_operation_id
        )
        return res

    @property
    def cursor(self) -> str:
        return self.variables.cursor

    def set_cursor(self, cursor: str):
        self.variables.cursor = cursor

    # requests

    async def _request(
        self, method: str, url: str, label: str, creds: Credentials | None = None, **kwargs: Any
    ) -> Response:
        creds = creds or await self.creds.snapshot()
        headers = {**creds.auth_headers(), **kwargs.pop("headers", {})}

        await self.throttle.wait_turn()
        return await send(self.client, method, url, label, self.debug, headers=headers, **kwargs)

    async def _fetch_page(self) -> dict:
        creds = await self.creds.snapshot()
        if not creds.list_operation_id:
            raise NotBootstrapped("List operation id is unknown, call bootstrap() first")

        url = f"{GQL_URL}/{creds.list_operation_id}/{OP_Bookmarks}"
        params = encode_query(self.variables, self.features)
        rep = await self._request("GET", url, "bookmarks", creds, params=params)
        return read_json(rep, "bookmarks")

    async def _deliver(self, entry: BookmarkEntry) -> bool:
        if self.on_item is None:
            return True

        rs = self.on_item(entry)
        if inspect.isawaitable(rs):
            rs = await rs
        return rs is not False

    # chain

    async def run_chain(self, resume=False) -> ChainResult | None:
        """Fetch pages until the timeline is exhausted, the consumer stops or an error occurs.

        Returns None without doing anything when another chain is in flight.
        With `resume` the cursor is kept between chains, otherwise every chain
        starts from the top of the timeline.
        """
        if not self.state.acquire():
            logger.debug("Bookmarks chain already running, skipping")
            return None

        try:
            if not resume:
                self.variables.cursor = ""
            res = await self._run_chain(resume)
        finally:
            self.state.release()

        logger.info(
            f"Bookmarks chain finished: {res.reason} - "
            f"pages={res.pages} items={res.items} empty={res.empty} attempts={res.attempts}"
        )
        return res

    async def _run_chain(self, resume: bool) -> ChainResult:
        res = ChainResult(reason="exhausted")

        while True:
            cursor = res.cursor = self.variables.cursor
            if self.state.retry_count > MAX_API_RETRIES:
                logger.error(
                    f"API failed too many times at cursor {cursor!r} "
                    f"({res.attempts} attempts): {res.error}"
                )
                res.reason = "retries_exhausted"
                return res

            res.attempts += 1
            try:
                page = parse_page(await self._fetch_page())
            except BookmarksError as e:
                logger.error(
                    f"Bookmarks chain failed at cursor {cursor!r} (attempt {res.attempts}): {e}"
                )
                res.reason, res.error = "error", str(e)
                return res

            if page.errors:
                err = ApiError(page.errors)
                self.state.retry_count += 1
                res.error = str(err)
                logger.warning(
                    f"API error at cursor {cursor!r} (retry {self.state.retry_count}): {err}"
                )
                continue

            self.state.retry_count = 0
            res.pages += 1

            for entry in page.items:
                if entry.is_empty:
                    logger.info(f"Empty tweet {entry.rest_id}, probably deleted upstream")
                    res.empty += 1
                    continue

                res.items += 1
                if not await self._deliver(entry):
                    logger.debug(f"Consumer stopped chain at tweet {entry.id}")
                    res.reason = "stopped"
                    return res

            seen, empty = len(page.items), page.empty_count
            logger.debug(f"Page at cursor {cursor!r}: seen={seen} empty={empty}")

            if resume:
                if seen < self.variables.count:
                    return res

                # keep the window until every tweet on it was taken by the consumer
                if seen == empty:
                    if not page.bottom_cursor or page.bottom_cursor == cursor:
                        return res
                    self.variables.cursor = page.bottom_cursor
                continue

            if not page.bottom_cursor or page.bottom_cursor == cursor:
                return res

            self.variables.cursor = page.bottom_cursor

    # single item operations

    async def delete_item(self, tweet_id: int | str) -> str:
        creds = await self.creds.snapshot()
        op = creds.delete_operation_id
        if not op:
            raise NotBootstrapped("Delete operation id is unknown, call bootstrap() first")

        body = {"variables": {"tweet_id": str(tweet_id)}, "queryId": op}
        rep = await self._request(
            "POST",
            f"{GQL_URL}/{op}/{OP_DeleteBookmark}",
            "delete_bookmark",
            creds,
            json=body,
            headers={"content-type": "application/json"},
        )

        obj = read_json(rep, "delete_bookmark")
        if obj.get("errors"):
            raise ApiError(obj["errors"])

        ack = parse_delete_ack(obj)
        if ack is None:
            raise DecodeError(f"delete_bookmark - no acknowledgement for {tweet_id}")
        return ack

    async def tweet_detail(self, tweet_id: int | str) -> dict:
        url = f"{CONVERSATION_URL}/{tweet_id}.json"
        rep = await self._request("GET", url, "tweet_detail", params=CONVERSATION_PARAMS)
        return read_json(rep, "tweet_detail")

    async def fetch_raw(self, url: str) -> bytes:
        rep = await self._request("GET", url, "fetch_raw")
        return rep.content

    async def download_to(self, url: str, path: str) -> str:
        data = await self.fetch_raw(url)
        try:
            with open(path, "wb") as fp:
                fp.write(data)
        except OSError as e:
            logger.error(f"Could not write {url} to {path}: {e}")
            raise IoError(f"Failed to write {path}: {e}") from e
        return path
