import re
from dataclasses import dataclass

import bs4
from httpx import AsyncClient

from .constants import BOOKMARKS_PAGE_URL, OP_Bookmarks, OP_DeleteBookmark
from .errors import DiscoveryFailed
from .logger import logger
from .models import JSONTrait
from .transport import send


@dataclass
class Discovery(JSONTrait):
    list_operation_id: str
    delete_operation_id: str
    bearer_token: str


class DiscoveryRules:
    """Patterns used to pull identifiers out of the web client.

    Upstream renames things on redeploys; subclass or pass other patterns
    instead of touching the engine.
    """

    main_bundle = re.compile(
        r"https://abs\.twimg\.com/responsive-web/client-web(?:-legacy)?/main\.[0-9a-zA-Z]+\.js"
    )
    access_token = re.compile(r"AAAAAAAAAAAAAAA[a-zA-Z0-9\-_%]*")

    def __init__(
        self, list_operation: str = OP_Bookmarks, delete_operation: str = OP_DeleteBookmark
    ):
        self.list_operation = self._operation_re(list_operation)
        self.delete_operation = self._operation_re(delete_operation)

    @staticmethod
    def _operation_re(name: str):
        return re.compile(r'"([a-zA-Z0-9\-_]+)",operationName:"' + re.escape(name) + '"')

    def find_main_bundle(self, html: str) -> str | None:
        soup = bs4.BeautifulSoup(html, "html.parser")
        for tag in soup.find_all(["script", "link"]):
            src = tag.get("src") or tag.get("href") or ""
            if m := self.main_bundle.fullmatch(src):
                return m.group(0)

        if m := self.main_bundle.search(html):
            return m.group(0)
        return None

    def find_access_token(self, js: str) -> str | None:
        m = self.access_token.search(js)
        return m.group(0) if m else None

    def find_list_operation(self, js: str) -> str | None:
        m = self.list_operation.search(js)
        return m.group(1) if m else None

    def find_delete_operation(self, js: str) -> str | None:
        m = self.delete_operation.search(js)
        return m.group(1) if m else None


class SessionBootstrapper:
    def __init__(self, client: AsyncClient, rules: DiscoveryRules | None = None, debug=False):
        self.client = client
        self.rules = rules or DiscoveryRules()
        self.debug = debug

    async def bootstrap(self, cookie: str) -> Discovery:
        rep = await send(
            self.client,
            "GET",
            BOOKMARKS_PAGE_URL,
            "bookmarks_page",
            debug=self.debug,
            headers={"cookie": cookie},
        )

        bundle_url = self.rules.find_main_bundle(rep.text)
        if bundle_url is None:
            raise DiscoveryFailed("main bundle")

        logger.debug(f"Found main bundle: {bundle_url}")
        rep = await send(self.client, "GET", bundle_url, "main_bundle", debug=self.debug)
        js = rep.text

        bearer_token = self.rules.find_access_token(js)
        if bearer_token is None:
            raise DiscoveryFailed("access token")

        list_op = self.rules.find_list_operation(js)
        if list_op is None:
            raise DiscoveryFailed("list operation")

        delete_op = self.rules.find_delete_operation(js)
        if delete_op is None:
            raise DiscoveryFailed("delete operation")

        logger.info(f"Discovered operations: list={list_op} delete={delete_op}")
        return Discovery(
            list_operation_id=list_op,
            delete_operation_id=delete_op,
            bearer_token=bearer_token,
        )
