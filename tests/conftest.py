import pytest

from twbookmarks.engine import BookmarkEngine
from twbookmarks.logger import set_log_level

set_log_level("ERROR")

COOKIE = "guest_id=v1%3A1; ct0=csrf1; auth_token=abc"
TOKEN = "AAAAAAAAAAAAAAAAAAAAATEST%3Dtoken"


@pytest.fixture
async def engine_mock():
    engine = BookmarkEngine(
        COOKIE,
        TOKEN,
        delay=0,
        timeout=1,
        list_operation_id="LIST_OP",
        delete_operation_id="DEL_OP",
        user_agent="twbookmarks-tests",
    )
    yield engine
    await engine.aclose()
