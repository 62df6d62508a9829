# ruff: noqa: F401
from .bootstrap import Discovery, DiscoveryRules, SessionBootstrapper
from .config import Settings
from .credentials import Credentials, CredentialStore, parse_csrf_token
from .engine import BookmarkEngine, RunState
from .errors import (
    ApiError,
    BookmarksError,
    DecodeError,
    DiscoveryFailed,
    IoError,
    NotBootstrapped,
    RequestTimeout,
    TransportError,
    UpstreamStatusError,
    UpstreamUnavailable,
)
from .logger import set_log_level
from .models import BookmarkEntry, ChainResult, Features, Page, QueryVariables
from .scheduler import Scheduler
from .store import SessionStore
from .throttle import Throttle
