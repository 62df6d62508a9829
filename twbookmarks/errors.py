class BookmarksError(Exception):
    pass


class UpstreamUnavailable(BookmarksError):
    """Upstream could not be reached or answered with a non-2xx status."""


class TransportError(UpstreamUnavailable):
    pass


class RequestTimeout(TransportError):
    pass


class UpstreamStatusError(UpstreamUnavailable):
    def __init__(self, label: str, status_code: int, body: str = ""):
        self.label = label
        self.status_code = status_code
        self.body = body
        super().__init__(f"{label} - {status_code}")


class DiscoveryFailed(BookmarksError):
    def __init__(self, what: str):
        self.what = what
        super().__init__(f"Failed to locate {what}")


class ApiError(BookmarksError):
    def __init__(self, errors: list[dict]):
        self.errors = errors
        self.messages = [f"({x.get('code', -1)}) {x.get('message', '')}" for x in errors]
        super().__init__("; ".join(self.messages))


class DecodeError(BookmarksError):
    pass


class IoError(BookmarksError):
    pass


class NotBootstrapped(BookmarksError):
    pass
