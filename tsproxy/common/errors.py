from __future__ import annotations


class TsproxyError(Exception):
    pass


class ConfigError(TsproxyError):
    """Required configuration is absent or malformed. Fatal at startup."""


class UpstreamError(TsproxyError):
    """Base for failures talking to the search service."""


class UpstreamUnavailable(UpstreamError):
    """Connect, DNS or timeout failure before a response arrived."""


class UpstreamReadError(UpstreamError):
    """The response started but its body could not be read."""


class UpstreamStatusError(UpstreamError):
    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"upstream returned {status_code}")
        self.status_code = status_code
        self.body = body


class ResultParseError(UpstreamError):
    """The upstream body did not match the search result schema."""


class UpstreamRequestError(UpstreamError):
    """The upstream request could not be built (malformed URL)."""
