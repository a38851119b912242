from enum import Enum


class ErrorKind(Enum):
    invalid_input = "invalid_input"
    upstream_unreachable = "upstream_unreachable"
    timeout = "timeout"
    payload_too_large = "payload_too_large"
    not_html = "not_html"
    no_match = "no_match"


class ExtractionError(Exception):
    kind: ErrorKind


class InvalidInput(ExtractionError):
    kind = ErrorKind.invalid_input


class NoMatch(ExtractionError):
    kind = ErrorKind.no_match


class FetchError(ExtractionError):
    """Raised by the fetcher. Every fetch failure is terminal for its call."""


class UpstreamUnreachable(FetchError):
    kind = ErrorKind.upstream_unreachable


class UpstreamStatus(UpstreamUnreachable):
    def __init__(self, status: int) -> None:
        super().__init__(f"Upstream answered with status {status}.")
        self.status = status


class Timeout(FetchError):
    kind = ErrorKind.timeout


class PayloadTooLarge(FetchError):
    kind = ErrorKind.payload_too_large


class NotHtml(FetchError):
    kind = ErrorKind.not_html
