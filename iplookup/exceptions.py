"""Errors surfaced by the lookup client."""


class IPinfoError(Exception):
    """Base class for lookup failures."""


class RequestQuotaExceededError(IPinfoError):
    """The API rejected the request because the account quota is used up."""

    def __init__(self, message: str = "IPinfo request quota exceeded."):
        super().__init__(message)


class APIError(IPinfoError):
    """The API answered with an error status."""

    def __init__(self, status: int, reason: str):
        self.status = status
        self.reason = reason
        super().__init__(f"API error: status={status}, reason={reason}")


class TransportError(IPinfoError):
    """The request never produced a usable response (network, timeout, bad body)."""
