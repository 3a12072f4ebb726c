"""
alfred-nest error types.

Every failure in the core is raised as one of these and bubbles unchanged to
the command layer, which is the only place they are turned into text.
"""

from typing import Any, Optional


class NestError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class NotAuthorized(NestError):
    """No access token, or the token has expired. Re-run authorization."""

    def __init__(self, message: str = "Not authorized. Run `nst authorize` first."):
        super().__init__("not_authorized", message)


class NetworkError(NestError):
    def __init__(self, message: str):
        super().__init__("network_error", message)


class ApiError(NestError):
    def __init__(self, status_code: int, status_line: str, body: str = ""):
        super().__init__("api_error", status_line, {"status_code": status_code, "body": body[:200]})
        self.status_code = status_code


class TooManyRedirects(NestError):
    def __init__(self, message: str):
        super().__init__("too_many_redirects", message)


class DecodeError(NestError):
    def __init__(self, message: str):
        super().__init__("decode_error", message)


class PersistenceError(NestError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("persistence_error", message, details)


class AuthorizationInProgress(NestError):
    """The callback port is already bound by another authorization attempt."""

    def __init__(self, message: str = "An authorization is already in progress."):
        super().__init__("authorization_in_progress", message)


class SyncInProgress(NestError):
    """Another process holds the sync lock."""

    def __init__(self, message: str = "A sync is already in progress."):
        super().__init__("sync_in_progress", message)


class DeviceNotFound(NestError):
    def __init__(self, message: str):
        super().__init__("device_not_found", message)
