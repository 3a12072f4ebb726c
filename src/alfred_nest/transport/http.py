"""
REST HTTP client for the Nest API.

The token travels as the ``auth`` query parameter. The API answers many
requests with a 307 to a shard host; those are followed by hand so that PUT
and PATCH bodies are re-sent, up to ``MAX_REDIRECTS`` hops.
"""

import logging
from typing import Optional, Union

import httpx

from alfred_nest.errors import ApiError, NetworkError, TooManyRedirects

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://developer-api.nest.com"
DEFAULT_TIMEOUT = 30.0
MAX_REDIRECTS = 3


class HttpClient:
    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._token = token
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={"User-Agent": "alfred-nest/0.1.0", "Accept": "application/json"},
            timeout=timeout,
            follow_redirects=False,
        )

    def request(self, method: str, path: str, body: Optional[str] = None) -> str:
        headers = {"Content-Type": "application/json"} if body is not None else None
        url: Union[httpx.URL, str] = path
        params: Optional[dict[str, str]] = {"auth": self._token}

        for hop in range(MAX_REDIRECTS + 1):
            logger.debug("%s %s (hop %d)", method, path, hop)
            try:
                resp = self._client.request(method, url, params=params, content=body, headers=headers)
            except httpx.HTTPError as e:
                raise NetworkError(f"{method} {path} failed: {e}") from e

            if resp.status_code == 307:
                location = resp.headers.get("Location")
                if not location:
                    raise ApiError(resp.status_code, "307 Temporary Redirect without Location", resp.text)
                # The Location already carries the auth parameter.
                url = resp.url.join(location)
                params = None
                continue

            if resp.status_code >= 400:
                raise ApiError(resp.status_code, f"{resp.status_code} {resp.reason_phrase}", resp.text)
            return resp.text

        raise TooManyRedirects(f"{method} {path}: more than {MAX_REDIRECTS} redirects")

    def get(self, path: str) -> str:
        return self.request("GET", path)

    def put(self, path: str, body: str) -> str:
        return self.request("PUT", path, body)

    def patch(self, path: str, body: str) -> str:
        return self.request("PATCH", path, body)

    def close(self) -> None:
        self._client.close()
