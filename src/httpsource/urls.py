"""URL construction helpers."""

from __future__ import annotations

from urllib.parse import quote, urlencode

import httpx


class UrlBuilder:
    """Fill ``{name}`` route placeholders and append query parameters.

    >>> UrlBuilder("http://h/users/{id}").route_param("id", "a b").query_string("x", "1").url
    'http://h/users/a%20b?x=1'
    """

    def __init__(self, url: str) -> None:
        self._url = url
        self._query: list[tuple[str, str]] = []

    def route_param(self, name: str, value: object) -> UrlBuilder:
        placeholder = "{" + name + "}"
        if placeholder not in self._url:
            raise ValueError(f"Route parameter '{name}' not found in {self._url}")
        self._url = self._url.replace(placeholder, quote(str(value), safe=""))
        return self

    def query_string(self, name: str, value: object) -> UrlBuilder:
        self._query.append((name, str(value)))
        return self

    @property
    def url(self) -> str:
        """Return the built URL. Raises ValueError if it is not an absolute http(s) URL."""
        url = self._url
        if self._query:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}{urlencode(self._query)}"
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as exc:
            raise ValueError(f"Invalid URL '{url}': {exc}") from exc
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise ValueError(f"Invalid URL '{url}': expected an absolute http(s) URL")
        return url
