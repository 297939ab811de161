"""Thin adapter for calling the upstream image service over HTTP."""

from typing import Any, Protocol

import requests

from core.utils.config import Settings


class HttpAdapterProtocol(Protocol):
    """Minimal HTTP adapter protocol (repository-facing)."""

    def send(
        self,
        *,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> requests.Response: ...


class HttpAdapter:
    """Low-level HTTP operations (mechanical, no error handling).

    This adapter:
    - Wraps a requests Session bound to the upstream base URL
    - Attaches the private access token header to every call
    - Does NOT handle errors or status codes (lets them bubble up)
    """

    def __init__(
        self,
        settings: Settings,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = settings.upstream_base_url
        self._timeout = settings.upstream_timeout

        self._session = session or requests.Session()
        self._session.headers.update(
            {
                settings.upstream_token_header: settings.upstream_access_token,
                "Accept": "application/json",
            }
        )

    def send(
        self,
        *,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> requests.Response:
        """Perform a single request against the upstream service.

        Raises requests exceptions - caught by domain implementation.
        """
        return self._session.request(
            method,
            f"{self._base_url}{path}",
            json=json,
            timeout=self._timeout,
        )
