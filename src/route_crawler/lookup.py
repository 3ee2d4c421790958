"""
Client for the route API that maps a page URL to the microservice serving it.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Optional

import requests

from route_crawler.config import (
    API_BASE_URL,
    API_BASE_URL_DEVINT,
    DEVINT_MARKER,
    LOOKUP_TIMEOUT,
    USER_AGENT,
)
from route_crawler.errors import ServiceLookupError
from route_crawler.log import log

_SCHEME_RE = re.compile(r"^https?://")

_MISSING = object()


def strip_scheme(url: str) -> str:
    """Remove a leading ``http://`` or ``https://``."""
    return _SCHEME_RE.sub("", url, count=1)


def _find_field(payload: Any, name: str) -> Any:
    """Depth-first search for the first value stored under key *name*."""
    if isinstance(payload, dict):
        if name in payload:
            return payload[name]
        children = payload.values()
    elif isinstance(payload, list):
        children = payload
    else:
        return _MISSING

    for child in children:
        value = _find_field(child, name)
        if value is not _MISSING:
            return value
    return _MISSING


def _as_text(value: Any) -> Optional[str]:
    if value is _MISSING or value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True, slots=True)
class LookupResult:
    """One CSV row: the page, the service behind it and whether it runs on k8s."""
    friendly_url: str
    service_url: str
    k8s_enabled: str

    @classmethod
    def from_payload(cls, payload: Any) -> LookupResult:
        """
        Decode a route API response.

        Raises:
            ValueError: if keyurl, serviceurl or k8sEnabled is missing or empty.
        """
        fields = {
            "keyurl": _as_text(_find_field(payload, "keyurl")),
            "serviceurl": _as_text(_find_field(payload, "serviceurl")),
            "k8sEnabled": _as_text(_find_field(payload, "k8sEnabled")),
        }
        missing = [name for name, value in fields.items() if value is None]
        if missing:
            raise ValueError(f"incomplete response, missing {', '.join(missing)}")
        return cls(
            friendly_url=fields["keyurl"],
            service_url=fields["serviceurl"],
            k8s_enabled=fields["k8sEnabled"],
        )

    def as_row(self) -> List[str]:
        return [self.friendly_url, self.service_url, self.k8s_enabled]


class LookupClient:
    """Calls the production or devint route API for one URL at a time."""

    def __init__(
        self,
        api_url: str = API_BASE_URL,
        devint_api_url: str = API_BASE_URL_DEVINT,
        marker: str = DEVINT_MARKER,
        timeout: float = LOOKUP_TIMEOUT,
        user_agent: str = USER_AGENT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_url = api_url
        self.devint_api_url = devint_api_url
        self.marker = marker
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["User-Agent"] = user_agent

    def endpoint_for(self, url: str) -> str:
        """Pick the devint endpoint for URLs carrying the marker, else production."""
        if self.marker and self.marker in url:
            return self.devint_api_url
        return self.api_url

    def lookup(self, url: str) -> LookupResult:
        """
        Look up *url* in the route API.

        Returns:
            The decoded result.

        Raises:
            ServiceLookupError: on transport failure, an error status or an
                incomplete response. Nothing is retried.
        """
        key = strip_scheme(url)
        endpoint = self.endpoint_for(url)
        env = "DEVINT" if endpoint == self.devint_api_url else "production"
        log.info("Making %s API call for: %s", env, key)

        try:
            resp = self.session.get(endpoint, params={"key": key}, timeout=self.timeout)
        except requests.RequestException as e:
            raise ServiceLookupError(url, f"API call failed: {e}") from e

        log.debug("API response for %s: %s", key, resp.text)

        if not resp.ok:
            raise ServiceLookupError(url, f"API returned HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as e:
            raise ServiceLookupError(url, "API response is not JSON") from e

        try:
            result = LookupResult.from_payload(payload)
        except ValueError as e:
            raise ServiceLookupError(url, str(e)) from e

        log.info("Successfully processed: %s", result.friendly_url)
        return result
