"""JSON listing feeds fetched over HTTP."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from ..models import RawPosting
from .base import RetrievalError, SourceAdapter, normalize_records

logger = logging.getLogger(__name__)

_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

# Envelope keys a feed may wrap its listing array in
_LIST_KEYS = ("projects", "postings", "results", "items", "data")

_AUTH_STATUSES = {401, 403, 407}


def _extract_items(payload: Any) -> list:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in _LIST_KEYS:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    raise RetrievalError(f"unexpected feed payload: {type(payload).__name__}")


class FeedSource(SourceAdapter):
    """Reads a JSON array of listings (or an object wrapping one) from a URL."""

    def __init__(
        self,
        source_id: str,
        url: Optional[str] = None,
        timeout: float = 15,
        user_agent: str = _USER_AGENT,
    ):
        self.source_id = source_id
        self.url = url
        self.timeout = timeout
        self.user_agent = user_agent

    def retrieve(self) -> list[RawPosting]:
        if not self.url:
            raise RetrievalError(f"{self.source_id}: no listing URL configured")
        return self.fetch_feed(self.url)

    def fetch_feed(self, url: str) -> list[RawPosting]:
        logger.debug("Fetching %s feed from %s", self.source_id, url)
        try:
            resp = requests.get(
                url,
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
                timeout=self.timeout,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            raise RetrievalError(f"{self.source_id}: source unreachable ({exc})") from exc

        if resp.status_code in _AUTH_STATUSES:
            raise RetrievalError(f"{self.source_id}: source requires authentication (HTTP {resp.status_code})")
        try:
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise RetrievalError(f"{self.source_id}: {exc}") from exc

        try:
            payload = resp.json()
        except ValueError as exc:
            raise RetrievalError(f"{self.source_id}: unparsable feed content") from exc

        postings = normalize_records(_extract_items(payload))
        logger.info("%s feed: %d postings", self.source_id, len(postings))
        return postings
