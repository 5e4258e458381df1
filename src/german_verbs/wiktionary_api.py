#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Rate-limited Wiktionary API client and category member enumeration.

The client performs exactly one HTTP call per request and classifies the
result; retry and backoff are decided by the caller. A single RateLimiter
spaces every outbound call regardless of which wiki it targets.
"""

import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests

from .config import (
    CATEGORY_PAGE_SIZE,
    CATEGORY_PREFIX,
    DEFAULT_LANG,
    RATE_LIMIT_SECONDS,
    REQUEST_TIMEOUT,
    UA,
    WIKI_API_TEMPLATE,
)

# ============================================================================
# ERRORS
# ============================================================================


class WiktionaryError(Exception):
    """Base class for API failures."""


class RateLimited(WiktionaryError):
    """The API answered 429; the run must stop and be resumed later."""

    def __init__(self, message: str = "Too many requests"):
        super().__init__(message)
        self.status = 429


class TransportError(WiktionaryError):
    """Any other failed request (non-2xx status, network, bad JSON)."""

    def __init__(self, status: Optional[int], message: str):
        super().__init__(f"HTTP error: {status} {message}" if status else message)
        self.status = status
        self.message = message


# ============================================================================
# RATE LIMITING
# ============================================================================


class RateLimiter:
    """Enforces a minimum interval between the start of consecutive calls."""

    def __init__(
        self,
        min_interval: float = RATE_LIMIT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None

    def wait(self) -> None:
        """Block until the next call may start, then record its start."""
        if self._last_call is not None:
            elapsed = self._clock() - self._last_call
            remaining = self.min_interval - elapsed
            if remaining > 0:
                self._sleep(remaining)
        self._last_call = self._clock()

    def reset(self) -> None:
        self._last_call = None


# ============================================================================
# HTTP CLIENT
# ============================================================================


def api_base_url(lang: str = DEFAULT_LANG) -> str:
    """Build the api.php endpoint for a language edition."""
    return WIKI_API_TEMPLATE.format(lang=lang)


def _build_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": UA})
    return session


class WiktionaryClient:
    """JSON client for the MediaWiki action API."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        rate_limiter: Optional[RateLimiter] = None,
        lang: str = DEFAULT_LANG,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.session = session or _build_session()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.lang = lang
        self.timeout = timeout

    def request(
        self, params: Mapping[str, Any], lang: Optional[str] = None
    ) -> dict[str, Any]:
        """Issue one rate-limited GET and return the decoded JSON body.

        Raises:
            RateLimited: on HTTP 429
            TransportError: on any other failure
        """
        query = {"format": "json", **params}
        self.rate_limiter.wait()
        try:
            r = self.session.get(
                api_base_url(lang or self.lang), params=query, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise TransportError(None, str(exc)) from exc

        if r.status_code == 429:
            raise RateLimited("Too many requests. Please wait and try again.")
        if not 200 <= r.status_code < 300:
            raise TransportError(r.status_code, r.reason or "")
        try:
            data = r.json()
        except ValueError as exc:
            raise TransportError(r.status_code, f"invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise TransportError(r.status_code, "unexpected JSON payload")
        return data

    def get_page_text(
        self, title: str, prop: str = "text", lang: Optional[str] = None
    ) -> Optional[str]:
        """Fetch rendered HTML (prop="text") or source (prop="wikitext").

        Returns None when the page does not exist.
        """
        data = self.request({"action": "parse", "page": title, "prop": prop}, lang)
        content = (data.get("parse") or {}).get(prop)
        if isinstance(content, dict):
            return content.get("*") or None
        return None


# ============================================================================
# CATEGORY MEMBERS
# ============================================================================


@dataclass(frozen=True)
class CategoryPage:
    members: list[str]
    next_token: Optional[str]


PageCallback = Callable[[list[str], Optional[str]], None]


class CategoryEnumerator:
    """Pages through list=categorymembers with cmcontinue tokens."""

    def __init__(
        self,
        client: WiktionaryClient,
        page_size: int = CATEGORY_PAGE_SIZE,
        prefix: str = CATEGORY_PREFIX,
    ):
        self.client = client
        self.page_size = page_size
        self.prefix = prefix

    def list_members(
        self, category: str, continuation_token: Optional[str] = None
    ) -> CategoryPage:
        """Fetch one page of member titles."""
        params: dict[str, Any] = {
            "action": "query",
            "list": "categorymembers",
            "cmtitle": f"{self.prefix}:{category}",
            "cmlimit": str(self.page_size),
            "cmtype": "page",
        }
        if continuation_token:
            params["cmcontinue"] = continuation_token

        data = self.client.request(params)
        members = [
            item["title"]
            for item in (data.get("query") or {}).get("categorymembers", [])
            if "title" in item
        ]
        next_token = (data.get("continue") or {}).get("cmcontinue") or None
        return CategoryPage(members=members, next_token=next_token)

    def list_all(
        self,
        category: str,
        on_page: Optional[PageCallback] = None,
        resume_token: Optional[str] = None,
    ) -> list[str]:
        """Fetch every page, reporting each one before requesting the next.

        Pages already passed to `on_page` stay reported even if a later
        request raises.
        """
        all_members: list[str] = []
        token = resume_token
        while True:
            page = self.list_members(category, token)
            all_members.extend(page.members)
            token = page.next_token
            if on_page is not None:
                on_page(page.members, token)
            print(
                f"  Fetched {len(page.members)} members "
                f"(total: {len(all_members)})"
                f"{', continuing...' if token else ''}"
            )
            if not token:
                return all_members
