#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Attach word frequencies to stored verbs.

The counts come from two English Wiktionary user pages listing the 10k most
frequent German words, one ``<count> [[word]]`` entry per line. Matching is
an exact string comparison against the stored infinitive.
"""

import re
from typing import Iterable

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import FREQUENCY_LANG, FREQUENCY_PAGES
from .verb_db import VerbDatabase
from .wiktionary_api import TransportError, WiktionaryClient

FREQ_LINE_RE = re.compile(r"^(\d[\d.]*)\s+\[\[([^\]]+)\]\]")


def parse_frequency_list(wikitext: str) -> dict[str, int]:
    """Map word -> count; dots are thousands separators."""
    freq_map: dict[str, int] = {}
    for line in (wikitext or "").splitlines():
        m = FREQ_LINE_RE.match(line)
        if not m:
            continue
        word = m.group(2).strip()
        if not word:
            continue
        freq_map[word] = int(m.group(1).replace(".", ""))
    return freq_map


# A 429 is not retried here: it propagates and ends the command
@retry(
    reraise=True,
    stop=stop_after_attempt(4),
    wait=wait_exponential(multiplier=0.75, min=0.5, max=12),
    retry=retry_if_exception_type(TransportError),
)
def _fetch_wikitext(client: WiktionaryClient, title: str, lang: str) -> str:
    return client.get_page_text(title, prop="wikitext", lang=lang) or ""


def fetch_frequency_map(
    client: WiktionaryClient,
    titles: Iterable[str] = FREQUENCY_PAGES,
    lang: str = FREQUENCY_LANG,
) -> dict[str, int]:
    """Download and merge the frequency list pages."""
    freq_map: dict[str, int] = {}
    for title in titles:
        wikitext = _fetch_wikitext(client, title, lang)
        if not wikitext:
            print(f"WARNING: frequency page not found: {title}")
            continue
        freq_map.update(parse_frequency_list(wikitext))
    return freq_map


def update_frequencies(
    client: WiktionaryClient,
    database: VerbDatabase,
    titles: Iterable[str] = FREQUENCY_PAGES,
) -> int:
    """Fetch the lists and update usage_popularity; returns verbs updated."""
    print("Fetching German word frequencies...")
    freq_map = fetch_frequency_map(client, titles)
    print(f"Fetched {len(freq_map)} entries.")
    updated = database.update_usage_popularity(freq_map)
    print(f"Updated {updated} verbs with usage_popularity.")
    return updated
