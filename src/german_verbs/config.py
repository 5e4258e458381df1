#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Project-wide defaults for the German verbs harvester.

Paths can be overridden from the command line; everything else is a plain
module constant, edited here when the source wiki changes.
"""

from pathlib import Path

# ============================================================================
# API
# ============================================================================

WIKI_API_TEMPLATE = "https://{lang}.wiktionary.org/w/api.php"
DEFAULT_LANG = "de"
UA = (
    "GermanVerbsHarvester/1.0 "
    "(conjugation tables for language learning; polite, single-threaded)"
)
REQUEST_TIMEOUT = 30

# Minimum spacing between the start of two requests (10 requests/second)
RATE_LIMIT_SECONDS = 0.1

# ============================================================================
# SOURCES
# ============================================================================

CATEGORY_NAME = "Verbkonjugation_unregelmäßig_(Deutsch)"
CATEGORY_PREFIX = "Category"
CATEGORY_PAGE_SIZE = 500

FLEXION_PREFIX = "Flexion:"

# Two pages that together contain the top 10k German words
FREQUENCY_LANG = "en"
FREQUENCY_PAGES = (
    "User:Matthias_Buchmeier/German_frequency_list-1-5000",
    "User:Matthias_Buchmeier/German_frequency_list-5001-10000",
)

# ============================================================================
# FILES
# ============================================================================

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DATA_DIR = PROJECT_ROOT / "data"
DB_PATH = DATA_DIR / "german-verbs.db"
STATE_FILE = PROJECT_ROOT / ".scraper-state.json"
EXPORT_CSV = DATA_DIR / "german_verbs_conjugations.csv"
