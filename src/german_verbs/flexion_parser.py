#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tolerant parser for rendered de.wiktionary "Flexion:" pages.

The page HTML is scanned for heading cells (``<td colspan=...>``) and table
ends. Those markers form an ordered list of section boundaries; the region
between a tense heading and the next marker holds that tense's six rows.
Anything that cannot be located yields empty slots, never an exception:
deciding whether a verb is usable is the completeness policy's job.

USAGE:
    >>> from german_verbs.flexion_parser import parse_conjugations
    >>> parsed = parse_conjugations(html)
    >>> parsed.slots_for("praesens").sg1
    'gehe'
"""

import re
from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup

from .config import FLEXION_PREFIX
from .models import (
    PRAESENS,
    TENSE_LABELS,
    TENSE_ORDER,
    ConjugationSlotSet,
    ParsedVerb,
    TenseRecord,
)

# ============================================================================
# PATTERNS
# ============================================================================

H2_RE = re.compile(r"<h2[^>]*>(.*?)</h2>", re.S | re.I)
INFINITIVE_RE = re.compile(r"^([^\s(]+)\s*\(Konjugation\)")

HEADING_CELL_RE = re.compile(r"<td\s[^>]*colspan=[^>]*>(.*?)</td>", re.S | re.I)
BOLD_RE = re.compile(r"<b>(.*?)</b>", re.S | re.I)
TABLE_END_RE = re.compile(r"</table>", re.I)

# One row pair: a small person label cell followed by the form cell
ROW_RE = re.compile(
    r"<tr[^>]*>\s*<td[^>]*>\s*<small>(.*?)</small>\s*</td>\s*<td[^>]*>(.*?)</td>",
    re.S | re.I,
)

ENTITY_RE = re.compile(r"&[^;\s]+;")
PERSONAL_3SG_RE = re.compile(r"\ber/sie/es\b", re.I)
PERSONAL_RE = re.compile(r"\b(?:ich|du|wir|ihr|sie)\b", re.I)
REFLEXIVE_RE = re.compile(r"\b(?:mich|dich|sich|uns|euch)\b", re.I)
REFLEXIVE_TOKEN_RE = re.compile(r"^(?:mich|dich|sich|uns|euch)$", re.I)


# ============================================================================
# TEXT HELPERS
# ============================================================================


def normalize_ws(s: str) -> str:
    """Collapse whitespace to single spaces and strip edges."""
    return re.sub(r"\s+", " ", s or "").strip()


def strip_tags(fragment: str) -> str:
    """Visible text of an HTML fragment."""
    return BeautifulSoup(fragment or "", "html.parser").get_text(" ")


def extract_infinitive_from_title(title: Optional[str]) -> Optional[str]:
    """'Flexion:aufstehen' -> 'aufstehen'; None for any other title."""
    if not title or not title.startswith(FLEXION_PREFIX):
        return None
    return title[len(FLEXION_PREFIX) :] or None


def extract_cell_text(cell: str) -> str:
    """Reduce one form cell to its comma-joined verb forms.

    Footnote markers go first, before the generic tag stripping, because
    their numbers would otherwise survive as tokens. Personal pronouns act
    as separators between alternatives; reflexive pronouns are dropped.
    """
    soup = BeautifulSoup(ENTITY_RE.sub(" ", cell or ""), "html.parser")
    for sup in soup.find_all("sup"):
        sup.decompose()
    text = normalize_ws(soup.get_text(" "))

    text = PERSONAL_3SG_RE.sub(",", text)
    text = PERSONAL_RE.sub(",", text)
    text = REFLEXIVE_RE.sub("", text)
    text = re.sub(r"\s+", " ", text)
    return ", ".join(part.strip() for part in text.split(",") if part.strip())


# ============================================================================
# SECTION SCANNING
# ============================================================================


@dataclass(frozen=True)
class SectionMarker:
    """A section boundary; label is a tense id or None for unlabelled ones."""

    label: Optional[str]
    start: int
    end: int


def _heading_tense(cell_html: str) -> Optional[str]:
    """Tense id whose label closes one of the cell's bold runs."""
    for bold in BOLD_RE.findall(cell_html):
        text = normalize_ws(strip_tags(bold))
        for tense in TENSE_ORDER:
            label = TENSE_LABELS[tense]
            if text == label or text.endswith(" " + label):
                return tense
    return None


def find_section_boundaries(markup: str) -> list[SectionMarker]:
    """Ordered heading cells and table ends found in the page."""
    markers = [
        SectionMarker(_heading_tense(m.group(1)), m.start(), m.end())
        for m in HEADING_CELL_RE.finditer(markup or "")
    ]
    markers.extend(
        SectionMarker(None, m.start(), m.end())
        for m in TABLE_END_RE.finditer(markup or "")
    )
    return sorted(markers, key=lambda marker: marker.start)


def slice_sections(markup: str) -> dict[str, str]:
    """Map each located tense to the markup between its heading and the next
    boundary (or the end of the page). The first heading of a tense wins."""
    markers = find_section_boundaries(markup)
    regions: dict[str, str] = {}
    for i, marker in enumerate(markers):
        if marker.label is None or marker.label in regions:
            continue
        stop = markers[i + 1].start if i + 1 < len(markers) else len(markup)
        regions[marker.label] = markup[marker.end : stop]
    return regions


def parse_slot_rows(region: str) -> ConjugationSlotSet:
    """First six row pairs in person order; fewer than six gives no slots."""
    cells = [m.group(2) for m in ROW_RE.finditer(region or "")]
    if len(cells) < 6:
        return ConjugationSlotSet()
    return ConjugationSlotSet.from_forms(extract_cell_text(c) for c in cells[:6])


# ============================================================================
# PAGE PARSING
# ============================================================================


def extract_infinitive(markup: str) -> str:
    """Infinitive from the '<verb> (Konjugation)' page heading, or ''."""
    m = H2_RE.search(markup or "")
    if not m:
        return ""
    heading = normalize_ws(BeautifulSoup(m.group(1), "html.parser").get_text())
    found = INFINITIVE_RE.match(heading)
    return found.group(1) if found else ""


def detect_separable_prefix(sg1: str) -> Optional[str]:
    """Separable particle(s) from the first present-tense 1sg form.

    'stehe auf' -> 'auf', 'erstehe wieder auf' -> 'wieder auf',
    'gehe' -> None. Reflexive pronouns never count as a prefix.
    """
    first_form = (sg1 or "").split(",")[0].strip()
    parts = first_form.split()
    if len(parts) < 2:
        return None
    prefix = " ".join(p for p in parts[1:] if not REFLEXIVE_TOKEN_RE.match(p))
    return prefix or None


def parse_conjugations(markup: Optional[str]) -> ParsedVerb:
    """Parse one Flexion page into per-tense slot sets.

    Never raises for malformed input; missing sections give empty slots.
    """
    if not markup:
        return ParsedVerb(
            tenses={t: TenseRecord(t, ConjugationSlotSet()) for t in TENSE_ORDER}
        )

    regions = slice_sections(markup)
    tenses = {
        tense: TenseRecord(tense, parse_slot_rows(regions.get(tense, "")))
        for tense in TENSE_ORDER
    }
    return ParsedVerb(
        infinitive=extract_infinitive(markup),
        separable_prefix=detect_separable_prefix(tenses[PRAESENS].slots.sg1),
        tenses=tenses,
    )
