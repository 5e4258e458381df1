#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Data model shared by the parser, the validator and the scrape pipeline.

All records are frozen dataclasses. ScrapeState transitions return a new
value instead of mutating in place, so every checkpoint is a snapshot of a
complete state.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

# ============================================================================
# TENSES & SLOTS
# ============================================================================

PRAESENS = "praesens"
PRAETERITUM = "praeteritum"
PERFEKT = "perfekt"
PLUSQUAMPERFEKT = "plusquamperfekt"
FUTUR1 = "futur1"
FUTUR2 = "futur2"

# Priority order used for selection and storage
TENSE_ORDER = (PRAESENS, PRAETERITUM, PERFEKT, PLUSQUAMPERFEKT, FUTUR1, FUTUR2)
REQUIRED_TENSES = (PRAESENS, PRAETERITUM, PERFEKT)

# Heading labels on the Flexion pages
TENSE_LABELS = {
    PRAESENS: "Präsens",
    PRAETERITUM: "Präteritum",
    PERFEKT: "Perfekt",
    PLUSQUAMPERFEKT: "Plusquamperfekt",
    FUTUR1: "Futur I",
    FUTUR2: "Futur II",
}

SLOT_NAMES = ("sg1", "sg2", "sg3", "pl1", "pl2", "pl3")


@dataclass(frozen=True)
class ConjugationSlotSet:
    """Six person/number forms of one tense; "" means not attested."""

    sg1: str = ""
    sg2: str = ""
    sg3: str = ""
    pl1: str = ""
    pl2: str = ""
    pl3: str = ""
    notes: Optional[str] = None

    @classmethod
    def from_forms(
        cls, forms: Iterable[str], notes: Optional[str] = None
    ) -> "ConjugationSlotSet":
        values = list(forms)[: len(SLOT_NAMES)]
        if len(values) < len(SLOT_NAMES):
            return cls(notes=notes)
        return cls(*values, notes=notes)

    def forms(self) -> tuple[str, ...]:
        return tuple(getattr(self, name) for name in SLOT_NAMES)

    def as_dict(self) -> dict[str, str]:
        return dict(zip(SLOT_NAMES, self.forms()))

    def is_empty(self) -> bool:
        return not any(self.forms())


@dataclass(frozen=True)
class TenseRecord:
    tense: str
    slots: ConjugationSlotSet


@dataclass(frozen=True)
class ParsedVerb:
    """Everything the parser could read from one Flexion page."""

    infinitive: str = ""
    separable_prefix: Optional[str] = None
    tenses: Mapping[str, TenseRecord] = field(default_factory=dict)

    def slots_for(self, tense: str) -> ConjugationSlotSet:
        record = self.tenses.get(tense)
        return record.slots if record else ConjugationSlotSet()


@dataclass(frozen=True)
class AcceptedVerb:
    """A parsed verb restricted to its complete tenses; the only shape stored."""

    infinitive: str
    separable_prefix: Optional[str]
    tenses: tuple[TenseRecord, ...]

    def tense_names(self) -> list[str]:
        return [record.tense for record in self.tenses]


# ============================================================================
# SCRAPE STATE
# ============================================================================

ENUMERATING = "enumerating"
PROCESSING = "processing"
COMPLETED = "completed"
PHASES = (ENUMERATING, PROCESSING, COMPLETED)


class StateCorruption(ValueError):
    """A checkpoint document does not describe a valid ScrapeState."""


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ScrapeState:  # pylint: disable=too-many-instance-attributes
    """Durable progress of one harvesting run.

    Invariants:
        cursor < len(title_list)
        continuation_token is None unless phase == ENUMERATING
        title_list only grows while enumerating
    """

    phase: str = ENUMERATING
    continuation_token: Optional[str] = None
    title_list: tuple[str, ...] = ()
    cursor: int = -1
    last_updated: str = ""

    @classmethod
    def fresh(cls, now: Optional[str] = None) -> "ScrapeState":
        return cls(last_updated=now or utc_now())

    # -- transitions --------------------------------------------------------

    def with_page(
        self, members: Iterable[str], next_token: Optional[str]
    ) -> "ScrapeState":
        """Append one enumeration page and remember where to continue."""
        self._require(ENUMERATING)
        return replace(
            self,
            title_list=self.title_list + tuple(members),
            continuation_token=next_token,
        )

    def with_titles(self, titles: Iterable[str]) -> "ScrapeState":
        """Replace the title list in one step (database-driven source)."""
        self._require(ENUMERATING)
        return replace(
            self, title_list=tuple(titles), continuation_token=None, cursor=-1
        )

    def start_processing(self) -> "ScrapeState":
        self._require(ENUMERATING)
        return replace(self, phase=PROCESSING, continuation_token=None)

    def advanced_to(self, index: int) -> "ScrapeState":
        """Mark every title up to and including `index` as handled."""
        self._require(PROCESSING)
        if not -1 <= index < len(self.title_list):
            raise ValueError(
                f"cursor {index} outside title list of {len(self.title_list)}"
            )
        return replace(self, cursor=index)

    def complete(self) -> "ScrapeState":
        self._require(PROCESSING)
        return replace(self, phase=COMPLETED)

    def touched(self, now: Optional[str] = None) -> "ScrapeState":
        return replace(self, last_updated=now or utc_now())

    def _require(self, phase: str) -> None:
        if self.phase != phase:
            raise ValueError(f"transition needs phase {phase!r}, not {self.phase!r}")

    # -- queries ------------------------------------------------------------

    @property
    def processed_count(self) -> int:
        return self.cursor + 1

    @property
    def remaining(self) -> int:
        return len(self.title_list) - self.processed_count

    # -- serialization ------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase,
            "continuation_token": self.continuation_token,
            "title_list": list(self.title_list),
            "cursor": self.cursor,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ScrapeState":
        """Build a state from a decoded checkpoint, validating invariants."""
        if not isinstance(data, dict):
            raise StateCorruption("checkpoint is not a JSON object")
        try:
            phase = data["phase"]
            token = data.get("continuation_token")
            titles = data["title_list"]
            cursor = data["cursor"]
            last_updated = data.get("last_updated") or ""
        except KeyError as exc:
            raise StateCorruption(f"missing field {exc}") from exc

        if phase not in PHASES:
            raise StateCorruption(f"unknown phase {phase!r}")
        if not isinstance(titles, list) or not all(
            isinstance(t, str) for t in titles
        ):
            raise StateCorruption("title_list must be a list of strings")
        if isinstance(cursor, bool) or not isinstance(cursor, int):
            raise StateCorruption("cursor must be an integer")
        if not -1 <= cursor < len(titles):
            raise StateCorruption(
                f"cursor {cursor} outside title list of {len(titles)}"
            )
        if token is not None and (phase != ENUMERATING or not isinstance(token, str)):
            raise StateCorruption("continuation token outside enumeration")

        return cls(
            phase=phase,
            continuation_token=token,
            title_list=tuple(titles),
            cursor=cursor,
            last_updated=str(last_updated),
        )
