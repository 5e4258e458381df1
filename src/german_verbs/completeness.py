#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Completeness policy deciding which parsed verbs are worth storing."""

from typing import Optional

from .models import (
    REQUIRED_TENSES,
    TENSE_ORDER,
    AcceptedVerb,
    ConjugationSlotSet,
    ParsedVerb,
    TenseRecord,
)

# Values the Flexion tables use for "form not attested"
PLACEHOLDERS = {"-", "—", "–"}


def is_slot_set_complete(slots: ConjugationSlotSet) -> bool:
    """True if all six forms are present and none is a placeholder."""
    return all(
        form and form.strip() and form.strip() not in PLACEHOLDERS
        for form in slots.forms()
    )


def select_accepted_tenses(parsed: ParsedVerb) -> list[TenseRecord]:
    """Complete tenses, in priority order (required trio first)."""
    selected = []
    for tense in TENSE_ORDER:
        record = parsed.tenses.get(tense)
        if record is not None and is_slot_set_complete(record.slots):
            selected.append(record)
    return selected


def accept(parsed: ParsedVerb) -> Optional[AcceptedVerb]:
    """Accepted verb, or None when any required tense is incomplete.

    A rejected verb is discarded as a whole; none of its tenses survive.
    """
    selected = select_accepted_tenses(parsed)
    present = {record.tense for record in selected}
    if not all(tense in present for tense in REQUIRED_TENSES):
        return None
    return AcceptedVerb(
        infinitive=parsed.infinitive,
        separable_prefix=parsed.separable_prefix,
        tenses=tuple(selected),
    )
