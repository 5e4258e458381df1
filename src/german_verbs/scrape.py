#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Resumable scrape of German irregular verb conjugations.

Phases (checkpointed after every unit of work):

    enumerating  ->  processing  ->  completed

enumerating  collects Flexion page titles, either from the wiki category
             (one checkpoint per API page) or from verbs already stored
             without all required tenses.
processing   walks the title list from cursor + 1, fetching, parsing and
             storing one verb at a time, checkpointing after each title.
completed    prints the database summary.

A 429 stops the run with the cursor just before the title in flight, so a
later `--resume` retries it. Other per-title request failures are logged and
skipped. The machine never exits the process; it returns a RunOutcome.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional

from .checkpoint import CheckpointStore
from .completeness import accept, select_accepted_tenses
from .config import CATEGORY_NAME, FLEXION_PREFIX
from .flexion_parser import extract_infinitive_from_title, parse_conjugations
from .models import (
    COMPLETED,
    ENUMERATING,
    PROCESSING,
    REQUIRED_TENSES,
    TENSE_LABELS,
    TENSE_ORDER,
    ParsedVerb,
    ScrapeState,
    utc_now,
)
from .verb_db import VerbDatabase
from .wiktionary_api import (
    CategoryEnumerator,
    RateLimited,
    TransportError,
    WiktionaryClient,
)

# Outcome reasons
DONE = "completed"
RATE_LIMITED = "rate_limited"
FAILED = "error"


@dataclass
class RunStats:
    """Per-run counters of title decisions."""

    accepted: int = 0
    rejected: int = 0
    skipped: int = 0
    missing: int = 0
    failed: int = 0


@dataclass
class RunOutcome:
    ok: bool
    reason: str
    state: ScrapeState
    stats: RunStats
    error: Optional[BaseException] = None
    summary: dict[str, int] = field(default_factory=dict)

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


class ScrapeStateMachine:
    """Drives enumeration and per-title processing across restarts."""

    def __init__(
        self,
        client: WiktionaryClient,
        enumerator: CategoryEnumerator,
        database: VerbDatabase,
        checkpoints: CheckpointStore,
        category: str = CATEGORY_NAME,
        clock: Callable[[], str] = utc_now,
        parser: Callable[[str], ParsedVerb] = parse_conjugations,
    ):
        self.client = client
        self.enumerator = enumerator
        self.database = database
        self.checkpoints = checkpoints
        self.category = category
        self._clock = clock
        self._parse = parser
        self.state = ScrapeState.fresh(clock())
        self.stats = RunStats()

    # ------------------------------------------------------------------
    # State handling
    # ------------------------------------------------------------------

    def _commit(self, state: ScrapeState) -> None:
        """Durably write `state` before any further work happens."""
        state = state.touched(self._clock())
        self.checkpoints.save(state)
        self.state = state

    def restore(self, resume: bool) -> ScrapeState:
        """Saved state when resuming and one exists, else a fresh one."""
        if resume:
            saved = self.checkpoints.load()
            if saved is not None:
                print(f"Resuming from saved state (last updated: {saved.last_updated})")
                print(f"  Phase: {saved.phase}")
                print(f"  Verbs fetched: {len(saved.title_list)}")
                print(f"  Verbs processed: {saved.processed_count}\n")
                return saved
            print("No saved state found. Starting fresh.\n")
        return ScrapeState.fresh(self._clock())

    def _outcome(
        self, ok: bool, reason: str, error: Optional[BaseException] = None
    ) -> RunOutcome:
        return RunOutcome(
            ok=ok, reason=reason, state=self.state, stats=self.stats, error=error
        )

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, resume: bool = False, incomplete: bool = False) -> RunOutcome:
        """Run (or continue) the harvest until completion or a fatal error."""
        self.state = self.restore(resume)
        self.stats = RunStats()
        try:
            if self.state.phase == ENUMERATING:
                self._enumerate(incomplete)
            if self.state.phase == PROCESSING:
                stopped = self._process()
                if stopped is not None:
                    return stopped
            return self._finish()
        except RateLimited as exc:
            # Enumeration pages were already checkpointed one by one
            print("\nRate limit (429) detected! Stopping execution.")
            self._commit(self.state)
            print("State has been saved. Run with --resume to continue.\n")
            return self._outcome(False, RATE_LIMITED, exc)
        except Exception as exc:  # pylint: disable=broad-except
            # Cursor still points at the last fully handled title
            print(f"\nERROR: Unexpected error: {exc!r}")
            self._commit(self.state)
            return self._outcome(False, FAILED, exc)

    def _on_page(self, members: list[str], next_token: Optional[str]) -> None:
        self._commit(self.state.with_page(members, next_token))

    def _enumerate(self, incomplete: bool) -> None:
        if incomplete:
            print("Phase 1: Fetching incomplete verbs from database...")
            print(f"(Verbs missing one of: {', '.join(REQUIRED_TENSES)})\n")
            titles = [
                f"{FLEXION_PREFIX}{infinitive}"
                for _, infinitive in self.database.list_incomplete_verbs()
            ]
            self._commit(self.state.with_titles(titles))
            print(f"Total incomplete verbs found: {len(titles)}\n")
        elif self.state.title_list and self.state.continuation_token is None:
            # Last page was saved but the phase switch was not
            print("Phase 1: Verb list already complete.\n")
        else:
            print("Phase 1: Fetching irregular verb list from Wiktionary...")
            print(f"Category: {self.category}\n")
            self.enumerator.list_all(
                self.category,
                on_page=self._on_page,
                resume_token=self.state.continuation_token,
            )
            print(f"\nTotal irregular verbs found: {len(self.state.title_list)}\n")

        self._commit(self.state.start_processing())

    def _process(self) -> Optional[RunOutcome]:
        """Process remaining titles; returns an outcome only when stopping."""
        print("Phase 2: Fetching conjugations for each verb...\n")
        titles = self.state.title_list
        total = len(titles)

        for i in range(self.state.cursor + 1, total):
            try:
                self._process_title(i, titles[i], total)
            except RateLimited as exc:
                print("\nRate limit (429) detected! Stopping execution.")
                self._commit(self.state.advanced_to(i - 1))
                print("State has been saved. Run with --resume to continue.\n")
                return self._outcome(False, RATE_LIMITED, exc)
            except TransportError as exc:
                print(f"  ERROR: Error processing {titles[i]}: {exc}")
                self.stats.failed += 1
            self._commit(self.state.advanced_to(i))

        self._commit(self.state.complete())
        return None

    def _process_title(self, index: int, title: str, total: int) -> None:
        infinitive = extract_infinitive_from_title(title)
        if not infinitive or any(ch.isspace() for ch in infinitive):
            print(f"[{index + 1}/{total}] Skipping: {title} (not a single word)")
            self.stats.skipped += 1
            return

        print(f"[{index + 1}/{total}] Processing: {infinitive}")
        markup = self.client.get_page_text(f"{FLEXION_PREFIX}{infinitive}")
        if not markup:
            print(f"  WARNING: No Flexion page found for {infinitive}")
            self.stats.missing += 1
            return

        parsed = self._parse(markup)
        accepted = accept(parsed)
        if accepted is None:
            complete = [
                r.tense
                for r in select_accepted_tenses(parsed)
                if r.tense in REQUIRED_TENSES
            ]
            print(
                f"  Skipping: only {len(complete)}/{len(REQUIRED_TENSES)} "
                "required tenses complete"
            )
            self.stats.rejected += 1
            return

        # The title is the natural key; the page heading may be missing
        self.database.store_accepted_verb(replace(accepted, infinitive=infinitive))
        for record in accepted.tenses:
            print(f"  ✓ {TENSE_LABELS[record.tense]}")
        self.stats.accepted += 1

    def _finish(self) -> RunOutcome:
        if self.state.phase != COMPLETED:
            raise RuntimeError(f"cannot finish from phase {self.state.phase!r}")
        summary = self.database.stats()
        print("\nScraping completed!")
        print(f"Total verbs processed: {len(self.state.title_list)}")
        print_summary(summary)
        outcome = self._outcome(True, DONE)
        outcome.summary = summary
        return outcome


def print_summary(summary: dict[str, Any]) -> None:
    """Print verb and per-tense record counts."""
    print("\n" + "=" * 80)
    print("DATABASE STATISTICS")
    print("=" * 80)
    print(f"  Verbs: {summary.get('verbs', 0)}")
    print(f"  Total conjugations: {summary.get('conjugations', 0)}")
    for tense in TENSE_ORDER:
        print(f"    - {TENSE_LABELS[tense]}: {summary.get(tense, 0)}")
    print("=" * 80)

