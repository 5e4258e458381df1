#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Command-line dispatcher for the German verbs harvester.

Usage:
    german-verbs scrape [--resume] [--incomplete]
    german-verbs frequency
    german-verbs cleanup
    german-verbs export [--out FILE]
"""

import argparse
from pathlib import Path
from typing import Optional, Sequence

from .checkpoint import CheckpointStore
from .config import DB_PATH, EXPORT_CSV, STATE_FILE
from .frequency import update_frequencies
from .scrape import ScrapeStateMachine
from .verb_db import VerbDatabase
from .wiktionary_api import CategoryEnumerator, RateLimited, WiktionaryClient


def cmd_scrape(args: argparse.Namespace) -> int:
    print("=" * 80)
    print("German Irregular Verbs Scraper")
    print("=" * 80 + "\n")

    client = WiktionaryClient()
    with VerbDatabase(args.db) as db:
        print(f"Database ready at {args.db}\n")
        machine = ScrapeStateMachine(
            client=client,
            enumerator=CategoryEnumerator(client),
            database=db,
            checkpoints=CheckpointStore(args.state_file),
        )
        outcome = machine.run(resume=args.resume, incomplete=args.incomplete)

    stats = outcome.stats
    print(
        f"\nThis run: {stats.accepted} accepted, {stats.rejected} rejected, "
        f"{stats.skipped} skipped, {stats.missing} missing, "
        f"{stats.failed} failed"
    )
    return outcome.exit_code


def cmd_frequency(args: argparse.Namespace) -> int:
    with VerbDatabase(args.db) as db:
        try:
            update_frequencies(WiktionaryClient(), db)
        except RateLimited:
            print("ERROR: Rate limit (429) detected while fetching frequencies.")
            return 1
    return 0


def cmd_cleanup(args: argparse.Namespace) -> int:
    print("German Verbs Database Cleanup\n")
    with VerbDatabase(args.db) as db:
        print(f"Database: {args.db}\n")
        print("Finding and deleting incomplete verbs...\n")
        deleted = db.delete_incomplete_verbs()
        for _, infinitive in deleted:
            print(f"  Deleting: {infinitive}")
        print(f"\nDeleted {len(deleted)} incomplete verb(s)\n")

        stats = db.stats()
        print("Remaining in database:")
        print(f"  Verbs: {stats['verbs']}")
        print(f"  Conjugations: {stats['conjugations']}")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    with VerbDatabase(args.db) as db:
        df = db.conjugation_frame()
    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out, index=False)
    print(f"Wrote {len(df)} conjugation rows to {out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="german-verbs",
        description="Harvest German verb conjugations from de.wiktionary.",
    )
    sub = parser.add_subparsers(dest="command")

    def add_db(p: argparse.ArgumentParser) -> None:
        p.add_argument("--db", type=Path, default=DB_PATH, help="SQLite database")

    p_scrape = sub.add_parser("scrape", help="Run the scraper")
    p_scrape.add_argument(
        "-r", "--resume", action="store_true", help="Resume from saved state"
    )
    p_scrape.add_argument(
        "-i",
        "--incomplete",
        action="store_true",
        help="Re-fetch stored verbs missing a required tense",
    )
    p_scrape.add_argument(
        "--state-file", type=Path, default=STATE_FILE, help="Checkpoint file"
    )
    add_db(p_scrape)
    p_scrape.set_defaults(func=cmd_scrape)

    p_freq = sub.add_parser("frequency", help="Attach usage frequencies")
    add_db(p_freq)
    p_freq.set_defaults(func=cmd_frequency)

    p_clean = sub.add_parser("cleanup", help="Delete incomplete verbs")
    add_db(p_clean)
    p_clean.set_defaults(func=cmd_cleanup)

    p_export = sub.add_parser("export", help="Write conjugations to CSV")
    add_db(p_export)
    p_export.add_argument("--out", type=Path, default=EXPORT_CSV)
    p_export.set_defaults(func=cmd_export)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
