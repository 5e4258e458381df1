#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
SQLite storage for harvested verbs.

All writes are upserts keyed by natural keys (infinitive; verb + tense), so
a resumed run may safely repeat a title whose rows were already written.
"""

import sqlite3
from pathlib import Path
from typing import Mapping, Optional, Union

import pandas as pd

from .models import (
    REQUIRED_TENSES,
    SLOT_NAMES,
    TENSE_ORDER,
    AcceptedVerb,
    ConjugationSlotSet,
)

SCHEMA = """
PRAGMA foreign_keys = ON;

-- Core verb entity; infinitive includes any separable prefix ('aufstehen')
CREATE TABLE IF NOT EXISTS verbs (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  infinitive TEXT NOT NULL,
  separable_prefix TEXT,
  is_irregular INTEGER NOT NULL DEFAULT 0,
  usage_popularity INTEGER DEFAULT 0,
  created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now')),
  updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now')),
  UNIQUE (infinitive)
);

-- One row per (verb, tense), with the six forms as columns
CREATE TABLE IF NOT EXISTS verb_conjugations (
  verb_id INTEGER NOT NULL,
  tense TEXT NOT NULL,
  sg1 TEXT NOT NULL,
  sg2 TEXT NOT NULL,
  sg3 TEXT NOT NULL,
  pl1 TEXT NOT NULL,
  pl2 TEXT NOT NULL,
  pl3 TEXT NOT NULL,
  notes TEXT,
  PRIMARY KEY (verb_id, tense),
  FOREIGN KEY (verb_id) REFERENCES verbs(id) ON DELETE CASCADE
);

-- Translations: multiple per verb per locale (not filled by the harvester)
CREATE TABLE IF NOT EXISTS verb_translations (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  verb_id INTEGER NOT NULL,
  locale TEXT NOT NULL,
  text TEXT NOT NULL,
  sense_order INTEGER NOT NULL DEFAULT 1,
  notes TEXT,
  created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now')),
  FOREIGN KEY (verb_id) REFERENCES verbs(id) ON DELETE CASCADE,
  UNIQUE (verb_id, locale, text)
);

CREATE INDEX IF NOT EXISTS idx_verbs_infinitive ON verbs(infinitive);
CREATE INDEX IF NOT EXISTS idx_verbs_separable_prefix ON verbs(separable_prefix);
CREATE INDEX IF NOT EXISTS idx_verbs_usage_popularity ON verbs(usage_popularity);
CREATE INDEX IF NOT EXISTS idx_conj_tense ON verb_conjugations(tense);
CREATE INDEX IF NOT EXISTS idx_translations_locale_text
  ON verb_translations(locale, text);
CREATE INDEX IF NOT EXISTS idx_translations_verb_locale
  ON verb_translations(verb_id, locale);
"""

_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"

UPSERT_VERB_SQL = f"""
INSERT INTO verbs (infinitive, separable_prefix, is_irregular, usage_popularity)
VALUES (:infinitive, :prefix, :irregular, COALESCE(:popularity, 0))
ON CONFLICT(infinitive) DO UPDATE SET
  separable_prefix = excluded.separable_prefix,
  is_irregular = excluded.is_irregular,
  usage_popularity = CASE
    WHEN :popularity IS NULL THEN verbs.usage_popularity
    ELSE excluded.usage_popularity
  END,
  updated_at = {_NOW}
"""

UPSERT_TENSE_SQL = """
INSERT INTO verb_conjugations (verb_id, tense, sg1, sg2, sg3, pl1, pl2, pl3, notes)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(verb_id, tense) DO UPDATE SET
  sg1 = excluded.sg1, sg2 = excluded.sg2, sg3 = excluded.sg3,
  pl1 = excluded.pl1, pl2 = excluded.pl2, pl3 = excluded.pl3,
  notes = excluded.notes
"""

_REQUIRED_SQL_LIST = ", ".join(f"'{t}'" for t in REQUIRED_TENSES)

INCOMPLETE_VERBS_SQL = f"""
SELECT v.id, v.infinitive
FROM verbs v
WHERE (
  SELECT COUNT(DISTINCT vc.tense)
  FROM verb_conjugations vc
  WHERE vc.verb_id = v.id
    AND vc.tense IN ({_REQUIRED_SQL_LIST})
) < {len(REQUIRED_TENSES)}
ORDER BY v.infinitive
"""

EXPORT_SQL = """
SELECT v.infinitive, v.separable_prefix, v.is_irregular, v.usage_popularity,
       vc.tense, vc.sg1, vc.sg2, vc.sg3, vc.pl1, vc.pl2, vc.pl3, vc.notes
FROM verbs v
JOIN verb_conjugations vc ON vc.verb_id = v.id
ORDER BY v.infinitive, vc.tense
"""


class VerbDatabase:
    """Connection wrapper exposing the harvester's upsert operations."""

    def __init__(self, path: Union[str, Path]):
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.path)
        self.conn.row_factory = sqlite3.Row
        self.conn.executescript(SCHEMA)

    def __enter__(self) -> "VerbDatabase":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.conn.close()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _upsert_verb(
        self,
        infinitive: str,
        separable_prefix: Optional[str],
        is_irregular: bool,
        usage_popularity: Optional[int],
    ) -> int:
        self.conn.execute(
            UPSERT_VERB_SQL,
            {
                "infinitive": infinitive,
                "prefix": separable_prefix,
                "irregular": 1 if is_irregular else 0,
                "popularity": usage_popularity,
            },
        )
        verb_id = self.get_verb_id(infinitive)
        if verb_id is None:
            raise sqlite3.IntegrityError(f"verb {infinitive!r} was not stored")
        return verb_id

    def upsert_verb(
        self,
        infinitive: str,
        separable_prefix: Optional[str] = None,
        is_irregular: bool = False,
        usage_popularity: Optional[int] = 0,
    ) -> int:
        """Insert or update a verb by infinitive and return its stable id.

        usage_popularity=None keeps whatever value is already stored.
        """
        with self.conn:
            return self._upsert_verb(
                infinitive, separable_prefix, is_irregular, usage_popularity
            )

    def _upsert_tense(self, verb_id: int, tense: str, slots: ConjugationSlotSet):
        self.conn.execute(
            UPSERT_TENSE_SQL, (verb_id, tense, *slots.forms(), slots.notes)
        )

    def upsert_tense_record(
        self, verb_id: int, tense: str, slots: ConjugationSlotSet
    ) -> None:
        """Insert or overwrite the six forms of one tense."""
        with self.conn:
            self._upsert_tense(verb_id, tense, slots)

    def store_accepted_verb(
        self, accepted: AcceptedVerb, is_irregular: bool = True
    ) -> int:
        """Write a verb and all of its accepted tenses in one transaction.

        An existing usage_popularity is preserved.
        """
        with self.conn:
            verb_id = self._upsert_verb(
                accepted.infinitive, accepted.separable_prefix, is_irregular, None
            )
            for record in accepted.tenses:
                self._upsert_tense(verb_id, record.tense, record.slots)
        return verb_id

    def update_usage_popularity(self, freq_map: Mapping[str, int]) -> int:
        """Copy counts onto verbs whose infinitive matches a key exactly."""
        rows = self.conn.execute("SELECT id, infinitive FROM verbs").fetchall()
        updates = [
            (freq_map[row["infinitive"]], row["id"])
            for row in rows
            if row["infinitive"] in freq_map
        ]
        if updates:
            with self.conn:
                self.conn.executemany(
                    "UPDATE verbs SET usage_popularity = ? WHERE id = ?", updates
                )
        return len(updates)

    def delete_incomplete_verbs(self) -> list[tuple[int, str]]:
        """Remove verbs lacking a required tense; conjugations cascade."""
        incomplete = self.list_incomplete_verbs()
        if incomplete:
            with self.conn:
                self.conn.executemany(
                    "DELETE FROM verbs WHERE id = ?",
                    [(verb_id,) for verb_id, _ in incomplete],
                )
        return incomplete

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_verb_id(self, infinitive: str) -> Optional[int]:
        row = self.conn.execute(
            "SELECT id FROM verbs WHERE infinitive = ?", (infinitive,)
        ).fetchone()
        return row["id"] if row else None

    def get_verb(self, infinitive: str) -> Optional[dict]:
        row = self.conn.execute(
            "SELECT * FROM verbs WHERE infinitive = ?", (infinitive,)
        ).fetchone()
        return dict(row) if row else None

    def get_conjugations(self, infinitive: str) -> dict[str, ConjugationSlotSet]:
        rows = self.conn.execute(
            """
            SELECT vc.* FROM verb_conjugations vc
            JOIN verbs v ON v.id = vc.verb_id
            WHERE v.infinitive = ?
            """,
            (infinitive,),
        ).fetchall()
        return {
            row["tense"]: ConjugationSlotSet(
                *(row[name] for name in SLOT_NAMES), notes=row["notes"]
            )
            for row in rows
        }

    def list_incomplete_verbs(self) -> list[tuple[int, str]]:
        """Verbs with fewer than the three required tenses, by infinitive."""
        return [
            (row["id"], row["infinitive"])
            for row in self.conn.execute(INCOMPLETE_VERBS_SQL).fetchall()
        ]

    def stats(self) -> dict[str, int]:
        """Row counts for the run summary."""
        result = {
            "verbs": self.conn.execute("SELECT COUNT(*) FROM verbs").fetchone()[0],
            "conjugations": self.conn.execute(
                "SELECT COUNT(*) FROM verb_conjugations"
            ).fetchone()[0],
        }
        counts = {
            row[0]: row[1]
            for row in self.conn.execute(
                "SELECT tense, COUNT(*) FROM verb_conjugations GROUP BY tense"
            )
        }
        for tense in TENSE_ORDER:
            result[tense] = counts.get(tense, 0)
        return result

    def conjugation_frame(self) -> pd.DataFrame:
        """One row per (verb, tense), ready for CSV export."""
        return pd.read_sql_query(EXPORT_SQL, self.conn)
