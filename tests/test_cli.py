"""Tests for the command-line dispatcher."""
import pandas as pd
import pytest

from german_verbs import cli
from german_verbs.models import (
    PERFEKT,
    PRAESENS,
    PRAETERITUM,
    AcceptedVerb,
    ConjugationSlotSet,
    ScrapeState,
    TenseRecord,
)
from german_verbs.scrape import RATE_LIMITED, RunOutcome, RunStats
from german_verbs.verb_db import VerbDatabase


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "verbs.db"
    slots = ConjugationSlotSet(*["x"] * 6)
    with VerbDatabase(path) as db:
        db.store_accepted_verb(
            AcceptedVerb(
                "gehen",
                None,
                tuple(TenseRecord(t, slots) for t in (PRAESENS, PRAETERITUM, PERFEKT)),
            )
        )
        partial = db.upsert_verb("sein", is_irregular=True)
        db.upsert_tense_record(partial, PRAESENS, slots)
    return path


class TestParser:
    def test_scrape_flags(self):
        args = cli.build_parser().parse_args(["scrape", "--resume", "-i"])
        assert args.command == "scrape"
        assert args.resume
        assert args.incomplete
        assert args.func is cli.cmd_scrape

    def test_scrape_defaults(self):
        args = cli.build_parser().parse_args(["scrape"])
        assert not args.resume
        assert not args.incomplete
        assert args.db == cli.DB_PATH
        assert args.state_file == cli.STATE_FILE

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 0
        assert "usage:" in capsys.readouterr().out


class TestCommands:
    def test_cleanup_deletes_incomplete(self, db_path, capsys):
        assert cli.main(["cleanup", "--db", str(db_path)]) == 0
        out = capsys.readouterr().out
        assert "Deleting: sein" in out
        assert "Deleted 1 incomplete verb(s)" in out
        with VerbDatabase(db_path) as db:
            assert db.get_verb("sein") is None
            assert db.get_verb("gehen") is not None

    def test_export_writes_csv(self, db_path, tmp_path):
        out = tmp_path / "export" / "conjugations.csv"
        assert cli.main(["export", "--db", str(db_path), "--out", str(out)]) == 0
        df = pd.read_csv(out)
        assert len(df) == 4
        assert set(df["infinitive"]) == {"gehen", "sein"}

    def test_scrape_exit_code_follows_outcome(self, db_path, tmp_path, monkeypatch):
        class StubMachine:
            def __init__(self, **kwargs):
                pass

            def run(self, resume=False, incomplete=False):
                return RunOutcome(False, RATE_LIMITED, ScrapeState.fresh(), RunStats())

        monkeypatch.setattr(cli, "ScrapeStateMachine", StubMachine)
        code = cli.main(
            [
                "scrape",
                "--db",
                str(db_path),
                "--state-file",
                str(tmp_path / "state.json"),
            ]
        )
        assert code == 1
