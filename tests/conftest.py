"""Pytest configuration and shared fixtures."""
import sys
from pathlib import Path
from typing import Callable, Optional

import pytest

# Allow running the tests from a plain checkout
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from german_verbs.checkpoint import CheckpointStore  # noqa: E402
from german_verbs.verb_db import VerbDatabase  # noqa: E402
from german_verbs.wiktionary_api import (  # noqa: E402
    CategoryEnumerator,
    RateLimiter,
    WiktionaryClient,
)

PRONOUNS = ("ich", "du", "er/sie/es", "wir", "ihr", "sie")
PERSON_LABELS = (
    "1. Person Singular",
    "2. Person Singular",
    "3. Person Singular",
    "1. Person Plural",
    "2. Person Plural",
    "3. Person Plural",
)

GEHEN_TABLES = [
    ("Präsens", ["gehe", "gehst", "geht", "gehen", "geht", "gehen"]),
    ("Präteritum", ["ging", "gingst", "ging", "gingen", "gingt", "gingen"]),
    (
        "Perfekt",
        [
            "bin gegangen",
            "bist gegangen",
            "ist gegangen",
            "sind gegangen",
            "seid gegangen",
            "sind gegangen",
        ],
    ),
]

AUFSTEHEN_TABLES = [
    (
        "Präsens",
        ["stehe auf", "stehst auf", "steht auf", "stehen auf", "steht auf", "stehen auf"],
    ),
    (
        "Präteritum",
        ["stand auf", "standst auf", "stand auf", "standen auf", "standet auf", "standen auf"],
    ),
    (
        "Perfekt",
        [
            "bin aufgestanden",
            "bist aufgestanden",
            "ist aufgestanden",
            "sind aufgestanden",
            "seid aufgestanden",
            "sind aufgestanden",
        ],
    ),
]


def _heading_cell(label: str) -> str:
    return (
        '<tr><td colspan="4" style="background:#DEDEDE">'
        '<span class="hauptsatz">Indikativ</span> '
        f'<b><a href="/wiki/{label}" title="{label}">{label}</a></b>\n'
        "</td></tr>\n"
    )


def _row(label: str, cell: str) -> str:
    return (
        "<tr>\n"
        f'<td style="text-align:right"><small>{label}</small>\n</td>\n'
        f"<td>{cell}\n</td></tr>\n"
    )


def build_flexion_page(
    infinitive: Optional[str], tables: list, pronouns: bool = True
) -> str:
    """Render a de.wiktionary-like Flexion page.

    `tables` is a list of (label, forms) pairs; forms are bare verb forms
    (pronouns are prepended) or, with pronouns=False, raw cell markup.
    """
    parts = []
    if infinitive is not None:
        parts.append(
            f'<h2><span class="mw-headline" id="{infinitive}">'
            f"{infinitive} (Konjugation)</span></h2>\n"
        )
    parts.append('<table class="inflection-table"><tbody>\n')
    for label, forms in tables:
        parts.append(_heading_cell(label))
        for person, pronoun, form in zip(PERSON_LABELS, PRONOUNS, forms):
            parts.append(_row(person, f"{pronoun} {form}" if pronouns else form))
    parts.append("</tbody></table>\n")
    return "".join(parts)


@pytest.fixture
def flexion_page() -> Callable[..., str]:
    return build_flexion_page


# ------------------------------------------------------------------
# Fake HTTP layer
# ------------------------------------------------------------------


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, reason: str = "OK"):
        self.status_code = status_code
        self.payload = payload
        self.reason = reason

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Stands in for requests.Session; `handler(url, params)` answers."""

    def __init__(self, handler: Callable[[str, dict], FakeResponse]):
        self.handler = handler
        self.calls: list[tuple[str, dict]] = []

    def get(self, url, params=None, timeout=None):
        params = dict(params or {})
        self.calls.append((url, params))
        return self.handler(url, params)

    def parse_titles(self) -> list[str]:
        return [p["page"] for _, p in self.calls if p.get("action") == "parse"]

    def category_calls(self) -> list[dict]:
        return [p for _, p in self.calls if p.get("list") == "categorymembers"]


class FakeWiki:
    """Canned MediaWiki API: category pages, Flexion pages, failures."""

    def __init__(self):
        # token (None for the first page) -> (members, next token)
        self.category_pages: dict = {}
        self.pages: dict[str, str] = {}
        self.status_overrides: dict[str, int] = {}
        self.category_status: dict = {}
        self.on_category_request: Optional[Callable[[dict], None]] = None

    def __call__(self, url: str, params: dict) -> FakeResponse:
        if params.get("list") == "categorymembers":
            token = params.get("cmcontinue")
            if self.on_category_request:
                self.on_category_request(params)
            if token in self.category_status:
                return FakeResponse(self.category_status[token], None, "Error")
            members, next_token = self.category_pages[token]
            payload = {"query": {"categorymembers": [{"title": m} for m in members]}}
            if next_token:
                payload["continue"] = {"cmcontinue": next_token, "continue": "-||"}
            return FakeResponse(200, payload)

        if params.get("action") == "parse":
            title = params["page"]
            if title in self.status_overrides:
                return FakeResponse(self.status_overrides[title], None, "Error")
            if title not in self.pages:
                return FakeResponse(
                    200, {"error": {"code": "missingtitle", "info": "missing"}}
                )
            prop = params.get("prop", "text")
            return FakeResponse(
                200, {"parse": {"title": title, prop: {"*": self.pages[title]}}}
            )

        return FakeResponse(400, None, "Bad Request")


@pytest.fixture
def fake_wiki() -> FakeWiki:
    return FakeWiki()


@pytest.fixture
def fake_session(fake_wiki) -> FakeSession:
    return FakeSession(fake_wiki)


@pytest.fixture
def client(fake_session) -> WiktionaryClient:
    return WiktionaryClient(session=fake_session, rate_limiter=RateLimiter(0))


@pytest.fixture
def enumerator(client) -> CategoryEnumerator:
    return CategoryEnumerator(client)


@pytest.fixture
def db():
    database = VerbDatabase(":memory:")
    yield database
    database.close()


@pytest.fixture
def checkpoints(tmp_path) -> CheckpointStore:
    return CheckpointStore(tmp_path / "state.json")
