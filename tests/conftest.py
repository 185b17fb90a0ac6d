"""
Shared fixtures: a small case file, an in-memory store seeded with it, and
a notifier that records what it was told.

Case file:
    su_assassin_marko   three statements (a time, a place, a denied name)
    su_handler_nadia    one statement
    ev_tickets_001      train ticket: 11:50 arrival at Dravik Station, M. Petrovic
    ev_cctv_002         CCTV still: 14:30 at North Gate, N. Petrovic
    ev_receipt_003      receipt: 12:05 at Cafe Lenestra
    ev_letter_004       letter with no time, place or name fields
"""

import json
from datetime import datetime

import pytest

from crosscheck.context import ContradictionNotifier, InvestigationContext
from crosscheck.evidence import DossierState, Evidence, TestimonyStatement
from crosscheck.service import ContradictionService
from crosscheck.storage import InMemoryFactStore


# =============================================================================
# CASE FILE
# =============================================================================

def make_evidence() -> list[Evidence]:
    return [
        Evidence(
            evidence_id="ev_tickets_001",
            category="document",
            title="Train Ticket",
            content={
                "arrival_time": "11:50",
                "passenger_name": "M. Petrovic",
                "destination": "Dravik Station",
            },
        ),
        Evidence(
            evidence_id="ev_cctv_002",
            category="footage",
            title="North Gate CCTV at 2:30 PM",
            content={
                "time": "14:30",
                "location": "North Gate",
                "subject_name": "N. Petrovic",
            },
        ),
        Evidence(
            evidence_id="ev_receipt_003",
            category="document",
            title="Cafe Receipt",
            content={
                "timestamp": "2024-03-14T12:05:00",
                "venue": "Cafe Lenestra",
                "amount": 4.5,
            },
        ),
        Evidence(
            evidence_id="ev_letter_004",
            category="correspondence",
            title="Unsigned Letter",
            content={"note": "Meet me at the usual place"},
        ),
    ]


def make_testimony() -> list[TestimonyStatement]:
    return [
        TestimonyStatement(
            statement_id="te_marko_001",
            suspect_id="su_assassin_marko",
            original_text="My train got in around 1 PM.",
            metadata={"topic": "arrival"},
            timestamp=datetime(2024, 3, 15, 10, 0),
        ),
        TestimonyStatement(
            statement_id="te_marko_002",
            suspect_id="su_assassin_marko",
            original_text="I was in the cafe all afternoon.",
            metadata={"claimed_location": "Lenestra Cafe"},
            timestamp=datetime(2024, 3, 15, 10, 5),
        ),
        TestimonyStatement(
            statement_id="te_marko_003",
            suspect_id="su_assassin_marko",
            original_text="Whoever is on that tape, it is not me.",
            metadata={"denied_identity": "N. Petrovic"},
            timestamp=datetime(2024, 3, 15, 10, 10),
        ),
        TestimonyStatement(
            statement_id="te_nadia_001",
            suspect_id="su_handler_nadia",
            original_text="I met Marko Petrovic at Dravik Station at 11:50.",
            metadata={"claimed_location": "Dravik Station"},
            timestamp=datetime(2024, 3, 15, 11, 0),
        ),
    ]


def make_dossiers() -> list[DossierState]:
    return [
        DossierState(
            suspect_id="su_assassin_marko",
            name="Marko Petrovic",
            alias="The Falcon",
            testimony_ids=["te_marko_001", "te_marko_002", "te_marko_003"],
            linked_evidence_ids=["ev_tickets_001"],
        ),
        DossierState(
            suspect_id="su_handler_nadia",
            name="Nadia Petrovic",
            codename="Kestrel",
            testimony_ids=["te_nadia_001"],
        ),
    ]


def write_case_files(path) -> None:
    """Write the case file as the JSON layout the file store reads."""
    path.mkdir(parents=True, exist_ok=True)
    for file_name, records in (
        ("evidence.json", make_evidence()),
        ("testimony.json", make_testimony()),
        ("dossiers.json", make_dossiers()),
    ):
        (path / file_name).write_text(
            json.dumps([r.to_dict() for r in records], indent=2),
            encoding="utf-8",
        )


# =============================================================================
# NOTIFIERS
# =============================================================================

class RecordingNotifier(ContradictionNotifier):
    """Keeps every event as (event name, args)."""

    def __init__(self):
        self.events = []

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    async def contradiction_found(self, result):
        self.events.append(("contradiction_found", (result,)))

    async def contradiction_resolved(self, contradiction_id, resolution):
        self.events.append(("contradiction_resolved", (contradiction_id, resolution)))

    async def dossier_updated(self, suspect_id):
        self.events.append(("dossier_updated", (suspect_id,)))

    async def evidence_unlocked(self, evidence_id):
        self.events.append(("evidence_unlocked", (evidence_id,)))

    async def cross_reference_created(self, reference):
        self.events.append(("cross_reference_created", (reference,)))


class FailingNotifier(RecordingNotifier):
    """Records, then raises on every event."""

    async def contradiction_found(self, result):
        await super().contradiction_found(result)
        raise RuntimeError("notifier down")

    async def contradiction_resolved(self, contradiction_id, resolution):
        await super().contradiction_resolved(contradiction_id, resolution)
        raise RuntimeError("notifier down")

    async def dossier_updated(self, suspect_id):
        await super().dossier_updated(suspect_id)
        raise RuntimeError("notifier down")


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def store():
    return InMemoryFactStore(
        evidence=make_evidence(),
        testimony=make_testimony(),
        dossiers=make_dossiers(),
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def context(store, notifier):
    return InvestigationContext(store, notifier)


@pytest.fixture
def service(context):
    return ContradictionService(context)


@pytest.fixture
def case_dir(tmp_path):
    data_dir = tmp_path / "case"
    write_case_files(data_dir)
    return data_dir
