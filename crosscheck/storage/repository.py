"""
Fact Store contract.

The engine reads and writes facts only through this interface. Every
lookup returns the record or None; every save is an upsert keyed by the
record's identifier.

The store is expected to allow at most one in-flight mutation per record.
Nothing in the engine enforces that.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ..domain import ContradictionResult
from ..evidence import DossierState, Evidence, TestimonyStatement


class FactStore(ABC):
    """Async, key-addressed storage for evidence, testimony and dossiers."""

    @abstractmethod
    async def get_evidence(self, evidence_id: str) -> Optional[Evidence]:
        ...

    @abstractmethod
    async def get_all_evidence(self) -> list[Evidence]:
        ...

    @abstractmethod
    async def get_testimony(self, statement_id: str) -> Optional[TestimonyStatement]:
        ...

    @abstractmethod
    async def get_all_testimony(self) -> list[TestimonyStatement]:
        ...

    @abstractmethod
    async def get_dossier(self, suspect_id: str) -> Optional[DossierState]:
        ...

    @abstractmethod
    async def get_all_dossiers(self) -> list[DossierState]:
        ...

    @abstractmethod
    async def get_contradiction(self, contradiction_id: str) -> Optional[ContradictionResult]:
        """Look up the ledger record of a contradiction."""
        ...

    @abstractmethod
    async def save_evidence(self, evidence: Evidence) -> None:
        ...

    @abstractmethod
    async def save_testimony(self, testimony: TestimonyStatement) -> None:
        ...

    @abstractmethod
    async def save_dossier(self, dossier: DossierState) -> None:
        """Upsert a dossier. Stamps `last_updated`."""
        ...

    @abstractmethod
    async def save_contradiction(self, contradiction: ContradictionResult) -> None:
        ...


class InMemoryFactStore(FactStore):
    """
    Dict-backed store.

    Records keep insertion order, and replacing a record keeps its position.
    Used by the tests and as the base for the JSON store.
    """

    def __init__(
        self,
        evidence: Optional[list[Evidence]] = None,
        testimony: Optional[list[TestimonyStatement]] = None,
        dossiers: Optional[list[DossierState]] = None,
        contradictions: Optional[list[ContradictionResult]] = None,
    ):
        self._evidence: dict[str, Evidence] = {e.evidence_id: e for e in evidence or []}
        self._testimony: dict[str, TestimonyStatement] = {
            t.statement_id: t for t in testimony or []
        }
        self._dossiers: dict[str, DossierState] = {d.suspect_id: d for d in dossiers or []}
        self._contradictions: dict[str, ContradictionResult] = {
            c.contradiction_id: c for c in contradictions or []
        }

    async def get_evidence(self, evidence_id: str) -> Optional[Evidence]:
        return self._evidence.get(evidence_id)

    async def get_all_evidence(self) -> list[Evidence]:
        return list(self._evidence.values())

    async def get_testimony(self, statement_id: str) -> Optional[TestimonyStatement]:
        return self._testimony.get(statement_id)

    async def get_all_testimony(self) -> list[TestimonyStatement]:
        return list(self._testimony.values())

    async def get_dossier(self, suspect_id: str) -> Optional[DossierState]:
        return self._dossiers.get(suspect_id)

    async def get_all_dossiers(self) -> list[DossierState]:
        return list(self._dossiers.values())

    async def get_contradiction(self, contradiction_id: str) -> Optional[ContradictionResult]:
        return self._contradictions.get(contradiction_id)

    async def get_all_contradictions(self) -> list[ContradictionResult]:
        return list(self._contradictions.values())

    async def save_evidence(self, evidence: Evidence) -> None:
        self._evidence[evidence.evidence_id] = evidence

    async def save_testimony(self, testimony: TestimonyStatement) -> None:
        self._testimony[testimony.statement_id] = testimony

    async def save_dossier(self, dossier: DossierState) -> None:
        dossier.last_updated = datetime.utcnow()
        self._dossiers[dossier.suspect_id] = dossier

    async def save_contradiction(self, contradiction: ContradictionResult) -> None:
        self._contradictions[contradiction.contradiction_id] = contradiction
