"""
JSON-file Fact Store.

Layout of the data directory:

    evidence.json        array of evidence records
    testimony.json       array of testimony statements
    dossiers.json        array of dossiers (contradictions embedded)
    contradictions.json  ledger of every contradiction ever found

Files are read once, on first access. Every save rewrites the one file it
touches; the directory is created on the first save. A missing file is an
empty collection; a malformed file raises.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Callable, Union

from ..domain import ContradictionResult
from ..evidence import DossierState, Evidence, TestimonyStatement
from .repository import InMemoryFactStore

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

EVIDENCE_FILE = "evidence.json"
TESTIMONY_FILE = "testimony.json"
DOSSIERS_FILE = "dossiers.json"
CONTRADICTIONS_FILE = "contradictions.json"

JSON_INDENT = 2


def _read_records(path: Path, factory: Callable[[dict], object]) -> list:
    if not path.exists():
        return []
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if data is None:
        return []
    return [factory(item) for item in data]


def _write_records(path: Path, records: list) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(
            [record.to_dict() for record in records],
            handle,
            indent=JSON_INDENT,
            ensure_ascii=False,
        )


class JsonFactStore(InMemoryFactStore):
    """
    File-backed store.

    Lookups are served from memory once the files are loaded. File I/O runs
    in a worker thread so the event loop is never blocked on disk.
    """

    def __init__(self, data_path: Union[str, Path] = "Data"):
        super().__init__()
        self.data_path = Path(data_path)
        self._loaded = False

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        await asyncio.to_thread(self._load_all)
        self._loaded = True

    def _load_all(self) -> None:
        if not self.data_path.is_dir():
            logger.warning("Data directory %s does not exist", self.data_path)

        evidence = _read_records(self.data_path / EVIDENCE_FILE, Evidence.from_dict)
        testimony = _read_records(self.data_path / TESTIMONY_FILE, TestimonyStatement.from_dict)
        dossiers = _read_records(self.data_path / DOSSIERS_FILE, DossierState.from_dict)
        contradictions = _read_records(
            self.data_path / CONTRADICTIONS_FILE, ContradictionResult.from_dict
        )

        self._evidence = {e.evidence_id: e for e in evidence}
        self._testimony = {t.statement_id: t for t in testimony}
        self._dossiers = {d.suspect_id: d for d in dossiers}
        self._contradictions = {c.contradiction_id: c for c in contradictions}

        logger.info(
            "Loaded case data from %s: %d evidence, %d testimony, %d dossiers, %d contradictions",
            self.data_path, len(evidence), len(testimony), len(dossiers), len(contradictions),
        )

    async def _write(self, file_name: str, records: list) -> None:
        path = self.data_path / file_name
        await asyncio.to_thread(_write_records, path, records)
        logger.debug("Wrote %d records to %s", len(records), path)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_evidence(self, evidence_id):
        await self._ensure_loaded()
        return await super().get_evidence(evidence_id)

    async def get_all_evidence(self):
        await self._ensure_loaded()
        return await super().get_all_evidence()

    async def get_testimony(self, statement_id):
        await self._ensure_loaded()
        return await super().get_testimony(statement_id)

    async def get_all_testimony(self):
        await self._ensure_loaded()
        return await super().get_all_testimony()

    async def get_dossier(self, suspect_id):
        await self._ensure_loaded()
        return await super().get_dossier(suspect_id)

    async def get_all_dossiers(self):
        await self._ensure_loaded()
        return await super().get_all_dossiers()

    async def get_contradiction(self, contradiction_id):
        await self._ensure_loaded()
        return await super().get_contradiction(contradiction_id)

    async def get_all_contradictions(self):
        await self._ensure_loaded()
        return await super().get_all_contradictions()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def save_evidence(self, evidence: Evidence) -> None:
        await self._ensure_loaded()
        await super().save_evidence(evidence)
        await self._write(EVIDENCE_FILE, list(self._evidence.values()))

    async def save_testimony(self, testimony: TestimonyStatement) -> None:
        await self._ensure_loaded()
        await super().save_testimony(testimony)
        await self._write(TESTIMONY_FILE, list(self._testimony.values()))

    async def save_dossier(self, dossier: DossierState) -> None:
        await self._ensure_loaded()
        await super().save_dossier(dossier)
        await self._write(DOSSIERS_FILE, list(self._dossiers.values()))

    async def save_contradiction(self, contradiction: ContradictionResult) -> None:
        await self._ensure_loaded()
        await super().save_contradiction(contradiction)
        await self._write(CONTRADICTIONS_FILE, list(self._contradictions.values()))
