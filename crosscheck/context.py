"""
Investigation Context - the read/mutate facade over the Fact Store.

Detectors only read through it. The four mutations (amend testimony, add
evidence, add cross reference, mark a contradiction resolved) each end with
a notification. Store errors propagate unmodified; notifier errors never do.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from .domain import ContractViolationError, ContradictionResolution, ContradictionResult, require
from .evidence import CrossReference, DossierState, Evidence, TestimonyStatement
from .storage import FactStore

logger = logging.getLogger(__name__)


class FactNotFoundError(LookupError):
    """Raised when a mutation targets a record that does not exist."""
    pass


# =============================================================================
# NOTIFICATIONS
# =============================================================================

class ContradictionNotifier(ABC):
    """
    Receiver of lifecycle events. Fire-and-forget: nothing the engine does
    depends on what these return.
    """

    @abstractmethod
    async def contradiction_found(self, result: ContradictionResult) -> None:
        ...

    @abstractmethod
    async def contradiction_resolved(
        self, contradiction_id: str, resolution: ContradictionResolution
    ) -> None:
        ...

    @abstractmethod
    async def dossier_updated(self, suspect_id: str) -> None:
        ...

    @abstractmethod
    async def evidence_unlocked(self, evidence_id: str) -> None:
        ...

    @abstractmethod
    async def cross_reference_created(self, reference: CrossReference) -> None:
        ...


class LoggingNotifier(ContradictionNotifier):
    """Default notifier. Writes every event to the log."""

    async def contradiction_found(self, result: ContradictionResult) -> None:
        logger.info("Contradiction found: %s", result.contradiction_id)

    async def contradiction_resolved(
        self, contradiction_id: str, resolution: ContradictionResolution
    ) -> None:
        logger.info("Contradiction resolved: %s", contradiction_id)

    async def dossier_updated(self, suspect_id: str) -> None:
        logger.info("Dossier updated: %s", suspect_id)

    async def evidence_unlocked(self, evidence_id: str) -> None:
        logger.info("Evidence unlocked: %s", evidence_id)

    async def cross_reference_created(self, reference: CrossReference) -> None:
        logger.info(
            "Cross-reference created: %s -> %s (%s)",
            reference.from_suspect_id, reference.to_suspect_id, reference.relationship_type,
        )


async def publish_safely(notifier: ContradictionNotifier, event: str, *args) -> None:
    """Deliver one event. A failing notifier is logged and otherwise ignored."""
    try:
        await getattr(notifier, event)(*args)
    except Exception:
        logger.exception("Notifier failed while publishing %s", event)


# =============================================================================
# INVESTIGATION CONTEXT
# =============================================================================

class InvestigationContext:
    """
    Facade the detectors and the service work through.

    Blank ids on the read side return None without reaching the store.
    """

    def __init__(self, store: FactStore, notifier: Optional[ContradictionNotifier] = None):
        if store is None:
            raise ContractViolationError("store is required")
        self.store = store
        self.notifier = notifier if notifier is not None else LoggingNotifier()

    async def publish(self, event: str, *args) -> None:
        await publish_safely(self.notifier, event, *args)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_testimony(self, statement_id: Optional[str]) -> Optional[TestimonyStatement]:
        if not statement_id or not statement_id.strip():
            return None
        return await self.store.get_testimony(statement_id)

    async def get_evidence(self, evidence_id: Optional[str]) -> Optional[Evidence]:
        if not evidence_id or not evidence_id.strip():
            return None
        return await self.store.get_evidence(evidence_id)

    async def get_dossier(self, suspect_id: Optional[str]) -> Optional[DossierState]:
        if not suspect_id or not suspect_id.strip():
            return None
        return await self.store.get_dossier(suspect_id)

    async def get_all_testimony(self) -> list[TestimonyStatement]:
        return await self.store.get_all_testimony()

    async def get_all_evidence(self) -> list[Evidence]:
        return await self.store.get_all_evidence()

    async def get_all_dossiers(self) -> list[DossierState]:
        return await self.store.get_all_dossiers()

    async def get_dossier_testimony(self, dossier: DossierState) -> list[TestimonyStatement]:
        """The dossier's statements, in dossier order. Dangling ids are skipped."""
        statements = []
        for statement_id in dossier.testimony_ids:
            statement = await self.get_testimony(statement_id)
            if statement is not None:
                statements.append(statement)
        return statements

    async def get_contradiction(self, contradiction_id: Optional[str]) -> Optional[ContradictionResult]:
        """The stored copy of a contradiction: the ledger record, else the first dossier holding it."""
        if not contradiction_id or not contradiction_id.strip():
            return None
        stored = await self.store.get_contradiction(contradiction_id)
        if stored is not None:
            return stored
        for dossier in await self.store.get_all_dossiers():
            contradiction = dossier.find_contradiction(contradiction_id)
            if contradiction is not None:
                return contradiction
        return None

    async def get_resolved_contradictions(self) -> list[ContradictionResult]:
        resolved = []
        for dossier in await self.store.get_all_dossiers():
            resolved.extend(c for c in dossier.contradictions if c.resolution.has_any_resolution)
        return resolved

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def update_testimony(self, statement_id: str, amended_text: str) -> TestimonyStatement:
        """
        Amend a statement. The original text is kept; the amendment becomes
        the current text.
        """
        require(statement_id, "statement_id")
        require(amended_text, "amended_text")

        testimony = await self.store.get_testimony(statement_id)
        if testimony is None:
            raise FactNotFoundError(f"Testimony '{statement_id}' not found")

        testimony.amended_text = amended_text
        await self.store.save_testimony(testimony)
        logger.info("Amended testimony %s", statement_id)

        dossier = await self.store.get_dossier(testimony.suspect_id)
        if dossier is not None and statement_id in dossier.testimony_ids:
            dossier.last_updated = datetime.utcnow()
            await self.store.save_dossier(dossier)
            await self.publish("dossier_updated", dossier.suspect_id)

        return testimony

    async def add_evidence(self, evidence: Evidence) -> None:
        if evidence is None:
            raise ContractViolationError("evidence is required")
        await self.store.save_evidence(evidence)
        logger.info("Saved evidence %s", evidence.evidence_id)
        await self.publish("evidence_unlocked", evidence.evidence_id)

    async def add_cross_reference(self, reference: CrossReference) -> None:
        """Record a link in both suspects' dossiers. Missing dossiers are skipped."""
        if reference is None:
            raise ContractViolationError("reference is required")

        await self._add_cross_reference_to(reference.from_suspect_id, reference)
        await self._add_cross_reference_to(reference.to_suspect_id, reference)

        await self.publish("cross_reference_created", reference)

    async def _add_cross_reference_to(self, suspect_id: str, reference: CrossReference) -> None:
        dossier = await self.store.get_dossier(suspect_id)
        if dossier is None:
            logger.debug("No dossier for %s, cross reference not stored there", suspect_id)
            return

        if dossier.add_relationship(reference):
            await self.store.save_dossier(dossier)
            await self.publish("dossier_updated", suspect_id)

    async def mark_contradiction_resolved(
        self,
        contradiction_id: str,
        resolution: ContradictionResolution,
    ) -> None:
        """
        Replace the stored resolution of a contradiction in every dossier
        that holds it, and in the ledger.

        Raises:
            FactNotFoundError: if neither a dossier nor the ledger holds it
        """
        require(contradiction_id, "contradiction_id")
        if resolution is None:
            raise ContractViolationError("resolution is required")

        ledger_entry = await self.store.get_contradiction(contradiction_id)
        resolved: Optional[ContradictionResult] = ledger_entry
        for dossier in await self.store.get_all_dossiers():
            contradiction = dossier.find_contradiction(contradiction_id)
            if contradiction is None:
                continue
            contradiction.resolution = copy.deepcopy(resolution)
            if resolved is None:
                resolved = contradiction
            await self.store.save_dossier(dossier)
            await self.publish("dossier_updated", dossier.suspect_id)

        if resolved is None:
            raise FactNotFoundError(f"Contradiction '{contradiction_id}' not found")

        if ledger_entry is None:
            ledger_entry = copy.deepcopy(resolved)
        ledger_entry.resolution = copy.deepcopy(resolution)
        await self.store.save_contradiction(ledger_entry)
        logger.info("Marked contradiction %s resolved", contradiction_id)
        await self.publish("contradiction_resolved", contradiction_id, resolution)

    async def record_contradiction(self, suspect_id: str, result: ContradictionResult) -> bool:
        """
        Add a copy of a contradiction to a suspect's dossier unless it is
        already there.

        Returns True when the dossier actually changed.
        """
        dossier = await self.get_dossier(suspect_id)
        if dossier is None:
            logger.debug("No dossier for %s, contradiction %s not recorded", suspect_id, result.contradiction_id)
            return False

        if not dossier.add_contradiction(copy.deepcopy(result)):
            return False

        await self.store.save_dossier(dossier)
        await self.publish("dossier_updated", suspect_id)
        return True

    async def save_contradiction(self, result: ContradictionResult) -> None:
        """Upsert a copy of a contradiction into the store's ledger."""
        await self.store.save_contradiction(copy.deepcopy(result))
