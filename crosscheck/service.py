"""
Contradiction Service - dispatches queries to detectors and applies
resolutions.

Flow of a check:
    1. The first registered detector that can handle the query runs it.
    2. A positive result is announced, written to the ledger, and added
       to the dossier of every affected suspect (once per id).

A query no detector accepts is answered with a negative result whose id is
"no_detector_<query id>". That is a normal outcome, not an error.
"""

from __future__ import annotations

import logging
from typing import Optional

from .context import ContradictionNotifier, FactNotFoundError, InvestigationContext, publish_safely
from .detection import ContradictionDetector, default_detectors
from .domain import (
    ContractViolationError,
    ContradictionQuery,
    ContradictionResult,
    ContradictionType,
    TestimonyVsEvidenceQuery,
)

logger = logging.getLogger(__name__)


class ContradictionService:
    """
    Entry point of the engine.

    Detectors are tried in registration order. Everything the service reads
    or writes goes through the investigation context.
    """

    def __init__(
        self,
        context: InvestigationContext,
        detectors: Optional[list[ContradictionDetector]] = None,
        notifier: Optional[ContradictionNotifier] = None,
    ):
        if context is None:
            raise ContractViolationError("context is required")
        self.context = context
        self.detectors = list(detectors) if detectors is not None else default_detectors()
        self.notifier = notifier if notifier is not None else context.notifier

    async def _publish(self, event: str, *args) -> None:
        await publish_safely(self.notifier, event, *args)

    def find_detector(self, query: ContradictionQuery) -> Optional[ContradictionDetector]:
        for detector in self.detectors:
            if detector.can_handle(query):
                return detector
        return None

    # =========================================================================
    # DETECTION
    # =========================================================================

    async def check_contradiction(self, query: ContradictionQuery) -> ContradictionResult:
        if query is None:
            raise ContractViolationError("query is required")

        detector = self.find_detector(query)
        if detector is None:
            logger.warning("No detector for %s query %s", query.expected_type.value, query.query_id)
            return ContradictionResult(
                is_contradiction=False,
                contradiction_type=query.expected_type,
                contradiction_id=f"no_detector_{query.query_id}",
                description=(
                    f"No detector found for query type {type(query).__name__} "
                    f"({query.expected_type.value})"
                ),
            )

        result = await detector.detect(query, self.context)

        if result.is_contradiction:
            logger.info("%s: %s", result.contradiction_id, result.description)
            await self._publish("contradiction_found", result)
            await self.context.save_contradiction(result)

            for suspect_id in result.affected_suspects:
                await self.context.record_contradiction(suspect_id, result)

        return result

    async def get_possible_contradictions(self, suspect_id: str) -> list[ContradictionResult]:
        """
        Check every statement of a suspect against every exhibit on every
        axis, and return the contradictions found.

        Cost grows as statements x exhibits x types. Meant for offline use.
        """
        if not suspect_id or not suspect_id.strip():
            return []

        dossier = await self.context.get_dossier(suspect_id)
        if dossier is None:
            return []

        found = []
        statements = await self.context.get_dossier_testimony(dossier)
        all_evidence = await self.context.get_all_evidence()

        for testimony in statements:
            for evidence in all_evidence:
                for contradiction_type in ContradictionType:
                    query = TestimonyVsEvidenceQuery(
                        testimony.statement_id, evidence.evidence_id, contradiction_type
                    )
                    result = await self.check_contradiction(query)
                    if result.is_contradiction:
                        found.append(result)

        logger.info("Sweep of %s found %d contradictions", suspect_id, len(found))
        return found

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    async def apply_resolution(self, result: ContradictionResult) -> ContradictionResult:
        """
        Apply the resolution the caller attached to `result`.

        Steps:
            1. An amended text replaces the current text of the first
               affected suspect's most recent statement. This is not
               necessarily the statement that was checked.
            2. Each listed evidence id that exists is saved again (unlocked).
            3. Each cross reference is recorded in both dossiers.
            4. The contradiction is marked resolved wherever it is stored
               (its dossiers and the ledger).

        Returns `result` unchanged.

        Raises:
            ContractViolationError: if `result` is not a contradiction
            FactNotFoundError: if the contradiction was never stored; nothing
                is applied in that case
        """
        if result is None:
            raise ContractViolationError("result is required")
        if not result.is_contradiction:
            raise ContractViolationError("Cannot apply resolution to non-contradiction")
        if await self.context.get_contradiction(result.contradiction_id) is None:
            raise FactNotFoundError(f"Contradiction '{result.contradiction_id}' not found")

        resolution = result.resolution

        if resolution.amended_testimony:
            await self._amend_latest_testimony(result, resolution.amended_testimony)

        for evidence_id in resolution.new_evidence_ids:
            evidence = await self.context.get_evidence(evidence_id)
            if evidence is not None:
                await self.context.add_evidence(evidence)

        for reference in resolution.cross_references:
            await self.context.add_cross_reference(reference)

        await self.context.mark_contradiction_resolved(result.contradiction_id, resolution)
        return result

    async def _amend_latest_testimony(self, result: ContradictionResult, amended_text: str) -> None:
        if not result.affected_suspects:
            return

        dossier = await self.context.get_dossier(result.affected_suspects[0])
        if dossier is None:
            return

        statements = await self.context.get_dossier_testimony(dossier)
        if not statements:
            return

        latest = max(statements, key=lambda statement: statement.timestamp)
        await self.context.update_testimony(latest.statement_id, amended_text)

    async def is_contradiction_resolved(self, contradiction_id: str) -> bool:
        if not contradiction_id or not contradiction_id.strip():
            return False
        resolved = await self.context.get_resolved_contradictions()
        return any(c.contradiction_id == contradiction_id for c in resolved)

    async def get_unresolved_contradictions(self) -> list[ContradictionResult]:
        """Open contradictions across all dossiers, each id once, in dossier order."""
        seen = set()
        unresolved = []
        for dossier in await self.context.get_all_dossiers():
            for contradiction in dossier.contradictions:
                if contradiction.contradiction_id in seen:
                    continue
                seen.add(contradiction.contradiction_id)
                if not contradiction.resolution.has_any_resolution:
                    unresolved.append(contradiction)
        return unresolved
