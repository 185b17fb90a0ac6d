"""
Detector base class.

Every detector follows the same shape:

1. Resolve both sides of the query through the investigation context.
2. Extract candidate facts (times, places, names) from each side.
3. Compare every fact of side A with every fact of side B, in extraction
   order, and report the FIRST conflicting pair.

Subclasses supply the extraction rules and the conflict rule. The order of
the field lists they declare is part of the observable behaviour, since it
decides which pair is reported.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..domain import (
    ContradictionQuery,
    ContradictionResult,
    ContradictionType,
    EvidenceVsEvidenceQuery,
    QueryKind,
    TestimonyVsEvidenceQuery,
    create_contradiction_id,
    suspect_scope,
)
from ..evidence import Evidence, TestimonyStatement

if TYPE_CHECKING:
    from ..context import InvestigationContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FactMention:
    """
    One extracted fact.

    `value` is what gets compared (a time of day, a place, a name);
    `label` is how it is quoted back in descriptions.
    """
    value: Any
    source: str
    label: str
    is_denial: bool = False


class ContradictionDetector(ABC):
    """
    Base class for the timeline, location and identity detectors.

    Detectors hold no state between calls. A detection is a function of the
    query and what the context returns at call time.
    """

    handled_type: ContradictionType
    fact_kind: str
    consistent_message: str
    evidence_consistent_message: str

    def can_handle(self, query: ContradictionQuery) -> bool:
        """A detector takes a query iff the categories match and the shape is known."""
        return (
            query.expected_type == self.handled_type
            and getattr(query, "kind", None) in (
                QueryKind.TESTIMONY_VS_EVIDENCE,
                QueryKind.EVIDENCE_VS_EVIDENCE,
            )
        )

    async def detect(
        self,
        query: ContradictionQuery,
        context: InvestigationContext,
    ) -> ContradictionResult:
        if query.kind is QueryKind.TESTIMONY_VS_EVIDENCE:
            return await self._detect_testimony_vs_evidence(query, context)
        if query.kind is QueryKind.EVIDENCE_VS_EVIDENCE:
            return await self._detect_evidence_vs_evidence(query, context)
        return self._no_contradiction(query, "Query type not supported")

    # -------------------------------------------------------------------------
    # Extraction and comparison rules
    # -------------------------------------------------------------------------

    @abstractmethod
    def extract_from_testimony(self, testimony: TestimonyStatement) -> list[FactMention]:
        ...

    @abstractmethod
    def extract_from_evidence(self, evidence: Evidence) -> list[FactMention]:
        ...

    @abstractmethod
    def is_conflicting(self, first: Any, second: Any) -> bool:
        ...

    def is_testimony_contradiction(self, stated: FactMention, shown: FactMention) -> bool:
        """Whether a statement fact contradicts an exhibit fact."""
        return self.is_conflicting(stated.value, shown.value)

    def describe_testimony_conflict(self, stated: FactMention, shown: FactMention) -> str:
        return f"Testimony states '{stated.label}' but evidence shows '{shown.label}'"

    # -------------------------------------------------------------------------
    # Query variants
    # -------------------------------------------------------------------------

    async def _detect_testimony_vs_evidence(
        self,
        query: TestimonyVsEvidenceQuery,
        context: InvestigationContext,
    ) -> ContradictionResult:
        testimony = await context.get_testimony(query.testimony_id)
        if testimony is None:
            return self._no_contradiction(query, f"Testimony '{query.testimony_id}' not found")

        evidence = await context.get_evidence(query.evidence_id)
        if evidence is None:
            return self._no_contradiction(query, f"Evidence '{query.evidence_id}' not found")

        stated_facts = self.extract_from_testimony(testimony)
        if not stated_facts:
            return self._no_contradiction(query, f"No {self.fact_kind} information in testimony")

        shown_facts = self.extract_from_evidence(evidence)
        if not shown_facts:
            return self._no_contradiction(query, f"No {self.fact_kind} information in evidence")

        for stated in stated_facts:
            for shown in shown_facts:
                if self.is_testimony_contradiction(stated, shown):
                    logger.debug(
                        "%s conflict: %s=%r vs %s=%r",
                        self.handled_type.value, stated.source, stated.value,
                        shown.source, shown.value,
                    )
                    return self._testimony_result(testimony, evidence, stated, shown)

        return self._no_contradiction(query, self.consistent_message)

    async def _detect_evidence_vs_evidence(
        self,
        query: EvidenceVsEvidenceQuery,
        context: InvestigationContext,
    ) -> ContradictionResult:
        primary = await context.get_evidence(query.primary_evidence_id)
        if primary is None:
            return self._no_contradiction(
                query, f"Evidence '{query.primary_evidence_id}' not found"
            )

        secondary = await context.get_evidence(query.secondary_evidence_id)
        if secondary is None:
            return self._no_contradiction(
                query, f"Evidence '{query.secondary_evidence_id}' not found"
            )

        primary_facts = self.extract_from_evidence(primary)
        if not primary_facts:
            return self._no_contradiction(
                query, f"No {self.fact_kind} information in primary evidence"
            )

        secondary_facts = self.extract_from_evidence(secondary)
        if not secondary_facts:
            return self._no_contradiction(
                query, f"No {self.fact_kind} information in secondary evidence"
            )

        for first in primary_facts:
            for second in secondary_facts:
                if self.is_conflicting(first.value, second.value):
                    return self._evidence_result(primary, secondary, first, second)

        return self._no_contradiction(query, self.evidence_consistent_message)

    # -------------------------------------------------------------------------
    # Result construction
    # -------------------------------------------------------------------------

    def _testimony_result(
        self,
        testimony: TestimonyStatement,
        evidence: Evidence,
        stated: FactMention,
        shown: FactMention,
    ) -> ContradictionResult:
        return ContradictionResult(
            is_contradiction=True,
            contradiction_type=self.handled_type,
            contradiction_id=create_contradiction_id(
                suspect_scope(testimony.suspect_id), self.handled_type
            ),
            description=self.describe_testimony_conflict(stated, shown),
            affected_suspects=[testimony.suspect_id] if testimony.suspect_id else [],
            related_evidence=[evidence.evidence_id],
        )

    def _evidence_result(
        self,
        primary: Evidence,
        secondary: Evidence,
        first: FactMention,
        second: FactMention,
    ) -> ContradictionResult:
        return ContradictionResult(
            is_contradiction=True,
            contradiction_type=self.handled_type,
            contradiction_id=create_contradiction_id("evidence", self.handled_type),
            description=(
                f"Evidence conflict: '{primary.title}' shows '{first.label}' "
                f"but '{secondary.title}' shows '{second.label}'"
            ),
            related_evidence=[primary.evidence_id, secondary.evidence_id],
        )

    def _no_contradiction(self, query: ContradictionQuery, reason: str) -> ContradictionResult:
        logger.debug("%s: no contradiction for %s (%s)", self.handled_type.value, query.query_id, reason)
        return ContradictionResult.no_contradiction(query.query_id, self.handled_type, reason)
