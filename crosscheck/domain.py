"""
Core Domain Objects for the CrossCheck contradiction engine.

Domain Objects:
    ContradictionType        - the three axes a conflict can sit on
    TestimonyVsEvidenceQuery - "does this statement conflict with this exhibit?"
    EvidenceVsEvidenceQuery  - "do these two exhibits conflict?"
    ContradictionResult      - the answer, positive or not
    ContradictionResolution  - what the investigator did about a contradiction

A result with is_contradiction=False is a normal outcome that carries a
diagnostic description. Callers branch on the flag, never on exceptions.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from .evidence import CrossReference, parse_timestamp


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

# Random hex characters appended to generated ids
CONTRADICTION_ID_SUFFIX_LENGTH = 12
QUERY_ID_SUFFIX_LENGTH = 12


# =============================================================================
# ERRORS
# =============================================================================

class ContractViolationError(ValueError):
    """
    Raised when a caller misuses the engine.

    Missing required arguments, or applying a resolution to a result that
    is not a contradiction. These are programming errors, not data issues.
    """
    pass


def require(value, name: str) -> None:
    """Reject None and blank strings for a required argument."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ContractViolationError(f"{name} is required")


# =============================================================================
# CONTRADICTION TYPE
# =============================================================================

class ContradictionType(Enum):
    """The independent axes a contradiction can be found on."""
    TIMELINE = "timeline"
    LOCATION = "location"
    IDENTITY = "identity"


# =============================================================================
# QUERIES
# =============================================================================

class QueryKind(Enum):
    """Tag of the two query shapes."""
    TESTIMONY_VS_EVIDENCE = "testimony_vs_evidence"
    EVIDENCE_VS_EVIDENCE = "evidence_vs_evidence"


def _query_suffix() -> str:
    return uuid.uuid4().hex[:QUERY_ID_SUFFIX_LENGTH]


@dataclass(frozen=True)
class TestimonyVsEvidenceQuery:
    """A request to check one statement against one exhibit."""

    testimony_id: str
    evidence_id: str
    expected_type: ContradictionType
    query_id: str = field(default="")

    kind = QueryKind.TESTIMONY_VS_EVIDENCE

    def __post_init__(self):
        require(self.testimony_id, "testimony_id")
        require(self.evidence_id, "evidence_id")
        if not isinstance(self.expected_type, ContradictionType):
            raise ContractViolationError(
                f"expected_type must be ContradictionType, got {type(self.expected_type).__name__}"
            )
        if not self.query_id:
            object.__setattr__(
                self, "query_id",
                f"tve_{self.testimony_id}_{self.evidence_id}_{_query_suffix()}",
            )


@dataclass(frozen=True)
class EvidenceVsEvidenceQuery:
    """A request to check two exhibits against each other."""
    primary_evidence_id: str
    secondary_evidence_id: str
    expected_type: ContradictionType
    query_id: str = field(default="")

    kind = QueryKind.EVIDENCE_VS_EVIDENCE

    def __post_init__(self):
        require(self.primary_evidence_id, "primary_evidence_id")
        require(self.secondary_evidence_id, "secondary_evidence_id")
        if not isinstance(self.expected_type, ContradictionType):
            raise ContractViolationError(
                f"expected_type must be ContradictionType, got {type(self.expected_type).__name__}"
            )
        if not self.query_id:
            object.__setattr__(
                self, "query_id",
                f"eve_{self.primary_evidence_id}_{self.secondary_evidence_id}_{_query_suffix()}",
            )


ContradictionQuery = Union[TestimonyVsEvidenceQuery, EvidenceVsEvidenceQuery]


# =============================================================================
# RESOLUTION
# =============================================================================

@dataclass
class ContradictionResolution:
    """
    What resolving a contradiction changes.

    There is no status field: a contradiction counts as resolved exactly
    when its resolution carries some content (has_any_resolution).
    """
    amended_testimony: Optional[str] = None
    new_evidence_ids: list[str] = field(default_factory=list)
    unlocked_suspect_ids: list[str] = field(default_factory=list)
    dossier_updates: list[str] = field(default_factory=list)
    cross_references: list[CrossReference] = field(default_factory=list)

    @property
    def has_any_resolution(self) -> bool:
        return bool(
            self.amended_testimony
            or self.new_evidence_ids
            or self.unlocked_suspect_ids
            or self.dossier_updates
            or self.cross_references
        )

    def to_dict(self) -> dict:
        return {
            "amendedTestimony": self.amended_testimony,
            "newEvidenceIds": list(self.new_evidence_ids),
            "unlockedSuspectIds": list(self.unlocked_suspect_ids),
            "dossierUpdates": list(self.dossier_updates),
            "crossReferences": [r.to_dict() for r in self.cross_references],
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> ContradictionResolution:
        data = data or {}
        return cls(
            amended_testimony=data.get("amendedTestimony"),
            new_evidence_ids=list(data.get("newEvidenceIds") or []),
            unlocked_suspect_ids=list(data.get("unlockedSuspectIds") or []),
            dossier_updates=list(data.get("dossierUpdates") or []),
            cross_references=[
                CrossReference.from_dict(r) for r in data.get("crossReferences") or []
            ],
        )


# =============================================================================
# RESULT
# =============================================================================

def create_contradiction_id(scope: str, contradiction_type: ContradictionType) -> str:
    """
    Generate a contradiction id: co_<scope>_<type>_<hex>.

    `scope` is the last underscore segment of the suspect id
    ("su_assassin_marko" -> "marko"), or "evidence" for exhibit-only
    conflicts.
    """
    suffix = uuid.uuid4().hex[:CONTRADICTION_ID_SUFFIX_LENGTH]
    return f"co_{scope}_{contradiction_type.value}_{suffix}"


def suspect_scope(suspect_id: str) -> str:
    return suspect_id.split("_")[-1]


@dataclass
class ContradictionResult:
    """
    Outcome of one detection request.

    Only a detector creates a result. The embedded resolution starts empty
    and is filled in by the caller before it is applied.
    """
    is_contradiction: bool
    contradiction_type: Optional[ContradictionType]
    contradiction_id: str
    description: str = ""
    affected_suspects: list[str] = field(default_factory=list)
    related_evidence: list[str] = field(default_factory=list)
    resolution: ContradictionResolution = field(default_factory=ContradictionResolution)
    detected_at: datetime = field(default_factory=datetime.utcnow)

    @classmethod
    def no_contradiction(
        cls,
        query_id: str,
        contradiction_type: Optional[ContradictionType],
        reason: str,
    ) -> ContradictionResult:
        """A negative result explaining why nothing was found."""
        return cls(
            is_contradiction=False,
            contradiction_type=contradiction_type,
            contradiction_id=f"no_contradiction_{query_id}",
            description=reason,
        )

    @property
    def is_resolved(self) -> bool:
        return self.resolution.has_any_resolution

    def to_dict(self) -> dict:
        return {
            "isContradiction": self.is_contradiction,
            "type": self.contradiction_type.value if self.contradiction_type else None,
            "contradictionId": self.contradiction_id,
            "description": self.description,
            "affectedSuspects": list(self.affected_suspects),
            "relatedEvidence": list(self.related_evidence),
            "resolution": self.resolution.to_dict(),
            "detectedAt": self.detected_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> ContradictionResult:
        raw_type = data.get("type")
        return cls(
            is_contradiction=bool(data.get("isContradiction", False)),
            contradiction_type=ContradictionType(raw_type) if raw_type else None,
            contradiction_id=data.get("contradictionId", ""),
            description=data.get("description", ""),
            affected_suspects=list(data.get("affectedSuspects") or []),
            related_evidence=list(data.get("relatedEvidence") or []),
            resolution=ContradictionResolution.from_dict(data.get("resolution")),
            detected_at=parse_timestamp(data.get("detectedAt")),
        )
