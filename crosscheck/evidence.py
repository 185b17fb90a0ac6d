"""
Fact Records - the raw material every contradiction check reads.

Three kinds of record are ingested from a case file and only read by the
detectors:

    Evidence            - a physical exhibit with an open set of named fields
    TestimonyStatement  - a witness statement, optionally amended later
    DossierState        - the per-suspect aggregate of statements, linked
                          evidence, contradictions and cross references

Field maps (evidence content, testimony metadata) are ordered mappings from a
field name to a scalar value. Lookup is always by a known field name, and the
order in which a detector walks its field list decides which conflict is
reported first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional, Union

if TYPE_CHECKING:
    from .domain import ContradictionResult


FieldValue = Union[str, int, float, bool]
FieldMap = dict[str, Optional[FieldValue]]


class FactValidationError(ValueError):
    """Raised when a fact record is malformed."""
    pass


def validate_field_map(values: Optional[dict], owner: str) -> FieldMap:
    """
    Check that every value of a field map is a scalar (or None).

    Nested objects and lists have no meaning to the detectors and are
    rejected rather than stringified.
    """
    if values is None:
        return {}
    if not isinstance(values, dict):
        raise FactValidationError(f"{owner}: field map must be a mapping, got {type(values).__name__}")

    checked: FieldMap = {}
    for key, value in values.items():
        if value is not None and not isinstance(value, (str, int, float, bool)):
            raise FactValidationError(
                f"{owner}: field '{key}' must be a string, number or bool, got {type(value).__name__}"
            )
        checked[str(key)] = value
    return checked


def field_text(values: FieldMap, key: str) -> Optional[str]:
    """
    Return the text form of a field, or None if it is absent or empty.

    Whitespace-only text is still a value.
    """
    value = values.get(key)
    if value is None:
        return None
    text = str(value)
    if text == "":
        return None
    return text


def parse_timestamp(value: Any, default: Optional[datetime] = None) -> datetime:
    if value is None:
        return default if default is not None else datetime.utcnow()
    if isinstance(value, datetime):
        return value
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise FactValidationError(f"Invalid timestamp: {value!r}")
    # Stored naive, in UTC
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


# =============================================================================
# EVIDENCE
# =============================================================================

@dataclass
class Evidence:
    """
    A structured physical exhibit.

    `content` holds the exhibit's named fields (arrival_time, passenger_name,
    location, ...). Evidence is treated as immutable once detected against;
    it only changes through an explicit save.
    """
    evidence_id: str
    category: str = ""
    title: str = ""
    content: FieldMap = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        if not self.evidence_id:
            raise FactValidationError("evidence_id is required")
        self.content = validate_field_map(self.content, f"evidence {self.evidence_id}")

    def get_content_value(self, key: str) -> str:
        """Text of a content field, empty string when absent."""
        return field_text(self.content, key) or ""

    def to_dict(self) -> dict:
        return {
            "id": self.evidence_id,
            "category": self.category,
            "title": self.title,
            "content": dict(self.content),
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Evidence:
        return cls(
            evidence_id=data.get("id", ""),
            category=data.get("category", ""),
            title=data.get("title", ""),
            content=data.get("content") or {},
            created_at=parse_timestamp(data.get("createdAt")),
        )


# =============================================================================
# TESTIMONY
# =============================================================================

@dataclass
class TestimonyStatement:
    """
    A free-text statement made by a suspect.

    Amending a statement never overwrites the original; the amended text
    simply wins when present. `metadata` carries structured hints used by
    the detectors (claimed_location, claimed_identity, denied_identity, ...).
    """

    statement_id: str
    suspect_id: str = ""
    original_text: str = ""
    amended_text: Optional[str] = None
    metadata: FieldMap = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        if not self.statement_id:
            raise FactValidationError("statement_id is required")
        self.metadata = validate_field_map(self.metadata, f"testimony {self.statement_id}")

    @property
    def is_amended(self) -> bool:
        return bool(self.amended_text)

    @property
    def current_text(self) -> str:
        return self.amended_text if self.is_amended else self.original_text

    def get_metadata(self, key: str) -> Optional[str]:
        return field_text(self.metadata, key)

    def to_dict(self) -> dict:
        return {
            "id": self.statement_id,
            "suspectId": self.suspect_id,
            "originalText": self.original_text,
            "amendedText": self.amended_text,
            "metadata": dict(self.metadata),
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> TestimonyStatement:
        return cls(
            statement_id=data.get("id", ""),
            suspect_id=data.get("suspectId", ""),
            original_text=data.get("originalText", ""),
            amended_text=data.get("amendedText"),
            metadata=data.get("metadata") or {},
            timestamp=parse_timestamp(data.get("timestamp")),
        )


# =============================================================================
# CROSS REFERENCE
# =============================================================================

@dataclass(frozen=True)
class CrossReference:
    """
    An established link between two suspects.

    Stored in both suspects' dossiers, so it behaves as undirected even
    though it records which side it was raised from.
    """
    from_suspect_id: str
    to_suspect_id: str
    relationship_type: str
    evidence: str = ""
    established_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        if not self.from_suspect_id or not self.to_suspect_id:
            raise FactValidationError("cross reference requires both suspect ids")
        if not self.relationship_type:
            raise FactValidationError("cross reference requires a relationship_type")

    def same_link(self, other: CrossReference) -> bool:
        return (
            self.from_suspect_id == other.from_suspect_id
            and self.to_suspect_id == other.to_suspect_id
            and self.relationship_type == other.relationship_type
        )

    def to_dict(self) -> dict:
        return {
            "fromSuspectId": self.from_suspect_id,
            "toSuspectId": self.to_suspect_id,
            "relationshipType": self.relationship_type,
            "evidence": self.evidence,
            "establishedAt": self.established_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> CrossReference:
        return cls(
            from_suspect_id=data.get("fromSuspectId", ""),
            to_suspect_id=data.get("toSuspectId", ""),
            relationship_type=data.get("relationshipType", ""),
            evidence=data.get("evidence", ""),
            established_at=parse_timestamp(data.get("establishedAt")),
        )


# =============================================================================
# DOSSIER
# =============================================================================

@dataclass
class DossierState:
    """
    Everything known about one suspect.

    INVARIANT: a contradiction id appears at most once in `contradictions`.
    Use add_contradiction() rather than appending directly.
    """
    suspect_id: str
    name: str = ""
    alias: Optional[str] = None
    codename: Optional[str] = None
    testimony_ids: list[str] = field(default_factory=list)
    linked_evidence_ids: list[str] = field(default_factory=list)
    contradictions: list[ContradictionResult] = field(default_factory=list)
    relationships: list[CrossReference] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.utcnow)
    last_updated: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        if not self.suspect_id:
            raise FactValidationError("suspect_id is required")

    @property
    def display_name(self) -> str:
        if self.alias:
            return f"{self.name} (alias: {self.alias})"
        return self.name

    @property
    def full_display_name(self) -> str:
        if self.codename:
            return f"{self.display_name} - {self.codename}"
        return self.display_name

    @property
    def resolved_contradictions_count(self) -> int:
        return sum(1 for c in self.contradictions if c.resolution.has_any_resolution)

    @property
    def has_unresolved_contradictions(self) -> bool:
        return any(not c.resolution.has_any_resolution for c in self.contradictions)

    def find_contradiction(self, contradiction_id: str) -> Optional[ContradictionResult]:
        for contradiction in self.contradictions:
            if contradiction.contradiction_id == contradiction_id:
                return contradiction
        return None

    def add_contradiction(self, contradiction: ContradictionResult) -> bool:
        """Insert a contradiction unless one with the same id is present."""
        if self.find_contradiction(contradiction.contradiction_id) is not None:
            return False
        self.contradictions.append(contradiction)
        return True

    def add_relationship(self, reference: CrossReference) -> bool:
        """Insert a cross reference unless the same link is already recorded."""
        if any(existing.same_link(reference) for existing in self.relationships):
            return False
        self.relationships.append(reference)
        return True

    def to_dict(self) -> dict:
        return {
            "suspectId": self.suspect_id,
            "name": self.name,
            "alias": self.alias,
            "codename": self.codename,
            "testimonyIds": list(self.testimony_ids),
            "linkedEvidenceIds": list(self.linked_evidence_ids),
            "contradictions": [c.to_dict() for c in self.contradictions],
            "relationships": [r.to_dict() for r in self.relationships],
            "createdAt": self.created_at.isoformat(),
            "lastUpdated": self.last_updated.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> DossierState:
        from .domain import ContradictionResult

        return cls(
            suspect_id=data.get("suspectId", ""),
            name=data.get("name", ""),
            alias=data.get("alias"),
            codename=data.get("codename"),
            testimony_ids=list(data.get("testimonyIds") or []),
            linked_evidence_ids=list(data.get("linkedEvidenceIds") or []),
            contradictions=[
                ContradictionResult.from_dict(c) for c in data.get("contradictions") or []
            ],
            relationships=[
                CrossReference.from_dict(r) for r in data.get("relationships") or []
            ],
            created_at=parse_timestamp(data.get("createdAt")),
            last_updated=parse_timestamp(data.get("lastUpdated")),
        )
