"""
Location detector.

Places come from structured testimony metadata and from the place-like
fields of an exhibit. Two places agree when, after normalization, they are
equal ignoring case or one contains the other.
"""

from __future__ import annotations

from ..domain import ContradictionType
from ..evidence import Evidence, TestimonyStatement, field_text
from .base import ContradictionDetector, FactMention


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

TESTIMONY_LOCATION_KEYS = ("claimed_location", "claimed_location_2")

# Checked in this order
EVIDENCE_LOCATION_FIELDS = (
    "location",
    "place",
    "destination",
    "departure",
    "address",
    "venue",
    "site",
    "meeting_place",
)

# Trailing words that do not distinguish one place from another
LOCATION_DESCRIPTORS = (
    "Station",
    "Café",
    "Cafe",
    "Gate",
    "Hall",
    "Building",
    "Factory",
    "Hotel",
    "Restaurant",
)


# =============================================================================
# NORMALIZATION AND COMPARISON
# =============================================================================

def normalize_location(location: str) -> str:
    """
    Trim, then drop one trailing descriptor word.

    "Lenestra Cafe" -> "Lenestra", "Dravik Station" -> "Dravik".
    Only the last word is cut, and only once. A single-word place is left
    alone, so "Station" stays "Station".
    """
    normalized = location.strip()
    lowered = normalized.casefold()

    for descriptor in LOCATION_DESCRIPTORS:
        if lowered.endswith(descriptor.casefold()):
            last_space = normalized.rfind(" ")
            if last_space > 0:
                normalized = normalized[:last_space].strip()
            break

    return normalized


def are_locations_conflicting(first: str, second: str) -> bool:
    a = normalize_location(first).casefold()
    b = normalize_location(second).casefold()

    if a == b:
        return False
    if a in b or b in a:
        return False
    return True


# =============================================================================
# EXTRACTION
# =============================================================================

def extract_locations_from_testimony(testimony: TestimonyStatement) -> list[FactMention]:
    mentions = []
    for key in TESTIMONY_LOCATION_KEYS:
        place = field_text(testimony.metadata, key)
        if place is not None:
            mentions.append(FactMention(place, key, place))
    return mentions


def extract_locations_from_evidence(evidence: Evidence) -> list[FactMention]:
    mentions = []
    for field_name in EVIDENCE_LOCATION_FIELDS:
        place = field_text(evidence.content, field_name)
        if place is not None:
            mentions.append(FactMention(place, field_name, place))
    return mentions


# =============================================================================
# DETECTOR
# =============================================================================

class LocationContradictionDetector(ContradictionDetector):
    """Flags statements and exhibits that put someone in different places."""

    handled_type = ContradictionType.LOCATION
    fact_kind = "location"
    consistent_message = "Locations are consistent"
    evidence_consistent_message = "Evidence locations are consistent"

    def extract_from_testimony(self, testimony: TestimonyStatement) -> list[FactMention]:
        return extract_locations_from_testimony(testimony)

    def extract_from_evidence(self, evidence: Evidence) -> list[FactMention]:
        return extract_locations_from_evidence(evidence)

    def is_conflicting(self, first: str, second: str) -> bool:
        return are_locations_conflicting(first, second)

    def describe_testimony_conflict(self, stated: FactMention, shown: FactMention) -> str:
        return f"Testimony claims '{stated.label}' but evidence shows '{shown.label}'"
