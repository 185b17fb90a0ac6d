"""
Identity detector.

Names come from testimony metadata (a claimed identity, or a denied one)
and from the name fields of an exhibit.

Two names agree when they are equal ignoring case, when one contains the
other, or when their parts line up as initials ("M. Petrovic" and
"Marko Petrovic").

A denial flips the polarity: a suspect who denies being "N. Petrovic"
contradicts an exhibit that shows "N. Petrovic", and is consistent with
one that shows somebody else.
"""

from __future__ import annotations

import re

from ..domain import ContradictionType
from ..evidence import Evidence, TestimonyStatement, field_text
from .base import ContradictionDetector, FactMention


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

CLAIMED_IDENTITY_KEY = "claimed_identity"
DENIED_IDENTITY_KEY = "denied_identity"

# Checked in this order
EVIDENCE_NAME_FIELDS = (
    "full_name",
    "name",
    "passenger_name",
    "occupant_name",
    "subject_name",
    "owner_name",
    "holder_name",
)

NAME_SEPARATORS = re.compile(r"[ .]")


# =============================================================================
# NAME MATCHING
# =============================================================================

def normalize_name(name: str) -> str:
    return name.strip()


def name_parts(name: str) -> list[str]:
    return [part for part in NAME_SEPARATORS.split(name) if part]


def are_initials_matching(first: str, second: str) -> bool:
    """
    Position-wise comparison of name parts.

    Same number of parts, and at each position either two full words equal
    ignoring case, or a single letter matching the other part's first letter.
    """
    parts_a = name_parts(first)
    parts_b = name_parts(second)

    if len(parts_a) != len(parts_b):
        return False

    for part_a, part_b in zip(parts_a, parts_b):
        if len(part_a) > 1 and len(part_b) > 1:
            if part_a.casefold() != part_b.casefold():
                return False
        else:
            initial, full = (part_a, part_b) if len(part_a) == 1 else (part_b, part_a)
            if initial.upper() != full[0].upper():
                return False

    return True


def are_identities_conflicting(first: str, second: str) -> bool:
    a = normalize_name(first)
    b = normalize_name(second)

    if a.casefold() == b.casefold():
        return False
    if a.casefold() in b.casefold() or b.casefold() in a.casefold():
        return False
    if are_initials_matching(a, b):
        return False
    return True


# =============================================================================
# EXTRACTION
# =============================================================================

def extract_identities_from_testimony(testimony: TestimonyStatement) -> list[FactMention]:
    mentions = []

    claimed = field_text(testimony.metadata, CLAIMED_IDENTITY_KEY)
    if claimed is not None:
        mentions.append(FactMention(claimed, CLAIMED_IDENTITY_KEY, claimed))

    denied = field_text(testimony.metadata, DENIED_IDENTITY_KEY)
    if denied is not None:
        mentions.append(FactMention(denied, DENIED_IDENTITY_KEY, denied, is_denial=True))

    return mentions


def extract_identities_from_evidence(evidence: Evidence) -> list[FactMention]:
    mentions = []
    for field_name in EVIDENCE_NAME_FIELDS:
        name = field_text(evidence.content, field_name)
        if name is not None:
            mentions.append(FactMention(name, field_name, name))
    return mentions


# =============================================================================
# DETECTOR
# =============================================================================

class IdentityContradictionDetector(ContradictionDetector):
    """Flags claimed or denied identities that the exhibits disagree with."""

    handled_type = ContradictionType.IDENTITY
    fact_kind = "identity"
    consistent_message = "Identities are consistent"
    evidence_consistent_message = "Evidence identities are consistent"

    def extract_from_testimony(self, testimony: TestimonyStatement) -> list[FactMention]:
        return extract_identities_from_testimony(testimony)

    def extract_from_evidence(self, evidence: Evidence) -> list[FactMention]:
        return extract_identities_from_evidence(evidence)

    def is_conflicting(self, first: str, second: str) -> bool:
        return are_identities_conflicting(first, second)

    def is_testimony_contradiction(self, stated: FactMention, shown: FactMention) -> bool:
        conflicting = self.is_conflicting(stated.value, shown.value)
        if stated.is_denial:
            return not conflicting
        return conflicting

    def describe_testimony_conflict(self, stated: FactMention, shown: FactMention) -> str:
        if stated.is_denial:
            return f"Suspect denies identity '{stated.label}' but evidence shows '{shown.label}'"
        return f"Testimony claims identity '{stated.label}' but evidence shows '{shown.label}'"
