"""
Read-only lookups over the case file.

Plain substring searches, case-insensitive throughout. Nothing here feeds
the detectors; these are for the investigator browsing the case.
"""

from __future__ import annotations

from typing import Optional

from .evidence import Evidence, FieldValue, TestimonyStatement, field_text
from .storage import FactStore


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

TIMED_EVIDENCE_FIELDS = ("time", "arrival_time", "departure_time", "timestamp")
PLACE_EVIDENCE_FIELDS = ("location", "destination", "departure", "place", "address")
TOPIC_METADATA_KEY = "topic"


def _contains(haystack: Optional[str], needle: str) -> bool:
    return haystack is not None and needle.casefold() in haystack.casefold()


def _is_blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


class EvidenceLookup:
    """Searches over evidence."""

    def __init__(self, store: FactStore):
        self.store = store

    async def find_by_category(self, category: str) -> list[Evidence]:
        if _is_blank(category):
            return []
        return [
            e for e in await self.store.get_all_evidence()
            if e.category.casefold() == category.casefold()
        ]

    async def find_timed(self) -> list[Evidence]:
        """Evidence that carries at least one time field."""
        return [
            e for e in await self.store.get_all_evidence()
            if any(name in e.content for name in TIMED_EVIDENCE_FIELDS)
        ]

    async def find_by_location(self, location: str) -> list[Evidence]:
        if _is_blank(location):
            return []
        return [
            e for e in await self.store.get_all_evidence()
            if any(_contains(field_text(e.content, name), location) for name in PLACE_EVIDENCE_FIELDS)
            or _contains(e.title, location)
        ]

    async def find_referencing_suspect(self, suspect_id: str) -> list[Evidence]:
        """Evidence whose title or any field mentions the suspect's name or alias."""
        if _is_blank(suspect_id):
            return []

        dossier = await self.store.get_dossier(suspect_id)
        if dossier is None:
            return []

        terms = [term for term in (dossier.name, dossier.alias) if term]
        if not terms:
            return []

        matches = []
        for evidence in await self.store.get_all_evidence():
            values = [str(v) for v in evidence.content.values() if v is not None]
            if any(
                _contains(evidence.title, term) or any(_contains(v, term) for v in values)
                for term in terms
            ):
                matches.append(evidence)
        return matches

    async def find_by_field(self, field_name: str, value: Optional[FieldValue]) -> list[Evidence]:
        """Evidence whose field equals `value`, compared as text ignoring case."""
        if _is_blank(field_name) or value is None:
            return []
        wanted = str(value).casefold()
        return [
            e for e in await self.store.get_all_evidence()
            if e.content.get(field_name) is not None
            and str(e.content[field_name]).casefold() == wanted
        ]


class TestimonyLookup:
    """Searches over testimony."""

    def __init__(self, store: FactStore):
        self.store = store

    async def find_by_topic(self, topic: str) -> list[TestimonyStatement]:
        """Statements mentioning the topic in their text or `topic` metadata."""
        if _is_blank(topic):
            return []
        return [
            t for t in await self.store.get_all_testimony()
            if _contains(t.current_text, topic)
            or _contains(t.get_metadata(TOPIC_METADATA_KEY), topic)
        ]

    async def find_by_suspect(self, suspect_id: str) -> list[TestimonyStatement]:
        if _is_blank(suspect_id):
            return []
        return [t for t in await self.store.get_all_testimony() if t.suspect_id == suspect_id]

    async def find_by_keywords(self, *keywords: str) -> list[TestimonyStatement]:
        """Statements containing any of the keywords."""
        keywords = tuple(k for k in keywords if not _is_blank(k))
        if not keywords:
            return []
        return [
            t for t in await self.store.get_all_testimony()
            if any(_contains(t.current_text, k) for k in keywords)
        ]

    async def has_suspect_mentioned(self, suspect_id: str, topic: str) -> bool:
        if _is_blank(suspect_id) or _is_blank(topic):
            return False
        return any(_contains(t.current_text, topic) for t in await self.find_by_suspect(suspect_id))

    async def has_suspect_claimed_relationship(self, suspect_id: str, other_suspect_id: str) -> bool:
        """Whether any statement of a suspect names the other suspect, by name, alias or codename."""
        if _is_blank(suspect_id) or _is_blank(other_suspect_id):
            return False

        other = await self.store.get_dossier(other_suspect_id)
        if other is None:
            return False

        terms = [term for term in (other.name, other.alias, other.codename) if term]
        return any(
            _contains(t.current_text, term)
            for t in await self.find_by_suspect(suspect_id)
            for term in terms
        )

    async def find_conflicting_statements(self, suspect_id: str, topic: str) -> list[TestimonyStatement]:
        """A suspect's statements that touch the topic, as candidates for comparison."""
        if _is_blank(suspect_id) or _is_blank(topic):
            return []
        return [t for t in await self.find_by_suspect(suspect_id) if _contains(t.current_text, topic)]
