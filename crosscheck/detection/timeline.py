"""
Timeline detector.

Finds times of day in a statement's text and in an exhibit's time fields,
and flags any pair more than TIME_TOLERANCE_MINUTES apart.

Recognised in free text:
    "at 3", "around 1 PM", "about 11:55 am", "approximately 12:45"
    "at noon", "around midnight"
    bare clock times: "11:50", "9:05 PM"

Times are compared as times of day. No wrap-around at midnight:
23:55 and 00:05 are 1430 minutes apart.
"""

from __future__ import annotations

import re
from datetime import datetime, time
from typing import Optional

from ..domain import ContradictionType
from ..evidence import Evidence, TestimonyStatement, field_text
from .base import ContradictionDetector, FactMention


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

TIME_TOLERANCE_MINUTES = 10

# Checked in this order
EVIDENCE_TIME_FIELDS = (
    "time",
    "arrival_time",
    "departure_time",
    "timestamp",
    "scheduled_time",
    "actual_time",
)

TIME_PATTERNS = (
    re.compile(r"(?:at|around|about|approximately)\s+(\d{1,2}):?(\d{2})?\s*(AM|PM)?", re.IGNORECASE),
    re.compile(r"(?:at|around|about|approximately)\s+(noon|midnight)", re.IGNORECASE),
    re.compile(r"(\d{1,2}):(\d{2})\s*(AM|PM)?", re.IGNORECASE),
)

NAMED_TIMES = {
    "noon": time(12, 0),
    "midnight": time(0, 0),
}

CLOCK_FORMATS = (
    "%H:%M",
    "%H:%M:%S",
    "%I:%M %p",
    "%I:%M%p",
    "%I:%M:%S %p",
    "%I %p",
    "%I%p",
)


# =============================================================================
# EXTRACTION
# =============================================================================

def _time_from_match(match: re.Match) -> Optional[time]:
    first = match.group(1)
    named = NAMED_TIMES.get(first.lower())
    if named is not None:
        return named

    hour = int(first)
    minute = int(match.group(2)) if match.group(2) else 0
    meridiem = (match.group(3) or "").upper()

    if meridiem == "PM" and hour < 12:
        hour += 12
    elif meridiem == "AM" and hour == 12:
        hour = 0

    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


def extract_times_from_text(text: str, source: str = "text") -> list[FactMention]:
    """
    Scan free text for times of day.

    Patterns are applied in order and every match is kept, so the same
    clock time can appear more than once.
    """
    mentions: list[FactMention] = []
    if not text:
        return mentions

    for pattern in TIME_PATTERNS:
        for match in pattern.finditer(text):
            parsed = _time_from_match(match)
            if parsed is not None:
                mentions.append(FactMention(parsed, source, match.group(0).strip()))
    return mentions


def parse_time_value(raw: str) -> Optional[time]:
    """
    Parse a clock time ("11:50", "1:05 PM") or a full timestamp, keeping
    only the time of day. Returns None for anything unparsable.
    """
    text = raw.strip()
    for fmt in CLOCK_FORMATS:
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).time()
    except ValueError:
        return None


def extract_times_from_evidence(evidence: Evidence) -> list[FactMention]:
    """Time fields first, in EVIDENCE_TIME_FIELDS order, then the title."""
    mentions: list[FactMention] = []

    for field_name in EVIDENCE_TIME_FIELDS:
        raw = field_text(evidence.content, field_name)
        if raw is None:
            continue
        parsed = parse_time_value(raw)
        if parsed is not None:
            mentions.append(FactMention(parsed, field_name, raw))

    mentions.extend(extract_times_from_text(evidence.title, source="title"))
    return mentions


# =============================================================================
# COMPARISON
# =============================================================================

def minutes_of_day(value: time) -> float:
    return value.hour * 60 + value.minute + value.second / 60


def are_times_conflicting(first: time, second: time) -> bool:
    """Conflict iff the two times are more than the tolerance apart."""
    return abs(minutes_of_day(first) - minutes_of_day(second)) > TIME_TOLERANCE_MINUTES


# =============================================================================
# DETECTOR
# =============================================================================

class TimelineContradictionDetector(ContradictionDetector):
    """Flags statements and exhibits that put the same event at different times."""

    handled_type = ContradictionType.TIMELINE
    fact_kind = "time"
    consistent_message = "Times are consistent"
    evidence_consistent_message = "Evidence times are consistent"

    def extract_from_testimony(self, testimony: TestimonyStatement) -> list[FactMention]:
        return extract_times_from_text(testimony.current_text, source="testimony")

    def extract_from_evidence(self, evidence: Evidence) -> list[FactMention]:
        return extract_times_from_evidence(evidence)

    def is_conflicting(self, first: time, second: time) -> bool:
        return are_times_conflicting(first, second)
