"""
Tests for the timeline detector.

These tests verify:
1. Times of day are extracted from free text and evidence fields
2. The 10 minute tolerance decides conflicts
3. Unparsable values yield no fact instead of an error
4. Detection results carry the right ids, suspects and descriptions
"""

import pytest
from datetime import time

from crosscheck.detection.timeline import (
    EVIDENCE_TIME_FIELDS,
    TIME_TOLERANCE_MINUTES,
    TimelineContradictionDetector,
    are_times_conflicting,
    extract_times_from_evidence,
    extract_times_from_text,
    parse_time_value,
)
from crosscheck.domain import (
    ContradictionType,
    EvidenceVsEvidenceQuery,
    TestimonyVsEvidenceQuery as StatementQuery,
)
from crosscheck.evidence import Evidence, TestimonyStatement as Statement


def times_of(mentions):
    return [m.value for m in mentions]


# =============================================================================
# TEXT EXTRACTION TESTS
# =============================================================================

class TestExtractTimesFromText:
    """Test free-text time extraction."""

    def test_around_hour_with_pm(self):
        """'around 1 PM' is 13:00, labelled with the matched text."""
        mentions = extract_times_from_text("My train got in around 1 PM.")

        assert times_of(mentions) == [time(13, 0)]
        assert mentions[0].label == "around 1 PM"

    def test_at_hour_and_minutes(self):
        mentions = extract_times_from_text("about 11:55 am")

        assert time(11, 55) in times_of(mentions)

    def test_named_times(self):
        assert times_of(extract_times_from_text("I left at noon")) == [time(12, 0)]
        assert times_of(extract_times_from_text("around midnight")) == [time(0, 0)]

    def test_twelve_am_is_midnight(self):
        assert times_of(extract_times_from_text("at 12 AM")) == [time(0, 0)]

    def test_twelve_pm_is_noon(self):
        assert times_of(extract_times_from_text("at 12 PM")) == [time(12, 0)]

    def test_bare_clock_time(self):
        mentions = extract_times_from_text("The clock read 9:05 PM")

        assert times_of(mentions) == [time(21, 5)]
        assert mentions[0].label == "9:05 PM"

    def test_invalid_hour_yields_nothing(self):
        """Out-of-range clock values are dropped, not raised."""
        assert extract_times_from_text("at 25:00") == []
        assert extract_times_from_text("meet at 7:75") == []

    def test_no_times(self):
        assert extract_times_from_text("I was home all evening.") == []
        assert extract_times_from_text("") == []


# =============================================================================
# EVIDENCE EXTRACTION TESTS
# =============================================================================

class TestExtractTimesFromEvidence:
    """Test time extraction from evidence fields and title."""

    def test_field_order(self):
        assert EVIDENCE_TIME_FIELDS == (
            "time",
            "arrival_time",
            "departure_time",
            "timestamp",
            "scheduled_time",
            "actual_time",
        )

    def test_fields_before_title(self):
        """Fields are read in canonical order, then the title is scanned."""
        evidence = Evidence(
            evidence_id="ev_1",
            title="Platform camera at 3:15 PM",
            content={"departure_time": "10:00", "time": "9:00"},
        )

        mentions = extract_times_from_evidence(evidence)

        assert [m.source for m in mentions][:2] == ["time", "departure_time"]
        assert mentions[-1].source == "title"
        assert mentions[-1].value == time(15, 15)

    def test_full_timestamp_keeps_time_of_day(self):
        evidence = Evidence(evidence_id="ev_1", content={"timestamp": "2024-03-14T12:05:00"})

        assert times_of(extract_times_from_evidence(evidence)) == [time(12, 5)]

    def test_unparsable_field_is_skipped(self):
        evidence = Evidence(evidence_id="ev_1", content={"time": "late morning"})

        assert extract_times_from_evidence(evidence) == []


class TestParseTimeValue:
    """Test clock and timestamp parsing."""

    def test_clock_formats(self):
        assert parse_time_value("11:50") == time(11, 50)
        assert parse_time_value("1:05 PM") == time(13, 5)
        assert parse_time_value("7pm") == time(19, 0)

    def test_timestamp_with_zone(self):
        assert parse_time_value("2024-03-14T08:30:00Z") == time(8, 30)

    def test_garbage_is_none(self):
        assert parse_time_value("not a time") is None
        assert parse_time_value("25:00") is None


# =============================================================================
# CONFLICT RULE TESTS
# =============================================================================

class TestTimeConflictRule:
    """Test the tolerance rule."""

    def test_tolerance_is_ten_minutes(self):
        assert TIME_TOLERANCE_MINUTES == 10

    def test_within_tolerance(self):
        assert not are_times_conflicting(time(12, 0), time(12, 10))
        assert not are_times_conflicting(time(11, 55), time(11, 50))

    def test_beyond_tolerance(self):
        assert are_times_conflicting(time(12, 0), time(12, 11))
        assert are_times_conflicting(time(13, 0), time(11, 50))

    def test_no_wrap_at_midnight(self):
        assert are_times_conflicting(time(23, 55), time(0, 5))


# =============================================================================
# DETECTOR TESTS
# =============================================================================

class TestTimelineDetector:
    """Test the timeline detector against the case file."""

    def test_handles_timeline_only(self):
        detector = TimelineContradictionDetector()

        assert detector.can_handle(
            StatementQuery("te_1", "ev_1", ContradictionType.TIMELINE)
        )
        assert detector.can_handle(
            EvidenceVsEvidenceQuery("ev_1", "ev_2", ContradictionType.TIMELINE)
        )
        assert not detector.can_handle(
            StatementQuery("te_1", "ev_1", ContradictionType.LOCATION)
        )

    @pytest.mark.asyncio
    async def test_train_arrival_contradiction(self, context):
        """'around 1 PM' against an 11:50 arrival is a 70 minute gap."""
        query = StatementQuery(
            "te_marko_001", "ev_tickets_001", ContradictionType.TIMELINE
        )

        result = await TimelineContradictionDetector().detect(query, context)

        assert result.is_contradiction
        assert result.contradiction_type == ContradictionType.TIMELINE
        assert result.contradiction_id.startswith("co_marko_timeline_")
        assert result.affected_suspects == ["su_assassin_marko"]
        assert result.related_evidence == ["ev_tickets_001"]
        assert result.description == "Testimony states 'around 1 PM' but evidence shows '11:50'"
        assert not result.resolution.has_any_resolution

    @pytest.mark.asyncio
    async def test_close_times_are_consistent(self, context, store):
        await store.save_testimony(
            Statement(
                statement_id="te_marko_009",
                suspect_id="su_assassin_marko",
                original_text="I arrived around 11:55 AM.",
            )
        )
        query = StatementQuery(
            "te_marko_009", "ev_tickets_001", ContradictionType.TIMELINE
        )

        result = await TimelineContradictionDetector().detect(query, context)

        assert not result.is_contradiction
        assert result.description == "Times are consistent"
        assert result.contradiction_id == f"no_contradiction_{query.query_id}"

    @pytest.mark.asyncio
    async def test_amended_text_is_used(self, context, store):
        statement = await store.get_testimony("te_marko_001")
        statement.amended_text = "Actually it was around 11:45."
        query = StatementQuery(
            "te_marko_001", "ev_tickets_001", ContradictionType.TIMELINE
        )

        result = await TimelineContradictionDetector().detect(query, context)

        assert not result.is_contradiction

    @pytest.mark.asyncio
    async def test_missing_testimony(self, context):
        query = StatementQuery("te_ghost", "ev_tickets_001", ContradictionType.TIMELINE)

        result = await TimelineContradictionDetector().detect(query, context)

        assert not result.is_contradiction
        assert result.description == "Testimony 'te_ghost' not found"

    @pytest.mark.asyncio
    async def test_missing_evidence(self, context):
        query = StatementQuery("te_marko_001", "ev_ghost", ContradictionType.TIMELINE)

        result = await TimelineContradictionDetector().detect(query, context)

        assert result.description == "Evidence 'ev_ghost' not found"

    @pytest.mark.asyncio
    async def test_no_time_in_testimony(self, context):
        query = StatementQuery(
            "te_marko_002", "ev_tickets_001", ContradictionType.TIMELINE
        )

        result = await TimelineContradictionDetector().detect(query, context)

        assert not result.is_contradiction
        assert result.description == "No time information in testimony"

    @pytest.mark.asyncio
    async def test_no_time_in_evidence(self, context):
        query = StatementQuery(
            "te_marko_001", "ev_letter_004", ContradictionType.TIMELINE
        )

        result = await TimelineContradictionDetector().detect(query, context)

        assert result.description == "No time information in evidence"

    @pytest.mark.asyncio
    async def test_evidence_vs_evidence(self, context):
        query = EvidenceVsEvidenceQuery(
            "ev_tickets_001", "ev_cctv_002", ContradictionType.TIMELINE
        )

        result = await TimelineContradictionDetector().detect(query, context)

        assert result.is_contradiction
        assert result.contradiction_id.startswith("co_evidence_timeline_")
        assert result.affected_suspects == []
        assert result.related_evidence == ["ev_tickets_001", "ev_cctv_002"]
        assert result.description == (
            "Evidence conflict: 'Train Ticket' shows '11:50' "
            "but 'North Gate CCTV at 2:30 PM' shows '14:30'"
        )

    @pytest.mark.asyncio
    async def test_evidence_vs_evidence_empty_side(self, context):
        query = EvidenceVsEvidenceQuery(
            "ev_tickets_001", "ev_letter_004", ContradictionType.TIMELINE
        )

        result = await TimelineContradictionDetector().detect(query, context)

        assert not result.is_contradiction
        assert result.description == "No time information in secondary evidence"
