"""
Tests for the identity detector.

These tests verify:
1. Initials line up position by position with full names
2. Substring and case-insensitive equality count as the same person
3. Denied identities flip the polarity of the conflict rule
"""

import pytest

from crosscheck.detection.identity import (
    IdentityContradictionDetector,
    are_identities_conflicting,
    are_initials_matching,
    extract_identities_from_testimony,
    normalize_name,
)
from crosscheck.domain import (
    ContradictionType,
    EvidenceVsEvidenceQuery,
    TestimonyVsEvidenceQuery as StatementQuery,
)
from crosscheck.evidence import Evidence, TestimonyStatement as Statement


# =============================================================================
# NAME MATCHING TESTS
# =============================================================================

class TestInitialsMatching:
    """Test position-wise initials comparison."""

    def test_initial_matches_full_name(self):
        assert are_initials_matching("M. Petrovic", "Marko Petrovic")

    def test_initial_mismatch(self):
        assert not are_initials_matching("V. Petrovic", "Marko Petrovic")

    def test_all_initials(self):
        assert are_initials_matching("M. P.", "Marko Petrovic")

    def test_part_count_must_match(self):
        assert not are_initials_matching("Marko", "Marko Petrovic")

    def test_full_words_compare_ignoring_case(self):
        assert are_initials_matching("marko PETROVIC", "Marko Petrovic")
        assert not are_initials_matching("Marko Petrov", "Marko Petrovic")


class TestIdentityConflictRule:
    """Test the base conflict rule."""

    def test_normalize_only_trims(self):
        assert normalize_name("  Dr. Marko Petrovic ") == "Dr. Marko Petrovic"

    def test_same_name_ignoring_case(self):
        assert not are_identities_conflicting("marko petrovic", "Marko Petrovic")

    def test_substring(self):
        assert not are_identities_conflicting("Marko", "Marko Petrovic")

    def test_initials(self):
        assert not are_identities_conflicting("M. Petrovic", "Marko Petrovic")

    def test_unrelated_names(self):
        assert are_identities_conflicting("Viktor", "Marko Petrovic")
        assert are_identities_conflicting("V. Petrovic", "Marko Petrovic")


class TestIdentityExtraction:
    """Test testimony metadata extraction."""

    def test_claim_and_denial(self):
        statement = Statement(
            statement_id="te_1",
            metadata={"denied_identity": "Viktor", "claimed_identity": "Marko"},
        )

        mentions = extract_identities_from_testimony(statement)

        assert [(m.value, m.is_denial) for m in mentions] == [
            ("Marko", False),
            ("Viktor", True),
        ]

    def test_empty_values_skipped(self):
        statement = Statement(
            statement_id="te_1", metadata={"claimed_identity": "", "denied_identity": " "}
        )

        mentions = extract_identities_from_testimony(statement)

        assert [(m.value, m.is_denial) for m in mentions] == [(" ", True)]


# =============================================================================
# DETECTOR TESTS
# =============================================================================

async def add_statement(store, statement_id, **metadata):
    await store.save_testimony(
        Statement(
            statement_id=statement_id,
            suspect_id="su_assassin_marko",
            original_text="About who I am.",
            metadata=metadata,
        )
    )


class TestIdentityDetector:
    """Test claims and denials against the case file."""

    @pytest.mark.asyncio
    async def test_denial_of_true_match_is_contradiction(self, context):
        """Denying 'N. Petrovic' when the CCTV shows 'N. Petrovic'."""
        query = StatementQuery(
            "te_marko_003", "ev_cctv_002", ContradictionType.IDENTITY
        )

        result = await IdentityContradictionDetector().detect(query, context)

        assert result.is_contradiction
        assert result.contradiction_id.startswith("co_marko_identity_")
        assert result.description == (
            "Suspect denies identity 'N. Petrovic' but evidence shows 'N. Petrovic'"
        )

    @pytest.mark.asyncio
    async def test_denial_of_other_name_is_consistent(self, context):
        """The ticket shows 'M. Petrovic', which the denial does not cover."""
        query = StatementQuery(
            "te_marko_003", "ev_tickets_001", ContradictionType.IDENTITY
        )

        result = await IdentityContradictionDetector().detect(query, context)

        assert not result.is_contradiction
        assert result.description == "Identities are consistent"

    @pytest.mark.asyncio
    async def test_denied_unrelated_name_is_consistent(self, context, store):
        await add_statement(store, "te_marko_010", denied_identity="Viktor")
        query = StatementQuery(
            "te_marko_010", "ev_tickets_001", ContradictionType.IDENTITY
        )

        result = await IdentityContradictionDetector().detect(query, context)

        assert not result.is_contradiction

    @pytest.mark.asyncio
    async def test_false_claim_is_contradiction(self, context, store):
        await add_statement(store, "te_marko_011", claimed_identity="Viktor Horvat")
        query = StatementQuery(
            "te_marko_011", "ev_tickets_001", ContradictionType.IDENTITY
        )

        result = await IdentityContradictionDetector().detect(query, context)

        assert result.is_contradiction
        assert result.description == (
            "Testimony claims identity 'Viktor Horvat' but evidence shows 'M. Petrovic'"
        )

    @pytest.mark.asyncio
    async def test_true_claim_is_consistent(self, context, store):
        await add_statement(store, "te_marko_012", claimed_identity="Marko Petrovic")
        query = StatementQuery(
            "te_marko_012", "ev_tickets_001", ContradictionType.IDENTITY
        )

        result = await IdentityContradictionDetector().detect(query, context)

        assert not result.is_contradiction

    @pytest.mark.asyncio
    async def test_no_identity_in_evidence(self, context):
        query = StatementQuery(
            "te_marko_003", "ev_receipt_003", ContradictionType.IDENTITY
        )

        result = await IdentityContradictionDetector().detect(query, context)

        assert result.description == "No identity information in evidence"

    @pytest.mark.asyncio
    async def test_evidence_vs_evidence(self, context, store):
        query = EvidenceVsEvidenceQuery(
            "ev_tickets_001", "ev_cctv_002", ContradictionType.IDENTITY
        )

        result = await IdentityContradictionDetector().detect(query, context)

        assert result.is_contradiction
        assert result.description == (
            "Evidence conflict: 'Train Ticket' shows 'M. Petrovic' "
            "but 'North Gate CCTV at 2:30 PM' shows 'N. Petrovic'"
        )

    @pytest.mark.asyncio
    async def test_evidence_vs_evidence_consistent(self, context, store):
        await store.save_evidence(
            Evidence(
                evidence_id="ev_passport_006",
                title="Passport",
                content={"holder_name": "Marko Petrovic"},
            )
        )
        query = EvidenceVsEvidenceQuery(
            "ev_tickets_001", "ev_passport_006", ContradictionType.IDENTITY
        )

        result = await IdentityContradictionDetector().detect(query, context)

        assert not result.is_contradiction
        assert result.description == "Evidence identities are consistent"
