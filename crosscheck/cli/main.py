"""
CrossCheck CLI - check a case file for contradictions.

Commands:
    crosscheck check testimony <t> <e> --type T   Statement vs exhibit
    crosscheck check evidence <a> <b> --type T    Exhibit vs exhibit
    crosscheck sweep <suspect>                    Every statement vs every exhibit
    crosscheck resolve <t> <e> --type T [...]     Detect, then apply a resolution
    crosscheck dossier <suspect>                  Show dossier and contradictions
    crosscheck search evidence|testimony --FILTER  Browse the case file

Case data is read from --data, $CROSSCHECK_DATA, or ./Data.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from ..context import FactNotFoundError
from ..domain import (
    ContractViolationError,
    ContradictionResult,
    ContradictionType,
    EvidenceVsEvidenceQuery,
    TestimonyVsEvidenceQuery,
)
from ..evidence import CrossReference, DossierState, Evidence, TestimonyStatement
from ..lookup import EvidenceLookup, TestimonyLookup
from ..service import ContradictionService
from .wiring import build_service


# =============================================================================
# OUTPUT FORMATTING
# =============================================================================

def format_result(result: ContradictionResult) -> str:
    """Format a detection result for display."""
    if not result.is_contradiction:
        return f"[CONSISTENT] {result.description}"

    lines = [
        f"[CONTRADICTION] {result.contradiction_type.value.upper()}",
        f"  ID: {result.contradiction_id}",
        f"  {result.description}",
    ]
    if result.affected_suspects:
        lines.append(f"  Suspects: {', '.join(result.affected_suspects)}")
    if result.related_evidence:
        lines.append(f"  Evidence: {', '.join(result.related_evidence)}")
    if result.is_resolved:
        lines.append("  Status: resolved")
    return "\n".join(lines)


def format_dossier(dossier: DossierState) -> str:
    lines = [
        f"Dossier: {dossier.full_display_name or dossier.suspect_id}",
        "=" * 50,
        f"Suspect ID: {dossier.suspect_id}",
        f"Statements: {len(dossier.testimony_ids)}",
        f"Linked evidence: {len(dossier.linked_evidence_ids)}",
        f"Last updated: {dossier.last_updated.isoformat()}",
    ]

    lines.append("")
    lines.append(
        f"CONTRADICTIONS ({dossier.resolved_contradictions_count}/"
        f"{len(dossier.contradictions)} resolved):"
    )
    for contradiction in dossier.contradictions:
        status = "resolved" if contradiction.is_resolved else "open"
        lines.append(f"  - [{status}] {contradiction.contradiction_id}")
        lines.append(f"    {contradiction.description}")

    if dossier.relationships:
        lines.append("")
        lines.append("RELATIONSHIPS:")
        for reference in dossier.relationships:
            lines.append(
                f"  - {reference.from_suspect_id} -> {reference.to_suspect_id} "
                f"({reference.relationship_type})"
            )
            if reference.evidence:
                lines.append(f"    {reference.evidence}")

    return "\n".join(lines)


def format_evidence(evidence: Evidence) -> str:
    return f"  {evidence.evidence_id}  [{evidence.category}] {evidence.title}"


def format_statement(statement: TestimonyStatement) -> str:
    return f"  {statement.statement_id}  ({statement.suspect_id}) {statement.current_text}"


# =============================================================================
# CLI COMMANDS
# =============================================================================

def _service(args: argparse.Namespace) -> ContradictionService:
    return build_service(args.data)


def cmd_check(args: argparse.Namespace) -> int:
    """Run a single detection."""
    expected_type = ContradictionType(args.type)
    if args.mode == "testimony":
        query = TestimonyVsEvidenceQuery(args.first_id, args.second_id, expected_type)
    else:
        query = EvidenceVsEvidenceQuery(args.first_id, args.second_id, expected_type)

    result = asyncio.run(_service(args).check_contradiction(query))
    print(format_result(result))
    return 0


def cmd_sweep(args: argparse.Namespace) -> int:
    """Check every statement of a suspect against all evidence."""
    results = asyncio.run(_service(args).get_possible_contradictions(args.suspect_id))

    print(f"Sweep: {args.suspect_id}")
    print("=" * 50)
    if not results:
        print("No contradictions found.")
        return 0

    for result in results:
        print(format_result(result))
        print()
    print(f"Total: {len(results)} contradictions")
    return 0


async def _detect_and_resolve(service: ContradictionService, args: argparse.Namespace) -> ContradictionResult:
    query = TestimonyVsEvidenceQuery(
        args.testimony_id, args.evidence_id, ContradictionType(args.type)
    )
    result = await service.check_contradiction(query)
    if not result.is_contradiction:
        return result

    if args.amend:
        result.resolution.amended_testimony = args.amend
    result.resolution.new_evidence_ids.extend(args.unlock or [])
    for from_id, to_id, relationship in args.link or []:
        result.resolution.cross_references.append(
            CrossReference(from_id, to_id, relationship, evidence=result.description)
        )

    return await service.apply_resolution(result)


def cmd_resolve(args: argparse.Namespace) -> int:
    """Detect a contradiction and apply the given resolution to it."""
    try:
        result = asyncio.run(_detect_and_resolve(_service(args), args))
    except (ContractViolationError, FactNotFoundError) as e:
        print("ERROR: Resolution failed")
        print(f"Reason: {e}")
        return 1

    if not result.is_contradiction:
        print("Nothing to resolve.")
        print(format_result(result))
        return 1

    print(format_result(result))
    if not result.is_resolved:
        print("Resolution was empty; contradiction remains open.")
    return 0


def cmd_dossier(args: argparse.Namespace) -> int:
    """Show a suspect's dossier."""
    service = _service(args)
    dossier = asyncio.run(service.context.get_dossier(args.suspect_id))

    if dossier is None:
        print(f"Dossier not found: {args.suspect_id}")
        return 1

    print(format_dossier(dossier))
    return 0


EVIDENCE_FILTERS = ("category", "location", "suspect", "timed")
TESTIMONY_FILTERS = ("topic", "suspect", "keyword")


async def _search(service: ContradictionService, args: argparse.Namespace) -> list:
    store = service.context.store
    if args.kind == "evidence":
        lookup = EvidenceLookup(store)
        if args.category is not None:
            return await lookup.find_by_category(args.category)
        if args.location is not None:
            return await lookup.find_by_location(args.location)
        if args.suspect is not None:
            return await lookup.find_referencing_suspect(args.suspect)
        return await lookup.find_timed()

    lookup = TestimonyLookup(store)
    if args.topic is not None:
        return await lookup.find_by_topic(args.topic)
    if args.suspect is not None:
        return await lookup.find_by_suspect(args.suspect)
    return await lookup.find_by_keywords(*args.keyword)


def cmd_search(args: argparse.Namespace) -> int:
    """Browse evidence or testimony."""
    allowed = EVIDENCE_FILTERS if args.kind == "evidence" else TESTIMONY_FILTERS
    given = next(
        name for name in ("category", "location", "suspect", "timed", "topic", "keyword")
        if getattr(args, name) not in (None, False)
    )
    if given not in allowed:
        print(f"ERROR: search {args.kind} does not take --{given}")
        print(f"Filters: {', '.join('--' + name for name in allowed)}")
        return 2

    records = asyncio.run(_search(_service(args), args))

    print(f"Search: {args.kind}")
    print("=" * 50)
    if not records:
        print("No matches.")
        return 0

    for record in records:
        if isinstance(record, Evidence):
            print(format_evidence(record))
        else:
            print(format_statement(record))
    print(f"{len(records)} found")
    return 0


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="crosscheck",
        description="CrossCheck - rule-based contradiction engine for case files",
    )
    parser.add_argument(
        "--data",
        default=None,
        help="Case data directory (default: $CROSSCHECK_DATA or ./Data)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log output (-v info, -vv debug)",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
    )
    type_choices = [t.value for t in ContradictionType]

    # Check command
    check_parser = subparsers.add_parser(
        "check",
        help="Check a statement or exhibit against an exhibit",
    )
    check_parser.add_argument(
        "mode",
        choices=["testimony", "evidence"],
        help="What the first id refers to",
    )
    check_parser.add_argument("first_id", help="Testimony or evidence ID")
    check_parser.add_argument("second_id", help="Evidence ID")
    check_parser.add_argument("--type", required=True, choices=type_choices)
    check_parser.set_defaults(func=cmd_check)

    # Sweep command
    sweep_parser = subparsers.add_parser(
        "sweep",
        help="Check all of a suspect's statements against all evidence",
    )
    sweep_parser.add_argument("suspect_id", help="Suspect ID")
    sweep_parser.set_defaults(func=cmd_sweep)

    # Resolve command
    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Detect a contradiction and apply a resolution",
    )
    resolve_parser.add_argument("testimony_id", help="Testimony ID")
    resolve_parser.add_argument("evidence_id", help="Evidence ID")
    resolve_parser.add_argument("--type", required=True, choices=type_choices)
    resolve_parser.add_argument("--amend", help="Amended testimony text")
    resolve_parser.add_argument(
        "--unlock",
        action="append",
        metavar="EVIDENCE_ID",
        help="Evidence to unlock (repeatable)",
    )
    resolve_parser.add_argument(
        "--link",
        action="append",
        nargs=3,
        metavar=("FROM", "TO", "RELATIONSHIP"),
        help="Cross reference to establish (repeatable)",
    )
    resolve_parser.set_defaults(func=cmd_resolve)

    # Dossier command
    dossier_parser = subparsers.add_parser(
        "dossier",
        help="Show a suspect's dossier",
    )
    dossier_parser.add_argument("suspect_id", help="Suspect ID")
    dossier_parser.set_defaults(func=cmd_dossier)

    # Search command
    search_parser = subparsers.add_parser(
        "search",
        help="Browse evidence or testimony",
    )
    search_parser.add_argument("kind", choices=["evidence", "testimony"])
    filters = search_parser.add_mutually_exclusive_group(required=True)
    filters.add_argument("--category", help="Evidence category")
    filters.add_argument("--location", help="Place named in evidence")
    filters.add_argument("--suspect", help="Suspect ID")
    filters.add_argument("--timed", action="store_true", help="Evidence with a time field")
    filters.add_argument("--topic", help="Testimony topic")
    filters.add_argument(
        "--keyword",
        action="append",
        help="Word in testimony text (repeatable, any matches)",
    )
    search_parser.set_defaults(func=cmd_search)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
