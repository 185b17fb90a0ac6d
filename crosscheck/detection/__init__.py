# Detection package for the CrossCheck engine
"""
Rule-based contradiction detectors.

One detector per contradiction type. The set is closed; the service picks
the first detector whose can_handle() accepts a query.
"""

from .base import ContradictionDetector, FactMention
from .identity import (
    IdentityContradictionDetector,
    are_identities_conflicting,
    are_initials_matching,
    normalize_name,
)
from .location import (
    LocationContradictionDetector,
    are_locations_conflicting,
    normalize_location,
)
from .timeline import (
    TimelineContradictionDetector,
    are_times_conflicting,
    extract_times_from_text,
    parse_time_value,
)


def default_detectors() -> list[ContradictionDetector]:
    """The detectors in registration order."""
    return [
        TimelineContradictionDetector(),
        LocationContradictionDetector(),
        IdentityContradictionDetector(),
    ]


__all__ = [
    "ContradictionDetector",
    "FactMention",
    "IdentityContradictionDetector",
    "LocationContradictionDetector",
    "TimelineContradictionDetector",
    "are_identities_conflicting",
    "are_initials_matching",
    "are_locations_conflicting",
    "are_times_conflicting",
    "default_detectors",
    "extract_times_from_text",
    "normalize_location",
    "normalize_name",
    "parse_time_value",
]
