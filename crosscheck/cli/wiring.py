"""
Composition root.

The only place the store, notifier, context, detectors and service are
built and connected. Everything else receives them as arguments.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Union

from ..context import ContradictionNotifier, InvestigationContext, LoggingNotifier
from ..detection import default_detectors
from ..service import ContradictionService
from ..storage import FactStore, JsonFactStore


# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================

DEFAULT_DATA_PATH = "Data"
DATA_PATH_ENV = "CROSSCHECK_DATA"


def resolve_data_path(explicit: Optional[str] = None) -> Path:
    """--data wins, then $CROSSCHECK_DATA, then ./Data."""
    if explicit:
        return Path(explicit)
    return Path(os.environ.get(DATA_PATH_ENV) or DEFAULT_DATA_PATH)


def build_service(
    data_path: Union[str, Path, None] = None,
    store: Optional[FactStore] = None,
    notifier: Optional[ContradictionNotifier] = None,
) -> ContradictionService:
    """
    Wire a ready-to-use service.

    A store passed in is used as is; otherwise a JSON store is opened on
    `data_path`.
    """
    if store is None:
        store = JsonFactStore(resolve_data_path(str(data_path) if data_path else None))
    notifier = notifier if notifier is not None else LoggingNotifier()
    context = InvestigationContext(store, notifier)
    return ContradictionService(context, default_detectors(), notifier)
