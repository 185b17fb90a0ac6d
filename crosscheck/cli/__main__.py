"""
CrossCheck CLI entry point.

Usage:
    python -m crosscheck.cli check testimony <testimony_id> <evidence_id> --type timeline
    python -m crosscheck.cli check evidence <evidence_id> <evidence_id> --type location
    python -m crosscheck.cli sweep <suspect_id>
    python -m crosscheck.cli resolve <testimony_id> <evidence_id> --type identity --amend "..."
    python -m crosscheck.cli dossier <suspect_id>
"""

import sys
from .main import main

if __name__ == "__main__":
    sys.exit(main())
