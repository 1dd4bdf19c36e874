"""Make the repo's config and src packages importable when scripts run uncopied."""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]

for path in (REPO_ROOT, REPO_ROOT / "src" / "delivery_system"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))
