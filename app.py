from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent
for path in (REPO_ROOT, REPO_ROOT / "src" / "delivery_system"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from delivery_system.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=app.config["DEBUG"])
