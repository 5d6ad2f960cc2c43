#!/usr/bin/env python3
"""Entry-point script for the pull-submodules CLI."""

from __future__ import annotations

import sys
from pathlib import Path

# Allow running from a checkout without installing the package.
_ROOT = Path(__file__).resolve().parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from submodule_sync.cli import main  # noqa: E402

if __name__ == "__main__":
    raise SystemExit(main())
