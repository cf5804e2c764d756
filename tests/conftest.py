"""
Pytest Configuration

Makes the ``src`` layout importable when the package has not been installed,
so ``pytest`` works straight from a checkout.

Usage:
    pytest tests/https_loader
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
