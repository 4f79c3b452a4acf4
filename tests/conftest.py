from __future__ import annotations

import sys
from pathlib import Path


# Allow `import chouine` and `import apps` when running tests without installing the package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))
sys.path.insert(0, str(ROOT))
