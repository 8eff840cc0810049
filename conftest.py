"""Pytest configuration shared by every package's tests.

Makes the packages importable whether they are pip installed or run from a
fresh checkout.
"""

import sys
from pathlib import Path

ROOT = Path(__file__).parent
PACKAGE_ROOTS = ("common-py", "schema", "sdk-python", "cli")

for name in PACKAGE_ROOTS:
    package_root = str(ROOT / "packages" / name)
    if package_root not in sys.path:
        sys.path.insert(0, package_root)
