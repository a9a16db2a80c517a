from __future__ import annotations

import re
import sys
from pathlib import Path

from dunamai import Style, Version

ROOT = Path(__file__).parent
TARGETS = {
    ROOT / "dynamodb_locks" / "__init__.py": (r'^VERSION = ".*"$', 'VERSION = "v{}"'),
    ROOT / "pyproject.toml": (r'^version = ".*"$', 'version = "{}"'),
}


def bump(version: str):
    for path, (pattern, template) in TARGETS.items():
        content = path.read_text()
        new_content, count = re.subn(
            pattern, template.format(version), content, count=1, flags=re.MULTILINE
        )
        if count != 1:
            raise SystemExit(f"no version line found in {path}")
        path.write_text(new_content)


if __name__ == "__main__":
    if len(sys.argv) > 1:
        version = sys.argv[1].lstrip("v")
    else:
        version = Version.from_git().serialize(style=Style.SemVer)
    bump(version)
    print(f"Setting version={version}")
