"""GLOBEBOARD FILE PURPOSE
Purpose: policy checks for feature routers (FEATURE contract, env flag naming, no cross-feature imports).
Hot path: no.
"""

from __future__ import annotations

import ast
import re
import sys
from pathlib import Path

RE_ENV = re.compile(r"GB_FEATURE_[A-Z0-9_]+")

REQUIRED = {"key", "router", "enabled_env"}


def fail(msg: str) -> None:
    print(f"FEATURE_CHECK_FAIL: {msg}", file=sys.stderr)
    raise SystemExit(1)


def _feature_keys(tree: ast.Module) -> set[str] | None:
    for node in tree.body:
        if not isinstance(node, ast.Assign):
            continue
        if not any(isinstance(t, ast.Name) and t.id == "FEATURE" for t in node.targets):
            continue
        if not isinstance(node.value, ast.Dict):
            return set()
        return {k.value for k in node.value.keys if isinstance(k, ast.Constant) and isinstance(k.value, str)}
    return None


def check_file(path: Path) -> None:
    src = path.read_text(encoding="utf-8")
    tree = ast.parse(src, filename=str(path))

    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for a in node.names:
                if a.name == "features" or a.name.startswith("features."):
                    fail(f"cross-feature import in {path}")
        if isinstance(node, ast.ImportFrom):
            if node.level and node.level > 0:
                fail(f"relative import not allowed in {path}")
            mod = node.module or ""
            if mod == "features" or mod.startswith("features."):
                fail(f"cross-feature import in {path}")

    keys = _feature_keys(tree)
    if keys is None:
        fail(f"FEATURE missing in {path}")
    missing = REQUIRED - (keys or set())
    if missing:
        fail(f"FEATURE missing key(s) {sorted(missing)} in {path}")
    if not RE_ENV.search(src):
        fail(f"enabled_env missing/invalid in {path}")


def main(feat_dir: Path = Path("features")) -> None:
    for path in sorted(feat_dir.glob("*.py")):
        if path.name.startswith("_") or path.name == "__init__.py":
            continue
        check_file(path)

    print("FEATURE_CHECK_OK")


if __name__ == "__main__":
    main()
