#!/usr/bin/env python3
"""
Create the Clean-Architecture directory layout used to exercise flutter-craft skills.
"""

from __future__ import annotations

import argparse
from pathlib import Path

FEATURE_DIRS = [
    "domain/entities",
    "domain/repositories",
    "data/models",
    "data/datasources",
    "data/repositories",
    "presentation/bloc",
    "presentation/screens",
    "presentation/widgets",
]
FEATURE_TEST_DIRS = [
    "data/repositories",
    "presentation/bloc",
]
EXECUTING_SKILL = "flutter-craft:flutter-executing"


def scaffold_dirs(feature: str) -> list[str]:
    dirs = [f"lib/features/{feature}/{d}" for d in FEATURE_DIRS]
    dirs += [f"test/features/{feature}/{d}" for d in FEATURE_TEST_DIRS]
    dirs.append("docs/plans")
    return dirs


def scaffold(root: Path, feature: str = "auth") -> list[Path]:
    created: list[Path] = []
    for rel in scaffold_dirs(feature):
        path = root / rel
        path.mkdir(parents=True, exist_ok=True)
        created.append(path)
    return created


def render_tree(feature: str) -> str:
    return f"""Structure:
lib/features/{feature}/
├── domain/
│   ├── entities/
│   └── repositories/
├── data/
│   ├── models/
│   ├── datasources/
│   └── repositories/
└── presentation/
    ├── bloc/
    ├── screens/
    └── widgets/

test/features/{feature}/
├── data/repositories/
└── presentation/bloc/

docs/plans/"""


def main() -> int:
    parser = argparse.ArgumentParser(description="Scaffold a sample Flutter project structure.")
    parser.add_argument("directory", nargs="?", default=".", help="Project root (default: current directory)")
    parser.add_argument("--feature", default="auth", help="Feature module name")
    args = parser.parse_args()

    feature = args.feature.strip().strip("/")
    if not feature:
        print("Error: --feature must not be empty")
        return 2

    print("Creating sample Flutter project structure...")
    scaffold(Path(args.directory), feature)
    print("Directory structure created!")
    print("")
    print(render_tree(feature))
    print("")
    print("Next steps:")
    print("1. Copy design.md to docs/plans/")
    print("2. Copy plan.md to docs/plans/")
    print(f"3. Use {EXECUTING_SKILL} to implement")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
