#!/usr/bin/env python3
"""
Skill discovery and Flutter project helpers for the flutter-craft plugin.

Skill files are markdown documents with a small frontmatter block:

    ---
    name: skill-name
    description: Use when [condition] - [what it does]
    ---
"""

from __future__ import annotations

import argparse
import json
import re
import subprocess
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

SKILL_FILE = "SKILL.md"
PLUGIN_PREFIX = "flutter-craft:"
FRONTMATTER_LINE_RE = re.compile(r"^(\w+):\s*(.*)$")
PUBSPEC_FIELDS = ("name", "version", "description")


@dataclass
class Skill:
    path: str
    skill_file: str
    name: str
    description: str
    source_type: str


def extract_frontmatter(file_path: str | Path) -> dict[str, str]:
    out = {"name": "", "description": ""}
    try:
        lines = Path(file_path).read_text(encoding="utf-8").split("\n")
    except (OSError, UnicodeDecodeError):
        return out

    in_frontmatter = False
    for line in lines:
        if line.strip() == "---":
            if in_frontmatter:
                break
            in_frontmatter = True
            continue
        if not in_frontmatter:
            continue
        match = FRONTMATTER_LINE_RE.match(line)
        if match and match.group(1) in out:
            out[match.group(1)] = match.group(2).strip()
    return out


def strip_frontmatter(content: str) -> str:
    in_frontmatter = False
    ended = False
    kept: list[str] = []
    for line in content.split("\n"):
        if line.strip() == "---" and not ended:
            if in_frontmatter:
                ended = True
            else:
                in_frontmatter = True
            continue
        if ended or not in_frontmatter:
            kept.append(line)
    return "\n".join(kept).strip()


def find_skills_in_dir(directory: str | Path, source_type: str, max_depth: int = 3) -> list[Skill]:
    root = Path(directory)
    skills: list[Skill] = []
    if not root.exists():
        return skills

    def recurse(current: Path, depth: int) -> None:
        if depth > max_depth:
            return
        for entry in sorted(current.iterdir()):
            if not entry.is_dir():
                continue
            skill_file = entry / SKILL_FILE
            if skill_file.exists():
                meta = extract_frontmatter(skill_file)
                skills.append(
                    Skill(
                        path=str(entry),
                        skill_file=str(skill_file),
                        name=meta["name"] or entry.name,
                        description=meta["description"],
                        source_type=source_type,
                    )
                )
            recurse(entry, depth + 1)

    recurse(root, 0)
    return skills


def resolve_skill_path(
    skill_name: str,
    flutter_craft_dir: str | Path | None,
    personal_dir: str | Path | None,
) -> dict[str, str] | None:
    """Resolve a skill name to its SKILL.md.

    Personal skills shadow flutter-craft skills of the same name unless the
    name is explicitly prefixed with ``flutter-craft:``.
    """
    force_plugin = skill_name.startswith(PLUGIN_PREFIX)
    actual = skill_name[len(PLUGIN_PREFIX):] if force_plugin else skill_name

    candidates: list[tuple[str | Path | None, str]] = []
    if not force_plugin:
        candidates.append((personal_dir, "personal"))
    candidates.append((flutter_craft_dir, "flutter-craft"))

    for base, source_type in candidates:
        if not base:
            continue
        skill_file = Path(base) / actual / SKILL_FILE
        if skill_file.exists():
            return {"skill_file": str(skill_file), "source_type": source_type, "skill_path": actual}
    return None


def check_for_updates(repo_dir: str | Path, timeout: float = 3) -> bool:
    try:
        output = subprocess.run(
            "git fetch origin && git status --porcelain=v1 --branch",
            shell=True,
            cwd=str(repo_dir),
            timeout=timeout,
            check=True,
            capture_output=True,
            text=True,
        ).stdout
    except (subprocess.SubprocessError, OSError):
        # offline or not a git checkout
        return False
    return any(line.startswith("## ") and "[behind " in line for line in output.split("\n"))


def is_flutter_project(directory: str | Path) -> bool:
    pubspec = Path(directory) / "pubspec.yaml"
    if not pubspec.exists():
        return False
    try:
        content = pubspec.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return False
    return "flutter:" in content or "flutter_test:" in content


def get_flutter_project_info(directory: str | Path) -> dict[str, str] | None:
    pubspec = Path(directory) / "pubspec.yaml"
    if not pubspec.exists():
        return None
    try:
        lines = pubspec.read_text(encoding="utf-8").split("\n")
    except (OSError, UnicodeDecodeError):
        return None

    info = {key: "" for key in PUBSPEC_FIELDS}
    for line in lines:
        for key in PUBSPEC_FIELDS:
            match = re.match(rf"^{key}:\s*(.+)$", line)
            if match:
                info[key] = match.group(1).strip()
    return info


def default_skills_dir() -> Path:
    return Path(__file__).resolve().parents[2]


def main() -> int:
    parser = argparse.ArgumentParser(description="Inspect flutter-craft skills and Flutter projects.")
    parser.add_argument("--skills-dir", default=str(default_skills_dir()), help="flutter-craft skills directory")
    parser.add_argument("--personal-dir", default="", help="Personal skills directory (shadows plugin skills)")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List discovered skills")
    resolve = sub.add_parser("resolve", help="Resolve a skill name to its SKILL.md")
    resolve.add_argument("name")
    updates = sub.add_parser("updates", help="Check whether the plugin checkout is behind its remote")
    updates.add_argument("repo_dir", nargs="?", default=str(default_skills_dir().parent))
    project = sub.add_parser("project", help="Describe the Flutter project in a directory")
    project.add_argument("directory", nargs="?", default=".")
    args = parser.parse_args()

    result: Any
    if args.command == "list":
        skills = find_skills_in_dir(args.skills_dir, "flutter-craft")
        if args.personal_dir:
            skills = find_skills_in_dir(args.personal_dir, "personal") + skills
        result = [asdict(s) for s in skills]
    elif args.command == "resolve":
        result = resolve_skill_path(args.name, args.skills_dir, args.personal_dir or None)
        if result is None:
            print(f"Error: skill not found: {args.name}")
            return 1
    elif args.command == "updates":
        result = {"repo_dir": args.repo_dir, "updates_available": check_for_updates(args.repo_dir)}
    else:
        result = {
            "is_flutter_project": is_flutter_project(args.directory),
            "info": get_flutter_project_info(args.directory),
        }

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
