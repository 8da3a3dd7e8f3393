#!/usr/bin/env python3
"""
Session-start hook: injects the start-flutter-craft skill into the session context.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from skills_core import default_skills_dir, strip_frontmatter

START_SKILL = "start-flutter-craft"
HOOK_EVENT = "SessionStart"


def build_hook_payload(skill_content: str) -> dict[str, Any]:
    context = (
        "<EXTREMELY_IMPORTANT>\n"
        "You have flutter-craft skills available.\n\n"
        f"{skill_content}\n"
        "</EXTREMELY_IMPORTANT>"
    )
    return {"hookSpecificOutput": {"hookEventName": HOOK_EVENT, "additionalContext": context}}


def main() -> int:
    parser = argparse.ArgumentParser(description="Emit the flutter-craft session-start hook payload.")
    parser.add_argument("--skills-dir", default=str(default_skills_dir()), help="flutter-craft skills directory")
    parser.add_argument("--strip-frontmatter", action="store_true", help="Drop the SKILL.md frontmatter block")
    args = parser.parse_args()

    skill_file = Path(args.skills_dir) / START_SKILL / "SKILL.md"
    if not skill_file.is_file():
        print(json.dumps({"error": f"{START_SKILL}/SKILL.md not found"}))
        return 1

    content = skill_file.read_text(encoding="utf-8")
    if args.strip_frontmatter:
        content = strip_frontmatter(content)
    print(json.dumps(build_hook_payload(content), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
