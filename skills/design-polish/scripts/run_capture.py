#!/usr/bin/env python3
"""
Screenshot and WCAG accessibility capture for the design-polish skill.
"""

from __future__ import annotations

import json
import os
import sys
import time
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Callable, Iterator, TypeVar

import requests

T = TypeVar("T")

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_VIEWPORT = {"width": 1280, "height": 720}
DEFAULT_WAIT_MS = 2000
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_RETRIES = 2
PROBE_TIMEOUT = 5
RETRY_DELAY = 1.0
HTML_SNIPPET_LIMIT = 200
WCAG_TAGS = ["wcag2a", "wcag2aa", "wcag21aa"]

JSON_START = "--- JSON_RESULT_START ---"
JSON_END = "--- JSON_RESULT_END ---"

PLAYWRIGHT_HINT = "Playwright not found. Install with: pip install playwright && python -m playwright install chromium"
AXE_HINT = "axe-playwright-python not installed. Install with: pip install axe-playwright-python"

USAGE = """
Design Polish Capture Script

Usage:
  python run_capture.py [options] [routes...]
  python run_capture.py ref <url> <name> [<url> <name> ...]

Options:
  --wcag        Include WCAG accessibility check (default)
  --wcag-only   Run only WCAG check, no screenshots
  --no-wcag     Skip WCAG check
  --help, -h    Show this help

Commands:
  (default)     Capture local project pages
  ref           Capture external reference URLs

Examples:
  # Local project with WCAG
  python run_capture.py /                     # Main page + WCAG
  python run_capture.py / /about /pricing     # Multiple pages

  # WCAG only
  python run_capture.py --wcag-only /

  # No WCAG
  python run_capture.py --no-wcag /

  # References
  python run_capture.py ref "https://dribbble.com/..." hero

Environment Variables:
  BASE_URL     Local server URL (default: http://localhost:3000)
  OUTPUT_DIR   Screenshot directory (default: .design-polish/screenshots)
  A11Y_DIR     Accessibility report directory (default: .design-polish/accessibility)
  WAIT_TIME    Wait time after page load in ms (default: 2000)
  TIMEOUT      Page load timeout in ms (default: 30000)
  RETRIES      Navigation retries per page (default: 2)
  FULL_PAGE    Capture full page (default: false)

Output:
  .design-polish/
  ├── screenshots/
  │   ├── current-main.png
  │   └── reference-*.png
  └── accessibility/
      └── wcag-report.json
"""


class CaptureError(Exception):
    """Fatal error that ends the run with exit status 1."""


class ServerUnreachable(CaptureError):
    pass


class BrowserUnavailable(CaptureError):
    pass


class AuditEngineMissing(CaptureError):
    pass


@dataclass(frozen=True)
class CaptureConfig:
    base_url: str
    output_dir: Path
    accessibility_dir: Path
    viewport: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_VIEWPORT))
    wait_time_ms: int = DEFAULT_WAIT_MS
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    retries: int = DEFAULT_RETRIES
    full_page: bool = False


@dataclass(frozen=True)
class CaptureResult:
    filename: str
    success: bool
    route: str | None = None
    url: str | None = None
    name: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class Invocation:
    command: str
    routes: list[str]
    refs: list[dict[str, str]]
    wcag_mode: str = "include"


def env_int(environ: dict[str, str], key: str, default: int) -> int:
    try:
        value = int(str(environ.get(key, "")).strip())
    except ValueError:
        return default
    return value or default


def load_config(environ: dict[str, str] | None = None, cwd: Path | None = None) -> CaptureConfig:
    env = dict(os.environ if environ is None else environ)
    root = Path.cwd() if cwd is None else cwd
    base_url = (env.get("BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
    output_dir = env.get("OUTPUT_DIR") or root / ".design-polish" / "screenshots"
    a11y_dir = env.get("A11Y_DIR") or root / ".design-polish" / "accessibility"
    return CaptureConfig(
        base_url=base_url,
        output_dir=Path(output_dir),
        accessibility_dir=Path(a11y_dir),
        wait_time_ms=env_int(env, "WAIT_TIME", DEFAULT_WAIT_MS),
        timeout_ms=env_int(env, "TIMEOUT", DEFAULT_TIMEOUT_MS),
        retries=env_int(env, "RETRIES", DEFAULT_RETRIES),
        full_page=env.get("FULL_PAGE") == "true",
    )


def ensure_dir(path: Path) -> None:
    if not path.exists():
        path.mkdir(parents=True, exist_ok=True)
        print(f"Created: {path}")


def normalize_route(route: str) -> str:
    return route if route.startswith("/") else f"/{route}"


def route_slug(route: str) -> str:
    return normalize_route(route)[1:].replace("/", "-")


def screenshot_filename(route: str) -> str:
    return "current-main.png" if route == "/" else f"current-{route_slug(route)}.png"


def report_filename(route: str) -> str:
    return "wcag-report.json" if route == "/" else f"wcag-report-{route_slug(route)}.json"


def check_server(url: str, timeout: float = PROBE_TIMEOUT) -> dict[str, Any]:
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.exceptions.RequestException:
        return {"ok": False, "status": 0}
    return {"ok": True, "status": resp.status_code}


def require_server(config: CaptureConfig) -> None:
    status = check_server(config.base_url)
    if not status["ok"]:
        raise ServerUnreachable(f"Server not running: {config.base_url}")


def navigation_errors() -> tuple[type[BaseException], ...]:
    try:
        from playwright.sync_api import Error as PlaywrightError
    except Exception:
        return (TimeoutError,)
    return (PlaywrightError, TimeoutError)


def with_retry(
    fn: Callable[[], T],
    retries: int,
    delay: float = RETRY_DELAY,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
) -> T:
    retries = max(retries, 0)
    for attempt in range(retries + 1):
        try:
            return fn()
        except retry_on:
            if attempt == retries:
                raise
            print(f"Retry {attempt + 1}/{retries}...")
            time.sleep(delay)
    raise RuntimeError("retry loop exited without a result")


def load_axe() -> Any | None:
    try:
        from axe_playwright_python.sync_playwright import Axe
    except Exception:
        return None
    return Axe()


@contextmanager
def open_page(config: CaptureConfig) -> Iterator[Any]:
    try:
        from playwright.sync_api import sync_playwright
    except Exception as exc:
        raise BrowserUnavailable(PLAYWRIGHT_HINT) from exc

    with sync_playwright() as p:
        browser = p.chromium.launch(headless=True, args=["--no-sandbox", "--disable-setuid-sandbox"])
        try:
            page = browser.new_page(viewport=dict(config.viewport))
            yield page
        finally:
            browser.close()


def navigate(page: Any, url: str, config: CaptureConfig) -> None:
    with_retry(
        lambda: page.goto(url, wait_until="networkidle", timeout=config.timeout_ms),
        retries=config.retries,
        retry_on=navigation_errors(),
    )
    page.wait_for_timeout(config.wait_time_ms)


def reduce_axe_results(raw: dict[str, Any], url: str) -> dict[str, Any]:
    violations = raw.get("violations") or []
    passes = raw.get("passes") or []
    incomplete = raw.get("incomplete") or []
    return {
        "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        "url": url,
        "summary": {
            "violations": len(violations),
            "passes": len(passes),
            "incomplete": len(incomplete),
        },
        "violations": [
            {
                "id": v.get("id"),
                "impact": v.get("impact"),
                "description": v.get("description"),
                "helpUrl": v.get("helpUrl"),
                "nodes": [
                    {
                        "target": n.get("target"),
                        "html": (n.get("html") or "")[:HTML_SNIPPET_LIMIT],
                        "failureSummary": n.get("failureSummary"),
                    }
                    for n in v.get("nodes") or []
                ],
            }
            for v in violations
        ],
        "incomplete": [
            {"id": i.get("id"), "impact": i.get("impact"), "description": i.get("description")}
            for i in incomplete
        ],
    }


def run_accessibility_check(page: Any, url: str, axe: Any | None) -> dict[str, Any] | None:
    if axe is None:
        return None
    try:
        results = axe.run(page, options={"runOnly": {"type": "tag", "values": WCAG_TAGS}})
        return reduce_axe_results(results.response, url)
    except Exception as exc:
        print(f"WCAG check failed: {exc}")
        return None


def save_accessibility_report(config: CaptureConfig, report: dict[str, Any] | None, filename: str = "wcag-report.json") -> None:
    if not report:
        return
    ensure_dir(config.accessibility_dir)
    path = config.accessibility_dir / filename
    path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    print(f"WCAG report saved: {filename}")


def print_report_summary(report: dict[str, Any]) -> None:
    print(f"  Violations: {report['summary']['violations']}")
    print(f"  Passes: {report['summary']['passes']}")


def capture_local(config: CaptureConfig, routes: list[str], wcag: bool = True) -> dict[str, Any]:
    require_server(config)
    axe = load_axe() if wcag else None
    if wcag and axe is None:
        print(f"Warning: {AXE_HINT}. WCAG checks will be skipped.")

    print(f"\nCapturing local project: {config.base_url}")

    results: list[CaptureResult] = []
    wcag_report: dict[str, Any] | None = None
    with open_page(config) as page:
        ensure_dir(config.output_dir)
        for index, route in enumerate(map(normalize_route, routes)):
            url = config.base_url + route
            filename = screenshot_filename(route)
            try:
                print(f"Capturing: {url}")
                navigate(page, url, config)
                page.screenshot(path=str(config.output_dir / filename), full_page=config.full_page)
                print(f"Saved: {filename}")

                if wcag and index == 0:
                    print("Running WCAG accessibility check...")
                    wcag_report = run_accessibility_check(page, url, axe)
                    if wcag_report:
                        save_accessibility_report(config, wcag_report)
                        print_report_summary(wcag_report)

                results.append(CaptureResult(route=route, filename=filename, success=True))
            except Exception as exc:
                print(f"Failed: {url} - {exc}")
                results.append(CaptureResult(route=route, filename=filename, success=False, error=str(exc)))

    return {"results": [r.to_dict() for r in results], "wcagReport": wcag_report}


def capture_references(config: CaptureConfig, refs: list[dict[str, str]]) -> dict[str, Any]:
    print(f"\nCapturing {len(refs)} reference(s)")

    results: list[CaptureResult] = []
    with open_page(config) as page:
        ensure_dir(config.output_dir)
        for ref in refs:
            url, name = ref["url"], ref["name"]
            filename = f"reference-{name}.png"
            try:
                print(f"Capturing reference: {url}")
                navigate(page, url, config)
                page.screenshot(path=str(config.output_dir / filename), full_page=config.full_page)
                print(f"Saved: {filename}")
                results.append(CaptureResult(url=url, name=name, filename=filename, success=True))
            except Exception as exc:
                print(f"Failed: {url} - {exc}")
                results.append(CaptureResult(url=url, name=name, filename=filename, success=False, error=str(exc)))

    return {"results": [r.to_dict() for r in results]}


def wcag_only(config: CaptureConfig, routes: list[str]) -> dict[str, Any]:
    require_server(config)
    axe = load_axe()
    if axe is None:
        raise AuditEngineMissing(AXE_HINT)

    print(f"\nRunning WCAG check on: {config.base_url}")

    reports: list[dict[str, Any]] = []
    with open_page(config) as page:
        for route in map(normalize_route, routes):
            url = config.base_url + route
            try:
                print(f"Checking: {url}")
                navigate(page, url, config)
                report = run_accessibility_check(page, url, axe)
                if report:
                    save_accessibility_report(config, report, report_filename(route))
                    reports.append(report)
                    print_report_summary(report)
            except Exception as exc:
                print(f"Failed: {url} - {exc}")

    return {"reports": reports}


def parse_args(argv: list[str]) -> Invocation:
    wcag_mode = "include"
    positional: list[str] = []
    for arg in argv:
        if arg == "--wcag":
            wcag_mode = "include"
        elif arg == "--wcag-only":
            wcag_mode = "only"
        elif arg == "--no-wcag":
            wcag_mode = "skip"
        elif arg in ("--help", "-h"):
            return Invocation(command="help", routes=[], refs=[], wcag_mode=wcag_mode)
        else:
            positional.append(arg)

    if positional and positional[0] == "ref":
        pairs = positional[1:]
        refs = [
            {"url": pairs[i], "name": pairs[i + 1]}
            for i in range(0, len(pairs) - 1, 2)
            if pairs[i] and pairs[i + 1]
        ]
        return Invocation(command="ref", routes=[], refs=refs, wcag_mode=wcag_mode)

    routes = [normalize_route(r) for r in positional] or ["/"]
    return Invocation(command="local", routes=routes, refs=[], wcag_mode=wcag_mode)


def print_json_result(kind: str, output_dir: Path, data: dict[str, Any]) -> None:
    output = {"success": True, "type": kind, "outputDir": str(output_dir), **data}
    print(f"\n{JSON_START}")
    print(json.dumps(output, indent=2))
    print(JSON_END)


def run(invocation: Invocation, config: CaptureConfig) -> int:
    if invocation.command == "help":
        print(USAGE)
        return 0

    if invocation.command == "ref":
        if not invocation.refs:
            print("Usage: ref <url> <name> [<url> <name> ...]")
            return 1
        print_json_result("reference", config.output_dir, capture_references(config, invocation.refs))
        return 0

    if invocation.wcag_mode == "only":
        print_json_result("wcag", config.output_dir, wcag_only(config, invocation.routes))
    else:
        data = capture_local(config, invocation.routes, wcag=invocation.wcag_mode != "skip")
        print_json_result("local", config.output_dir, data)
    return 0


def main(argv: list[str] | None = None) -> int:
    invocation = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        return run(invocation, load_config())
    except ServerUnreachable as exc:
        print(f"Error: {exc}")
        print("\nStart the development server first (e.g. npm run dev).")
        return 1
    except CaptureError as exc:
        print(f"Error: {exc}")
        return 1
    except Exception as exc:
        print(f"Fatal error: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
