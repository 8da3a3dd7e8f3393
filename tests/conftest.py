"""Shared fixtures: a fake browser page, a fake axe engine and a capture config."""

from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import pytest

import run_capture
from run_capture import CaptureConfig


class FakePage:
    """Records navigation and writes placeholder PNG bytes on screenshot."""

    def __init__(self, fail_urls: dict[str, int] | None = None, screenshot_error: str | None = None):
        # url -> number of goto attempts that should time out before succeeding
        self.fail_urls = dict(fail_urls or {})
        self.screenshot_error = screenshot_error
        self.goto_calls: list[str] = []
        self.waits: list[int] = []
        self.screenshots: list[str] = []
        self.goto_options: list[tuple[str, int]] = []
        self.screenshot_options: list[bool] = []

    def goto(self, url: str, wait_until: str = "load", timeout: int = 0) -> None:
        self.goto_calls.append(url)
        self.goto_options.append((wait_until, timeout))
        remaining = self.fail_urls.get(url, 0)
        if remaining:
            self.fail_urls[url] = remaining - 1
            raise TimeoutError(f"Timeout {timeout}ms exceeded navigating to {url}")

    def wait_for_timeout(self, ms: int) -> None:
        self.waits.append(ms)

    def screenshot(self, path: str, full_page: bool = False) -> None:
        self.screenshot_options.append(full_page)
        if self.screenshot_error:
            raise OSError(self.screenshot_error)
        Path(path).write_bytes(b"\x89PNG\r\n\x1a\n")
        self.screenshots.append(path)


class FakeAxeResults:
    def __init__(self, response: dict[str, Any]):
        self.response = response


class FakeAxe:
    def __init__(self, response: dict[str, Any]):
        self.response = response
        self.calls: list[dict[str, Any]] = []

    def run(self, page: Any, context: Any = None, options: dict[str, Any] | None = None) -> FakeAxeResults:
        self.calls.append({"page": page, "options": options})
        return FakeAxeResults(self.response)


SAMPLE_AXE_RESPONSE = {
    "violations": [
        {
            "id": "image-alt",
            "impact": "critical",
            "description": "Ensures <img> elements have alternate text",
            "helpUrl": "https://dequeuniversity.com/rules/axe/4.8/image-alt",
            "nodes": [
                {
                    "target": ["img.hero"],
                    "html": "<img class=\"hero\" src=\"" + "x" * 300 + "\">",
                    "failureSummary": "Fix any of the following: Element does not have an alt attribute",
                }
            ],
        }
    ],
    "passes": [{"id": "document-title"}, {"id": "html-has-lang"}],
    "incomplete": [
        {
            "id": "color-contrast",
            "impact": "serious",
            "description": "Ensures the contrast between foreground and background colors meets WCAG 2 AA",
            "nodes": [],
        }
    ],
}


@pytest.fixture
def config(tmp_path: Path) -> CaptureConfig:
    return CaptureConfig(
        base_url="http://localhost:3000",
        output_dir=tmp_path / "screenshots",
        accessibility_dir=tmp_path / "accessibility",
        wait_time_ms=10,
        timeout_ms=1000,
        retries=2,
    )


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    slept: list[float] = []
    monkeypatch.setattr(run_capture.time, "sleep", slept.append)
    return slept


@pytest.fixture
def server_up(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(run_capture, "check_server", lambda url, timeout=5: {"ok": True, "status": 200})


@pytest.fixture
def server_down(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(run_capture, "check_server", lambda url, timeout=5: {"ok": False, "status": 0})


@pytest.fixture
def browser(monkeypatch: pytest.MonkeyPatch) -> dict[str, Any]:
    """Replace the Playwright session with a FakePage; tests may swap state['page']."""
    state: dict[str, Any] = {"page": FakePage(), "opened": 0, "closed": 0}

    @contextmanager
    def fake_open_page(cfg: CaptureConfig) -> Iterator[FakePage]:
        state["opened"] += 1
        try:
            yield state["page"]
        finally:
            state["closed"] += 1

    monkeypatch.setattr(run_capture, "open_page", fake_open_page)
    return state


@pytest.fixture
def axe(monkeypatch: pytest.MonkeyPatch) -> FakeAxe:
    engine = FakeAxe(SAMPLE_AXE_RESPONSE)
    monkeypatch.setattr(run_capture, "load_axe", lambda: engine)
    return engine


@pytest.fixture
def no_axe(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(run_capture, "load_axe", lambda: None)


def parse_json_result(stdout: str) -> dict[str, Any]:
    start = stdout.index(run_capture.JSON_START) + len(run_capture.JSON_START)
    end = stdout.index(run_capture.JSON_END)
    return json.loads(stdout[start:end])


@pytest.fixture
def read_json_result(capsys: pytest.CaptureFixture[str]):
    return lambda: parse_json_result(capsys.readouterr().out)
