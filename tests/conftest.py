"""Shared fixtures: sample projects, published indexes and a mocked network."""

import base64
import json
from collections import Counter
from pathlib import Path
from typing import Callable

import httpx
import pytest

from specref_mcp.core.git import StaticBranchProvider


def build_index_html(terms: list[dict], branch: str | None = None) -> str:
    """Render a minimal published index.

    Each term dict has ``term``, ``definition`` and optionally ``title``
    (the displayed text, defaults to the term) and ``classes``.
    """
    meta = ""
    if branch:
        meta = f'<meta property="spec-up-t:github-repo-info" content="owner,repo,{branch}">'

    entries = []
    for entry in terms:
        classes = " ".join(entry.get("classes", []))
        class_attr = f' class="{classes}"' if classes else ""
        title = entry.get("title", entry["term"])
        entries.append(
            f'<dt{class_attr}><span id="term:{entry["term"]}">{title}'
            f'<span class="term-local-original-term">{entry["term"]}</span></span></dt>'
            f'<dd>{entry["definition"]}</dd>'
        )

    return (
        f"<html><head>{meta}</head><body>"
        f'<dl class="terms-and-definitions-list">{"".join(entries)}</dl>'
        "</body></html>"
    )


def write_specs_json(project: Path, external_specs: list[dict] | None, **spec_fields) -> Path:
    spec = {
        "spec_directory": "./spec",
        "spec_terms_directory": "terms-definitions",
        "output_path": "./docs",
        **spec_fields,
    }
    if external_specs is not None:
        spec["external_specs"] = external_specs
    path = project / "specs.json"
    path.write_text(json.dumps({"specs": [spec]}), encoding="utf-8")
    return path


class MockNetwork:
    """Route table for httpx.MockTransport that counts requests per URL."""

    def __init__(self):
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.calls: Counter[str] = Counter()
        self.requests: list[httpx.Request] = []

    def add(self, url: str, status: int = 200, text: str | None = None, json_data=None, headers=None):
        def respond(request: httpx.Request) -> httpx.Response:
            if json_data is not None:
                return httpx.Response(status, json=json_data, headers=headers)
            return httpx.Response(status, text=text or "", headers=headers)
        self.routes[url] = respond

    def add_handler(self, url: str, handler: Callable[[httpx.Request], httpx.Response]):
        self.routes[url] = handler

    def add_specs_json(self, owner: str, repo: str, output_path: str):
        content = json.dumps({"specs": [{"output_path": output_path}]}).encode("utf-8")
        self.add(
            f"https://api.github.com/repos/{owner}/{repo}/contents/specs.json",
            json_data={"content": base64.b64encode(content).decode("ascii"), "encoding": "base64"},
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls[url] += 1
        self.requests.append(request)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="Not Found")
        return route(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def network() -> MockNetwork:
    return MockNetwork()


@pytest.fixture
def branch_provider() -> StaticBranchProvider:
    return StaticBranchProvider("main")


@pytest.fixture
def spec_project(tmp_path) -> Path:
    """Project with one external spec (kmg-1) published on GitHub Pages."""
    write_specs_json(tmp_path, [
        {
            "external_spec": "kmg-1",
            "url": "https://github.com/henkvancann/kmg",
            "terms_dir": "spec/terms-definitions",
            "gh_page": "https://henkvancann.github.io/kmg/",
        },
    ])
    (tmp_path / "spec" / "terms-definitions").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def terms_dir(spec_project) -> Path:
    return spec_project / "spec" / "terms-definitions"
