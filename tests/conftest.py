from __future__ import annotations

import json
from pathlib import Path

import pytest

from stackprobe.detect.context import build_context
from stackprobe.types import DetectionContext


def write_tree(root: Path, files: dict[str, object]) -> Path:
    """Write *files* (relative path -> text, or dict/list dumped as JSON) under *root*."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if not isinstance(content, str):
            content = json.dumps(content)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_project(tmp_path: Path):
    def _make(files: dict[str, object]) -> Path:
        return write_tree(tmp_path, files)

    return _make


@pytest.fixture
def make_context(make_project):
    def _make(files: dict[str, object]) -> DetectionContext:
        return build_context(make_project(files))

    return _make
