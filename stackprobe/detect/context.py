"""Detection context builder.

Heuristics:
- Config files: a fixed list of root-level names (manifests, lockfiles, tool
  configs) checked for existence.
- Files: breadth-first scan bounded by depth and count, skipping dependency and
  build output directories and every dot-directory.
- Manifests: package.json / composer.json parsed as JSON; anything missing,
  unreadable or not a JSON object is treated as absent.
"""

from __future__ import annotations

import json
from collections import deque
from pathlib import Path

from stackprobe.config import ScanSettings
from stackprobe.errors import ContextBuildError
from stackprobe.logging import get_logger
from stackprobe.types import DetectionContext

log = get_logger(__name__)

CONFIG_PATTERNS: tuple[str, ...] = (
    # manifests
    "package.json",
    "composer.json",
    "requirements.txt",
    "Pipfile",
    "pyproject.toml",
    "setup.py",
    "Cargo.toml",
    "go.mod",
    # lockfiles
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lockb",
    "bun.lock",
    "composer.lock",
    "poetry.lock",
    "uv.lock",
    "Pipfile.lock",
    "Cargo.lock",
    "go.sum",
    # javascript tooling
    "tsconfig.json",
    "jsconfig.json",
    "vite.config.js",
    "vite.config.ts",
    "vite.config.mjs",
    "webpack.config.js",
    "webpack.config.ts",
    "webpack.mix.js",
    "gulpfile.js",
    "rollup.config.js",
    "babel.config.js",
    ".babelrc",
    ".eslintrc",
    ".eslintrc.js",
    ".eslintrc.json",
    "eslint.config.js",
    ".prettierrc",
    "jest.config.js",
    "jest.config.ts",
    "vitest.config.js",
    "vitest.config.ts",
    "playwright.config.js",
    "playwright.config.ts",
    # frameworks
    "next.config.js",
    "next.config.ts",
    "next.config.mjs",
    "nuxt.config.js",
    "nuxt.config.ts",
    "vue.config.js",
    "svelte.config.js",
    "astro.config.mjs",
    "astro.config.js",
    "astro.config.ts",
    "app.config.ts",
    "tailwind.config.js",
    "tailwind.config.ts",
    "tailwind.config.cjs",
    "postcss.config.js",
    "postcss.config.cjs",
    # php / laravel
    "artisan",
    "phpunit.xml",
    "phpunit.xml.dist",
    "pint.json",
    "phpstan.neon",
    "phpstan.neon.dist",
    ".php-cs-fixer.php",
    "boost.config.js",
    "boost.config.php",
    "laravel-boost.json",
    ".boost",
    # python
    "manage.py",
    # misc
    ".env",
    "docker-compose.yml",
    "Dockerfile",
)

MANIFESTS = {"package_json": "package.json", "composer_json": "composer.json"}


def find_config_files(root: Path) -> tuple[str, ...]:
    return tuple(name for name in CONFIG_PATTERNS if (root / name).exists())


def scan_files(root: Path, settings: ScanSettings) -> tuple[str, ...]:
    """Return sorted relative POSIX paths under *root*, bounded by *settings*."""
    ignored = set(settings.ignore_dirs)
    found: list[str] = []
    queue: deque[tuple[Path, int]] = deque([(root, 0)])
    while queue and len(found) < settings.max_files:
        directory, depth = queue.popleft()
        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as exc:
            log.debug("Skipping unreadable directory", extra={"fields": {"dir": str(directory), "error": str(exc)}})
            continue
        for entry in entries:
            rel = entry.relative_to(root).as_posix()
            if entry.is_dir():
                if entry.name.startswith(".") or entry.name in ignored or rel in ignored:
                    continue
                if depth + 1 < settings.max_depth:
                    queue.append((entry, depth + 1))
            elif entry.is_file():
                found.append(rel)
                if len(found) >= settings.max_files:
                    log.info("File scan truncated", extra={"fields": {"limit": settings.max_files}})
                    break
    return tuple(sorted(found))


def _parse_manifest(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ContextBuildError(f"{path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ContextBuildError(f"{path.name}: expected a JSON object")
    return data


def read_manifest(root: Path, name: str) -> dict | None:
    path = root / name
    if not path.is_file():
        return None
    try:
        return _parse_manifest(path)
    except ContextBuildError as exc:
        log.warning("Ignoring malformed manifest", extra={"fields": {"error": str(exc)}})
        return None


def build_context(root: Path, settings: ScanSettings | None = None) -> DetectionContext:
    settings = settings or ScanSettings()
    root = Path(root).resolve()
    manifests = {field: read_manifest(root, name) for field, name in MANIFESTS.items()}
    return DetectionContext(
        project_root=root,
        config_files=find_config_files(root),
        files=scan_files(root, settings) if root.is_dir() else (),
        **manifests,
    )
