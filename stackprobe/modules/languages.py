"""Language detectors.

JavaScript, TypeScript and PHP score manifests, tool configs and source files.
Python, Rust and Go are lighter: a manifest at the root plus a few source
files is enough.
"""

from __future__ import annotations

from collections.abc import Mapping

from stackprobe.detect.base import Detector, ModuleKind, PriorityClass, Scorecard, js_runner
from stackprobe.detect.context import read_manifest
from stackprobe.detect.versions import major_version, normalize_version, npm_major
from stackprobe.types import DetectionContext, DetectionResult, ModuleContext, PartialCommands

NODE_FILES = ("package.json", "package-lock.json", "yarn.lock", "pnpm-lock.yaml", "bun.lockb", "bun.lock")
JS_CONFIG_FILES = (
    ".eslintrc.js",
    "babel.config.js",
    "webpack.config.js",
    "rollup.config.js",
    "vite.config.js",
    "jest.config.js",
    "vitest.config.js",
)


class LanguageDetector(Detector):
    kind = ModuleKind.LANGUAGE
    guideline_category = "language"


class JavaScriptDetector(LanguageDetector):
    id = "javascript"
    priority = PriorityClass.BASE_LANGUAGE
    display_name = "JavaScript"
    description = "JavaScript language support"
    homepage = "https://developer.mozilla.org/en-US/docs/Web/JavaScript"
    keywords = ("javascript", "node", "ecmascript")
    supported_versions = ("ES2020", "ES2021", "ES2022", "ES2023")
    extensions = (".js", ".mjs", ".cjs", ".jsx")
    config_files = ("package.json",) + JS_CONFIG_FILES

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.package_json is not None:
            card.add(0.8, "package.json found")

        js_files = context.files_with_suffix(".js", ".mjs", ".cjs")
        if js_files:
            card.add(min(len(js_files) * 0.05, 0.5), f"JavaScript files found: {len(js_files)}")

        for name in NODE_FILES:
            if context.has_config(name):
                card.add(0.2, f"Node.js file: {name}")
                break

        for name in JS_CONFIG_FILES:
            if context.has_config(name):
                card.add(0.1, f"JavaScript config file: {name}")

        ts_files = [f for f in context.files_with_suffix(".ts") if not f.endswith(".d.ts")]
        if len(ts_files) > len(js_files):
            card.scale(0.5, "More TypeScript than JavaScript files")

        return card.verdict(
            0.3,
            inclusive=False,
            metadata={"has_package_json": context.package_json is not None, "js_files": len(js_files)},
        )

    def detect_version(self, context: DetectionContext) -> str | None:
        """Node major from ``engines.node`` or ``.nvmrc``."""
        engines = (context.package_json or {}).get("engines") or {}
        if isinstance(engines, Mapping) and engines.get("node"):
            major = major_version(str(engines["node"]))
            return str(major) if major is not None else None
        try:
            nvmrc = (context.project_root / ".nvmrc").read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None
        major = major_version(nvmrc)
        return str(major) if major is not None else None

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        pm = context.package_manager
        scripts = (read_manifest(context.project_root, "package.json") or {}).get("scripts") or {}
        if not isinstance(scripts, dict):
            scripts = {}
        commands = PartialCommands(install=[f"{pm} install"])
        for category in ("dev", "build", "test", "lint"):
            if category in scripts:
                setattr(commands, category, [f"{pm} run {category}"])
        return commands


class TypeScriptDetector(LanguageDetector):
    id = "typescript"
    priority = PriorityClass.SPECIALIZED_LANGUAGE
    display_name = "TypeScript"
    description = "TypeScript language support"
    homepage = "https://www.typescriptlang.org"
    keywords = ("typescript", "javascript", "types")
    supported_versions = ("4.x", "5.x")
    extensions = (".ts", ".tsx", ".d.ts")
    config_files = ("tsconfig.json",)

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_config("tsconfig.json"):
            card.add(0.9, "tsconfig.json found")
        if context.has_npm("typescript"):
            card.add(0.8, "typescript in package.json")

        ts_files = [f for f in context.files_with_suffix(".ts", ".tsx") if not f.endswith(".d.ts")]
        if ts_files:
            card.add(min(len(ts_files) * 0.1, 0.7), f"TypeScript files found: {len(ts_files)}")
        dts_files = context.files_with_suffix(".d.ts")
        if dts_files:
            card.add(min(len(dts_files) * 0.05, 0.3), f"Declaration files found: {len(dts_files)}")

        return card.verdict(
            0.3,
            inclusive=False,
            metadata={"has_tsconfig": context.has_config("tsconfig.json"), "ts_files": len(ts_files)},
        )

    def detect_version(self, context: DetectionContext) -> str | None:
        return npm_major("typescript", context)

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        return PartialCommands(lint=[f"{js_runner(context.package_manager)} tsc --noEmit"])


class PHPDetector(LanguageDetector):
    id = "php"
    priority = PriorityClass.SPECIALIZED_LANGUAGE
    display_name = "PHP"
    description = "PHP language support"
    homepage = "https://www.php.net"
    keywords = ("php", "composer")
    supported_versions = ("8.1", "8.2", "8.3", "8.4")
    extensions = (".php",)
    config_files = ("composer.json", "composer.lock", "phpunit.xml", "phpstan.neon", ".php-cs-fixer.php")

    _tool_configs = (".php-cs-fixer.php", "phpunit.xml", "phpstan.neon")
    _entry_points = ("index.php", "public/index.php", "web/index.php")

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.composer_json is not None:
            card.add(0.9, "composer.json found")

        php_files = context.files_with_suffix(".php")
        if php_files:
            card.add(min(len(php_files) * 0.1, 0.7), f"PHP files found: {len(php_files)}")

        for name in self._tool_configs:
            if context.has_config(name):
                card.add(0.2, f"PHP config file: {name}")
        for entry in self._entry_points:
            if context.has_file(entry):
                card.add(0.2, f"PHP entry point: {entry}")

        return card.verdict(0.3, inclusive=False, metadata={"php_files": len(php_files)})

    def detect_version(self, context: DetectionContext) -> str | None:
        constraint = context.composer_dependency("php")
        if not constraint:
            return None
        # "^8.2|^8.3" -> "8.2"
        version = normalize_version(constraint.split("|")[0])
        return version or None

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        commands = PartialCommands(install=["composer install"])
        scripts = (read_manifest(context.project_root, "composer.json") or {}).get("scripts") or {}
        if isinstance(scripts, dict) and "test" in scripts:
            commands.test = ["composer test"]
        return commands


class PythonDetector(LanguageDetector):
    id = "python"
    priority = PriorityClass.BASE_LANGUAGE
    display_name = "Python"
    description = "Python language support"
    homepage = "https://www.python.org"
    keywords = ("python", "pip")
    extensions = (".py",)
    config_files = ("pyproject.toml", "requirements.txt", "Pipfile", "setup.py")

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        for name in self.config_files:
            if context.has_config(name):
                card.add(0.8, f"Python manifest: {name}")
                break
        py_files = context.files_with_suffix(".py")
        if py_files:
            card.add(min(len(py_files) * 0.05, 0.5), f"Python files found: {len(py_files)}")
        return card.verdict(0.3, inclusive=False)

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        managers = context.detected_stack.package_managers
        config = context.detected_stack.config_files
        if "poetry" in managers:
            install = "poetry install"
        elif "uv" in managers:
            install = "uv sync"
        elif "pipenv" in managers:
            install = "pipenv install --dev"
        elif "requirements.txt" in config:
            install = "pip install -r requirements.txt"
        else:
            install = "pip install -e ."
        return PartialCommands(install=[install], test=["pytest"])


class RustDetector(LanguageDetector):
    id = "rust"
    priority = PriorityClass.BASE_LANGUAGE
    display_name = "Rust"
    description = "Rust language support"
    homepage = "https://www.rust-lang.org"
    keywords = ("rust", "cargo")
    extensions = (".rs",)
    config_files = ("Cargo.toml",)

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_config("Cargo.toml"):
            card.add(0.9, "Cargo.toml found")
        rs_files = context.files_with_suffix(".rs")
        if rs_files:
            card.add(min(len(rs_files) * 0.05, 0.5), f"Rust files found: {len(rs_files)}")
        return card.verdict(0.3, inclusive=False)

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        return PartialCommands(
            dev=["cargo run"],
            build=["cargo build --release"],
            test=["cargo test"],
            lint=["cargo clippy"],
            install=["cargo fetch"],
        )


class GoDetector(LanguageDetector):
    id = "go"
    priority = PriorityClass.BASE_LANGUAGE
    display_name = "Go"
    description = "Go language support"
    homepage = "https://go.dev"
    keywords = ("go", "golang")
    extensions = (".go",)
    config_files = ("go.mod",)

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_config("go.mod"):
            card.add(0.9, "go.mod found")
        go_files = context.files_with_suffix(".go")
        if go_files:
            card.add(min(len(go_files) * 0.05, 0.5), f"Go files found: {len(go_files)}")
        return card.verdict(0.3, inclusive=False)

    def detect_version(self, context: DetectionContext) -> str | None:
        """The ``go`` directive of go.mod."""
        try:
            text = (context.project_root / "go.mod").read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None
        for line in text.splitlines():
            parts = line.split()
            if len(parts) == 2 and parts[0] == "go":
                return parts[1]
        return None

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        return PartialCommands(
            dev=["go run ."],
            build=["go build ./..."],
            test=["go test ./..."],
            lint=["go vet ./..."],
            install=["go mod download"],
        )
