"""CSS framework detectors."""

from __future__ import annotations

from stackprobe.detect.base import Detector, ModuleKind, PriorityClass, Scorecard, js_runner
from stackprobe.detect.versions import npm_major
from stackprobe.types import DetectionContext, DetectionResult, ModuleContext, PartialCommands

TAILWIND_CONFIGS = ("tailwind.config.js", "tailwind.config.ts", "tailwind.config.mjs", "tailwind.config.cjs")
POSTCSS_CONFIGS = ("postcss.config.js", "postcss.config.cjs")
ENTRY_STYLESHEETS = ("globals.css", "app.css", "main.css", "index.css", "style.css")


class CssFrameworkDetector(Detector):
    kind = ModuleKind.LIBRARY
    priority = PriorityClass.CSS_FRAMEWORK
    extensions = (".css", ".scss")
    package: str = ""
    companions: tuple[str, ...] = ()

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_npm(self.package):
            card.add(0.8, f"{self.package} in package.json")
        for name in self.companions:
            if context.has_npm(name):
                card.add(0.6, f"{name} in package.json")
                break
        stylesheets = [f for f in context.files_with_suffix(".css", ".scss", ".sass") if self.package in f.lower()]
        if stylesheets:
            card.add(0.4, f"{self.display_name} stylesheets found: {len(stylesheets)}")
        return card.verdict(0.3, inclusive=False)

    def detect_version(self, context: DetectionContext) -> str | None:
        return npm_major(self.package, context)


class TailwindDetector(CssFrameworkDetector):
    id = "tailwind"
    package = "tailwindcss"
    display_name = "Tailwind CSS"
    description = "Utility-first CSS framework"
    homepage = "https://tailwindcss.com"
    keywords = ("css", "utility-first", "styling")
    supported_versions = ("3.x", "4.x")
    config_files = TAILWIND_CONFIGS + POSTCSS_CONFIGS

    _plugins = ("@tailwindcss/typography", "@tailwindcss/forms")

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_npm("tailwindcss"):
            card.add(0.8, "tailwindcss in package.json")
        for plugin in self._plugins:
            if context.has_npm(plugin):
                card.add(0.1, f"Tailwind plugin: {plugin}")
        if context.has_npm("@headlessui/react", "@headlessui/vue"):
            card.add(0.1, "Headless UI detected")
        if context.has_config(*TAILWIND_CONFIGS):
            card.add(0.6, "Tailwind config file found")
        if context.has_config(*POSTCSS_CONFIGS):
            card.add(0.1, "PostCSS config found")
        stylesheets = context.files_with_suffix(".css", ".scss")
        if any(f.rsplit("/", 1)[-1] in ENTRY_STYLESHEETS for f in stylesheets):
            card.add(0.2, "Entry stylesheet found")
        components = context.files_with_suffix(".jsx", ".tsx", ".vue", ".svelte", ".blade.php")
        if components:
            card.add(0.1, f"Component files found: {len(components)}")
        return card.verdict(0.3, inclusive=False)

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        config = context.detected_stack.config_files
        if not any(name in config for name in TAILWIND_CONFIGS):
            return PartialCommands()
        return PartialCommands(build=[f"{js_runner(context.package_manager)} tailwindcss build"])


class BootstrapDetector(CssFrameworkDetector):
    id = "bootstrap"
    package = "bootstrap"
    companions = ("react-bootstrap", "bootstrap-vue", "@ng-bootstrap/ng-bootstrap")
    display_name = "Bootstrap"
    description = "Component-based CSS framework"
    homepage = "https://getbootstrap.com"
    keywords = ("css", "components", "responsive")
    supported_versions = ("4.x", "5.x")


class BulmaDetector(CssFrameworkDetector):
    id = "bulma"
    package = "bulma"
    companions = ("react-bulma-components", "ngx-bulma")
    display_name = "Bulma"
    description = "Flexbox-based CSS framework"
    homepage = "https://bulma.io"
    keywords = ("css", "flexbox")
    supported_versions = ("0.9.x", "1.x")
