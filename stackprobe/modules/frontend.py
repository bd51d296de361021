"""JavaScript framework detectors: meta-frameworks and UI libraries."""

from __future__ import annotations

from stackprobe.detect.base import Detector, ModuleKind, PriorityClass, Scorecard
from stackprobe.detect.versions import npm_major
from stackprobe.types import DetectionContext, DetectionResult, ModuleContext, PartialCommands

VITE_CONFIGS = ("vite.config.js", "vite.config.ts", "vite.config.mjs")


class JsFrameworkDetector(Detector):
    """Shared shape: version from one npm package, package-script commands."""

    kind = ModuleKind.FRAMEWORK
    priority = PriorityClass.FRAMEWORK
    package: str = ""
    extra_dev: tuple[str, ...] = ()
    extra_build: tuple[str, ...] = ()
    extra_lint: tuple[str, ...] = ()

    def detect_version(self, context: DetectionContext) -> str | None:
        return npm_major(self.package, context)

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        pm = context.package_manager
        return PartialCommands(
            dev=[f"{pm} run dev", *(f"{pm} run {s}" for s in self.extra_dev)],
            build=[f"{pm} run build", *(f"{pm} run {s}" for s in self.extra_build)],
            test=[f"{pm} run test"],
            lint=[f"{pm} run lint", *(f"{pm} run {s}" for s in self.extra_lint)],
            install=[f"{pm} install"],
        )


def _scripts_mention(context: DetectionContext, word: str, *names: str) -> bool:
    scripts = context.npm_scripts()
    return any(word in scripts.get(name, "") for name in names)


def _dir_present(context: DetectionContext, directory: str) -> bool:
    return bool(context.files_under(directory))


# --- meta-frameworks --------------------------------------------------------


class NextDetector(JsFrameworkDetector):
    id = "next"
    priority = PriorityClass.META_FRAMEWORK
    package = "next"
    display_name = "Next.js"
    description = "Next.js React framework"
    homepage = "https://nextjs.org"
    keywords = ("javascript", "typescript", "react", "framework", "ssr", "static-site")
    supported_versions = ("13.x", "14.x", "15.x")
    extensions = (".js", ".jsx", ".ts", ".tsx")
    config_files = ("next.config.js", "next.config.ts", "next.config.mjs")
    extra_dev = ("start",)

    _special_files = (
        "pages/_app.js",
        "pages/_app.tsx",
        "pages/_document.js",
        "pages/_document.tsx",
        "app/layout.js",
        "app/layout.tsx",
        "app/page.js",
        "app/page.tsx",
    )

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        pkg = context.package_json or {}
        for section in ("dependencies", "devDependencies"):
            if "next" in (pkg.get(section) or {}):
                card.add(0.9, f"next in package.json {section}")
        for name in self.config_files:
            if context.has_config(name):
                card.add(0.8, f"Next.js config file: {name}")
        for directory in ("pages", "app", "public"):
            if _dir_present(context, directory):
                card.add(0.3, f"Next.js directory structure: {directory}")
        for name in self._special_files:
            if context.has_file(name):
                card.add(0.2, f"Next.js file: {name}")
        if _scripts_mention(context, "next", "dev", "build", "start"):
            card.add(0.3, "Next.js scripts in package.json")
        return card.verdict(
            0.3,
            inclusive=False,
            excludes=["react"],
            metadata={
                "has_app_dir": _dir_present(context, "app"),
                "has_pages_dir": _dir_present(context, "pages"),
            },
        )


class NuxtDetector(JsFrameworkDetector):
    id = "nuxt"
    priority = PriorityClass.META_FRAMEWORK
    package = "nuxt"
    display_name = "Nuxt.js"
    description = "Nuxt Vue framework"
    homepage = "https://nuxt.com"
    keywords = ("javascript", "typescript", "vue", "framework", "ssr")
    supported_versions = ("3.x",)
    extensions = (".vue", ".js", ".ts", ".jsx", ".tsx")
    config_files = ("nuxt.config.js", "nuxt.config.ts")
    extra_build = ("generate",)

    _dirs = ("pages", "components", "layouts", "middleware", "plugins", "assets", "static")

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_npm("nuxt"):
            card.add(0.9, "nuxt in package.json")
        if context.has_npm("nuxt-edge"):
            card.add(0.8, "nuxt-edge in package.json")
        for name in self.config_files:
            if context.has_config(name):
                card.add(0.8, f"Nuxt config file: {name}")
        for directory in self._dirs:
            if _dir_present(context, directory):
                card.add(0.1, f"Nuxt directory structure: {directory}")
        if context.has_file("app.vue"):
            card.add(0.2, "Nuxt app.vue found")
        if _scripts_mention(context, "nuxt", "dev", "build", "generate"):
            card.add(0.3, "Nuxt scripts in package.json")
        if card.confidence and context.has_npm("vue"):
            card.add(0.1, "vue dependency present")
        return card.verdict(0.3, inclusive=False, excludes=["vue"])


class SvelteKitDetector(JsFrameworkDetector):
    id = "sveltekit"
    priority = PriorityClass.META_FRAMEWORK
    package = "@sveltejs/kit"
    display_name = "SvelteKit"
    description = "SvelteKit application framework"
    homepage = "https://kit.svelte.dev"
    keywords = ("javascript", "svelte", "framework", "ssr")
    supported_versions = ("1.x", "2.x")
    extensions = (".svelte", ".js", ".ts")
    config_files = ("svelte.config.js",)
    extra_dev = ("preview",)
    extra_lint = ("check",)

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_npm("@sveltejs/kit"):
            card.add(0.9, "@sveltejs/kit in package.json")
        if context.has_npm("@sveltejs/adapter-auto", "@sveltejs/adapter-node", "@sveltejs/adapter-static"):
            card.add(0.3, "SvelteKit adapter in package.json")
        if context.has_config("svelte.config.js") and self._config_uses_kit(context):
            card.add(0.8, "svelte.config.js configures SvelteKit")
        if _dir_present(context, "src/routes"):
            card.add(0.3, "SvelteKit routes directory: src/routes")
        if _dir_present(context, "src/lib"):
            card.add(0.2, "SvelteKit lib directory: src/lib")
        if context.has_file("src/app.html"):
            card.add(0.2, "SvelteKit app template: src/app.html")
        if _scripts_mention(context, "vite", "dev", "build", "preview"):
            card.add(0.2, "Vite scripts in package.json")
        return card.verdict(0.3, inclusive=False, excludes=["svelte"])

    @staticmethod
    def _config_uses_kit(context: DetectionContext) -> bool:
        try:
            text = (context.project_root / "svelte.config.js").read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return False
        return "@sveltejs/kit" in text or "kit:" in text


class AstroDetector(JsFrameworkDetector):
    id = "astro"
    priority = PriorityClass.META_FRAMEWORK
    package = "astro"
    display_name = "Astro"
    description = "Astro content-focused web framework"
    homepage = "https://astro.build"
    keywords = ("javascript", "static-site", "islands", "framework")
    supported_versions = ("3.x", "4.x", "5.x")
    extensions = (".astro", ".js", ".ts", ".jsx", ".tsx")
    config_files = ("astro.config.js", "astro.config.ts", "astro.config.mjs")
    extra_dev = ("preview",)

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_npm("astro"):
            card.add(0.9, "astro in package.json")
        for name in self.config_files:
            if context.has_config(name):
                card.add(0.8, f"Astro config file: {name}")
        astro_files = context.files_with_suffix(".astro")
        if astro_files:
            card.add(min(len(astro_files) * 0.1, 0.5), f"Astro files found: {len(astro_files)}")
        for directory in ("src/pages", "src/components", "src/layouts"):
            if astro_files and _dir_present(context, directory):
                card.add(0.1, f"Astro directory structure: {directory}")
        if _scripts_mention(context, "astro", "dev", "build", "preview"):
            card.add(0.3, "Astro scripts in package.json")
        return card.verdict(0.3, inclusive=False)


# --- UI frameworks ----------------------------------------------------------


class ReactDetector(JsFrameworkDetector):
    id = "react"
    package = "react"
    display_name = "React"
    description = "React UI library"
    homepage = "https://react.dev"
    keywords = ("javascript", "typescript", "ui", "components")
    supported_versions = ("17.x", "18.x", "19.x")
    extensions = (".js", ".jsx", ".ts", ".tsx")
    extra_dev = ("start",)
    extra_lint = ("lint:fix",)

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_npm("react"):
            card.add(0.9, "react in package.json")
        if context.has_npm("react-dom"):
            card.add(0.8, "react-dom in package.json")
        if context.has_npm("react-scripts"):
            card.add(0.7, "Create React App (react-scripts) detected")
        elif context.has_npm("@vitejs/plugin-react"):
            card.add(0.7, "Vite React plugin detected")
        components = context.files_with_suffix(".jsx", ".tsx")
        if components:
            card.add(min(len(components) * 0.05, 0.3), f"JSX/TSX files found: {len(components)}")
        return card.verdict(0.3, inclusive=False)


class VueDetector(JsFrameworkDetector):
    id = "vue"
    package = "vue"
    display_name = "Vue.js"
    description = "Vue.js progressive framework"
    homepage = "https://vuejs.org"
    keywords = ("javascript", "typescript", "ui", "components")
    supported_versions = ("2.x", "3.x")
    extensions = (".vue", ".js", ".ts", ".jsx", ".tsx")
    config_files = ("vue.config.js", "vue.config.ts")

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_npm("vue"):
            card.add(0.9, "vue in package.json")
        for name in self.config_files:
            if context.has_config(name):
                card.add(0.8, f"Vue config file: {name}")
        if context.has_config(*VITE_CONFIGS) and context.has_npm("@vitejs/plugin-vue"):
            card.add(0.7, "Vite Vue plugin detected")
        vue_files = context.files_with_suffix(".vue")
        if vue_files:
            card.add(min(len(vue_files) * 0.1, 0.5), f"Vue single-file components: {len(vue_files)}")
        if context.has_npm("vue-router"):
            card.add(0.2, "vue-router in package.json")
        if context.has_npm("vuex", "pinia"):
            card.add(0.2, "Vue state management in package.json")
        for directory in ("src/components", "src/views", "src/pages"):
            if _dir_present(context, directory):
                card.add(0.1, f"Vue directory structure: {directory}")
        return card.verdict(0.3, inclusive=False)


class SvelteDetector(JsFrameworkDetector):
    id = "svelte"
    package = "svelte"
    display_name = "Svelte"
    description = "Svelte compiler-based UI framework"
    homepage = "https://svelte.dev"
    keywords = ("javascript", "ui", "compiler")
    supported_versions = ("4.x", "5.x")
    extensions = (".svelte", ".js", ".ts")
    config_files = ("svelte.config.js",)

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_npm("svelte"):
            card.add(0.9, "svelte in package.json")
        if context.has_config(*VITE_CONFIGS) and context.has_npm("@sveltejs/vite-plugin-svelte"):
            card.add(0.8, "Vite Svelte plugin detected")
        if context.has_config("rollup.config.js") and context.has_npm("rollup-plugin-svelte"):
            card.add(0.7, "Rollup Svelte plugin detected")
        svelte_files = context.files_with_suffix(".svelte")
        if svelte_files:
            card.add(min(len(svelte_files) * 0.1, 0.5), f"Svelte components: {len(svelte_files)}")
        for directory in ("src/lib", "src/routes", "src/components"):
            if svelte_files and _dir_present(context, directory):
                card.add(0.1, f"Svelte directory structure: {directory}")
        if context.has_config("svelte.config.js"):
            card.add(0.7, "svelte.config.js found")
        return card.verdict(0.3, inclusive=False)


class SolidDetector(JsFrameworkDetector):
    id = "solid"
    package = "solid-js"
    display_name = "SolidJS"
    description = "SolidJS reactive UI library"
    homepage = "https://www.solidjs.com"
    keywords = ("javascript", "typescript", "ui", "reactive")
    supported_versions = ("1.x",)
    extensions = (".jsx", ".tsx", ".js", ".ts")
    config_files = ("app.config.ts",)

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        has_solid = context.has_npm("solid-js")
        if has_solid:
            card.add(0.9, "solid-js in package.json")
        if context.has_config(*VITE_CONFIGS) and context.has_npm("vite-plugin-solid"):
            card.add(0.8, "Vite Solid plugin detected")
        if context.has_npm("solid-start", "@solidjs/start"):
            card.add(0.3, "SolidStart in package.json")
        if has_solid:
            jsx_files = context.files_with_suffix(".jsx", ".tsx")
            if jsx_files:
                card.add(min(len(jsx_files) * 0.05, 0.3), f"JSX/TSX files found: {len(jsx_files)}")
            for directory in ("src/components", "src/routes", "src/pages"):
                if _dir_present(context, directory):
                    card.add(0.1, f"Solid directory structure: {directory}")
        if context.has_config("app.config.ts") and context.has_npm("@solidjs/start", "solid-start"):
            card.add(0.3, "SolidStart app.config.ts found")
        if _scripts_mention(context, "solid", "dev", "build", "start"):
            card.add(0.2, "Solid scripts in package.json")
        return card.verdict(0.3, inclusive=False)
