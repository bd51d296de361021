"""Laravel framework and first-party ecosystem detectors.

Most ecosystem packages are meaningless without Laravel (or Livewire), so the
detectors below halve their score when the host framework is missing and add
a small bonus when it is present. Laravel Boost bundles guidance for most of
the ecosystem and excludes those detectors when it is found.
"""

from __future__ import annotations

import json

from stackprobe.detect.base import Detector, ModuleKind, PriorityClass, Scorecard
from stackprobe.detect.versions import composer_major, normalize_version
from stackprobe.types import DetectionContext, DetectionResult, ModuleContext, PartialCommands

BOOST_EXCLUDES = [
    "laravel",
    "tailwind",
    "livewire",
    "pest",
    "pint",
    "volt",
    "folio",
    "pennant",
    "flux-free",
    "flux-pro",
]

FLUX_PRO_INDICATORS = ("flux-pro", "flux/pro", "flux_pro_license", "flux.pro", "fluxui.pro")
FLUX_PRO_COMPONENTS = (
    "accordion",
    "autocomplete",
    "calendar",
    "chart",
    "command",
    "context",
    "date-picker",
    "editor",
    "pagination",
    "popover",
    "table",
    "tabs",
    "toast",
)
FLUX_LICENSE_KEYS = ("FLUX_PRO_KEY", "FLUX_PRO_LICENSE", "FLUX_LICENSE")


def has_laravel(context: DetectionContext) -> bool:
    return context.composer_requires("laravel/framework") or context.composer_requires("illuminate/support")


def has_livewire(context: DetectionContext) -> bool:
    return context.has_composer("livewire/livewire")


def _read_text(context: DetectionContext, name: str) -> str:
    try:
        return (context.project_root / name).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ""


class LaravelPackageDetector(Detector):
    kind = ModuleKind.LIBRARY
    priority = PriorityClass.ECOSYSTEM_TOOL
    extensions = (".php", ".blade.php")
    package: str = ""

    def detect_version(self, context: DetectionContext) -> str | None:
        return composer_major(self.package, context)


# --- framework --------------------------------------------------------------


class LaravelDetector(Detector):
    id = "laravel"
    kind = ModuleKind.FRAMEWORK
    priority = PriorityClass.META_FRAMEWORK
    display_name = "Laravel"
    description = "Laravel PHP framework"
    homepage = "https://laravel.com"
    keywords = ("php", "framework", "mvc", "artisan")
    supported_versions = ("10.x", "11.x", "12.x")
    extensions = (".php", ".blade.php")
    config_files = ("artisan", "composer.json", ".env", "phpunit.xml", "vite.config.js", "webpack.mix.js")

    _dirs = ("app/Http", "app/Models", "routes", "database/migrations", "resources/views")
    _files = ("routes/web.php", "routes/api.php", "config/app.php", "app/Http/Kernel.php")

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_config("artisan"):
            card.add(0.9, "artisan command file found")
        if context.composer_requires("laravel/framework"):
            card.add(0.8, "laravel/framework in composer.json")
        for directory in self._dirs:
            if context.files_under(directory):
                card.add(0.1, f"Laravel directory structure: {directory}")
        for name in self._files:
            if context.has_file(name):
                card.add(0.15, f"Laravel file: {name}")
        php_configs = [f for f in context.files_under("config") if f.endswith(".php")]
        if len(php_configs) > 5:
            card.add(0.2, f"Laravel config files found: {len(php_configs)}")
        if context.has_config(".env"):
            env = _read_text(context, ".env")
            if "APP_NAME=" in env or "APP_KEY=" in env:
                card.add(0.1, ".env file with Laravel variables")
        return card.verdict(0.3, inclusive=False, metadata={"has_artisan": context.has_config("artisan")})

    def detect_version(self, context: DetectionContext) -> str | None:
        return composer_major("laravel/framework", context)

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        config = context.detected_stack.config_files
        pm = context.package_manager
        dev = ["php artisan serve"]
        build = ["php artisan optimize"]
        if any(name in config for name in ("vite.config.js", "vite.config.ts")):
            dev.append(f"{pm} run dev")
            build.append(f"{pm} run build")
        elif "webpack.mix.js" in config:
            dev.append(f"{pm} run dev")
            build.append(f"{pm} run production")

        lint = ["./vendor/bin/pint"]
        if ".php-cs-fixer.php" in config:
            lint.append("vendor/bin/php-cs-fixer fix")
        if "phpstan.neon" in config or "phpstan.neon.dist" in config:
            lint.append("vendor/bin/phpstan analyse")

        install = ["composer install"]
        if "package.json" in config:
            install.append(f"{pm} install")
        return PartialCommands(
            dev=dev,
            build=build,
            test=["php artisan test"],
            lint=lint,
            install=install,
        )


class LaravelBoostDetector(Detector):
    id = "laravel-boost"
    kind = ModuleKind.LIBRARY
    priority = PriorityClass.META_FRAMEWORK
    display_name = "Laravel Boost"
    description = "Laravel Boost development methodology"
    keywords = ("laravel", "php", "methodology", "ai")
    extensions = (".php", ".blade.php", ".js", ".ts", ".css", ".scss")
    config_files = ("boost.config.js", "boost.config.php", "config/boost.php", "laravel-boost.json", ".boost")

    _dirs = ("resources/boost", "app/Boost", "database/boost", "routes/boost")
    _data_files = (
        "fluxui-pro/core.blade.php",
        "fluxui-free/core.blade.php",
        "pennant/core.blade.php",
        "volt/core.blade.php",
    )
    _npm_packages = ("laravel-boost", "@laravel-boost/cli", "boost-framework")

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        components: list[str] = []
        if context.has_config(*self.config_files) or context.has_file("config/boost.php"):
            card.add(0.8, "Laravel Boost configuration file detected")
        if any(d in f for f in context.files for d in self._dirs):
            card.add(0.6, "Laravel Boost directory structure detected")
        if any(d in f for f in context.files for d in self._data_files):
            card.add(0.7, "Laravel Boost methodology data files detected")
            components.append("boost-methodology")
        if any("boost" in f.lower() for f in context.files):
            card.add(0.4, "Laravel Boost patterns detected in files")
        if context.has_npm(*self._npm_packages):
            card.add(0.5, "Laravel Boost dependencies detected in package.json")

        laravel = has_laravel(context)
        if card.confidence and not laravel:
            card.scale(0.3, "Laravel Boost requires the Laravel framework")
        elif laravel:
            card.add(0.1, "Laravel framework detected (required for Boost)")

        return card.verdict(
            0.6,
            excludes=BOOST_EXCLUDES,
            metadata={"has_laravel": laravel, "components": components},
        )

    def detect_version(self, context: DetectionContext) -> str | None:
        """``version`` from laravel-boost.json, when present."""
        text = _read_text(context, "laravel-boost.json")
        if not text:
            return None
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            return None
        version = data.get("version") if isinstance(data, dict) else None
        return normalize_version(str(version)) if version else None

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        install = ["composer install"]
        if "package.json" in context.detected_stack.config_files:
            install.append(f"{context.package_manager} install")
        return PartialCommands(
            dev=["php artisan serve"],
            build=["php artisan optimize"],
            test=["php artisan test"],
            lint=["./vendor/bin/pint"],
            install=install,
        )


# --- ecosystem --------------------------------------------------------------


class InertiaDetector(LaravelPackageDetector):
    id = "inertia"
    package = "inertiajs/inertia-laravel"
    display_name = "Inertia.js"
    description = "Inertia.js server-driven single-page apps"
    homepage = "https://inertiajs.com"
    keywords = ("laravel", "spa", "vue", "react", "svelte")
    supported_versions = ("1.x", "2.x")
    extensions = (".php", ".js", ".ts", ".jsx", ".tsx", ".vue", ".svelte")

    # adapter package -> the standalone detector it replaces
    _adapters = (
        ("@inertiajs/vue3", "vue"),
        ("@inertiajs/vue2", "vue"),
        ("@inertiajs/react", "react"),
        ("@inertiajs/svelte", "svelte"),
    )
    _page_dirs = ("resources/js/Pages/", "resources/js/pages/", "resources/ts/Pages/", "resources/ts/pages/")

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if has_laravel(context) and context.has_composer("inertiajs/inertia-laravel"):
            card.add(0.7, "inertiajs/inertia-laravel in composer.json")
        excludes: list[str] = []
        for package, replaces in self._adapters:
            if context.has_npm(package):
                card.add(0.6, f"Inertia adapter: {package}")
                if replaces not in excludes:
                    excludes.append(replaces)
        pages = [f for f in context.files if any(d in f for d in self._page_dirs)]
        if pages:
            card.add(min(len(pages) * 0.05, 0.3), f"Inertia pages found: {len(pages)}")
        if any("app/Http/Middleware" in f and "Inertia" in f for f in context.files):
            card.add(0.2, "Inertia middleware found")
        return card.verdict(0.4, excludes=excludes)

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        pm = context.package_manager
        return PartialCommands(
            dev=[f"{pm} run dev", "php artisan serve"],
            build=[f"{pm} run build"],
            install=["composer install", f"{pm} install"],
        )


class LivewireDetector(LaravelPackageDetector):
    id = "livewire"
    package = "livewire/livewire"
    display_name = "Livewire"
    description = "Livewire full-stack components for Laravel"
    homepage = "https://livewire.laravel.com"
    keywords = ("laravel", "php", "components", "reactive")
    supported_versions = ("2.x", "3.x")

    _component_dirs = ("app/Http/Livewire/", "app/Livewire/", "resources/views/livewire/")

    def detect(self, context: DetectionContext) -> DetectionResult:
        if not context.has_composer("laravel/framework"):
            return DetectionResult(evidence=["Laravel not found - required for Livewire"])
        card = Scorecard()
        if has_livewire(context):
            card.add(0.8, "livewire/livewire in composer.json")
        if context.has_composer("livewire/volt"):
            card.add(0.2, "livewire/volt detected (Livewire v3 companion)")
        components = [f for f in context.files if any(d in f for d in self._component_dirs)]
        if components:
            card.add(min(len(components) * 0.1, 0.3), f"Livewire components found: {len(components)}")
        if context.has_file("config/livewire.php"):
            card.add(0.2, "Livewire config file found")
        if any(f.startswith("tests/") and "livewire" in f.lower() for f in context.files):
            card.add(0.1, "Livewire tests found")
        return card.verdict(0.3)

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        test = ["php artisan test"]
        if "phpunit.xml" in context.detected_stack.config_files:
            test.append("./vendor/bin/phpunit --filter=Livewire")
        return PartialCommands(dev=["php artisan serve"], test=test)


class VoltDetector(LaravelPackageDetector):
    id = "volt"
    package = "livewire/volt"
    display_name = "Livewire Volt"
    description = "Single-file Livewire components"
    homepage = "https://livewire.laravel.com/docs/volt"
    keywords = ("laravel", "livewire", "components")
    supported_versions = ("1.x",)

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_composer("livewire/volt"):
            card.add(0.8, "livewire/volt in composer.json")
        blade = context.files_with_suffix(".blade.php")
        if any("volt" in f.lower() for f in blade):
            card.add(0.6, "Volt component patterns detected in Blade files")
        if any("/volt/" in f or f.startswith("volt/") for f in context.files):
            card.add(0.4, "Volt-specific directories found")
        if card.confidence:
            if has_livewire(context):
                card.add(0.3, "Livewire detected (required for Volt)")
            else:
                card.scale(0.5, "Volt requires Livewire")
            if has_laravel(context):
                card.add(0.2, "Laravel framework detected")
        return card.verdict(0.7)

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        return PartialCommands(test=["php artisan test --filter=Volt"])


class FolioDetector(LaravelPackageDetector):
    id = "folio"
    package = "laravel/folio"
    display_name = "Laravel Folio"
    description = "Page-based routing for Laravel"
    homepage = "https://laravel.com/docs/folio"
    keywords = ("laravel", "routing", "pages")
    supported_versions = ("1.x",)

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_composer("laravel/folio"):
            card.add(0.8, "laravel/folio in composer.json")
        pages = [f for f in context.files_under("resources/views/pages") if f.endswith(".blade.php")]
        if pages:
            card.add(0.6, f"Folio pages found: {len(pages)}")
            if any("[" in f for f in pages):
                card.add(0.3, "Folio dynamic route segments found")
        if context.has_file("config/folio.php", "app/Providers/FolioServiceProvider.php"):
            card.add(0.4, "Folio configuration found")
        if card.confidence:
            if has_laravel(context):
                card.add(0.2, "Laravel framework detected")
            else:
                card.scale(0.5, "Folio requires Laravel")
        return card.verdict(0.7, metadata={"pages": len(pages)})

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        return PartialCommands(dev=["php artisan folio:list"])


class PennantDetector(LaravelPackageDetector):
    id = "pennant"
    package = "laravel/pennant"
    display_name = "Laravel Pennant"
    description = "Feature flags for Laravel"
    homepage = "https://laravel.com/docs/pennant"
    keywords = ("laravel", "feature-flags")
    supported_versions = ("1.x",)
    extensions = (".php",)

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_composer("laravel/pennant"):
            card.add(0.8, "laravel/pennant in composer.json")
        if context.has_file("config/pennant.php"):
            card.add(0.4, "Pennant config found")
        if context.files_under("app/Features"):
            card.add(0.3, "Feature classes found in app/Features")
        if card.confidence:
            if has_laravel(context):
                card.add(0.2, "Laravel framework detected")
            else:
                card.scale(0.5, "Pennant requires Laravel")
        return card.verdict(0.7)

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        return PartialCommands(dev=["php artisan pennant:purge"])


# --- Flux UI ----------------------------------------------------------------


def flux_pro_indicators(context: DetectionContext) -> list[str]:
    """Paths (files or root configs) that point at the paid Flux edition."""
    candidates = context.files + context.config_files
    return [p for p in candidates if any(i in p.lower() for i in FLUX_PRO_INDICATORS)]


class FluxFreeDetector(LaravelPackageDetector):
    id = "flux-free"
    package = "livewire/flux"
    display_name = "Flux UI"
    description = "Flux UI component library for Livewire (free edition)"
    homepage = "https://fluxui.dev"
    keywords = ("livewire", "ui", "components")
    supported_versions = ("1.x", "2.x")

    def detect(self, context: DetectionContext) -> DetectionResult:
        if not context.has_composer("livewire/flux"):
            return DetectionResult()
        if flux_pro_indicators(context):
            return DetectionResult(
                evidence=["Flux UI Pro indicators found - free edition not applicable"],
                metadata={"pro": True},
            )
        card = Scorecard()
        card.add(0.7, "livewire/flux in composer.json")
        if has_livewire(context):
            card.add(0.2, "Livewire detected (required for Flux)")
        else:
            card.scale(0.5, "Flux UI requires Livewire")
        if has_laravel(context):
            card.add(0.1, "Laravel framework detected")
        if self._uses_components(context):
            card.add(0.3, "Blade views that may use Flux components")
        return card.verdict(0.6, metadata={"pro": False})

    @staticmethod
    def _uses_components(context: DetectionContext) -> bool:
        return any(
            f.endswith(".blade.php") and ("livewire/" in f or "components/" in f or f.startswith("resources/views/"))
            for f in context.files
        )

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        return PartialCommands(install=["composer install", "php artisan flux:install"])


class FluxProDetector(LaravelPackageDetector):
    id = "flux-pro"
    package = "livewire/flux"
    display_name = "Flux UI Pro"
    description = "Flux UI component library for Livewire (Pro edition)"
    homepage = "https://fluxui.dev/pricing"
    keywords = ("livewire", "ui", "components", "pro")
    supported_versions = ("1.x", "2.x")

    def detect(self, context: DetectionContext) -> DetectionResult:
        if not context.has_composer("livewire/flux"):
            return DetectionResult()
        indicators = flux_pro_indicators(context)
        if not indicators:
            return DetectionResult(evidence=["Flux UI found but no Pro indicators"], metadata={"pro": False})

        card = Scorecard()
        card.add(0.7, "livewire/flux in composer.json")
        card.add(0.3, f"Flux UI Pro indicators: {', '.join(indicators[:3])}")
        if has_livewire(context):
            card.add(0.1, "Livewire detected (required for Flux)")
        else:
            card.scale(0.5, "Flux UI requires Livewire")
        if has_laravel(context):
            card.add(0.1, "Laravel framework detected")
        if self._pro_components(context):
            card.add(0.4, "Flux UI Pro components detected")
        if self._license(context):
            card.add(0.3, "Flux UI Pro license configured")
        return card.verdict(0.8, excludes=["flux-free"], metadata={"pro": True})

    @staticmethod
    def _pro_components(context: DetectionContext) -> bool:
        for path in context.files_with_suffix(".blade.php"):
            lowered = path.lower()
            if "/pro/" in lowered or "flux-pro" in lowered or "/premium/" in lowered:
                return True
            name = lowered.rsplit("/", 1)[-1]
            if any(component in name for component in FLUX_PRO_COMPONENTS):
                return True
        return False

    @staticmethod
    def _license(context: DetectionContext) -> bool:
        if not context.has_config(".env"):
            return False
        env = _read_text(context, ".env")
        return any(key in env for key in FLUX_LICENSE_KEYS)

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        return PartialCommands(install=["composer install", "php artisan flux:install --pro"])
