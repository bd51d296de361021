"""PHP testing and code-style tool detectors."""

from __future__ import annotations

from collections.abc import Mapping

from stackprobe.detect.base import Detector, ModuleKind, PriorityClass, Scorecard
from stackprobe.detect.versions import composer_major
from stackprobe.modules.laravel import has_laravel
from stackprobe.types import DetectionContext, DetectionResult, ModuleContext, PartialCommands

PHPUNIT_CONFIGS = ("phpunit.xml", "phpunit.xml.dist")


def _is_laravel(context: ModuleContext) -> bool:
    return "Laravel" in context.detected_stack.frameworks


class PhpToolDetector(Detector):
    kind = ModuleKind.LIBRARY
    priority = PriorityClass.ECOSYSTEM_TOOL
    guideline_category = "testing"
    extensions = (".php",)
    package: str = ""

    def detect_version(self, context: DetectionContext) -> str | None:
        return composer_major(self.package, context)


class PestDetector(PhpToolDetector):
    id = "pest"
    package = "pestphp/pest"
    display_name = "Pest"
    description = "Pest PHP testing framework"
    homepage = "https://pestphp.com"
    keywords = ("php", "testing", "tdd")
    supported_versions = ("2.x", "3.x")
    config_files = ("tests/Pest.php",) + PHPUNIT_CONFIGS

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_composer("pestphp/pest"):
            card.add(0.8, "pestphp/pest in composer.json")
        if context.has_composer("pestphp/pest-plugin-laravel"):
            card.add(0.2, "Pest Laravel plugin in composer.json")
        if context.has_config(*PHPUNIT_CONFIGS) and card.confidence:
            card.add(0.4, "PHPUnit-compatible config found")
        if context.has_file("tests/Pest.php"):
            card.add(0.3, "tests/Pest.php bootstrap found")
        if any(f.endswith(".pest.php") for f in context.files):
            card.add(0.4, "Pest test files found")
        if card.confidence and has_laravel(context):
            card.add(0.2, "Laravel framework detected")
        return card.verdict(0.7, excludes=["phpunit"])

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        if _is_laravel(context):
            test = ["php artisan test", "php artisan test --parallel", "php artisan test --coverage"]
        else:
            test = ["vendor/bin/pest", "vendor/bin/pest --coverage"]
        return PartialCommands(test=test)


class PHPUnitDetector(PhpToolDetector):
    id = "phpunit"
    package = "phpunit/phpunit"
    display_name = "PHPUnit"
    description = "PHPUnit testing framework"
    homepage = "https://phpunit.de"
    keywords = ("php", "testing", "xunit")
    supported_versions = ("10.x", "11.x")
    config_files = PHPUNIT_CONFIGS

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_composer("phpunit/phpunit"):
            card.add(0.7, "phpunit/phpunit in composer.json")
        found = [name for name in PHPUNIT_CONFIGS if context.has_config(name)]
        if found:
            card.add(0.6, f"PHPUnit config found: {', '.join(found)}")
        if any(f.startswith("tests/") and f.endswith(".php") for f in context.files):
            card.add(0.4, "Tests directory with PHP files found")
        if any(f.endswith("Test.php") for f in context.files):
            card.add(0.3, "PHPUnit test classes found")
        return card.verdict(0.6)

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        if _is_laravel(context):
            test = ["php artisan test", "php artisan test --coverage"]
        else:
            test = ["vendor/bin/phpunit", "vendor/bin/phpunit --coverage-html coverage"]
        return PartialCommands(test=test)


class PintDetector(PhpToolDetector):
    id = "pint"
    package = "laravel/pint"
    display_name = "Laravel Pint"
    description = "Opinionated PHP code style fixer"
    homepage = "https://laravel.com/docs/pint"
    keywords = ("php", "code-style", "linting")
    supported_versions = ("1.x",)
    guideline_category = "feature"
    config_files = ("pint.json",)

    def detect(self, context: DetectionContext) -> DetectionResult:
        card = Scorecard()
        if context.has_composer("laravel/pint"):
            card.add(0.8, "laravel/pint in composer.json")
        if context.has_config("pint.json"):
            card.add(0.4, "pint.json found")
        scripts = (context.composer_json or {}).get("scripts") or {}
        if isinstance(scripts, Mapping) and any("pint" in str(v) for v in scripts.values()):
            card.add(0.3, "Pint referenced in composer scripts")
        if card.confidence and has_laravel(context):
            card.add(0.2, "Laravel framework detected")
        return card.verdict(0.7)

    def generate_commands(self, context: ModuleContext) -> PartialCommands:
        if _is_laravel(context):
            return PartialCommands(lint=["./vendor/bin/pint", "./vendor/bin/pint --test"])
        return PartialCommands(lint=["vendor/bin/pint", "vendor/bin/pint --test"])
