"""Schema validation for the config file and the normalized stack."""

from __future__ import annotations

import json
from importlib import resources

from jsonschema import Draft202012Validator

# --- Schema loaders ---------------------------------------------------------


def _load_schema(package: str, resource_name: str) -> dict:
    with resources.files(package).joinpath(resource_name).open("r", encoding="utf-8") as f:
        return json.load(f)


def _config_schema() -> dict:
    return _load_schema("stackprobe.schema", "config.schema.json")


def _stack_schema() -> dict:
    return _load_schema("stackprobe.schema", "stack.schema.json")


# --- Public validators ------------------------------------------------------


def validate_config(data: dict) -> None:
    Draft202012Validator(_config_schema()).validate(data)


def validate_stack(data: dict) -> None:
    Draft202012Validator(_stack_schema()).validate(data)
