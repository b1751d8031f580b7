"""Task-file loading and schema validation."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from ziptree.errors import ArchiveError
from ziptree.types import ArchiveTask, PackSource

# --- Schema loaders ---------------------------------------------------------


def _load_schema(package: str, resource_name: str) -> dict:
    with resources.files(package).joinpath(resource_name).open("r", encoding="utf-8") as f:
        return json.load(f)


def _task_schema() -> dict:
    return _load_schema("ziptree.schema", "task.schema.json")


# --- Public validators ------------------------------------------------------


def validate_task(data: dict) -> None:
    try:
        Draft202012Validator(_task_schema()).validate(data)
    except ValidationError as exc:
        raise ArchiveError(f"Invalid pack task: {exc.message}") from exc


def load_task(path: Path) -> ArchiveTask:
    """Read, validate and parse a JSON pack task.

    Relative ``source`` and ``destination`` paths are taken relative to the
    directory holding the task file, so tasks can be run from anywhere.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ArchiveError(f"Failed to read pack task: {path}") from exc
    validate_task(data)

    base = path.resolve().parent
    return ArchiveTask(
        destination=str(base / data["destination"]),
        sources=[
            PackSource(source=str(base / s["source"]), prefix=s.get("prefix", ""))
            for s in data["sources"]
        ],
    )
