"""Read and write record files.

A record file is YAML or JSON holding either a list of record mappings or a
mapping with a ``records`` list. Each record has the shape produced by
:meth:`collapser.entry.DataEntry.to_dict`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from collapser.entry import DataEntry, KeyPolicy, RecordError

OUTPUT_FORMATS = ("yaml", "json")

__all__ = [
    "OUTPUT_FORMATS",
    "RecordError",
    "dump_records",
    "group_report",
    "load_records",
]


def load_records(path: Path, key_policy: KeyPolicy | None = None) -> list[DataEntry]:
    """Load entries from *path*.

    Records without an ``id`` get their 1-based position in the file.
    """
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise RecordError(f"Cannot parse {path}: {exc}") from exc

    if isinstance(raw, dict):
        raw = raw.get("records")
    if not isinstance(raw, list):
        raise RecordError(
            f"{path} must hold a list of records or a mapping with a 'records' list"
        )

    entries: list[DataEntry] = []
    for position, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            raise RecordError(f"{path}: record {position} is not a mapping")
        if item.get("id") is None:
            item = {**item, "id": position}
        try:
            entries.append(DataEntry.from_dict(item, key_policy))
        except RecordError as exc:
            raise RecordError(f"{path}: record {position}: {exc}") from exc
    return entries


def dump_records(entries: list[DataEntry], fmt: str = "yaml") -> str:
    """Render entries as ``{"records": [...]}`` in YAML or JSON."""
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown format '{fmt}'; expected one of {list(OUTPUT_FORMATS)}")

    payload: dict[str, Any] = {"records": [e.to_dict() for e in entries]}
    if fmt == "json":
        return json.dumps(payload, indent=2) + "\n"
    return yaml.safe_dump(payload, sort_keys=False, allow_unicode=True)


def group_report(entries: list[DataEntry]) -> list[tuple[tuple[str, str], list[int]]]:
    """List the groups that would collapse, in first-seen order.

    Returns ``(key, ids)`` pairs for keys shared by more than one entry.
    Nothing is mutated.
    """
    groups: dict[tuple[str, str], list[DataEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.key(), []).append(entry)
    return [
        (k, [i for e in members for i in e.ids])
        for k, members in groups.items()
        if len(members) > 1
    ]
