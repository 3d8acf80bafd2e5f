"""Data entries: one displayed detail row of a contact.

Rows from different raw contacts often carry the same phone number or
email. A :class:`DataEntry` collapses with its duplicates so the detail
view shows each value once, keeping the best label and the union of the
usage and primary flags.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any


class RecordError(Exception):
    """Raised when a record cannot be read into a DataEntry."""


_WHITESPACE_RE = re.compile(r'\s+')


@dataclass(frozen=True)
class KeyPolicy:
    """How a DataEntry derives its collapse key."""
    strip_whitespace: bool = True
    casefold: bool = False
    ignore_kinds: tuple[str, ...] = ()

    def normalize(self, value: str) -> str:
        if self.strip_whitespace:
            value = _WHITESPACE_RE.sub(" ", value).strip()
        if self.casefold:
            value = value.casefold()
        return value


@dataclass
class DataEntry:
    kind: str
    value: str
    label: str | None = None
    label_rank: int | None = None
    is_primary: bool = False
    is_super_primary: bool = False
    times_used: int | None = None
    last_time_used: int | None = None
    max_lines: int = 1
    ids: list[int] = field(default_factory=list)
    collapse_count: int = 0
    key_policy: KeyPolicy = field(default_factory=KeyPolicy, repr=False, compare=False)

    def key(self) -> tuple[str, str]:
        """Return ``(kind, normalized value)``.

        Kinds listed in ``key_policy.ignore_kinds`` never collapse: their
        value is replaced by the object id, so every such entry gets a key
        of its own even when record ids repeat.
        """
        if self.kind in self.key_policy.ignore_kinds:
            return self.kind, f"#{id(self)}"
        return self.kind, self.key_policy.normalize(self.value)

    def merge_with(self, other: DataEntry) -> bool:
        """Absorb *other* into this entry.

        Returns False and leaves this entry unchanged when the keys differ.
        """
        if other.key() != self.key():
            return False

        # Lower rank is the more specific label (e.g. "Mobile" over "Other")
        if other.label_rank is not None and (
            self.label_rank is None or other.label_rank < self.label_rank
        ):
            self.label = other.label
            self.label_rank = other.label_rank

        self.max_lines = max(self.max_lines, other.max_lines)

        if other.is_super_primary:
            self.is_super_primary = True
        if self.is_super_primary or other.is_primary:
            self.is_primary = True

        if self.times_used is not None or other.times_used is not None:
            self.times_used = (self.times_used or 0) + (other.times_used or 0)

        if other.last_time_used is not None:
            if self.last_time_used is None or other.last_time_used > self.last_time_used:
                self.last_time_used = other.last_time_used

        self.ids.extend(other.ids)
        self.collapse_count += 1 + other.collapse_count
        return True

    def should_collapse_with(self, other: DataEntry | None) -> bool:
        if other is None:
            return False
        return other.key() == self.key()

    def collapse_with(self, other: DataEntry) -> bool:
        return self.merge_with(other)

    def to_dict(self) -> dict[str, Any]:
        """Serializable view. The first id is written as ``id``."""
        data: dict[str, Any] = {
            "id": self.ids[0] if self.ids else None,
            "kind": self.kind,
            "value": self.value,
        }
        if self.label is not None:
            data["label"] = self.label
        if self.label_rank is not None:
            data["label_rank"] = self.label_rank
        if self.is_primary:
            data["is_primary"] = True
        if self.is_super_primary:
            data["is_super_primary"] = True
        if self.times_used is not None:
            data["times_used"] = self.times_used
        if self.last_time_used is not None:
            data["last_time_used"] = self.last_time_used
        if self.max_lines != 1:
            data["max_lines"] = self.max_lines
        if len(self.ids) > 1:
            data["merged_ids"] = self.ids[1:]
        if self.collapse_count:
            data["collapse_count"] = self.collapse_count
        return data

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        key_policy: KeyPolicy | None = None,
    ) -> DataEntry:
        """Build an entry from a record mapping (the shape of :meth:`to_dict`)."""
        for name in ("kind", "value"):
            if not isinstance(data.get(name), str):
                raise RecordError(f"Record field '{name}' must be a string, got {data.get(name)!r}")
        label = data.get("label")
        if label is not None and not isinstance(label, str):
            raise RecordError(f"Record field 'label' must be a string, got {label!r}")

        ids: list[int] = []
        entry_id = _optional_int(data, "id")
        if entry_id is not None:
            ids.append(entry_id)

        merged_ids = data.get("merged_ids") or []
        if not isinstance(merged_ids, list) or not all(_is_int(i) for i in merged_ids):
            raise RecordError(f"Record field 'merged_ids' must be a list of integers, got {merged_ids!r}")
        ids.extend(merged_ids)

        max_lines = _optional_int(data, "max_lines")
        collapse_count = _optional_int(data, "collapse_count")

        return cls(
            kind=data["kind"],
            value=data["value"],
            label=label,
            label_rank=_optional_int(data, "label_rank"),
            is_primary=bool(data.get("is_primary", False)),
            is_super_primary=bool(data.get("is_super_primary", False)),
            times_used=_optional_int(data, "times_used"),
            last_time_used=_optional_int(data, "last_time_used"),
            max_lines=1 if max_lines is None else max_lines,
            ids=ids,
            collapse_count=collapse_count or 0,
            key_policy=key_policy or KeyPolicy(),
        )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _optional_int(data: dict[str, Any], name: str) -> int | None:
    value = data.get(name)
    if value is not None and not _is_int(value):
        raise RecordError(f"Record field '{name}' must be an integer, got {value!r}")
    return value
