"""Tests for collapser.records — loading, dumping, group reports."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from collapser.entry import DataEntry, KeyPolicy
from collapser.records import RecordError, dump_records, group_report, load_records


RECORDS = [
    {"id": 10, "kind": "phone", "value": "555 1234", "label": "Home", "label_rank": 1},
    {"id": 11, "kind": "email", "value": "Ann@Example.com"},
    {"id": 12, "kind": "phone", "value": "555  1234", "times_used": 2},
    {"id": 13, "kind": "email", "value": "ann@example.com"},
]


@pytest.fixture
def records_file(tmp_path: Path) -> Path:
    path = tmp_path / "records.yaml"
    path.write_text(yaml.safe_dump(RECORDS))
    return path


class TestLoadRecords:
    def test_loads_list(self, records_file: Path) -> None:
        entries = load_records(records_file)
        assert [e.ids for e in entries] == [[10], [11], [12], [13]]
        assert entries[0].label == "Home"

    def test_loads_records_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "records.json"
        path.write_text(json.dumps({"records": RECORDS}))
        assert len(load_records(path)) == 4

    def test_assigns_positional_ids(self, tmp_path: Path) -> None:
        path = tmp_path / "records.yaml"
        path.write_text(yaml.safe_dump([
            {"kind": "phone", "value": "1"},
            {"kind": "phone", "value": "2"},
        ]))
        assert [e.ids for e in load_records(path)] == [[1], [2]]

    def test_applies_key_policy(self, records_file: Path) -> None:
        entries = load_records(records_file, KeyPolicy(casefold=True))
        assert entries[1].key() == entries[3].key()

    def test_rejects_scalar(self, tmp_path: Path) -> None:
        path = tmp_path / "records.yaml"
        path.write_text("just a string\n")
        with pytest.raises(RecordError, match="list of records"):
            load_records(path)

    def test_rejects_non_mapping_record(self, tmp_path: Path) -> None:
        path = tmp_path / "records.yaml"
        path.write_text(yaml.safe_dump([{"kind": "phone", "value": "1"}, "oops"]))
        with pytest.raises(RecordError, match="record 2 is not a mapping"):
            load_records(path)

    def test_reports_record_position(self, tmp_path: Path) -> None:
        path = tmp_path / "records.yaml"
        path.write_text(yaml.safe_dump([{"kind": "phone"}]))
        with pytest.raises(RecordError, match="record 1: .*'value'"):
            load_records(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "records.yaml"
        path.write_text("records: [unclosed\n")
        with pytest.raises(RecordError, match="Cannot parse"):
            load_records(path)


class TestDumpRecords:
    def test_yaml_round_trip(self, records_file: Path) -> None:
        entries = load_records(records_file)
        dumped = yaml.safe_load(dump_records(entries, "yaml"))
        assert [r["id"] for r in dumped["records"]] == [10, 11, 12, 13]

    def test_json(self) -> None:
        entries = [DataEntry(kind="phone", value="1", ids=[1])]
        payload = json.loads(dump_records(entries, "json"))
        assert payload == {"records": [{"id": 1, "kind": "phone", "value": "1"}]}

    def test_yaml_keeps_field_order(self) -> None:
        entries = [DataEntry(kind="phone", value="1", ids=[1])]
        text = dump_records(entries)
        assert text.index("id:") < text.index("kind:") < text.index("value:")

    def test_unknown_format(self) -> None:
        with pytest.raises(ValueError, match="Unknown format"):
            dump_records([], "xml")


class TestGroupReport:
    def test_lists_colliding_groups(self, records_file: Path) -> None:
        report = group_report(load_records(records_file))
        assert report == [(("phone", "555 1234"), [10, 12])]

    def test_policy_changes_groups(self, records_file: Path) -> None:
        report = group_report(load_records(records_file, KeyPolicy(casefold=True)))
        assert [ids for _, ids in report] == [[10, 12], [11, 13]]

    def test_does_not_mutate(self, records_file: Path) -> None:
        entries = load_records(records_file)
        group_report(entries)
        assert len(entries) == 4
        assert all(e.collapse_count == 0 for e in entries)

    def test_empty(self) -> None:
        assert group_report([]) == []
