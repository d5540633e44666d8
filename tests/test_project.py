"""Tests for extracting command lists from project data files."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cmd2py.errors import ProjectFileError
from cmd2py.project import EventRef, FileKind, load_event_lists


def _page(*codes: int) -> dict:
    return {"list": [{"code": code, "indent": 0, "parameters": []} for code in codes]}


def _write(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload), "utf-8")
    return path


@pytest.mark.parametrize(
    ("name", "kind"),
    [
        ("Map001.json", FileKind.MAP),
        ("CommonEvents.json", FileKind.COMMON_EVENTS),
        ("Troops.json", FileKind.TROOPS),
    ],
)
def test_detect_file_kind(name: str, kind: FileKind) -> None:
    assert FileKind.detect(Path(name)) is kind


@pytest.mark.parametrize("name", ["MapInfos.json", "Actors.json", "Map001.txt", "Map.json"])
def test_detect_rejects_other_files(name: str) -> None:
    with pytest.raises(ProjectFileError):
        FileKind.detect(Path(name))


def test_map_events_yield_every_page(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "Map002.json",
        {"events": [None, {"id": 1, "pages": [_page(230, 0), _page(0)]}, None, {"id": 3, "pages": [_page(0)]}]},
    )
    lists = load_event_lists(path)
    assert [str(ref) for ref, _ in lists] == ["Map002:1:0", "Map002:1:1", "Map002:3:0"]
    assert [row["code"] for row in lists[0][1]] == [230, 0]


def test_map_event_page_selection(tmp_path: Path) -> None:
    path = _write(tmp_path / "Map002.json", {"events": [None, {"id": 1, "pages": [_page(0), _page(230, 0)]}]})
    ((ref, commands),) = load_event_lists(path, event_id=1, page=1)
    assert ref == EventRef("Map002", 1, 1)
    assert len(commands) == 2

    with pytest.raises(ProjectFileError):
        load_event_lists(path, event_id=1, page=2)
    with pytest.raises(ProjectFileError):
        load_event_lists(path, event_id=5)


def test_common_events(tmp_path: Path) -> None:
    path = _write(tmp_path / "CommonEvents.json", [None, {"id": 1, "list": [{"code": 0, "indent": 0, "parameters": []}]}])
    ((ref, commands),) = load_event_lists(path)
    assert str(ref) == "CommonEvents:1"
    assert commands[0]["code"] == 0

    with pytest.raises(ProjectFileError):
        load_event_lists(path, page=0)


def test_troops_are_read_with_utf8_bom(tmp_path: Path) -> None:
    path = tmp_path / "Troops.json"
    path.write_bytes(b"\xef\xbb\xbf" + json.dumps([None, {"id": 1, "pages": [_page(0)]}]).encode("utf-8"))
    ((ref, _),) = load_event_lists(path)
    assert str(ref) == "Troops:1:0"


def test_mismatched_record_id_is_rejected(tmp_path: Path) -> None:
    path = _write(tmp_path / "CommonEvents.json", [None, {"id": 2, "list": []}])
    with pytest.raises(ProjectFileError):
        load_event_lists(path)


def test_unreadable_json_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "Map001.json"
    path.write_text("{not json", "utf-8")
    with pytest.raises(ProjectFileError):
        load_event_lists(path)
    _write(path, {"events": None})
    with pytest.raises(ProjectFileError):
        load_event_lists(path)
