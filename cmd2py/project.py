"""Extract event command lists from project data files.

Only three data files carry event commands: ``MapXXX.json`` (events with
pages), ``CommonEvents.json`` (a flat list) and ``Troops.json`` (battle events
with pages).  The file kind is derived from the file name the same way the
editor names them.  Arrays in these files are indexed by id with a leading
``null`` entry; the loader verifies that every record's ``id`` matches its
position before trusting it.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from .errors import ProjectFileError


_MAP_NAME = re.compile(r"^Map[0-9A-Za-z]+$")


class FileKind(Enum):
    MAP = "map"
    COMMON_EVENTS = "common_events"
    TROOPS = "troops"

    @classmethod
    def detect(cls, path: Path) -> "FileKind":
        if path.suffix != ".json":
            raise ProjectFileError(f"{path}: file must be json")
        if path.stem == "CommonEvents":
            return cls.COMMON_EVENTS
        if path.stem == "Troops":
            return cls.TROOPS
        if _MAP_NAME.match(path.stem) and path.stem != "MapInfos":
            return cls.MAP
        raise ProjectFileError(f"{path}: unknown file type")


@dataclass(frozen=True)
class EventRef:
    """Identifies one command list inside a project file."""

    source: str
    event_id: int
    page: Optional[int] = None

    def __str__(self) -> str:
        if self.page is None:
            return f"{self.source}:{self.event_id}"
        return f"{self.source}:{self.event_id}:{self.page}"


def load_event_lists(
    path: Path,
    *,
    event_id: Optional[int] = None,
    page: Optional[int] = None,
) -> List[Tuple[EventRef, Sequence[Any]]]:
    """Return ``(EventRef, commands)`` pairs from a project data file.

    ``event_id`` restricts the result to one event and ``page`` to one of its
    pages.  Without them every event (and every page) is returned in id order.
    """

    kind = FileKind.detect(path)
    try:
        payload = json.loads(path.read_text("utf-8-sig"))
    except OSError as exc:
        raise ProjectFileError(f"failed to read {path}: {exc}") from exc
    except ValueError as exc:
        raise ProjectFileError(f"failed to parse {path}: {exc}") from exc

    if kind is FileKind.MAP:
        if not isinstance(payload, dict) or not isinstance(payload.get("events"), list):
            raise ProjectFileError(f"{path}: map file has no events list")
        records = payload["events"]
    else:
        if not isinstance(payload, list):
            raise ProjectFileError(f"{path}: expected a list of records")
        records = payload

    if kind is FileKind.COMMON_EVENTS and page is not None:
        raise ProjectFileError("common events do not have pages")

    source = path.stem
    result: List[Tuple[EventRef, Sequence[Any]]] = []
    for record_id, record in _select_records(path, records, event_id):
        if kind is FileKind.COMMON_EVENTS:
            commands = record.get("list")
            if not isinstance(commands, list):
                raise ProjectFileError(f"{path}: common event {record_id} has no command list")
            result.append((EventRef(source, record_id), commands))
            continue

        pages = record.get("pages")
        if not isinstance(pages, list):
            raise ProjectFileError(f"{path}: event {record_id} has no pages")
        if page is not None:
            if not 0 <= page < len(pages):
                raise ProjectFileError(f"{path}: event {record_id} has no page with index {page}")
            selected = [(page, pages[page])]
        else:
            selected = list(enumerate(pages))
        for page_index, page_record in selected:
            commands = page_record.get("list") if isinstance(page_record, dict) else None
            if not isinstance(commands, list):
                raise ProjectFileError(
                    f"{path}: event {record_id} page {page_index} has no command list"
                )
            result.append((EventRef(source, record_id, page_index), commands))
    return result


def _select_records(path: Path, records: List[Any], event_id: Optional[int]):
    if event_id is not None:
        if not 0 <= event_id < len(records) or records[event_id] is None:
            raise ProjectFileError(f"{path}: no event with id {event_id}")
        indices: Sequence[int] = [event_id]
    else:
        indices = range(len(records))
    for index in indices:
        record = records[index]
        if record is None:
            continue
        if not isinstance(record, dict) or record.get("id") != index:
            raise ProjectFileError(f"{path}: record at index {index} does not carry id {index}")
        yield index, record
