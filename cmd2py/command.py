"""Raw event command records and the asset payloads embedded in them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple

from .errors import SchemaMismatch


@dataclass(frozen=True)
class RawCommand:
    """One stored row of an event's command list."""

    code: int
    indent: int
    parameters: Tuple[Any, ...] = ()

    @classmethod
    def from_json(cls, entry: Mapping[str, Any]) -> "RawCommand":
        if not isinstance(entry, Mapping):
            raise SchemaMismatch(f"event command must be an object, got {type(entry).__name__}")
        code = entry.get("code")
        indent = entry.get("indent")
        parameters = entry.get("parameters", [])
        if not _is_int(code):
            raise SchemaMismatch(f"event command code must be an integer, got {code!r}")
        if not _is_int(indent) or indent < 0:
            raise SchemaMismatch(f"event command indent must be a non-negative integer, got {indent!r}")
        if not isinstance(parameters, (list, tuple)):
            raise SchemaMismatch("event command parameters must be a list")
        return cls(code=code, indent=indent, parameters=tuple(parameters))


def coerce_commands(entries: Sequence[Any]) -> Tuple[RawCommand, ...]:
    """Accept either :class:`RawCommand` objects or their JSON mappings."""

    commands = []
    for index, entry in enumerate(entries):
        if isinstance(entry, RawCommand):
            commands.append(entry)
            continue
        try:
            commands.append(RawCommand.from_json(entry))
        except SchemaMismatch as exc:
            raise SchemaMismatch(str(exc), command_index=index) from None
    return tuple(commands)


@dataclass(frozen=True)
class AudioFile:
    name: str
    pan: int
    pitch: int
    volume: int

    @classmethod
    def from_json(cls, value: Any) -> "AudioFile":
        if not isinstance(value, Mapping):
            raise SchemaMismatch(f"audio file must be an object, got {type(value).__name__}")
        name = value.get("name")
        if not isinstance(name, str):
            raise SchemaMismatch("audio file name must be a string")
        numbers = {}
        for key in ("pan", "pitch", "volume"):
            number = value.get(key)
            if not _is_int(number):
                raise SchemaMismatch(f"audio file {key} must be an integer, got {number!r}")
            numbers[key] = number
        return cls(name=name, **numbers)


@dataclass(frozen=True)
class MoveCommand:
    code: int
    parameters: Tuple[Any, ...] = ()
    indent: Optional[int] = None

    @classmethod
    def from_json(cls, value: Any) -> "MoveCommand":
        if not isinstance(value, Mapping):
            raise SchemaMismatch("move command must be an object")
        code = value.get("code")
        if not _is_int(code):
            raise SchemaMismatch(f"move command code must be an integer, got {code!r}")
        parameters = value.get("parameters") or []
        if not isinstance(parameters, (list, tuple)):
            raise SchemaMismatch("move command parameters must be a list")
        indent = value.get("indent")
        if indent is not None and not _is_int(indent):
            raise SchemaMismatch(f"move command indent must be an integer, got {indent!r}")
        return cls(code=code, parameters=tuple(parameters), indent=indent)


@dataclass(frozen=True)
class MoveRoute:
    """Scripted movement path attached to a set-movement-route command."""

    commands: Tuple[MoveCommand, ...]
    repeat: bool
    skippable: bool
    wait: bool

    @classmethod
    def from_json(cls, value: Any) -> "MoveRoute":
        if not isinstance(value, Mapping):
            raise SchemaMismatch("move route must be an object")
        steps = value.get("list")
        if not isinstance(steps, (list, tuple)):
            raise SchemaMismatch("move route list must be a list")
        flags = {}
        for key in ("repeat", "skippable", "wait"):
            flag = value.get(key)
            if not isinstance(flag, bool):
                raise SchemaMismatch(f"move route {key} must be a boolean, got {flag!r}")
            flags[key] = flag
        return cls(commands=tuple(MoveCommand.from_json(step) for step in steps), **flags)


@dataclass(frozen=True)
class ImageFile:
    """Picture placement decoded from show/move picture commands."""

    name: str
    origin: int
    x: Any
    y: Any
    scale_x: int
    scale_y: int
    opacity: int
    blend_mode: int


def move_command_matches(step: MoveCommand, raw: Any) -> bool:
    """Return ``True`` when a raw 505 payload duplicates ``step``."""

    try:
        candidate = MoveCommand.from_json(raw)
    except SchemaMismatch:
        return False
    if candidate.code != step.code or candidate.parameters != step.parameters:
        return False
    return candidate.indent is None or step.indent is None or candidate.indent == step.indent


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)

