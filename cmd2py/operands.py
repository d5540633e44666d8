"""Schema driven decoding of raw command parameters.

Event command parameters are stored as a flat positional list whose layout
depends on the command code and, for the larger commands, on one or more
discriminant slots inside the list itself.  Rather than hand-writing a parser
for every command the registry describes each layout declaratively with the
small field vocabulary defined below and :func:`decode_operands` walks the
description once, strictly in order.

The decoder never guesses.  A missing or surplus parameter and a value whose
JSON type disagrees with the declaration raise :class:`SchemaMismatch`; a value
with the right type but outside of its domain (an IntBool that is neither 0
nor 1, an undeclared enumeration member or discriminant) raises
:class:`DataError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Sequence, Tuple, Union

from .command import AudioFile, MoveRoute
from .errors import DataError, SchemaMismatch


# ---------------------------------------------------------------------------
# decoded values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MaybeRef:
    """Either a literal value or the index of a game variable holding it."""

    value: Any
    is_ref: bool = False

    @classmethod
    def literal(cls, value: Any) -> "MaybeRef":
        return cls(value, False)

    @classmethod
    def ref(cls, index: int) -> "MaybeRef":
        return cls(index, True)

    @classmethod
    def decode(cls, flag: Any, slot: Any, literal_kind: str = "int") -> "MaybeRef":
        _check_kind("int", flag, "reference flag")
        is_ref = decode_int_bool(flag, "reference flag")
        if is_ref:
            _check_kind("int", slot, "variable index")
        else:
            _check_kind(literal_kind, slot, "literal")
        return cls(slot, is_ref)

    def encode(self) -> Tuple[int, Any]:
        return (1 if self.is_ref else 0, self.value)


@dataclass(frozen=True)
class Tagged:
    """Payload of a tagged field: the selected case plus its own operands."""

    tag: str
    discriminant: int
    operands: Mapping[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.operands[key]


Operands = Dict[str, Any]


def decode_int_bool(value: Any, name: str = "value") -> bool:
    """Decode a wire 0/1 boolean, rejecting every other value."""

    if isinstance(value, bool) or not isinstance(value, int):
        raise DataError(f"{name} must be 0 or 1, got {value!r}")
    if value == 0:
        return False
    if value == 1:
        return True
    raise DataError(f"{name} must be 0 or 1, got {value!r}")


# ---------------------------------------------------------------------------
# schema vocabulary
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Field:
    """A single positional slot of a given value kind."""

    name: str
    kind: str = "int"
    optional: bool = False


@dataclass(frozen=True)
class FlagField:
    """IntBool slot selecting literal (0) or variable reference (1)."""

    name: str


@dataclass(frozen=True)
class RefField:
    """Slot interpreted through a previously decoded :class:`FlagField`."""

    name: str
    flag: str
    kind: str = "int"


@dataclass(frozen=True)
class EnumField:
    """Integer slot restricted to the declared members."""

    name: str
    members: Mapping[int, str]


@dataclass(frozen=True)
class Case:
    tag: str
    fields: Tuple["FieldSpec", ...] = ()


@dataclass(frozen=True)
class TaggedField:
    """Discriminant slot followed by the fields of the selected case."""

    name: str
    cases: Mapping[int, Case]


FieldSpec = Union[Field, FlagField, RefField, EnumField, TaggedField]


@dataclass(frozen=True)
class Schema:
    fields: Tuple[FieldSpec, ...] = ()


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return _is_int(value) or isinstance(value, float)


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _is_number_list(value: Any) -> bool:
    return isinstance(value, list) and all(_is_number(item) for item in value)


_CHECKS: Dict[str, Callable[[Any], bool]] = {
    "int": _is_int,
    "number": _is_number,
    "str": lambda value: isinstance(value, str),
    "bool": lambda value: isinstance(value, bool),
    "intbool": _is_int,
    "str_list": _is_str_list,
    "number_list": _is_number_list,
    "mapping": lambda value: isinstance(value, Mapping),
    "audio": lambda value: isinstance(value, Mapping),
    "move_route": lambda value: isinstance(value, Mapping),
    "any": lambda value: True,
}


def _check_kind(kind: str, value: Any, name: str) -> None:
    check = _CHECKS.get(kind)
    if check is None:
        raise ValueError(f"unknown field kind {kind!r}")
    if not check(value):
        raise SchemaMismatch(f"parameter {name!r} must be of kind {kind}, got {value!r}")


def _convert(kind: str, value: Any, name: str) -> Any:
    _check_kind(kind, value, name)
    if kind == "intbool":
        return decode_int_bool(value, name)
    if kind == "str_list" or kind == "number_list":
        return tuple(value)
    if kind == "mapping":
        return dict(value)
    if kind == "audio":
        return AudioFile.from_json(value)
    if kind == "move_route":
        return MoveRoute.from_json(value)
    return value


# ---------------------------------------------------------------------------
# decoder
# ---------------------------------------------------------------------------


class _Cursor:
    def __init__(self, parameters: Sequence[Any]) -> None:
        self.parameters = parameters
        self.position = 0
        self.flags: Dict[str, bool] = {}

    def exhausted(self) -> bool:
        return self.position >= len(self.parameters)

    def take(self, name: str) -> Any:
        if self.exhausted():
            raise SchemaMismatch(
                f"failed to read parameter {name!r}: expected more than "
                f"{len(self.parameters)} parameters"
            )
        value = self.parameters[self.position]
        self.position += 1
        return value


def decode_operands(schema: Schema, parameters: Sequence[Any]) -> Operands:
    """Decode ``parameters`` according to ``schema``.

    The returned mapping contains one entry per declared field.  Flag fields
    decode to booleans, reference fields to :class:`MaybeRef` instances and
    tagged fields to :class:`Tagged` payloads carrying their own operands.
    """

    cursor = _Cursor(list(parameters))
    operands = _decode_fields(schema.fields, cursor)
    if not cursor.exhausted():
        raise SchemaMismatch(
            f"expected {cursor.position} parameters, but got {len(cursor.parameters)}"
        )
    return operands


def _decode_fields(fields: Sequence[FieldSpec], cursor: _Cursor) -> Operands:
    operands: Operands = {}
    for spec in fields:
        if isinstance(spec, Field):
            if spec.optional and cursor.exhausted():
                operands[spec.name] = None
                continue
            operands[spec.name] = _convert(spec.kind, cursor.take(spec.name), spec.name)
        elif isinstance(spec, FlagField):
            raw = cursor.take(spec.name)
            _check_kind("int", raw, spec.name)
            flag = decode_int_bool(raw, spec.name)
            cursor.flags[spec.name] = flag
            operands[spec.name] = flag
        elif isinstance(spec, RefField):
            if spec.flag not in cursor.flags:
                raise ValueError(f"reference field {spec.name!r} precedes flag {spec.flag!r}")
            slot = cursor.take(spec.name)
            is_ref = cursor.flags[spec.flag]
            _check_kind("int" if is_ref else spec.kind, slot, spec.name)
            operands[spec.name] = MaybeRef(slot, is_ref)
        elif isinstance(spec, EnumField):
            raw = cursor.take(spec.name)
            _check_kind("int", raw, spec.name)
            if raw not in spec.members:
                raise DataError(f"{spec.name} value {raw} is not one of {sorted(spec.members)}")
            operands[spec.name] = spec.members[raw]
        elif isinstance(spec, TaggedField):
            raw = cursor.take(spec.name)
            _check_kind("int", raw, spec.name)
            case = spec.cases.get(raw)
            if case is None:
                raise DataError(f"unsupported {spec.name} kind {raw}")
            operands[spec.name] = Tagged(case.tag, raw, _decode_fields(case.fields, cursor))
        else:  # pragma: no cover - schema construction error
            raise TypeError(f"unsupported field specification {spec!r}")
    return operands

