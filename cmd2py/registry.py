"""Command code registry shared by both editor generations.

RPG Maker MV and MZ store event commands with the same numeric codes and, for
the overwhelming majority of commands, the same positional parameter layout.
The registry therefore keeps a single base table describing every supported
code and a narrow override table per :class:`EngineVariant` that replaces or
removes the few kinds which genuinely differ (the MZ speaker name on show
text, the plugin command generations, the move picture easing and the
additional troop designation).

Each :class:`CommandKind` also records the structural role of the code so the
control-flow reconstructor can tell openers, middle markers and closers apart
without hard-coding numbers, and continuation rows name the lead code whose
payload they extend.  The tables are built once at import time and are never
mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from .errors import UnrecognizedCode
from .operands import Case, EnumField, Field, FlagField, RefField, Schema, TaggedField


class EngineVariant(Enum):
    """Supported editor generations."""

    MV = "mv"
    MZ = "mz"

    @classmethod
    def parse(cls, text: str) -> "EngineVariant":
        try:
            return cls(text.lower())
        except ValueError:
            raise ValueError(f"unknown engine variant {text!r}") from None


class Role(Enum):
    LEAF = auto()
    OPEN = auto()
    SPLIT = auto()
    ARM = auto()
    CLOSE = auto()
    CONTINUATION = auto()


@dataclass(frozen=True)
class CommandKind:
    code: int
    name: str
    schema: Schema
    role: Role = Role.LEAF
    family: Optional[str] = None
    lead: Optional[int] = None

    @property
    def is_marker(self) -> bool:
        return self.role in (Role.SPLIT, Role.ARM, Role.CLOSE)


@dataclass(frozen=True)
class FamilySpec:
    """Marker layout of one control-flow family.

    ``markers`` maps every middle marker code to the number of times it may
    appear inside a single frame (``None`` for unlimited).  ``ordered`` markers
    must appear in ascending code order.  ``empty_header`` requires that no
    command sits between the opener and the first middle marker.
    """

    name: str
    opener: int
    closer: int
    markers: Mapping[int, Optional[int]]
    ordered: bool = False
    empty_header: bool = False


FAMILIES: Mapping[str, FamilySpec] = MappingProxyType(
    {
        "conditional": FamilySpec("conditional", 111, 412, {411: 1}),
        "loop": FamilySpec("loop", 112, 413, {}),
        "choice": FamilySpec("choice", 102, 404, {402: None, 403: 1}, ordered=True, empty_header=True),
        "battle_result": FamilySpec("battle_result", 601, 604, {602: 1, 603: 1}, ordered=True),
    }
)


# ---------------------------------------------------------------------------
# schema helpers
# ---------------------------------------------------------------------------


def _schema(*fields) -> Schema:
    return Schema(tuple(fields))


def _no_params() -> Schema:
    return Schema(())


def _members(*names: str, start: int = 0) -> Dict[int, str]:
    return {index: name for index, name in enumerate(names, start)}


INCREASE_DECREASE = _members("increase", "decrease")
ADD_REMOVE = _members("add", "remove")
COMPARISONS = _members("==", ">=", "<=", ">", "<", "!=")
ASSIGN_OPERATIONS = _members("=", "+=", "-=", "*=", "/=", "%=")

ACTOR_DATA = _members("level", "exp", "hp", "mp", *(f"param_{index}" for index in range(8)))
ENEMY_DATA = _members("hp", "mp", *(f"param_{index}" for index in range(8)))
CHARACTER_DATA = _members("map_x", "map_y", "direction", "screen_x", "screen_y")
OTHER_DATA = _members(
    "map_id",
    "party_members",
    "gold",
    "steps",
    "play_time",
    "timer",
    "save_count",
    "battle_count",
    "win_count",
    "escape_count",
)
LOCATION_INFO = _members(
    "terrain_tag",
    "event_id",
    "tile_id_layer_1",
    "tile_id_layer_2",
    "tile_id_layer_3",
    "tile_id_layer_4",
    "region_id",
)
TROOP_ID_KINDS = _members("constant", "variable", "random_encounter")


def _unused(name: str = "unused") -> Field:
    return Field(name, "any", optional=True)


def _ref_pair(name: str) -> Tuple[FlagField, RefField]:
    flag = f"{name}_is_variable"
    return FlagField(flag), RefField(name, flag)


def _conditional_branch_schema() -> Schema:
    actor_checks = {
        0: Case("in_party"),
        1: Case("name", (Field("name", "str"),)),
        2: Case("class", (Field("class_id"),)),
        3: Case("skill", (Field("skill_id"),)),
        4: Case("weapon", (Field("weapon_id"),)),
        5: Case("armor", (Field("armor_id"),)),
        6: Case("state", (Field("state_id"),)),
    }
    enemy_checks = {
        0: Case("appeared"),
        1: Case("state", (Field("state_id"),)),
    }
    cases = {
        0: Case("switch", (Field("switch_id"), Field("is_off", "intbool"))),
        1: Case(
            "variable",
            (Field("variable_id"), *_ref_pair("rhs"), EnumField("comparison", COMPARISONS)),
        ),
        2: Case("self_switch", (Field("key", "str"), Field("is_off", "intbool"))),
        3: Case("timer", (Field("seconds"), EnumField("comparison", _members(">=", "<=")))),
        4: Case("actor", (Field("actor_id"), TaggedField("check", actor_checks))),
        5: Case("enemy", (Field("enemy_index"), TaggedField("check", enemy_checks))),
        6: Case("character", (Field("character_id"), Field("direction"))),
        7: Case("gold", (Field("amount"), EnumField("comparison", _members(">=", "<=", "<")))),
        8: Case("item", (Field("item_id"),)),
        9: Case("weapon", (Field("weapon_id"), Field("include_equipped", "bool"))),
        10: Case("armor", (Field("armor_id"), Field("include_equipped", "bool"))),
        11: Case("button", (Field("button", "str"),)),
        12: Case("script", (Field("script", "str"),)),
    }
    return _schema(TaggedField("condition", cases))


def _control_variables_schema() -> Schema:
    game_data = {
        0: Case("item", (Field("item_id"), _unused())),
        1: Case("weapon", (Field("weapon_id"), _unused())),
        2: Case("armor", (Field("armor_id"), _unused())),
        3: Case("actor", (Field("actor_id"), EnumField("check", ACTOR_DATA))),
        4: Case("enemy", (Field("enemy_index"), EnumField("check", ENEMY_DATA))),
        5: Case("character", (Field("character_id"), EnumField("check", CHARACTER_DATA))),
        6: Case("party", (Field("member_index"), _unused())),
        7: Case("other", (EnumField("check", OTHER_DATA), _unused())),
    }
    operand_cases = {
        0: Case("constant", (Field("value"),)),
        1: Case("variable", (Field("variable_id"),)),
        2: Case("random", (Field("min"), Field("max"))),
        3: Case("game_data", (TaggedField("data", game_data),)),
        4: Case("script", (Field("script", "str"),)),
    }
    return _schema(
        Field("start_id"),
        Field("end_id"),
        EnumField("operation", ASSIGN_OPERATIONS),
        TaggedField("operand", operand_cases),
    )


def _location_field() -> TaggedField:
    return TaggedField(
        "designation",
        {
            0: Case("direct", (Field("x"), Field("y"))),
            1: Case("variable", (Field("x"), Field("y"))),
            2: Case("character", (Field("character_id"), _unused())),
        },
    )


def _picture_fields() -> Tuple:
    return (
        Field("origin"),
        *_ref_pair("x"),
        RefField("y", "x_is_variable"),
        Field("scale_x", "number"),
        Field("scale_y", "number"),
        Field("opacity", "number"),
        Field("blend_mode"),
    )


def _actor_target() -> Tuple[FlagField, RefField]:
    return _ref_pair("actor_id")


def _battle_processing_schema(troop_kinds: Mapping[int, str]) -> Schema:
    return _schema(
        EnumField("troop_kind", troop_kinds),
        Field("troop_id"),
        Field("can_escape", "bool"),
        Field("can_lose", "bool"),
    )


def _show_text_schema(with_speaker: bool) -> Schema:
    fields = [
        Field("face_name", "str"),
        Field("face_index"),
        Field("background"),
        Field("position_type"),
    ]
    if with_speaker:
        fields.append(Field("speaker_name", "str", optional=True))
    return _schema(*fields)


def _move_picture_schema(with_easing: bool) -> Schema:
    fields = [
        Field("picture_id"),
        Field("unused", "any"),
        *_picture_fields(),
        Field("duration"),
        Field("wait", "bool"),
    ]
    if with_easing:
        fields.append(Field("easing_type", optional=True))
    return _schema(*fields)


_LINE = _schema(Field("line", "str"))


def _kind(code: int, name: str, schema: Schema, **extra) -> CommandKind:
    return CommandKind(code=code, name=name, schema=schema, **extra)


def _continuation(code: int, name: str, lead: int, schema: Schema = _LINE) -> CommandKind:
    return CommandKind(code=code, name=name, schema=schema, role=Role.CONTINUATION, lead=lead)


def _marker(code: int, name: str, role: Role, family: str, schema: Optional[Schema] = None) -> CommandKind:
    return CommandKind(
        code=code, name=name, schema=schema or _no_params(), role=role, family=family
    )


_BASE_KINDS: Tuple[CommandKind, ...] = (
    _kind(0, "NOP", _no_params()),
    _kind(101, "SHOW_TEXT", _show_text_schema(False)),
    _continuation(401, "TEXT_DATA", 101),
    _kind(
        102,
        "SHOW_CHOICES",
        _schema(
            Field("choices", "str_list"),
            Field("cancel_type"),
            Field("default_type"),
            Field("position_type"),
            Field("background"),
        ),
        role=Role.OPEN,
        family="choice",
    ),
    _marker(402, "WHEN", Role.ARM, "choice", _schema(Field("choice_index"), Field("choice_name", "str"))),
    _marker(403, "WHEN_CANCEL", Role.ARM, "choice", _schema(_unused("cancel_index"), _unused())),
    _marker(404, "WHEN_END", Role.CLOSE, "choice"),
    _kind(105, "SHOW_SCROLLING_TEXT", _schema(Field("speed"), Field("no_fast", "bool"))),
    _continuation(405, "SCROLLING_TEXT_DATA", 105),
    _kind(108, "COMMENT", _LINE),
    _continuation(408, "COMMENT_EXTRA", 108),
    _kind(111, "CONDITIONAL_BRANCH", _conditional_branch_schema(), role=Role.OPEN, family="conditional"),
    _marker(411, "ELSE", Role.SPLIT, "conditional"),
    _marker(412, "CONDITIONAL_BRANCH_END", Role.CLOSE, "conditional"),
    _kind(112, "LOOP", _no_params(), role=Role.OPEN, family="loop"),
    _marker(413, "REPEAT_ABOVE", Role.CLOSE, "loop"),
    _kind(113, "BREAK_LOOP", _no_params()),
    _kind(115, "EXIT_EVENT_PROCESSING", _no_params()),
    _kind(117, "COMMON_EVENT", _schema(Field("common_event_id"))),
    _kind(118, "LABEL", _schema(Field("name", "str"))),
    _kind(119, "JUMP_TO_LABEL", _schema(Field("name", "str"))),
    _kind(121, "CONTROL_SWITCHES", _schema(Field("start_id"), Field("end_id"), Field("is_off", "intbool"))),
    _kind(122, "CONTROL_VARIABLES", _control_variables_schema()),
    _kind(123, "CONTROL_SELF_SWITCH", _schema(Field("key", "str"), Field("is_off", "intbool"))),
    _kind(
        124,
        "CONTROL_TIMER",
        _schema(
            TaggedField(
                "operation",
                {0: Case("start", (Field("seconds"),)), 1: Case("stop", (_unused("seconds"),))},
            )
        ),
    ),
    _kind(125, "CHANGE_GOLD", _schema(EnumField("operation", INCREASE_DECREASE), *_ref_pair("value"))),
    _kind(
        126,
        "CHANGE_ITEMS",
        _schema(Field("item_id"), EnumField("operation", INCREASE_DECREASE), *_ref_pair("value")),
    ),
    _kind(
        127,
        "CHANGE_WEAPONS",
        _schema(
            Field("weapon_id"),
            EnumField("operation", INCREASE_DECREASE),
            *_ref_pair("value"),
            Field("include_equipped", "bool"),
        ),
    ),
    _kind(
        128,
        "CHANGE_ARMORS",
        _schema(
            Field("armor_id"),
            EnumField("operation", INCREASE_DECREASE),
            *_ref_pair("value"),
            Field("include_equipped", "bool"),
        ),
    ),
    _kind(
        129,
        "CHANGE_PARTY_MEMBER",
        _schema(Field("actor_id"), EnumField("operation", ADD_REMOVE), Field("initialize", "bool")),
    ),
    _kind(134, "CHANGE_SAVE_ACCESS", _schema(Field("is_enabled", "intbool"))),
    _kind(
        201,
        "TRANSFER_PLAYER",
        _schema(
            *_ref_pair("map_id"),
            RefField("x", "map_id_is_variable"),
            RefField("y", "map_id_is_variable"),
            Field("direction"),
            Field("fade_type"),
        ),
    ),
    _kind(
        203,
        "SET_EVENT_LOCATION",
        _schema(Field("character_id"), _location_field(), Field("direction")),
    ),
    _kind(205, "SET_MOVEMENT_ROUTE", _schema(Field("character_id"), Field("route", "move_route"))),
    _continuation(505, "SET_MOVEMENT_ROUTE_EXTRA", 205, _schema(Field("step", "mapping"))),
    _kind(211, "CHANGE_TRANSPARENCY", _schema(Field("is_off", "intbool"))),
    _kind(
        212,
        "SHOW_ANIMATION",
        _schema(Field("character_id"), Field("animation_id"), Field("wait", "bool")),
    ),
    _kind(
        213,
        "SHOW_BALLOON_ICON",
        _schema(Field("character_id"), Field("balloon_id"), Field("wait", "bool")),
    ),
    _kind(216, "CHANGE_PLAYER_FOLLOWERS", _schema(Field("is_off", "intbool"))),
    _kind(221, "FADEOUT_SCREEN", _no_params()),
    _kind(222, "FADEIN_SCREEN", _no_params()),
    _kind(
        223,
        "TINT_SCREEN",
        _schema(Field("tone", "number_list"), Field("duration"), Field("wait", "bool")),
    ),
    _kind(
        224,
        "FLASH_SCREEN",
        _schema(Field("color", "number_list"), Field("duration"), Field("wait", "bool")),
    ),
    _kind(
        225,
        "SHAKE_SCREEN",
        _schema(Field("power"), Field("speed"), Field("duration"), Field("wait", "bool")),
    ),
    _kind(230, "WAIT", _schema(Field("duration"))),
    _kind(231, "SHOW_PICTURE", _schema(Field("picture_id"), Field("name", "str"), *_picture_fields())),
    _kind(232, "MOVE_PICTURE", _move_picture_schema(False)),
    _kind(235, "ERASE_PICTURE", _schema(Field("picture_id"))),
    _kind(241, "PLAY_BGM", _schema(Field("audio", "audio"))),
    _kind(242, "FADEOUT_BGM", _schema(Field("duration"))),
    _kind(243, "SAVE_BGM", _no_params()),
    _kind(244, "RESUME_BGM", _no_params()),
    _kind(245, "PLAY_BGS", _schema(Field("audio", "audio"))),
    _kind(246, "FADEOUT_BGS", _schema(Field("duration"))),
    _kind(250, "PLAY_SE", _schema(Field("audio", "audio"))),
    _kind(
        285,
        "GET_LOCATION_INFO",
        _schema(Field("variable_id"), EnumField("info_type", LOCATION_INFO), _location_field()),
    ),
    _kind(301, "BATTLE_PROCESSING", _battle_processing_schema(TROOP_ID_KINDS)),
    _kind(601, "IF_WIN", _no_params(), role=Role.OPEN, family="battle_result"),
    _marker(602, "IF_ESCAPE", Role.ARM, "battle_result"),
    _marker(603, "IF_LOSE", Role.ARM, "battle_result"),
    _marker(604, "BATTLE_RESULT_END", Role.CLOSE, "battle_result"),
    _kind(303, "NAME_INPUT_PROCESSING", _schema(Field("actor_id"), Field("max_length"))),
    _kind(
        311,
        "CHANGE_HP",
        _schema(
            *_actor_target(),
            EnumField("operation", INCREASE_DECREASE),
            *_ref_pair("value"),
            Field("allow_death", "bool"),
        ),
    ),
    _kind(
        312,
        "CHANGE_MP",
        _schema(*_actor_target(), EnumField("operation", INCREASE_DECREASE), *_ref_pair("value")),
    ),
    _kind(
        313,
        "CHANGE_STATE",
        _schema(*_actor_target(), EnumField("operation", ADD_REMOVE), Field("state_id")),
    ),
    _kind(
        316,
        "CHANGE_LEVEL",
        _schema(
            *_actor_target(),
            EnumField("operation", INCREASE_DECREASE),
            *_ref_pair("value"),
            Field("show_level_up", "bool"),
        ),
    ),
    _kind(
        318,
        "CHANGE_SKILL",
        _schema(*_actor_target(), EnumField("operation", _members("learn", "forget")), Field("skill_id")),
    ),
    _kind(319, "CHANGE_EQUIPMENT", _schema(Field("actor_id"), Field("equip_type_id"), Field("item_id"))),
    _kind(321, "CHANGE_CLASS", _schema(Field("actor_id"), Field("class_id"), Field("keep_exp", "bool"))),
    _kind(
        322,
        "CHANGE_ACTOR_IMAGES",
        _schema(
            Field("actor_id"),
            Field("character_name", "str"),
            Field("character_index"),
            Field("face_name", "str"),
            Field("face_index"),
            Field("battler_name", "str"),
        ),
    ),
    _kind(
        339,
        "FORCE_ACTION",
        _schema(
            EnumField("subject_kind", _members("enemy", "actor")),
            Field("subject_id"),
            Field("skill_id"),
            Field("target_index"),
        ),
    ),
    _kind(340, "ABORT_BATTLE", _no_params()),
    _kind(353, "GAME_OVER", _no_params()),
    _kind(354, "RETURN_TO_TITLE_SCREEN", _no_params()),
    _kind(355, "SCRIPT", _LINE),
    _continuation(655, "SCRIPT_EXTRA", 355),
    _kind(356, "PLUGIN_COMMAND", _schema(Field("command", "str"))),
)


_MZ_KINDS: Tuple[CommandKind, ...] = (
    _kind(101, "SHOW_TEXT", _show_text_schema(True)),
    _kind(232, "MOVE_PICTURE", _move_picture_schema(True)),
    _kind(
        301,
        "BATTLE_PROCESSING",
        _battle_processing_schema({**TROOP_ID_KINDS, 3: "active_troop"}),
    ),
    _kind(
        357,
        "PLUGIN_COMMAND_MZ",
        _schema(
            Field("plugin_name", "str"),
            Field("command_name", "str"),
            Field("comment", "str"),
            Field("arguments", "mapping"),
        ),
    ),
    _continuation(657, "PLUGIN_COMMAND_MZ_EXTRA", 357),
)

# Codes listed with ``None`` are not available under the variant.
_OVERRIDES: Mapping[EngineVariant, Mapping[int, Optional[CommandKind]]] = {
    EngineVariant.MV: {},
    EngineVariant.MZ: {**{kind.code: kind for kind in _MZ_KINDS}, 356: None},
}


class CommandRegistry:
    """Resolve command codes for one :class:`EngineVariant`."""

    def __init__(self, variant: EngineVariant, kinds: Mapping[int, CommandKind]) -> None:
        self.variant = variant
        self._kinds: Mapping[int, CommandKind] = MappingProxyType(dict(kinds))

    @classmethod
    def for_variant(cls, variant: EngineVariant) -> "CommandRegistry":
        return _REGISTRIES[variant]

    def lookup(self, code: int) -> Optional[CommandKind]:
        return self._kinds.get(code)

    def resolve(self, code: int) -> CommandKind:
        kind = self._kinds.get(code)
        if kind is None:
            raise UnrecognizedCode(code, self.variant.value)
        return kind

    def codes(self) -> Tuple[int, ...]:
        return tuple(sorted(self._kinds))

    def __contains__(self, code: object) -> bool:
        return code in self._kinds


def _build(variant: EngineVariant) -> CommandRegistry:
    kinds: Dict[int, CommandKind] = {kind.code: kind for kind in _BASE_KINDS}
    for code, override in _OVERRIDES[variant].items():
        if override is None:
            kinds.pop(code, None)
        else:
            kinds[code] = override
    return CommandRegistry(variant, kinds)


_REGISTRIES: Mapping[EngineVariant, CommandRegistry] = MappingProxyType(
    {variant: _build(variant) for variant in EngineVariant}
)


def lookup(variant: EngineVariant, code: int) -> Optional[CommandKind]:
    """Return the :class:`CommandKind` for ``code`` or ``None`` when unknown."""

    return _REGISTRIES[variant].lookup(code)
