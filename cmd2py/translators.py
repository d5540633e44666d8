"""Translate reconstructed command blocks into Python statements.

Every supported :class:`~cmd2py.registry.CommandKind` has one handler in
:class:`CommandTranslator`.  Leaf handlers receive the decoded operands of a
single command; compound handlers additionally receive the reconstructed child
blocks and translate them recursively.  Handlers never see raw parameter
lists: decoding always goes through :func:`decode_operands` so a malformed
command fails before any statement for it is produced.

The generated code targets an imaginary scripting API modelled on the engine's
own object names (``game_party``, ``game_map``, ``game_timer`` ...).  It is
meant to be read, not executed.

Handlers are variant-agnostic.  Where the two editor generations differ the
registry hands out a different schema and the handler dispatches on the
decoded sub-kind (for example the ``active_troop`` troop designation which
only the MZ table declares).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .command import ImageFile, move_command_matches
from .config import NameTable
from .errors import ConversionError, DataError, TranslationError, UnrecognizedCode
from .operands import MaybeRef, Operands, Tagged, decode_operands
from .python_ast import (
    Assign,
    Attribute,
    Binary,
    Block,
    Break,
    Call,
    Comment,
    Expression,
    ExpressionStatement,
    If,
    IfClause,
    ListExpr,
    Literal,
    Name,
    Statement,
    Subscript,
    Unary,
    While,
    call,
    dotted,
)
from .registry import CommandRegistry
from .structure import Block as CommandBlock
from .structure import CommandEntry, Compound, Leaf


UNKNOWN_PLACEHOLDER = "placeholder"
UNKNOWN_FAIL = "fail"

_OPERATIONS = {"=": "=", "+=": "+=", "-=": "-=", "*=": "*=", "/=": "//=", "%=": "%="}

_CONTROL_VARIABLES_ACTOR = {"level": "level", "exp": "exp", "hp": "hp", "mp": "mp"}
_OTHER_DATA = {
    "map_id": "game_map.map_id()",
    "party_members": "game_party.size()",
    "gold": "game_party.gold",
    "steps": "game_party.steps",
    "play_time": "game_system.playtime()",
    "timer": "game_timer.seconds()",
    "save_count": "game_system.save_count",
    "battle_count": "game_system.battle_count",
    "win_count": "game_system.win_count",
    "escape_count": "game_system.escape_count",
}
_LOCATION_QUERIES = {
    "terrain_tag": ("game_map.get_terrain_tag", None),
    "event_id": ("game_map.get_event_id", None),
    "tile_id_layer_1": ("game_map.get_tile_id", 1),
    "tile_id_layer_2": ("game_map.get_tile_id", 2),
    "tile_id_layer_3": ("game_map.get_tile_id", 3),
    "tile_id_layer_4": ("game_map.get_tile_id", 4),
    "region_id": ("game_map.get_region_id", None),
}


@dataclass(frozen=True)
class TranslatedEvent:
    body: Block
    placeholders: Tuple[Tuple[CommandEntry, UnrecognizedCode], ...] = ()


LeafHandler = Callable[[CommandEntry, Operands], List[Statement]]
CompoundHandler = Callable[[Compound, Operands], List[Statement]]


def _lit(value) -> Literal:
    return Literal(value)


class CommandTranslator:
    """Convert a block tree into a statement :class:`Block`."""

    def __init__(
        self,
        registry: CommandRegistry,
        names: Optional[NameTable] = None,
        *,
        unknown_command: str = UNKNOWN_PLACEHOLDER,
    ) -> None:
        if unknown_command not in (UNKNOWN_PLACEHOLDER, UNKNOWN_FAIL):
            raise ValueError(f"unknown command policy must be 'placeholder' or 'fail', got {unknown_command!r}")
        self.registry = registry
        self.names = names or NameTable()
        self.unknown_command = unknown_command
        self._placeholders: List[Tuple[CommandEntry, UnrecognizedCode]] = []
        self._event_id: object = None
        self._leaf_handlers: Dict[str, LeafHandler] = {
            "NOP": lambda entry, ops: [],
            "SHOW_TEXT": self._show_text,
            "SHOW_SCROLLING_TEXT": self._show_scrolling_text,
            "COMMENT": self._comment,
            "BREAK_LOOP": lambda entry, ops: [Break()],
            "EXIT_EVENT_PROCESSING": self._simple_call("exit_event_processing"),
            "COMMON_EVENT": self._common_event,
            "LABEL": self._label("set_label"),
            "JUMP_TO_LABEL": self._label("jump_to_label"),
            "CONTROL_SWITCHES": self._control_switches,
            "CONTROL_VARIABLES": self._control_variables,
            "CONTROL_SELF_SWITCH": self._control_self_switch,
            "CONTROL_TIMER": self._control_timer,
            "CHANGE_GOLD": self._change_gold,
            "CHANGE_ITEMS": self._change_inventory("gain_item", "item", "items", "item_id"),
            "CHANGE_WEAPONS": self._change_inventory("gain_weapon", "weapon", "weapons", "weapon_id"),
            "CHANGE_ARMORS": self._change_inventory("gain_armor", "armor", "armors", "armor_id"),
            "CHANGE_PARTY_MEMBER": self._change_party_member,
            "CHANGE_SAVE_ACCESS": self._change_save_access,
            "TRANSFER_PLAYER": self._transfer_player,
            "SET_EVENT_LOCATION": self._set_event_location,
            "SET_MOVEMENT_ROUTE": self._set_movement_route,
            "CHANGE_TRANSPARENCY": self._change_transparency,
            "SHOW_ANIMATION": self._character_effect("show_animation", "animation_id"),
            "SHOW_BALLOON_ICON": self._character_effect("show_balloon_icon", "balloon_id"),
            "CHANGE_PLAYER_FOLLOWERS": self._change_player_followers,
            "FADEOUT_SCREEN": self._simple_call("fadeout_screen"),
            "FADEIN_SCREEN": self._simple_call("fadein_screen"),
            "TINT_SCREEN": self._keyword_call("tint_screen", "tone", "duration", "wait"),
            "FLASH_SCREEN": self._keyword_call("flash_screen", "color", "duration", "wait"),
            "SHAKE_SCREEN": self._keyword_call("shake_screen", "power", "speed", "duration", "wait"),
            "WAIT": self._keyword_call("wait", "duration"),
            "SHOW_PICTURE": self._show_picture,
            "MOVE_PICTURE": self._move_picture,
            "ERASE_PICTURE": self._keyword_call("erase_picture", "picture_id"),
            "PLAY_BGM": self._play_audio("play_bgm"),
            "FADEOUT_BGM": self._keyword_call("fadeout_bgm", "duration"),
            "SAVE_BGM": self._simple_call("save_bgm"),
            "RESUME_BGM": self._simple_call("resume_bgm"),
            "PLAY_BGS": self._play_audio("play_bgs"),
            "FADEOUT_BGS": self._keyword_call("fadeout_bgs", "duration"),
            "PLAY_SE": self._play_audio("play_se"),
            "GET_LOCATION_INFO": self._get_location_info,
            "BATTLE_PROCESSING": self._battle_processing,
            "NAME_INPUT_PROCESSING": self._name_input_processing,
            "CHANGE_HP": self._change_actor_value("gain_hp", "allow_death"),
            "CHANGE_MP": self._change_actor_value("gain_mp"),
            "CHANGE_STATE": self._change_state,
            "CHANGE_LEVEL": self._change_actor_value("gain_level", "show_level_up"),
            "CHANGE_SKILL": self._change_skill,
            "CHANGE_EQUIPMENT": self._change_equipment,
            "CHANGE_CLASS": self._change_class,
            "CHANGE_ACTOR_IMAGES": self._change_actor_images,
            "FORCE_ACTION": self._force_action,
            "ABORT_BATTLE": self._simple_call("abort_battle"),
            "GAME_OVER": self._simple_call("game_over"),
            "RETURN_TO_TITLE_SCREEN": self._simple_call("return_to_title_screen"),
            "SCRIPT": self._script,
            "PLUGIN_COMMAND": self._plugin_command,
            "PLUGIN_COMMAND_MZ": self._plugin_command_mz,
        }
        self._compound_handlers: Dict[str, CompoundHandler] = {
            "CONDITIONAL_BRANCH": self._conditional_branch,
            "LOOP": self._loop,
            "SHOW_CHOICES": self._show_choices,
            "IF_WIN": self._battle_result,
        }

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def translate(self, blocks: Sequence[CommandBlock], *, event_id: object = None) -> TranslatedEvent:
        self._placeholders = []
        self._event_id = event_id
        body = self._translate_blocks(blocks)
        return TranslatedEvent(body, tuple(self._placeholders))

    # ------------------------------------------------------------------
    # dispatch
    # ------------------------------------------------------------------
    def _translate_blocks(self, blocks: Sequence[CommandBlock]) -> Block:
        body = Block()
        for block in blocks:
            entry = block.entry if isinstance(block, Leaf) else block.header
            try:
                body.extend(self._translate_block(block))
            except TranslationError:
                raise
            except ConversionError as exc:
                raise TranslationError(
                    exc, event_id=self._event_id, command_index=entry.index, code=entry.code
                ) from exc
        return body

    def _translate_block(self, block: CommandBlock) -> List[Statement]:
        if isinstance(block, Compound):
            kind = block.header.kind
            assert kind is not None
            operands = decode_operands(kind.schema, block.header.command.parameters)
            return self._compound_handlers[kind.name](block, operands)

        entry = block.entry
        if entry.kind is None:
            return self._unknown(entry)
        handler = self._leaf_handlers.get(entry.kind.name)
        if handler is None:
            return self._unknown(entry)
        operands = decode_operands(entry.kind.schema, entry.command.parameters)
        return handler(entry, operands)

    def _unknown(self, entry: CommandEntry) -> List[Statement]:
        error = UnrecognizedCode(entry.code, self.registry.variant.value)
        if self.unknown_command == UNKNOWN_FAIL:
            raise error
        self._placeholders.append((entry, error))
        parameters = json.dumps(list(entry.command.parameters), ensure_ascii=False)
        return [Comment(f"Unknown Command Code {entry.code}, parameters: {parameters}")]

    def _extras(self, entry: CommandEntry) -> List[Operands]:
        decoded = []
        for extra in entry.extras:
            kind = self.registry.resolve(extra.code)
            decoded.append(decode_operands(kind.schema, extra.parameters))
        return decoded

    def _lines(self, entry: CommandEntry, operands: Operands) -> List[str]:
        lines = [operands["line"]] if "line" in operands else []
        lines.extend(extra["line"] for extra in self._extras(entry))
        return lines

    # ------------------------------------------------------------------
    # naming helpers
    # ------------------------------------------------------------------
    def _named(self, category: str, entry_id: int) -> Name:
        return Name(self.names.name(category, entry_id))

    def _value(self, ref: MaybeRef) -> Expression:
        if ref.is_ref:
            return Name(self.names.variable(ref.value))
        return _lit(ref.value)

    def _signed_value(self, ref: MaybeRef, negate: bool) -> Expression:
        if not negate:
            return self._value(ref)
        if ref.is_ref:
            return Unary("-", Name(self.names.variable(ref.value)))
        return _lit(-ref.value)

    def _actor_target(self, ref: MaybeRef) -> Tuple[str, Expression]:
        if ref.is_ref:
            return "actor_id", Name(self.names.variable(ref.value))
        if ref.value == 0:
            return "actors", Name("game_party")
        return "actor", self._named("actors", ref.value)

    @staticmethod
    def _character(character_id: int) -> Expression:
        if character_id < 0:
            return Name("game_player")
        if character_id == 0:
            return Name("this_event")
        return Name(f"game_character_{character_id}")

    # ------------------------------------------------------------------
    # handler factories
    # ------------------------------------------------------------------
    @staticmethod
    def _simple_call(name: str) -> LeafHandler:
        return lambda entry, ops: [ExpressionStatement(call(name))]

    @staticmethod
    def _keyword_call(name: str, *fields: str) -> LeafHandler:
        def handler(entry: CommandEntry, ops: Operands) -> List[Statement]:
            keywords = {field: _lit(ops[field]) for field in fields}
            return [ExpressionStatement(call(name, **keywords))]

        return handler

    @staticmethod
    def _label(name: str) -> LeafHandler:
        return lambda entry, ops: [ExpressionStatement(call(name, name=_lit(ops["name"])))]

    @staticmethod
    def _play_audio(name: str) -> LeafHandler:
        def handler(entry: CommandEntry, ops: Operands) -> List[Statement]:
            audio = ops["audio"]
            value = call(
                "AudioFile",
                name=_lit(audio.name),
                pan=_lit(audio.pan),
                pitch=_lit(audio.pitch),
                volume=_lit(audio.volume),
            )
            return [ExpressionStatement(call(name, audio=value))]

        return handler

    def _character_effect(self, name: str, id_field: str) -> LeafHandler:
        def handler(entry: CommandEntry, ops: Operands) -> List[Statement]:
            keywords = {
                "character": self._character(ops["character_id"]),
                id_field: _lit(ops[id_field]),
                "wait": _lit(ops["wait"]),
            }
            return [ExpressionStatement(call(name, **keywords))]

        return handler

    def _change_inventory(self, name: str, keyword: str, category: str, id_field: str) -> LeafHandler:
        def handler(entry: CommandEntry, ops: Operands) -> List[Statement]:
            keywords = {
                keyword: self._named(category, ops[id_field]),
                "value": self._signed_value(ops["value"], ops["operation"] == "decrease"),
            }
            if "include_equipped" in ops:
                keywords["include_equipped"] = _lit(ops["include_equipped"])
            return [ExpressionStatement(call(name, **keywords))]

        return handler

    def _change_actor_value(self, name: str, flag: Optional[str] = None) -> LeafHandler:
        def handler(entry: CommandEntry, ops: Operands) -> List[Statement]:
            target, actor = self._actor_target(ops["actor_id"])
            keywords = {
                target: actor,
                "value": self._signed_value(ops["value"], ops["operation"] == "decrease"),
            }
            if flag is not None:
                keywords[flag] = _lit(ops[flag])
            return [ExpressionStatement(call(name, **keywords))]

        return handler

    # ------------------------------------------------------------------
    # message commands
    # ------------------------------------------------------------------
    def _show_text(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        keywords = {
            "face_name": _lit(ops["face_name"]),
            "face_index": _lit(ops["face_index"]),
            "background": _lit(ops["background"]),
            "position_type": _lit(ops["position_type"]),
        }
        if ops.get("speaker_name") is not None:
            keywords["speaker_name"] = _lit(ops["speaker_name"])
        keywords["lines"] = _lit(self._lines(entry, ops))
        return [ExpressionStatement(call("show_text", **keywords))]

    def _show_scrolling_text(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        return [
            ExpressionStatement(
                call(
                    "show_scrolling_text",
                    speed=_lit(ops["speed"]),
                    no_fast=_lit(ops["no_fast"]),
                    lines=_lit(self._lines(entry, ops)),
                )
            )
        ]

    def _comment(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        return [Comment(line) for line in self._lines(entry, ops)]

    def _script(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        return [ExpressionStatement(call("script", lines=_lit(self._lines(entry, ops))))]

    def _plugin_command(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        args = tuple(_lit(part) for part in ops["command"].split())
        return [ExpressionStatement(call("plugin_command", *args))]

    def _plugin_command_mz(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        return [
            ExpressionStatement(
                call(
                    "plugin_command",
                    plugin_name=_lit(ops["plugin_name"]),
                    command_name=_lit(ops["command_name"]),
                    comment=_lit(ops["comment"]),
                    args=_lit(ops["arguments"]),
                )
            )
        ]

    def _common_event(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        return [ExpressionStatement(call(self.names.common_event(ops["common_event_id"])))]

    # ------------------------------------------------------------------
    # game progress
    # ------------------------------------------------------------------
    def _id_range(self, ops: Operands) -> range:
        start, end = ops["start_id"], ops["end_id"]
        if end < start:
            raise DataError(f"id range end {end} precedes start {start}")
        return range(start, end + 1)

    def _control_switches(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        value = _lit(not ops["is_off"])
        return [Assign(Name(self.names.switch(switch_id)), value) for switch_id in self._id_range(ops)]

    def _control_variables(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        operator = _OPERATIONS[ops["operation"]]
        value = self._variable_operand(ops["operand"])
        return [
            Assign(Name(self.names.variable(variable_id)), value, operator)
            for variable_id in self._id_range(ops)
        ]

    def _variable_operand(self, operand: Tagged) -> Expression:
        if operand.tag == "constant":
            return _lit(operand["value"])
        if operand.tag == "variable":
            return Name(self.names.variable(operand["variable_id"]))
        if operand.tag == "random":
            return call("random.randint", _lit(operand["min"]), _lit(operand["max"]))
        if operand.tag == "script":
            return call("execute_script", _lit(operand["script"]))
        return self._game_data(operand["data"])

    def _game_data(self, data: Tagged) -> Expression:
        if data.tag == "item":
            return call("game_party.get_num_items", item=self._named("items", data["item_id"]))
        if data.tag == "weapon":
            return call("game_party.get_num_weapons", weapon=self._named("weapons", data["weapon_id"]))
        if data.tag == "armor":
            return call("game_party.get_num_armors", armor=self._named("armors", data["armor_id"]))
        if data.tag == "actor":
            actor = self._named("actors", data["actor_id"])
            check = data["check"]
            if check in _CONTROL_VARIABLES_ACTOR:
                return Attribute(actor, _CONTROL_VARIABLES_ACTOR[check])
            return Call(Attribute(actor, "param"), (_lit(int(check.rsplit("_", 1)[1])),))
        if data.tag == "enemy":
            enemy = Subscript(dotted("game_troop.members"), _lit(data["enemy_index"]))
            check = data["check"]
            if check.startswith("param_"):
                return Call(Attribute(enemy, "param"), (_lit(int(check.rsplit("_", 1)[1])),))
            return Attribute(enemy, check)
        if data.tag == "character":
            return Attribute(self._character(data["character_id"]), data["check"])
        if data.tag == "party":
            member = Subscript(dotted("game_party.members"), _lit(data["member_index"]))
            return Attribute(member, "actor_id")
        path = _OTHER_DATA[data["check"]]
        if path.endswith("()"):
            return call(path[:-2])
        return dotted(path)

    def _control_self_switch(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        target = Subscript(Name("game_self_switches"), _lit(ops["key"]))
        return [Assign(target, _lit(not ops["is_off"]))]

    def _control_timer(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        operation = ops["operation"]
        if operation.tag == "start":
            return [ExpressionStatement(call("game_timer.start", seconds=_lit(operation["seconds"])))]
        return [ExpressionStatement(call("game_timer.stop"))]

    # ------------------------------------------------------------------
    # party commands
    # ------------------------------------------------------------------
    def _change_gold(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        operator = "-=" if ops["operation"] == "decrease" else "+="
        return [Assign(dotted("game_party.gold"), self._value(ops["value"]), operator)]

    def _change_party_member(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        actor = self._named("actors", ops["actor_id"])
        if ops["operation"] == "add":
            return [ExpressionStatement(call("add_party_member", actor=actor, initialize=_lit(ops["initialize"])))]
        return [ExpressionStatement(call("remove_party_member", actor=actor))]

    def _change_save_access(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        return [ExpressionStatement(call("enable_saving" if ops["is_enabled"] else "disable_saving"))]

    # ------------------------------------------------------------------
    # movement
    # ------------------------------------------------------------------
    def _transfer_player(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        map_ref = ops["map_id"]
        if map_ref.is_ref:
            map_keyword = ("map_id", self._value(map_ref))
        else:
            map_keyword = ("map", self._named("maps", map_ref.value))
        keywords = dict(
            [map_keyword],
            x=self._value(ops["x"]),
            y=self._value(ops["y"]),
            direction=_lit(ops["direction"]),
            fade_type=_lit(ops["fade_type"]),
        )
        return [ExpressionStatement(call("transfer_player", **keywords))]

    def _location_keywords(self, designation: Tagged) -> Dict[str, Expression]:
        if designation.tag == "direct":
            return {"x": _lit(designation["x"]), "y": _lit(designation["y"])}
        if designation.tag == "variable":
            return {
                "x": Name(self.names.variable(designation["x"])),
                "y": Name(self.names.variable(designation["y"])),
            }
        other = self._character(designation["character_id"])
        return {"x": Attribute(other, "map_x"), "y": Attribute(other, "map_y")}

    def _set_event_location(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        character = self._character(ops["character_id"])
        designation = ops["designation"]
        direction = _lit(ops["direction"] or None)
        if designation.tag == "character":
            keywords = {
                "character": character,
                "swap_with": self._character(designation["character_id"]),
                "direction": direction,
            }
        else:
            keywords = {"character": character, **self._location_keywords(designation), "direction": direction}
        return [ExpressionStatement(call("set_event_location", **keywords))]

    def _set_movement_route(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        route = ops["route"]
        extras = self._extras(entry)
        if len(extras) > len(route.commands):
            raise DataError(
                f"{len(extras)} movement route rows for a route of {len(route.commands)} steps"
            )
        for position, extra in enumerate(extras):
            if not move_command_matches(route.commands[position], extra["step"]):
                raise DataError(f"movement route row {position} does not match route step {position}")
        steps = []
        for step in route.commands:
            keywords = {"code": _lit(step.code)}
            if step.indent is not None:
                keywords["indent"] = _lit(step.indent)
            keywords["parameters"] = _lit(list(step.parameters))
            steps.append(call("MoveCommand", **keywords))
        value = call(
            "MoveRoute",
            repeat=_lit(route.repeat),
            skippable=_lit(route.skippable),
            wait=_lit(route.wait),
            list=ListExpr(tuple(steps)),
        )
        return [
            ExpressionStatement(
                call("set_movement_route", character=self._character(ops["character_id"]), route=value)
            )
        ]

    def _change_transparency(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        return [ExpressionStatement(call("change_transparency", set_transparent=_lit(not ops["is_off"])))]

    def _change_player_followers(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        name = "hide_player_followers" if ops["is_off"] else "show_player_followers"
        return [ExpressionStatement(call(name))]

    def _get_location_info(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        function, layer = _LOCATION_QUERIES[ops["info_type"]]
        keywords = self._location_keywords(ops["designation"])
        if layer is not None:
            keywords["layer"] = _lit(layer)
        target = Name(self.names.variable(ops["variable_id"]))
        return [Assign(target, call(function, **keywords))]

    # ------------------------------------------------------------------
    # pictures
    # ------------------------------------------------------------------
    @staticmethod
    def _image(ops: Operands, name: str) -> ImageFile:
        return ImageFile(
            name=name,
            origin=ops["origin"],
            x=ops["x"],
            y=ops["y"],
            scale_x=ops["scale_x"],
            scale_y=ops["scale_y"],
            opacity=ops["opacity"],
            blend_mode=ops["blend_mode"],
        )

    def _image_keywords(self, image: ImageFile) -> Dict[str, Expression]:
        return {
            "origin": _lit(image.origin),
            "x": self._value(image.x),
            "y": self._value(image.y),
            "scale_x": _lit(image.scale_x),
            "scale_y": _lit(image.scale_y),
            "opacity": _lit(image.opacity),
            "blend_mode": _lit(image.blend_mode),
        }

    def _show_picture(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        image = self._image(ops, ops["name"])
        keywords = {
            "picture_id": _lit(ops["picture_id"]),
            "name": _lit(image.name),
            **self._image_keywords(image),
        }
        return [ExpressionStatement(call("show_picture", **keywords))]

    def _move_picture(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        image = self._image(ops, "")
        keywords = {
            "picture_id": _lit(ops["picture_id"]),
            **self._image_keywords(image),
            "duration": _lit(ops["duration"]),
            "wait": _lit(ops["wait"]),
        }
        if ops.get("easing_type") is not None:
            keywords["easing_type"] = _lit(ops["easing_type"])
        return [ExpressionStatement(call("move_picture", **keywords))]

    # ------------------------------------------------------------------
    # battle and actors
    # ------------------------------------------------------------------
    def _battle_processing(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        troop_kind = ops["troop_kind"]
        if troop_kind == "constant":
            troop = ("troop", self._named("troops", ops["troop_id"]))
        elif troop_kind == "variable":
            troop = ("troop_id", Name(self.names.variable(ops["troop_id"])))
        elif troop_kind == "random_encounter":
            troop = ("troop_id", call("game.random_encounter_troop_id"))
        else:
            troop = ("troop_id", call("game_troop.troop_id"))
        keywords = dict([troop], can_escape=_lit(ops["can_escape"]), can_lose=_lit(ops["can_lose"]))
        return [ExpressionStatement(call("battle_processing", **keywords))]

    def _name_input_processing(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        return [
            ExpressionStatement(
                call(
                    "name_input_processing",
                    actor=self._named("actors", ops["actor_id"]),
                    max_len=_lit(ops["max_length"]),
                )
            )
        ]

    def _change_state(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        target, actor = self._actor_target(ops["actor_id"])
        name = "add_state" if ops["operation"] == "add" else "remove_state"
        keywords = {target: actor, "state": self._named("states", ops["state_id"])}
        return [ExpressionStatement(call(name, **keywords))]

    def _change_skill(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        target, actor = self._actor_target(ops["actor_id"])
        name = "learn_skill" if ops["operation"] == "learn" else "forget_skill"
        keywords = {target: actor, "skill": self._named("skills", ops["skill_id"])}
        return [ExpressionStatement(call(name, **keywords))]

    def _change_equipment(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        equip_type = ops["equip_type_id"]
        item_id = ops["item_id"]
        if item_id == 0:
            item: Expression = _lit(None)
        else:
            item = self._named("weapons" if equip_type == 1 else "armors", item_id)
        return [
            ExpressionStatement(
                call(
                    "change_equipment",
                    actor=self._named("actors", ops["actor_id"]),
                    equip_type=_lit(equip_type),
                    item=item,
                )
            )
        ]

    def _change_class(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        return [
            ExpressionStatement(
                call(
                    "change_class",
                    actor=self._named("actors", ops["actor_id"]),
                    klass=self._named("classes", ops["class_id"]),
                    keep_exp=_lit(ops["keep_exp"]),
                )
            )
        ]

    def _change_actor_images(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        keywords = {"actor": self._named("actors", ops["actor_id"])}
        for field in ("character_name", "character_index", "face_name", "face_index", "battler_name"):
            keywords[field] = _lit(ops[field])
        return [ExpressionStatement(call("change_actor_images", **keywords))]

    def _force_action(self, entry: CommandEntry, ops: Operands) -> List[Statement]:
        if ops["subject_kind"] == "enemy":
            subject = ("enemy_index", _lit(ops["subject_id"]))
        else:
            subject = ("actor", self._named("actors", ops["subject_id"]))
        keywords = dict(
            [subject],
            skill=self._named("skills", ops["skill_id"]),
            target_index=_lit(ops["target_index"]),
        )
        return [ExpressionStatement(call("force_action", **keywords))]

    # ------------------------------------------------------------------
    # compound commands
    # ------------------------------------------------------------------
    def _conditional_branch(self, block: Compound, ops: Operands) -> List[Statement]:
        clauses = [IfClause(self._condition(ops["condition"]), self._translate_blocks(block.body))]
        alternate = block.alternate
        if alternate is not None:
            clauses.append(IfClause(None, self._translate_blocks(alternate)))
        return [If(clauses)]

    def _condition(self, condition: Tagged) -> Expression:
        tag = condition.tag
        if tag == "switch":
            switch = Name(self.names.switch(condition["switch_id"]))
            return Unary("not ", switch) if condition["is_off"] else switch
        if tag == "variable":
            lhs = Name(self.names.variable(condition["variable_id"]))
            return Binary(lhs, condition["comparison"], self._value(condition["rhs"]))
        if tag == "self_switch":
            lookup = call(
                "game_self_switches.get",
                map_id=dotted("self.map_id"),
                event_id=dotted("self.event_id"),
                name=_lit(condition["key"]),
            )
            return Unary("not ", lookup) if condition["is_off"] else lookup
        if tag == "timer":
            return Binary(call("game_timer.seconds"), condition["comparison"], _lit(condition["seconds"]))
        if tag == "actor":
            return self._actor_condition(condition["actor_id"], condition["check"])
        if tag == "enemy":
            enemy = Subscript(dotted("game_troop.members"), _lit(condition["enemy_index"]))
            check = condition["check"]
            if check.tag == "appeared":
                return Call(Attribute(enemy, "is_appeared"))
            return Call(
                Attribute(enemy, "is_state_affected"),
                keywords=(("state", self._named("states", check["state_id"])),),
            )
        if tag == "character":
            character = self._character(condition["character_id"])
            return Binary(Attribute(character, "direction"), "==", _lit(condition["direction"]))
        if tag == "gold":
            return Binary(dotted("game_party.gold"), condition["comparison"], _lit(condition["amount"]))
        if tag == "item":
            return call("game_party.has_item", item=self._named("items", condition["item_id"]))
        if tag == "weapon":
            return call(
                "game_party.has_weapon",
                weapon=self._named("weapons", condition["weapon_id"]),
                include_equipped=_lit(condition["include_equipped"]),
            )
        if tag == "armor":
            return call(
                "game_party.has_armor",
                armor=self._named("armors", condition["armor_id"]),
                include_equipped=_lit(condition["include_equipped"]),
            )
        if tag == "button":
            return call("game_input.is_pressed", key_name=_lit(condition["button"]))
        return call("execute_script", _lit(condition["script"]))

    def _actor_condition(self, actor_id: int, check: Tagged) -> Expression:
        actor = self._named("actors", actor_id)
        if check.tag == "in_party":
            return call("game_party.members.contains", actor=actor)
        if check.tag == "name":
            return Binary(Attribute(actor, "name"), "==", _lit(check["name"]))
        method, keyword, category, field = {
            "class": ("is_class", "klass", "classes", "class_id"),
            "skill": ("has_skill", "skill", "skills", "skill_id"),
            "weapon": ("has_weapon", "weapon", "weapons", "weapon_id"),
            "armor": ("has_armor", "armor", "armors", "armor_id"),
            "state": ("is_state_affected", "state", "states", "state_id"),
        }[check.tag]
        return Call(Attribute(actor, method), keywords=((keyword, self._named(category, check[field])),))

    def _loop(self, block: Compound, ops: Operands) -> List[Statement]:
        return [While(_lit(True), self._translate_blocks(block.body))]

    def _show_choices(self, block: Compound, ops: Operands) -> List[Statement]:
        statements: List[Statement] = [
            ExpressionStatement(
                call(
                    "show_choices",
                    choices=_lit(list(ops["choices"])),
                    cancel_type=_lit(ops["cancel_type"]),
                    default_type=_lit(ops["default_type"]),
                    position_type=_lit(ops["position_type"]),
                    background=_lit(ops["background"]),
                )
            )
        ]
        clauses = []
        for branch in block.branches:
            kind = branch.marker.kind
            assert kind is not None
            marker = decode_operands(kind.schema, branch.marker.command.parameters)
            if kind.name == "WHEN":
                index = marker["choice_index"]
                comment: Optional[str] = marker["choice_name"]
            else:
                index = -1
                comment = None
            condition = Binary(call("get_choice_index"), "==", _lit(index))
            clauses.append(IfClause(condition, self._translate_blocks(branch.children), comment))
        if clauses:
            statements.append(If(clauses))
        return statements

    def _battle_result(self, block: Compound, ops: Operands) -> List[Statement]:
        clauses = [IfClause(call("game_battle_result.is_win"), self._translate_blocks(block.body))]
        for branch in block.branches:
            kind = branch.marker.kind
            assert kind is not None
            method = "is_escape" if kind.name == "IF_ESCAPE" else "is_lose"
            clauses.append(
                IfClause(call(f"game_battle_result.{method}"), self._translate_blocks(branch.children))
            )
        return [If(clauses)]
