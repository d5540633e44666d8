"""Tests for per-command translation into Python statements."""

from __future__ import annotations

import ast
from typing import Optional

import pytest

from cmd2py.command import RawCommand
from cmd2py.config import NameTable
from cmd2py.errors import DataError, SchemaMismatch, TranslationError, UnrecognizedCode
from cmd2py.python_ast import render_statements
from cmd2py.python_writer import PythonRenderOptions, PythonWriter
from cmd2py.registry import CommandRegistry, EngineVariant
from cmd2py.structure import reconstruct
from cmd2py.translators import CommandTranslator


FLAT = PythonRenderOptions(indent="    ", multiline_calls=False)


def _render(
    rows,
    *,
    variant: EngineVariant = EngineVariant.MV,
    names: Optional[NameTable] = None,
    unknown_command: str = "placeholder",
    options: PythonRenderOptions = FLAT,
) -> str:
    registry = CommandRegistry.for_variant(variant)
    commands = [RawCommand(code, indent, tuple(parameters)) for code, indent, parameters in rows]
    translator = CommandTranslator(registry, names, unknown_command=unknown_command)
    translated = translator.translate(reconstruct(commands, registry), event_id=1)
    return render_statements(translated.body.statements, PythonWriter(options))


def _condition(condition, *, variant: EngineVariant = EngineVariant.MV) -> str:
    text = _render([(111, 0, condition), (0, 1, []), (412, 0, [])], variant=variant)
    header, body = text.splitlines()
    assert body == "    pass"
    return header


def test_show_text_collects_lines() -> None:
    text = _render([(101, 0, ["Actor1", 0, 0, 2]), (401, 0, ["Hello"]), (401, 0, ["It's me"])])
    assert text == (
        "show_text(face_name='Actor1', face_index=0, background=0, position_type=2, "
        "lines=['Hello', 'It\\'s me'])\n"
    )


def test_show_text_speaker_name_on_mz() -> None:
    text = _render([(101, 0, ["", 0, 0, 2, "Reid"]), (401, 0, ["Hi"])], variant=EngineVariant.MZ)
    assert "speaker_name='Reid', lines=['Hi']" in text

    with pytest.raises(TranslationError) as excinfo:
        _render([(101, 0, ["", 0, 0, 2, "Reid"]), (401, 0, ["Hi"])])
    assert isinstance(excinfo.value.cause, SchemaMismatch)


def test_comment_and_script_rows() -> None:
    assert _render([(108, 0, ["first"]), (408, 0, ["second"])]) == "# first\n# second\n"
    assert _render([(355, 0, ["a = 1"]), (655, 0, ["b = 2"])]) == "script(lines=['a = 1', 'b = 2'])\n"


def test_control_switches_expand_range() -> None:
    assert _render([(121, 0, [1, 2, 0])]) == "game_switch_1 = True\ngame_switch_2 = True\n"
    assert _render([(121, 0, [4, 4, 1])]) == "game_switch_4 = False\n"


@pytest.mark.parametrize(
    ("parameters", "expected"),
    [
        ([3, 3, 1, 0, 10], "game_variable_3 += 10"),
        ([3, 3, 4, 1, 8], "game_variable_3 //= game_variable_8"),
        ([1, 1, 0, 2, 1, 6], "game_variable_1 = random.randint(1, 6)"),
        ([1, 1, 0, 4, "$gameParty.size()"], "game_variable_1 = execute_script('$gameParty.size()')"),
        ([2, 2, 0, 3, 3, 1, 0], "game_variable_2 = game_actor_1.level"),
        ([2, 2, 0, 3, 0, 5, 0], "game_variable_2 = game_party.get_num_items(item=game_item_5)"),
        ([2, 2, 0, 3, 4, 0, 0], "game_variable_2 = game_troop.members[0].hp"),
        ([2, 2, 0, 3, 5, -1, 0], "game_variable_2 = game_player.map_x"),
        ([2, 2, 0, 3, 6, 1, 0], "game_variable_2 = game_party.members[1].actor_id"),
        ([5, 5, 0, 3, 7, 0, 0], "game_variable_5 = game_map.map_id()"),
    ],
)
def test_control_variables(parameters, expected) -> None:
    assert _render([(122, 0, parameters)]) == expected + "\n"


def test_control_variables_actor_param() -> None:
    for variant in EngineVariant:
        text = _render([(122, 0, [1, 1, 0, 3, 3, 2, 6])], variant=variant)
        assert text == "game_variable_1 = game_actor_2.param(2)\n"


def test_reversed_variable_range_is_a_data_error() -> None:
    with pytest.raises(TranslationError) as excinfo:
        _render([(0, 0, []), (122, 0, [3, 1, 0, 0, 1])])
    assert isinstance(excinfo.value.cause, DataError)
    assert excinfo.value.command_index == 1
    assert excinfo.value.code == 122


def test_inventory_changes() -> None:
    assert _render([(126, 0, [5, 1, 0, 3])]) == "gain_item(item=game_item_5, value=-3)\n"
    assert _render([(126, 0, [5, 1, 1, 7])]) == "gain_item(item=game_item_5, value=-game_variable_7)\n"
    assert _render([(127, 0, [2, 0, 0, 1, True])]) == (
        "gain_weapon(weapon=game_weapon_2, value=1, include_equipped=True)\n"
    )
    assert _render([(125, 0, [1, 0, 250])]) == "game_party.gold -= 250\n"


def test_transfer_player() -> None:
    assert _render([(201, 0, [1, 1, 2, 3, 0, 0])]) == (
        "transfer_player(map_id=game_variable_1, x=game_variable_2, y=game_variable_3, "
        "direction=0, fade_type=0)\n"
    )
    assert _render([(201, 0, [0, 3, 10, 12, 2, 0])]) == (
        "transfer_player(map=game_map_3, x=10, y=12, direction=2, fade_type=0)\n"
    )


def test_set_event_location() -> None:
    assert _render([(203, 0, [0, 0, 5, 6, 0])]) == (
        "set_event_location(character=this_event, x=5, y=6, direction=None)\n"
    )
    assert _render([(203, 0, [3, 2, -1, 0, 4])]) == (
        "set_event_location(character=game_character_3, swap_with=game_player, direction=4)\n"
    )


def _route(*steps):
    return {"list": list(steps), "repeat": False, "skippable": True, "wait": True}


def test_set_movement_route() -> None:
    first = {"code": 1, "indent": None, "parameters": []}
    route = _route(first, {"code": 0, "parameters": []})
    text = _render([(205, 0, [-1, route]), (505, 0, [first])])
    assert text == (
        "set_movement_route(character=game_player, route=MoveRoute(repeat=False, skippable=True, "
        "wait=True, list=[MoveCommand(code=1, parameters=[]), MoveCommand(code=0, parameters=[])]))\n"
    )


def test_movement_route_rows_must_match_steps() -> None:
    route = _route({"code": 1, "parameters": []})
    with pytest.raises(TranslationError) as excinfo:
        _render([(205, 0, [0, route]), (505, 0, [{"code": 3, "parameters": []}])])
    assert isinstance(excinfo.value.cause, DataError)

    with pytest.raises(TranslationError):
        _render(
            [
                (205, 0, [0, route]),
                (505, 0, [{"code": 1, "parameters": []}]),
                (505, 0, [{"code": 1, "parameters": []}]),
            ]
        )


def test_location_info() -> None:
    assert _render([(285, 0, [7, 6, 0, 3, 4])]) == "game_variable_7 = game_map.get_region_id(x=3, y=4)\n"
    assert _render([(285, 0, [7, 2, 1, 1, 2])]) == (
        "game_variable_7 = game_map.get_tile_id(x=game_variable_1, y=game_variable_2, layer=1)\n"
    )


def test_audio_commands() -> None:
    audio = {"name": "Town1", "pan": 0, "pitch": 100, "volume": 90}
    assert _render([(241, 0, [audio])]) == (
        "play_bgm(audio=AudioFile(name='Town1', pan=0, pitch=100, volume=90))\n"
    )
    assert _render([(242, 0, [3])]) == "fadeout_bgm(duration=3)\n"


def test_actor_targets() -> None:
    assert _render([(311, 0, [0, 0, 1, 0, 50, False])]) == (
        "gain_hp(actors=game_party, value=-50, allow_death=False)\n"
    )
    assert _render([(313, 0, [1, 4, 0, 3])]) == "add_state(actor_id=game_variable_4, state=game_state_3)\n"
    assert _render([(316, 0, [0, 2, 0, 0, 1, True])]) == (
        "gain_level(actor=game_actor_2, value=1, show_level_up=True)\n"
    )


def test_change_equipment() -> None:
    assert _render([(319, 0, [1, 1, 4])]) == (
        "change_equipment(actor=game_actor_1, equip_type=1, item=game_weapon_4)\n"
    )
    assert _render([(319, 0, [1, 2, 0])]) == "change_equipment(actor=game_actor_1, equip_type=2, item=None)\n"


def test_battle_processing_active_troop_is_mz_only() -> None:
    rows = [(301, 0, [3, 0, True, False])]
    assert _render(rows, variant=EngineVariant.MZ) == (
        "battle_processing(troop_id=game_troop.troop_id(), can_escape=True, can_lose=False)\n"
    )
    with pytest.raises(TranslationError) as excinfo:
        _render(rows)
    assert isinstance(excinfo.value.cause, DataError)


def test_plugin_commands() -> None:
    assert _render([(356, 0, ["Quest add 3"])]) == "plugin_command('Quest', 'add', '3')\n"
    text = _render(
        [(357, 0, ["Quest", "Add", "Add quest", {"id": "3"}]), (657, 0, ["id = 3"])],
        variant=EngineVariant.MZ,
    )
    assert text == "plugin_command(plugin_name='Quest', command_name='Add', comment='Add quest', args={'id': '3'})\n"


def test_common_event_uses_configured_name() -> None:
    names = NameTable.from_mapping({"common-events": {"5": "open_shop"}})
    assert _render([(117, 0, [5])], names=names) == "open_shop()\n"
    assert _render([(117, 0, [6])], names=names) == "common_event_6()\n"


@pytest.mark.parametrize(
    ("condition", "expected"),
    [
        ([0, 1, 0], "if game_switch_1:"),
        ([0, 1, 1], "if not game_switch_1:"),
        ([1, 4, 1, 2, 1], "if game_variable_4 >= game_variable_2:"),
        ([1, 4, 0, 10, 5], "if game_variable_4 != 10:"),
        (
            [2, "A", 1],
            "if not game_self_switches.get(map_id=self.map_id, event_id=self.event_id, name='A'):",
        ),
        ([3, 30, 0], "if game_timer.seconds() >= 30:"),
        ([4, 1, 0], "if game_party.members.contains(actor=game_actor_1):"),
        ([4, 1, 1, "Harold"], "if game_actor_1.name == 'Harold':"),
        ([4, 2, 6, 11], "if game_actor_2.is_state_affected(state=game_state_11):"),
        ([5, 0, 0], "if game_troop.members[0].is_appeared():"),
        ([6, -1, 8], "if game_player.direction == 8:"),
        ([7, 100, 2], "if game_party.gold < 100:"),
        ([8, 3], "if game_party.has_item(item=game_item_3):"),
        ([9, 2, True], "if game_party.has_weapon(weapon=game_weapon_2, include_equipped=True):"),
        ([11, "ok"], "if game_input.is_pressed(key_name='ok'):"),
        ([12, "$gameParty.gold() > 0"], "if execute_script('$gameParty.gold() > 0'):"),
    ],
)
def test_conditions(condition, expected) -> None:
    assert _condition(condition) == expected


def test_conditional_else_and_comment_only_body() -> None:
    text = _render(
        [
            (111, 0, [0, 1, 0]),
            (108, 1, ["nothing"]),
            (0, 1, []),
            (411, 0, []),
            (230, 1, [30]),
            (0, 1, []),
            (412, 0, []),
        ]
    )
    assert text == "if game_switch_1:\n    # nothing\n    pass\nelse:\n    wait(duration=30)\n"


def test_loop_and_break() -> None:
    text = _render([(112, 0, []), (113, 1, []), (0, 1, []), (413, 0, [])])
    assert text == "while True:\n    break\n"


def test_show_choices() -> None:
    text = _render(
        [
            (102, 0, [["Yes", "No"], 1, 0, 2, 0]),
            (402, 0, [0, "Yes"]),
            (230, 1, [5]),
            (0, 1, []),
            (402, 0, [1, "No"]),
            (0, 1, []),
            (403, 0, [6, None]),
            (0, 1, []),
            (404, 0, []),
        ]
    )
    assert text.splitlines() == [
        "show_choices(choices=['Yes', 'No'], cancel_type=1, default_type=0, position_type=2, background=0)",
        "if get_choice_index() == 0:  # Yes",
        "    wait(duration=5)",
        "elif get_choice_index() == 1:  # No",
        "    pass",
        "elif get_choice_index() == -1:",
        "    pass",
    ]


def test_battle_result_branches() -> None:
    text = _render(
        [
            (601, 0, []),
            (0, 1, []),
            (602, 0, []),
            (353, 1, []),
            (0, 1, []),
            (604, 0, []),
        ]
    )
    assert text == (
        "if game_battle_result.is_win():\n"
        "    pass\n"
        "elif game_battle_result.is_escape():\n"
        "    game_over()\n"
    )


def test_unknown_code_placeholder_and_fail() -> None:
    text = _render([(9999, 0, [1, "a"])])
    assert text == '# Unknown Command Code 9999, parameters: [1, "a"]\n'

    with pytest.raises(TranslationError) as excinfo:
        _render([(9999, 0, [1, "a"])], unknown_command="fail")
    assert isinstance(excinfo.value.cause, UnrecognizedCode)
    assert excinfo.value.code == 9999


def test_plugin_command_generations_are_unknown_across_variants() -> None:
    assert _render([(357, 0, ["a", "b", "", {}])]).startswith("# Unknown Command Code 357")
    assert _render([(356, 0, ["a"])], variant=EngineVariant.MZ).startswith("# Unknown Command Code 356")


def test_parameter_count_mismatch_is_reported_with_position() -> None:
    with pytest.raises(TranslationError) as excinfo:
        _render([(230, 0, [])])
    assert excinfo.value.cause_kind == "SchemaMismatch"
    assert excinfo.value.command_index == 0


def test_multiline_calls_with_default_options() -> None:
    text = _render([(126, 0, [5, 1, 0, 3]), (230, 0, [10])], options=PythonRenderOptions())
    assert text == "gain_item(\n\titem=game_item_5,\n\tvalue=-3,\n)\nwait(duration=10)\n"


def test_translator_rejects_unknown_policy() -> None:
    with pytest.raises(ValueError):
        CommandTranslator(CommandRegistry.for_variant(EngineVariant.MV), unknown_command="ignore")


def test_labels_pass_name_keyword() -> None:
    assert _render([(118, 0, ["L1"])]) == "set_label(name='L1')\n"
    assert _render([(119, 0, ["L1"])]) == "jump_to_label(name='L1')\n"


def test_picture_commands() -> None:
    assert _render([(231, 0, [1, "Pic", 0, 0, 100, 200, 100, 100, 255, 0])]) == (
        "show_picture(picture_id=1, name='Pic', origin=0, x=100, y=200, scale_x=100, "
        "scale_y=100, opacity=255, blend_mode=0)\n"
    )
    text = _render([(232, 0, [1, "", 0, 1, 3, 4, 50, 50, 128, 0, 60, True, 2])], variant=EngineVariant.MZ)
    assert text == (
        "move_picture(picture_id=1, origin=0, x=game_variable_3, y=game_variable_4, scale_x=50, "
        "scale_y=50, opacity=128, blend_mode=0, duration=60, wait=True, easing_type=2)\n"
    )
    assert _render([(235, 0, [1])]) == "erase_picture(picture_id=1)\n"


def test_sound_effects_and_background_sounds() -> None:
    audio = {"name": "Rain", "pan": -10, "pitch": 90, "volume": 50}
    assert _render([(245, 0, [audio])]) == (
        "play_bgs(audio=AudioFile(name='Rain', pan=-10, pitch=90, volume=50))\n"
    )
    assert _render([(250, 0, [audio])]) == (
        "play_se(audio=AudioFile(name='Rain', pan=-10, pitch=90, volume=50))\n"
    )


def test_control_characters_in_comments_stay_valid_python() -> None:
    text = _render([(108, 0, ["a\x00b"]), (408, 0, ["tab\there"])])
    assert text == "# a\\x00b\n# tab\\there\n"
    ast.parse(text)

    text = _render(
        [
            (102, 0, [["x\x00y"], 1, 0, 2, 0]),
            (402, 0, [0, "x\x00y"]),
            (0, 1, []),
            (404, 0, []),
        ]
    )
    assert "if get_choice_index() == 0:  # x\\x00y\n" in text
    ast.parse(text)
