"""End-to-end tests for the event conversion pipeline."""

from __future__ import annotations

import ast
import logging

import pytest

from cmd2py import EngineVariant, EventConverter, PythonRenderOptions, TranslationOptions
from cmd2py.errors import TranslationError
from cmd2py.pipeline import Diagnostic


FLAT = PythonRenderOptions(indent="    ", multiline_calls=False)


def _row(code: int, indent: int = 0, parameters=None) -> dict:
    return {"code": code, "indent": indent, "parameters": parameters or []}


IF_ELSE = [
    _row(111, 0, [0, 1, 0]),
    _row(122, 1, [1, 1, 0, 0, 5]),
    _row(0, 1),
    _row(411, 0),
    _row(0, 1),
    _row(412, 0),
    _row(0, 0),
]


def _converter(variant: EngineVariant = EngineVariant.MV, **options) -> EventConverter:
    options.setdefault("render", FLAT)
    return EventConverter(variant, options=TranslationOptions(**options))


def test_if_else_end_to_end() -> None:
    result = _converter().convert_event(1, IF_ELSE)
    assert result.text == "if game_switch_1:\n    game_variable_1 = 5\nelse:\n    pass\n"
    assert result.diagnostics == ()
    assert not result.failed


def test_output_is_deterministic() -> None:
    converter = EventConverter(EngineVariant.MZ)
    first = converter.convert_event(3, IF_ELSE).text
    second = EventConverter(EngineVariant.MZ).convert_event(3, IF_ELSE).text
    assert first == second
    ast.parse(first)


def test_empty_event_renders_nothing() -> None:
    assert _converter().convert_event(1, [_row(0)]).text == ""


def test_unknown_command_placeholder_records_diagnostic(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="cmd2py.pipeline"):
        result = _converter().convert_event(4, [_row(9999, 0, [1, "a"]), _row(0)])
    assert result.text == '# Unknown Command Code 9999, parameters: [1, "a"]\n'
    assert len(result.diagnostics) == 1
    diagnostic = result.diagnostics[0]
    assert diagnostic.error_kind == "UnrecognizedCode"
    assert (diagnostic.event_id, diagnostic.command_index, diagnostic.code) == (4, 0, 9999)
    assert "placeholder for unknown code 9999" in caplog.text


def test_unknown_command_fail_policy() -> None:
    with pytest.raises(TranslationError) as excinfo:
        _converter(unknown_command="fail").convert_event(4, [_row(9999, 0, [1, "a"])])
    assert excinfo.value.cause_kind == "UnrecognizedCode"
    assert excinfo.value.event_id == 4


def test_structural_error_carries_raw_code() -> None:
    with pytest.raises(TranslationError) as excinfo:
        _converter().convert_event(2, [_row(0), _row(412, 0)])
    assert excinfo.value.cause_kind == "StructuralError"
    assert excinfo.value.command_index == 1
    assert excinfo.value.code == 412
    assert str(excinfo.value).startswith("event 2, command 1 (code 412): ")


def test_malformed_row_is_a_schema_mismatch() -> None:
    with pytest.raises(TranslationError) as excinfo:
        _converter().convert_event(2, [{"code": "101", "indent": 0, "parameters": []}])
    assert excinfo.value.cause_kind == "SchemaMismatch"


def test_malformed_row_reports_its_position() -> None:
    rows = [_row(230, 0, [5]), _row(230, 0, [5]), {"code": "230", "indent": 0, "parameters": [5]}]
    with pytest.raises(TranslationError) as excinfo:
        _converter().convert_event(4, rows)
    assert excinfo.value.cause_kind == "SchemaMismatch"
    assert excinfo.value.command_index == 2
    assert Diagnostic.from_error(excinfo.value).command_index == 2


def test_labels_and_self_switch_conditions_convert() -> None:
    rows = [
        _row(118, 0, ["start"]),
        _row(111, 0, [2, "A", 0]),
        _row(119, 1, ["start"]),
        _row(0, 1),
        _row(412, 0),
        _row(0, 0),
    ]
    run = _converter(on_event_error="skip").convert_events([(1, rows)])
    assert run.failed == ()
    assert run.diagnostics == ()
    assert run.events[0].text == (
        "set_label(name='start')\n"
        "if game_self_switches.get(map_id=self.map_id, event_id=self.event_id, name='A'):\n"
        "    jump_to_label(name='start')\n"
    )


BROKEN =[_row(111, 0, [0, 1, 0]), _row(0, 1)]
GOOD = [_row(230, 0, [15]), _row(0)]


def test_abort_policy_reraises() -> None:
    converter = _converter(on_event_error="abort")
    with pytest.raises(TranslationError):
        converter.convert_events([(1, GOOD), (2, BROKEN), (3, GOOD)])


def test_skip_policy_drops_failed_event() -> None:
    result = _converter(on_event_error="skip").convert_events([(1, GOOD), (2, BROKEN), (3, GOOD)])
    assert [event.event_id for event in result.failed] == [2]
    assert result.failed[0].text is None
    assert [diagnostic.error_kind for diagnostic in result.diagnostics] == ["StructuralError"]
    assert result.render() == "# event 1\nwait(duration=15)\n\n# event 3\nwait(duration=15)\n"


def test_placeholder_policy_keeps_stub() -> None:
    result = _converter(on_event_error="placeholder").convert_events([(2, BROKEN)])
    text = result.render()
    assert text.startswith("# event 2 could not be translated\n# StructuralError: ")
    assert text.endswith("pass\n")
    ast.parse(text)


def test_single_event_render_has_no_header() -> None:
    result = _converter().convert_events([(1, GOOD)])
    assert result.render() == "wait(duration=15)\n"


def test_invalid_options_are_rejected() -> None:
    with pytest.raises(ValueError):
        TranslationOptions(unknown_command="ignore")
    with pytest.raises(ValueError):
        TranslationOptions(on_event_error="retry")


def test_diagnostic_json_and_format() -> None:
    diagnostic = Diagnostic("Map001:3:0", 5, 111, "DataError", "switch value out of range")
    assert diagnostic.to_json() == {
        "event_id": "Map001:3:0",
        "command_index": 5,
        "code": 111,
        "error_kind": "DataError",
        "message": "switch value out of range",
    }
    assert diagnostic.format() == "event Map001:3:0 command 5 (code 111): DataError: switch value out of range"
