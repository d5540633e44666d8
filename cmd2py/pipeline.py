"""Per-event conversion pipeline.

:class:`EventConverter` wires the stages together for one event: raw rows are
coerced into :class:`RawCommand` records, reconstructed into a block tree,
translated into statements and finally rendered.  Translation of an event is
all-or-nothing; any :class:`ConversionError` aborts it and surfaces as a
:class:`TranslationError` carrying the event id and command index.

What happens to a failed event is the caller's decision, expressed through
:attr:`TranslationOptions.on_event_error` when several events are converted
with :meth:`EventConverter.convert_events`: ``abort`` re-raises, ``skip``
drops the event and ``placeholder`` keeps a commented stub in its place.  In
every case the failure is recorded as a :class:`Diagnostic`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .command import coerce_commands
from .config import NameTable
from .errors import ConversionError, TranslationError
from .python_ast import render_statements
from .python_writer import PythonRenderOptions, PythonWriter
from .registry import CommandRegistry, EngineVariant
from .structure import reconstruct
from .translators import UNKNOWN_FAIL, UNKNOWN_PLACEHOLDER, CommandTranslator


logger = logging.getLogger(__name__)

ON_ERROR_ABORT = "abort"
ON_ERROR_SKIP = "skip"
ON_ERROR_PLACEHOLDER = "placeholder"


@dataclass
class TranslationOptions:
    """Policies and layout knobs for a conversion run."""

    unknown_command: str = UNKNOWN_PLACEHOLDER
    on_event_error: str = ON_ERROR_ABORT
    render: PythonRenderOptions = field(default_factory=PythonRenderOptions)

    def __post_init__(self) -> None:
        if self.unknown_command not in (UNKNOWN_PLACEHOLDER, UNKNOWN_FAIL):
            raise ValueError(f"invalid unknown command policy {self.unknown_command!r}")
        if self.on_event_error not in (ON_ERROR_ABORT, ON_ERROR_SKIP, ON_ERROR_PLACEHOLDER):
            raise ValueError(f"invalid event error policy {self.on_event_error!r}")


@dataclass(frozen=True)
class Diagnostic:
    event_id: Any
    command_index: Optional[int]
    code: Optional[int]
    error_kind: str
    message: str

    @classmethod
    def from_error(cls, error: TranslationError) -> "Diagnostic":
        return cls(
            event_id=error.event_id,
            command_index=error.command_index,
            code=error.code,
            error_kind=error.cause_kind,
            message=str(error.cause),
        )

    def to_json(self) -> dict:
        return {
            "event_id": str(self.event_id),
            "command_index": self.command_index,
            "code": self.code,
            "error_kind": self.error_kind,
            "message": self.message,
        }

    def format(self) -> str:
        location = f"event {self.event_id}"
        if self.command_index is not None:
            location += f" command {self.command_index}"
        if self.code is not None:
            location += f" (code {self.code})"
        return f"{location}: {self.error_kind}: {self.message}"


@dataclass(frozen=True)
class EventResult:
    event_id: Any
    text: Optional[str]
    diagnostics: Tuple[Diagnostic, ...] = ()
    failed: bool = False


@dataclass(frozen=True)
class RunResult:
    events: Tuple[EventResult, ...] = ()

    @property
    def diagnostics(self) -> Tuple[Diagnostic, ...]:
        return tuple(diagnostic for event in self.events for diagnostic in event.diagnostics)

    @property
    def failed(self) -> Tuple[EventResult, ...]:
        return tuple(event for event in self.events if event.failed)

    def render(self) -> str:
        """Concatenate the text of every emitted event under a header comment."""

        if len(self.events) == 1 and self.events[0].text is not None:
            return self.events[0].text
        sections: List[str] = []
        for event in self.events:
            if event.text is None:
                continue
            sections.append(f"# event {event.event_id}\n{event.text}")
        return "\n\n".join(section.rstrip("\n") for section in sections) + ("\n" if sections else "")


class EventConverter:
    """Convert event command lists for one engine variant."""

    def __init__(
        self,
        variant: EngineVariant,
        *,
        names: Optional[NameTable] = None,
        options: Optional[TranslationOptions] = None,
    ) -> None:
        self.variant = variant
        self.registry = CommandRegistry.for_variant(variant)
        self.names = names or NameTable()
        self.options = options or TranslationOptions()

    def convert_event(self, event_id: Any, commands: Sequence[Any]) -> EventResult:
        """Translate one event, raising :class:`TranslationError` on failure."""

        translator = CommandTranslator(
            self.registry, self.names, unknown_command=self.options.unknown_command
        )
        try:
            raw = coerce_commands(commands)
            blocks = reconstruct(raw, self.registry)
            translated = translator.translate(blocks, event_id=event_id)
        except TranslationError:
            raise
        except ConversionError as exc:
            code = None
            index = getattr(exc, "command_index", None)
            if index is not None and 0 <= index < len(commands):
                code = _raw_code(commands[index])
            raise TranslationError(exc, event_id=event_id, command_index=index, code=code) from exc

        diagnostics = []
        for entry, error in translated.placeholders:
            logger.warning(
                "event %s command %d: emitted placeholder for unknown code %d",
                event_id,
                entry.index,
                entry.code,
            )
            diagnostics.append(
                Diagnostic(event_id, entry.index, entry.code, error.error_kind, str(error))
            )

        writer = PythonWriter(self.options.render)
        text = render_statements(translated.body.statements, writer)
        logger.debug("event %s: translated %d commands", event_id, len(commands))
        return EventResult(event_id, text, tuple(diagnostics))

    def convert_events(self, events: Iterable[Tuple[Any, Sequence[Any]]]) -> RunResult:
        """Translate several events applying the failed-event policy."""

        results: List[EventResult] = []
        for event_id, commands in events:
            try:
                results.append(self.convert_event(event_id, commands))
            except TranslationError as exc:
                if self.options.on_event_error == ON_ERROR_ABORT:
                    raise
                diagnostic = Diagnostic.from_error(exc)
                if self.options.on_event_error == ON_ERROR_SKIP:
                    logger.warning("skipping %s", diagnostic.format())
                    results.append(EventResult(event_id, None, (diagnostic,), failed=True))
                else:
                    logger.warning("substituting placeholder for %s", diagnostic.format())
                    results.append(
                        EventResult(event_id, _placeholder_text(diagnostic), (diagnostic,), failed=True)
                    )
        return RunResult(tuple(results))


def _raw_code(command: Any) -> Optional[int]:
    code = getattr(command, "code", None)
    if code is None and isinstance(command, dict):
        code = command.get("code")
    return code if isinstance(code, int) else None


def _placeholder_text(diagnostic: Diagnostic) -> str:
    writer = PythonWriter()
    writer.write_comment(f"event {diagnostic.event_id} could not be translated")
    writer.write_comment(f"{diagnostic.error_kind}: {diagnostic.message}")
    writer.write_line("pass")
    return writer.render()
