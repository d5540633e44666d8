"""Exception taxonomy used throughout the converter.

Every failure that can abort the translation of an event derives from
:class:`ConversionError`.  The individual subclasses mirror the broad classes
of problems found in real project files: parameters that do not fit the
declared layout, opcodes that the active editor generation does not know,
control-flow markers that fail to nest and values outside their strict
domain.  :class:`TranslationError` wraps any of them with the position of the
offending command so callers can report a precise location.
"""

from __future__ import annotations

from typing import Optional


class ConversionError(ValueError):
    """Base error for the converter."""

    error_kind = "ConversionError"


class SchemaMismatch(ConversionError):
    """Raised when a parameter list disagrees with the declared schema."""

    error_kind = "SchemaMismatch"

    def __init__(self, message: str, *, command_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.command_index = command_index


class UnrecognizedCode(ConversionError):
    """Raised when a command code has no mapping under the active variant."""

    error_kind = "UnrecognizedCode"

    def __init__(self, code: int, variant: str) -> None:
        super().__init__(f"unrecognized command code {code} for variant {variant}")
        self.code = code
        self.variant = variant


class StructuralError(ConversionError):
    """Raised when control-flow markers fail to nest correctly."""

    error_kind = "StructuralError"

    def __init__(self, message: str, *, command_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.command_index = command_index


class DataError(ConversionError):
    """Raised for a value outside of its strict domain."""

    error_kind = "DataError"


class ConfigError(ConversionError):
    """Raised for malformed name tables or option files."""

    error_kind = "ConfigError"


class ProjectFileError(ConversionError):
    """Raised when an event cannot be extracted from a project file."""

    error_kind = "ProjectFileError"


class TranslationError(ConversionError):
    """Wrap a conversion failure with the position of the failing command."""

    error_kind = "TranslationError"

    def __init__(
        self,
        cause: ConversionError,
        *,
        event_id: object,
        command_index: Optional[int],
        code: Optional[int],
    ) -> None:
        location = f"event {event_id}"
        if command_index is not None:
            location += f", command {command_index}"
        if code is not None:
            location += f" (code {code})"
        super().__init__(f"{location}: {cause}")
        self.cause = cause
        self.event_id = event_id
        self.command_index = command_index
        self.code = code

    @property
    def cause_kind(self) -> str:
        return self.cause.error_kind
