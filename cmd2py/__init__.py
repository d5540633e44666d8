"""Public package exports for the event command to Python converter."""

from .command import AudioFile, ImageFile, MoveCommand, MoveRoute, RawCommand
from .config import NameTable
from .errors import (
    ConversionError,
    DataError,
    SchemaMismatch,
    StructuralError,
    TranslationError,
    UnrecognizedCode,
)
from .operands import MaybeRef, decode_int_bool, decode_operands
from .pipeline import Diagnostic, EventConverter, EventResult, RunResult, TranslationOptions
from .python_writer import PythonRenderOptions, PythonWriter
from .registry import CommandKind, CommandRegistry, EngineVariant
from .structure import Compound, Leaf, reconstruct
from .translators import CommandTranslator

__all__ = [
    "AudioFile",
    "ImageFile",
    "MoveCommand",
    "MoveRoute",
    "RawCommand",
    "NameTable",
    "ConversionError",
    "DataError",
    "SchemaMismatch",
    "StructuralError",
    "TranslationError",
    "UnrecognizedCode",
    "MaybeRef",
    "decode_int_bool",
    "decode_operands",
    "Diagnostic",
    "EventConverter",
    "EventResult",
    "RunResult",
    "TranslationOptions",
    "PythonRenderOptions",
    "PythonWriter",
    "CommandKind",
    "CommandRegistry",
    "EngineVariant",
    "Compound",
    "Leaf",
    "reconstruct",
    "CommandTranslator",
]
