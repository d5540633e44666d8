#!/usr/bin/env python3
"""Command-line entry point that "decompiles" event commands to Python."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from cmd2py import EngineVariant, EventConverter, NameTable, PythonRenderOptions, TranslationOptions
from cmd2py.project import load_event_lists


logger = logging.getLogger("commands2py")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("input", type=Path, help="MapXXX.json, CommonEvents.json or Troops.json")
    parser.add_argument("--event-id", type=int, default=None, help="Convert only the event with this id")
    parser.add_argument("--event-page", type=int, default=None, help="Convert only this page of the event")
    parser.add_argument(
        "--variant",
        choices=[variant.value for variant in EngineVariant],
        default=EngineVariant.MV.value,
        help="Editor generation that produced the project",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON or TOML name table mapping database ids to identifiers",
    )
    parser.add_argument("--output", "-o", type=Path, default=Path("out.py"), help="Path of the generated file")
    parser.add_argument(
        "--unknown-commands",
        choices=["placeholder", "fail"],
        default="placeholder",
        help="Emit a placeholder comment for unknown codes or fail the event",
    )
    parser.add_argument(
        "--on-error",
        choices=["abort", "skip", "placeholder"],
        default="abort",
        help="What to do with an event that cannot be translated",
    )
    parser.add_argument("--indent", default="tab", help="'tab' or a number of spaces")
    parser.add_argument(
        "--single-line-calls",
        action="store_true",
        help="Render calls on one line instead of one argument per line",
    )
    parser.add_argument("--diagnostics", type=Path, default=None, help="Write diagnostics as JSON")
    parser.add_argument("--overwrite", action="store_true", help="Replace an existing output file")
    parser.add_argument("--dry-run", action="store_true", help="Convert without writing the output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def write_atomically(path: Path, text: str) -> None:
    temp_path = path.with_name(path.name + ".tmp")
    try:
        with temp_path.open("w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.dry_run and not args.overwrite and args.output.exists():
        logger.error('output path "%s" already exists; use --overwrite to replace it', args.output)
        return 2

    try:
        names = NameTable.load(args.config) if args.config else NameTable()
        render = PythonRenderOptions.from_indent_spec(
            args.indent, multiline_calls=not args.single_line_calls
        )
        options = TranslationOptions(
            unknown_command=args.unknown_commands,
            on_event_error=args.on_error,
            render=render,
        )
        events = load_event_lists(args.input, event_id=args.event_id, page=args.event_page)
        converter = EventConverter(EngineVariant(args.variant), names=names, options=options)
        result = converter.convert_events(events)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    try:
        if args.diagnostics is not None:
            payload = [diagnostic.to_json() for diagnostic in result.diagnostics]
            args.diagnostics.write_text(json.dumps(payload, indent=2, ensure_ascii=False), "utf-8")
        if args.dry_run:
            logger.info("converted %d events (dry run)", len(result.events))
            return 0
        write_atomically(args.output, result.render())
    except OSError as exc:
        logger.error("failed to write output: %s", exc)
        return 1
    logger.info("converted %d events into %s", len(result.events), args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
