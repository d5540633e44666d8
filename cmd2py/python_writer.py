"""Helpers for rendering generated Python source code.

The writer keeps every layout decision in one place: indentation is tracked as
a nesting depth and expanded with a configurable unit, blank lines collapse,
and calls are laid out either on one line or one argument per line with a
trailing comma.  Statement nodes only ever ask for "a line at the current
depth" which keeps the output independent from whatever indent values the
source rows carried.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Sequence

from .python_literals import escape_comment_text


@dataclass
class PythonRenderOptions:
    """Customisation knobs that influence Python rendering."""

    indent: str = "\t"
    multiline_calls: bool = True

    @classmethod
    def from_indent_spec(cls, spec: str, *, multiline_calls: bool = True) -> "PythonRenderOptions":
        """Build options from ``"tab"`` or a number of spaces."""

        if spec == "tab":
            return cls(indent="\t", multiline_calls=multiline_calls)
        try:
            width = int(spec)
        except ValueError:
            raise ValueError(f"indent must be 'tab' or a number of spaces, got {spec!r}") from None
        if width <= 0:
            raise ValueError("indent width must be positive")
        return cls(indent=" " * width, multiline_calls=multiline_calls)


class PythonWriter:
    """Incremental Python pretty printer."""

    def __init__(self, options: PythonRenderOptions | None = None) -> None:
        self.options = options or PythonRenderOptions()
        self._indent = 0
        self._lines: List[str] = []
        self._pending_blank = False
        self._saw_content = False

    # ------------------------------------------------------------------
    # basic line emission helpers
    # ------------------------------------------------------------------
    def write_line(self, text: str = "") -> None:
        """Append ``text`` at the current depth.

        Empty text schedules a blank line which only materialises once more
        content follows; consecutive blank lines collapse to one.
        """

        if not text:
            if self._saw_content:
                self._pending_blank = True
            return
        if self._pending_blank:
            self._lines.append("")
            self._pending_blank = False
        self._lines.append(f"{self.options.indent * self._indent}{text}")
        self._saw_content = True

    def write_comment(self, text: str) -> None:
        text = escape_comment_text(text)
        if not text:
            self.write_line("#")
        else:
            self.write_line(f"# {text}")

    def write_call(self, head: str, arguments: Sequence[str]) -> None:
        """Emit ``head(arguments)`` honouring :attr:`PythonRenderOptions.multiline_calls`.

        Calls with a single argument always stay on one line.
        """

        if len(arguments) < 2 or not self.options.multiline_calls:
            self.write_line(f"{head}({', '.join(arguments)})")
            return
        self.write_line(f"{head}(")
        with self.indented():
            for argument in arguments:
                self.write_line(f"{argument},")
        self.write_line(")")

    # ------------------------------------------------------------------
    # indentation helpers
    # ------------------------------------------------------------------
    @contextmanager
    def indented(self) -> Iterator[None]:
        self.indent()
        try:
            yield
        finally:
            self.dedent()

    def indent(self) -> None:
        self._indent += 1

    def dedent(self) -> None:
        if self._indent == 0:
            raise ValueError("indentation underflow")
        self._indent -= 1

    @property
    def depth(self) -> int:
        return self._indent

    # ------------------------------------------------------------------
    # rendering helpers
    # ------------------------------------------------------------------
    def render(self) -> str:
        """Return the accumulated source code."""

        if not self._lines:
            return ""
        return "\n".join(self._lines).rstrip() + "\n"
