"""Lightweight Python syntax tree used as the translator output.

Translators do not produce text directly.  They build the small set of
dataclasses below (calls, assignments, conditionals, loops, comments) which
the emitter then walks with a :class:`PythonWriter`.  Expressions render to
single-line strings; statements know how to lay themselves out so that the
writer alone decides indentation and call wrapping.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from .python_literals import escape_comment_text, format_value
from .python_writer import PythonWriter


# ---------------------------------------------------------------------------
# expression nodes
# ---------------------------------------------------------------------------


class Expression:
    """Base class for all expression nodes."""

    def render(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class Literal(Expression):
    value: Any

    def render(self) -> str:
        return format_value(self.value)


@dataclass(frozen=True)
class Name(Expression):
    name: str

    def render(self) -> str:
        return self.name


@dataclass(frozen=True)
class Attribute(Expression):
    target: Expression
    attribute: str

    def render(self) -> str:
        return f"{self.target.render()}.{self.attribute}"


@dataclass(frozen=True)
class Subscript(Expression):
    target: Expression
    index: Expression

    def render(self) -> str:
        return f"{self.target.render()}[{self.index.render()}]"


@dataclass(frozen=True)
class Unary(Expression):
    operator: str
    operand: Expression

    def render(self) -> str:
        inner = self.operand.render()
        if isinstance(self.operand, Binary):
            inner = f"({inner})"
        return f"{self.operator}{inner}"


@dataclass(frozen=True)
class Binary(Expression):
    left: Expression
    operator: str
    right: Expression

    def render(self) -> str:
        return f"{self.left.render()} {self.operator} {self.right.render()}"


@dataclass(frozen=True)
class Call(Expression):
    callee: Expression
    args: Tuple[Expression, ...] = ()
    keywords: Tuple[Tuple[str, Expression], ...] = ()

    def arguments(self) -> List[str]:
        rendered = [arg.render() for arg in self.args]
        rendered.extend(f"{key}={value.render()}" for key, value in self.keywords)
        return rendered

    def render(self) -> str:
        return f"{self.callee.render()}({', '.join(self.arguments())})"


@dataclass(frozen=True)
class ListExpr(Expression):
    items: Tuple[Expression, ...] = ()

    def render(self) -> str:
        return "[" + ", ".join(item.render() for item in self.items) + "]"


def call(path: str, /, *args: Expression, **keywords: Expression) -> Call:
    """Build a call to a dotted name; keyword order follows the caller."""

    return Call(dotted(path), tuple(args), tuple(keywords.items()))


def dotted(path: str) -> Expression:
    head, *rest = path.split(".")
    expression: Expression = Name(head)
    for part in rest:
        expression = Attribute(expression, part)
    return expression


# ---------------------------------------------------------------------------
# statement nodes
# ---------------------------------------------------------------------------


class Statement:
    """Base class for all emitted statements."""

    def emit(self, writer: PythonWriter) -> None:
        raise NotImplementedError

    def has_code(self) -> bool:
        return True


@dataclass
class Comment(Statement):
    text: str

    def emit(self, writer: PythonWriter) -> None:
        writer.write_comment(self.text)

    def has_code(self) -> bool:
        return False


@dataclass
class ExpressionStatement(Statement):
    expression: Expression

    def emit(self, writer: PythonWriter) -> None:
        if isinstance(self.expression, Call):
            writer.write_call(self.expression.callee.render(), self.expression.arguments())
        else:
            writer.write_line(self.expression.render())


@dataclass
class Assign(Statement):
    target: Expression
    value: Expression
    operator: str = "="

    def emit(self, writer: PythonWriter) -> None:
        head = f"{self.target.render()} {self.operator} "
        if isinstance(self.value, Call):
            writer.write_call(head + self.value.callee.render(), self.value.arguments())
        else:
            writer.write_line(head + self.value.render())


@dataclass
class Break(Statement):
    def emit(self, writer: PythonWriter) -> None:
        writer.write_line("break")


@dataclass
class Block(Statement):
    statements: List[Statement] = field(default_factory=list)

    def extend(self, other: Iterable[Statement]) -> None:
        self.statements.extend(other)

    def has_code(self) -> bool:
        return any(statement.has_code() for statement in self.statements)

    def emit(self, writer: PythonWriter) -> None:
        for statement in self.statements:
            statement.emit(writer)

    def emit_body(self, writer: PythonWriter) -> None:
        """Emit as an indented suite, adding ``pass`` when nothing executes."""

        with writer.indented():
            self.emit(writer)
            if not self.has_code():
                writer.write_line("pass")


@dataclass
class IfClause:
    condition: Optional[Expression]
    body: Block
    comment: Optional[str] = None


@dataclass
class If(Statement):
    clauses: Sequence[IfClause]

    def emit(self, writer: PythonWriter) -> None:
        for index, clause in enumerate(self.clauses):
            if clause.condition is None:
                header = "else:"
            else:
                keyword = "if" if index == 0 else "elif"
                header = f"{keyword} {clause.condition.render()}:"
            if clause.comment:
                header += f"  # {escape_comment_text(clause.comment)}"
            writer.write_line(header)
            clause.body.emit_body(writer)


@dataclass
class While(Statement):
    condition: Expression
    body: Block

    def emit(self, writer: PythonWriter) -> None:
        writer.write_line(f"while {self.condition.render()}:")
        self.body.emit_body(writer)


def render_statements(statements: Iterable[Statement], writer: PythonWriter) -> str:
    for statement in statements:
        statement.emit(writer)
    return writer.render()
