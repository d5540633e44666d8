"""Rebuild nested blocks from indent-coded command lists.

The editor serialises control flow as a flat list: a conditional branch is an
opening row, the rows of its body tagged with a deeper indent, an optional
``else`` row at the opener's indent followed by more body rows, and finally a
closing row.  Loops, choice menus and battle result handlers follow the same
pattern with their own marker codes.

:func:`reconstruct` recovers the nesting in a single pass.  Continuation rows
(text lines, comment lines, script lines, ...) are first folded into the lead
command they extend so that every remaining entry corresponds to one source
level command.  The remaining entries are then walked while maintaining an
explicit stack of open frames.  Any departure from the expected layout raises
:class:`StructuralError` immediately; a frame is never closed implicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from .command import RawCommand
from .errors import StructuralError
from .registry import FAMILIES, CommandKind, CommandRegistry, FamilySpec, Role


@dataclass(frozen=True)
class CommandEntry:
    """A lead command, its folded continuation rows and its source position."""

    index: int
    command: RawCommand
    kind: Optional[CommandKind]
    extras: Tuple[RawCommand, ...] = ()

    @property
    def code(self) -> int:
        return self.command.code

    @property
    def indent(self) -> int:
        return self.command.indent


@dataclass(frozen=True)
class Leaf:
    entry: CommandEntry


@dataclass(frozen=True)
class Branch:
    """Children that follow a middle marker (``else``, ``when`` ...)."""

    marker: CommandEntry
    children: Tuple["Block", ...] = ()


@dataclass(frozen=True)
class Compound:
    header: CommandEntry
    body: Tuple["Block", ...] = ()
    branches: Tuple[Branch, ...] = ()
    closer: Optional[CommandEntry] = None

    @property
    def family(self) -> Optional[str]:
        return self.header.kind.family if self.header.kind else None

    @property
    def alternate(self) -> Optional[Tuple["Block", ...]]:
        for branch in self.branches:
            if branch.marker.kind is not None and branch.marker.kind.role is Role.SPLIT:
                return branch.children
        return None


Block = Union[Leaf, Compound]


def fold_continuations(commands: Sequence[RawCommand], registry: CommandRegistry) -> List[CommandEntry]:
    """Attach continuation rows to the lead command they extend."""

    entries: List[CommandEntry] = []
    for index, command in enumerate(commands):
        kind = registry.lookup(command.code)
        if kind is not None and kind.role is Role.CONTINUATION:
            previous = entries[-1] if entries else None
            if previous is None or previous.code != kind.lead:
                raise StructuralError(
                    f"{kind.name} row without a preceding lead command {kind.lead}",
                    command_index=index,
                )
            if command.indent != previous.indent:
                raise StructuralError(
                    f"{kind.name} row at indent {command.indent} does not match "
                    f"its lead command at indent {previous.indent}",
                    command_index=index,
                )
            entries[-1] = CommandEntry(
                previous.index, previous.command, previous.kind, previous.extras + (command,)
            )
            continue
        entries.append(CommandEntry(index, command, kind))
    return entries


@dataclass
class _Frame:
    header: Optional[CommandEntry]
    indent: int
    spec: Optional[FamilySpec] = None
    body: List[Block] = field(default_factory=list)
    branches: List[Tuple[CommandEntry, List[Block]]] = field(default_factory=list)

    def current(self) -> List[Block]:
        if self.branches:
            return self.branches[-1][1]
        return self.body

    def marker_count(self, code: int) -> int:
        return sum(1 for marker, _ in self.branches if marker.code == code)

    def describe(self) -> str:
        assert self.header is not None and self.header.kind is not None
        return f"{self.header.kind.name} at command {self.header.index}"


def reconstruct(commands: Sequence[RawCommand], registry: CommandRegistry) -> Tuple[Block, ...]:
    """Build the block tree for one event's command list."""

    root = _Frame(header=None, indent=-1)
    stack: List[_Frame] = [root]

    for entry in fold_continuations(commands, registry):
        kind = entry.kind
        top = stack[-1]

        if kind is not None and kind.is_marker:
            _apply_marker(stack, entry)
            continue

        if top.header is not None and entry.indent <= top.indent:
            raise StructuralError(
                f"indent dropped to {entry.indent} before {top.describe()} was closed",
                command_index=entry.index,
            )

        if kind is not None and kind.code == 113 and not any(
            frame.spec is not None and frame.spec.name == "loop" for frame in stack
        ):
            raise StructuralError("break outside of a loop", command_index=entry.index)

        if kind is not None and kind.role is Role.OPEN:
            stack.append(_Frame(header=entry, indent=entry.indent, spec=FAMILIES[kind.family]))
            continue

        top.current().append(Leaf(entry))

    if len(stack) > 1:
        unclosed = stack[-1]
        raise StructuralError(
            f"command list ended before {unclosed.describe()} was closed",
            command_index=unclosed.header.index if unclosed.header else None,
        )
    return tuple(root.body)


def _apply_marker(stack: List[_Frame], entry: CommandEntry) -> None:
    kind = entry.kind
    assert kind is not None
    top = stack[-1]
    if top.spec is None or top.spec.name != kind.family:
        raise StructuralError(
            f"{kind.name} without an open {kind.family} block", command_index=entry.index
        )
    if entry.indent != top.indent:
        raise StructuralError(
            f"{kind.name} at indent {entry.indent} does not match {top.describe()} "
            f"at indent {top.indent}",
            command_index=entry.index,
        )

    if kind.role is Role.CLOSE:
        if top.spec.empty_header and top.body:
            raise StructuralError(
                f"unexpected commands between {top.describe()} and its first marker",
                command_index=_block_index(top.body[0]),
            )
        stack.pop()
        compound = Compound(
            header=top.header,
            body=tuple(top.body),
            branches=tuple(Branch(marker, tuple(children)) for marker, children in top.branches),
            closer=entry,
        )
        stack[-1].current().append(compound)
        return

    spec = top.spec
    limit = spec.markers.get(kind.code)
    if limit is not None and top.marker_count(kind.code) >= limit:
        raise StructuralError(
            f"duplicate {kind.name} inside {top.describe()}", command_index=entry.index
        )
    if spec.ordered and top.branches and top.branches[-1][0].code > kind.code:
        raise StructuralError(
            f"{kind.name} out of order inside {top.describe()}", command_index=entry.index
        )
    if spec.empty_header and not top.branches and top.body:
        raise StructuralError(
            f"unexpected commands between {top.describe()} and its first {kind.name}",
            command_index=_block_index(top.body[0]),
        )
    top.branches.append((entry, []))


def _block_index(block: Block) -> int:
    if isinstance(block, Leaf):
        return block.entry.index
    return block.header.index
