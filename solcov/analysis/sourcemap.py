"""
Decoder for solc compressed source maps.

A compressed source map is a ``;``-separated list with one ``s:l:f:j:m``
element per instruction. Empty or missing fields repeat the value of the
previous element. Consecutive instructions mapping to the same source range
are folded into a single entry covering a run of instruction offsets.

Offsets are instruction indices by default. When the bytecode object is
supplied, offsets are program counters instead, which is what EVM tracers
record.
"""

import re
from bisect import bisect_right
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import Enum

from solcov.errors import SourceMapError

# Unlinked library references: __$<34 hex chars>$__ or legacy __<name padded>__
LIBRARY_PLACEHOLDER = re.compile(r"__.{36}__")

PUSH1 = 0x60
PUSH32 = 0x7F


class JumpType(str, Enum):
    """Jump annotation of a source map element."""

    INTO = "i"
    OUT = "o"
    REGULAR = "-"


@dataclass(frozen=True)
class SourceMapEntry:
    """A run of instruction offsets mapped to one source byte range."""

    offset: int
    size: int
    start: int
    length: int
    source_index: int
    jump: JumpType = JumpType.REGULAR
    modifier_depth: int = 0

    @property
    def end(self) -> int:
        """Exclusive end of the offset run."""
        return self.offset + self.size

    @property
    def source_end(self) -> int:
        return self.start + self.length

    @property
    def has_source(self) -> bool:
        """Compiler-generated code is mapped to source index -1."""
        return self.source_index >= 0 and self.start >= 0 and self.length >= 0

    def covers(self, offset: int) -> bool:
        return self.offset <= offset < self.end


class SourceMap(Sequence[SourceMapEntry]):
    """Immutable, offset-ordered sequence of source map entries."""

    def __init__(self, entries: Sequence[SourceMapEntry] = ()):
        self._entries = tuple(entries)
        self._offsets = [entry.offset for entry in self._entries]

    def find(self, offset: int) -> SourceMapEntry | None:
        """
        Find the entry whose offset run contains an instruction offset.

        Args:
            offset: Instruction offset (index or program counter)

        Returns:
            The covering entry, or None if no entry covers the offset
        """
        position = bisect_right(self._offsets, offset) - 1
        if position < 0:
            return None
        entry = self._entries[position]
        return entry if entry.covers(offset) else None

    def __getitem__(self, index):  # type: ignore[override]
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SourceMapEntry]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"SourceMap({len(self._entries)} entries)"


def instruction_offsets(bytecode: str) -> list[tuple[int, int]]:
    """
    Split a bytecode object into instructions.

    Args:
        bytecode: Hex bytecode, with or without 0x prefix; may contain
            unlinked library placeholders

    Returns:
        (program counter, instruction size) for every instruction
    """
    code = bytecode[2:] if bytecode.startswith("0x") else bytecode
    code = LIBRARY_PLACEHOLDER.sub("0" * 40, code)
    try:
        raw = bytes.fromhex(code)
    except ValueError as e:
        raise SourceMapError(f"Invalid bytecode: {e}") from e

    result: list[tuple[int, int]] = []
    pc = 0
    while pc < len(raw):
        opcode = raw[pc]
        size = 1
        if PUSH1 <= opcode <= PUSH32:
            size += opcode - PUSH1 + 1
        result.append((pc, size))
        pc += size
    return result


def _parse_int(value: str, element: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise SourceMapError(f"Invalid source map element: {element!r}") from None


def decode_source_map(source_map: str, bytecode: str | None = None) -> SourceMap:
    """
    Decode a solc compressed source map.

    Args:
        source_map: Compressed source map string
        bytecode: Optional bytecode object; when given, entry offsets are
            program counters rather than instruction indices

    Returns:
        SourceMap with consecutive identical elements folded together

    Raises:
        SourceMapError: If an element or the bytecode cannot be decoded
    """
    if not source_map:
        return SourceMap()

    elements = source_map.split(";")
    if bytecode is not None:
        layout = instruction_offsets(bytecode)
        if len(layout) < len(elements):
            raise SourceMapError(
                f"Source map has {len(elements)} elements but bytecode "
                f"only {len(layout)} instructions"
            )
    else:
        layout = [(i, 1) for i in range(len(elements))]

    start, length, index = -1, -1, -1
    jump = JumpType.REGULAR
    depth = 0
    entries: list[SourceMapEntry] = []

    for element, (pc, size) in zip(elements, layout):
        fields = element.split(":")
        if len(fields) > 0 and fields[0]:
            start = _parse_int(fields[0], element)
        if len(fields) > 1 and fields[1]:
            length = _parse_int(fields[1], element)
        if len(fields) > 2 and fields[2]:
            index = _parse_int(fields[2], element)
        if len(fields) > 3 and fields[3]:
            try:
                jump = JumpType(fields[3])
            except ValueError:
                raise SourceMapError(f"Invalid jump type in element: {element!r}") from None
        if len(fields) > 4 and fields[4]:
            depth = _parse_int(fields[4], element)

        previous = entries[-1] if entries else None
        if (
            previous is not None
            and previous.end == pc
            and (previous.start, previous.length, previous.source_index, previous.jump)
            == (start, length, index, jump)
            and previous.modifier_depth == depth
        ):
            entries[-1] = SourceMapEntry(
                offset=previous.offset,
                size=previous.size + size,
                start=start,
                length=length,
                source_index=index,
                jump=jump,
                modifier_depth=depth,
            )
        else:
            entries.append(
                SourceMapEntry(
                    offset=pc,
                    size=size,
                    start=start,
                    length=length,
                    source_index=index,
                    jump=jump,
                    modifier_depth=depth,
                )
            )

    return SourceMap(entries)
