"""
Coverage data model.

Items are the source-level units that hits are attributed to; a SourceEntry
owns the items of one source file under one compiler version, and a HitMap
carries the raw per-instruction evidence of one test run.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from intervaltree import IntervalTree


class ItemKind(str, Enum):
    """Kinds of coverage items."""

    STATEMENT = "statement"
    BRANCH = "branch"
    LINE = "line"


@dataclass
class CoverageItem:
    """A statement, branch, or line marker tracked for coverage."""

    kind: ItemKind
    start: int
    length: int
    line: int
    index: int
    hits: int = 0
    branch_id: int | None = None
    path_id: int | None = None

    @property
    def end(self) -> int:
        """Exclusive end of the byte range."""
        return self.start + self.length

    @property
    def is_hit(self) -> bool:
        return self.hits > 0

    def contains(self, start: int, end: int) -> bool:
        """Check whether the byte range [start, end) lies within this item."""
        return self.start <= start and end <= self.end

    def increment(self, count: int) -> None:
        """Add hits to the item. Counters never decrease."""
        if count < 0:
            raise ValueError(f"Hit count must be non-negative, got {count}")
        self.hits += count

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "index": self.index,
            "kind": self.kind.value,
            "start": self.start,
            "length": self.length,
            "line": self.line,
            "hits": self.hits,
        }
        if self.kind == ItemKind.BRANCH:
            result["branch_id"] = self.branch_id
            result["path_id"] = self.path_id
        return result


@dataclass
class SourceEntry:
    """
    One source file compiled by one compiler version.

    Holds the ordered coverage items of the file and the original text,
    which reporters use to turn byte offsets into line numbers.
    """

    path: str
    source_id: int
    source: str
    items: list[CoverageItem] = field(default_factory=list)
    _tree: IntervalTree | None = field(default=None, init=False, repr=False, compare=False)

    def items_at(self, start: int, end: int) -> list[CoverageItem]:
        """
        Find the items whose byte range contains [start, end).

        Args:
            start: First byte of the mapped source range
            end: Exclusive end of the mapped source range

        Returns:
            Containing items, in identity order
        """
        if self._tree is None:
            # Zero-length items can never contain a mapped range
            self._tree = IntervalTree.from_tuples(
                (item.start, item.end, item) for item in self.items if item.length > 0
            )
        found = [iv.data for iv in self._tree.at(start) if iv.data.contains(start, end)]
        return sorted(found, key=lambda item: item.index)

    def item(self, index: int) -> CoverageItem:
        """Get an item by its identity index."""
        return self.items[index]

    @property
    def total_items(self) -> int:
        return len(self.items)

    @property
    def hit_items(self) -> int:
        return sum(1 for item in self.items if item.is_hit)

    def items_of_kind(self, kind: ItemKind) -> list[CoverageItem]:
        """Get all items of one kind."""
        return [item for item in self.items if item.kind == kind]


class HitMap:
    """
    Raw execution evidence of one test run.

    Maps a contract address to the number of times each instruction
    offset executed at that address.
    """

    def __init__(self, hits: Mapping[str, Mapping[int, int]] | None = None):
        self._hits: dict[str, dict[int, int]] = {}
        for address, offsets in (hits or {}).items():
            for offset, count in offsets.items():
                self.record(address, offset, count)

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[Any, Any]]) -> "HitMap":
        """Create a hit map from JSON-style data with string offsets."""
        return cls(
            {
                address: {int(offset): int(count) for offset, count in offsets.items()}
                for address, offsets in data.items()
            }
        )

    def record(self, address: str, offset: int, count: int = 1) -> None:
        """Add executions of one instruction offset."""
        if count < 0:
            raise ValueError(f"Hit count must be non-negative, got {count}")
        offsets = self._hits.setdefault(address.lower(), {})
        offsets[offset] = offsets.get(offset, 0) + count

    def get(self, address: str) -> dict[int, int] | None:
        """Get the offset hits recorded for an address."""
        return self._hits.get(address.lower())

    @property
    def addresses(self) -> set[str]:
        return set(self._hits)

    def __add__(self, other: "HitMap") -> "HitMap":
        merged = HitMap(self._hits)
        for address, offsets in other._hits.items():
            for offset, count in offsets.items():
                merged.record(address, offset, count)
        return merged

    def __iter__(self) -> Iterator[tuple[str, dict[int, int]]]:
        return iter(self._hits.items())

    def __len__(self) -> int:
        return len(self._hits)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HitMap):
            return NotImplemented
        return self._hits == other._hits

    def __repr__(self) -> str:
        return f"HitMap({self._hits!r})"
