"""
CoverageMap - accumulated coverage keyed by compiler version and source path.

The map is populated with every source entry before any test executes and
is then only ever mutated by adding hits. It is owned by a single thread.
"""

from collections.abc import Iterator, Mapping

from solcov.analysis.sourcemap import SourceMap
from solcov.coverage.models import SourceEntry


class CoverageMap:
    """
    Coverage items and hit counts for every instrumented source file.

    Sources are registered once, up front; merging hits for a source that
    was never registered is a no-op.
    """

    def __init__(self):
        self._sources: dict[str, dict[str, SourceEntry]] = {}
        self._ids: dict[tuple[str, str, int], str] = {}

    def register_source(
        self, version: str, path: str, entry: SourceEntry, build: str = ""
    ) -> bool:
        """
        Add a source entry unless one is already registered.

        The source id of the entry is indexed under its build either way, so
        hits from every build that compiled the path reach the same entry.

        Args:
            version: Compiler version the source was built with
            path: Source path
            entry: Items and text of the source
            build: Build whose source ids ``entry.source_id`` belongs to

        Returns:
            True if the entry was inserted, False if (version, path) existed
        """
        self._ids[(version, build, entry.source_id)] = path
        sources = self._sources.setdefault(version, {})
        if path in sources:
            return False
        sources[path] = entry
        return True

    def merge_hits(
        self,
        version: str,
        source_map: SourceMap,
        hits: Mapping[int, int],
        build: str = "",
    ) -> int:
        """
        Attribute instruction hits of one address to coverage items.

        Args:
            version: Compiler version of the artifact the hits belong to
            source_map: Creation or runtime source map of that artifact
            hits: Instruction offset -> execution count
            build: Build of the artifact, which scopes the source ids in the map

        Returns:
            Number of item increments applied
        """
        applied = 0
        for offset, count in hits.items():
            element = source_map.find(offset)
            if element is None or not element.has_source:
                continue
            entry = self.get_by_id(version, element.source_index, build)
            if entry is None:
                continue
            for item in entry.items_at(element.start, element.source_end):
                item.increment(count)
                applied += 1
        return applied

    def get(self, version: str, path: str) -> SourceEntry | None:
        """Get the entry of a source path under a compiler version."""
        return self._sources.get(version, {}).get(path)

    def get_by_id(self, version: str, source_id: int, build: str = "") -> SourceEntry | None:
        """Get the entry of a solc source id within one build of a compiler version."""
        path = self._ids.get((version, build, source_id))
        if path is None:
            return None
        return self._sources[version][path]

    @property
    def versions(self) -> list[str]:
        return sorted(self._sources)

    @property
    def total_items(self) -> int:
        return sum(entry.total_items for _, entry in self)

    @property
    def hit_items(self) -> int:
        return sum(entry.hit_items for _, entry in self)

    def __iter__(self) -> Iterator[tuple[str, SourceEntry]]:
        """Iterate (version, entry) pairs ordered by version then path."""
        for version in self.versions:
            sources = self._sources[version]
            for path in sorted(sources):
                yield version, sources[path]

    def __len__(self) -> int:
        return sum(len(sources) for sources in self._sources.values())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        version, path = key
        return self.get(version, path) is not None
