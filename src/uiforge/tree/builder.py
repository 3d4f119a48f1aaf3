"""Tree Builder - folds a stream of flat node records into a rooted tree."""

from collections.abc import AsyncGenerator, AsyncIterator, Callable, Generator, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

import pydantic

from ..core import get_logger
from ..core.json import JSONParseError, decode_record, extract_json_array, is_fence
from ..core.stream import LineBuffer, StreamCounter
from ..monitoring import metrics_collector
from .models import FlatNodeDescriptor, Node

logger = get_logger(__name__)

PreviewCallback = Callable[[Node], None]


class GenerationError(Exception):
    """A generation pass could not produce a tree."""


class EmptyGenerationError(GenerationError):
    """The stream ended without ever yielding a root."""


@dataclass
class BuilderStats:
    """Ingest statistics for one pass."""

    accepted: int = 0
    skipped: int = 0
    overwritten: int = 0
    rebuilds: int = 0
    fragments: StreamCounter = field(default_factory=StreamCounter)

    def to_dict(self) -> dict[str, int]:
        return {
            "accepted": self.accepted,
            "skipped": self.skipped,
            "overwritten": self.overwritten,
            "rebuilds": self.rebuilds,
            "fragments": self.fragments.count,
            "chars": self.fragments.chars,
        }


def build_tree(descriptors: Iterable[FlatNodeDescriptor]) -> Node | None:
    """
    Derive a tree from flat descriptors.

    Nodes are materialized fresh on every call. A later descriptor with an
    already-seen id replaces the earlier one and takes its arrival slot.
    Descriptors whose parent is absent stay unattached. When several
    descriptors claim the root, the last one processed wins.
    """
    records: dict[str, FlatNodeDescriptor] = {}
    for descriptor in descriptors:
        records.pop(descriptor.id, None)
        records[descriptor.id] = descriptor

    nodes = {node_id: descriptor.to_node() for node_id, descriptor in records.items()}

    root: Node | None = None
    for node_id, descriptor in records.items():
        node = nodes[node_id]
        if descriptor.is_root_candidate:
            root = node
            continue
        parent = nodes.get(descriptor.parent_id)
        if parent is not None:
            parent.children.append(node)

    return root


class TreeBuilder:
    """
    Incremental tree synthesis over a fragment stream.

    Holds the partial-line buffer and the accumulated descriptors of a
    single generation pass. Every accepted record triggers a full
    re-derivation, so children arriving before their parent attach as
    soon as the parent shows up.
    """

    def __init__(self, max_record_size: int | None = None) -> None:
        self.max_record_size = max_record_size
        self._lines = LineBuffer()
        self._records: dict[str, FlatNodeDescriptor] = {}
        self._has_root = False
        self._last_rooted: list[FlatNodeDescriptor] = []
        self.stats = BuilderStats()

    @property
    def records(self) -> list[FlatNodeDescriptor]:
        """Accumulated descriptors, each at the slot of its latest arrival."""
        return list(self._records.values())

    @property
    def has_tree(self) -> bool:
        return self._has_root

    def reset(self) -> None:
        """Discard buffer and descriptors before a new pass."""
        self._lines.clear()
        self._records.clear()
        self._has_root = False
        self._last_rooted = []
        self.stats = BuilderStats()

    def ingest(self, fragment: str) -> Node | None:
        """
        Feed one fragment.

        Returns:
            The tree derived from the last record this fragment completed,
            or None if no record was accepted or no root exists yet
        """
        self.stats.fragments.track(fragment)

        latest: Node | None = None
        for line in self._lines.add(fragment):
            tree = self._accept_line(line)
            if tree is not None:
                latest = tree
        return latest

    def accept(self, raw: Any) -> Node | None:
        """
        Fold one decoded record into the pass.

        Returns:
            Freshly derived tree, or None if the record was rejected or
            there is no root yet
        """
        try:
            descriptor = FlatNodeDescriptor.model_validate(raw)
        except pydantic.ValidationError as e:
            self._skip("invalid_record", error_count=e.error_count())
            return None

        if descriptor.id in self._records:
            self.stats.overwritten += 1
            logger.debug("record_overwritten", node_id=descriptor.id)
            del self._records[descriptor.id]

        self._records[descriptor.id] = descriptor
        self.stats.accepted += 1
        metrics_collector.record_ingest("accepted")
        return self._rebuild()

    def snapshot(self) -> Node | None:
        """Fresh derivation of the current tree."""
        return build_tree(self._records.values()) if self._has_root else None

    def finish(self) -> Node:
        """
        End the pass: try the buffered tail once, then return the settled tree.

        Raises:
            EmptyGenerationError: If no tree was ever derived
        """
        tail = self._lines.flush()
        if tail is not None:
            self._accept_line(tail)

        tree = self.snapshot()
        if tree is None and self._last_rooted:
            # A late record took the root away; settle on the last rooted tree
            logger.info("root_lost", **self.stats.to_dict())
            tree = build_tree(self._last_rooted)
        if tree is None:
            logger.warning("empty_generation", **self.stats.to_dict())
            raise EmptyGenerationError("Failed to generate UI tree")

        logger.info("generation_settled", **self.stats.to_dict())
        return tree

    def _accept_line(self, line: str) -> Node | None:
        text = line.strip()
        if not text or is_fence(text):
            return None

        try:
            raw = decode_record(text, self.max_record_size)
        except JSONParseError:
            # Truncated and chatty lines are expected mid-stream
            self._skip("malformed_line", length=len(text))
            return None

        return self.accept(raw)

    def _skip(self, reason: str, **context: Any) -> None:
        self.stats.skipped += 1
        metrics_collector.record_ingest("skipped")
        logger.debug("record_skipped", reason=reason, **context)

    def _rebuild(self) -> Node | None:
        with metrics_collector.measure_duration(metrics_collector.record_rebuild):
            tree = build_tree(self._records.values())
        self.stats.rebuilds += 1
        self._has_root = tree is not None
        if tree is not None:
            self._last_rooted = list(self._records.values())
        return tree


async def stream_tree(
    fragments: AsyncIterator[str],
    builder: TreeBuilder | None = None,
) -> AsyncGenerator[Node, None]:
    """
    Yield a preview tree for every fragment that produced one.

    The caller finishes the pass with ``builder.finish()``.

    Args:
        fragments: Async fragment stream
        builder: Builder for this pass (a fresh one if omitted)

    Yields:
        Preview snapshots
    """
    builder = builder if builder is not None else TreeBuilder()

    async for fragment in fragments:
        if (snapshot := builder.ingest(fragment)) is not None:
            yield snapshot


def stream_tree_sync(
    fragments: Iterator[str],
    builder: TreeBuilder | None = None,
) -> Generator[Node, None, None]:
    """
    Yield a preview tree for every fragment that produced one (sync stream).

    Args:
        fragments: Sync fragment stream
        builder: Builder for this pass (a fresh one if omitted)

    Yields:
        Preview snapshots
    """
    builder = builder if builder is not None else TreeBuilder()

    for fragment in fragments:
        if (snapshot := builder.ingest(fragment)) is not None:
            yield snapshot


async def build_settled_tree(
    fragments: AsyncIterator[str],
    on_preview: PreviewCallback | None = None,
    builder: TreeBuilder | None = None,
) -> Node:
    """Consume an async stream to completion and return the settled tree."""
    builder = builder if builder is not None else TreeBuilder()

    async for snapshot in stream_tree(fragments, builder):
        if on_preview:
            on_preview(snapshot)
    return builder.finish()


def build_settled_tree_sync(
    fragments: Iterable[str],
    on_preview: PreviewCallback | None = None,
    builder: TreeBuilder | None = None,
) -> Node:
    """Consume a sync stream to completion and return the settled tree."""
    builder = builder if builder is not None else TreeBuilder()

    for snapshot in stream_tree_sync(iter(fragments), builder):
        if on_preview:
            on_preview(snapshot)
    return builder.finish()


def build_tree_from_array(text: str, builder: TreeBuilder | None = None) -> Node:
    """
    Build a tree from a single JSON array of flat records.

    Used by providers that answer in one piece rather than streaming NDJSON.

    Raises:
        EmptyGenerationError: If the array can't be recovered or has no root
    """
    builder = builder if builder is not None else TreeBuilder()

    try:
        items = extract_json_array(text, repair=True)
    except JSONParseError as e:
        logger.warning("array_parse_failed", error=str(e))
        raise EmptyGenerationError(f"Failed to generate UI tree: {e}") from e

    for item in items:
        builder.accept(item)
    return builder.finish()
