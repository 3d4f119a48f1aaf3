"""Tests for streaming tree synthesis."""

import pytest

from uiforge.tree import (
    EmptyGenerationError,
    FlatNodeDescriptor,
    TreeBuilder,
    build_settled_tree,
    build_settled_tree_sync,
    build_tree,
    build_tree_from_array,
    find_node,
    stream_tree,
    stream_tree_sync,
)
from uiforge.core import safe_json_dumps
from conftest import agen, child_ids, ndjson


ROOT = {"id": "1", "parentId": None, "kind": "container"}
CHILD = {"id": "2", "parentId": "1", "kind": "text", "content": "Hi"}


@pytest.mark.unit
def test_root_then_child():
    """Root and child in order yield root with one child."""
    builder = TreeBuilder()

    first = builder.ingest(ndjson([ROOT]))
    assert first is not None
    assert first.id == "1"
    assert first.children == []

    tree = builder.ingest(ndjson([CHILD]))
    assert tree.id == "1"
    assert [c.id for c in tree.children] == ["2"]
    assert tree.children[0].content == "Hi"
    assert tree.children[0].kind == "text"


@pytest.mark.unit
def test_child_before_root():
    """A child arriving first waits for its parent."""
    builder = TreeBuilder()

    assert builder.ingest(ndjson([CHILD])) is None
    assert not builder.has_tree

    tree = builder.ingest(ndjson([ROOT]))
    assert tree is not None
    assert child_ids(tree) == {"1": ["2"], "2": []}
    assert tree.children[0].content == "Hi"


@pytest.mark.unit
def test_malformed_line_skipped():
    """Garbage between valid records is ignored."""
    builder = TreeBuilder()
    text = ndjson([ROOT]) + "not-json-at-all\n" + ndjson([CHILD])

    tree = builder.ingest(text)

    assert child_ids(tree) == {"1": ["2"], "2": []}
    assert builder.stats.skipped == 1
    assert builder.stats.accepted == 2


@pytest.mark.unit
def test_record_split_across_fragments():
    """A record arriving in pieces is decoded once the line completes."""
    builder = TreeBuilder()
    text = ndjson([ROOT, CHILD])
    cut = text.index("Hi")

    builder.ingest(text[:cut])
    tree = builder.ingest(text[cut:])

    assert child_ids(tree) == {"1": ["2"], "2": []}
    assert builder.stats.skipped == 0


@pytest.mark.unit
def test_crlf_line_endings():
    """Windows line endings split records like plain newlines."""
    builder = TreeBuilder()
    text = ndjson([ROOT, CHILD]).replace("\n", "\r\n")

    # Break between \r and \n
    cut = text.index("\r\n") + 1
    builder.ingest(text[:cut])
    tree = builder.ingest(text[cut:])

    assert child_ids(tree) == {"1": ["2"], "2": []}


@pytest.mark.unit
def test_fences_and_blank_lines_ignored(sample_stream, sample_tree):
    """Markdown fences and blank lines are not records."""
    builder = TreeBuilder()
    builder.ingest("\n\n" + sample_stream)

    assert builder.stats.skipped == 0
    assert builder.finish() == sample_tree


@pytest.mark.unit
def test_record_missing_required_fields():
    """Records without id or kind are discarded."""
    builder = TreeBuilder()
    text = ndjson([
        {"parentId": None, "kind": "div"},
        {"id": "x", "parentId": None},
        {"id": "", "parentId": None, "kind": "div"},
        ROOT,
    ])

    tree = builder.ingest(text)

    assert tree.id == "1"
    assert builder.stats.skipped == 3
    assert builder.stats.accepted == 1


@pytest.mark.unit
def test_non_object_line_skipped():
    """Valid JSON that isn't an object is skipped."""
    builder = TreeBuilder()
    builder.ingest('[1, 2, 3]\n"text"\n' + ndjson([ROOT]))

    assert builder.stats.skipped == 2
    assert builder.finish().id == "1"


@pytest.mark.unit
def test_orphan_stays_pending():
    """A record with an unknown parent is kept and attached later."""
    builder = TreeBuilder()
    grandchild = {"id": "3", "parentId": "2", "kind": "span"}

    tree = builder.ingest(ndjson([ROOT, grandchild]))
    assert child_ids(tree) == {"1": []}
    assert len(builder.records) == 2

    tree = builder.ingest(ndjson([CHILD]))
    assert child_ids(tree) == {"1": ["2"], "2": ["3"], "3": []}


@pytest.mark.unit
def test_duplicate_id_last_write_wins():
    """A repeated id replaces the earlier record and moves to its latest arrival."""
    builder = TreeBuilder()
    sibling = {"id": "3", "parentId": "1", "kind": "text"}
    rewritten = {"id": "2", "parentId": "1", "kind": "button", "content": "Bye"}

    tree = builder.ingest(ndjson([ROOT, CHILD, sibling, rewritten]))

    assert [c.id for c in tree.children] == ["3", "2"]
    node = find_node(tree, "2")
    assert node.kind == "button"
    assert node.content == "Bye"
    assert builder.stats.overwritten == 1
    assert len(builder.records) == 3


@pytest.mark.unit
def test_duplicate_id_can_reparent():
    """Overwriting a record may move the node under another parent."""
    builder = TreeBuilder()
    other = {"id": "3", "parentId": "1", "kind": "div"}

    tree = builder.ingest(ndjson([ROOT, CHILD, other, {**CHILD, "parentId": "3"}]))

    assert child_ids(tree) == {"1": ["3"], "3": ["2"], "2": []}


@pytest.mark.unit
def test_last_root_wins():
    """With several root claims the last processed one becomes the root."""
    builder = TreeBuilder()
    other_root = {"id": "r2", "parentId": None, "kind": "main"}

    tree = builder.ingest(ndjson([ROOT, CHILD, other_root]))

    assert tree.id == "r2"
    assert tree.children == []


@pytest.mark.unit
def test_repeated_root_claim_wins():
    """A root claim sent again counts as the latest one."""
    builder = TreeBuilder()
    claims = [{"id": root_id, "parentId": None, "kind": "div"} for root_id in ("a", "b", "a")]

    tree = builder.ingest(ndjson(claims))

    assert tree.id == "a"
    assert builder.finish().id == "a"


@pytest.mark.unit
@pytest.mark.parametrize("parent", [None, "", "null"])
def test_root_markers(parent):
    """null, empty and the string "null" all mark the root."""
    builder = TreeBuilder()
    tree = builder.ingest(ndjson([{"id": "r", "parentId": parent, "kind": "div"}]))

    assert tree is not None
    assert tree.id == "r"


@pytest.mark.unit
def test_absent_parent_id_marks_root():
    """A record without parentId is a root candidate."""
    builder = TreeBuilder()
    tree = builder.ingest(ndjson([{"id": "r", "type": "div"}]))

    assert tree.id == "r"


@pytest.mark.unit
def test_snapshots_are_independent():
    """Each emitted tree is a fresh materialization."""
    builder = TreeBuilder()
    first = builder.ingest(ndjson([ROOT]))
    first.children.append(first.model_copy())

    second = builder.ingest(ndjson([CHILD]))

    assert first is not second
    assert [c.id for c in second.children] == ["2"]
    assert builder.finish() is not second


@pytest.mark.unit
def test_finish_decodes_unterminated_tail():
    """The last record doesn't need a trailing newline."""
    builder = TreeBuilder()
    builder.ingest(ndjson([ROOT]) + ndjson([CHILD]).rstrip("\n"))

    tree = builder.finish()

    assert child_ids(tree) == {"1": ["2"], "2": []}


@pytest.mark.unit
def test_finish_with_truncated_tail():
    """A truncated final record is dropped without failing the pass."""
    builder = TreeBuilder()
    builder.ingest(ndjson([ROOT]) + '{"id": "2", "parentId": "1", "ki')

    tree = builder.finish()

    assert tree.children == []
    assert builder.stats.skipped == 1


@pytest.mark.unit
def test_finish_without_root_raises():
    """No root by end of stream is a generation failure."""
    builder = TreeBuilder()
    builder.ingest(ndjson([CHILD]) + "garbage\n")

    with pytest.raises(EmptyGenerationError):
        builder.finish()


@pytest.mark.unit
def test_finish_on_empty_stream_raises():
    with pytest.raises(EmptyGenerationError):
        TreeBuilder().finish()


@pytest.mark.unit
def test_finish_keeps_last_rooted_tree():
    """Losing the root to a late record settles on the last rooted tree."""
    builder = TreeBuilder()
    assert builder.ingest(ndjson([ROOT, CHILD])) is not None

    assert builder.ingest(ndjson([{**ROOT, "parentId": "x"}])) is None
    tree = builder.finish()

    assert child_ids(tree) == {"1": ["2"], "2": []}


@pytest.mark.unit
def test_finish_ignores_mutated_previews():
    builder = TreeBuilder()
    preview = builder.ingest(ndjson([ROOT]))
    preview.children.append(preview.model_copy())

    builder.ingest(ndjson([{**ROOT, "parentId": "x"}]))

    assert builder.finish().children == []


@pytest.mark.unit
def test_reset_discards_pass():
    """Nothing from an abandoned pass survives a reset."""
    builder = TreeBuilder()
    builder.ingest(ndjson([ROOT]) + '{"id": "2", "par')

    builder.reset()
    builder.ingest('ent": "x"}\n')

    assert builder.records == []
    assert not builder.has_tree
    assert builder.stats.accepted == 0
    with pytest.raises(EmptyGenerationError):
        builder.finish()


@pytest.mark.unit
def test_oversized_record_skipped():
    """Lines over the size limit are skipped."""
    builder = TreeBuilder(max_record_size=64)
    big = {"id": "2", "parentId": "1", "kind": "p", "content": "x" * 200}

    tree = builder.ingest(ndjson([ROOT, big]))

    assert tree.children == []
    assert builder.stats.skipped == 1
    assert builder.finish().children == []


@pytest.mark.unit
def test_stats_track_fragments():
    builder = TreeBuilder()
    builder.ingest("ab")
    builder.ingest("cde")

    stats = builder.stats.to_dict()
    assert stats["fragments"] == 2
    assert stats["chars"] == 5


@pytest.mark.unit
def test_build_tree_direct(sample_records, sample_tree):
    """build_tree derives the same tree as the streaming path."""
    descriptors = [FlatNodeDescriptor.model_validate(r) for r in sample_records]

    assert build_tree(descriptors) == sample_tree
    assert build_tree([]) is None


@pytest.mark.unit
def test_self_parent_never_reachable():
    """A record naming itself as parent can't form a cycle in the output."""
    descriptors = [
        FlatNodeDescriptor.model_validate(ROOT),
        FlatNodeDescriptor.model_validate({"id": "loop", "parentId": "loop", "kind": "div"}),
    ]

    tree = build_tree(descriptors)

    assert child_ids(tree) == {"1": []}


@pytest.mark.unit
def test_stream_tree_sync_yields_previews(sample_records):
    """Every fragment that completes a rooted record yields a preview."""
    fragments = [ndjson([r]) for r in sample_records]
    builder = TreeBuilder()

    previews = list(stream_tree_sync(iter(fragments), builder))

    assert len(previews) == len(sample_records)
    assert [len(child_ids(p)) for p in previews] == list(range(1, len(sample_records) + 1))


@pytest.mark.unit
def test_build_settled_tree_sync(sample_stream, sample_tree):
    seen = []
    # Fixed-width chunks cut records at arbitrary points
    fragments = [sample_stream[i:i + 17] for i in range(0, len(sample_stream), 17)]

    tree = build_settled_tree_sync(fragments, on_preview=seen.append)

    assert tree == sample_tree
    assert seen
    assert seen[-1] == sample_tree


@pytest.mark.unit
@pytest.mark.asyncio
async def test_stream_tree_async(sample_records):
    fragments = [ndjson([r]) for r in reversed(sample_records)]

    previews = [p async for p in stream_tree(agen(fragments))]

    # Nothing is emitted until the root (sent last) arrives
    assert len(previews) == 1
    assert len(child_ids(previews[0])) == len(sample_records)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_build_settled_tree_async(sample_stream, sample_tree):
    seen = []

    tree = await build_settled_tree(agen(sample_stream.splitlines(keepends=True)), on_preview=seen.append)

    assert tree == sample_tree
    assert len(seen) == 9


@pytest.mark.unit
@pytest.mark.asyncio
async def test_build_settled_tree_async_empty():
    with pytest.raises(EmptyGenerationError):
        await build_settled_tree(agen(["Sorry, I can't help with that.\n"]))


@pytest.mark.unit
def test_build_tree_from_array(sample_records, sample_tree):
    """Single JSON array answers derive the same tree."""
    text = "Here you go:\n```json\n" + safe_json_dumps(sample_records, indent=2) + "\n```"

    assert build_tree_from_array(text) == sample_tree


@pytest.mark.unit
def test_build_tree_from_array_repairs_truncation():
    """A cut-off array is repaired rather than rejected."""
    text = '[{"id": "1", "parentId": null, "type": "div"}, {"id": "2", "parentId": "1", "type": "p", "content": "Hi"'

    tree = build_tree_from_array(text)

    assert tree.id == "1"
    assert [c.id for c in tree.children] == ["2"]


@pytest.mark.unit
def test_build_tree_from_array_without_root():
    with pytest.raises(EmptyGenerationError):
        build_tree_from_array('[{"id": "2", "parentId": "1", "type": "p"}]')

    with pytest.raises(EmptyGenerationError):
        build_tree_from_array("no array here")
