from __future__ import annotations

import pytest

from synthload.spans import LEVEL_ATTR, SpanDescriptor, build_span_tree, emit_span_tree


@pytest.mark.parametrize("depth", [0, 1])
def test_tree_shape_is_fixed_for_drawn_depths(depth: int) -> None:
    tree = build_span_tree("tx: root", depth)

    assert tree == [
        SpanDescriptor(name="tx: root", level=0, message="tx: root", parent=None),
        SpanDescriptor(name="tx1", level=1, message="tx level = 1", parent=0),
        SpanDescriptor(name="tx2", level=2, message="tx level = 2", parent=1),
    ]


def test_deepest_level_needs_depth_above_one() -> None:
    tree = build_span_tree("root", 2)

    assert [d.level for d in tree] == [0, 1, 2, 3]
    assert tree[3] == SpanDescriptor(name="tx3", level=3, message="tx level = 3", parent=2)


def test_emit_nests_spans_along_parents(client, span_exporter, sleeps) -> None:
    emit_span_tree(client.tracer, build_span_tree("root", 0), work_delay=0.5)

    spans = {s.name: s for s in span_exporter.get_finished_spans()}
    assert set(spans) == {"root", "tx1", "tx2"}

    root, tx1, tx2 = spans["root"], spans["tx1"], spans["tx2"]
    assert root.parent is None
    assert tx1.parent.span_id == root.context.span_id
    assert tx2.parent.span_id == tx1.context.span_id
    assert len({s.context.trace_id for s in spans.values()}) == 1

    assert tx2.attributes[LEVEL_ATTR] == 2
    assert [e.name for e in tx1.events] == ["tx level = 1"]
    assert root.events[0].attributes["log.severity"] == "info"

    # only the nested spans simulate work
    assert sleeps == [0.5, 0.5]


def test_emit_ends_children_before_parents(client, span_exporter, sleeps) -> None:
    emit_span_tree(client.tracer, build_span_tree("root", 1))

    assert [s.name for s in span_exporter.get_finished_spans()] == ["tx2", "tx1", "root"]
