"""Shape and emission of the nested transaction traces.

build_span_tree() only decides the shape, so it can be checked without a
tracer. emit_span_tree() turns that shape into real OpenTelemetry spans.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from opentelemetry.trace import Tracer

# Simulated work inside every nested span, in seconds.
SPAN_WORK_DELAY = 10e-6

LEVEL_ATTR = "synthload.level"


@dataclass(frozen=True)
class SpanDescriptor:
    name: str
    level: int
    message: str
    parent: Optional[int] = None


def build_span_tree(name: str, depth: int) -> List[SpanDescriptor]:
    """Return the spans of one transaction in pre-order.

    The root and levels 1 and 2 are always present. Level 3 needs depth > 1,
    which the {0, 1} depth draw never yields.
    """
    tree = [SpanDescriptor(name=name, level=0, message=name)]

    def child(level: int) -> None:
        tree.append(
            SpanDescriptor(
                name=f"tx{level}",
                level=level,
                message=f"tx level = {level}",
                parent=len(tree) - 1,
            )
        )

    child(1)
    child(2)
    if depth > 1:
        child(3)
    return tree


def _children(tree: List[SpanDescriptor]) -> Dict[Optional[int], List[int]]:
    out: Dict[Optional[int], List[int]] = {}
    for i, d in enumerate(tree):
        out.setdefault(d.parent, []).append(i)
    return out


def emit_span_tree(tracer: Tracer, tree: List[SpanDescriptor], work_delay: float = SPAN_WORK_DELAY) -> None:
    children = _children(tree)

    def emit(i: int) -> None:
        d = tree[i]
        with tracer.start_as_current_span(d.name, attributes={LEVEL_ATTR: d.level}) as span:
            span.add_event(d.message, attributes={"log.severity": "info"})
            for c in children.get(i, []):
                emit(c)
            if d.parent is not None and work_delay > 0:
                time.sleep(work_delay)

    for root in children.get(None, []):
        emit(root)
