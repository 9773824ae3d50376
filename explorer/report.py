# explorer/report.py
"""
Snapshot reporting.

Responsibilities:
- Render a snapshot as a deterministic, human readable table
- Render a snapshot as a Graphviz digraph
- Convert a snapshot into JSON-ready data for a layout widget

This module does NOT:
- call jj
- lay out the graph
"""

from __future__ import annotations

from typing import Any, Dict, List

from explorer.state import Snapshot


def snapshot_to_dict(snapshot: Snapshot) -> Dict[str, Any]:
    nodes = []
    for node in snapshot.nodes:
        category = snapshot.category_of(node.id)
        nodes.append(
            {
                "id": node.id,
                "label": node.label,
                "summary": node.summary,
                "category": category.value,
                "color": category.color,
                "matched": category.matched,
            }
        )

    return {
        "nodes": nodes,
        "edges": [{"source": e.source, "target": e.target} for e in snapshot.edges],
        "overflow": snapshot.overflow,
        "errors": {
            "view": snapshot.view_error,
            "selection": snapshot.selection_error,
        },
        "warning": snapshot.view_warning,
    }


def render_text_report(snapshot: Snapshot) -> str:
    """
    Render a snapshot as plain text.
    """
    lines: List[str] = []

    lines.append(f"Nodes: {len(snapshot.nodes)}")
    lines.append(f"Edges: {len(snapshot.edges)}")
    lines.append(f"Matched: {sum(1 for n in snapshot.nodes if snapshot.category_of(n.id).matched)}")

    if snapshot.view_warning:
        lines.append(f"Warning: {snapshot.view_warning}")
    if snapshot.view_error:
        lines.append(f"View error: {snapshot.view_error}")
    if snapshot.selection_error:
        lines.append(f"Selection error: {snapshot.selection_error}")

    if not snapshot.nodes:
        return "\n".join(lines)

    lines.append("")

    headers = ["label", "category", "color", "summary"]

    rows: List[List[str]] = []
    for node in snapshot.nodes:
        category = snapshot.category_of(node.id)
        rows.append([node.label, category.value, category.color, node.summary])

    lines.extend(_format_table(headers, rows))
    return "\n".join(lines)


def render_dot(snapshot: Snapshot) -> str:
    """
    Render a snapshot as a Graphviz digraph, edges pointing at parents.
    """
    lines = ["digraph {"]

    for node in snapshot.nodes:
        category = snapshot.category_of(node.id)
        attrs = [f"label={_dot_quote(node.label)}", f"color={_dot_quote(category.color)}"]
        if category.matched:
            attrs.append("style=filled")
            attrs.append(f"fillcolor={_dot_quote(category.color)}")
        if node.summary:
            attrs.append(f"tooltip={_dot_quote(node.summary)}")
        lines.append(f"  {_dot_quote(node.id)} [{', '.join(attrs)}];")

    for edge in snapshot.edges:
        lines.append(f"  {_dot_quote(edge.source)} -> {_dot_quote(edge.target)};")

    lines.append("}")
    return "\n".join(lines)


def _dot_quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _format_table(headers: List[str], rows: List[List[str]]) -> List[str]:
    widths = [len(h) for h in headers]

    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def fmt_row(items: List[str]) -> str:
        return "  ".join(items[i].ljust(widths[i]) for i in range(len(items))).rstrip()

    lines: List[str] = []
    lines.append(fmt_row(headers))
    lines.append(fmt_row(["-" * w for w in widths]))

    for row in rows:
        lines.append(fmt_row(row))

    return lines
