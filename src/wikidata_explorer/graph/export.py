"""Static SVG and GEXF export of the entity graph."""

from __future__ import annotations

from collections.abc import Mapping
from html import escape

import networkx as nx

from wikidata_explorer.graph.layout import ForceSimulation, Point, scale_positions

ROLE_COLORS = {
    "selected": "#2563eb",
    "comparison": "#7c3aed",
    "default": "#0f172a",
}
ROLE_RADII = {
    "selected": 26,
    "comparison": 22,
    "default": 18,
}


def render_graph_svg(
    graph: nx.Graph,
    *,
    positions: Mapping[str, Point] | None = None,
    width: int = 1200,
    height: int = 820,
    title: str = "Wikidata Explorer Export",
) -> str:
    """Render the entity graph as a standalone SVG string."""

    margin = 60
    if positions is None:
        simulation = ForceSimulation(graph)
        try:
            positions = simulation.run()
        finally:
            simulation.stop()
    pos = scale_positions(positions, width=width, height=height, margin=margin)

    edge_lines: list[str] = []
    for source, target, data in graph.edges(data=True):
        source_pos = pos.get(str(source))
        target_pos = pos.get(str(target))
        if source_pos is None or target_pos is None:
            continue

        highlighted = bool(data.get("highlighted"))
        edge_color = "#3b82f6" if highlighted else "#334155"
        edge_width = "2.0" if highlighted else "1.0"
        edge_lines.append(
            (
                f'<line x1="{source_pos[0]:.1f}" y1="{source_pos[1]:.1f}" '
                f'x2="{target_pos[0]:.1f}" y2="{target_pos[1]:.1f}" '
                f'stroke="{edge_color}" stroke-width="{edge_width}" '
                'stroke-dasharray="4,4" opacity="0.8" />'
            )
        )

    node_shapes: list[str] = []
    label_lines: list[str] = []
    for node_id, data in graph.nodes(data=True):
        node_key = str(node_id)
        node_pos = pos.get(node_key)
        if node_pos is None:
            continue

        role = data.get("role") if isinstance(data.get("role"), str) else "default"
        color = ROLE_COLORS.get(role, ROLE_COLORS["default"])
        radius = ROLE_RADII.get(role, ROLE_RADII["default"])

        node_shapes.append(
            (
                f'<circle cx="{node_pos[0]:.1f}" cy="{node_pos[1]:.1f}" r="{radius}" '
                f'fill="{color}" stroke="#60a5fa" stroke-width="2" opacity="0.95" />'
            )
        )
        label = data.get("label")
        label_text = str(label) if isinstance(label, str) else node_key
        label_lines.append(
            (
                f'<text x="{node_pos[0] + radius + 8:.1f}" y="{node_pos[1] + 4:.1f}" '
                f'font-size="12" fill="#e5e7eb">{escape(label_text)}</text>'
            )
        )

    return "\n".join(
        [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
            f'viewBox="0 0 {width} {height}">',
            '<rect x="0" y="0" width="100%" height="100%" fill="#0b1220"/>',
            (
                f'<text x="24" y="34" font-size="18" fill="#e5e7eb" '
                f'font-weight="700">{escape(title)}</text>'
            ),
            *edge_lines,
            *node_shapes,
            *label_lines,
            "</svg>",
        ]
    )


def graph_to_gexf_bytes(graph: nx.Graph) -> bytes:
    """Serialize a graph to GEXF bytes for download."""

    return "\n".join(nx.generate_gexf(graph, prettyprint=True)).encode("utf-8")
