"""Force-directed graph view of the current entity set."""

from __future__ import annotations

import colorsys
import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Literal

from pyvis.network import Network

from wikidata_explorer.graph.layout import (
    ForceSimulation,
    GraphLayout,
    Point,
    build_entity_graph,
    scale_positions,
)
from wikidata_explorer.models import Entity
from wikidata_explorer.ui.rendering import build_tooltip, shorten_label

Theme = Literal["dark", "light"]

GRAPH_WIDTH_PX = 800
GRAPH_HEIGHT_PX = 600
MAX_LABEL_LEN = 40

_PALETTES: dict[str, dict[str, str]] = {
    "dark": {
        "background": "#020617",
        "node": "#0f172a",
        "edge": "#1e293b",
        "edge_related": "#3b82f6",
        "label": "#94a3b8",
        "label_selected": "#ffffff",
        "label_comparison": "#ffffff",
        "selected_fill": "#2563eb",
        "selected_stroke": "#60a5fa",
        "comparison_fill": "#7c3aed",
        "comparison_stroke": "#a78bfa",
    },
    "light": {
        "background": "#ffffff",
        "node": "#ffffff",
        "edge": "#e2e8f0",
        "edge_related": "#2563eb",
        "label": "#475569",
        "label_selected": "#2563eb",
        "label_comparison": "#7c3aed",
        "selected_fill": "#2563eb",
        "selected_stroke": "#3b82f6",
        "comparison_fill": "#7c3aed",
        "comparison_stroke": "#8b5cf6",
    },
}


@dataclass(frozen=True)
class NodeStyle:
    radius: int
    fill: str
    stroke: str
    stroke_width: int
    label_color: str
    font_size: int


@dataclass(frozen=True)
class EdgeStyle:
    color: str
    width: float
    opacity: float


def _gradient_color(index: int, count: int) -> str:
    hue = 0.75 * (index / max(count, 1))
    red, green, blue = colorsys.hsv_to_rgb(hue, 0.75, 0.95)
    return f"#{int(red * 255):02x}{int(green * 255):02x}{int(blue * 255):02x}"


class GraphView:
    """Renders entities as a node-link diagram and routes node clicks.

    Holds no business state: it is rebuilt from the entity list and the
    current highlight ids on every render.
    """

    def __init__(
        self,
        entities: Iterable[Entity],
        *,
        on_node_click: Callable[[Entity], Any],
        selected_id: str | None = None,
        comparison_ids: Iterable[str] = (),
        theme: Theme = "dark",
        layout: GraphLayout | None = None,
        width: int = GRAPH_WIDTH_PX,
        height: int = GRAPH_HEIGHT_PX,
    ) -> None:
        self._entities = list(entities)
        self._by_id: dict[str, Entity] = {}
        for entity in self._entities:
            self._by_id.setdefault(entity.id, entity)
        self._on_node_click = on_node_click
        self._selected_id = selected_id
        self._comparison_ids = {value for value in comparison_ids if value}
        self._palette = _PALETTES[theme]
        self._width = width
        self._height = height
        self.graph = build_entity_graph(
            self._entities,
            selected_id=selected_id,
            comparison_ids=self._comparison_ids,
        )
        self._simulation = ForceSimulation(self.graph, layout)

    def __enter__(self) -> GraphView:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def simulation(self) -> ForceSimulation:
        return self._simulation

    def close(self) -> None:
        self._simulation.stop()

    def click(self, node_id: str) -> Entity | None:
        """Invoke the selection callback for the clicked node, if it exists."""

        entity = self._by_id.get(node_id)
        if entity is None:
            return None
        self._on_node_click(entity)
        return entity

    def node_style(self, entity_id: str, index: int = 0) -> NodeStyle:
        palette = self._palette
        if entity_id == self._selected_id:
            return NodeStyle(
                radius=26,
                fill=palette["selected_fill"],
                stroke=palette["selected_stroke"],
                stroke_width=4,
                label_color=palette["label_selected"],
                font_size=16,
            )
        if entity_id in self._comparison_ids:
            return NodeStyle(
                radius=22,
                fill=palette["comparison_fill"],
                stroke=palette["comparison_stroke"],
                stroke_width=4,
                label_color=palette["label_comparison"],
                font_size=12,
            )
        return NodeStyle(
            radius=18,
            fill=palette["node"],
            stroke=_gradient_color(index, len(self._entities)),
            stroke_width=2,
            label_color=palette["label"],
            font_size=12,
        )

    def edge_style(self, source: str, target: str) -> EdgeStyle:
        touches_selection = self._selected_id in (source, target)
        joins_comparison = source in self._comparison_ids and target in self._comparison_ids
        if touches_selection or joins_comparison:
            return EdgeStyle(
                color=self._palette["edge_related"],
                width=2.0 if touches_selection else 1.0,
                opacity=0.8 if touches_selection else 0.4,
            )
        return EdgeStyle(color=self._palette["edge"], width=1.0, opacity=0.4)

    def layout_positions(self, max_ticks: int = 300) -> dict[str, Point]:
        """Run the simulation and return positions scaled to the canvas."""

        positions = self._simulation.run(max_ticks=max_ticks)
        return scale_positions(positions, width=self._width, height=self._height, margin=70)

    def build_network(self, *, enable_physics: bool = True) -> Network:
        net = Network(
            height=f"{self._height}px",
            width="100%",
            bgcolor=self._palette["background"],
        )
        positions = self.layout_positions()

        for index, entity in enumerate(self._entities):
            if entity.id in net.get_nodes():
                continue
            style = self.node_style(entity.id, index)
            x, y = positions.get(entity.id, (0.0, 0.0))
            role = self.graph.nodes[entity.id].get("role")
            net.add_node(
                entity.id,
                label=shorten_label(entity.label, MAX_LABEL_LEN),
                title=build_tooltip(entity, role),
                color={"background": style.fill, "border": style.stroke},
                size=style.radius,
                borderWidth=style.stroke_width,
                font={"size": style.font_size, "color": style.label_color, "face": "Inter"},
                x=x,
                y=y,
            )

        for source, target in self.graph.edges():
            style = self.edge_style(source, target)
            net.add_edge(
                source,
                target,
                color={"color": style.color, "opacity": style.opacity},
                width=style.width,
                dashes=True,
            )

        options = {
            "interaction": {
                "hover": True,
                "navigationButtons": True,
                "zoomView": True,
                "dragView": True,
                "dragNodes": True,
                "tooltipDelay": 80,
            },
            "physics": {
                "enabled": enable_physics,
                "barnesHut": {
                    "gravitationalConstant": -4000,
                    "centralGravity": 0.05,
                    "springLength": 150,
                    "springConstant": 0.04,
                    "damping": 0.4,
                    "avoidOverlap": 0.7,
                },
                "stabilization": {"enabled": enable_physics, "iterations": 150, "fit": True},
            },
            "edges": {"smooth": False},
        }
        net.set_options(json.dumps(options))
        return net

    def render_html(self, *, enable_physics: bool = True) -> str:
        return self.build_network(enable_physics=enable_physics).generate_html()
