"""Streamlit dashboard for exploring Wikidata entities with Gemini insights."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

import pandas as pd
import streamlit as st
from streamlit.components.v1 import html as components_html

from wikidata_explorer.config import get_settings
from wikidata_explorer.graph.export import graph_to_gexf_bytes, render_graph_svg
from wikidata_explorer.insight.client import GeminiInsightClient
from wikidata_explorer.models import Entity
from wikidata_explorer.state.controller import ExplorerController, ExplorerState
from wikidata_explorer.ui.cards import CardListView
from wikidata_explorer.ui.graph_view import GRAPH_HEIGHT_PX, GraphView
from wikidata_explorer.ui.rendering import grounding_links, sanitize_ai_text, sparql_query_url
from wikidata_explorer.wikidata.client import WikidataClient

logger = logging.getLogger(__name__)

_CONTROLLER_KEY = "explorer_controller"
_THEME_KEY = "explorer_theme"


def _dispatch(transition: Coroutine[Any, Any, None]) -> None:
    asyncio.run(transition)


def _get_controller() -> ExplorerController:
    controller = st.session_state.get(_CONTROLLER_KEY)
    if isinstance(controller, ExplorerController):
        return controller

    settings = get_settings()
    controller = ExplorerController(
        WikidataClient.from_settings(settings),
        GeminiInsightClient.from_settings(settings),
        max_results=settings.SEARCH_LIMIT,
    )
    st.session_state[_CONTROLLER_KEY] = controller
    return controller


def entities_frame(entities: tuple[Entity, ...] | list[Entity]) -> pd.DataFrame:
    """Tabulate entities for the table view and CSV download."""

    columns = ["id", "label", "description", "type", "relevance", "image_url"]
    if not entities:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(
        [
            {
                "id": entity.id,
                "label": entity.label,
                "description": entity.description,
                "type": entity.type,
                "relevance": entity.relevance,
                "image_url": entity.image_url,
            }
            for entity in entities
        ],
        columns=columns,
    )


def _render_analysis(state: ExplorerState) -> None:
    analysis = state.analysis
    if analysis is None:
        if state.loading:
            st.caption("Running semantic analysis...")
        return

    st.subheader("Vector Analysis")
    st.markdown(sanitize_ai_text(analysis.summary), unsafe_allow_html=True)

    for cluster in analysis.semantic_clusters:
        with st.expander(f"{cluster.name} ({len(cluster.entities)})", expanded=False):
            st.write(cluster.description)
            for label in cluster.entities:
                st.markdown(f"- {label}")

    if analysis.sparql_suggestion:
        st.markdown("**Suggested SPARQL**")
        st.code(analysis.sparql_suggestion, language="sparql")
        st.link_button(
            "Open in Wikidata Query Service",
            sparql_query_url(analysis.sparql_suggestion),
        )


def _render_insight(state: ExplorerState) -> None:
    selected = state.selected_entity
    if selected is None:
        st.caption("Select an entity to generate a contextual profile.")
        return

    st.subheader(f"Insight: {selected.label}")
    if state.insight is None:
        st.caption("Synthesizing contextual reasoning...")
        return

    st.markdown(sanitize_ai_text(state.insight.text), unsafe_allow_html=True)
    links = grounding_links(state.insight.grounding)
    if links:
        st.markdown("**Web sources**")
        for title, uri in links:
            st.markdown(f"- [{title}]({uri})")


def _render_comparison(state: ExplorerState) -> None:
    selected = state.selected_entity
    other = state.comparison_entity
    if other is None:
        return

    st.subheader(f"Semantic Bridge: {selected.label if selected else '?'} ↔ {other.label}")
    if selected is None:
        st.caption("Select a primary entity to compare against.")
        return

    result = state.comparison_result
    if result is None:
        st.caption("Comparison unavailable.")
        return

    st.markdown(f"**Common ground:** {result.common_ground}")
    st.markdown(f"**Divergence:** {result.divergence}")
    st.markdown(f"**Semantic distance:** {result.semantic_distance}")
    st.markdown(f"**Influence:** {result.influence}")


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    st.set_page_config(page_title="Wikidata Vector Explorer", layout="wide")

    st.title("Wikidata Vector Explorer")
    st.caption("Search Wikidata, map the results, and ask Gemini how they connect.")

    theme = st.sidebar.radio(
        "Theme",
        options=["dark", "light"],
        index=0,
        horizontal=True,
        key=_THEME_KEY,
    )
    enable_physics = st.sidebar.checkbox("Enable physics", value=True)

    try:
        controller = _get_controller()
    except RuntimeError as exc:
        st.error(str(exc))
        return

    def on_select(entity: Entity) -> None:
        _dispatch(controller.select_entity(entity))

    def on_compare_toggle(entity: Entity) -> None:
        _dispatch(controller.toggle_comparison(entity))

    with st.form("search", clear_on_submit=False):
        query = st.text_input(
            "Search",
            value=controller.state.query,
            placeholder="Map the unknown. Enter a concept...",
        )
        submitted = st.form_submit_button("Search", type="primary")
    if submitted:
        logger.info("Submitting search %r", query)
        with st.spinner("Querying Wikidata and running semantic analysis..."):
            _dispatch(controller.submit_search(query))

    state = controller.state
    if state.error:
        st.error(state.error)
        st.button("Dismiss", on_click=controller.clear_error)

    cards_col, main_col = st.columns([2, 5])

    with cards_col:
        st.subheader(f"Entities ({len(state.entities)})")
        CardListView(
            state.entities,
            on_select=on_select,
            on_compare_toggle=on_compare_toggle,
            selected_id=state.selected_id,
            comparison_id=state.comparison_id,
        ).render()

    with main_col:
        graph_tab, table_tab, export_tab = st.tabs(["Graph View", "Table", "Export"])
        comparison_ids = [state.comparison_id] if state.comparison_id else []

        with GraphView(
            state.entities,
            on_node_click=on_select,
            selected_id=state.selected_id,
            comparison_ids=comparison_ids,
            theme=theme,
        ) as view:
            with graph_tab:
                if not state.entities:
                    st.info("Search results appear here as a force-directed graph.")
                else:
                    components_html(
                        view.render_html(enable_physics=enable_physics),
                        height=GRAPH_HEIGHT_PX + 40,
                        scrolling=False,
                    )
                    st.caption(
                        "Links join each entity to its next three results; "
                        "they show result proximity, not Wikidata relations."
                    )
                    node_choices = {
                        f"{entity.label} [{entity.id}]": entity.id for entity in state.entities
                    }
                    focus_label = st.selectbox("Focus node", options=list(node_choices))
                    st.button(
                        "Focus",
                        on_click=view.click,
                        args=(node_choices[focus_label],),
                    )

            with export_tab:
                if state.entities:
                    svg = render_graph_svg(
                        view.graph,
                        positions=view.simulation.positions,
                        title=f"Wikidata Explorer: {state.query}",
                    )
                    st.download_button(
                        "Download SVG", data=svg, file_name="graph.svg", mime="image/svg+xml"
                    )
                    st.download_button(
                        "Download GEXF",
                        data=graph_to_gexf_bytes(view.graph),
                        file_name="graph.gexf",
                        mime="application/xml",
                    )
                else:
                    st.caption("Nothing to export yet.")

        with table_tab:
            frame = entities_frame(state.entities)
            st.dataframe(frame, use_container_width=True)
            if not frame.empty:
                st.download_button(
                    "Download CSV",
                    data=frame.to_csv(index=False),
                    file_name="entities.csv",
                    mime="text/csv",
                )

        analysis_col, insight_col = st.columns(2)
        with analysis_col:
            _render_analysis(state)
        with insight_col:
            _render_insight(state)
            _render_comparison(state)


if __name__ == "__main__":
    main()
