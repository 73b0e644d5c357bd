"""Card list view over the current entity set."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

import streamlit as st

from wikidata_explorer.models import Entity
from wikidata_explorer.ui.rendering import display_description, entity_url


@dataclass(frozen=True)
class CardRow:
    entity: Entity
    is_selected: bool
    is_comparison: bool


class CardListView:
    """Scrollable entity cards with select and compare affordances."""

    def __init__(
        self,
        entities: Iterable[Entity],
        *,
        on_select: Callable[[Entity], Any],
        on_compare_toggle: Callable[[Entity], Any],
        selected_id: str | None = None,
        comparison_id: str | None = None,
    ) -> None:
        self._entities = list(entities)
        self._on_select = on_select
        self._on_compare_toggle = on_compare_toggle
        self._selected_id = selected_id
        self._comparison_id = comparison_id

    def rows(self) -> list[CardRow]:
        return [
            CardRow(
                entity=entity,
                is_selected=entity.id == self._selected_id,
                is_comparison=entity.id == self._comparison_id,
            )
            for entity in self._entities
        ]

    def _find(self, entity_id: str) -> Entity:
        for entity in self._entities:
            if entity.id == entity_id:
                return entity
        raise KeyError(entity_id)

    def select(self, entity_id: str) -> None:
        self._on_select(self._find(entity_id))

    def toggle_comparison(self, entity_id: str) -> None:
        self._on_compare_toggle(self._find(entity_id))

    def render(self) -> None:
        if not self._entities:
            st.info("Map the unknown. Enter a concept to search Wikidata.")
            return

        for index, row in enumerate(self.rows()):
            entity = row.entity
            with st.container(border=True):
                image_col, body_col = st.columns([1, 4])
                if entity.image_url:
                    image_col.image(entity.image_url, width=80)
                else:
                    image_col.markdown("ℹ️")

                marker = ""
                if row.is_selected:
                    marker = " · selected"
                elif row.is_comparison:
                    marker = " · comparing"
                body_col.markdown(f"**{entity.label}**{marker}")
                body_col.caption(f"[{entity.id}]({entity_url(entity.id)}) · {entity.type}")
                body_col.write(display_description(entity))

                select_col, compare_col = body_col.columns(2)
                select_col.button(
                    "Select",
                    key=f"select-{index}-{entity.id}",
                    type="primary" if row.is_selected else "secondary",
                    on_click=self._on_select,
                    args=(entity,),
                )
                compare_col.button(
                    "Remove comparison" if row.is_comparison else "Compare",
                    key=f"compare-{index}-{entity.id}",
                    on_click=self._on_compare_toggle,
                    args=(entity,),
                )
