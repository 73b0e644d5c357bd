"""Prompt templates and response schemas for the Gemini requests."""

from __future__ import annotations

import json
from typing import Any

from wikidata_explorer.models import Entity

CORPUS_ANALYSIS_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "summary": {"type": "STRING"},
        "semanticClusters": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": {"type": "STRING"},
                    "entities": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "description": {"type": "STRING"},
                },
                "required": ["name", "entities", "description"],
            },
        },
        "sparqlSuggestion": {"type": "STRING"},
    },
    "required": ["summary", "semanticClusters"],
}

COMPARISON_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "commonGround": {"type": "STRING"},
        "divergence": {"type": "STRING"},
        "semanticDistance": {
            "type": "STRING",
            "description": "A creative qualitative description of how 'far' they are conceptually.",
        },
        "influence": {
            "type": "STRING",
            "description": "How one influenced the other or how they coexist in the same domain.",
        },
    },
    "required": ["commonGround", "divergence", "semanticDistance", "influence"],
}


def compact_entities(entities: list[Entity]) -> str:
    """Serialize entities to the compact ``{label, desc}`` list sent to the model."""

    return json.dumps(
        [{"label": entity.label, "desc": entity.description} for entity in entities],
        ensure_ascii=False,
    )


def corpus_analysis_prompt(query: str, entities: list[Entity]) -> str:
    return (
        "Perform a semantic vector analysis on:\n"
        f'Query: "{query}"\n'
        f"Results: {compact_entities(entities)}\n\n"
        "Task:\n"
        "1. Explain the deep semantic connections between these items.\n"
        "2. Group them into distinct logical clusters.\n"
        "3. Provide a high-performance SPARQL query for the Wikidata Query Service "
        "that would find similar entities based on shared properties discovered here."
    )


def insight_prompt(entity: Entity) -> str:
    return (
        f'Provide an advanced semantic profile for the entity "{entity.label}" '
        f"({entity.description}).\n"
        "Focus on its ontological role and its most statistically significant "
        "neighbors in the global knowledge graph.\n"
        "Include recent context or news using Google Search."
    )


def comparison_prompt(entity_a: Entity, entity_b: Entity) -> str:
    return (
        "Analyze the semantic bridge between these two Wikidata entities:\n"
        f"Entity A: {entity_a.label} ({entity_a.description})\n"
        f"Entity B: {entity_b.label} ({entity_b.description})\n\n"
        "Determine their shared semantic space and where they diverge in the knowledge graph."
    )
