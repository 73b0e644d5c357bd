"""Safe rendering helpers for entity labels and AI-generated text."""

from __future__ import annotations

import html
import re
from urllib.parse import quote

import bleach

from wikidata_explorer.models import Entity, GroundingChunk

_ALLOWED_TAGS = ["sub", "sup", "b", "i", "em", "strong", "br", "p"]

WIKIDATA_ENTITY_URL = "https://www.wikidata.org/wiki/"
QUERY_SERVICE_URL = "https://query.wikidata.org/"
DEFAULT_DESCRIPTION = "Global Knowledge Entity"


def sanitize_ai_text(text: str) -> str:
    """Sanitize model output, preserving only a small safe tag subset."""

    without_scripts = re.sub(r"(?is)<script.*?>.*?</script>", "", text)
    cleaned = bleach.clean(
        without_scripts,
        tags=_ALLOWED_TAGS,
        attributes={},
        strip=True,
    )
    return cleaned.replace("\x00", "")


def shorten_label(label: str, max_len: int) -> str:
    """Truncate a label to a readable length with ellipsis."""

    if max_len <= 0:
        return ""

    compact = " ".join(label.split())
    if len(compact) <= max_len:
        return compact
    if max_len == 1:
        return "…"
    return compact[: max_len - 1].rstrip() + "…"


def display_description(entity: Entity) -> str:
    return entity.description or DEFAULT_DESCRIPTION


def entity_url(entity_id: str) -> str:
    return f"{WIKIDATA_ENTITY_URL}{quote(entity_id)}"


def sparql_query_url(query: str) -> str:
    """Link that opens a SPARQL query in the Wikidata Query Service editor."""

    return f"{QUERY_SERVICE_URL}#{quote(query.strip())}"


def build_tooltip(entity: Entity, role: str | None = None) -> str:
    """Build HTML tooltip content for a graph node."""

    lines: list[str] = [f"<b>{html.escape(entity.label or '(unlabelled)')}</b>"]
    lines.append(f"ID: {html.escape(entity.id)}")
    lines.append(html.escape(display_description(entity)))
    if role in {"selected", "comparison"}:
        lines.append(f"Role: {html.escape(role)}")
    if entity.relevance is not None:
        lines.append(f"Relevance: {entity.relevance:.2f}")
    for prop in entity.properties:
        lines.append(f"&bull; {html.escape(prop.prop)}: {html.escape(prop.value)}")
    return "<br>".join(lines)


def grounding_links(chunks: list[GroundingChunk]) -> list[tuple[str, str]]:
    """Return ``(title, uri)`` pairs for the chunks that carry a web source."""

    links: list[tuple[str, str]] = []
    seen: set[str] = set()
    for chunk in chunks:
        if chunk.web is None or not chunk.web.uri or chunk.web.uri in seen:
            continue
        seen.add(chunk.web.uri)
        links.append((chunk.web.title or chunk.web.uri, chunk.web.uri))
    return links
