"""Client for the Gemini ``generateContent`` REST endpoint."""

from __future__ import annotations

import json
from typing import Any, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from wikidata_explorer.config import Settings, get_settings
from wikidata_explorer.errors import MalformedResponse, ServiceUnavailable
from wikidata_explorer.insight.prompts import (
    COMPARISON_SCHEMA,
    CORPUS_ANALYSIS_SCHEMA,
    comparison_prompt,
    corpus_analysis_prompt,
    insight_prompt,
)
from wikidata_explorer.models import (
    ComparisonResult,
    Entity,
    EntityInsight,
    GroundingChunk,
    VectorAnalysis,
)

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta"
FAST_MODEL = "gemini-3-flash-preview"
PRO_MODEL = "gemini-3-pro-preview"

ModelT = TypeVar("ModelT", bound=BaseModel)


def _first_candidate(payload: dict[str, Any]) -> dict[str, Any]:
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise MalformedResponse("Gemini response contained no candidates")
    candidate = candidates[0]
    if not isinstance(candidate, dict):
        raise MalformedResponse("Gemini candidate must be an object")
    return candidate


def response_text(payload: dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate."""

    content = _first_candidate(payload).get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        raise MalformedResponse("Gemini candidate has no content parts")

    texts = [
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    ]
    if not texts:
        raise MalformedResponse("Gemini candidate has no text")
    return "".join(texts)


def grounding_chunks(payload: dict[str, Any]) -> list[GroundingChunk]:
    """Read web citations from the first candidate, defaulting to an empty list."""

    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return []
    metadata = candidates[0].get("groundingMetadata")
    if not isinstance(metadata, dict):
        return []
    raw_chunks = metadata.get("groundingChunks")
    if not isinstance(raw_chunks, list):
        return []

    chunks: list[GroundingChunk] = []
    for raw in raw_chunks:
        if not isinstance(raw, dict):
            continue
        try:
            chunks.append(GroundingChunk.model_validate(raw))
        except ValidationError:
            continue
    return chunks


def parse_structured(text: str, model: type[ModelT]) -> ModelT:
    """Decode a JSON response body and validate it against ``model``."""

    try:
        return model.model_validate(json.loads(text.strip()))
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"Response was not valid JSON: {exc}") from exc
    except ValidationError as exc:
        raise MalformedResponse(f"Response did not match {model.__name__}: {exc}") from exc


class GeminiInsightClient:
    """Issues the corpus analysis, entity insight, and comparison requests."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = GEMINI_API_URL,
        fast_model: str = FAST_MODEL,
        pro_model: str = PRO_MODEL,
        timeout_seconds: float = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._fast_model = fast_model
        self._pro_model = pro_model
        self._timeout_seconds = timeout_seconds
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> GeminiInsightClient:
        """Build a client from environment-backed project settings."""

        resolved_settings = settings or get_settings()
        api_key = (resolved_settings.GEMINI_API_KEY or "").strip()
        if not api_key:
            raise RuntimeError(
                "GEMINI_API_KEY is not set. Add GEMINI_API_KEY=<your_key> to your local .env file."
            )
        return cls(
            api_key=api_key,
            base_url=resolved_settings.GEMINI_API_URL,
            fast_model=resolved_settings.GEMINI_FAST_MODEL,
            pro_model=resolved_settings.GEMINI_PRO_MODEL,
            timeout_seconds=resolved_settings.HTTP_TIMEOUT_SECONDS,
        )

    @property
    def _headers(self) -> dict[str, str]:
        return {"x-goog-api-key": self._api_key, "Content-Type": "application/json"}

    def generate(
        self,
        model: str,
        prompt: str,
        *,
        response_schema: dict[str, Any] | None = None,
        web_search: bool = False,
    ) -> dict[str, Any]:
        """Send one ``generateContent`` request and return the decoded envelope."""

        body: dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        if response_schema is not None:
            body["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            }
        if web_search:
            body["tools"] = [{"google_search": {}}]

        try:
            response = self._session.post(
                f"{self._base_url}/models/{model}:generateContent",
                headers=self._headers,
                json=body,
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ServiceUnavailable(f"Gemini request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponse("Gemini response was not JSON") from exc
        if not isinstance(payload, dict):
            raise MalformedResponse("Gemini response payload was not a JSON object")
        return payload

    def analyze_corpus(self, query: str, entities: list[Entity]) -> VectorAnalysis:
        payload = self.generate(
            self._fast_model,
            corpus_analysis_prompt(query, entities),
            response_schema=CORPUS_ANALYSIS_SCHEMA,
        )
        return parse_structured(response_text(payload), VectorAnalysis)

    def get_insight(self, entity: Entity) -> EntityInsight:
        payload = self.generate(self._pro_model, insight_prompt(entity), web_search=True)
        return EntityInsight(text=response_text(payload), grounding=grounding_chunks(payload))

    def compare_entities(self, entity_a: Entity, entity_b: Entity) -> ComparisonResult:
        payload = self.generate(
            self._fast_model,
            comparison_prompt(entity_a, entity_b),
            response_schema=COMPARISON_SCHEMA,
        )
        return parse_structured(response_text(payload), ComparisonResult)
