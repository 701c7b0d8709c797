"""Translator from Gemini native responses to OpenAI-compatible responses."""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional


# https://ai.google.dev/api/rest/v1/GenerateContentResponse#finishreason
FINISH_REASONS = {
    "STOP": "stop",
    "MAX_TOKENS": "length",
    "SAFETY": "content_filter",
    "RECITATION": "content_filter",
}

# Joins the text parts of one candidate into a single OpenAI message string.
PARTS_SEPARATOR = "\n\n|>"


def map_finish_reason(raw_reason: Optional[str]) -> Optional[str]:
    """Map a Gemini finish reason; unknown reasons pass through verbatim."""
    if not raw_reason:
        return None
    return FINISH_REASONS.get(raw_reason, raw_reason)


def candidate_text(candidate: Dict[str, Any]) -> Optional[str]:
    content = candidate.get("content")
    if not isinstance(content, dict):
        return None
    parts = content.get("parts") or []
    return PARTS_SEPARATOR.join(part.get("text") or "" for part in parts if isinstance(part, dict))


def transform_candidate(key: str, candidate: Dict[str, Any]) -> Dict[str, Any]:
    """Build one OpenAI choice, with the message under ``key`` (message or delta)."""
    return {
        "index": candidate.get("index") or 0,
        key: {
            "role": "assistant",
            "content": candidate_text(candidate),
        },
        "logprobs": None,
        "finish_reason": map_finish_reason(candidate.get("finishReason")),
    }


def transform_usage(usage_metadata: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not isinstance(usage_metadata, dict):
        return None
    return {
        "completion_tokens": usage_metadata.get("candidatesTokenCount"),
        "prompt_tokens": usage_metadata.get("promptTokenCount"),
        "total_tokens": usage_metadata.get("totalTokenCount"),
    }


def to_openai_response(data: Dict[str, Any], model: str, response_id: str) -> Dict[str, Any]:
    """Convert a ``generateContent`` response into a ``chat.completion`` object."""
    candidates = data.get("candidates") or []
    return {
        "id": response_id,
        "choices": [transform_candidate("message", candidate) for candidate in candidates],
        "created": int(time.time()),
        "model": model,
        "object": "chat.completion",
        "usage": transform_usage(data.get("usageMetadata")),
    }


def to_openai_models(data: Dict[str, Any]) -> Dict[str, Any]:
    """Reshape a Gemini model listing as an OpenAI ``list`` of models."""
    models: List[Dict[str, Any]] = data.get("models") or []
    return {
        "object": "list",
        "data": [
            {
                "id": (model.get("name") or "").replace("models/", "", 1),
                "object": "model",
                "created": 0,
                "owned_by": "",
            }
            for model in models
        ],
    }


def to_openai_embeddings(data: Dict[str, Any], model: str) -> Dict[str, Any]:
    embeddings: List[Dict[str, Any]] = data.get("embeddings") or []
    return {
        "object": "list",
        "data": [
            {"object": "embedding", "index": index, "embedding": embedding.get("values")}
            for index, embedding in enumerate(embeddings)
        ],
        "model": model,
    }


__all__ = [
    "FINISH_REASONS",
    "PARTS_SEPARATOR",
    "map_finish_reason",
    "candidate_text",
    "transform_candidate",
    "transform_usage",
    "to_openai_response",
    "to_openai_models",
    "to_openai_embeddings",
]
