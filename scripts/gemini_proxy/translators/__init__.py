"""Translators between the OpenAI wire format and Gemini's native format."""

from .openai_request import prepare_native_request, to_embeddings_request, to_native_request
from .openai_response import (
    map_finish_reason,
    to_openai_embeddings,
    to_openai_models,
    to_openai_response,
)

__all__ = [
    "prepare_native_request",
    "to_embeddings_request",
    "to_native_request",
    "map_finish_reason",
    "to_openai_embeddings",
    "to_openai_models",
    "to_openai_response",
]
