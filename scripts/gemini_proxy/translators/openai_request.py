"""Translator from OpenAI chat/embeddings requests to Gemini native requests.

Handles:
- Generation parameters → ``generationConfig`` via a fixed field table
- ``response_format`` → ``responseMimeType`` / ``responseSchema``
- Messages array → ``contents`` with roles mapped to user/model
- First system message → ``system_instruction``
- Text, image and audio content items → Gemini parts
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

from ..errors import InvalidRequest, TypeMismatch, UnsupportedFormat
from ..result import Err, Ok, Result
from .images import ImageFetcher, resolve_image


HARM_CATEGORIES = (
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_CIVIC_INTEGRITY",
)

# OpenAI request field -> Gemini generationConfig field
GENERATION_FIELDS = {
    "stop": "stopSequences",
    "n": "candidateCount",
    "max_tokens": "maxOutputTokens",
    "max_completion_tokens": "maxOutputTokens",
    "temperature": "temperature",
    "top_p": "topP",
    "top_k": "topK",
    "frequency_penalty": "frequencyPenalty",
    "presence_penalty": "presencePenalty",
}


def default_safety_settings() -> List[Dict[str, str]]:
    """Most permissive threshold for every harm category."""
    return [{"category": category, "threshold": "BLOCK_NONE"} for category in HARM_CATEGORIES]


def transform_generation_config(request_body: Dict[str, Any]) -> Result:
    config: Dict[str, Any] = {}
    for key, value in request_body.items():
        target = GENERATION_FIELDS.get(key)
        if target is None:
            continue
        if key == "stop" and isinstance(value, str):
            value = [value]
        config[target] = value

    response_format = request_body.get("response_format")
    if response_format is None:
        return Ok(config)

    format_type = response_format.get("type") if isinstance(response_format, dict) else None
    if format_type == "json_schema":
        json_schema = response_format.get("json_schema") or {}
        schema = json_schema.get("schema") if isinstance(json_schema, dict) else None
        if schema is not None:
            config["responseSchema"] = schema
        if isinstance(schema, dict) and "enum" in schema:
            config["responseMimeType"] = "text/x.enum"
        else:
            config["responseMimeType"] = "application/json"
    elif format_type == "json_object":
        config["responseMimeType"] = "application/json"
    elif format_type == "text":
        config["responseMimeType"] = "text/plain"
    else:
        return Err(UnsupportedFormat("Unsupported response_format.type"))
    return Ok(config)


async def transform_content(content: Any, fetch: ImageFetcher) -> Result:
    """Convert one message's ``content`` into a list of Gemini parts."""
    if not isinstance(content, list):
        # system, user: string; assistant: string or null
        return Ok([{"text": content if content is not None else ""}])

    parts: List[Dict[str, Any]] = []
    for item in content:
        item_type = item.get("type") if isinstance(item, dict) else None
        if item_type == "text":
            parts.append({"text": item.get("text", "")})
        elif item_type == "image_url":
            image_url = item.get("image_url")
            url = image_url.get("url") if isinstance(image_url, dict) else image_url
            resolved = await resolve_image(url, fetch)
            if not resolved.ok:
                return resolved
            parts.append(resolved.value)
        elif item_type == "input_audio":
            audio = item.get("input_audio") or {}
            parts.append({
                "inlineData": {
                    "mimeType": f"audio/{audio.get('format')}",
                    "data": audio.get("data"),
                }
            })
        else:
            return Err(TypeMismatch(f'Unknown "content" item type: "{item_type}"'))

    # Gemini rejects a turn made only of images: "it must have a text parameter"
    if all(isinstance(item, dict) and item.get("type") == "image_url" for item in content):
        parts.append({"text": ""})
    return Ok(parts)


async def transform_messages(messages: Optional[List[Dict[str, Any]]], fetch: ImageFetcher) -> Result:
    """Split messages into ``system_instruction`` and ``contents``."""
    if not messages:
        return Ok({"contents": []})
    if not isinstance(messages, list):
        return Err(InvalidRequest("messages must be an array"))

    contents: List[Dict[str, Any]] = []
    system_instruction: Optional[Dict[str, Any]] = None

    for message in messages:
        if not isinstance(message, dict):
            return Err(InvalidRequest("each message must be an object"))
        role = message.get("role")
        parts = await transform_content(message.get("content"), fetch)
        if not parts.ok:
            return parts

        if role == "system" and system_instruction is None:
            system_instruction = {"parts": parts.value}
            continue

        contents.append({
            "role": "model" if role == "assistant" else "user",
            "parts": parts.value,
        })

    translated: Dict[str, Any] = {"contents": contents}
    if system_instruction is not None:
        translated["system_instruction"] = system_instruction
        if not contents:
            # keep the upstream call valid when only a system prompt was sent
            contents.append({"role": "model", "parts": [{"text": " "}]})
    return Ok(translated)


async def to_native_request(request_body: Dict[str, Any], fetch: ImageFetcher) -> Result:
    """Convert an OpenAI chat completion request into a Gemini request body."""
    body = copy.deepcopy(request_body)

    messages = await transform_messages(body.get("messages"), fetch)
    if not messages.ok:
        return messages

    generation_config = transform_generation_config(body)
    if not generation_config.ok:
        return generation_config

    native = dict(messages.value)
    native["safetySettings"] = default_safety_settings()
    native["generationConfig"] = generation_config.value
    return Ok(native)


def prepare_native_request(request_body: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize a body that is already in Gemini shape before forwarding it."""
    native = dict(request_body)
    native["safetySettings"] = request_body.get("safetySettings") or default_safety_settings()
    native["generationConfig"] = request_body.get("generationConfig") or {}
    for client_field in ("stream", "stream_format", "model"):
        native.pop(client_field, None)
    return native


def to_embeddings_request(inputs: List[str], model: str, dimensions: Optional[int] = None) -> Dict[str, Any]:
    """Build a ``batchEmbedContents`` body; ``model`` carries the ``models/`` prefix."""
    requests = []
    for text in inputs:
        item: Dict[str, Any] = {"model": model, "content": {"parts": [{"text": text}]}}
        if dimensions is not None:
            item["outputDimensionality"] = dimensions
        requests.append(item)
    return {"requests": requests}


__all__ = [
    "HARM_CATEGORIES",
    "GENERATION_FIELDS",
    "default_safety_settings",
    "transform_generation_config",
    "transform_content",
    "transform_messages",
    "to_native_request",
    "prepare_native_request",
    "to_embeddings_request",
]
