import re

import pytest

from gemini_proxy.translators.openai_request import to_native_request
from gemini_proxy.translators.openai_response import (
    map_finish_reason,
    to_openai_embeddings,
    to_openai_models,
    to_openai_response,
)
from gemini_proxy.utils import generate_chatcmpl_id


def test_response_shape():
    data = {
        "candidates": [
            {"content": {"parts": [{"text": "a"}, {"text": "b"}]}, "finishReason": "MAX_TOKENS"},
            {"content": {"parts": [{"text": "c"}]}, "finishReason": "SAFETY", "index": 1},
        ],
        "usageMetadata": {"promptTokenCount": 4, "candidatesTokenCount": 6, "totalTokenCount": 10},
    }
    resp = to_openai_response(data, "gemini-2.5-pro", "chatcmpl-abc")

    assert resp["id"] == "chatcmpl-abc"
    assert resp["object"] == "chat.completion"
    assert resp["model"] == "gemini-2.5-pro"
    assert isinstance(resp["created"], int)
    assert resp["choices"] == [
        {"index": 0, "message": {"role": "assistant", "content": "a\n\n|>b"}, "logprobs": None, "finish_reason": "length"},
        {"index": 1, "message": {"role": "assistant", "content": "c"}, "logprobs": None, "finish_reason": "content_filter"},
    ]
    assert resp["usage"] == {"completion_tokens": 6, "prompt_tokens": 4, "total_tokens": 10}


def test_missing_candidates_and_usage():
    resp = to_openai_response({}, "m", "id")
    assert resp["choices"] == []
    assert resp["usage"] is None


@pytest.mark.parametrize(
    "raw, mapped",
    [("STOP", "stop"), ("MAX_TOKENS", "length"), ("RECITATION", "content_filter"), ("OTHER", "OTHER"), (None, None)],
)
def test_map_finish_reason(raw, mapped):
    assert map_finish_reason(raw) == mapped


@pytest.mark.asyncio
async def test_string_messages_round_trip_through_echo():
    async def no_fetch(url):
        raise AssertionError(url)

    text = "Line one\nline two with ünïcode"
    native = (await to_native_request({"messages": [{"role": "user", "content": text}]}, no_fetch)).unwrap()
    echoed = {"candidates": [{"content": {"role": "model", "parts": native["contents"][0]["parts"]}}]}
    resp = to_openai_response(echoed, "gemini-2.5-pro", generate_chatcmpl_id())
    assert resp["choices"][0]["message"]["content"] == text


def test_completion_id_format():
    assert re.fullmatch(r"chatcmpl-[A-Za-z0-9]{29}", generate_chatcmpl_id())


def test_models_listing():
    data = {"models": [{"name": "models/gemini-2.5-pro"}, {"name": "models/text-embedding-004"}]}
    assert to_openai_models(data) == {
        "object": "list",
        "data": [
            {"id": "gemini-2.5-pro", "object": "model", "created": 0, "owned_by": ""},
            {"id": "text-embedding-004", "object": "model", "created": 0, "owned_by": ""},
        ],
    }


def test_embeddings_listing():
    data = {"embeddings": [{"values": [0.1, 0.2]}, {"values": [0.3]}]}
    assert to_openai_embeddings(data, "text-embedding-004") == {
        "object": "list",
        "data": [
            {"object": "embedding", "index": 0, "embedding": [0.1, 0.2]},
            {"object": "embedding", "index": 1, "embedding": [0.3]},
        ],
        "model": "text-embedding-004",
    }
