import json

import pytest

from gemini_proxy.sse import DONE_RECORD, Channel, ChunkEmitter, LineExtractor, reframe


def _payload(record):
    assert record.startswith("data: ") and record.endswith("\n\n")
    return json.loads(record[len("data: "):-2])


async def _chunks(*parts):
    for part in parts:
        yield part


async def _collect(chunks, emitter):
    return [record async for record in reframe(chunks, emitter)]


@pytest.mark.asyncio
async def test_single_hi_chunk():
    raw = b'data: {"candidates":[{"index":0,"content":{"parts":[{"text":"Hi"}]}}]}\n\n'
    records = await _collect(_chunks(raw), ChunkEmitter("gemini-2.5-pro", "chatcmpl-x"))

    assert len(records) == 4
    first, hi, final = (_payload(r) for r in records[:3])
    assert first["choices"][0]["delta"] == {"role": "assistant", "content": ""}
    assert first["choices"][0]["finish_reason"] is None
    assert hi["choices"][0]["delta"] == {"content": "Hi"}
    assert final["choices"][0]["delta"] == {}
    assert final["choices"][0]["finish_reason"] == "stop"
    assert records[3] == DONE_RECORD == "data: [DONE]\n\n"
    for chunk in (first, hi, final):
        assert chunk["object"] == "chat.completion.chunk"
        assert chunk["id"] == "chatcmpl-x"
        assert chunk["model"] == "gemini-2.5-pro"
        assert "usage" not in chunk


@pytest.mark.asyncio
async def test_payload_split_across_chunks_and_multibyte_boundary():
    raw = 'data: {"candidates":[{"content":{"parts":[{"text":"héllo"}]},"finishReason":"STOP"}]}\r\n\r\n'.encode()
    cut = raw.index("é".encode()) + 1
    records = await _collect(_chunks(raw[:10], raw[10:cut], raw[cut:]), ChunkEmitter("m", "id"))
    assert _payload(records[1])["choices"][0]["delta"] == {"content": "héllo"}
    assert _payload(records[2])["choices"][0]["finish_reason"] == "stop"


@pytest.mark.asyncio
async def test_multiple_candidates_keep_arrival_order():
    raw = (
        b'data: {"candidates":[{"index":0,"content":{"parts":[{"text":"a"}]}},'
        b'{"index":1,"content":{"parts":[{"text":"b"}]}}]}\n\n'
        b'data: {"candidates":[{"index":1,"content":{"parts":[{"text":"c"}]},"finishReason":"MAX_TOKENS"}]}\n\n'
    )
    records = await _collect(_chunks(raw), ChunkEmitter("m", "id"))
    choices = [_payload(r)["choices"][0] for r in records[:-1]]
    assert [(c["index"], c["delta"]) for c in choices] == [
        (0, {"role": "assistant", "content": ""}),
        (0, {"content": "a"}),
        (1, {"role": "assistant", "content": ""}),
        (1, {"content": "b"}),
        (1, {"content": "c"}),
        (0, {}),
        (1, {}),
    ]
    assert choices[-1]["finish_reason"] == "length"


@pytest.mark.asyncio
async def test_usage_only_on_final_chunk_when_requested():
    raw = (
        b'data: {"candidates":[{"content":{"parts":[{"text":"x"}]},"finishReason":"STOP"}],'
        b'"usageMetadata":{"promptTokenCount":1,"candidatesTokenCount":2,"totalTokenCount":3}}\n\n'
    )
    records = await _collect(_chunks(raw), ChunkEmitter("m", "id", include_usage=True))
    payloads = [_payload(r) for r in records[:-1]]
    assert [p["usage"] for p in payloads[:-1]] == [None, None]
    assert payloads[-1]["usage"] == {"completion_tokens": 2, "prompt_tokens": 1, "total_tokens": 3}


@pytest.mark.asyncio
async def test_unparseable_payload_becomes_error_candidate():
    records = await _collect(_chunks(b"data: {not json}\n\n"), ChunkEmitter("m", "id"))
    error = _payload(records[1])["choices"][0]
    assert error["delta"]["content"]
    final = _payload(records[2])["choices"][0]
    assert final["finish_reason"] == "error"


def test_line_extractor_flushes_unterminated_tail():
    extractor = LineExtractor()
    assert extractor.feed('data: {"a":1}\n\ndata: {"b"') == ['{"a":1}']
    assert extractor.feed(":2}") == []
    assert extractor.flush() == ['data: {"b":2}']
    assert extractor.flush() == []


def test_emitter_skips_payload_without_candidates():
    emitter = ChunkEmitter("m", "id")
    assert emitter.feed('{"promptFeedback":{}}') == []
    assert emitter.flush() == [DONE_RECORD]


@pytest.mark.asyncio
async def test_channel_propagates_producer_error():
    channel = Channel(maxsize=2)
    await channel.send(1)
    await channel.close(ValueError("boom"))
    received = []
    with pytest.raises(ValueError):
        async for item in channel:
            received.append(item)
    assert received == [1]
