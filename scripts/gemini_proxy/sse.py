"""Re-framing of Gemini Server-Sent Events into OpenAI ``chat.completion.chunk`` events.

The pipeline has two stages joined by bounded channels:

- :class:`LineExtractor` buffers decoded text and pulls out ``data: <payload>``
  records terminated by a blank line.
- :class:`ChunkEmitter` turns each payload into OpenAI chunks, remembering the
  latest native chunk per candidate so it can emit the closing chunks once the
  upstream finishes.

Each stage exposes ``feed(item) -> list`` and ``flush() -> list``; :func:`reframe`
runs them as tasks so the output is produced only as fast as it is consumed.
"""

from __future__ import annotations

import asyncio
import codecs
import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Optional

from .translators.openai_response import transform_candidate, transform_usage


log = logging.getLogger(__name__)

DELIMITER = "\n\n"
DONE_RECORD = "data: [DONE]" + DELIMITER

_RESPONSE_LINE_RE = re.compile(r"^data: ([^\r\n]*)(?:\n\n|\r\r|\r\n\r\n)")


def sse_data(data_obj: Dict[str, Any]) -> str:
    return "data: " + json.dumps(data_obj, ensure_ascii=False) + DELIMITER


class LineExtractor:
    """Stage A: split an SSE text stream into ``data:`` payloads."""

    def __init__(self) -> None:
        self.buffer = ""

    def feed(self, text: str) -> List[str]:
        if not text:
            return []
        self.buffer += text
        payloads: List[str] = []
        while True:
            match = _RESPONSE_LINE_RE.match(self.buffer)
            if not match:
                break
            payloads.append(match.group(1))
            self.buffer = self.buffer[match.end():]
        return payloads

    def flush(self) -> List[str]:
        if not self.buffer:
            return []
        # Best effort: hand the unterminated tail on instead of dropping it.
        log.error("Invalid data: %s", self.buffer)
        leftover, self.buffer = self.buffer, ""
        return [leftover]


@dataclass
class CandidateState:
    """Most recent native chunk seen for one candidate index."""

    candidate: Dict[str, Any]
    usage_metadata: Optional[Dict[str, Any]] = None


class ChunkEmitter:
    """Stage B: map Gemini JSON payloads to OpenAI SSE records."""

    def __init__(self, model: str, response_id: str, include_usage: bool = False) -> None:
        self.model = model
        self.id = response_id
        self.include_usage = include_usage
        self.last: Dict[int, CandidateState] = {}

    def _record(
        self,
        candidate: Dict[str, Any],
        usage_metadata: Optional[Dict[str, Any]],
        first: bool = False,
        stop: bool = False,
    ) -> str:
        item = transform_candidate("delta", candidate)
        if stop:
            item["delta"] = {}
            item["finish_reason"] = item["finish_reason"] or "stop"
        else:
            item["finish_reason"] = None
        if first:
            item["delta"]["content"] = ""
        else:
            item["delta"].pop("role", None)

        output: Dict[str, Any] = {
            "id": self.id,
            "choices": [item],
            "created": int(time.time()),
            "model": self.model,
            "object": "chat.completion.chunk",
        }
        if usage_metadata and self.include_usage:
            output["usage"] = transform_usage(usage_metadata) if stop else None
        return sse_data(output)

    def _error_payload(self, error: Exception) -> Dict[str, Any]:
        length = max(self.last) + 1 if self.last else 1
        return {
            "candidates": [
                {
                    "finishReason": "error",
                    "content": {"parts": [{"text": str(error)}]},
                    "index": index,
                }
                for index in range(length)
            ]
        }

    def feed(self, payload: str) -> List[str]:
        if not payload:
            return []
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            log.error("Unparseable stream payload: %s (%s)", payload, exc)
            data = self._error_payload(exc)

        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not candidates:
            log.warning("Stream payload without candidates: %s", payload[:200])
            return []

        records: List[str] = []
        usage_metadata = data.get("usageMetadata")
        for candidate in candidates:
            # index 0 is omitted by newer models
            index = candidate.get("index") or 0
            candidate["index"] = index
            if index not in self.last:
                records.append(self._record(candidate, usage_metadata, first=True))
            self.last[index] = CandidateState(candidate, usage_metadata)
            # no content e.g. on a bare MAX_TOKENS chunk
            if candidate.get("content"):
                records.append(self._record(candidate, usage_metadata))
        return records

    def flush(self) -> List[str]:
        records = [
            self._record(state.candidate, state.usage_metadata, stop=True)
            for _, state in sorted(self.last.items())
        ]
        records.append(DONE_RECORD)
        return records


class _Closed:
    def __init__(self, error: Optional[BaseException] = None) -> None:
        self.error = error


class Channel:
    """Bounded queue linking two pipeline stages; iterate it to consume items."""

    def __init__(self, maxsize: int = 16) -> None:
        self._queue: asyncio.Queue = asyncio.Queue(maxsize)

    async def send(self, item: Any) -> None:
        await self._queue.put(item)

    async def close(self, error: Optional[BaseException] = None) -> None:
        await self._queue.put(_Closed(error))

    def __aiter__(self) -> AsyncIterator[Any]:
        return self._drain()

    async def _drain(self) -> AsyncIterator[Any]:
        while True:
            item = await self._queue.get()
            if isinstance(item, _Closed):
                if item.error is not None:
                    raise item.error
                return
            yield item


async def _run_stage(stage: Any, source: AsyncIterable[Any], sink: Channel) -> None:
    try:
        async for item in source:
            for output in stage.feed(item):
                await sink.send(output)
        for output in stage.flush():
            await sink.send(output)
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        await sink.close(exc)
        return
    await sink.close()


async def _decode(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    async for chunk in chunks:
        text = decoder.decode(chunk)
        if text:
            yield text
    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail


async def reframe(
    chunks: AsyncIterable[bytes],
    emitter: ChunkEmitter,
    maxsize: int = 16,
) -> AsyncIterator[str]:
    """Run both stages over an upstream byte stream and yield OpenAI SSE records."""
    payloads = Channel(maxsize)
    records = Channel(maxsize)
    tasks = [
        asyncio.ensure_future(_run_stage(LineExtractor(), _decode(chunks), payloads)),
        asyncio.ensure_future(_run_stage(emitter, payloads, records)),
    ]
    try:
        async for record in records:
            yield record
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


__all__ = [
    "DELIMITER",
    "DONE_RECORD",
    "sse_data",
    "LineExtractor",
    "CandidateState",
    "ChunkEmitter",
    "Channel",
    "reframe",
]
