"""Executor for the Google Generative Language API.

Handles chat completions (OpenAI-translated or native passthrough), streaming,
model listing and embeddings against ``{base}/{version}/models/...``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from aiohttp import ClientError, ClientResponse, web

from .base import ProviderExecutor
from ..config import ProxySettings
from ..errors import InvalidRequest, NetworkError
from ..logging_control import debug_log
from ..routing import FORMAT_GOOGLE_SDK, FORMAT_OPENAI, NATIVE_FORMATS, RouteInfo
from ..sse import ChunkEmitter, reframe
from ..translators.images import ImageFetcher, make_image_fetcher
from ..translators.openai_request import (
    prepare_native_request,
    to_embeddings_request,
    to_native_request,
)
from ..translators.openai_response import (
    to_openai_embeddings,
    to_openai_models,
    to_openai_response,
)
from ..utils import generate_chatcmpl_id


log = logging.getLogger(__name__)

NATIVE_MODEL_PREFIXES = ("gemini-", "learnlm-")


def resolve_model(model: Any, default: str) -> str:
    """Normalize a requested chat model; unknown families fall back to ``default``."""
    if not isinstance(model, str) or not model:
        return default
    if model.startswith("models/"):
        return model[len("models/"):]
    if model.startswith(NATIVE_MODEL_PREFIXES):
        return model
    log.info("Unknown model format: %s, using default: %s", model, default)
    return default


@dataclass
class PreparedCall:
    """Everything needed to issue one generateContent call."""

    model: str
    stream: bool
    url: str
    payload: Dict[str, Any]
    include_usage: bool = False


class GeminiExecutor(ProviderExecutor):
    """Handles Gemini API communication for one inbound request."""

    def __init__(
        self,
        settings: ProxySettings,
        api_key: Optional[str],
        route: RouteInfo,
        fetch_image: Optional[ImageFetcher] = None,
    ) -> None:
        super().__init__(settings, api_key)
        self.route = route
        self.format = route.format or FORMAT_OPENAI
        self.fetch_image = fetch_image or make_image_fetcher(self.timeout)

    def _build_url(self, model: str, stream: bool, stream_format: Optional[str] = None) -> str:
        task = "streamGenerateContent" if stream else "generateContent"
        url = self._upstream_url(f"models/{model}:{task}")
        if stream:
            url += "?alt=json" if stream_format == "streamable" else "?alt=sse"
        return url

    async def prepare(self, request_body: Dict[str, Any], force_non_stream: bool = False) -> PreparedCall:
        """Resolve model and streaming mode and translate the body; raises on bad input."""
        if not isinstance(request_body, dict):
            raise InvalidRequest("request body must be a JSON object")

        model = request_body.get("model")
        stream = bool(request_body.get("stream"))
        if self.format == FORMAT_GOOGLE_SDK and self.route.model:
            model = self.route.model
            # the URL, not the body, decides streaming for native SDK calls
            if self.route.stream is not None:
                stream = self.route.stream
        if force_non_stream:
            stream = False
        model = resolve_model(model, self.settings.default_model)

        if self.format in NATIVE_FORMATS:
            payload = prepare_native_request(request_body)
        else:
            payload = (await to_native_request(request_body, self.fetch_image)).unwrap()

        # re-framed OpenAI streams always need SSE from upstream
        stream_format = request_body.get("stream_format") if self.format in NATIVE_FORMATS else None
        stream_options = request_body.get("stream_options")
        include_usage = isinstance(stream_options, dict) and bool(stream_options.get("include_usage"))
        return PreparedCall(
            model=model,
            stream=stream,
            url=self._build_url(model, stream, stream_format),
            payload=payload,
            include_usage=include_usage,
        )

    async def execute(self, request: web.Request, request_body: Dict[str, Any]) -> web.StreamResponse:
        """Run one completion and answer the client, streaming when requested."""
        call = await self.prepare(request_body)
        debug_log("GeminiExecutor: format=%s model=%s stream=%s", self.format, call.model, call.stream)

        async with self._client_session() as session:
            upstream = await self._send(session, "POST", call.url, call.payload)
            try:
                if call.stream:
                    return await self._stream_response(request, upstream, call)
                return await self._non_stream_response(upstream, call)
            finally:
                upstream.release()

    async def complete_json(self, request_body: Dict[str, Any]) -> Dict[str, Any]:
        """Run one non-streaming completion and return the response object."""
        call = await self.prepare(request_body, force_non_stream=True)
        async with self._client_session() as session:
            upstream = await self._send(session, "POST", call.url, call.payload)
            try:
                data = await self._read_json(upstream)
            finally:
                upstream.release()
        if self.format in NATIVE_FORMATS:
            return data
        return to_openai_response(data, call.model, generate_chatcmpl_id())

    async def _read_json(self, upstream: ClientResponse) -> Dict[str, Any]:
        text = await upstream.text()
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise NetworkError(f"Invalid upstream response: {exc}")

    async def _non_stream_response(self, upstream: ClientResponse, call: PreparedCall) -> web.Response:
        if self.format in NATIVE_FORMATS:
            body = await upstream.read()
            return web.Response(
                body=body,
                status=upstream.status,
                headers={"Content-Type": upstream.headers.get("Content-Type", "application/json")},
            )
        data = await self._read_json(upstream)
        return web.json_response(to_openai_response(data, call.model, generate_chatcmpl_id()))

    async def _stream_response(
        self,
        request: web.Request,
        upstream: ClientResponse,
        call: PreparedCall,
    ) -> web.StreamResponse:
        if self.format in NATIVE_FORMATS:
            content_type = upstream.headers.get("Content-Type", "text/event-stream")
        else:
            content_type = "text/event-stream"
        resp = web.StreamResponse(status=upstream.status, headers={"Content-Type": content_type})
        await resp.prepare(request)

        try:
            if self.format in NATIVE_FORMATS:
                async for chunk in upstream.content.iter_any():
                    await resp.write(chunk)
            else:
                emitter = ChunkEmitter(call.model, generate_chatcmpl_id(), include_usage=call.include_usage)
                records = reframe(upstream.content.iter_any(), emitter)
                try:
                    async for record in records:
                        await resp.write(record.encode("utf-8"))
                finally:
                    await records.aclose()
        except (ConnectionResetError, ClientError) as exc:
            log.info("Stream ended early: %s", exc)
            return resp
        except Exception:
            # headers are already sent, so the client only sees a truncated stream
            log.exception("Stream relay failed")
            return resp

        await resp.write_eof()
        return resp

    async def list_models(self) -> Dict[str, Any]:
        async with self._client_session() as session:
            upstream = await self._send(session, "GET", self._upstream_url("models"))
            try:
                data = await self._read_json(upstream)
            finally:
                upstream.release()
        if self.format in NATIVE_FORMATS:
            return {"models": data.get("models", [])}
        return to_openai_models(data)

    async def embed(self, request_body: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(request_body, dict) or not isinstance(request_body.get("model"), str):
            raise InvalidRequest("model is not specified")

        inputs = request_body.get("input")
        if not isinstance(inputs, list):
            inputs = [inputs]

        requested = request_body["model"]
        if requested.startswith("models/"):
            response_model, model = requested, requested
        else:
            response_model = self.settings.default_embeddings_model
            model = "models/" + response_model

        payload = to_embeddings_request(inputs, model, request_body.get("dimensions"))
        async with self._client_session() as session:
            upstream = await self._send(session, "POST", self._upstream_url(f"{model}:batchEmbedContents"), payload)
            try:
                data = await self._read_json(upstream)
            finally:
                upstream.release()
        return to_openai_embeddings(data, response_model)


__all__ = ["GeminiExecutor", "PreparedCall", "resolve_model", "NATIVE_MODEL_PREFIXES"]
