"""Fan-out of batched chat completions over one upstream key."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from ..errors import InvalidRequest, ProxyError
from ..providers import GeminiExecutor


log = logging.getLogger(__name__)


async def _run_item(executor: GeminiExecutor, index: int, item: Any) -> Dict[str, Any]:
    custom_id = item.get("custom_id") if isinstance(item, dict) else None
    item_id = custom_id or f"batch_{index}"
    try:
        if not isinstance(item, dict):
            raise InvalidRequest("batch item must be a JSON object")
        request_body = {key: value for key, value in item.items() if key != "custom_id"}
        body = await executor.complete_json(request_body)
        status = 200
    except ProxyError as exc:
        log.info("Batch item %s failed: %s", item_id, exc.message)
        status, body = exc.status, exc.payload()
    except Exception as exc:
        log.exception("Batch item %s raised", item_id)
        status, body = 500, {"error": {"message": str(exc) or "Internal Server Error"}}
    return {"id": item_id, "response": {"status_code": status, "body": body}}


async def run_batch(executor: GeminiExecutor, request_body: Any) -> Dict[str, Any]:
    """Run every item concurrently; item failures are reported in place."""
    requests = request_body.get("requests") if isinstance(request_body, dict) else None
    if not isinstance(requests, list):
        raise InvalidRequest("requests must be an array")

    log.info("Batch: %d item(s)", len(requests))
    results = await asyncio.gather(
        *(_run_item(executor, index, item) for index, item in enumerate(requests))
    )
    return {"object": "list", "data": list(results), "has_more": False}


__all__ = ["run_batch"]
