"""Incremental stream decoding: SSE and NDJSON framings.

Line splitting (including a partial trailing line carried across network
reads) is handled by ``httpx.Response.aiter_lines``; this module turns each
complete line into a JSON payload and each payload into a text delta.

Malformed frames are dropped. A single corrupt chunk must not abort a
response that is otherwise arriving fine, so undecodable lines are logged at
DEBUG and skipped.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, Callable
from typing import Any

from llm_gateway.gateway.types import TokenCallback

logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"


class Framing(ABC):
    """Turns one line of a streamed body into a JSON payload (or None)."""

    name: str

    @abstractmethod
    def parse_line(self, line: str) -> Any | None:
        ...

    @staticmethod
    def _loads(raw: str) -> Any | None:
        try:
            return json.loads(raw)
        except ValueError:
            logger.debug("Dropping malformed stream frame: %.120s", raw)
            return None


class SSEFraming(Framing):
    """Server-Sent Events: only ``data:`` lines carry payloads."""

    name = "sse"

    def parse_line(self, line: str) -> Any | None:
        line = line.strip()
        if not line.startswith(SSE_DATA_PREFIX):
            return None
        payload = line[len(SSE_DATA_PREFIX):].strip()
        if not payload or payload == SSE_DONE:
            return None
        return self._loads(payload)


class NDJSONFraming(Framing):
    """Newline-delimited JSON: every non-empty line is one object."""

    name = "ndjson"

    def parse_line(self, line: str) -> Any | None:
        line = line.strip()
        if not line:
            return None
        return self._loads(line)


SSE = SSEFraming()
NDJSON = NDJSONFraming()


async def consume_lines(
    lines: AsyncIterable[str],
    framing: Framing,
    extract_delta: Callable[[Any], str | None],
    on_token: TokenCallback,
) -> str:
    """Read the stream to exhaustion, emitting each non-empty delta.

    Returns the concatenation of every delta passed to ``on_token``.
    """
    parts: list[str] = []
    async for line in lines:
        payload = framing.parse_line(line)
        if payload is None:
            continue
        try:
            delta = extract_delta(payload)
        except (KeyError, IndexError, TypeError, AttributeError):
            logger.debug("Dropping stream frame with unexpected shape")
            continue
        if delta:
            parts.append(delta)
            on_token(delta)
    return "".join(parts)
