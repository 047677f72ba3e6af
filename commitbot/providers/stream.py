"""Incremental decoding of streamed chat replies.

Both backends deliver one frame per line but wrap it differently:

- OpenAI-compatible servers send server-sent events, ``data: {json}`` lines
  terminated by ``data: [DONE]``.
- Ollama sends newline-delimited JSON objects and flags the last one with
  ``"done": true``.

Each decoder turns a single line into a :class:`StreamFrame`; the shared
:func:`read_stream_to_string` loop does the accumulation and live echo.
"""

from __future__ import annotations

import contextlib
import json
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional, TextIO

from ..exceptions import StreamDecodeError

SSE_DATA_PREFIX = "data:"
SSE_DONE_SENTINEL = "[DONE]"


class FrameKind(Enum):
    SKIP = "skip"
    DELTA = "delta"
    END = "end"


@dataclass(frozen=True)
class StreamFrame:
    """One decoded unit from the wire."""

    kind: FrameKind
    text: str = ""

    @classmethod
    def delta(cls, text: str) -> "StreamFrame":
        return cls(FrameKind.DELTA, text)

    @property
    def is_end(self) -> bool:
        return self.kind is FrameKind.END


SKIP = StreamFrame(FrameKind.SKIP)
END = StreamFrame(FrameKind.END)

LineDecoder = Callable[[str], StreamFrame]


def _loads(payload: str, label: str) -> Any:
    try:
        return json.loads(payload)
    except ValueError as e:
        snippet = payload if len(payload) <= 200 else payload[:200] + "…"
        raise StreamDecodeError(
            f"Failed to decode {label} stream JSON: {e} (frame: {snippet!r})"
        ) from e


def decode_sse_line(raw_line: str) -> StreamFrame:
    """Decode one OpenAI-style server-sent event line."""
    line = raw_line.strip()
    if not line or not line.startswith(SSE_DATA_PREFIX):
        return SKIP
    payload = line[len(SSE_DATA_PREFIX):].strip()
    if payload == SSE_DONE_SENTINEL:
        return END
    envelope = _loads(payload, "OpenAI")
    if not isinstance(envelope, dict):
        return SKIP
    choices = envelope.get("choices")
    if not isinstance(choices, list) or not choices:
        return SKIP
    first = choices[0]
    delta = first.get("delta") if isinstance(first, dict) else None
    content = delta.get("content") if isinstance(delta, dict) else None
    if isinstance(content, str) and content:
        return StreamFrame.delta(content)
    return SKIP


def decode_ndjson_line(raw_line: str) -> StreamFrame:
    """Decode one Ollama newline-delimited JSON line.

    ``done: true`` wins over any content carried on the same line.
    """
    line = raw_line.strip()
    if not line:
        return SKIP
    obj = _loads(line, "Ollama")
    if not isinstance(obj, dict):
        raise StreamDecodeError(
            f"Failed to decode Ollama stream JSON: expected object, "
            f"got {type(obj).__name__}"
        )
    if obj.get("done") is True:
        return END
    message = obj.get("message")
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, str) and content:
        return StreamFrame.delta(content)
    return SKIP


def _echo(sink: TextIO, text: str) -> bool:
    """Write and flush one delta; ``False`` once the sink is unusable."""
    try:
        sink.write(text)
    except (OSError, ValueError):
        return False
    with contextlib.suppress(OSError, ValueError):
        sink.flush()
    return True


def read_stream_to_string(
    lines: Iterable[str],
    decode_line: LineDecoder,
    echo: Optional[TextIO] = None,
) -> str:
    """Accumulate deltas from ``lines`` until an end frame or EOF.

    Every delta is echoed to ``echo`` (standard output by default) as soon as
    it is decoded. Lines still buffered after the end frame are not read.
    A :class:`StreamDecodeError` propagates and the partial text is dropped.
    """
    sink: Optional[TextIO] = echo if echo is not None else sys.stdout
    parts: list[str] = []
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        frame = decode_line(line)
        if frame.is_end:
            break
        if frame.kind is FrameKind.DELTA:
            parts.append(frame.text)
            if sink is not None and not _echo(sink, frame.text):
                # Closed pipe: keep reading, stop echoing.
                sink = None
    return "".join(parts)
