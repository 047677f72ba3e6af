from __future__ import annotations

from typing import Any

from ..exceptions import DecodeError
from ..prompts import PromptPair
from .base import ChatDriver
from .pricing import log_usage
from .stream import StreamFrame, decode_sse_line
from .transport import ChatRequest


class OpenAIDriver(ChatDriver):
    """OpenAI-compatible ``/v1/chat/completions`` backend.

    Buffered replies carry ``choices[0].message.content``; streamed replies
    are server-sent events ending with ``data: [DONE]``.
    """

    provider_label = "OpenAI"

    def build_request(self, prompts: PromptPair, stream: bool) -> ChatRequest:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        payload = {
            "model": self.config.model,
            "messages": prompts.as_messages(),
            "stream": stream,
        }
        return ChatRequest(
            url=f"{self.config.endpoint}/v1/chat/completions",
            payload=payload,
            headers=headers,
        )

    def extract_text(self, body: Any) -> str:
        if not isinstance(body, dict):
            raise DecodeError("Unexpected OpenAI response: body is not an object")
        choices = body.get("choices")
        if not isinstance(choices, list):
            raise DecodeError("Unexpected OpenAI response: missing 'choices'")
        if not choices:
            raise DecodeError("No choices returned from OpenAI")
        first = choices[0]
        message = first.get("message") if isinstance(first, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise DecodeError(
                "Unexpected OpenAI response: choices[0].message.content missing"
            )
        log_usage(self.config.provider, self.config.model, body.get("usage"))
        return content

    def decode_line(self, raw_line: str) -> StreamFrame:
        return decode_sse_line(raw_line)
