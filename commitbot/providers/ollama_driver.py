from __future__ import annotations

from typing import Any

from ..exceptions import DecodeError
from ..prompts import PromptPair
from .base import ChatDriver
from .stream import StreamFrame, decode_ndjson_line
from .transport import ChatRequest


class OllamaDriver(ChatDriver):
    """Ollama ``/api/chat`` backend (no credentials, NDJSON streaming)."""

    provider_label = "Ollama"

    def build_request(self, prompts: PromptPair, stream: bool) -> ChatRequest:
        payload = {
            "model": self.config.model,
            "stream": stream,
            "messages": prompts.as_messages(),
        }
        return ChatRequest(
            url=f"{self.config.endpoint}/api/chat",
            payload=payload,
            headers={"Content-Type": "application/json"},
        )

    def extract_text(self, body: Any) -> str:
        message = body.get("message") if isinstance(body, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise DecodeError("Unexpected Ollama response: message.content missing")
        return content.strip()

    def decode_line(self, raw_line: str) -> StreamFrame:
        return decode_ndjson_line(raw_line)
