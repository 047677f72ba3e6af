from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, TextIO, TypeVar

import httpx

from ..exceptions import DecodeError, TransportError
from .stream import LineDecoder, read_stream_to_string

logger = logging.getLogger(__name__)

ResponseExtractor = Callable[[Any], str]
T = TypeVar("T")


@dataclass(frozen=True)
class ChatRequest:
    """A fully built chat-completion request."""

    url: str
    payload: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def model(self) -> str:
        return str(self.payload.get("model", ""))


class ChatTransport:
    """Issue one chat request, buffered or streamed, and return its text.

    The transport knows nothing about the wire envelope: the driver supplies
    ``extract_text`` for buffered bodies and ``decode_line`` for streamed
    frames. One ``httpx.Client`` is shared by all calls, so a single transport
    may be used from several dispatcher threads at once.
    """

    def __init__(
        self,
        provider: str,
        extract_text: ResponseExtractor,
        decode_line: LineDecoder,
        *,
        timeout: float = 90.0,
        client: Optional[httpx.Client] = None,
        echo: Optional[TextIO] = None,
    ) -> None:
        self.provider = provider
        self._extract_text = extract_text
        self._decode_line = decode_line
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)
        self._echo = echo

    def send(self, request: ChatRequest, streaming: bool = False) -> str:
        logger.info(
            "Calling %s model %s (%s)",
            self.provider,
            request.model,
            "stream" if streaming else "buffered",
        )
        if streaming:
            return self._send_streaming(request)
        return self._send_buffered(request)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _send_buffered(self, request: ChatRequest) -> str:
        deadline = time.monotonic() + self._timeout
        try:
            with self._client.stream(
                "POST", request.url, headers=request.headers, json=request.payload
            ) as response:
                raw = self._read_body(request, response, deadline)
        except httpx.HTTPError as e:
            raise self._network_error(request, e) from e
        text = raw.decode(response.encoding or "utf-8", errors="replace")
        self._raise_for_status(request, response, text)
        try:
            body = json.loads(raw)
        except ValueError as e:
            raise DecodeError(
                f"Failed to decode {self.provider} JSON response: {e}"
            ) from e
        logger.debug("%s raw response: %s", self.provider, truncate(text, 2000))
        return self._extract_text(body)

    def _send_streaming(self, request: ChatRequest) -> str:
        deadline = time.monotonic() + self._timeout
        try:
            with self._client.stream(
                "POST", request.url, headers=request.headers, json=request.payload
            ) as response:
                if not response.is_success:
                    raw = self._read_body(request, response, deadline)
                    text = raw.decode(response.encoding or "utf-8", errors="replace")
                    self._raise_for_status(request, response, text)
                lines = self._until(request, deadline, response.iter_lines())
                return read_stream_to_string(lines, self._decode_line, self._echo)
        except httpx.HTTPError as e:
            raise self._network_error(request, e) from e

    def _read_body(
        self, request: ChatRequest, response: httpx.Response, deadline: float
    ) -> bytes:
        return b"".join(self._until(request, deadline, response.iter_bytes()))

    def _until(
        self, request: ChatRequest, deadline: float, chunks: Iterable[T]
    ) -> Iterator[T]:
        """Yield ``chunks`` while the whole call is inside its time budget.

        httpx timeouts apply to each socket operation, so a server trickling
        bytes would otherwise never time out.
        """
        for chunk in chunks:
            if time.monotonic() > deadline:
                raise self._timeout_error(request)
            yield chunk

    def _raise_for_status(
        self, request: ChatRequest, response: httpx.Response, body: str
    ) -> None:
        if response.is_success:
            return
        raise TransportError(
            "{} API error from {}: HTTP {} - {}".format(
                self.provider, request.url, response.status_code, body or "<no body>"
            ),
            provider=self.provider,
            status_code=response.status_code,
            body=body,
        )

    def _timeout_error(self, request: ChatRequest) -> TransportError:
        return TransportError(
            f"{self.provider} request to {request.url} timed out "
            f"after {self._timeout:g}s",
            provider=self.provider,
        )

    def _network_error(self, request: ChatRequest, err: httpx.HTTPError) -> TransportError:
        if isinstance(err, httpx.TimeoutException):
            return self._timeout_error(request)
        return TransportError(
            f"Error calling {self.provider} at {request.url}: {err}",
            provider=self.provider,
        )


def truncate(text: str, max_len: int) -> str:
    """Shorten long payloads for debug logging."""
    if len(text) <= max_len:
        return text
    return f"{text[:max_len]}...\n[truncated {len(text) - max_len} chars]"
