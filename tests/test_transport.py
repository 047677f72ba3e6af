import io
import json

import httpx
import pytest

from commitbot.exceptions import DecodeError, StreamDecodeError, TransportError
from commitbot.providers.stream import decode_ndjson_line, decode_sse_line
from commitbot.providers.transport import ChatRequest, ChatTransport, truncate

URL = "http://backend.test/v1/chat/completions"


def _extract(body):
    return body["text"]


def _transport(handler, decode=decode_sse_line, echo=None, timeout=90.0):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return ChatTransport(
        "Test",
        _extract,
        decode,
        timeout=timeout,
        client=client,
        echo=echo if echo is not None else io.StringIO(),
    )


def _request(stream=False):
    return ChatRequest(
        url=URL,
        payload={"model": "m", "stream": stream, "messages": []},
        headers={"Authorization": "Bearer sk"},
    )


def test_buffered_send_returns_extracted_text():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"text": "feat: thing"})

    assert _transport(handler).send(_request()) == "feat: thing"
    assert seen["auth"] == "Bearer sk"
    assert seen["body"]["model"] == "m"


def test_buffered_http_error_carries_status_and_body():
    def handler(request):
        return httpx.Response(401, text='{"error": "invalid api key"}')

    with pytest.raises(TransportError) as ei:
        _transport(handler).send(_request())
    err = ei.value
    assert err.status_code == 401
    assert "invalid api key" in err.body
    assert "HTTP 401" in str(err)
    assert err.provider == "Test"


def test_buffered_invalid_json_is_decode_error():
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(DecodeError):
        _transport(handler).send(_request())


def test_network_failure_becomes_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError) as ei:
        _transport(handler).send(_request())
    assert ei.value.status_code is None
    assert "connection refused" in str(ei.value)


def test_timeout_becomes_transport_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(TransportError) as ei:
        _transport(handler, timeout=90.0).send(_request())
    assert "timed out after 90s" in str(ei.value)


def test_streaming_sse_accumulates_and_echoes():
    body = (
        'data: {"choices":[{"delta":{"content":"Fix"}}]}\n\n'
        'data: {"choices":[{"delta":{"content":" bug"}}]}\n\n'
        "data: [DONE]\n\n"
    )

    def handler(request):
        return httpx.Response(200, content=body.encode())

    echo = io.StringIO()
    assert _transport(handler, echo=echo).send(_request(True), streaming=True) == "Fix bug"
    assert echo.getvalue() == "Fix bug"


def test_streaming_ndjson_ignores_lines_after_done():
    body = (
        '{"message":{"role":"assistant","content":"Fix"}}\n'
        '{"message":{"role":"assistant","content":" bug"},"done":false}\n'
        '{"done":true}\n'
        "trailing garbage\n"
    )

    def handler(request):
        return httpx.Response(200, content=body.encode())

    transport = _transport(handler, decode=decode_ndjson_line)
    assert transport.send(_request(True), streaming=True) == "Fix bug"


def test_streaming_http_error_reads_body():
    def handler(request):
        return httpx.Response(500, text="model not loaded")

    with pytest.raises(TransportError) as ei:
        _transport(handler).send(_request(True), streaming=True)
    assert ei.value.status_code == 500
    assert ei.value.body == "model not loaded"


def test_streaming_malformed_frame_raises_stream_decode_error():
    body = 'data: {"choices":[{"delta":{"content":"Fix"}}]}\ndata: {nope\n'

    def handler(request):
        return httpx.Response(200, content=body.encode())

    with pytest.raises(StreamDecodeError):
        _transport(handler).send(_request(True), streaming=True)


def test_close_leaves_injected_client_open():
    client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    transport = ChatTransport("Test", _extract, decode_sse_line, client=client)
    transport.close()
    assert not client.is_closed


def test_truncate():
    assert truncate("short", 10) == "short"
    out = truncate("x" * 15, 10)
    assert out.startswith("x" * 10)
    assert "[truncated 5 chars]" in out


class _FakeClock:
    def __init__(self):
        self.now = 0.0

    def monotonic(self):
        return self.now


def _trickle(clock, data, step):
    for byte in data:
        clock.now += step
        yield bytes([byte])


def test_buffered_slow_drip_hits_total_deadline(monkeypatch):
    # Given a server that sends one byte every 0.15s and a 1s budget
    clock = _FakeClock()
    monkeypatch.setattr("commitbot.providers.transport.time", clock)

    def handler(request):
        return httpx.Response(200, content=_trickle(clock, b'{"text": "ok"}', 0.15))

    # When/Then
    with pytest.raises(TransportError) as ei:
        _transport(handler, timeout=1.0).send(_request())
    assert "timed out after 1s" in str(ei.value)
    assert ei.value.status_code is None


def test_streaming_slow_drip_hits_total_deadline(monkeypatch):
    clock = _FakeClock()
    monkeypatch.setattr("commitbot.providers.transport.time", clock)
    frames = [
        'data: {"choices":[{"delta":{"content":"tick"}}]}\n\n'.encode()
        for _ in range(20)
    ]

    def slow_frames():
        for frame in frames:
            clock.now += 0.5
            yield frame

    def handler(request):
        return httpx.Response(200, content=slow_frames())

    with pytest.raises(TransportError) as ei:
        _transport(handler, timeout=2.0).send(_request(True), streaming=True)
    assert "timed out after 2s" in str(ei.value)


def test_fast_response_within_deadline(monkeypatch):
    clock = _FakeClock()
    monkeypatch.setattr("commitbot.providers.transport.time", clock)

    def handler(request):
        return httpx.Response(200, content=_trickle(clock, b'{"text": "ok"}', 0.01))

    assert _transport(handler, timeout=1.0).send(_request()) == "ok"
