import io

import pytest

from commitbot.exceptions import DecodeError, StreamDecodeError
from commitbot.providers.stream import (
    END,
    SKIP,
    FrameKind,
    StreamFrame,
    decode_ndjson_line,
    decode_sse_line,
    read_stream_to_string,
)

SSE_LINES = [
    'data: {"choices":[{"delta":{"content":"Fix"}}]}',
    'data: {"choices":[{"delta":{"content":" bug"}}]}',
    "data: [DONE]",
]

NDJSON_LINES = [
    '{"message":{"role":"assistant","content":"Fix"}}',
    '{"message":{"role":"assistant","content":" bug"},"done":false}',
    '{"done":true}',
]


def test_sse_scenario_frames():
    frames = [decode_sse_line(line) for line in SSE_LINES]
    assert frames == [StreamFrame.delta("Fix"), StreamFrame.delta(" bug"), END]


def test_sse_scenario_accumulates_and_echoes():
    sink = io.StringIO()
    text = read_stream_to_string(SSE_LINES, decode_sse_line, sink)
    assert text == "Fix bug"
    assert sink.getvalue() == "Fix bug"


@pytest.mark.parametrize(
    "line",
    [
        "",
        "   ",
        ": keep-alive comment",
        "event: message",
        'data: {"choices":[]}',
        'data: {"choices":[{"delta":{"role":"assistant"}}]}',
        'data: {"choices":[{"delta":{"content":""}}]}',
        'data: {"id":"chatcmpl-1","object":"chat.completion.chunk"}',
    ],
)
def test_sse_non_content_lines_are_skipped(line):
    assert decode_sse_line(line) == SKIP


def test_sse_done_tolerates_whitespace():
    assert decode_sse_line("data:[DONE]") == END
    assert decode_sse_line("  data:   [DONE]  ") == END


def test_sse_malformed_json_is_hard_error():
    with pytest.raises(StreamDecodeError):
        decode_sse_line("data: {not json")


def test_ndjson_scenario_accumulates():
    sink = io.StringIO()
    assert read_stream_to_string(NDJSON_LINES, decode_ndjson_line, sink) == "Fix bug"


def test_ndjson_done_wins_over_content():
    frame = decode_ndjson_line('{"message":{"content":"tail"},"done":true}')
    assert frame.is_end


def test_ndjson_lines_without_text_are_skipped():
    assert decode_ndjson_line("") == SKIP
    assert decode_ndjson_line('{"message":{"role":"assistant","content":""}}') == SKIP
    assert decode_ndjson_line('{"done":false}') == SKIP


@pytest.mark.parametrize("line", ["{broken", "[1, 2]", '"just a string"'])
def test_ndjson_malformed_is_hard_error(line):
    with pytest.raises(DecodeError):
        decode_ndjson_line(line)


def test_round_trip_hello_world():
    frames = iter([StreamFrame.delta("Hello"), StreamFrame.delta(" world"), END])
    text = read_stream_to_string(["a", "b", "c"], lambda _line: next(frames), io.StringIO())
    assert text == "Hello world"


def test_decoding_same_stream_twice_is_idempotent():
    first = read_stream_to_string(SSE_LINES, decode_sse_line, io.StringIO())
    second = read_stream_to_string(SSE_LINES, decode_sse_line, io.StringIO())
    assert first == second == "Fix bug"


def test_end_stops_reading_remaining_lines():
    consumed = []

    def lines():
        for line in SSE_LINES + ["data: {broken json that must never be read"]:
            consumed.append(line)
            yield line

    assert read_stream_to_string(lines(), decode_sse_line, io.StringIO()) == "Fix bug"
    assert len(consumed) == len(SSE_LINES)


def test_eof_without_end_is_implicit_end():
    text = read_stream_to_string(SSE_LINES[:2], decode_sse_line, io.StringIO())
    assert text == "Fix bug"


def test_malformed_frame_mid_stream_discards_partial_text():
    sink = io.StringIO()
    lines = [SSE_LINES[0], "data: {oops", SSE_LINES[1]]
    with pytest.raises(StreamDecodeError):
        read_stream_to_string(lines, decode_sse_line, sink)
    # The first delta was echoed live, but nothing is returned.
    assert sink.getvalue() == "Fix"


def test_default_echo_is_stdout(capsys):
    read_stream_to_string(NDJSON_LINES, decode_ndjson_line)
    assert capsys.readouterr().out == "Fix bug"


def test_echo_flush_failure_does_not_abort():
    class _BrokenFlush(io.StringIO):
        def flush(self):
            raise OSError("terminal went away")

    sink = _BrokenFlush()
    assert read_stream_to_string(SSE_LINES, decode_sse_line, sink) == "Fix bug"


def test_echo_write_failure_stops_echo_but_keeps_text():
    class _ClosedPipe(io.StringIO):
        writes = 0

        def write(self, text):
            _ClosedPipe.writes += 1
            raise BrokenPipeError("stdout closed")

    sink = _ClosedPipe()
    assert read_stream_to_string(SSE_LINES, decode_sse_line, sink) == "Fix bug"
    assert _ClosedPipe.writes == 1


def test_frame_kinds():
    assert StreamFrame.delta("x").kind is FrameKind.DELTA
    assert SKIP.kind is FrameKind.SKIP
    assert END.is_end and not SKIP.is_end
