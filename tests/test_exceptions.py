from commitbot.exceptions import (
    BackendError,
    CommitbotError,
    ConfigError,
    DecodeError,
    GitError,
    LLMError,
    StreamDecodeError,
    TransportError,
    ValidationError,
)


def test_exceptions_hierarchy_and_str():
    # Given exception classes
    # When instantiating
    t = TransportError("boom", provider="OpenAI", status_code=502, body="bad gateway")
    d = DecodeError("decode")
    s = StreamDecodeError("frame")

    # Then hierarchy holds
    for cls in (ConfigError, GitError, ValidationError, LLMError):
        assert issubclass(cls, CommitbotError)
    assert isinstance(t, BackendError)
    assert isinstance(t, LLMError)
    assert isinstance(d, BackendError)
    assert isinstance(s, DecodeError)
    # And details are retained
    assert t.status_code == 502
    assert t.provider == "OpenAI"
    assert t.body == "bad gateway"
    assert "boom" in str(t)
    assert "frame" in str(s)


def test_transport_error_defaults_without_response():
    err = TransportError("connection refused")
    assert err.status_code is None
    assert err.body == ""
