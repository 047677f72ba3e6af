import logging
import os
from collections.abc import Generator
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolate_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[None, None, None]:
    """Keep user config and credentials out of every test."""
    for key in list(os.environ):
        if key.startswith("COMMITBOT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("COMMITBOT_CONFIG", str(tmp_path / "commitbot.toml"))
    yield


@pytest.fixture(autouse=True)
def reset_commitbot_logger() -> Generator[None, None, None]:
    # CLI tests call init_logging, which detaches the logger from caplog.
    logger = logging.getLogger("commitbot")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    return tmp_path / "commitbot.toml"
