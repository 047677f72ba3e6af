"""commitbot - LLM-assisted Git commit message and PR description generator."""

from importlib import import_module
from typing import TYPE_CHECKING

__version__ = "0.1.0"

# Public API (lazy-exported to avoid import-time side effects)
__all__ = [
    # Config
    "Config", "load_config",
    # Dispatch
    "WorkItem", "Outcome", "dispatch", "ProgressSink",
    # Drivers
    "build_driver", "ChatTransport",
    # Workflow
    "CommitbotWorkflow",
    # Exceptions
    "CommitbotError", "ConfigError", "GitError", "LLMError",
    "BackendError", "TransportError", "DecodeError", "StreamDecodeError",
]


def __getattr__(name: str):
    """Lazy attribute loader so ``import commitbot`` stays cheap."""
    mapping = {
        "Config": ("commitbot.config", "Config"),
        "load_config": ("commitbot.config", "load_config"),
        "WorkItem": ("commitbot.dispatch", "WorkItem"),
        "Outcome": ("commitbot.dispatch", "Outcome"),
        "dispatch": ("commitbot.dispatch", "dispatch"),
        "ProgressSink": ("commitbot.progress", "ProgressSink"),
        "build_driver": ("commitbot.llm", "build_driver"),
        "ChatTransport": ("commitbot.providers.transport", "ChatTransport"),
        "CommitbotWorkflow": ("commitbot.core", "CommitbotWorkflow"),
        "CommitbotError": ("commitbot.exceptions", "CommitbotError"),
        "ConfigError": ("commitbot.exceptions", "ConfigError"),
        "GitError": ("commitbot.exceptions", "GitError"),
        "LLMError": ("commitbot.exceptions", "LLMError"),
        "BackendError": ("commitbot.exceptions", "BackendError"),
        "TransportError": ("commitbot.exceptions", "TransportError"),
        "DecodeError": ("commitbot.exceptions", "DecodeError"),
        "StreamDecodeError": ("commitbot.exceptions", "StreamDecodeError"),
    }
    if name in mapping:
        mod_name, attr = mapping[name]
        mod = import_module(mod_name)
        value = getattr(mod, attr)
        globals()[name] = value  # cache for future access
        return value
    raise AttributeError(f"module 'commitbot' has no attribute {name!r}")


if TYPE_CHECKING:
    from .config import Config, load_config
    from .core import CommitbotWorkflow
    from .dispatch import Outcome, WorkItem, dispatch
    from .exceptions import (
        BackendError,
        CommitbotError,
        ConfigError,
        DecodeError,
        GitError,
        LLMError,
        StreamDecodeError,
        TransportError,
    )
    from .llm import build_driver
    from .progress import ProgressSink
    from .providers.transport import ChatTransport
