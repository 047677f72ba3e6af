"""Backend selection for commitbot."""

from __future__ import annotations

import logging
from typing import Dict, Optional, TextIO, Type

import httpx

from .config import Config
from .exceptions import ConfigError
from .providers.base import BaseDriver, ChatDriver
from .providers.noop_driver import NoopDriver
from .providers.ollama_driver import OllamaDriver
from .providers.openai_driver import OpenAIDriver

logger = logging.getLogger(__name__)

DRIVERS: Dict[str, Type[ChatDriver]] = {
    "openai": OpenAIDriver,
    "ollama": OllamaDriver,
}


def build_driver(
    config: Config,
    *,
    no_model: bool = False,
    client: Optional[httpx.Client] = None,
    echo: Optional[TextIO] = None,
) -> BaseDriver:
    """Pick the driver for ``config.provider`` once, up front.

    Missing credentials are reported here, before any request is dispatched.
    """
    if no_model or config.model_disabled:
        logger.debug("Using NoopDriver (no model calls)")
        return NoopDriver(config)
    driver_cls = DRIVERS.get(config.provider)
    if driver_cls is None:
        raise ConfigError(f"Unsupported provider: {config.provider}")
    config.require_credentials()
    logger.debug(
        "Using %s with model %s at %s",
        driver_cls.__name__,
        config.model,
        config.endpoint,
    )
    return driver_cls(config, client=client, echo=echo)
