"""Token-usage cost estimates backed by the ``genai-prices`` dataset."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from genai_prices import Usage, calc_price

logger = logging.getLogger(__name__)

_DATE_SUFFIX_RE = re.compile(r"[-_](?:\d{4}-\d{2}-\d{2}|\d{8}|\d{4})$")
_SUPPORTED = {"openai"}


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["TokenUsage"]:
        """Build from an OpenAI ``usage`` object; ``None`` if absent or odd."""
        if not isinstance(payload, dict):
            return None
        try:
            prompt = int(payload.get("prompt_tokens", 0))
            completion = int(payload.get("completion_tokens", 0))
            total = int(payload.get("total_tokens", prompt + completion))
        except (TypeError, ValueError):
            return None
        return cls(prompt, completion, total)


def estimate_cost(provider: str, model: str, usage: TokenUsage) -> Optional[Decimal]:
    """Return the estimated USD cost of one call, or ``None`` if unknown.

    Dated model ids (``gpt-5-nano-2025-08-07``) fall back to their alias.
    """
    if provider not in _SUPPORTED or not model:
        return None
    attempts = [model]
    stripped = _DATE_SUFFIX_RE.sub("", model)
    if stripped and stripped != model:
        attempts.append(stripped)
    for candidate in attempts:
        try:
            price = calc_price(
                Usage(
                    input_tokens=usage.prompt_tokens,
                    output_tokens=usage.completion_tokens,
                ),
                model_ref=candidate,
                provider_id=provider,
            )
        except LookupError:
            continue
        except (ValueError, TypeError) as exc:
            logger.debug("genai-prices lookup failed for %s: %s", candidate, exc)
            return None
        return Decimal(str(price.total_price))
    return None


def log_usage(provider: str, model: str, payload: Any) -> Optional[TokenUsage]:
    """Log token usage (and cost when known) for a buffered response."""
    usage = TokenUsage.from_payload(payload)
    if usage is None:
        return None
    cost = estimate_cost(provider, model, usage)
    if cost is None:
        logger.info(
            "Token usage: prompt=%d, completion=%d, total=%d",
            usage.prompt_tokens,
            usage.completion_tokens,
            usage.total_tokens,
        )
    else:
        logger.info(
            "Token usage: prompt=%d, completion=%d, total=%d (~$%s)",
            usage.prompt_tokens,
            usage.completion_tokens,
            usage.total_tokens,
            cost.quantize(Decimal("0.000001")),
        )
    return usage
