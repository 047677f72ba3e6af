from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence, TextIO

import httpx

from ..config import Config
from ..dispatch import WorkItem
from ..git import FileChange, PrItem, PrSummaryMode
from ..prompts import (
    PromptPair,
    commit_message_prompt,
    commit_message_simple_prompt,
    file_summary_prompt,
    pr_message_prompt,
)
from .stream import StreamFrame
from .transport import ChatRequest, ChatTransport, truncate

logger = logging.getLogger(__name__)


class BaseDriver(ABC):
    """Capability interface every backend implements.

    Per-file summaries feed the dispatcher and are never streamed; the three
    final-message operations stream when the configuration asks for it.
    """

    def __init__(self, config: Config) -> None:
        self.config = config

    @abstractmethod
    def summarize_file(self, item: WorkItem) -> str:
        raise NotImplementedError

    @abstractmethod
    def generate_commit_message(
        self,
        branch: str,
        files: Sequence[FileChange],
        ticket_summary: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    def generate_commit_message_simple(
        self, branch: str, diff: str, ticket_summary: Optional[str] = None
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    def generate_pr_message(
        self,
        base_branch: str,
        from_branch: str,
        mode: PrSummaryMode,
        items: Sequence[PrItem],
        ticket_summary: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    @property
    def streams(self) -> bool:
        """True when final messages are echoed while they are generated."""
        return False

    def close(self) -> None:  # noqa: B027 - optional hook
        """Release network resources, if any."""


class ChatDriver(BaseDriver):
    """Driver backed by an HTTP chat endpoint.

    Subclasses describe the wire format only: how to build a request, how to
    pull text out of a buffered body, and how to decode one streamed line.
    """

    provider_label = "LLM"

    def __init__(
        self,
        config: Config,
        *,
        client: Optional[httpx.Client] = None,
        echo: Optional[TextIO] = None,
    ) -> None:
        super().__init__(config)
        self.transport = ChatTransport(
            self.provider_label,
            self.extract_text,
            self.decode_line,
            timeout=config.request_timeout,
            client=client,
            echo=echo,
        )

    @abstractmethod
    def build_request(self, prompts: PromptPair, stream: bool) -> ChatRequest:
        raise NotImplementedError

    @abstractmethod
    def extract_text(self, body: Any) -> str:
        raise NotImplementedError

    @abstractmethod
    def decode_line(self, raw_line: str) -> StreamFrame:
        raise NotImplementedError

    @property
    def streams(self) -> bool:
        return self.config.stream

    def chat(self, prompts: PromptPair, stream: bool) -> str:
        request = self.build_request(prompts, stream)
        return self.transport.send(request, streaming=stream)

    def summarize_file(self, item: WorkItem) -> str:
        prompts = file_summary_prompt(
            item.branch, item.path, item.category, item.diff, item.ticket_summary
        )
        logger.debug(
            "Per-file summarize prompt for %s (%s):\n%s",
            item.path,
            item.category.value,
            truncate(prompts.user, 2000),
        )
        return self.chat(prompts, stream=False)

    def generate_commit_message(
        self,
        branch: str,
        files: Sequence[FileChange],
        ticket_summary: Optional[str] = None,
    ) -> str:
        prompts = commit_message_prompt(branch, files, ticket_summary)
        logger.debug("Final commit-message prompt:\n%s", truncate(prompts.user, 3000))
        return self.chat(prompts, stream=self.config.stream)

    def generate_commit_message_simple(
        self, branch: str, diff: str, ticket_summary: Optional[str] = None
    ) -> str:
        prompts = commit_message_simple_prompt(branch, diff, ticket_summary)
        logger.debug("Simple commit-message prompt:\n%s", truncate(prompts.user, 3000))
        return self.chat(prompts, stream=self.config.stream)

    def generate_pr_message(
        self,
        base_branch: str,
        from_branch: str,
        mode: PrSummaryMode,
        items: Sequence[PrItem],
        ticket_summary: Optional[str] = None,
    ) -> str:
        prompts = pr_message_prompt(
            base_branch, from_branch, mode, items, ticket_summary
        )
        logger.debug("PR description prompt:\n%s", truncate(prompts.user, 3500))
        return self.chat(prompts, stream=self.config.stream)

    def close(self) -> None:
        self.transport.close()
