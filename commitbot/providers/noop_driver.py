from __future__ import annotations

from typing import Optional, Sequence

from ..dispatch import WorkItem
from ..git import FileCategory, FileChange, PrItem, PrSummaryMode
from .base import BaseDriver


class NoopDriver(BaseDriver):
    """Dummy backend for ``--no-model`` / ``model = "none"``.

    Produces deterministic placeholder text without any network access, which
    makes it handy for exercising the workflows offline.
    """

    def summarize_file(self, item: WorkItem) -> str:
        return f"[DUMMY SUMMARY] {item.path} ({item.category.value})"

    def generate_commit_message(
        self,
        branch: str,
        files: Sequence[FileChange],
        ticket_summary: Optional[str] = None,
    ) -> str:
        lines = ["Dummy commit message for testing", "", f"Branch: {branch}"]
        if ticket_summary:
            lines.append(f"Ticket: {ticket_summary}")
        lines.append("")
        for change in files:
            if change.category is FileCategory.IGNORED:
                continue
            summary = change.summary or "[no summary; dummy client]"
            lines.append(f"- {change.path} [{change.category.value}]: {summary}")
        return "\n".join(lines) + "\n"

    def generate_commit_message_simple(
        self, branch: str, diff: str, ticket_summary: Optional[str] = None
    ) -> str:
        return f"Dummy simple commit message for branch {branch}\n\n(LLM disabled)"

    def generate_pr_message(
        self,
        base_branch: str,
        from_branch: str,
        mode: PrSummaryMode,
        items: Sequence[PrItem],
        ticket_summary: Optional[str] = None,
    ) -> str:
        lines = [
            "Dummy PR description for testing",
            "",
            f"Base branch: {base_branch}",
            f"Feature branch: {from_branch}",
            f"Mode: {mode.value}",
            "",
        ]
        if ticket_summary:
            lines.extend([f"Ticket summary: {ticket_summary}", ""])
        for item in items:
            pr = str(item.pr_number) if item.pr_number is not None else "none"
            lines.append(f"- {item.short_hash} {item.title.strip()} (PR #{pr})")
        return "\n".join(lines) + "\n"
