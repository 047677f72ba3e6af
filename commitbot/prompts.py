"""System prompts and prompt rendering for every model call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .git import FileCategory, FileChange, PrItem, PrSummaryMode

FILE_SUMMARY = """You are a helpful assistant that explains code changes
file-by-file to later help generate a Git commit message.
Rules:
- Focus on intent, not line-by-line diffs.
- The summary should supplement reading the diff, not repeat it. A reviewer
  will still read the code; help them understand why it changed.
- Keep the number of bullet points proportional to the size of the change.
- You only see this one file. Do not speculate about other changes.
- Do not narrate. Your reply is fed into a later request and must contain only
  the final summary."""

COMMIT_INSTRUCTIONS = """You are a Git commit message assistant.
Write a descriptive Git commit message based on the file summaries.
Rules:
- Start with a summary line under 50 characters, no formatting.
- Follow with an explanation of the changes grouped by type.
- Use appropriate headlines (## Service, ## Migrations, ## Models, ## DevOps, etc.).
- Use bullet points under each group (-).
- If something is new, call it 'Introduced', not 'Refactored' unless it was refactored.
- If it fixes broken or incomplete behavior, prefer 'Fixed' or 'Refined'.
- Enclose functions, classes, filenames, and other code in `ticks`.
- Avoid generic terms like 'update' or 'improve' unless strictly accurate.
- Mention repetitive changes (like renames) once instead of per file.
- Focus on the main purpose and supporting work; mention consequences briefly
  or omit them when they follow from other changes.
- Do not narrate your thought process. Reply with the commit message only."""

SIMPLE_COMMIT_INSTRUCTIONS = """You are a Git commit message assistant.
Write a descriptive Git commit message for the given diff.
Rules:
- Start with a summary line under 50 characters, no formatting.
- Follow with a detailed breakdown grouped by type of change.
- Use headlines (## Migrations, ## Factories, ## Models, etc.).
- Use bullet points under each group.
- If something is new, call it 'Introduced', not 'Refactored'.
- If it fixes broken or incomplete behavior, prefer 'Fixed' or 'Refined'.
- Avoid generic terms like 'update' or 'improve' unless strictly accurate.
- Group repetitive changes (like renames) instead of repeating them per file.
- Infer intent where possible from names and context.
- Do not narrate your thought process. Reply with the commit message only."""

PR_INSTRUCTIONS = """You are a GitHub Pull Request description assistant.
Your job is to summarize the *overall goal* of the branch and the important changes.
Rules:
- Start with a concise PR title (<= 72 characters, no formatting).
- Then include sections, for example:
  - ## Overview
  - ## Changes
  - ## Testing / Validation
  - ## Notes / Risks
- Focus on user-visible behavior and domain-level intent, not line-by-line diffs.
- De-emphasize purely mechanical changes (formatting-only, CI-only, or style-only).
- If PR numbers are provided, reference them in the summary (e.g. 'PR #123').
- When multiple PRs contributed, explain how they fit together into a single story.
- Be specific; avoid phrases like 'misc changes' or 'small fixes'. Many small
  changes that do not merit individual mention may be summarized together."""

MISSING_SUMMARY = "[missing per-file summary]"


@dataclass(frozen=True)
class PromptPair:
    system: str
    user: str

    def as_messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


def _with_ticket(system: str, ticket_summary: Optional[str]) -> str:
    if ticket_summary:
        return f"{system}\nOverall ticket goal: {ticket_summary}"
    return system


def file_summary_prompt(
    branch: str,
    path: str,
    category: FileCategory,
    diff: str,
    ticket_summary: Optional[str] = None,
) -> PromptPair:
    user = (
        f"Branch: {branch}\n"
        f"File: {path}\n"
        f"Category: {category.value}\n\n"
        f"Diff:\n```diff\n{diff}\n```"
    )
    return PromptPair(_with_ticket(FILE_SUMMARY, ticket_summary), user)


def render_per_file_summaries(files: Sequence[FileChange]) -> str:
    blocks = []
    for change in files:
        if change.category is FileCategory.IGNORED:
            continue
        blocks.append(
            f"File: {change.path}\n"
            f"Category: {change.category.value}\n"
            f"Summary:\n{change.summary or MISSING_SUMMARY}\n\n"
        )
    return "".join(blocks)


def commit_message_prompt(
    branch: str,
    files: Sequence[FileChange],
    ticket_summary: Optional[str] = None,
) -> PromptPair:
    user = f"Branch: {branch}\n\nPer-file summaries:\n\n{render_per_file_summaries(files)}"
    return PromptPair(_with_ticket(COMMIT_INSTRUCTIONS, ticket_summary), user)


def commit_message_simple_prompt(
    branch: str, diff: str, ticket_summary: Optional[str] = None
) -> PromptPair:
    user = f"Branch: {branch}\n\nDiff:\n```diff\n{diff}\n```"
    return PromptPair(_with_ticket(SIMPLE_COMMIT_INSTRUCTIONS, ticket_summary), user)


def _render_by_commits(items: Sequence[PrItem]) -> List[str]:
    lines = ["Commit history (oldest first):"]
    for item in items:
        pr_tag = f" (PR #{item.pr_number})" if item.pr_number is not None else ""
        lines.append(f"- {item.short_hash}{pr_tag}: {item.title.strip()}")
        if item.body.strip():
            lines.append("  Body:")
            lines.append("  " + item.body.replace("\n", "\n  "))
    return lines


def _render_by_prs(items: Sequence[PrItem]) -> List[str]:
    grouped: Dict[int, List[PrItem]] = {}
    no_pr: List[PrItem] = []
    for item in items:
        if item.pr_number is None:
            no_pr.append(item)
        else:
            grouped.setdefault(item.pr_number, []).append(item)

    lines = ["Pull requests contributing to this branch (oldest commits first):"]
    for number in sorted(grouped):
        group = grouped[number]
        head = group[0]
        lines.append("")
        lines.append(f"PR #{number}: {head.title.strip()} [{head.short_hash}]")
        if len(group) > 1:
            lines.append("Additional commits in this PR:")
            for item in group[1:]:
                lines.append(f"- {item.short_hash}: {item.title.strip()}")

    if no_pr:
        lines.append("")
        lines.append(
            "Commits without associated PR numbers "
            "(may be small fixes or direct pushes):"
        )
        for item in no_pr:
            lines.append(f"- {item.short_hash}: {item.title.strip()}")
    return lines


def pr_message_prompt(
    base_branch: str,
    from_branch: str,
    mode: PrSummaryMode,
    items: Sequence[PrItem],
    ticket_summary: Optional[str] = None,
) -> PromptPair:
    header = (
        f"Base branch: {base_branch}\n"
        f"Feature branch: {from_branch}\n"
        f"Summary mode: {mode.value}\n\n"
    )
    if mode is PrSummaryMode.BY_PRS:
        body = _render_by_prs(items)
    else:
        body = _render_by_commits(items)
    return PromptPair(
        _with_ticket(PR_INSTRUCTIONS, ticket_summary), header + "\n".join(body) + "\n"
    )
