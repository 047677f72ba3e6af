"""Core workflows for commitbot."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from .config import Config
from .dispatch import WorkItem, dispatch
from .exceptions import ValidationError
from .git import FileCategory, FileChange, GitRepo, choose_pr_mode
from .progress import ProgressSink, is_tty
from .providers.base import BaseDriver

logger = logging.getLogger(__name__)

RESET = "\033[0m"
BOLD = "\033[1m"
CYAN = "\033[96m"
GREEN = "\033[92m"

CATEGORY_MENU = (
    "How does this file relate to the ticket?\n"
    "  1) Main purpose\n"
    "  2) Supporting change\n"
    "  3) Consequence / ripple\n"
    "  4) Ignore / unrelated cleanup"
)

MAX_CATEGORY_ATTEMPTS = 5


class CommitbotWorkflow:
    """Glue between git, the dispatcher and the selected backend driver."""

    def __init__(
        self,
        driver: BaseDriver,
        git_repo: GitRepo,
        config: Config,
        *,
        ticket_summary: Optional[str] = None,
        apply: bool = False,
        show_progress: bool = True,
        prompt: Callable[[str], str] = input,
    ) -> None:
        self.driver = driver
        self.git_repo = git_repo
        self.config = config
        self.ticket_summary = ticket_summary
        self.apply = apply
        self.show_progress = show_progress
        self._prompt = prompt

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------
    def run_simple(self) -> Optional[str]:
        """One-shot commit message from the whole staged diff."""
        branch = self.git_repo.current_branch()
        diff = self.git_repo.get_staged_diff()
        if not diff.strip():
            print("No staged changes found.")
            return None
        message = self._preview(
            "Commit Message",
            lambda: self.driver.generate_commit_message_simple(
                branch, diff, self.ticket_summary
            ),
        )
        self._maybe_apply(message)
        return message

    def run_interactive(self) -> Optional[str]:
        """Classify each staged file, summarize them concurrently, then merge."""
        branch = self.git_repo.current_branch()
        files = self.git_repo.list_staged_files()
        if not files:
            print("No staged changes found.")
            return None

        if self.ticket_summary is None:
            answer = self._prompt(
                "Optional: brief ticket summary (enter to skip): "
            ).strip()
            self.ticket_summary = answer or None

        print(f"Current branch: {branch}")
        print(f"Found {len(files)} staged file(s).")

        changes: List[FileChange] = []
        for idx, path in enumerate(files, start=1):
            print(f"\n[{idx} / {len(files)}] {path}")
            category = self._ask_category()
            diff = self.git_repo.get_staged_diff_for_file(path)
            changes.append(FileChange(path=path, category=category, diff=diff))

        self.summarize_changes(branch, changes)

        message = self._preview(
            "Commit Message",
            lambda: self.driver.generate_commit_message(
                branch, changes, self.ticket_summary
            ),
        )
        self._maybe_apply(message)
        return message

    def run_pr(
        self,
        base: str,
        from_branch: Optional[str] = None,
        force_prs: bool = False,
        force_commits: bool = False,
    ) -> Optional[str]:
        """Summarize ``base..from_branch`` into a PR description."""
        if force_prs and force_commits:
            raise ValidationError("--pr and --commit are mutually exclusive")
        source = from_branch or self.git_repo.current_branch()
        items = self.git_repo.collect_pr_items(base, source)
        if not items:
            print(f"No commits found between {base} and {source}.")
            return None
        mode = choose_pr_mode(items, force_prs=force_prs, force_commits=force_commits)
        logger.debug(
            "PR mode: base=%s, from=%s, mode=%s, commits=%d",
            base,
            source,
            mode.value,
            len(items),
        )
        return self._preview(
            "PR Message",
            lambda: self.driver.generate_pr_message(
                base, source, mode, items, self.ticket_summary
            ),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def summarize_changes(self, branch: str, changes: List[FileChange]) -> None:
        """Fill ``summary`` on every non-ignored change via the dispatcher.

        Ignored files count towards progress without ever being dispatched.
        Any failure aborts the whole run; no partial summaries are kept.
        """
        items = [
            WorkItem(
                index=index,
                branch=branch,
                path=change.path,
                category=change.category,
                diff=change.diff,
                ticket_summary=self.ticket_summary,
            )
            for index, change in enumerate(changes)
            if change.category is not FileCategory.IGNORED
        ]
        progress = ProgressSink(
            total=len(changes),
            label="Summarizing files",
            show=self.show_progress and is_tty(),
        )
        progress.advance(len(changes) - len(items))
        try:
            summaries = dispatch(
                items,
                self.config.max_concurrent_requests,
                self.driver.summarize_file,
                progress,
            )
        finally:
            progress.finish()
        for item, summary in zip(items, summaries):
            changes[item.index].summary = summary

    def _ask_category(self) -> FileCategory:
        print(CATEGORY_MENU)
        for _ in range(MAX_CATEGORY_ATTEMPTS):
            category = FileCategory.from_choice(self._prompt("Enter choice [1-4]: "))
            if category is not None:
                return category
            print("Invalid choice. Please enter 1, 2, 3, or 4.")
        raise ValidationError("No valid file category given")

    def _preview(self, title: str, produce: Callable[[], str]) -> str:
        header = f"----- {title} Preview -----"
        footer = "-" * len(header)
        if self.driver.streams:
            print()
            print(f"{CYAN}{BOLD}{header}{RESET}", flush=True)
            text = produce()
            print()
            print(f"{CYAN}{BOLD}{footer}{RESET}")
            return text
        text = produce()
        print()
        print(f"{CYAN}{BOLD}{header}{RESET}")
        print(text)
        print(f"{CYAN}{BOLD}{footer}{RESET}")
        return text

    def _maybe_apply(self, message: str) -> None:
        if not self.apply:
            return
        path = self.git_repo.write_commit_editmsg(message.strip() + "\n")
        print(f"{GREEN}Wrote commit message to {path}{RESET}")
