"""Git operations for commitbot."""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .exceptions import GitError

logger = logging.getLogger(__name__)

_PR_NUMBER_RE = re.compile(r"#(\d+)")
_LOG_RECORD_END = "---END---"


class FileCategory(Enum):
    """How a staged file relates to the ticket (interactive mode)."""

    MAIN = "main"
    SUPPORTING = "supporting"
    CONSEQUENCE = "consequence"
    IGNORED = "ignored"

    @classmethod
    def from_choice(cls, choice: str) -> Optional["FileCategory"]:
        return _CHOICES.get(choice.strip())


_CHOICES = {
    "1": FileCategory.MAIN,
    "2": FileCategory.SUPPORTING,
    "3": FileCategory.CONSEQUENCE,
    "4": FileCategory.IGNORED,
}


@dataclass
class FileChange:
    """A staged file's diff plus its category and (later) model summary."""

    path: str
    category: FileCategory
    diff: str = ""
    summary: Optional[str] = None


class PrSummaryMode(Enum):
    BY_COMMITS = "commits"
    BY_PRS = "prs"


@dataclass(frozen=True)
class PrItem:
    """A commit in the PR range, plus any detected PR number."""

    commit_hash: str
    title: str
    body: str = ""
    pr_number: Optional[int] = None

    @property
    def short_hash(self) -> str:
        return self.commit_hash[:7]


def find_first_pr_number(text: str) -> Optional[int]:
    """Return the first ``#123`` style reference in ``text``."""
    match = _PR_NUMBER_RE.search(text)
    if match is None:
        return None
    return int(match.group(1))


def parse_pr_log(log_output: str) -> List[PrItem]:
    """Parse ``git log --pretty=format:%H%n%s%n%b%n---END---`` output."""
    items: List[PrItem] = []
    if not log_output.strip():
        return items
    for block in log_output.split("\n" + _LOG_RECORD_END):
        block = block.strip()
        if block.endswith(_LOG_RECORD_END):
            block = block[: -len(_LOG_RECORD_END)].strip()
        if not block:
            continue
        lines = block.splitlines()
        commit_hash = lines[0].strip()
        title = lines[1].strip() if len(lines) > 1 else ""
        body = "\n".join(lines[2:])
        pr_number = find_first_pr_number(title)
        if pr_number is None:
            pr_number = find_first_pr_number(body)
        items.append(
            PrItem(commit_hash=commit_hash, title=title, body=body, pr_number=pr_number)
        )
    return items


def choose_pr_mode(
    items: List[PrItem], force_prs: bool = False, force_commits: bool = False
) -> PrSummaryMode:
    """Pick PR grouping when at least two distinct PR numbers are present."""
    if force_prs:
        return PrSummaryMode.BY_PRS
    if force_commits:
        return PrSummaryMode.BY_COMMITS
    distinct = {item.pr_number for item in items if item.pr_number is not None}
    if len(distinct) >= 2:
        return PrSummaryMode.BY_PRS
    return PrSummaryMode.BY_COMMITS


class GitRepo:
    """Handles Git repository operations."""

    def __init__(self, repo_path: Optional[str] = None) -> None:
        self.repo_path = Path(repo_path or ".")
        if not self._is_git_repo():
            raise GitError(f"Not a Git repository: {self.repo_path}")

    def _is_git_repo(self) -> bool:
        try:
            self._run_git_command(["rev-parse", "--git-dir"])
            return True
        except GitError:
            return False

    def _run_git_command(self, args: list[str], strip: bool = True) -> str:
        """Run a Git command and return its output."""
        try:
            result = subprocess.run(
                ["git"] + args,
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            cmd = " ".join(args)
            raise GitError(f"Git command failed: {cmd}\n{e.stderr}") from e
        except FileNotFoundError as exc:
            raise GitError("Git command not found. Please install Git.") from exc
        return result.stdout.strip() if strip else result.stdout

    def current_branch(self) -> str:
        return self._run_git_command(["rev-parse", "--abbrev-ref", "HEAD"])

    def git_dir(self) -> Path:
        raw = Path(self._run_git_command(["rev-parse", "--git-dir"]))
        return raw if raw.is_absolute() else self.repo_path / raw

    def get_staged_diff(self) -> str:
        return self._run_git_command(["diff", "--cached"], strip=False)

    def list_staged_files(self) -> List[str]:
        output = self._run_git_command(["diff", "--cached", "--name-only"])
        return [line.strip() for line in output.splitlines() if line.strip()]

    def get_staged_diff_for_file(self, file_path: str) -> str:
        return self._run_git_command(["diff", "--cached", "--", file_path], strip=False)

    def stage_all(self) -> None:
        logger.warning("Staging all changes")
        self._run_git_command(["add", "-A"])

    def collect_pr_items(self, base: str, from_branch: str) -> List[PrItem]:
        """Commits in ``base..from_branch``, oldest first."""
        output = self._run_git_command(
            [
                "log",
                "--reverse",
                f"--pretty=format:%H%n%s%n%b%n{_LOG_RECORD_END}",
                f"{base}..{from_branch}",
            ],
            strip=False,
        )
        return parse_pr_log(output)

    def write_commit_editmsg(self, message: str) -> Path:
        """Write ``message`` to ``.git/COMMIT_EDITMSG`` for the next commit."""
        path = self.git_dir() / "COMMIT_EDITMSG"
        try:
            path.write_text(message)
        except OSError as e:
            raise GitError(f"Failed to write commit message to {path}: {e}") from e
        return path
