"""Command-line interface for commitbot."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, Optional

from . import __version__
from .config import Config, describe_provider, load_config
from .core import CommitbotWorkflow
from .exceptions import CommitbotError
from .git import GitRepo
from .llm import build_driver
from .log import init_logging

logger = logging.getLogger(__name__)

RESET = "\033[0m"
RED = "\033[91m"


class CLI:
    """argparse front end; ``run`` returns the process exit code."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="commitbot",
            description="LLM-assisted Git commit message generator",
        )
        parser.add_argument(
            "--version", action="version", version=f"%(prog)s {__version__}"
        )
        parser.add_argument(
            "--ask",
            action="store_true",
            help="Interactive mode: classify each file and do per-file summaries",
        )
        parser.add_argument(
            "--apply",
            action="store_true",
            help="Write the generated message into .git/COMMIT_EDITMSG "
            "(no commit is created)",
        )
        parser.add_argument(
            "-a",
            "--all",
            dest="stage_all",
            action="store_true",
            help="Stage all new, modified and deleted files first",
        )
        parser.add_argument(
            "--debug",
            action="store_true",
            help="Log prompts, responses and token usage",
        )
        parser.add_argument(
            "-v",
            "--verbose",
            action="count",
            default=0,
            help="Increase log verbosity (-v info, -vv debug)",
        )
        parser.add_argument(
            "--provider", choices=["openai", "ollama"], help="Model backend"
        )
        model_group = parser.add_mutually_exclusive_group()
        model_group.add_argument(
            "--model", help="Model name; 'none' behaves like --no-model"
        )
        model_group.add_argument(
            "--no-model",
            action="store_true",
            help="Disable model calls and return dummy responses",
        )
        parser.add_argument("--base-url", help="Override the backend base URL")
        parser.add_argument(
            "--api-key", help="API key (otherwise OPENAI_API_KEY is used)"
        )
        parser.add_argument(
            "--max-concurrent-requests",
            type=int,
            help="Maximum per-file summary requests in flight (default 4)",
        )
        stream_group = parser.add_mutually_exclusive_group()
        stream_group.add_argument(
            "--stream",
            dest="stream",
            action="store_const",
            const=True,
            help="Stream the final message as it is generated (default)",
        )
        stream_group.add_argument(
            "--no-stream",
            dest="stream",
            action="store_const",
            const=False,
            help="Wait for the complete final message",
        )
        parser.add_argument(
            "--ticket-summary",
            help="Brief description of the ticket, used for commit/PR summaries",
        )
        parser.add_argument(
            "--no-progress",
            action="store_true",
            help="Do not render the per-file progress line",
        )
        parser.add_argument(
            "--repo-path", default=".", help="Path to the Git repository"
        )

        subparsers = parser.add_subparsers(dest="command")
        pr = subparsers.add_parser(
            "pr",
            help="Generate a Pull Request description from commit or PR messages",
        )
        pr.add_argument("base", help="Base branch to compare against")
        pr.add_argument(
            "from_branch",
            nargs="?",
            help="Feature branch; defaults to the current branch",
        )
        pr_mode = pr.add_mutually_exclusive_group()
        pr_mode.add_argument(
            "--pr",
            dest="pr_mode",
            action="store_true",
            help="Group by PR numbers",
        )
        pr_mode.add_argument(
            "--commit",
            dest="commit_mode",
            action="store_true",
            help="Summarize commit by commit",
        )
        return parser

    def _overrides(self, args: argparse.Namespace) -> Dict[str, Any]:
        return {
            "provider": args.provider,
            "model": args.model,
            "base_url": args.base_url,
            "api_key": args.api_key,
            "max_concurrent_requests": args.max_concurrent_requests,
            "stream": args.stream,
        }

    def run(self, args: Optional[list[str]] = None) -> int:
        try:
            parsed = self.parser.parse_args(args)
        except SystemExit as exc:
            return int(exc.code or 0)

        init_logging(parsed.verbose, debug=parsed.debug)
        try:
            config = load_config(overrides=self._overrides(parsed))
            logger.debug("Resolved config: %s", config.to_dict())
            logger.info("Provider: %s", describe_provider(config.provider))
            return self._execute(parsed, config)
        except CommitbotError as e:
            print(f"{RED}Error: {e}{RESET}", file=sys.stderr)
            return 1
        except KeyboardInterrupt:
            print(f"{RED}Interrupted{RESET}", file=sys.stderr)
            return 130

    def _execute(self, args: argparse.Namespace, config: Config) -> int:
        driver = build_driver(config, no_model=args.no_model)
        try:
            git_repo = GitRepo(args.repo_path)
            if args.stage_all:
                git_repo.stage_all()
            workflow = CommitbotWorkflow(
                driver,
                git_repo,
                config,
                ticket_summary=args.ticket_summary,
                apply=args.apply,
                show_progress=not args.no_progress,
            )
            if args.command == "pr":
                workflow.run_pr(
                    args.base,
                    args.from_branch,
                    force_prs=args.pr_mode,
                    force_commits=args.commit_mode,
                )
            elif args.ask:
                workflow.run_interactive()
            else:
                workflow.run_simple()
        finally:
            driver.close()
        return 0


def main(argv: Optional[list[str]] = None) -> int:
    return CLI().run(argv)


if __name__ == "__main__":
    sys.exit(main())
