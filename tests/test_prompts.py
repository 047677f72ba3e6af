from commitbot.git import FileCategory, FileChange, PrItem, PrSummaryMode
from commitbot.prompts import (
    COMMIT_INSTRUCTIONS,
    MISSING_SUMMARY,
    commit_message_prompt,
    commit_message_simple_prompt,
    file_summary_prompt,
    pr_message_prompt,
)


def test_file_summary_prompt_includes_ticket_and_diff():
    prompts = file_summary_prompt(
        "feature/login", "app.py", FileCategory.MAIN, "+x = 1", "Add SSO login"
    )
    assert prompts.system.endswith("Overall ticket goal: Add SSO login")
    assert "File: app.py" in prompts.user
    assert "Category: main" in prompts.user
    assert "```diff\n+x = 1\n```" in prompts.user
    assert [m["role"] for m in prompts.as_messages()] == ["system", "user"]


def test_commit_prompt_skips_ignored_and_marks_missing_summaries():
    files = [
        FileChange("a.py", FileCategory.MAIN, summary="- adds login"),
        FileChange("b.py", FileCategory.IGNORED, summary="never shown"),
        FileChange("c.py", FileCategory.SUPPORTING),
    ]
    prompts = commit_message_prompt("main", files)
    assert prompts.system == COMMIT_INSTRUCTIONS
    assert "File: a.py\nCategory: main\nSummary:\n- adds login" in prompts.user
    assert "b.py" not in prompts.user
    assert f"File: c.py\nCategory: supporting\nSummary:\n{MISSING_SUMMARY}" in prompts.user


def test_simple_prompt():
    prompts = commit_message_simple_prompt("dev", "diff --git a b")
    assert prompts.user.startswith("Branch: dev")
    assert "Overall ticket goal" not in prompts.system


ITEMS = [
    PrItem("a" * 40, "Add parser (#12)", "", 12),
    PrItem("b" * 40, "Fix parser edge case", "Refs #12", 12),
    PrItem("c" * 40, "Bump deps", "line one\nline two", None),
    PrItem("d" * 40, "Add CLI #15", "", 15),
]


def test_pr_prompt_by_commits():
    prompts = pr_message_prompt("main", "feature", PrSummaryMode.BY_COMMITS, ITEMS)
    user = prompts.user
    assert "Summary mode: commits" in user
    assert "- aaaaaaa (PR #12): Add parser (#12)" in user
    assert "- ccccccc: Bump deps" in user
    assert "  Body:\n  line one\n  line two" in user


def test_pr_prompt_by_prs_groups_and_lists_orphans():
    prompts = pr_message_prompt(
        "main", "feature", PrSummaryMode.BY_PRS, ITEMS, "Parser rework"
    )
    user = prompts.user
    assert "PR #12: Add parser (#12) [aaaaaaa]" in user
    assert "Additional commits in this PR:\n- bbbbbbb: Fix parser edge case" in user
    assert user.index("PR #12") < user.index("PR #15")
    assert "Commits without associated PR numbers" in user
    assert "- ccccccc: Bump deps" in user
    assert "Overall ticket goal: Parser rework" in prompts.system
