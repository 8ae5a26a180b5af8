from __future__ import annotations

from pathlib import Path

import pytest

from git_pulse.core.default_branch import (
    compare_with_default,
    from_conventional_names,
    resolve_default_branch,
)
from git_pulse.core.errors import DefaultBranchUnresolved
from git_pulse.core.git_runner import SafeGitRunner, require_ok
from git_pulse.core.models import GitRunResult


class ScriptedRunner:
    """
    Stands in for SafeGitRunner: answers by subcommand and records every call.
    `answers` maps a subcommand to (exit_code, stdout) or a callable(args).
    """

    def __init__(self, answers: dict):
        self.answers = answers
        self.calls: list[list[str]] = []

    def run(self, args, *, read_only=True, env=None):
        args = list(args)
        self.calls.append(args)
        answer = self.answers.get(args[0], (128, ""))
        if callable(answer):
            answer = answer(args)
        code, stdout = answer
        return GitRunResult(
            argv=["git", *args],
            root="/repo",
            stdout=stdout,
            stderr="" if code == 0 else "fatal: nope\n",
            exit_code=code,
            duration_ms=0,
            timed_out=False,
            output_truncated=False,
        )

    def output(self, args, *, context, read_only=True):
        res = self.run(args, read_only=read_only)
        require_ok(res, context=context)
        return res.stdout


def test_symbolic_ref_wins_and_strips_remote_prefix():
    runner = ScriptedRunner({"symbolic-ref": (0, "origin/trunk\n")})

    assert resolve_default_branch(runner) == "trunk"
    assert [c[0] for c in runner.calls] == ["symbolic-ref"]
    assert runner.calls[0] == ["symbolic-ref", "refs/remotes/origin/HEAD", "--short"]


def test_remote_show_used_when_symbolic_ref_fails_and_conventional_names_not_consulted():
    runner = ScriptedRunner(
        {
            "remote": (0, "* remote origin\n  Fetch URL: /srv/x.git\n  HEAD branch: develop\n"),
            "rev-parse": (0, "deadbeef\n"),
        }
    )

    assert resolve_default_branch(runner) == "develop"
    assert [c[0] for c in runner.calls] == ["symbolic-ref", "remote"]
    assert runner.calls[1] == ["remote", "show", "origin"]


def test_conventional_names_tried_in_order():
    existing = {"origin/dev", "origin/develop"}
    runner = ScriptedRunner(
        {
            "remote": (0, "  HEAD branch: (unknown)\n"),
            "rev-parse": lambda args: (0, "x\n") if args[-1] in existing else (128, ""),
        }
    )

    assert resolve_default_branch(runner) == "dev"
    tried = [c[-1] for c in runner.calls if c[0] == "rev-parse"]
    assert tried == ["origin/main", "origin/master", "origin/dev"]


def test_all_strategies_failing_raises():
    runner = ScriptedRunner({})

    with pytest.raises(DefaultBranchUnresolved) as exc:
        resolve_default_branch(runner, remote="upstream")

    assert exc.value.remote == "upstream"
    assert runner.calls[0] == ["symbolic-ref", "refs/remotes/upstream/HEAD", "--short"]
    assert len(runner.calls) == 2 + 4


def test_conventional_names_none_found():
    assert from_conventional_names(ScriptedRunner({}), "origin") is None


def test_compare_with_default_maps_left_to_behind():
    runner = ScriptedRunner({"rev-list": (0, "4\t1\n")})

    counts = compare_with_default(runner, "main")

    assert runner.calls == [["rev-list", "--left-right", "--count", "origin/main...HEAD"]]
    assert counts.behind == 4
    assert counts.ahead == 1


def test_resolve_against_local_bare_origin(repo_with_origin: Path):
    runner = SafeGitRunner(repo_with_origin)
    assert resolve_default_branch(runner) == "main"


def test_resolve_without_remote_raises(tmp_git_repo: Path):
    with pytest.raises(DefaultBranchUnresolved):
        resolve_default_branch(SafeGitRunner(tmp_git_repo))


def test_compare_with_default_on_real_repo(repo_with_origin: Path, git, commit_file):
    git(["git", "checkout", "-q", "-b", "feature"], repo_with_origin)
    commit_file(repo_with_origin, "a.txt", "a\n", "a")
    commit_file(repo_with_origin, "b.txt", "b\n", "b")

    counts = compare_with_default(SafeGitRunner(repo_with_origin), "main")
    assert (counts.ahead, counts.behind) == (2, 0)
