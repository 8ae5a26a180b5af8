from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from git_pulse.core.config import PulseConfig


def _run(cmd: list[str], cwd: Path) -> str:
    out = subprocess.check_output(
        cmd,
        cwd=str(cwd),
        stderr=subprocess.STDOUT,
        text=True,
        encoding="utf-8",
        errors="replace",
    )
    return out.strip()


def _init_repo(repo: Path) -> None:
    repo.mkdir(parents=True, exist_ok=True)
    _run(["git", "init", "-q"], repo)
    # pin the initial branch name regardless of init.defaultBranch
    _run(["git", "symbolic-ref", "HEAD", "refs/heads/main"], repo)
    _run(["git", "config", "user.email", "ci@example.com"], repo)
    _run(["git", "config", "user.name", "CI"], repo)
    _run(["git", "config", "commit.gpgsign", "false"], repo)


@pytest.fixture()
def git():
    return _run


@pytest.fixture()
def pulse_config() -> PulseConfig:
    return PulseConfig(timeout_s=30.0, log_limit=50, remote="origin")


@pytest.fixture()
def tmp_git_repo(tmp_path: Path) -> Path:
    """
    Creates a small deterministic git repo on branch `main`:
      - 1 initial commit
      - known author identity
      - a couple of files + subdir
    """
    repo = tmp_path / "repo"
    _init_repo(repo)

    (repo / "README.md").write_text("# dummy\n", encoding="utf-8")
    (repo / "src").mkdir()
    (repo / "src" / "app.py").write_text("print('hi')\n", encoding="utf-8")

    _run(["git", "add", "-A"], repo)
    _run(["git", "commit", "-q", "-m", "initial"], repo)

    return repo


@pytest.fixture()
def git_head(tmp_git_repo: Path) -> str:
    return _run(["git", "rev-parse", "HEAD"], tmp_git_repo)


@pytest.fixture()
def make_change(tmp_git_repo: Path):
    """
    Helper: make working tree dirty in a predictable way.
    """
    def _maker(relpath: str = "README.md", text: str = "changed\n") -> Path:
        p = tmp_git_repo / relpath
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        return p
    return _maker


@pytest.fixture()
def repo_with_origin(tmp_path: Path, tmp_git_repo: Path) -> Path:
    """
    tmp_git_repo pushed to a local bare repository registered as `origin`,
    with `main` tracking origin/main.
    """
    bare = tmp_path / "origin.git"
    _run(["git", "init", "-q", "--bare", str(bare)], tmp_path)
    _run(["git", "symbolic-ref", "HEAD", "refs/heads/main"], bare)
    _run(["git", "remote", "add", "origin", str(bare)], tmp_git_repo)
    _run(["git", "push", "-q", "-u", "origin", "main"], tmp_git_repo)
    return tmp_git_repo


@pytest.fixture()
def commit_file():
    def _commit(repo: Path, relpath: str, content: str, msg: str) -> None:
        p = repo / relpath
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
        _run(["git", "add", "-A"], repo)
        _run(["git", "commit", "-q", "-m", msg], repo)
    return _commit
