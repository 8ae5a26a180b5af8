from __future__ import annotations

from pathlib import Path

from .errors import InvalidRootError, NotAGitRepositoryError


def resolve_root(root: str | Path) -> Path:
    """Resolve and validate the working directory every git command runs in."""
    p = Path(root).expanduser().resolve()

    if not p.exists():
        raise InvalidRootError(f"Root does not exist: {p}")
    if not p.is_dir():
        raise InvalidRootError(f"Root is not a directory: {p}")

    return p


def is_git_repo(root: str | Path) -> bool:
    # `.git` is a directory in normal checkouts and a gitdir file in worktrees
    return (Path(root) / ".git").exists()


def require_git_repo(root: str | Path) -> Path:
    p = resolve_root(root)
    if not is_git_repo(p):
        raise NotAGitRepositoryError(f"Not a git repository: {p}")
    return p


def normalize_relpath(path: str) -> str:
    """Normalize a user-provided relative path to a safe, consistent form."""
    s = (path or "").strip().replace("\\", "/")
    while s.startswith("./"):
        s = s[2:]
    return s


def ensure_within_root(root: Path, target: Path) -> Path:
    """
    Ensure `target` is inside `root` (prevents path traversal).
    Returns resolved target if valid.
    """
    root = root.resolve()
    target = target.expanduser().resolve()

    try:
        target.relative_to(root)
    except ValueError as e:
        raise InvalidRootError(f"Path escapes root. root={root} target={target}") from e

    return target


def safe_repo_path(root: Path, path: str) -> str:
    """
    Normalize a path argument for git and check it stays inside `root`.
    Returns the normalized relative form git should receive.
    """
    rel = normalize_relpath(path)
    if not rel:
        raise ValueError("path is required")
    ensure_within_root(root, root / rel)
    return rel
