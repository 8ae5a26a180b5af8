from __future__ import annotations

from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import datetime
from typing import Any, Generic, Literal, TypeVar

T = TypeVar("T")


FileStatus = Literal[
    "modified",
    "added",
    "deleted",
    "renamed",
    "copied",
    "untracked",
    "updated",
    "",
]

_STATUS_LETTERS: dict[str, str] = {
    "modified": "M",
    "added": "A",
    "deleted": "D",
    "renamed": "R",
    "copied": "C",
    "untracked": "?",
    "updated": "U",
}


@dataclass(frozen=True)
class GitRunResult:
    argv: list[str]
    root: str
    stdout: str
    stderr: str
    exit_code: int
    duration_ms: int
    timed_out: bool
    output_truncated: bool

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    @property
    def combined_output(self) -> str:
        return self.stdout + self.stderr

    def to_dict(self) -> dict[str, Any]:
        return {
            "argv": self.argv,
            "root": self.root,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "exit_code": self.exit_code,
            "duration_ms": self.duration_ms,
            "timed_out": self.timed_out,
            "output_truncated": self.output_truncated,
        }


@dataclass(frozen=True)
class Parsed(Generic[T]):
    """Records parsed from one command output plus the number of dropped lines."""

    items: list[T]
    skipped: int = 0

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class FileChange:
    path: str
    status: FileStatus = ""
    staged_status: FileStatus = ""
    code: str = ""

    @property
    def is_staged(self) -> bool:
        return self.staged_status != ""

    @property
    def is_untracked(self) -> bool:
        return self.status == "untracked"

    @property
    def display_status(self) -> str:
        if self.is_untracked:
            return "??"
        staged = _STATUS_LETTERS.get(self.staged_status, " ")
        working = _STATUS_LETTERS.get(self.status, " ")
        return staged + working


@dataclass(frozen=True)
class Branch:
    name: str
    hash: str
    is_current: bool = False
    is_remote: bool = False
    upstream: str = ""
    last_commit: str = ""


@dataclass(frozen=True)
class Commit:
    hash: str
    short_hash: str
    author: str
    email: str
    date: datetime
    refs: list[str] = field(default_factory=list)
    parents: list[str] = field(default_factory=list)
    message: str = ""

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1


@dataclass(frozen=True)
class GraphRow:
    graph: str
    commit: Commit | None = None


@dataclass(frozen=True)
class CommitGraph:
    rows: list[GraphRow]
    skipped: int = 0

    @property
    def commits(self) -> list[Commit]:
        return [r.commit for r in self.rows if r.commit is not None]


@dataclass(frozen=True)
class LineStat:
    added: int = 0
    deleted: int = 0


@dataclass(frozen=True)
class AheadBehind:
    ahead: int = 0
    behind: int = 0


@dataclass
class DashboardSnapshot:
    root: str
    branch: str = "unknown"
    files: list[FileChange] = field(default_factory=list)
    upstream: AheadBehind = field(default_factory=AheadBehind)
    last_commit_time: datetime | None = None
    line_stats: dict[str, LineStat] = field(default_factory=dict)
    lines_added: int = 0
    lines_deleted: int = 0
    default_branch: str | None = None
    is_default_branch: bool = False
    default_comparison: AheadBehind = field(default_factory=AheadBehind)
    graph: CommitGraph = field(default_factory=lambda: CommitGraph(rows=[]))
    errors: dict[str, str] = field(default_factory=dict)


def to_jsonable(obj: Any) -> Any:
    """
    Convert models (and containers of them) into JSON-ready values.
    Derived properties of FileChange are included since clients render them.
    """
    if isinstance(obj, FileChange):
        out = asdict(obj)
        out.update(
            is_staged=obj.is_staged,
            is_untracked=obj.is_untracked,
            display_status=obj.display_status,
        )
        return out
    if isinstance(obj, CommitGraph):
        return {"rows": [to_jsonable(r) for r in obj.rows], "skipped": obj.skipped}
    if isinstance(obj, datetime):
        return obj.isoformat()
    if is_dataclass(obj) and not isinstance(obj, type):
        return {k: to_jsonable(getattr(obj, k)) for k in obj.__dataclass_fields__}
    if isinstance(obj, dict):
        return {k: to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in obj]
    return obj
