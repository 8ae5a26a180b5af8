from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from .models import (
    AheadBehind,
    Branch,
    Commit,
    CommitGraph,
    FileChange,
    FileStatus,
    GraphRow,
    LineStat,
    Parsed,
)

# Single-character porcelain codes. Anything else leaves the field empty.
STAGED_CODES: dict[str, FileStatus] = {
    "M": "modified",
    "A": "added",
    "D": "deleted",
    "R": "renamed",
    "C": "copied",
}
WORKING_CODES: dict[str, FileStatus] = {
    "M": "modified",
    "D": "deleted",
    "?": "untracked",
}

RENAME_ARROW = " -> "
REMOTE_PREFIX = "remotes/"
BINARY_PLACEHOLDER = "-"
GRAPH_FALLBACK_PREFIX = "  "

LOG_FIELD_SEP = "|"
LOG_FORMAT = "%H|%h|%an|%ae|%at|%D|%P|%s"
LOG_FIELD_COUNT = 8

# One `log --graph` call: glyphs, then a record marker, then unit-separated fields.
GRAPH_RECORD_MARK = "\x1e"
GRAPH_FIELD_SEP = "\x1f"
GRAPH_LOG_FORMAT = "%x1e%H%x1f%h%x1f%an%x1f%ae%x1f%at%x1f%D%x1f%P%x1f%s"

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def _lines(source: str | Iterable[str]) -> Iterable[str]:
    # only "\n" ends a line; str.splitlines() also breaks at \x1e, \x85 and \u2028
    if isinstance(source, str):
        lines = source.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        return [ln.rstrip("\r") for ln in lines]
    return (ln.rstrip("\r\n") for ln in source)


def _to_int(token: str) -> int:
    """Plain ASCII decimal integers only; anything else counts as 0."""
    if not isinstance(token, str):
        return 0
    token = token.strip()
    if not (token.isascii() and token.lstrip("-").isdigit()):
        return 0
    return int(token)


def parse_status_porcelain(source: str | Iterable[str]) -> Parsed[FileChange]:
    """
    Parses `git status --porcelain=v1` output:
      XY <path>
      R  <old> -> <new>   (rename; only the destination is kept)
    X is the staging-area code, Y the working-tree code. Lines shorter than
    4 characters cannot hold a path and are dropped.
    """
    out: list[FileChange] = []
    skipped = 0
    for line in _lines(source):
        if len(line) < 4:
            if line.strip():
                skipped += 1
            continue

        staged_code, working_code = line[0], line[1]
        path = line[3:].strip()

        if staged_code == "R":
            parts = path.split(RENAME_ARROW)
            if len(parts) == 2:
                path = parts[1]

        out.append(
            FileChange(
                path=path,
                status=WORKING_CODES.get(working_code, ""),
                staged_status=STAGED_CODES.get(staged_code, ""),
                code=staged_code + working_code,
            )
        )
    return Parsed(items=out, skipped=skipped)


def summarize_status(source: str) -> str:
    """Coarse summary of `git status --porcelain`: 'clean' or 'N changes'."""
    lines = [ln for ln in source.strip().splitlines() if ln.strip()]
    if not lines:
        return "clean"
    return f"{len(lines)} changes"


def extract_upstream_info(line: str) -> str:
    """Text between the first '[' and the first ']' of a branch line."""
    start = line.find("[")
    end = line.find("]")
    if start >= 0 and end > start:
        return line[start + 1 : end]
    return ""


def _split_branch_name(line: str) -> tuple[str, str]:
    # detached HEAD is listed as "(HEAD detached at abc1234) abc1234 msg"
    if line.startswith("("):
        close = line.find(")")
        if close > 0:
            return line[: close + 1], line[close + 1 :]
    name, _, rest = line.partition(" ")
    return name, rest


def parse_branches(source: str | Iterable[str]) -> Parsed[Branch]:
    """
    Parses `git branch -vv --all` output:
      [*] <name> <hash> [<upstream>] <message...>

    The message is the raw text after the hash column with a leading
    [upstream] segment removed. This departs from taking the first
    occurrence of the hash anywhere in the line: the hash is looked up only
    past the name column, so a name that contains the hash (detached HEAD,
    or a branch named after a commit) does not pull the message start into
    the name. Known limit: the hash column is the first token after the
    name, so a name with an embedded space outside the detached-HEAD form
    is split there. Symbolic alias lines (`origin/HEAD -> origin/main`)
    carry no hash and are counted as skipped.
    """
    out: list[Branch] = []
    skipped = 0
    for raw in _lines(source):
        if not raw.strip():
            continue

        line = raw
        is_current = line.startswith("*")
        if is_current:
            line = line[1:]
        line = line.strip()

        name, rest = _split_branch_name(line)
        parts = rest.split()
        if not name or not parts or parts[0] == "->":
            skipped += 1
            continue
        commit_hash = parts[0]

        is_remote = name.startswith(REMOTE_PREFIX)
        if is_remote:
            name = name[len(REMOTE_PREFIX) :]

        upstream = ""
        if len(parts) > 1 and parts[1].startswith("["):
            upstream = extract_upstream_info(line)

        raw_name_len = len(line) - len(rest)
        message = line[line.find(commit_hash, raw_name_len) + len(commit_hash) :].lstrip()
        if message.startswith("["):
            close = message.find("]")
            if close > 0:
                message = message[close + 1 :]

        out.append(
            Branch(
                name=name,
                hash=commit_hash,
                is_current=is_current,
                is_remote=is_remote,
                upstream=upstream,
                last_commit=message.strip(),
            )
        )
    return Parsed(items=out, skipped=skipped)


def parse_upstream_counts(upstream: str) -> AheadBehind:
    """
    Extracts ahead/behind from tracking text such as
    'origin/main: ahead 2, behind 1'. Missing clauses count as 0.
    """
    if ":" not in upstream:
        return AheadBehind()

    tokens = upstream.split(":", 1)[1].replace(",", " ").split()
    ahead = behind = 0
    for i, tok in enumerate(tokens[:-1]):
        if tok == "ahead":
            ahead = _to_int(tokens[i + 1])
        elif tok == "behind":
            behind = _to_int(tokens[i + 1])
    return AheadBehind(ahead=ahead, behind=behind)


def parse_numstat(source: str | Iterable[str]) -> dict[str, LineStat]:
    """
    Parses `git diff --numstat` lines: '<added>\\t<deleted>\\t<path>'.
    Binary files report '-' and unparsable counts become 0. A repeated
    path keeps its last entry.
    """
    stats: dict[str, LineStat] = {}
    for line in _lines(source):
        fields = line.split(None, 2)
        if len(fields) < 3:
            continue
        added_raw, deleted_raw, path = fields
        added = 0 if added_raw == BINARY_PLACEHOLDER else _to_int(added_raw)
        deleted = 0 if deleted_raw == BINARY_PLACEHOLDER else _to_int(deleted_raw)
        stats[path.strip()] = LineStat(added=max(0, added), deleted=max(0, deleted))
    return stats


def total_line_stats(stats: dict[str, LineStat]) -> LineStat:
    return LineStat(
        added=sum(s.added for s in stats.values()),
        deleted=sum(s.deleted for s in stats.values()),
    )


def parse_unix_timestamp(text: str) -> datetime:
    """Epoch seconds to an aware UTC datetime; malformed or out-of-range input yields the epoch."""
    try:
        return datetime.fromtimestamp(_to_int(text), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return _EPOCH


def _commit_from_fields(parts: list[str]) -> Commit:
    refs = [r.strip() for r in parts[5].split(",") if r.strip()]
    return Commit(
        hash=parts[0],
        short_hash=parts[1],
        author=parts[2],
        email=parts[3],
        date=parse_unix_timestamp(parts[4]),
        refs=refs,
        parents=parts[6].split(),
        message=parts[7],
    )


def parse_commit_log(source: str | Iterable[str], sep: str = LOG_FIELD_SEP) -> Parsed[Commit]:
    """
    Parses `git log --pretty=format:%H|%h|%an|%ae|%at|%D|%P|%s`.
    The subject is everything after the 7th separator. Lines with fewer
    than 8 fields are dropped and counted.
    """
    out: list[Commit] = []
    skipped = 0
    for line in _lines(source):
        if not line.strip():
            continue
        parts = line.split(sep, LOG_FIELD_COUNT - 1)
        if len(parts) < LOG_FIELD_COUNT:
            skipped += 1
            continue
        out.append(_commit_from_fields(parts))
    return Parsed(items=out, skipped=skipped)


def parse_graph_lines(source: str | Iterable[str]) -> list[str]:
    """`git log --graph --oneline` output, one verbatim string per line."""
    return list(_lines(source))


def align_graph(commits: list[Commit], graph_lines: list[str]) -> list[str]:
    """
    Graph-glyph prefix for each commit, matched to the graph line at the
    same index. Best effort: the prefix is whatever precedes the commit's
    short hash, or two spaces when the hash is not found there.
    """
    prefixes: list[str] = []
    for i, commit in enumerate(commits):
        prefix = GRAPH_FALLBACK_PREFIX
        if i < len(graph_lines) and commit.short_hash:
            idx = graph_lines[i].find(commit.short_hash)
            if idx >= 0:
                prefix = graph_lines[i][:idx]
        prefixes.append(prefix)
    return prefixes


def parse_commit_graph(source: str | Iterable[str]) -> CommitGraph:
    """
    Parses one `git log --graph --pretty=format:<GRAPH_LOG_FORMAT>` call.
    Each line becomes a GraphRow; rows without a record marker are
    connector lines ('|\\', '|/') and have no commit. A marked row with too
    few fields keeps its glyphs, loses its commit and is counted as skipped.
    """
    rows: list[GraphRow] = []
    skipped = 0
    for line in _lines(source):
        idx = line.find(GRAPH_RECORD_MARK)
        if idx < 0:
            if line.strip():
                rows.append(GraphRow(graph=line.rstrip()))
            continue
        graph = line[:idx]
        parts = line[idx + 1 :].split(GRAPH_FIELD_SEP, LOG_FIELD_COUNT - 1)
        if len(parts) < LOG_FIELD_COUNT:
            skipped += 1
            rows.append(GraphRow(graph=graph))
            continue
        rows.append(GraphRow(graph=graph, commit=_commit_from_fields(parts)))
    return CommitGraph(rows=rows, skipped=skipped)


def strip_remote_prefix(ref: str, remote: str) -> str:
    ref = ref.strip()
    prefix = f"{remote}/"
    if ref.startswith(prefix):
        return ref[len(prefix) :]
    return ref


def parse_remote_head_branch(source: str | Iterable[str]) -> str | None:
    """
    Finds '  HEAD branch: <name>' in `git remote show <remote>` output.
    Returns None when absent or when git reports '(unknown)'.
    """
    for line in _lines(source):
        if "HEAD branch:" not in line:
            continue
        parts = line.split(":")
        if len(parts) < 2:
            continue
        name = parts[1].strip()
        if name and name != "(unknown)":
            return name
    return None


def parse_branch_comparison(source: str) -> AheadBehind:
    """
    Parses `git rev-list --left-right --count <default>...HEAD`.
    The left column counts commits only on the default branch (behind),
    the right column commits only on HEAD (ahead).
    """
    fields = source.split()
    if len(fields) < 2:
        return AheadBehind()
    return AheadBehind(ahead=_to_int(fields[1]), behind=_to_int(fields[0]))
