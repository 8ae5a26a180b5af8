"""Property-based tests for the git output parsers.

- Status flags are pure functions of the two porcelain code characters
- Rename lines always resolve to the destination path
- At most one branch per listing is current, and only a '*' line makes it so
- Ahead/behind extraction ignores whitespace and is stable across calls
- Binary numstat placeholders count as zero
- Short log lines are dropped and counted, never fatal
"""

from hypothesis import given, strategies as st

from git_pulse.core.parsers import (
    STAGED_CODES,
    WORKING_CODES,
    parse_branches,
    parse_commit_log,
    parse_numstat,
    parse_status_porcelain,
    parse_upstream_counts,
)

# =============================================================================
# Strategies
# =============================================================================

_NAME_ALPHABET = "abcdefghijklmnopqrstuvwxyz0123456789-_"

name_part = st.text(alphabet=_NAME_ALPHABET, min_size=1, max_size=12)
rel_path = st.lists(name_part, min_size=1, max_size=3).map(lambda parts: "/".join(parts) + ".txt")
code_char = st.sampled_from(list("MADRCU? T!"))
short_hash = st.text(alphabet="0123456789abcdef", min_size=7, max_size=7)
count = st.integers(min_value=0, max_value=10_000)
spaces = st.text(alphabet=" ", min_size=1, max_size=4)


# =============================================================================
# Status
# =============================================================================


@given(x=code_char, y=code_char, path=rel_path)
def test_status_flags_follow_code_table(x, y, path):
    (f,) = parse_status_porcelain(f"{x}{y} {path}").items

    assert f.staged_status == STAGED_CODES.get(x, "")
    assert f.status == WORKING_CODES.get(y, "")
    assert f.is_staged == (x in STAGED_CODES)
    assert f.is_untracked == (y == "?")
    assert f.path == path


@given(old=rel_path, new=rel_path)
def test_rename_always_yields_destination(old, new):
    (f,) = parse_status_porcelain(f"R  {old} -> {new}").items
    assert f.path == new


# =============================================================================
# Branches
# =============================================================================


@given(
    names=st.lists(name_part, min_size=1, max_size=6, unique=True),
    current=st.integers(min_value=0, max_value=5),
    hashes=st.lists(short_hash, min_size=6, max_size=6),
)
def test_only_star_line_is_current(names, current, hashes):
    lines = []
    for i, name in enumerate(names):
        marker = "*" if i == current else " "
        lines.append(f"{marker} {name} {hashes[i]} message {i}")

    out = parse_branches("\n".join(lines))

    assert len(out) == len(names)
    flagged = [b.name for b in out if b.is_current]
    if current < len(names):
        assert flagged == [names[current]]
    else:
        assert flagged == []


# =============================================================================
# Ahead / behind
# =============================================================================


@given(ahead=count, behind=count, s1=spaces, s2=spaces, s3=spaces)
def test_upstream_counts_ignore_whitespace(ahead, behind, s1, s2, s3):
    text = f"origin/main:{s1}ahead{s2}{ahead},{s3}behind {behind}"
    first = parse_upstream_counts(text)
    second = parse_upstream_counts(text)

    assert first == second
    assert (first.ahead, first.behind) == (ahead, behind)


# =============================================================================
# Numstat
# =============================================================================


@given(added=count, deleted=count, path=rel_path, binary_side=st.sampled_from(["added", "deleted", "both"]))
def test_binary_placeholder_counts_as_zero(added, deleted, path, binary_side):
    a = "-" if binary_side in {"added", "both"} else str(added)
    d = "-" if binary_side in {"deleted", "both"} else str(deleted)

    stat = parse_numstat(f"{a}\t{d}\t{path}")[path]

    assert stat.added == (0 if a == "-" else added)
    assert stat.deleted == (0 if d == "-" else deleted)


# =============================================================================
# Commit log
# =============================================================================


@given(
    total=st.integers(min_value=1, max_value=20),
    bad_index=st.integers(min_value=0, max_value=19),
    bad_fields=st.integers(min_value=1, max_value=7),
)
def test_one_malformed_log_line_drops_exactly_one_commit(total, bad_index, bad_fields):
    bad_index %= total
    lines = []
    for i in range(total):
        if i == bad_index:
            lines.append("|".join(["x"] * bad_fields))
        else:
            lines.append(f"{i:040d}|{i:07d}|A|a@x|1700000000||p{i}|subject {i}")

    out = parse_commit_log("\n".join(lines))

    assert len(out) == total - 1
    assert out.skipped == 1


@given(subject=st.text(alphabet=st.characters(exclude_characters="\n\r"), max_size=40))
def test_subject_without_newline_is_kept_verbatim(subject):
    line = f"{'a' * 40}|aaaaaaa|A|a@x|1700000000||p|{subject}"

    out = parse_commit_log(line + "\n" + line)

    assert out.skipped == 0
    assert [c.message for c in out] == [subject, subject]
