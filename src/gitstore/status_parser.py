"""Parser for `git status --porcelain=2 --branch -z` output.

The output is a sequence of NUL terminated records. Header records start
with "# ", entry records start with a single marker character:

    1 <XY> <sub> <mH> <mI> <mW> <hH> <hI> <path>
    2 <XY> <sub> <mH> <mI> <mW> <hH> <hI> <X><score> <path>\\0<origPath>
    u <XY> <sub> <m1> <m2> <m3> <mW> <h1> <h2> <h3> <path>
    ? <path>
    ! <path>

Paths are never quoted in -z mode and may contain any byte except NUL.
See https://git-scm.com/docs/git-status#_porcelain_format_version_2
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Union
import re

from .errors import ParseError
from .models import StatusEntry


class StatusItemKind(Enum):
    BRANCH_COMMIT_HEADER = "branch.oid"
    BRANCH_HEAD_HEADER = "branch.head"
    BRANCH_UPSTREAM_HEADER = "branch.upstream"
    BRANCH_AHEAD_BEHIND_HEADER = "branch.ab"
    UNKNOWN_HEADER = "unknown"
    ENTRY = "entry"


@dataclass(frozen=True)
class BranchCommitHeader:
    # None for the `(initial)` commit of an unborn branch
    commit_hash: Optional[str]
    kind: StatusItemKind = StatusItemKind.BRANCH_COMMIT_HEADER


@dataclass(frozen=True)
class BranchHeadHeader:
    # None when HEAD is detached
    branch_name: Optional[str]
    kind: StatusItemKind = StatusItemKind.BRANCH_HEAD_HEADER


@dataclass(frozen=True)
class BranchUpstreamHeader:
    branch_name: str
    kind: StatusItemKind = StatusItemKind.BRANCH_UPSTREAM_HEADER


@dataclass(frozen=True)
class BranchAheadBehindHeader:
    ahead: int
    behind: int
    kind: StatusItemKind = StatusItemKind.BRANCH_AHEAD_BEHIND_HEADER


@dataclass(frozen=True)
class UnknownHeader:
    value: str
    kind: StatusItemKind = StatusItemKind.UNKNOWN_HEADER


@dataclass(frozen=True)
class EntryItem:
    entry: StatusEntry
    kind: StatusItemKind = StatusItemKind.ENTRY


StatusHeader = Union[
    BranchCommitHeader,
    BranchHeadHeader,
    BranchUpstreamHeader,
    BranchAheadBehindHeader,
    UnknownHeader,
]
StatusItem = Union[StatusHeader, EntryItem]


class EntryKind(str, Enum):
    CHANGED = "1"
    RENAMED_OR_COPIED = "2"
    UNMERGED = "u"
    UNTRACKED = "?"
    IGNORED = "!"


BRANCH_COMMIT_RE = re.compile(r"^branch\.oid (.*)$")
BRANCH_HEAD_RE = re.compile(r"^branch\.head (.*)$")
BRANCH_UPSTREAM_RE = re.compile(r"^branch\.upstream (.*)$")
BRANCH_AHEAD_BEHIND_RE = re.compile(r"^branch\.ab \+(\S+) -(\S+)$")

INITIAL_COMMIT = "(initial)"
DETACHED_HEAD = "(detached)"

_XY = r"([MADRCTU?!.]{2})"
_SUB = r"(N\.\.\.|S[C.][M.][U.])"

# 1 <XY> <sub> <mH> <mI> <mW> <hH> <hI> <path>
CHANGED_ENTRY_RE = re.compile(
    rf"^1 {_XY} {_SUB} (\d+) (\d+) (\d+) ([a-f0-9]+) ([a-f0-9]+) (.*)$", re.DOTALL
)

# 2 <XY> <sub> <mH> <mI> <mW> <hH> <hI> <X><score> <path>
RENAMED_OR_COPIED_ENTRY_RE = re.compile(
    rf"^2 {_XY} {_SUB} (\d+) (\d+) (\d+) ([a-f0-9]+) ([a-f0-9]+) ([RC]\d+) (.*)$",
    re.DOTALL,
)

# u <XY> <sub> <m1> <m2> <m3> <mW> <h1> <h2> <h3> <path>
UNMERGED_ENTRY_RE = re.compile(
    rf"^u ([DAU]{{2}}) {_SUB} (\d+) (\d+) (\d+) (\d+) ([a-f0-9]+) ([a-f0-9]+) ([a-f0-9]+) (.*)$",
    re.DOTALL,
)


def _parse_count(value: str) -> Optional[int]:
    # plain ASCII digits only, int() would also take signs and underscores
    if value.isascii() and value.isdigit():
        return int(value)
    return None


def parse_header(field: str) -> StatusHeader:
    """Parse the text of a header record (without the leading "# ")."""
    match = BRANCH_COMMIT_RE.match(field)
    if match:
        commit = match.group(1)
        return BranchCommitHeader(None if commit == INITIAL_COMMIT else commit)

    match = BRANCH_HEAD_RE.match(field)
    if match:
        head = match.group(1)
        return BranchHeadHeader(None if head == DETACHED_HEAD else head)

    match = BRANCH_UPSTREAM_RE.match(field)
    if match:
        return BranchUpstreamHeader(match.group(1))

    match = BRANCH_AHEAD_BEHIND_RE.match(field)
    if match:
        ahead = _parse_count(match.group(1))
        behind = _parse_count(match.group(2))
        # Only both counts failing is fatal, a single bad count becomes 0.
        if ahead is None and behind is None:
            raise ParseError(f"Failed to parse status header: {field}", field)
        return BranchAheadBehindHeader(ahead=ahead or 0, behind=behind or 0)

    return UnknownHeader(field)


def parse_changed_entry(field: str) -> StatusEntry:
    match = CHANGED_ENTRY_RE.match(field)
    if not match:
        raise ParseError(
            f"Failed to parse status line for changed entry: {field}", field
        )
    return StatusEntry(path=match.group(8), status_code=match.group(1))


def parse_renamed_or_copied_entry(field: str, old_path: Optional[str]) -> StatusEntry:
    match = RENAMED_OR_COPIED_ENTRY_RE.match(field)
    if not match:
        raise ParseError(
            f"Failed to parse status line for renamed or copied entry: {field}", field
        )
    if not old_path:
        raise ParseError(
            "Failed to parse renamed or copied entry, could not parse old path", field
        )
    return StatusEntry(path=match.group(9), status_code=match.group(1), old_path=old_path)


def parse_unmerged_entry(field: str) -> StatusEntry:
    match = UNMERGED_ENTRY_RE.match(field)
    if not match:
        raise ParseError(
            f"Failed to parse status line for unmerged entry: {field}", field
        )
    return StatusEntry(path=match.group(10), status_code=match.group(1))


def parse_untracked_entry(field: str) -> StatusEntry:
    # Untracked entries carry a single "?", report "??" like short status does
    return StatusEntry(path=field[2:], status_code="??")


def iter_porcelain_status(output: str) -> Iterator[StatusItem]:
    """Lazily parse porcelain v2 status output, see parse_porcelain_status()."""
    # Records are NUL terminated, output of a status run without -z has no
    # NUL at all and is newline terminated instead.
    separator = "\0" if "\0" in output else "\n"
    fields = output.split(separator)
    # drop the empty remnant after the final terminator
    if fields and fields[-1] == "":
        fields.pop()
    it = iter(fields)

    for field in it:
        if field.startswith("# ") and len(field) > 2:
            yield parse_header(field[2:])
            continue

        entry_kind = field[:1]

        if entry_kind == EntryKind.CHANGED:
            yield EntryItem(parse_changed_entry(field))
        elif entry_kind == EntryKind.RENAMED_OR_COPIED:
            # -z mode prints the original path as the following record
            yield EntryItem(parse_renamed_or_copied_entry(field, next(it, None)))
        elif entry_kind == EntryKind.UNMERGED:
            yield EntryItem(parse_unmerged_entry(field))
        elif entry_kind == EntryKind.UNTRACKED:
            yield EntryItem(parse_untracked_entry(field))
        # ignored paths and anything else produce no item


def parse_porcelain_status(output: str) -> List[StatusItem]:
    """Parse `git status --porcelain=2 --branch -z` output into status items.

    Args:
        output: Raw stdout of the status command.

    Returns:
        Headers and entries in the order they appear in the output.

    Raises:
        ParseError: If an entry record does not match its fixed field layout,
            a rename/copy entry has no original path, or neither ahead nor
            behind count of a `branch.ab` header can be parsed.
    """
    return list(iter_porcelain_status(output))
