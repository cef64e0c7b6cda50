"""Domain records produced from git output.

Commits, identities and status results are immutable snapshots. The only
mutable record is Branch, which the status refresher updates in place when
the checked out branch moves to a new tip.

The repository tip is a closed set of four cases:

    UnknownTip    no status has been loaded yet
    UnbornTip     HEAD points at a branch without commits
    DetachedTip   HEAD points directly at a commit
    ValidTip      HEAD points at a local branch with a tip commit

Each case carries a fixed `kind` so callers can dispatch on TipState
without isinstance chains.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union


@dataclass(frozen=True)
class CommitIdentity:
    """Author or committer of a commit.

    Attributes:
        name: Identity name.
        email: Identity email.
        date: UTC instant with second resolution.
        tz_offset: Signed offset from UTC in minutes, e.g. 120 for +0200.
    """

    name: str
    email: str
    date: datetime
    tz_offset: int


@dataclass(frozen=True)
class Commit:
    """A commit as reported by `git log`.

    Attributes:
        sha: Full 40 character commit SHA.
        summary: First line of the commit message.
        body: Commit message without the first line.
        author: Parsed author identity.
        parent_shas: SHAs of the parents, two or more for a merge.
    """

    sha: str
    summary: str
    body: str
    author: CommitIdentity
    parent_shas: List[str] = field(default_factory=list)

    @property
    def short_sha(self) -> str:
        return self.sha[:11]

    @property
    def is_merge(self) -> bool:
        return len(self.parent_shas) > 1

    def to_dict(self) -> dict:
        return {
            "sha": self.sha,
            "summary": self.summary,
            "body": self.body,
            "author": {
                "name": self.author.name,
                "email": self.author.email,
                "date": self.author.date.isoformat(),
                "tz_offset": self.author.tz_offset,
            },
            "parents": list(self.parent_shas),
        }


@dataclass(frozen=True)
class StatusEntry:
    """One changed or untracked path.

    Attributes:
        path: Path relative to the repository root.
        status_code: Two character XY code, `??` for untracked paths.
        old_path: Original path of a renamed or copied entry.
    """

    path: str
    status_code: str
    old_path: Optional[str] = None


@dataclass(frozen=True)
class BranchAheadBehind:
    ahead: int
    behind: int


@dataclass(frozen=True)
class StatusResult:
    """Branch state and entries from a single `git status` run.

    Attributes:
        branch_name: Checked out branch, None when HEAD is detached.
        upstream_branch_name: Upstream of the branch, e.g. `origin/master`.
        branch_commit_id: Commit SHA of HEAD, None for an unborn branch.
        branch_ahead_behind: Commits ahead of and behind the upstream.
        entries: Changed, unmerged and untracked paths in output order.
    """

    branch_name: Optional[str] = None
    upstream_branch_name: Optional[str] = None
    branch_commit_id: Optional[str] = None
    branch_ahead_behind: Optional[BranchAheadBehind] = None
    entries: List[StatusEntry] = field(default_factory=list)


class BranchKind(Enum):
    LOCAL = "local"
    REMOTE = "remote"


@dataclass
class Branch:
    """A branch and the commit it currently points to.

    Attributes:
        name: Short name of the branch, e.g. `master`.
        upstream: Remote-prefixed upstream name, e.g. `origin/master`.
        tip: Most recent commit on the branch.
        kind: Local or remote branch.
    """

    name: str
    upstream: Optional[str]
    tip: Commit
    kind: BranchKind = BranchKind.LOCAL


class TipState(Enum):
    UNKNOWN = "unknown"
    UNBORN = "unborn"
    DETACHED = "detached"
    VALID = "valid"


@dataclass(frozen=True)
class UnknownTip:
    kind: TipState = field(default=TipState.UNKNOWN, init=False)


@dataclass(frozen=True)
class UnbornTip:
    # Symbolic ref HEAD points to, usually `master` unless an orphan branch
    # was created.
    ref: str
    kind: TipState = field(default=TipState.UNBORN, init=False)


@dataclass(frozen=True)
class DetachedTip:
    commit_id: str
    kind: TipState = field(default=TipState.DETACHED, init=False)


@dataclass(frozen=True)
class ValidTip:
    branch: Branch
    kind: TipState = field(default=TipState.VALID, init=False)


Tip = Union[UnknownTip, UnbornTip, DetachedTip, ValidTip]


def is_tip_branch_valid(tip: Optional[Tip]) -> bool:
    return tip is not None and tip.kind is TipState.VALID
