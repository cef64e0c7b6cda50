"""Tracking of the checked out branch and tip of a working copy."""

from typing import List, Optional
import logging

from .errors import ReferenceResolutionError
from .git_commands import RepositoryQueries
from .models import (
    Branch,
    BranchKind,
    DetachedTip,
    StatusResult,
    Tip,
    UnbornTip,
    UnknownTip,
    ValidTip,
)

log = logging.getLogger(__name__)


class StatusRefresher:
    """Re-derives the repository tip from `git status`.

    Args:
        local_path: Root working directory of the repository.
        queries: Repository queries used for status and commit lookups.

    Attributes:
        tip: Current tip, replaced wholesale on every successful refresh.
        branches: Branches seen so far; the checked out local branch is
            updated in place when its tip moves.
        status: Result of the last successful status query.
        is_status_loaded: False until a refresh succeeds, and again after
            a refresh fails.
    """

    def __init__(self, local_path: str, queries: RepositoryQueries):
        self.local_path = local_path
        self.queries = queries
        self.tip: Tip = UnknownTip()
        self.branches: List[Branch] = []
        self.status: Optional[StatusResult] = None
        self.is_status_loaded = False
        self._is_status_loading = False

    @property
    def is_refreshing(self) -> bool:
        return self._is_status_loading

    def find_branch(self, name: str, kind: BranchKind = BranchKind.LOCAL) -> Optional[Branch]:
        return next(
            (b for b in self.branches if b.name == name and b.kind == kind), None
        )

    async def refresh_status(self):
        """Query the working tree status and update the tip.

        Does nothing while a refresh is already running. If the refresh fails
        the error is re-raised, `is_status_loaded` is reset and the last known
        tip is kept.

        Raises:
            ReferenceResolutionError: If the commit HEAD points to can't be loaded.
            ToolInvocationError: If git fails.
            ParseError: If the git output is malformed.
        """
        if self._is_status_loading:
            return
        self._is_status_loading = True

        try:
            status = await self.queries.get_status(self.local_path)
            self.tip = await self._tip_from_status(status)
            self.status = status
            self.is_status_loaded = True
        except Exception:
            self.is_status_loaded = False
            raise
        finally:
            self._is_status_loading = False

        log.debug(f"Tip of {self.local_path} is {self.tip.kind.value}")

    async def _tip_from_status(self, status: StatusResult) -> Tip:
        branch_name = status.branch_name
        commit_id = status.branch_commit_id

        if branch_name and commit_id:
            commit = await self.queries.get_commit(self.local_path, commit_id)
            if commit is None:
                raise ReferenceResolutionError(commit_id)

            branch = self.find_branch(branch_name)
            if branch:
                branch.upstream = status.upstream_branch_name
                branch.tip = commit
            else:
                branch = Branch(
                    name=branch_name,
                    upstream=status.upstream_branch_name,
                    tip=commit,
                    kind=BranchKind.LOCAL,
                )
                self.branches.append(branch)
            return ValidTip(branch)

        if commit_id:
            return DetachedTip(commit_id)

        if branch_name:
            # no commits on the branch yet
            return UnbornTip(branch_name)

        return UnknownTip()
