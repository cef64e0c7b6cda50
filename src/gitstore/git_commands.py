"""Repository queries: fixed git invocations routed through the parsers.

Exit code 128 is how git reports "no commits yet" (unborn HEAD) or "not a
repository"; the queries below accept it where it maps to a meaningful
empty result.
"""

from typing import List, Optional, Sequence
from pathlib import Path
import logging
import os

from .git_runner import GitRunner
from .log_parser import LOG_PRETTY_FORMAT, parse_log
from .models import BranchAheadBehind, Commit, StatusResult
from .status_parser import (
    BranchAheadBehindHeader,
    BranchCommitHeader,
    BranchHeadHeader,
    BranchUpstreamHeader,
    EntryItem,
    iter_porcelain_status,
)

log = logging.getLogger(__name__)

UNBORN_OR_NOT_A_REPO_EXIT_CODE = 128

STATUS_ARGS = ["status", "--untracked-files=all", "--branch", "--porcelain=2", "-z"]


class RepositoryQueries:
    """Async read-only queries against a git working copy.

    Args:
        runner: Object with an async `run(args, cwd, name, success_exit_codes)`
            method, defaults to a GitRunner using the git found by GitPython.
    """

    def __init__(self, runner: Optional[GitRunner] = None):
        self.runner = runner or GitRunner()

    async def get_status(self, repository_path: str) -> StatusResult:
        """Get the branch state and changed paths of the working tree."""
        result = await self.runner.run(STATUS_ARGS, repository_path, "getStatus")

        branch_name = None
        upstream_branch_name = None
        branch_commit_id = None
        branch_ahead_behind = None
        entries = []

        for item in iter_porcelain_status(result.stdout):
            if isinstance(item, BranchCommitHeader):
                branch_commit_id = item.commit_hash
            elif isinstance(item, BranchHeadHeader):
                branch_name = item.branch_name
            elif isinstance(item, BranchUpstreamHeader):
                upstream_branch_name = item.branch_name
            elif isinstance(item, BranchAheadBehindHeader):
                branch_ahead_behind = BranchAheadBehind(item.ahead, item.behind)
            elif isinstance(item, EntryItem):
                entries.append(item.entry)
            # unknown headers are ignored

        return StatusResult(
            branch_name=branch_name,
            upstream_branch_name=upstream_branch_name,
            branch_commit_id=branch_commit_id,
            branch_ahead_behind=branch_ahead_behind,
            entries=entries,
        )

    async def get_commits(
        self,
        repository_path: str,
        revision_range: str,
        limit: int,
        skip: Optional[int] = None,
        additional_args: Sequence[str] = (),
    ) -> List[Commit]:
        """Get up to `limit` commits of `revision_range`, newest first.

        Args:
            repository_path: Working directory of the repository.
            revision_range: Revision or range passed to `git log`, e.g. "HEAD".
            limit: Maximum number of commits to return.
            skip: Number of commits to skip before returning any.
            additional_args: Extra `git log` arguments.

        Returns:
            Commits in the order git lists them, empty for an unborn HEAD.
        """
        args = [
            "log",
            revision_range,
            "--date=raw",
            f"--max-count={limit}",
        ]
        if skip:
            args.append(f"--skip={skip}")
        args += [f"--pretty={LOG_PRETTY_FORMAT}", "-z", "--no-color", *additional_args]

        result = await self.runner.run(
            args,
            repository_path,
            "getCommits",
            success_exit_codes={0, UNBORN_OR_NOT_A_REPO_EXIT_CODE},
        )

        # an unborn HEAD has an empty history
        if result.exit_code == UNBORN_OR_NOT_A_REPO_EXIT_CODE:
            log.debug(f"No commits for '{revision_range}' in {repository_path}")
            return []

        return parse_log(result.stdout)

    async def get_commit(self, repository_path: str, ref: str) -> Optional[Commit]:
        """Get the commit `ref` points to, or None if there's no such commit."""
        commits = await self.get_commits(repository_path, ref, 1)
        return commits[0] if commits else None

    async def get_commit_count(self, repository_path: str) -> int:
        """Get the number of commits reachable from HEAD."""
        result = await self.runner.run(
            ["rev-list", "--count", "HEAD"],
            repository_path,
            "getCommitCount",
            success_exit_codes={0, UNBORN_OR_NOT_A_REPO_EXIT_CODE},
        )
        # the branch is unborn
        if result.exit_code == UNBORN_OR_NOT_A_REPO_EXIT_CODE:
            return 0
        return int(result.stdout.strip())

    async def get_top_level_working_directory(self, dir_path: str) -> Optional[str]:
        """Get the root working directory of the repository containing `dir_path`.

        `--show-cdup` is used instead of `--show-toplevel` because the latter
        dereferences symlinks and the result should stay as close as possible
        to the path the caller gave.

        Returns:
            An absolute path, or None if `dir_path` isn't inside a repository.
        """
        if not Path(dir_path).is_dir():
            return None

        result = await self.runner.run(
            ["rev-parse", "--show-cdup"],
            dir_path,
            "getTopLevelWorkingDirectory",
            success_exit_codes={0, UNBORN_OR_NOT_A_REPO_EXIT_CODE},
        )
        if result.exit_code == UNBORN_OR_NOT_A_REPO_EXIT_CODE:
            return None

        relative_path = result.stdout.strip()
        # already at the root
        if not relative_path:
            return os.path.abspath(dir_path)

        return os.path.normpath(os.path.join(os.path.abspath(dir_path), relative_path))

    async def is_git_repository(self, dir_path: str) -> bool:
        return await self.get_top_level_working_directory(dir_path) is not None
