"""Progressive loading of a repository's history.

The history of HEAD is loaded newest first in batches. HistoryLoader is a
cooperative single-flight state machine: at most one fetch runs at a time,
and requests that arrive while a fetch is in flight are folded into a
watermark (the largest "load at least N commits" request outstanding) that
the in-flight load re-checks when it completes.

Example usage:
    loader = HistoryLoader(repo_path, RepositoryQueries())
    await loader.load_first_batch()
    # the view scrolled to row 250
    if not loader.is_loaded(250):
        await loader.load_next_batch(min_history_size=250)
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional
import asyncio
import logging
import math

from .git_commands import RepositoryQueries
from .models import Commit

log = logging.getLogger(__name__)

HISTORY_BATCH_SIZE = 100


class LoaderState(Enum):
    IDLE = "idle"
    LOADING_FIRST_BATCH = "loading_first_batch"
    LOADING_NEXT_BATCH = "loading_next_batch"


class HistoryState:
    """Loaded commits of one working copy.

    `ordered_commits` is always a gap-free prefix of the history of HEAD and
    holds exactly the commits in `commits_by_id`.

    Attributes:
        commits_by_id: Maps commit SHA to commit.
        ordered_commits: Loaded commits, the most recent first.
        total_count: Number of commits reachable from HEAD, None until counted.
    """

    def __init__(self):
        self.commits_by_id: Dict[str, Commit] = {}
        self.ordered_commits: List[Commit] = []
        self.total_count: Optional[int] = None

    def __len__(self) -> int:
        return len(self.ordered_commits)

    @property
    def is_fully_loaded(self) -> bool:
        return self.total_count is not None and len(self) >= self.total_count

    def replace(self, commits: Iterable[Commit], total_count: int):
        self.commits_by_id = {}
        self.ordered_commits = []
        self.total_count = total_count
        self.merge(commits)

    def merge(self, commits: Iterable[Commit]) -> int:
        """Append commits that aren't loaded yet.

        Returns:
            Number of commits added.
        """
        added = 0
        for commit in commits:
            if commit.sha in self.commits_by_id:
                continue
            self.commits_by_id[commit.sha] = commit
            self.ordered_commits.append(commit)
            added += 1

        if self.total_count is not None and len(self) > self.total_count:
            # HEAD moved between counting and listing
            log.warning(
                f"Loaded {len(self)} commits but only {self.total_count} were counted"
            )
            self.total_count = len(self)

        return added


class HistoryLoader:
    """Loads the history of HEAD of a working copy in batches.

    Args:
        local_path: Root working directory of the repository.
        queries: Repository queries used to count and list commits.
        batch_size: Number of commits per batch.
    """

    def __init__(
        self,
        local_path: str,
        queries: RepositoryQueries,
        batch_size: int = HISTORY_BATCH_SIZE,
    ):
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.local_path = local_path
        self.queries = queries
        self.batch_size = batch_size
        self.history = HistoryState()

        self._is_first_batch_loading = False
        self._is_next_batch_loading = False
        self._min_requested_history_size = 0
        # bumped whenever the first batch replaces the history
        self._generation = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def state(self) -> LoaderState:
        if self._is_first_batch_loading:
            return LoaderState.LOADING_FIRST_BATCH
        if self._is_next_batch_loading:
            return LoaderState.LOADING_NEXT_BATCH
        return LoaderState.IDLE

    @property
    def is_busy(self) -> bool:
        return self._is_first_batch_loading or self._is_next_batch_loading

    @property
    def commits(self) -> List[Commit]:
        return self.history.ordered_commits

    @property
    def total_count(self) -> int:
        return self.history.total_count or 0

    @property
    def loaded_count(self) -> int:
        return len(self.history)

    @property
    def min_requested_history_size(self) -> int:
        return self._min_requested_history_size

    def get_commit(self, sha: str) -> Optional[Commit]:
        return self.history.commits_by_id.get(sha)

    def is_loaded(self, min_history_size: int) -> bool:
        """Check whether the first `min_history_size` commits are available."""
        return len(self.history) >= min_history_size or self.history.is_fully_loaded

    async def wait_until_idle(self):
        """Wait until no batch is loading."""
        await self._idle.wait()

    def _update_idle(self):
        if self.is_busy:
            self._idle.clear()
        else:
            self._idle.set()

    def _batch_aligned(self, count: int) -> int:
        return max(1, math.ceil(count / self.batch_size)) * self.batch_size

    async def load_first_batch(self):
        """Count the history of HEAD and load its most recent batch.

        Replaces any previously loaded history. Does nothing if a first batch
        is already loading. When a larger history was requested before or
        during the load, loading continues with the next batches before this
        call returns, unless a next batch is already in flight, in which case
        that load serves the request.
        """
        if self._is_first_batch_loading:
            return

        self._is_first_batch_loading = True
        self._idle.clear()
        try:
            try:
                total_count = await self.queries.get_commit_count(self.local_path)
                # newest first
                commits = await self.queries.get_commits(
                    self.local_path, "HEAD", self.batch_size
                )
            except Exception:
                self._min_requested_history_size = 0
                raise
            finally:
                self._is_first_batch_loading = False

            self._generation += 1
            self.history.replace(commits, total_count)
            log.debug(
                f"Loaded first {len(self.history)} of {total_count} commits in {self.local_path}"
            )

            if self._is_next_batch_loading:
                # the in-flight next batch sees the new generation and serves the watermark
                pass
            elif len(self.history) < self._min_requested_history_size:
                await self._load_next_batches()
            else:
                self._min_requested_history_size = 0
        finally:
            self._update_idle()

    async def load_next_batch(self, min_history_size: Optional[int] = None):
        """Load the next batch of commits.

        Args:
            min_history_size: If given, the load grows the history to at least
                this many commits (rounded up to whole batches) in one fetch
                instead of a single batch.

        A call made while another load is in flight doesn't start a second
        fetch, its `min_history_size` is picked up by the in-flight load.
        """
        if min_history_size:
            self._min_requested_history_size = max(
                self._min_requested_history_size, min_history_size
            )

        if self.is_busy:
            return

        if self.history.is_fully_loaded or (
            min_history_size and len(self.history) >= self._min_requested_history_size
        ):
            # nothing to do, everything requested has already been loaded
            self._min_requested_history_size = 0
            return

        self._idle.clear()
        try:
            await self._load_next_batches()
        finally:
            self._update_idle()

    async def _load_next_batches(self):
        self._is_next_batch_loading = True
        generation = self._generation
        try:
            if self.history.total_count is None:
                self.history.total_count = await self.queries.get_commit_count(
                    self.local_path
                )

            while True:
                loaded = len(self.history)
                if loaded >= self.history.total_count:
                    break

                target = self._min_requested_history_size or loaded + self.batch_size
                if loaded >= target:
                    break
                batch_size = self._batch_aligned(target - loaded)

                last_commit_id = self.history.ordered_commits[-1].sha if loaded else None
                log.debug(
                    f"Loading up to {batch_size} commits after {last_commit_id} at index {loaded - 1}"
                )
                commits = await self.queries.get_commits(
                    self.local_path, "HEAD", batch_size, skip=loaded
                )

                if generation != self._generation:
                    log.warning(
                        f"History of {self.local_path} was reloaded while a batch was "
                        f"loading, discarding {len(commits)} commits"
                    )
                    generation = self._generation
                    if self._min_requested_history_size <= len(self.history):
                        break
                    continue

                self.history.merge(commits)
                log.debug(f"Loaded commits [{loaded},{len(self.history) - 1}]")

                if len(commits) < batch_size and len(self.history) < self.history.total_count:
                    log.warning(
                        f"History of {self.local_path} ended after {len(self.history)} "
                        f"commits, {self.history.total_count} were counted"
                    )
                    self.history.total_count = len(self.history)
                    break

                # keep going only if the watermark grew past what was just loaded
                if self._min_requested_history_size <= len(self.history):
                    break
        finally:
            self._is_next_batch_loading = False
            if not self._is_first_batch_loading:
                self._min_requested_history_size = 0
