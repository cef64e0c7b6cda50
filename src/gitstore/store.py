"""Per-repository stores and the registry of opened repositories."""

from typing import Dict, List, Optional
import logging

from .errors import RepositoryNotFoundError
from .git_commands import RepositoryQueries
from .history import HISTORY_BATCH_SIZE, HistoryLoader
from .status import StatusRefresher

log = logging.getLogger(__name__)


class GitStore:
    """Commits and tip of a single working copy.

    Args:
        local_path: Absolute path to the root working directory.
        queries: Repository queries shared by the history and status.
        batch_size: Number of commits per history batch.
    """

    def __init__(
        self,
        local_path: str,
        queries: RepositoryQueries,
        batch_size: int = HISTORY_BATCH_SIZE,
    ):
        self.local_path = local_path
        self.history = HistoryLoader(local_path, queries, batch_size)
        self.status = StatusRefresher(local_path, queries)

    @property
    def tip(self):
        return self.status.tip

    async def refresh(self):
        """Refresh the status, then reload the first batch of history."""
        await self.status.refresh_status()
        await self.history.load_first_batch()


class RepositoryStore:
    """Registry of opened repositories keyed by their top-level directory."""

    def __init__(
        self,
        queries: Optional[RepositoryQueries] = None,
        batch_size: int = HISTORY_BATCH_SIZE,
    ):
        self.queries = queries or RepositoryQueries()
        self.batch_size = batch_size
        self._stores: Dict[str, GitStore] = {}
        self._selected_path: Optional[str] = None

    @property
    def repositories(self) -> List[GitStore]:
        return list(self._stores.values())

    @property
    def selected(self) -> Optional[GitStore]:
        if self._selected_path is None:
            return None
        return self._stores.get(self._selected_path)

    def get(self, path: str) -> Optional[GitStore]:
        return self._stores.get(path)

    async def add_repository(self, path: str) -> GitStore:
        """Open the repository containing `path`.

        Returns:
            The store of the repository, the existing one if it was already added.

        Raises:
            RepositoryNotFoundError: If `path` isn't inside a git repository.
        """
        local_path = await self.queries.get_top_level_working_directory(path)
        if local_path is None:
            raise RepositoryNotFoundError(path)

        store = self._stores.get(local_path)
        if store is None:
            store = GitStore(local_path, self.queries, self.batch_size)
            self._stores[local_path] = store
            log.info(f"Added repository {local_path}")
        return store

    def select(self, path: Optional[str]) -> Optional[GitStore]:
        if path is not None and path not in self._stores:
            raise KeyError(f"Repository {path} has not been added")
        self._selected_path = path
        return self.selected

    def remove_repository(self, path: str) -> bool:
        """Forget a repository and discard its loaded history.

        Returns:
            True if the repository was known.
        """
        store = self._stores.pop(path, None)
        if store is None:
            return False
        if self._selected_path == path:
            self._selected_path = None
        log.info(f"Removed repository {path}")
        return True
