from typing import Any, Coroutine, Optional, TypeVar
import asyncio
import logging

import click
import yaml

from .config import GitstoreConfig, load_config
from .errors import GitstoreError
from .git_commands import RepositoryQueries
from .git_runner import GitRunner
from .store import GitStore, RepositoryStore

log = logging.getLogger(__name__)

T = TypeVar("T")


class AppContext:
    def __init__(self, queries: Optional[RepositoryQueries] = None):
        self.repo_path: str = "."
        self.config: GitstoreConfig = GitstoreConfig()
        self._queries = queries
        self._repositories: Optional[RepositoryStore] = None

    def load_config(self, config_path: Optional[str] = None):
        try:
            self.config = load_config(config_path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise click.ClickException(str(e))

    @property
    def queries(self) -> RepositoryQueries:
        if self._queries is None:
            self._queries = RepositoryQueries(GitRunner(self.config.git.executable))
        return self._queries

    @property
    def repositories(self) -> RepositoryStore:
        if self._repositories is None:
            self._repositories = RepositoryStore(
                self.queries, batch_size=self.config.history.batch_size
            )
        return self._repositories

    async def open_store(self) -> GitStore:
        store = await self.repositories.add_repository(self.repo_path)
        self.repositories.select(store.local_path)
        return store

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run a coroutine to completion, reporting gitstore errors as CLI errors."""
        try:
            return asyncio.run(coro)
        except GitstoreError as e:
            log.debug("Command failed", exc_info=True)
            raise click.ClickException(str(e))
