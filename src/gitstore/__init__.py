"""Structured, incrementally loaded views of a git working copy.

The package turns git's plumbing output (porcelain v2 status and a custom
log format) into typed records and keeps a paginated, single-flight view
of a repository's history and tip.

Example usage:
    from gitstore.git_commands import RepositoryQueries
    from gitstore.store import GitStore

    store = GitStore("/path/to/repo", RepositoryQueries())
    await store.history.load_first_batch()
    await store.history.load_next_batch(min_history_size=250)
    await store.status.refresh_status()
"""
