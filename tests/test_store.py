import pytest

from gitstore.errors import RepositoryNotFoundError
from gitstore.git_commands import RepositoryQueries
from gitstore.git_runner import GitResult
from gitstore.models import TipState
from gitstore.store import RepositoryStore

from conftest import FakeHistory, log_record, sha_for


@pytest.fixture
def fake():
    fake = FakeHistory(120)
    fake.runner.handlers["getTopLevelWorkingDirectory"] = lambda args: GitResult(0, "\n")
    fake.runner.handlers["getStatus"] = lambda args: GitResult(
        0, f"# branch.oid {sha_for(0)}\0# branch.head main\0"
    )
    return fake


async def test_add_repository_resolves_top_level(fake, tmp_path):
    repositories = RepositoryStore(RepositoryQueries(fake.runner), batch_size=50)

    store = await repositories.add_repository(str(tmp_path))

    assert store.local_path == str(tmp_path)
    assert repositories.get(str(tmp_path)) is store
    assert store.history.batch_size == 50
    assert await repositories.add_repository(str(tmp_path)) is store
    assert len(repositories.repositories) == 1


async def test_add_non_repository_fails(fake, tmp_path):
    fake.runner.handlers["getTopLevelWorkingDirectory"] = lambda args: GitResult(128, "", "fatal")
    repositories = RepositoryStore(RepositoryQueries(fake.runner))

    with pytest.raises(RepositoryNotFoundError) as excinfo:
        await repositories.add_repository(str(tmp_path))

    assert excinfo.value.path == str(tmp_path)


async def test_refresh_loads_status_and_first_batch(fake, tmp_path):
    repositories = RepositoryStore(RepositoryQueries(fake.runner))
    store = await repositories.add_repository(str(tmp_path))

    await store.refresh()

    assert store.tip.kind is TipState.VALID
    assert store.tip.branch.name == "main"
    assert store.history.loaded_count == 100
    assert store.history.total_count == 120


async def test_remove_repository_discards_history(fake, tmp_path):
    repositories = RepositoryStore(RepositoryQueries(fake.runner))
    store = await repositories.add_repository(str(tmp_path))
    repositories.select(store.local_path)
    await store.history.load_first_batch()

    assert repositories.remove_repository(store.local_path)

    assert repositories.get(store.local_path) is None
    assert repositories.selected is None
    assert not repositories.remove_repository(store.local_path)
    fresh = await repositories.add_repository(str(tmp_path))
    assert fresh is not store
    assert fresh.history.loaded_count == 0


def test_select_unknown_repository_fails():
    repositories = RepositoryStore(RepositoryQueries())

    with pytest.raises(KeyError):
        repositories.select("/nowhere")
    assert repositories.select(None) is None
