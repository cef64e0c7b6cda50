import asyncio

import pytest

from gitstore.errors import ReferenceResolutionError, ToolInvocationError
from gitstore.git_commands import RepositoryQueries
from gitstore.git_runner import GitResult
from gitstore.models import BranchKind, TipState, UnknownTip, is_tip_branch_valid
from gitstore.status import StatusRefresher

from conftest import FakeRunner, log_record

SHA = "1" * 40
OTHER_SHA = "2" * 40


def make_refresher(status_output: str, commits=None):
    runner = FakeRunner()
    state = {"status": status_output, "commits": commits or {}}
    runner.handlers["getStatus"] = lambda args: GitResult(0, state["status"])

    def get_commits(args):
        ref = args[1]
        record = state["commits"].get(ref)
        return GitResult(0, record or "")

    runner.handlers["getCommits"] = get_commits
    return runner, state, StatusRefresher("/repo", RepositoryQueries(runner))


def branch_status(commit: str, branch: str = "master", upstream: str = "origin/master") -> str:
    return (
        f"# branch.oid {commit}\0"
        f"# branch.head {branch}\0"
        f"# branch.upstream {upstream}\0"
        "# branch.ab +2 -1\0"
    )


async def test_branch_with_commit_is_valid_tip():
    runner, state, refresher = make_refresher(
        branch_status(SHA), {SHA: log_record(SHA, summary="Tip commit")}
    )

    await refresher.refresh_status()

    assert is_tip_branch_valid(refresher.tip)
    branch = refresher.tip.branch
    assert branch.name == "master"
    assert branch.upstream == "origin/master"
    assert branch.kind is BranchKind.LOCAL
    assert branch.tip.summary == "Tip commit"
    assert refresher.is_status_loaded
    assert refresher.status.branch_ahead_behind.ahead == 2


async def test_existing_branch_is_updated_in_place():
    runner, state, refresher = make_refresher(
        branch_status(SHA),
        {SHA: log_record(SHA), OTHER_SHA: log_record(OTHER_SHA, summary="Newer")},
    )
    await refresher.refresh_status()
    branch = refresher.tip.branch

    state["status"] = branch_status(OTHER_SHA, upstream="upstream/master")
    await refresher.refresh_status()

    assert refresher.tip.branch is branch
    assert branch.tip.sha == OTHER_SHA
    assert branch.upstream == "upstream/master"
    assert len(refresher.branches) == 1


async def test_detached_head():
    runner, state, refresher = make_refresher(f"# branch.oid {SHA}\0# branch.head (detached)\0")

    await refresher.refresh_status()

    assert refresher.tip.kind is TipState.DETACHED
    assert refresher.tip.commit_id == SHA
    assert runner.calls_named("getCommits") == []


async def test_unborn_branch():
    runner, state, refresher = make_refresher("# branch.oid (initial)\0# branch.head master\0")

    await refresher.refresh_status()

    assert refresher.tip.kind is TipState.UNBORN
    assert refresher.tip.ref == "master"


async def test_no_branch_information_is_unknown_tip():
    runner, state, refresher = make_refresher("? a.txt\0")

    await refresher.refresh_status()

    assert refresher.tip == UnknownTip()
    assert refresher.is_status_loaded


async def test_missing_tip_commit_keeps_previous_tip():
    runner, state, refresher = make_refresher(branch_status(SHA), {SHA: log_record(SHA)})
    await refresher.refresh_status()
    previous_tip = refresher.tip

    state["status"] = branch_status(OTHER_SHA)
    with pytest.raises(ReferenceResolutionError) as excinfo:
        await refresher.refresh_status()

    assert excinfo.value.ref == OTHER_SHA
    assert refresher.tip is previous_tip
    assert refresher.tip.branch.tip.sha == SHA
    assert not refresher.is_status_loaded
    assert not refresher.is_refreshing


async def test_failed_status_query_keeps_tip_and_propagates():
    runner, state, refresher = make_refresher(branch_status(SHA), {SHA: log_record(SHA)})
    await refresher.refresh_status()
    previous_tip = refresher.tip
    runner.handlers["getStatus"] = lambda args: GitResult(128, "", "fatal: index locked")

    with pytest.raises(ToolInvocationError):
        await refresher.refresh_status()

    assert refresher.tip is previous_tip
    assert not refresher.is_status_loaded

    runner.handlers["getStatus"] = lambda args: GitResult(0, branch_status(SHA))
    await refresher.refresh_status()
    assert refresher.is_status_loaded


async def test_refresh_while_refreshing_is_a_noop():
    runner, state, refresher = make_refresher(branch_status(SHA), {SHA: log_record(SHA)})
    gate = asyncio.Event()

    async def slow_status(args):
        await gate.wait()
        return GitResult(0, branch_status(SHA))

    runner.handlers["getStatus"] = slow_status

    first = asyncio.create_task(refresher.refresh_status())
    await asyncio.sleep(0)
    assert refresher.is_refreshing
    await refresher.refresh_status()
    gate.set()
    await first

    assert len(runner.calls_named("getStatus")) == 1
    assert is_tip_branch_valid(refresher.tip)
