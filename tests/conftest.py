import asyncio
import inspect
import shutil
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import pytest

from gitstore.errors import ToolInvocationError
from gitstore.git_commands import RepositoryQueries
from gitstore.git_runner import GitResult

US = "\x1f"

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def sha_for(index: int) -> str:
    return f"{index:040x}"


def log_record(
    sha: str,
    summary: str = "summary",
    body: str = "",
    identity: str = "Jane Doe <jane@x.com> 1609459200 +0200",
    parents: str = "",
) -> str:
    return US.join([sha, summary, body, identity, parents]) + "\0"


@dataclass
class Call:
    args: List[str]
    cwd: str
    name: str


@dataclass
class FakeRunner:
    """Records git invocations and answers them from per-command handlers.

    A handler receives the argument list and returns a GitResult (or an
    awaitable of one) so tests can hold a call in flight.
    """

    handlers: Dict[str, Callable] = field(default_factory=dict)
    calls: List[Call] = field(default_factory=list)

    def calls_named(self, name: str) -> List[Call]:
        return [c for c in self.calls if c.name == name]

    async def run(self, args, cwd, name, success_exit_codes=frozenset({0})):
        self.calls.append(Call(list(args), cwd, name))
        result = self.handlers[name](list(args))
        if inspect.isawaitable(result):
            result = await result
        if result.exit_code not in success_exit_codes:
            raise ToolInvocationError(args, name, result.exit_code, result.stderr)
        return result


def arg_value(args: List[str], prefix: str) -> Optional[int]:
    for arg in args:
        if arg.startswith(prefix):
            return int(arg[len(prefix):])
    return None


class FakeHistory:
    """A linear history of `total` commits served through a FakeRunner.

    Attributes:
        gate: When set to an unset asyncio.Event, commit fetches wait on it.
        fail_next_log: Exit code for the next `git log`, consumed once.
        max_concurrent_skips: Most `git log --skip` fetches seen running at once.
    """

    def __init__(self, total: int, runner: Optional[FakeRunner] = None):
        self.total = total
        self.runner = runner or FakeRunner()
        self.gate: Optional[asyncio.Event] = None
        self.fail_next_log: Optional[int] = None
        self.max_concurrent_skips = 0
        self._running_skips = 0
        self.runner.handlers["getCommitCount"] = self._count
        self.runner.handlers["getCommits"] = self._log

    def _count(self, args):
        return GitResult(0, f"{self.total}\n")

    async def _log(self, args):
        if arg_value(args, "--skip="):
            self._running_skips += 1
            self.max_concurrent_skips = max(self.max_concurrent_skips, self._running_skips)
            try:
                return await self._serve_log(args)
            finally:
                self._running_skips -= 1
        return await self._serve_log(args)

    async def _serve_log(self, args):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_next_log is not None:
            code, self.fail_next_log = self.fail_next_log, None
            return GitResult(code, "", "fatal: boom")
        limit = arg_value(args, "--max-count=")
        skip = arg_value(args, "--skip=") or 0
        end = min(self.total, skip + limit)
        output = "".join(
            log_record(sha_for(i), summary=f"commit {i}", parents=sha_for(i + 1) if i + 1 < self.total else "")
            for i in range(skip, end)
        )
        return GitResult(0, output)

    def log_limits(self) -> List[int]:
        return [arg_value(c.args, "--max-count=") for c in self.runner.calls_named("getCommits")]


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def queries(runner):
    return RepositoryQueries(runner)
