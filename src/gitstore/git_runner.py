"""Asynchronous git invocation on top of GitPython.

GitPython's `Git.execute` is blocking, so every call is moved to a worker
thread with `asyncio.to_thread`. The event loop only suspends while the git
process runs, and each process is fully reaped before the call returns.
"""

from dataclasses import dataclass
from typing import AbstractSet, Optional, Sequence
import asyncio
import logging

import git
from git.compat import defenc

from .errors import ToolInvocationError

log = logging.getLogger(__name__)

DEFAULT_SUCCESS_EXIT_CODES = frozenset({0})


@dataclass(frozen=True)
class GitResult:
    exit_code: int
    stdout: str
    stderr: str = ""


class GitRunner:
    """Runs git commands in a working directory.

    Args:
        executable: Path to the git binary, defaults to the executable
            GitPython resolved (GIT_PYTHON_GIT_EXECUTABLE or `git` on PATH).
    """

    def __init__(self, executable: Optional[str] = None):
        self.executable = executable

    def _git_executable(self) -> str:
        return self.executable or git.Git.GIT_PYTHON_GIT_EXECUTABLE or "git"

    def _execute(self, args: Sequence[str], cwd: str):
        return git.Git(cwd).execute(
            [self._git_executable(), *args],
            with_extended_output=True,
            with_exceptions=False,
            stdout_as_string=False,
            strip_newline_in_stdout=False,
        )

    async def run(
        self,
        args: Sequence[str],
        cwd: str,
        name: str,
        success_exit_codes: AbstractSet[int] = DEFAULT_SUCCESS_EXIT_CODES,
    ) -> GitResult:
        """Run `git <args>` in `cwd`.

        Args:
            args: Arguments following the git executable.
            cwd: Working directory of the process.
            name: Label for logs and errors, e.g. "getStatus".
            success_exit_codes: Exit codes that are not errors for this call.

        Returns:
            GitResult with the exit code and decoded stdout/stderr.

        Raises:
            ToolInvocationError: If git exits with a code outside success_exit_codes.
        """
        log.debug(f"{name}: git {' '.join(args)} (cwd={cwd})")
        status, stdout, stderr = await asyncio.to_thread(self._execute, args, cwd)

        if isinstance(stdout, bytes):
            # paths in -z output are raw bytes, keep undecodable ones round-trippable
            stdout = stdout.decode(defenc, "surrogateescape")

        log.debug(f"{name}: exited with code {status}")
        if status not in success_exit_codes:
            raise ToolInvocationError(args, name, status, stderr)

        return GitResult(exit_code=status, stdout=stdout, stderr=stderr)
