from enum import Enum
from typing import Optional, Sequence


class ErrorKind(str, Enum):
    PARSE = "Error parsing git output"
    TOOL_INVOCATION = "Error running git"
    REFERENCE_RESOLUTION = "Error resolving reference"
    REPOSITORY_NOT_FOUND = "Repository not found"


class GitstoreError(Exception):
    def __init__(self, kind: ErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(f"{kind.value}: {message}")


class ParseError(GitstoreError):
    """Malformed tool output.

    Attributes:
        fragment: The raw record or field that failed to parse.
    """

    def __init__(self, message: str, fragment: str):
        self.fragment = fragment
        super().__init__(ErrorKind.PARSE, message)


class ToolInvocationError(GitstoreError):
    """git exited with a code outside the accepted set for the call.

    Attributes:
        command: Arguments passed to git (without the executable).
        name: Context label of the call, e.g. "getStatus".
        exit_code: Exit code of the git process.
        stderr: Captured stderr, verbatim.
    """

    def __init__(self, args: Sequence[str], name: str, exit_code: int, stderr: str):
        self.command = list(args)
        self.name = name
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(
            ErrorKind.TOOL_INVOCATION,
            f"'{name}' (git {' '.join(args)}) exited with code {exit_code}: {stderr.strip()}",
        )


class ReferenceResolutionError(GitstoreError):
    def __init__(self, ref: str, message: Optional[str] = None):
        self.ref = ref
        super().__init__(
            ErrorKind.REFERENCE_RESOLUTION, message or f"Failed to load commit {ref}"
        )


class RepositoryNotFoundError(GitstoreError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(
            ErrorKind.REPOSITORY_NOT_FOUND, f"'{path}' is not inside a git repository"
        )
