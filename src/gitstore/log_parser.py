"""Parser for `git log` output produced with LOG_PRETTY_FORMAT.

Each record is terminated by NUL (`-z`) and holds five fields separated by
the ASCII unit separator (0x1F):

    <sha> US <summary> US <body> US <name> <<email>> <date> US <parents>

The date is formatted with `--date=raw`, i.e. "<unix seconds> <+|-hhmm>",
so the identity field has the same shape as GIT_AUTHOR_IDENT.
"""

from datetime import datetime, timezone
from typing import List
import re

from .errors import ParseError
from .models import Commit, CommitIdentity

LOG_FIELD_DELIMITER = "\x1f"

LOG_PRETTY_FORMAT = "%x1F".join(
    [
        "%H",  # SHA
        "%s",  # summary
        "%b",  # body
        "%an <%ae> %ad",  # author identity, needs --date=raw
        "%P",  # parent SHAs
    ]
)

# git strips "<" and ">" from names and emails, see fmt_ident in ident.c
IDENTITY_RE = re.compile(r"^(.*?) <(.*?)> (\d+) (\+|-)?(\d{2})(\d{2})")


def parse_identity(identity: str) -> CommitIdentity:
    """Parse a git ident string such as GIT_AUTHOR_IDENT.

    Args:
        identity: e.g. "Markus Olsson <j.markus.olsson@gmail.com> 1475670580 +0200".

    Returns:
        CommitIdentity with a UTC date and the offset in minutes.

    Raises:
        ParseError: If the string doesn't have the "NAME <EMAIL> SECONDS TZ" shape.
    """
    match = IDENTITY_RE.match(identity)
    if not match:
        raise ParseError(f"Couldn't parse author identity {identity}", identity)

    name, email, seconds, sign, hours, minutes = match.groups()
    date = datetime.fromtimestamp(int(seconds), tz=timezone.utc)
    # raw dates always carry a sign in practice, treat a missing one as "+"
    tz_offset = int(hours) * 60 + int(minutes)
    if sign == "-":
        tz_offset = -tz_offset

    return CommitIdentity(name=name, email=email, date=date, tz_offset=tz_offset)


def parse_log_record(record: str) -> Commit:
    sha, summary, body, author_identity, parents = record.split(LOG_FIELD_DELIMITER)[:5]
    return Commit(
        sha=sha,
        summary=summary,
        body=body.rstrip("\r\n"),
        author=parse_identity(author_identity),
        parent_shas=parents.split(" ") if parents else [],
    )


def parse_log(output: str) -> List[Commit]:
    """Parse the stdout of `git log -z --pretty=LOG_PRETTY_FORMAT`.

    Commits are returned in the order git printed them.
    """
    records = output.split("\0")
    # remove the trailing empty record
    records.pop()
    return [parse_log_record(record) for record in records]
