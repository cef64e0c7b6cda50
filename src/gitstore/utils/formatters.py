"""Text and JSON renderings of status and history for the CLI."""

from datetime import timedelta, timezone
from typing import List, Optional
import json

from rich.table import Table
from rich.text import Text

from ..models import Commit, StatusResult, Tip, TipState


def tip_to_dict(tip: Tip) -> dict:
    data = {"kind": tip.kind.value}
    if tip.kind is TipState.UNBORN:
        data["ref"] = tip.ref
    elif tip.kind is TipState.DETACHED:
        data["commit_id"] = tip.commit_id
    elif tip.kind is TipState.VALID:
        data["branch"] = {
            "name": tip.branch.name,
            "upstream": tip.branch.upstream,
            "kind": tip.branch.kind.value,
            "tip": tip.branch.tip.to_dict(),
        }
    return data


def status_to_dict(tip: Tip, status: Optional[StatusResult]) -> dict:
    data = {"tip": tip_to_dict(tip)}
    if status is None:
        return data

    ahead_behind = status.branch_ahead_behind
    data.update(
        {
            "branch": status.branch_name,
            "upstream": status.upstream_branch_name,
            "commit": status.branch_commit_id,
            "ahead_behind": (
                {"ahead": ahead_behind.ahead, "behind": ahead_behind.behind}
                if ahead_behind
                else None
            ),
            "entries": [
                {
                    "path": entry.path,
                    "status_code": entry.status_code,
                    "old_path": entry.old_path,
                }
                for entry in status.entries
            ],
        }
    )
    return data


def status_to_json(tip: Tip, status: Optional[StatusResult], pretty: bool = False) -> str:
    return json.dumps(status_to_dict(tip, status), indent=2 if pretty else None)


def status_to_text(tip: Tip, status: Optional[StatusResult]) -> Text:
    text = Text()

    if tip.kind is TipState.VALID:
        text.append("On branch ")
        text.append(tip.branch.name, style="bold green")
        text.append(f" at {tip.branch.tip.short_sha} {tip.branch.tip.summary}\n")
    elif tip.kind is TipState.DETACHED:
        text.append("HEAD detached at ")
        text.append(tip.commit_id[:11], style="bold red")
        text.append("\n")
    elif tip.kind is TipState.UNBORN:
        text.append("No commits yet on ")
        text.append(tip.ref, style="bold")
        text.append("\n")
    else:
        text.append("Unknown tip\n", style="dim")

    if status is None:
        return text

    if status.upstream_branch_name:
        text.append(f"Upstream {status.upstream_branch_name}")
        if status.branch_ahead_behind:
            ab = status.branch_ahead_behind
            text.append(f" (ahead {ab.ahead}, behind {ab.behind})")
        text.append("\n")

    for entry in status.entries:
        text.append(f"  {entry.status_code} ", style="yellow")
        if entry.old_path:
            text.append(f"{entry.old_path} -> ")
        text.append(f"{entry.path}\n")

    return text


def format_commit_date(commit: Commit) -> str:
    tz = timezone(timedelta(minutes=commit.author.tz_offset))
    return commit.author.date.astimezone(tz).strftime("%Y-%m-%d %H:%M %z")


def commits_to_table(commits: List[Commit], total_count: int) -> Table:
    table = Table(
        title=f"{len(commits)} of {total_count} commits",
        show_edge=False,
        highlight=False,
    )
    table.add_column("SHA", style="yellow", no_wrap=True)
    table.add_column("Date", no_wrap=True)
    table.add_column("Author")
    table.add_column("Summary")

    for commit in commits:
        summary = commit.summary + (" (merge)" if commit.is_merge else "")
        table.add_row(
            commit.short_sha,
            format_commit_date(commit),
            Text(commit.author.name),
            Text(summary),
        )
    return table


def commits_to_json(commits: List[Commit], total_count: int, pretty: bool = False) -> str:
    return json.dumps(
        {"total_count": total_count, "commits": [c.to_dict() for c in commits]},
        indent=2 if pretty else None,
    )
