import click
from rich.console import Console

from ..app import AppContext
from ..utils.formatters import commits_to_json, commits_to_table
from ..utils.output import OutputFormat, format_option


@click.command()
@click.pass_obj
@format_option()
@click.option(
    "-n",
    "--max-count",
    type=click.IntRange(min=1),
    default=None,
    help="Number of commits to show (default: one history batch).",
)
@click.option("--pretty", is_flag=True, help="Pretty-print the JSON output.")
def log(app: AppContext, format: str, max_count: int, pretty: bool):
    """Show the most recent commits of HEAD."""

    async def load():
        store = await app.open_store()
        history = store.history
        await history.load_first_batch()
        if max_count and not history.is_loaded(max_count):
            await history.load_next_batch(min_history_size=max_count)
        return history

    history = app.run(load())
    commits = history.commits[:max_count] if max_count else history.commits

    if format == OutputFormat.JSON.value:
        click.echo(commits_to_json(commits, history.total_count, pretty=pretty))
    else:
        Console().print(commits_to_table(commits, history.total_count))


@click.command()
@click.pass_obj
def count(app: AppContext):
    """Print the number of commits reachable from HEAD."""

    async def get_count():
        store = await app.open_store()
        return await app.queries.get_commit_count(store.local_path)

    click.echo(app.run(get_count()))
