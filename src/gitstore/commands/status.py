import click
from rich.console import Console

from ..app import AppContext
from ..utils.formatters import status_to_json, status_to_text
from ..utils.output import OutputFormat, format_option


@click.command()
@click.pass_obj
@format_option()
@click.option("--pretty", is_flag=True, help="Pretty-print the JSON output.")
def status(app: AppContext, format: str, pretty: bool):
    """Show the tip, upstream and changed paths of the repository."""

    async def refresh():
        store = await app.open_store()
        await store.status.refresh_status()
        return store.status

    refresher = app.run(refresh())

    if format == OutputFormat.JSON.value:
        click.echo(status_to_json(refresher.tip, refresher.status, pretty=pretty))
    else:
        Console().print(status_to_text(refresher.tip, refresher.status), end="")
