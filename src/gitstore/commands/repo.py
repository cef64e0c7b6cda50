from typing import Optional

import click

from ..app import AppContext


@click.command()
@click.pass_obj
@click.argument(
    "path",
    type=click.Path(file_okay=False, dir_okay=True),
    required=False,
    default=None,
)
def toplevel(app: AppContext, path: Optional[str]):
    """Print the root working directory of the repository containing PATH."""
    path = path or app.repo_path
    top_level = app.run(app.queries.get_top_level_working_directory(path))
    if top_level is None:
        raise click.ClickException(f"'{path}' is not inside a git repository")
    click.echo(top_level)
