import click
import logging
from typing import Optional
from .app import AppContext

LOG_FORMAT = "[%(levelname)s] %(message)s"

from dotenv import load_dotenv

load_dotenv()


def register_commands(cli):
    from .commands.status import status

    cli.add_command(status)

    from .commands.log import log, count

    cli.add_command(log)
    cli.add_command(count)

    from .commands.repo import toplevel

    cli.add_command(toplevel)


@click.group()
@click.pass_obj
@click.option(
    "--repo-path",
    type=click.Path(exists=True, file_okay=False, dir_okay=True),
    default=".",
    help="Path to the git repository",
)
@click.option(
    "--config",
    "config_path",
    type=str,
    default=None,
    help="Path to the config file (default: .gitstore.yaml)",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(app: AppContext, repo_path: str, config_path: Optional[str], verbose: bool):
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    app.repo_path = repo_path
    app.load_config(config_path)


register_commands(cli)


def main():
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
    )
    cli(obj=AppContext())


if __name__ == "__main__":
    main()
