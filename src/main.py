"""Main entry point for the terminal to-do list."""
import logging
from pathlib import Path

import click

from app import TodoApp
from cli import CLI
from config import LOG_LEVELS, load_settings, Settings
from storage import FileBlobStore, Storage


def _configure_logging(settings: Settings) -> None:
    # the REPL owns the screen, so log records go to a file
    settings.log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(settings.log_file),
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.command()
@click.option("--store-file", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Blob store file (default: TODO_STORE_FILE or data/store.json).")
@click.option("--alt-screen/--no-alt-screen", default=None,
              help="Draw in the terminal's alternate screen buffer.")
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False), default=None)
@click.option("--delete-delay", type=click.IntRange(min=0), default=None, metavar="MS",
              help="Fade time before a deleted task is removed.")
def main(store_file, alt_screen, log_level, delete_delay):
    """Manage a to-do list in the terminal. Type 'help' at the prompt."""
    settings = load_settings()
    if store_file is not None:
        settings.store_file = store_file
    if alt_screen is not None:
        settings.alt_screen = alt_screen
    if log_level is not None:
        settings.log_level = log_level.upper()
    if delete_delay is not None:
        settings.delete_delay_ms = delete_delay
    _configure_logging(settings)
    logging.getLogger(__name__).info("Using store %s", settings.store_file)

    storage = Storage(FileBlobStore(settings.store_file))
    app = TodoApp(storage, delete_delay=settings.delete_delay)
    CLI(app, alt_screen=settings.alt_screen).run()


if __name__ == "__main__":
    main()
