"""CLI for streamy."""

import logging
import pathlib
from enum import Enum
from typing import Optional

import typer

from streamy.core import config, exceptions, models
from streamy.io.writers import converters, csv_tools

logger = config.get_logger()
app = typer.Typer(
    help="Export sensor logs as CSV files and tidy up exported files.",
    no_args_is_help=True,
)


class Behavior(str, Enum):
    """Setting a logging behavior class for typer.

    This class is used to define the literal types that are allowed for
    logging behaviors, and parsing the strings for the orchestrator.
    """

    no_splits = "no-splits"
    button = "button"


class StartSignal(str, Enum):
    """Button states that can start a trial run."""

    up = "up"
    down = "down"


_BEHAVIORS = {
    Behavior.no_splits: converters.LoggingBehavior.start_immediately_no_splits,
    Behavior.button: converters.LoggingBehavior.start_lazily_pause_play_on_button,
}


def version_check(version: bool) -> None:
    """Print the current version of streamy and exit."""
    if version:
        typer.echo(f"Streamy version: {config.get_version()}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "-V",
        "--version",
        help="Print the current version of streamy and exit.",
        is_eager=True,
        callback=version_check,
    ),
) -> None:
    """Streamy command line tools."""


@app.command("export")
def export_logs(
    input: pathlib.Path = typer.Argument(
        ...,
        help="Directory holding one '<channel>.csv' log per channel.",
        exists=True,
        file_okay=False,
    ),
    output: pathlib.Path = typer.Option(
        pathlib.Path("."),
        "-o",
        "--output",
        help="Directory the export folder is created in.",
    ),
    behavior: Behavior = typer.Option(
        Behavior.button,
        "-b",
        "--behavior",
        help="How the session was logged. 'button' splits every channel into one "
        "file per button delimited trial run, 'no-splits' exports whole logs.",
        case_sensitive=False,
    ),
    start_on: Optional[StartSignal] = typer.Option(
        None,
        "--start-on",
        help="Button state that starts a trial run. Defaults to the STREAMY_"
        "START_SIGNAL setting, 'up' unless configured.",
        case_sensitive=False,
    ),
    require_presses: Optional[bool] = typer.Option(
        None,
        "--require-presses/--allow-no-presses",
        help="Whether to drop all data when no trial run was recorded, rather than "
        "exporting whole logs. Defaults to the STREAMY_REQUIRE_BUTTON_PRESSES "
        "setting.",
    ),
    tag: Optional[str] = typer.Option(
        None,
        "-t",
        "--tag",
        help="Text appended to every filename and used as the folder name. "
        "Defaults to the session start date.",
    ),
    verbosity: bool = typer.Option(
        False,
        "-v",
        "--verbosity",
        help="Determines the level of verbosity. Use -v for DEBUG. "
        "Defaults to INFO if not included.",
    ),
) -> None:
    """Export channel logs as CSV files, split into trial runs if requested."""
    from streamy.core import orchestrator

    log_level = logging.INFO
    if verbosity:
        log_level = logging.DEBUG
    logger.setLevel(log_level)

    logger.debug("Running streamy export. arguments given: %s", locals())
    try:
        handle = orchestrator.run(
            input=input,
            output=output,
            behavior=_BEHAVIORS[behavior],
            require_button_presses=require_presses,
            start_on=models.ButtonState(start_on.value) if start_on else None,
            filename_tag=tag,
            verbosity=log_level,
        )
    except (exceptions.EmptyDirectoryError, exceptions.ExportError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if handle is None:
        typer.echo("No data to export.")
        return
    typer.echo(f"Exported {len(handle.files)} files to {handle.directory}")


@app.command("downsample")
def downsample(
    folders: list[pathlib.Path] = typer.Argument(
        ..., help="Folders of exported CSV files.", exists=True, file_okay=False
    ),
    divisible_by: int = typer.Option(
        2,
        "-d",
        "--divisible-by",
        help="Keep one data row out of this many.",
        min=1,
    ),
) -> None:
    """Downsample every CSV file in the folders, in place."""
    paths = csv_tools.downsample_folders(folders, divisible_by=divisible_by)
    typer.echo(f"Downsampled {len(paths)} files.")


@app.command("quaternion-deltas")
def quaternion_deltas(
    folders: list[pathlib.Path] = typer.Argument(
        ..., help="Folders of exported CSV files.", exists=True, file_okay=False
    ),
) -> None:
    """Replace quaternions with rotations between rows, in place."""
    paths = csv_tools.quaternion_deltas_folders(folders)
    typer.echo(f"Processed {len(paths)} files.")


if __name__ == "__main__":
    app()
