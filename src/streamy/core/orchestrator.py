"""Python based runner."""

import datetime
import logging
import pathlib
from typing import Optional, Union

from streamy.core import config, models
from streamy.io.readers import readers
from streamy.io.writers import converters, export

logger = config.get_logger()


def run(
    input: Union[pathlib.Path, str],
    output: Union[pathlib.Path, str],
    behavior: converters.LoggingBehavior = (
        converters.LoggingBehavior.start_lazily_pause_play_on_button
    ),
    require_button_presses: Optional[bool] = None,
    start_on: Optional[models.ButtonState] = None,
    filename_tag: Optional[str] = None,
    verbosity: int = logging.WARNING,
) -> Optional[export.ExportHandle]:
    """Export a downloaded sensor log as CSV files, one folder per session.

    Reads every channel log in the input directory, converts the tables with the
    strategy matching the logging behavior, and writes the files into
    output/<filename_tag>. A previous export with the same tag is replaced.

    Args:
        input: Directory holding one '<channel>.csv' file per logged channel.
        output: Directory the export folder is created in.
        behavior: How the session was logged. Button split logs produce one file
            per channel per trial run.
        require_button_presses: When splitting by button, drop all data if no
            trial run was recorded. Defaults to Settings().REQUIRE_BUTTON_PRESSES.
        start_on: The button state starting a trial run. Defaults to
            Settings().START_SIGNAL.
        filename_tag: Appended to every filename and used as the folder name.
            Defaults to the session start date, e.g. 'Oct 19, 2026 at 3:45 PM'.
        verbosity: The logging level for the logger.

    Returns:
        A handle to the export folder, or None if no file was produced.

    Raises:
        ValueError: If the input is not a directory.
        EmptyDirectoryError: If the input holds no channel logs.
        ExportError: If the files could not be written.
    """
    logger.setLevel(verbosity)

    input = pathlib.Path(input)
    output = pathlib.Path(output)
    if not input.is_dir():
        message = f"Input must be a directory of channel logs, got {input}."
        logger.error(message)
        raise ValueError(message)

    tables = readers.read_sensor_tables(input)
    if filename_tag is None:
        start_date = min(
            (table.start_date for table in tables), default=datetime.datetime.now()
        )
        filename_tag = converters.filename_tag(start_date)

    converter = converters.get_converter(
        behavior, require_button_presses=require_button_presses, start_on=start_on
    )
    logger.debug(
        "Converting %d tables with %s", len(tables), type(converter).__name__
    )
    files = converter.convert(tables, filename_tag)

    manager = export.ExportManager(root=output)
    try:
        handle = manager.prepare_export(files, folder_name=filename_tag)
    finally:
        manager.cleanup()

    logger.info("Export for %s completed successfully.", input.name)
    return handle
