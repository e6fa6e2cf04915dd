"""Functions to read downloaded sensor logs from disk."""

import datetime
import pathlib
from typing import Optional, Union

import polars as pl

from streamy.core import config, exceptions, models

logger = config.get_logger()


def channel_from_name(name: str) -> models.Channel:
    """Match a file name to a channel by value or display name, case insensitive.

    Args:
        name: A file stem, e.g. 'acceleration' or 'Mechanical Button'.

    Returns:
        The matching channel.

    Raises:
        UnknownChannelError: If no channel matches.
    """
    channel = _match_channel(name)
    if channel is not None:
        return channel
    raise exceptions.UnknownChannelError(
        f"'{name}' does not name a channel. "
        f"Choose one of {[channel.value for channel in models.Channel]}."
    )


def _match_channel(name: str) -> Optional[models.Channel]:
    normalized = name.strip().lower().replace(" ", "_").replace("-", "_")
    for channel in models.Channel:
        if normalized in (
            channel.value,
            channel.display_name.lower().replace(" ", "_"),
        ):
            return channel
    return None


def read_sensor_table(
    file_name: Union[pathlib.Path, str],
    source: Optional[models.Channel] = None,
    start_date: Optional[datetime.datetime] = None,
) -> models.SensorTable:
    """Read one channel's log from a CSV file.

    The first line holds the column labels. Every field is read as a string, so
    values are kept exactly as logged.

    Args:
        file_name: Path to the CSV file.
        source: The logged channel. Inferred from the file stem when None.
        start_date: Start of the logging session. Defaults to the file's
            modification time.

    Returns:
        The sensor table.

    Raises:
        InvalidFileTypeError: If the file is not a .csv file.
        UnknownChannelError: If source is None and the stem names no channel.
    """
    path = pathlib.Path(file_name)
    if path.suffix != ".csv":
        raise exceptions.InvalidFileTypeError(
            f"The extension: {path.suffix} is not supported. "
            "Please provide a .csv file."
        )
    if source is None:
        source = channel_from_name(path.stem)
    if start_date is None:
        start_date = datetime.datetime.fromtimestamp(path.stat().st_mtime)

    data_frame = pl.read_csv(path, infer_schema_length=0)
    logger.debug("Read %d rows of %s from %s", len(data_frame), source.value, path)
    return models.SensorTable(
        source=source,
        start_date=start_date,
        columns=tuple(data_frame.columns),
        rows=tuple(
            tuple("" if field is None else field for field in row)
            for row in data_frame.iter_rows()
        ),
    )


def read_sensor_tables(
    directory: Union[pathlib.Path, str],
    start_date: Optional[datetime.datetime] = None,
) -> list[models.SensorTable]:
    """Read every channel log in a directory.

    Files whose stem names no channel are skipped with a warning.

    Args:
        directory: Directory holding one '<channel>.csv' file per channel.
        start_date: Start of the logging session, see read_sensor_table.

    Returns:
        The tables, in channel declaration order.

    Raises:
        EmptyDirectoryError: If no channel log was found.
    """
    directory = pathlib.Path(directory)
    tables = []
    for path in sorted(directory.glob("*.csv")):
        source = _match_channel(path.stem)
        if source is None:
            logger.warning("Skipping %s, not a channel log.", path)
            continue
        tables.append(read_sensor_table(path, source=source, start_date=start_date))

    if not tables:
        raise exceptions.EmptyDirectoryError(
            f"Directory {directory} contains no channel .csv files."
        )
    order = list(models.Channel)
    return sorted(tables, key=lambda table: order.index(table.source))
