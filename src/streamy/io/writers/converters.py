"""Convert sensor tables into named CSV files."""

import abc
import datetime
import enum
from typing import Optional, Sequence

from streamy.core import config, models
from streamy.processing import ranges as recording_ranges
from streamy.processing import splitting

logger = config.get_logger()


class LoggingBehavior(str, enum.Enum):
    """How a device organizes its log, and therefore how the log is exported.

    Attributes:
        start_immediately_no_splits: The device logs continuously from the start
            command; every channel exports as a single file.
        start_lazily_pause_play_on_button: Button presses mark trial runs; every
            channel exports one file per run.
    """

    start_immediately_no_splits = "start_immediately_no_splits"
    start_lazily_pause_play_on_button = "start_lazily_pause_play_on_button"


def filename_tag(start_date: datetime.datetime) -> str:
    """Format a session start date for filenames, e.g. 'Oct 19, 2026 at 3:45 PM'."""
    hour = start_date.hour % 12 or 12
    return (
        f"{start_date:%b} {start_date.day}, {start_date.year} "
        f"at {hour}:{start_date:%M} {'AM' if start_date.hour < 12 else 'PM'}"
    )


def table_to_csv(table: models.SensorTable) -> bytes:
    """Serialize a table as comma delimited UTF-8 CSV.

    The header is the table's column labels, omitted when the table has none.
    Fields are written verbatim.
    """
    data_frame = table.to_data_frame()
    csv = data_frame.write_csv(
        separator=",",
        include_header=bool(table.columns),
        line_terminator="\n",
        quote_style="never",
    )
    return csv.encode("utf-8")


class CSVConverter(abc.ABC):
    """Interface shared by the CSV conversion strategies."""

    @abc.abstractmethod
    def convert(
        self, tables: Sequence[models.SensorTable], filename_tag: str
    ) -> list[models.CSVFile]:
        """Convert tables into named CSV files.

        Args:
            tables: Sensor tables, one per logged channel.
            filename_tag: Text appended to every filename, typically the session
                start date.

        Returns:
            CSV files in input table order.
        """
        pass


class NoSplitConverter(CSVConverter):
    """Exports every table whole, as '{channel} {tag}'."""

    def convert(
        self, tables: Sequence[models.SensorTable], filename_tag: str
    ) -> list[models.CSVFile]:
        """Convert each table into one CSV file."""
        return [
            models.CSVFile(
                filename=f"{table.source.display_name} {filename_tag}",
                data=table_to_csv(table),
            )
            for table in tables
        ]


class ButtonSplitConverter(CSVConverter):
    """Exports one file per channel per button delimited trial run.

    Files are named '{index} - {channel} {tag}', where the index counts the splits
    emitted for that channel, starting at 0. The button table itself is not
    exported. Without a button table every table is exported whole, as the
    NoSplitConverter would.

    Attributes:
        require_button_presses: When no trial run can be found, drop every table if
            True, otherwise export the tables unsplit.
        start_signal: The button state that starts a trial run.
        end_signal: The button state that ends a trial run.
    """

    def __init__(
        self,
        require_button_presses: bool = True,
        start_on: models.ButtonState = models.ButtonState.up,
    ) -> None:
        """Initializes the converter.

        Args:
            require_button_presses: See class attributes.
            start_on: The button state that starts a trial run. The opposite state
                ends it.
        """
        self.require_button_presses = require_button_presses
        self.start_signal = start_on
        self.end_signal = start_on.opposite

    def convert(
        self, tables: Sequence[models.SensorTable], filename_tag: str
    ) -> list[models.CSVFile]:
        """Split each non-button table by trial run and convert the splits."""
        button_table = next(
            (
                table
                for table in tables
                if table.source == models.Channel.mechanical_button
            ),
            None,
        )
        if button_table is None:
            logger.info("No button table found, exporting tables unsplit.")
            return NoSplitConverter().convert(tables, filename_tag)

        ranges = recording_ranges.ranges_from_table(
            button_table,
            start_state=self.start_signal,
            require_events=self.require_button_presses,
        )
        logger.debug("Splitting tables into ranges: %s", ranges)

        files = []
        for table in tables:
            if table.source == models.Channel.mechanical_button:
                continue
            splits = splitting.split_by_ranges(
                table, ranges, require_events=self.require_button_presses
            )
            files.extend(
                models.CSVFile(
                    filename=f"{index} - {table.source.display_name} {filename_tag}",
                    data=table_to_csv(split),
                )
                for index, split in enumerate(splits)
            )

        if not files:
            logger.warning("No data fell within a recording range, nothing to export.")
        return files


def get_converter(
    behavior: LoggingBehavior,
    require_button_presses: Optional[bool] = None,
    start_on: Optional[models.ButtonState] = None,
) -> CSVConverter:
    """Select the conversion strategy matching a logging behavior.

    Args:
        behavior: The logging behavior the session was recorded with.
        require_button_presses: Passed to ButtonSplitConverter. Defaults to
            Settings().REQUIRE_BUTTON_PRESSES.
        start_on: Passed to ButtonSplitConverter. Defaults to
            Settings().START_SIGNAL.

    Returns:
        The converter for the behavior.

    Raises:
        ValueError: If the behavior is unknown.
    """
    if behavior == LoggingBehavior.start_immediately_no_splits:
        return NoSplitConverter()
    if behavior == LoggingBehavior.start_lazily_pause_play_on_button:
        settings = config.Settings()
        if require_button_presses is None:
            require_button_presses = settings.REQUIRE_BUTTON_PRESSES
        if start_on is None:
            start_on = models.ButtonState(settings.START_SIGNAL)
        return ButtonSplitConverter(
            require_button_presses=require_button_presses, start_on=start_on
        )
    raise ValueError(f"Unknown logging behavior: {behavior}")
