"""Test readers.py functions."""

import datetime
import pathlib

import pytest

from streamy.core import exceptions, models
from streamy.io.readers import readers


@pytest.mark.parametrize(
    "name, expected",
    [
        ("acceleration", models.Channel.acceleration),
        ("Accelerometer", models.Channel.acceleration),
        ("Mechanical Button", models.Channel.mechanical_button),
        ("linear-acceleration", models.Channel.linear_acceleration),
        (" QUATERNION ", models.Channel.quaternion),
    ],
)
def test_channel_from_name(name: str, expected: models.Channel) -> None:
    """Test file stems are matched by value or display name."""
    assert readers.channel_from_name(name) == expected


def test_channel_from_name_unknown() -> None:
    """Test unknown names raise an error."""
    with pytest.raises(exceptions.UnknownChannelError, match="does not name"):
        readers.channel_from_name("thermometer")


def test_read_sensor_table(log_directory: pathlib.Path) -> None:
    """Test a log is read with every field as the logged string."""
    start_date = datetime.datetime(2026, 10, 19, 9, 0)

    table = readers.read_sensor_table(
        log_directory / "acceleration.csv", start_date=start_date
    )

    assert table.source == models.Channel.acceleration
    assert table.start_date == start_date
    assert table.columns == ("Epoch", "X", "Y", "Z")
    assert table.rows[1] == ("0.5", "0.1", "0.2", "9.8")
    assert len(table.rows) == 11


def test_read_sensor_table_empty_fields(tmp_path: pathlib.Path) -> None:
    """Test missing fields are read as empty strings."""
    path = tmp_path / "gyroscope.csv"
    path.write_text("Epoch,X\n1,\n")

    table = readers.read_sensor_table(path)

    assert table.rows == (("1", ""),)


def test_read_sensor_table_default_start_date(log_directory: pathlib.Path) -> None:
    """Test the start date defaults to the file's modification time."""
    path = log_directory / "gyroscope.csv"

    table = readers.read_sensor_table(path)

    assert table.start_date == datetime.datetime.fromtimestamp(path.stat().st_mtime)


def test_read_invalid_extension(tmp_path: pathlib.Path) -> None:
    """Test only .csv files are read."""
    with pytest.raises(exceptions.InvalidFileTypeError, match=".txt"):
        readers.read_sensor_table(tmp_path / "acceleration.txt")


def test_read_sensor_tables(log_directory: pathlib.Path) -> None:
    """Test channel logs are read in channel order, other files skipped."""
    tables = readers.read_sensor_tables(log_directory)

    assert [table.source for table in tables] == [
        models.Channel.acceleration,
        models.Channel.gyroscope,
        models.Channel.mechanical_button,
    ]


def test_read_sensor_tables_empty(tmp_path: pathlib.Path) -> None:
    """Test a directory without channel logs raises an error."""
    with pytest.raises(exceptions.EmptyDirectoryError):
        readers.read_sensor_tables(tmp_path)
