"""Test splitting sensor tables by recording range."""

import math
from typing import Callable

import pytest

from streamy.core import models
from streamy.processing import splitting

TableFactory = Callable[..., models.SensorTable]


def _epochs(table: models.SensorTable) -> list[str]:
    return [row[0] for row in table.rows]


def test_split_by_ranges(acceleration_table: models.SensorTable) -> None:
    """Test rows are assigned to the ranges they fall within, bounds included."""
    recording_ranges = [
        models.RecordingRange(lower=0, upper=1),
        models.RecordingRange(lower=2, upper=5),
        models.RecordingRange(lower=6),
    ]

    result = splitting.split_by_ranges(
        acceleration_table, recording_ranges, require_events=True
    )

    assert [_epochs(split) for split in result] == [
        ["0", "0.5", "1"],
        ["2", "2.5", "3", "3.5", "4", "4.5", "5"],
    ]
    for split in result:
        assert split.source == acceleration_table.source
        assert split.columns == acceleration_table.columns
        assert split.start_date == acceleration_table.start_date


def test_split_rows_between_ranges_dropped(
    quaternion_table: models.SensorTable,
) -> None:
    """Test rows outside every range appear in no split."""
    recording_ranges = [
        models.RecordingRange(lower=0, upper=1),
        models.RecordingRange(lower=2, upper=5),
    ]

    result = splitting.split_by_ranges(
        quaternion_table, recording_ranges, require_events=True
    )

    assert [_epochs(split) for split in result] == [
        ["1"],
        ["2", "2.5", "3", "3.5", "4", "4.5", "5"],
    ]


def test_split_skips_unparseable_epochs(make_table: TableFactory) -> None:
    """Test rows without a numeric epoch are skipped, not fatal."""
    table = make_table(
        models.Channel.gyroscope,
        ("Epoch", "X"),
        [("1", "a"), ("oops", "b"), ("2", "c"), ("", "d"), ("3", "e")],
    )

    result = splitting.split_by_ranges(
        table, [models.RecordingRange(lower=0, upper=math.inf)], require_events=True
    )

    assert len(result) == 1
    assert [row[1] for row in result[0].rows] == ["a", "c", "e"]


@pytest.mark.parametrize("require_events", [True, False])
def test_split_no_matching_rows(
    acceleration_table: models.SensorTable, require_events: bool
) -> None:
    """Test the result when no range holds any row depends on require_events."""
    result = splitting.split_by_ranges(
        acceleration_table,
        [models.RecordingRange(lower=10, upper=20)],
        require_events=require_events,
    )

    assert result == ([] if require_events else [acceleration_table])


def test_split_no_ranges(acceleration_table: models.SensorTable) -> None:
    """Test an empty range list with require_events False keeps the table."""
    result = splitting.split_by_ranges(
        acceleration_table, [], require_events=False
    )

    assert result == [acceleration_table]


def test_split_preserves_row_order(make_table: TableFactory) -> None:
    """Test the concatenated splits are a subsequence of the input rows."""
    table = make_table(
        models.Channel.gravity,
        ("Epoch", "V"),
        [(str(i), str(i * 10)) for i in range(20)],
    )
    recording_ranges = [
        models.RecordingRange(lower=2, upper=4),
        models.RecordingRange(lower=4.5, upper=9),
        models.RecordingRange(lower=15),
    ]

    result = splitting.split_by_ranges(table, recording_ranges, require_events=True)

    rows = [row for split in result for row in split.rows]
    assert rows == sorted(rows, key=lambda row: float(row[0]))
    assert [_epochs(split) for split in result] == [
        ["2", "3", "4"],
        ["5", "6", "7", "8", "9"],
        ["15", "16", "17", "18", "19"],
    ]
