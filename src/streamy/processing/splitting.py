"""Split sensor tables into one sub-table per recording range."""

from typing import Sequence

import numpy as np

from streamy.core import config, models

logger = config.get_logger()


def split_by_ranges(
    table: models.SensorTable,
    ranges: Sequence[models.RecordingRange],
    require_events: bool,
) -> list[models.SensorTable]:
    """Partition the rows of a table by recording range.

    Rows and ranges are both in ascending order, so a single cursor moves forward
    through the rows: rows before a range are dropped, rows inside it are collected,
    and the first row past its upper bound is left for the next range. Rows whose
    epoch does not parse as a number never appear in any split.

    Args:
        table: The sensor table to split. Rows must be sorted by epoch.
        ranges: Ascending, non-overlapping recording ranges.
        require_events: Decides the result when no range holds any row. If True an
            empty list is returned, otherwise the input table, unsplit.

    Returns:
        One table per range that holds at least one row, in range order. Each split
        keeps the source channel and columns of the input table.
    """
    epochs = table.epochs()
    row_indices = np.flatnonzero(~np.isnan(epochs))
    sorted_epochs = epochs[row_indices]
    assert np.all(np.diff(sorted_epochs) >= 0), "table rows are not sorted by epoch"

    splits = []
    cursor = 0
    for recording_range in ranges:
        start = cursor + int(
            np.searchsorted(sorted_epochs[cursor:], recording_range.lower, side="left")
        )
        stop = start + int(
            np.searchsorted(sorted_epochs[start:], recording_range.upper, side="right")
        )
        cursor = stop

        if stop == start:
            continue
        splits.append(
            models.SensorTable(
                source=table.source,
                start_date=table.start_date,
                columns=table.columns,
                rows=tuple(table.rows[i] for i in row_indices[start:stop]),
            )
        )

    logger.debug(
        "Split %s table of %d rows into %d tables.",
        table.source.value,
        len(table.rows),
        len(splits),
    )
    if splits:
        return splits
    return [] if require_events else [table]
