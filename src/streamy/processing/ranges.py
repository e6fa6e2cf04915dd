"""Derive recording ranges from mechanical button events."""

import math
from typing import Iterable, Optional

from streamy.core import config, models

logger = config.get_logger()


def extract_ranges(
    events: Iterable[models.ButtonEvent],
    start_state: models.ButtonState,
    require_events: bool,
) -> list[models.RecordingRange]:
    """Pair button events into closed recording ranges.

    Events are scanned once, in order. A range opens on the first event matching
    start_state and closes on the next event in the opposite state. Repeats of
    either state while waiting are ignored rather than toggling the range. A range
    still open after the last event is closed at +inf.

    Args:
        events: Button events in chronological order.
        start_state: The button state that opens a range.
        require_events: Decides the result when no range could be formed. If True
            an empty list is returned, otherwise a single [0, +inf] range spanning
            the whole log.

    Returns:
        Ranges in ascending, non-overlapping order.
    """
    end_state = start_state.opposite
    ranges: list[models.RecordingRange] = []
    start: Optional[float] = None

    for event in events:
        if start is None:
            if event.state == start_state:
                start = event.epoch
            continue

        if event.state != end_state:
            continue

        ranges.append(models.RecordingRange(lower=start, upper=event.epoch))
        start = None

    if start is not None:
        ranges.append(models.RecordingRange(lower=start, upper=math.inf))

    if not ranges:
        logger.debug("No recording ranges found, require_events=%s", require_events)
        if require_events:
            return []
        return [models.RecordingRange(lower=0, upper=math.inf)]

    logger.debug("Found %d recording ranges.", len(ranges))
    return ranges


def ranges_from_table(
    button_table: models.SensorTable,
    start_state: models.ButtonState,
    require_events: bool,
) -> list[models.RecordingRange]:
    """Extract recording ranges from the rows of a mechanical button table.

    Args:
        button_table: A table whose source is the mechanical button.
        start_state: The button state that opens a range.
        require_events: See extract_ranges.

    Returns:
        Ranges in ascending, non-overlapping order.

    Raises:
        ValueError: If the table is not a mechanical button table.
    """
    if button_table.source != models.Channel.mechanical_button:
        raise ValueError(
            f"Expected a {models.Channel.mechanical_button.value} table, "
            f"got {button_table.source.value}."
        )
    return extract_ranges(
        button_table.button_events(),
        start_state=start_state,
        require_events=require_events,
    )
