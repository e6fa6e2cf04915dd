"""Internal data model."""

import datetime
import enum
import math
from typing import Iterator, Union

import numpy as np
import polars as pl
import pydantic
from pydantic import BaseModel, field_validator, model_validator

from streamy.core import config

logger = config.get_logger()


class Channel(str, enum.Enum):
    """Named logical sensor signals a device can log or stream."""

    acceleration = "acceleration"
    gyroscope = "gyroscope"
    magnetometer = "magnetometer"
    linear_acceleration = "linear_acceleration"
    quaternion = "quaternion"
    euler_angles = "euler_angles"
    gravity = "gravity"
    mechanical_button = "mechanical_button"

    @property
    def display_name(self) -> str:
        """Human readable name used in exported filenames."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Channel.acceleration: "Accelerometer",
    Channel.gyroscope: "Gyroscope",
    Channel.magnetometer: "Magnetometer",
    Channel.linear_acceleration: "Linear Acceleration",
    Channel.quaternion: "Quaternion",
    Channel.euler_angles: "Euler Angles",
    Channel.gravity: "Gravity",
    Channel.mechanical_button: "Mechanical Button",
}


class ButtonState(str, enum.Enum):
    """State reported by the mechanical button."""

    up = "up"
    down = "down"

    @property
    def opposite(self) -> "ButtonState":
        """The other button state."""
        return ButtonState.down if self is ButtonState.up else ButtonState.up


class ButtonEvent(BaseModel):
    """A single button state change and the epoch it was logged at."""

    model_config = pydantic.ConfigDict(frozen=True)

    epoch: float
    state: ButtonState


class SensorTable(BaseModel):
    """A logged table of one channel's readings.

    Every field is kept as the string the device produced. The first field of every
    row is the epoch timestamp in seconds and rows are in ascending epoch order. The
    table must not be mutated once created.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    source: Channel
    start_date: datetime.datetime
    columns: tuple[str, ...] = ()
    rows: tuple[tuple[str, ...], ...] = ()

    @model_validator(mode="after")
    def validate_row_widths(self) -> "SensorTable":
        """Validate that every row has one field per column.

        Tables without column labels only need rows of equal width.

        Raises:
            ValueError: If a row's field count differs from the others.
        """
        width = len(self.columns) if self.columns else None
        for index, row in enumerate(self.rows):
            if width is None:
                width = len(row)
            if len(row) != width:
                raise ValueError(
                    f"Row {index} has {len(row)} fields, expected {width}"
                )
        return self

    def epochs(self) -> np.ndarray:
        """Parse the first field of every row as a float.

        Returns:
            A float64 array with one entry per row. Rows whose first field is not a
            number are NaN.
        """
        first_fields = pl.Series(
            [row[0] if row else None for row in self.rows], dtype=pl.String
        )
        return (
            first_fields.str.strip_chars()
            .cast(pl.Float64, strict=False)
            .fill_null(math.nan)
            .to_numpy()
        )

    def button_events(self) -> Iterator[ButtonEvent]:
        """Read the rows of a button table as button events.

        The state is taken from the last field of a row, case insensitive. Rows with
        an unparseable epoch or state are skipped.
        """
        for row, epoch in zip(self.rows, self.epochs()):
            if math.isnan(epoch):
                continue
            try:
                state = ButtonState(row[-1].strip().lower())
            except ValueError:
                continue
            yield ButtonEvent(epoch=epoch, state=state)

    def to_data_frame(self) -> pl.DataFrame:
        """Converts the table to a polars DataFrame of string columns."""
        width = len(self.columns) or max((len(row) for row in self.rows), default=0)
        schema = list(self.columns) or [f"column_{i}" for i in range(width)]
        return pl.DataFrame(
            [list(row) for row in self.rows],
            schema={name: pl.String for name in schema},
            orient="row",
        )


class RecordingRange(BaseModel):
    """A closed interval of epochs delimiting one trial run.

    The upper bound may be infinite, meaning the run was still open at the end of
    the log.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    lower: float
    upper: float = math.inf

    @model_validator(mode="after")
    def validate_bounds(self) -> "RecordingRange":
        """Validate that the bounds are numbers and ordered.

        Raises:
            ValueError: If a bound is NaN or lower is greater than upper.
        """
        if math.isnan(self.lower) or math.isnan(self.upper):
            raise ValueError("Range bounds must not be NaN")
        if self.lower > self.upper:
            raise ValueError(
                f"Range lower bound {self.lower} exceeds upper bound {self.upper}"
            )
        return self

    def contains(self, epoch: float) -> bool:
        """Whether the epoch lies within the closed interval."""
        return self.lower <= epoch <= self.upper


class CSVFile(BaseModel):
    """A named, UTF-8 encoded CSV document."""

    filename: str
    data: bytes


class ModelMetadata(BaseModel):
    """Static description of a windowed classifier.

    Attributes:
        description: Free text shown to users.
        possible_labels: Every label the model can predict.
        prediction_window_width: Number of samples per channel in one prediction.
        stride_offset: Samples between the start of consecutive sliding windows.
        feature_names: Input feature names, one per streamed value, in the order
            values appear in a raw sample vector.
        state_size: Length of the recurrent state vector. Zero for stateless models.
        required_channels: Channels a device must offer to feed the model.
    """

    model_config = pydantic.ConfigDict(frozen=True)

    description: str = ""
    possible_labels: tuple[str, ...] = ()
    prediction_window_width: pydantic.PositiveInt
    stride_offset: pydantic.PositiveInt = pydantic.Field(
        default_factory=lambda: config.Settings().DEFAULT_STRIDE_OFFSET
    )
    feature_names: tuple[str, ...]
    state_size: pydantic.NonNegativeInt = 0
    required_channels: frozenset[Channel] = frozenset()

    @field_validator("feature_names")
    def validate_feature_names(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Validate that at least one unique feature is declared.

        Raises:
            ValueError: If no features are given or names are repeated.
        """
        if not v:
            raise ValueError("A model must declare at least one input feature")
        if len(set(v)) != len(v):
            raise ValueError("Feature names must be unique")
        return v

    @model_validator(mode="after")
    def validate_stride(self) -> "ModelMetadata":
        """Validate that the stride does not exceed the window width.

        Raises:
            ValueError: If stride_offset is larger than prediction_window_width.
        """
        if self.stride_offset > self.prediction_window_width:
            raise ValueError(
                "stride_offset must not exceed prediction_window_width, got "
                f"{self.stride_offset} > {self.prediction_window_width}"
            )
        return self


class ModelOutput(BaseModel):
    """What a classifier returns for one prediction."""

    model_config = pydantic.ConfigDict(arbitrary_types_allowed=True)

    label: str
    probabilities: dict[str, float]
    state: np.ndarray


class PredictionEvent(BaseModel):
    """A successful prediction published to observers."""

    window_index: int
    label: str
    probabilities: dict[str, float]


class ErrorEvent(BaseModel):
    """A failed prediction published to observers."""

    window_index: int
    message: str


InferenceEvent = Union[PredictionEvent, ErrorEvent]
