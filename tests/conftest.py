"""Fixtures used by pytest."""

import datetime
import pathlib
from typing import Callable

import numpy as np
import pytest

from streamy.core import models
from streamy.ml import vendor

START_DATE = datetime.datetime(2026, 10, 19, 15, 45)


def _make_table(
    source: models.Channel,
    columns: tuple[str, ...],
    rows: list[tuple[str, ...]],
) -> models.SensorTable:
    """Build a sensor table starting at START_DATE."""
    return models.SensorTable(
        source=source, start_date=START_DATE, columns=columns, rows=tuple(rows)
    )


@pytest.fixture
def button_table() -> models.SensorTable:
    """Button presses: down at 0, up at 1, down at 2, up at 5, down at 6."""
    return _make_table(
        models.Channel.mechanical_button,
        ("Epoch", "Elapsed", "State"),
        [
            ("0", "0.0", "Down"),
            ("1", "1.0", "Up"),
            ("2", "2.0", "Down"),
            ("5", "5.0", "Up"),
            ("6", "6.0", "Down"),
        ],
    )


@pytest.fixture
def acceleration_table() -> models.SensorTable:
    """Accelerometer samples every half second from epoch 0 to 5."""
    return _make_table(
        models.Channel.acceleration,
        ("Epoch", "X", "Y", "Z"),
        [(f"{i * 0.5:g}", "0.1", "0.2", "9.8") for i in range(11)],
    )


@pytest.fixture
def quaternion_table() -> models.SensorTable:
    """Quaternion samples every half second from epoch 1 to 5.5."""
    return _make_table(
        models.Channel.quaternion,
        ("Epoch", "X", "Y", "Z", "W"),
        [(f"{1 + i * 0.5:g}", "0", "0", "0", "1") for i in range(10)],
    )


@pytest.fixture
def log_directory(tmp_path: pathlib.Path) -> pathlib.Path:
    """A downloaded session: button, accelerometer and gyroscope logs."""
    directory = tmp_path / "session"
    directory.mkdir()
    (directory / "mechanical_button.csv").write_text(
        "Epoch,State\n0,down\n1,up\n2,down\n5,up\n6,down\n"
    )
    (directory / "acceleration.csv").write_text(
        "Epoch,X,Y,Z\n"
        + "".join(f"{i * 0.5:g},0.1,0.2,9.8\n" for i in range(11))
    )
    (directory / "gyroscope.csv").write_text(
        "Epoch,X,Y,Z\n" + "".join(f"{1 + i:g},1,2,3\n" for i in range(5))
    )
    (directory / "notes.csv").write_text("not,a,channel\n")
    return directory


@pytest.fixture
def model_metadata() -> models.ModelMetadata:
    """Metadata of a stateful three axis model, 20 samples wide, stride 10."""
    return models.ModelMetadata(
        description="Test model",
        possible_labels=("rest", "wave"),
        prediction_window_width=20,
        stride_offset=10,
        feature_names=("x", "y", "z"),
        state_size=2,
        required_channels=frozenset({models.Channel.acceleration}),
    )


@pytest.fixture
def counting_model(model_metadata: models.ModelMetadata) -> vendor.CallableModel:
    """A model that adds one to its recurrent state on every prediction."""

    def predict(
        inputs: dict[str, np.ndarray], state: np.ndarray
    ) -> models.ModelOutput:
        return models.ModelOutput(
            label="wave" if inputs["x"][-1] > 0 else "rest",
            probabilities={"rest": 0.25, "wave": 0.75},
            state=state + 1,
        )

    return vendor.CallableModel(model_metadata, predict)


TableFactory = Callable[
    [models.Channel, tuple[str, ...], list[tuple[str, ...]]], models.SensorTable
]


@pytest.fixture
def make_table() -> TableFactory:
    """Factory building sensor tables that start at START_DATE."""
    return _make_table
