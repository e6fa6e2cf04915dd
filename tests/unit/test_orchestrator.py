"""Test the orchestrator.py module."""

import datetime
import logging
import pathlib

import pytest
import pytest_mock

from streamy.core import exceptions, models, orchestrator
from streamy.io.writers import converters, export


def test_run_not_a_directory(tmp_path: pathlib.Path) -> None:
    """Test run when the input is not a directory."""
    input_file = tmp_path / "acceleration.csv"
    input_file.write_text("Epoch,X\n1,2\n")

    with pytest.raises(ValueError, match="Input must be a directory"):
        orchestrator.run(input=input_file, output=tmp_path)


def test_run_empty_directory(tmp_path: pathlib.Path) -> None:
    """Test run when the input holds no channel logs."""
    with pytest.raises(exceptions.EmptyDirectoryError):
        orchestrator.run(input=tmp_path, output=tmp_path / "out")


def test_run_button_split(log_directory: pathlib.Path, tmp_path: pathlib.Path) -> None:
    """Test every channel is exported once per trial run."""
    handle = orchestrator.run(
        input=log_directory,
        output=tmp_path / "out",
        start_on=models.ButtonState.down,
        require_button_presses=True,
        filename_tag="Session",
    )

    assert handle is not None
    assert handle.directory == tmp_path / "out" / "Session"
    assert sorted(path.name for path in handle.files) == [
        "0 - Accelerometer Session.csv",
        "0 - Gyroscope Session.csv",
        "1 - Accelerometer Session.csv",
        "1 - Gyroscope Session.csv",
    ]
    assert (handle.directory / "0 - Gyroscope Session.csv").read_text() == (
        "Epoch,X,Y,Z\n1,1,2,3\n"
    )


def test_run_no_splits(log_directory: pathlib.Path, tmp_path: pathlib.Path) -> None:
    """Test continuous logs are exported whole, button log included."""
    handle = orchestrator.run(
        input=log_directory,
        output=tmp_path,
        behavior=converters.LoggingBehavior.start_immediately_no_splits,
        filename_tag="Session",
    )

    assert handle is not None
    assert [path.name for path in handle.files] == [
        "Accelerometer Session.csv",
        "Gyroscope Session.csv",
        "Mechanical Button Session.csv",
    ]


def test_run_default_tag(log_directory: pathlib.Path, tmp_path: pathlib.Path) -> None:
    """Test the folder is named after the session start date by default."""
    start_date = min(
        datetime.datetime.fromtimestamp(path.stat().st_mtime)
        for path in log_directory.glob("*.csv")
        if path.stem != "notes"
    )

    handle = orchestrator.run(
        input=log_directory,
        output=tmp_path,
        behavior=converters.LoggingBehavior.start_immediately_no_splits,
    )

    assert handle is not None
    assert handle.folder_name == converters.filename_tag(start_date)


def test_run_nothing_to_export(
    tmp_path: pathlib.Path, log_directory: pathlib.Path
) -> None:
    """Test no folder is created when no sample falls within a trial run."""
    (log_directory / "mechanical_button.csv").write_text("Epoch,State\n100,up\n")

    handle = orchestrator.run(
        input=log_directory,
        output=tmp_path / "out",
        start_on=models.ButtonState.down,
        require_button_presses=True,
        filename_tag="Session",
    )

    assert handle is None
    assert not (tmp_path / "out" / "Session").exists()


def test_run_sets_verbosity(
    mocker: pytest_mock.MockerFixture,
    log_directory: pathlib.Path,
    tmp_path: pathlib.Path,
) -> None:
    """Test the logger level follows the requested verbosity."""
    mocker.patch.object(export.ExportManager, "prepare_export", return_value=None)

    orchestrator.run(input=log_directory, output=tmp_path, verbosity=logging.DEBUG)

    assert orchestrator.logger.level == logging.DEBUG
    orchestrator.logger.setLevel(logging.INFO)


def test_run_cleans_up_on_failure(
    mocker: pytest_mock.MockerFixture,
    log_directory: pathlib.Path,
    tmp_path: pathlib.Path,
) -> None:
    """Test the export worker is shut down when the export fails."""
    mocker.patch.object(
        export.ExportManager,
        "prepare_export",
        side_effect=exceptions.ExportError("disk full"),
    )
    mock_cleanup = mocker.patch.object(export.ExportManager, "cleanup")

    with pytest.raises(exceptions.ExportError):
        orchestrator.run(input=log_directory, output=tmp_path)

    mock_cleanup.assert_called_once()
