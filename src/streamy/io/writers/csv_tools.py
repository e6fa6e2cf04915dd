"""Utilities rewriting exported CSV files in place."""

import pathlib
from typing import Callable, Iterable

import polars as pl
from rich import progress

from streamy.core import config
from streamy.processing import streams

logger = config.get_logger()

QUATERNION_COLUMNS = ["X", "Y", "Z", "W"]


def find_csvs(folders: Iterable[pathlib.Path]) -> list[pathlib.Path]:
    """List the .csv files directly inside each folder, sorted per folder."""
    return [
        path
        for folder in folders
        for path in sorted(pathlib.Path(folder).glob("*.csv"))
        if path.is_file()
    ]


def _read_csv(path: pathlib.Path) -> pl.DataFrame:
    return pl.read_csv(path, infer_schema_length=0)


def downsample_csv(path: pathlib.Path, divisible_by: int = 2) -> None:
    """Keep every divisible_by-th data row of a CSV file, rewriting it in place.

    The header is kept. Counting data rows from one, rows whose number is a
    multiple of divisible_by are kept.

    Args:
        path: The CSV file.
        divisible_by: Keep one row out of this many.

    Raises:
        ValueError: If divisible_by is less than 1.
    """
    if divisible_by < 1:
        raise ValueError(f"divisible_by must be at least 1, got {divisible_by}.")
    data_frame = _read_csv(path)
    downsampled = data_frame.gather_every(divisible_by, offset=divisible_by - 1)
    downsampled.write_csv(path)
    logger.debug(
        "Downsampled %s from %d to %d rows.", path, len(data_frame), len(downsampled)
    )


def quaternion_deltas_csv(path: pathlib.Path) -> bool:
    """Replace the quaternion of every row with its rotation from the previous row.

    Only files whose last four columns are X, Y, Z, W are modified. Rows whose
    quaternion does not parse are dropped. The first remaining row is the
    reference for the second and is dropped as well. Values are written with three
    decimals.

    Args:
        path: The CSV file.

    Returns:
        True if the file was rewritten.
    """
    data_frame = _read_csv(path)
    if data_frame.columns[-4:] != QUATERNION_COLUMNS:
        logger.debug("Skipping %s, no quaternion columns.", path)
        return False

    values = data_frame.select(
        pl.col(QUATERNION_COLUMNS).str.strip_chars().cast(pl.Float64, strict=False)
    )
    is_valid = values.select(pl.all_horizontal(pl.all().is_not_null())).to_series()
    quaternions = values.filter(is_valid).to_numpy()
    deltas = streams.quaternion_delta(quaternions[:-1], quaternions[1:])

    modified = (
        data_frame.filter(is_valid)
        .slice(1)
        .with_columns(
            [
                pl.Series(name, [f"{value:1.3f}" for value in deltas[:, column]])
                for column, name in enumerate(QUATERNION_COLUMNS)
            ]
        )
    )
    modified.write_csv(path)
    return True


def _rewrite_folders(
    folders: Iterable[pathlib.Path],
    rewrite: Callable[[pathlib.Path], object],
    description: str,
) -> list[pathlib.Path]:
    paths = find_csvs(folders)
    with progress.Progress(
        progress.SpinnerColumn(),
        progress.TextColumn("[progress.description]{task.description}"),
        progress.BarColumn(),
        progress.TaskProgressColumn(),
        console=None,
    ) as progress_bar:
        task = progress_bar.add_task(f"[cyan]{description}...", total=len(paths))
        for path in paths:
            try:
                rewrite(path)
            except (ValueError, pl.exceptions.PolarsError) as e:
                logger.error("Did not process file: %s, Error: %s", path, e)
            progress_bar.update(task, advance=1)
    logger.info("%s: processed %d files.", description, len(paths))
    return paths


def downsample_folders(
    folders: Iterable[pathlib.Path], divisible_by: int = 2
) -> list[pathlib.Path]:
    """Downsample every CSV file in the folders.

    Returns:
        The files processed.
    """
    return _rewrite_folders(
        folders,
        lambda path: downsample_csv(path, divisible_by=divisible_by),
        "Downsampling",
    )


def quaternion_deltas_folders(folders: Iterable[pathlib.Path]) -> list[pathlib.Path]:
    """Compute quaternion deltas for every CSV file in the folders.

    Returns:
        The files processed, including those without quaternion columns.
    """
    return _rewrite_folders(folders, quaternion_deltas_csv, "Computing deltas")
