"""Write CSV files into a scratch folder ready to be moved or shared."""

import pathlib
import shutil
import tempfile
import uuid
from concurrent import futures
from typing import Callable, Optional, Sequence, Union

import pydantic

from streamy.core import config, exceptions, models

logger = config.get_logger()

CSV_SUFFIX = ".csv"


class ExportHandle(pydantic.BaseModel):
    """A populated export folder.

    Attributes:
        directory: The folder holding the exported files.
        folder_name: The logical name of the export, the folder's name.
        files: Paths of the written files, in the order they were given.
    """

    directory: pathlib.Path
    folder_name: str
    files: list[pathlib.Path]


ExportCallback = Callable[[Union[ExportHandle, exceptions.ExportError]], None]


class ExportManager:
    """Owns a scratch directory that export folders are prepared in.

    A new export with an existing folder name replaces the previous folder. A
    temporary scratch directory is removed by cleanup(), or on leaving the context
    manager. A root given by the caller is kept.
    """

    def __init__(self, root: Optional[pathlib.Path] = None) -> None:
        """Initializes the manager.

        Args:
            root: Directory to prepare exports in. Defaults to a unique directory
                under the system temporary directory.
        """
        self._owns_root = root is None
        if root is None:
            root = (
                pathlib.Path(tempfile.gettempdir()) / f"ExportSession {uuid.uuid4()}"
            )
        self.root = root
        self._executor = futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="streamy-export"
        )

    def __enter__(self) -> "ExportManager":
        """Enter the context manager."""
        return self

    def __exit__(self, *_: object) -> None:
        """Shut down the export worker, see cleanup()."""
        self.cleanup()

    def prepare_export(
        self, files: Sequence[models.CSVFile], folder_name: str
    ) -> Optional[ExportHandle]:
        """Write every file into a fresh folder named folder_name.

        Args:
            files: The CSV files to write. Each is saved as '<filename>.csv'.
            folder_name: Name of the export folder inside the scratch directory.

        Returns:
            A handle to the populated folder, or None if there was nothing to
            export.

        Raises:
            ExportError: If the folder or any file could not be written. The partly
                written folder is left in place.
        """
        if not files:
            logger.info("No files to export.")
            return None

        directory = self.root / folder_name
        written = []
        try:
            if directory.exists():
                logger.debug("Replacing previous export in %s", directory)
                shutil.rmtree(directory)
            directory.mkdir(parents=True)
            for file in files:
                path = directory / f"{file.filename}{CSV_SUFFIX}"
                path.write_bytes(file.data)
                written.append(path)
        except OSError as exc_info:
            raise exceptions.ExportError(
                f"Could not export to {directory}: {exc_info}"
            ) from exc_info

        logger.info("Exported %d files to %s", len(written), directory)
        return ExportHandle(directory=directory, folder_name=folder_name, files=written)

    def prepare_export_async(
        self,
        files: Sequence[models.CSVFile],
        folder_name: str,
        on_complete: Optional[ExportCallback] = None,
    ) -> "futures.Future[Optional[ExportHandle]]":
        """Run prepare_export on the export worker.

        Args:
            files: See prepare_export.
            folder_name: See prepare_export.
            on_complete: Called on the worker once the export finished, with the
                handle on success or the ExportError on failure. Not called when
                there was nothing to export.

        Returns:
            A future resolving to the result of prepare_export.
        """

        def _export() -> Optional[ExportHandle]:
            try:
                handle = self.prepare_export(files, folder_name)
            except exceptions.ExportError as exc_info:
                if on_complete is not None:
                    on_complete(exc_info)
                raise
            if on_complete is not None and handle is not None:
                on_complete(handle)
            return handle

        return self._executor.submit(_export)

    def cleanup(self) -> None:
        """Wait for pending exports, then remove a temporary scratch directory."""
        self._executor.shutdown(wait=True)
        if self._owns_root:
            shutil.rmtree(self.root, ignore_errors=True)
