"""Check that files sit in the folder matching their frame size and type."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from .attributes import NamePatterns, ParseFailure, extract_file_attributes, extract_folder_attributes
from .config import FRAME_TYPE
from .events import Op, RawChangeEvent
from .matcher import UnknownType, check

if TYPE_CHECKING:
    from .alerts import AlertSink
    from .config import WatcherConfig

TITLE_INVALID_NAME = "INVALID NAME"
TITLE_INVALID_FOLDER_NAME = "INVALID FOLDER NAME"
TITLE_UNKNOWN_FRAME_TYPE = "UNKNOWN FRAME TYPE"
TITLE_WRONG_FOLDER = "WRONG FOLDER"


class FolderChecker:
    """Watch loop callback that alerts on misplaced or misnamed files."""

    def __init__(self, config: WatcherConfig, sink: AlertSink, logger: logging.Logger) -> None:
        """Initialize the checker.

        Args:
            config: Watcher configuration with name patterns and mapping.
            sink: Where alerts are sent.
            logger: Logger instance.

        """
        self.sink = sink
        self.logger = logger
        self.frame_type_mapping = config.frame_type_mapping
        self._folder_patterns = NamePatterns(config.folder_name_patterns)
        self._file_patterns = NamePatterns(config.file_name_patterns)

    def __call__(self, event: RawChangeEvent) -> bool:
        """Check the file behind a change event.

        Returns:
            True if an alert was raised.

        """
        if event.is_directory or not event.has_op(Op.CREATE | Op.WRITE):
            return False
        return self.check_path(event.path)

    def check_path(self, path: Path) -> bool:
        """Check a single file against its parent folder.

        Args:
            path: File to check.

        Returns:
            True if an alert was raised.

        """
        file_attrs = extract_file_attributes(path.name, self._file_patterns)
        if isinstance(file_attrs, ParseFailure):
            return self._raise_alert(TITLE_INVALID_NAME, f'{file_attrs.kind}: "{path}"')

        folder_name = path.parent.name
        folder_attrs = extract_folder_attributes(folder_name, self._folder_patterns)
        if isinstance(folder_attrs, ParseFailure):
            return self._raise_alert(TITLE_INVALID_FOLDER_NAME, f'{folder_attrs.kind}: "{path}"')

        result = check(file_attrs, folder_attrs, self.frame_type_mapping)
        if isinstance(result, UnknownType):
            return self._raise_alert(
                TITLE_UNKNOWN_FRAME_TYPE,
                f'unknown frame type abbreviation "{file_attrs[FRAME_TYPE]}": "{path}"',
            )

        if not result.is_match:
            return self._raise_alert(
                TITLE_WRONG_FOLDER,
                f'should be placed in {result.suggestion_text()} instead of "{folder_name}": "{path}"',
            )

        self.logger.debug("CORRECT FOLDER %r: %r", folder_name, str(path))
        return False

    def _raise_alert(self, title: str, message: str) -> bool:
        self.logger.info("<< %s >> %s", title, message)
        try:
            shown = self.sink.alert(title, message)
        except OSError:
            self.logger.warning("Failed to display %r alert", title, exc_info=True)
            return True
        if not shown:
            self.logger.warning("Failed to display %r alert", title)
        return True
