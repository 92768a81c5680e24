"""Discovery of configuration files under a directory tree."""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Iterator

from tightrope.types import SUPPORTED_EXTENSIONS

logger = logging.getLogger(__name__)


def _extension(path: str) -> str:
    name = os.path.basename(path)
    index = name.rfind(".")
    return name[index:].lower() if index >= 0 else ""


class Walker:
    """Finds files with a supported configuration extension."""

    def __init__(self) -> None:
        self.extensions = frozenset(SUPPORTED_EXTENSIONS)

    def walk(self, root_path: str | os.PathLike[str]) -> list[str]:
        """Return the configuration files under root_path in lexical order."""
        root = os.fspath(root_path)
        files = list(self._iter_files(root))
        logger.info("Directory walk completed: %d files under %s", len(files), root)
        return files

    def _iter_files(self, path: str) -> Iterator[str]:
        try:
            info = os.lstat(path)
        except OSError as exc:
            logger.warning("Error accessing path during walk %s: %s", path, exc)
            return

        if not stat.S_ISDIR(info.st_mode):
            if os.path.basename(path).startswith("."):
                return
            if self.is_config_file(path):
                logger.debug("Found configuration file %s (%s)", path, _extension(path))
                yield path
            return

        try:
            names = sorted(os.listdir(path))
        except OSError as exc:
            logger.warning("Error accessing path during walk %s: %s", path, exc)
            return
        for name in names:
            yield from self._iter_files(os.path.normpath(os.path.join(path, name)))

    def is_config_file(self, filename: str | os.PathLike[str]) -> bool:
        """Whether the file name has a supported extension."""
        return _extension(os.fspath(filename)) in self.extensions


def get_relative_path(root: str | os.PathLike[str], target: str | os.PathLike[str]) -> str:
    """Return target relative to root, both made absolute first."""
    return os.path.relpath(os.path.abspath(target), os.path.abspath(root))