"""
Translation Cache

Maps source text to its translation across runs. Keys are normalized
(trimmed, case-folded) so "Hello " and "hello" share one entry. The cache is
read once when a file starts and written once when it finishes.
"""

import csv
import logging
import shutil
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from autotranslator.core.files import read_cache_file, write_cache_file
from autotranslator.logger import get_logger

logger = get_logger(__name__)


def normalize_key(source_text: str) -> str:
    return source_text.strip().casefold()


class TranslationCache:
    """In-memory translation cache with optional CSV storage."""

    def __init__(
        self,
        storage_path: Optional[Union[str, Path]] = None,
        delimiter: str = ",",
        log: Optional[logging.Logger] = None,
    ):
        """
        Args:
            storage_path: Cache file; None keeps the cache in memory only
            delimiter: CSV delimiter of the cache file
            log: Optional logger (module logger by default)
        """
        self.storage_path = Path(storage_path) if storage_path else None
        self.delimiter = delimiter
        self.logger = log or logger
        self._entries: Dict[str, Tuple[str, str]] = {}

    @classmethod
    def load(
        cls,
        directory: Optional[Union[str, Path]],
        file_name: str,
        delimiter: str = ",",
        log: Optional[logging.Logger] = None,
    ) -> "TranslationCache":
        """
        Load the cache file from directory, creating it when absent.

        A missing directory disables storage for this run. An unreadable or
        malformed file yields an empty cache; the file is left alone until
        save() replaces it.
        """
        log = log or logger

        if not directory:
            return cls(None, delimiter, log)

        directory = Path(directory)
        if not directory.is_dir():
            log.error(f"Translation cache directory does not exist: {directory}. Caching is disabled for this run.")
            return cls(None, delimiter, log)

        path = directory / file_name
        cache = cls(path, delimiter, log)

        try:
            if not path.exists():
                path.touch()
                log.info(f"Created empty translation cache file: {path}")
                return cache

            for source_text, translated_text in read_cache_file(path, delimiter):
                cache.put(source_text, translated_text)
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            log.warning(f"Failed to load translation cache from {path}: {e}. Starting with an empty cache.")
            cache._entries.clear()
            cache._keep_copy_of_unreadable_file()
            return cache

        log.info(f"Loaded {len(cache)} entries from translation cache file: {path}")
        return cache

    def _keep_copy_of_unreadable_file(self) -> None:
        """Copy an unreadable cache file aside so save() cannot destroy it."""
        if self.storage_path is None or not self.storage_path.exists():
            return
        backup_path = self.storage_path.with_name(self.storage_path.name + ".unreadable")
        try:
            shutil.copyfile(self.storage_path, backup_path)
            self.logger.warning(f"Kept a copy of the unreadable cache file at {backup_path}")
        except OSError as e:
            self.logger.error(f"Could not back up {self.storage_path}: {e}. Caching is disabled for this run.")
            self.storage_path = None

    def try_get(self, source_text: str) -> Tuple[Optional[str], bool]:
        """
        Look up a translation.

        Returns:
            Tuple of (translated_text, found)
        """
        if not source_text:
            return None, False
        entry = self._entries.get(normalize_key(source_text))
        if entry is None:
            return None, False
        return entry[1], True

    def put(self, source_text: str, translated_text: str) -> None:
        """Store a translation; empty values are ignored, last write wins."""
        if not source_text or not source_text.strip():
            return
        if not translated_text or not translated_text.strip():
            return
        self._entries[normalize_key(source_text)] = (source_text, translated_text)

    def all(self) -> List[Tuple[str, str]]:
        """All (source_text, translated_text) pairs in insertion order."""
        return list(self._entries.values())

    def save(self) -> int:
        """
        Write the whole cache to its file.

        Returns:
            Number of entries written (0 when storage is disabled)
        """
        if self.storage_path is None:
            self.logger.debug("Translation cache has no storage file, nothing to save")
            return 0

        try:
            count = write_cache_file(self.storage_path, self.all(), self.delimiter)
        except OSError as e:
            self.logger.error(f"Failed to save translation cache to {self.storage_path}: {e}")
            return 0

        self.logger.info(f"Saved {count} entries to translation cache file: {self.storage_path}")
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, source_text: str) -> bool:
        return self.try_get(source_text)[1]
