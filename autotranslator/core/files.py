"""
CSV file access for language files, the translation cache and glossaries.

Language files are plain "key,value" lines split on the first delimiter, the
way Valkyrie stores them; values may themselves contain the delimiter and are
never quoted. The cache file is a regular quoted CSV with a Key,Value header.
"""

import csv
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Tuple, Union

from autotranslator.logger import get_logger

logger = get_logger(__name__)

# Only CR, LF and CRLF end a row; other Unicode line separators belong to the value
LINE_BREAK_PATTERN = re.compile(r"\r\n|\r|\n")

CACHE_HEADERS = ["Key", "Value"]
OUTPUT_LINE_SEPARATOR = "\n"

PathLike = Union[str, Path]


class MalformedRowError(Exception):
    """An input line has no key/value separator."""

    def __init__(self, message: str, line_number: int = 0, line: str = ""):
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class GlossaryError(Exception):
    """The glossary file cannot be used for the configured languages."""


@dataclass
class LanguageEntry:
    """One localization row."""
    key: str
    value: str


def resolve_input_files(input_path: PathLike, input_file_name: str) -> List[Path]:
    """
    Resolve the configured input name to a list of files.

    A name starting with '*' selects every file with that extension in
    input_path (sorted by name); anything else names a single file.

    Raises:
        ValueError: If a wildcard name carries no extension
    """
    directory = Path(input_path)

    if input_file_name.startswith("*"):
        extension = Path(input_file_name).suffix
        if not extension:
            raise ValueError(f"Input file name {input_file_name!r} does not contain a valid extension")
        files = sorted(p for p in directory.glob(f"*{extension}") if p.is_file())
        logger.debug(f"Found {len(files)} input file(s) matching *{extension} in {directory}")
        return files

    return [directory / input_file_name]


def read_language_file(path: PathLike, delimiter: str = ",") -> List[LanguageEntry]:
    """
    Read a language file into entries.

    Blank lines are skipped. Every other line must contain the delimiter.

    Raises:
        MalformedRowError: On the first line without a delimiter
    """
    path = Path(path)
    entries: List[LanguageEntry] = []

    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        content = f.read()

    for line_number, line in enumerate(LINE_BREAK_PATTERN.split(content), start=1):
        if not line.strip():
            continue
        parts = line.split(delimiter, 1)
        if len(parts) < 2:
            raise MalformedRowError(
                f"Line {line_number} of {path.name} is not valid: {line!r}. Please ensure the key and "
                f"the value are split by {delimiter!r} (e.g. quest.name{delimiter}The Shadow Rune)",
                line_number=line_number,
                line=line,
            )
        entries.append(LanguageEntry(key=parts[0], value=parts[1]))

    logger.debug(f"Read {len(entries)} entries from {path}")
    return entries


def build_output_path(output_dir: PathLike, input_file_name: str, suffix: str) -> Path:
    """Output file name is the input stem plus suffix, keeping the extension."""
    name = Path(input_file_name)
    return Path(output_dir) / f"{name.stem}{suffix}{name.suffix}"


def write_language_file(
    entries: Iterable[LanguageEntry],
    output_dir: PathLike,
    input_file_name: str,
    suffix: str,
    delimiter: str = ",",
) -> Path:
    """
    Write entries as raw "key<delimiter>value" lines.

    Returns:
        Path of the written file
    """
    output_path = build_output_path(output_dir, input_file_name, suffix)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    lines = [f"{entry.key}{delimiter}{entry.value}" for entry in entries]
    with open(output_path, "w", encoding="utf-8", newline="") as f:
        f.write(OUTPUT_LINE_SEPARATOR.join(lines))

    logger.debug(f"Wrote {len(lines)} entries to {output_path}")
    return output_path


def read_cache_file(path: PathLike, delimiter: str = ",") -> List[Tuple[str, str]]:
    """
    Read Key/Value pairs from a cache file.

    Rows with an empty key or value are skipped.

    Raises:
        csv.Error, OSError, UnicodeDecodeError: On unreadable content
    """
    pairs: List[Tuple[str, str]] = []
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        reader = csv.reader(f, delimiter=delimiter, strict=True)
        for row_number, row in enumerate(reader):
            if not row:
                continue
            if row_number == 0 and row == CACHE_HEADERS:
                continue
            if len(row) != 2:
                raise csv.Error(f"Row {row_number + 1} has {len(row)} fields, expected 2")
            key, value = row
            if key.strip() and value.strip():
                pairs.append((key, value))
    return pairs


def write_cache_file(path: PathLike, pairs: Iterable[Tuple[str, str]], delimiter: str = ",") -> int:
    """
    Write Key/Value pairs to a cache file, all fields quoted.

    The data goes to a temporary file in the same directory first and
    replaces the target only once fully written.

    Returns:
        Number of rows written
    """
    path = Path(path)
    count = 0
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, delimiter=delimiter, quoting=csv.QUOTE_ALL, lineterminator="\n")
            writer.writerow(CACHE_HEADERS)
            for key, value in pairs:
                writer.writerow([key, value])
                count += 1
        os.replace(temp_name, path)
    except BaseException:
        if os.path.exists(temp_name):
            os.unlink(temp_name)
        raise
    return count


def read_glossary_file(
    path: PathLike,
    source_language_name: str,
    target_language_name: str,
    delimiter: str = ",",
) -> List[Tuple[str, str]]:
    """
    Read source/target term pairs from a multi-language glossary CSV.

    The header row names the languages; the source and target columns are
    located by case-insensitive language name.

    Raises:
        GlossaryError: If either language column is missing
    """
    pairs: List[Tuple[str, str]] = []
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        reader = csv.reader(f, delimiter=delimiter)
        header = next(reader, None)
        if not header:
            raise GlossaryError(f"Glossary file {path} is empty")

        lowered = [h.strip().lower() for h in header]
        try:
            source_index = lowered.index(source_language_name.lower())
            target_index = lowered.index(target_language_name.lower())
        except ValueError:
            raise GlossaryError(
                f"Source or target language column not found. "
                f"Source: {source_language_name}, Target: {target_language_name}"
            )

        for row in reader:
            if len(row) <= max(source_index, target_index):
                continue
            source_value = row[source_index]
            target_value = row[target_index]
            if source_value and target_value:
                pairs.append((source_value, target_value))

    logger.info(f"Loaded {len(pairs)} glossary entries from {path}")
    return pairs
