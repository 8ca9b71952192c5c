"""
Sentence Segmenter

Splits a working string into units small enough to translate and cache one
at a time, and joins them back. Escaped newlines (a literal backslash followed
by n, as stored in the CSV files) and <i>/<b> delimiters become their own
units, together with the whitespace around them, so reassembly restores the
original spacing next to markup.
"""

import re
from typing import List

# Runs of escaped newlines, padding included
NEWLINE_RUN = r"\s*(?:\\n\s*)+"
# A single inline tag delimiter, padding included
TAG_DELIMITER = r"\s*</?[ib]>\s*"

SEPARATOR_PATTERN = re.compile(rf"({NEWLINE_RUN}|{TAG_DELIMITER})", re.IGNORECASE)
# Sentence end followed by whitespace, unless still inside a {placeholder}
SENTENCE_END_PATTERN = re.compile(r"(?<=[.!?])\s+(?![^{}]*\})")

MARKUP_PATTERN = re.compile(rf"^(?:{NEWLINE_RUN}|{TAG_DELIMITER})$", re.IGNORECASE)
STRIP_PATTERN = re.compile(r"\\n|</?[ib]>", re.IGNORECASE)
LETTER_PATTERN = re.compile(r"[^\W\d_]")


def split(text: str) -> List[str]:
    """
    Split text into sentence, newline and tag units.

    Args:
        text: Working string (delimiters already removed)

    Returns:
        Units in order; empty or whitespace-only units are dropped

    Example:
        >>> split("Run! Hide.\\\\nThen <b>fight</b>.")
        ['Run!', 'Hide.', '\\\\n', 'Then', ' <b>', 'fight', '</b>', '.']
    """
    if not text:
        return []

    units: List[str] = []
    for piece in SEPARATOR_PATTERN.split(text):
        if not piece or not piece.strip():
            continue
        if MARKUP_PATTERN.match(piece):
            units.append(piece)
            continue
        for sentence in SENTENCE_END_PATTERN.split(piece):
            sentence = sentence.strip()
            if sentence:
                units.append(sentence)
    return units


def is_markup(unit: str) -> bool:
    """True for a bare tag delimiter or escaped-newline run."""
    return bool(unit) and bool(MARKUP_PATTERN.match(unit))


def is_translatable(unit: str) -> bool:
    """True when letters remain after removing escaped newlines and tag delimiters."""
    if not unit:
        return False
    return bool(LETTER_PATTERN.search(STRIP_PATTERN.sub("", unit)))


def join(units: List[str]) -> str:
    """
    Concatenate units, putting one space between two adjacent text units.

    No space is inserted next to a tag delimiter or newline run; those units
    carry their own surrounding whitespace.
    """
    parts: List[str] = []
    previous_is_text = False
    for unit in units:
        current_is_text = not is_markup(unit)
        if parts and previous_is_text and current_is_text:
            parts.append(" ")
        parts.append(unit)
        previous_is_text = current_is_text
    return "".join(parts)
