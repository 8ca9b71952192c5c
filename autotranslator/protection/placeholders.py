"""
Placeholder and Inline Tag Protection

This module makes a string safe to send to a translation provider:
- Curly-brace placeholders ({name}) and literal double quotes are wrapped in
  the provider's no-translate marker.
- The delimiters of <i>/<b> elements are wrapped, their content is not.
- After translation the markers are stripped again and placeholders that the
  provider altered are mapped back to their original spelling by position.

All functions are pure string transformations and never raise on malformed
input.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from autotranslator.ai.models import ProviderKind
from autotranslator.logger import get_logger
from autotranslator.protection.markers import strip_markers_once, wrap_no_translate

logger = get_logger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]+?)\}")

# An existing marker (kept as is), a placeholder or a single double quote,
# matched in one left-to-right pass
PROTECTED_SPAN_PATTERN = re.compile(
    r"(?P<marker><keep>.*?</keep>|<mstrans:dictionary[^>]*>.*?</mstrans:dictionary>)"
    r"|\{[^{}]+?\}|\"",
    re.DOTALL | re.IGNORECASE,
)

INLINE_TAG_PATTERNS = [
    re.compile(r"(<i>)(.*?)(</i>)", re.DOTALL | re.IGNORECASE),
    re.compile(r"(<b>)(.*?)(</b>)", re.DOTALL | re.IGNORECASE),
]


@dataclass(frozen=True)
class ProtectedToken:
    """One curly-brace placeholder found in a working string."""
    index: int          # 1-based position among the placeholders
    word: str           # text between the braces
    start_offset: int   # start index in the string
    end_offset: int     # end index in the string (exclusive)

    @property
    def placeholder(self) -> str:
        return "{" + self.word + "}"


def identify_placeholders(text: str) -> List[ProtectedToken]:
    """
    Find all curly-brace placeholders in text.

    Args:
        text: Text to scan

    Returns:
        Tokens in left-to-right order with 1-based indices

    Example:
        >>> [t.word for t in identify_placeholders("Hi {name}, you have {count} items")]
        ['name', 'count']
    """
    if not text:
        return []

    return [
        ProtectedToken(
            index=position,
            word=match.group(1),
            start_offset=match.start(),
            end_offset=match.end(),
        )
        for position, match in enumerate(PLACEHOLDER_PATTERN.finditer(text), start=1)
    ]


def protect(text: str, provider: ProviderKind, log: Optional[logging.Logger] = None) -> str:
    """
    Wrap every placeholder and every double quote in a no-translate marker.

    Each occurrence is wrapped exactly once; markup added by a marker is never
    scanned again, and markers already present (e.g. from protect_inline_tags)
    are left untouched.

    Args:
        text: Text to protect
        provider: Active machine-translation provider (selects marker syntax)
        log: Optional logger (module logger by default)

    Returns:
        Protected text
    """
    if not text:
        return text

    log = log or logger
    wrapped_values: List[str] = []

    def _wrap(match: re.Match) -> str:
        value = match.group(0)
        if match.group("marker"):
            return value
        if value not in wrapped_values:
            wrapped_values.append(value)
        return wrap_no_translate(value, provider)

    protected_text = PROTECTED_SPAN_PATTERN.sub(_wrap, text)

    if wrapped_values:
        log.debug(f"Protected {len(wrapped_values)} distinct value(s): {wrapped_values}")

    return protected_text


def protect_inline_tags(text: str, provider: ProviderKind = ProviderKind.DEEPL) -> str:
    """
    Wrap the opening and closing delimiters of <i> and <b> elements.

    The element content stays translatable.

    Example:
        >>> protect_inline_tags("a <i>b</i>")
        'a <keep><i></keep>b<keep></i></keep>'
    """
    if not text:
        return text

    def _wrap(match: re.Match) -> str:
        return (
            wrap_no_translate(match.group(1), provider)
            + match.group(2)
            + wrap_no_translate(match.group(3), provider)
        )

    for pattern in INLINE_TAG_PATTERNS:
        text = pattern.sub(_wrap, text)
    return text


def restore(text: str) -> str:
    """
    Strip all no-translate markers, keeping their inner content.

    Runs until nothing changes, so restore(restore(x)) == restore(x).
    """
    if not text:
        return text

    # Each pass that changes the text shortens it, so the loop ends
    while True:
        stripped = strip_markers_once(text)
        if stripped == text:
            return text
        text = stripped


def remap_placeholders_after_translation(
    translated_text: str,
    original_tokens: List[ProtectedToken],
    log: Optional[logging.Logger] = None,
) -> str:
    """
    Put the original placeholder words back into translated text.

    The provider may change the spelling or case of a placeholder. Every
    {...} found in the translated text is replaced, in order, with the
    original token at the same ordinal position. Only min(found, original)
    pairs are replaced.

    Args:
        translated_text: Text returned by the provider (markers removed)
        original_tokens: Tokens identified before translation
        log: Optional logger (module logger by default)

    Returns:
        Text with original placeholder words restored
    """
    if not translated_text or not original_tokens:
        return translated_text

    log = log or logger
    matches = list(PLACEHOLDER_PATTERN.finditer(translated_text))

    if len(matches) < len(original_tokens):
        missing = [t.placeholder for t in original_tokens[len(matches):]]
        log.warning(
            f"Translation returned {len(matches)} of {len(original_tokens)} placeholders; "
            f"not restored: {', '.join(missing)}"
        )

    if not matches:
        return translated_text

    replace_count = min(len(matches), len(original_tokens))
    offset = 0
    for i in range(replace_count):
        match = matches[i]
        replacement = original_tokens[i].placeholder
        start = match.start() + offset
        end = match.end() + offset
        translated_text = translated_text[:start] + replacement + translated_text[end:]
        offset += len(replacement) - (match.end() - match.start())

    return translated_text
