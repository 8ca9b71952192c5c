"""
Translation Validation Module

Contains validation functions for checking that structural markup survived:
- Placeholder preservation checks
- Leftover no-translate marker detection
"""

import re
from typing import List, Optional, Set, Tuple

from autotranslator.logger import get_logger
from autotranslator.protection.markers import DICTIONARY_PATTERN, STRAY_KEEP_PATTERN
from autotranslator.protection.placeholders import PLACEHOLDER_PATTERN

logger = get_logger(__name__)


def extract_placeholders(text: str) -> List[str]:
    """
    Extract the words of all {...} placeholders, in order.

    Args:
        text: Text to extract placeholders from

    Returns:
        List of placeholder words (duplicates kept)
    """
    if not text:
        return []
    return PLACEHOLDER_PATTERN.findall(text)


def extract_variables(text: str) -> Set[str]:
    """Distinct placeholder words in text."""
    return set(extract_placeholders(text))


def validate_placeholders_preserved(source: str, translation: str) -> Tuple[bool, Optional[str]]:
    """
    Check that the translation carries the same placeholders as the source, in order.

    Args:
        source: Original value
        translation: Final translated value

    Returns:
        Tuple of (is_valid, error_reason)
    """
    source_words = extract_placeholders(source)
    translation_words = extract_placeholders(translation)

    if source_words == translation_words:
        return True, None

    if len(translation_words) < len(source_words):
        missing = extract_variables(source) - extract_variables(translation)
        detail = ','.join(sorted(missing)) if missing else str(len(source_words) - len(translation_words))
        return False, f"placeholders_lost:{detail}"

    extra = extract_variables(translation) - extract_variables(source)
    if extra:
        return False, f"placeholders_added:{','.join(sorted(extra))}"
    return False, "placeholders_reordered"


def has_leftover_markers(text: str) -> bool:
    """True if a no-translate marker survived restoration."""
    if not text:
        return False
    return bool(STRAY_KEEP_PATTERN.search(text) or DICTIONARY_PATTERN.search(text)
                or re.search(r"</?mstrans:dictionary", text, re.IGNORECASE))
