"""
Language code mappings and utilities.

Standards:
- ISO 639-1: 2-letter language codes (en, de, fr)
- BCP 47: Language + Region codes (en-US, pt-BR)

Valkyrie names its language columns and files by English language name
("English", "German"), while the providers expect codes. The helpers here
map codes to those names and pick the quotation marks each target language uses.
"""

from typing import Dict, Optional, Tuple

# Languages shipped with Valkyrie scenarios, keyed by ISO 639-1 code
VALKYRIE_LANGUAGES = {
    'cs': 'Czech',
    'de': 'German',
    'en': 'English',
    'es': 'Spanish',
    'fr': 'French',
    'it': 'Italian',
    'ja': 'Japanese',
    'ko': 'Korean',
    'nl': 'Dutch',
    'pl': 'Polish',
    'pt': 'Portuguese',
    'ru': 'Russian',
    'uk': 'Ukrainian',
    'zh': 'Chinese',
}

# Opening and closing quotation marks per base language
DEFAULT_QUOTE_PAIR = ('“', '”')
QUOTE_PAIRS: Dict[str, Tuple[str, str]] = {
    'de': ('„', '“'),
    'fr': ('«', '»'),
    'es': ('«', '»'),
    'it': ('«', '»'),
    'ru': ('«', '»'),
    'pt': ('«', '»'),
    'pl': ('„', '”'),
    'en': ('“', '”'),
}


def extract_base_language(code: str) -> str:
    """
    Extract base language from code (remove region), lower-cased.

    Examples:
        >>> extract_base_language('PT-BR')
        'pt'
        >>> extract_base_language('fr')
        'fr'
    """
    return code.split('-')[0].lower()


def get_language_name(code: str) -> Optional[str]:
    """
    Get the Valkyrie language name for a code; the region part is ignored.

    Args:
        code: Language code

    Returns:
        Language name or None if unknown

    Examples:
        >>> get_language_name('de')
        'German'
        >>> get_language_name('pt-BR')
        'Portuguese'
    """
    if not code:
        return None
    return VALKYRIE_LANGUAGES.get(extract_base_language(code))


def get_quote_pair(code: str) -> Tuple[str, str]:
    """
    Get the (opening, closing) quotation marks used by a language.

    Unknown languages get English curly quotes.

    Examples:
        >>> get_quote_pair('de-DE')
        ('„', '“')
        >>> get_quote_pair('ja')
        ('“', '”')
    """
    if not code:
        return DEFAULT_QUOTE_PAIR
    return QUOTE_PAIRS.get(extract_base_language(code), DEFAULT_QUOTE_PAIR)
