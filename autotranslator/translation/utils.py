"""
Post-processing normalizers applied to a reassembled translation.

Valkyrie values use escaped newlines (a literal backslash followed by n) and
mark text shown in a quote box with leading/trailing "|||". Providers tend to
damage both, so every entry passes through these helpers in a fixed order
(see TranslationProcessor._normalize).
"""

import re

from autotranslator import language_codes as lc

PIPE_DELIMITER = "|||"

# Leading whitespace, leading pipe run, middle, trailing pipe run, trailing whitespace
PIPE_FRAME_PATTERN = re.compile(r"^(\s*)(\|+)(.*?)(\|*)(\s*)$", re.DOTALL)
QUOTED_PHRASE_PATTERN = re.compile(r'"([^"]+?)"')
LONE_BACKSLASH_PATTERN = re.compile(r"\\(?!n)")
WHITESPACE_BETWEEN_NEWLINES_PATTERN = re.compile(r"(\\n)\s+(?=\\n)")


def ensure_three_pipes(value: str) -> str:
    """
    Normalize a pipe-delimited value to exactly three pipes on both ends.

    Values without leading pipes are returned unchanged. Whitespace outside
    the pipes is kept. The function is idempotent.

    Examples:
        >>> ensure_three_pipes('|Hallo||')
        '|||Hallo|||'
        >>> ensure_three_pipes('||||Hallo ')
        '|||Hallo||| '
        >>> ensure_three_pipes('Hallo|')
        'Hallo|'
    """
    if not value:
        return value
    match = PIPE_FRAME_PATTERN.match(value)
    if not match:
        return value
    leading, _, middle, _, trailing = match.groups()
    if not middle:
        return leading + PIPE_DELIMITER + trailing
    return leading + PIPE_DELIMITER + middle + PIPE_DELIMITER + trailing


def localize_quotes(value: str, language: str) -> str:
    """
    Replace pairs of straight double quotes with the target language's quotation marks.

    Examples:
        >>> localize_quotes('Er sagte "Hallo".', 'de')
        'Er sagte „Hallo“.'
    """
    if not value:
        return value
    open_quote, close_quote = lc.get_quote_pair(language)
    return QUOTED_PHRASE_PATTERN.sub(lambda m: open_quote + m.group(1) + close_quote, value)


def replace_lone_backslashes(value: str) -> str:
    """Turn every backslash not followed by 'n' into an escaped newline."""
    if not value:
        return value
    return LONE_BACKSLASH_PATTERN.sub(lambda m: "\\n", value)


def collapse_whitespace_between_newlines(value: str) -> str:
    r"""Remove whitespace between consecutive escaped newlines ("\n \n" -> "\n\n")."""
    if not value:
        return value
    return WHITESPACE_BETWEEN_NEWLINES_PATTERN.sub(r"\1", value)
