"""
No-translate marker syntax per provider.

DeepL is called with tag_handling=xml and ignore_tags=keep, so anything inside
<keep>...</keep> is passed through untouched. Azure Translator honours its
dictionary element, which carries the literal text and its fixed translation.
"""

import html
import re

from autotranslator.ai.models import ProviderKind

KEEP_TAG = "keep"

KEEP_PATTERN = re.compile(r"<keep>(.*?)</keep>", re.DOTALL | re.IGNORECASE)
STRAY_KEEP_PATTERN = re.compile(r"</?keep>", re.IGNORECASE)
DICTIONARY_PATTERN = re.compile(
    r"<mstrans:dictionary[^>]*>(.*?)</mstrans:dictionary>", re.DOTALL | re.IGNORECASE
)


def wrap_keep(value: str) -> str:
    return f"<{KEEP_TAG}>{value}</{KEEP_TAG}>"


def wrap_dictionary(value: str) -> str:
    translation = html.escape(value, quote=True)
    return f'<mstrans:dictionary translation="{translation}">{value}</mstrans:dictionary>'


def wrap_no_translate(value: str, provider: ProviderKind) -> str:
    """Wrap value in the no-translate marker understood by the provider."""
    if ProviderKind(provider) == ProviderKind.AZURE:
        return wrap_dictionary(value)
    return wrap_keep(value)


def strip_markers_once(text: str) -> str:
    """Remove one layer of every known marker, keeping the inner content."""
    text = KEEP_PATTERN.sub(r"\1", text)
    text = DICTIONARY_PATTERN.sub(r"\1", text)
    text = STRAY_KEEP_PATTERN.sub("", text)
    return text
