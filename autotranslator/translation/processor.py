"""
Translation Processing Module

Contains the per-entry translation pipeline:
- Skip rules (skip-list keys, language-name values)
- Delimiter unwrapping and re-wrapping
- Per-unit cache lookup, protection, translation, refinement and restoration
- Post-processing normalizers
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from autotranslator.ai.service import ProviderGateway
from autotranslator.core.files import LanguageEntry
from autotranslator.logger import get_logger
from autotranslator.protection import identify_placeholders, protect, protect_inline_tags, restore
from autotranslator.protection.placeholders import ProtectedToken, remap_placeholders_after_translation
from autotranslator.translation import segmenter
from autotranslator.translation.cache import TranslationCache
from autotranslator.translation.progress import TranslationProgress
from autotranslator.translation.utils import (
    PIPE_DELIMITER,
    collapse_whitespace_between_newlines,
    ensure_three_pipes,
    localize_quotes,
    replace_lone_backslashes,
)
from autotranslator.translation.validator import has_leftover_markers, validate_placeholders_preserved

logger = get_logger(__name__)

DEFAULT_SKIP_KEYS = ("quest.authors", "quest.authors_short")


@dataclass
class EntryFrame:
    """Delimiters and whitespace removed from a value before translation."""
    outer_leading: str = ""
    outer_trailing: str = ""
    wrapped: bool = False
    inner_leading: str = ""
    inner_trailing: str = ""

    def wrap(self, core: str) -> str:
        """Re-apply the frame; a delimited value always comes back as |||...|||."""
        if self.wrapped:
            return (
                self.outer_leading + PIPE_DELIMITER + self.inner_leading + core
                + self.inner_trailing + PIPE_DELIMITER + self.outer_trailing
            )
        return self.outer_leading + core + self.outer_trailing


def unwrap(value: str) -> Tuple[EntryFrame, str]:
    """
    Split a raw value into its frame and the text to translate.

    A value is delimited when it is enclosed in a pair of straight double
    quotes or starts with a run of pipes (a trailing pipe run is removed too).
    Trailing pipes alone do not count as a delimiter.

    Example:
        >>> frame, core = unwrap('  ||| Run! |||')
        >>> core, frame.wrapped, frame.outer_leading, frame.inner_leading
        ('Run!', True, '  ', ' ')
    """
    frame = EntryFrame()
    if not value:
        return frame, value

    stripped = value.strip()
    frame.outer_leading = value[:len(value) - len(value.lstrip())]
    frame.outer_trailing = value[len(value.rstrip()):] if stripped else ""

    core = stripped
    if len(core) >= 2 and core.startswith('"') and core.endswith('"'):
        core = core[1:-1]
        frame.wrapped = True
    elif core.startswith("|"):
        core = core.lstrip("|").rstrip("|")
        frame.wrapped = True

    if frame.wrapped:
        inner = core.strip()
        frame.inner_leading = core[:len(core) - len(core.lstrip())]
        frame.inner_trailing = core[len(core.rstrip()):] if inner else ""
        core = inner

    return frame, core


class TranslationProcessor:
    """Translates LanguageEntry values one at a time, in order."""

    def __init__(
        self,
        gateway: Optional[ProviderGateway],
        cache: Optional[TranslationCache] = None,
        source_language_name: str = "English",
        target_language_name: str = "German",
        target_language: str = "de",
        skip_keys: Sequence[str] = DEFAULT_SKIP_KEYS,
        translate: bool = True,
        segment_sentences: bool = True,
        progress: Optional[TranslationProgress] = None,
        log: Optional[logging.Logger] = None,
    ):
        """
        Args:
            gateway: Provider gateway (None disables every provider call)
            cache: Translation cache (None disables caching)
            source_language_name: Values equal to this become target_language_name
            target_language_name: Replacement for source_language_name values
            target_language: Target language code, selects quotation marks
            skip_keys: Keys whose values are copied unchanged
            translate: Whether the machine-translation step runs
            segment_sentences: Split values into sentences before translating
            progress: Statistics object updated while processing
            log: Optional logger (module logger by default)
        """
        self.gateway = gateway
        self.cache = cache
        self.source_language_name = source_language_name
        self.target_language_name = target_language_name
        self.target_language = target_language
        self.skip_keys = set(skip_keys)
        self.translate = translate
        self.segment_sentences = segment_sentences
        self.progress = progress or TranslationProgress(file_name="")
        self.logger = log or logger

    def process_entries(self, entries: Iterable[LanguageEntry]) -> List[LanguageEntry]:
        """Translate every entry in place and return them in input order."""
        entries = list(entries)
        self.progress.total_entries += len(entries)

        for entry in entries:
            entry.value = self.translate_value(entry.key, entry.value)
            self.progress.processed_entries += 1
        return entries

    def translate_value(self, key: str, value: str) -> str:
        """
        Run one value through the pipeline.

        Args:
            key: Entry key (skip-list match, context selection, logging)
            value: Raw value as read from the file

        Returns:
            Final value for the output file
        """
        self.progress.current_key = key

        if value == self.source_language_name:
            self.progress.skipped_entries += 1
            return self.target_language_name

        if key in self.skip_keys:
            self.logger.info(f"Skipping translation for key: {key}")
            self.progress.skipped_entries += 1
            return value

        frame, core = unwrap(value)
        tokens = identify_placeholders(core)

        if self.segment_sentences:
            units = segmenter.split(core)
        else:
            units = [core] if core.strip() else []

        translated_units = [self._translate_unit(key, unit) for unit in units]
        result = frame.wrap(segmenter.join(translated_units))
        result = self._normalize(key, result, core, tokens)

        self.logger.debug(f"Finished all operations for key: {key}")
        return result

    def _translate_unit(self, key: str, unit: str) -> str:
        if not segmenter.is_translatable(unit):
            return unit

        if self.cache is not None:
            cached, found = self.cache.try_get(unit)
            if found:
                self.logger.info(f"Using cached value for: {unit}")
                self.progress.cache_hits += 1
                return cached

        if self.gateway is None:
            return unit

        text = unit
        provider_succeeded = False

        if self.translate:
            provider = self.gateway.provider
            protected = protect(protect_inline_tags(unit, provider), provider, self.logger)
            result = self.gateway.translate(protected, key)
            if result.failed:
                self.progress.provider_failures += 1
                return unit
            text = restore(result.text).strip()
            if has_leftover_markers(text):
                self.logger.warning(f"Provider output for key {key} still contains no-translate markup: {text}")
            provider_succeeded = True
            self.progress.translated_units += 1

        if self.gateway.should_refine(key, text):
            refined = self.gateway.refine(key, text)
            if not refined.failed:
                text = restore(refined.text).strip()
                provider_succeeded = True
                self.progress.llm_refinements += 1

        if provider_succeeded and self.cache is not None:
            self.cache.put(unit, text)
        return text

    def _normalize(self, key: str, value: str, source_core: str, tokens: List[ProtectedToken]) -> str:
        value = ensure_three_pipes(value)
        value = remap_placeholders_after_translation(value, tokens, self.logger)

        valid, reason = validate_placeholders_preserved(source_core, value)
        if not valid:
            self.progress.placeholder_mismatches += 1
            self.logger.warning(f"Placeholder check failed for key {key}: {reason}")

        value = localize_quotes(value, self.target_language)
        value = replace_lone_backslashes(value)
        value = collapse_whitespace_between_newlines(value)
        if self.gateway is not None:
            value = self.gateway.cleanup(value)
        return value
