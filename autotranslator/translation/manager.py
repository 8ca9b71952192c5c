"""
Translation Manager Module

Main TranslationManager class that coordinates the translation workflow:
- Validate the configuration
- Prepare the DeepL glossary
- Translate every input file entry by entry
- Write the output files and persist the translation cache
"""

import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from autotranslator.ai.exceptions import ConfigurationError, TranslationError
from autotranslator.ai.models import ProviderKind
from autotranslator.ai.providers import DeepLTranslator, MachineTranslator
from autotranslator.ai.service import ProviderGateway, build_gateway, build_translator
from autotranslator.config import CACHE_FILE_NAME, describe_config, validate_config
from autotranslator.core.files import (
    GlossaryError,
    MalformedRowError,
    read_glossary_file,
    read_language_file,
    resolve_input_files,
    write_language_file,
)
from autotranslator.logger import get_logger, log_success
from autotranslator.translation.cache import TranslationCache, normalize_key
from autotranslator.translation.processor import DEFAULT_SKIP_KEYS, TranslationProcessor
from autotranslator.translation.progress import TranslationProgress

logger = get_logger(__name__)

# Characters a DeepL TSV glossary entry cannot contain
GLOSSARY_FORBIDDEN = ("\t", "\n", "\r", "\\n")


class TranslationManager:
    """Translates the configured language files."""

    def __init__(
        self,
        config: Dict[str, Any],
        translator: Optional[MachineTranslator] = None,
        sleep: Callable[[float], None] = time.sleep,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            config: Configuration dictionary (see config.DEFAULT_CONFIG)
            translator: Machine translator to use instead of the configured one
            sleep: Delay function used between provider retries
            transport: Optional httpx transport for every provider client

        Raises:
            ConfigurationError: If the configuration does not allow a run
        """
        validate_config(config)

        self.config = config
        self.translation_config = config.get('translation', {})
        self.cache_config = config.get('cache', {})
        self.io_config = config.get('file_input_output', {})
        self.delimiter = self.io_config.get('csv_delimiter', ',') or ','
        self.translate = bool(self.translation_config.get('translate'))
        self.provider = self.translation_config.get('provider', ProviderKind.DEEPL.value)

        self._sleep = sleep
        self._transport = transport
        if translator is None:
            try:
                translator = build_translator(config, transport)
            except TranslationError as e:
                raise ConfigurationError(str(e), code="provider_unknown",
                                         details={"provider": self.provider}) from e
        self.translator = translator
        self.glossary_id: Optional[str] = None
        self._gateway: Optional[ProviderGateway] = None
        self.results: List[TranslationProgress] = []

        logger.debug(f"Initialized translation manager with config: {describe_config(config)}")
        logger.info(
            f"translate={self.translate}, provider={self.provider}, "
            f"source={self.translation_config.get('source_language')}, "
            f"target={self.translation_config.get('target_language')}, "
            f"use_llm_api={config.get('llm', {}).get('use_llm_api', False)}, "
            f"use_translation_cache={self.cache_config.get('use_translation_cache', False)}"
        )

    @property
    def gateway(self) -> ProviderGateway:
        if self._gateway is None:
            self._gateway = build_gateway(
                self.config,
                translator=self.translator,
                glossary_id=self.glossary_id,
                sleep=self._sleep,
                transport=self._transport,
            )
        return self._gateway

    def _load_cache(self) -> Optional[TranslationCache]:
        if not self.cache_config.get('use_translation_cache'):
            return None
        return TranslationCache.load(
            self.cache_config.get('directory'),
            self.cache_config.get('file_name') or CACHE_FILE_NAME,
            self.delimiter,
        )

    def build_glossary_entries(self) -> List[Tuple[str, str]]:
        """
        Collect glossary pairs from the curated glossary file and, optionally, the cache.

        Curated entries win over cache entries with the same source text.
        Pairs a TSV glossary cannot hold (tabs, newlines) are dropped.

        Returns:
            List of (source, target) pairs
        """
        deepl_config = self.translation_config.get('deepl', {})
        candidates: List[Tuple[str, str]] = []

        glossary_path = deepl_config.get('glossary_file_path')
        if glossary_path:
            candidates.extend(read_glossary_file(
                glossary_path,
                self.translation_config.get('source_language_name', 'English'),
                self.translation_config.get('target_language_name', 'German'),
                self.delimiter,
            ))

        if self.cache_config.get('add_cache_to_dictionary'):
            cache = self._load_cache()
            if cache is not None:
                logger.info(f"Adding {len(cache)} translation cache entries to the glossary")
                candidates.extend(cache.all())

        entries: List[Tuple[str, str]] = []
        seen = set()
        dropped = 0
        for source, target in candidates:
            if not source.strip() or not target.strip():
                dropped += 1
                continue
            if any(c in source or c in target for c in GLOSSARY_FORBIDDEN):
                dropped += 1
                continue
            key = normalize_key(source)
            if key in seen:
                continue
            seen.add(key)
            entries.append((source, target))

        if dropped:
            logger.debug(f"Dropped {dropped} glossary entries that cannot be stored in a DeepL glossary")
        return entries

    def prepare_glossary(self) -> Optional[str]:
        """
        Create or look up the DeepL glossary used for this run.

        Glossary problems are logged and the run continues without a glossary.

        Returns:
            Glossary id, or None
        """
        if not self.translate or self.provider != ProviderKind.DEEPL.value:
            return None
        if not isinstance(self.translator, DeepLTranslator):
            return None

        deepl_config = self.translation_config.get('deepl', {})
        try:
            if deepl_config.get('update_glossary'):
                entries = self.build_glossary_entries()
                if not entries:
                    logger.warning("Glossary update requested, but no glossary entries were found")
                    return None
                glossary_id = self.translator.update_glossary(
                    delete_existing=deepl_config.get('delete_existing_glossaries', True),
                    source_lang=self.translation_config.get('source_language', 'en'),
                    target_lang=self.translation_config.get('target_language', 'de'),
                    entries=entries,
                    name=deepl_config.get('glossary_name') or "ValkyrieGlossary",
                )
                log_success(logger, f"Created DeepL glossary {glossary_id} with {len(entries)} entries")
            else:
                glossary_id = self.translator.get_glossary()
                if glossary_id:
                    logger.info(f"Using existing DeepL glossary {glossary_id}")
        except (GlossaryError, OSError) as e:
            logger.error(f"Failed to read glossary file: {e}. Continuing without glossary.")
            return None
        except TranslationError as e:
            logger.error(f"DeepL glossary request failed: {e}. Continuing without glossary.")
            return None

        self.glossary_id = glossary_id or None
        self._gateway = None
        return self.glossary_id

    def create_translated_files(self) -> List[TranslationProgress]:
        """
        Translate every configured input file.

        Returns:
            One TranslationProgress per file, in processing order
        """
        input_path = self.io_config.get('input_path', '.')
        input_file_name = self.io_config.get('input_file_name', '*.csv')

        try:
            files = resolve_input_files(input_path, input_file_name)
        except ValueError as e:
            logger.error(str(e))
            return []

        if not files:
            logger.warning(f"No input files matching {input_file_name} in {input_path}")
            return []

        self.prepare_glossary()

        self.results = []
        for path in files:
            self.results.append(self.create_translated_file(path))
        return self.results

    def create_translated_file(self, path: Path) -> TranslationProgress:
        """
        Translate one language file and write its translated copy.

        A malformed row or an unwritable output fails this file only. Cache
        progress is saved even when the output cannot be written.
        """
        path = Path(path)
        progress = TranslationProgress(file_name=path.name)
        logger.info(f"Start translating file {path.name}")

        try:
            entries = read_language_file(path, self.delimiter)
        except MalformedRowError as e:
            logger.error(f"Cannot translate {path.name}: {e}")
            progress.phase = "failed"
            return progress
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Cannot read {path}: {e}")
            progress.phase = "failed"
            return progress

        cache = self._load_cache()

        processor = TranslationProcessor(
            gateway=self.gateway,
            cache=cache,
            source_language_name=self.translation_config.get('source_language_name', 'English'),
            target_language_name=self.translation_config.get('target_language_name', 'German'),
            target_language=self.translation_config.get('target_language', 'de'),
            skip_keys=self.translation_config.get('skip_keys', DEFAULT_SKIP_KEYS),
            translate=self.translate,
            segment_sentences=self.translation_config.get('segment_sentences', True),
            progress=progress,
        )
        processor.process_entries(entries)

        progress.phase = "saving"
        try:
            output_path = write_language_file(
                entries,
                self.io_config.get('output_path', '.'),
                path.name,
                self.io_config.get('output_file_name_suffix', '_translated'),
                self.delimiter,
            )
        except OSError as e:
            logger.error(f"Cannot write the translation of {path.name}: {e}")
            output_path = None

        if cache is not None:
            cache.save()

        if self.gateway.refiner is not None:
            progress.token_usage = self.gateway.refiner.get_total_token_usage()

        if output_path is None:
            progress.phase = "failed"
            return progress

        progress.phase = "completed"
        log_success(
            logger,
            f"Finished translating file {path.name} -> {output_path}: "
            f"{progress.processed_entries} entries, {progress.skipped_entries} skipped, "
            f"{progress.translated_units} units translated, {progress.cache_hits} cache hits, "
            f"{progress.provider_failures} failures, {progress.llm_refinements} LLM refinements, "
            f"{progress.placeholder_mismatches} placeholder mismatches"
        )
        return progress
