"""
Provider Gateway Module

This module wraps the single-attempt provider calls from ai/providers.py:
- RetryPolicy for exponential backoff
- ProviderGateway for translate/refine calls that never raise on provider failure
- Factory functions building the gateway from configuration

For provider-specific API implementations, see ai/providers.py
"""

import logging
import re
import time
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

import httpx

from autotranslator.ai.exceptions import ProviderQuotaError, ProviderRateLimitError, TranslationError
from autotranslator.ai.models import ProviderKind, ProviderResult, TranslationOptions
from autotranslator.ai.providers import AzureTranslator, DeepLTranslator, DeepSeekRefiner, MachineTranslator
from autotranslator.logger import get_logger, log_success

logger = get_logger(__name__)

WHITESPACE_PATTERN = re.compile(r"\s")


class RetryPolicy:
    """Bounded exponential backoff: base_delay * 2**n between attempts."""

    def __init__(self, max_attempts: int = 5, base_delay: float = 1.0):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    def delays(self) -> Iterator[float]:
        """Yield the wait before each retry (max_attempts - 1 values)."""
        for n in range(self.max_attempts - 1):
            yield self.base_delay * (2 ** n)

    def __repr__(self) -> str:
        return f"RetryPolicy(max_attempts={self.max_attempts}, base_delay={self.base_delay})"


def _categorize_error(error: TranslationError) -> bool:
    """
    Decide whether a provider error is worth another attempt.

    Returns:
        True for transient failures (rate limits, timeouts, 5xx)
    """
    return isinstance(error, ProviderRateLimitError)


class ProviderGateway:
    """Routes text to the configured provider and degrades to the original text on failure."""

    def __init__(
        self,
        translator: MachineTranslator,
        options: TranslationOptions,
        source_lang: str,
        target_lang: str,
        retry_policy: Optional[RetryPolicy] = None,
        refiner: Optional[DeepSeekRefiner] = None,
        llm_prompt: str = "",
        keywords_default: Sequence[str] = (),
        keywords_activation: Sequence[str] = (),
        llm_retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        log: Optional[logging.Logger] = None,
    ):
        self.translator = translator
        self.options = options
        self.source_lang = source_lang
        self.target_lang = target_lang
        self.retry_policy = retry_policy or RetryPolicy()
        self.refiner = refiner
        self.llm_prompt = llm_prompt
        self.keywords_default = [k for k in keywords_default if k]
        self.keywords_activation = [k for k in keywords_activation if k]
        self.llm_retry_policy = llm_retry_policy or RetryPolicy(max_attempts=4)
        self._sleep = sleep
        self.logger = log or logger

    @property
    def provider(self) -> ProviderKind:
        return self.translator.kind

    def translate(self, text: str, key_hint: str) -> ProviderResult:
        """
        Translate text with the machine-translation provider.

        Args:
            text: Protected text to translate
            key_hint: Entry key, used for context selection and logging

        Returns:
            ProviderResult; failed=True carries the original text
        """
        if not text or not text.strip():
            return ProviderResult(text=text)

        self.logger.info(f"Start translating key {key_hint} with {self.provider.value}")
        result = self._call_with_retry(
            lambda: self.translator.translate(text, key_hint, self.source_lang, self.target_lang, self.options),
            text,
            key_hint,
            self.retry_policy,
            self.provider.value,
        )
        if not result.failed:
            log_success(self.logger, f"Finished translating key {key_hint} with {self.provider.value}")
        return result

    def should_refine(self, key_hint: str, text: str) -> bool:
        """
        LLM gate: refine only multi-word text containing a keyword of the key's category.

        Activation keys use the activation keywords, every other key the default ones.
        """
        if self.refiner is None or not self.llm_prompt:
            return False
        if not text or not WHITESPACE_PATTERN.search(text.strip()):
            return False

        if self.options.is_activation_key(key_hint):
            keywords = self.keywords_activation
        else:
            keywords = self.keywords_default

        lowered = text.casefold()
        return any(keyword.casefold() in lowered for keyword in keywords)

    def refine(self, key_hint: str, text: str) -> ProviderResult:
        """
        Refine already translated text with the LLM.

        Returns:
            ProviderResult; failed=True carries the input text unchanged
        """
        if self.refiner is None:
            return ProviderResult(text=text, failed=True)

        self.logger.info(f"Start using DeepSeek LLM for key {key_hint}")
        result = self._call_with_retry(
            lambda: self.refiner.execute_prompt(self.llm_prompt, key_hint, text),
            text,
            key_hint,
            self.llm_retry_policy,
            "DeepSeek",
        )
        if not result.failed:
            log_success(self.logger, f"Finished using DeepSeek LLM for key {key_hint}")
        return result

    def cleanup(self, text: str) -> str:
        """Remove artefacts the active provider leaves in its output."""
        return self.translator.cleanup(text)

    def _call_with_retry(
        self,
        call: Callable[[], str],
        original: str,
        key_hint: str,
        policy: RetryPolicy,
        provider_name: str,
    ) -> ProviderResult:
        delays: List[float] = list(policy.delays())

        for attempt in range(policy.max_attempts):
            try:
                if attempt > 0:
                    self.logger.info(f"  Retry attempt {attempt + 1}/{policy.max_attempts} for key {key_hint}")

                translated = call()
                if not translated or not translated.strip():
                    self.logger.warning(f"  {provider_name} returned an empty result for key {key_hint}")
                    return ProviderResult(text=original, failed=True)
                return ProviderResult(text=translated)

            except TranslationError as e:
                should_retry = _categorize_error(e)

                if isinstance(e, ProviderQuotaError):
                    self.logger.error(f"  {provider_name} quota exhausted for key {key_hint}: {e}")
                    return ProviderResult(text=original, failed=True)
                if not should_retry:
                    self.logger.error(f"  Non-recoverable {provider_name} error for key {key_hint}: {e}")
                    return ProviderResult(text=original, failed=True)

                if attempt < len(delays):
                    wait_time = delays[attempt]
                    self.logger.warning(f"  Attempt {attempt + 1} failed: {e}. Waiting {wait_time}s before retry...")
                    self._sleep(wait_time)
                else:
                    self.logger.warning(f"  Attempt {attempt + 1} failed: {e}")

        self.logger.warning(
            f"{provider_name} call for key {key_hint} failed after {policy.max_attempts} attempts. "
            f"Keeping the original text."
        )
        return ProviderResult(text=original, failed=True)


def build_translator(
    config: Dict[str, Any],
    transport: Optional[httpx.BaseTransport] = None,
) -> MachineTranslator:
    """
    Create the machine translator selected in the configuration.

    Raises:
        TranslationError: If the provider is unknown
    """
    secrets = config.get('secrets', {})
    translation_config = config.get('translation', {})
    provider = translation_config.get('provider', 'deepl')

    if provider == ProviderKind.DEEPL.value:
        deepl_config = translation_config.get('deepl', {})
        return DeepLTranslator(
            api_key=secrets.get('deepl_api_key', ''),
            api_mode=deepl_config.get('api_mode', 'free'),
            timeout=deepl_config.get('timeout', 60),
            transport=transport,
        )
    if provider == ProviderKind.AZURE.value:
        azure_config = translation_config.get('azure', {})
        return AzureTranslator(
            api_key=secrets.get('azure_api_key', ''),
            region=azure_config.get('region', 'westeurope'),
            api_url=azure_config.get('api_url', AzureTranslator.DEFAULT_URL),
            timeout=azure_config.get('timeout', 60),
            transport=transport,
        )
    raise TranslationError(f"Unsupported translation provider: {provider}", code="provider_unknown")


def build_refiner(
    config: Dict[str, Any],
    transport: Optional[httpx.BaseTransport] = None,
) -> Optional[DeepSeekRefiner]:
    """Create the LLM refiner, or None when LLM usage is disabled."""
    llm_config = config.get('llm', {})
    if not llm_config.get('use_llm_api'):
        return None
    return DeepSeekRefiner(
        api_key=config.get('secrets', {}).get('deepseek_api_key', ''),
        model=llm_config.get('model', 'deepseek-chat'),
        api_url=llm_config.get('api_url', DeepSeekRefiner.DEFAULT_URL),
        timeout=llm_config.get('timeout', 120),
        transport=transport,
    )


def build_options(config: Dict[str, Any], glossary_id: Optional[str] = None) -> TranslationOptions:
    translation_config = config.get('translation', {})
    deepl_config = translation_config.get('deepl', {})
    context = deepl_config.get('context', {})
    return TranslationOptions(
        api_mode=deepl_config.get('api_mode', 'free'),
        glossary_id=glossary_id or None,
        context_default=context.get('default') or None,
        context_activation=context.get('activation') or None,
        formality=deepl_config.get('formality') or None,
        activation_prefix=translation_config.get('activation_key_prefix', 'Activation'),
        category_id=translation_config.get('azure', {}).get('category_id') or None,
    )


def build_gateway(
    config: Dict[str, Any],
    translator: Optional[MachineTranslator] = None,
    glossary_id: Optional[str] = None,
    sleep: Callable[[float], None] = time.sleep,
    transport: Optional[httpx.BaseTransport] = None,
    log: Optional[logging.Logger] = None,
) -> ProviderGateway:
    """
    Build a ProviderGateway from the configuration.

    Args:
        config: Configuration dictionary
        translator: Existing translator to reuse (built from config when omitted)
        glossary_id: DeepL glossary to apply
        sleep: Delay function used between retries
        transport: Optional httpx transport shared by all provider clients
        log: Optional logger

    Returns:
        Configured ProviderGateway
    """
    translation_config = config.get('translation', {})
    retry_config = config.get('retry', {})
    llm_config = config.get('llm', {})

    return ProviderGateway(
        translator=translator or build_translator(config, transport),
        options=build_options(config, glossary_id),
        source_lang=translation_config.get('source_language', 'en'),
        target_lang=translation_config.get('target_language', 'de'),
        retry_policy=RetryPolicy(
            max_attempts=int(retry_config.get('max_attempts', 5)),
            base_delay=float(retry_config.get('base_delay', 1.0)),
        ),
        refiner=build_refiner(config, transport),
        llm_prompt=llm_config.get('prompt', ''),
        keywords_default=llm_config.get('keywords_default', []),
        keywords_activation=llm_config.get('keywords_activation', []),
        llm_retry_policy=RetryPolicy(
            max_attempts=int(llm_config.get('max_attempts', 3)),
            base_delay=float(llm_config.get('base_delay', 1.0)),
        ),
        sleep=sleep,
        log=log,
    )
