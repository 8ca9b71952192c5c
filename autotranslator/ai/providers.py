"""
Provider API Implementations

This module contains the HTTP calls for each provider:
- DeepL (machine translation, glossaries)
- Azure Translator (machine translation)
- DeepSeek (LLM refinement, OpenAI-compatible chat completions)

Each call performs exactly one attempt and reports failures through the
exception taxonomy in ai/exceptions.py; retrying is the gateway's job.
"""

import json
from typing import Any, Collection, List, Optional, Protocol, Tuple

import httpx
from pydantic import TypeAdapter, ValidationError

from autotranslator.ai.exceptions import ProviderQuotaError, ProviderRateLimitError, TranslationError
from autotranslator.ai.models import (
    AzureTranslateItem,
    ChatCompletionResponse,
    DeepLGlossaryList,
    DeepLTranslateResponse,
    ProviderKind,
    TranslationOptions,
)
from autotranslator.logger import get_logger

logger = get_logger(__name__)

# DeepL glossaries cannot hold leading/trailing whitespace, so it is encoded
# with this character and turned back into spaces after translation
SPECIAL_GLOSSARY_CHAR = "␣"


class MachineTranslator(Protocol):
    """Single-attempt machine translation interface.

    Implementations:
    - DeepLTranslator
    - AzureTranslator
    """

    kind: ProviderKind

    def translate(
        self,
        text: str,
        key_hint: str,
        source_lang: str,
        target_lang: str,
        options: TranslationOptions,
    ) -> str:
        """
        Translate text once.

        Raises:
            ProviderRateLimitError: Transient failure, may be retried
            ProviderQuotaError: Usage limit exhausted
            TranslationError: Any other failure
        """
        ...

    def cleanup(self, text: str) -> str:
        """Remove provider artefacts from a finished translation."""
        ...


def get_httpx_timeout(timeout_config: Any) -> httpx.Timeout:
    """
    Convert timeout configuration to httpx.Timeout object.

    Args:
        timeout_config: Either a number (read timeout) or a dict with
            connect, write, read, pool keys

    Returns:
        httpx.Timeout object
    """
    if isinstance(timeout_config, dict):
        return httpx.Timeout(
            connect=timeout_config.get('connect', 10.0),
            write=timeout_config.get('write', 60.0),
            read=timeout_config.get('read', 120.0),
            pool=timeout_config.get('pool', 10.0),
        )
    else:
        timeout_value = float(timeout_config) if timeout_config else 120.0
        return httpx.Timeout(
            connect=10.0,
            write=60.0,
            read=timeout_value,
            pool=10.0,
        )


def _error_text(response: httpx.Response) -> str:
    try:
        error_json = response.json()
        if isinstance(error_json, dict):
            error_detail = error_json.get("error", error_json.get("message", error_json))
            if isinstance(error_detail, dict):
                return str(error_detail.get("message", error_detail))
            return str(error_detail)
    except (json.JSONDecodeError, ValueError):
        pass
    return response.text[:500] if response.text else "No details"


def handle_http_error(e: httpx.HTTPStatusError, provider: str, quota_statuses: Collection[int] = ()):
    """Raise the exception matching an HTTP error status."""
    status_code = e.response.status_code
    error_text = _error_text(e.response)
    details = {"provider": provider, "status_code": status_code}

    if status_code in quota_statuses:
        raise ProviderQuotaError(
            f"{provider} API limit reached ({status_code}): {error_text}",
            code="quota_exceeded",
            details=details,
        )
    if status_code == 429 or status_code >= 500:
        raise ProviderRateLimitError(
            f"{provider} API temporarily unavailable ({status_code}): {error_text}",
            code="rate_limited" if status_code == 429 else "server_error",
            details=details,
        )
    raise TranslationError(
        f"{provider} API error ({status_code}): {error_text}",
        code="http_error",
        details=details,
    )


def _send(
    client: httpx.Client,
    request: httpx.Request,
    provider: str,
    quota_statuses: Collection[int] = (),
) -> httpx.Response:
    """Send a request, mapping transport and status failures to the taxonomy."""
    try:
        response = client.send(request)
        response.raise_for_status()
        return response
    except httpx.HTTPStatusError as e:
        handle_http_error(e, provider, quota_statuses)
    except httpx.TimeoutException:
        raise ProviderRateLimitError(f"{provider} API request timeout", code="timeout")
    except httpx.TransportError as e:
        raise ProviderRateLimitError(f"{provider} API connection failed: {e}", code="transport_error")


def _parse(model, response: httpx.Response, provider: str):
    try:
        return model.model_validate_json(response.content)
    except ValidationError as e:
        raise TranslationError(
            f"Unexpected {provider} API response format: {e.error_count()} validation error(s)",
            code="bad_response",
            details={"provider": provider, "body": response.text[:500]},
        )


def encode_glossary_whitespace(value: str) -> str:
    """Replace leading/trailing whitespace with SPECIAL_GLOSSARY_CHAR."""
    if not value:
        return value
    stripped = value.strip()
    leading = len(value) - len(value.lstrip())
    trailing = len(value) - len(value.rstrip())
    if not stripped:
        return SPECIAL_GLOSSARY_CHAR * len(value)
    return SPECIAL_GLOSSARY_CHAR * leading + stripped + SPECIAL_GLOSSARY_CHAR * trailing


class DeepLTranslator:
    """DeepL REST API v2."""

    kind = ProviderKind.DEEPL

    FREE_BASE_URL = "https://api-free.deepl.com/v2"
    PAID_BASE_URL = "https://api.deepl.com/v2"
    QUOTA_STATUSES = (456,)

    def __init__(
        self,
        api_key: str,
        api_mode: str = "free",
        timeout: Any = 60,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._api_key = api_key
        self.api_mode = api_mode
        self.base_url = self.PAID_BASE_URL if api_mode == "paid" else self.FREE_BASE_URL
        self._timeout = get_httpx_timeout(timeout)
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self._timeout,
            headers={"Authorization": f"DeepL-Auth-Key {self._api_key}"},
            transport=self._transport,
        )

    def translate(
        self,
        text: str,
        key_hint: str,
        source_lang: str,
        target_lang: str,
        options: TranslationOptions,
    ) -> str:
        if not self._api_key:
            raise TranslationError("DeepL API key not configured", code="config_missing")

        form: List[Tuple[str, str]] = [
            ("text", text),
            ("source_lang", source_lang.upper()),
            ("target_lang", target_lang.upper()),
            ("tag_handling", "xml"),
            ("ignore_tags", "keep"),
            ("model_type", "quality_optimized"),
        ]
        if options.glossary_id:
            form.append(("glossary_id", options.glossary_id))
        if options.formality:
            form.append(("formality", options.formality))

        if options.is_activation_key(key_hint) and options.context_activation:
            form.append(("context", options.context_activation))
        elif options.context_default:
            form.append(("context", options.context_default))

        logger.debug(f"  Calling DeepL API ({self.api_mode}) for key {key_hint}...")

        with self._client() as client:
            request = client.build_request("POST", f"{self.base_url}/translate", data=dict(form))
            response = _send(client, request, "DeepL", self.QUOTA_STATUSES)

        result = _parse(DeepLTranslateResponse, response, "DeepL")
        if not result.translations:
            raise TranslationError("No translations in DeepL response", code="bad_response")
        return result.translations[0].text

    def cleanup(self, text: str) -> str:
        if not text:
            return text
        return text.replace(SPECIAL_GLOSSARY_CHAR, " ")

    def list_glossaries(self) -> DeepLGlossaryList:
        with self._client() as client:
            request = client.build_request("GET", f"{self.base_url}/glossaries")
            response = _send(client, request, "DeepL")
        return _parse(DeepLGlossaryList, response, "DeepL")

    def get_glossary(self) -> str:
        """Return the id of the first existing glossary, or '' if there is none."""
        logger.info("Searching for existing DeepL glossary")
        glossaries = self.list_glossaries().glossaries
        if glossaries:
            return glossaries[0].glossary_id
        return ""

    def update_glossary(
        self,
        delete_existing: bool,
        source_lang: str,
        target_lang: str,
        entries: List[Tuple[str, str]],
        name: str = "ValkyrieGlossary",
    ) -> str:
        """
        Create a glossary from entries, optionally deleting all existing ones first.

        Returns:
            Id of the created glossary
        """
        logger.info(f"Starting DeepL glossary update with glossary of {len(entries)} entries")

        glossary_text = "\n".join(
            f"{encode_glossary_whitespace(source)}\t{encode_glossary_whitespace(target)}"
            for source, target in entries
        )

        with self._client() as client:
            if delete_existing:
                request = client.build_request("GET", f"{self.base_url}/glossaries")
                existing = _parse(DeepLGlossaryList, _send(client, request, "DeepL"), "DeepL")
                for glossary in existing.glossaries:
                    logger.info(f"Deleting existing DeepL glossary {glossary.glossary_id}")
                    request = client.build_request("DELETE", f"{self.base_url}/glossaries/{glossary.glossary_id}")
                    _send(client, request, "DeepL")

            logger.info("Creating new DeepL glossary")
            request = client.build_request(
                "POST",
                f"{self.base_url}/glossaries",
                data={
                    "name": name,
                    "source_lang": source_lang.upper(),
                    "target_lang": target_lang.upper(),
                    "entries": glossary_text,
                    "entries_format": "tsv",
                },
            )
            response = _send(client, request, "DeepL", self.QUOTA_STATUSES)

        try:
            glossary_id = response.json().get("glossary_id", "")
        except (json.JSONDecodeError, ValueError, AttributeError):
            glossary_id = ""
        if not glossary_id:
            raise TranslationError("DeepL did not return a glossary id", code="bad_response")
        return glossary_id


class AzureTranslator:
    """Azure AI Translator REST API v3."""

    kind = ProviderKind.AZURE

    DEFAULT_URL = "https://api.cognitive.microsofttranslator.com/translate"
    # 403 carries the "free tier quota exceeded" family of errors
    QUOTA_STATUSES = (403,)

    _items_adapter = TypeAdapter(List[AzureTranslateItem])

    def __init__(
        self,
        api_key: str,
        region: str = "westeurope",
        api_url: str = DEFAULT_URL,
        timeout: Any = 60,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._api_key = api_key
        self.region = region
        self.api_url = api_url or self.DEFAULT_URL
        self._timeout = get_httpx_timeout(timeout)
        self._transport = transport

    def translate(
        self,
        text: str,
        key_hint: str,
        source_lang: str,
        target_lang: str,
        options: TranslationOptions,
    ) -> str:
        if not self._api_key:
            raise TranslationError("Azure Translator API key not configured", code="config_missing")

        params = {
            "api-version": "3.0",
            "from": source_lang,
            "to": target_lang,
            "textType": "html",
        }
        if options.category_id:
            params["category"] = options.category_id

        headers = {
            "Ocp-Apim-Subscription-Key": self._api_key,
            "Ocp-Apim-Subscription-Region": self.region,
        }

        logger.debug(f"  Calling Azure Translator for key {key_hint}...")

        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            request = client.build_request(
                "POST", self.api_url, params=params, headers=headers, json=[{"Text": text}]
            )
            response = _send(client, request, "Azure Translator", self.QUOTA_STATUSES)

        try:
            items = self._items_adapter.validate_json(response.content)
        except ValidationError as e:
            raise TranslationError(
                f"Unexpected Azure Translator response format: {e.error_count()} validation error(s)",
                code="bad_response",
                details={"body": response.text[:500]},
            )

        if not items or not items[0].translations:
            raise TranslationError("No translations in Azure Translator response", code="bad_response")
        return items[0].translations[0].text

    def cleanup(self, text: str) -> str:
        return text


class DeepSeekRefiner:
    """DeepSeek chat completions, used to polish already translated text."""

    DEFAULT_URL = "https://api.deepseek.com/v1/chat/completions"
    # 402 means the account balance is exhausted
    QUOTA_STATUSES = (402,)

    def __init__(
        self,
        api_key: str,
        model: str = "deepseek-chat",
        api_url: str = DEFAULT_URL,
        timeout: Any = 120,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._api_key = api_key
        self.model = model
        self.api_url = api_url or self.DEFAULT_URL
        self._timeout = get_httpx_timeout(timeout)
        self._transport = transport
        # Token usage tracking
        self._last_token_usage = {'prompt_tokens': 0, 'completion_tokens': 0}
        self.total_prompt_tokens = 0
        self.total_completion_tokens = 0

    def get_total_token_usage(self):
        """Get accumulated token usage."""
        return {
            'prompt_tokens': self.total_prompt_tokens,
            'completion_tokens': self.total_completion_tokens,
        }

    def execute_prompt(self, prompt: str, key_hint: str, text: str) -> str:
        """
        Send the prompt as system message and the key/value pair as user message.

        Returns:
            The refined text
        """
        if not self._api_key:
            raise TranslationError("DeepSeek API key not configured", code="config_missing")
        if not prompt:
            raise TranslationError("LLM prompt not configured", code="config_missing")

        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": prompt},
                {"role": "user", "content": f"Key={key_hint} \nValue={text}"},
            ],
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        logger.debug(f"  Calling DeepSeek API (model: {self.model}) for key {key_hint}...")

        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            request = client.build_request("POST", self.api_url, headers=headers, json=body)
            response = _send(client, request, "DeepSeek", self.QUOTA_STATUSES)

        result = _parse(ChatCompletionResponse, response, "DeepSeek")

        if result.usage:
            self._last_token_usage = {
                'prompt_tokens': result.usage.prompt_tokens,
                'completion_tokens': result.usage.completion_tokens,
            }
            self.total_prompt_tokens += result.usage.prompt_tokens
            self.total_completion_tokens += result.usage.completion_tokens

        if not result.choices or not (result.choices[0].message.content or "").strip():
            raise TranslationError("No content in DeepSeek response", code="bad_response")

        content = result.choices[0].message.content.strip()
        logger.debug(f"  Received {len(content)} chars from DeepSeek (tokens: {self._last_token_usage})")
        return content
