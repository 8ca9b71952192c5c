import json
from typing import Callable, List
from urllib.parse import parse_qs

import httpx
import pytest

from autotranslator.ai.exceptions import ProviderQuotaError, ProviderRateLimitError, TranslationError
from autotranslator.ai.models import TranslationOptions
from autotranslator.ai.providers import (
    AzureTranslator,
    DeepLTranslator,
    DeepSeekRefiner,
    encode_glossary_whitespace,
    get_httpx_timeout,
)

DEEPL_OK = {"translations": [{"detected_source_language": "EN", "text": "Hallo"}]}


def transport_for(handler: Callable[[httpx.Request], httpx.Response], seen: List[httpx.Request]) -> httpx.MockTransport:
    def _handle(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    return httpx.MockTransport(_handle)


def form_of(request: httpx.Request) -> dict:
    return {k: v[0] for k, v in parse_qs(request.content.decode("utf-8")).items()}


class TestDeepLTranslator:
    def setup_method(self) -> None:
        self.requests: List[httpx.Request] = []

    def _translator(self, handler, api_mode: str = "free") -> DeepLTranslator:
        return DeepLTranslator("secret", api_mode=api_mode, transport=transport_for(handler, self.requests))

    def test_translate_sends_expected_form(self) -> None:
        translator = self._translator(lambda r: httpx.Response(200, json=DEEPL_OK))
        options = TranslationOptions(
            glossary_id="g-1", context_default="Fantasy game", context_activation="Monster card", formality="less"
        )

        assert translator.translate("Hello", "quest.name", "en", "de", options) == "Hallo"

        request = self.requests[0]
        assert str(request.url) == "https://api-free.deepl.com/v2/translate"
        assert request.headers["Authorization"] == "DeepL-Auth-Key secret"
        form = form_of(request)
        assert form["text"] == "Hello"
        assert form["source_lang"] == "EN"
        assert form["target_lang"] == "DE"
        assert form["tag_handling"] == "xml"
        assert form["ignore_tags"] == "keep"
        assert form["model_type"] == "quality_optimized"
        assert form["glossary_id"] == "g-1"
        assert form["formality"] == "less"
        assert form["context"] == "Fantasy game"

    def test_activation_keys_use_activation_context(self) -> None:
        translator = self._translator(lambda r: httpx.Response(200, json=DEEPL_OK))
        options = TranslationOptions(context_default="Fantasy game", context_activation="Monster card")

        translator.translate("Hello", "ActivationGoblin", "en", "de", options)

        assert form_of(self.requests[0])["context"] == "Monster card"

    def test_optional_fields_omitted(self) -> None:
        translator = self._translator(lambda r: httpx.Response(200, json=DEEPL_OK))

        translator.translate("Hello", "k", "en", "de", TranslationOptions())

        form = form_of(self.requests[0])
        assert "glossary_id" not in form
        assert "formality" not in form
        assert "context" not in form

    def test_paid_endpoint(self) -> None:
        translator = self._translator(lambda r: httpx.Response(200, json=DEEPL_OK), api_mode="paid")

        translator.translate("Hello", "k", "en", "de", TranslationOptions())

        assert self.requests[0].url.host == "api.deepl.com"

    @pytest.mark.parametrize(
        "status, error_type",
        [
            (429, ProviderRateLimitError),
            (503, ProviderRateLimitError),
            (500, ProviderRateLimitError),
            (456, ProviderQuotaError),
        ],
    )
    def test_status_mapping(self, status: int, error_type: type) -> None:
        translator = self._translator(lambda r: httpx.Response(status, json={"message": "nope"}))

        with pytest.raises(error_type):
            translator.translate("Hello", "k", "en", "de", TranslationOptions())

    def test_client_error_is_permanent(self) -> None:
        translator = self._translator(lambda r: httpx.Response(400, json={"message": "Bad request"}))

        with pytest.raises(TranslationError) as exc_info:
            translator.translate("Hello", "k", "en", "de", TranslationOptions())

        assert type(exc_info.value) is TranslationError
        assert exc_info.value.code == "http_error"
        assert "Bad request" in str(exc_info.value)

    def test_timeout_is_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        translator = self._translator(handler)

        with pytest.raises(ProviderRateLimitError):
            translator.translate("Hello", "k", "en", "de", TranslationOptions())

    def test_unexpected_response_shape(self) -> None:
        translator = self._translator(lambda r: httpx.Response(200, json={"foo": 1}))

        with pytest.raises(TranslationError) as exc_info:
            translator.translate("Hello", "k", "en", "de", TranslationOptions())

        assert exc_info.value.code == "bad_response"

    def test_missing_api_key(self) -> None:
        translator = DeepLTranslator("")

        with pytest.raises(TranslationError):
            translator.translate("Hello", "k", "en", "de", TranslationOptions())

    def test_update_glossary_replaces_existing(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json={"glossaries": [{"glossary_id": "old", "name": "ValkyrieGlossary"}]})
            if request.method == "DELETE":
                return httpx.Response(204)
            return httpx.Response(201, json={"glossary_id": "new", "name": "ValkyrieGlossary"})

        translator = self._translator(handler)

        glossary_id = translator.update_glossary(True, "en", "de", [(" Rune", "Rune "), ("Hero", "Held")])

        assert glossary_id == "new"
        assert [(r.method, r.url.path) for r in self.requests] == [
            ("GET", "/v2/glossaries"),
            ("DELETE", "/v2/glossaries/old"),
            ("POST", "/v2/glossaries"),
        ]
        form = form_of(self.requests[-1])
        assert form["name"] == "ValkyrieGlossary"
        assert form["entries_format"] == "tsv"
        assert form["entries"] == "␣Rune\tRune␣\nHero\tHeld"

    def test_get_glossary_returns_first(self) -> None:
        translator = self._translator(
            lambda r: httpx.Response(200, json={"glossaries": [{"glossary_id": "a"}, {"glossary_id": "b"}]})
        )
        assert translator.get_glossary() == "a"

    def test_get_glossary_none(self) -> None:
        translator = self._translator(lambda r: httpx.Response(200, json={"glossaries": []}))
        assert translator.get_glossary() == ""

    def test_cleanup_replaces_glossary_whitespace(self) -> None:
        assert DeepLTranslator("k").cleanup("Die␣Rune") == "Die Rune"


class TestAzureTranslator:
    def setup_method(self) -> None:
        self.requests: List[httpx.Request] = []

    def test_translate(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"translations": [{"text": "Hallo", "to": "de"}]}])

        translator = AzureTranslator("secret", transport=transport_for(handler, self.requests))

        result = translator.translate("Hello", "k", "en", "de", TranslationOptions(category_id="cat-1"))

        assert result == "Hallo"
        request = self.requests[0]
        assert request.url.host == "api.cognitive.microsofttranslator.com"
        assert request.url.params["api-version"] == "3.0"
        assert request.url.params["from"] == "en"
        assert request.url.params["to"] == "de"
        assert request.url.params["textType"] == "html"
        assert request.url.params["category"] == "cat-1"
        assert request.headers["Ocp-Apim-Subscription-Key"] == "secret"
        assert request.headers["Ocp-Apim-Subscription-Region"] == "westeurope"
        assert json.loads(request.content) == [{"Text": "Hello"}]

    def test_quota_status(self) -> None:
        translator = AzureTranslator(
            "secret", transport=transport_for(lambda r: httpx.Response(403, json={"error": {"code": 403001}}),
                                              self.requests)
        )

        with pytest.raises(ProviderQuotaError):
            translator.translate("Hello", "k", "en", "de", TranslationOptions())

    def test_empty_translations(self) -> None:
        translator = AzureTranslator(
            "secret", transport=transport_for(lambda r: httpx.Response(200, json=[]), self.requests)
        )

        with pytest.raises(TranslationError):
            translator.translate("Hello", "k", "en", "de", TranslationOptions())

    def test_cleanup_is_identity(self) -> None:
        assert AzureTranslator("k").cleanup("a␣b") == "a␣b"


class TestDeepSeekRefiner:
    def setup_method(self) -> None:
        self.requests: List[httpx.Request] = []

    def test_execute_prompt(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={
                "choices": [{"message": {"role": "assistant", "content": " Hallo! "}}],
                "usage": {"prompt_tokens": 10, "completion_tokens": 2},
            })

        refiner = DeepSeekRefiner("secret", transport=transport_for(handler, self.requests))

        assert refiner.execute_prompt("Polish", "quest.name", "Hallo") == "Hallo!"

        body = json.loads(self.requests[0].content)
        assert body["model"] == "deepseek-chat"
        assert body["messages"] == [
            {"role": "system", "content": "Polish"},
            {"role": "user", "content": "Key=quest.name \nValue=Hallo"},
        ]
        assert self.requests[0].headers["Authorization"] == "Bearer secret"
        assert refiner.get_total_token_usage() == {"prompt_tokens": 10, "completion_tokens": 2}

    def test_insufficient_balance_is_quota(self) -> None:
        refiner = DeepSeekRefiner(
            "secret", transport=transport_for(lambda r: httpx.Response(402, json={"error": {"message": "balance"}}),
                                              self.requests)
        )

        with pytest.raises(ProviderQuotaError):
            refiner.execute_prompt("Polish", "k", "Hallo")

    def test_empty_content(self) -> None:
        refiner = DeepSeekRefiner(
            "secret", transport=transport_for(lambda r: httpx.Response(200, json={"choices": []}), self.requests)
        )

        with pytest.raises(TranslationError):
            refiner.execute_prompt("Polish", "k", "Hallo")


class TestHelpers:
    def test_encode_glossary_whitespace(self) -> None:
        assert encode_glossary_whitespace("  a ") == "␣␣a␣"
        assert encode_glossary_whitespace("a b") == "a b"
        assert encode_glossary_whitespace(" ") == "␣"

    def test_get_httpx_timeout(self) -> None:
        assert get_httpx_timeout(30).read == 30.0
        assert get_httpx_timeout({"read": 5}).read == 5
        assert get_httpx_timeout(None).read == 120.0
