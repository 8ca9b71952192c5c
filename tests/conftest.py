import copy
from pathlib import Path
from typing import Callable, List, Sequence, Union

import pytest

from autotranslator.ai.models import ProviderKind, TranslationOptions
from autotranslator.ai.service import ProviderGateway, RetryPolicy
from autotranslator.config import DEFAULT_CONFIG


class UppercaseTranslator:
    """Stand-in provider: translating means upper-casing, markers included."""

    kind = ProviderKind.DEEPL

    def __init__(self) -> None:
        self.calls: List[str] = []

    def translate(self, text, key_hint, source_lang, target_lang, options) -> str:
        self.calls.append(text)
        return text.upper()

    def cleanup(self, text: str) -> str:
        return text.replace("␣", " ")


class ScriptedTranslator:
    """Returns or raises the scripted outcomes in order, repeating the last one."""

    kind = ProviderKind.DEEPL

    def __init__(self, outcomes: Sequence[Union[str, Exception]]) -> None:
        self.outcomes = list(outcomes)
        self.calls: List[str] = []

    def translate(self, text, key_hint, source_lang, target_lang, options) -> str:
        self.calls.append(text)
        outcome = self.outcomes[min(len(self.calls), len(self.outcomes)) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def cleanup(self, text: str) -> str:
        return text


class LowercaseRefiner:
    """Stand-in LLM: refining means lower-casing."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def execute_prompt(self, prompt: str, key_hint: str, text: str) -> str:
        self.calls.append((prompt, key_hint, text))
        return text.lower()

    def get_total_token_usage(self):
        return {'prompt_tokens': 0, 'completion_tokens': 0}


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def uppercase_translator() -> UppercaseTranslator:
    return UppercaseTranslator()


@pytest.fixture
def scripted_translator() -> Callable[..., ScriptedTranslator]:
    return ScriptedTranslator


@pytest.fixture
def lowercase_refiner() -> LowercaseRefiner:
    return LowercaseRefiner()


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_gateway(fake_sleep: RecordingSleep) -> Callable[..., ProviderGateway]:
    def _make(translator, **kwargs) -> ProviderGateway:
        kwargs.setdefault("retry_policy", RetryPolicy(max_attempts=3, base_delay=1.0))
        return ProviderGateway(
            translator=translator,
            options=kwargs.pop("options", TranslationOptions()),
            source_lang="en",
            target_lang="de",
            sleep=fake_sleep,
            **kwargs,
        )

    return _make


@pytest.fixture
def base_config(tmp_path: Path) -> dict:
    """Configuration with translation enabled and every directory under tmp_path."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    config["secrets"]["deepl_api_key"] = "test-deepl-key"
    config["translation"]["translate"] = True
    config["retry"]["base_delay"] = 0.0

    input_dir = tmp_path / "input"
    output_dir = tmp_path / "output"
    cache_dir = tmp_path / "cache"
    for directory in (input_dir, output_dir, cache_dir):
        directory.mkdir()

    config["file_input_output"]["input_path"] = str(input_dir)
    config["file_input_output"]["output_path"] = str(output_dir)
    config["cache"]["use_translation_cache"] = True
    config["cache"]["directory"] = str(cache_dir)
    return config


@pytest.fixture(autouse=True)
def _no_secret_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for env_var in ("DEEPL_API_KEY", "AZURE_TRANSLATOR_KEY", "DEEPSEEK_API_KEY"):
        monkeypatch.delenv(env_var, raising=False)
