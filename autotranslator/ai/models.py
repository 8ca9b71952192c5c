"""
Provider data models.

ProviderResult is what the gateway hands back to the pipeline. The response
models parse provider JSON into typed structures instead of walking raw dicts.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProviderKind(str, Enum):
    """Machine-translation provider variants; one is active per run."""

    DEEPL = "deepl"
    AZURE = "azure"


class ProviderResult(BaseModel):
    """Outcome of one gateway call.

    When failed is True, text is the original input and must not be treated
    as translated content.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    failed: bool = False


class TranslationOptions(BaseModel):
    """Provider options passed through the gateway without interpretation."""

    model_config = ConfigDict(frozen=True)

    api_mode: str = "free"
    glossary_id: Optional[str] = None
    context_default: Optional[str] = None
    context_activation: Optional[str] = None
    formality: Optional[str] = None
    activation_prefix: str = "Activation"
    category_id: Optional[str] = None

    def is_activation_key(self, key_hint: str) -> bool:
        return bool(self.activation_prefix) and key_hint.startswith(self.activation_prefix)


# DeepL

class DeepLTranslation(BaseModel):
    text: str
    detected_source_language: Optional[str] = None


class DeepLTranslateResponse(BaseModel):
    translations: List[DeepLTranslation]


class DeepLGlossary(BaseModel):
    glossary_id: str
    name: Optional[str] = None
    source_lang: Optional[str] = None
    target_lang: Optional[str] = None
    entry_count: Optional[int] = None


class DeepLGlossaryList(BaseModel):
    glossaries: List[DeepLGlossary] = Field(default_factory=list)


# Azure Translator

class AzureTranslation(BaseModel):
    text: str
    to: Optional[str] = None


class AzureTranslateItem(BaseModel):
    translations: List[AzureTranslation]


# OpenAI-compatible chat completions (DeepSeek)

class ChatMessage(BaseModel):
    role: str = "assistant"
    content: Optional[str] = None


class ChatChoice(BaseModel):
    message: ChatMessage


class ChatUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0


class ChatCompletionResponse(BaseModel):
    choices: List[ChatChoice] = Field(default_factory=list)
    usage: Optional[ChatUsage] = None
