import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from autotranslator.ai.exceptions import ConfigurationError
from autotranslator.logger import get_logger

logger = get_logger(__name__)

# Provider configuration constants
BUILTIN_PROVIDERS = ["deepl", "azure"]

BUILTIN_PROVIDER_DISPLAY_NAMES = {
    "deepl": "DeepL",
    "azure": "Azure Translator",
    "deepseek": "DeepSeek",
}

# Environment variables that override the matching secrets entry
SECRET_ENV_VARS = {
    "deepl_api_key": "DEEPL_API_KEY",
    "azure_api_key": "AZURE_TRANSLATOR_KEY",
    "deepseek_api_key": "DEEPSEEK_API_KEY",
}

PROVIDER_KEY_FIELDS = {
    "deepl": "deepl_api_key",
    "azure": "azure_api_key",
}

CACHE_FILE_NAME = "ValkyrieTranslationCache.csv"

# Get base directory (project root)
BASE_DIR = Path(__file__).parent.parent
CONFIG_FILE = BASE_DIR / "appsettings.json"

# Default configuration template
DEFAULT_CONFIG = {
    "secrets": {
        "deepl_api_key": "",
        "azure_api_key": "",
        "deepseek_api_key": "",
    },
    "translation": {
        "translate": False,
        "provider": "deepl",
        "source_language": "en",
        "source_language_name": "English",
        "target_language": "de",
        "target_language_name": "German",
        "skip_keys": ["quest.authors", "quest.authors_short"],
        "activation_key_prefix": "Activation",
        "segment_sentences": True,
        "deepl": {
            "api_mode": "free",  # "free" | "paid"
            "update_glossary": False,
            "delete_existing_glossaries": True,
            "glossary_file_path": "",
            "glossary_name": "ValkyrieGlossary",
            "context": {
                "default": "",
                "activation": "",
            },
            "formality": "",  # "", "more", "less", "prefer_more", "prefer_less"
            "timeout": 60,
        },
        "azure": {
            "api_url": "https://api.cognitive.microsofttranslator.com/translate",
            "region": "westeurope",
            "category_id": "",
            "timeout": 60,
        },
    },
    "retry": {
        "max_attempts": 5,
        "base_delay": 1.0,
    },
    "llm": {
        "use_llm_api": False,
        "prompt": "",
        "keywords_default": [],
        "keywords_activation": [],
        "model": "deepseek-chat",
        "api_url": "https://api.deepseek.com/v1/chat/completions",
        "timeout": 120,
        "max_attempts": 3,
        "base_delay": 1.0,
    },
    "cache": {
        "use_translation_cache": False,
        "add_cache_to_dictionary": False,
        "directory": "",
        "file_name": CACHE_FILE_NAME,
    },
    "file_input_output": {
        "input_path": ".",
        "input_file_name": "*.csv",
        "output_path": ".",
        "output_file_name_suffix": "_translated",
        "csv_delimiter": ",",
    },
    "log_mode": "info",
    "log_to_file": False,
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base, recursing into nested dicts."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _apply_secret_env(config: Dict[str, Any]) -> None:
    secrets = config.setdefault("secrets", {})
    for field, env_var in SECRET_ENV_VARS.items():
        value = os.environ.get(env_var)
        if value:
            secrets[field] = value
            logger.debug(f"Secret '{field}' taken from environment variable {env_var}")


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load the configuration from a JSON settings file.

    Values in the file are merged over DEFAULT_CONFIG, then secrets are
    overridden from the environment where set.

    Args:
        config_path: Settings file path (CONFIG_FILE when omitted)

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If the file exists but cannot be parsed
    """
    path = Path(config_path) if config_path else CONFIG_FILE

    if path.exists():
        try:
            with open(path, 'r', encoding='utf-8-sig') as f:
                file_config = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse config file {path}: {e}")
            raise ConfigurationError(
                f"Config file {path} is not valid JSON: {e}",
                code="config_invalid",
                details={"path": str(path)},
            ) from e
        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f"Config file {path} must contain a JSON object",
                code="config_invalid",
                details={"path": str(path)},
            )
        config = _deep_merge(DEFAULT_CONFIG, file_config)
        logger.debug(f"Configuration loaded from {path}")
    else:
        if config_path:
            raise ConfigurationError(
                f"Config file not found: {path}",
                code="config_missing",
                details={"path": str(path)},
            )
        logger.info(f"No config file at {path}, using defaults")
        config = copy.deepcopy(DEFAULT_CONFIG)

    _apply_secret_env(config)
    return config


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate that the configuration allows a run to start.

    Raises:
        ConfigurationError: If a required value is missing, with code and details.
    """
    secrets = config.get('secrets', {})
    translation_config = config.get('translation', {})
    llm_config = config.get('llm', {})
    cache_config = config.get('cache', {})

    if llm_config.get('use_llm_api'):
        if not secrets.get('deepseek_api_key') or not llm_config.get('prompt'):
            raise ConfigurationError(
                "LLM API usage is enabled, but the DeepSeek API key or the LLM prompt is empty. "
                "Please provide valid values.",
                code="llm_config_missing",
                details={"missing_field": "deepseek_api_key" if not secrets.get('deepseek_api_key') else "prompt"},
            )
        if not llm_config.get('keywords_default') and not llm_config.get('keywords_activation'):
            logger.warning("LLM API usage is enabled, but no trigger keywords are configured; "
                           "no text will be sent to the LLM")

    if translation_config.get('translate'):
        provider = translation_config.get('provider', '')
        if provider not in BUILTIN_PROVIDERS:
            raise ConfigurationError(
                f"Unknown translation provider: {provider!r}",
                code="provider_unknown",
                details={"provider": provider},
            )
        key_field = PROVIDER_KEY_FIELDS[provider]
        if not secrets.get(key_field):
            display = BUILTIN_PROVIDER_DISPLAY_NAMES[provider]
            raise ConfigurationError(
                f"Translation is enabled, but the {display} API key is empty. "
                f"Please provide a valid {display} API key.",
                code="provider_key_missing",
                details={"provider": provider, "missing_field": key_field},
            )

    if cache_config.get('use_translation_cache') and not cache_config.get('directory'):
        raise ConfigurationError(
            "Translation cache is enabled, but no cache directory is configured.",
            code="cache_config_missing",
            details={"missing_field": "directory"},
        )

    for section in ('retry', 'llm'):
        section_config = config.get(section, {})
        if int(section_config.get('max_attempts', 1)) < 1:
            raise ConfigurationError(
                f"{section}.max_attempts must be at least 1",
                code="config_invalid",
                details={"section": section},
            )


def describe_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of the configuration with secrets masked, for logging."""
    described = copy.deepcopy(config)
    for field, value in described.get('secrets', {}).items():
        described['secrets'][field] = "***" if value else ""
    if described.get('llm', {}).get('prompt'):
        described['llm']['prompt'] = "***"
    return described
