"""
Translation Progress Data Class

Contains the TranslationProgress dataclass for tracking the work done on one file.
"""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class TranslationProgress:
    """Statistics for one language file."""
    file_name: str
    total_entries: int = 0
    processed_entries: int = 0
    current_key: str = ""
    skipped_entries: int = 0         # Skip-list keys and language-name values
    translated_units: int = 0        # Units translated by the provider
    cache_hits: int = 0              # Units served from the cache
    provider_failures: int = 0       # Units left untranslated after retries
    llm_refinements: int = 0         # Units refined by the LLM
    placeholder_mismatches: int = 0  # Entries that lost or gained placeholders
    phase: str = "translating"       # "translating", "saving", "completed", "failed"
    # Token usage of the LLM refiner, filled in when the file is done
    token_usage: Optional[Dict[str, int]] = None
