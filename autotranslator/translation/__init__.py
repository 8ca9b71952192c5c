"""
Translation module - Core translation functionality

This module provides:
- TranslationManager: File-level translation workflow coordinator
- TranslationProcessor: Per-entry translation pipeline
- TranslationCache: Persistent source-to-translation cache
- TranslationProgress: Per-file statistics dataclass
- segmenter: Sentence/markup splitting and joining
"""

from autotranslator.translation.progress import TranslationProgress
from autotranslator.translation import segmenter
from autotranslator.translation.cache import TranslationCache, normalize_key
from autotranslator.translation.processor import EntryFrame, TranslationProcessor, unwrap
from autotranslator.translation.manager import TranslationManager
