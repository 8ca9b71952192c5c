"""
Core module - File access

This module provides:
- files: language file, cache file and glossary file reading/writing
"""

from autotranslator.core.files import (
    GlossaryError,
    LanguageEntry,
    MalformedRowError,
    build_output_path,
    read_cache_file,
    read_glossary_file,
    read_language_file,
    resolve_input_files,
    write_cache_file,
    write_language_file,
)
