"""
Protection module - keeps structural markup out of the provider's hands

This module provides:
- placeholders: protect/restore functions and positional placeholder remapping
- markers: provider-specific no-translate marker syntax
"""

from autotranslator.protection.placeholders import (
    ProtectedToken,
    identify_placeholders,
    protect,
    protect_inline_tags,
    restore,
    remap_placeholders_after_translation,
)

from autotranslator.protection.markers import (
    wrap_no_translate,
)
