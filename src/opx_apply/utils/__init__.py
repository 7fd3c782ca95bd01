"""Utilities for opx-apply."""

from opx_apply.utils.diff_generator import UnifiedDiffSink, generate_unified_diff

__all__ = [
    "UnifiedDiffSink",
    "generate_unified_diff",
]
