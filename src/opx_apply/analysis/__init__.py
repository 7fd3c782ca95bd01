"""Change statistics for preview rows."""

from opx_apply.analysis.change_analyzer import analyze, analyze_actions, count_lines, describe

__all__ = ["analyze", "analyze_actions", "count_lines", "describe"]
