"""Failure reports for applied batches."""

from opx_apply.report.fix_instructions import build_fix_instructions

__all__ = ["build_fix_instructions"]
