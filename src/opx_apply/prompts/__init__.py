"""Prompt text for requesting OPX responses."""

from opx_apply.prompts.instructions import OPX_INSTRUCTIONS, get_instructions

__all__ = ["OPX_INSTRUCTIONS", "get_instructions"]
