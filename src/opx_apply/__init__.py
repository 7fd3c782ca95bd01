"""opx-apply: parse, preview and apply LLM-authored OPX file edits."""

__version__ = "0.1.0"
