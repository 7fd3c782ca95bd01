"""Command-line interface for opx-apply."""
