"""Command-line interface for c4link."""
