"""Command-line interface for bunson."""
