"""Command-line command groups for relengindex."""
