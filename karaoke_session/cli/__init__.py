"""Command-line interface for Karaoke Session."""
