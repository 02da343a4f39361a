"""Command-line interface for FolioSync."""
