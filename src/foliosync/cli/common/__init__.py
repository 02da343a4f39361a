"""Shared CLI helpers: context, options, field parsing and error handling."""
