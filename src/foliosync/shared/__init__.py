"""
Shared utilities and constants for FolioSync.
"""
