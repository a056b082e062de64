"""Rules and SQLite storage for group chat bot games and utilities."""

__version__ = "0.1.0"