"""Logging setup shared by the library and the CLI."""
