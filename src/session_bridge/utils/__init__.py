"""Shared helpers: file I/O, config paths, validation, listener sets."""
