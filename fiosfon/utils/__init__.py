"""Shared helpers: logging, errors, retries, text and file I/O."""
