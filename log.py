"""
Logging utilities

Purpose: one place to configure logging for the API, the CLI and the tests, and to keep upstream
bodies short in log lines.

Input: LOG_LEVEL environment variable (default INFO).

Output: configured root logger; preview() returns truncated text for log messages.

Example: preview("<html>... 5 kB stack trace ...") → "<html>... (first 200 chars)...".
"""
import logging
import os

from config import ERROR_PREVIEW_CHARS

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = None) -> None:
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


def preview(text, limit: int = ERROR_PREVIEW_CHARS) -> str:
    """Return at most `limit` characters of text, marking truncation with '...'."""
    if text is None:
        return ""
    text = str(text)
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
