"""
Text cleanup helpers for notification content.
"""

import re

TRUNCATION_MARKER = '\n\n*...truncated*'
DEFAULT_MAX_LENGTH = 1000

_WHITESPACE_RE = re.compile(r'\s+')
_LINE_BREAK_RE = re.compile(r'[\r\n]')


def clean_body_text(text: str) -> str:
    """
    Normalize an email body for display.

    Whitespace runs inside each line collapse to a single space, quoted
    reply lines (starting with ``>``) are dropped and runs of blank lines
    shrink to one paragraph break.

    Example:
        >>> clean_body_text("Line 1\\n> quoted\\nLine 2")
        'Line 1\\nLine 2'
    """
    if not text:
        return ''

    kept = []
    for line in text.split('\n'):
        line = _WHITESPACE_RE.sub(' ', line).strip()
        if line.startswith('>'):
            continue
        if not line and (not kept or not kept[-1]):
            continue
        kept.append(line)
    return '\n'.join(kept).strip()


def truncate_text(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Cut text to max_length characters, appending a truncation marker."""
    if not text or len(text) <= max_length:
        return text
    return text[:max_length] + TRUNCATION_MARKER


def sanitize_header(value: str) -> str:
    """
    Flatten a header value onto one line.

    Line breaks become spaces so the value cannot inject extra headers
    or markdown lines into the outbound notification.
    """
    if not value:
        return ''

    value = _LINE_BREAK_RE.sub(' ', value)
    return _WHITESPACE_RE.sub(' ', value).strip()
