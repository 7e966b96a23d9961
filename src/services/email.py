"""
Email processing utilities for Lambda handlers.

This module locates and decodes the plain-text body of a raw email and
parses its header block. Parsing is shallow: the raw text is
split on the first MIME boundary found and the first text/plain part wins.
Nested multipart containers are not descended into.
"""

import base64
import binascii
import logging
import re
from email import policy
from email.message import Message
from email.parser import BytesHeaderParser
from typing import Optional

from domain.models import DecodeResult

logger = logging.getLogger(__name__)

HEADER_SEPARATOR = '\r\n\r\n'
DEFAULT_TRANSFER_ENCODING = '7bit'

_BOUNDARY_RE = re.compile(r'boundary="?([^";\r\n]+)"?', re.IGNORECASE)
_TEXT_PLAIN_RE = re.compile(r'Content-Type:\s*text/plain', re.IGNORECASE)
_TRANSFER_ENCODING_RE = re.compile(r'Content-Transfer-Encoding:\s*(\S+)', re.IGNORECASE)
_SOFT_LINE_BREAK_RE = re.compile(r'=\r?\n')
_HEX_ESCAPE_RE = re.compile(r'=([A-Fa-f0-9]{2})')
_WHITESPACE_RE = re.compile(r'\s+')
_BOUNDARY_CLOSER_RE = re.compile(r'--$')


def extract_plain_text(raw: str) -> str:
    """
    Extract the plain-text body from a raw email.

    Args:
        raw: Raw email content (headers and body) as text

    Returns:
        str: Decoded plain-text body, or the whole-message body when no
        text/plain MIME part yields one (may be empty)

    Example:
        >>> extract_plain_text("Header: v\\r\\n\\r\\nBody text")
        'Body text'
    """
    if not raw:
        return ''

    boundary_match = _BOUNDARY_RE.search(raw)
    if not boundary_match:
        return extract_simple_email(raw)

    boundary = boundary_match.group(1)
    for part in raw.split(f'--{boundary}'):
        header_block = part.split(HEADER_SEPARATOR, 1)[0]
        if not _TEXT_PLAIN_RE.search(header_block):
            continue

        body = extract_part_body(part)
        if body:
            return body

    logger.info(f"No text/plain part found for boundary {boundary!r}, using whole message")
    return extract_simple_email(raw)


def extract_simple_email(raw: str) -> str:
    """Return everything after the first blank line, or the whole text."""
    header_end = raw.find(HEADER_SEPARATOR)
    if header_end == -1:
        return raw.strip()
    return raw[header_end + len(HEADER_SEPARATOR):].strip()


def extract_part_body(part: str) -> Optional[str]:
    """
    Extract and decode the body of a single MIME part.

    Args:
        part: One boundary-delimited section of the raw email

    Returns:
        Decoded body, or None when the part has no body
    """
    body_start = part.find(HEADER_SEPARATOR)
    if body_start == -1:
        return None

    header_block = part[:body_start]
    encoding_match = _TRANSFER_ENCODING_RE.search(header_block)
    encoding = encoding_match.group(1).lower() if encoding_match else DEFAULT_TRANSFER_ENCODING

    body = part[body_start + len(HEADER_SEPARATOR):].strip()
    body = _BOUNDARY_CLOSER_RE.sub('', body).strip()
    if not body:
        return None

    if encoding == 'quoted-printable':
        return decode_quoted_printable(body)
    if encoding == 'base64':
        return decode_base64(body)
    return body


def decode_quoted_printable(value: str) -> str:
    """
    Decode quoted-printable text.

    Soft line breaks are removed first, then every ``=XX`` escape becomes the
    character with that code. An ``=`` not followed by two hex digits is kept.
    """
    if not value:
        return ''

    unwrapped = _SOFT_LINE_BREAK_RE.sub('', value)
    return _HEX_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), unwrapped)


def decode_base64_result(value: str) -> DecodeResult:
    """
    Decode base64 text, reporting whether decoding actually happened.

    Missing ``=`` padding is restored. Decoded bytes are read as UTF-8,
    falling back to Latin-1 (one character per byte). Only malformed base64
    (bad alphabet or impossible length) is passed through unchanged with
    ``decoded=False``.
    """
    if not value:
        return DecodeResult(text='', decoded=False)

    compact = _WHITESPACE_RE.sub('', value)
    compact += '=' * (-len(compact) % 4)
    try:
        data = base64.b64decode(compact, validate=True)
    except binascii.Error as e:
        logger.warning(f"Failed to decode base64 body, using it as-is: {e}")
        return DecodeResult(text=value, decoded=False)

    try:
        text = data.decode('utf-8')
    except UnicodeDecodeError:
        text = data.decode('latin-1')

    return DecodeResult(text=text, decoded=True)


def decode_base64(value: str) -> str:
    """Decode base64 text; never raises (see decode_base64_result)."""
    return decode_base64_result(value).text


def parse_email_headers(email_content: bytes) -> Message:
    """
    Parse the header block of a raw email.

    The returned Message supports case-insensitive lookups
    (``msg.get('subject')``); the body is not parsed.

    Args:
        email_content: Raw email bytes

    Returns:
        Message: Parsed headers
    """
    msg = BytesHeaderParser(policy=policy.default).parsebytes(email_content or b'')
    logger.info(f"Parsed email headers: {list(msg.keys())}")
    return msg
