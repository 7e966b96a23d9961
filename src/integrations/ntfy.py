"""
ntfy Notification Module

This module delivers markdown notifications to an ntfy server over HTTP.

Usage:
    from integrations import ntfy

    settings = ntfy.load_settings()
    delivered = await ntfy.send_notification(
        settings,
        topic="example-com",
        payload="**From:** ...",
        subject="Hello",
        to="user@example.com",
    )
"""

import base64
import logging
import os
from dataclasses import dataclass
from typing import Optional

import httpx

from services.text import sanitize_header

# Configure logging
logger = logging.getLogger(__name__)

NOTIFICATION_PRIORITY = '4'


# ============================================================================
# Custom Exception Classes
# ============================================================================

class ConfigurationError(Exception):
    """Raised when module configuration is invalid or missing."""
    pass


# ============================================================================
# Configuration
# ============================================================================

@dataclass(frozen=True)
class NtfySettings:
    """
    Connection settings for the ntfy server.

    Attributes:
        server: Base URL of the ntfy server (e.g. "https://ntfy.sh")
        timeout_seconds: Request timeout; None leaves it to the Lambda timeout
    """
    server: str
    timeout_seconds: Optional[float] = None

    def topic_url(self, topic: str) -> str:
        """Build the publish URL for a topic (one trailing slash trimmed)."""
        server = self.server[:-1] if self.server.endswith('/') else self.server
        return f"{server}/{topic}"


def load_settings() -> NtfySettings:
    """
    Read and validate ntfy settings from environment variables.

    Returns:
        NtfySettings: Validated settings

    Raises:
        ConfigurationError: If NTFY_SERVER is missing or a value is invalid
    """
    server = os.environ.get('NTFY_SERVER')
    if not server:
        raise ConfigurationError(
            "NTFY_SERVER environment variable is required but not set. "
            "Please configure this in your SAM template or Lambda environment."
        )

    raw_timeout = os.environ.get('NTFY_TIMEOUT_SECONDS')
    timeout_seconds = None
    if raw_timeout:
        try:
            timeout_seconds = float(raw_timeout)
        except ValueError:
            raise ConfigurationError(
                f"NTFY_TIMEOUT_SECONDS must be a number, got: '{raw_timeout}'"
            )

    logger.info(f"ntfy server configured: {server}, timeout={timeout_seconds}")
    return NtfySettings(server=server, timeout_seconds=timeout_seconds)


# ============================================================================
# Delivery
# ============================================================================

def _encode_header_value(value: str) -> str:
    """
    Make a header value safe for HTTP.

    Non-ASCII values are sent as an RFC 2047 encoded word, which ntfy decodes.
    """
    try:
        value.encode('ascii')
        return value
    except UnicodeEncodeError:
        encoded = base64.b64encode(value.encode('utf-8')).decode('ascii')
        return f"=?UTF-8?B?{encoded}?="


def build_headers(subject: str, to: str) -> dict:
    """Build the ntfy publish headers for an email notification."""
    headers = {
        'Title': f"Email: {sanitize_header(subject)}",
        'Priority': NOTIFICATION_PRIORITY,
        'Tags': f"email,{sanitize_header(to)}",
        'Markdown': 'yes',
    }
    return {name: _encode_header_value(value) for name, value in headers.items()}


async def send_notification(
    settings: NtfySettings,
    topic: str,
    payload: str,
    subject: str,
    to: str,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> bool:
    """
    Publish a notification to an ntfy topic.

    Args:
        settings: ntfy connection settings
        topic: Destination topic
        payload: Markdown message body
        subject: Email subject (used for the title)
        to: Recipient address (used as a tag)
        transport: Optional httpx transport (tests inject a MockTransport)

    Returns:
        bool: True if the server accepted the notification. A rejected
        notification is logged and returns False.

    Raises:
        httpx.HTTPError: If the request could not be sent
    """
    url = settings.topic_url(topic)
    headers = build_headers(subject, to)

    logger.info(f"Publishing notification: url={url}, payload_length={len(payload)}")

    try:
        async with httpx.AsyncClient(transport=transport, timeout=settings.timeout_seconds) as client:
            response = await client.post(url, content=payload.encode('utf-8'), headers=headers)
    except httpx.HTTPError as e:
        logger.error(f"Failed to send ntfy notification to {url}: {e}")
        raise

    if not response.is_success:
        logger.error(f"ntfy request failed: {response.status_code} {response.reason_phrase}")
        return False

    return True
