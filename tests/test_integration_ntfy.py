"""
Tests for ntfy notification delivery.
"""

import asyncio
import base64
import logging

import httpx
import pytest
from unittest.mock import patch
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from integrations import ntfy


def _recording_transport(requests, status_code=200):
    """MockTransport that records requests and answers with status_code."""
    def handler(request):
        requests.append(request)
        return httpx.Response(status_code)
    return httpx.MockTransport(handler)


class TestLoadSettings:
    """Test configuration loading."""

    @patch.dict(os.environ, {'NTFY_SERVER': 'https://ntfy.sh'}, clear=True)
    def test_load_settings(self):
        """Test a configured server is returned."""
        settings = ntfy.load_settings()

        assert settings.server == 'https://ntfy.sh'
        assert settings.timeout_seconds is None

    @patch.dict(os.environ, {'NTFY_SERVER': 'https://ntfy.sh', 'NTFY_TIMEOUT_SECONDS': '7.5'}, clear=True)
    def test_load_settings_with_timeout(self):
        """Test the optional timeout is parsed."""
        assert ntfy.load_settings().timeout_seconds == 7.5

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_server(self):
        """Test ConfigurationError when NTFY_SERVER is not set."""
        with pytest.raises(ntfy.ConfigurationError, match="NTFY_SERVER"):
            ntfy.load_settings()

    @patch.dict(os.environ, {'NTFY_SERVER': 'https://ntfy.sh', 'NTFY_TIMEOUT_SECONDS': 'soon'}, clear=True)
    def test_invalid_timeout(self):
        """Test ConfigurationError for a non-numeric timeout."""
        with pytest.raises(ntfy.ConfigurationError, match="NTFY_TIMEOUT_SECONDS"):
            ntfy.load_settings()


class TestTopicUrl:
    """Test publish URL construction."""

    def test_trailing_slash_trimmed(self):
        """Test a single trailing slash is removed from the server."""
        settings = ntfy.NtfySettings(server='https://ntfy.example.com/')

        assert settings.topic_url('example-com') == 'https://ntfy.example.com/example-com'

    def test_without_trailing_slash(self):
        """Test a bare server URL gets the topic appended."""
        settings = ntfy.NtfySettings(server='https://ntfy.example.com')

        assert settings.topic_url('topic') == 'https://ntfy.example.com/topic'


class TestBuildHeaders:
    """Test ntfy publish headers."""

    def test_headers(self):
        """Test title, priority, tags and markdown flag."""
        headers = ntfy.build_headers("Weekly report", "user@example.com")

        assert headers == {
            'Title': 'Email: Weekly report',
            'Priority': '4',
            'Tags': 'email,user@example.com',
            'Markdown': 'yes',
        }

    def test_headers_sanitized(self):
        """Test line breaks cannot inject extra headers."""
        headers = ntfy.build_headers("Hi\r\nPriority: 1", "user@example.com\n")

        assert headers['Title'] == 'Email: Hi Priority: 1'
        assert headers['Tags'] == 'email,user@example.com'

    def test_non_ascii_title_encoded(self):
        """Test non-ASCII values are sent as RFC 2047 encoded words."""
        headers = ntfy.build_headers("Café", "user@example.com")

        assert headers['Title'].startswith('=?UTF-8?B?')
        encoded = headers['Title'][len('=?UTF-8?B?'):-len('?=')]
        assert base64.b64decode(encoded).decode('utf-8') == 'Email: Café'


class TestSendNotification:
    """Test the send_notification coroutine."""

    def test_send_success(self):
        """Test one POST with payload and headers is issued."""
        requests = []
        settings = ntfy.NtfySettings(server='https://ntfy.example.com/')

        delivered = asyncio.run(ntfy.send_notification(
            settings, 'example-com', '**From:** a', 'Subject', 'to@example.com',
            transport=_recording_transport(requests)
        ))

        assert delivered is True
        assert len(requests) == 1
        request = requests[0]
        assert request.method == 'POST'
        assert str(request.url) == 'https://ntfy.example.com/example-com'
        assert request.content == b'**From:** a'
        assert request.headers['Title'] == 'Email: Subject'
        assert request.headers['Priority'] == '4'
        assert request.headers['Tags'] == 'email,to@example.com'
        assert request.headers['Markdown'] == 'yes'

    def test_send_rejected_is_logged_not_raised(self, caplog):
        """Test a non-2xx response returns False and logs an error."""
        requests = []
        settings = ntfy.NtfySettings(server='https://ntfy.example.com')

        with caplog.at_level(logging.ERROR):
            delivered = asyncio.run(ntfy.send_notification(
                settings, 'topic', 'payload', 'subject', 'to@example.com',
                transport=_recording_transport(requests, status_code=403)
            ))

        assert delivered is False
        assert len(requests) == 1
        assert "ntfy request failed: 403" in caplog.text

    def test_send_transport_error_raised(self, caplog):
        """Test a connection failure is logged and propagated."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        settings = ntfy.NtfySettings(server='https://ntfy.example.com')

        with caplog.at_level(logging.ERROR):
            with pytest.raises(httpx.ConnectError):
                asyncio.run(ntfy.send_notification(
                    settings, 'topic', 'payload', 'subject', 'to@example.com',
                    transport=httpx.MockTransport(handler)
                ))

        assert "Failed to send ntfy notification" in caplog.text


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
