"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest

# Add src to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

# Set up test environment variables before importing any modules
os.environ.setdefault('NTFY_SERVER', 'https://ntfy.example.com/')
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')


@pytest.fixture
def simple_raw_email():
    """Non-MIME email with CRLF line endings."""
    return (
        b"From: sender@example.com\r\n"
        b"To: user@example.com\r\n"
        b"Subject: Test\r\n"
        b"Date: 2025-06-27\r\n"
        b"\r\n"
        b"Hello world!"
    )


@pytest.fixture
def multipart_raw_email():
    """multipart/alternative email with an HTML part before a QP text part."""
    return (
        "From: Sender <sender@example.com>\r\n"
        "To: user@mail.example.com\r\n"
        "Subject: Multipart\r\n"
        "MIME-Version: 1.0\r\n"
        "Content-Type: multipart/alternative; boundary=\"b1\"\r\n"
        "\r\n"
        "--b1\r\n"
        "Content-Type: text/html; charset=\"UTF-8\"\r\n"
        "\r\n"
        "<p>HTML version</p>\r\n"
        "--b1\r\n"
        "Content-Type: text/plain; charset=\"UTF-8\"\r\n"
        "Content-Transfer-Encoding: quoted-printable\r\n"
        "\r\n"
        "Caf=C3=A9 menu=2C today=\r\n"
        " only=21\r\n"
        "--b1--\r\n"
    ).encode('utf-8')
