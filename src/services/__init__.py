"""
Utility functions for Lambda handler operations.

This package contains reusable service functions for email parsing, text
cleanup, notification formatting and S3 access.
"""

__all__ = ['email', 'notification', 's3', 'text']
