"""
Notification formatting utilities.

Builds the ntfy topic name and the markdown message body for an email.
"""

from domain.models import EmailNotice
from services.text import sanitize_header

UNKNOWN_TOPIC = 'unknown'

# Trailing double spaces are markdown line breaks.
MARKDOWN_TEMPLATE = """
**Date:** {date}

**From:** {from_address}  
**To:** {to}  
**Subject:** {subject}  

---

{body}
"""


def generate_topic(address: str) -> str:
    """
    Derive an ntfy topic from the domain of an email address.

    Args:
        address: Recipient email address

    Returns:
        str: Domain with dots replaced by dashes, or 'unknown'

    Example:
        >>> generate_topic("user@sub.example.com")
        'sub-example-com'
        >>> generate_topic("not-an-email")
        'unknown'
    """
    if not address or '@' not in address:
        return UNKNOWN_TOPIC

    domain = address.split('@', 1)[1]
    return domain.replace('.', '-') if domain else UNKNOWN_TOPIC


def build_markdown_payload(notice: EmailNotice) -> str:
    """
    Render an email notice as the markdown notification body.

    Header fields are flattened with sanitize_header; the body is inserted
    as given (already cleaned and truncated by the caller).
    """
    return MARKDOWN_TEMPLATE.format(
        date=sanitize_header(notice.date),
        from_address=sanitize_header(notice.from_address),
        to=sanitize_header(notice.to),
        subject=sanitize_header(notice.subject),
        body=notice.body,
    ).strip()
