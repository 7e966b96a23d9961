"""
Data models for email processing domain.

These type-safe data structures define clear contracts between components.
None of them outlive the processing of a single email.
"""

from dataclasses import dataclass, field
from email.message import Message
from typing import Optional


@dataclass(frozen=True)
class DecodeResult:
    """
    Outcome of a content-transfer decode.

    Attributes:
        text: Decoded text, or the original input when decoding failed
        decoded: False when the input was passed through unchanged
    """
    text: str
    decoded: bool


@dataclass(frozen=True)
class InboundEmail:
    """
    Raw inbound email as delivered by the mail receiving runtime.

    Attributes:
        to: Envelope recipient address
        from_address: Envelope sender address
        raw: Raw RFC 822 message bytes
        headers: Parsed header block of ``raw``
    """
    to: str
    from_address: str
    raw: bytes
    headers: Message = field(default_factory=Message, repr=False, compare=False)

    def get_header(self, name: str) -> str:
        """Look up a header by case-insensitive name ('' if absent)."""
        value = self.headers.get(name)
        return str(value) if value is not None else ''

    @property
    def text(self) -> str:
        """Raw message decoded as UTF-8, undecodable bytes replaced."""
        return self.raw.decode('utf-8', errors='replace')


@dataclass(frozen=True)
class EmailNotice:
    """
    Email fields rendered into a notification.

    Attributes:
        from_address: Sender as shown to the reader
        to: Recipient address
        subject: Subject line
        date: Date header (or processing time)
        body: Cleaned and truncated plain-text body
    """
    from_address: str
    to: str
    subject: str
    date: str
    body: str


@dataclass
class ProcessingResult:
    """
    Result of email processing operation.

    This explicit result type makes success/failure handling clear
    and prevents exceptions from being used for control flow.

    Attributes:
        success: Whether processing completed without raising
        message_id: SQS message identifier
        topic: ntfy topic the notification was sent to
        delivered: Whether the ntfy server accepted the notification
        error_message: Error description (if processing failed)
    """
    success: bool
    message_id: str
    topic: Optional[str] = None
    delivered: bool = False
    error_message: Optional[str] = None

    @property
    def should_delete_message(self) -> bool:
        """Always True - delete all messages to prevent infinite retries."""
        return True

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.success:
            return (
                f"ProcessingResult(success=True, message_id={self.message_id}, "
                f"topic={self.topic}, delivered={self.delivered})"
            )
        else:
            return f"ProcessingResult(success=False, message_id={self.message_id}, error={self.error_message})"
