"""
Email processing pipeline - core business logic.

This module handles the end-to-end processing of SES email notifications:
1. Parse SES notification from SQS record
2. Fetch raw email from S3
3. Extract, clean and truncate the plain-text body
4. Publish a markdown notification to the recipient domain's ntfy topic
5. Return result (success or failure)

All errors are caught and returned as ProcessingResult with success=False.
No exceptions propagate out of process_ses_record.
"""

import asyncio
import json
import logging
import os
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Tuple

import httpx

from .models import EmailNotice, InboundEmail, ProcessingResult
from services import email as email_service
from services import notification as notification_service
from services import s3 as s3_service
from services import text as text_service
from integrations import ntfy

logger = logging.getLogger(__name__)

UNKNOWN_SENDER = '(unknown sender)'
NO_SUBJECT = '(no subject)'


def _read_body_max_length() -> int:
    raw_value = os.environ.get('BODY_MAX_LENGTH', str(text_service.DEFAULT_MAX_LENGTH))
    try:
        return int(raw_value)
    except ValueError:
        raise ntfy.ConfigurationError(f"BODY_MAX_LENGTH must be an integer, got: '{raw_value}'")


class EmailProcessor:
    """
    Handles end-to-end email processing pipeline.

    Holds only configuration; every email is processed independently.
    Returns ProcessingResult for explicit success/failure handling.
    """

    def __init__(
        self,
        settings: Optional[ntfy.NtfySettings] = None,
        body_max_length: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize email processor.

        Args:
            settings: ntfy settings (read from the environment if None)
            body_max_length: Body truncation limit (BODY_MAX_LENGTH if None)
            transport: Optional httpx transport used for delivery

        Raises:
            ConfigurationError: If NTFY_SERVER is not configured
        """
        self.settings = settings or ntfy.load_settings()
        if body_max_length is None:
            body_max_length = _read_body_max_length()
        self.body_max_length = body_max_length
        self.transport = transport

    def process_ses_record(self, record: Dict[str, Any]) -> ProcessingResult:
        """
        Process a single SQS record containing SES notification.

        Args:
            record: SQS record dict containing SES notification

        Returns:
            ProcessingResult with success=True or success=False (errors logged)
        """
        message_id = record.get('messageId', 'UNKNOWN')
        logger.info(f"Processing SQS message: {message_id}")

        try:
            inbound = self._parse_ses_notification(record)
            logger.info(f"Parsed: to={inbound.to}, from={inbound.from_address}, size={len(inbound.raw):,}")

            topic, delivered = asyncio.run(self.process_email(inbound))

            return ProcessingResult(
                success=True,
                message_id=message_id,
                topic=topic,
                delivered=delivered
            )

        except Exception as e:
            logger.error(f"Failed to process {message_id}: {e}", exc_info=True)

            return ProcessingResult(
                success=False,
                message_id=message_id,
                error_message=str(e)
            )

    async def process_email(self, inbound: InboundEmail) -> Tuple[str, bool]:
        """
        Turn one inbound email into an ntfy notification.

        Args:
            inbound: The received email

        Returns:
            tuple: (topic, delivered)

        Raises:
            httpx.HTTPError: If the notification could not be sent
        """
        try:
            notice = self.build_notice(inbound)
            payload = notification_service.build_markdown_payload(notice)
            topic = notification_service.generate_topic(notice.to)

            delivered = await ntfy.send_notification(
                self.settings,
                topic,
                payload,
                notice.subject,
                notice.to,
                transport=self.transport
            )

            if delivered:
                logger.info(f"Email notification sent for: {notice.subject}")
            return topic, delivered

        except Exception as e:
            logger.error(f"Email processing failed: {e}")
            raise

    def build_notice(self, inbound: InboundEmail) -> EmailNotice:
        """
        Extract display fields and the cleaned body from an email.

        Header values win over envelope values; missing values get
        placeholders so the notification is always complete.
        """
        to = inbound.to or ''
        from_address = inbound.get_header('from') or inbound.from_address or UNKNOWN_SENDER
        subject = inbound.get_header('subject') or NO_SUBJECT
        date = inbound.get_header('date') or datetime.now(timezone.utc).isoformat()

        body = email_service.extract_plain_text(inbound.text)
        body = text_service.clean_body_text(body)
        body = text_service.truncate_text(body, self.body_max_length)

        return EmailNotice(
            from_address=from_address,
            to=to,
            subject=subject,
            date=date,
            body=body
        )

    def _parse_ses_notification(self, record: Dict[str, Any]) -> InboundEmail:
        """
        Parse SQS record, fetch the raw email from S3 and wrap it.

        Handles both direct SES->SQS and SNS-wrapped notifications.

        Args:
            record: SQS record dict

        Returns:
            InboundEmail: Raw email with envelope addresses and parsed headers

        Raises:
            ValueError: If notification structure is invalid or S3 fetch fails
            json.JSONDecodeError: If JSON parsing fails
        """
        # Parse SQS body
        sqs_body = json.loads(record['body'])

        # Check if wrapped in SNS (optional setup: SES -> SNS -> SQS)
        if sqs_body.get('Type') == 'Notification' and 'Message' in sqs_body:
            logger.info("Unwrapping SNS message (SES -> SNS -> SQS)")
            ses_notification = json.loads(sqs_body['Message'])
        else:
            # Direct SES to SQS (standard setup)
            ses_notification = sqs_body

        # Validate SES notification structure
        if 'mail' not in ses_notification or 'receipt' not in ses_notification:
            raise ValueError("SES notification missing 'mail' or 'receipt' fields")

        mail = ses_notification['mail']
        receipt = ses_notification['receipt']
        common_headers = mail.get('commonHeaders', {})

        # Envelope recipient first, then the To header
        recipients = receipt.get('recipients') or mail.get('destination') or []
        to_field = common_headers.get('to', [])
        if recipients:
            to = recipients[0]
        elif isinstance(to_field, list) and to_field:
            to = to_field[0]
        elif isinstance(to_field, str):
            to = to_field
        else:
            to = ''

        from_address = mail.get('source') or mail.get('returnPath') or ''

        # Extract S3 location
        action = receipt.get('action', {})
        bucket_name = action.get('bucketName')
        object_key = action.get('objectKey')

        if not bucket_name or not object_key:
            raise ValueError("Missing S3 location in SES notification")

        logger.info(f"Fetching email from: s3://{bucket_name}/{object_key}")
        raw_email = s3_service.fetch_email_from_s3(bucket_name, object_key)
        logger.info(f"Fetched {len(raw_email):,} bytes from S3")

        return InboundEmail(
            to=to,
            from_address=from_address,
            raw=raw_email,
            headers=email_service.parse_email_headers(raw_email)
        )
