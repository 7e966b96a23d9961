"""
AWS Lambda handler forwarding SES email notifications from SQS to ntfy.

Thin orchestration layer that delegates to EmailProcessor.
Policy: Always delete messages (no retries). Errors logged to CloudWatch.
"""

import logging
from typing import Dict, Any

from domain.email_processor import EmailProcessor

# Configure logging
logger = logging.getLogger()
logger.setLevel(logging.INFO)

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Fails the cold start when NTFY_SERVER is missing
email_processor = EmailProcessor()


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Forward SES email notifications from SQS to ntfy.

    Args:
        event: Lambda event with SQS records
        context: Lambda context

    Returns:
        Dict with batchItemFailures (always empty - no retries)
    """
    logger.info("=" * 70)
    logger.info("SES Email to ntfy - Started")
    logger.info("=" * 70)

    records = event.get('Records', [])
    logger.info(f"Processing batch of {len(records)} message(s)")

    delivered_count = 0
    error_count = 0
    for record in records:
        result = email_processor.process_ses_record(record)

        if not result.success:
            error_count += 1
            logger.warning(
                f"Processed message {result.message_id} with ERRORS: "
                f"{result.error_message}"
            )
        elif result.delivered:
            delivered_count += 1
            logger.info(f"Delivered message {result.message_id} to topic {result.topic}")
        else:
            logger.warning(f"ntfy rejected message {result.message_id} for topic {result.topic}")

    logger.info("=" * 70)
    logger.info(f"Batch processing complete: {len(records)} message(s)")
    logger.info(f"  Delivered: {delivered_count}")
    logger.info(f"  Rejected: {len(records) - delivered_count - error_count}")
    logger.info(f"  Errors: {error_count}")
    logger.info("=" * 70)

    return {"batchItemFailures": []}
