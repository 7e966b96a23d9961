"""
S3 operations utilities for Lambda handlers.

The SES receipt rule stores every inbound message as an S3 object; this
module reads those objects back as raw bytes.
"""

import logging

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# Single attempt with bounded timeouts; the SQS message is never retried anyway
s3_config = Config(
    retries={
        'max_attempts': 1,
        'mode': 'standard'
    },
    connect_timeout=10,
    read_timeout=30
)

s3_client = boto3.client('s3', config=s3_config)
logger.info("S3 client initialized with timeouts: connect=10s, read=30s, max_attempts=1")

# S3 error codes that mean the stored email is gone for good
_MISSING_OBJECT_ERRORS = {
    'NoSuchKey': "Email file not found in S3: {key}",
    'NoSuchBucket': "S3 bucket not found: {bucket}",
}


def fetch_email_from_s3(bucket: str, key: str) -> bytes:
    """
    Fetch a raw SES email from S3.

    Args:
        bucket: Bucket named in the SES receipt action
        key: Object key named in the SES receipt action

    Returns:
        bytes: The raw RFC 822 message

    Raises:
        ValueError: If bucket or key is empty, or the object does not exist
        ClientError: For any other S3 error

    Example:
        >>> raw = fetch_email_from_s3(
        ...     bucket="ses-inbound-mail",
        ...     key="incoming/0e5bcd1u2l7j9n0mk8o3example"
        ... )
        >>> raw[:5]
        b'From:'
    """
    if not bucket or not key:
        raise ValueError("S3 bucket and key are required to fetch an email")

    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', '')
        if error_code in _MISSING_OBJECT_ERRORS:
            message = _MISSING_OBJECT_ERRORS[error_code].format(bucket=bucket, key=key)
            logger.error(f"{message} (s3://{bucket}/{key})")
            raise ValueError(message)

        logger.error(f"Failed to fetch from S3 s3://{bucket}/{key}: {e}")
        raise

    content = response['Body'].read()
    logger.info(f"Read s3://{bucket}/{key}: {len(content):,} bytes")
    return content
