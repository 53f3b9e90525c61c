"""S3 client wrapper for streaming an object to local scratch storage."""

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from common.config import ShareUploadConfig
from common.exceptions import TransferError, TransportError
from common.logger import get_logger

logger = get_logger(__name__)

# Chunk size when streaming the object body to disk (1 MB)
DOWNLOAD_CHUNK_SIZE = 1024 * 1024


def get_s3_client(config: ShareUploadConfig):
    """Create a boto3 S3 client, pointed at a custom endpoint if configured."""
    kwargs = {"service_name": "s3"}
    if config.s3_endpoint_url:
        kwargs["endpoint_url"] = config.s3_endpoint_url
    if config.aws_region:
        kwargs["region_name"] = config.aws_region
    return boto3.client(**kwargs)


def download_object(s3_client, bucket: str, key: str, dest_path: str) -> int:
    """Stream s3://bucket/key into dest_path and return the bytes written.

    Returns only after the destination file is closed. Any failure, on the
    read side or the write side, raises a single exception.
    """
    logger.info("Downloading s3://%s/%s -> %s", bucket, key, dest_path)
    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "")
        raise TransferError(
            f"S3 get_object failed for s3://{bucket}/{key}: {e}",
            details={"bucket": bucket, "key": key, "error_code": error_code},
        ) from e
    except BotoCoreError as e:
        raise TransportError(
            f"S3 request failed for s3://{bucket}/{key}: {e}",
            details={"bucket": bucket, "key": key},
        ) from e

    body = response["Body"]
    bytes_written = 0
    try:
        with open(dest_path, "wb") as f:
            for chunk in body.iter_chunks(chunk_size=DOWNLOAD_CHUNK_SIZE):
                f.write(chunk)
                bytes_written += len(chunk)
    except BotoCoreError as e:
        raise TransferError(
            f"Failed reading s3://{bucket}/{key} after {bytes_written} bytes: {e}",
            details={"bucket": bucket, "key": key, "bytes_written": bytes_written},
        ) from e
    except OSError as e:
        raise TransferError(
            f"Failed writing s3://{bucket}/{key} to {dest_path}: {e}",
            details={"bucket": bucket, "key": key, "dest_path": dest_path},
        ) from e
    finally:
        body.close()

    logger.info(
        "Downloaded s3://%s/%s (%d bytes) to %s", bucket, key, bytes_written, dest_path
    )
    return bytes_written
