"""UploadToOneDrive Lambda: copies a newly created S3 object into a OneDrive shared folder."""

import json
import logging

import requests

from common.config import ShareUploadConfig
from common.graph_client import OneDriveClient
from common.logger import get_logger, log_with_context
from common.models import NotificationRecord
from common.s3_client import get_s3_client
from common.token_provider import TokenProvider
from upload_to_onedrive import pipeline

logger = get_logger(__name__)

FAILURE_MESSAGE = "Error processing file"


def success_outcome(folder_name: str) -> dict:
    message = f'File uploaded successfully to shared folder "{folder_name}"'
    return {"statusCode": 200, "body": json.dumps({"message": message})}


def failure_outcome(error: Exception) -> dict:
    return {
        "statusCode": 500,
        "body": json.dumps({"message": FAILURE_MESSAGE, "error": str(error)}),
    }


def handler(event: dict, context) -> dict:
    """Upload the object named by an S3 notification to the shared folder.

    Input event (S3 ObjectCreated notification, first record only):
        {"Records": [{"s3": {"bucket": {"name": "..."},
                             "object": {"key": "percent%20encoded.txt"}}}]}

    Returns:
        {"statusCode": 200, "body": "{\"message\": \"...\"}"}
        {"statusCode": 500, "body": "{\"message\": \"Error processing file\",
                                      \"error\": \"...\"}"}
    """
    request_id = getattr(context, "aws_request_id", "local")
    records = event.get("Records") if isinstance(event, dict) else None
    log_with_context(
        logger,
        logging.INFO,
        "UploadToOneDrive started",
        request_id=request_id,
        record_count=len(records) if isinstance(records, list) else 0,
    )

    try:
        config = ShareUploadConfig.from_env().validate()
        record = NotificationRecord.from_event(event)
        if len(records) > 1:
            logger.warning("Ignoring %d additional record(s)", len(records) - 1)

        log_with_context(
            logger,
            logging.INFO,
            "Processing object",
            request_id=request_id,
            bucket=record.bucket,
            key=record.key,
            raw_key=record.raw_key,
        )

        session = requests.Session()
        onedrive = OneDriveClient(config, TokenProvider(config, session), session)
        state = pipeline.run(record, config, get_s3_client(config), onedrive)
    except Exception as e:
        state = getattr(e, "pipeline_state", None)
        log_with_context(
            logger,
            logging.ERROR,
            "UploadToOneDrive failed",
            request_id=request_id,
            exc_info=True,
            error_kind=type(e).__name__,
            error=str(e),
            failed_at=state.failed_at.value if state and state.failed_at else "",
        )
        return failure_outcome(e)

    log_with_context(
        logger,
        logging.INFO,
        "UploadToOneDrive complete",
        request_id=request_id,
        bucket=record.bucket,
        key=record.key,
        size=state.size,
        folder=config.shared_folder,
        drive_item_id=state.upload_result.get("id", ""),
    )
    return success_outcome(config.shared_folder)
