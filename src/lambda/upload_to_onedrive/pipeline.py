"""Download -> Resolve -> Upload, one step per function, strictly in order."""

import enum
import os
import time
from dataclasses import dataclass, field
from typing import Any

from common.config import ShareUploadConfig
from common.exceptions import TransferError
from common.graph_client import OneDriveClient
from common.logger import get_logger
from common.models import FolderReference, NotificationRecord
from common.s3_client import download_object

logger = get_logger(__name__)


class PipelineStage(enum.Enum):
    START = "START"
    DOWNLOADED = "DOWNLOADED"
    FOLDER_RESOLVED = "FOLDER_RESOLVED"
    UPLOADED = "UPLOADED"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass
class PipelineState:
    """What one invocation has produced so far."""

    record: NotificationRecord
    stage: PipelineStage = PipelineStage.START
    download_path: str = ""
    size: int = 0
    folder: FolderReference | None = None
    upload_result: dict[str, Any] = field(default_factory=dict)
    failed_at: PipelineStage | None = None


def build_download_path(scratch_dir: str, extension: str) -> str:
    """Unique scratch path from the current time plus the original extension."""
    return os.path.join(scratch_dir, f"download-{time.time_ns() // 1_000_000}{extension}")


def download_step(state: PipelineState, s3_client, config: ShareUploadConfig) -> PipelineState:
    state.download_path = build_download_path(config.scratch_dir, state.record.extension)
    state.size = download_object(
        s3_client, state.record.bucket, state.record.key, state.download_path
    )
    if os.path.getsize(state.download_path) == 0:
        raise TransferError(
            "Downloaded file is empty.",
            details={"bucket": state.record.bucket, "key": state.record.key},
        )
    state.stage = PipelineStage.DOWNLOADED
    return state


def resolve_step(
    state: PipelineState, onedrive: OneDriveClient, config: ShareUploadConfig
) -> PipelineState:
    state.folder = onedrive.resolve_shared_folder(config.shared_folder)
    state.stage = PipelineStage.FOLDER_RESOLVED
    return state


def upload_step(state: PipelineState, onedrive: OneDriveClient) -> PipelineState:
    # The decoded key is the remote name; "a/b.txt" lands in subfolder "a"
    state.upload_result = onedrive.upload_file(
        state.folder.drive_id,
        state.folder.item_id,
        state.download_path,
        state.record.key,
    )
    state.stage = PipelineStage.UPLOADED
    return state


def cleanup_step(state: PipelineState, config: ShareUploadConfig) -> PipelineState:
    """Remove the scratch file after a successful upload, when configured."""
    if config.cleanup_download and state.download_path:
        try:
            os.remove(state.download_path)
            logger.info("Removed scratch file %s", state.download_path)
        except FileNotFoundError:
            logger.warning("Scratch file %s already gone", state.download_path)
    state.stage = PipelineStage.DONE
    return state


def run(
    record: NotificationRecord,
    config: ShareUploadConfig,
    s3_client,
    onedrive: OneDriveClient,
) -> PipelineState:
    """Run every step in order; the first exception stops the run.

    The state is attached to the raised exception as ``pipeline_state`` so
    callers can report the stage reached.
    """
    state = PipelineState(record=record)
    try:
        download_step(state, s3_client, config)
        resolve_step(state, onedrive, config)
        upload_step(state, onedrive)
        cleanup_step(state, config)
    except Exception as e:
        state.failed_at = state.stage
        state.stage = PipelineStage.FAILED
        e.pipeline_state = state
        raise
    return state
