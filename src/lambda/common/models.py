"""Request-scoped value types."""

import os
import time
from dataclasses import dataclass
from urllib.parse import unquote_plus

from common.exceptions import InvalidEventError


@dataclass(frozen=True)
class NotificationRecord:
    """Bucket and key from one S3 event record."""

    bucket: str
    raw_key: str

    @property
    def key(self) -> str:
        """Object key with S3's form-style encoding removed."""
        return unquote_plus(self.raw_key)

    @property
    def extension(self) -> str:
        return os.path.splitext(self.key)[1]

    @classmethod
    def from_event(cls, event: dict) -> "NotificationRecord":
        """Build from ``Records[0]`` of an S3 notification; later records are ignored."""
        try:
            s3 = event["Records"][0]["s3"]
            bucket = s3["bucket"]["name"]
            raw_key = s3["object"]["key"]
        except (KeyError, IndexError, TypeError) as e:
            raise InvalidEventError(
                f"Event does not contain an S3 record: {e!r}",
                details={"event_keys": sorted(event) if isinstance(event, dict) else []},
            ) from e

        if not bucket or not raw_key:
            raise InvalidEventError(
                "S3 record is missing bucket name or object key",
                details={"bucket": bucket, "key": raw_key},
            )
        return cls(bucket=bucket, raw_key=raw_key)


@dataclass(frozen=True)
class AccessToken:
    value: str
    expires_at: float

    def is_valid(self, buffer_seconds: int = 0) -> bool:
        return time.time() < (self.expires_at - buffer_seconds)


@dataclass(frozen=True)
class FolderReference:
    """Identifiers Graph needs to address a folder shared from another drive."""

    drive_id: str
    item_id: str
    name: str = ""
