"""Microsoft Graph calls: resolve a shared folder and upload a file into it."""

import os
from typing import Any
from urllib.parse import quote

import requests

from common.config import ShareUploadConfig
from common.exceptions import (
    AuthenticationError,
    NotFoundError,
    TransportError,
    UploadError,
)
from common.logger import get_logger
from common.models import FolderReference
from common.token_provider import TokenProvider

logger = get_logger(__name__)

# Graph's simple upload (single PUT) limit
SIMPLE_UPLOAD_LIMIT_BYTES = 4 * 1024 * 1024

UPLOAD_SUCCESS_STATUSES = (200, 201)


def _graph_error(response: requests.Response) -> dict[str, str]:
    """Extract Graph's {"error": {"code", "message"}} body, if any."""
    try:
        error = response.json().get("error", {})
    except (ValueError, AttributeError):
        return {}
    if not isinstance(error, dict):
        return {}
    return {"code": error.get("code", ""), "message": error.get("message", "")}


def find_shared_folder(items: list[dict[str, Any]], name: str) -> FolderReference:
    """First item named exactly ``name`` with a folder facet wins."""
    for item in items:
        if not isinstance(item, dict):
            continue
        if item.get("name") != name or not item.get("folder"):
            continue
        remote = item.get("remoteItem") or {}
        drive_id = (remote.get("parentReference") or {}).get("driveId")
        item_id = remote.get("id")
        if not drive_id or not item_id:
            raise NotFoundError(
                f'Shared folder "{name}" has no remote item reference.',
                details={"folder": name, "item_id": item.get("id", "")},
            )
        return FolderReference(drive_id=drive_id, item_id=item_id, name=name)

    raise NotFoundError(
        f'Shared folder "{name}" not found.',
        details={"folder": name, "items_scanned": len(items)},
    )


class OneDriveClient:
    """OneDrive client scoped to items shared with the signed-in account."""

    def __init__(
        self,
        config: ShareUploadConfig,
        token_provider: TokenProvider,
        session: requests.Session | None = None,
    ):
        self.config = config
        self.token_provider = token_provider
        self.session = session or requests.Session()
        self.base_url = config.graph_base_url

    def _auth_headers(self) -> dict[str, str]:
        token = self.token_provider.fetch_access_token()
        return {"Authorization": f"Bearer {token}"}

    def resolve_shared_folder(self, name: str) -> FolderReference:
        """Locate the folder called ``name`` in the sharedWithMe listing."""
        logger.info('Resolving shared folder "%s"', name)
        headers = self._auth_headers()
        url = f"{self.base_url}/me/drive/sharedWithMe"
        try:
            response = self.session.get(
                url, headers=headers, timeout=self.config.http_timeout_seconds
            )
        except requests.RequestException as e:
            raise TransportError(
                f"Listing shared items failed: {e}", details={"url": url}
            ) from e

        if not response.ok:
            error = _graph_error(response)
            details = {"status_code": response.status_code, **error}
            message = (
                f"Listing shared items failed: HTTP {response.status_code}"
                f" {error.get('message', '')}"
            ).rstrip()
            if response.status_code in (401, 403):
                raise AuthenticationError(message, details=details)
            raise TransportError(message, details=details)

        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(
                f"Listing shared items returned a non-JSON body: HTTP {response.status_code}",
                details={"status_code": response.status_code, "url": url},
            ) from e
        items = payload.get("value", []) if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise TransportError(
                "Listing shared items returned an unexpected body",
                details={"status_code": response.status_code, "url": url},
            )
        folder = find_shared_folder(items, name)
        logger.info(
            'Shared folder "%s" resolved: driveId=%s, itemId=%s',
            name,
            folder.drive_id,
            folder.item_id,
        )
        return folder

    def upload_file(
        self,
        drive_id: str,
        item_id: str,
        local_path: str,
        remote_name: str,
    ) -> dict[str, Any]:
        """Upload a local file into a folder with one PUT of the whole body."""
        headers = self._auth_headers()
        headers["Content-Type"] = "application/octet-stream"

        size = os.path.getsize(local_path)
        if size > SIMPLE_UPLOAD_LIMIT_BYTES:
            logger.warning(
                "%s is %d bytes, above the %d byte simple upload limit",
                local_path,
                size,
                SIMPLE_UPLOAD_LIMIT_BYTES,
            )

        with open(local_path, "rb") as f:
            content = f.read()

        url = (
            f"{self.base_url}/drives/{drive_id}/items/{item_id}"
            f":/{quote(remote_name, safe='/')}:/content"
        )
        logger.info(
            "Uploading %s (%d bytes) as %s to driveId=%s, itemId=%s",
            local_path,
            size,
            remote_name,
            drive_id,
            item_id,
        )
        try:
            response = self.session.put(
                url,
                data=content,
                headers=headers,
                timeout=self.config.http_timeout_seconds,
            )
        except requests.RequestException as e:
            raise TransportError(
                f"Upload request failed: {e}", details={"url": url}
            ) from e

        if response.status_code not in UPLOAD_SUCCESS_STATUSES:
            error = _graph_error(response)
            raise UploadError(
                f"Failed to upload file to shared folder: HTTP {response.status_code}",
                details={
                    "status_code": response.status_code,
                    "remote_name": remote_name,
                    **error,
                },
            )

        logger.info("Uploaded %s to shared folder", remote_name)
        try:
            return response.json()
        except ValueError:
            return {}
