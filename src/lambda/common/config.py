"""Configuration loaded from environment variables."""

import os
from dataclasses import dataclass

from common.exceptions import ConfigurationError

DEFAULT_TOKEN_ENDPOINT = "https://login.microsoftonline.com/common/oauth2/v2.0/token"
DEFAULT_GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
DEFAULT_TOKEN_SCOPE = "Files.ReadWrite.All offline_access"

# Environment variable -> config field, for the settings without defaults
REQUIRED_SETTINGS = {
    "AZURE_CLIENT_ID": "client_id",
    "ONEDRIVE_REFRESH_TOKEN": "refresh_token",
    "ONEDRIVE_SHARED_FOLDER": "shared_folder",
}


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_timeout(name: str) -> float | None:
    value = os.environ.get(name, "").strip()
    if not value:
        return None
    try:
        timeout = float(value)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid {name}: {value!r} is not a number",
            details={"invalid": [name]},
        ) from e
    return timeout if timeout > 0 else None


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid {name}: {value!r} is not an integer",
            details={"invalid": [name]},
        ) from e


@dataclass(frozen=True)
class ShareUploadConfig:
    """Uploader configuration from Lambda environment variables."""

    # Microsoft identity platform
    client_id: str = ""
    refresh_token: str = ""
    token_endpoint: str = DEFAULT_TOKEN_ENDPOINT
    token_scope: str = DEFAULT_TOKEN_SCOPE

    # OneDrive target
    shared_folder: str = ""
    graph_base_url: str = DEFAULT_GRAPH_BASE_URL

    # S3 source
    s3_endpoint_url: str = ""
    aws_region: str = ""

    # Local scratch storage
    scratch_dir: str = "/tmp"
    cleanup_download: bool = False

    # HTTP and token handling
    http_timeout_seconds: float | None = None
    token_cache_enabled: bool = False
    token_expiry_buffer_seconds: int = 300

    @classmethod
    def from_env(cls) -> "ShareUploadConfig":
        """Load configuration from environment variables."""
        return cls(
            client_id=os.environ.get("AZURE_CLIENT_ID", ""),
            refresh_token=os.environ.get("ONEDRIVE_REFRESH_TOKEN", ""),
            token_endpoint=os.environ.get("TOKEN_ENDPOINT", DEFAULT_TOKEN_ENDPOINT),
            token_scope=os.environ.get("TOKEN_SCOPE", DEFAULT_TOKEN_SCOPE),
            shared_folder=os.environ.get("ONEDRIVE_SHARED_FOLDER", ""),
            graph_base_url=os.environ.get(
                "GRAPH_BASE_URL", DEFAULT_GRAPH_BASE_URL
            ).rstrip("/"),
            s3_endpoint_url=os.environ.get("S3_ENDPOINT_URL", ""),
            aws_region=os.environ.get("AWS_REGION", ""),
            scratch_dir=os.environ.get("SCRATCH_DIR", "/tmp"),
            cleanup_download=_env_bool("CLEANUP_DOWNLOAD"),
            http_timeout_seconds=_env_timeout("HTTP_TIMEOUT_SECONDS"),
            token_cache_enabled=_env_bool("TOKEN_CACHE_ENABLED"),
            token_expiry_buffer_seconds=_env_int("TOKEN_EXPIRY_BUFFER_SECONDS", 300),
        )

    def validate(self) -> "ShareUploadConfig":
        """Raise ConfigurationError if any required setting is empty."""
        missing = [
            env_name
            for env_name, field_name in REQUIRED_SETTINGS.items()
            if not getattr(self, field_name).strip()
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                details={"missing": missing},
            )
        return self
