"""Shared fixtures for S3 to OneDrive uploader tests."""

import json
import os
import sys
from unittest.mock import MagicMock

import boto3
import pytest
import requests
from moto import mock_aws

# Add lambda source to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src", "lambda"))


@pytest.fixture(autouse=True)
def aws_env(monkeypatch, tmp_path):
    """Set AWS and OneDrive environment variables for testing."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("S3_ENDPOINT_URL", raising=False)

    monkeypatch.setenv("AZURE_CLIENT_ID", "test-client-id")
    monkeypatch.setenv("ONEDRIVE_REFRESH_TOKEN", "test-refresh-token")
    monkeypatch.setenv("ONEDRIVE_SHARED_FOLDER", "Reports")
    monkeypatch.setenv("SCRATCH_DIR", str(tmp_path))
    monkeypatch.delenv("TOKEN_CACHE_ENABLED", raising=False)
    monkeypatch.delenv("CLEANUP_DOWNLOAD", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")


@pytest.fixture
def mock_context():
    """Create a mock Lambda context."""
    ctx = MagicMock()
    ctx.aws_request_id = "test-request-id-12345"
    ctx.function_name = "test-function"
    ctx.memory_limit_in_mb = 256
    ctx.invoked_function_arn = "arn:aws:lambda:us-east-1:000000000000:function:test"
    return ctx


@pytest.fixture
def s3_client():
    """Create a moto-mocked S3 client."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        yield client


@pytest.fixture
def setup_source_bucket(s3_client):
    """Create the notifying bucket with a few objects."""
    s3_client.create_bucket(Bucket="my-s3-bucket")
    s3_client.put_object(Bucket="my-s3-bucket", Key="example.txt", Body=b"hello onedrive")
    s3_client.put_object(Bucket="my-s3-bucket", Key="empty.txt", Body=b"")
    s3_client.put_object(
        Bucket="my-s3-bucket", Key="folder/annual report.pdf", Body=b"%PDF-1.7 data"
    )
    return s3_client


def make_response(status_code: int, payload=None, text: str = "") -> requests.Response:
    """Build a real requests.Response carrying a JSON (or raw text) body."""
    response = requests.Response()
    response.status_code = status_code
    if payload is not None:
        response._content = json.dumps(payload).encode()
        response.headers["Content-Type"] = "application/json"
    else:
        response._content = text.encode()
    return response


def token_response(token: str = "access-token-1", expires_in: int = 3600, **extra):
    return make_response(
        200,
        {"access_token": token, "token_type": "Bearer", "expires_in": expires_in, **extra},
    )


SHARED_ITEMS = {
    "value": [
        {
            "id": "local-1",
            "name": "Reports",
            "file": {"mimeType": "text/plain"},
            "remoteItem": {"id": "file-item", "parentReference": {"driveId": "drive-x"}},
        },
        {
            "id": "local-2",
            "name": "Reports",
            "folder": {"childCount": 3},
            "remoteItem": {"id": "folder-item-1", "parentReference": {"driveId": "drive-1"}},
        },
        {
            "id": "local-3",
            "name": "Reports",
            "folder": {"childCount": 0},
            "remoteItem": {"id": "folder-item-2", "parentReference": {"driveId": "drive-2"}},
        },
    ]
}


@pytest.fixture
def shared_items():
    return json.loads(json.dumps(SHARED_ITEMS))


@pytest.fixture
def mock_session(shared_items):
    """A requests.Session stand-in answering token, listing and upload calls."""
    session = MagicMock(spec=requests.Session)
    session.post.side_effect = lambda *args, **kwargs: token_response()
    session.get.side_effect = lambda *args, **kwargs: make_response(200, shared_items)
    session.put.side_effect = lambda *args, **kwargs: make_response(
        201, {"id": "uploaded-item", "name": "example.txt"}
    )
    return session


@pytest.fixture
def http_response():
    """Factory fixture for real requests.Response objects."""
    return make_response


@pytest.fixture
def token_ok():
    """Factory fixture for a successful token endpoint response."""
    return token_response
