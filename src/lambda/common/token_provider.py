"""OneDrive access tokens from a refresh-token grant, with optional caching."""

import time

import requests

from common.config import ShareUploadConfig
from common.exceptions import AuthenticationError, TransportError
from common.logger import get_logger
from common.models import AccessToken

logger = get_logger(__name__)

# Lifetime assumed when the token response omits expires_in
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


class TokenProvider:
    """Exchanges the configured refresh token for short-lived bearer tokens.

    With caching disabled (the default) every call is a full round trip to
    the token endpoint. With caching enabled the last token is reused until
    it is within ``token_expiry_buffer_seconds`` of expiring.
    """

    def __init__(
        self,
        config: ShareUploadConfig,
        session: requests.Session | None = None,
    ):
        self.config = config
        self.session = session or requests.Session()
        self._refresh_token = config.refresh_token
        self._cached: AccessToken | None = None

    def fetch_access_token(self) -> str:
        """Return a bearer token for Microsoft Graph."""
        if self.config.token_cache_enabled and self._cached is not None:
            if self._cached.is_valid(self.config.token_expiry_buffer_seconds):
                logger.debug("Using cached OneDrive access token")
                return self._cached.value

        token = self._request_token()
        if self.config.token_cache_enabled:
            self._cached = token
        return token.value

    def clear_cache(self) -> None:
        self._cached = None

    def _request_token(self) -> AccessToken:
        logger.info("Fetching OneDrive access token from %s", self.config.token_endpoint)
        form = {
            "client_id": self.config.client_id,
            "refresh_token": self._refresh_token,
            "grant_type": "refresh_token",
            "scope": self.config.token_scope,
        }
        try:
            response = self.session.post(
                self.config.token_endpoint,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.config.http_timeout_seconds,
            )
        except requests.RequestException as e:
            raise TransportError(
                f"Token request failed: {e}",
                details={"endpoint": self.config.token_endpoint},
            ) from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.status_code != 200:
            message = f"Failed to fetch OneDrive access token: HTTP {response.status_code}"
            reason = payload.get("error_description") or payload.get("error")
            if reason:
                message = f"{message} {reason}"
            raise AuthenticationError(
                message,
                details={
                    "status_code": response.status_code,
                    "error": payload.get("error", ""),
                },
            )

        access_token = payload.get("access_token")
        if not access_token:
            raise AuthenticationError(
                "Token response did not contain an access_token",
                details={"status_code": response.status_code},
            )

        raw_expires_in = payload.get("expires_in", DEFAULT_TOKEN_LIFETIME_SECONDS)
        try:
            expires_in = int(raw_expires_in)
        except (TypeError, ValueError) as e:
            raise AuthenticationError(
                f"Token response has an invalid expires_in: {raw_expires_in!r}",
                details={"status_code": response.status_code},
            ) from e

        # The identity platform may rotate the refresh token
        rotated = payload.get("refresh_token")
        if rotated and rotated != self._refresh_token:
            logger.info("Refresh token rotated by token endpoint")
            self._refresh_token = rotated

        logger.info("Access token retrieved, expires in %d seconds", expires_in)
        return AccessToken(value=access_token, expires_at=time.time() + expires_in)
