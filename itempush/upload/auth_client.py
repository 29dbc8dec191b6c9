"""
Authentication Client

Exchanges a linked account's stored credentials for a short-lived bearer
token. Tokens are never cached: every upload session logs in again.
"""

import logging
from typing import Optional

import requests

from .api_client import StudioAPIClient
from .exceptions import AccountNotReady, AuthError
from .models import AuthResult, LinkedAccount


logger = logging.getLogger(__name__)


class AuthenticationClient(StudioAPIClient):
    """Handles login against the platform's authentication endpoint"""

    def authenticate(self, account: Optional[LinkedAccount]) -> AuthResult:
        """POST credentials to the login endpoint and return a bearer token"""
        if account is None:
            raise AccountNotReady("Linked account not found")
        if not account.is_connected:
            raise AccountNotReady(
                f"Account {account.account_id} is not connected (status: {account.status.value})",
                account_id=account.account_id,
            )

        endpoint = self.config.login_path
        url = self.config.url_for(endpoint)
        payload = {
            self.config.login_id_field: account.login_id,
            self.config.secret_field: account.secret,
        }

        try:
            response = self._request("POST", url, payload=payload)
        except requests.exceptions.RequestException as e:
            raise AuthError(f"Login request failed: {str(e)}", endpoint=endpoint)

        if not response.ok:
            raise AuthError(
                f"Login rejected for account {account.account_id}: {self._error_text(response)}",
                endpoint=endpoint,
                status_code=response.status_code,
            )

        data = self._unwrap(self._json(response))
        raw_token = data.get(self.config.token_field)
        if not raw_token:
            raise AuthError(
                "Login response did not contain a token",
                endpoint=endpoint,
                status_code=response.status_code,
            )

        token = raw_token if str(raw_token).startswith("Bearer ") else f"Bearer {raw_token}"
        profile = data.get("profile") if isinstance(data.get("profile"), dict) else {}

        logger.info(f"Authenticated account {account.account_id}")
        return AuthResult(token=token, profile=profile)
