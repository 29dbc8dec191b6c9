"""
Tests for credential re-authentication.
"""

import json
from unittest.mock import Mock

import pytest
import requests

from itempush.upload.auth_client import AuthenticationClient
from itempush.upload.exceptions import AccountNotReady, AuthError
from itempush.upload.models import AccountStatus, LinkedAccount, StudioConfig


def make_response(status_code, body=None, text=""):
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(body).encode() if body is not None else text.encode()
    response.encoding = "utf-8"
    return response


class TestAuthenticationClient:

    def setup_method(self):
        self.config = StudioConfig(
            api_url="https://api.test.com",
            login_path="/api/authenticate/id",
            login_id_field="zepetoId",
        )
        self.http = Mock()
        self.client = AuthenticationClient(self.config, session=self.http)
        self.account = LinkedAccount(
            account_id="acc-1",
            login_id="creator@test.com",
            secret="pw",
            status=AccountStatus.CONNECTED,
        )

    def test_successful_login(self):
        self.http.request.return_value = make_response(
            200, {"authToken": "abc", "profile": {"name": "Creator", "userId": "u1"}}
        )

        result = self.client.authenticate(self.account)

        assert result.token == "Bearer abc"
        assert result.profile["userId"] == "u1"
        call = self.http.request.call_args
        assert call.args == ("POST", "https://api.test.com/api/authenticate/id")
        assert call.kwargs["json"] == {"zepetoId": "creator@test.com", "password": "pw"}
        assert "Authorization" not in call.kwargs["headers"]

    def test_bearer_prefix_not_duplicated(self):
        self.http.request.return_value = make_response(200, {"authToken": "Bearer abc"})

        assert self.client.authenticate(self.account).token == "Bearer abc"

    @pytest.mark.parametrize("status", [AccountStatus.PENDING, AccountStatus.FAILED])
    def test_not_connected_account_makes_no_call(self, status):
        account = LinkedAccount("acc-2", "x", "y", status=status)

        with pytest.raises(AccountNotReady):
            self.client.authenticate(account)

        self.http.request.assert_not_called()

    def test_missing_account(self):
        with pytest.raises(AccountNotReady):
            self.client.authenticate(None)

        self.http.request.assert_not_called()

    def test_rejected_login(self):
        self.http.request.return_value = make_response(401, text="bad credentials")

        with pytest.raises(AuthError) as exc_info:
            self.client.authenticate(self.account)

        assert exc_info.value.status_code == 401
        assert exc_info.value.endpoint == "/api/authenticate/id"
        assert "pw" not in str(exc_info.value)

    def test_response_without_token(self):
        self.http.request.return_value = make_response(200, {"profile": {}})

        with pytest.raises(AuthError):
            self.client.authenticate(self.account)

    def test_connection_failure(self):
        self.http.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(AuthError) as exc_info:
            self.client.authenticate(self.account)

        assert "refused" in str(exc_info.value)

    def test_owned_session_closed_on_exit(self):
        with AuthenticationClient(self.config) as client:
            client.session = Mock()
            session = client.session

        session.close.assert_called_once()
