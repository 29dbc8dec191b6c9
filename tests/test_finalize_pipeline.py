"""
Tests for the link -> build -> publish pipeline.
"""

import json
from unittest.mock import Mock, patch

import requests

from itempush.upload.finalize_pipeline import FinalizePipeline
from itempush.upload.models import (
    EndpointCandidate,
    FinalizeSettings,
    SessionState,
    StudioConfig,
    UploadSession,
    UploadTarget,
)


def make_response(status_code, body=None, text=""):
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(body).encode() if body is not None else text.encode()
    response.encoding = "utf-8"
    return response


API = "https://api.test.com"


class TestFinalizePipeline:

    def setup_method(self):
        self.config = StudioConfig(api_url=API)
        self.settings = FinalizeSettings(price=5, currency="ZEM")
        self.http = Mock()
        self.sleep = Mock()
        self.pipeline = FinalizePipeline(self.config, self.settings, session=self.http, sleep=self.sleep)

    def requested(self):
        return [(c.args[0], c.args[1]) for c in self.http.request.call_args_list]

    def finalize(self, session=None):
        return self.pipeline.finalize("f1", "DR_TOP_01", "Bearer t", "shirt.zepeto", upload_session=session)

    def test_successful_pipeline(self):
        self.http.request.side_effect = [
            make_response(200, {"id": "asset-1"}),
            make_response(200, {}),
            make_response(201, {"id": "item-1"}),
        ]

        result = self.finalize()

        assert result.success is True
        assert result.asset_id == "asset-1"
        assert self.requested() == [
            ("POST", f"{API}/api/assets/link"),
            ("POST", f"{API}/api/assets/asset-1/build/DR_TOP_01"),
            ("POST", f"{API}/api/items"),
        ]

    def test_request_payloads_and_token(self):
        self.http.request.side_effect = [
            make_response(200, {"id": "asset-1"}),
            make_response(200, {}),
            make_response(200, {}),
        ]

        self.finalize()

        calls = self.http.request.call_args_list
        assert calls[0].kwargs["json"] == {"categoryId": "DR_TOP_01", "fileId": "f1", "name": "shirt.zepeto"}
        assert calls[2].kwargs["json"] == {
            "price": 5,
            "assetId": "asset-1",
            "categoryId": "DR_TOP_01",
            "currency": "ZEM",
        }
        assert all(c.kwargs["headers"]["Authorization"] == "Bearer t" for c in calls)

    def test_settle_delays_without_status_endpoint(self):
        self.http.request.side_effect = [
            make_response(200, {"id": "asset-1"}),
            make_response(200, {}),
            make_response(200, {}),
        ]

        result = self.finalize()

        assert [c.args[0] for c in self.sleep.call_args_list] == [3.0, 2.0]
        assert result.build_confirmed is False

    def test_link_conflict_uses_fallback_once(self):
        self.http.request.side_effect = [
            make_response(409, text="cross-type link rejected"),
            make_response(200, {"id": "asset-2"}),
            make_response(200, {}),
            make_response(200, {}),
        ]

        result = self.finalize()

        assert result.success is True
        assert result.asset_id == "asset-2"
        urls = [url for _, url in self.requested()]
        assert urls.count(f"{API}/api/assets") == 1
        fallback_call = self.http.request.call_args_list[1]
        assert fallback_call.kwargs["json"] == {"categoryId": "DR_TOP_01", "name": "shirt.zepeto", "fileId": "f1"}

    def test_link_and_fallback_rejected(self):
        self.http.request.side_effect = [
            make_response(409, text="conflict"),
            make_response(400, text="bad request"),
        ]
        session = UploadSession.for_finalize("f1", "DR_TOP_01", "Bearer t", "shirt.zepeto")

        result = self.finalize(session)

        assert result.success is False
        assert result.error_type == "LinkError"
        assert "[409] conflict" in result.message
        assert self.http.request.call_count == 2
        self.sleep.assert_not_called()
        assert session.state == SessionState.FAILED

    def test_build_failure_is_not_fatal(self):
        self.http.request.side_effect = [
            make_response(200, {"id": "asset-1"}),
            make_response(500, text="build queue full"),
            make_response(200, {}),
        ]

        result = self.finalize()

        assert result.success is True
        assert self.http.request.call_count == 3

    def test_build_connection_error_is_not_fatal(self):
        self.http.request.side_effect = [
            make_response(200, {"id": "asset-1"}),
            requests.exceptions.ConnectionError("reset"),
            make_response(200, {}),
        ]

        assert self.finalize().success is True

    def test_publish_rejected(self):
        self.http.request.side_effect = [
            make_response(200, {"id": "asset-1"}),
            make_response(200, {}),
            make_response(400, {"message": "Item validation failed"}),
        ]
        session = UploadSession.for_finalize("f1", "DR_TOP_01", "Bearer t", "shirt.zepeto")

        result = self.finalize(session)

        assert result.success is False
        assert result.error_type == "PublishError"
        assert "Item validation failed" in result.message
        assert result.asset_id == "asset-1"
        assert session.history[-2:] == [SessionState.BUILT, SessionState.FAILED]

    def test_session_reaches_published(self):
        self.http.request.side_effect = [
            make_response(200, {"result": {"id": "asset-1"}}),
            make_response(200, {}),
            make_response(200, {}),
        ]
        session = UploadSession.for_finalize("f1", "DR_TOP_01", "Bearer t", "shirt.zepeto")

        self.finalize(session)

        assert session.state == SessionState.PUBLISHED
        assert session.asset_id == "asset-1"
        assert session.history[-3:] == [SessionState.LINKED, SessionState.BUILT, SessionState.PUBLISHED]

    def discovered_session(self):
        session = UploadSession(account_id="a", file_name="shirt.zepeto", file_size=1, category_key="top")
        session.bind_token("Bearer t")
        session.bind_category("DR_TOP_01")
        session.advance(SessionState.AUTHENTICATED)
        session.target = UploadTarget(
            upload_url="https://storage.test.com/put",
            transfer_id="f1",
            matched_endpoint=EndpointCandidate(name="primary", url="https://api.test.com/v2/files"),
        )
        session.advance(SessionState.DISCOVERED)
        return session

    def test_untransferred_session_makes_no_request(self):
        session = self.discovered_session()

        result = self.finalize(session)

        assert result.success is False
        assert result.error_type == "SessionStateError"
        assert result.asset_id is None
        assert self.http.request.call_count == 0
        assert session.state == SessionState.DISCOVERED

    def test_token_must_match_session(self):
        session = UploadSession.for_finalize("f1", "DR_TOP_01", "Bearer other", "shirt.zepeto")

        result = self.finalize(session)

        assert result.success is False
        assert result.error_type == "SessionStateError"
        assert self.http.request.call_count == 0
        assert session.state == SessionState.TRANSFERRED

    def test_category_and_transfer_id_must_match_session(self):
        for session in [
            UploadSession.for_finalize("f1", "DR_PANTS_01", "Bearer t", "shirt.zepeto"),
            UploadSession.for_finalize("f2", "DR_TOP_01", "Bearer t", "shirt.zepeto"),
        ]:
            result = self.finalize(session)
            assert result.error_type == "SessionStateError"

        assert self.http.request.call_count == 0

    @patch("time.sleep")
    def test_build_status_polling(self, mock_sleep):
        self.settings.build_status_path = "/api/assets/{asset_id}/status"
        self.http.request.side_effect = [
            make_response(200, {"id": "asset-1"}),
            make_response(200, {}),
            make_response(200, {"status": "PENDING"}),
            make_response(200, {"status": "COMPLETED"}),
            make_response(200, {}),
        ]

        result = self.finalize()

        assert result.success is True
        assert result.build_confirmed is True
        assert self.requested()[2] == ("GET", f"{API}/api/assets/asset-1/status")
        assert self.requested()[4] == ("POST", f"{API}/api/items")
        # Only the pre-build settle delay; polling replaces the fixed wait
        assert [c.args[0] for c in self.sleep.call_args_list] == [3.0]

    @patch("time.sleep")
    def test_build_status_poll_timeout_still_publishes(self, mock_sleep):
        self.settings.build_status_path = "/api/assets/{asset_id}/status"
        self.settings.build_poll_max_seconds = 0

        def respond(method, url, **kwargs):
            if method == "GET":
                return make_response(200, {"status": "PENDING"})
            if url.endswith("/api/assets/link"):
                return make_response(200, {"id": "asset-1"})
            return make_response(200, {})

        self.http.request.side_effect = respond
        session = UploadSession.for_finalize("f1", "DR_TOP_01", "Bearer t", "shirt.zepeto")

        result = self.finalize(session)

        assert result.success is True
        assert result.build_confirmed is False
        assert ("GET", f"{API}/api/assets/asset-1/status") in self.requested()
        assert self.requested()[-1] == ("POST", f"{API}/api/items")
        assert session.state == SessionState.PUBLISHED

    @patch("time.sleep")
    def test_failed_build_then_polling_confirms(self, mock_sleep):
        self.settings.build_status_path = "/api/assets/{asset_id}/status"
        self.http.request.side_effect = [
            make_response(200, {"id": "asset-1"}),
            make_response(503, text="builder unavailable"),
            make_response(200, {"data": {"status": "done"}}),
            make_response(200, {}),
        ]

        result = self.finalize()

        assert result.success is True
        assert result.build_confirmed is True
        assert self.requested()[1] == ("POST", f"{API}/api/assets/asset-1/build/DR_TOP_01")
        assert self.requested()[2] == ("GET", f"{API}/api/assets/asset-1/status")
        assert self.requested()[3] == ("POST", f"{API}/api/items")
