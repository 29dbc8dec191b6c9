"""
Tests for the direct-to-storage byte transfer.

aiohttp's ClientSession is replaced by a small in-process fake that
consumes the request body the way a storage endpoint would.
"""

import asyncio
from unittest.mock import patch

import aiohttp
import pytest

from itempush.upload.exceptions import TransferError
from itempush.upload.transfer_client import DirectTransferClient


class FakeResponse:

    def __init__(self, status, text=""):
        self.status = status
        self._text = text

    async def text(self):
        return self._text


class FakePut:

    def __init__(self, storage, url, data, headers):
        self.storage = storage
        self.url = url
        self.data = data
        self.headers = headers

    async def __aenter__(self):
        if self.storage.error is not None:
            raise self.storage.error
        if isinstance(self.data, bytes):
            received = len(self.data)
            self.storage.chunks = 1
        else:
            received = 0
            async for chunk in self.data:
                received += len(chunk)
                self.storage.chunks += 1
        self.storage.requests.append({"url": self.url, "headers": self.headers, "received": received})
        return FakeResponse(self.storage.status, self.storage.text)

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeStorage:
    """Records what a fake storage endpoint received"""

    def __init__(self, status=200, text="", error=None):
        self.status = status
        self.text = text
        self.error = error
        self.requests = []
        self.chunks = 0

    def session_factory(self):
        storage = self

        class FakeClientSession:
            def __init__(self, *args, **kwargs):
                self.kwargs = kwargs

            async def __aenter__(self):
                return self

            async def __aexit__(self, exc_type, exc, tb):
                return False

            def put(self, url, data=None, headers=None):
                return FakePut(storage, url, data, headers)

        return FakeClientSession


class TestDirectTransferClient:

    def setup_method(self):
        self.client = DirectTransferClient(timeout=60, chunk_size=1024 * 1024)

    def test_nine_megabyte_payload_succeeds(self):
        storage = FakeStorage(status=200)
        payload = b"\x00" * (9 * 1024 * 1024)

        with patch("aiohttp.ClientSession", storage.session_factory()):
            result = self.client.transfer("https://storage.test.com/put/f1", payload)

        assert result.success is True
        assert result.status_code == 200
        assert result.bytes_sent == len(payload)
        assert storage.requests[0]["received"] == len(payload)

    def test_raw_bytes_headers_without_authorization(self):
        storage = FakeStorage(status=200)

        with patch("aiohttp.ClientSession", storage.session_factory()):
            self.client.transfer("https://storage.test.com/put/f1", b"abc")

        headers = storage.requests[0]["headers"]
        assert headers["Content-Type"] == "application/octet-stream"
        assert headers["Content-Length"] == "3"
        assert "Authorization" not in headers

    def test_file_is_streamed_in_chunks(self, tmp_path):
        package = tmp_path / "shirt.zepeto"
        package.write_bytes(b"z" * (3 * 1024 * 1024 + 10))
        storage = FakeStorage(status=201)

        with patch("aiohttp.ClientSession", storage.session_factory()):
            result = self.client.transfer("https://storage.test.com/put/f1", str(package))

        assert result.success is True
        assert result.bytes_sent == 3 * 1024 * 1024 + 10
        assert storage.chunks == 4
        assert storage.requests[0]["headers"]["Content-Length"] == str(3 * 1024 * 1024 + 10)

    def test_rejected_transfer_raises_with_status(self):
        storage = FakeStorage(status=403, text="AccessDenied")

        with patch("aiohttp.ClientSession", storage.session_factory()):
            with pytest.raises(TransferError) as exc_info:
                self.client.transfer("https://storage.test.com/put/f1", b"abc")

        assert exc_info.value.status_code == 403
        assert "AccessDenied" in str(exc_info.value)
        assert len(storage.requests) == 1

    def test_connection_error_raises_without_status(self):
        storage = FakeStorage(error=aiohttp.ClientConnectionError("reset by peer"))

        with patch("aiohttp.ClientSession", storage.session_factory()):
            with pytest.raises(TransferError) as exc_info:
                self.client.transfer("https://storage.test.com/put/f1", b"abc")

        assert exc_info.value.status_code is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(TransferError):
            self.client.transfer("https://storage.test.com/put/f1", str(tmp_path / "missing.zepeto"))

    def test_blocking_transfer_inside_event_loop(self):
        storage = FakeStorage(status=200)

        async def call_from_loop():
            return self.client.transfer("https://storage.test.com/put/f1", b"abc")

        with patch("aiohttp.ClientSession", storage.session_factory()):
            with pytest.raises(TransferError) as exc_info:
                asyncio.run(call_from_loop())

        assert "transfer_async" in str(exc_info.value)
        assert storage.requests == []

    def test_transfer_async_inside_event_loop(self):
        storage = FakeStorage(status=200)

        with patch("aiohttp.ClientSession", storage.session_factory()):
            result = asyncio.run(self.client.transfer_async("https://storage.test.com/put/f1", b"abc"))

        assert result.bytes_sent == 3
