"""
Direct Transfer Client

Moves raw file bytes straight to the storage URL handed out by discovery.
The orchestrator's own API session is not involved, so there is no size
ceiling beyond what the storage target accepts. Files are streamed in
chunks rather than read into memory.
"""

import asyncio
import logging
import os
import time
from typing import AsyncIterator, Union

import aiofiles
import aiohttp

from .exceptions import TransferError
from .models import TransferResult


logger = logging.getLogger(__name__)

Source = Union[bytes, bytearray, str, os.PathLike]


class DirectTransferClient:
    """Single PUT of raw bytes to a discovered storage target"""

    def __init__(self, timeout: int = 3600, chunk_size: int = 1024 * 1024):
        self.timeout = timeout
        self.chunk_size = chunk_size

    def transfer(self, upload_url: str, source: Source) -> TransferResult:
        """Blocking wrapper around :meth:`transfer_async`.

        Callers already running an event loop must await
        :meth:`transfer_async` instead.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.transfer_async(upload_url, source))
        raise TransferError(
            "transfer() cannot run inside an event loop; await transfer_async() instead",
            endpoint=upload_url,
        )

    async def transfer_async(self, upload_url: str, source: Source) -> TransferResult:
        """PUT ``source`` (bytes or a file path) to ``upload_url``.

        Raises:
            TransferError: storage rejected the bytes (carries the status code)
                or the connection failed (status code is None).
        """
        start_time = time.time()
        counter = {"sent": 0}

        if isinstance(source, (bytes, bytearray)):
            size = len(source)
            data = bytes(source)
            counter["sent"] = size
        else:
            file_path = os.fspath(source)
            if not os.path.isfile(file_path):
                raise TransferError(f"File not found: {file_path}")
            size = os.path.getsize(file_path)
            data = self._stream_file(file_path, counter)

        headers = {
            "Content-Type": "application/octet-stream",
            "Content-Length": str(size),
        }
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.put(upload_url, data=data, headers=headers) as response:
                    if response.status not in [200, 201, 204]:
                        error_text = await response.text()
                        raise TransferError(
                            f"Storage upload failed with status {response.status}: {error_text[:200]}",
                            status_code=response.status,
                            endpoint=upload_url,
                        )
                    status = response.status
        except aiohttp.ClientError as e:
            raise TransferError(f"Storage upload connection failed: {str(e)}", endpoint=upload_url)
        except asyncio.TimeoutError:
            raise TransferError(
                f"Storage upload timed out after {self.timeout}s", endpoint=upload_url
            )

        elapsed = time.time() - start_time
        logger.info(f"Transferred {size} bytes in {elapsed:.1f}s")
        return TransferResult(
            success=True,
            status_code=status,
            bytes_sent=counter["sent"],
            elapsed_seconds=elapsed,
        )

    async def _stream_file(self, file_path: str, counter: dict) -> AsyncIterator[bytes]:
        async with aiofiles.open(file_path, "rb") as f:
            while True:
                chunk = await f.read(self.chunk_size)
                if not chunk:
                    break
                counter["sent"] += len(chunk)
                yield chunk

