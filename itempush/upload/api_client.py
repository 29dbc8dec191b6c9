"""
Platform API Client Base

Shared session handling for the orchestrator-side phases (login, discovery,
finalize). Every upload session opens its own client so that connections and
tokens are never shared between concurrent sessions.
"""

import logging
from typing import Any, Dict, Optional

import requests

from .models import StudioConfig


logger = logging.getLogger(__name__)

ERROR_SNIPPET_LENGTH = 100


class StudioAPIClient:
    """Base class for platform API interactions"""

    def __init__(self, config: StudioConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self._owns_session = session is None
        self.timeout = config.request_timeout

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        if self._owns_session:
            self.session.close()

    def _request(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        headers = self.config.get_headers(token)
        if payload is None:
            headers.pop("Content-Type", None)
        logger.debug(f"{method} {url}")
        return self.session.request(
            method,
            url,
            headers=headers,
            json=payload,
            params=params,
            timeout=self.timeout,
        )

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _error_text(response: requests.Response) -> str:
        """Short ``[status] body`` description of a rejected response"""
        try:
            text = response.text or ""
        except Exception:
            text = ""
        return f"[{response.status_code}] {text[:ERROR_SNIPPET_LENGTH]}"

    @staticmethod
    def _error_message(response: requests.Response, default: str) -> str:
        """Prefer the platform's own ``message`` field when present"""
        try:
            data = response.json()
            if isinstance(data, dict) and data.get("message"):
                return str(data["message"])
        except ValueError:
            pass
        return default

    @staticmethod
    def _unwrap(body: Any, envelope=("result", "data")) -> Dict[str, Any]:
        if not isinstance(body, dict):
            return {}
        for key in envelope:
            wrapped = body.get(key)
            if isinstance(wrapped, dict):
                merged = dict(body)
                merged.update(wrapped)
                return merged
        return body
