"""
Endpoint Scanner

The platform's upload-initiation surface is undocumented and changes between
versions, so instead of a single hardcoded contract the scanner walks an
ordered list of candidate endpoints (most likely first) and stops at the
first one that hands back a transfer target.

Candidates are tried strictly one after another. Racing them would create
duplicate remote file records and trip the platform's rate limiting.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from .api_client import StudioAPIClient
from .exceptions import DiscoveryExhausted
from .models import EndpointCandidate, UploadTarget


logger = logging.getLogger(__name__)


class EndpointScanner(StudioAPIClient):
    """Discovers a usable upload target from ordered candidate endpoints"""

    def discover(
        self,
        candidates: Sequence[EndpointCandidate],
        token: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> UploadTarget:
        """Try each candidate in order; return the first accepted target.

        Raises:
            DiscoveryExhausted: every candidate failed. Carries the last
                observed error and the names of all attempted endpoints.
        """
        context = context or {}
        attempted: List[str] = []
        last_error: Optional[str] = None

        for candidate in candidates:
            attempted.append(candidate.name)
            logger.info(f"Trying upload endpoint: {candidate.name} ({candidate.url})")

            target, error = self._try_candidate(candidate, token, context)
            if target is not None:
                logger.info(f"Upload endpoint accepted: {candidate.name}")
                return target

            last_error = f"{candidate.name}: {error}"
            logger.warning(f"Upload endpoint {candidate.name} failed: {error}")

        if not attempted:
            raise DiscoveryExhausted("No upload endpoint candidates configured")

        raise DiscoveryExhausted(
            f"All upload endpoints failed ({', '.join(attempted)}). "
            f"Last error: {last_error or 'Timeout/Unknown'}",
            last_error=last_error,
            attempted=attempted,
            endpoint=attempted[-1],
        )

    def _try_candidate(self, candidate: EndpointCandidate, token: str, context: Dict[str, Any]):
        """Return ``(target, None)`` on acceptance or ``(None, error)``"""
        payload = candidate.render_payload(context)
        params = None
        if candidate.method.upper() in ("GET", "HEAD"):
            # No request body on GET; the payload goes into the query string
            params, payload = payload or None, None

        try:
            response = self._request(candidate.method, candidate.url, payload=payload, token=token, params=params)
        except requests.exceptions.Timeout:
            return None, f"timed out after {self.timeout}s"
        except requests.exceptions.RequestException as e:
            return None, f"connection error: {str(e)}"

        if not response.ok:
            return None, self._error_text(response)

        body = self._json(response)
        extracted = candidate.extract_target(body)
        if extracted is None:
            snippet = response.text[:100] if response.text else "<empty>"
            return None, f"[{response.status_code}] response has no {candidate.url_field}: {snippet}"

        upload_url, transfer_id = extracted
        return UploadTarget(
            upload_url=upload_url,
            transfer_id=transfer_id,
            matched_endpoint=candidate,
        ), None
