"""
Finalize Pipeline

Turns a transferred file into a sellable catalog item:

1. Link the transfer id to an asset under the category (one fallback:
   create the asset record with the transfer id injected).
2. Trigger the asset build. The platform builds asynchronously and its
   immediate answer is not authoritative, so a failed build call is logged
   and the pipeline moves on.
3. Create the catalog item with the configured price and currency.
"""

import logging
import time
from typing import Callable, Optional, Tuple

import backoff
import requests

from .api_client import StudioAPIClient
from .exceptions import LinkError, PublishError, SessionStateError, UploadError
from .models import (
    FinalizeResult,
    FinalizeSettings,
    SessionState,
    StudioConfig,
    UploadSession,
)


logger = logging.getLogger(__name__)


class FinalizePipeline(StudioAPIClient):
    """Sequential link -> build -> publish chain"""

    def __init__(
        self,
        config: StudioConfig,
        settings: Optional[FinalizeSettings] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(config, session=session)
        self.settings = settings or FinalizeSettings()
        self._sleep = sleep

    def finalize(
        self,
        transfer_id: str,
        category_id: str,
        token: str,
        file_name: str,
        upload_session: Optional[UploadSession] = None,
    ) -> FinalizeResult:
        """Run the pipeline and report the outcome as a tagged result"""
        upload_session = upload_session or UploadSession.for_finalize(
            transfer_id, category_id, token, file_name
        )
        try:
            self._check_session(upload_session, transfer_id, category_id, token)
        except SessionStateError as e:
            # Misuse by the caller; the session itself is left as it was
            return FinalizeResult(success=False, message=e.message, error_type=type(e).__name__)

        try:
            return self.run(transfer_id, category_id, token, file_name, upload_session)
        except UploadError as e:
            if not upload_session.is_terminal:
                upload_session.fail(e.message)
            return FinalizeResult(
                success=False,
                message=e.message,
                error_type=type(e).__name__,
                asset_id=upload_session.asset_id,
            )

    def run(
        self,
        transfer_id: str,
        category_id: str,
        token: str,
        file_name: str,
        upload_session: UploadSession,
    ) -> FinalizeResult:
        """Run the pipeline, raising LinkError / PublishError on fatal steps"""
        self._check_session(upload_session, transfer_id, category_id, token)

        asset_id = self.link_asset(transfer_id, category_id, token, file_name)
        upload_session.asset_id = asset_id
        upload_session.advance(SessionState.LINKED)

        build_confirmed = self.build_asset(asset_id, category_id, token)
        upload_session.advance(SessionState.BUILT)

        self.publish_item(asset_id, category_id, token)
        upload_session.advance(SessionState.PUBLISHED)

        return FinalizeResult(
            success=True,
            message=f"Item published for asset {asset_id}",
            asset_id=asset_id,
            build_confirmed=build_confirmed,
        )

    @staticmethod
    def _check_session(upload_session: UploadSession, transfer_id: str, category_id: str, token: str) -> None:
        """Reject a session that cannot be finalized, before any request is made"""
        if upload_session.state != SessionState.TRANSFERRED:
            raise SessionStateError(
                f"Session {upload_session.session_id[:8]} cannot be finalized "
                f"(state: {upload_session.state.value}, expected {SessionState.TRANSFERRED.value})"
            )
        if upload_session.token != token:
            raise SessionStateError("Finalize token does not match the session token")
        if upload_session.category_id != category_id:
            raise SessionStateError(
                f"Finalize category {category_id} does not match the session category {upload_session.category_id}"
            )
        if upload_session.target is not None and upload_session.target.transfer_id != transfer_id:
            raise SessionStateError(
                f"Finalize transfer id {transfer_id} does not match the session transfer id"
            )

    def link_asset(self, transfer_id: str, category_id: str, token: str, file_name: str) -> str:
        """Register the transfer id under the category and return the asset id"""
        link_endpoint = self.settings.link_path
        payload = {"categoryId": category_id, "fileId": transfer_id, "name": file_name}

        asset_id, link_error = self._post_for_id(link_endpoint, payload, token)
        if asset_id:
            return asset_id

        logger.warning(f"Direct link failed, trying asset-create fallback: {link_error}")

        fallback_payload = {"categoryId": category_id, "name": file_name, "fileId": transfer_id}
        asset_id, create_error = self._post_for_id(self.settings.create_asset_path, fallback_payload, token)
        if asset_id:
            return asset_id

        raise LinkError(
            f"Asset linking failed: {link_error} (fallback: {create_error})",
            endpoint=link_endpoint,
        )

    def build_asset(self, asset_id: str, category_id: str, token: str) -> bool:
        """Trigger the build; returns whether completion was confirmed"""
        self._sleep(self.settings.build_settle_seconds)

        endpoint = self.settings.build_path.format(asset_id=asset_id, category_id=category_id)
        try:
            response = self._request("POST", self.config.url_for(endpoint), token=token)
            if not response.ok:
                logger.warning(f"Build request for asset {asset_id} rejected: {self._error_text(response)}")
        except requests.exceptions.RequestException as e:
            logger.warning(f"Build request for asset {asset_id} failed: {str(e)}")

        if self.settings.build_status_path:
            ready = self._poll_build_status(asset_id, category_id, token)
            if not ready:
                logger.warning(
                    f"Build for asset {asset_id} not confirmed within "
                    f"{self.settings.build_poll_max_seconds}s, publishing anyway"
                )
            return ready

        # No completion signal available: fixed settle delay.
        self._sleep(self.settings.publish_settle_seconds)
        return False

    def publish_item(self, asset_id: str, category_id: str, token: str) -> None:
        endpoint = self.settings.item_path
        payload = {
            "price": self.settings.price,
            "assetId": asset_id,
            "categoryId": category_id,
            "currency": self.settings.currency,
        }
        try:
            response = self._request("POST", self.config.url_for(endpoint), payload=payload, token=token)
        except requests.exceptions.RequestException as e:
            raise PublishError(f"Item creation failed: {str(e)}", endpoint=endpoint)

        if not response.ok:
            reason = self._error_message(response, "Unknown")
            raise PublishError(
                f"Item creation failed: {reason}",
                endpoint=endpoint,
                status_code=response.status_code,
            )
        logger.info(f"Published item for asset {asset_id}")

    def _post_for_id(self, endpoint: str, payload: dict, token: str) -> Tuple[Optional[str], Optional[str]]:
        """POST and return ``(asset_id, None)`` or ``(None, error)``"""
        try:
            response = self._request("POST", self.config.url_for(endpoint), payload=payload, token=token)
        except requests.exceptions.RequestException as e:
            return None, str(e)

        if not response.ok:
            return None, self._error_text(response)

        asset_id = self._unwrap(self._json(response)).get("id")
        if not asset_id:
            return None, f"[{response.status_code}] response has no asset id"
        return str(asset_id), None

    def _poll_build_status(self, asset_id: str, category_id: str, token: str) -> bool:
        endpoint = self.settings.build_status_path.format(asset_id=asset_id, category_id=category_id)
        url = self.config.url_for(endpoint)
        ready_values = {v.upper() for v in self.settings.build_ready_values}

        @backoff.on_predicate(
            backoff.expo,
            lambda ready: not ready,
            max_time=self.settings.build_poll_max_seconds,
            max_value=10,
            jitter=None,
        )
        def poll() -> bool:
            try:
                response = self._request("GET", url, token=token)
            except requests.exceptions.RequestException as e:
                logger.debug(f"Build status poll failed: {str(e)}")
                return False
            if not response.ok:
                return False
            status = self._unwrap(self._json(response)).get(self.settings.build_status_field)
            return str(status).upper() in ready_values

        return poll()
