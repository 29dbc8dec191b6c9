"""
Upload Orchestrator

Coordinates the three-phase package upload:

Phase 1: Prepare  - re-authenticate, resolve category, discover a transfer target
Phase 2: Transfer - stream the bytes straight to storage (caller side)
Phase 3: Finalize - link, build and publish the catalog item

Every session gets its own ``UploadSession`` and its own API clients; the
only shared collaborators (account store, category map, candidate list) are
read-only.
"""

import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from itempush.rich_utils.ui_helpers import format_size

from .account_store import AccountStore
from .auth_client import AuthenticationClient
from .category_map import CategoryMap
from .endpoint_scanner import EndpointScanner
from .exceptions import (
    AccountNotReady,
    CategoryNotFound,
    FileValidationError,
    SessionStateError,
    UploadError,
)
from .file_validator import FileValidator
from .finalize_pipeline import FinalizePipeline
from .models import (
    EndpointCandidate,
    FinalizeResult,
    FinalizeSettings,
    LinkedAccount,
    PrepareResult,
    SessionState,
    StudioConfig,
    TransferResult,
    UploadResult,
    UploadSession,
)
from .transfer_client import DirectTransferClient, Source


class UploadOrchestrator:
    """Runs upload sessions against the creator platform"""

    def __init__(
        self,
        config: StudioConfig,
        account_store: AccountStore,
        candidates: Sequence[EndpointCandidate],
        category_map: Optional[CategoryMap] = None,
        finalize_settings: Optional[FinalizeSettings] = None,
        validator: Optional[FileValidator] = None,
        console: Console = None,
    ):
        self.config = config
        self.account_store = account_store
        self.candidates: List[EndpointCandidate] = list(candidates)
        self.category_map = category_map or CategoryMap()
        self.finalize_settings = finalize_settings or FinalizeSettings()
        self.validator = validator or FileValidator()
        self.console = console or Console()

    def prepare(self, account_id: str, file_name: str, file_size: int, category: str) -> PrepareResult:
        """Phase 1: authenticate and discover a transfer target.

        Account, category and file checks run before any network call.
        """
        session = UploadSession(
            account_id=account_id,
            file_name=file_name,
            file_size=file_size,
            category_key=category,
        )

        try:
            account = self._load_account(account_id)

            category_id = self.category_map.resolve(category)
            if not category_id:
                raise CategoryNotFound(
                    f"Unknown category '{category}'. Supported: {', '.join(self.category_map.keys())}",
                    category=category,
                )
            session.bind_category(category_id)

            validation = self.validator.validate_metadata(file_name, file_size)
            if not validation.is_valid:
                raise FileValidationError(validation.error_message, file_path=file_name)

            with AuthenticationClient(self.config) as auth_client:
                auth = auth_client.authenticate(account)
            session.bind_token(auth.token)
            session.advance(SessionState.AUTHENTICATED)

            with EndpointScanner(self.config) as scanner:
                target = scanner.discover(self.candidates, session.token, self._payload_context(file_name, file_size))
            session.target = target
            session.advance(SessionState.DISCOVERED)

        except UploadError as e:
            session.fail(e.message)
            return PrepareResult(
                success=False,
                message=e.message,
                error_type=type(e).__name__,
                category_id=session.category_id,
                session=session,
            )

        return PrepareResult(
            success=True,
            message=f"Upload target ready via {target.matched_endpoint.name}",
            token=session.token,
            upload_url=target.upload_url,
            transfer_id=target.transfer_id,
            category_id=session.category_id,
            matched_endpoint=target.matched_endpoint.name,
            session=session,
        )

    def transfer(self, session: UploadSession, source: Source) -> TransferResult:
        """Phase 2: push the bytes to the discovered storage target.

        Raises:
            TransferError: storage rejected the bytes. No retry is attempted.
        """
        if session.state != SessionState.DISCOVERED or session.target is None:
            raise SessionStateError(
                f"Session {session.session_id[:8]} has no transfer target (state: {session.state.value})"
            )

        client = DirectTransferClient(timeout=self.config.transfer_timeout, chunk_size=self.config.chunk_size)
        try:
            result = client.transfer(session.target.upload_url, source)
        except UploadError as e:
            session.fail(e.message)
            raise
        session.advance(SessionState.TRANSFERRED)
        return result

    def finalize(
        self,
        transfer_id: str,
        category_id: str,
        token: str,
        file_name: str,
        session: Optional[UploadSession] = None,
    ) -> FinalizeResult:
        """Phase 3: link, build and publish"""
        with FinalizePipeline(self.config, self.finalize_settings) as pipeline:
            return pipeline.finalize(transfer_id, category_id, token, file_name, upload_session=session)

    def execute_upload_workflow(self, account_id: str, file_path: str, category: str) -> UploadResult:
        """Run all three phases for a file on disk"""
        start_time = time.time()

        if not os.path.isfile(file_path):
            return UploadResult(
                success=False,
                message=f"File not found: {file_path}",
                error_type=FileValidationError.__name__,
            )

        file_name = os.path.basename(file_path)
        file_size = os.path.getsize(file_path)

        # Phase 1: Prepare
        self.console.print(f"🔐 Preparing upload of {file_name} ({format_size(file_size)})...", style="cyan")
        prepared = self.prepare(account_id, file_name, file_size, category)
        if not prepared.success:
            self.console.print(f"❌ Prepare failed: {prepared.message}", style="red")
            return self._failed(prepared.session, prepared.message, prepared.error_type, start_time)

        session = prepared.session
        self.console.print(f"✅ Upload target found via {prepared.matched_endpoint}", style="green")

        # Phase 2: Transfer
        try:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=self.console,
                transient=True,
            ) as progress:
                progress.add_task(f"Transferring {file_name}...", total=None)
                transfer_result = self.transfer(session, file_path)
        except UploadError as e:
            self.console.print(f"❌ Transfer failed: {e.message}", style="red")
            return self._failed(session, e.message, type(e).__name__, start_time)

        self.console.print(f"📤 Transferred {format_size(transfer_result.bytes_sent)}", style="green")

        # Phase 3: Finalize
        self.console.print("🔗 Linking asset and publishing item...", style="cyan")
        finalized = self.finalize(
            session.target.transfer_id,
            session.category_id,
            session.token,
            file_name,
            session=session,
        )
        if not finalized.success:
            self.console.print(f"❌ Finalize failed: {finalized.message}", style="red")
            result = self._failed(session, finalized.message, finalized.error_type, start_time)
            result.transfer_result = transfer_result
            return result

        if not finalized.build_confirmed:
            self.console.print("⚠️  Build completion was not confirmed by the platform", style="yellow")
        self.console.print(f"✅ {finalized.message}", style="bold green")

        return UploadResult(
            success=True,
            message=finalized.message,
            session_id=session.session_id,
            state=session.state,
            asset_id=finalized.asset_id,
            matched_endpoint=prepared.matched_endpoint,
            transfer_result=transfer_result,
            total_time_seconds=time.time() - start_time,
        )

    def _load_account(self, account_id: str) -> LinkedAccount:
        account = self.account_store.lookup(account_id)
        if account is None:
            raise AccountNotReady(f"Account {account_id} not found", account_id=account_id)
        if not account.is_connected:
            raise AccountNotReady(
                f"Account {account_id} is not connected (status: {account.status.value})",
                account_id=account_id,
            )
        return account

    @staticmethod
    def _payload_context(file_name: str, file_size: int) -> Dict[str, Any]:
        path = Path(file_name)
        return {
            "file_name": file_name,
            "stem": path.stem,
            "extension": path.suffix.lstrip("."),
            "file_size": file_size,
        }

    @staticmethod
    def _failed(session: Optional[UploadSession], message: str, error_type: Optional[str], start_time: float) -> UploadResult:
        return UploadResult(
            success=False,
            message=message,
            error_type=error_type,
            session_id=session.session_id if session else None,
            state=session.state if session else None,
            total_time_seconds=time.time() - start_time,
        )
