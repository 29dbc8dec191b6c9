"""
Upload service for itempush.

Wires configuration, the account store and the orchestrator together for
the CLI and returns process exit codes.
"""
import os
from typing import Optional

from itempush.core.config_manager import ConfigManager
from itempush.rich_utils.ui_helpers import get_console
from itempush.upload.account_store import AccountStore, YamlAccountStore
from itempush.upload.environment_detector import StudioEnvironmentDetector
from itempush.upload.exceptions import ConfigurationError
from itempush.upload.file_validator import FileValidator
from itempush.upload.upload_orchestrator import UploadOrchestrator


class UploadService:
    """Service for publishing packages from the command line."""

    def __init__(self, console=None):
        self.config_manager = ConfigManager()
        self.detector = StudioEnvironmentDetector()
        self.console = console or get_console()

    def load_config(self, config_path: Optional[str] = None, candidates_path: Optional[str] = None) -> dict:
        """Merged config with candidates file and environment overrides applied."""
        config = self.config_manager.discover_and_load_config(config_path)
        config = self.config_manager.apply_candidates_file(
            config, candidates_path or self.detector.get_candidates_file()
        )
        return self.detector.apply_overrides(config)

    def build_orchestrator(self, config: dict, account_store: AccountStore) -> UploadOrchestrator:
        return UploadOrchestrator(
            config=self.config_manager.build_studio_config(config),
            account_store=account_store,
            candidates=self.config_manager.build_candidates(config),
            category_map=self.config_manager.build_category_map(config),
            finalize_settings=self.config_manager.build_finalize_settings(config),
            validator=FileValidator(self.config_manager.allowed_extensions(config)),
            console=self.console,
        )

    def execute_upload(
        self,
        file_path: str,
        account_id: str,
        category: str,
        accounts_path: Optional[str] = None,
        config_path: Optional[str] = None,
        candidates_path: Optional[str] = None,
    ) -> int:
        """Execute the upload workflow and return exit code."""
        accounts_path = accounts_path or self.detector.get_accounts_file()
        if not accounts_path:
            self.console.print("❌ No accounts file configured", style="bold red")
            self.console.print(f"   Use --accounts or set {self.detector.ACCOUNTS_FILE_VAR}", style="dim")
            return 1
        if not os.path.exists(accounts_path):
            self.console.print(f"❌ Accounts file not found: {accounts_path}", style="bold red")
            return 1

        try:
            config = self.load_config(config_path, candidates_path)
            orchestrator = self.build_orchestrator(config, YamlAccountStore(accounts_path))
        except (ConfigurationError, FileNotFoundError) as e:
            self.console.print(f"❌ Configuration error: {str(e)}", style="bold red")
            return 1

        if not orchestrator.candidates:
            self.console.print("❌ No upload endpoint candidates configured", style="bold red")
            return 1

        self.console.print("🚀 Publishing package...", style="bold blue")
        result = orchestrator.execute_upload_workflow(account_id, file_path, category)

        if result.success:
            self.console.print(f"✅ Upload completed in {result.total_time_seconds:.1f}s", style="bold green")
            return 0

        self.console.print(f"❌ Upload failed ({result.error_type}): {result.message}", style="bold red")
        return 1
